"""
Notification service for Fix It Now Backend.

Central service for creating notifications. Report notifications are not
called from views: NotificationsConfig.ready() subscribes
NotificationService.on_report_change to the change feed, so every stored
report change reaches it once the write has succeeded.

Recipients:
- new report             -> all active admins
- report assigned        -> the technician and the reporter
- technician removed     -> the former technician
- other status changes   -> the reporter (and admins when completed)

The user who made the change is never notified about it.
"""

import logging

from django.utils import timezone

from authentication.models import User
from core.changefeed import ChangeEventType
from reports.models import ReportStatus
from .models import Notification, NotificationType

logger = logging.getLogger(__name__)


class NotificationService:
    """Creates and manages notifications."""

    @classmethod
    def _bulk_notify(cls, recipients, title, message,
                     notification_type=NotificationType.GENERAL, report=None, exclude=None):
        """Create one notification per distinct recipient, skipping exclude."""
        excluded_id = getattr(exclude, 'pk', None)
        seen = set()
        notifications = []
        for recipient in recipients:
            if recipient is None or recipient.pk == excluded_id or recipient.pk in seen:
                continue
            seen.add(recipient.pk)
            notifications.append(
                Notification(
                    recipient=recipient,
                    title=title,
                    message=message,
                    notification_type=notification_type,
                    report=report,
                )
            )

        if notifications:
            Notification.objects.bulk_create(notifications)

        return len(notifications)

    @classmethod
    def _reporter_of(cls, report):
        if report.reporter_id:
            return User.objects.active().filter(pk=report.reporter_id).first()
        if report.reporter_email:
            return User.objects.active().filter(email__iexact=report.reporter_email).first()
        return None

    @classmethod
    def _user(cls, user_id):
        if not user_id:
            return None
        return User.objects.filter(pk=user_id).first()

    # =========================================================================
    # CHANGE FEED ENTRY POINT
    # =========================================================================

    @classmethod
    def on_report_change(cls, event):
        """Turn a report change event into notifications. Returns the count created."""
        report = event.instance

        if event.event_type == ChangeEventType.INSERT:
            return cls.notify_new_report(report)

        if event.event_type != ChangeEventType.UPDATE or not event.changed('status'):
            return 0

        from_status = event.previous.get('status')
        to_status = event.changes['status']
        previous_assignee = event.previous.get('assigned_to')
        actor = event.actor
        count = 0

        if to_status == ReportStatus.ASSIGNED:
            technician = cls._user(event.changes.get('assigned_to') or report.assigned_to_id)
            return cls.notify_report_assigned(report, technician, actor)

        if event.changed('assigned_to') and event.changes['assigned_to'] is None and previous_assignee:
            count += cls.notify_report_unassigned(report, cls._user(previous_assignee), actor)

        count += cls.notify_status_changed(report, from_status, to_status, actor)
        return count

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    @classmethod
    def notify_new_report(cls, report):
        """
        Notify admins about a new report.

        Recipients: all active admins except the reporter.
        """
        title = f"New Report: {report.title[:150]}"
        message = (
            f"A new report has been submitted.\n\n"
            f"Category: {report.get_category_display()}\n"
            f"Priority: {report.get_priority_display()}\n"
            f"Location: {report.location}\n\n"
            f"Description: {report.description[:200]}"
        )
        count = cls._bulk_notify(
            recipients=User.objects.admins(),
            title=title,
            message=message,
            notification_type=NotificationType.REPORT_CREATED,
            report=report,
            exclude=report.reporter,
        )
        logger.info(f"Report {report.id} created: notified {count} admin(s)")
        return count

    @classmethod
    def notify_report_assigned(cls, report, technician, actor=None):
        """
        Notify the technician of a new task and the reporter that work is scheduled.
        """
        count = 0
        if technician is not None:
            count += cls._bulk_notify(
                recipients=[technician],
                title=f"New Task: {report.title[:150]}",
                message=(
                    f"A report has been assigned to you.\n\n"
                    f"Location: {report.location}\n"
                    f"Priority: {report.get_priority_display()}"
                ),
                notification_type=NotificationType.REPORT_ASSIGNED,
                report=report,
                exclude=actor,
            )

        count += cls._bulk_notify(
            recipients=[cls._reporter_of(report)],
            title="Your report has been assigned",
            message=f"A technician has been assigned to \"{report.title}\".",
            notification_type=NotificationType.REPORT_ASSIGNED,
            report=report,
            exclude=actor,
        )
        return count

    @classmethod
    def notify_report_unassigned(cls, report, technician, actor=None):
        return cls._bulk_notify(
            recipients=[technician],
            title=f"Task Removed: {report.title[:150]}",
            message="You are no longer assigned to this report.",
            notification_type=NotificationType.REPORT_UNASSIGNED,
            report=report,
            exclude=actor,
        )

    @classmethod
    def notify_status_changed(cls, report, from_status, to_status, actor=None):
        """
        Notify the reporter of a status change; admins also hear about completed work.
        """
        status_label = dict(ReportStatus.CHOICES).get(to_status, to_status)

        if to_status == ReportStatus.APPROVED:
            notification_type = NotificationType.REPORT_APPROVED
            title = "Your report has been resolved"
        elif to_status == ReportStatus.REJECTED:
            notification_type = NotificationType.REPORT_REJECTED
            title = "Your report was rejected"
        else:
            notification_type = NotificationType.STATUS_CHANGED
            title = f"Report status: {status_label}"

        message = f"\"{report.title}\" is now {status_label}."
        if to_status == ReportStatus.REJECTED and report.completion_notes:
            message += f"\n\nReason: {report.completion_notes}"

        count = cls._bulk_notify(
            recipients=[cls._reporter_of(report)],
            title=title,
            message=message,
            notification_type=notification_type,
            report=report,
            exclude=actor,
        )

        if to_status == ReportStatus.COMPLETED:
            count += cls._bulk_notify(
                recipients=User.objects.admins(),
                title=f"Awaiting Approval: {report.title[:150]}",
                message=f"Work on \"{report.title}\" is finished and awaits approval.",
                notification_type=NotificationType.STATUS_CHANGED,
                report=report,
                exclude=actor,
            )

        logger.info(
            f"Report {report.id} {from_status} -> {to_status}: {count} notification(s)"
        )
        return count

    # =========================================================================
    # UTILITY METHODS
    # =========================================================================

    @classmethod
    def get_unread_count(cls, user):
        return Notification.objects.filter(
            recipient=user,
            is_read=False
        ).count()

    @classmethod
    def mark_all_read(cls, user):
        now = timezone.now()
        return Notification.objects.filter(
            recipient=user,
            is_read=False
        ).update(
            is_read=True,
            read_at=now,
            updated_at=now,
        )
