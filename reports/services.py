"""
Services for report handling.

Includes:
- ReportLifecycleService: applies lifecycle decisions to stored reports

Every status, assignment or completion-notes change goes through here:
1. reports.lifecycle decides and returns a ReportMutation
2. the mutation is written with a compare-and-set on (status, updated_at)
3. a ReportStatusHistory row and an AuditLog entry are recorded
4. the change is published on the change feed once the transaction commits
   (notifications listen there)
"""

import logging

from django.db import transaction
from django.utils import timezone

from audit.models import AuditLog, AuditEventType
from authentication.models import User, UserRole
from core.changefeed import ChangeEvent, ChangeEventType, feed
from core.exceptions import ConcurrentModification, LifecycleError, TransitionValidationError
from reports import lifecycle
from reports.models import Report, ReportStatus, ReportStatusHistory

logger = logging.getLogger('fixitnow.lifecycle')

# Mutation keys that name a relation rather than a column
_COLUMN_FOR = {
    'assigned_to': 'assigned_to_id',
}


class ReportLifecycleService:
    """Persist lifecycle transitions for stored reports."""

    @classmethod
    def create_report(cls, validated_data, user, request=None):
        """Store a new report in 'pending'. The change feed sees the insert."""
        data = dict(validated_data)
        data['status'] = ReportStatus.PENDING
        data.setdefault('reporter_email', getattr(user, 'email', '') or '')
        if getattr(user, 'is_authenticated', False):
            data['reporter'] = user

        report = Report.objects.create(**data)

        AuditLog.log(
            event_type=AuditEventType.REPORT_CREATED,
            actor=user,
            target=report,
            request=request,
            success=True,
            description=f"Report submitted: {report.title}",
            metadata={'category': report.category, 'priority': report.priority}
        )
        logger.info(f"Report {report.id} created by {getattr(user, 'id', 'anonymous')}")
        return report

    @classmethod
    def transition(cls, report, user, target_status, notes=None, request=None):
        """Move a report to target_status on behalf of user."""
        try:
            mutation = lifecycle.request_transition(
                report, target_status, user.role, user.id, notes=notes
            )
        except LifecycleError as exc:
            cls._record_denied(report, user, target_status, exc, request)
            raise

        return cls._apply(
            report, user, mutation, request,
            AuditEventType.REPORT_STATUS_CHANGED,
            f"Status changed from {mutation.from_status} to {mutation.to_status}",
            reason=notes,
        )

    @classmethod
    def assign(cls, report, user, technician, request=None):
        """Assign a pending report to an active technician."""
        try:
            technician_id = technician.id if technician is not None else None
            mutation = lifecycle.assign_technician(report, technician_id, user.role)
            cls._check_technician(technician)
        except LifecycleError as exc:
            cls._record_denied(report, user, ReportStatus.ASSIGNED, exc, request)
            raise

        return cls._apply(
            report, user, mutation, request,
            AuditEventType.REPORT_ASSIGNED,
            f"Assigned to {technician.email}",
        )

    @classmethod
    def unassign(cls, report, user, request=None):
        """Detach the technician and put the report back to pending."""
        try:
            mutation = lifecycle.unassign_technician(report, user.role)
        except LifecycleError as exc:
            cls._record_denied(report, user, ReportStatus.PENDING, exc, request)
            raise

        return cls._apply(
            report, user, mutation, request,
            AuditEventType.REPORT_UNASSIGNED,
            "Technician removed from report",
        )

    @classmethod
    def update_notes(cls, report, user, notes, request=None):
        """Edit completion notes without a status change (admin action)."""
        previous_notes = report.completion_notes
        now = timezone.now()
        updated = Report.objects.filter(
            pk=report.pk,
            updated_at=report.updated_at,
        ).update(completion_notes=notes or None, updated_at=now)
        if updated != 1:
            raise ConcurrentModification()

        report.completion_notes = notes or None
        report.updated_at = now

        AuditLog.log(
            event_type=AuditEventType.REPORT_NOTES_UPDATED,
            actor=user,
            target=report,
            request=request,
            success=True,
            description="Completion notes updated",
            metadata={'had_notes': bool(previous_notes)}
        )
        event = ChangeEvent(
            ChangeEventType.UPDATE,
            report,
            changes={'completion_notes': report.completion_notes, 'updated_at': now},
            previous={'completion_notes': previous_notes},
            actor=user,
        )
        transaction.on_commit(lambda: feed.publish(event))
        return report

    @classmethod
    def _apply(cls, report, user, mutation, request, event_type, description, reason=None):
        previous = {
            'status': report.status,
            'assigned_to': report.assigned_to_id,
            'completion_notes': report.completion_notes,
        }
        values = {_COLUMN_FOR.get(field, field): value for field, value in mutation.changes.items()}

        with transaction.atomic():
            updated = Report.objects.filter(
                pk=report.pk,
                status=mutation.from_status,
                updated_at=report.updated_at,
            ).update(**values)

            if updated != 1:
                logger.warning(
                    f"Concurrent modification on report {report.pk}: "
                    f"expected {mutation.from_status} at {report.updated_at}"
                )
                raise ConcurrentModification()

            for column, value in values.items():
                setattr(report, column, value)

            ReportStatusHistory.objects.create(
                report=report,
                from_status=mutation.from_status,
                to_status=mutation.to_status,
                changed_by=user,
                assigned_to_id=report.assigned_to_id,
                reason=(reason or '').strip(),
            )

            AuditLog.log(
                event_type=event_type,
                actor=user,
                target=report,
                request=request,
                success=True,
                description=description,
                metadata={
                    'from_status': mutation.from_status,
                    'to_status': mutation.to_status,
                    'assigned_to': str(report.assigned_to_id) if report.assigned_to_id else None,
                }
            )

            event = ChangeEvent(
                ChangeEventType.UPDATE,
                report,
                changes=mutation.changes,
                previous=previous,
                actor=user,
            )
            transaction.on_commit(lambda: feed.publish(event))

        logger.info(
            f"Report {report.pk}: {mutation.from_status} -> {mutation.to_status} by {user.id} ({user.role})"
        )
        return report

    @classmethod
    def _check_technician(cls, technician):
        if technician is None:
            raise TransitionValidationError("A technician must be chosen to assign the report.")
        if technician.role != UserRole.TECHNICIAN:
            raise TransitionValidationError("Reports can only be assigned to technicians.")
        if technician.is_suspended or not technician.is_active:
            raise TransitionValidationError("The chosen technician account is not active.")

    @classmethod
    def _record_denied(cls, report, user, target_status, exc, request):
        logger.info(
            f"Transition refused on report {report.pk}: {report.status} -> {target_status} "
            f"by {user.id} ({user.role}): {exc.code}"
        )
        AuditLog.log(
            event_type=AuditEventType.REPORT_TRANSITION_DENIED,
            actor=user,
            target=report,
            request=request,
            success=False,
            description=f"Refused {report.status} -> {target_status}",
            metadata={
                'from_status': report.status,
                'to_status': target_status,
                'code': exc.code,
            },
            error_message=exc.message,
        )


def find_technician(technician_id):
    """Active technician by id, or None."""
    return User.objects.technicians().filter(id=technician_id).first()
