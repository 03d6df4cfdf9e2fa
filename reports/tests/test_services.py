from django.db import transaction
from django.test import TransactionTestCase

from audit.models import AuditLog, AuditEventType
from authentication.models import User, UserRole
from core.changefeed import ChangeEventType, feed
from core.exceptions import (
    ConcurrentModification,
    IllegalTransition,
    TransitionValidationError,
    Unauthorized,
)
from notifications.models import Notification, NotificationType
from reports.models import Report, ReportStatus, ReportStatusHistory
from reports.services import ReportLifecycleService, find_technician

PASSWORD = 'Str0ng-pass-2024'


class LifecycleServiceTestCase(TransactionTestCase):

    def setUp(self):
        self.admin = User.objects.create_staff('admin@example.com', PASSWORD, UserRole.ADMIN)
        self.technician = User.objects.create_staff('tech@example.com', PASSWORD, UserRole.TECHNICIAN)
        self.other_technician = User.objects.create_staff('tech2@example.com', PASSWORD, UserRole.TECHNICIAN)
        self.citizen = User.objects.create_user('citizen@example.com', PASSWORD)

        self.report = ReportLifecycleService.create_report(
            {
                'title': 'Broken street light',
                'description': 'The street light at the corner has been dark for a week.',
                'location': 'Jl. Merdeka 10',
                'category': 'streetlight',
            },
            self.citizen,
        )

    def reload(self):
        return Report.objects.get(pk=self.report.pk)


class CreateReportTests(LifecycleServiceTestCase):

    def test_new_report_is_pending_and_linked_to_reporter(self):
        report = self.reload()

        self.assertEqual(report.status, ReportStatus.PENDING)
        self.assertEqual(report.reporter, self.citizen)
        self.assertEqual(report.reporter_email, 'citizen@example.com')
        self.assertIsNone(report.assigned_to)

    def test_creation_is_audited_and_admins_notified(self):
        self.assertTrue(AuditLog.objects.filter(
            event_type=AuditEventType.REPORT_CREATED,
            target_id=str(self.report.pk),
        ).exists())
        self.assertTrue(Notification.objects.filter(
            recipient=self.admin,
            report=self.report,
            notification_type=NotificationType.REPORT_CREATED,
        ).exists())
        self.assertFalse(Notification.objects.filter(recipient=self.citizen).exists())


class AssignTests(LifecycleServiceTestCase):

    def test_assign_sets_technician_and_records_history(self):
        ReportLifecycleService.assign(self.report, self.admin, self.technician)

        report = self.reload()
        self.assertEqual(report.status, ReportStatus.ASSIGNED)
        self.assertEqual(report.assigned_to, self.technician)

        history = ReportStatusHistory.objects.get(report=report)
        self.assertEqual(history.from_status, ReportStatus.PENDING)
        self.assertEqual(history.to_status, ReportStatus.ASSIGNED)
        self.assertEqual(history.changed_by, self.admin)
        self.assertEqual(history.assigned_to, self.technician)

        self.assertTrue(AuditLog.objects.filter(
            event_type=AuditEventType.REPORT_ASSIGNED,
            target_id=str(report.pk),
            success=True,
        ).exists())

    def test_assign_notifies_technician_and_reporter(self):
        ReportLifecycleService.assign(self.report, self.admin, self.technician)

        recipients = set(Notification.objects.filter(
            report=self.report,
            notification_type=NotificationType.REPORT_ASSIGNED,
        ).values_list('recipient_id', flat=True))
        self.assertEqual(recipients, {self.technician.pk, self.citizen.pk})

    def test_assign_to_non_technician_is_refused(self):
        with self.assertRaises(TransitionValidationError):
            ReportLifecycleService.assign(self.report, self.admin, self.citizen)

        report = self.reload()
        self.assertEqual(report.status, ReportStatus.PENDING)
        self.assertIsNone(report.assigned_to_id)
        self.assertTrue(AuditLog.objects.filter(
            event_type=AuditEventType.REPORT_TRANSITION_DENIED,
            target_id=str(report.pk),
            success=False,
        ).exists())

    def test_assign_to_suspended_technician_is_refused(self):
        self.technician.suspend()

        with self.assertRaises(TransitionValidationError):
            ReportLifecycleService.assign(self.report, self.admin, self.technician)
        self.assertIsNone(find_technician(self.technician.id))

    def test_only_admin_assigns(self):
        with self.assertRaises(Unauthorized):
            ReportLifecycleService.assign(self.report, self.technician, self.technician)
        self.assertEqual(self.reload().status, ReportStatus.PENDING)

    def test_unassign_returns_to_pending_and_tells_former_technician(self):
        ReportLifecycleService.assign(self.report, self.admin, self.technician)

        ReportLifecycleService.unassign(self.report, self.admin)

        report = self.reload()
        self.assertEqual(report.status, ReportStatus.PENDING)
        self.assertIsNone(report.assigned_to_id)
        self.assertTrue(Notification.objects.filter(
            recipient=self.technician,
            notification_type=NotificationType.REPORT_UNASSIGNED,
        ).exists())

    def test_repeated_unassign_changes_nothing(self):
        ReportLifecycleService.assign(self.report, self.admin, self.technician)
        ReportLifecycleService.unassign(self.report, self.admin)
        history_count = ReportStatusHistory.objects.filter(report=self.report).count()
        reporter_notifications = Notification.objects.filter(recipient=self.citizen).count()

        for _ in range(2):
            with self.assertRaises(IllegalTransition):
                ReportLifecycleService.unassign(self.report, self.admin)

        self.assertEqual(ReportStatusHistory.objects.filter(report=self.report).count(), history_count)
        self.assertEqual(Notification.objects.filter(recipient=self.citizen).count(), reporter_notifications)
        self.assertFalse(ReportStatusHistory.objects.filter(
            report=self.report,
            from_status=ReportStatus.PENDING,
            to_status=ReportStatus.PENDING,
        ).exists())

    def test_unassign_never_assigned_report_is_refused(self):
        with self.assertRaises(IllegalTransition):
            ReportLifecycleService.unassign(self.report, self.admin)
        self.assertEqual(self.reload().status_history.count(), 0)


class TransitionTests(LifecycleServiceTestCase):

    def assign(self):
        return ReportLifecycleService.assign(self.report, self.admin, self.technician)

    def test_full_repair_cycle(self):
        self.assign()
        ReportLifecycleService.transition(self.report, self.technician, ReportStatus.PROGRESS)
        ReportLifecycleService.transition(
            self.report, self.technician, ReportStatus.COMPLETED, notes='Lamp replaced'
        )
        ReportLifecycleService.transition(self.report, self.admin, ReportStatus.APPROVED)

        report = self.reload()
        self.assertEqual(report.status, ReportStatus.APPROVED)
        self.assertEqual(report.completion_notes, 'Lamp replaced')
        self.assertEqual(report.status_history.count(), 4)
        self.assertTrue(Notification.objects.filter(
            recipient=self.citizen,
            notification_type=NotificationType.REPORT_APPROVED,
        ).exists())

    def test_completed_work_is_announced_to_admins(self):
        self.assign()
        ReportLifecycleService.transition(self.report, self.technician, ReportStatus.PROGRESS)
        ReportLifecycleService.transition(self.report, self.technician, ReportStatus.COMPLETED)

        self.assertTrue(Notification.objects.filter(
            recipient=self.admin,
            report=self.report,
            notification_type=NotificationType.STATUS_CHANGED,
        ).exists())
        self.assertFalse(Notification.objects.filter(
            recipient=self.technician,
            notification_type=NotificationType.STATUS_CHANGED,
        ).exists())

    def test_other_technician_cannot_work_on_report(self):
        self.assign()

        with self.assertRaises(Unauthorized):
            ReportLifecycleService.transition(self.report, self.other_technician, ReportStatus.PROGRESS)

        report = self.reload()
        self.assertEqual(report.status, ReportStatus.ASSIGNED)
        denied = AuditLog.objects.get(event_type=AuditEventType.REPORT_TRANSITION_DENIED)
        self.assertEqual(denied.metadata['code'], 'TRANSITION_UNAUTHORIZED')
        self.assertEqual(denied.actor_id, str(self.other_technician.id))

    def test_repeating_a_transition_does_not_repeat_side_effects(self):
        self.assign()

        with self.assertRaises(IllegalTransition):
            ReportLifecycleService.transition(self.report, self.admin, ReportStatus.ASSIGNED)
        self.assertEqual(self.reload().status_history.count(), 1)

    def test_reject_and_reactivate(self):
        self.assign()
        ReportLifecycleService.transition(self.report, self.admin, ReportStatus.REJECTED, notes='Duplicate')

        report = self.reload()
        self.assertEqual(report.completion_notes, 'Duplicate')
        self.assertTrue(Notification.objects.filter(
            recipient=self.citizen,
            notification_type=NotificationType.REPORT_REJECTED,
        ).exists())

        ReportLifecycleService.transition(self.report, self.admin, ReportStatus.PENDING)

        report = self.reload()
        self.assertEqual(report.status, ReportStatus.PENDING)
        self.assertIsNone(report.completion_notes)
        self.assertIsNone(report.assigned_to_id)

    def test_stale_copy_is_refused(self):
        self.assign()
        stale = Report.objects.get(pk=self.report.pk)

        ReportLifecycleService.transition(self.report, self.technician, ReportStatus.PROGRESS)

        with self.assertRaises(ConcurrentModification):
            ReportLifecycleService.transition(stale, self.admin, ReportStatus.PROGRESS)
        self.assertEqual(self.reload().status_history.count(), 2)

    def test_change_event_carries_changes_and_previous_values(self):
        self.assign()
        events = []
        subscription = feed.subscribe(Report, events.append, events=[ChangeEventType.UPDATE])
        self.addCleanup(subscription.unsubscribe)

        ReportLifecycleService.transition(self.report, self.technician, ReportStatus.PROGRESS)

        self.assertEqual(len(events), 1)
        event = events[0]
        self.assertEqual(event.changes['status'], ReportStatus.PROGRESS)
        self.assertEqual(event.previous['status'], ReportStatus.ASSIGNED)
        self.assertEqual(event.actor, self.technician)

    def test_change_event_waits_for_outer_commit(self):
        self.assign()
        events = []
        subscription = feed.subscribe(Report, events.append, events=[ChangeEventType.UPDATE])
        self.addCleanup(subscription.unsubscribe)

        with transaction.atomic():
            ReportLifecycleService.transition(self.report, self.technician, ReportStatus.PROGRESS)
            self.assertEqual(events, [])

        self.assertEqual(len(events), 1)

    def test_rolled_back_change_is_never_published(self):
        self.assign()
        events = []
        subscription = feed.subscribe(Report, events.append, events=[ChangeEventType.UPDATE])
        self.addCleanup(subscription.unsubscribe)

        with self.assertRaises(RuntimeError):
            with transaction.atomic():
                ReportLifecycleService.transition(self.report, self.technician, ReportStatus.PROGRESS)
                raise RuntimeError("abort")

        self.assertEqual(events, [])
        self.assertEqual(self.reload().status, ReportStatus.ASSIGNED)


class UpdateNotesTests(LifecycleServiceTestCase):

    def test_notes_change_without_status_change(self):
        ReportLifecycleService.update_notes(self.report, self.admin, 'Waiting for parts')

        report = self.reload()
        self.assertEqual(report.completion_notes, 'Waiting for parts')
        self.assertEqual(report.status, ReportStatus.PENDING)
        self.assertTrue(AuditLog.objects.filter(event_type=AuditEventType.REPORT_NOTES_UPDATED).exists())

    def test_blank_notes_are_stored_as_null(self):
        ReportLifecycleService.update_notes(self.report, self.admin, '')
        self.assertIsNone(self.reload().completion_notes)

    def test_stale_copy_is_refused(self):
        stale = Report.objects.get(pk=self.report.pk)
        ReportLifecycleService.update_notes(self.report, self.admin, 'First')

        with self.assertRaises(ConcurrentModification):
            ReportLifecycleService.update_notes(stale, self.admin, 'Second')
        self.assertEqual(self.reload().completion_notes, 'First')
