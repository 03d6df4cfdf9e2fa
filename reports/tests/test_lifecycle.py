"""
Tests for the report lifecycle state machine.

The engine is pure, so these run without a database on plain mappings
and simple objects.
"""

from datetime import datetime, timezone as dt_timezone
from types import SimpleNamespace

from django.test import SimpleTestCase, override_settings

from authentication.models import UserRole
from core.exceptions import (
    IllegalTransition,
    LifecycleError,
    TransitionValidationError,
    Unauthorized,
)
from reports import lifecycle
from reports.models import ReportStatus

ALL_STATUSES = [value for value, _ in ReportStatus.CHOICES]
ALL_ROLES = [value for value, _ in UserRole.CHOICES]
FIXED_NOW = datetime(2024, 5, 1, 9, 30, tzinfo=dt_timezone.utc)


def make_report(status=ReportStatus.PENDING, assigned_to=None, completion_notes=None):
    return {
        'status': status,
        'assigned_to': assigned_to,
        'completion_notes': completion_notes,
    }


class TransitionTableTests(SimpleTestCase):

    def test_completed_only_leads_to_approved(self):
        self.assertEqual(set(lifecycle.TRANSITIONS[ReportStatus.COMPLETED]), {ReportStatus.APPROVED})

    def test_approved_is_terminal(self):
        self.assertNotIn(ReportStatus.APPROVED, lifecycle.TRANSITIONS)

    def test_acting_roles(self):
        self.assertEqual(lifecycle.ACTING_ROLES, {UserRole.ADMIN, UserRole.TECHNICIAN})

    def test_roles_for(self):
        self.assertEqual(
            lifecycle.roles_for(ReportStatus.PROGRESS, ReportStatus.COMPLETED),
            {UserRole.ADMIN, UserRole.TECHNICIAN}
        )
        self.assertEqual(lifecycle.roles_for(ReportStatus.COMPLETED, ReportStatus.APPROVED), {UserRole.ADMIN})
        self.assertEqual(lifecycle.roles_for(ReportStatus.APPROVED, ReportStatus.PENDING), set())

    def test_policy_export(self):
        policy = lifecycle.transition_policy()

        self.assertEqual(policy['statuses'], ALL_STATUSES)
        self.assertEqual(len(policy['transitions']), 9)
        self.assertEqual(policy['acting_roles'], [UserRole.ADMIN, UserRole.TECHNICIAN])
        reject = next(
            t for t in policy['transitions']
            if t['from_status'] == ReportStatus.PENDING and t['to_status'] == ReportStatus.REJECTED
        )
        self.assertTrue(reject['requires_reason'])
        self.assertEqual(reject['allowed_roles'], [UserRole.ADMIN])


class RequestTransitionTests(SimpleTestCase):

    def test_every_pair_outside_the_table_is_refused_without_touching_the_report(self):
        for current in ALL_STATUSES:
            for target in ALL_STATUSES:
                for role in ALL_ROLES:
                    rule = lifecycle.get_rule(current, target)
                    if rule is not None and role in rule.allowed_roles:
                        continue
                    report = make_report(current, assigned_to='tech-1', completion_notes='old')
                    snapshot = dict(report)
                    with self.subTest(current=current, target=target, role=role):
                        with self.assertRaises((IllegalTransition, Unauthorized)):
                            lifecycle.request_transition(
                                report, target, role, 'user-1', notes='because'
                            )
                        self.assertEqual(report, snapshot)

    def test_same_status_is_illegal(self):
        for status in ALL_STATUSES:
            with self.subTest(status=status):
                with self.assertRaises(IllegalTransition):
                    lifecycle.request_transition(
                        make_report(status, assigned_to='tech-1'),
                        status, UserRole.ADMIN, 'admin-1', notes='again'
                    )

    def test_unknown_target_is_illegal(self):
        with self.assertRaises(IllegalTransition):
            lifecycle.request_transition(make_report(), 'archived', UserRole.ADMIN, 'admin-1')

    def test_unreachable_target_is_checked_before_role(self):
        with self.assertRaises(IllegalTransition):
            lifecycle.request_transition(
                make_report(ReportStatus.PENDING), ReportStatus.APPROVED, UserRole.PUBLIC, 'citizen-1'
            )

    def test_role_is_checked_before_missing_data(self):
        with self.assertRaises(Unauthorized):
            lifecycle.request_transition(
                make_report(ReportStatus.PENDING), ReportStatus.REJECTED, UserRole.TECHNICIAN, 'tech-1'
            )

    def test_errors_share_a_base_class(self):
        with self.assertRaises(LifecycleError):
            lifecycle.request_transition(make_report(), ReportStatus.APPROVED, UserRole.ADMIN, 'admin-1')

    def test_pending_to_assigned_writes_only_status_and_assignee(self):
        mutation = lifecycle.request_transition(
            make_report(ReportStatus.PENDING, completion_notes='keep me'),
            ReportStatus.ASSIGNED, UserRole.ADMIN, 'admin-1',
            assignee_id='tech-42', now=FIXED_NOW,
        )

        self.assertEqual(mutation.changes, {
            'status': ReportStatus.ASSIGNED,
            'updated_at': FIXED_NOW,
            'assigned_to': 'tech-42',
        })
        self.assertFalse(mutation.writes('completion_notes'))

    def test_pending_to_assigned_requires_a_technician(self):
        with self.assertRaises(TransitionValidationError):
            lifecycle.request_transition(
                make_report(ReportStatus.PENDING), ReportStatus.ASSIGNED, UserRole.ADMIN, 'admin-1'
            )

    def test_technician_claims_unassigned_pending_report(self):
        mutation = lifecycle.request_transition(
            make_report(ReportStatus.PENDING), ReportStatus.PROGRESS, UserRole.TECHNICIAN, 'tech-9'
        )

        self.assertEqual(mutation.changes['status'], ReportStatus.PROGRESS)
        self.assertEqual(mutation.changes['assigned_to'], 'tech-9')

    def test_starting_pending_report_claims_only_when_unassigned(self):
        mutation = lifecycle.request_transition(
            make_report(ReportStatus.PENDING), ReportStatus.PROGRESS, UserRole.ADMIN, 'admin-1'
        )
        self.assertEqual(mutation.changes['assigned_to'], 'admin-1')

        mutation = lifecycle.request_transition(
            make_report(ReportStatus.PENDING, assigned_to='tech-3'),
            ReportStatus.PROGRESS, UserRole.ADMIN, 'admin-1'
        )
        self.assertFalse(mutation.writes('assigned_to'))

    def test_technician_cannot_take_over_someone_elses_pending_report(self):
        with self.assertRaises(Unauthorized):
            lifecycle.request_transition(
                make_report(ReportStatus.PENDING, assigned_to='tech-3'),
                ReportStatus.PROGRESS, UserRole.TECHNICIAN, 'tech-9'
            )

    def test_non_assignee_technician_is_refused(self):
        for status, target in [
            (ReportStatus.ASSIGNED, ReportStatus.PROGRESS),
            (ReportStatus.PROGRESS, ReportStatus.COMPLETED),
        ]:
            with self.subTest(status=status):
                with self.assertRaises(Unauthorized):
                    lifecycle.request_transition(
                        make_report(status, assigned_to='tech-42'),
                        target, UserRole.TECHNICIAN, 'tech-7'
                    )

    def test_assignee_ids_compare_as_text(self):
        report = make_report(ReportStatus.ASSIGNED, assigned_to=42)
        mutation = lifecycle.request_transition(report, ReportStatus.PROGRESS, UserRole.TECHNICIAN, '42')
        self.assertEqual(mutation.to_status, ReportStatus.PROGRESS)

    def test_completion_notes_are_optional(self):
        report = make_report(ReportStatus.PROGRESS, assigned_to='tech-1')

        without = lifecycle.request_transition(report, ReportStatus.COMPLETED, UserRole.TECHNICIAN, 'tech-1')
        self.assertFalse(without.writes('completion_notes'))

        with_notes = lifecycle.request_transition(
            report, ReportStatus.COMPLETED, UserRole.TECHNICIAN, 'tech-1', notes='  Lamp replaced  '
        )
        self.assertEqual(with_notes.changes['completion_notes'], 'Lamp replaced')

    def test_rejection_needs_a_reason(self):
        for status in [ReportStatus.PENDING, ReportStatus.ASSIGNED, ReportStatus.PROGRESS]:
            with self.subTest(status=status):
                with self.assertRaises(TransitionValidationError):
                    lifecycle.request_transition(
                        make_report(status, assigned_to='tech-1'),
                        ReportStatus.REJECTED, UserRole.ADMIN, 'admin-1', notes='   '
                    )

    def test_rejection_reason_becomes_completion_notes(self):
        mutation = lifecycle.request_transition(
            make_report(ReportStatus.PENDING), ReportStatus.REJECTED, UserRole.ADMIN, 'admin-1',
            notes='Duplicate report'
        )
        self.assertEqual(mutation.changes['completion_notes'], 'Duplicate report')
        self.assertFalse(mutation.writes('assigned_to'))

    @override_settings(FIXITNOW_REQUIRE_REJECTION_REASON=False)
    def test_rejection_reason_can_be_made_optional(self):
        mutation = lifecycle.request_transition(
            make_report(ReportStatus.PENDING), ReportStatus.REJECTED, UserRole.ADMIN, 'admin-1'
        )
        self.assertEqual(mutation.to_status, ReportStatus.REJECTED)
        self.assertFalse(mutation.writes('completion_notes'))

    def test_reactivation_clears_notes_and_assignee(self):
        mutation = lifecycle.request_transition(
            make_report(ReportStatus.REJECTED, assigned_to='tech-1', completion_notes='Duplicate'),
            ReportStatus.PENDING, UserRole.ADMIN, 'admin-1', notes='ignored'
        )

        self.assertEqual(mutation.changes['status'], ReportStatus.PENDING)
        self.assertIsNone(mutation.changes['completion_notes'])
        self.assertIsNone(mutation.changes['assigned_to'])

    def test_approval_is_admin_only(self):
        report = make_report(ReportStatus.COMPLETED, assigned_to='tech-1')

        with self.assertRaises(Unauthorized):
            lifecycle.request_transition(report, ReportStatus.APPROVED, UserRole.TECHNICIAN, 'tech-1')

        mutation = lifecycle.request_transition(report, ReportStatus.APPROVED, UserRole.ADMIN, 'admin-1')
        self.assertEqual(set(mutation.changes), {'status', 'updated_at'})

    def test_report_objects_are_read_not_modified(self):
        report = SimpleNamespace(
            status=ReportStatus.ASSIGNED,
            assigned_to_id='tech-5',
            completion_notes=None,
        )

        mutation = lifecycle.request_transition(report, ReportStatus.PROGRESS, UserRole.TECHNICIAN, 'tech-5')

        self.assertEqual(mutation.from_status, ReportStatus.ASSIGNED)
        self.assertEqual(report.status, ReportStatus.ASSIGNED)


class AssignmentTests(SimpleTestCase):

    def test_assign_then_work_scenario(self):
        report = make_report(ReportStatus.PENDING)

        mutation = lifecycle.assign_technician(report, 'tech-42', UserRole.ADMIN)
        self.assertEqual(mutation.changes['status'], ReportStatus.ASSIGNED)
        self.assertEqual(mutation.changes['assigned_to'], 'tech-42')

        report.update(status=mutation.changes['status'], assigned_to=mutation.changes['assigned_to'])

        started = lifecycle.request_transition(report, ReportStatus.PROGRESS, UserRole.TECHNICIAN, 'tech-42')
        self.assertEqual(started.changes['status'], ReportStatus.PROGRESS)

        with self.assertRaises(Unauthorized):
            lifecycle.request_transition(report, ReportStatus.PROGRESS, UserRole.TECHNICIAN, 'tech-7')

    def test_assign_only_from_pending(self):
        with self.assertRaises(IllegalTransition):
            lifecycle.assign_technician(make_report(ReportStatus.PROGRESS), 'tech-1', UserRole.ADMIN)

    def test_assign_is_admin_only(self):
        with self.assertRaises(Unauthorized):
            lifecycle.assign_technician(make_report(), 'tech-1', UserRole.GOVERNMENT)

    def test_assign_without_technician(self):
        with self.assertRaises(TransitionValidationError):
            lifecycle.assign_technician(make_report(), None, UserRole.ADMIN)

    def test_unassign_returns_report_to_pending(self):
        mutation = lifecycle.unassign_technician(
            make_report(ReportStatus.ASSIGNED, assigned_to='tech-1'), UserRole.ADMIN, now=FIXED_NOW
        )

        self.assertEqual(mutation.as_dict(), {
            'status': ReportStatus.PENDING,
            'updated_at': FIXED_NOW,
            'assigned_to': None,
        })
        self.assertEqual(mutation.updated_at, FIXED_NOW)

    def test_unassign_refused_once_work_started(self):
        with self.assertRaises(IllegalTransition):
            lifecycle.unassign_technician(
                make_report(ReportStatus.PROGRESS, assigned_to='tech-1'), UserRole.ADMIN
            )

    def test_unassign_without_technician_is_illegal(self):
        with self.assertRaises(IllegalTransition):
            lifecycle.unassign_technician(make_report(ReportStatus.PENDING), UserRole.ADMIN)

    def test_unassign_pending_report_that_still_has_technician(self):
        mutation = lifecycle.unassign_technician(
            make_report(ReportStatus.PENDING, assigned_to='tech-1'), UserRole.ADMIN, now=FIXED_NOW
        )
        self.assertEqual(mutation.changes['assigned_to'], None)

    def test_unassign_is_admin_only(self):
        with self.assertRaises(Unauthorized):
            lifecycle.unassign_technician(
                make_report(ReportStatus.ASSIGNED, assigned_to='tech-1'), UserRole.TECHNICIAN
            )


class AllowedTargetsTests(SimpleTestCase):

    def test_admin_on_pending(self):
        self.assertEqual(
            set(lifecycle.allowed_targets(make_report(), UserRole.ADMIN)),
            {ReportStatus.ASSIGNED, ReportStatus.PROGRESS, ReportStatus.REJECTED}
        )

    def test_non_acting_roles_get_nothing(self):
        for role in [UserRole.GOVERNMENT, UserRole.PUBLIC]:
            for status in ALL_STATUSES:
                with self.subTest(role=role, status=status):
                    self.assertEqual(lifecycle.allowed_targets(make_report(status), role), [])

    def test_assignee_check_needs_the_actor(self):
        report = make_report(ReportStatus.ASSIGNED, assigned_to='tech-42')

        self.assertEqual(lifecycle.allowed_targets(report, UserRole.TECHNICIAN), [ReportStatus.PROGRESS])
        self.assertEqual(lifecycle.allowed_targets(report, UserRole.TECHNICIAN, 'tech-42'), [ReportStatus.PROGRESS])
        self.assertEqual(lifecycle.allowed_targets(report, UserRole.TECHNICIAN, 'tech-7'), [])

    def test_listed_targets_are_accepted(self):
        report = make_report(ReportStatus.PROGRESS, assigned_to='tech-1')
        for target in lifecycle.allowed_targets(report, UserRole.ADMIN, 'admin-1'):
            with self.subTest(target=target):
                mutation = lifecycle.request_transition(
                    report, target, UserRole.ADMIN, 'admin-1', notes='reason'
                )
                self.assertEqual(mutation.to_status, target)
