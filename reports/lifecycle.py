"""
Report lifecycle state machine.

The single place that knows which status may follow which, who may move
a report there, and what else changes when it does:

    pending   -> assigned   admin                    assigned_to := chosen technician
    pending   -> progress   admin, technician        assigned_to := actor if unset
    pending   -> rejected   admin                    completion_notes := reason
    assigned  -> progress   admin, technician*
    assigned  -> rejected   admin                    completion_notes := reason
    progress  -> completed  admin, technician*       completion_notes := optional notes
    progress  -> rejected   admin                    completion_notes := reason
    completed -> approved   admin
    rejected  -> pending    admin                    completion_notes and assigned_to cleared

    * technicians only on reports assigned to them

Everything here is pure: functions read a report snapshot (a model
instance or a mapping with status / assigned_to / completion_notes) and
return a ReportMutation describing the field writes. Persistence lives in
reports.services; views and permissions ask this module instead of
keeping their own lists.

Checks run in a fixed order:
1. target reachable from current status      -> IllegalTransition
2. acting role allowed for the transition    -> Unauthorized
3. actor is the assignee where required      -> Unauthorized
4. data the transition needs is present      -> TransitionValidationError
"""

from collections.abc import Mapping

from django.conf import settings
from django.utils import timezone

from authentication.models import UserRole
from core.exceptions import IllegalTransition, TransitionValidationError, Unauthorized
from reports.models import ReportStatus


# What a transition does with completion_notes
NOTES_IGNORED = 'ignored'
NOTES_OPTIONAL = 'optional'
NOTES_REASON = 'reason'
NOTES_CLEARED = 'cleared'


class TransitionRule:
    def __init__(
        self,
        from_status,
        to_status,
        allowed_roles,
        assignee_roles=None,
        takes_assignee=False,
        claims_assignment=False,
        clears_assignment=False,
        notes=NOTES_IGNORED,
        description='',
    ):
        self.from_status = from_status
        self.to_status = to_status
        self.allowed_roles = frozenset(allowed_roles)
        # Roles that may only act on reports assigned to them
        self.assignee_roles = frozenset(assignee_roles or ())
        self.takes_assignee = takes_assignee
        self.claims_assignment = claims_assignment
        self.clears_assignment = clears_assignment
        self.notes = notes
        self.description = description

    def as_dict(self):
        return {
            'from_status': self.from_status,
            'to_status': self.to_status,
            'allowed_roles': sorted(self.allowed_roles),
            'assignee_only_roles': sorted(self.assignee_roles),
            'requires_assignee': self.takes_assignee,
            'requires_reason': self.notes == NOTES_REASON and _rejection_reason_required(),
            'notes': self.notes,
            'description': self.description,
        }

    def __repr__(self):
        return f"<TransitionRule {self.from_status}->{self.to_status}>"


_RULES = [
    TransitionRule(
        ReportStatus.PENDING, ReportStatus.ASSIGNED,
        allowed_roles={UserRole.ADMIN},
        takes_assignee=True,
        description="Assign the report to a technician",
    ),
    TransitionRule(
        ReportStatus.PENDING, ReportStatus.PROGRESS,
        allowed_roles={UserRole.ADMIN, UserRole.TECHNICIAN},
        assignee_roles={UserRole.TECHNICIAN},
        claims_assignment=True,
        description="Confirm the report and start work",
    ),
    TransitionRule(
        ReportStatus.PENDING, ReportStatus.REJECTED,
        allowed_roles={UserRole.ADMIN},
        notes=NOTES_REASON,
        description="Reject the report",
    ),
    TransitionRule(
        ReportStatus.ASSIGNED, ReportStatus.PROGRESS,
        allowed_roles={UserRole.ADMIN, UserRole.TECHNICIAN},
        assignee_roles={UserRole.TECHNICIAN},
        description="Start work on the assigned report",
    ),
    TransitionRule(
        ReportStatus.ASSIGNED, ReportStatus.REJECTED,
        allowed_roles={UserRole.ADMIN},
        notes=NOTES_REASON,
        description="Reject the report",
    ),
    TransitionRule(
        ReportStatus.PROGRESS, ReportStatus.COMPLETED,
        allowed_roles={UserRole.ADMIN, UserRole.TECHNICIAN},
        assignee_roles={UserRole.TECHNICIAN},
        notes=NOTES_OPTIONAL,
        description="Mark the repair as finished",
    ),
    TransitionRule(
        ReportStatus.PROGRESS, ReportStatus.REJECTED,
        allowed_roles={UserRole.ADMIN},
        notes=NOTES_REASON,
        description="Reject the report",
    ),
    TransitionRule(
        ReportStatus.COMPLETED, ReportStatus.APPROVED,
        allowed_roles={UserRole.ADMIN},
        description="Approve the finished repair",
    ),
    TransitionRule(
        ReportStatus.REJECTED, ReportStatus.PENDING,
        allowed_roles={UserRole.ADMIN},
        clears_assignment=True,
        notes=NOTES_CLEARED,
        description="Reactivate a rejected report",
    ),
]

TRANSITIONS = {}
for _rule in _RULES:
    TRANSITIONS.setdefault(_rule.from_status, {})[_rule.to_status] = _rule
del _rule

# Every role that can move a report at all
ACTING_ROLES = frozenset(role for rule in _RULES for role in rule.allowed_roles)

# Statuses from which an admin may detach the technician
UNASSIGNABLE_STATUSES = (ReportStatus.ASSIGNED, ReportStatus.PENDING)


class ReportMutation:
    """
    Field writes produced by a lifecycle decision.

    changes always holds 'status' and 'updated_at'; 'assigned_to' and
    'completion_notes' appear only when the transition writes them (a None
    value means the field is cleared).
    """

    def __init__(self, from_status, to_status, changes):
        self.from_status = from_status
        self.to_status = to_status
        self.changes = changes

    @property
    def updated_at(self):
        return self.changes['updated_at']

    def writes(self, field):
        return field in self.changes

    def as_dict(self):
        return dict(self.changes)

    def __repr__(self):
        return f"<ReportMutation {self.from_status}->{self.to_status} {sorted(self.changes)}>"


def get_rule(from_status, to_status):
    return TRANSITIONS.get(from_status, {}).get(to_status)


def roles_for(from_status, to_status):
    """Roles allowed to make a transition; empty when it does not exist."""
    rule = get_rule(from_status, to_status)
    return set(rule.allowed_roles) if rule else set()


def allowed_targets(report, acting_role, acting_user_id=None):
    """
    Statuses this actor could move the report to right now.

    Assignee checks are applied only when acting_user_id is given.
    Transitions that need extra data (assignee, reason) are still listed.
    """
    current = _read(report, 'status')
    assigned_to = _assignee_of(report)
    targets = []
    for target, rule in TRANSITIONS.get(current, {}).items():
        if acting_role not in rule.allowed_roles:
            continue
        if acting_user_id is not None and not _actor_may_act(rule, acting_role, acting_user_id, assigned_to):
            continue
        targets.append(target)
    return targets


def transition_policy():
    """Machine-readable export of the transition table."""
    return {
        'statuses': [value for value, _ in ReportStatus.CHOICES],
        'transitions': [rule.as_dict() for rule in _RULES],
        'acting_roles': sorted(ACTING_ROLES),
        'unassign_from': list(UNASSIGNABLE_STATUSES),
    }


def request_transition(report, target_status, acting_role, acting_user_id,
                       notes=None, assignee_id=None, now=None):
    """
    Decide whether the actor may move the report to target_status.

    Returns a ReportMutation or raises IllegalTransition, Unauthorized or
    TransitionValidationError. The report itself is never modified.
    """
    current = _read(report, 'status')
    rule = get_rule(current, target_status)
    if rule is None:
        raise IllegalTransition(
            f"Cannot move a report from '{current}' to '{target_status}'."
        )

    if acting_role not in rule.allowed_roles:
        raise Unauthorized(
            f"Role '{acting_role}' may not move a report from '{current}' to '{target_status}'."
        )

    assigned_to = _assignee_of(report)
    if not _actor_may_act(rule, acting_role, acting_user_id, assigned_to):
        raise Unauthorized("Only the assigned technician can work on this report.")

    changes = {
        'status': target_status,
        'updated_at': now or timezone.now(),
    }

    if rule.takes_assignee:
        if not assignee_id:
            raise TransitionValidationError("A technician must be chosen to assign the report.")
        changes['assigned_to'] = assignee_id
    elif rule.claims_assignment and assigned_to is None:
        changes['assigned_to'] = acting_user_id
    elif rule.clears_assignment:
        changes['assigned_to'] = None

    notes = notes.strip() if isinstance(notes, str) else notes
    if rule.notes == NOTES_REASON:
        if not notes and _rejection_reason_required():
            raise TransitionValidationError("A reason is required to reject a report.")
        if notes:
            changes['completion_notes'] = notes
    elif rule.notes == NOTES_OPTIONAL:
        if notes:
            changes['completion_notes'] = notes
    elif rule.notes == NOTES_CLEARED:
        changes['completion_notes'] = None

    return ReportMutation(current, target_status, changes)


def assign_technician(report, technician_id, acting_role, now=None):
    """Attach a technician to a pending report: pending -> assigned."""
    current = _read(report, 'status')
    if current != ReportStatus.PENDING:
        raise IllegalTransition(
            f"Only pending reports can be assigned (report is '{current}')."
        )
    return request_transition(
        report,
        ReportStatus.ASSIGNED,
        acting_role,
        acting_user_id=None,
        assignee_id=technician_id,
        now=now,
    )


def unassign_technician(report, acting_role, now=None):
    """Detach the technician and return the report to pending."""
    current = _read(report, 'status')
    if current not in UNASSIGNABLE_STATUSES:
        raise IllegalTransition(
            f"Reports in '{current}' cannot be unassigned."
        )
    if current == ReportStatus.PENDING and _assignee_of(report) is None:
        raise IllegalTransition("This report has no technician to unassign.")
    if acting_role != UserRole.ADMIN:
        raise Unauthorized("Only administrators can unassign a technician.")

    return ReportMutation(
        current,
        ReportStatus.PENDING,
        {
            'status': ReportStatus.PENDING,
            'updated_at': now or timezone.now(),
            'assigned_to': None,
        },
    )


def _actor_may_act(rule, acting_role, acting_user_id, assigned_to):
    if acting_role not in rule.assignee_roles:
        return True
    actor = _as_key(acting_user_id)
    if rule.claims_assignment and assigned_to is None:
        return actor is not None
    return actor is not None and actor == assigned_to


def _rejection_reason_required():
    return getattr(settings, 'FIXITNOW_REQUIRE_REJECTION_REASON', True)


def _read(report, field):
    if isinstance(report, Mapping):
        return report.get(field)
    return getattr(report, field, None)


def _assignee_of(report):
    if isinstance(report, Mapping):
        value = report.get('assigned_to')
    elif hasattr(report, 'assigned_to_id'):
        value = report.assigned_to_id
    else:
        value = getattr(report, 'assigned_to', None)
    return _as_key(getattr(value, 'pk', value))


def _as_key(value):
    if value is None or value == '':
        return None
    return str(value)
