"""
Audit models for Fix It Now Backend.

Append-only audit trail of who did what to which record:
- Authentication events (login, logout, registration)
- User management (creation, role changes, suspension)
- Report lifecycle (creation, assignment, status changes, refused transitions)
- Facility and review events

Records are never updated or deleted.
"""

import uuid
from django.db import models
from django.utils import timezone


class AuditEventType:
    """
    Audit event type constants.
    Categorized by module for easier filtering.
    """

    # Authentication events
    AUTH_LOGIN_SUCCESS = 'auth.login.success'
    AUTH_LOGIN_FAILED = 'auth.login.failed'
    AUTH_LOGOUT = 'auth.logout'
    AUTH_REGISTERED = 'auth.registered'
    AUTH_TOKEN_REJECTED = 'auth.token.rejected'

    # User management events
    USER_CREATED = 'user.created'
    USER_UPDATED = 'user.updated'
    USER_ROLE_CHANGED = 'user.role.changed'
    USER_SUSPENDED = 'user.suspended'
    USER_RESTORED = 'user.restored'

    # Report events
    REPORT_CREATED = 'report.created'
    REPORT_VIEWED = 'report.viewed'
    REPORT_ASSIGNED = 'report.assigned'
    REPORT_UNASSIGNED = 'report.unassigned'
    REPORT_STATUS_CHANGED = 'report.status.changed'
    REPORT_TRANSITION_DENIED = 'report.transition.denied'
    REPORT_NOTES_UPDATED = 'report.notes.updated'

    # Facility events
    FACILITY_CREATED = 'facility.created'
    FACILITY_UPDATED = 'facility.updated'
    REVIEW_CREATED = 'review.created'
    REVIEW_DELETED = 'review.deleted'

    # System events
    SYSTEM_ERROR = 'system.error'
    SYSTEM_SECURITY_ALERT = 'system.security.alert'

    CHOICES = [
        # Authentication
        (AUTH_LOGIN_SUCCESS, 'Login Success'),
        (AUTH_LOGIN_FAILED, 'Login Failed'),
        (AUTH_LOGOUT, 'Logout'),
        (AUTH_REGISTERED, 'Registered'),
        (AUTH_TOKEN_REJECTED, 'Token Rejected'),

        # User Management
        (USER_CREATED, 'User Created'),
        (USER_UPDATED, 'User Updated'),
        (USER_ROLE_CHANGED, 'User Role Changed'),
        (USER_SUSPENDED, 'User Suspended'),
        (USER_RESTORED, 'User Restored'),

        # Reports
        (REPORT_CREATED, 'Report Created'),
        (REPORT_VIEWED, 'Report Viewed'),
        (REPORT_ASSIGNED, 'Report Assigned'),
        (REPORT_UNASSIGNED, 'Report Unassigned'),
        (REPORT_STATUS_CHANGED, 'Report Status Changed'),
        (REPORT_TRANSITION_DENIED, 'Report Transition Denied'),
        (REPORT_NOTES_UPDATED, 'Report Notes Updated'),

        # Facilities
        (FACILITY_CREATED, 'Facility Created'),
        (FACILITY_UPDATED, 'Facility Updated'),
        (REVIEW_CREATED, 'Review Created'),
        (REVIEW_DELETED, 'Review Deleted'),

        # System
        (SYSTEM_ERROR, 'System Error'),
        (SYSTEM_SECURITY_ALERT, 'Security Alert'),
    ]


class AuditSeverity:
    """Severity levels for audit events."""
    DEBUG = 'debug'
    INFO = 'info'
    WARNING = 'warning'
    ERROR = 'error'
    CRITICAL = 'critical'

    CHOICES = [
        (DEBUG, 'Debug'),
        (INFO, 'Info'),
        (WARNING, 'Warning'),
        (ERROR, 'Error'),
        (CRITICAL, 'Critical'),
    ]


class AuditLogQuerySet(models.QuerySet):
    """Queryset that refuses bulk modification."""

    def update(self, **kwargs):
        raise PermissionError("Audit logs are immutable and cannot be updated.")

    def delete(self):
        raise PermissionError("Audit logs are immutable and cannot be deleted.")


class AuditLog(models.Model):
    """
    Immutable audit log for all sensitive actions.

    Actor and target are stored as plain strings rather than foreign keys
    so entries survive whatever happens to the referenced rows.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False
    )

    event_type = models.CharField(
        max_length=50,
        choices=AuditEventType.CHOICES,
        db_index=True,
        help_text="Type of event being logged"
    )

    severity = models.CharField(
        max_length=10,
        choices=AuditSeverity.CHOICES,
        default=AuditSeverity.INFO,
        db_index=True,
        help_text="Severity level of the event"
    )

    timestamp = models.DateTimeField(
        default=timezone.now,
        db_index=True,
        help_text="When the event occurred"
    )

    # Who performed the action
    actor_id = models.CharField(
        max_length=36,
        blank=True,
        db_index=True,
        help_text="UUID of user who performed action"
    )

    actor_role = models.CharField(
        max_length=20,
        blank=True,
        help_text="Role of actor at time of action"
    )

    actor_email = models.CharField(
        max_length=255,
        blank=True,
        help_text="Email of actor at time of action"
    )

    # What was acted upon
    target_type = models.CharField(
        max_length=50,
        blank=True,
        help_text="Type of entity being acted upon"
    )

    target_id = models.CharField(
        max_length=36,
        blank=True,
        db_index=True,
        help_text="UUID of target entity"
    )

    # Request context
    ip_address = models.GenericIPAddressField(
        null=True,
        blank=True,
        help_text="Client IP address"
    )

    user_agent = models.CharField(
        max_length=500,
        blank=True,
        help_text="Client user agent string"
    )

    request_method = models.CharField(
        max_length=10,
        blank=True,
        help_text="HTTP method"
    )

    request_path = models.CharField(
        max_length=500,
        blank=True,
        help_text="API endpoint path"
    )

    description = models.TextField(
        blank=True,
        help_text="Human-readable description of event"
    )

    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Additional structured data about the event"
    )

    success = models.BooleanField(
        default=True,
        help_text="Whether the action was successful"
    )

    error_message = models.TextField(
        blank=True,
        help_text="Error message if action failed"
    )

    objects = AuditLogQuerySet.as_manager()

    class Meta:
        db_table = 'audit_logs'
        verbose_name = 'Audit Log'
        verbose_name_plural = 'Audit Logs'
        ordering = ['-timestamp']
        indexes = [
            models.Index(fields=['event_type', 'timestamp'], name='audit_event_ts_idx'),
            models.Index(fields=['actor_id', 'timestamp'], name='audit_actor_ts_idx'),
            models.Index(fields=['target_id', 'timestamp'], name='audit_target_ts_idx'),
            models.Index(fields=['severity', 'timestamp'], name='audit_severity_ts_idx'),
        ]

    def __str__(self):
        return f"{self.timestamp} | {self.event_type} | {self.actor_email or 'system'}"

    def save(self, *args, **kwargs):
        """Append-only: existing rows cannot be saved again."""
        if not self._state.adding:
            raise PermissionError("Audit logs are immutable and cannot be updated.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise PermissionError("Audit logs are immutable and cannot be deleted.")

    @classmethod
    def log(cls, event_type, actor=None, target=None, request=None,
            success=True, description='', metadata=None, severity=None,
            error_message=''):
        """
        Create an audit log entry.

        Args:
            event_type: One of AuditEventType constants
            actor: User performing the action (or None for system)
            target: Object being acted upon (optional)
            request: Django request object for context
            success: Whether action succeeded
            description: Human-readable description
            metadata: Additional structured data
            severity: Severity level (auto-determined if not provided)
            error_message: Failure detail when success is False
        """
        if severity is None:
            if not success:
                severity = AuditSeverity.WARNING if 'denied' in event_type or 'failed' in event_type else AuditSeverity.ERROR
            elif 'role' in event_type or 'suspended' in event_type:
                severity = AuditSeverity.WARNING
            else:
                severity = AuditSeverity.INFO

        actor_id = ''
        actor_role = ''
        actor_email = ''

        if actor is not None and getattr(actor, 'is_authenticated', False):
            actor_id = str(actor.id)
            actor_role = actor.role
            actor_email = actor.email

        target_type = ''
        target_id = ''

        if target is not None:
            target_type = target.__class__.__name__
            target_id = str(target.pk)

        ip_address = None
        user_agent = ''
        request_method = ''
        request_path = ''

        if request is not None:
            ip_address = cls._get_client_ip(request)
            user_agent = request.META.get('HTTP_USER_AGENT', '')[:500]
            request_method = request.method or ''
            request_path = request.path[:500]

        return cls.objects.create(
            event_type=event_type,
            severity=severity,
            actor_id=actor_id,
            actor_role=actor_role,
            actor_email=actor_email,
            target_type=target_type,
            target_id=target_id,
            ip_address=ip_address,
            user_agent=user_agent,
            request_method=request_method,
            request_path=request_path,
            description=description,
            metadata=metadata or {},
            success=success,
            error_message=error_message,
        )

    @staticmethod
    def _get_client_ip(request):
        """Extract client IP from request, handling proxies."""
        x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
        if x_forwarded_for:
            return x_forwarded_for.split(',')[0].strip()
        return request.META.get('REMOTE_ADDR')
