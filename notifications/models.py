"""
Notification models for Fix It Now Backend.

Provides:
- Notification model for in-app alerts about reports
- Read tracking
- Report linking

Notifications are soft deleted only and ordered newest first.
"""

from django.db import models
from django.utils import timezone

from core.models import BaseModel


class NotificationType:
    """Notification type constants."""
    REPORT_CREATED = 'report_created'
    REPORT_ASSIGNED = 'report_assigned'
    REPORT_UNASSIGNED = 'report_unassigned'
    STATUS_CHANGED = 'status_changed'
    REPORT_APPROVED = 'report_approved'
    REPORT_REJECTED = 'report_rejected'
    GENERAL = 'general'

    CHOICES = [
        (REPORT_CREATED, 'New Report'),
        (REPORT_ASSIGNED, 'Report Assigned'),
        (REPORT_UNASSIGNED, 'Report Unassigned'),
        (STATUS_CHANGED, 'Status Changed'),
        (REPORT_APPROVED, 'Report Approved'),
        (REPORT_REJECTED, 'Report Rejected'),
        (GENERAL, 'General'),
    ]


class Notification(BaseModel):
    """
    Notification for one user.

    Linked to the report it is about when there is one.
    """

    recipient = models.ForeignKey(
        'authentication.User',
        on_delete=models.CASCADE,
        related_name='notifications',
        help_text="User who receives this notification"
    )

    title = models.CharField(
        max_length=200,
        help_text="Short notification title"
    )

    message = models.TextField(
        help_text="Notification message body"
    )

    notification_type = models.CharField(
        max_length=30,
        choices=NotificationType.CHOICES,
        default=NotificationType.GENERAL,
        db_index=True,
        help_text="Type of notification"
    )

    report = models.ForeignKey(
        'reports.Report',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='notifications',
        help_text="Related report (if applicable)"
    )

    is_read = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether the notification has been read"
    )

    read_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the notification was read"
    )

    class Meta:
        db_table = 'notifications'
        verbose_name = 'Notification'
        verbose_name_plural = 'Notifications'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['recipient', 'is_read', '-created_at'], name='notif_recipient_read_idx'),
            models.Index(fields=['notification_type', '-created_at'], name='notif_type_created_idx'),
        ]

    def __str__(self):
        return f"[{self.recipient.email}] {self.title}"

    def mark_as_read(self):
        if not self.is_read:
            self.is_read = True
            self.read_at = timezone.now()
            self.save(update_fields=['is_read', 'read_at', 'updated_at'])
