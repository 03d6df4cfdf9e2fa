"""
Report models for Fix It Now Backend.

Contains:
- Report: a citizen's damage report moving through the repair lifecycle
- ReportStatusHistory: one row per applied lifecycle transition

Reports are never physically deleted. Status, assignment and completion
notes are only ever written by reports.services.ReportLifecycleService.
"""

from django.db import models
from django.db.models import Q

from authentication.models import UserRole
from core.models import BaseModel


class ReportStatus:
    """Report lifecycle status constants."""
    PENDING = 'pending'
    ASSIGNED = 'assigned'
    PROGRESS = 'progress'
    COMPLETED = 'completed'
    APPROVED = 'approved'
    REJECTED = 'rejected'

    CHOICES = [
        (PENDING, 'Pending'),
        (ASSIGNED, 'Assigned'),
        (PROGRESS, 'In Progress'),
        (COMPLETED, 'Completed'),
        (APPROVED, 'Approved'),
        (REJECTED, 'Rejected'),
    ]

    # Work has been done on the report
    DONE = [COMPLETED, APPROVED]

    # A technician is expected to be attached
    STAFFED = [ASSIGNED, PROGRESS, COMPLETED, APPROVED]


class ReportPriority:
    """Report priority levels."""
    LOW = 'low'
    MEDIUM = 'medium'
    HIGH = 'high'

    CHOICES = [
        (LOW, 'Low'),
        (MEDIUM, 'Medium'),
        (HIGH, 'High'),
    ]


class ReportCategory:
    """Kinds of public facility damage."""
    ROAD = 'road'
    STREETLIGHT = 'streetlight'
    DRAINAGE = 'drainage'
    PARK = 'park'
    BRIDGE = 'bridge'
    PUBLIC_FACILITY = 'public_facility'
    OTHER = 'other'

    CHOICES = [
        (ROAD, 'Damaged Road'),
        (STREETLIGHT, 'Street Light'),
        (DRAINAGE, 'Drainage'),
        (PARK, 'Park'),
        (BRIDGE, 'Bridge'),
        (PUBLIC_FACILITY, 'Public Facility'),
        (OTHER, 'Other'),
    ]


class Report(BaseModel):
    """
    Damage report submitted by a citizen.

    assigned_to is set once the report reaches 'assigned' (or is claimed
    straight into 'progress') and cleared when a rejected report is
    reactivated.
    """

    title = models.CharField(
        max_length=200,
        help_text="Short summary of the damage"
    )

    description = models.TextField(
        help_text="Detailed description of the damage"
    )

    location = models.CharField(
        max_length=255,
        help_text="Where the damage is (free text)"
    )

    category = models.CharField(
        max_length=30,
        choices=ReportCategory.CHOICES,
        default=ReportCategory.OTHER,
        db_index=True
    )

    priority = models.CharField(
        max_length=20,
        choices=ReportPriority.CHOICES,
        default=ReportPriority.MEDIUM,
        db_index=True
    )

    status = models.CharField(
        max_length=20,
        choices=ReportStatus.CHOICES,
        default=ReportStatus.PENDING,
        db_index=True
    )

    reporter = models.ForeignKey(
        'authentication.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='submitted_reports',
        help_text="Account that submitted the report, when logged in"
    )

    reporter_email = models.EmailField(
        max_length=255,
        db_index=True,
        help_text="Contact email of the reporter"
    )

    reporter_phone = models.CharField(
        max_length=20,
        blank=True,
        help_text="Optional contact phone number"
    )

    assigned_to = models.ForeignKey(
        'authentication.User',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='assigned_reports',
        help_text="Technician responsible for the repair"
    )

    completion_notes = models.TextField(
        null=True,
        blank=True,
        help_text="Completion summary or rejection reason"
    )

    image_url = models.URLField(
        max_length=500,
        blank=True,
        help_text="Optional photo of the damage"
    )

    class Meta:
        db_table = 'reports'
        verbose_name = 'Report'
        verbose_name_plural = 'Reports'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'priority'], name='reports_status_prio_idx'),
            models.Index(fields=['assigned_to', 'status'], name='reports_assignee_status_idx'),
            models.Index(fields=['category', 'created_at'], name='reports_category_created_idx'),
        ]

    def __str__(self):
        return f"{self.title} ({self.status})"


class ReportStatusHistory(BaseModel):
    """
    Track all status changes for a report.
    Provides complete audit trail of report lifecycle.
    """

    report = models.ForeignKey(
        Report,
        on_delete=models.CASCADE,
        related_name='status_history'
    )

    from_status = models.CharField(
        max_length=20,
        choices=ReportStatus.CHOICES,
        blank=True,
        help_text="Previous status"
    )

    to_status = models.CharField(
        max_length=20,
        choices=ReportStatus.CHOICES,
        help_text="New status"
    )

    changed_by = models.ForeignKey(
        'authentication.User',
        on_delete=models.PROTECT,
        related_name='report_status_changes',
        help_text="User who changed the status"
    )

    assigned_to = models.ForeignKey(
        'authentication.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        help_text="Assignee after the change"
    )

    reason = models.TextField(
        blank=True,
        help_text="Notes or reason given with the change"
    )

    class Meta:
        db_table = 'report_status_history'
        verbose_name = 'Report Status History'
        verbose_name_plural = 'Report Status Histories'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.report_id}: {self.from_status} -> {self.to_status}"


def visible_reports_for_user(user):
    """Reports a user may list or open."""
    qs = Report.objects.all()
    role = getattr(user, 'role', None)
    if role in UserRole.OVERSIGHT_ROLES:
        return qs
    if role == UserRole.TECHNICIAN:
        return qs.filter(assigned_to=user)
    if getattr(user, 'is_authenticated', False):
        return qs.filter(Q(reporter=user) | Q(reporter_email__iexact=user.email))
    return Report.objects.none()
