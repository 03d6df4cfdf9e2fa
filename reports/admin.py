"""
Admin configuration for reports models.

Lifecycle fields are read-only here; status changes made from the admin
go through ReportLifecycleService like every other caller.
"""

from django.contrib import admin
from django.contrib import messages
from django.utils.html import format_html

from .models import Report, ReportStatus, ReportStatusHistory
from .services import ReportLifecycleService
from core.exceptions import LifecycleError


class ReportStatusHistoryInline(admin.TabularInline):
    model = ReportStatusHistory
    fk_name = 'report'
    extra = 0
    can_delete = False
    fields = ['from_status', 'to_status', 'changed_by', 'assigned_to', 'reason', 'created_at']
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Report)
class ReportAdmin(admin.ModelAdmin):
    list_display = [
        'title',
        'category',
        'priority',
        'status_badge',
        'assigned_to',
        'reporter_email',
        'created_at',
    ]
    list_filter = ['status', 'category', 'priority', 'created_at']
    search_fields = ['id', 'title', 'description', 'location', 'reporter_email']
    ordering = ['-created_at']
    date_hierarchy = 'created_at'
    inlines = [ReportStatusHistoryInline]

    readonly_fields = [
        'id', 'status', 'assigned_to', 'completion_notes',
        'reporter', 'created_at', 'updated_at',
    ]

    fieldsets = (
        ('Report', {
            'fields': ('id', 'title', 'description', 'location', 'category', 'priority', 'image_url'),
        }),
        ('Reporter', {
            'fields': ('reporter', 'reporter_email', 'reporter_phone'),
        }),
        ('Lifecycle', {
            'fields': ('status', 'assigned_to', 'completion_notes'),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    actions = ['approve_completed_reports']

    def status_badge(self, obj):
        colors = {
            ReportStatus.PENDING: '#f39c12',
            ReportStatus.ASSIGNED: '#3498db',
            ReportStatus.PROGRESS: '#9b59b6',
            ReportStatus.COMPLETED: '#27ae60',
            ReportStatus.APPROVED: '#16a085',
            ReportStatus.REJECTED: '#e74c3c',
        }
        color = colors.get(obj.status, '#95a5a6')
        return format_html(
            '<span style="background-color: {}; color: white; padding: 3px 8px; '
            'border-radius: 3px; font-size: 11px;">{}</span>',
            color, obj.get_status_display()
        )
    status_badge.short_description = 'Status'
    status_badge.admin_order_field = 'status'

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.action(description="Approve selected completed reports")
    def approve_completed_reports(self, request, queryset):
        approved = 0
        skipped = 0

        for report in queryset:
            try:
                ReportLifecycleService.transition(
                    report, request.user, ReportStatus.APPROVED, request=request
                )
                approved += 1
            except LifecycleError:
                skipped += 1

        if approved:
            messages.success(request, f"Approved {approved} report(s).")
        if skipped:
            messages.warning(request, f"Skipped {skipped} report(s) that could not be approved.")


@admin.register(ReportStatusHistory)
class ReportStatusHistoryAdmin(admin.ModelAdmin):
    list_display = ['report', 'from_status', 'to_status', 'changed_by', 'created_at']
    list_filter = ['to_status', 'created_at']
    search_fields = ['report__id', 'report__title', 'reason']
    readonly_fields = ['id', 'report', 'from_status', 'to_status', 'changed_by',
                       'assigned_to', 'reason', 'created_at', 'updated_at']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
