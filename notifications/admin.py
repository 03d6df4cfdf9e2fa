"""
Admin configuration for notifications.

Read-only: notifications are only created by NotificationService.
"""

from django.contrib import admin

from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ['title', 'recipient', 'notification_type', 'report', 'is_read', 'created_at']
    list_filter = ['notification_type', 'is_read', 'created_at']
    search_fields = ['id', 'recipient__email', 'title', 'message', 'report__id']
    ordering = ['-created_at']
    date_hierarchy = 'created_at'

    readonly_fields = [
        'id', 'recipient', 'title', 'message', 'notification_type',
        'report', 'is_read', 'read_at', 'created_at', 'updated_at',
    ]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
