"""
Serializers for notifications.
"""

from rest_framework import serializers

from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    notification_type_display = serializers.CharField(
        source='get_notification_type_display',
        read_only=True
    )
    report_id = serializers.SerializerMethodField()

    class Meta:
        model = Notification
        fields = [
            'id',
            'title',
            'message',
            'notification_type',
            'notification_type_display',
            'report_id',
            'is_read',
            'read_at',
            'created_at',
        ]
        read_only_fields = fields

    def get_report_id(self, obj):
        return str(obj.report_id) if obj.report_id else None


class NotificationListSerializer(NotificationSerializer):
    """Lightweight serializer for notification list."""

    class Meta(NotificationSerializer.Meta):
        fields = [
            'id',
            'title',
            'notification_type',
            'notification_type_display',
            'report_id',
            'is_read',
            'created_at',
        ]
        read_only_fields = fields
