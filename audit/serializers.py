"""
Audit Serializers - read-only views of audit log entries.
"""

from rest_framework import serializers

from .models import AuditLog


class AuditLogSerializer(serializers.ModelSerializer):
    """Full audit log entry."""

    event_type_display = serializers.CharField(source='get_event_type_display', read_only=True)

    class Meta:
        model = AuditLog
        fields = [
            'id',
            'timestamp',
            'event_type',
            'event_type_display',
            'severity',
            'actor_id',
            'actor_role',
            'actor_email',
            'target_type',
            'target_id',
            'ip_address',
            'request_method',
            'request_path',
            'description',
            'metadata',
            'success',
            'error_message',
        ]
        read_only_fields = fields


class AuditLogSummarySerializer(serializers.ModelSerializer):
    """Minimal entry used for per-record trails."""

    class Meta:
        model = AuditLog
        fields = [
            'id',
            'timestamp',
            'event_type',
            'actor_email',
            'description',
            'success',
        ]
        read_only_fields = fields
