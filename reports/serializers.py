"""
Serializers for Fix It Now Reports.

- ReportCreateSerializer: citizen submission with field validation
- ReportListSerializer / ReportDetailSerializer: staff and reporter views,
  including the transitions the requesting user may make next
- Transition, assignment and notes request payloads
"""

from rest_framework import serializers

from authentication.serializers import UserSummarySerializer, normalize_phone
from reports import lifecycle
from .models import (
    Report,
    ReportStatus,
    ReportPriority,
    ReportCategory,
    ReportStatusHistory,
)

MIN_DESCRIPTION_LENGTH = 20


class ReportCreateSerializer(serializers.Serializer):
    """
    Serializer for submitting a damage report.

    reporter_email defaults to the logged-in user's email.
    """

    title = serializers.CharField(max_length=200)
    description = serializers.CharField()
    location = serializers.CharField(max_length=255)
    category = serializers.ChoiceField(
        choices=ReportCategory.CHOICES,
        default=ReportCategory.OTHER
    )
    priority = serializers.ChoiceField(
        choices=ReportPriority.CHOICES,
        default=ReportPriority.MEDIUM
    )
    reporter_email = serializers.EmailField(required=False)
    reporter_phone = serializers.CharField(
        max_length=20,
        required=False,
        allow_blank=True
    )
    image_url = serializers.URLField(
        max_length=500,
        required=False,
        allow_blank=True
    )

    def validate_title(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Title is required.")
        return value

    def validate_description(self, value):
        value = value.strip()
        if len(value) < MIN_DESCRIPTION_LENGTH:
            raise serializers.ValidationError(
                f"Description must be at least {MIN_DESCRIPTION_LENGTH} characters."
            )
        return value

    def validate_location(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Location is required.")
        return value

    def validate_reporter_phone(self, value):
        return normalize_phone(value)

    def validate_reporter_email(self, value):
        return value.lower()


class ReportListSerializer(serializers.ModelSerializer):
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    priority_display = serializers.CharField(source='get_priority_display', read_only=True)
    category_display = serializers.CharField(source='get_category_display', read_only=True)
    assigned_to_name = serializers.SerializerMethodField()

    class Meta:
        model = Report
        fields = [
            'id',
            'title',
            'location',
            'category',
            'category_display',
            'priority',
            'priority_display',
            'status',
            'status_display',
            'reporter_email',
            'assigned_to',
            'assigned_to_name',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_assigned_to_name(self, obj):
        if obj.assigned_to_id:
            return obj.assigned_to.display_name
        return None


class ReportDetailSerializer(ReportListSerializer):
    """
    Full report, plus allowed_transitions: the statuses the requesting
    user could move the report to right now.
    """

    assigned_to_detail = UserSummarySerializer(source='assigned_to', read_only=True)
    allowed_transitions = serializers.SerializerMethodField()

    class Meta(ReportListSerializer.Meta):
        fields = ReportListSerializer.Meta.fields + [
            'description',
            'reporter_phone',
            'assigned_to_detail',
            'completion_notes',
            'image_url',
            'allowed_transitions',
        ]
        read_only_fields = fields

    def get_allowed_transitions(self, obj):
        request = self.context.get('request')
        user = getattr(request, 'user', None)
        if user is None or not user.is_authenticated:
            return []
        return lifecycle.allowed_targets(obj, user.role, user.id)


class ReportTransitionSerializer(serializers.Serializer):
    """
    Request to move a report to another status.

    notes carries the rejection reason or completion notes.
    """

    status = serializers.ChoiceField(choices=ReportStatus.CHOICES)
    notes = serializers.CharField(
        max_length=2000,
        required=False,
        allow_blank=True,
        allow_null=True
    )


class ReportAssignSerializer(serializers.Serializer):
    technician_id = serializers.UUIDField()


class ReportNotesSerializer(serializers.Serializer):
    completion_notes = serializers.CharField(
        max_length=2000,
        allow_blank=True,
        allow_null=True
    )


class ReportStatusHistorySerializer(serializers.ModelSerializer):
    changed_by = UserSummarySerializer(read_only=True)
    from_status_display = serializers.CharField(source='get_from_status_display', read_only=True)
    to_status_display = serializers.CharField(source='get_to_status_display', read_only=True)

    class Meta:
        model = ReportStatusHistory
        fields = [
            'id',
            'from_status',
            'from_status_display',
            'to_status',
            'to_status_display',
            'changed_by',
            'assigned_to',
            'reason',
            'created_at',
        ]
        read_only_fields = fields
