"""
Serializers for public facilities and their reviews.
"""

from rest_framework import serializers

from authentication.serializers import UserSummarySerializer
from .models import Facility, FacilityReview, FacilityStatus


class FacilitySerializer(serializers.ModelSerializer):
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = Facility
        fields = [
            'id',
            'name',
            'description',
            'photo_url',
            'latitude',
            'longitude',
            'address',
            'status',
            'status_display',
            'average_rating',
            'total_ratings_count',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class FacilityWriteSerializer(serializers.Serializer):
    """Admin payload for creating or updating a facility."""

    name = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True)
    photo_url = serializers.URLField(max_length=500, required=False, allow_blank=True)
    latitude = serializers.DecimalField(
        max_digits=9, decimal_places=6,
        min_value=-90, max_value=90,
        required=False, allow_null=True
    )
    longitude = serializers.DecimalField(
        max_digits=9, decimal_places=6,
        min_value=-180, max_value=180,
        required=False, allow_null=True
    )
    address = serializers.CharField(max_length=255, required=False, allow_blank=True)
    status = serializers.ChoiceField(
        choices=FacilityStatus.CHOICES,
        default=FacilityStatus.ACTIVE
    )

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Name is required.")
        return value

    def validate(self, attrs):
        latitude = attrs.get('latitude')
        longitude = attrs.get('longitude')
        if self.instance is not None and self.partial:
            if 'latitude' not in attrs:
                latitude = self.instance.latitude
            if 'longitude' not in attrs:
                longitude = self.instance.longitude

        has_lat = latitude is not None
        has_lon = longitude is not None
        if has_lat != has_lon:
            raise serializers.ValidationError(
                "Latitude and longitude must be given together."
            )
        return attrs


class FacilityReviewSerializer(serializers.ModelSerializer):
    author = UserSummarySerializer(read_only=True)

    class Meta:
        model = FacilityReview
        fields = ['id', 'facility', 'author', 'score', 'comment', 'created_at']
        read_only_fields = fields


class FacilityReviewCreateSerializer(serializers.Serializer):
    score = serializers.IntegerField(min_value=1, max_value=5)
    comment = serializers.CharField(max_length=2000, required=False, allow_blank=True, default='')

    def validate(self, attrs):
        facility = self.context['facility']
        user = self.context['request'].user
        if FacilityReview.objects.filter(facility=facility, author=user).exists():
            raise serializers.ValidationError("You have already reviewed this facility.")
        return attrs
