"""
Facility views for Fix It Now Backend.

Provides REST API endpoints for:
- Public facility listing and detail (no login needed)
- Facility creation and updates (admin)
- Facility reviews: public listing, one review per logged-in user
"""

import logging

from django_filters import rest_framework as filters
from rest_framework import status, generics, views
from rest_framework.filters import SearchFilter, OrderingFilter
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from .models import Facility, FacilityReview
from .serializers import (
    FacilitySerializer,
    FacilityWriteSerializer,
    FacilityReviewSerializer,
    FacilityReviewCreateSerializer,
)
from .services import FacilityService, RatingService
from authentication.permissions import IsAuthenticated, IsAdmin

logger = logging.getLogger(__name__)


class FacilityFilter(filters.FilterSet):
    status = filters.CharFilter(field_name='status', lookup_expr='exact')
    min_rating = filters.NumberFilter(field_name='average_rating', lookup_expr='gte')

    class Meta:
        model = Facility
        fields = ['status']


def _facility_not_found():
    return Response(
        {'detail': 'Facility not found.'},
        status=status.HTTP_404_NOT_FOUND
    )


class FacilityListCreateView(generics.ListCreateAPIView):
    """
    GET  /api/v1/facilities/  - public list (?status=active&min_rating=4&search=park)
    POST /api/v1/facilities/  - create (admin)

    POST request:
    {
        "name": "Taman Kota",
        "description": "City park",
        "latitude": "-6.200000",
        "longitude": "106.816666",
        "status": "active"
    }

    The address is resolved from the coordinates when not supplied.
    """

    serializer_class = FacilitySerializer
    filterset_class = FacilityFilter
    filter_backends = [filters.DjangoFilterBackend, SearchFilter, OrderingFilter]
    search_fields = ['name', 'description', 'address']
    ordering_fields = ['name', 'average_rating', 'created_at']
    ordering = ['name']

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsAdmin()]
        return [AllowAny()]

    def get_queryset(self):
        return Facility.objects.all()

    def create(self, request, *args, **kwargs):
        serializer = FacilityWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        facility = FacilityService.create_facility(
            serializer.validated_data, request.user, request=request
        )
        return Response(FacilitySerializer(facility).data, status=status.HTTP_201_CREATED)


class FacilityDetailView(views.APIView):
    """
    GET   /api/v1/facilities/{facility_id}/  - public
    PATCH /api/v1/facilities/{facility_id}/  - admin
    """

    def get_permissions(self):
        if self.request.method == 'PATCH':
            return [IsAdmin()]
        return [AllowAny()]

    def get(self, request, facility_id):
        try:
            facility = Facility.objects.get(id=facility_id)
        except Facility.DoesNotExist:
            return _facility_not_found()
        return Response(FacilitySerializer(facility).data)

    def patch(self, request, facility_id):
        try:
            facility = Facility.objects.get(id=facility_id)
        except Facility.DoesNotExist:
            return _facility_not_found()

        serializer = FacilityWriteSerializer(facility, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        facility = FacilityService.update_facility(
            facility, serializer.validated_data, request.user, request=request
        )
        return Response(FacilitySerializer(facility).data)


class FacilityReviewListCreateView(views.APIView):
    """
    GET  /api/v1/facilities/{facility_id}/reviews/  - public
    POST /api/v1/facilities/{facility_id}/reviews/  - authenticated

    POST request:
    {
        "score": 4,
        "comment": "Clean and well lit"
    }
    """

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsAuthenticated()]
        return [AllowAny()]

    def get(self, request, facility_id):
        if not Facility.objects.filter(id=facility_id).exists():
            return _facility_not_found()

        reviews = FacilityReview.objects.filter(
            facility_id=facility_id
        ).select_related('author').order_by('-created_at')
        return Response(FacilityReviewSerializer(reviews, many=True).data)

    def post(self, request, facility_id):
        try:
            facility = Facility.objects.get(id=facility_id)
        except Facility.DoesNotExist:
            return _facility_not_found()

        serializer = FacilityReviewCreateSerializer(
            data=request.data,
            context={'request': request, 'facility': facility}
        )
        serializer.is_valid(raise_exception=True)

        review = RatingService.add_review(
            facility,
            request.user,
            serializer.validated_data['score'],
            serializer.validated_data.get('comment', ''),
            request=request,
        )
        logger.info(f"Review {review.id} added to facility {facility.id}")
        return Response(FacilityReviewSerializer(review).data, status=status.HTTP_201_CREATED)
