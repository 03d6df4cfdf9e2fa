"""
URL configuration for Fix It Now Facilities API.
"""

from django.urls import path
from .views import (
    FacilityListCreateView,
    FacilityDetailView,
    FacilityReviewListCreateView,
)

app_name = 'facilities'

urlpatterns = [
    path('', FacilityListCreateView.as_view(), name='facility-list'),
    path('<uuid:facility_id>/', FacilityDetailView.as_view(), name='facility-detail'),
    path('<uuid:facility_id>/reviews/', FacilityReviewListCreateView.as_view(), name='facility-reviews'),
]
