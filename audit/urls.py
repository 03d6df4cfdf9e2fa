"""
URL configuration for Fix It Now Audit API.
"""

from django.urls import path
from .views import (
    AuditLogListView,
    AuditLogDetailView,
    AuditLogStatsView,
    AuditTrailView,
)

app_name = 'audit'

urlpatterns = [
    path('logs/', AuditLogListView.as_view(), name='audit-log-list'),
    path('logs/stats/', AuditLogStatsView.as_view(), name='audit-log-stats'),
    path('logs/<uuid:id>/', AuditLogDetailView.as_view(), name='audit-log-detail'),
    path('targets/<uuid:target_id>/', AuditTrailView.as_view(), name='audit-trail'),
]
