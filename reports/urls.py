"""
URL configuration for Fix It Now Reports API.

Provides endpoints for:
- Report submission and listing
- Technician task lists
- Report lifecycle actions (transition, assign, unassign, notes)
- Lifecycle policy and dashboard statistics
"""

from django.urls import path
from .views import (
    ReportListCreateView,
    MyReportListView,
    TechnicianTaskListView,
    TechnicianTaskStatsView,
    LifecyclePolicyView,
    ReportStatsView,
    ReportDetailView,
    ReportHistoryView,
    ReportTransitionView,
    ReportAssignView,
    ReportUnassignView,
    ReportNotesView,
)

app_name = 'reports'

urlpatterns = [
    path('', ReportListCreateView.as_view(), name='report-list'),
    path('my/', MyReportListView.as_view(), name='my-reports'),

    # Technician dashboard
    path('tasks/', TechnicianTaskListView.as_view(), name='task-list'),
    path('tasks/stats/', TechnicianTaskStatsView.as_view(), name='task-stats'),

    path('lifecycle/', LifecyclePolicyView.as_view(), name='lifecycle-policy'),
    path('stats/', ReportStatsView.as_view(), name='report-stats'),

    path('<uuid:report_id>/', ReportDetailView.as_view(), name='report-detail'),
    path('<uuid:report_id>/history/', ReportHistoryView.as_view(), name='report-history'),

    # Lifecycle actions
    path('<uuid:report_id>/transition/', ReportTransitionView.as_view(), name='report-transition'),
    path('<uuid:report_id>/assign/', ReportAssignView.as_view(), name='report-assign'),
    path('<uuid:report_id>/unassign/', ReportUnassignView.as_view(), name='report-unassign'),
    path('<uuid:report_id>/notes/', ReportNotesView.as_view(), name='report-notes'),
]
