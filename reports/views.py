"""
Report views for Fix It Now Backend.

Provides REST API endpoints for:
- Report submission (any authenticated user)
- Report listing (staff, own reports, technician tasks)
- Report detail and status history
- Lifecycle actions: transition, assign, unassign, completion notes
- Lifecycle policy export and dashboard statistics

Status changes are decided by reports.lifecycle and written by
reports.services.ReportLifecycleService. All operations are audited.
"""

import logging

from django.db.models import Q
from django_filters import rest_framework as filters
from rest_framework import status, generics, views
from rest_framework.filters import SearchFilter, OrderingFilter
from rest_framework.response import Response

from .analytics import report_statistics, technician_statistics
from .lifecycle import transition_policy
from .models import Report, ReportStatusHistory, visible_reports_for_user
from .serializers import (
    ReportCreateSerializer,
    ReportDetailSerializer,
    ReportListSerializer,
    ReportTransitionSerializer,
    ReportAssignSerializer,
    ReportNotesSerializer,
    ReportStatusHistorySerializer,
)
from .services import ReportLifecycleService, find_technician
from authentication.permissions import (
    IsAuthenticated,
    IsAdmin,
    IsTechnician,
    IsReportStaff,
    IsAdminOrTechnician,
    IsGovernmentOrAdmin,
    CanTransitionReport,
    CanViewReport,
)
from audit.models import AuditLog, AuditEventType
from core.exceptions import TransitionValidationError
from facilities.services import facility_statistics

logger = logging.getLogger(__name__)


class ReportFilter(filters.FilterSet):
    status = filters.CharFilter(field_name='status', lookup_expr='exact')
    category = filters.CharFilter(field_name='category', lookup_expr='exact')
    priority = filters.CharFilter(field_name='priority', lookup_expr='exact')
    assigned_to = filters.UUIDFilter(field_name='assigned_to_id')
    unassigned = filters.BooleanFilter(field_name='assigned_to', lookup_expr='isnull')
    created_after = filters.DateTimeFilter(field_name='created_at', lookup_expr='gte')
    created_before = filters.DateTimeFilter(field_name='created_at', lookup_expr='lte')

    class Meta:
        model = Report
        fields = ['status', 'category', 'priority']


class ReportQueryMixin:
    filterset_class = ReportFilter
    filter_backends = [filters.DjangoFilterBackend, SearchFilter, OrderingFilter]
    search_fields = ['title', 'description', 'location', 'reporter_email']
    ordering_fields = ['created_at', 'updated_at', 'priority', 'status']
    ordering = ['-created_at']


def _get_report(report_id):
    return Report.objects.select_related('assigned_to').get(id=report_id)


def _not_found():
    return Response(
        {'detail': 'Report not found.'},
        status=status.HTTP_404_NOT_FOUND
    )


class ReportListCreateView(ReportQueryMixin, generics.ListCreateAPIView):
    """
    GET  /api/v1/reports/  - list (admin, technician, government)
    POST /api/v1/reports/  - submit a report (any authenticated user)

    POST request:
    {
        "title": "Broken street light",
        "description": "The light at the corner has been out for a week.",
        "location": "Jl. Merdeka 10",
        "category": "streetlight",
        "priority": "medium",
        "reporter_phone": "081234567890"
    }

    Technicians only see reports assigned to them.
    Query parameters: status, category, priority, assigned_to, unassigned,
    created_after, created_before, search, ordering.
    """

    serializer_class = ReportListSerializer

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsAuthenticated()]
        return [IsReportStaff()]

    def get_queryset(self):
        return visible_reports_for_user(self.request.user).select_related('assigned_to')

    def create(self, request, *args, **kwargs):
        serializer = ReportCreateSerializer(
            data=request.data,
            context={'request': request}
        )
        serializer.is_valid(raise_exception=True)
        report = ReportLifecycleService.create_report(
            serializer.validated_data,
            request.user,
            request=request,
        )
        return Response(
            ReportDetailSerializer(report, context={'request': request}).data,
            status=status.HTTP_201_CREATED
        )


class MyReportListView(ReportQueryMixin, generics.ListAPIView):
    """
    Reports submitted by the current user.

    GET /api/v1/reports/my/
    """

    permission_classes = [IsAuthenticated]
    serializer_class = ReportListSerializer

    def get_queryset(self):
        user = self.request.user
        return Report.objects.filter(
            Q(reporter=user) | Q(reporter_email__iexact=user.email)
        ).select_related('assigned_to')


class TechnicianTaskListView(ReportQueryMixin, generics.ListAPIView):
    """
    Reports assigned to the current technician.

    GET /api/v1/reports/tasks/
    """

    permission_classes = [IsTechnician]
    serializer_class = ReportListSerializer

    def get_queryset(self):
        return Report.objects.filter(
            assigned_to=self.request.user
        ).select_related('assigned_to')


class TechnicianTaskStatsView(views.APIView):
    """
    Task counts for the technician dashboard.

    GET /api/v1/reports/tasks/stats/
    """

    permission_classes = [IsTechnician]

    def get(self, request):
        return Response(technician_statistics(request.user))


class LifecyclePolicyView(views.APIView):
    """
    The report transition table, for clients that render action buttons.

    GET /api/v1/reports/lifecycle/
    """

    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(transition_policy())


class ReportStatsView(views.APIView):
    """
    Government dashboard statistics.

    GET /api/v1/reports/stats/
    """

    permission_classes = [IsGovernmentOrAdmin]

    def get(self, request):
        data = report_statistics()
        data['facilities'] = facility_statistics()
        return Response(data)


class ReportDetailView(views.APIView):
    """
    Get detailed report information.

    GET /api/v1/reports/{report_id}/

    Admin and government see every report, technicians their assigned
    reports, and reporters their own.
    """

    permission_classes = [IsAuthenticated, CanViewReport]

    def get(self, request, report_id):
        try:
            report = _get_report(report_id)
        except Report.DoesNotExist:
            return _not_found()

        self.check_object_permissions(request, report)

        AuditLog.log(
            event_type=AuditEventType.REPORT_VIEWED,
            actor=request.user,
            target=report,
            request=request,
            success=True,
            description=f"Report viewed: {report.title}",
            metadata={'viewer_role': request.user.role}
        )

        serializer = ReportDetailSerializer(
            report,
            context={'request': request}
        )
        return Response(serializer.data)


class ReportHistoryView(generics.ListAPIView):
    """
    Status history of a report.

    GET /api/v1/reports/{report_id}/history/
    """

    permission_classes = [IsAdminOrTechnician]
    serializer_class = ReportStatusHistorySerializer

    def get_queryset(self):
        user = self.request.user
        queryset = ReportStatusHistory.objects.filter(
            report_id=self.kwargs['report_id']
        ).select_related('changed_by')
        if user.is_technician:
            queryset = queryset.filter(report__assigned_to=user)
        return queryset.order_by('-created_at')


class ReportTransitionView(views.APIView):
    """
    Move a report to another status.

    POST /api/v1/reports/{report_id}/transition/

    Request:
    {
        "status": "rejected",
        "notes": "Duplicate of an existing report"
    }

    Errors:
    - 403 TRANSITION_UNAUTHORIZED: role or assignee not allowed
    - 409 ILLEGAL_TRANSITION: target not reachable from current status
    - 400 TRANSITION_VALIDATION_ERROR: missing reason or assignee
    - 409 CONCURRENT_MODIFICATION: report changed meanwhile
    """

    permission_classes = [CanTransitionReport]
    serializer_class = ReportTransitionSerializer

    def post(self, request, report_id):
        serializer = self.serializer_class(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            report = _get_report(report_id)
        except Report.DoesNotExist:
            return _not_found()

        report = ReportLifecycleService.transition(
            report,
            request.user,
            serializer.validated_data['status'],
            notes=serializer.validated_data.get('notes'),
            request=request,
        )
        return Response(ReportDetailSerializer(report, context={'request': request}).data)


class ReportAssignView(views.APIView):
    """
    Assign a pending report to a technician.

    POST /api/v1/reports/{report_id}/assign/

    Request:
    {
        "technician_id": "uuid"
    }
    """

    permission_classes = [IsAdmin]
    serializer_class = ReportAssignSerializer

    def post(self, request, report_id):
        serializer = self.serializer_class(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            report = _get_report(report_id)
        except Report.DoesNotExist:
            return _not_found()

        technician = find_technician(serializer.validated_data['technician_id'])
        if technician is None:
            raise TransitionValidationError("No active technician with that id.")

        report = ReportLifecycleService.assign(report, request.user, technician, request=request)
        return Response(ReportDetailSerializer(report, context={'request': request}).data)


class ReportUnassignView(views.APIView):
    """
    Remove the technician and return the report to pending.

    POST /api/v1/reports/{report_id}/unassign/
    """

    permission_classes = [IsAdmin]

    def post(self, request, report_id):
        try:
            report = _get_report(report_id)
        except Report.DoesNotExist:
            return _not_found()

        report = ReportLifecycleService.unassign(report, request.user, request=request)
        return Response(ReportDetailSerializer(report, context={'request': request}).data)


class ReportNotesView(views.APIView):
    """
    Edit completion notes without changing status.

    PATCH /api/v1/reports/{report_id}/notes/

    Request:
    {
        "completion_notes": "Replaced the lamp and the fuse."
    }
    """

    permission_classes = [IsAdmin]
    serializer_class = ReportNotesSerializer

    def patch(self, request, report_id):
        serializer = self.serializer_class(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            report = _get_report(report_id)
        except Report.DoesNotExist:
            return _not_found()

        notes = serializer.validated_data.get('completion_notes')
        report = ReportLifecycleService.update_notes(
            report,
            request.user,
            notes.strip() if notes else None,
            request=request,
        )
        return Response(ReportDetailSerializer(report, context={'request': request}).data)
