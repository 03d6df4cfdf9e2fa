"""
Audit Views - Read-Only Access to Audit Logs

Endpoints:
- GET /api/v1/audit/logs/                   - Filterable list
- GET /api/v1/audit/logs/stats/             - Activity statistics
- GET /api/v1/audit/logs/<id>/              - Single entry
- GET /api/v1/audit/targets/<target_id>/    - Trail for one record

Only administrators have access.
"""

from datetime import timedelta

from django.db.models import Count
from django.utils import timezone
from django_filters import rest_framework as filters
from rest_framework import generics
from rest_framework.views import APIView
from rest_framework.response import Response

from .models import AuditLog
from .serializers import AuditLogSerializer, AuditLogSummarySerializer
from authentication.backends import ActiveUserJWTAuthentication
from authentication.permissions import CanViewAuditLogs


class AuditLogFilter(filters.FilterSet):
    """Filter for audit logs."""

    event_type = filters.CharFilter(field_name='event_type', lookup_expr='iexact')
    event_prefix = filters.CharFilter(field_name='event_type', lookup_expr='istartswith')
    actor_id = filters.CharFilter(field_name='actor_id', lookup_expr='exact')
    target_type = filters.CharFilter(field_name='target_type', lookup_expr='iexact')
    target_id = filters.CharFilter(field_name='target_id', lookup_expr='exact')
    severity = filters.CharFilter(field_name='severity', lookup_expr='iexact')
    success = filters.BooleanFilter(field_name='success')
    timestamp_after = filters.DateTimeFilter(field_name='timestamp', lookup_expr='gte')
    timestamp_before = filters.DateTimeFilter(field_name='timestamp', lookup_expr='lte')

    class Meta:
        model = AuditLog
        fields = ['event_type', 'actor_id', 'target_type', 'target_id', 'severity', 'success']


class AuditLogListView(generics.ListAPIView):
    """
    List audit logs, newest first.
    """

    authentication_classes = [ActiveUserJWTAuthentication]
    permission_classes = [CanViewAuditLogs]
    serializer_class = AuditLogSerializer
    filterset_class = AuditLogFilter

    def get_queryset(self):
        return AuditLog.objects.all().order_by('-timestamp')


class AuditLogDetailView(generics.RetrieveAPIView):
    authentication_classes = [ActiveUserJWTAuthentication]
    permission_classes = [CanViewAuditLogs]
    serializer_class = AuditLogSerializer
    lookup_field = 'id'
    queryset = AuditLog.objects.all()


class AuditTrailView(generics.ListAPIView):
    """Every audit entry that targets one record (report, user, facility)."""

    authentication_classes = [ActiveUserJWTAuthentication]
    permission_classes = [CanViewAuditLogs]
    serializer_class = AuditLogSummarySerializer

    def get_queryset(self):
        return AuditLog.objects.filter(
            target_id=str(self.kwargs['target_id'])
        ).order_by('-timestamp')


class AuditLogStatsView(APIView):
    """
    Get audit log statistics.
    """

    authentication_classes = [ActiveUserJWTAuthentication]
    permission_classes = [CanViewAuditLogs]

    def get(self, request):
        now = timezone.now()
        last_24_hours = now - timedelta(hours=24)
        last_7_days = now - timedelta(days=7)
        last_30_days = now - timedelta(days=30)

        logs = AuditLog.objects.all()

        events_breakdown = logs.values('event_type').annotate(
            count=Count('id')
        ).order_by('-count')[:10]

        severity_breakdown = logs.values('severity').annotate(
            count=Count('id')
        ).order_by('-count')

        return Response({
            'total_audit_logs': logs.count(),
            'failed_actions': logs.filter(success=False).count(),
            'activity': {
                'last_24_hours': logs.filter(timestamp__gte=last_24_hours).count(),
                'last_7_days': logs.filter(timestamp__gte=last_7_days).count(),
                'last_30_days': logs.filter(timestamp__gte=last_30_days).count(),
            },
            'events_breakdown': list(events_breakdown),
            'severity_breakdown': list(severity_breakdown),
        })
