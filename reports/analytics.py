"""
Report statistics for the government and technician dashboards.
"""

from datetime import datetime

from django.db.models import Count
from django.utils import timezone

from .models import Report, ReportCategory, ReportStatus

TREND_MONTHS = 6


def _month_start(year, month):
    return timezone.make_aware(datetime(year, month, 1), timezone.get_current_timezone())


def _shift_month(year, month, delta):
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _counts_by(queryset, field, choices):
    counts = {value: 0 for value, _ in choices}
    for row in queryset.values(field).annotate(count=Count('id')):
        counts[row[field]] = row['count']
    return counts


def monthly_trend(queryset, now=None, months=TREND_MONTHS):
    """Reports created per calendar month, oldest first, current month included."""
    local_now = timezone.localtime(now or timezone.now())
    trend = []
    for offset in range(months - 1, -1, -1):
        year, month = _shift_month(local_now.year, local_now.month, -offset)
        next_year, next_month = _shift_month(year, month, 1)
        start = _month_start(year, month)
        end = _month_start(next_year, next_month)
        trend.append({
            'month': f"{year:04d}-{month:02d}",
            'count': queryset.filter(created_at__gte=start, created_at__lt=end).count(),
        })
    return trend


def report_statistics(queryset=None, now=None):
    """
    Aggregate counts over a report queryset.

    'completed' counts both completed and approved reports.
    """
    if queryset is None:
        queryset = Report.objects.all()
    local_now = timezone.localtime(now or timezone.now())

    by_status = _counts_by(queryset, 'status', ReportStatus.CHOICES)
    by_category = _counts_by(queryset, 'category', ReportCategory.CHOICES)

    return {
        'total': queryset.count(),
        'pending': by_status[ReportStatus.PENDING],
        'completed': sum(by_status[s] for s in ReportStatus.DONE),
        'this_month': queryset.filter(
            created_at__gte=_month_start(local_now.year, local_now.month)
        ).count(),
        'by_status': by_status,
        'by_category': by_category,
        'monthly_trend': monthly_trend(queryset, now=now),
    }


def technician_statistics(user):
    """Task counts for one technician's dashboard."""
    tasks = Report.objects.filter(assigned_to=user)
    by_status = _counts_by(tasks, 'status', ReportStatus.CHOICES)
    return {
        'total': tasks.count(),
        'assigned': by_status[ReportStatus.ASSIGNED],
        'progress': by_status[ReportStatus.PROGRESS],
        'completed': sum(by_status[s] for s in ReportStatus.DONE),
    }
