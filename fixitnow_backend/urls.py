"""
URL configuration for Fix It Now Backend.

API Structure:
- /api/v1/auth/          - Authentication and user management
- /api/v1/reports/       - Damage reports and their lifecycle
- /api/v1/facilities/    - Public facilities and reviews
- /api/v1/notifications/ - In-app notifications
- /api/v1/audit/         - Audit logs (admin only)
- /admin/                - Django admin (restricted)
"""

from django.contrib import admin
from django.urls import path, include
from django.http import JsonResponse


def health_check(request):
    """Health check endpoint for load balancers."""
    return JsonResponse({
        'status': 'healthy',
        'service': 'fixitnow-backend'
    })


def api_root(request):
    """API root endpoint with version info."""
    return JsonResponse({
        'name': 'Fix It Now API',
        'version': 'v1',
        'endpoints': {
            'auth': '/api/v1/auth/',
            'reports': '/api/v1/reports/',
            'facilities': '/api/v1/facilities/',
            'notifications': '/api/v1/notifications/',
            'audit': '/api/v1/audit/',
        }
    })


urlpatterns = [
    # Health check (public) - accessible at /health/ and /api/health/
    path('health/', health_check, name='health-check'),
    path('api/health/', health_check, name='api-health-check'),

    # API root
    path('api/v1/', api_root, name='api-root'),

    path('api/v1/auth/', include('authentication.urls', namespace='auth')),
    path('api/v1/reports/', include('reports.urls', namespace='reports')),
    path('api/v1/facilities/', include('facilities.urls', namespace='facilities')),
    path('api/v1/notifications/', include('notifications.urls', namespace='notifications')),
    path('api/v1/audit/', include('audit.urls', namespace='audit')),

    # Django admin (restricted access)
    path('admin/', admin.site.urls),
]
