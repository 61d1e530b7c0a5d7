"""
URL configuration for command_center project.

/api/v1/health/                          - Health check
/api/v1/info/                            - API information
/api/v1/portfolio/{collection}/          - List page table
/api/v1/portfolio/{collection}/export/   - List page CSV export
/api/v1/portfolio/{collection}/{id}/     - Entity card
"""

import sys

from django.http import JsonResponse
from django.urls import include, path
from django.utils import timezone
from django.views.decorators.cache import cache_control
from django.views.decorators.http import require_http_methods

from portfolio.descriptors import COLLECTIONS
from services import check_service_health


# =============================================================================
# HEALTH CHECK ENDPOINT
# =============================================================================

@require_http_methods(["GET"])
@cache_control(no_cache=True, must_revalidate=True, no_store=True)
def health_check(request):
    """
    Health check endpoint for deployment monitoring.

    Reports service configuration only; the backend API is not called, so a
    backend outage does not take this service out of rotation.
    """
    services = check_service_health()
    healthy = all(service['configured'] for service in services.values())

    response_data = {
        "status": "healthy" if healthy else "degraded",
        "services": services,
        "python_version": f"{sys.version_info.major}.{sys.version_info.minor}",
        "timestamp": str(timezone.now()),
    }
    return JsonResponse(response_data, status=200 if healthy else 503)


# =============================================================================
# API INFO ENDPOINT
# =============================================================================

@require_http_methods(["GET"])
def api_info(request):
    """
    API information endpoint for frontend integration.

    Returns:
        JSON response with API version and available endpoints
    """
    api_info_data = {
        "api_name": "Empire Command Center API",
        "version": "1.0",
        "description": "Portfolio cards and list pages for owners, properties, units, tenants and leases",
        "endpoints": {
            "portfolio": {
                collection: {
                    "list": f"/api/v1/portfolio/{collection}/",
                    "export": f"/api/v1/portfolio/{collection}/export/",
                    "card": f"/api/v1/portfolio/{collection}/{{id}}/",
                }
                for collection in COLLECTIONS.values()
            },
            "utilities": {
                "health": "/api/v1/health/",
                "info": "/api/v1/info/",
            },
        },
    }
    return JsonResponse(api_info_data)


# =============================================================================
# MAIN URL PATTERNS
# =============================================================================

urlpatterns = [
    # Health and System Status
    path('api/v1/health/', health_check, name='health-check'),
    path('api/v1/info/', api_info, name='api-info'),

    # Core Application Endpoints
    path('api/v1/portfolio/', include('portfolio.urls')),

    # API root
    path('api/v1/', api_info, name='api-root'),
    path('api/', api_info, name='api-default'),
]


# =============================================================================
# CUSTOM ERROR HANDLERS
# =============================================================================

def custom_404_handler(request, exception):
    """Custom 404 handler for API endpoints"""
    if request.path.startswith('/api/'):
        return JsonResponse({
            'error': 'API endpoint not found',
            'message': f'The requested endpoint {request.path} does not exist',
            'available_endpoints': '/api/v1/info/'
        }, status=404)

    from django.views.defaults import page_not_found
    return page_not_found(request, exception)


def custom_500_handler(request):
    """Custom 500 handler for API endpoints"""
    if request.path.startswith('/api/'):
        return JsonResponse({
            'error': 'Internal server error',
            'message': 'An unexpected error occurred',
        }, status=500)

    from django.views.defaults import server_error
    return server_error(request)


handler404 = custom_404_handler
handler500 = custom_500_handler
