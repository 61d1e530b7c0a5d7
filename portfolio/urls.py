"""
URL configuration for the portfolio app.

Uses Django REST Framework's router with a regex prefix so a single ViewSet
serves all five collections.

This URLs file gets included by the main project URLs at:
/api/v1/portfolio/ -> portfolio.urls

Full API paths will be:
/api/v1/portfolio/{collection}/          -> table view-model
/api/v1/portfolio/{collection}/export/   -> CSV export
/api/v1/portfolio/{collection}/{id}/     -> card view-model

where {collection} is one of owners, properties, units, tenants, leases.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .descriptors import COLLECTIONS
from .views import PortfolioViewSet


# =============================================================================
# ROUTER CONFIGURATION
# =============================================================================

router = DefaultRouter()

COLLECTION_PATTERN = '|'.join(COLLECTIONS.values())

# Router generates:
# ^(?P<collection>...)/$ [name='portfolio-list']
# ^(?P<collection>...)/export/$ [name='portfolio-export']
# ^(?P<collection>...)/(?P<pk>[^/.]+)/$ [name='portfolio-detail']
router.register(rf'(?P<collection>{COLLECTION_PATTERN})', PortfolioViewSet, basename='portfolio')


# =============================================================================
# MAIN URL PATTERNS
# =============================================================================

urlpatterns = [
    path('', include(router.urls)),
]
