# ===== SERVICES INTEGRATION LAYER =====
"""
Centralized service integration layer for the Empire Command Center backend.
Provides consistent interfaces and error handling for the backend API client.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from django.conf import settings

logger = logging.getLogger(__name__)


# =============================================================================
# SERVICE INTEGRATION EXCEPTIONS
# =============================================================================

class ServiceIntegrationError(Exception):
    """Base exception for service integration errors."""
    pass


class PortfolioAPIError(ServiceIntegrationError):
    """
    Raised when the portfolio backend API cannot be reached or answers badly.

    Transport-level only: a 404 is reported as a missing record, never as this.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, url: Optional[str] = None):
        self.message = message
        self.status_code = status_code
        self.url = url
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        return True


# =============================================================================
# HEALTH CHECK SERVICES
# =============================================================================

def check_service_health() -> Dict[str, Dict[str, Any]]:
    """
    Report configuration health of the integrated services.

    Does not call the backend API; it only checks that the client is configured.

    Returns:
        Dictionary with health status of each service
    """
    base_url = getattr(settings, 'PORTFOLIO_API_BASE_URL', '')
    return {
        'portfolio_api': {
            'configured': bool(base_url),
            'base_url': base_url or None,
            'api_key_configured': bool(getattr(settings, 'PORTFOLIO_API_KEY', '')),
            'timeout': getattr(settings, 'PORTFOLIO_API_TIMEOUT', None),
        }
    }


# =============================================================================
# SERVICE CONFIGURATION VALIDATION
# =============================================================================

def validate_service_configuration() -> Tuple[bool, list]:
    """
    Validate that all required services are properly configured.

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []

    if not getattr(settings, 'PORTFOLIO_API_BASE_URL', ''):
        errors.append("PORTFOLIO_API_BASE_URL not configured in settings")

    timeout = getattr(settings, 'PORTFOLIO_API_TIMEOUT', None)
    if not isinstance(timeout, (int, float)) or timeout <= 0:
        errors.append("PORTFOLIO_API_TIMEOUT must be a positive number")

    required_apps = ['rest_framework', 'corsheaders', 'portfolio', 'services']
    installed_apps = getattr(settings, 'INSTALLED_APPS', [])

    for app in required_apps:
        if app not in installed_apps:
            errors.append(f"Required app '{app}' not in INSTALLED_APPS")

    return len(errors) == 0, errors


# =============================================================================
# EXPORT FOR EASY IMPORTS
# =============================================================================

__all__ = [
    'check_service_health',
    'validate_service_configuration',
    'ServiceIntegrationError',
    'PortfolioAPIError',
]
