"""
DRF exception handler for the portfolio API.

This is the containment boundary: a failure in one request becomes a JSON
payload the console can render in place of the affected view, and the rest of
the application keeps running.

- ContractViolation  -> 422 diagnostic payload naming the missing field path
- PortfolioAPIError  -> 503 retryable "could not load" payload
- everything else    -> DRF's default handling
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from services import PortfolioAPIError

from .contracts import ContractViolation
from .serializers import ContractViolationSerializer

logger = logging.getLogger(__name__)

COULD_NOT_LOAD = 'could_not_load'


def portfolio_exception_handler(exc, context):
    view = context.get('view')
    view_name = view.__class__.__name__ if view is not None else 'unknown view'

    if isinstance(exc, ContractViolation):
        logger.warning(f"Contract violation in {view_name}: {exc.message}")
        return Response(
            ContractViolationSerializer(exc).data,
            status=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )

    if isinstance(exc, PortfolioAPIError):
        logger.error(f"Portfolio API failure in {view_name}: {exc.message}")
        return Response(
            {
                'error': COULD_NOT_LOAD,
                'message': 'Could not load data from the portfolio API',
                'retryable': exc.retryable,
                'upstream_status': exc.status_code,
            },
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    return exception_handler(exc, context)
