"""
Views for the portfolio app.

One ViewSet serves all five entity kinds; the collection name in the URL
(owners, properties, units, tenants, leases) selects the kind's descriptors.

- list      -> table view-model for the kind's column set
- export    -> the same table as CSV
- retrieve  -> card view-model (hero strip, details, linked records)

Records come from the portfolio backend API on every request; nothing is
cached or stored.
"""

import logging

from django.http import HttpResponse
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.response import Response

from services.portfolio_api import portfolio_api

from .composer import ERROR, compose_card, render_list
from .descriptors import KIND_BY_COLLECTION
from .serializers import CardResultSerializer, TableSerializer
from .tables import table_to_csv

logger = logging.getLogger(__name__)

# Query parameters consumed here rather than forwarded to the backend as filters
RESERVED_PARAMS = ('ordering', 'format')


class PortfolioViewSet(viewsets.ViewSet):
    """
    API endpoint for portfolio list pages and cards.

    Supports:
    - Listing any entity kind as a rendered table
    - Sorting via ?ordering=<column> or ?ordering=-<column>
    - Filtering: any other query parameter is passed to the backend
    - CSV export of a list page
    - Card view for a single entity with its linked records
    """

    def get_kind(self):
        return KIND_BY_COLLECTION[self.kwargs['collection']]

    def get_filters(self):
        return {
            key: value
            for key, value in self.request.query_params.items()
            if key not in RESERVED_PARAMS
        }

    def get_table(self):
        kind = self.get_kind()
        records, lookups = portfolio_api.fetch_list_records(kind, **self.get_filters())
        return render_list(kind, records, ordering=self.request.query_params.get('ordering'), lookups=lookups)

    def list(self, request, collection=None):
        table = self.get_table()
        return Response(TableSerializer(table).data)

    def retrieve(self, request, collection=None, pk=None):
        """
        Card for one entity.

        404 when the backend has no such record, 422 with the violated field
        path when a required value is missing.
        """
        kind = self.get_kind()
        fetched = portfolio_api.fetch_card_records(kind, pk)
        if fetched is None:
            raise NotFound(f"No {kind} with id {pk}")

        primary, related = fetched
        result = compose_card(kind, primary, related)

        response_status = status.HTTP_200_OK
        if result.state == ERROR:
            response_status = status.HTTP_422_UNPROCESSABLE_ENTITY

        return Response(CardResultSerializer(result).data, status=response_status)

    @action(detail=False, methods=['get'])
    def export(self, request, collection=None):
        """
        CSV export of a list page.

        GET /api/v1/portfolio/{collection}/export/
        """
        table = self.get_table()
        response = HttpResponse(table_to_csv(table), content_type='text/csv')
        response['Content-Disposition'] = f'attachment; filename="{collection}.csv"'
        logger.info(f"Exported {len(table.rows)} {collection} rows as CSV")
        return response
