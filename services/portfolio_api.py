# services/portfolio_api.py
"""
Portfolio backend API client for the Empire Command Center.
Fetches owner, property, unit, tenant and lease records and gathers the
related records a card needs.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

import requests
from django.conf import settings

from portfolio.descriptors import COLLECTIONS, LIST_JOINS, RELATIONS
from portfolio.projection import first_defined

from . import PortfolioAPIError

logger = logging.getLogger(__name__)

# Envelope keys the backend wraps payloads in, checked in this order
ENVELOPE_KEYS = ('item', 'data', 'items', 'results')


def unwrap(payload: Any) -> Any:
    """Strip a single response envelope, if any."""
    if isinstance(payload, dict):
        for key in ENVELOPE_KEYS:
            if key in payload:
                return payload[key]
    return payload


def matches_filters(record: Any, filters) -> bool:
    """Case-insensitive equality check of every (key, value) filter against ``record``."""
    if not isinstance(record, Mapping):
        return False
    for key, expected in filters:
        actual = record.get(key)
        if actual is None or str(actual).lower() != str(expected).lower():
            return False
    return True


class PortfolioAPIClient:
    """
    Client for the portfolio backend API.

    Returns None for a missing record and raises PortfolioAPIError for
    transport failures. It never retries; the caller decides what to do.
    """

    def __init__(self, base_url: Optional[str] = None, api_key: Optional[str] = None,
                 timeout: Optional[float] = None):
        self._base_url = base_url
        self._api_key = api_key
        self._timeout = timeout

    # Settings are read per request so override_settings applies to the singleton
    @property
    def base_url(self) -> str:
        return (self._base_url or getattr(settings, 'PORTFOLIO_API_BASE_URL', '')).rstrip('/')

    @property
    def api_key(self) -> str:
        return self._api_key or getattr(settings, 'PORTFOLIO_API_KEY', '')

    @property
    def timeout(self) -> float:
        return self._timeout or getattr(settings, 'PORTFOLIO_API_TIMEOUT', 10)

    def _url(self, kind: str, entity_id: Any = None) -> str:
        url = f"{self.base_url}/api/portfolio/{COLLECTIONS[kind]}"
        if entity_id is not None:
            url = f"{url}/{entity_id}"
        return url

    def _get(self, url: str, params: Optional[Dict[str, Any]] = None) -> Optional[Any]:
        """
        GET ``url`` and return the decoded, unwrapped payload.

        Returns:
            payload, or None when the backend answers 404

        Raises:
            PortfolioAPIError: on any other non-success status, network error,
                timeout, or a body that is not JSON
        """
        if not self.base_url:
            raise PortfolioAPIError("PORTFOLIO_API_BASE_URL is not configured", url=url)

        headers = {'Accept': 'application/json'}
        if self.api_key:
            headers['x-api-key'] = self.api_key

        logger.debug(f"GET {url} params={params}")

        try:
            response = requests.get(url, params=params, headers=headers, timeout=self.timeout)
        except requests.Timeout as e:
            logger.error(f"Timed out fetching {url}: {str(e)}")
            raise PortfolioAPIError(f"Timed out fetching {url}", url=url) from e
        except requests.RequestException as e:
            logger.error(f"Network error fetching {url}: {str(e)}")
            raise PortfolioAPIError(f"Network error fetching {url}", url=url) from e

        if response.status_code == 404:
            logger.info(f"Not found: {url}")
            return None

        if not response.ok:
            logger.error(f"Portfolio API returned {response.status_code} for {url}")
            raise PortfolioAPIError(
                f"Portfolio API returned {response.status_code}",
                status_code=response.status_code,
                url=url,
            )

        try:
            return unwrap(response.json())
        except ValueError as e:
            logger.error(f"Error parsing portfolio API response from {url}: {str(e)}")
            raise PortfolioAPIError(
                f"Invalid JSON from {url}", status_code=response.status_code, url=url
            ) from e

    # =========================================================================
    # ENTITY ACCESS
    # =========================================================================

    def get_entity(self, kind: str, entity_id: Any) -> Optional[Dict[str, Any]]:
        """
        Fetch one record.

        Args:
            kind: entity kind (owner, property, unit, tenant, lease)
            entity_id: backend identifier

        Returns:
            The record, or None if the backend does not have it
        """
        return self._get(self._url(kind, entity_id))

    def list_entities(self, kind: str, **filters) -> Any:
        """
        Fetch a collection, passing ``filters`` as query parameters.

        Returns the unwrapped payload as sent; a well-behaved backend sends a
        list, and checking that is the caller's job.
        """
        payload = self._get(self._url(kind), params=filters or None)
        return [] if payload is None else payload

    def fetch_list_records(self, kind: str, **filters) -> Tuple[Any, Dict[str, List[Any]]]:
        """
        Fetch a list page's records and the collections it is joined against.

        Joined collections are fetched only when the page has records, each
        with the filters LIST_JOINS declares for it.

        Returns:
            (records, lookups) with lookups keyed by entity kind
        """
        records = self.list_entities(kind, **filters)

        lookups: Dict[str, List[Any]] = {}
        if isinstance(records, list) and records:
            for joined_kind, joined_filters in LIST_JOINS[kind]:
                lookups[joined_kind] = self._matching(joined_kind, dict(joined_filters), joined_filters)

        logger.info(f"Fetched {kind} list with {len(lookups)} joined collections")
        return records, lookups

    def fetch_card_records(self, kind: str, entity_id: Any) -> Optional[Tuple[Dict[str, Any], Dict[str, Any]]]:
        """
        Fetch a primary record and the related records its card links to.

        Relations are walked in declared order. A relation embedded on the
        primary record is not fetched. Foreign-key relations are fetched by id,
        read either off the primary record or off an earlier relation's record.
        Reverse relations are listed by the reverse key plus the relation's
        filters; a single-valued reverse relation takes the first match.

        Returns:
            (primary, related) keyed by relation name, or None if the primary
            record is not found
        """
        primary = self.get_entity(kind, entity_id)
        if primary is None:
            return None

        related: Dict[str, Any] = {}
        located: Dict[str, Any] = {}

        for relation in RELATIONS[kind]:
            if relation.embedded and relation.embedded in primary:
                located[relation.name] = primary.get(relation.embedded)
                continue

            value = None
            if relation.foreign_key:
                source = located.get(relation.through) if relation.through else primary
                foreign_id = first_defined(source, relation.foreign_key) if isinstance(source, Mapping) else None
                if foreign_id is not None:
                    value = self.get_entity(relation.kind, foreign_id)
            elif relation.reverse_key and primary.get('id') is not None:
                value = self._reverse_lookup(relation, primary['id'])

            related[relation.name] = value
            located[relation.name] = value

        logger.info(f"Fetched {kind} {entity_id} with {len(related)} related lookups")
        return primary, related

    def _reverse_lookup(self, relation, primary_id: Any):
        params = {relation.reverse_key: primary_id}
        params.update(dict(relation.filters))
        matched = self._matching(relation.kind, params, relation.filters)
        if relation.many:
            return matched
        return matched[0] if matched else None

    def _matching(self, kind: str, params: Dict[str, Any], filters) -> List[Any]:
        """List ``kind`` by ``params``, keeping only records that match ``filters``."""
        records = self.list_entities(kind, **params)

        if not isinstance(records, list):
            logger.warning(f"Expected a list for {kind} by {params}, got {type(records).__name__}")
            return []

        # The backend may ignore filter parameters
        return [record for record in records if matches_filters(record, filters)]


# Singleton instance
portfolio_api = PortfolioAPIClient()
