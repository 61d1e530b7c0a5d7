"""
List page joins.

Backend list endpoints return flat records that reference each other by
foreign id. A list page fills the columns those records leave out (property
names, unit occupancy, owner property counts and so on) by joining against
the collections named in LIST_JOINS, fetched alongside the page's records.

Joined values are nested under JOINED on a copy of each record, and the row
field chains read them last, so a value the backend does send always wins.
A join only runs when its collection was fetched; a missing lookup leaves the
column to the backend's own fields.
"""

import logging
from collections import Counter
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .descriptors import JOINED, LEASE, LINK_LABELS, OWNER, PROPERTY, TENANT, UNIT
from .projection import first_defined
from .relations import link_label

logger = logging.getLogger(__name__)

OCCUPIED = 'occupied'
VACANT = 'vacant'

LEASE_TENANT_KEY = ('primary_tenant_id', 'tenant_id')


def _key(value: Any) -> Optional[str]:
    # Backends mix integer and string ids between collections
    return None if value is None else str(value)


def _records(lookups: Mapping[str, Any], kind: str) -> Optional[List[Mapping[str, Any]]]:
    records = lookups.get(kind)
    if records is None:
        return None
    if not isinstance(records, list):
        logger.warning(f"Ignoring {kind} join: expected a list, got {type(records).__name__}")
        return None
    return [record for record in records if isinstance(record, Mapping)]


def index_by_id(records: Iterable[Mapping[str, Any]]) -> Dict[str, Mapping[str, Any]]:
    """Records keyed by id; later duplicates do not replace earlier ones."""
    index: Dict[str, Mapping[str, Any]] = {}
    for record in records:
        key = _key(record.get('id'))
        if key is not None:
            index.setdefault(key, record)
    return index


def index_by(records: Iterable[Mapping[str, Any]], paths) -> Dict[str, Mapping[str, Any]]:
    """First record per foreign id read through ``paths``."""
    index: Dict[str, Mapping[str, Any]] = {}
    for record in records:
        key = _key(first_defined(record, paths))
        if key is not None:
            index.setdefault(key, record)
    return index


def count_by(records: Iterable[Mapping[str, Any]], paths) -> Counter:
    return Counter(
        key for key in (_key(first_defined(record, paths)) for record in records) if key is not None
    )


def _label(kind: str, index: Mapping[str, Mapping[str, Any]], foreign_id: Any) -> Optional[str]:
    record = index.get(_key(foreign_id))
    if record is None:
        return None
    return link_label(kind, record, LINK_LABELS)


# =============================================================================
# PER-KIND JOINS
# =============================================================================

def _join_owners(records, lookups):
    properties = _records(lookups, PROPERTY)
    if properties is None:
        return [{} for _ in records]

    counts = count_by(properties, ('owner_id',))
    return [{'property_count': counts.get(_key(record.get('id')), 0)} for record in records]


def _join_properties(records, lookups):
    units = _records(lookups, UNIT)
    leases = _records(lookups, LEASE)
    unit_counts = count_by(units or [], ('property_id',))
    lease_counts = count_by(leases or [], ('property_id',))

    joined = []
    for record in records:
        values: Dict[str, Any] = {}
        key = _key(record.get('id'))
        if units is not None:
            values['unit_count'] = unit_counts.get(key, 0)
            if leases is not None and unit_counts.get(key):
                values['occupancy'] = lease_counts.get(key, 0) * 100 / unit_counts[key]
        joined.append(values)
    return joined


def _join_units(records, lookups):
    properties = _records(lookups, PROPERTY)
    leases = _records(lookups, LEASE)
    property_index = index_by_id(properties or [])
    leased_units = set(count_by(leases or [], ('unit_id',)))

    joined = []
    for record in records:
        values: Dict[str, Any] = {}
        if properties is not None:
            name = _label(PROPERTY, property_index, record.get('property_id'))
            if name is not None:
                values['property_name'] = name
        if leases is not None:
            values['status'] = OCCUPIED if _key(record.get('id')) in leased_units else VACANT
        joined.append(values)
    return joined


def _join_tenants(records, lookups):
    leases = _records(lookups, LEASE)
    if leases is None:
        return [{} for _ in records]

    lease_by_tenant = index_by(leases, LEASE_TENANT_KEY)
    property_index = index_by_id(_records(lookups, PROPERTY) or [])
    unit_index = index_by_id(_records(lookups, UNIT) or [])

    joined = []
    for record in records:
        values: Dict[str, Any] = {}
        lease = lease_by_tenant.get(_key(record.get('id')))
        if lease is not None:
            unit = unit_index.get(_key(lease.get('unit_id')))
            property_id = first_defined(lease, ('property_id',))
            if property_id is None and unit is not None:
                property_id = unit.get('property_id')

            name = _label(PROPERTY, property_index, property_id)
            if name is not None:
                values['property_name'] = name
            unit_label = first_defined(unit, ('unit_number', 'unit_label')) if unit is not None else None
            if unit_label is not None:
                values['unit_label'] = unit_label
        joined.append(values)
    return joined


def _join_leases(records, lookups):
    property_index = index_by_id(_records(lookups, PROPERTY) or [])
    tenant_index = index_by_id(_records(lookups, TENANT) or [])

    joined = []
    for record in records:
        values: Dict[str, Any] = {}
        name = _label(PROPERTY, property_index, record.get('property_id'))
        if name is not None:
            values['property_name'] = name
        tenant = _label(TENANT, tenant_index, first_defined(record, LEASE_TENANT_KEY))
        if tenant is not None:
            values['tenant_name'] = tenant
        joined.append(values)
    return joined


JOINERS = {
    OWNER: _join_owners,
    PROPERTY: _join_properties,
    UNIT: _join_units,
    TENANT: _join_tenants,
    LEASE: _join_leases,
}


def join_records(kind: str, records: List[Any], lookups: Optional[Mapping[str, Any]] = None) -> List[Any]:
    """
    Attach joined values to each list record of ``kind``.

    Args:
        kind: entity kind of the list page
        records: the page's records, already checked to be a list
        lookups: fetched collections keyed by entity kind

    Returns:
        a new list; mapping records are copied with a JOINED entry, anything
        else is passed through for the row contract to reject
    """
    if not lookups:
        return records

    mappings = [record for record in records if isinstance(record, Mapping)]
    joined = iter(JOINERS[kind](mappings, lookups))

    out = []
    for record in records:
        if isinstance(record, Mapping):
            out.append(dict(record, **{JOINED: next(joined)}))
        else:
            out.append(record)
    return out
