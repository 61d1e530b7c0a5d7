"""
Static per-kind configuration for the portfolio layer.

Everything the card composer and the list pages need to know about an entity
kind is declared here as data: hero KPIs, details fields, list row fields and
their columns, relation descriptors and link label chains. Nothing in this
module is mutated at runtime.

Field paths follow the backend API's field names, with fallback chains where
the backend has shipped more than one spelling of the same value.
"""

from .formatting import BOOLEAN, COUNT, DATE, FORMAT_HINTS, MONEY, MONEY_CENTS, PERCENT
from .projection import FieldDescriptor
from .relations import LinkLabel, RelationDescriptor
from .tables import ColumnDescriptor


# =============================================================================
# ENTITY KINDS
# =============================================================================

OWNER = 'owner'
PROPERTY = 'property'
UNIT = 'unit'
TENANT = 'tenant'
LEASE = 'lease'

ENTITY_KINDS = (OWNER, PROPERTY, UNIT, TENANT, LEASE)

# Collection names as used by the backend API and our list endpoints
COLLECTIONS = {
    OWNER: 'owners',
    PROPERTY: 'properties',
    UNIT: 'units',
    TENANT: 'tenants',
    LEASE: 'leases',
}

KIND_BY_COLLECTION = {collection: kind for kind, collection in COLLECTIONS.items()}

ACTIVE = (('status', 'active'),)

ID_FIELD = FieldDescriptor('id', ('id',), 'ID', required=True)

OWNER_NAME = ('display_name', 'company_name', 'full_name', 'first_name+last_name')
TENANT_NAME = ('display_name', 'full_name', 'first_name+last_name')

# Values filled in by portfolio.joins are nested under this key
JOINED = 'joined'


# =============================================================================
# LINK LABELS
# =============================================================================

LINK_LABELS = {
    OWNER: LinkLabel(OWNER_NAME),
    PROPERTY: LinkLabel(('display_name', 'street_1')),
    UNIT: LinkLabel(('unit_number',), 'Unit {}'),
    TENANT: LinkLabel(TENANT_NAME),
    LEASE: LinkLabel(('doorloop_id', 'id'), 'Lease {}'),
}


# =============================================================================
# HERO / KPI STRIP
# =============================================================================

HERO_FIELDS = {
    OWNER: (
        FieldDescriptor('portfolio_units', ('portfolio_units', 'unitCount'), 'Portfolio Units', hint=COUNT),
        FieldDescriptor('active_leases', ('active_leases', 'activeLeases'), 'Active Leases', hint=COUNT),
        FieldDescriptor('occupancy', ('occupancy_pct', 'occupancyPct'), 'Occupancy', hint=PERCENT),
        FieldDescriptor('avg_rent', ('avg_rent_cents', 'avgrent_cents'), 'Avg. Rent', hint=MONEY_CENTS),
    ),
    PROPERTY: (
        FieldDescriptor('units', ('unit_count', 'kpis.units'), 'Units', hint=COUNT),
        FieldDescriptor('active_leases', ('active_leases', 'kpis.activeLeases'), 'Active Leases', hint=COUNT),
        FieldDescriptor('occupancy', ('occupancy_pct', 'kpis.occupancyPct'), 'Occupancy', hint=PERCENT),
        FieldDescriptor('avg_rent', ('avg_rent_cents', 'kpis.avgRentCents'), 'Avg Rent', hint=MONEY_CENTS),
    ),
    UNIT: (
        FieldDescriptor('status', ('status', 'lease_status'), 'Status'),
        FieldDescriptor('market_rent', ('market_rent_cents', 'rent_cents'), 'Market Rent', hint=MONEY_CENTS),
        FieldDescriptor('beds', ('beds',), 'Beds', hint=COUNT),
        FieldDescriptor('baths', ('baths',), 'Baths', hint=COUNT),
        FieldDescriptor('sq_ft', ('sq_ft', 'sqft'), 'Sq Ft', hint=COUNT),
    ),
    TENANT: (
        FieldDescriptor('active_leases', ('active_leases', 'activeLeases'), 'Active Leases', hint=COUNT),
        FieldDescriptor('balance', ('current_balance', 'balance'), 'Current Balance', required=True, hint=MONEY),
        FieldDescriptor('on_time_rate', ('on_time_rate_pct', 'onTimeRate'), 'On-Time Rate', hint=PERCENT),
        FieldDescriptor('open_workorders', ('open_workorders', 'openWorkOrders'), 'Open Work Orders', hint=COUNT),
    ),
    LEASE: (
        FieldDescriptor('status', ('status',), 'Status'),
        FieldDescriptor('rent', ('rent_cents',), 'Rent', required=True, hint=MONEY_CENTS),
        FieldDescriptor('term', ('term',), 'Term'),
        FieldDescriptor('balance', ('balance_cents',), 'Balance', hint=MONEY_CENTS),
    ),
}


# =============================================================================
# DETAILS BLOCK
# =============================================================================

DETAIL_FIELDS = {
    OWNER: (
        ID_FIELD,
        FieldDescriptor('name', OWNER_NAME, 'Name'),
        FieldDescriptor('email', ('primary_email', 'email'), 'Email'),
        FieldDescriptor('phone', ('primary_phone', 'phone'), 'Phone'),
        FieldDescriptor('active', ('active',), 'Active', hint=BOOLEAN),
        FieldDescriptor('doorloop_id', ('doorloop_id',), 'DoorLoop ID'),
    ),
    PROPERTY: (
        ID_FIELD,
        FieldDescriptor('name', ('display_name', 'name'), 'Name'),
        FieldDescriptor('street', ('street_1', 'address.line1', 'address_street1'), 'Street'),
        FieldDescriptor('city', ('city', 'address_city', 'address.city'), 'City'),
        FieldDescriptor('state', ('state', 'address_state', 'address.state'), 'State'),
        FieldDescriptor('zip', ('zip', 'address_zip', 'address.zip'), 'ZIP'),
        FieldDescriptor('type', ('type',), 'Type'),
        FieldDescriptor('class', ('class',), 'Class'),
        FieldDescriptor('status', ('status',), 'Status'),
        FieldDescriptor('apn', ('apn',), 'APN'),
        FieldDescriptor('doorloop_id', ('doorloop_id',), 'DoorLoop ID'),
    ),
    UNIT: (
        ID_FIELD,
        FieldDescriptor('unit_number', ('unit_number', 'unit_label'), 'Unit'),
        FieldDescriptor('beds', ('beds',), 'Beds', hint=COUNT),
        FieldDescriptor('baths', ('baths',), 'Baths', hint=COUNT),
        FieldDescriptor('sq_ft', ('sq_ft', 'sqft'), 'Sq Ft', hint=COUNT),
        FieldDescriptor('status', ('status',), 'Status'),
        FieldDescriptor('doorloop_id', ('doorloop_id',), 'DoorLoop ID'),
    ),
    TENANT: (
        ID_FIELD,
        FieldDescriptor('name', TENANT_NAME, 'Name'),
        FieldDescriptor('email', ('primary_email', 'email'), 'Email'),
        FieldDescriptor('phone', ('primary_phone', 'phone'), 'Phone'),
        FieldDescriptor('status', ('status', 'type'), 'Status'),
        FieldDescriptor('doorloop_id', ('doorloop_id',), 'DoorLoop ID'),
    ),
    LEASE: (
        ID_FIELD,
        FieldDescriptor('status', ('status',), 'Status'),
        FieldDescriptor('start', ('start_date', 'start'), 'Start', hint=DATE),
        FieldDescriptor('end', ('end_date', 'end'), 'End', hint=DATE),
        FieldDescriptor('rent', ('rent_cents',), 'Rent', hint=MONEY_CENTS),
        FieldDescriptor('doorloop_id', ('doorloop_id',), 'DoorLoop ID'),
    ),
}


# =============================================================================
# RELATIONS
# =============================================================================

RELATIONS = {
    OWNER: (
        RelationDescriptor('properties', PROPERTY, embedded='properties', reverse_key='owner_id', many=True),
    ),
    PROPERTY: (
        RelationDescriptor('owner', OWNER, embedded='owner', foreign_key=('owner_id',)),
        RelationDescriptor('units', UNIT, reverse_key='property_id', many=True),
        RelationDescriptor('active_leases', LEASE, reverse_key='property_id', filters=ACTIVE, many=True),
    ),
    UNIT: (
        RelationDescriptor('property', PROPERTY, embedded='property', foreign_key=('property_id',)),
        RelationDescriptor('active_lease', LEASE, reverse_key='unit_id', filters=ACTIVE),
        RelationDescriptor('tenant', TENANT, foreign_key=('primary_tenant_id', 'tenant_id'), through='active_lease'),
    ),
    TENANT: (
        RelationDescriptor('active_lease', LEASE, reverse_key='tenant_id', filters=ACTIVE),
        RelationDescriptor('property', PROPERTY, foreign_key=('property_id',), through='active_lease'),
        RelationDescriptor('unit', UNIT, foreign_key=('unit_id',), through='active_lease'),
    ),
    LEASE: (
        RelationDescriptor('property', PROPERTY, embedded='property', foreign_key=('property_id',)),
        RelationDescriptor('unit', UNIT, embedded='unit', foreign_key=('unit_id',)),
        RelationDescriptor('tenant', TENANT, embedded='tenant', foreign_key=('primary_tenant_id', 'tenant_id')),
    ),
}


# =============================================================================
# LIST PAGES
# =============================================================================

# Row projection for each list page. Nested lookups happen here so the
# table renderer can read every column by its key directly.
ROW_FIELDS = {
    OWNER: (
        ID_FIELD,
        FieldDescriptor('name', OWNER_NAME, 'Owner'),
        FieldDescriptor('email', ('primary_email', 'email'), 'Email'),
        FieldDescriptor('phone', ('primary_phone', 'phone'), 'Phone'),
        FieldDescriptor('property_count', ('property_count', 'properties_count', 'joined.property_count'), 'Props',
                        hint=COUNT),
        FieldDescriptor('active', ('active',), 'Active', hint=BOOLEAN),
    ),
    PROPERTY: (
        ID_FIELD,
        FieldDescriptor('name', ('display_name', 'name', 'street_1'), 'Property'),
        FieldDescriptor('type', ('type',), 'Type'),
        FieldDescriptor('class', ('class',), 'Class'),
        FieldDescriptor('state', ('state', 'address_state'), 'State'),
        FieldDescriptor('city', ('city', 'address_city'), 'City'),
        FieldDescriptor('unit_count', ('unit_count', 'joined.unit_count'), 'Units', hint=COUNT),
        FieldDescriptor('occupancy', ('occupancy', 'occupancy_rate', 'joined.occupancy'), 'Occ%', hint=PERCENT),
        FieldDescriptor('active', ('active',), 'Active', hint=BOOLEAN),
    ),
    UNIT: (
        ID_FIELD,
        FieldDescriptor('property', ('property_name', 'property.display_name', 'property.street_1', 'joined.property_name'),
                        'Property'),
        FieldDescriptor('unit_number', ('unit_number', 'unit_label'), 'Unit'),
        FieldDescriptor('beds', ('beds',), 'Bd', hint=COUNT),
        FieldDescriptor('baths', ('baths',), 'Ba', hint=COUNT),
        FieldDescriptor('sq_ft', ('sq_ft', 'sqft'), 'SqFt', hint=COUNT),
        FieldDescriptor('status', ('status', 'joined.status'), 'Status'),
        FieldDescriptor('market_rent', ('market_rent_cents', 'rent_cents'), 'Market Rent', hint=MONEY_CENTS),
    ),
    TENANT: (
        ID_FIELD,
        FieldDescriptor('name', TENANT_NAME, 'Name'),
        FieldDescriptor('property', ('property_name', 'property.display_name', 'joined.property_name'), 'Property'),
        FieldDescriptor('unit', ('unit_number', 'unit.unit_number', 'joined.unit_label'), 'Unit'),
        FieldDescriptor('email', ('primary_email', 'email'), 'Email'),
        FieldDescriptor('phone', ('primary_phone', 'phone'), 'Phone'),
        FieldDescriptor('status', ('status', 'type'), 'Status'),
        FieldDescriptor('balance', ('current_balance', 'balance'), 'Balance', hint=MONEY),
    ),
    LEASE: (
        ID_FIELD,
        FieldDescriptor('tenant_names', ('tenant_names', 'tenant.display_name', 'joined.tenant_name'), 'Tenant(s)'),
        FieldDescriptor('property', ('property_name', 'property.display_name', 'property.street_1', 'joined.property_name'),
                        'Property'),
        FieldDescriptor('rent', ('rent_cents',), 'Rent', hint=MONEY_CENTS),
        FieldDescriptor('start', ('start_date', 'start'), 'Start', hint=DATE),
        FieldDescriptor('end', ('end_date', 'end'), 'End', hint=DATE),
        FieldDescriptor('status', ('status',), 'Status'),
    ),
}

# Collections each list page is joined against, with the filters to fetch them by
LIST_JOINS = {
    OWNER: ((PROPERTY, ()),),
    PROPERTY: ((UNIT, ()), (LEASE, ACTIVE)),
    UNIT: ((PROPERTY, ()), (LEASE, ACTIVE)),
    TENANT: ((LEASE, ACTIVE), (PROPERTY, ()), (UNIT, ())),
    LEASE: ((PROPERTY, ()), (TENANT, ())),
}

COLUMNS = {
    kind: tuple(
        ColumnDescriptor(descriptor.key, descriptor.label, descriptor.hint)
        for descriptor in fields
        if descriptor is not ID_FIELD
    )
    for kind, fields in ROW_FIELDS.items()
}


def validate_descriptors():
    """
    Check the configuration above for internal consistency.

    Returns:
        list of human readable problems; empty when the configuration is sound
    """
    problems = []
    tables = {
        'COLLECTIONS': COLLECTIONS,
        'LINK_LABELS': LINK_LABELS,
        'HERO_FIELDS': HERO_FIELDS,
        'DETAIL_FIELDS': DETAIL_FIELDS,
        'RELATIONS': RELATIONS,
        'ROW_FIELDS': ROW_FIELDS,
        'COLUMNS': COLUMNS,
        'LIST_JOINS': LIST_JOINS,
    }

    for kind in ENTITY_KINDS:
        for name, table in tables.items():
            if kind not in table:
                problems.append(f"{name} has no entry for '{kind}'")

        if not COLUMNS.get(kind):
            problems.append(f"COLUMNS for '{kind}' is empty")

        if ID_FIELD not in DETAIL_FIELDS.get(kind, ()):
            problems.append(f"DETAIL_FIELDS for '{kind}' does not require 'id'")

        seen = set()
        for relation in RELATIONS.get(kind, ()):
            if relation.kind not in ENTITY_KINDS:
                problems.append(f"Relation '{kind}.{relation.name}' points at unknown kind '{relation.kind}'")
            if relation.through and relation.through not in seen:
                problems.append(
                    f"Relation '{kind}.{relation.name}' reads through '{relation.through}', "
                    f"which is not declared before it"
                )
            if not (relation.embedded or relation.foreign_key or relation.reverse_key):
                problems.append(f"Relation '{kind}.{relation.name}' has no way to locate its records")
            seen.add(relation.name)

        for name, table in (('HERO_FIELDS', HERO_FIELDS), ('DETAIL_FIELDS', DETAIL_FIELDS), ('ROW_FIELDS', ROW_FIELDS)):
            for descriptor in table.get(kind, ()):
                if descriptor.hint is not None and descriptor.hint not in FORMAT_HINTS:
                    problems.append(f"{name} field '{kind}.{descriptor.key}' has unknown format hint '{descriptor.hint}'")

        for joined_kind, _filters in LIST_JOINS.get(kind, ()):
            if joined_kind not in ENTITY_KINDS:
                problems.append(f"LIST_JOINS for '{kind}' names unknown kind '{joined_kind}'")

    return problems
