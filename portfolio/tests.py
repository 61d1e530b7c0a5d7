# ===== PORTFOLIO APP TEST SUITE =====
"""
Test suite for portfolio app functionality
File: portfolio/tests.py

Test Coverage:
- Value contracts for required fields and arrays
- Field projection and fallback chains
- Display formatting of hero, details and table values
- Entity relation resolution and linked collections
- Table rendering, sorting and CSV export
- List page joins against related collections
- Card composition states (loading, loaded, error)
- API endpoints for list pages, cards and CSV export
"""

from unittest.mock import patch

from django.test import SimpleTestCase, override_settings
from rest_framework import status
from rest_framework.test import APISimpleTestCase

from services import PortfolioAPIError

from .apps import check_descriptors
from .composer import ERROR, LOADED, LOADING, build_rows, compose_card, render_list, resolve_linked
from .contracts import ContractViolation, require_array, require_field
from .descriptors import COLUMNS, DETAIL_FIELDS, ENTITY_KINDS, HERO_FIELDS, LINK_LABELS, validate_descriptors
from .formatting import BOOLEAN, COUNT, DATE, MONEY, MONEY_CENTS, PERCENT, PLACEHOLDER, display_or_placeholder, format_value
from .joins import JOINED, join_records
from .projection import FieldDescriptor, first_defined, joined_value, pick, project, resolve_path
from .relations import (
    LINKED_PREVIEW_LIMIT, LinkedCollection, RelationDescriptor, link_label, resolve_relation,
)
from .tables import EMPTY_MESSAGE, ColumnDescriptor, render_table, sort_rows, table_to_csv


# =============================================================================
# SAMPLE RECORDS
# =============================================================================

PROPERTY_RECORD = {
    'id': 3,
    'display_name': 'Maple Court',
    'street_1': '12 Maple St',
    'city': 'Albany',
    'state': 'NY',
    'type': 'Multifamily',
    'unit_count': 24,
    'occupancy': 91.6,
    'occupancy_pct': 91.6,
    'avg_rent_cents': 132550,
    'active': True,
    'owner_id': 7,
}

UNIT_RECORD = {
    'id': 12,
    'unit_number': '4B',
    'beds': 2,
    'baths': 1,
    'sq_ft': 850,
    'status': 'occupied',
    'market_rent_cents': 145000,
    'property_id': 3,
}

LEASE_RECORD = {
    'id': 55,
    'doorloop_id': 'DL-55',
    'status': 'active',
    'rent_cents': 145000,
    'start_date': '2024-01-05',
    'end_date': '2024-12-31',
    'unit_id': 12,
    'property_id': 3,
    'primary_tenant_id': 9,
}

TENANT_RECORD = {
    'id': 9,
    'display_name': 'Ana Ruiz',
    'primary_email': 'ana@example.com',
    'current_balance': 0,
}


def owner_with_properties(count):
    return {
        'id': 7,
        'display_name': 'Empire Holdings',
        'properties': [{'id': i, 'display_name': f'Building {i}'} for i in range(1, count + 1)],
    }


# =============================================================================
# VALUE CONTRACT TESTS
# =============================================================================

class ValueContractTest(SimpleTestCase):
    """Test required field and array contracts"""

    def test_require_field_passes_value_through(self):
        """Test a present value comes back unchanged"""
        self.assertEqual(require_field('APN-1', 'property.apn'), 'APN-1')

    def test_require_field_accepts_falsy_values(self):
        """Test 0, empty string and False are data, not missing"""
        for value in (0, '', False, []):
            self.assertIs(require_field(value, 'lease.rent_cents'), value)

    def test_require_field_rejects_none(self):
        """Test None raises a violation naming the exact path"""
        with self.assertRaises(ContractViolation) as ctx:
            require_field(None, 'property.apn')

        self.assertEqual(ctx.exception.path, 'property.apn')
        self.assertEqual(str(ctx.exception), '[CONTRACT] Missing required field: property.apn')

    def test_require_field_logs_warning(self):
        """Test violations are logged at warning level"""
        with self.assertLogs('portfolio.contracts', level='WARNING') as logs:
            with self.assertRaises(ContractViolation):
                require_field(None, 'tenant.current_balance')

        self.assertIn('tenant.current_balance', logs.output[0])

    def test_require_array_accepts_empty_list(self):
        """Test an empty list is a valid array"""
        self.assertEqual(require_array([], 'owner.properties'), [])

    def test_require_array_rejects_non_lists(self):
        """Test None and non-list values are violations"""
        for value in (None, {}, 'abc', 3):
            with self.assertRaises(ContractViolation) as ctx:
                require_array(value, 'owner.properties')
            self.assertEqual(ctx.exception.path, 'owner.properties')
            self.assertEqual(ctx.exception.message, '[CONTRACT] Expected array at: owner.properties')


# =============================================================================
# FIELD PROJECTION TESTS
# =============================================================================

class FieldProjectionTest(SimpleTestCase):
    """Test path resolution and first-match-wins projection"""

    def test_resolve_nested_path(self):
        """Test dot paths walk nested mappings"""
        record = {'address': {'geo': {'city': 'Albany'}}}
        self.assertEqual(resolve_path(record, 'address.geo.city'), 'Albany')

    def test_resolve_missing_intermediate(self):
        """Test a missing or non-mapping intermediate yields None"""
        self.assertIsNone(resolve_path({'address': None}, 'address.city'))
        self.assertIsNone(resolve_path({'address': 'flat'}, 'address.city'))
        self.assertIsNone(resolve_path({}, 'address.city'))
        self.assertIsNone(resolve_path(None, 'address'))

    def test_first_path_wins(self):
        """Test k=1: the first candidate wins when it resolves"""
        record = {'display_name': 'Maple Court', 'street_1': '12 Maple St'}
        result = pick(record, {'name': ('display_name', 'street_1')})
        self.assertEqual(result, {'name': 'Maple Court'})

    def test_last_path_wins_when_others_missing(self):
        """Test k=N: the last candidate wins when all earlier ones are missing"""
        record = {'display_name': None, 'address': {}, 'street_1': '12 Maple St'}
        result = pick(record, {'name': ('display_name', 'address.line1', 'street_1')})
        self.assertEqual(result, {'name': '12 Maple St'})

    def test_falsy_values_are_defined(self):
        """Test 0 is a defined value and stops the chain"""
        result = pick({'unit_count': 0, 'units': 12}, {'units': ('unit_count', 'units')})
        self.assertEqual(result, {'units': 0})

    def test_unresolved_keys_are_omitted(self):
        """Test keys with no resolving path are left out"""
        result = pick({'city': 'Albany'}, {'city': 'city', 'zip': ('zip', 'address.zip')})
        self.assertEqual(result, {'city': 'Albany'})
        self.assertNotIn('zip', result)

    def test_none_record_projects_empty(self):
        """Test a None record projects to an empty mapping"""
        self.assertEqual(pick(None, {'city': 'city'}), {})

    def test_projection_round_trip(self):
        """Test projected values equal resolving each descriptor's winning path"""
        descriptors = DETAIL_FIELDS['property']
        projected = project(PROPERTY_RECORD, descriptors)

        for descriptor in descriptors:
            expected = first_defined(PROPERTY_RECORD, descriptor.paths)
            if expected is None:
                self.assertNotIn(descriptor.key, projected)
            else:
                self.assertEqual(projected[descriptor.key], expected)

    def test_joined_name_path(self):
        """Test a + path joins the parts that are present"""
        self.assertEqual(resolve_path({'first_name': 'Ann', 'last_name': 'Lee'}, 'first_name+last_name'), 'Ann Lee')
        self.assertEqual(resolve_path({'first_name': 'Ann', 'last_name': ' '}, 'first_name+last_name'), 'Ann')
        self.assertIsNone(resolve_path({'first_name': ''}, 'first_name+last_name'))
        self.assertEqual(joined_value({'name': {'first': 'Ann'}}, ('name.first', 'name.last')), 'Ann')

    def test_joined_path_is_last_resort(self):
        record = {'full_name': 'Ann B. Lee', 'first_name': 'Ann', 'last_name': 'Lee'}
        self.assertEqual(first_defined(record, ('display_name', 'full_name', 'first_name+last_name')), 'Ann B. Lee')

    def test_field_descriptor_defaults(self):
        """Test a single path is coerced to a tuple and label is derived"""
        descriptor = FieldDescriptor('market_rent', 'market_rent_cents')
        self.assertEqual(descriptor.paths, ('market_rent_cents',))
        self.assertEqual(descriptor.label, 'Market Rent')
        self.assertFalse(descriptor.required)


# =============================================================================
# FORMATTING TESTS
# =============================================================================

class FormattingTest(SimpleTestCase):
    """Test display formatting by hint"""

    def test_money_cents(self):
        self.assertEqual(format_value(145000, MONEY_CENTS), '$1,450')
        self.assertEqual(format_value(132550, MONEY_CENTS), '$1,325.50')
        self.assertEqual(format_value(0, MONEY_CENTS), '$0')

    def test_money(self):
        self.assertEqual(format_value(-2500, MONEY), '-$2,500')
        self.assertEqual(format_value('250.5', MONEY), '$250.50')

    def test_percent_and_count(self):
        self.assertEqual(format_value(91.6, PERCENT), '92%')
        self.assertEqual(format_value(1234, COUNT), '1,234')

    def test_percent_rounds_half_up(self):
        self.assertEqual(format_value(2.5, PERCENT), '3%')
        self.assertEqual(format_value(0.5, PERCENT), '1%')
        self.assertEqual(format_value(1.49, PERCENT), '1%')

    def test_percent_beyond_decimal_precision(self):
        """Test very large values format instead of raising"""
        self.assertEqual(format_value(1e30, PERCENT), '1' + '0' * 30 + '%')

    def test_date(self):
        self.assertEqual(format_value('2024-01-05', DATE), 'Jan 5, 2024')
        self.assertEqual(format_value('not a date', DATE), 'not a date')

    def test_boolean(self):
        self.assertEqual(format_value(True, BOOLEAN), 'Yes')
        self.assertEqual(format_value(False), 'No')

    def test_value_not_matching_hint_falls_back_to_text(self):
        self.assertEqual(format_value('n/a', MONEY_CENTS), 'n/a')

    def test_placeholder_only_for_missing(self):
        """Test the placeholder glyph marks absence, never a zero"""
        self.assertEqual(display_or_placeholder(None), PLACEHOLDER)
        self.assertEqual(display_or_placeholder(''), PLACEHOLDER)
        self.assertEqual(display_or_placeholder(0, COUNT), '0')


# =============================================================================
# ENTITY RESOLVER TESTS
# =============================================================================

class EntityResolverTest(SimpleTestCase):
    """Test linked references, fallbacks and collections"""

    def test_link_labels_per_kind(self):
        """Test each kind labels through its fallback chain"""
        self.assertEqual(link_label('property', PROPERTY_RECORD, LINK_LABELS), 'Maple Court')
        self.assertEqual(link_label('unit', UNIT_RECORD, LINK_LABELS), 'Unit 4B')
        self.assertEqual(link_label('tenant', TENANT_RECORD, LINK_LABELS), 'Ana Ruiz')
        self.assertEqual(link_label('lease', LEASE_RECORD, LINK_LABELS), 'Lease DL-55')

    def test_link_label_fallbacks(self):
        """Test blank names fall through the chain, then to the id"""
        self.assertEqual(
            link_label('property', {'id': 3, 'display_name': ' ', 'street_1': '12 Maple St'}, LINK_LABELS),
            '12 Maple St',
        )
        self.assertEqual(link_label('lease', {'id': 55}, LINK_LABELS), 'Lease 55')
        self.assertEqual(link_label('tenant', {'id': 9}, LINK_LABELS), 'Tenant #9')
        self.assertEqual(link_label('owner', {'id': 3, 'first_name': 'Ann', 'last_name': 'Lee'}, LINK_LABELS), 'Ann Lee')
        self.assertEqual(link_label('tenant', {'id': 9, 'last_name': 'Ruiz'}, LINK_LABELS), 'Ruiz')
        self.assertIsNone(link_label('tenant', {}, LINK_LABELS))

    def test_unit_links(self):
        """Test a unit links its property and shows no lease or tenant when vacant"""
        linked = resolve_linked('unit', UNIT_RECORD, {'property': PROPERTY_RECORD, 'active_lease': None})
        by_name = {reference.relation: reference for reference in linked}

        self.assertEqual(by_name['property'].label, 'Maple Court')
        self.assertEqual(by_name['property'].href, '/card/property/3')

        self.assertEqual(by_name['active_lease'].label, 'No lease')
        self.assertIsNone(by_name['active_lease'].href)
        self.assertFalse(by_name['active_lease'].navigable)

        self.assertEqual(by_name['tenant'].label, 'No tenant')
        self.assertIsNone(by_name['tenant'].href)

    def test_relation_order_follows_descriptors(self):
        linked = resolve_linked('unit', UNIT_RECORD, {})
        self.assertEqual([reference.relation for reference in linked], ['property', 'active_lease', 'tenant'])

    def test_tenant_read_through_active_lease(self):
        """Test the unit's tenant comes from the active lease's tenant key"""
        related = {'property': PROPERTY_RECORD, 'active_lease': LEASE_RECORD, 'tenant': TENANT_RECORD}
        linked = resolve_linked('unit', UNIT_RECORD, related)

        self.assertEqual(linked[1].label, 'Lease DL-55')
        self.assertEqual(linked[1].href, '/card/lease/55')
        self.assertEqual(linked[2].label, 'Ana Ruiz')
        self.assertEqual(linked[2].href, '/card/tenant/9')

    def test_through_relation_without_source(self):
        """Test a tenant is not linked when there is no active lease to read it from"""
        related = {'active_lease': None, 'tenant': TENANT_RECORD}
        linked = resolve_linked('unit', UNIT_RECORD, related)
        self.assertEqual(linked[2].label, 'No tenant')

    def test_embedded_null_relation(self):
        """Test an embedded null wins over anything fetched"""
        record = dict(UNIT_RECORD, property=None)
        linked = resolve_linked('unit', record, {'property': PROPERTY_RECORD})
        self.assertEqual(linked[0].label, 'No property')
        self.assertIsNone(linked[0].href)

    def test_embedded_relation_present(self):
        record = dict(UNIT_RECORD, property={'id': 4, 'street_1': '9 Elm St'})
        linked = resolve_linked('unit', record, {})
        self.assertEqual(linked[0].label, '9 Elm St')
        self.assertEqual(linked[0].href, '/card/property/4')

    def test_missing_foreign_key(self):
        """Test an absent foreign key yields the fallback even if a record was supplied"""
        record = {key: value for key, value in LEASE_RECORD.items() if key != 'unit_id'}
        linked = resolve_linked('lease', record, {'unit': UNIT_RECORD})
        self.assertEqual(linked[1].label, 'No unit')
        self.assertIsNone(linked[1].href)

    def test_related_record_without_id_is_not_navigable(self):
        linked = resolve_linked('lease', LEASE_RECORD, {'tenant': {'display_name': 'Ana Ruiz'}})
        self.assertEqual(linked[2].label, 'Ana Ruiz')
        self.assertIsNone(linked[2].href)

    def test_malformed_related_record_degrades(self):
        """Test the resolver never raises on garbage related data"""
        linked = resolve_linked('lease', LEASE_RECORD, {'property': 'garbage', 'unit': 42})
        self.assertEqual(linked[0].label, 'No property')
        self.assertEqual(linked[1].label, 'No unit')

    def test_owner_properties_capped(self):
        """Test 7 linked properties render 5 in order with total 7"""
        collection = resolve_linked('owner', owner_with_properties(7))[0]

        self.assertIsInstance(collection, LinkedCollection)
        self.assertEqual(len(collection.items), LINKED_PREVIEW_LIMIT)
        self.assertEqual([item.href for item in collection.items],
                         [f'/card/property/{i}' for i in range(1, 6)])
        self.assertEqual(collection.items[0].label, 'Building 1')
        self.assertEqual(collection.total, 7)
        self.assertTrue(collection.truncated)

    def test_owner_properties_not_truncated(self):
        collection = resolve_linked('owner', owner_with_properties(3))[0]
        self.assertEqual(len(collection.items), 3)
        self.assertEqual(collection.total, 3)
        self.assertFalse(collection.truncated)

    def test_empty_collection(self):
        collection = resolve_linked('owner', owner_with_properties(0))[0]
        self.assertEqual(collection.items, [])
        self.assertEqual(collection.total, 0)
        self.assertEqual(collection.empty_label, 'No linked properties')

    def test_collection_non_list_is_empty(self):
        relation = RelationDescriptor('units', 'unit', reverse_key='property_id', many=True)
        collection = resolve_relation(relation, {'id': 1}, LINK_LABELS)
        self.assertEqual(collection.items, [])
        self.assertEqual(collection.total, 0)


# =============================================================================
# LIST RENDERER TESTS
# =============================================================================

class ListRendererTest(SimpleTestCase):
    """Test column-driven table rendering"""

    def setUp(self):
        self.columns = [
            ColumnDescriptor('name', 'Name'),
            ColumnDescriptor('units', 'Units', COUNT),
            ColumnDescriptor('rent', 'Rent', MONEY_CENTS),
        ]
        self.rows = [
            {'name': 'Maple Court', 'units': 24, 'rent': 145000},
            {'name': 'Elm House', 'units': 1200},
            {'name': 'Birch Row', 'rent': 99000},
        ]

    def test_empty_state(self):
        """Test zero rows render the fixed empty state, not a header-only table"""
        table = render_table(self.columns, [])

        self.assertTrue(table.empty)
        self.assertEqual(table.state, 'empty')
        self.assertEqual(table.message, EMPTY_MESSAGE)
        self.assertEqual(table.columns, [])
        self.assertEqual(table.rows, [])

    def test_preserves_row_and_column_order(self):
        table = render_table(self.columns, self.rows)

        self.assertEqual(table.state, 'rows')
        self.assertEqual([column.key for column in table.columns], ['name', 'units', 'rent'])
        self.assertEqual([row.cells[0] for row in table.rows], ['Maple Court', 'Elm House', 'Birch Row'])
        self.assertEqual(table.rows[0].cells, ['Maple Court', '24', '$1,450'])

    def test_missing_value_renders_empty_string(self):
        table = render_table(self.columns, self.rows)
        self.assertEqual(table.rows[1].cells, ['Elm House', '1,200', ''])
        self.assertEqual(table.rows[2].cells, ['Birch Row', '', '$990'])

    def test_no_nested_path_resolution(self):
        """Test column keys are read directly, never as dot paths"""
        table = render_table([ColumnDescriptor('property.name', 'Property')], [{'property': {'name': 'X'}}])
        self.assertEqual(table.rows[0].cells, [''])

    def test_row_href(self):
        table = render_table(self.columns, self.rows, row_href=lambda row: f"/card/property/{row['name']}")
        self.assertEqual(table.rows[0].href, '/card/property/Maple Court')

    def test_sort_numeric_with_missing_last(self):
        rows = [{'n': 10}, {'n': 2}, {}, {'n': 33}]
        self.assertEqual([row.get('n') for row in sort_rows(rows, 'n')], [2, 10, 33, None])
        self.assertEqual([row.get('n') for row in sort_rows(rows, 'n', descending=True)], [33, 10, 2, None])

    def test_sort_text_case_insensitive(self):
        rows = [{'name': 'b'}, {'name': 'A'}, {'name': 'c'}]
        self.assertEqual([row['name'] for row in sort_rows(rows, 'name')], ['A', 'b', 'c'])

    def test_table_to_csv(self):
        table = render_table(self.columns, self.rows[:1])
        lines = table_to_csv(table).splitlines()
        self.assertEqual(lines, ['Name,Units,Rent', 'Maple Court,24,"$1,450"'])

    def test_empty_table_to_csv(self):
        self.assertEqual(table_to_csv(render_table(self.columns, [])), '')


# =============================================================================
# CARD COMPOSER TESTS
# =============================================================================

class CardComposerTest(SimpleTestCase):
    """Test card composition states and contract enforcement"""

    def hero(self, result):
        return {item.key: item.value for item in result.card.hero}

    def details(self, result):
        return {item.key: item.value for item in result.card.details}

    def test_title_from_first_and_last_name(self):
        result = compose_card('owner', {'id': 3, 'first_name': 'Ann', 'last_name': 'Lee'})

        self.assertEqual(result.card.title, 'Ann Lee')
        self.assertEqual(self.details(result)['name'], 'Ann Lee')

    def test_loading_without_record(self):
        result = compose_card('unit', None)
        self.assertEqual(result.state, LOADING)
        self.assertIsNone(result.card)
        self.assertIsNone(result.violation)

    def test_lease_card(self):
        related = {'property': PROPERTY_RECORD, 'unit': UNIT_RECORD, 'tenant': TENANT_RECORD}
        result = compose_card('lease', LEASE_RECORD, related)

        self.assertEqual(result.state, LOADED)
        self.assertTrue(result.loaded)
        self.assertEqual(result.card.title, 'Lease DL-55')
        self.assertEqual(result.card.href, '/card/lease/55')
        self.assertEqual(self.hero(result)['rent'], '$1,450')
        self.assertEqual(self.hero(result)['term'], PLACEHOLDER)
        self.assertEqual(self.details(result)['start'], 'Jan 5, 2024')
        self.assertEqual(
            [(linked.label, linked.href) for linked in result.card.linked],
            [('Maple Court', '/card/property/3'), ('Unit 4B', '/card/unit/12'), ('Ana Ruiz', '/card/tenant/9')],
        )

    def test_required_rent_passes_through_zero(self):
        """Test a supplied zero rent is shown as zero, not rejected"""
        result = compose_card('lease', dict(LEASE_RECORD, rent_cents=0))
        self.assertEqual(result.state, LOADED)
        self.assertEqual(self.hero(result)['rent'], '$0')

    def test_missing_required_rent_is_error(self):
        """Test a missing required field puts the card in the error state"""
        record = {key: value for key, value in LEASE_RECORD.items() if key != 'rent_cents'}

        with self.assertLogs('portfolio', level='WARNING'):
            result = compose_card('lease', record)

        self.assertEqual(result.state, ERROR)
        self.assertIsNone(result.card)
        self.assertEqual(result.violation.path, 'lease.rent_cents')
        self.assertEqual(result.violation.message, '[CONTRACT] Missing required field: lease.rent_cents')

    def test_tenant_balance_fallback_and_contract(self):
        result = compose_card('tenant', {'id': 9, 'balance': 250.5})
        self.assertEqual(self.hero(result)['balance'], '$250.50')

        result = compose_card('tenant', TENANT_RECORD)
        self.assertEqual(self.hero(result)['balance'], '$0')

        result = compose_card('tenant', {'id': 9, 'display_name': 'Ana Ruiz'})
        self.assertEqual(result.state, ERROR)
        self.assertEqual(result.violation.path, 'tenant.current_balance')

    def test_missing_id_is_error(self):
        record = {key: value for key, value in UNIT_RECORD.items() if key != 'id'}
        result = compose_card('unit', record)
        self.assertEqual(result.state, ERROR)
        self.assertEqual(result.violation.path, 'unit.id')

    def test_optional_fields_use_placeholder(self):
        result = compose_card('unit', {'id': 12, 'unit_number': '4B'})
        self.assertEqual(result.state, LOADED)
        self.assertEqual(self.hero(result)['market_rent'], PLACEHOLDER)
        self.assertEqual(self.details(result)['sq_ft'], PLACEHOLDER)
        self.assertEqual(self.details(result)['unit_number'], '4B')

    def test_unit_card_without_lease(self):
        result = compose_card('unit', UNIT_RECORD, {'property': PROPERTY_RECORD, 'active_lease': None})
        lease = result.card.linked[1]
        self.assertEqual(lease.label, 'No lease')
        self.assertIsNone(lease.href)

    def test_owner_card_linked_properties(self):
        result = compose_card('owner', owner_with_properties(7))
        collection = result.card.linked[0]
        self.assertEqual(len(collection.items), 5)
        self.assertEqual(collection.total, 7)
        self.assertEqual(result.card.title, 'Empire Holdings')

    def test_unknown_kind(self):
        with self.assertRaises(ValueError):
            compose_card('widget', {'id': 1})


# =============================================================================
# LIST PAGE TESTS
# =============================================================================

class ListPageTest(SimpleTestCase):
    """Test list page projection, ordering and row links"""

    def test_property_rows(self):
        table = render_list('property', [PROPERTY_RECORD])

        self.assertEqual([column.header for column in table.columns],
                         ['Property', 'Type', 'Class', 'State', 'City', 'Units', 'Occ%', 'Active'])
        self.assertEqual(table.rows[0].cells,
                         ['Maple Court', 'Multifamily', '', 'NY', 'Albany', '24', '92%', 'Yes'])
        self.assertEqual(table.rows[0].href, '/card/property/3')

    def test_nested_values_pre_projected(self):
        rows = build_rows('unit', [{'id': 1, 'property': {'display_name': 'Maple Court'}, 'unit_label': '2A'}])
        self.assertEqual(rows[0]['property'], 'Maple Court')
        self.assertEqual(rows[0]['unit_number'], '2A')

    def test_empty_list(self):
        table = render_list('owner', [])
        self.assertTrue(table.empty)
        self.assertEqual(table.message, 'No results')

    def test_non_list_payload_is_violation(self):
        with self.assertRaises(ContractViolation) as ctx:
            render_list('property', {'error': 'oops'})
        self.assertEqual(ctx.exception.path, 'properties')

    def test_row_without_id_is_violation(self):
        with self.assertRaises(ContractViolation) as ctx:
            render_list('property', [PROPERTY_RECORD, {'display_name': 'No Id'}])
        self.assertEqual(ctx.exception.path, 'property.id')

    def test_ordering(self):
        records = [dict(PROPERTY_RECORD, id=i, unit_count=count) for i, count in ((1, 5), (2, 40), (3, 12))]

        table = render_list('property', records, ordering='-unit_count')
        self.assertEqual([row.href for row in table.rows],
                         ['/card/property/2', '/card/property/3', '/card/property/1'])

        table = render_list('property', records, ordering='not_a_column')
        self.assertEqual([row.href for row in table.rows],
                         ['/card/property/1', '/card/property/2', '/card/property/3'])


# =============================================================================
# LIST JOIN TESTS
# =============================================================================

class ListJoinTest(SimpleTestCase):
    """Test list columns filled from joined collections"""

    def test_unit_property_and_vacancy(self):
        lookups = {
            'property': [{'id': 9, 'display_name': 'Birch Row'}],
            'lease': [{'id': 70, 'status': 'active', 'unit_id': 2}],
        }
        records = [{'id': 1, 'property_id': 9, 'unit_number': '2A'}, {'id': 2, 'property_id': '9', 'unit_number': '2B'}]

        table = render_list('unit', records, lookups=lookups)

        self.assertEqual(table.rows[0].cells, ['Birch Row', '2A', '', '', '', 'vacant', ''])
        self.assertEqual(table.rows[1].cells, ['Birch Row', '2B', '', '', '', 'occupied', ''])

    def test_backend_values_win(self):
        lookups = {'property': [{'id': 9, 'display_name': 'Birch Row'}], 'lease': []}
        records = [{'id': 1, 'property_id': 9, 'property_name': 'Birch Row East', 'status': 'notice'}]

        rows = build_rows('unit', records, lookups)

        self.assertEqual(rows[0]['property'], 'Birch Row East')
        self.assertEqual(rows[0]['status'], 'notice')

    def test_no_lookups_leaves_columns_to_backend(self):
        rows = build_rows('unit', [{'id': 1, 'property_id': 9}])
        self.assertNotIn('property', rows[0])
        self.assertNotIn('status', rows[0])

    def test_lease_property_and_tenant(self):
        lookups = {'property': [PROPERTY_RECORD], 'tenant': [TENANT_RECORD]}
        records = [{'id': 55, 'rent_cents': 145000, 'property_id': 3, 'primary_tenant_id': 9}]

        rows = build_rows('lease', records, lookups)

        self.assertEqual(rows[0]['property'], 'Maple Court')
        self.assertEqual(rows[0]['tenant_names'], 'Ana Ruiz')

    def test_tenant_property_and_unit_through_active_lease(self):
        lookups = {
            'lease': [{'id': 55, 'status': 'active', 'primary_tenant_id': 9, 'unit_id': 12}],
            'property': [PROPERTY_RECORD],
            'unit': [UNIT_RECORD],
        }
        records = [{'id': 9, 'first_name': 'Ana', 'last_name': 'Ruiz'}, {'id': 10, 'display_name': 'No Lease'}]

        rows = build_rows('tenant', records, lookups)

        self.assertEqual(rows[0]['name'], 'Ana Ruiz')
        self.assertEqual(rows[0]['property'], 'Maple Court')
        self.assertEqual(rows[0]['unit'], '4B')
        self.assertNotIn('property', rows[1])
        self.assertNotIn('unit', rows[1])

    def test_owner_property_count(self):
        lookups = {'property': [{'id': 1, 'owner_id': 7}, {'id': 2, 'owner_id': 7}, {'id': 3, 'owner_id': 8}]}
        records = [{'id': 7, 'company_name': 'Empire Holdings'}, {'id': 6, 'first_name': 'Ann', 'last_name': 'Lee'}]

        table = render_list('owner', records, ordering='-property_count', lookups=lookups)

        self.assertEqual([row.cells[0] for row in table.rows], ['Empire Holdings', 'Ann Lee'])
        self.assertEqual([row.cells[3] for row in table.rows], ['2', '0'])

    def test_property_units_and_occupancy(self):
        lookups = {
            'unit': [{'id': i, 'property_id': 3} for i in range(4)],
            'lease': [{'id': i, 'status': 'active', 'property_id': 3} for i in range(3)],
        }
        record = {'id': 3, 'display_name': 'Maple Court'}

        rows = build_rows('property', [record], lookups)

        self.assertEqual(rows[0]['unit_count'], 4)
        self.assertEqual(rows[0]['occupancy'], 75)

    def test_join_copies_records(self):
        record = {'id': 7}
        joined = join_records('owner', [record, 'junk'], {'property': []})

        self.assertEqual(joined[0], {'id': 7, JOINED: {'property_count': 0}})
        self.assertEqual(joined[1], 'junk')
        self.assertNotIn(JOINED, record)

    def test_non_list_lookup_is_ignored(self):
        with self.assertLogs('portfolio.joins', level='WARNING'):
            rows = build_rows('owner', [{'id': 7}], {'property': {'error': 'oops'}})
        self.assertNotIn('property_count', rows[0])

    def test_non_mapping_row_still_violates(self):
        with self.assertRaises(ContractViolation) as ctx:
            build_rows('owner', ['junk'], {'property': []})
        self.assertEqual(ctx.exception.path, 'owner.id')


# =============================================================================
# DESCRIPTOR CONFIGURATION TESTS
# =============================================================================

class DescriptorConfigurationTest(SimpleTestCase):

    def test_descriptors_are_consistent(self):
        self.assertEqual(validate_descriptors(), [])
        self.assertEqual(check_descriptors(None), [])

    def test_unknown_format_hint_reported(self):
        bad = (FieldDescriptor('beds', ('beds',), 'Beds', hint='currency'),)
        with patch.dict(HERO_FIELDS, {'unit': bad}):
            problems = validate_descriptors()
        self.assertEqual(problems, ["HERO_FIELDS field 'unit.beds' has unknown format hint 'currency'"])

    def test_every_kind_has_columns(self):
        for kind in ENTITY_KINDS:
            self.assertTrue(COLUMNS[kind])
            self.assertNotIn('id', [column.key for column in COLUMNS[kind]])


# =============================================================================
# API ENDPOINT TESTS
# =============================================================================

@override_settings(SECURE_SSL_REDIRECT=False)
class PortfolioAPITest(APISimpleTestCase):
    """Test portfolio endpoints with the backend API client mocked"""

    def setUp(self):
        patcher = patch('portfolio.views.portfolio_api')
        self.api = patcher.start()
        self.addCleanup(patcher.stop)

    def test_list_properties(self):
        self.api.fetch_list_records.return_value = ([PROPERTY_RECORD], {})

        response = self.client.get('/api/v1/portfolio/properties/', {'state': 'NY', 'ordering': 'name'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['state'], 'rows')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['rows'][0]['href'], '/card/property/3')
        self.assertEqual(response.data['columns'][0]['header'], 'Property')
        self.api.fetch_list_records.assert_called_once_with('property', state='NY')

    def test_list_empty(self):
        self.api.fetch_list_records.return_value = ([], {})

        response = self.client.get('/api/v1/portfolio/owners/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['state'], 'empty')
        self.assertEqual(response.data['message'], 'No results')
        self.assertEqual(response.data['columns'], [])

    def test_list_contract_violation(self):
        self.api.fetch_list_records.return_value = ([{'display_name': 'No Id'}], {})

        response = self.client.get('/api/v1/portfolio/properties/')

        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertEqual(response.data, {
            'state': 'error',
            'path': 'property.id',
            'message': '[CONTRACT] Missing required field: property.id',
        })

    def test_transport_failure(self):
        self.api.fetch_list_records.side_effect = PortfolioAPIError('boom', status_code=502)

        response = self.client.get('/api/v1/portfolio/leases/')

        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(response.data['error'], 'could_not_load')
        self.assertTrue(response.data['retryable'])
        self.assertEqual(response.data['upstream_status'], 502)

    def test_card(self):
        self.api.fetch_card_records.return_value = (
            LEASE_RECORD,
            {'property': PROPERTY_RECORD, 'unit': UNIT_RECORD, 'tenant': TENANT_RECORD},
        )

        response = self.client.get('/api/v1/portfolio/leases/55/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['state'], 'loaded')
        self.assertIsNone(response.data['error'])
        card = response.data['card']
        self.assertEqual(card['title'], 'Lease DL-55')
        self.assertEqual(card['linked'][2]['label'], 'Ana Ruiz')
        self.assertFalse(card['linked'][2]['many'])
        self.api.fetch_card_records.assert_called_once_with('lease', '55')

    def test_card_linked_collection(self):
        self.api.fetch_card_records.return_value = (owner_with_properties(7), {})

        response = self.client.get('/api/v1/portfolio/owners/7/')

        collection = response.data['card']['linked'][0]
        self.assertTrue(collection['many'])
        self.assertEqual(len(collection['items']), 5)
        self.assertEqual(collection['total'], 7)
        self.assertTrue(collection['truncated'])

    def test_card_not_found(self):
        self.api.fetch_card_records.return_value = None

        response = self.client.get('/api/v1/portfolio/units/999/')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_card_contract_violation(self):
        record = {key: value for key, value in LEASE_RECORD.items() if key != 'rent_cents'}
        self.api.fetch_card_records.return_value = (record, {})

        response = self.client.get('/api/v1/portfolio/leases/55/')

        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertEqual(response.data['state'], 'error')
        self.assertIsNone(response.data['card'])
        self.assertEqual(response.data['error']['path'], 'lease.rent_cents')

    def test_export_csv(self):
        self.api.fetch_list_records.return_value = (
            [{'id': 7, 'display_name': 'Empire Holdings', 'email': 'ops@empire.test', 'active': True}],
            {'property': [{'id': 3, 'owner_id': 7}, {'id': 4, 'owner_id': 7}, {'id': 5, 'owner_id': 8}]},
        )

        response = self.client.get('/api/v1/portfolio/owners/export/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'text/csv')
        self.assertIn('owners.csv', response['Content-Disposition'])
        lines = response.content.decode().splitlines()
        self.assertEqual(lines[0], 'Owner,Email,Phone,Props,Active')
        self.assertEqual(lines[1], 'Empire Holdings,ops@empire.test,,2,Yes')

    def test_unknown_collection(self):
        response = self.client.get('/api/v1/portfolio/widgets/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


@override_settings(SECURE_SSL_REDIRECT=False, PORTFOLIO_API_BASE_URL='http://backend.test')
class UtilityEndpointTest(APISimpleTestCase):

    def test_health(self):
        response = self.client.get('/api/v1/health/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()['status'], 'healthy')

    @override_settings(PORTFOLIO_API_BASE_URL='')
    def test_health_degraded_without_backend(self):
        response = self.client.get('/api/v1/health/')
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(response.json()['status'], 'degraded')

    def test_info(self):
        response = self.client.get('/api/v1/info/')
        endpoints = response.json()['endpoints']['portfolio']
        self.assertEqual(endpoints['owners']['card'], '/api/v1/portfolio/owners/{id}/')
