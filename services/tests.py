# ===== SERVICES LAYER TEST SUITE =====
"""
Test suite for services layer functionality
File: services/tests.py

Test Coverage:
- Portfolio API client requests, envelopes and error mapping
- Related record gathering for cards
- Joined collections for list pages
- Service health and configuration checks
"""

from unittest.mock import Mock, call, patch

import requests
from django.test import SimpleTestCase, override_settings

from . import PortfolioAPIError, ServiceIntegrationError, check_service_health, validate_service_configuration
from .apps import check_required_services
from .portfolio_api import PortfolioAPIClient, matches_filters, unwrap


def mock_response(payload=None, status_code=200):
    response = Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.json.return_value = payload
    return response


API_SETTINGS = {
    'PORTFOLIO_API_BASE_URL': 'http://backend.test/',
    'PORTFOLIO_API_KEY': 'secret',
    'PORTFOLIO_API_TIMEOUT': 5,
}


# =============================================================================
# PORTFOLIO API CLIENT TESTS
# =============================================================================

@override_settings(**API_SETTINGS)
class PortfolioAPIClientTest(SimpleTestCase):
    """Test the backend API client against a mocked transport"""

    def setUp(self):
        self.api_client = PortfolioAPIClient()

    @patch('services.portfolio_api.requests.get')
    def test_get_entity(self, mock_get):
        """Test a record is fetched from the collection URL and unwrapped"""
        mock_get.return_value = mock_response({'item': {'id': 12, 'unit_number': '4B'}})

        record = self.api_client.get_entity('unit', 12)

        self.assertEqual(record, {'id': 12, 'unit_number': '4B'})
        mock_get.assert_called_once_with(
            'http://backend.test/api/portfolio/units/12',
            params=None,
            headers={'Accept': 'application/json', 'x-api-key': 'secret'},
            timeout=5,
        )

    @patch('services.portfolio_api.requests.get')
    def test_get_entity_not_found(self, mock_get):
        """Test a 404 is reported as a missing record, not an error"""
        mock_get.return_value = mock_response(status_code=404)
        self.assertIsNone(self.api_client.get_entity('lease', 999))

    @patch('services.portfolio_api.requests.get')
    def test_server_error(self, mock_get):
        mock_get.return_value = mock_response(status_code=500)

        with self.assertRaises(PortfolioAPIError) as ctx:
            self.api_client.get_entity('owner', 7)

        self.assertEqual(ctx.exception.status_code, 500)
        self.assertTrue(ctx.exception.retryable)
        self.assertIsInstance(ctx.exception, ServiceIntegrationError)

    @patch('services.portfolio_api.requests.get')
    def test_network_errors(self, mock_get):
        """Test timeouts and connection failures become PortfolioAPIError"""
        for error in (requests.Timeout('slow'), requests.ConnectionError('down')):
            mock_get.side_effect = error
            with self.assertRaises(PortfolioAPIError) as ctx:
                self.api_client.list_entities('property')
            self.assertIsNone(ctx.exception.status_code)

    @patch('services.portfolio_api.requests.get')
    def test_invalid_json(self, mock_get):
        response = mock_response()
        response.json.side_effect = ValueError('Expecting value')
        mock_get.return_value = response

        with self.assertRaises(PortfolioAPIError):
            self.api_client.get_entity('tenant', 9)

    @patch('services.portfolio_api.requests.get')
    def test_list_entities_passes_filters(self, mock_get):
        mock_get.return_value = mock_response({'items': [{'id': 1}, {'id': 2}]})

        records = self.api_client.list_entities('lease', unit_id=12, status='active')

        self.assertEqual(records, [{'id': 1}, {'id': 2}])
        self.assertEqual(mock_get.call_args.kwargs['params'], {'unit_id': 12, 'status': 'active'})

    @override_settings(PORTFOLIO_API_KEY='')
    @patch('services.portfolio_api.requests.get')
    def test_no_api_key_header_when_unset(self, mock_get):
        mock_get.return_value = mock_response([])
        self.api_client.list_entities('owner')
        self.assertNotIn('x-api-key', mock_get.call_args.kwargs['headers'])

    @override_settings(PORTFOLIO_API_BASE_URL='')
    @patch('services.portfolio_api.requests.get')
    def test_unconfigured_base_url(self, mock_get):
        with self.assertRaises(PortfolioAPIError):
            self.api_client.get_entity('owner', 7)
        mock_get.assert_not_called()

    def test_explicit_configuration_wins(self):
        client = PortfolioAPIClient(base_url='http://other.test', api_key='k', timeout=1)
        self.assertEqual(client.base_url, 'http://other.test')
        self.assertEqual(client.api_key, 'k')
        self.assertEqual(client.timeout, 1)


class EnvelopeTest(SimpleTestCase):

    def test_unwrap(self):
        self.assertEqual(unwrap({'data': [1]}), [1])
        self.assertEqual(unwrap({'results': []}), [])
        self.assertEqual(unwrap({'id': 3}), {'id': 3})
        self.assertEqual(unwrap([{'id': 3}]), [{'id': 3}])

    def test_matches_filters_case_insensitive(self):
        filters = (('status', 'active'),)
        self.assertTrue(matches_filters({'status': 'ACTIVE'}, filters))
        self.assertFalse(matches_filters({'status': 'ended'}, filters))
        self.assertFalse(matches_filters({}, filters))
        self.assertFalse(matches_filters('garbage', filters))


# =============================================================================
# CARD RECORD GATHERING TESTS
# =============================================================================

class FetchCardRecordsTest(SimpleTestCase):
    """Test related records are gathered per relation descriptors"""

    def setUp(self):
        self.api_client = PortfolioAPIClient(base_url='http://backend.test')
        self.entities = {
            ('unit', 12): {'id': 12, 'unit_number': '4B', 'property_id': 3},
            ('property', 3): {'id': 3, 'display_name': 'Maple Court'},
            ('tenant', 9): {'id': 9, 'display_name': 'Ana Ruiz'},
        }
        self.leases = [
            {'id': 40, 'status': 'ENDED', 'primary_tenant_id': 8},
            {'id': 55, 'status': 'ACTIVE', 'primary_tenant_id': 9},
        ]

        get_patcher = patch.object(self.api_client, 'get_entity',
                                   side_effect=lambda kind, entity_id: self.entities.get((kind, entity_id)))
        list_patcher = patch.object(self.api_client, 'list_entities', side_effect=lambda kind, **filters: self.leases)
        self.get_entity = get_patcher.start()
        self.list_entities = list_patcher.start()
        self.addCleanup(get_patcher.stop)
        self.addCleanup(list_patcher.stop)

    def test_unit_card_records(self):
        primary, related = self.api_client.fetch_card_records('unit', 12)

        self.assertEqual(primary['unit_number'], '4B')
        self.assertEqual(related['property']['display_name'], 'Maple Court')
        self.assertEqual(related['active_lease']['id'], 55)
        self.assertEqual(related['tenant']['id'], 9)
        self.list_entities.assert_called_once_with('lease', unit_id=12, status='active')
        self.get_entity.assert_has_calls([call('unit', 12), call('property', 3), call('tenant', 9)])

    def test_vacant_unit(self):
        """Test no tenant is fetched when the unit has no active lease"""
        self.leases = [{'id': 40, 'status': 'ended'}]

        primary, related = self.api_client.fetch_card_records('unit', 12)

        self.assertIsNone(related['active_lease'])
        self.assertIsNone(related['tenant'])
        self.assertNotIn(call('tenant', 9), self.get_entity.call_args_list)

    def test_embedded_relation_not_fetched(self):
        self.entities[('unit', 12)]['property'] = {'id': 3, 'display_name': 'Maple Court'}

        primary, related = self.api_client.fetch_card_records('unit', 12)

        self.assertNotIn('property', related)
        self.assertNotIn(call('property', 3), self.get_entity.call_args_list)

    def test_many_relation_keeps_all_matches(self):
        self.entities[('property', 3)]['owner_id'] = None
        self.leases = [{'id': i, 'status': 'active'} for i in range(7)]

        primary, related = self.api_client.fetch_card_records('property', 3)

        self.assertIsNone(related['owner'])
        self.assertEqual(len(related['units']), 7)
        self.assertEqual(len(related['active_leases']), 7)

    def test_non_list_reverse_payload(self):
        self.leases = {'error': 'unexpected'}

        with self.assertLogs('services.portfolio_api', level='WARNING'):
            primary, related = self.api_client.fetch_card_records('unit', 12)

        self.assertIsNone(related['active_lease'])

    def test_primary_not_found(self):
        self.assertIsNone(self.api_client.fetch_card_records('unit', 404))
        self.list_entities.assert_not_called()


class FetchListRecordsTest(SimpleTestCase):
    """Test list pages fetch the collections they are joined against"""

    def setUp(self):
        self.api_client = PortfolioAPIClient(base_url='http://backend.test')
        self.collections = {
            'unit': [{'id': 12, 'property_id': 3}],
            'property': [{'id': 3, 'display_name': 'Maple Court'}],
            'lease': [{'id': 55, 'status': 'active', 'unit_id': 12}, {'id': 40, 'status': 'ended', 'unit_id': 12}],
        }

        patcher = patch.object(self.api_client, 'list_entities',
                               side_effect=lambda kind, **filters: self.collections.get(kind, []))
        self.list_entities = patcher.start()
        self.addCleanup(patcher.stop)

    def test_unit_list_lookups(self):
        records, lookups = self.api_client.fetch_list_records('unit', property_id=3)

        self.assertEqual(records, [{'id': 12, 'property_id': 3}])
        self.assertEqual(lookups['property'], [{'id': 3, 'display_name': 'Maple Court'}])
        self.assertEqual([lease['id'] for lease in lookups['lease']], [55])
        self.assertEqual(self.list_entities.call_args_list, [
            call('unit', property_id=3),
            call('property'),
            call('lease', status='active'),
        ])

    def test_empty_list_skips_lookups(self):
        self.collections['unit'] = []

        records, lookups = self.api_client.fetch_list_records('unit')

        self.assertEqual((records, lookups), ([], {}))
        self.list_entities.assert_called_once_with('unit')

    def test_non_list_payload_skips_lookups(self):
        self.collections['owner'] = {'error': 'unexpected'}

        records, lookups = self.api_client.fetch_list_records('owner')

        self.assertEqual(records, {'error': 'unexpected'})
        self.assertEqual(lookups, {})


# =============================================================================
# HEALTH AND CONFIGURATION TESTS
# =============================================================================

class ServiceConfigurationTest(SimpleTestCase):

    @override_settings(**API_SETTINGS)
    def test_health_reports_configuration(self):
        health = check_service_health()['portfolio_api']
        self.assertTrue(health['configured'])
        self.assertTrue(health['api_key_configured'])
        self.assertEqual(health['timeout'], 5)

    @override_settings(**API_SETTINGS)
    def test_valid_configuration(self):
        self.assertEqual(validate_service_configuration(), (True, []))
        self.assertEqual(check_required_services(None), [])

    @override_settings(PORTFOLIO_API_BASE_URL='', PORTFOLIO_API_TIMEOUT=0)
    def test_invalid_configuration(self):
        is_valid, errors = validate_service_configuration()

        self.assertFalse(is_valid)
        self.assertIn("PORTFOLIO_API_BASE_URL not configured in settings", errors)
        self.assertIn("PORTFOLIO_API_TIMEOUT must be a positive number", errors)

        warnings = check_required_services(None)
        self.assertEqual({warning.id for warning in warnings}, {'services.W001'})
