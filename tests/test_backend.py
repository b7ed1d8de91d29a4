"""
Tests for BankMock Backend

Tests the execute contract end to end including:
- Scenario activation and scoping
- First-match scan order
- Match counters
- Response delays
- Error kinds for configuration, no-match and storage failures
"""

import json
import logging
import threading
import time
from unittest.mock import patch

import pytest

from bankmock import (
    Backend,
    ConfigurationError,
    CreateMockRequest,
    CreateMockResponse,
    CreateScenario,
    ErrorKind,
    HttpRequest,
    HttpResponse,
    MockBackend,
    MockBackendConfig,
    NoMatchError,
    ScenarioNotFoundError,
    StorageError,
)


class TestHttpTypes:
    """Test HttpRequest and HttpResponse."""

    def test_request_normalizes_method_and_body(self):
        request = HttpRequest('post', 'https://api.example.com/a', body=b'{"a": 1}')
        assert request.method == 'POST'
        assert request.body == '{"a": 1}'
        assert request.headers == {}

    def test_response_helpers(self):
        assert HttpResponse.ok('x').status == 200
        assert HttpResponse.created('x').status == 201
        assert HttpResponse.no_content().body == ''
        assert HttpResponse.error(502, 'bad gateway').is_success is False
        assert HttpResponse(status=200, body='{"a": [1]}').json() == {'a': [1]}


class TestExecute:
    """Test answering calls from the active scenario."""

    def test_get_happy_path(self, accounts_backend):
        response = accounts_backend.get('https://sandbox.plaid.com/accounts/42')

        assert response.status == 200
        assert response.json() == {'id': 'acc_1', 'balance': 100}
        assert response.headers == {'Content-Type': 'application/json'}

    def test_post_with_body_pattern(self, accounts_backend):
        response = accounts_backend.post('https://api.example.com/transfers', {'type': 'debit', 'amount': 5})
        assert response.status == 201
        assert response.body == '{"id": "t1"}'

    def test_post_body_mismatch(self, accounts_backend):
        with pytest.raises(NoMatchError):
            accounts_backend.post('https://api.example.com/transfers', {'type': 'credit'})

    def test_method_must_match(self, accounts_backend):
        with pytest.raises(NoMatchError):
            accounts_backend.delete('https://api.example.com/accounts/42')

    def test_no_active_scenario(self, backend):
        backend.create_scenario(CreateScenario('s', 'plaid'))
        backend.add_mock('s', CreateMockRequest.get('/a'), CreateMockResponse.ok('a'))

        with pytest.raises(NoMatchError) as exc_info:
            backend.get('https://api.example.com/a')

        assert exc_info.value.kind is ErrorKind.NO_MATCH
        assert exc_info.value.scenario is None
        assert 'no active scenario' in str(exc_info.value)

    def test_no_match_message_names_scenario(self, accounts_backend):
        with pytest.raises(NoMatchError) as exc_info:
            accounts_backend.get('https://api.example.com/unknown')

        error = exc_info.value
        assert error.method == 'GET'
        assert error.url == 'https://api.example.com/unknown'
        assert error.scenario == 'happy-path'
        assert "in scenario 'happy-path'" in error.message

    def test_only_active_scenario_consulted(self, backend):
        backend.create_scenario(CreateScenario('one', 'plaid'))
        backend.create_scenario(CreateScenario('two', 'plaid'))
        backend.add_mock('one', CreateMockRequest.get('/a'), CreateMockResponse.ok('from one'))
        backend.add_mock('two', CreateMockRequest.get('/b'), CreateMockResponse.ok('from two'))

        backend.activate_scenario('two')

        assert backend.get('/b').body == 'from two'
        with pytest.raises(NoMatchError):
            backend.get('/a')

    def test_first_match_in_sequence_order_wins(self, backend):
        backend.create_scenario(CreateScenario('s', 'plaid'))
        backend.add_mock('s', CreateMockRequest.get('/accounts/{*}').with_sequence(2), CreateMockResponse.ok('generic'))
        backend.add_mock('s', CreateMockRequest.get('/accounts/{id}').with_sequence(1), CreateMockResponse.ok('specific'))
        backend.activate_scenario('s')

        assert backend.get('/accounts/42').body == 'specific'
        assert backend.get('/accounts/42/balances').body == 'generic'

    def test_ties_broken_by_insertion_order(self, backend):
        backend.create_scenario(CreateScenario('s', 'plaid'))
        backend.add_mock('s', CreateMockRequest.get('/a').with_sequence(1), CreateMockResponse.ok('first'))
        backend.add_mock('s', CreateMockRequest.get('/a').with_sequence(1), CreateMockResponse.ok('second'))
        backend.activate_scenario('s')

        assert backend.get('/a').body == 'first'

    def test_matches_are_not_consumed(self, accounts_backend):
        for _ in range(3):
            assert accounts_backend.get('/accounts/1').status == 200

    def test_header_pattern(self, backend):
        backend.create_scenario(CreateScenario('s', 'truelayer'))
        backend.add_mock(
            's',
            CreateMockRequest.get('/data/v1/accounts').with_headers_pattern({'Authorization': 'Bearer good'}),
            CreateMockResponse.ok('authorized')
        )
        backend.add_mock('s', CreateMockRequest.get('/data/v1/accounts'), CreateMockResponse.unauthorized('denied'))
        backend.activate_scenario('s')

        ok = backend.get_with_headers('/data/v1/accounts', {'authorization': 'Bearer good'})
        denied = backend.get_with_headers('/data/v1/accounts', {'Authorization': 'Bearer bad'})

        assert ok.body == 'authorized'
        assert denied.status == 401

    def test_post_with_headers_and_raw_body(self, backend):
        backend.create_scenario(CreateScenario('s', 'truelayer'))
        backend.add_mock(
            's',
            CreateMockRequest.post('/connect/token')
            .with_body_pattern('grant_type=authorization_code')
            .with_headers_pattern({'Content-Type': 'application/x-www-form-urlencoded'}),
            CreateMockResponse.json({'access_token': 'tok'})
        )
        backend.activate_scenario('s')

        response = backend.post_with_headers(
            '/connect/token',
            'grant_type=authorization_code&code=abc',
            {'Content-Type': 'application/x-www-form-urlencoded'}
        )
        assert response.json() == {'access_token': 'tok'}

    def test_delete_with_headers(self, backend):
        backend.create_scenario(CreateScenario('s', 'teller'))
        backend.add_mock(
            's',
            CreateMockRequest.delete('/accounts/{id}').with_headers_pattern({'X-Request-Id': '*'}),
            CreateMockResponse.no_content()
        )
        backend.activate_scenario('s')

        response = backend.delete_with_headers('/accounts/1', {'X-Request-Id': 'r1'})
        assert response.status == 204
        assert response.body == ''

    def test_malformed_stored_headers_default_to_empty(self, backend):
        backend.create_scenario(CreateScenario('s', 'plaid'))
        backend.add_mock('s', CreateMockRequest.get('/a'), CreateMockResponse(body='x', headers='not json'))
        backend.activate_scenario('s')

        assert backend.get('/a').headers == {}


class TestValidation:
    """Test that malformed mocks are rejected at registration."""

    def test_invalid_path_pattern(self, backend):
        backend.create_scenario(CreateScenario('s', 'plaid'))
        with pytest.raises(ConfigurationError):
            backend.add_mock('s', CreateMockRequest.get('/accounts/('), CreateMockResponse.ok(''))

        assert backend.list_mocks('s') == []

    def test_invalid_headers_pattern(self, backend):
        backend.create_scenario(CreateScenario('s', 'plaid'))
        with pytest.raises(ConfigurationError):
            backend.add_mock('s', CreateMockRequest.get('/a').with_headers_pattern('{broken'), CreateMockResponse.ok(''))

    def test_negative_delay_rejected(self, backend):
        backend.create_scenario(CreateScenario('s', 'plaid'))
        with pytest.raises(ConfigurationError):
            backend.add_mock('s', CreateMockRequest.get('/a'), CreateMockResponse.ok('x').with_delay(-5))

        assert backend.list_mocks('s') == []

    def test_invalid_status_code_rejected(self, backend):
        backend.create_scenario(CreateScenario('s', 'plaid'))
        with pytest.raises(ConfigurationError):
            backend.add_mock('s', CreateMockRequest.get('/a'), CreateMockResponse.ok('x').with_status(42))

        assert backend.list_mocks('s') == []

    def test_unknown_scenario(self, backend):
        with pytest.raises(ScenarioNotFoundError):
            backend.add_mock('missing', CreateMockRequest.get('/a'), CreateMockResponse.ok(''))
        with pytest.raises(ScenarioNotFoundError):
            backend.activate_scenario('missing')


class TestCounters:
    """Test match counters exposed by the backend."""

    def test_counts_per_mock(self, accounts_backend):
        account_mock, transfer_mock = [req for req, _ in accounts_backend.list_mocks('happy-path')]

        accounts_backend.get('/accounts/1')
        accounts_backend.get('/accounts/2')
        accounts_backend.post('/transfers', {'type': 'debit'})

        assert accounts_backend.match_count(account_mock) == 2
        assert accounts_backend.match_count(transfer_mock.id) == 1
        assert accounts_backend.match_counts() == {account_mock.id: 2, transfer_mock.id: 1}

    def test_no_match_does_not_count(self, accounts_backend):
        with pytest.raises(NoMatchError):
            accounts_backend.get('/nothing')

        assert accounts_backend.match_counts() == {}

    def test_activation_resets_counts(self, accounts_backend):
        accounts_backend.get('/accounts/1')
        accounts_backend.activate_scenario('happy-path')

        assert accounts_backend.match_counts() == {}

    def test_lifetime_counter_persisted(self, accounts_backend):
        accounts_backend.get('/accounts/1')
        accounts_backend.activate_scenario('happy-path')
        accounts_backend.get('/accounts/1')

        request, _ = accounts_backend.list_mocks('happy-path')[0]
        assert request.times_matched == 2

    def test_concurrent_calls_counted(self, accounts_backend):
        errors = []

        def worker():
            try:
                for _ in range(25):
                    accounts_backend.get('/accounts/1')
            except Exception as e:  # pragma: no cover - surfaced by the assert below
                errors.append(e)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        request, _ = accounts_backend.list_mocks('happy-path')[0]
        assert errors == []
        assert accounts_backend.match_count(request) == 100


class TestDelays:
    """Test response delays."""

    def _delayed_backend(self, honor_delays):
        backend = MockBackend(config=MockBackendConfig(honor_delays=honor_delays))
        backend.create_scenario(CreateScenario('slow', 'yapily'))
        backend.add_mock('slow', CreateMockRequest.get('/accounts'), CreateMockResponse.ok('[]').with_delay(250))
        backend.activate_scenario('slow')
        return backend

    @patch('bankmock.mock.backend.time.sleep')
    def test_delay_applied(self, mock_sleep):
        backend = self._delayed_backend(honor_delays=True)

        backend.get('/accounts')

        mock_sleep.assert_called_once_with(0.25)

    @patch('bankmock.mock.backend.time.sleep')
    def test_delay_ignored_when_disabled(self, mock_sleep):
        backend = self._delayed_backend(honor_delays=False)

        backend.get('/accounts')

        mock_sleep.assert_not_called()

    def test_concurrent_delays_overlap(self):
        backend = MockBackend(config=MockBackendConfig(honor_delays=True))
        backend.create_scenario(CreateScenario('slow', 'yapily'))
        backend.add_mock('slow', CreateMockRequest.get('/accounts'), CreateMockResponse.ok('[]').with_delay(300))
        backend.activate_scenario('slow')
        statuses = []

        def worker():
            statuses.append(backend.get('/accounts').status)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        started = time.monotonic()
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        elapsed = time.monotonic() - started

        assert statuses == [200] * 4
        assert elapsed < 0.9

    def test_reactivation_during_delay_not_counted(self):
        backend = self._delayed_backend(honor_delays=True)

        with patch('bankmock.mock.backend.time.sleep',
                   side_effect=lambda _: backend.activate_scenario('slow')):
            response = backend.get('/accounts')

        request, _ = backend.list_mocks('slow')[0]
        assert response.status == 200
        assert backend.match_count(request) == 0
        assert request.times_matched == 1


class TestScenarioManagement:
    """Test scenario listing, deletion and reset."""

    def test_list_scenarios(self, accounts_backend):
        assert [s.name for s in accounts_backend.list_scenarios()] == ['happy-path']
        assert accounts_backend.get_scenario('happy-path').provider == 'plaid'

    def test_list_mocks(self, accounts_backend):
        mocks = accounts_backend.list_mocks('happy-path')

        assert [(req.method, req.path_pattern) for req, _ in mocks] == [
            ('GET', '/accounts/{id}'),
            ('POST', '/transfers'),
        ]
        assert mocks[1][1].status_code == 201

    def test_list_mocks_unknown(self, backend):
        with pytest.raises(ScenarioNotFoundError):
            backend.list_mocks('missing')

    def test_delete_active_scenario_deactivates(self, accounts_backend):
        accounts_backend.delete_scenario('happy-path')

        assert accounts_backend.active_scenario() is None
        assert accounts_backend.list_scenarios() == []
        with pytest.raises(NoMatchError):
            accounts_backend.get('/accounts/1')

    def test_delete_inactive_scenario_keeps_active(self, accounts_backend):
        accounts_backend.create_scenario(CreateScenario('spare', 'plaid'))

        accounts_backend.delete_scenario('spare')

        assert accounts_backend.active_scenario() == 'happy-path'

    def test_deactivate(self, accounts_backend):
        accounts_backend.deactivate_scenario()

        assert accounts_backend.active_scenario() is None
        with pytest.raises(NoMatchError):
            accounts_backend.get('/accounts/1')

    def test_reset(self, accounts_backend):
        accounts_backend.reset()

        assert accounts_backend.active_scenario() is None
        assert accounts_backend.list_scenarios() == []


class TestErrorPropagation:
    """Test error kinds surfacing through execute."""

    def test_storage_error(self, accounts_backend):
        with patch.object(accounts_backend.store, 'list_requests', side_effect=StorageError('disk full')):
            with pytest.raises(StorageError) as exc_info:
                accounts_backend.get('/accounts/1')

        assert exc_info.value.kind is ErrorKind.STORAGE

    def test_configuration_error_from_stored_pattern(self, backend):
        backend.create_scenario(CreateScenario('s', 'plaid'))
        # Bypass registration-time validation
        backend.store.add_mock('s', CreateMockRequest.get('/a').with_body_pattern('x=('), CreateMockResponse.ok(''))
        backend.activate_scenario('s')

        with pytest.raises(ConfigurationError):
            backend.request('GET', '/a', body='x=1')

    def test_invalid_regex_json_pattern_does_not_fall_through(self, backend):
        backend.create_scenario(CreateScenario('s', 'plaid'))
        backend.add_mock('s', CreateMockRequest.post('/x').with_body_pattern('{"a": "(x"}'), CreateMockResponse.ok('strict'))
        backend.add_mock('s', CreateMockRequest.post('/x'), CreateMockResponse.ok('fallthrough'))
        backend.activate_scenario('s')

        with pytest.raises(ConfigurationError):
            backend.post('/x', 'plain text body')

        assert backend.post('/x', {'a': '(x'}).body == 'strict'

    def test_log_level_applied(self):
        MockBackend(config=MockBackendConfig(honor_delays=False, log_level='debug'))
        assert logging.getLogger('bankmock').getEffectiveLevel() == logging.DEBUG

        MockBackend(config=MockBackendConfig(honor_delays=False, log_level='error'))
        assert logging.getLogger('bankmock').getEffectiveLevel() == logging.ERROR

    def test_unknown_log_level(self):
        with pytest.raises(ConfigurationError):
            MockBackend(config=MockBackendConfig(log_level='chatty'))


class CountingBackend(Backend):
    """Backend recording the calls it receives."""

    def __init__(self):
        self.calls = []

    def execute(self, request):
        self.calls.append(request)
        return HttpResponse.ok('{}')


class TestBackendHelpers:
    """Test the convenience helpers shared by every Backend."""

    def test_helpers_build_requests(self):
        backend = CountingBackend()

        backend.get('https://a/x')
        backend.post('https://a/y', {'k': 'v'})
        backend.post('https://a/z', 'raw')
        backend.delete_with_headers('https://a/w', {'X-Id': '1'})

        get, post_json, post_raw, delete = backend.calls
        assert (get.method, get.body) == ('GET', None)
        assert json.loads(post_json.body) == {'k': 'v'}
        assert post_raw.body == 'raw'
        assert (delete.method, delete.headers) == ('DELETE', {'X-Id': '1'})
