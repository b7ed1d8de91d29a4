"""Shared fixtures for BankMock tests."""

import pytest

from bankmock import (
    CreateMockRequest,
    CreateMockResponse,
    CreateScenario,
    MockBackend,
    MockBackendConfig,
)
from bankmock.store import RecordStore


@pytest.fixture
def store():
    """Fresh in-memory record store."""
    return RecordStore()


@pytest.fixture
def backend():
    """Mock backend that ignores response delays."""
    return MockBackend(config=MockBackendConfig(honor_delays=False))


@pytest.fixture
def accounts_backend(backend):
    """Backend with an active 'happy-path' scenario for an accounts API."""
    backend.create_scenario(CreateScenario('happy-path', 'plaid'))
    backend.add_mock(
        'happy-path',
        CreateMockRequest.get('/accounts/{id}'),
        CreateMockResponse.json({'id': 'acc_1', 'balance': 100})
    )
    backend.add_mock(
        'happy-path',
        CreateMockRequest.post('/transfers').with_body_pattern({'type': 'debit'}),
        CreateMockResponse.created('{"id": "t1"}')
    )
    backend.activate_scenario('happy-path')
    return backend


@pytest.fixture
def scenario_yaml(tmp_path):
    """Scenario file with two scenarios, the first one activated."""
    path = tmp_path / 'scenarios.yaml'
    path.write_text(
        """
activate: happy
scenarios:
  - name: happy
    provider: teller
    description: Accounts load
    mocks:
      - request: {method: GET, path: "/accounts/{id}"}
        response:
          json: {id: acc_1, name: Checking}
      - request:
          method: POST
          path: /accounts/{id}/transfers
          body: {amount: "*"}
          headers: {Authorization: "*"}
        response:
          status: 201
          body: '{"id": "tr_1"}'
          delay_ms: 10
  - name: outage
    provider: teller
    mocks:
      - request: {method: GET, path: "/accounts/{*}"}
        response: {status: 503, body: unavailable}
""",
        encoding='utf-8'
    )
    return path
