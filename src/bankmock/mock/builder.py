"""
BankMock Builder

Fluent test-setup API in front of the record store. It has no matching
logic of its own.

Example:
    backend = (
        MockBuilder()
        .scenario('happy-path', 'plaid')
        .on_get('/accounts/{id}').respond_json({'balance': 100})
        .on_post('/transfers').with_body_containing('{"type": "debit"}').respond_ok('{"id": "t1"}')
        .activate('happy-path')
    )
"""

from typing import Any, Dict, Optional, Union

from ..common.config import MockBackendConfig
from ..common.errors import ConfigurationError
from ..store import CreateMockRequest, CreateMockResponse, CreateScenario
from .backend import MockBackend


class MockBuilder:
    """Chainable builder producing a configured MockBackend."""

    def __init__(
        self,
        backend: Optional[MockBackend] = None,
        config: Optional[MockBackendConfig] = None
    ):
        self.backend = backend or MockBackend(config=config)
        self.current_scenario: Optional[str] = None

    def scenario(self, name: str, provider: str, description: Optional[str] = None) -> 'MockBuilder':
        """Create a scenario and make it the target of following mocks."""
        self.backend.create_scenario(CreateScenario(name, provider, description))
        self.current_scenario = name
        return self

    def on(self, method: str, path: str) -> 'MockRequestBuilder':
        return MockRequestBuilder(self, CreateMockRequest(method=method, path_pattern=path))

    def on_get(self, path: str) -> 'MockRequestBuilder':
        return MockRequestBuilder(self, CreateMockRequest.get(path))

    def on_post(self, path: str) -> 'MockRequestBuilder':
        return MockRequestBuilder(self, CreateMockRequest.post(path))

    def on_put(self, path: str) -> 'MockRequestBuilder':
        return MockRequestBuilder(self, CreateMockRequest.put(path))

    def on_patch(self, path: str) -> 'MockRequestBuilder':
        return MockRequestBuilder(self, CreateMockRequest.patch(path))

    def on_delete(self, path: str) -> 'MockRequestBuilder':
        return MockRequestBuilder(self, CreateMockRequest.delete(path))

    def activate(self, name: Optional[str] = None) -> MockBackend:
        """Activate a scenario (the current one by default) and return the backend."""
        target = name or self.current_scenario
        if target is None:
            raise ConfigurationError("No scenario to activate")
        self.backend.activate_scenario(target)
        return self.backend

    def build(self) -> MockBackend:
        """Return the backend without activating anything."""
        return self.backend


class MockRequestBuilder:
    """Pending mock request; a ``respond*`` call stores it."""

    def __init__(self, builder: MockBuilder, request: CreateMockRequest):
        self.builder = builder
        self.request = request

    def with_body_containing(self, pattern: Union[str, Dict, list]) -> 'MockRequestBuilder':
        """Constrain the body: JSON subset pattern (str or dict/list), "*" or regex."""
        self.request = self.request.with_body_pattern(pattern)
        return self

    def with_headers(self, headers: Union[str, Dict[str, str]]) -> 'MockRequestBuilder':
        self.request = self.request.with_headers_pattern(headers)
        return self

    def with_sequence(self, order: int) -> 'MockRequestBuilder':
        self.request = self.request.with_sequence(order)
        return self

    def respond(self, response: CreateMockResponse) -> MockBuilder:
        """
        Store the mock in the current scenario.

        Raises:
            ConfigurationError: If no scenario was started or a pattern is invalid
        """
        scenario_name = self.builder.current_scenario
        if scenario_name is None:
            raise ConfigurationError("No active scenario")

        self.builder.backend.add_mock(scenario_name, self.request, response)
        return self.builder

    def respond_ok(self, body: str) -> MockBuilder:
        return self.respond(CreateMockResponse.ok(body))

    def respond_json(self, data: Any, status: int = 200) -> MockBuilder:
        return self.respond(CreateMockResponse.json(data, status_code=status))

    def respond_error(self, status: int, body: str) -> MockBuilder:
        return self.respond(CreateMockResponse.ok(body).with_status(status))

    def respond_with_delay(self, body: str, delay_ms: int, status: int = 200) -> MockBuilder:
        return self.respond(CreateMockResponse(status_code=status, body=body, delay_ms=delay_ms))
