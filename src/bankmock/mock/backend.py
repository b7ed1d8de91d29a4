"""
BankMock Backend

The ``execute`` contract consumed by provider clients, and MockBackend, the
implementation that answers calls from the active scenario.

Provider clients only depend on Backend:

    class PlaidClient:
        def __init__(self, backend: Backend, base_url: str):
            ...
        def accounts(self, token):
            return self.backend.post(f"{self.base_url}/accounts/get", {"access_token": token})
"""

import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from ..common.config import MockBackendConfig
from ..common.errors import NoMatchError, ScenarioNotFoundError
from ..common.utils import resolve_log_level, safe_json_parse
from ..store import (
    CreateMockRequest,
    CreateMockResponse,
    CreateScenario,
    MockRequest,
    MockResponse,
    RecordStore,
    Scenario,
)
from .engine import MatchingEngine
from .matcher import validate_mock_request, validate_mock_response
from .registry import ScenarioRegistry


@dataclass
class HttpRequest:
    """An outbound HTTP call made by a provider client."""

    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[str] = None

    def __post_init__(self):
        self.method = self.method.upper()
        if isinstance(self.body, bytes):
            self.body = self.body.decode('utf-8', errors='replace')


@dataclass
class HttpResponse:
    """Response returned to a provider client."""

    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: str = ""

    @classmethod
    def ok(cls, body: str) -> 'HttpResponse':
        return cls(status=200, body=body)

    @classmethod
    def created(cls, body: str) -> 'HttpResponse':
        return cls(status=201, body=body)

    @classmethod
    def no_content(cls) -> 'HttpResponse':
        return cls(status=204)

    @classmethod
    def error(cls, status: int, body: str) -> 'HttpResponse':
        return cls(status=status, body=body)

    @property
    def is_success(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        """Decode the body as JSON (raises json.JSONDecodeError)."""
        return json.loads(self.body)


def _encode_body(body: Any) -> Optional[str]:
    if body is None or isinstance(body, str):
        return body
    return json.dumps(body)


class Backend(ABC):
    """Transport contract: turn an HttpRequest into an HttpResponse."""

    @abstractmethod
    def execute(self, request: HttpRequest) -> HttpResponse:
        """Perform a call. Implementations raise MockBackendError subclasses."""

    def request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        body: Any = None
    ) -> HttpResponse:
        """Build an HttpRequest and execute it. Non-string bodies are sent as JSON."""
        return self.execute(HttpRequest(
            method=method,
            url=url,
            headers=dict(headers or {}),
            body=_encode_body(body)
        ))

    def get(self, url: str) -> HttpResponse:
        return self.request('GET', url)

    def get_with_headers(self, url: str, headers: Dict[str, str]) -> HttpResponse:
        return self.request('GET', url, headers=headers)

    def post(self, url: str, body: Any) -> HttpResponse:
        return self.request('POST', url, body=body)

    def post_with_headers(self, url: str, body: Any, headers: Dict[str, str]) -> HttpResponse:
        return self.request('POST', url, headers=headers, body=body)

    def delete(self, url: str) -> HttpResponse:
        return self.request('DELETE', url)

    def delete_with_headers(self, url: str, headers: Dict[str, str]) -> HttpResponse:
        return self.request('DELETE', url, headers=headers)


class MockBackend(Backend):
    """
    Backend answering calls from scripted scenarios.

    Example:
        backend = MockBackend()
        backend.create_scenario(CreateScenario('happy-path', 'plaid'))
        backend.add_mock(
            'happy-path',
            CreateMockRequest.get('/accounts/{id}'),
            CreateMockResponse.ok('{"balance": 100}')
        )
        backend.activate_scenario('happy-path')

        response = backend.get('https://sandbox.plaid.com/accounts/42')
        assert response.status == 200
    """

    def __init__(
        self,
        config: Optional[MockBackendConfig] = None,
        store: Optional[RecordStore] = None,
        registry: Optional[ScenarioRegistry] = None
    ):
        """
        Initialize mock backend.

        Args:
            config: Optional MockBackendConfig
            store: Optional RecordStore (created from config if None)
            registry: Optional ScenarioRegistry (created if None)
        """
        self.config = config or MockBackendConfig()
        self.logger = logging.getLogger("bankmock.mock")
        logging.getLogger("bankmock").setLevel(resolve_log_level(self.config.log_level))

        self.store = store or RecordStore(self.config.database_url, echo=self.config.echo_sql)
        self.registry = registry or ScenarioRegistry(self.store)
        self.engine = MatchingEngine(self.store, self.registry)

    def execute(self, request: HttpRequest) -> HttpResponse:
        """
        Answer a call from the active scenario.

        Args:
            request: Incoming call

        Returns:
            HttpResponse built from the matched MockResponse

        Raises:
            NoMatchError: If no scenario is active or no mock matches
            ConfigurationError: If a candidate mock is malformed
            StorageError: If the record store fails
        """
        result = self.engine.find_match(request)

        if result is None:
            scenario = self.registry.active()
            self.logger.warning(f"No mock found for {request.method} {request.url} (scenario: {scenario})")
            raise NoMatchError(request.method, request.url, scenario=scenario)

        mock_response = result.response

        # Sleep without holding any registry or store lock
        if (mock_response.delay_ms or 0) > 0 and self.config.honor_delays:
            time.sleep(mock_response.delay_ms / 1000)

        # Dropped by the registry if the scenario was re-activated while sleeping
        self.registry.record_match(result.request.id, generation=result.generation)
        self.store.record_match(result.request.id)

        headers = safe_json_parse(mock_response.headers, default={})
        if not isinstance(headers, dict):
            headers = {}

        return HttpResponse(
            status=mock_response.status_code,
            headers={str(k): str(v) for k, v in headers.items()},
            body=mock_response.body
        )

    # Test setup

    def create_scenario(self, data: CreateScenario) -> Scenario:
        return self.store.create_scenario(data)

    def add_mock(
        self,
        scenario_name: str,
        request: CreateMockRequest,
        response: CreateMockResponse
    ) -> Tuple[MockRequest, MockResponse]:
        """
        Validate and store a mock in a scenario.

        Raises:
            ConfigurationError: If a pattern or the response is malformed
            ScenarioNotFoundError: If the scenario does not exist
        """
        validate_mock_request(request.path_pattern, request.body_pattern, request.headers_pattern)
        validate_mock_response(response.status_code, response.delay_ms)
        return self.store.add_mock(scenario_name, request, response)

    def activate_scenario(self, name: str):
        self.registry.activate(name)

    def deactivate_scenario(self):
        self.registry.deactivate()

    def active_scenario(self) -> Optional[str]:
        return self.registry.active()

    def list_scenarios(self) -> List[Scenario]:
        return self.store.list_scenarios()

    def get_scenario(self, name: str) -> Optional[Scenario]:
        return self.store.get_scenario(name)

    def list_mocks(self, scenario_name: str) -> List[Tuple[MockRequest, Optional[MockResponse]]]:
        """
        List a scenario's mocks in scan order.

        Raises:
            ScenarioNotFoundError: If the scenario does not exist
        """
        scenario = self.store.get_scenario(scenario_name)
        if scenario is None:
            raise ScenarioNotFoundError(scenario_name)

        return [
            (request, self.store.get_response(request.id))
            for request in self.store.list_requests(scenario.id)
        ]

    def delete_scenario(self, name: str):
        """Delete a scenario and its mocks; deactivates it if active."""
        self.store.delete_scenario(name)
        if self.registry.active() == name:
            self.registry.deactivate()

    def match_count(self, request: Union[MockRequest, int]) -> int:
        """Calls matched by a mock since the scenario was activated."""
        request_id = request if isinstance(request, int) else request.id
        return self.registry.match_count(request_id)

    def match_counts(self) -> Dict[int, int]:
        return self.registry.match_counts()

    def reset(self):
        """Wipe all scenarios, mocks and responses and deactivate."""
        self.store.reset()
        self.registry.deactivate()
        self.logger.info("Mock backend reset")
