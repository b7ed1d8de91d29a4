"""
BankMock Scenario Files

YAML scenario documents that populate a MockBackend.

Format:
    activate: plaid_happy_path        # optional
    scenarios:
      - name: plaid_happy_path
        provider: plaid
        description: Accounts and transactions succeed
        mocks:
          - request:
              method: POST
              path: /accounts/get
              body: {access_token: "*"}     # dict bodies become JSON patterns
              headers: {Content-Type: "*"}
            response:
              status: 200
              json: {accounts: []}          # or body: '<raw string>'
              delay_ms: 25

A document holding a single scenario (name/provider/mocks at the top level)
is accepted too.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml

from ..common.errors import ConfigurationError
from ..common.utils import safe_json_parse
from ..mock.backend import MockBackend
from ..store import CreateMockRequest, CreateMockResponse, CreateScenario


logger = logging.getLogger("bankmock.scenarios")


@dataclass
class MockSpec:
    """One request/response pair of a scenario file."""

    request: CreateMockRequest
    response: CreateMockResponse

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MockSpec':
        """Create mock spec from dictionary."""
        if not isinstance(data, dict) or 'request' not in data:
            raise ConfigurationError(f"Mock entry requires a 'request' mapping: {data!r}")
        return cls(
            request=CreateMockRequest.from_dict(data['request']),
            response=CreateMockResponse.from_dict(data.get('response') or {})
        )

    def to_dict(self) -> Dict[str, Any]:
        request: Dict[str, Any] = {
            'method': self.request.method,
            'path': self.request.path_pattern,
        }
        if self.request.body_pattern is not None:
            request['body'] = self.request.body_pattern
        if self.request.headers_pattern is not None:
            request['headers'] = safe_json_parse(self.request.headers_pattern, self.request.headers_pattern)
        if self.request.sequence_order is not None:
            request['sequence'] = self.request.sequence_order

        response: Dict[str, Any] = {
            'status': self.response.status_code,
            'body': self.response.body,
        }
        if self.response.headers is not None:
            response['headers'] = safe_json_parse(self.response.headers, self.response.headers)
        if self.response.delay_ms is not None:
            response['delay_ms'] = self.response.delay_ms

        return {'request': request, 'response': response}


@dataclass
class ScenarioSpec:
    """A scenario and its mocks."""

    scenario: CreateScenario
    mocks: List[MockSpec] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ScenarioSpec':
        """Create scenario spec from dictionary."""
        if not isinstance(data, dict):
            raise ConfigurationError(f"Scenario entry must be a mapping: {data!r}")
        return cls(
            scenario=CreateScenario.from_dict(data),
            mocks=[MockSpec.from_dict(m) for m in data.get('mocks') or []]
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'name': self.scenario.name,
            'provider': self.scenario.provider,
        }
        if self.scenario.description:
            data['description'] = self.scenario.description
        data['mocks'] = [m.to_dict() for m in self.mocks]
        return data


@dataclass
class ScenarioFile:
    """A set of scenarios plus the one to activate after loading."""

    scenarios: List[ScenarioSpec] = field(default_factory=list)
    activate: Optional[str] = None

    @classmethod
    def from_yaml(cls, yaml_path: str) -> 'ScenarioFile':
        """Load scenarios from YAML file."""
        try:
            with open(yaml_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {yaml_path}: {e}") from e

        return cls.from_dict(data or {})

    @classmethod
    def from_string(cls, text: str) -> 'ScenarioFile':
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid scenario YAML: {e}") from e

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ScenarioFile':
        """Create scenario file from dictionary."""
        if not isinstance(data, dict):
            raise ConfigurationError("Scenario document must be a mapping")

        if 'scenarios' in data:
            entries = data['scenarios'] or []
        elif 'name' in data:
            entries = [data]
        else:
            raise ConfigurationError("Scenario document needs 'scenarios' or a top-level 'name'")

        return cls(
            scenarios=[ScenarioSpec.from_dict(entry) for entry in entries],
            activate=data.get('activate')
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.activate:
            data['activate'] = self.activate
        data['scenarios'] = [s.to_dict() for s in self.scenarios]
        return data

    def save(self, yaml_path: str):
        """Save scenarios to YAML file."""
        with open(yaml_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    def load_into(self, backend: MockBackend, activate: bool = True) -> List[str]:
        """
        Create every scenario and mock in a backend.

        Args:
            backend: Target backend
            activate: Activate the document's ``activate`` scenario if set

        Returns:
            Names of the scenarios created
        """
        names = []
        for spec in self.scenarios:
            backend.create_scenario(spec.scenario)
            for mock in spec.mocks:
                backend.add_mock(spec.scenario.name, mock.request, mock.response)
            names.append(spec.scenario.name)
            logger.debug(f"Loaded scenario {spec.scenario.name} with {len(spec.mocks)} mocks")

        if activate and self.activate:
            backend.activate_scenario(self.activate)

        return names


def load_scenarios(backend: MockBackend, yaml_path: str, activate: bool = True) -> List[str]:
    """
    Convenience function to load a YAML scenario file into a backend.

    Example:
        backend = MockBackend()
        load_scenarios(backend, 'tests/scenarios/plaid.yaml')
    """
    return ScenarioFile.from_yaml(yaml_path).load_into(backend, activate=activate)
