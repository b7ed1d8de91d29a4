"""
BankMock Store Records

Input records used to create scenarios, mock requests and mock responses.

The ``with_*`` helpers return a modified copy so records can be built
fluently:

    CreateMockRequest.post('/accounts/get').with_body_pattern('{"access_token": "*"}')
    CreateMockResponse.ok('{"accounts": []}').with_delay(50)
"""

import json
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional, Union

from ..common.errors import ConfigurationError


JSON_HEADERS = '{"Content-Type": "application/json"}'

RATE_LIMITED_BODY = '{"error": "rate_limited", "message": "Too many requests"}'


def _encode_pattern(value: Any) -> Optional[str]:
    """Keep strings verbatim, JSON-encode structured values."""
    if value is None or isinstance(value, str):
        return value
    return json.dumps(value)


def _dump_json(data: Any, indent: Optional[int] = None) -> str:
    try:
        return json.dumps(data, indent=indent)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Response data is not JSON serializable: {e}") from e


@dataclass
class CreateScenario:
    """Fields for a new scenario."""

    name: str
    provider: str
    description: Optional[str] = None

    def with_description(self, description: str) -> 'CreateScenario':
        return replace(self, description=description)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'CreateScenario':
        """Create record from dictionary."""
        if 'name' not in data or 'provider' not in data:
            raise ConfigurationError("Scenario requires 'name' and 'provider'")
        return cls(
            name=str(data['name']),
            provider=str(data['provider']),
            description=data.get('description')
        )


@dataclass
class CreateMockRequest:
    """Fields for a new expected request."""

    method: str
    path_pattern: str
    body_pattern: Optional[str] = None
    headers_pattern: Optional[str] = None
    # None means "after the last mock of the scenario"
    sequence_order: Optional[int] = None

    def __post_init__(self):
        self.method = self.method.upper()

    @classmethod
    def get(cls, path_pattern: str) -> 'CreateMockRequest':
        return cls(method='GET', path_pattern=path_pattern)

    @classmethod
    def post(cls, path_pattern: str) -> 'CreateMockRequest':
        return cls(method='POST', path_pattern=path_pattern)

    @classmethod
    def put(cls, path_pattern: str) -> 'CreateMockRequest':
        return cls(method='PUT', path_pattern=path_pattern)

    @classmethod
    def patch(cls, path_pattern: str) -> 'CreateMockRequest':
        return cls(method='PATCH', path_pattern=path_pattern)

    @classmethod
    def delete(cls, path_pattern: str) -> 'CreateMockRequest':
        return cls(method='DELETE', path_pattern=path_pattern)

    def with_body_pattern(self, pattern: Union[str, Dict, list]) -> 'CreateMockRequest':
        return replace(self, body_pattern=_encode_pattern(pattern))

    def with_headers_pattern(self, pattern: Union[str, Dict[str, str]]) -> 'CreateMockRequest':
        return replace(self, headers_pattern=_encode_pattern(pattern))

    def with_sequence(self, order: int) -> 'CreateMockRequest':
        return replace(self, sequence_order=order)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'CreateMockRequest':
        """
        Create record from dictionary.

        Keys: method (default GET), path, body, headers, sequence. Structured
        body/headers values are JSON-encoded.
        """
        if 'path' not in data:
            raise ConfigurationError("Mock request requires 'path'")
        return cls(
            method=str(data.get('method', 'GET')),
            path_pattern=str(data['path']),
            body_pattern=_encode_pattern(data.get('body')),
            headers_pattern=_encode_pattern(data.get('headers')),
            sequence_order=data.get('sequence')
        )


@dataclass
class CreateMockResponse:
    """Fields for a canned response."""

    status_code: int = 200
    headers: Optional[str] = None
    body: str = ""
    delay_ms: Optional[int] = None

    @classmethod
    def ok(cls, body: str) -> 'CreateMockResponse':
        return cls(status_code=200, body=body)

    @classmethod
    def created(cls, body: str) -> 'CreateMockResponse':
        return cls(status_code=201, body=body)

    @classmethod
    def no_content(cls) -> 'CreateMockResponse':
        return cls(status_code=204, body="")

    @classmethod
    def bad_request(cls, body: str) -> 'CreateMockResponse':
        return cls(status_code=400, body=body)

    @classmethod
    def unauthorized(cls, body: str) -> 'CreateMockResponse':
        return cls(status_code=401, body=body)

    @classmethod
    def not_found(cls, body: str) -> 'CreateMockResponse':
        return cls(status_code=404, body=body)

    @classmethod
    def internal_error(cls, body: str) -> 'CreateMockResponse':
        return cls(status_code=500, body=body)

    @classmethod
    def rate_limited(cls) -> 'CreateMockResponse':
        return cls(status_code=429, body=RATE_LIMITED_BODY)

    @classmethod
    def json(cls, data: Any, status_code: int = 200) -> 'CreateMockResponse':
        """Serialize ``data`` as the body with a JSON content type."""
        return cls(status_code=status_code, headers=JSON_HEADERS, body=_dump_json(data))

    @classmethod
    def json_pretty(cls, data: Any, status_code: int = 200) -> 'CreateMockResponse':
        return cls(status_code=status_code, headers=JSON_HEADERS, body=_dump_json(data, indent=2))

    def with_status(self, status_code: int) -> 'CreateMockResponse':
        return replace(self, status_code=status_code)

    def with_headers(self, headers: Union[str, Dict[str, str]]) -> 'CreateMockResponse':
        return replace(self, headers=_encode_pattern(headers))

    def with_delay(self, delay_ms: int) -> 'CreateMockResponse':
        return replace(self, delay_ms=delay_ms)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'CreateMockResponse':
        """
        Create record from dictionary.

        Keys: status (default 200), headers, body (string) or json (any
        JSON value, serialized), delay_ms.
        """
        if 'json' in data:
            body = _dump_json(data['json'])
            headers = data.get('headers') or {'Content-Type': 'application/json'}
        else:
            body = data.get('body', '')
            if not isinstance(body, str):
                body = _dump_json(body)
            headers = data.get('headers')

        return cls(
            status_code=int(data.get('status', 200)),
            headers=_encode_pattern(headers),
            body=body,
            delay_ms=data.get('delay_ms')
        )
