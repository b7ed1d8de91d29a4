"""
BankMock Errors

Closed set of failure categories reported by the mock backend.

Callers branch on ``error.kind`` (or the concrete class) instead of parsing
message text:

- CONFIGURATION: a mock or scenario is set up wrong (bad path regex, bad
  headers JSON, unknown scenario)
- NO_MATCH: the call did not satisfy any mock in the active scenario
- STORAGE: the record store failed
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Failure category of a MockBackendError."""

    CONFIGURATION = "configuration"
    NO_MATCH = "no_match"
    STORAGE = "storage"


class MockBackendError(Exception):
    """Base class for every error raised by BankMock."""

    kind: ErrorKind = ErrorKind.CONFIGURATION

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(MockBackendError):
    """Invalid mock or scenario setup."""

    kind = ErrorKind.CONFIGURATION


class ScenarioNotFoundError(ConfigurationError):
    """Raised when a scenario name does not exist in the record store."""

    def __init__(self, name: str):
        super().__init__(f"Scenario not found: {name}")
        self.name = name


class NoMatchError(MockBackendError):
    """Raised when no mock in the active scenario satisfies a call."""

    kind = ErrorKind.NO_MATCH

    def __init__(self, method: str, url: str, scenario: Optional[str] = None):
        if scenario is None:
            message = f"No mock found for {method} {url} (no active scenario)"
        else:
            message = f"No mock found for {method} {url} in scenario '{scenario}'"
        super().__init__(message)
        self.method = method
        self.url = url
        self.scenario = scenario


class StorageError(MockBackendError):
    """Raised when the record store fails. The original error is chained."""

    kind = ErrorKind.STORAGE
