"""
BankMock

Scenario-driven mock backend for banking provider HTTP clients.

Test code scripts named scenarios of expected requests and canned responses;
provider clients call ``execute`` and receive the matching canned response.
"""

from .common import (
    ErrorKind,
    MockBackendError,
    ConfigurationError,
    ScenarioNotFoundError,
    NoMatchError,
    StorageError,
    MockBackendConfig,
)
from .mock import (
    Backend,
    HttpRequest,
    HttpResponse,
    MockBackend,
    MockBuilder,
    MockRequestBuilder,
)
from .store import CreateScenario, CreateMockRequest, CreateMockResponse

__all__ = [
    'ErrorKind',
    'MockBackendError',
    'ConfigurationError',
    'ScenarioNotFoundError',
    'NoMatchError',
    'StorageError',
    'MockBackendConfig',
    'Backend',
    'HttpRequest',
    'HttpResponse',
    'MockBackend',
    'MockBuilder',
    'MockRequestBuilder',
    'CreateScenario',
    'CreateMockRequest',
    'CreateMockResponse',
]

__version__ = '1.0.0'
