"""
BankMock Common Utilities

Shared errors, configuration and helpers used across BankMock modules.
"""

from .errors import (
    ErrorKind,
    MockBackendError,
    ConfigurationError,
    ScenarioNotFoundError,
    NoMatchError,
    StorageError,
)
from .config import MockBackendConfig, ServerConfig
from .utils import safe_json_parse, lower_keys, configure_logging, resolve_log_level

__all__ = [
    'ErrorKind',
    'MockBackendError',
    'ConfigurationError',
    'ScenarioNotFoundError',
    'NoMatchError',
    'StorageError',
    'MockBackendConfig',
    'ServerConfig',
    'safe_json_parse',
    'lower_keys',
    'configure_logging',
    'resolve_log_level',
]
