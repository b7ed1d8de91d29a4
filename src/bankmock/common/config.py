"""
BankMock Configuration

Dataclass configuration for the mock backend and the mock HTTP server.

Values come from code, from ``BANKMOCK_*`` environment variables or from a
YAML file:

    backend:
      database_url: sqlite://
      honor_delays: false
    server:
      port: 9090
"""

import os
from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping, Optional

import yaml

from .errors import ConfigurationError


TRUE_VALUES = {'1', 'true', 'yes', 'on'}


def _coerce(value: str, target: Any) -> Any:
    """Convert an environment string to the type of a field default."""
    if isinstance(target, bool):
        return value.strip().lower() in TRUE_VALUES
    if isinstance(target, int):
        try:
            return int(value)
        except ValueError:
            raise ConfigurationError(f"Expected an integer, got {value!r}")
    return value


def _from_mapping(cls, data: Mapping[str, Any]):
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ConfigurationError(
            f"Unknown {cls.__name__} options: {', '.join(sorted(unknown))}"
        )
    return cls(**dict(data))


def _from_env(cls, prefix: str, environ: Optional[Mapping[str, str]] = None):
    environ = os.environ if environ is None else environ
    defaults = cls()
    values = {}
    for f in fields(cls):
        key = f"{prefix}{f.name.upper()}"
        if key in environ:
            values[f.name] = _coerce(environ[key], getattr(defaults, f.name))
    return cls(**values)


def _load_yaml_section(yaml_path: str, section: str) -> Dict[str, Any]:
    with open(yaml_path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected a mapping in {yaml_path}")

    return data.get(section) or {}


@dataclass
class MockBackendConfig:
    """Configuration for MockBackend behavior."""

    # Any SQLAlchemy URL; the default is a private in-process SQLite database
    database_url: str = "sqlite://"
    echo_sql: bool = False

    # Sleep for MockResponse.delay_ms before returning
    honor_delays: bool = True

    log_level: str = "warning"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'MockBackendConfig':
        """Create config from dictionary, rejecting unknown keys."""
        return _from_mapping(cls, data)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'MockBackendConfig':
        """
        Create config from BANKMOCK_* environment variables.

        Recognized: BANKMOCK_DATABASE_URL, BANKMOCK_ECHO_SQL,
        BANKMOCK_HONOR_DELAYS, BANKMOCK_LOG_LEVEL.
        """
        return _from_env(cls, 'BANKMOCK_', environ)

    @classmethod
    def from_yaml(cls, yaml_path: str) -> 'MockBackendConfig':
        """Load the ``backend`` section of a YAML config file."""
        return cls.from_dict(_load_yaml_section(yaml_path, 'backend'))


@dataclass
class ServerConfig:
    """Configuration for the mock HTTP server."""

    host: str = "127.0.0.1"
    port: int = 8080
    log_level: str = "info"

    # Admin API
    admin_enabled: bool = True
    admin_prefix: str = "/__admin__"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'ServerConfig':
        return _from_mapping(cls, data)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'ServerConfig':
        """Create config from BANKMOCK_SERVER_* environment variables."""
        return _from_env(cls, 'BANKMOCK_SERVER_', environ)

    @classmethod
    def from_yaml(cls, yaml_path: str) -> 'ServerConfig':
        """Load the ``server`` section of a YAML config file."""
        return cls.from_dict(_load_yaml_section(yaml_path, 'server'))
