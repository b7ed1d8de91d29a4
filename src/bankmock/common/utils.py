"""
BankMock Common Utilities

Small helpers shared by the matcher, the backend and the server.
"""

import json
import logging
from typing import Any, Dict, Mapping, Optional

from .errors import ConfigurationError


def safe_json_parse(json_string: Optional[str], default: Any = None) -> Any:
    """
    Safely parse JSON string with error handling.

    Args:
        json_string: JSON string to parse
        default: Default value to return if parsing fails

    Returns:
        Parsed JSON object, or default if parsing fails

    Example:
        headers = safe_json_parse(mock_response.headers, default={})
    """
    if not json_string:
        return default

    try:
        return json.loads(json_string)
    except (json.JSONDecodeError, TypeError, ValueError):
        return default


def lower_keys(headers: Optional[Mapping[str, str]]) -> Dict[str, str]:
    """Return a copy of a header map with lowercased names."""
    if not headers:
        return {}
    return {k.lower(): v for k, v in headers.items()}


def resolve_log_level(level: str) -> int:
    """
    Convert a log level name to its numeric value.

    Raises:
        ConfigurationError: If the name is not a logging level
    """
    value = getattr(logging, str(level).upper(), None)
    if not isinstance(value, int):
        raise ConfigurationError(f"Unknown log level: {level!r}")
    return value


def configure_logging(level: str = "warning") -> None:
    """
    Configure the ``bankmock`` logger hierarchy.

    Args:
        level: Log level name (debug, info, warning, error)
    """
    logger = logging.getLogger("bankmock")
    logger.setLevel(resolve_log_level(level))

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s"
        ))
        logger.addHandler(handler)
