"""
BankMock Request Matcher

Pure predicates deciding whether a concrete HTTP call satisfies a stored
mock pattern. The matching engine ANDs the three families together.

Features:
- Path templates: {name} matches one segment, {*} matches anything
- Body matching: JSON subset semantics with "*" wildcards, regex fallback
- Header subsetting: only headers named in the pattern are checked
- Registration-time validation so broken mocks fail before any call
"""

import json
import re
from functools import lru_cache
from typing import Any, Dict, Mapping, Optional, Pattern

from ..common.errors import ConfigurationError
from ..common.utils import lower_keys


WILDCARD = "*"

# {*} or {identifier}
PLACEHOLDER_RE = re.compile(r'\{(\*|[A-Za-z_][A-Za-z0-9_]*)\}')

_NOT_JSON = object()


def extract_path(url: str) -> str:
    """
    Reduce a URL to its path.

    Scheme and host are stripped; query string and fragment are discarded.

    Args:
        url: Absolute URL or bare path

    Returns:
        Path starting with "/" ("/" when the URL has no path)

    Example:
        extract_path('https://sandbox.plaid.com/accounts/get?x=1')  # '/accounts/get'
    """
    path = url.split('?', 1)[0].split('#', 1)[0]

    for scheme in ('http://', 'https://'):
        if path.lower().startswith(scheme):
            path = path[len(scheme):]
            break

    slash = path.find('/')
    return path[slash:] if slash >= 0 else '/'


def _placeholder_regex(match) -> str:
    return '.*' if match.group(1) == WILDCARD else '[^/]+'


@lru_cache(maxsize=512)
def compile_path_pattern(pattern: str) -> Pattern:
    """
    Compile a path template into an anchored regular expression.

    {name} becomes [^/]+ and {*} becomes .* ; everything else is kept as
    regular expression text.

    Args:
        pattern: Path template such as "/accounts/{id}/transactions"

    Returns:
        Compiled regex anchored with ^...$

    Raises:
        ConfigurationError: If the substituted pattern is not a valid regex
    """
    regex = PLACEHOLDER_RE.sub(_placeholder_regex, pattern)
    try:
        return re.compile(f'^{regex}$')
    except re.error as e:
        raise ConfigurationError(f"Invalid path pattern {pattern!r}: {e}") from e


@lru_cache(maxsize=512)
def _compile_body_regex(pattern: str) -> Pattern:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ConfigurationError(f"Invalid body pattern {pattern!r}: {e}") from e


def _parse_json(text: Optional[str]) -> Any:
    if text is None:
        return _NOT_JSON
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError, ValueError):
        return _NOT_JSON


def matches_path(pattern: str, url: str) -> bool:
    """Check if the path of ``url`` matches a path template."""
    return compile_path_pattern(pattern).match(extract_path(url)) is not None


def json_matches(pattern: Any, value: Any) -> bool:
    """
    Recursive subset comparison of two decoded JSON values.

    - object: every pattern key must exist in value and match recursively;
      extra keys in value are ignored
    - array: same length, elements match positionally
    - "*": matches any value at that position
    - anything else: exact equality (booleans never equal numbers)

    Args:
        pattern: Decoded JSON pattern
        value: Decoded JSON value from the request

    Returns:
        True if value satisfies pattern
    """
    if isinstance(pattern, dict):
        if not isinstance(value, dict):
            return False
        for key, pattern_value in pattern.items():
            if key not in value:
                return False
            if not json_matches(pattern_value, value[key]):
                return False
        return True

    if isinstance(pattern, list):
        if not isinstance(value, list) or len(pattern) != len(value):
            return False
        return all(json_matches(p, v) for p, v in zip(pattern, value))

    if pattern == WILDCARD:
        return True

    if isinstance(pattern, bool) or isinstance(value, bool):
        return type(pattern) is type(value) and pattern == value

    if isinstance(value, (dict, list)):
        return False

    return pattern == value


def matches_body(pattern: Optional[str], body: Optional[str]) -> bool:
    """
    Check if a request body satisfies a body pattern.

    Args:
        pattern: None or "*" (any body), a JSON subset pattern, or a regex
        body: Raw request body, None when the call had no body

    Returns:
        True if the body satisfies the pattern

    Raises:
        ConfigurationError: If the pattern has to be used as a regex and
            is not a valid one
    """
    if pattern is None or pattern == WILDCARD:
        return True

    if body is None:
        return False

    pattern_json = _parse_json(pattern)
    body_json = _parse_json(body)

    if pattern_json is not _NOT_JSON and body_json is not _NOT_JSON:
        return json_matches(pattern_json, body_json)

    # Either side is not JSON: the pattern is used as a regex
    return _compile_body_regex(pattern).search(body) is not None


def parse_headers_pattern(pattern: str) -> Dict[str, str]:
    """
    Decode a headers pattern.

    Args:
        pattern: JSON object of header name to expected value ("*" = any)

    Returns:
        Header map with lowercased names

    Raises:
        ConfigurationError: If the pattern is not a JSON object of strings
    """
    try:
        parsed = json.loads(pattern)
    except (json.JSONDecodeError, TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid headers pattern {pattern!r}: {e}") from e

    if not isinstance(parsed, dict) or not all(isinstance(v, str) for v in parsed.values()):
        raise ConfigurationError(
            f"Invalid headers pattern {pattern!r}: expected a JSON object of strings"
        )

    return lower_keys(parsed)


def matches_headers(pattern: Optional[str], headers: Optional[Mapping[str, str]]) -> bool:
    """
    Check if request headers contain every header named in the pattern.

    Header names compare case-insensitively, values exactly. Headers absent
    from the pattern are never checked.

    Args:
        pattern: JSON headers pattern or None (any headers)
        headers: Actual request headers

    Returns:
        True if all pattern headers are present with matching values

    Raises:
        ConfigurationError: If the pattern is not valid JSON
    """
    if pattern is None:
        return True

    expected = parse_headers_pattern(pattern)
    actual = lower_keys(headers)

    for name, value in expected.items():
        if name not in actual:
            return False
        if value != WILDCARD and actual[name] != value:
            return False

    return True


def validate_mock_request(
    path_pattern: str,
    body_pattern: Optional[str] = None,
    headers_pattern: Optional[str] = None
) -> None:
    """
    Validate the patterns of a mock before it is stored.

    Args:
        path_pattern: Path template
        body_pattern: Optional body pattern
        headers_pattern: Optional JSON headers pattern

    Raises:
        ConfigurationError: If any pattern could never be evaluated
    """
    compile_path_pattern(path_pattern)

    if body_pattern is not None and body_pattern != WILDCARD:
        if _parse_json(body_pattern) is _NOT_JSON:
            _compile_body_regex(body_pattern)

    if headers_pattern is not None:
        parse_headers_pattern(headers_pattern)


def validate_mock_response(status_code: int, delay_ms: Optional[int] = None) -> None:
    """
    Validate the status code and delay of a canned response.

    Raises:
        ConfigurationError: If the status is not an HTTP status code or the
            delay is not a non-negative integer
    """
    if isinstance(status_code, bool) or not isinstance(status_code, int) or not 100 <= status_code <= 599:
        raise ConfigurationError(f"Invalid response status code: {status_code!r}")

    if delay_ms is None:
        return
    if isinstance(delay_ms, bool) or not isinstance(delay_ms, int) or delay_ms < 0:
        raise ConfigurationError(f"Invalid response delay_ms: {delay_ms!r} (expected an integer >= 0)")
