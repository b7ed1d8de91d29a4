"""
BankMock Mock Module

Scenario-driven mock backend for provider HTTP clients.

This module provides:
- Pattern matcher (path templates, JSON subset bodies, header subsets)
- Scenario registry with per-mock match counters
- Matching engine and the MockBackend facade
- Builder DSL for test setup
- requests transport adapter
"""

from .backend import Backend, HttpRequest, HttpResponse, MockBackend
from .builder import MockBuilder, MockRequestBuilder
from .engine import MatchingEngine, MatchResult
from .registry import ScenarioRegistry
from .adapter import MockAdapter
from .matcher import (
    extract_path,
    compile_path_pattern,
    matches_path,
    matches_body,
    matches_headers,
    json_matches,
    parse_headers_pattern,
    validate_mock_request,
    validate_mock_response,
)

__all__ = [
    # Backend
    'Backend',
    'HttpRequest',
    'HttpResponse',
    'MockBackend',

    # Builder
    'MockBuilder',
    'MockRequestBuilder',

    # Engine
    'MatchingEngine',
    'MatchResult',
    'ScenarioRegistry',

    # Transport
    'MockAdapter',

    # Matcher
    'extract_path',
    'compile_path_pattern',
    'matches_path',
    'matches_body',
    'matches_headers',
    'json_matches',
    'parse_headers_pattern',
    'validate_mock_request',
    'validate_mock_response',
]
