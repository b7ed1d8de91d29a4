"""
BankMock Matching Engine

Finds the mock in the active scenario that satisfies an incoming call.

Candidates are the active scenario's mock requests with the call's method,
scanned in ascending sequence_order. The first one whose path, body and
headers patterns all match wins. Matches are non-consuming: the same mock
keeps answering until the scenario state changes.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, TYPE_CHECKING

from ..store import MockRequest, MockResponse, RecordStore
from .matcher import matches_body, matches_headers, matches_path
from .registry import ScenarioRegistry

if TYPE_CHECKING:
    from .backend import HttpRequest


logger = logging.getLogger("bankmock.mock")


@dataclass
class MatchResult:
    """A matched mock request with its canned response."""

    scenario: str
    request: MockRequest
    response: MockResponse
    # Registry activation generation the match was made under
    generation: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'scenario': self.scenario,
            'request_id': self.request.id,
            'method': self.request.method,
            'path_pattern': self.request.path_pattern,
            'sequence_order': self.request.sequence_order,
            'status_code': self.response.status_code,
        }


class MatchingEngine:
    """
    Matches calls against the registry's active scenario.

    Example:
        engine = MatchingEngine(store, registry)
        result = engine.find_match(HttpRequest('GET', '/accounts/42'))
        if result:
            print(result.response.body)
    """

    def __init__(self, store: RecordStore, registry: ScenarioRegistry):
        self.store = store
        self.registry = registry

    def find_match(self, request: 'HttpRequest') -> Optional[MatchResult]:
        """
        Find the first mock satisfying a call.

        Args:
            request: Incoming call

        Returns:
            MatchResult, or None if no scenario is active or nothing matches

        Raises:
            ConfigurationError: If a candidate's patterns cannot be evaluated
            StorageError: If the record store fails
        """
        scenario_name, generation = self.registry.snapshot()
        if scenario_name is None:
            return None

        scenario = self.store.get_scenario(scenario_name)
        if scenario is None:
            return None

        candidates = self.store.list_requests(scenario.id, request.method)

        for candidate in candidates:
            if not (
                matches_path(candidate.path_pattern, request.url)
                and matches_body(candidate.body_pattern, request.body)
                and matches_headers(candidate.headers_pattern, request.headers)
            ):
                continue

            response = self.store.get_response(candidate.id)
            if response is None:
                logger.warning(f"Mock request {candidate.id} has no response, skipping")
                continue

            logger.debug(
                f"Matched {request.method} {request.url} -> "
                f"{candidate.path_pattern} (sequence {candidate.sequence_order})"
            )
            return MatchResult(
                scenario=scenario_name,
                request=candidate,
                response=response,
                generation=generation
            )

        return None
