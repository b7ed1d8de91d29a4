"""
BankMock Scenario Registry

Tracks the active scenario and per-mock match counters since activation.

One registry belongs to one backend instance, so independent backends (for
example one per test) never share an active scenario.
"""

import logging
import threading
from typing import Dict, Optional, Tuple

from ..common.errors import ScenarioNotFoundError
from ..store import RecordStore


logger = logging.getLogger("bankmock.mock")


class ScenarioRegistry:
    """
    Lock-protected active scenario pointer and match counters.

    Activation and deactivation replace the name and clear the counters in
    a single critical section, so no reader sees a half-reset state.
    """

    def __init__(self, store: RecordStore):
        self.store = store
        self._lock = threading.Lock()
        self._active: Optional[str] = None
        self._counts: Dict[int, int] = {}
        # Bumped on every activation and deactivation
        self._generation = 0

    def activate(self, name: str):
        """
        Make ``name`` the active scenario and reset all counters.

        Raises:
            ScenarioNotFoundError: If the scenario does not exist
        """
        if self.store.get_scenario(name) is None:
            raise ScenarioNotFoundError(name)

        with self._lock:
            self._active = name
            self._counts = {}
            self._generation += 1

        logger.info(f"Activated scenario {name}")

    def deactivate(self):
        """Clear the active scenario and all counters."""
        with self._lock:
            previous = self._active
            self._active = None
            self._counts = {}
            self._generation += 1

        if previous is not None:
            logger.info(f"Deactivated scenario {previous}")

    def active(self) -> Optional[str]:
        with self._lock:
            return self._active

    def snapshot(self) -> Tuple[Optional[str], int]:
        """Active scenario name and activation generation, read together."""
        with self._lock:
            return self._active, self._generation

    def record_match(self, request_id: int, generation: Optional[int] = None) -> int:
        """
        Increment the counter of a mock request.

        Args:
            request_id: Matched mock request id
            generation: Activation generation the match was made under; the
                increment is dropped if the scenario was re-activated or
                deactivated since

        Returns:
            The new count (the unchanged count when dropped)
        """
        with self._lock:
            if generation is not None and generation != self._generation:
                return self._counts.get(request_id, 0)
            count = self._counts.get(request_id, 0) + 1
            self._counts[request_id] = count
            return count

    def match_count(self, request_id: int) -> int:
        """Number of calls matched by a mock since the last activation."""
        with self._lock:
            return self._counts.get(request_id, 0)

    def match_counts(self) -> Dict[int, int]:
        """Snapshot of all counters keyed by mock request id."""
        with self._lock:
            return dict(self._counts)
