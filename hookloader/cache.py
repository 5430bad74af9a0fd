"""Process-wide activation cache.

Maps activation fingerprints to initialized loader state. An entry is never
evicted; the table lives as long as the process (or the owning context).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from dataclasses import field
from datetime import datetime
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class LoaderState:
    """Initialized loader state for one activation fingerprint."""

    fingerprint: str | None
    created_at: datetime = field(default_factory=datetime.now)
    module_cache: dict[str, Any] = field(default_factory=dict)
    package_cache: dict[str, Any] = field(default_factory=dict)
    ready: bool = False


class ActivationCache:
    """Initializes loader state at most once per distinct fingerprint.

    The entry is stored *before* the initializer runs, so an activation
    triggered from inside initialization for the same fingerprint sees the
    entry and returns instead of recursing. If the initializer raises, the
    entry is removed again and the next call retries.
    """

    def __init__(
        self, initializer: Callable[[LoaderState], None] | None = None
    ) -> None:
        """
        Initialize empty cache.

        Args:
            initializer: Optional side-effecting setup run once per new state
        """
        self._states: dict[str, LoaderState] = {}
        self._initializer = initializer
        self.current: LoaderState | None = None

    def ensure_initialized(self, fingerprint: str | None) -> LoaderState:
        """
        Return the state for ``fingerprint``, building it on first sight.

        A None fingerprint has no stable identity: a fresh, uncached state is
        built on every call and the table is left untouched.
        """
        if fingerprint is None:
            state = LoaderState(fingerprint=None)
            self._build(state)
            self.current = state
            return state

        state = self._states.get(fingerprint)
        if state is not None:
            logger.debug(f"Loader state already initialized for {fingerprint}")
            self.current = state
            return state

        state = LoaderState(fingerprint=fingerprint)
        previous = self.current
        self._states[fingerprint] = state
        self.current = state
        logger.debug(f"Initializing loader state for {fingerprint}")
        try:
            self._build(state)
        except Exception:
            # Only built states stay in the table
            self._states.pop(fingerprint, None)
            self.current = previous
            logger.warning(f"Loader state initialization failed for {fingerprint}")
            raise
        return state

    def _build(self, state: LoaderState) -> None:
        if self._initializer is not None:
            self._initializer(state)
        state.ready = True

    def get(self, fingerprint: str) -> LoaderState | None:
        return self._states.get(fingerprint)

    def __contains__(self, fingerprint: str) -> bool:
        return fingerprint in self._states

    def __len__(self) -> int:
        return len(self._states)

    def fingerprints(self) -> list[str]:
        """Fingerprints seen so far, in first-seen order."""
        return list(self._states)
