"""
Reentrancy Guard.

Reading the shared store can make the host synchronously re-run a
dependent computation, which calls back into the resolution path before
the first call has returned. The guard bounds that recursion with a single
depth counter shared by every entry point (the host can re-enter through
any collection, not only the one being resolved).
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 12


class ReentrancyGuard:
    """
    Bounded call-depth counter around the resolution path.

    Usage:
        guard = ReentrancyGuard(max_depth=12)

        with guard.enter() as overflow:
            if overflow:
                return fallback
            return resolve()

    The depth is decremented on every exit path, including exceptions, so
    it returns to exactly zero once the outermost call completes.
    """

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH):
        if max_depth < 1:
            raise ValueError("max_depth must be >= 1")
        self._max_depth = max_depth
        self._depth = 0
        self._peak = 0
        self._trips = 0

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def max_depth(self) -> int:
        return self._max_depth

    @property
    def peak(self) -> int:
        """Deepest nesting observed since the last reset."""
        return self._peak

    @property
    def trips(self) -> int:
        return self._trips

    @contextmanager
    def enter(self) -> Iterator[bool]:
        """
        Enter the guarded region.

        Yields:
            True when the ceiling has been crossed and the caller must
            return its fallback without doing any work.
        """
        self._depth += 1
        if self._depth > self._peak:
            self._peak = self._depth
        overflow = self._depth > self._max_depth
        if overflow:
            self._trips += 1
            logger.debug(f"[guard] Depth {self._depth} exceeds ceiling {self._max_depth}")
        try:
            yield overflow
        finally:
            self._depth -= 1

    def reset(self) -> None:
        """Reset counters. Only valid while no guarded call is on the stack."""
        if self._depth != 0:
            raise RuntimeError(f"Cannot reset guard at depth {self._depth}")
        self._peak = 0
        self._trips = 0
