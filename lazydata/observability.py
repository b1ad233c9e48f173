"""
Observability for lazydata.

Provides structured load events and per-context metrics for the accessor
layer: cache effectiveness, load lifecycle, and guard trips.

Design Philosophy:
- Plain module loggers everywhere, JSON records only where enabled
- Each load logs through a logger bound to its collection and locale, so
  every event of one load carries the same context
- Metrics live on the AccessorContext, not in a global, so tests and
  sessions never share counters
- Minimal overhead: records are only formatted when their level is enabled
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol

from lazydata.errors import ErrorKind

logger = logging.getLogger(__name__)


# =============================================================================
# Load Event Loggers
# =============================================================================


class StructuredLogger(Protocol):
    """Logger for load lifecycle events, bindable to a collection."""

    def debug(self, message: str, **context: Any) -> None: ...

    def info(self, message: str, **context: Any) -> None: ...

    def warning(self, message: str, **context: Any) -> None: ...

    def error(self, message: str, **context: Any) -> None: ...

    def with_context(self, **extra: Any) -> StructuredLogger: ...


@dataclass
class JSONLogger:
    """
    Event logger that emits one JSON object per record.

    Example output:
        {"timestamp": "2026-01-02T10:30:00+00:00", "level": "info",
         "message": "Load settled", "collection": "items", "locale": "en",
         "ready": true, "duration_ms": 12.5}
    """

    name: str = "lazydata"
    extra_context: dict[str, Any] = field(default_factory=dict)
    _python_logger: logging.Logger | None = field(default=None, init=False)

    def __post_init__(self) -> None:
        self._python_logger = logging.getLogger(self.name)

    def _log(self, level: int, message: str, context: dict[str, Any]) -> None:
        if not self._python_logger.isEnabledFor(level):
            return
        record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": logging.getLevelName(level).lower(),
            "message": message,
            **self.extra_context,
            **context,
        }
        self._python_logger.log(level, json.dumps(record, default=str))

    def debug(self, message: str, **context: Any) -> None:
        self._log(logging.DEBUG, message, context)

    def info(self, message: str, **context: Any) -> None:
        self._log(logging.INFO, message, context)

    def warning(self, message: str, **context: Any) -> None:
        self._log(logging.WARNING, message, context)

    def error(self, message: str, **context: Any) -> None:
        self._log(logging.ERROR, message, context)

    def with_context(self, **extra: Any) -> JSONLogger:
        """Logger whose records also carry ``extra``."""
        return JSONLogger(name=self.name, extra_context={**self.extra_context, **extra})


class PlainLogger:
    """
    Event logger that renders context into a single plain line:

        Load settled | collection=items | locale=en | ready=True | duration_ms=1.2
    """

    def __init__(self, name: str = "lazydata", extra_context: dict[str, Any] | None = None):
        self._name = name
        self._logger = logging.getLogger(name)
        self._extra = dict(extra_context or {})

    def _log(self, level: int, message: str, context: dict[str, Any]) -> None:
        if not self._logger.isEnabledFor(level):
            return
        merged = {**self._extra, **context}
        if merged:
            details = " | ".join(f"{key}={value}" for key, value in merged.items())
            message = f"{message} | {details}"
        self._logger.log(level, message)

    def debug(self, message: str, **context: Any) -> None:
        self._log(logging.DEBUG, message, context)

    def info(self, message: str, **context: Any) -> None:
        self._log(logging.INFO, message, context)

    def warning(self, message: str, **context: Any) -> None:
        self._log(logging.WARNING, message, context)

    def error(self, message: str, **context: Any) -> None:
        self._log(logging.ERROR, message, context)

    def with_context(self, **extra: Any) -> PlainLogger:
        """Logger whose lines also carry ``extra``."""
        return PlainLogger(self._name, {**self._extra, **extra})


def create_event_logger(structured: bool, name: str = "lazydata.events") -> StructuredLogger:
    """Pick the event logger implementation for the configured format."""
    if structured:
        return JSONLogger(name=name)
    return PlainLogger(name)


# =============================================================================
# Metrics
# =============================================================================


@dataclass
class AccessorMetrics:
    """
    Accessor-layer metrics.

    Tracks:
    - Identity cache hits and misses
    - Views and placeholders handed out
    - Load lifecycle (started, joined, failed, suppressed by cooldown)
    - Degradations (guard trips, ambiguous classifications)
    """

    # Counters
    cache_hits: int = 0
    cache_misses: int = 0
    views_built: int = 0
    placeholders_served: int = 0
    loads_started: int = 0
    loads_joined: int = 0
    loads_failed: int = 0
    loads_suppressed: int = 0
    guard_trips: int = 0
    ambiguous_classifications: int = 0
    mutations: int = 0

    # Histograms (simplified as lists)
    load_durations_ms: list[float] = field(default_factory=list)
    errors_by_kind: dict[str, int] = field(default_factory=dict)

    max_histogram_entries: int = 1000

    def record_load(self, success: bool, duration_ms: float) -> None:
        """Record a settled load."""
        if not success:
            self.loads_failed += 1
            self.record_error(ErrorKind.LOAD_FAILURE)

        self.load_durations_ms.append(duration_ms)
        if len(self.load_durations_ms) > self.max_histogram_entries:
            del self.load_durations_ms[: len(self.load_durations_ms) - self.max_histogram_entries]

    def record_error(self, kind: ErrorKind) -> None:
        self.errors_by_kind[kind.value] = self.errors_by_kind.get(kind.value, 0) + 1

    @property
    def cache_hit_rate(self) -> float | None:
        lookups = self.cache_hits + self.cache_misses
        if lookups == 0:
            return None
        return self.cache_hits / lookups

    def get_stats(self) -> dict[str, Any]:
        """Get summary statistics."""

        def percentile(data: list[float], p: float) -> float | None:
            if not data:
                return None
            sorted_data = sorted(data)
            k = (len(sorted_data) - 1) * p
            f = int(k)
            c = f + 1 if f + 1 < len(sorted_data) else f
            return sorted_data[f] + (k - f) * (sorted_data[c] - sorted_data[f])

        return {
            "cache": {
                "hits": self.cache_hits,
                "misses": self.cache_misses,
                "hit_rate": self.cache_hit_rate,
                "views_built": self.views_built,
            },
            "loads": {
                "started": self.loads_started,
                "joined": self.loads_joined,
                "failed": self.loads_failed,
                "suppressed": self.loads_suppressed,
                "duration_ms": {
                    "p50": percentile(self.load_durations_ms, 0.5),
                    "p95": percentile(self.load_durations_ms, 0.95),
                },
            },
            "placeholders_served": self.placeholders_served,
            "guard_trips": self.guard_trips,
            "ambiguous_classifications": self.ambiguous_classifications,
            "mutations": self.mutations,
            "errors_by_kind": dict(self.errors_by_kind),
        }

    def reset(self) -> None:
        """Reset all metrics."""
        self.cache_hits = 0
        self.cache_misses = 0
        self.views_built = 0
        self.placeholders_served = 0
        self.loads_started = 0
        self.loads_joined = 0
        self.loads_failed = 0
        self.loads_suppressed = 0
        self.guard_trips = 0
        self.ambiguous_classifications = 0
        self.mutations = 0
        self.load_durations_ms.clear()
        self.errors_by_kind.clear()
