"""
Per-collection load state.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from lazydata.errors import ErrorKind


@dataclass
class LoadState:
    """
    Load lifecycle record for one collection.

    Created on the first access attempt and mutated in place by the loader
    lifecycle. Never deleted: a reload reuses the same record.

    Attributes:
        loading: A fetch is in flight
        error: Message of the last failed attempt (cleared when a new attempt starts)
        error_kind: Classification of the last error
        error_at: Wall-clock time the error was recorded
        ready: Raw data is present in the store
        attempts: Number of load attempts started
    """

    loading: bool = False
    error: str | None = None
    error_kind: ErrorKind | None = None
    error_at: float | None = None
    ready: bool = False
    attempts: int = 0

    def has_recent_error(self, cooldown_seconds: float, now: float) -> bool:
        """Check if the recorded error is still inside its cooldown window."""
        if self.error is None or self.error_at is None:
            return False
        return now - self.error_at < cooldown_seconds

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        if self.error_kind is not None:
            data["error_kind"] = self.error_kind.value
        return data
