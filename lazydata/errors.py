"""
Error taxonomy for lazydata.

Read-path problems (a collection that failed to load, a reentrant read that
hit the depth ceiling, data that classifies ambiguously) are recorded and
degraded, never raised. Write-path problems (mutations, pagination,
explicit loads) are raised so the caller can react.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Classification of error conditions for state records and metrics."""

    # Recorded into LoadState, suppresses retries within the cooldown
    LOAD_FAILURE = "load_failure"

    # Degraded silently (logged + counted)
    RECURSION_OVERFLOW = "recursion_overflow"
    CLASSIFICATION_AMBIGUITY = "classification_ambiguity"

    # Raised to the caller
    CAPABILITY_UNAVAILABLE = "capability_unavailable"
    UNSUPPORTED_OPERATION = "unsupported_operation"


class LazyDataError(Exception):
    """Base exception for lazydata errors."""

    kind: ErrorKind = ErrorKind.LOAD_FAILURE

    def __init__(self, message: str, collection: str = ""):
        super().__init__(message)
        self.collection = collection

    def __str__(self) -> str:
        if self.collection:
            return f"[{self.collection}] {self.args[0]}"
        return str(self.args[0])


class LoadFailure(LazyDataError):
    """Raised when a loader callback rejects."""

    kind = ErrorKind.LOAD_FAILURE

    def __init__(
        self,
        message: str,
        collection: str = "",
        *,
        status_code: int | None = None,
    ):
        super().__init__(message, collection)
        self.status_code = status_code


class CapabilityUnavailable(LazyDataError):
    """Raised when a capability has no registered handler for the collection."""

    kind = ErrorKind.CAPABILITY_UNAVAILABLE

    def __init__(self, capability: str, collection: str, reason: str = ""):
        message = f"'{capability}' is not available"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, collection)
        self.capability = capability


class UnsupportedOperation(LazyDataError):
    """Raised when an operation does not apply to the collection's classification."""

    kind = ErrorKind.UNSUPPORTED_OPERATION

    def __init__(self, operation: str, collection: str, reason: str = ""):
        message = f"'{operation}' is not supported"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, collection)
        self.operation = operation
