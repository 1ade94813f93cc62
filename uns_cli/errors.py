"""Error types raised by the UNS command-line tooling."""

from __future__ import annotations

from typing import Any


class UNSError(RuntimeError):
    """Base error for UNIK command failures."""


class FormatError(UNSError):
    """A user-supplied value does not match the shape required for it."""


class NotFoundError(UNSError):
    """The ledger holds no entity matching the lookup."""


class RejectedError(UNSError):
    """Raised when the node refuses a submitted transaction."""

    def __init__(self, message: str, errors: Any = None) -> None:
        super().__init__(message)
        self.errors = errors


class ConsistencyError(UNSError):
    """Two chain reads that must agree returned different heights."""


class FlagConsistencyError(UNSError):
    """Wait and confirmation flags contradict each other."""


class InvariantViolationError(UNSError):
    """An internal invariant was broken; this is a defect, not a user error."""


class LedgerTransportError(UNSError):
    """Raised when the node is unreachable or returns malformed data."""

    def __init__(self, message: str, status_code: int | None = None, body: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body
