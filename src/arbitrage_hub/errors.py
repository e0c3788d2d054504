"""
Error taxonomy for Arbitrage Hub.

Every failure the service layer raises is an ArbitrageHubError carrying an
ErrorKind and a human-readable message. The HTTP layer maps kinds to status
codes through STATUS_CODES and nowhere else.
"""
from __future__ import annotations

from enum import Enum
from types import MappingProxyType


class ErrorKind(Enum):
    """Closed set of failure kinds."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    PERSIST = "persist"
    CONFLICT = "conflict"
    NOT_IMPLEMENTED = "not_implemented"


STATUS_CODES = MappingProxyType({
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.PERSIST: 400,
    ErrorKind.CONFLICT: 409,
    ErrorKind.NOT_IMPLEMENTED: 400,
})


class ArbitrageHubError(Exception):
    """Base exception for all service errors."""

    kind: ErrorKind = ErrorKind.PERSIST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.kind]


class ValidationError(ArbitrageHubError):
    """Input failed structural validation."""

    kind = ErrorKind.VALIDATION


class InvalidReferenceError(ValidationError):
    """A record identifier is malformed or the reserved all-zero value."""


class DuplicatePairError(ValidationError):
    """The same market pair is referenced twice where distinct pairs are required."""


class NotFoundError(ArbitrageHubError):
    """A strategy, pair, exchange or asset does not exist."""

    kind = ErrorKind.NOT_FOUND


class PersistError(ArbitrageHubError):
    """The underlying store rejected or failed an operation."""

    kind = ErrorKind.PERSIST


class ConflictError(ArbitrageHubError):
    """An update was based on a stale version of the record."""

    kind = ErrorKind.CONFLICT


class NotImplementedStrategyError(ArbitrageHubError):
    """Suggestions are not available for the requested arbitrage type."""

    kind = ErrorKind.NOT_IMPLEMENTED
