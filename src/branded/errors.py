"""
Error types for branded indexing.

Two kinds of failure are recoverable and raised from vetting:

    OutOfBounds
        The raw offset lies beyond the one-past-the-end position.

    InvalidIndex
        The raw offset is inside the container but not on an item
        boundary (e.g. the second byte of a multi-byte character).

Queries with a natural "no" answer (advance past the end, retreat before
the start, contains) return None instead of raising.

Misuse of branded values is reported with BrandError subclasses and
ProofError. Violations of an already established proof are programmer
bugs: they surface only through debug_assert, which is inert when Python
runs with -O or when Settings.debug_checks is off.
"""

from enum import Enum

from branded.config import get_settings


class IndexErrorKind(Enum):
    """Why a raw offset could not be vetted."""

    OUT_OF_BOUNDS = "out_of_bounds"
    INVALID = "invalid"


class TrustedIndexError(IndexError):
    """Base class for vetting failures."""

    kind: IndexErrorKind

    def __init__(self, message: str, offset=None):
        super().__init__(message)
        self.offset = offset


class OutOfBounds(TrustedIndexError):
    """Raised when a raw offset is beyond the container."""

    kind = IndexErrorKind.OUT_OF_BOUNDS


class InvalidIndex(TrustedIndexError):
    """Raised when a raw offset is in bounds but not on an item boundary."""

    kind = IndexErrorKind.INVALID


class BrandError(TypeError):
    """Base class for misuse of branded values."""
    pass


class ForeignBrandError(BrandError):
    """Raised when a value from one scope is used with another scope."""
    pass


class ScopeClosedError(BrandError):
    """Raised when a branded value is used after its scope returned."""
    pass


class BrandEscapeError(BrandError):
    """Raised when a scope callback returns a value stamped with its brand."""
    pass


class ProofError(TypeError):
    """Raised when an operation needs a stronger proof than it was given."""
    pass


class BorrowError(RuntimeError):
    """Raised when a scope cannot acquire its array (shared vs exclusive)."""
    pass


class InvariantViolation(AssertionError):
    """An established proof was contradicted. Always a bug, never user error."""
    pass


def debug_assert(condition: bool, message: str) -> None:
    if __debug__ and not condition and get_settings().debug_checks:
        raise InvariantViolation(message)
