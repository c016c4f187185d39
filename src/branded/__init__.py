"""
Branded Indexing Package

Provably in-bounds positional access into element arrays and UTF-8 text.

Basic structure:
----------------
    - A scope is opened with scope / scope_ref / scope_mut / scope_val.
      The callback receives a Container with two roles: it gives out and
      vets trusted indices and ranges, and it provides access to the data
      through them.

    - The container and its particles share a Brand unique to that scope
      invocation. Particles from another scope, or used after their scope
      returned, are rejected.

    - A NON_EMPTY index addresses a real item; an UNKNOWN index may be the
      one-past-the-end edge. A NON_EMPTY range holds at least one item.

Only vetting a raw offset checks bounds. Indexing with a particle does
not: the particle already proved it.
"""
import logging

from branded.container import Container
from branded.errors import (
    BorrowError,
    BrandError,
    BrandEscapeError,
    ForeignBrandError,
    IndexErrorKind,
    InvalidIndex,
    InvariantViolation,
    OutOfBounds,
    ProofError,
    ScopeClosedError,
    TrustedIndexError,
)
from branded.particle import Index, Range, SimpleIndex, SimpleRange
from branded.proof import Emptiness, NonEmpty, Unknown, combine
from branded.scope import adapt, scope, scope_mut, scope_ref, scope_val
from branded.utf8 import Character, Utf8Text

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "BorrowError",
    "BrandError",
    "BrandEscapeError",
    "Character",
    "Container",
    "Emptiness",
    "ForeignBrandError",
    "Index",
    "IndexErrorKind",
    "InvalidIndex",
    "InvariantViolation",
    "NonEmpty",
    "OutOfBounds",
    "ProofError",
    "Range",
    "ScopeClosedError",
    "SimpleIndex",
    "SimpleRange",
    "TrustedIndexError",
    "Unknown",
    "Utf8Text",
    "adapt",
    "combine",
    "scope",
    "scope_mut",
    "scope_ref",
    "scope_val",
]
