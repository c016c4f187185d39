"""
Branded Particles: Indices and Ranges

Particles are small immutable values stamped with the Brand of the scope
that minted them. They never hold the backing data; all element access
goes through the Container of the same brand.

Two kinds of particle exist:

    perfect (Index, Range)
        Always on an item boundary of the container. Safe to dereference
        once it carries a NON_EMPTY proof.

    simple (SimpleIndex, SimpleRange)
        Only known to lie within the container's unit range. Cheap to
        step and compare, but not on an item boundary in general. Upgrade
        with Container.vet or Container.align before dereferencing a
        container whose items span several units.

There is no implicit conversion from simple to perfect.

INVARIANTS:
    - 0 <= raw <= container length for every index
    - start <= end for every range, whatever its proof
    - a NON_EMPTY index is strictly before the end
    - a NON_EMPTY range has start < end

Comparisons look at raw offsets only (perfect and simple may be compared
with each other), but both operands must come from the same live scope.

IMPORTANT:
    Do not construct particles directly. They are minted by a Container
    (or derived from particles that were).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Union

from branded.brand import Brand
from branded.errors import ProofError, TrustedIndexError, debug_assert
from branded.proof import Emptiness, NonEmpty, Unknown, combine

if TYPE_CHECKING:
    from branded.container import Container


def _require_nonempty(particle, operation: str) -> None:
    if particle.proof is not NonEmpty:
        raise ProofError(f"{operation} requires a non-empty proof, got {particle!r}")


# =============================================================================
# INDICES
# =============================================================================


@dataclass(frozen=True, eq=False, repr=False)
class _BaseIndex:
    brand: Brand
    raw: int
    proof: Emptiness = Unknown

    def __post_init__(self):
        if __debug__:
            debug_assert(self.raw >= 0, f"negative index offset {self.raw}")

    def _peer(self, other) -> bool:
        if not isinstance(other, _BaseIndex):
            return False
        self.brand.ensure_same(other.brand)
        return True

    def _with_proof(self, proof: Emptiness):
        return type(self)(self.brand, self.raw, proof)

    def untrusted(self) -> int:
        """This index without the brand."""
        return self.raw

    def erased(self):
        """This index without the emptiness proof."""
        return self._with_proof(Unknown)

    def in_range(self, range_: "_BaseRange"):
        """A non-empty copy of this index if it lies within `range_`."""
        return range_.contains(self)

    def __eq__(self, other):
        if not self._peer(other):
            return NotImplemented
        return self.raw == other.raw

    def __ne__(self, other):
        if not self._peer(other):
            return NotImplemented
        return self.raw != other.raw

    def __lt__(self, other):
        if not self._peer(other):
            return NotImplemented
        return self.raw < other.raw

    def __le__(self, other):
        if not self._peer(other):
            return NotImplemented
        return self.raw <= other.raw

    def __gt__(self, other):
        if not self._peer(other):
            return NotImplemented
        return self.raw > other.raw

    def __ge__(self, other):
        if not self._peer(other):
            return NotImplemented
        return self.raw >= other.raw

    def __hash__(self):
        return hash(self.raw)

    def __repr__(self):
        return f"{type(self).__name__}<#{self.brand.serial}>({self.raw}, {self.proof.value})"


class Index(_BaseIndex):
    """
    A perfect, branded index: always on an item boundary.

    A NON_EMPTY index addresses a real item and can be used to index its
    Container. An UNKNOWN index may be the one-past-the-end position; it
    can bound a slice but not be dereferenced.
    """

    def simple(self) -> "SimpleIndex":
        """This index in simple manipulation mode."""
        return SimpleIndex(self.brand, self.raw, self.proof)

    def nonempty_in(self, container: "Container") -> Optional["Index"]:
        """A non-empty proof for this index, if it is before the end."""
        container._check(self)
        if self.raw < container.length():
            return self._with_proof(NonEmpty)
        return None


class SimpleIndex(_BaseIndex):
    """A branded unit offset, not necessarily on an item boundary."""

    def after(self) -> "SimpleIndex":
        """The (simple) index directly after this one."""
        _require_nonempty(self, "SimpleIndex.after")
        return SimpleIndex(self.brand, self.raw + 1, Unknown)


# =============================================================================
# RANGES
# =============================================================================


@dataclass(frozen=True, eq=False, repr=False)
class _BaseRange:
    brand: Brand
    start_raw: int
    end_raw: int
    proof: Emptiness = Unknown

    _index_cls = _BaseIndex

    def __post_init__(self):
        if __debug__:
            debug_assert(
                0 <= self.start_raw <= self.end_raw,
                f"range bounds out of order: {self.start_raw}..{self.end_raw}",
            )
            debug_assert(
                self.proof is not NonEmpty or self.start_raw < self.end_raw,
                f"empty range {self.start_raw}..{self.end_raw} claims to be non-empty",
            )

    @classmethod
    def singleton(cls, index: _BaseIndex):
        """An empty range at the given index."""
        return cls(index.brand, index.raw, index.raw, Unknown)

    def _make(self, start: int, end: int, proof: Emptiness = Unknown):
        return type(self)(self.brand, start, end, proof)

    def _span(self, start: int, end: int):
        """A sub-range whose proof follows from its own bounds."""
        return self._make(start, end, NonEmpty if start < end else Unknown)

    def _index(self, raw: int, proof: Emptiness = Unknown):
        return self._index_cls(self.brand, raw, proof)

    def _peer_index(self, index: _BaseIndex) -> _BaseIndex:
        if not isinstance(index, _BaseIndex):
            raise TypeError(f"Expected a branded index, got {type(index).__name__}")
        self.brand.ensure_same(index.brand)
        return index

    def _peer_range(self, other: "_BaseRange") -> "_BaseRange":
        if not isinstance(other, _BaseRange):
            raise TypeError(f"Expected a branded range, got {type(other).__name__}")
        self.brand.ensure_same(other.brand)
        return other

    # Proof manipulation

    def untrusted(self) -> range:
        """This range without the brand."""
        return range(self.start_raw, self.end_raw)

    def erased(self):
        """This range without the emptiness proof."""
        return self._make(self.start_raw, self.end_raw, Unknown)

    def nonempty(self):
        """This range with a non-empty proof, or None if it is empty."""
        if self.is_empty():
            return None
        return self._make(self.start_raw, self.end_raw, NonEmpty)

    # Intrinsic properties

    def start(self):
        """The start index; it carries the range's proof."""
        return self._index(self.start_raw, self.proof)

    def end(self):
        """The end index (never dereferenceable)."""
        return self._index(self.end_raw, Unknown)

    def __len__(self) -> int:
        """The length in representational units."""
        return self.end_raw - self.start_raw

    def len(self) -> int:
        """The length in representational units; same as len(range_)."""
        return self.end_raw - self.start_raw

    def is_empty(self) -> bool:
        return self.start_raw >= self.end_raw

    def contains(self, index: _BaseIndex):
        """If `index` is in this range, the same index with a non-empty proof."""
        index = self._peer_index(index)
        if self.start_raw <= index.raw < self.end_raw:
            return index._with_proof(NonEmpty)
        return None

    def contains_in(self, raw: int, container: "Container") -> Optional[Index]:
        """If the absolute raw offset is an item boundary within this range."""
        container._check(self)
        if not self.start_raw <= raw < self.end_raw:
            return None
        try:
            return container.vet(raw)
        except TrustedIndexError:
            return None

    # Manipulation

    def split_at(self, index: _BaseIndex):
        """
        Split this range at `index`, if start <= index <= end.

        The index itself belongs to the second range. Each half is
        non-empty exactly when the split point does not touch its edge.
        """
        index = self._peer_index(index)
        if not self.start_raw <= index.raw <= self.end_raw:
            return None
        return (
            self._span(self.start_raw, index.raw),
            self._span(index.raw, self.end_raw),
        )

    def join(self, other: "_BaseRange"):
        """
        Join two adjacent ranges.

        They must be exactly touching and in left-to-right order; the
        result is non-empty if either part was.
        """
        other = self._coerce_peer_range(other)
        if self.end_raw != other.start_raw:
            return None
        return self._make(self.start_raw, other.end_raw, combine(self.proof, other.proof))

    def join_cover(self, other: "_BaseRange"):
        """Extend this range to cover `other` too, including any gap."""
        other = self._coerce_peer_range(other)
        return self._make(
            min(self.start_raw, other.start_raw),
            max(self.end_raw, other.end_raw),
            combine(self.proof, other.proof),
        )

    def extend_end(self, index: _BaseIndex):
        """Extend the end of this range to `index` (never shrinks)."""
        index = self._coerce_peer_index(index)
        return self._make(self.start_raw, max(self.end_raw, index.raw), self.proof)

    def extend_start(self, index: _BaseIndex):
        """Extend the start of this range back to `index` (never shrinks)."""
        index = self._coerce_peer_index(index)
        if index.raw < self.start_raw:
            # the new start is a boundary strictly before an existing one
            return self._make(index.raw, self.end_raw, NonEmpty)
        return self

    def frontiers(self):
        """The empty ranges at the start and at the end of this range."""
        return (
            self._make(self.start_raw, self.start_raw),
            self._make(self.end_raw, self.end_raw),
        )

    def __eq__(self, other):
        if not isinstance(other, _BaseRange):
            return NotImplemented
        self.brand.ensure_same(other.brand)
        return (self.start_raw, self.end_raw) == (other.start_raw, other.end_raw)

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self):
        return hash((self.start_raw, self.end_raw))

    def __repr__(self):
        return (
            f"{type(self).__name__}<#{self.brand.serial}>"
            f"({self.start_raw}..{self.end_raw}, {self.proof.value})"
        )


class Range(_BaseRange):
    """
    A perfect, branded range: both ends on item boundaries.

    A NON_EMPTY range holds at least one item, so its start() is a
    dereferenceable index.
    """

    _index_cls = Index

    @classmethod
    def from_indices(cls, start: Index, end: Index) -> "Range":
        """A range between two perfect indices of the same scope."""
        if not isinstance(start, Index) or not isinstance(end, Index):
            raise TypeError("Range.from_indices requires two perfect indices")
        start.brand.ensure_same(end.brand)
        if start.raw > end.raw:
            raise ValueError(f"Range start {start.raw} is after its end {end.raw}")
        return cls(start.brand, start.raw, end.raw, Unknown)

    def _coerce_peer_index(self, index) -> Index:
        if isinstance(index, SimpleIndex):
            raise TypeError("A perfect range cannot be bounded by a simple index; vet it first")
        return self._peer_index(index)

    def _coerce_peer_range(self, other) -> "Range":
        if isinstance(other, SimpleRange):
            raise TypeError("Cannot combine a perfect range with a simple range; vet it first")
        return self._peer_range(other)

    def split_at(self, index: Index):
        return super().split_at(self._coerce_peer_index(index))

    def simple(self) -> "SimpleRange":
        """This range in simple manipulation mode."""
        return SimpleRange(self.brand, self.start_raw, self.end_raw, self.proof)

    def vet(self, raw: int) -> Optional["SimpleIndex"]:
        """
        Vet an untrusted offset for lying inside this range.

        Returns a simple index: being inside the range does not put it on
        an item boundary.
        """
        return self.simple().vet(raw)

    def advance_in(self, container: "Container") -> Optional["Range"]:
        """
        This range with its start moved to the next item.

        Returns None if the result would be empty.
        """
        _require_nonempty(self, "Range.advance_in")
        container._check(self)
        following = container.advance(self.start())
        if following is not None and following.raw < self.end_raw:
            return self._make(following.raw, self.end_raw, NonEmpty)
        return None


class SimpleRange(_BaseRange):
    """A branded unit interval whose ends need not be item boundaries."""

    _index_cls = SimpleIndex

    def _coerce_peer_index(self, index) -> SimpleIndex:
        index = self._peer_index(index)
        if isinstance(index, Index):
            return index.simple()
        return index

    def _coerce_peer_range(self, other) -> "SimpleRange":
        other = self._peer_range(other)
        if isinstance(other, Range):
            return other.simple()
        return other

    def split_at(self, index: _BaseIndex):
        return super().split_at(self._coerce_peer_index(index))

    def _within(self, start: int, end: int) -> bool:
        return self.start_raw <= start <= end <= self.end_raw

    def vet(self, particle: Union[int, range, slice, _BaseIndex, _BaseRange]):
        """
        Vet a particle for lying within this range.

        Accepts a raw offset, a branded index, a branded range, or a
        step-1 `range`/`slice` of raw offsets. Indices must be strictly
        inside the range (and come back non-empty); sub-ranges must start
        inside it and end no later than it does.

        Returns:
            A simple particle, or None if it does not fit
        """
        if isinstance(particle, _BaseIndex):
            return self.contains(self._coerce_peer_index(particle))
        if isinstance(particle, _BaseRange):
            other = self._coerce_peer_range(particle)
            if self.start_raw <= other.start_raw < self.end_raw and other.end_raw <= self.end_raw:
                return other
            return None
        if isinstance(particle, (range, slice)):
            start = self.start_raw if particle.start is None else particle.start
            stop = self.end_raw if particle.stop is None else particle.stop
            if particle.step not in (None, 1) or not _is_offset(start) or not _is_offset(stop):
                return None
            if self._within(start, stop):
                return self._span(start, stop)
            return None
        if _is_offset(particle) and self.start_raw <= particle < self.end_raw:
            return SimpleIndex(self.brand, particle, NonEmpty)
        return None

    def vet_or_end(self, raw: int) -> Optional[SimpleIndex]:
        """Vet an offset for being in this range or exactly at its end."""
        if _is_offset(raw) and self.start_raw <= raw <= self.end_raw:
            return SimpleIndex(self.brand, raw, Unknown)
        return None


def _is_offset(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
