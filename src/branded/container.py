"""
The branded Container.

A Container is handed to the callback of a scope entry point. It wraps one
backing TrustedContainer and the scope's Brand, and it is the only gateway
to indexed access:

    - it mints trusted particles (start, end, vet, align, split_*, ...)
    - it accepts particles of its own brand for indexing and slicing

Indexing with a particle does not re-check bounds: the particle proved
them when it was minted. What is checked, in O(1), is that the particle
carries this container's brand, that the scope is still open, and that
the particle's proof is strong enough for the access (NON_EMPTY for
element access; perfect particles, or simple ones on unit-item
containers).

ARCHITECTURAL RULE:
    Every raw offset that reaches the backing array's *_unchecked methods
    comes from a particle of this container's brand.
"""
from __future__ import annotations

from typing import Any, Iterator, Optional, Tuple, Union

from branded.brand import Brand
from branded.errors import (
    InvalidIndex,
    OutOfBounds,
    ProofError,
    debug_assert,
)
from branded.items import TrustedContainer, TrustedUnit
from branded.particle import (
    Index,
    Range,
    SimpleIndex,
    SimpleRange,
    _BaseIndex,
    _BaseRange,
    _is_offset,
    _require_nonempty,
)
from branded.proof import NonEmpty, Unknown

Key = Union[Index, SimpleIndex, Range, SimpleRange, slice]


def _span_proof(start: int, end: int):
    return NonEmpty if start < end else Unknown


class Container:
    """
    A backing array bound to one scope's brand.

    Properties:
        brand: The scope tag shared with every particle minted here
        array: The backing TrustedContainer (for item models)
        is_writable: True under scope_mut / scope_val on a mutable array
    """

    __slots__ = ("brand", "_array", "_writable", "_owned")

    def __init__(self, array: TrustedContainer, brand: Brand,
                 writable: bool = False, owned: bool = False):
        if writable and not array.is_mutable:
            raise TypeError(f"{type(array).__name__} does not support writes")
        self._array = array
        self.brand = brand
        self._writable = writable
        self._owned = owned

    # =========================================================================
    # INTRINSIC PROPERTIES
    # =========================================================================

    @property
    def array(self) -> TrustedContainer:
        self.brand.ensure_open()
        return self._array

    @property
    def item(self):
        return self._array.item

    @property
    def is_writable(self) -> bool:
        return self._writable

    def _check(self, particle) -> None:
        self.brand.ensure_same(particle.brand)

    def _has_unit_items(self) -> bool:
        return issubclass(self._array.item, TrustedUnit)

    def untrusted(self) -> Any:
        """The wrapped data without the branding."""
        self.brand.ensure_open()
        return self._array.untrusted()

    def into_untrusted(self) -> Any:
        """
        Give back the data owned by a scope_val container.

        Only containers that own their data (scope_val) support this;
        borrowed data already belongs to the caller.
        """
        if not self._owned:
            raise TypeError("into_untrusted() is only available on scope_val containers")
        return self.untrusted()

    def length(self) -> int:
        """The length in representational units."""
        self.brand.ensure_open()
        return self._array.unit_len()

    def __len__(self) -> int:
        return self.length()

    def is_empty(self) -> bool:
        return self.length() == 0

    def start(self) -> Index:
        """The start index (offset 0)."""
        self.brand.ensure_open()
        return Index(self.brand, 0, Unknown)

    def end(self) -> Index:
        """The one-past-the-end index."""
        return Index(self.brand, self.length(), Unknown)

    def as_range(self) -> Range:
        """The full range of the container."""
        return Range(self.brand, 0, self.length(), Unknown)

    # =========================================================================
    # UPGRADING PARTICLES
    # =========================================================================

    def vet(self, particle: Union[int, SimpleIndex, SimpleRange, Index, range, slice]):
        """
        Vet a particle for being in bounds and on item boundaries.

        Accepts:
            int: raw unit offset
            SimpleIndex / SimpleRange: upgraded to perfect particles
            Index: an UNKNOWN index upgraded to NON_EMPTY
            range / slice: see vet_range

        Returns:
            Index (NON_EMPTY, or UNKNOWN at the end) or Range

        Raises:
            OutOfBounds: beyond the container (or, for Index, at its end)
            InvalidIndex: in bounds but not on an item boundary
        """
        if isinstance(particle, Index):
            self._check(particle)
            if particle.raw < self._array.unit_len():
                return particle._with_proof(NonEmpty)
            raise OutOfBounds(f"Index {particle.raw} is the end of the container", particle.raw)
        if isinstance(particle, SimpleIndex):
            self._check(particle)
            if particle.proof is NonEmpty:
                found = self.item.vet_inbounds(particle.raw, self)
                if found is None:
                    raise InvalidIndex(f"Offset {particle.raw} is not on an item boundary", particle.raw)
                return found
            return self.item.vet(particle.raw, self)
        if isinstance(particle, SimpleRange):
            self._check(particle)
            self.item.vet(particle.start_raw, self)
            self.item.vet(particle.end_raw, self)
            return Range(self.brand, particle.start_raw, particle.end_raw, particle.proof)
        if isinstance(particle, Range):
            self._check(particle)
            return particle
        if isinstance(particle, (range, slice)):
            return self.vet_range(particle)
        self.brand.ensure_open()
        return self.item.vet(particle, self)

    def vet_or_end(self, raw: int) -> Index:
        """Vet a raw offset, including the one-past-the-end offset, without a proof."""
        return self.vet(raw).erased()

    def vet_range(self, start: Union[int, range, slice, None] = None,
                  end: Optional[int] = None) -> Range:
        """
        Vet both ends of a raw interval.

        Call as vet_range(a, b), vet_range(range(a, b)) or
        vet_range(slice(a, b)). A missing end means the matching edge of
        the container. The start is vetted first; the first failure wins.

        Raises:
            OutOfBounds / InvalidIndex: from vetting either end
            InvalidIndex: if start > end, or a range/slice has a step
        """
        if isinstance(start, (range, slice)):
            if start.step not in (None, 1):
                raise InvalidIndex(f"Cannot vet a stepped interval {start!r}")
            start, end = start.start, start.stop
        self.brand.ensure_open()
        length = self._array.unit_len()
        first = self.item.vet(0 if start is None else start, self)
        last = self.item.vet(length if end is None else end, self)
        if first.raw > last.raw:
            raise InvalidIndex(f"Range start {first.raw} is after its end {last.raw}", first.raw)
        return Range(self.brand, first.raw, last.raw, Unknown)

    def align(self, particle: Union[int, SimpleIndex]) -> Index:
        """
        Round an in-bounds offset down to the nearest item boundary.

        Raises:
            OutOfBounds: for a raw offset outside 0..length
        """
        if isinstance(particle, _BaseIndex):
            self._check(particle)
            raw = particle.raw
        else:
            raw = particle
            length = self.length()
            if not _is_offset(raw) or not 0 <= raw <= length:
                raise OutOfBounds(f"Offset {raw!r} is out of bounds for length {length}", raw)
        return self.item.align(raw, self)

    # =========================================================================
    # DERIVING PARTICLES
    # =========================================================================

    def _perfect_index(self, index: Index) -> Index:
        if not isinstance(index, Index):
            raise TypeError(f"Expected a perfect Index, got {type(index).__name__}")
        self._check(index)
        return index

    def index_after(self, index: Index) -> Index:
        """The offset right after the item at a NON_EMPTY index."""
        index = self._perfect_index(index)
        _require_nonempty(index, "index_after")
        return self.item.after(index, self)

    def advance(self, index: Index) -> Optional[Index]:
        """The next item's index, or None if `index` is the last item."""
        index = self._perfect_index(index)
        _require_nonempty(index, "advance")
        return self.item.advance(index, self)

    def retreat(self, index: Index) -> Optional[Index]:
        """The previous item's index, or None if `index` is the start."""
        index = self._perfect_index(index)
        return self.item.before(index, self)

    def advance_by(self, index: _BaseIndex, n: int) -> Index:
        """
        Step `n` units forward and vet the result.

        Raises:
            OutOfBounds: past the end of the container
            InvalidIndex: lands inside an item
        """
        if n < 0:
            raise ValueError(f"advance_by() needs a non-negative step, got {n}")
        self._check(index)
        return self.item.vet(index.raw + n, self)

    def decrease_by(self, index: _BaseIndex, n: int) -> Index:
        """
        Step `n` units backward and vet the result.

        Raises:
            OutOfBounds: before the start of the container
            InvalidIndex: lands inside an item
        """
        if n < 0:
            raise ValueError(f"decrease_by() needs a non-negative step, got {n}")
        self._check(index)
        return self.item.vet(index.raw - n, self)

    def split_at(self, index: Index) -> Tuple[Range, Range]:
        """Split the whole container into 0..index and index..end."""
        index = self._perfect_index(index)
        length = self._array.unit_len()
        return (
            Range(self.brand, 0, index.raw, _span_proof(0, index.raw)),
            Range(self.brand, index.raw, length, _span_proof(index.raw, length)),
        )

    def split_after(self, index: Index) -> Tuple[Range, Range]:
        """Split the whole container right after the item at a NON_EMPTY index."""
        following = self.index_after(index)
        length = self._array.unit_len()
        return (
            Range(self.brand, 0, following.raw, NonEmpty),
            Range(self.brand, following.raw, length, _span_proof(following.raw, length)),
        )

    def split_around(self, range_: Range) -> Tuple[Range, Range, Range]:
        """Split the whole container into the parts before, at and after `range_`."""
        if not isinstance(range_, Range):
            raise TypeError(f"Expected a perfect Range, got {type(range_).__name__}")
        self._check(range_)
        length = self._array.unit_len()
        return (
            Range(self.brand, 0, range_.start_raw, _span_proof(0, range_.start_raw)),
            range_,
            Range(self.brand, range_.end_raw, length, _span_proof(range_.end_raw, length)),
        )

    def before(self, index: Index) -> Range:
        """The range strictly before `index`."""
        return self.split_at(index)[0]

    def after(self, index: Index) -> Range:
        """The range strictly after the item at a NON_EMPTY `index`."""
        return self.split_after(index)[1]

    def iter_indices(self, range_: Optional[Range] = None) -> Iterator[Index]:
        """Yield the NON_EMPTY index of every item in `range_` (default: all)."""
        if range_ is None:
            range_ = self.as_range()
        elif not isinstance(range_, Range):
            raise TypeError(f"Expected a perfect Range, got {type(range_).__name__}")
        self._check(range_)
        current = range_.nonempty()
        while current is not None:
            yield current.start()
            current = current.advance_in(self)

    def __iter__(self):
        for index in self.iter_indices():
            yield self[index]

    # =========================================================================
    # ACCESSORS
    # =========================================================================

    def _bounds(self, key: Key) -> Tuple[int, int]:
        """Unit bounds for a slicing key, after brand and kind checks."""
        if isinstance(key, _BaseRange):
            self._check(key)
            if isinstance(key, SimpleRange):
                self._require_unit_items(key)
            return key.start_raw, key.end_raw
        if key.step is not None:
            raise TypeError("Branded slices cannot have a step")
        start = self._edge(key.start, 0)
        stop = self._edge(key.stop, self._array.unit_len())
        if start > stop:
            raise ValueError(f"Slice start {start} is after its end {stop}")
        return start, stop

    def _edge(self, bound, default: int) -> int:
        if bound is None:
            self.brand.ensure_open()
            return default
        if not isinstance(bound, _BaseIndex):
            raise TypeError(f"Slice bounds must be branded indices, got {type(bound).__name__}; vet them first")
        self._check(bound)
        if isinstance(bound, SimpleIndex):
            self._require_unit_items(bound)
        return bound.raw

    def _element(self, key: _BaseIndex) -> int:
        self._check(key)
        if isinstance(key, SimpleIndex):
            self._require_unit_items(key)
        _require_nonempty(key, "Element access")
        if __debug__:
            debug_assert(key.raw < self._array.unit_len(), f"non-empty index {key.raw} at or past the end")
        return key.raw

    def _require_unit_items(self, particle) -> None:
        if not self._has_unit_items():
            raise ProofError(
                f"{type(particle).__name__} cannot index a container of "
                f"{self._array.item.__name__} items; vet or align it first"
            )

    def __getitem__(self, key: Key) -> Any:
        if isinstance(key, _BaseIndex):
            return self._array.get_unchecked(self._element(key))
        if isinstance(key, (_BaseRange, slice)):
            start, end = self._bounds(key)
            return self._array.slice_unchecked(start, end)
        raise TypeError(
            f"Container indices must be branded particles, not {type(key).__name__}; "
            f"use vet() for raw offsets"
        )

    def __setitem__(self, key: Key, value: Any) -> None:
        if not self._writable:
            raise TypeError("Container is read-only; open it with scope_mut() to write")
        if isinstance(key, _BaseIndex):
            self._array.set_unchecked(self._element(key), value)
        elif isinstance(key, (_BaseRange, slice)):
            start, end = self._bounds(key)
            self._array.set_slice_unchecked(start, end, value)
        else:
            raise TypeError(
                f"Container indices must be branded particles, not {type(key).__name__}; "
                f"use vet() for raw offsets"
            )

    def __repr__(self):
        return f"Container<#{self.brand.serial}>({self._array!r})"
