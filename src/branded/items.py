"""
Item Model: how a container's items map onto its representational units.

A container is addressed in *units* (list slots, bytes). An *item* is a
logical element that may span several units (a UTF-8 codepoint spans 1-4
bytes). Raw offsets are always unit offsets.

Capabilities:

    TrustedContainer
        Implemented per backing-array kind. Exposes the unit length and
        unchecked element / slice access keyed by unit offsets, plus the
        item model (`item`) used to interpret those offsets.

    TrustedContainerMut
        Adds unchecked, length-preserving writes.

    TrustedItem
        Implemented per item kind. The only place real bounds and
        boundary logic happens: vet, vet_inbounds, align, after, and the
        derived advance / before.

    TrustedUnit
        A TrustedItem that is itself the base unit (width 1). Positions
        can then be stepped with plain arithmetic, and simple particles
        may index the container directly.

ARCHITECTURAL RULE:
    The unchecked accessors are called only by Container, with offsets
    that a particle has already proven. They do not re-validate.
"""
from __future__ import annotations

import array
import copy
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar, Optional, Sequence, Type

from branded.errors import InvalidIndex, InvariantViolation, OutOfBounds, debug_assert
from branded.particle import Index, _is_offset
from branded.proof import NonEmpty, Unknown

if TYPE_CHECKING:
    from branded.container import Container

logger = logging.getLogger(__name__)


class TrustedContainer(ABC):
    """
    A backing array that can hand out trusted particles.

    Subclasses set `item` to the TrustedItem class describing their items.
    """

    item: ClassVar[Type["TrustedItem"]]
    is_mutable: ClassVar[bool] = False

    @abstractmethod
    def unit_len(self) -> int:
        """The length in representational units."""

    @abstractmethod
    def get_unchecked(self, i: int) -> Any:
        """The item starting at unit offset `i` (a proven item boundary)."""

    @abstractmethod
    def slice_unchecked(self, start: int, end: int) -> Any:
        """The units in start..end (both proven in bounds)."""

    @abstractmethod
    def untrusted(self) -> Any:
        """The wrapped data, without any branding."""

    @abstractmethod
    def copy(self) -> "TrustedContainer":
        """An independent copy that owns its data."""


class TrustedContainerMut(TrustedContainer):
    """A TrustedContainer that supports length-preserving writes."""

    is_mutable: ClassVar[bool] = True

    @abstractmethod
    def set_unchecked(self, i: int, value: Any) -> None:
        """Replace the item at unit offset `i`."""

    @abstractmethod
    def set_slice_unchecked(self, start: int, end: int, values: Any) -> None:
        """Replace the units in start..end with exactly end - start values."""


class TrustedItem(ABC):
    """
    Boundary logic for one kind of item.

    All methods are classmethods taking the branded Container, so that the
    indices they mint carry its brand.
    """

    @classmethod
    def vet(cls, raw: int, container: "Container") -> Index:
        """
        Vet an untrusted unit offset for lying on an item boundary.

        The one-past-the-end offset is accepted (as an UNKNOWN index).

        Returns:
            NON_EMPTY index for an in-bounds boundary, UNKNOWN index at end

        Raises:
            OutOfBounds: raw is negative, not an integer, or > length
            InvalidIndex: raw < length but not on an item boundary
        """
        length = container.length()
        if not _is_offset(raw) or raw < 0 or raw > length:
            logger.debug("vet(%r) out of bounds for length %d", raw, length)
            raise OutOfBounds(f"Offset {raw!r} is out of bounds for length {length}", raw)
        if raw == length:
            return Index(container.brand, raw, Unknown)
        found = cls.vet_inbounds(raw, container)
        if found is None:
            logger.debug("vet(%r) is not on an item boundary", raw)
            raise InvalidIndex(f"Offset {raw} is not on an item boundary", raw)
        return found

    @classmethod
    @abstractmethod
    def vet_inbounds(cls, raw: int, container: "Container") -> Optional[Index]:
        """
        Vet an offset already proven to satisfy 0 <= raw < length.

        Returns:
            NON_EMPTY index, or None if raw is not an item boundary
        """

    @classmethod
    def align(cls, raw: int, container: "Container") -> Index:
        """
        The nearest item boundary at or before an in-bounds offset.

        `raw` must satisfy 0 <= raw <= length. The end offset aligns to
        itself.
        """
        length = container.length()
        debug_assert(0 <= raw <= length, f"align({raw}) outside 0..{length}")
        if raw == length:
            return Index(container.brand, raw, Unknown)
        for candidate in range(raw, -1, -1):
            found = cls.vet_inbounds(candidate, container)
            if found is not None:
                return found
        raise InvariantViolation(f"no item boundary at or before offset {raw}")

    @classmethod
    @abstractmethod
    def after(cls, index: Index, container: "Container") -> Index:
        """The offset right after the item starting at a NON_EMPTY `index`."""

    @classmethod
    def advance(cls, index: Index, container: "Container") -> Optional[Index]:
        """The start of the next item, or None if `index` is the last one."""
        following = cls.after(index, container)
        if following.raw < container.length():
            return Index(container.brand, following.raw, NonEmpty)
        return None

    @classmethod
    def before(cls, index: Index, container: "Container") -> Optional[Index]:
        """The start of the item preceding `index`, or None at the start."""
        if index.raw == 0:
            return None
        return cls.align(index.raw - 1, container)


class TrustedUnit(TrustedItem):
    """An item exactly one unit wide."""

    @classmethod
    def vet_inbounds(cls, raw: int, container: "Container") -> Optional[Index]:
        if __debug__:
            debug_assert(0 <= raw < container.length(), f"vet_inbounds({raw}) out of bounds")
        return Index(container.brand, raw, NonEmpty)

    @classmethod
    def align(cls, raw: int, container: "Container") -> Index:
        length = container.length()
        debug_assert(0 <= raw <= length, f"align({raw}) outside 0..{length}")
        return Index(container.brand, raw, NonEmpty if raw < length else Unknown)

    @classmethod
    def after(cls, index: Index, container: "Container") -> Index:
        return Index(container.brand, index.raw + 1, Unknown)


class Element(TrustedUnit):
    """Item model of plain element arrays: one slot, one item."""
    pass


class ElementArray(TrustedContainer):
    """
    A read-only contiguous element array.

    Wraps (borrows) any Sequence: tuple, list, bytes, array.array, range,
    memoryview. Items are the sequence elements; slices are whatever the
    sequence's own slicing returns.
    """

    item = Element

    def __init__(self, data: Sequence):
        self._data = data

    def unit_len(self) -> int:
        return len(self._data)

    def get_unchecked(self, i: int) -> Any:
        return self._data[i]

    def slice_unchecked(self, start: int, end: int) -> Any:
        return self._data[start:end]

    def untrusted(self) -> Sequence:
        return self._data

    def copy(self) -> "ElementArray":
        return type(self)(_copy_sequence(self._data))

    def __repr__(self):
        return f"{type(self).__name__}({self._data!r})"


class MutableElementArray(ElementArray, TrustedContainerMut):
    """A contiguous element array over a MutableSequence (list, bytearray, ...)."""

    def set_unchecked(self, i: int, value: Any) -> None:
        self._data[i] = value

    def set_slice_unchecked(self, start: int, end: int, values: Any) -> None:
        if not hasattr(values, "__len__"):
            values = list(values)
        if len(values) != end - start:
            raise ValueError(
                f"Slice assignment must preserve length: {end - start} slots, {len(values)} values"
            )
        self._data[start:end] = values


def _copy_sequence(data: Sequence) -> Sequence:
    if isinstance(data, memoryview):
        if data.format in ("B", "b", "c"):
            return bytearray(data) if not data.readonly else data.tobytes()
        # typed views copy elements, not their raw bytes
        items = data.tolist()
        if data.readonly:
            return tuple(items)
        if data.format in array.typecodes:
            return array.array(data.format, items)
        return items
    return copy.copy(data)
