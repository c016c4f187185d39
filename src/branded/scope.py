"""
Scope entry points.

A scope is a plain nested call: it mints a fresh Brand, binds it to one
Container over the given array, runs the callback to completion, and then
closes the brand. Everything stamped with that brand is dead afterwards.

    scope(array, f)       permissions follow the array: read-write and
                          exclusive for mutable arrays, read-only and
                          shared otherwise
    scope_ref(array, f)   read-only, shared
    scope_mut(array, f)   read-write, exclusive
    scope_val(array, f)   the container owns a private copy of the data;
                          container.into_untrusted() hands it back

Soundness preconditions checked at run time:
    - the callback's return value must not contain anything stamped with
      the scope's brand (BrandEscapeError); particles smuggled out some
      other way fail with ScopeClosedError on their next use
    - an array under an exclusive scope cannot be scoped again, and an
      array under shared scopes cannot be scoped exclusively (BorrowError);
      wrappers (Utf8Text, ElementArray) and memoryviews count as the buffer
      they read

Example:
    >>> scope("a→中😀", lambda text: text[text.vet(1)].as_char())
    '→'
"""
from __future__ import annotations

import logging
from collections.abc import MutableSequence, Sequence
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, Set, TypeVar

from branded.brand import Brand
from branded.config import get_settings
from branded.container import Container
from branded.errors import BorrowError, BrandEscapeError
from branded.items import ElementArray, MutableElementArray, TrustedContainer
from branded.particle import _BaseIndex, _BaseRange
from branded.utf8 import Utf8Text

logger = logging.getLogger(__name__)

Out = TypeVar("Out")

# id(buffer) -> number of open shared scopes / set of ids under exclusive scopes
_shared: Dict[int, int] = {}
_exclusive: Set[int] = set()


def adapt(array: Any) -> TrustedContainer:
    """
    Wrap plain data in the matching TrustedContainer.

        TrustedContainer   -> itself
        str                -> Utf8Text (owned UTF-8 bytes)
        MutableSequence    -> MutableElementArray (list, bytearray, ...)
        other Sequence     -> ElementArray (tuple, bytes, range, ...)

    Raises:
        TypeError: For anything else
    """
    if isinstance(array, TrustedContainer):
        return array
    if isinstance(array, str):
        return Utf8Text(array)
    if isinstance(array, memoryview):
        return MutableElementArray(array) if not array.readonly else ElementArray(array)
    if isinstance(array, MutableSequence):
        return MutableElementArray(array)
    if isinstance(array, Sequence):
        return ElementArray(array)
    # array.array and other buffer-like sequences that don't register with Sequence
    if hasattr(array, "__getitem__") and hasattr(array, "__len__"):
        return MutableElementArray(array) if hasattr(array, "__setitem__") else ElementArray(array)
    raise TypeError(f"Cannot scope over {type(array).__name__}; wrap it in a TrustedContainer")


def _borrow_key(array: Any) -> int:
    """Identity of the buffer that `array` reads, seen through wrappers and views."""
    if isinstance(array, TrustedContainer):
        array = array.untrusted()
    if isinstance(array, memoryview):
        array = array.obj
    return id(array)


@contextmanager
def _acquire(key: int, exclusive: bool) -> Iterator[None]:
    if key in _exclusive:
        raise BorrowError("Array is already held by an exclusive scope")
    if exclusive:
        if _shared.get(key):
            raise BorrowError("Array is held by a shared scope; cannot open it exclusively")
        _exclusive.add(key)
    else:
        _shared[key] = _shared.get(key, 0) + 1
    try:
        yield
    finally:
        if exclusive:
            _exclusive.discard(key)
        else:
            _shared[key] -= 1
            if not _shared[key]:
                del _shared[key]


def _find_escapee(value: Any, brand: Brand, seen: Set[int]) -> Any:
    """The first value inside `value` stamped with `brand`, or None."""
    if isinstance(value, (_BaseIndex, _BaseRange, Container)):
        return value if value.brand is brand else None
    if isinstance(value, (str, bytes, bytearray, int, float, bool, type(None))):
        return None
    if id(value) in seen:
        return None
    seen.add(id(value))
    if isinstance(value, dict):
        children = [*value.keys(), *value.values()]
    elif isinstance(value, (list, tuple, set, frozenset)):
        children = value
    else:
        return None
    for child in children:
        found = _find_escapee(child, brand, seen)
        if found is not None:
            return found
    return None


def _run(entry: str, key: int, array: TrustedContainer, callback: Callable[[Container], Out],
         writable: bool, exclusive: bool, owned: bool = False) -> Out:
    brand = Brand()
    with _acquire(key, exclusive):
        container = Container(array, brand, writable=writable, owned=owned)
        logger.debug("%s opened scope #%d over %d units", entry, brand.serial, array.unit_len())
        try:
            result = callback(container)
        finally:
            brand.close()
            logger.debug("%s closed scope #%d", entry, brand.serial)
    if get_settings().escape_check:
        escapee = _find_escapee(result, brand, set())
        if escapee is not None:
            raise BrandEscapeError(f"{entry} callback returned a branded value: {escapee!r}")
    return result


def scope(array: Any, callback: Callable[[Container], Out]) -> Out:
    """
    Open a scope over `array`, with permissions that follow the array.

    Mutable arrays are held exclusively and are writable through the
    container; read-only arrays are shared.
    """
    trusted = adapt(array)
    mutable = trusted.is_mutable
    return _run("scope", _borrow_key(array), trusted, callback, writable=mutable, exclusive=mutable)


def scope_ref(array: Any, callback: Callable[[Container], Out]) -> Out:
    """Open a read-only scope over `array`. Nested shared scopes are allowed."""
    return _run("scope_ref", _borrow_key(array), adapt(array), callback, writable=False, exclusive=False)


def scope_mut(array: Any, callback: Callable[[Container], Out]) -> Out:
    """
    Open a read-write scope over `array`, held exclusively.

    Raises:
        TypeError: If the array does not support writes
        BorrowError: If the array is already in another scope
    """
    trusted = adapt(array)
    if not trusted.is_mutable:
        raise TypeError(f"scope_mut() needs a mutable array, got {type(array).__name__}")
    return _run("scope_mut", _borrow_key(array), trusted, callback, writable=True, exclusive=True)


def scope_val(array: Any, callback: Callable[[Container], Out]) -> Out:
    """
    Open a scope over a private copy of `array`.

    The container owns the copy: later changes to `array` do not affect
    it, and container.into_untrusted() returns the (possibly modified)
    copy, which the callback may return.
    """
    owned = adapt(array).copy()
    return _run("scope_val", id(owned), owned, callback,
                writable=owned.is_mutable, exclusive=True, owned=True)
