"""
Scope brands.

A Brand is the identity tag shared by a container and every index and
range minted from it during one scope invocation. Brands carry no payload.
Two brands are equal only if they are the same object, so positions from
different scope invocations never match, even over identical data.

A brand is open while its scope runs and closed when the scope returns.
Anything stamped with a closed brand is dead.
"""

import itertools

from branded.errors import ForeignBrandError, ScopeClosedError

_serials = itertools.count(1)


class Brand:
    """
    Unforgeable scope tag.

    Properties:
        serial: Monotonic number, for diagnostics only (never for identity)
        is_open: False once the owning scope has returned
    """

    __slots__ = ("serial", "_open")

    def __init__(self):
        self.serial = next(_serials)
        self._open = True

    @property
    def is_open(self) -> bool:
        return self._open

    def close(self) -> None:
        self._open = False

    def ensure_open(self) -> None:
        if not self._open:
            raise ScopeClosedError(f"Scope #{self.serial} has already returned")

    def ensure_same(self, other: "Brand") -> None:
        """Check that `other` is this very brand and that it is still live."""
        if other is not self:
            raise ForeignBrandError(
                f"Value from scope #{getattr(other, 'serial', '?')} "
                f"used with scope #{self.serial}"
            )
        self.ensure_open()

    def __eq__(self, other):
        return self is other

    def __hash__(self):
        return id(self)

    def __repr__(self):
        state = "open" if self._open else "closed"
        return f"Brand(#{self.serial}, {state})"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __reduce__(self):
        raise TypeError("Brands cannot be pickled; positions are meaningless outside their scope")
