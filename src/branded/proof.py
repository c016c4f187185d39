"""
Emptiness Proofs

Every index and range carries one of two emptiness markers:

    NON_EMPTY
        The index addresses a real item (it is strictly before the end of
        the container and on an item boundary), or the range holds at
        least one item.

    UNKNOWN
        No such guarantee. An UNKNOWN index may be the one-past-the-end
        position; an UNKNOWN range may be empty.

Joining two ranges combines their proofs with `combine`.

ARCHITECTURAL RULE:
    The lattice has exactly two elements. The combination rule is a
    closed lookup table, not an extensible protocol.
"""

from enum import Enum


class Emptiness(Enum):
    """
    Emptiness marker carried by indices and ranges.

    Properties:
        NON_EMPTY: statically known to address at least one item
        UNKNOWN: may be empty / may be the end position
    """

    NON_EMPTY = "non_empty"
    UNKNOWN = "unknown"

    @property
    def is_nonempty(self) -> bool:
        return self is Emptiness.NON_EMPTY


NonEmpty = Emptiness.NON_EMPTY
Unknown = Emptiness.UNKNOWN


# (P, Q) -> Sum
_COMBINE_TABLE = {
    (NonEmpty, NonEmpty): NonEmpty,
    (NonEmpty, Unknown): NonEmpty,
    (Unknown, NonEmpty): NonEmpty,
    (Unknown, Unknown): Unknown,
}


def combine(p: Emptiness, q: Emptiness) -> Emptiness:
    """
    Combine the proofs of two joined ranges.

    The joined span contains an item if either half did:
        combine(NON_EMPTY, q) == NON_EMPTY
        combine(UNKNOWN, q) == q

    Raises:
        TypeError: If either operand is not an Emptiness marker
    """
    try:
        return _COMBINE_TABLE[(p, q)]
    except KeyError:
        raise TypeError(f"Cannot combine proofs {p!r} and {q!r}") from None
