"""
UTF-8 text as a trusted container.

Units are bytes; items are codepoints (1-4 bytes each). A byte offset is
an item boundary iff it is the end of the buffer or the byte there is a
UTF-8 leading byte:

    0xxxxxxx    1-byte sequence
    110xxxxx    start of a 2-byte sequence
    1110xxxx    start of a 3-byte sequence
    11110xxx    start of a 4-byte sequence

Continuation bytes (10xxxxxx) are never boundaries. Equivalently, a byte
is a leading byte iff its value read as a signed 8-bit integer is >= -64.

Buffers are validated as UTF-8 once, on construction; every later
boundary decision relies on that.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Union

from branded.errors import InvariantViolation, debug_assert
from branded.items import TrustedContainer, TrustedItem
from branded.particle import Index
from branded.proof import NonEmpty, Unknown

if TYPE_CHECKING:
    from branded.container import Container

MAX_SEQUENCE_LEN = 4

TextSource = Union[str, bytes, bytearray, memoryview]


def is_leading_byte(byte: int) -> bool:
    return (
        byte & 0b1000_0000 == 0b0000_0000
        or byte & 0b1110_0000 == 0b1100_0000
        or byte & 0b1111_0000 == 0b1110_0000
        or byte & 0b1111_1000 == 0b1111_0000
    )


def encoded_width(lead: int) -> int:
    """
    Number of bytes in the UTF-8 sequence introduced by `lead`.

    Raises:
        ValueError: If `lead` is not a leading byte
    """
    if lead < 0x80:
        return 1
    if lead & 0b1110_0000 == 0b1100_0000:
        return 2
    if lead & 0b1111_0000 == 0b1110_0000:
        return 3
    if lead & 0b1111_1000 == 0b1111_0000:
        return 4
    raise ValueError(f"0x{lead:02x} is not a UTF-8 leading byte")


class Character(str):
    """
    A text span of exactly one codepoint.

    It is a str, so it can be used wherever text is expected. as_char()
    returns a plain str for callers that do not want the subclass.
    """

    def __new__(cls, value: str):
        if not isinstance(value, str) or len(value) != 1:
            raise ValueError(f"Character must be exactly one codepoint, got {value!r}")
        return super().__new__(cls, value)

    def as_char(self) -> str:
        return str.__str__(self)

    def encoded(self) -> bytes:
        return self.encode("utf-8")

    def unit_len(self) -> int:
        """Width of this character in UTF-8 bytes (1-4)."""
        return len(self.encoded())

    def __repr__(self):
        return f"Character({str.__repr__(self)})"


class Codepoint(TrustedItem):
    """Item model of UTF-8 text: one codepoint, read back as a Character."""

    @classmethod
    def vet_inbounds(cls, raw: int, container: "Container") -> Optional[Index]:
        if __debug__:
            debug_assert(0 <= raw < container.length(), f"vet_inbounds({raw}) out of bounds")
        if is_leading_byte(container.array.byte_at(raw)):
            return Index(container.brand, raw, NonEmpty)
        return None

    @classmethod
    def align(cls, raw: int, container: "Container") -> Index:
        """
        Round an in-bounds byte offset down to the start of its character.

        Walks back at most three bytes. Byte 0 of valid UTF-8 is always a
        leading byte, so running out of steps means the buffer is corrupt.
        """
        length = container.length()
        debug_assert(0 <= raw <= length, f"align({raw}) outside 0..{length}")
        if raw == length:
            return Index(container.brand, raw, Unknown)
        array = container.array
        for candidate in range(raw, max(raw - MAX_SEQUENCE_LEN, -1), -1):
            if is_leading_byte(array.byte_at(candidate)):
                return Index(container.brand, candidate, NonEmpty)
        raise InvariantViolation(f"no UTF-8 leading byte within 3 bytes before offset {raw}")

    @classmethod
    def after(cls, index: Index, container: "Container") -> Index:
        width = encoded_width(container.array.byte_at(index.raw))
        if __debug__:
            debug_assert(
                width == container.array.get_unchecked(index.raw).unit_len(),
                f"character at {index.raw} decodes to a different width",
            )
        return Index(container.brand, index.raw + width, Unknown)


class Utf8Text(TrustedContainer):
    """
    A UTF-8 text buffer addressed by byte offsets.

    Owned form: built from a str (encoded once).
    Borrowed form: built over bytes, bytearray or memoryview without
    copying; the buffer must not change size while a scope is open.

    Items are Character values; slices are str.
    """

    item = Codepoint

    def __init__(self, source: TextSource):
        if isinstance(source, str):
            self._buffer = source.encode("utf-8")
            self._text = source
        elif isinstance(source, (bytes, bytearray, memoryview)):
            self._buffer = memoryview(source).cast("B") if isinstance(source, memoryview) else source
            self._text = bytes(self._buffer).decode("utf-8")
        else:
            raise TypeError(f"Utf8Text needs str or a bytes-like buffer, got {type(source).__name__}")
        self._source = source

    @property
    def text(self) -> str:
        """The whole buffer as a str."""
        return self._text

    def byte_at(self, i: int) -> int:
        return self._buffer[i]

    def unit_len(self) -> int:
        return len(self._buffer)

    def get_unchecked(self, i: int) -> Character:
        lead = self._buffer[i]
        debug_assert(is_leading_byte(lead), f"byte offset {i} is not a character boundary")
        width = encoded_width(lead)
        return Character(bytes(self._buffer[i:i + width]).decode("utf-8"))

    def slice_unchecked(self, start: int, end: int) -> str:
        if __debug__:
            length = len(self._buffer)
            debug_assert(start <= end, f"slice {start}..{end} out of order")
            debug_assert(
                start == length or is_leading_byte(self._buffer[start]),
                f"slice start {start} is not a character boundary",
            )
            debug_assert(
                end == length or is_leading_byte(self._buffer[end]),
                f"slice end {end} is not a character boundary",
            )
        return bytes(self._buffer[start:end]).decode("utf-8")

    def untrusted(self) -> TextSource:
        return self._source

    def copy(self) -> "Utf8Text":
        if isinstance(self._source, str):
            return Utf8Text(self._source)
        return Utf8Text(bytes(self._buffer))

    def __repr__(self):
        return f"Utf8Text({self.text!r})"
