"""
Tests for UTF-8 text containers.

These tests verify:
    - Byte-offset vetting against character boundaries
    - align / index_after / advance / retreat over multi-byte characters
    - Character values and str slices
    - Owned and borrowed buffers
"""

from pathlib import Path

import pytest
import yaml

from branded.errors import InvalidIndex, InvariantViolation, OutOfBounds, ProofError
from branded.proof import NonEmpty, Unknown
from branded.scope import scope_ref
from branded.utf8 import Character, Utf8Text, encoded_width, is_leading_byte

DATA_DIR = Path(__file__).parent / "data"

with open(DATA_DIR / "utf8_cases.yaml", encoding="utf-8") as f:
    CASES = yaml.safe_load(f)


def case_id(case):
    return repr(case["text"])


@pytest.fixture(params=CASES, ids=case_id)
def case(request):
    return request.param


class TestLeadingBytes:
    """Test the byte classification helpers."""

    @pytest.mark.parametrize("byte,width", [(0x00, 1), (0x7F, 1), (0xC3, 2), (0xE2, 3), (0xF0, 4)])
    def test_leading(self, byte, width):
        assert is_leading_byte(byte)
        assert encoded_width(byte) == width

    @pytest.mark.parametrize("byte", [0x80, 0xBF, 0xF8, 0xFF])
    def test_not_leading(self, byte):
        assert not is_leading_byte(byte)
        with pytest.raises(ValueError):
            encoded_width(byte)


class TestVet:
    """Test vetting byte offsets in text."""

    def test_length_in_bytes(self, case):
        assert scope_ref(case["text"], len) == case["byte_len"]

    def test_boundaries_vet(self, case):
        def check(c):
            for raw in case["boundaries"]:
                ix = c.vet(raw)
                assert ix.untrusted() == raw
                assert ix.proof is (NonEmpty if raw < case["byte_len"] else Unknown)
        scope_ref(case["text"], check)

    def test_continuation_bytes_are_invalid(self, case):
        def check(c):
            for raw in range(case["byte_len"]):
                if raw in case["boundaries"]:
                    continue
                with pytest.raises(InvalidIndex) as excinfo:
                    c.vet(raw)
                assert excinfo.value.offset == raw
        scope_ref(case["text"], check)

    def test_past_end_is_out_of_bounds(self, case):
        def check(c):
            with pytest.raises(OutOfBounds):
                c.vet(case["byte_len"] + 1)
            with pytest.raises(OutOfBounds):
                c.vet(-1)
        scope_ref(case["text"], check)

    def test_characters(self, case):
        def check(c):
            return [ch.as_char() for ch in c]
        assert scope_ref(case["text"], check) == case["chars"]


class TestNavigation:
    """Test align / index_after / advance / retreat."""

    def test_align(self, case):
        def check(c):
            for raw, expected in case["align"].items():
                assert c.align(raw).untrusted() == expected
        scope_ref(case["text"], check)

    def test_align_end(self, case):
        def check(c):
            ix = c.align(case["byte_len"])
            assert ix == c.end()
            assert ix.proof is Unknown
        scope_ref(case["text"], check)

    def test_after(self, case):
        def check(c):
            for raw, expected in case["after"].items():
                assert c.index_after(c.vet(raw)).untrusted() == expected
        scope_ref(case["text"], check)

    def test_walk_forward_and_back(self, case):
        def check(c):
            forward = [ix.untrusted() for ix in c.iter_indices()]
            backward = []
            ix = c.end()
            while True:
                ix = c.retreat(ix)
                if ix is None:
                    break
                backward.append(ix.untrusted())
            return forward, backward

        forward, backward = scope_ref(case["text"], check)
        assert forward == case["boundaries"][:-1]
        assert backward == list(reversed(forward))

    def test_advance_stops_at_last(self):
        def check(c):
            last = c.vet(7)
            assert c.advance(last) is None
            assert c.advance(c.vet(4)) == c.vet(7)
        scope_ref("a→中😀", check)

    def test_index_after_needs_proof(self):
        def check(c):
            with pytest.raises(ProofError):
                c.index_after(c.end())
        scope_ref("ab", check)

    def test_corrupt_buffer_fails_align(self):
        class Corrupt(Utf8Text):
            def byte_at(self, i):
                return 0x80

        def check(c):
            with pytest.raises(InvariantViolation):
                c.align(5)
        scope_ref(Corrupt("a→中😀"), check)


class TestTextAccess:
    """Test element and slice access on text."""

    def test_scenario(self):
        def check(c):
            assert [ix.untrusted() for ix in c.iter_indices()] + [len(c)] == [0, 1, 4, 7, 11]
            with pytest.raises(OutOfBounds):
                c.vet(12)
            assert c.align(5).untrusted() == 4
            assert c.index_after(c.vet(4)).untrusted() == 7
            assert c[c.vet(4)] == "中"
            assert c[c.vet(1):c.vet(7)] == "→中"
            assert c[c.vet_range(7)] == "😀"
        scope_ref("a→中😀", check)

    def test_item_is_character(self):
        def check(c):
            ch = c[c.vet(0)]
            assert isinstance(ch, Character)
            assert ch.unit_len() == 4
        scope_ref("😀", check)

    def test_empty_slice(self):
        def check(c):
            assert c[c.vet_range(4, 4)] == ""
            assert c[:] == "a→中😀"
        scope_ref("a→中😀", check)

    def test_simple_index_cannot_read_text(self):
        def check(c):
            with pytest.raises(ProofError):
                c[c.vet(1).simple()]
            upgraded = c.vet(c.as_range().vet(4))
            assert c[upgraded] == "中"
        scope_ref("a→中😀", check)

    def test_simple_index_inside_character(self):
        def check(c):
            inside = c.as_range().vet(2)
            with pytest.raises(InvalidIndex):
                c.vet(inside)
            assert c.align(inside).untrusted() == 1
        scope_ref("a→中😀", check)

    def test_text_is_read_only(self):
        def check(c):
            assert not c.is_writable
            with pytest.raises(TypeError):
                c[c.vet(0)] = "b"
        scope_ref("abc", check)


class TestCharacter:
    """Test single-codepoint text values."""

    def test_one_codepoint(self):
        ch = Character("中")
        assert ch == "中"
        assert ch.encoded() == "中".encode("utf-8")
        assert ch.unit_len() == 3

    def test_as_char_is_plain_str(self):
        plain = Character("x").as_char()
        assert type(plain) is str
        assert plain == "x"

    @pytest.mark.parametrize("value", ["", "ab", "e\u0301"])
    def test_rejects_other_lengths(self, value):
        with pytest.raises(ValueError):
            Character(value)

    def test_repr(self):
        assert repr(Character("a")) == "Character('a')"


class TestBuffers:
    """Test owned and borrowed text buffers."""

    def test_owned_text(self):
        text = Utf8Text("héllo")
        assert text.unit_len() == 6
        assert text.text == "héllo"
        assert text.untrusted() == "héllo"

    @pytest.mark.parametrize("make", [bytes, bytearray, memoryview])
    def test_borrowed_buffers(self, make):
        source = make("a→b".encode("utf-8"))
        text = Utf8Text(source)
        assert text.untrusted() is source
        assert text.text == "a→b"
        assert scope_ref(text, lambda c: c[c.vet(1)].as_char()) == "→"

    def test_invalid_utf8(self):
        with pytest.raises(UnicodeDecodeError):
            Utf8Text(b"\xff")

    def test_wrong_source_type(self):
        with pytest.raises(TypeError):
            Utf8Text(["a"])

    def test_copy_owns_bytes(self):
        data = bytearray(b"abc")
        copied = Utf8Text(data).copy()
        data[0] = ord("z")
        assert copied.text == "abc"
        assert copied.untrusted() == b"abc"
