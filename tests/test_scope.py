"""
Tests for scope entry points.

These tests verify:
    - Each invocation gets its own brand
    - Branded values cannot leave their scope
    - Shared / exclusive acquisition of the backing array
    - scope_val ownership
    - Scope lifecycle logging
"""

import array
import logging

import pytest

from branded.config import configure
from branded.errors import (
    BorrowError,
    BrandEscapeError,
    ForeignBrandError,
    ScopeClosedError,
)
from branded.items import ElementArray
from branded.scope import scope, scope_mut, scope_ref, scope_val
from branded.utf8 import Utf8Text


class TestBrandIsolation:
    """Test that scopes never share brands."""

    def test_nested_scopes_over_same_data(self):
        data = (1, 2, 3)

        def outer(a):
            def inner(b):
                assert a.brand is not b.brand
                with pytest.raises(ForeignBrandError):
                    b[a.vet(0)]
                with pytest.raises(ForeignBrandError):
                    a.split_at(b.vet(1))
                return b[b.vet(0)]
            return scope_ref(data, inner)
        assert scope_ref(data, outer) == 1

    def test_sequential_scopes_differ(self):
        brands = []
        scope_ref((1,), lambda c: brands.append(c.brand))
        scope_ref((1,), lambda c: brands.append(c.brand))
        assert brands[0] is not brands[1]
        assert not brands[0].is_open


class TestEscape:
    """Test that branded values stay inside their scope."""

    def test_returning_index(self):
        with pytest.raises(BrandEscapeError):
            scope_ref((1, 2), lambda c: c.vet(0))

    def test_returning_nested_particle(self):
        with pytest.raises(BrandEscapeError):
            scope_ref((1, 2), lambda c: {"found": [c.vet(0)]})
        with pytest.raises(BrandEscapeError):
            scope_ref((1, 2), lambda c: (1, (c.as_range(),)))

    def test_returning_container(self):
        with pytest.raises(BrandEscapeError):
            scope_ref((1, 2), lambda c: c)

    def test_returning_plain_values(self):
        result = scope_ref((1, 2), lambda c: {"n": len(c), "raw": c.vet(1).untrusted()})
        assert result == {"n": 2, "raw": 1}

    def test_escape_check_can_be_disabled(self):
        configure(escape_check=False)
        index = scope_ref((1, 2), lambda c: c.vet(0))
        assert not index.brand.is_open

    def test_smuggled_values_are_dead(self):
        smuggled = {}

        def leak(c):
            smuggled["container"] = c
            smuggled["index"] = c.vet(0)

        scope_ref((1, 2), leak)
        c, index = smuggled["container"], smuggled["index"]
        with pytest.raises(ScopeClosedError):
            c[index]
        with pytest.raises(ScopeClosedError):
            c.vet(1)
        with pytest.raises(ScopeClosedError):
            index == index


class TestBorrowing:
    """Test shared and exclusive acquisition."""

    def test_shared_scopes_nest(self):
        data = [1, 2]
        assert scope_ref(data, lambda a: scope_ref(data, len)) == 2

    def test_shared_inside_exclusive(self):
        data = [1, 2]
        with pytest.raises(BorrowError):
            scope_mut(data, lambda c: scope_ref(data, len))

    def test_exclusive_inside_shared(self):
        data = [1, 2]
        with pytest.raises(BorrowError):
            scope_ref(data, lambda c: scope_mut(data, len))

    def test_scope_on_mutable_is_exclusive(self):
        data = [1, 2]

        def check(c):
            assert c.is_writable
            with pytest.raises(BorrowError):
                scope(data, len)
        scope(data, check)

    def test_scope_on_immutable_is_shared(self):
        data = (1, 2)

        def check(c):
            assert not c.is_writable
            return scope(data, len)
        assert scope(data, check) == 2

    def test_released_after_exception(self):
        data = [1, 2]

        def fail(c):
            raise RuntimeError("boom")
        with pytest.raises(RuntimeError):
            scope_mut(data, fail)
        assert scope_mut(data, len) == 2
        assert scope_ref(data, len) == 2

    def test_scope_mut_needs_mutable_array(self):
        with pytest.raises(TypeError):
            scope_mut((1, 2), len)
        with pytest.raises(TypeError):
            scope_mut("text", len)

    def test_trusted_container_is_accepted(self):
        assert scope_ref(ElementArray((1, 2, 3)), len) == 3

    def test_buffer_behind_text_is_held(self):
        buf = bytearray("a→b".encode("utf-8"))

        def write_inside(c):
            ix = c.vet(1)
            with pytest.raises(BorrowError):
                scope_mut(buf, lambda m: m.__setitem__(m.vet(2), 0x41))
            return c[ix].as_char()
        assert scope_ref(Utf8Text(buf), write_inside) == "→"
        assert buf == bytearray("a→b".encode("utf-8"))

    def test_buffer_behind_view_is_held(self):
        buf = bytearray(b"abc")
        with pytest.raises(BorrowError):
            scope_ref(memoryview(buf), lambda c: scope_mut(buf, len))
        with pytest.raises(BorrowError):
            scope_mut(buf, lambda c: scope_ref(ElementArray(buf), len))

    def test_released_wrapper_frees_buffer(self):
        buf = bytearray(b"abc")
        assert scope_ref(Utf8Text(buf), len) == 3
        assert scope_mut(buf, len) == 3


class TestScopeVal:
    """Test scopes over an owned copy."""

    def test_works_on_a_copy(self):
        data = [3, 1, 2]

        def bump(c):
            c[c.vet(0)] = 99
            return c.into_untrusted()
        result = scope_val(data, bump)
        assert result == [99, 1, 2]
        assert data == [3, 1, 2]
        assert result is not data

    def test_source_stays_available(self):
        data = [1, 2]
        assert scope_val(data, lambda c: scope_mut(data, len)) == 2

    def test_typed_memoryview_copies_elements(self):
        view = memoryview(array.array("i", [7, 8, 9]))
        assert scope_val(view, len) == 3
        assert scope_val(view, lambda c: c[c.vet(1)]) == 8

    def test_typed_memoryview_copy_is_writable(self):
        source = array.array("i", [1, 2])

        def bump(c):
            c[c.vet(0)] = 5
            return c.into_untrusted()
        assert list(scope_val(memoryview(source), bump)) == [5, 2]
        assert list(source) == [1, 2]

    def test_text_copy(self):
        assert scope_val("a→b", lambda c: c.into_untrusted()) == "a→b"

    def test_into_untrusted_needs_ownership(self):
        def check(c):
            with pytest.raises(TypeError):
                c.into_untrusted()
        scope_ref((1,), check)


class TestLogging:
    """Test scope lifecycle logging."""

    def test_open_and_close_logged(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="branded"):
            scope_ref((1, 2, 3), len)
        messages = [r.getMessage() for r in caplog.records]
        assert any("scope_ref opened scope" in m and "3 units" in m for m in messages)
        assert any("scope_ref closed scope" in m for m in messages)

    def test_failed_vet_logged(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="branded"):
            with pytest.raises(IndexError):
                scope_ref((1,), lambda c: c.vet(5))
        assert any("out of bounds" in r.getMessage() for r in caplog.records)
