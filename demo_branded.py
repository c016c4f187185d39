#!/usr/bin/env python3
"""
Branded Indexing Demo: vet → navigate → split → write

Shows the full workflow:
1. Vet raw byte offsets into UTF-8 text
2. Walk characters with advance / retreat / align
3. Split ranges and slice with branded particles
4. Write through an exclusive scope
"""

from branded import InvalidIndex, OutOfBounds, scope_mut, scope_ref


def show_text(c):
    """Print every character boundary of a text container."""
    for ix in c.iter_indices():
        ch = c[ix]
        print(f"   byte {ix.untrusted():>2}: {ch.as_char()!r} ({ch.unit_len()} byte(s))")
    print(f"   end at byte {c.end().untrusted()}")


def probe_offsets(c):
    """Vet every raw offset, including two past the end."""
    for raw in range(len(c) + 2):
        try:
            ix = c.vet(raw)
            print(f"   vet({raw:>2}) ✓ {ix.proof.value}")
        except InvalidIndex:
            print(f"   vet({raw:>2}) ✗ inside a character, aligns to {c.align(raw).untrusted()}")
        except OutOfBounds:
            print(f"   vet({raw:>2}) ✗ out of bounds")


def split_words(c):
    """Return the text before and after the first space."""
    rest = c.as_range().nonempty()
    while rest is not None:
        if c[rest.start()] == " ":
            head, tail = c.split_after(rest.start())
            return c[head], c[tail]
        rest = rest.advance_in(c)
    return c[:], ""


def main():
    text = "a→中😀"

    print("=" * 70)
    print("BRANDED INDEXING DEMO")
    print("=" * 70)

    # =========================================================================
    # STEP 1: Characters and their byte offsets
    # =========================================================================
    print(f"\n1. CHARACTERS OF {text!r}...")
    scope_ref(text, show_text)

    # =========================================================================
    # STEP 2: Vetting raw offsets
    # =========================================================================
    print("\n2. VETTING RAW OFFSETS...")
    scope_ref(text, probe_offsets)

    # =========================================================================
    # STEP 3: Splitting
    # =========================================================================
    print("\n3. SPLITTING AT THE FIRST SPACE...")
    head, tail = scope_ref("héllo wörld", split_words)
    print(f"   ✓ head: {head!r}")
    print(f"   ✓ tail: {tail!r}")

    # =========================================================================
    # STEP 4: Writing
    # =========================================================================
    print("\n4. WRITING THROUGH scope_mut...")
    numbers = [10, 20, 30, 40, 50]

    def double_tail(c):
        _, tail = c.split_at(c.vet(2))
        for ix in c.iter_indices(tail):
            c[ix] = c[ix] * 2

    scope_mut(numbers, double_tail)
    print(f"   ✓ {numbers}")

    print("\n" + "=" * 70)
    print("✅ DEMO COMPLETE")
    print("=" * 70)


if __name__ == "__main__":
    main()
