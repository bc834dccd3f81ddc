"""
Prime-field utilities for F_p  (p = SM2 field prime).

Coordinates of curve points live in F_p.  This module holds the prime
itself, the fixed-width octet conversions used by every wire format in
GB/T 32918, and the two non-trivial field operations the curve code
needs: inversion and square roots (for point decompression).

``Scalar`` arithmetic modulo the group order lives in :pymod:`curve`.

References
----------
- GB/T 32918.1-2016 §4.2.5 / §4.2.6  field-element ⇄ octet-string
- GB/T 32918.5-2017                  recommended curve parameters
"""

from __future__ import annotations

from ecdsa.numbertheory import square_root_mod_prime, SquareRootError

from .errors import LengthError, EncodingError

# ── field constants ─────────────────────────────────────────────────────
FIELD_PRIME = 0xFFFFFFFEFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFF00000000FFFFFFFFFFFFFFFF
FIELD_BYTES = 32


# ── octet conversions ───────────────────────────────────────────────────
def fe_to_bytes(value: int) -> bytes:
    """Field element → 32-byte big-endian string (zero-padded)."""
    return value.to_bytes(FIELD_BYTES, "big")


def fe_from_bytes(data: bytes) -> int:
    """
    32-byte big-endian string → field element.

    Raises ``LengthError`` on a wrong width and ``EncodingError`` if the
    value is not reduced modulo *p*.
    """
    if len(data) != FIELD_BYTES:
        raise LengthError(
            f"field element needs {FIELD_BYTES} bytes, got {len(data)}"
        )
    v = int.from_bytes(data, "big")
    if v >= FIELD_PRIME:
        raise EncodingError("field element out of range")
    return v


# ── arithmetic ──────────────────────────────────────────────────────────
def fe_inv(a: int) -> int:
    """Multiplicative inverse via Fermat's little theorem."""
    a %= FIELD_PRIME
    if a == 0:
        raise ZeroDivisionError("cannot invert zero field element")
    return pow(a, FIELD_PRIME - 2, FIELD_PRIME)


def fe_sqrt(a: int) -> int:
    """
    A square root of *a* in F_p.

    Either root may be returned; callers pick the one with the parity
    they need.  Raises ``EncodingError`` if *a* is a non-residue, which
    for point decompression means the x-coordinate is not on the curve.
    """
    try:
        return square_root_mod_prime(a % FIELD_PRIME, FIELD_PRIME)
    except SquareRootError as exc:
        raise EncodingError("x-coordinate has no matching y on the curve") from exc


def fe_select(bit: int, a: int, b: int) -> int:
    """Return *a* if ``bit == 0`` else *b*, without branching on *bit*."""
    mask = -bit
    return a ^ (mask & (a ^ b))
