import pytest

from sm2kit.errors import EncodingError, LengthError
from sm2kit.field import (
    FIELD_PRIME,
    fe_from_bytes,
    fe_inv,
    fe_select,
    fe_sqrt,
    fe_to_bytes,
)


def test_fe_bytes_are_fixed_width():
    """Small values are zero-padded to 32 bytes."""
    assert fe_to_bytes(1) == b"\x00" * 31 + b"\x01"
    assert fe_from_bytes(fe_to_bytes(12345)) == 12345


def test_fe_from_bytes_rejects_bad_input():
    """Wrong widths and unreduced values are refused."""
    with pytest.raises(LengthError):
        fe_from_bytes(b"\x01" * 31)
    with pytest.raises(EncodingError):
        fe_from_bytes(FIELD_PRIME.to_bytes(32, "big"))


def test_fe_inv():
    """Every non-zero element has an inverse; zero has none."""
    for a in (1, 2, 3, 0xDEADBEEF, FIELD_PRIME - 1):
        assert a * fe_inv(a) % FIELD_PRIME == 1
    with pytest.raises(ZeroDivisionError):
        fe_inv(0)
    with pytest.raises(ZeroDivisionError):
        fe_inv(FIELD_PRIME)


def test_fe_sqrt_of_squares():
    """Square roots of squares come back as ±a."""
    for a in (2, 7, 0x123456789, FIELD_PRIME - 5):
        sq = a * a % FIELD_PRIME
        r = fe_sqrt(sq)
        assert r * r % FIELD_PRIME == sq
        assert r in (a, FIELD_PRIME - a)


def test_fe_sqrt_non_residue():
    # p ≡ 3 (mod 4), so −1 has no square root
    with pytest.raises(EncodingError):
        fe_sqrt(FIELD_PRIME - 1)


def test_fe_select():
    """Selection picks the first operand for 0 and the second for 1."""
    assert fe_select(0, 11, 22) == 11
    assert fe_select(1, 11, 22) == 22
