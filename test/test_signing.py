import pytest

from sm2kit import KeyPair
from sm2kit.curve import ORDER, G
from sm2kit.errors import CurveError, SignatureFormatError
from sm2kit.signing import (
    PLAIN_SIGNATURE_BYTES,
    Signature,
    SignatureEncoding,
    der_to_plain,
    plain_to_der,
    sign,
    verify,
)

from conftest import POINT_D, POINT_X, POINT_Y, fixed_rng

MESSAGE = "我是一段测试aaaa".encode("utf-8")

# plain r ‖ s over MESSAGE with the default identity
VERIFY_PUBLIC = (
    "04db9629dd33ba568e9507add5df6587a0998361a03d3321948b448c653c2c1b70"
    "56434884ab6f3d1c529501f166a336e86f045cea10dffe58aa82ea13d7253763"
)
VERIFY_SIGNATURE = (
    "2881346e038d2ed706ccdd025f2b1dafa7377d5cf090134b98756fafe084dddb"
    "cdba0ab00b5348ed48025195af3f1dda29e819bb66aa9d4d088050ff148482a1"
)

POINT_DATA = "434477813974bf58f94bcf760833c2b40f77a5fc360485b0b9ed1bd9682edb45"
POINT_SIGNATURE = (
    "DCA0E80A7F46C93714B51C3EFC55A922BCEF7ECF0FE9E62B53BA6A7438B543A7"
    "6C145A452CA9036F3CB70D7E6C67D4D9D7FE114E5367A2F6F5A4D39F2B10F3D6"
)


@pytest.fixture
def point_keys():
    return KeyPair.from_coordinates(POINT_X, POINT_Y, POINT_D)


# ── known answers ───────────────────────────────────────────────────────
def test_known_plain_signature():
    """A published plain signature verifies."""
    q = KeyPair.from_public(VERIFY_PUBLIC).public
    sig = bytes.fromhex(VERIFY_SIGNATURE)
    assert verify(MESSAGE, sig, q, encoding=SignatureEncoding.PLAIN)
    assert not verify(MESSAGE + b"!", sig, q, encoding=SignatureEncoding.PLAIN)


def test_known_plain_signature_from_coordinates(point_keys):
    """A published signature verifies under coordinates."""
    data = bytes.fromhex(POINT_DATA)
    sig = bytes.fromhex(POINT_SIGNATURE)
    assert verify(data, sig, point_keys.public, encoding=SignatureEncoding.PLAIN)
    # the same signature in DER
    assert verify(data, plain_to_der(sig), point_keys.public)


# ── round trips ─────────────────────────────────────────────────────────
@pytest.mark.parametrize("encoding", list(SignatureEncoding))
def test_sign_and_verify(keys, encoding):
    """Signatures verify in both encodings."""
    sig = sign(MESSAGE, keys.private, public_key=keys.public)
    blob = sig.to_bytes(encoding)
    assert Signature.from_bytes(blob, encoding) == sig
    assert verify(MESSAGE, blob, keys.public, encoding=encoding)
    assert verify(MESSAGE, sig, keys.public)


def test_public_key_is_derived_when_omitted(point_keys):
    """sign derives P_A when it is not given."""
    data = bytes.fromhex(POINT_DATA)
    sig = sign(data, point_keys.private)
    assert verify(data, sig, point_keys.public)


def test_plain_length(keys):
    """Plain signatures are 64 bytes."""
    sig = sign(MESSAGE, keys.private)
    assert len(sig.to_plain()) == PLAIN_SIGNATURE_BYTES


def test_empty_message(keys):
    """Empty messages can be signed."""
    sig = sign(b"", keys.private)
    assert verify(b"", sig, keys.public)


# ── rejection ───────────────────────────────────────────────────────────
def test_message_bit_flip(keys):
    """A changed message fails verification."""
    sig = sign(MESSAGE, keys.private)
    tampered = bytes([MESSAGE[0] ^ 0x01]) + MESSAGE[1:]
    assert not verify(tampered, sig, keys.public)


def test_signature_bit_flip(keys):
    """A changed signature fails verification."""
    blob = bytearray(sign(MESSAGE, keys.private).to_plain())
    blob[10] ^= 0x80
    assert not verify(MESSAGE, bytes(blob), keys.public,
                      encoding=SignatureEncoding.PLAIN)


def test_identity_mismatch(keys):
    """Verification needs the identity used for signing."""
    sig = sign(MESSAGE, keys.private, user_id=b"alice@example.com")
    assert verify(MESSAGE, sig, keys.public, user_id=b"alice@example.com")
    assert not verify(MESSAGE, sig, keys.public, user_id=b"bob@example.com")
    assert not verify(MESSAGE, sig, keys.public)


def test_wrong_public_key(keys):
    """Another public key fails verification."""
    sig = sign(MESSAGE, keys.private)
    assert not verify(MESSAGE, sig, KeyPair.generate().public)


@pytest.mark.parametrize(
    "r, s",
    [(0, 1), (1, 0), (ORDER, 1), (1, ORDER), (5, ORDER - 5)],
)
def test_out_of_range_components(keys, r, s):
    """Out-of-range r, s or r + s = n return False."""
    assert not verify(MESSAGE, Signature(r, s), keys.public)


def test_malformed_der(keys):
    """Malformed DER raises instead of returning False."""
    with pytest.raises(SignatureFormatError):
        verify(MESSAGE, b"\x30\x02\x02", keys.public)
    with pytest.raises(SignatureFormatError):
        verify(MESSAGE, bytes.fromhex(VERIFY_SIGNATURE), keys.public)
    der = sign(MESSAGE, keys.private).to_der()
    with pytest.raises(SignatureFormatError):
        verify(MESSAGE, der + b"\x00", keys.public)


def test_encodings_are_not_mixed(keys):
    """A DER signature is not accepted as plain."""
    sig = Signature.from_plain(bytes.fromhex(VERIFY_SIGNATURE))
    with pytest.raises(SignatureFormatError):
        verify(MESSAGE, sig.to_der(), keys.public,
               encoding=SignatureEncoding.PLAIN)
    with pytest.raises(SignatureFormatError):
        Signature.from_plain(bytes(63))


# ── conversions ─────────────────────────────────────────────────────────
def test_der_plain_conversion():
    """DER and plain encodings carry the same (r, s)."""
    plain = bytes.fromhex(VERIFY_SIGNATURE)
    der = plain_to_der(plain)
    assert der[0] == 0x30
    assert der_to_plain(der) == plain
    sig = Signature.from_der(der)
    assert sig.r == int(VERIFY_SIGNATURE[:64], 16)
    assert sig.s == int(VERIFY_SIGNATURE[64:], 16)


# ── ephemeral handling ──────────────────────────────────────────────────
def test_fixed_ephemeral_is_deterministic(keys):
    """A fixed ephemeral scalar gives a fixed result."""
    a = sign(MESSAGE, keys.private, rng=fixed_rng(777))
    b = sign(MESSAGE, keys.private, rng=fixed_rng(777))
    assert a == b
    assert verify(MESSAGE, a, keys.public)


def test_out_of_range_ephemeral_is_resampled(keys):
    """Unusable ephemeral draws are skipped."""
    sig = sign(MESSAGE, keys.private, rng=fixed_rng(0, ORDER, 99))
    assert sig == sign(MESSAGE, keys.private, rng=fixed_rng(99))


def test_retries_exhausted(keys):
    """Exhausting the retry budget raises CurveError."""
    with pytest.raises(CurveError):
        sign(MESSAGE, keys.private, rng=lambda: 0, max_retries=2)


@pytest.mark.parametrize("d", [0, ORDER - 1, ORDER])
def test_signing_key_range(d):
    """Signing keys must lie in [1, n-2]."""
    with pytest.raises(CurveError):
        sign(MESSAGE, d, public_key=G)
