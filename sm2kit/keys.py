"""
SM2 key pairs and their external representations.

A :class:`KeyPair` holds a private scalar *d*, a public point *Q*, or
both with the invariant  Q = d·G.  A private-only key always gets its
public half derived, so "private-only" in practice means "built from a
private key"; "public-only" keys can verify and encrypt but not sign or
decrypt.

Accepted inputs
---------------
private  raw 32-byte scalar, hex scalar, SEC1 ``ECPrivateKey``
         (OpenSSL "EC PRIVATE KEY"), PKCS#8 ``PrivateKeyInfo``; DER
         bytes, hex / base64 text or PEM
public   encoded point (compressed, uncompressed, hybrid, or bare
         ``x ‖ y``), X.509 ``SubjectPublicKeyInfo``; bytes, hex /
         base64 text or PEM; or separate x / y coordinates

Containers produced by this module always name the SM2 curve by its
OID  1.2.156.10197.1.301  next to  id-ecPublicKey (1.2.840.10045.2.1).

References
----------
- RFC 5915   Elliptic Curve Private Key Structure (SEC1 ECPrivateKey)
- RFC 5208   PKCS #8
- RFC 5480   Elliptic Curve Cryptography Subject Public Key Information
- GM/T 0006-2012  OIDs of the Chinese commercial cryptography suite
"""

from __future__ import annotations

import binascii
import logging
import re
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from ecdsa import der

from .codec import (
    COMPRESSED_BYTES,
    RAW_BYTES,
    UNCOMPRESSED_BYTES,
    PointForm,
    decode_point,
    decode_text,
    encode_point,
)
from .curve import (
    G,
    ORDER,
    SCALAR_BYTES,
    Point,
    RandomSource,
    Scalar,
    draw_scalar,
    validate_point,
)
from .errors import CurveError, EncodingError, KeyMissingError

logger = logging.getLogger(__name__)

# ── object identifiers ──────────────────────────────────────────────────
EC_PUBLIC_KEY_OID = (1, 2, 840, 10045, 2, 1)
SM2_CURVE_OID = (1, 2, 156, 10197, 1, 301)

PEM_EC_PRIVATE = "EC PRIVATE KEY"
PEM_PRIVATE = "PRIVATE KEY"
PEM_PUBLIC = "PUBLIC KEY"

_HEX_SCALAR_RE = re.compile(r"^[0-9a-fA-F]{1,64}$")

PrivateInput = Union[Scalar, int, bytes, bytearray, str]
PublicInput = Union[Point, bytes, bytearray, str]


# ── key pair ────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class KeyPair:
    """Immutable SM2 key material  (d, Q = d·G)."""

    private: Optional[Scalar] = None
    public: Optional[Point] = None

    def __post_init__(self) -> None:
        if self.private is None and self.public is None:
            raise KeyMissingError("a key pair needs a private or a public key")

        if self.private is not None:
            d = self.private.value
            if not 0 < d < ORDER - 1:
                raise CurveError("private scalar must lie in [1, n-2]")
            derived = self.private * G
            if self.public is None:
                object.__setattr__(self, "public", derived)
            elif self.public != derived:
                raise CurveError("public key does not match private key")

        validate_point(self.public)

    # constructors -----------------------------------------------------------
    @classmethod
    def generate(cls, rng: Optional[RandomSource] = None) -> KeyPair:
        """Fresh key pair with d uniform in [1, n-2]."""
        while True:
            d = draw_scalar(rng)
            if 0 < d < ORDER - 1:
                return cls(private=Scalar(d))

    @classmethod
    def from_private(
        cls,
        key: PrivateInput,
        public: Optional[PublicInput] = None,
    ) -> KeyPair:
        """
        Key pair from a private key in any accepted form.

        If *public* is given as well it must match the private key.
        """
        d, embedded = _load_private(key)
        q = _load_public(public) if public is not None else embedded
        return cls(private=_private_scalar(d), public=q)

    @classmethod
    def from_public(cls, key: PublicInput) -> KeyPair:
        """Verify / encrypt-only key from a public key in any accepted form."""
        return cls(public=_load_public(key))

    @classmethod
    def from_coordinates(
        cls,
        x: Union[int, str],
        y: Union[int, str],
        private: Optional[PrivateInput] = None,
    ) -> KeyPair:
        """Key pair from separate public coordinates (ints or hex)."""
        xi = int(x, 16) if isinstance(x, str) else x
        yi = int(y, 16) if isinstance(y, str) else y
        q = Point(xi, yi)
        if private is None:
            return cls(public=q)
        d, _ = _load_private(private)
        return cls(private=_private_scalar(d), public=q)

    # queries ----------------------------------------------------------------
    @property
    def has_private(self) -> bool:
        return self.private is not None

    def require_private(self) -> Scalar:
        if self.private is None:
            raise KeyMissingError("operation needs the private key")
        return self.private

    def require_public(self) -> Point:
        # __post_init__ guarantees a public half
        return self.public  # type: ignore[return-value]

    # raw export -------------------------------------------------------------
    def private_bytes(self) -> bytes:
        """d as a 32-byte big-endian string."""
        return self.require_private().to_bytes()

    def private_hex(self) -> str:
        return self.private_bytes().hex()

    def public_bytes(self, form: PointForm = PointForm.UNCOMPRESSED) -> bytes:
        return encode_point(self.require_public(), form)

    def public_hex(self, form: PointForm = PointForm.UNCOMPRESSED) -> str:
        return self.public_bytes(form).hex()

    # container export -------------------------------------------------------
    def to_sec1_der(self, include_params: bool = True) -> bytes:
        """RFC 5915 ``ECPrivateKey`` with the public key embedded."""
        parts = [
            der.encode_integer(1),
            der.encode_octet_string(self.private_bytes()),
        ]
        if include_params:
            parts.append(der.encode_constructed(0, der.encode_oid(*SM2_CURVE_OID)))
        parts.append(
            der.encode_constructed(
                1, der.encode_bitstring(self.public_bytes(), unused=0),
            )
        )
        return der.encode_sequence(*parts)

    def to_pkcs8_der(self) -> bytes:
        """PKCS#8 ``PrivateKeyInfo`` wrapping the SEC1 structure."""
        return der.encode_sequence(
            der.encode_integer(0),
            _algorithm_identifier(),
            der.encode_octet_string(self.to_sec1_der(include_params=False)),
        )

    def to_spki_der(self) -> bytes:
        """X.509 ``SubjectPublicKeyInfo``."""
        return der.encode_sequence(
            _algorithm_identifier(),
            der.encode_bitstring(self.public_bytes(), unused=0),
        )

    def to_pem(self, private: bool = True, sec1: bool = False) -> str:
        """
        PEM text: PKCS#8 or, with ``sec1=True``, OpenSSL's "EC PRIVATE
        KEY" for the private half; SPKI with ``private=False``.
        """
        if private and sec1:
            return der.topem(self.to_sec1_der(), PEM_EC_PRIVATE).decode("ascii")
        if private:
            return der.topem(self.to_pkcs8_der(), PEM_PRIVATE).decode("ascii")
        return der.topem(self.to_spki_der(), PEM_PUBLIC).decode("ascii")


# ── loading helpers ─────────────────────────────────────────────────────
def _private_scalar(d: int) -> Scalar:
    if not 0 < d < ORDER - 1:
        raise CurveError("private scalar must lie in [1, n-2]")
    return Scalar(d)


def _load_private(key: PrivateInput) -> Tuple[int, Optional[Point]]:
    """(d, embedded public key or None) from any private-key input."""
    if isinstance(key, Scalar):
        return key.value, None
    if isinstance(key, int):
        return key, None
    if isinstance(key, str):
        text = key.strip()
        if _HEX_SCALAR_RE.match(text):
            return int(text, 16), None
        data = _pem_or_text(text)
    else:
        data = bytes(key)

    if len(data) == SCALAR_BYTES:
        return int.from_bytes(data, "big"), None
    return parse_private_der(data)


def _load_public(key: PublicInput) -> Point:
    if isinstance(key, Point):
        return validate_point(key)
    if isinstance(key, str):
        data = _pem_or_text(key.strip())
    else:
        data = bytes(key)

    if len(data) in (COMPRESSED_BYTES, RAW_BYTES, UNCOMPRESSED_BYTES):
        return decode_point(data, allow_raw=True)
    return parse_public_der(data)


def _pem_or_text(text: str) -> bytes:
    if text.startswith("-----BEGIN"):
        try:
            return der.unpem(text)
        except (binascii.Error, ValueError) as exc:
            raise EncodingError("malformed PEM block") from exc
    return decode_text(text)


def _algorithm_identifier() -> bytes:
    return der.encode_sequence(
        der.encode_oid(*EC_PUBLIC_KEY_OID),
        der.encode_oid(*SM2_CURVE_OID),
    )


def _check_algorithm(body: bytes) -> None:
    algorithm, params = der.remove_object(body)
    if algorithm != EC_PUBLIC_KEY_OID:
        raise EncodingError(f"not an EC key (algorithm {algorithm})")
    curve, _ = der.remove_object(params)
    _check_curve(curve)


def _check_curve(curve: Tuple[int, ...]) -> None:
    if curve != SM2_CURVE_OID:
        raise EncodingError(f"key is for curve {curve}, not SM2")


# ── DER parsing ─────────────────────────────────────────────────────────
def parse_private_der(data: bytes) -> Tuple[int, Optional[Point]]:
    """
    Private scalar (and embedded public key, if any) from a SEC1 or
    PKCS#8 DER structure.  Raises ``EncodingError`` on malformed input.
    """
    try:
        body, rest = der.remove_sequence(data)
        if rest:
            raise EncodingError("trailing data after private key")
        version, body = der.remove_integer(body)
        if version == 1:
            logger.debug("parsing SEC1 ECPrivateKey")
            return _parse_sec1_body(body)
        if version == 0:
            logger.debug("parsing PKCS#8 PrivateKeyInfo")
            algorithm, body = der.remove_sequence(body)
            _check_algorithm(algorithm)
            inner, _ = der.remove_octet_string(body)
            return parse_private_der(inner)
    except der.UnexpectedDER as exc:
        raise EncodingError(f"malformed private key DER: {exc}") from exc
    raise EncodingError(f"unsupported private key version {version}")


def _parse_sec1_body(body: bytes) -> Tuple[int, Optional[Point]]:
    d_bytes, body = der.remove_octet_string(body)
    if not 0 < len(d_bytes) <= SCALAR_BYTES:
        raise EncodingError("private key octet string has a bad length")

    public = None
    while body:
        tag, value, body = der.remove_constructed(body)
        if tag == 0:
            curve, _ = der.remove_object(value)
            _check_curve(curve)
        elif tag == 1:
            point, _ = der.remove_bitstring(value, 0)
            public = decode_point(point)
    return int.from_bytes(d_bytes, "big"), public


def parse_public_der(data: bytes) -> Point:
    """Public point from an X.509 ``SubjectPublicKeyInfo``."""
    try:
        body, rest = der.remove_sequence(data)
        if rest:
            raise EncodingError("trailing data after public key")
        algorithm, body = der.remove_sequence(body)
        _check_algorithm(algorithm)
        point, _ = der.remove_bitstring(body, 0)
    except der.UnexpectedDER as exc:
        raise EncodingError(f"malformed public key DER: {exc}") from exc
    return decode_point(point)
