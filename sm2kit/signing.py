"""
SM2 digital signatures with identity binding.

Signing key d_A, public key P_A = d_A·G, signer identity ID_A:

    e  = SM3(Z_A ‖ M)                       (Z_A: see :pymod:`hash`)
    k  ←$ [1, n-1]
    (x₁, y₁) = k·G
    r  = (e + x₁) mod n                     retry if r = 0 or r + k = n
    s  = (1 + d_A)⁻¹ · (k − r·d_A) mod n    retry if s = 0

Verification with  t = (r + s) mod n  accepts iff

    (e + x(s·G + t·P_A)) mod n  ==  r

Two serialisations of (r, s) are in use and are never mixed:

- **DER** — ``SEQUENCE { INTEGER r, INTEGER s }`` (default),
- **plain** — ``r ‖ s`` as two 32-byte big-endian integers.

``verify`` distinguishes malformed input (``SignatureFormatError``) from
a well-formed signature that does not verify (``False``).

References
----------
- GB/T 32918.2-2016 §6   signature generation
- GB/T 32918.2-2016 §7   signature verification
- GM/T 0009-2012 §7.2    ASN.1 structure of an SM2 signature
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from ecdsa import der
from ecdsa.util import (
    MalformedSignature,
    sigdecode_der,
    sigdecode_string,
    sigencode_der,
    sigencode_string,
)

from .codec import BytesLike
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
from .errors import CurveError, SignatureFormatError
from .hash import DEFAULT_USER_ID, message_digest

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 16
PLAIN_SIGNATURE_BYTES = 2 * SCALAR_BYTES


# ── encodings ───────────────────────────────────────────────────────────
class SignatureEncoding(Enum):
    """Serialisation of the (r, s) pair."""

    DER = "der"        # ASN.1 SEQUENCE of two INTEGERs
    PLAIN = "plain"    # r ‖ s, 32 bytes each


DEFAULT_ENCODING = SignatureEncoding.DER


# ── signature value ─────────────────────────────────────────────────────
@dataclass(frozen=True)
class Signature:
    """An SM2 signature  (r, s)."""

    r: int
    s: int

    def to_der(self) -> bytes:
        return sigencode_der(self.r, self.s, ORDER)

    def to_plain(self) -> bytes:
        if not (0 <= self.r < ORDER and 0 <= self.s < ORDER):
            raise SignatureFormatError("r and s must be reduced modulo n")
        return sigencode_string(self.r, self.s, ORDER)

    def to_bytes(self, encoding: SignatureEncoding = DEFAULT_ENCODING) -> bytes:
        if encoding is SignatureEncoding.PLAIN:
            return self.to_plain()
        return self.to_der()

    @classmethod
    def from_der(cls, data: BytesLike) -> Signature:
        try:
            r, s = sigdecode_der(bytes(data), ORDER)
        except (der.UnexpectedDER, MalformedSignature) as exc:
            raise SignatureFormatError(f"malformed DER signature: {exc}") from exc
        return cls(r=r, s=s)

    @classmethod
    def from_plain(cls, data: BytesLike) -> Signature:
        data = bytes(data)
        if len(data) != PLAIN_SIGNATURE_BYTES:
            raise SignatureFormatError(
                f"plain signature must be {PLAIN_SIGNATURE_BYTES} bytes, "
                f"got {len(data)}"
            )
        try:
            r, s = sigdecode_string(data, ORDER)
        except MalformedSignature as exc:
            raise SignatureFormatError(str(exc)) from exc
        return cls(r=r, s=s)

    @classmethod
    def from_bytes(
        cls,
        data: BytesLike,
        encoding: SignatureEncoding = DEFAULT_ENCODING,
    ) -> Signature:
        if encoding is SignatureEncoding.PLAIN:
            return cls.from_plain(data)
        return cls.from_der(data)


def der_to_plain(signature: BytesLike) -> bytes:
    """Re-encode a DER signature as 64-byte ``r ‖ s``."""
    return Signature.from_der(signature).to_plain()


def plain_to_der(signature: BytesLike) -> bytes:
    """Re-encode a 64-byte ``r ‖ s`` signature as DER."""
    return Signature.from_plain(signature).to_der()


# ── signing ─────────────────────────────────────────────────────────────
def sign(
    message: BytesLike,
    private_key: Union[Scalar, int],
    user_id: Optional[bytes] = None,
    public_key: Optional[Point] = None,
    rng: Optional[RandomSource] = None,
    max_retries: int = DEFAULT_MAX_RETRIES,
) -> Signature:
    """
    Sign *message* under identity *user_id*.

    Parameters
    ----------
    message : bytes
        Message *M* (hashed together with Z_A, not pre-hashed).
    private_key : Scalar or int
        Signing key d_A in [1, n-2].
    user_id : bytes or None
        Signer identity; ``None`` selects ``DEFAULT_USER_ID``.
    public_key : Point or None
        P_A, if already known; derived from *private_key* otherwise.
    rng : callable or None
        Source of ephemeral scalars, ``Scalar.random`` by default.
    max_retries : int
        Bound on degenerate ephemeral draws before ``CurveError``.
    """
    d = private_key.value if isinstance(private_key, Scalar) else private_key
    if not 0 < d < ORDER - 1:
        raise CurveError("signing key must lie in [1, n-2]")
    if public_key is None:
        public_key = Scalar(d) * G
    uid = DEFAULT_USER_ID if user_id is None else bytes(user_id)

    e = message_digest(bytes(message), public_key, uid)
    d_inv = Scalar(1 + d).inv()

    for attempt in range(1, max_retries + 1):
        k = draw_scalar(rng)
        if k == 0:
            logger.debug("attempt %d: ephemeral scalar out of range", attempt)
            continue

        x1 = (Scalar(k) * G).x
        r = (e + x1) % ORDER
        if r == 0 or r + k == ORDER:
            logger.debug("attempt %d: degenerate r, resampling", attempt)
            continue

        s = (d_inv * Scalar(k - r * d)).value
        if s == 0:
            logger.debug("attempt %d: degenerate s, resampling", attempt)
            continue

        return Signature(r=r, s=s)

    logger.warning("signing gave up after %d ephemeral draws", max_retries)
    raise CurveError(
        f"no usable ephemeral key after {max_retries} attempts"
    )


# ── verification ────────────────────────────────────────────────────────
def verify(
    message: BytesLike,
    signature: Union[Signature, BytesLike],
    public_key: Point,
    user_id: Optional[bytes] = None,
    encoding: SignatureEncoding = DEFAULT_ENCODING,
) -> bool:
    """
    Check an SM2 signature.

    *signature* is either a :class:`Signature` or its serialisation in
    *encoding*.  Malformed bytes raise ``SignatureFormatError``; any
    well-formed signature that fails the check returns ``False``.
    """
    if not isinstance(signature, Signature):
        signature = Signature.from_bytes(signature, encoding)
    validate_point(public_key)

    r, s = signature.r, signature.s
    if not (0 < r < ORDER and 0 < s < ORDER):
        return False

    uid = DEFAULT_USER_ID if user_id is None else bytes(user_id)
    e = message_digest(bytes(message), public_key, uid)

    t = (r + s) % ORDER
    if t == 0:
        return False

    pt = Scalar(s) * G + Scalar(t) * public_key
    if pt.is_inf():
        return False
    return (e + pt.x) % ORDER == r
