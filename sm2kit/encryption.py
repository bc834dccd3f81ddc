"""
SM2 public-key encryption.

Encrypt message *M* to public key *P_B*:

    k  ←$ [1, n-1]
    C1 = k·G
    (x₂, y₂) = k·P_B
    t  = KDF(x₂ ‖ y₂, |M|)          (resample k if t is all zero)
    C2 = M ⊕ t
    C3 = SM3(x₂ ‖ M ‖ y₂)

Decryption recomputes (x₂, y₂) = d_B·C1 and checks C3 in constant time
before releasing the plaintext.

The wire order of the three components is a per-call ``Mode``:
``C1C3C2`` (GB/T 32918.4-2016, the default here) or the legacy
``C1C2C3`` still produced by many older implementations.

References
----------
- GB/T 32918.4-2016 §6   encryption algorithm
- GB/T 32918.4-2016 §7   decryption algorithm
"""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union

from .codec import (
    BytesLike,
    PointForm,
    RAW_BYTES,
    decode_point,
    encode_point,
    encoded_length,
)
from .curve import (
    G,
    ORDER,
    Point,
    RandomSource,
    Scalar,
    draw_scalar,
    validate_point,
)
from .errors import CurveError, LengthError, MacMismatchError, SM2Error
from .hash import DIGEST_BYTES, kdf, sm3_digest

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 16


# ── component order ─────────────────────────────────────────────────────
class Mode(Enum):
    """Serialised order of the ciphertext components."""

    C1C2C3 = "C1C2C3"    # legacy (GM/T 0003-2012 drafts, many older libs)
    C1C3C2 = "C1C3C2"    # GB/T 32918.4-2016


DEFAULT_MODE = Mode.C1C3C2


# ── ciphertext ──────────────────────────────────────────────────────────
@dataclass(frozen=True)
class Ciphertext:
    """Logical SM2 ciphertext  (C1, C2, C3)."""

    c1: Point      # ephemeral public point  k·G
    c2: bytes      # masked plaintext, same length as M
    c3: bytes      # SM3(x₂ ‖ M ‖ y₂)

    def to_bytes(
        self,
        mode: Mode = DEFAULT_MODE,
        point_form: PointForm = PointForm.UNCOMPRESSED,
    ) -> bytes:
        c1 = encode_point(self.c1, point_form)
        if mode is Mode.C1C2C3:
            return c1 + self.c2 + self.c3
        return c1 + self.c3 + self.c2

    @classmethod
    def from_bytes(cls, data: BytesLike, mode: Mode = DEFAULT_MODE) -> Ciphertext:
        """
        Split a serialised ciphertext into its components.

        C1 may be compressed, uncompressed, hybrid, or a bare ``x ‖ y``
        without the ``04`` prefix.  Returns the first of
        :meth:`readings`; use that method when the C3 check should
        decide between ambiguous splits.
        """
        return cls.readings(data, mode)[0]

    @classmethod
    def readings(cls, data: BytesLike, mode: Mode = DEFAULT_MODE) -> List[Ciphertext]:
        """
        Every plausible split of *data*, most likely first.

        A leading point prefix (02, 03, 04, 06, 07) may just as well be
        the first byte of x in a bare ``x ‖ y``, so such input yields the
        prefixed reading and then the bare one.  Readings whose C1 does
        not decode are dropped.  If none is left, the error of the first
        reading is raised (``LengthError`` if nothing is left for C2).
        """
        data = bytes(data)
        if not data:
            raise LengthError("empty ciphertext")

        c1_lengths = [encoded_length(data[0])]
        if c1_lengths[0] != RAW_BYTES:
            c1_lengths.append(RAW_BYTES)

        found = []
        first_error: Optional[SM2Error] = None
        for c1_len in c1_lengths:
            try:
                found.append(cls._split(data, c1_len, mode))
            except SM2Error as exc:
                first_error = first_error or exc
        if not found:
            raise first_error  # type: ignore[misc]
        return found

    @classmethod
    def _split(cls, data: bytes, c1_len: int, mode: Mode) -> Ciphertext:
        if len(data) < c1_len + DIGEST_BYTES + 1:
            raise LengthError(
                f"ciphertext of {len(data)} bytes is too short"
            )
        if c1_len == RAW_BYTES:
            logger.debug("reading C1 as bare x ‖ y without point prefix")
        c1 = decode_point(data[:c1_len], allow_raw=True)

        body = data[c1_len:]
        if mode is Mode.C1C2C3:
            c2, c3 = body[:-DIGEST_BYTES], body[-DIGEST_BYTES:]
        else:
            c3, c2 = body[:DIGEST_BYTES], body[DIGEST_BYTES:]
        return cls(c1=c1, c2=c2, c3=c3)


# ── encryption ──────────────────────────────────────────────────────────
def encrypt_ciphertext(
    plaintext: BytesLike,
    public_key: Point,
    rng: Optional[RandomSource] = None,
    max_retries: int = DEFAULT_MAX_RETRIES,
) -> Ciphertext:
    """
    Encrypt *plaintext* to *public_key* and return the components.

    Raises ``LengthError`` for an empty plaintext, ``CurveError`` for an
    invalid public key or when ``max_retries`` ephemeral draws were all
    degenerate.
    """
    message = bytes(plaintext)
    if not message:
        raise LengthError("plaintext must not be empty")
    validate_point(public_key)

    for attempt in range(1, max_retries + 1):
        k = draw_scalar(rng)
        if k == 0:
            logger.debug("attempt %d: ephemeral scalar out of range", attempt)
            continue

        c1 = Scalar(k) * G
        shared = Scalar(k) * public_key
        if shared.is_inf():
            logger.debug("attempt %d: shared point at infinity", attempt)
            continue

        x2, y2 = shared.x_bytes, shared.y_bytes
        try:
            t = kdf(x2 + y2, len(message))
        except LengthError:
            logger.debug("attempt %d: all-zero KDF mask", attempt)
            continue

        c2 = _xor(message, t)
        c3 = sm3_digest(x2 + message + y2)
        return Ciphertext(c1=c1, c2=c2, c3=c3)

    logger.warning("encryption gave up after %d ephemeral draws", max_retries)
    raise CurveError(
        f"no usable ephemeral key after {max_retries} attempts"
    )


def encrypt(
    plaintext: BytesLike,
    public_key: Point,
    mode: Mode = DEFAULT_MODE,
    point_form: PointForm = PointForm.UNCOMPRESSED,
    rng: Optional[RandomSource] = None,
    max_retries: int = DEFAULT_MAX_RETRIES,
) -> bytes:
    """Encrypt and serialise in the given component order."""
    ct = encrypt_ciphertext(plaintext, public_key, rng, max_retries)
    return ct.to_bytes(mode, point_form)


# ── decryption ──────────────────────────────────────────────────────────
def decrypt_ciphertext(
    ciphertext: Ciphertext,
    private_key: Union[Scalar, int],
) -> bytes:
    """
    Recover the plaintext from parsed components.

    Raises ``MacMismatchError`` if C3 does not match; no part of the
    candidate plaintext is returned in that case.
    """
    d = private_key.value if isinstance(private_key, Scalar) else private_key
    if not 0 < d < ORDER:
        raise CurveError("private scalar must lie in [1, n-1]")
    validate_point(ciphertext.c1)

    shared = Scalar(d) * ciphertext.c1
    x2, y2 = shared.x_bytes, shared.y_bytes
    try:
        t = kdf(x2 + y2, len(ciphertext.c2))
    except LengthError as exc:
        raise MacMismatchError("ciphertext failed integrity check") from exc

    message = _xor(ciphertext.c2, t)
    u = sm3_digest(x2 + message + y2)
    if not hmac.compare_digest(u, ciphertext.c3):
        raise MacMismatchError("ciphertext failed integrity check")
    return message


def decrypt(
    ciphertext: BytesLike,
    private_key: Union[Scalar, int],
    mode: Mode = DEFAULT_MODE,
) -> bytes:
    """
    Parse a serialised ciphertext in *mode* order and decrypt it.

    When C1 can be read more than one way, each reading is tried in
    turn and the first whose C3 verifies is returned.
    ``MacMismatchError`` is raised only if every reading fails.
    """
    readings = Ciphertext.readings(ciphertext, mode)
    for ct in readings[:-1]:
        try:
            return decrypt_ciphertext(ct, private_key)
        except MacMismatchError:
            logger.debug("C3 mismatch, trying the next reading of C1")
    return decrypt_ciphertext(readings[-1], private_key)


# ── helpers ─────────────────────────────────────────────────────────────
def _xor(data: bytes, mask: bytes) -> bytes:
    return bytes(a ^ b for a, b in zip(data, mask))
