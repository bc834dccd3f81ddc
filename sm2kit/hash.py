"""
SM3-based hash functions for SM2.

The standard fixes SM3 as the only hash for all three places a digest
appears in the cryptosystem:

- the key derivation function that masks plaintext during encryption,

      KDF(Z, klen) = SM3(Z ‖ ct₁) ‖ SM3(Z ‖ ct₂) ‖ …   (truncated)

- the integrity check  C3 = SM3(x₂ ‖ M ‖ y₂)  of a ciphertext,
- the identity preamble  Z_A  mixed into every signature:

      Z_A = SM3(ENTL_A ‖ ID_A ‖ a ‖ b ‖ x_G ‖ y_G ‖ x_A ‖ y_A)

SM3 itself comes from ``gmssl``.

References
----------
- GB/T 32905-2016            SM3 cryptographic hash algorithm
- GB/T 32918.2-2016 §5.5     user identity hash Z_A
- GB/T 32918.4-2016 §5.4.3   key derivation function
"""

from __future__ import annotations

from gmssl import sm3, func

from .curve import Point, A, B, GX, GY, validate_point
from .errors import LengthError
from .field import fe_to_bytes

# ── constants ───────────────────────────────────────────────────────────
DIGEST_BYTES = 32
DEFAULT_USER_ID = b"1234567812345678"

# ENTL is the bit length of ID in two bytes
MAX_USER_ID_BYTES = 0xFFFF // 8

_MAX_KDF_BLOCKS = 0xFFFFFFFF


# ── SM3 ─────────────────────────────────────────────────────────────────
def sm3_digest(data: bytes) -> bytes:
    """SM3 digest of *data* (32 bytes)."""
    return bytes.fromhex(sm3.sm3_hash(func.bytes_to_list(data)))


# ── key derivation ──────────────────────────────────────────────────────
def kdf(z: bytes, out_len: int) -> bytes:
    """
    Expand shared secret *z* into *out_len* bytes of mask.

    Blocks are  SM3(z ‖ ct)  for a 4-byte big-endian counter starting at
    1; the concatenation is truncated to exactly *out_len* bytes.

    Raises ``LengthError`` if *out_len* is not positive, needs more
    blocks than the 32-bit counter allows, or if the whole mask comes
    out as zero bytes (the caller must then pick a new ephemeral key).
    """
    if out_len < 1:
        raise LengthError("KDF output length must be positive")
    blocks = -(-out_len // DIGEST_BYTES)
    if blocks > _MAX_KDF_BLOCKS:
        raise LengthError("KDF output length exceeds counter range")

    out = bytearray()
    for ct in range(1, blocks + 1):
        out += sm3_digest(z + ct.to_bytes(4, "big"))
    mask = bytes(out[:out_len])

    if not any(mask):
        raise LengthError("KDF produced an all-zero mask")
    return mask


# ── identity preamble ───────────────────────────────────────────────────
def compute_za(public_key: Point, user_id: bytes = DEFAULT_USER_ID) -> bytes:
    """
    Identity hash  Z_A  binding *user_id*, the curve and the public key.

    Raises ``LengthError`` if *user_id* does not fit the 16-bit ENTL
    field, ``CurveError`` for an invalid public key.
    """
    if len(user_id) > MAX_USER_ID_BYTES:
        raise LengthError(
            f"user id may be at most {MAX_USER_ID_BYTES} bytes, "
            f"got {len(user_id)}"
        )
    validate_point(public_key)
    entl = (len(user_id) * 8).to_bytes(2, "big")
    return sm3_digest(
        entl
        + user_id
        + fe_to_bytes(A)
        + fe_to_bytes(B)
        + fe_to_bytes(GX)
        + fe_to_bytes(GY)
        + public_key.x_bytes
        + public_key.y_bytes
    )


def message_digest(
    message: bytes,
    public_key: Point,
    user_id: bytes = DEFAULT_USER_ID,
) -> int:
    """Signature input  e = SM3(Z_A ‖ M)  as an integer."""
    za = compute_za(public_key, user_id)
    return int.from_bytes(sm3_digest(za + message), "big")
