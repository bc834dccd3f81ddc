"""
sm2kit: the SM2 public-key cryptosystem in Python.

Implements GB/T 32918 over the SM2 recommended 256-bit prime curve:

- **Curve arithmetic** with a regular Montgomery ladder
- **Point encoding** in compressed, uncompressed and hybrid form
- **Public-key encryption** with SM3-based KDF and C3 integrity check,
  in either ``C1C3C2`` or legacy ``C1C2C3`` component order
- **Identity-bound signatures** (Z_A preamble) in DER or 64-byte plain
  encoding
- **Key import / export** as raw scalars and points, SEC1, PKCS#8 and
  X.509 SubjectPublicKeyInfo (DER or PEM)

Quick start
-----------
::

    from sm2kit import SM2

    sm2 = SM2.generate()

    ct = sm2.encrypt(b"hello")
    assert sm2.decrypt(ct) == b"hello"

    sig = sm2.sign(b"hello", user_id=b"alice@example.com")
    assert sm2.verify(b"hello", sig, user_id=b"alice@example.com")
"""

__version__ = "0.1.0"

# ── errors ──────────────────────────────────────────────────────────────
from .errors import (
    SM2Error,
    CurveError,
    LengthError,
    EncodingError,
    MacMismatchError,
    SignatureFormatError,
    KeyMissingError,
)

# ── core types ──────────────────────────────────────────────────────────
from .curve import (
    Scalar,
    Point,
    G,
    ORDER,
    add,
    double,
    scalar_mul,
    is_on_curve,
    is_infinity,
)

# ── point codec ─────────────────────────────────────────────────────────
from .codec import PointForm, encode_point, decode_point

# ── hashing ─────────────────────────────────────────────────────────────
from .hash import DEFAULT_USER_ID, sm3_digest, kdf, compute_za

# ── encryption ──────────────────────────────────────────────────────────
from .encryption import Mode, Ciphertext, encrypt, decrypt

# ── signatures ──────────────────────────────────────────────────────────
from .signing import (
    SignatureEncoding,
    Signature,
    sign,
    verify,
    der_to_plain,
    plain_to_der,
)

# ── keys, configuration, engine ─────────────────────────────────────────
from .keys import KeyPair, SM2_CURVE_OID
from .config import SM2Config
from .protocol import SM2

__all__ = [
    # version
    "__version__",
    # errors
    "SM2Error", "CurveError", "LengthError", "EncodingError",
    "MacMismatchError", "SignatureFormatError", "KeyMissingError",
    # curve
    "Scalar", "Point", "G", "ORDER",
    "add", "double", "scalar_mul", "is_on_curve", "is_infinity",
    # codec
    "PointForm", "encode_point", "decode_point",
    # hashing
    "DEFAULT_USER_ID", "sm3_digest", "kdf", "compute_za",
    # encryption
    "Mode", "Ciphertext", "encrypt", "decrypt",
    # signatures
    "SignatureEncoding", "Signature", "sign", "verify",
    "der_to_plain", "plain_to_der",
    # keys & engine
    "KeyPair", "SM2_CURVE_OID", "SM2Config", "SM2",
]
