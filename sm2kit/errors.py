"""
Exception taxonomy for sm2kit.

Every failure raised by the package derives from :class:`SM2Error`,
which is itself a ``ValueError`` so that callers written against plain
``ValueError`` keep working.

=======================  ==============================================
exception                raised for
=======================  ==============================================
``CurveError``           point off the curve, infinity where forbidden,
                         scalar out of range, retry-loop exhaustion
``LengthError``          empty plaintext, malformed fixed-width field,
                         all-zero KDF output
``EncodingError``        unknown point prefix, malformed DER / PEM /
                         hex / base64
``MacMismatchError``     C3 check failed during decryption
``SignatureFormatError`` malformed (r, s) encoding
``KeyMissingError``      operation needs a key half that is absent
=======================  ==============================================

``verify`` never raises for a well-formed signature that simply does not
match; it returns ``False``.
"""


class SM2Error(ValueError):
    """Base class of all sm2kit errors."""


class CurveError(SM2Error):
    """Invalid point or scalar, or an exhausted ephemeral retry loop."""


class LengthError(SM2Error):
    """Input of the wrong length (empty plaintext, bad fixed-width field)."""


class EncodingError(SM2Error):
    """Byte or text representation that cannot be decoded."""


class MacMismatchError(SM2Error):
    """Recomputed C3 differs from the one embedded in the ciphertext."""


class SignatureFormatError(SM2Error):
    """Signature bytes that are not a valid DER or plain (r, s) encoding."""


class KeyMissingError(SM2Error):
    """Operation needs a key half (private or public) this instance lacks."""
