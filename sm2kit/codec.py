"""
Octet-string encodings of SM2 curve points.

Three forms, selected by the leading byte *PC*:

=============  ==========  ===============================
form           PC          body
=============  ==========  ===============================
uncompressed   04          x ‖ y
compressed     02 / 03     x            (PC bit 0 = ỹ)
hybrid         06 / 07     x ‖ y        (PC bit 0 = ỹ)
=============  ==========  ===============================

Every coordinate is 32 bytes, zero-padded.  Some producers drop the
``04`` of an uncompressed point; :func:`decode_point` accepts such a
bare 64-byte ``x ‖ y`` when called with ``allow_raw=True``.

Hex and base64 helpers are thin adapters over the byte codec.

References
----------
- GB/T 32918.1-2016 §4.2.9 / §4.2.10   point ⇄ octet string
- GB/T 32918.1-2016 Annex A.5.2        recovering y from x
"""

from __future__ import annotations

import base64
import binascii
import re
from enum import Enum
from typing import Union

from .curve import Point, P, A, B
from .errors import EncodingError
from .field import FIELD_BYTES, fe_from_bytes, fe_sqrt

BytesLike = Union[bytes, bytearray, memoryview]

_HEX_RE = re.compile(r"^(?:[0-9a-fA-F]{2})*$")

COMPRESSED_BYTES = 1 + FIELD_BYTES
UNCOMPRESSED_BYTES = 1 + 2 * FIELD_BYTES
RAW_BYTES = 2 * FIELD_BYTES


# ── point forms ─────────────────────────────────────────────────────────
class PointForm(Enum):
    """Octet-string form of an encoded point."""

    COMPRESSED = "compressed"
    UNCOMPRESSED = "uncompressed"
    HYBRID = "hybrid"


def encoded_length(prefix: int) -> int:
    """
    Length of an encoded point given its first byte.

    Any byte that is not a known PC value is taken as the first byte of
    a bare ``x ‖ y`` (prefix-less uncompressed) point.
    """
    if prefix in (0x02, 0x03):
        return COMPRESSED_BYTES
    if prefix in (0x04, 0x06, 0x07):
        return UNCOMPRESSED_BYTES
    return RAW_BYTES


# ── byte codec ──────────────────────────────────────────────────────────
def encode_point(pt: Point, form: PointForm = PointForm.UNCOMPRESSED) -> bytes:
    """Serialise a finite point in the requested form."""
    x = pt.x_bytes
    parity = pt.y & 1
    if form is PointForm.UNCOMPRESSED:
        return b"\x04" + x + pt.y_bytes
    if form is PointForm.COMPRESSED:
        return bytes([0x02 | parity]) + x
    if form is PointForm.HYBRID:
        return bytes([0x06 | parity]) + x + pt.y_bytes
    raise EncodingError(f"unknown point form: {form!r}")


def decode_point(data: BytesLike, allow_raw: bool = False) -> Point:
    """
    Parse an encoded point and check it lies on the curve.

    Raises ``EncodingError`` for an unknown prefix, a wrong length or an
    inconsistent hybrid encoding, and ``CurveError`` if the decoded
    coordinates are not a curve point.
    """
    data = bytes(data)
    if not data:
        raise EncodingError("empty point encoding")

    if allow_raw and len(data) == RAW_BYTES:
        data = b"\x04" + data

    pc = data[0]
    if pc == 0x00:
        raise EncodingError("point at infinity cannot be decoded here")

    if pc in (0x02, 0x03):
        _expect_len(data, COMPRESSED_BYTES, "compressed")
        x = _coordinate(data[1:])
        y = _recover_y(x, pc & 1)
        return Point(x, y)

    if pc in (0x04, 0x06, 0x07):
        _expect_len(data, UNCOMPRESSED_BYTES, "uncompressed/hybrid")
        x = _coordinate(data[1:1 + FIELD_BYTES])
        y = _coordinate(data[1 + FIELD_BYTES:])
        if pc != 0x04 and (y & 1) != (pc & 1):
            raise EncodingError("hybrid point parity does not match y")
        return Point(x, y)

    raise EncodingError(f"unrecognised point prefix 0x{pc:02x}")


def _expect_len(data: bytes, want: int, form: str) -> None:
    if len(data) != want:
        raise EncodingError(
            f"{form} point must be {want} bytes, got {len(data)}"
        )


def _coordinate(data: bytes) -> int:
    try:
        return fe_from_bytes(data)
    except ValueError as exc:
        raise EncodingError(str(exc)) from exc


def _recover_y(x: int, parity: int) -> int:
    """y with the requested parity such that (x, y) is on the curve."""
    rhs = (x * x * x + A * x + B) % P
    y = fe_sqrt(rhs)
    if y & 1 != parity:
        y = (P - y) % P
    return y


# ── text adapters ───────────────────────────────────────────────────────
def decode_text(text: Union[str, BytesLike]) -> bytes:
    """
    Decode a string that is either hex or base64.

    Even-length strings made of hex digits only are read as hex,
    everything else as (standard) base64.  Raw bytes pass through.
    """
    if not isinstance(text, str):
        return bytes(text)
    s = "".join(text.split())
    if _HEX_RE.match(s):
        return bytes.fromhex(s)
    try:
        return base64.b64decode(s, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise EncodingError("text is neither hex nor base64") from exc


def to_hex(data: bytes) -> str:
    return data.hex()


def from_hex(text: str) -> bytes:
    try:
        return bytes.fromhex("".join(text.split()))
    except ValueError as exc:
        raise EncodingError("invalid hex string") from exc


def to_base64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def from_base64(text: str) -> bytes:
    try:
        return base64.b64decode("".join(text.split()), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise EncodingError("invalid base64 string") from exc


def point_to_hex(pt: Point, form: PointForm = PointForm.UNCOMPRESSED) -> str:
    return to_hex(encode_point(pt, form))


def point_from_hex(text: str, allow_raw: bool = False) -> Point:
    return decode_point(from_hex(text), allow_raw=allow_raw)


def point_to_base64(pt: Point, form: PointForm = PointForm.UNCOMPRESSED) -> str:
    return to_base64(encode_point(pt, form))


def point_from_base64(text: str, allow_raw: bool = False) -> Point:
    return decode_point(from_base64(text), allow_raw=allow_raw)
