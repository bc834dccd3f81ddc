"""
Elliptic curve arithmetic on the SM2 recommended curve.

    E : y² = x³ + a·x + b   over F_p,   a = p − 3

The group has prime order *n* (cofactor 1) and base point *G*.

Points are immutable affine values; the group law is evaluated in
Jacobian coordinates internally and converted back once per operation.
Scalar multiplication is a Montgomery ladder over a fixed bit length
with masked conditional swaps, so the sequence of field operations is
the same for every scalar of the valid range.

References
----------
- GB/T 32918.1-2016 §3.2.3   group law over F_p
- GB/T 32918.5-2017          recommended curve parameters
- Joye & Yen (2002). "The Montgomery Powering Ladder."  CHES 2002.
"""

from __future__ import annotations

import secrets
from typing import Callable, Optional, Tuple, Union

from .errors import CurveError, LengthError
from .field import (
    FIELD_PRIME,
    fe_inv,
    fe_select,
    fe_to_bytes,
)

# ── SM2 domain parameters ───────────────────────────────────────────────
P = FIELD_PRIME
A = 0xFFFFFFFEFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFF00000000FFFFFFFFFFFFFFFC
B = 0x28E9FA9E9D9F5E344D5A9E4BCF6509A7F39789F515AB8F92DDBCBD414D940E93
ORDER = 0xFFFFFFFEFFFFFFFFFFFFFFFFFFFFFFFF7203DF6B21C6052B53BBF40939D54123
GX = 0x32C4AE2C1F1981195F9904466A39C9948FE30BBFF2660BE1715A4589334C74C7
GY = 0xBC3736A2F4F6779C59BDCEE36B692153D0A9877CC62A474002DF32E52139F0A0
SCALAR_BYTES = 32

# k + n or k + 2n, whichever has exactly this many bits
_LADDER_BITS = 257


# ── Scalar  (Z_n arithmetic) ────────────────────────────────────────────
class Scalar:
    """Element of the scalar field  Z_n  where *n* = ``ORDER``."""

    __slots__ = ("_v",)

    def __init__(self, value: int) -> None:
        self._v = value % ORDER

    # constructors -----------------------------------------------------------
    @classmethod
    def zero(cls) -> Scalar:
        return cls(0)

    @classmethod
    def one(cls) -> Scalar:
        return cls(1)

    @classmethod
    def random(cls) -> Scalar:
        """Uniform in [1, n-1] via rejection sampling."""
        while True:
            c = int.from_bytes(secrets.token_bytes(SCALAR_BYTES), "big")
            if 0 < c < ORDER:
                return cls(c)

    @classmethod
    def from_bytes(cls, data: bytes) -> Scalar:
        if len(data) != SCALAR_BYTES:
            raise LengthError(f"need {SCALAR_BYTES} bytes, got {len(data)}")
        v = int.from_bytes(data, "big")
        if v >= ORDER:
            raise CurveError("scalar out of range")
        return cls(v)

    # serialisation ----------------------------------------------------------
    def to_bytes(self) -> bytes:
        return self._v.to_bytes(SCALAR_BYTES, "big")

    @property
    def value(self) -> int:
        return self._v

    # arithmetic -------------------------------------------------------------
    def __add__(self, o: Scalar) -> Scalar:
        if isinstance(o, int):
            o = Scalar(o)
        if not isinstance(o, Scalar):
            return NotImplemented
        return Scalar(self._v + o._v)

    def __radd__(self, o):
        if isinstance(o, int):
            return Scalar(o + self._v)
        return NotImplemented

    def __sub__(self, o: Scalar) -> Scalar:
        if isinstance(o, int):
            o = Scalar(o)
        if not isinstance(o, Scalar):
            return NotImplemented
        return Scalar(self._v - o._v)

    def __mul__(self, o):
        if isinstance(o, Scalar):
            return Scalar(self._v * o._v)
        if isinstance(o, Point):
            return scalar_mul(self, o)
        return NotImplemented

    def __rmul__(self, o):
        if isinstance(o, int):
            return Scalar(o * self._v)
        return NotImplemented

    def __neg__(self) -> Scalar:
        return Scalar(-self._v)

    def inv(self) -> Scalar:
        """Multiplicative inverse via Fermat's little theorem."""
        if self._v == 0:
            raise ZeroDivisionError("cannot invert zero scalar")
        return Scalar(pow(self._v, ORDER - 2, ORDER))

    # comparison / hashing ---------------------------------------------------
    def __eq__(self, o: object) -> bool:
        if isinstance(o, Scalar):
            return self._v == o._v
        if isinstance(o, int):
            return self._v == o % ORDER
        return False

    def __hash__(self) -> int:
        return hash(self._v)

    def __bool__(self) -> bool:
        return self._v != 0

    def __repr__(self) -> str:
        # never print the full value: scalars are usually secrets
        return "Scalar(…)"


# Opaque RNG capability: returns a fresh uniform scalar in [1, n-1].
RandomSource = Callable[[], Union[Scalar, int]]


def draw_scalar(rng: Optional[RandomSource] = None) -> int:
    """
    One ephemeral draw from *rng* (default: ``Scalar.random``).

    Returns 0 when the source yields a value outside [1, n-1]; callers
    treat that like any other degenerate draw and resample.
    """
    k = (rng or Scalar.random)()
    kv = k.value if isinstance(k, Scalar) else int(k)
    return kv if 0 < kv < ORDER else 0


# ── Point  (affine group element) ───────────────────────────────────────
class Point:
    """
    Point on the SM2 curve.

    The identity (point at infinity) is represented by a flag; affine
    coordinates of a finite point are validated against the curve
    equation at construction time.
    """

    __slots__ = ("_x", "_y", "_inf")

    def __init__(
        self,
        x: Optional[int] = None,
        y: Optional[int] = None,
        *,
        infinity: bool = False,
    ) -> None:
        if infinity:
            self._x, self._y, self._inf = 0, 0, True
            return
        if x is None or y is None:
            raise CurveError("finite point needs both coordinates")
        if not (0 <= x < P and 0 <= y < P):
            raise CurveError("coordinate out of field range")
        if not _on_curve(x, y):
            raise CurveError("point is not on the SM2 curve")
        self._x, self._y, self._inf = x, y, False

    # constructors -----------------------------------------------------------
    @classmethod
    def _trusted(cls, x: int, y: int) -> Point:
        """Build a point already known to be on the curve."""
        pt = object.__new__(cls)
        pt._x, pt._y, pt._inf = x, y, False
        return pt

    @classmethod
    def generator(cls) -> Point:
        """Standard base point *G*."""
        return cls(GX, GY)

    @classmethod
    def identity(cls) -> Point:
        """Point at infinity — additive identity."""
        return cls(infinity=True)

    @classmethod
    def from_scalar(cls, s: Union[Scalar, int]) -> Point:
        """Compute *s · G*."""
        return scalar_mul(s, G)

    # coordinates ------------------------------------------------------------
    @property
    def x(self) -> int:
        if self._inf:
            raise CurveError("point at infinity has no affine coordinates")
        return self._x

    @property
    def y(self) -> int:
        if self._inf:
            raise CurveError("point at infinity has no affine coordinates")
        return self._y

    @property
    def x_bytes(self) -> bytes:
        return fe_to_bytes(self.x)

    @property
    def y_bytes(self) -> bytes:
        return fe_to_bytes(self.y)

    def is_inf(self) -> bool:
        return self._inf

    # group operations -------------------------------------------------------
    def double(self) -> Point:
        return double(self)

    def __neg__(self) -> Point:
        if self._inf:
            return self
        return Point._trusted(self._x, (-self._y) % P)

    def __add__(self, o: Point) -> Point:
        if not isinstance(o, Point):
            return NotImplemented
        return add(self, o)

    def __sub__(self, o: Point) -> Point:
        return self + (-o)

    def __rmul__(self, s) -> Point:
        if isinstance(s, (Scalar, int)):
            return scalar_mul(s, self)
        return NotImplemented

    def __eq__(self, o: object) -> bool:
        if not isinstance(o, Point):
            return False
        if self._inf or o._inf:
            return self._inf and o._inf
        return self._x == o._x and self._y == o._y

    def __hash__(self) -> int:
        if self._inf:
            return hash(None)
        return hash((self._x, self._y))

    def __repr__(self) -> str:
        if self._inf:
            return "Point(∞)"
        return f"Point(x=0x{self._x:064x}, y=0x{self._y:064x})"


# ── public operations ───────────────────────────────────────────────────
def is_infinity(pt: Point) -> bool:
    return pt.is_inf()


def is_on_curve(pt: Point) -> bool:
    """
    True iff *pt* satisfies the curve equation.

    The identity is a member of the group and counts as on-curve;
    operations that forbid it check :func:`is_infinity` separately.
    """
    if pt.is_inf():
        return True
    return 0 <= pt._x < P and 0 <= pt._y < P and _on_curve(pt._x, pt._y)


def validate_point(pt: Point) -> Point:
    """Return *pt* if it is a finite curve point, else raise ``CurveError``."""
    if pt.is_inf():
        raise CurveError("point at infinity is not allowed here")
    if not is_on_curve(pt):
        raise CurveError("point is not on the SM2 curve")
    return pt


def add(p1: Point, p2: Point) -> Point:
    """Group law  p1 + p2."""
    _check(p1)
    _check(p2)
    return _from_jacobian(_jac_add(_to_jacobian(p1), _to_jacobian(p2)))


def double(pt: Point) -> Point:
    """Group law  2 · pt."""
    _check(pt)
    return _from_jacobian(_jac_double(_to_jacobian(pt)))


def scalar_mul(k: Union[Scalar, int], pt: Point) -> Point:
    """
    Scalar multiplication  k · pt  for  k ∈ [1, n-1].

    Raises ``CurveError`` for a scalar outside that range, for the point
    at infinity, or for a point off the curve.
    """
    kv = k.value if isinstance(k, Scalar) else k
    if not isinstance(kv, int) or not 0 < kv < ORDER:
        raise CurveError("scalar must lie in [1, n-1]")
    validate_point(pt)
    return _from_jacobian(_ladder(kv, _to_jacobian(pt)))


# ── Jacobian internals ──────────────────────────────────────────────────
# (X, Y, Z) represents (X/Z², Y/Z³); Z == 0 is the identity.
_Jac = Tuple[int, int, int]
_JAC_INF: _Jac = (1, 1, 0)


def _on_curve(x: int, y: int) -> bool:
    return (y * y - (x * x * x + A * x + B)) % P == 0


def _check(pt: Point) -> None:
    if not is_on_curve(pt):
        raise CurveError("point is not on the SM2 curve")


def _to_jacobian(pt: Point) -> _Jac:
    if pt.is_inf():
        return _JAC_INF
    return (pt._x, pt._y, 1)


def _from_jacobian(j: _Jac) -> Point:
    X, Y, Z = j
    if Z == 0:
        return Point.identity()
    z_inv = fe_inv(Z)
    z_inv2 = z_inv * z_inv % P
    return Point._trusted(X * z_inv2 % P, Y * z_inv2 * z_inv % P)


def _jac_double(j: _Jac) -> _Jac:
    X, Y, Z = j
    if Z == 0 or Y == 0:
        return _JAC_INF
    yy = Y * Y % P
    zz = Z * Z % P
    s = 4 * X * yy % P
    m = (3 * X * X + A * zz * zz) % P
    x3 = (m * m - 2 * s) % P
    y3 = (m * (s - x3) - 8 * yy * yy) % P
    z3 = 2 * Y * Z % P
    return (x3, y3, z3)


def _jac_add(j1: _Jac, j2: _Jac) -> _Jac:
    X1, Y1, Z1 = j1
    X2, Y2, Z2 = j2
    if Z1 == 0:
        return j2
    if Z2 == 0:
        return j1
    z1z1 = Z1 * Z1 % P
    z2z2 = Z2 * Z2 % P
    u1 = X1 * z2z2 % P
    u2 = X2 * z1z1 % P
    s1 = Y1 * Z2 * z2z2 % P
    s2 = Y2 * Z1 * z1z1 % P
    if u1 == u2:
        if s1 != s2:
            return _JAC_INF
        return _jac_double(j1)
    h = (u2 - u1) % P
    r = (s2 - s1) % P
    hh = h * h % P
    hhh = h * hh % P
    v = u1 * hh % P
    x3 = (r * r - hhh - 2 * v) % P
    y3 = (r * (v - x3) - s1 * hhh) % P
    z3 = Z1 * Z2 * h % P
    return (x3, y3, z3)


def _cswap(bit: int, a: _Jac, b: _Jac) -> Tuple[_Jac, _Jac]:
    """Swap *a* and *b* iff ``bit == 1`` using masks, not branches."""
    na = tuple(fe_select(bit, ca, cb) for ca, cb in zip(a, b))
    nb = tuple(fe_select(bit, cb, ca) for ca, cb in zip(a, b))
    return na, nb  # type: ignore[return-value]


def _ladder(k: int, base: _Jac) -> _Jac:
    """Montgomery ladder on  k + n  or  k + 2n  (fixed 257-bit length)."""
    k1 = k + ORDER
    k = fe_select(1 - (k1 >> (_LADDER_BITS - 1)), k1, k1 + ORDER)
    r0 = base
    r1 = _jac_double(base)
    for i in range(_LADDER_BITS - 2, -1, -1):
        bit = (k >> i) & 1
        r0, r1 = _cswap(bit, r0, r1)
        r1 = _jac_add(r0, r1)
        r0 = _jac_double(r0)
        r0, r1 = _cswap(bit, r0, r1)
    return r0


# ── module-level generator ──────────────────────────────────────────────
G = Point.generator()
