"""
High-level SM2 engine.

Provides a single ``SM2`` class that ties a :class:`~sm2kit.keys.KeyPair`
to an immutable :class:`~sm2kit.config.SM2Config` and exposes
encryption, decryption, signing and verification with bytes, hex and
base64 in- and outputs.

Usage
-----
::

    from sm2kit import SM2, Mode, SignatureEncoding

    sm2 = SM2.generate()

    ct = sm2.encrypt(b"attack at dawn")
    assert sm2.decrypt(ct) == b"attack at dawn"

    sig = sm2.sign(b"transfer 100 CNY")
    assert sm2.verify(b"transfer 100 CNY", sig)

    # talk to a peer that uses C1C2C3 and 64-byte signatures
    legacy = sm2.with_config(mode=Mode.C1C2C3,
                             encoding=SignatureEncoding.PLAIN)

Instances never change after construction; ``with_config`` returns a
new engine sharing the same keys.
"""

from __future__ import annotations

from typing import Optional, Union

from . import encryption, signing
from .codec import (
    BytesLike,
    PointForm,
    decode_text,
    from_base64,
    from_hex,
    to_base64,
    to_hex,
)
from .config import SM2Config
from .curve import Point, RandomSource, Scalar
from .errors import EncodingError, SignatureFormatError
from .keys import KeyPair, PrivateInput, PublicInput

Data = Union[str, BytesLike]


class SM2:
    """
    SM2 engine bound to one key pair and one configuration.

    Constructors
    ------------
    ``SM2.generate()``            fresh random key pair
    ``SM2.from_private(d, q)``    private key (public derived or checked)
    ``SM2.from_public(q)``        verify / encrypt only
    ``SM2(keys, config)``         from an existing ``KeyPair``
    """

    def __init__(
        self,
        keys: KeyPair,
        config: Optional[SM2Config] = None,
    ) -> None:
        self._keys = keys
        self._config = config or SM2Config()

    # ── factories ──────────────────────────────────────────────────────

    @classmethod
    def generate(
        cls,
        config: Optional[SM2Config] = None,
        rng: Optional[RandomSource] = None,
    ) -> SM2:
        return cls(KeyPair.generate(rng), config)

    @classmethod
    def from_private(
        cls,
        private_key: PrivateInput,
        public_key: Optional[PublicInput] = None,
        config: Optional[SM2Config] = None,
    ) -> SM2:
        return cls(KeyPair.from_private(private_key, public_key), config)

    @classmethod
    def from_public(
        cls,
        public_key: PublicInput,
        config: Optional[SM2Config] = None,
    ) -> SM2:
        return cls(KeyPair.from_public(public_key), config)

    @classmethod
    def from_coordinates(
        cls,
        x: Union[int, str],
        y: Union[int, str],
        private_key: Optional[PrivateInput] = None,
        config: Optional[SM2Config] = None,
    ) -> SM2:
        return cls(KeyPair.from_coordinates(x, y, private_key), config)

    def with_config(self, **changes) -> SM2:
        """New engine with the same keys and an updated configuration."""
        return SM2(self._keys, self._config.replace(**changes))

    # ── encryption ─────────────────────────────────────────────────────

    def encrypt(self, data: Data, rng: Optional[RandomSource] = None) -> bytes:
        """Encrypt bytes, or a ``str`` as UTF-8, to this engine's public key."""
        cfg = self._config
        return encryption.encrypt(
            _utf8(data),
            self._keys.require_public(),
            mode=cfg.mode,
            point_form=cfg.point_form,
            rng=rng,
            max_retries=cfg.max_retries,
        )

    def encrypt_hex(self, data: Data, rng: Optional[RandomSource] = None) -> str:
        return to_hex(self.encrypt(data, rng))

    def encrypt_base64(self, data: Data, rng: Optional[RandomSource] = None) -> str:
        return to_base64(self.encrypt(data, rng))

    def decrypt(self, data: Data) -> bytes:
        """Decrypt raw bytes, or hex / base64 text."""
        return encryption.decrypt(
            decode_text(data),
            self._keys.require_private(),
            mode=self._config.mode,
        )

    def decrypt_str(self, data: Data, charset: str = "utf-8") -> str:
        return self.decrypt(data).decode(charset)

    # ── signing ────────────────────────────────────────────────────────

    def sign(
        self,
        data: Data,
        user_id: Optional[bytes] = None,
        rng: Optional[RandomSource] = None,
    ) -> bytes:
        """Sign bytes (``str`` as UTF-8) in the configured encoding."""
        sig = signing.sign(
            _utf8(data),
            self._keys.require_private(),
            user_id=self._user_id(user_id),
            public_key=self._keys.require_public(),
            rng=rng,
            max_retries=self._config.max_retries,
        )
        return sig.to_bytes(self._config.encoding)

    def verify(
        self,
        data: Data,
        signature: Data,
        user_id: Optional[bytes] = None,
    ) -> bool:
        """
        Check *signature* in the configured encoding.

        *signature* may be raw bytes or hex / base64 text.  Raises
        ``SignatureFormatError`` if it is not a well-formed encoding;
        returns ``False`` for a well-formed mismatch.
        """
        return signing.verify(
            _utf8(data),
            _signature_bytes(signature),
            self._keys.require_public(),
            user_id=self._user_id(user_id),
            encoding=self._config.encoding,
        )

    def sign_hex(
        self,
        data_hex: str,
        user_id_hex: Optional[str] = None,
        rng: Optional[RandomSource] = None,
    ) -> str:
        """Hex-encoded data and user id in, hex signature out."""
        uid = from_hex(user_id_hex) if user_id_hex is not None else None
        return to_hex(self.sign(from_hex(data_hex), uid, rng))

    def verify_hex(
        self,
        data_hex: str,
        signature_hex: str,
        user_id_hex: Optional[str] = None,
    ) -> bool:
        uid = from_hex(user_id_hex) if user_id_hex is not None else None
        return self.verify(from_hex(data_hex), from_hex(signature_hex), uid)

    def sign_base64(
        self,
        data: Data,
        user_id: Optional[bytes] = None,
        rng: Optional[RandomSource] = None,
    ) -> str:
        return to_base64(self.sign(data, user_id, rng))

    def verify_base64(
        self,
        data: Data,
        signature_base64: str,
        user_id: Optional[bytes] = None,
    ) -> bool:
        """Check a base64 signature; malformed base64 is a ``SignatureFormatError``."""
        try:
            signature = from_base64(signature_base64)
        except EncodingError as exc:
            raise SignatureFormatError("signature is not valid base64") from exc
        return self.verify(data, signature, user_id)

    # ── accessors ──────────────────────────────────────────────────────

    @property
    def keys(self) -> KeyPair:
        return self._keys

    @property
    def config(self) -> SM2Config:
        return self._config

    @property
    def public_key(self) -> Point:
        return self._keys.require_public()

    @property
    def private_key(self) -> Scalar:
        return self._keys.require_private()

    @property
    def d_bytes(self) -> bytes:
        """Private scalar, 32 bytes."""
        return self._keys.private_bytes()

    @property
    def d_hex(self) -> str:
        return self._keys.private_hex()

    def q_bytes(self, compressed: bool = False) -> bytes:
        """Public point, 65 bytes uncompressed or 33 bytes compressed."""
        form = PointForm.COMPRESSED if compressed else PointForm.UNCOMPRESSED
        return self._keys.public_bytes(form)

    def _user_id(self, user_id: Optional[bytes]) -> bytes:
        return self._config.user_id if user_id is None else bytes(user_id)

    def __repr__(self) -> str:
        kind = "private" if self._keys.has_private else "public"
        return (
            f"SM2({kind}, mode={self._config.mode.value}, "
            f"encoding={self._config.encoding.value})"
        )


# ── helpers ─────────────────────────────────────────────────────────────

def _utf8(data: Data) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def _signature_bytes(signature: Data) -> bytes:
    try:
        return decode_text(signature)
    except EncodingError as exc:
        raise SignatureFormatError("signature text is neither hex nor base64") from exc
