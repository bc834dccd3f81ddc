"""
Per-instance configuration of an :class:`~sm2kit.protocol.SM2` engine.

The configuration is an immutable value; "changing" a setting means
building a new config with :meth:`SM2Config.replace` and a new engine
around it, so one engine can be shared freely between threads.

Defaults
--------
``mode``        ``Mode.C1C3C2``  — the GB/T 32918.4-2016 order.  Peers
                that still emit the older ``C1C2C3`` order need
                ``Mode.C1C2C3`` set explicitly.
``encoding``    ``SignatureEncoding.DER``
``user_id``     ``b"1234567812345678"``
``point_form``  ``PointForm.UNCOMPRESSED`` for C1
``max_retries`` 16 ephemeral draws per encrypt / sign call
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass

from .codec import PointForm
from .encryption import DEFAULT_MAX_RETRIES, DEFAULT_MODE, Mode
from .errors import LengthError
from .hash import DEFAULT_USER_ID, MAX_USER_ID_BYTES
from .signing import DEFAULT_ENCODING, SignatureEncoding


@dataclass(frozen=True)
class SM2Config:
    """Settings that shape the wire format of one engine instance."""

    mode: Mode = DEFAULT_MODE
    encoding: SignatureEncoding = DEFAULT_ENCODING
    user_id: bytes = DEFAULT_USER_ID
    point_form: PointForm = PointForm.UNCOMPRESSED
    max_retries: int = DEFAULT_MAX_RETRIES

    def __post_init__(self) -> None:
        if not isinstance(self.mode, Mode):
            raise TypeError(f"mode must be a Mode, got {self.mode!r}")
        if not isinstance(self.encoding, SignatureEncoding):
            raise TypeError(
                f"encoding must be a SignatureEncoding, got {self.encoding!r}"
            )
        if not isinstance(self.point_form, PointForm):
            raise TypeError(
                f"point_form must be a PointForm, got {self.point_form!r}"
            )
        object.__setattr__(self, "user_id", bytes(self.user_id))
        if len(self.user_id) > MAX_USER_ID_BYTES:
            raise LengthError(
                f"user id may be at most {MAX_USER_ID_BYTES} bytes"
            )
        if self.max_retries < 1:
            raise LengthError("max_retries must be at least 1")

    def replace(self, **changes) -> SM2Config:
        """Copy of this config with *changes* applied."""
        return dataclasses.replace(self, **changes)

    @property
    def plain_encoding(self) -> bool:
        return self.encoding is SignatureEncoding.PLAIN
