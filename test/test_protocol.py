import base64

import pytest

from sm2kit import G, SM2, Mode, SignatureEncoding
from sm2kit.config import SM2Config
from sm2kit.errors import KeyMissingError, MacMismatchError, SignatureFormatError

from conftest import (
    GMSSL_CIPHERTEXT,
    GMSSL_PRIVATE,
    OPENSSL_SEC1,
    OPENSSL_SPKI,
    POINT_D,
    POINT_X,
    POINT_Y,
    VECTOR_D,
    VECTOR_Q,
)

TEXT = "我是一段测试aaaa"


@pytest.fixture
def sm2():
    return SM2.generate()


def test_encrypt_and_decrypt(sm2):
    """Bytes and str round-trip through the engine."""
    ct = sm2.encrypt(TEXT.encode("utf-8"))
    assert sm2.decrypt(ct) == TEXT.encode("utf-8")
    assert sm2.decrypt_str(sm2.encrypt(TEXT)) == TEXT


def test_text_ciphertexts(sm2):
    """Base64 and hex ciphertexts decrypt from text."""
    long_text = "我是一段特别长的测试" * 100
    assert sm2.decrypt_str(sm2.encrypt_base64(long_text)) == long_text
    assert sm2.decrypt_str(sm2.encrypt_hex(TEXT)) == TEXT


def test_legacy_mode_with_fixed_keys():
    """C1C2C3 round trip with the fixed key pair."""
    sm2 = SM2.from_private(VECTOR_D, VECTOR_Q).with_config(mode=Mode.C1C2C3)
    assert sm2.decrypt_str(sm2.encrypt_hex("123456")) == "123456"


def test_decrypt_gmssl_output():
    """gmssl output needs C1C2C3 to decrypt."""
    sm2 = SM2.from_private(GMSSL_PRIVATE, config=SM2Config(mode=Mode.C1C2C3))
    assert sm2.decrypt_str(GMSSL_CIPHERTEXT) == "123456"
    with pytest.raises(MacMismatchError):
        SM2.from_private(GMSSL_PRIVATE).decrypt(GMSSL_CIPHERTEXT)


def test_openssl_keys_encrypt_and_sign():
    """OpenSSL keys can encrypt and sign."""
    sm2 = SM2.from_private(OPENSSL_SEC1, OPENSSL_SPKI)
    src = "Sm2Test中文"
    assert sm2.decrypt_str(sm2.encrypt(src)) == src
    assert sm2.verify(src, sm2.sign(src))


def test_sign_and_verify(sm2):
    """Signatures verify in both encodings."""
    content = "我是Hanley."
    sig = sm2.sign(content)
    assert sm2.verify(content, sig)
    assert sm2.verify(content.encode("utf-8"), sig)
    assert not sm2.verify(content + ".", sig)


def test_sign_and_verify_hex():
    """Hex helpers sign and verify under an explicit identity."""
    sm2 = SM2.from_coordinates(POINT_X, POINT_Y, POINT_D)
    data = "434477813974bf58f94bcf760833c2b40f77a5fc360485b0b9ed1bd9682edb45"
    uid = "31323334353637383132333435363738"
    sig = sm2.sign_hex(data, uid)
    assert sm2.verify_hex(data, sig)
    assert sm2.verify_hex(data, sig, uid)
    assert not sm2.verify_hex(data, sig, "00")


def test_plain_signatures():
    """Plain signatures are 64 bytes and not read as DER."""
    sm2 = SM2.from_private(
        "1ebf8b341c695ee456fd1a41b82645724bc25d79935437d30e7e4b0a554baa5e"
    ).with_config(encoding=SignatureEncoding.PLAIN)
    sig = sm2.sign(TEXT)
    assert len(sig) == 64
    assert sm2.verify(TEXT, sig)

    der_engine = sm2.with_config(encoding=SignatureEncoding.DER)
    with pytest.raises(SignatureFormatError):
        der_engine.verify(TEXT, sig)


def test_configured_identity(sm2):
    """The configured identity is used by default."""
    alice = sm2.with_config(user_id=b"alice")
    sig = alice.sign(TEXT)
    assert alice.verify(TEXT, sig)
    assert sm2.verify(TEXT, sig, user_id=b"alice")
    assert not sm2.verify(TEXT, sig)


def test_with_config_keeps_original(sm2):
    """with_config returns a new engine on the same keys."""
    legacy = sm2.with_config(mode=Mode.C1C2C3)
    assert sm2.config.mode is Mode.C1C3C2
    assert legacy.config.mode is Mode.C1C2C3
    assert legacy.keys is sm2.keys


def test_public_only_engine():
    """Public-only engines encrypt and verify but nothing else."""
    owner = SM2.generate()
    peer = SM2.from_public(owner.q_bytes())
    ct = peer.encrypt("for the owner")
    assert owner.decrypt_str(ct) == "for the owner"
    assert peer.verify("signed", owner.sign("signed"))
    with pytest.raises(KeyMissingError):
        peer.decrypt(ct)
    with pytest.raises(KeyMissingError):
        peer.sign("nope")
    with pytest.raises(KeyMissingError):
        _ = peer.d_hex


def test_key_accessors(sm2):
    """Key accessors return fixed-length values."""
    assert len(sm2.d_hex) == 64
    assert len(sm2.d_bytes) == 32
    assert len(sm2.q_bytes()) == 65
    assert len(sm2.q_bytes(compressed=True)) == 33
    assert sm2.public_key == sm2.private_key * G
    assert "private" in repr(sm2)


def test_verify_accepts_text_signatures(sm2):
    """Signatures given as hex or base64 text are decoded before checking."""
    sig = sm2.sign(TEXT)
    assert sm2.verify(TEXT, sig.hex())
    assert sm2.verify(TEXT, base64.b64encode(sig).decode())
    with pytest.raises(SignatureFormatError):
        sm2.verify(TEXT, "not a signature!")


def test_sign_and_verify_base64(sm2):
    """Base64 helpers mirror the hex ones."""
    sig = sm2.sign_base64(TEXT)
    assert sm2.verify_base64(TEXT, sig)
    assert sm2.verify(TEXT, base64.b64decode(sig))
    assert not sm2.verify_base64(TEXT + ".", sig)
    with pytest.raises(SignatureFormatError):
        sm2.verify_base64(TEXT, "%%%")
