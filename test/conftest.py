import pytest

from sm2kit import KeyPair


# Key pair from the encryption example: Q = d·G
VECTOR_D = "4BD9A450D7E68A5D7E08EB7A0BFA468FD3EB32B71126246E66249A73A9E4D44A"
VECTOR_Q = (
    "04970AB36C3B870FBC04041087DB1BC36FB4C6E125B5EA406DB0EC3E2F80F0A55D"
    "8AFF28357A0BB215ADC2928BE76F1AFF869BF4C0A3852A78F3B827812C650AD3"
)

# Key pair used by the plain-signature vectors
POINT_D = "FAB8BBE670FAE338C9E9382B9FB6485225C11A3ECB84C938F10F20A93B6215F0"
POINT_X = "9EF573019D9A03B16B0BE44FC8A5B4E8E098F56034C97B312282DD0B4810AFC3"
POINT_Y = "CC759673ED0FC9B9DC7E6FA38F0E2B121E02654BF37EA6B63FAF2A0D6013EADF"

# Python gmssl output: C1C2C3 with C1 missing its 04 prefix
GMSSL_PRIVATE = (
    "MHcCAQEEICxTSOhWA4oYj2DI95zunPqHHEKZSi5QFLvWz57BfIGVoAoGCCqBHM9VAYIt"
    "oUQDQgAEIGRS/PssvgZ8Paw2YeFaW4VXrkgceBELKPWcXmq/p3iMhHxYfcaFAa5AzvPJ"
    "OmYmVzVwu9QygMMrg/30Ok1npw=="
)
GMSSL_CIPHERTEXT = (
    "x0KA1DKkmuA/YZdmvMr8X+1ZQb7a19Pr5nSxxe2ItUYpDAioa263tm9u7vST38hAEUoO"
    "xxXftD+7bRQ7Y8v1tcFXeheKodetA6LrPIuh0QYZMdBqIKSKdmlGeVE0Vdm3excisbtC"
)

# OpenSSL "EC PRIVATE KEY" and the matching SubjectPublicKeyInfo
OPENSSL_SEC1 = (
    "MHcCAQEEIE29XqAFV/rkJbnJzCoQRJLTeAHG2TR0h9ZCWag0+ZMEoAoGCCqBHM9VAYIt"
    "oUQDQgAESkOzNigIsH5ehFvr9yQNQ66genyOrm+Q4umCA4aWXPeRzmcTAWSlTineiReT"
    "FN2lqor2xaulT8u3a4w3AM/F6A=="
)
OPENSSL_SPKI = (
    "MFkwEwYHKoZIzj0CAQYIKoEcz1UBgi0DQgAESkOzNigIsH5ehFvr9yQNQ66genyOrm+Q"
    "4umCA4aWXPeRzmcTAWSlTineiReTFN2lqor2xaulT8u3a4w3AM/F6A=="
)


@pytest.fixture
def vector_keys():
    """The fixed (d, Q) pair from the encryption example."""
    return KeyPair.from_private(VECTOR_D, VECTOR_Q)


@pytest.fixture
def keys():
    """A fresh random key pair."""
    return KeyPair.generate()


def fixed_rng(*values):
    """RNG stand-in that yields *values* in order, then keeps the last one."""
    seq = list(values)

    def draw():
        return seq.pop(0) if len(seq) > 1 else seq[0]

    return draw
