"""
Unit tests for PKCS#1 v1.5 signature verification
"""

import hashlib

import pytest
from cryptography.hazmat.primitives.asymmetric import ec

from hpki_signer.core.asn1_encoder import encode_digest_info
from hpki_signer.core.verifier import Verifier, VerificationStatus, verify
from hpki_signer.exceptions import UnsupportedKeyError

DIGEST = hashlib.sha256(b"signed info").digest()


@pytest.fixture
def signature(software_oracle):
    return software_oracle.sign(encode_digest_info(DIGEST))


def test_round_trip(signature, rsa_key):
    """Test that a fresh signature verifies"""
    result = Verifier().check(DIGEST, signature, rsa_key.public_key())

    assert result.status == VerificationStatus.VALID
    assert result.recovered_digest_info == encode_digest_info(DIGEST)
    assert result
    assert verify(DIGEST, signature, rsa_key.public_key())


def test_bit_flip_in_signature(signature, rsa_key):
    """Test that a single flipped bit invalidates the signature"""
    tampered = bytearray(signature)
    tampered[len(tampered) // 2] ^= 0x01

    result = Verifier().check(DIGEST, bytes(tampered), rsa_key.public_key())

    assert not result.is_valid
    assert result.errors


def test_other_digest(signature, rsa_key):
    """Test that the signature does not verify over a different digest"""
    other = hashlib.sha256(b"other signed info").digest()

    result = Verifier().check(other, signature, rsa_key.public_key())

    assert result.status == VerificationStatus.MISMATCH
    assert result.recovered_digest_info == encode_digest_info(DIGEST)


def test_wrong_key(signature, other_rsa_key):
    """Test that a different public key rejects the signature"""
    assert not verify(DIGEST, signature, other_rsa_key.public_key())


def test_truncated_signature(signature, rsa_key):
    """Test that a short signature is reported, not raised"""
    result = Verifier().check(DIGEST, signature[:-1], rsa_key.public_key())

    assert result.status == VerificationStatus.MALFORMED


def test_non_rsa_key_rejected(signature):
    """Test that non-RSA public keys raise UnsupportedKeyError"""
    ec_key = ec.generate_private_key(ec.SECP256R1())

    with pytest.raises(UnsupportedKeyError) as exc_info:
        Verifier().check(DIGEST, signature, ec_key.public_key())

    assert exc_info.value.error_code == "KEY_NOT_RSA"
