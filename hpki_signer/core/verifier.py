"""
PKCS#1 v1.5 Signature Verification

Recovers the DigestInfo from an RSA signature with the signer's public
key and compares it against a DigestInfo rebuilt from the expected
digest. A non-matching signature is an ordinary outcome and is reported
as a result, never raised.
"""

import hmac
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from ..exceptions import UnsupportedKeyError
from .asn1_encoder import encode_digest_info

logger = logging.getLogger(__name__)


class VerificationStatus(str, Enum):
    """Outcome of a signature verification"""
    VALID = "valid"
    MISMATCH = "mismatch"
    MALFORMED = "malformed"


@dataclass
class VerificationResult:
    """Result of verifying one signature value"""
    status: VerificationStatus
    expected_digest_info: bytes
    recovered_digest_info: Optional[bytes] = None
    errors: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.status == VerificationStatus.VALID

    def __bool__(self) -> bool:
        return self.is_valid


class Verifier:
    """
    Verifies RSA PKCS#1 v1.5 signatures over a precomputed digest.

    The DigestInfo is rebuilt by hand and compared byte for byte instead
    of letting the crypto backend hash and pad, since the signature was
    produced by a raw ``CKM_RSA_PKCS`` operation over that exact DER.
    """

    def __init__(self, hash_algorithm: str = "SHA-256"):
        self.hash_algorithm = hash_algorithm

    def check(self, digest: bytes, signature: bytes, public_key) -> VerificationResult:
        """
        Verify ``signature`` over ``digest`` and describe the outcome.

        Raises:
            UnsupportedKeyError: If ``public_key`` is not an RSA public key
        """
        if not isinstance(public_key, rsa.RSAPublicKey):
            raise UnsupportedKeyError(
                f"Public key is not an RSA key: {type(public_key).__name__}",
                error_code="KEY_NOT_RSA"
            )

        expected = encode_digest_info(digest, self.hash_algorithm)

        try:
            recovered = public_key.recover_data_from_signature(
                signature, padding.PKCS1v15(), None
            )
        except (InvalidSignature, ValueError) as e:
            reason = str(e) or type(e).__name__
            logger.info(f"Signature could not be decoded: {reason}")
            return VerificationResult(
                status=VerificationStatus.MALFORMED,
                expected_digest_info=expected,
                errors=[f"PKCS#1 v1.5 decoding failed: {reason}"]
            )

        if not hmac.compare_digest(recovered, expected):
            logger.info("Recovered DigestInfo does not match the expected digest")
            return VerificationResult(
                status=VerificationStatus.MISMATCH,
                expected_digest_info=expected,
                recovered_digest_info=recovered,
                errors=["DigestInfo mismatch"]
            )

        return VerificationResult(
            status=VerificationStatus.VALID,
            expected_digest_info=expected,
            recovered_digest_info=recovered
        )

    def verify(self, digest: bytes, signature: bytes, public_key) -> bool:
        """Return True if ``signature`` is a valid signature over ``digest``."""
        return self.check(digest, signature, public_key).is_valid


def verify(digest: bytes, signature: bytes, public_key) -> bool:
    """Verify an RSA-SHA256 PKCS#1 v1.5 signature over ``digest``."""
    return Verifier().verify(digest, signature, public_key)
