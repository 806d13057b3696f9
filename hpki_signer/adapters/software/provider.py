"""
Software Signing Oracle

Holds an RSA private key in memory. Used as the test double for the
hardware token and for local development.
"""

import hmac
import logging
from typing import Dict, Any, Optional

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa, utils

from ...core.asn1_encoder import decode_digest_info
from ...core.constants import HASH_OID_MAP
from ...exceptions import (
    EncodingError, NoKeyAvailableError, AuthenticationRejectedError,
    MechanismUnsupportedError
)
from ..base.signing_oracle import SigningOracle

logger = logging.getLogger(__name__)


class SoftwareSigningOracle(SigningOracle):
    """Signing oracle backed by an in-memory RSA private key"""

    def __init__(self, private_key: Optional[rsa.RSAPrivateKey],
                 pin: Optional[str] = None,
                 config: Optional[Dict[str, Any]] = None):
        super().__init__({"oracle_name": "software", **(config or {})})
        self._private_key = private_key
        self._pin = pin

    @classmethod
    def from_pem(cls, pem_data: bytes, password: Optional[bytes] = None,
                 pin: Optional[str] = None) -> "SoftwareSigningOracle":
        """Load the private key from PEM data."""
        try:
            key = serialization.load_pem_private_key(pem_data, password=password)
        except (ValueError, TypeError) as e:
            logger.error(f"Failed to load private key: {e}")
            raise NoKeyAvailableError(
                f"Private key could not be loaded: {str(e)}",
                error_code="KEY_LOAD_FAILED"
            ) from e

        if not isinstance(key, rsa.RSAPrivateKey):
            raise MechanismUnsupportedError(
                f"Only RSA keys can sign with PKCS#1 v1.5, got {type(key).__name__}",
                error_code="MECHANISM_INVALID"
            )
        return cls(key, pin=pin)

    def sign(self, digest_info: bytes, credential: Optional[str] = None) -> bytes:
        if self._private_key is None:
            raise NoKeyAvailableError("No private key loaded", error_code="KEY_NOT_FOUND")

        if self._pin is not None and not hmac.compare_digest(
                (credential or "").encode(), self._pin.encode()):
            logger.warning("Software oracle rejected the supplied PIN")
            raise AuthenticationRejectedError("PIN rejected", error_code="PIN_INCORRECT")

        # PKCS#1 v1.5 is deterministic, so signing the prehashed digest
        # yields the same bytes as a raw operation over the DigestInfo
        try:
            oid, digest = decode_digest_info(digest_info)
        except EncodingError as e:
            raise MechanismUnsupportedError(
                f"Input is not a DigestInfo: {e.message}",
                error_code="MECHANISM_INVALID"
            ) from e

        if oid != HASH_OID_MAP["SHA-256"]:
            raise MechanismUnsupportedError(
                f"Unsupported digest algorithm OID: {oid}",
                error_code="MECHANISM_INVALID"
            )

        if len(digest) != hashes.SHA256.digest_size:
            raise MechanismUnsupportedError(
                f"Digest length {len(digest)} does not match SHA-256",
                error_code="MECHANISM_INVALID"
            )

        signature = self._private_key.sign(
            digest, padding.PKCS1v15(), utils.Prehashed(hashes.SHA256())
        )
        logger.debug(f"Software oracle produced {len(signature)}-byte signature")
        return signature
