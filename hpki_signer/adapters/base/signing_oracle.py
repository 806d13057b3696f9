"""
Base Signing Oracle Interface

Abstract interface for every private-key holder (smart card, HSM,
software key) the signature assembler can delegate to.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional


class SigningOracle(ABC):
    """
    Abstract base class for signing oracles.

    An oracle performs a raw PKCS#1 v1.5 RSA private-key operation over
    exactly the bytes it is given. Callers hand it a DER DigestInfo; the
    oracle never hashes or wraps the input itself.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self.oracle_name = self.config.get("oracle_name", "unknown")

    @abstractmethod
    def sign(self, digest_info: bytes, credential: Optional[str] = None) -> bytes:
        """
        Sign a DER-encoded DigestInfo.

        Args:
            digest_info: DigestInfo (algorithm identifier + digest) to sign
            credential: Secret unlocking the key (PIN), if required

        Returns:
            Raw signature bytes

        Raises:
            NoKeyAvailableError: If no private key is available
            AuthenticationRejectedError: If the credential is rejected
            MechanismUnsupportedError: If raw PKCS#1 signing is unsupported
            HardwareUnavailableError: If the key holder cannot be reached
        """
        pass

    def describe(self) -> Dict[str, Any]:
        """Short description of the oracle for logs and diagnostics."""
        return {
            "oracle": self.oracle_name,
            "type": type(self).__name__,
        }
