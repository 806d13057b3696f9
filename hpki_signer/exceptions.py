"""
Signer Exceptions

Error taxonomy for signature assembly, encoding and the external
signing oracle. Verification mismatches are not errors and are reported
through result objects instead.
"""

from typing import Dict, Any, Optional


class SignerError(Exception):
    """Base exception for all signer errors"""
    def __init__(self, message: str, error_code: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class EncodingError(SignerError):
    """Malformed hex serial, odd length or unsupported hash algorithm"""
    pass


class CanonicalizationError(SignerError):
    """Node could not be serialized to its canonical form"""
    pass


class AssemblyError(SignerError):
    """Signature assembly could not be completed"""
    def __init__(self, message: str, state: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.state = state


class CertificateError(SignerError):
    """Signing certificate missing or unreadable"""
    pass


class UnsupportedKeyError(SignerError):
    """Public key is not an RSA key"""
    pass


class ConfigurationError(SignerError):
    """Invalid signer configuration"""
    def __init__(self, message: str, parameter: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.parameter = parameter


class OracleError(SignerError):
    """Base class for failures reported by the signing oracle"""
    pass


class NoKeyAvailableError(OracleError):
    """No private key found on the token"""
    pass


class AuthenticationRejectedError(OracleError):
    """Credential (PIN) rejected by the key holder"""
    pass


class MechanismUnsupportedError(OracleError):
    """Key holder does not support the requested mechanism"""
    pass


class HardwareUnavailableError(OracleError):
    """Module, slot or token could not be reached"""
    pass
