"""
HPKI Prescription Signer

Assembles and verifies enveloped XAdES-BES signatures over electronic
prescription documents, delegating the private-key operation to an
HPKI smart card or HSM through PKCS#11.

Example:
    >>> from hpki_signer import SignatureAssembler, SigningSession, load_certificate
    >>> from hpki_signer.security import HSMSigningOracle
    >>> from hpki_signer.config import SignerConfigManager
    >>>
    >>> config = SignerConfigManager().get_config()
    >>> oracle = HSMSigningOracle.from_config(config)
    >>> session = SigningSession(certificate=oracle.find_certificate("NonRepudiation"))
    >>> signature = SignatureAssembler(oracle, config).assemble(
    ...     content=open("prescription.csv", "rb").read(),
    ...     session=session,
    ...     credential="1234",
    ... )
    >>> open("signed.xml", "wb").write(signature.serialize())
"""

from ._version import __version__
from .core import (
    canonicalize,
    digest,
    digest_of,
    encode_issuer_serial,
    decode_issuer_serial,
    encode_digest_info,
    CertificateInfo,
    load_certificate,
    SigningSession,
    Reference,
    build_reference,
    SignedProperties,
    build_signed_properties,
    build_prescription_document,
    SignatureAssembler,
    AssemblyState,
    Signature,
    Verifier,
    VerificationResult,
    VerificationStatus,
    verify,
    DocumentVerifier,
    DocumentVerificationResult,
)
from .adapters import SigningOracle, SoftwareSigningOracle
from .exceptions import (
    SignerError,
    EncodingError,
    CanonicalizationError,
    AssemblyError,
    CertificateError,
    UnsupportedKeyError,
    ConfigurationError,
    OracleError,
    NoKeyAvailableError,
    AuthenticationRejectedError,
    MechanismUnsupportedError,
    HardwareUnavailableError,
)

__all__ = [
    "__version__",
    # Core
    "canonicalize",
    "digest",
    "digest_of",
    "encode_issuer_serial",
    "decode_issuer_serial",
    "encode_digest_info",
    "CertificateInfo",
    "load_certificate",
    "SigningSession",
    "Reference",
    "build_reference",
    "SignedProperties",
    "build_signed_properties",
    "build_prescription_document",
    "SignatureAssembler",
    "AssemblyState",
    "Signature",
    "Verifier",
    "VerificationResult",
    "VerificationStatus",
    "verify",
    "DocumentVerifier",
    "DocumentVerificationResult",
    # Oracles
    "SigningOracle",
    "SoftwareSigningOracle",
    # Errors
    "SignerError",
    "EncodingError",
    "CanonicalizationError",
    "AssemblyError",
    "CertificateError",
    "UnsupportedKeyError",
    "ConfigurationError",
    "OracleError",
    "NoKeyAvailableError",
    "AuthenticationRejectedError",
    "MechanismUnsupportedError",
    "HardwareUnavailableError",
]
