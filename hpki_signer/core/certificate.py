"""
Signing Certificate Information

Extracts from an X.509 certificate the pieces the signature needs:
raw DER, issuer Name DER, serial number and public key.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from cryptography import x509
from cryptography.hazmat.primitives import serialization

from ..exceptions import CertificateError

logger = logging.getLogger(__name__)


def serial_to_hex(serial_number: int) -> str:
    """
    Render a serial as the uppercase hex of its DER INTEGER content octets.

    Matches how certificate stores display serials, including a leading
    ``00`` when the first byte has the high bit set.
    """
    length = serial_number.bit_length() // 8 + 1
    return serial_number.to_bytes(length, 'big', signed=True).hex().upper()


@dataclass(frozen=True)
class CertificateInfo:
    """Signer certificate data used while assembling a signature"""
    raw_der: bytes
    issuer_name_der: bytes
    serial_hex: str
    subject: str = ""
    issuer: str = ""

    @classmethod
    def from_der(cls, der: bytes) -> "CertificateInfo":
        """Build certificate info from DER bytes."""
        try:
            cert = x509.load_der_x509_certificate(der)
        except ValueError as e:
            logger.error(f"Failed to parse certificate: {e}")
            raise CertificateError(
                f"Certificate parsing failed: {str(e)}",
                error_code="CERT_PARSE_FAILED"
            ) from e

        return cls(
            raw_der=der,
            issuer_name_der=cert.issuer.public_bytes(),
            serial_hex=serial_to_hex(cert.serial_number),
            subject=cert.subject.rfc4514_string(),
            issuer=cert.issuer.rfc4514_string(),
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "CertificateInfo":
        """Build certificate info from PEM or DER bytes."""
        if data.lstrip().startswith(b"-----BEGIN"):
            try:
                cert = x509.load_pem_x509_certificate(data)
            except ValueError as e:
                raise CertificateError(
                    f"PEM certificate parsing failed: {str(e)}",
                    error_code="CERT_PARSE_FAILED"
                ) from e
            data = cert.public_bytes(serialization.Encoding.DER)

        return cls.from_der(data)

    @property
    def certificate(self) -> x509.Certificate:
        return x509.load_der_x509_certificate(self.raw_der)

    def public_key(self):
        """Public key of the certificate (any algorithm)."""
        return self.certificate.public_key()


def load_certificate(path: str, issuer_filter: Optional[str] = None) -> CertificateInfo:
    """
    Load the signing certificate from a PEM or DER file.

    Args:
        path: Certificate file path
        issuer_filter: Optional substring the issuer DN must contain

    Raises:
        CertificateError: If the file is missing, unreadable or filtered out
    """
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise CertificateError(
            f"Cannot read certificate file {path}: {e.strerror}",
            error_code="CERT_NOT_FOUND"
        ) from e

    info = CertificateInfo.from_bytes(data)

    if issuer_filter and issuer_filter not in info.issuer:
        raise CertificateError(
            f"Certificate issuer does not contain {issuer_filter!r}: {info.issuer}",
            error_code="CERT_NOT_FOUND"
        )

    logger.info(f"Loaded signing certificate {info.subject} (serial {info.serial_hex})")
    return info
