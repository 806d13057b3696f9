"""
XAdES SignedProperties Builder

Produces the SigningCertificateV2 metadata: certificate digest and
IssuerSerialV2.
"""

import base64
import logging
from dataclasses import dataclass

from lxml import etree

from .asn1_encoder import encode_issuer_serial
from .constants import DS_NS, XADES_NS, NSMAP, SHA256_DIGEST
from .digest import digest
from .session import SigningSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignedProperties:
    """Signed XAdES qualifying properties of one signature"""
    id: str
    cert_digest: bytes
    issuer_serial_v2: str

    def to_element(self, parent=None) -> etree._Element:
        """Render as xades:SignedProperties, appended to ``parent`` if given."""
        tag = etree.QName(XADES_NS, "SignedProperties")
        if parent is None:
            signed_properties = etree.Element(tag, nsmap=NSMAP)
        else:
            signed_properties = etree.SubElement(parent, tag)
        signed_properties.set("Id", self.id)

        signed_signature_properties = etree.SubElement(
            signed_properties, etree.QName(XADES_NS, "SignedSignatureProperties")
        )
        signing_certificate = etree.SubElement(
            signed_signature_properties, etree.QName(XADES_NS, "SigningCertificateV2")
        )
        cert = etree.SubElement(signing_certificate, etree.QName(XADES_NS, "Cert"))

        cert_digest = etree.SubElement(cert, etree.QName(XADES_NS, "CertDigest"))
        digest_method = etree.SubElement(cert_digest, etree.QName(DS_NS, "DigestMethod"))
        digest_method.set("Algorithm", SHA256_DIGEST)
        digest_value = etree.SubElement(cert_digest, etree.QName(DS_NS, "DigestValue"))
        digest_value.text = base64.b64encode(self.cert_digest).decode("ascii")

        issuer_serial = etree.SubElement(cert, etree.QName(XADES_NS, "IssuerSerialV2"))
        issuer_serial.text = self.issuer_serial_v2

        return signed_properties


def build_signed_properties(session: SigningSession) -> SignedProperties:
    """Build SignedProperties for the session's signing certificate."""
    certificate = session.certificate

    issuer_serial = encode_issuer_serial(
        certificate.issuer_name_der, certificate.serial_hex
    )

    signed_properties = SignedProperties(
        id=session.signed_properties_id,
        cert_digest=digest(certificate.raw_der),
        issuer_serial_v2=base64.b64encode(issuer_serial).decode("ascii"),
    )

    logger.debug(f"Built SignedProperties {signed_properties.id}")
    return signed_properties
