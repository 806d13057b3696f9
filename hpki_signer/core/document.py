"""
Prescription Envelope

Builds the unsigned prescription document: the base64 encoded
prescription payload next to an empty ``ds:Signature`` frame holding
SignedInfo algorithm identifiers, KeyInfo and the XAdES object.
"""

import base64
import logging

from lxml import etree

from .._version import PRESCRIPTION_FORMAT_VERSION
from .constants import (
    DS_NS, XADES_NS, XSI_NS, EXC_C14N, RSA_SHA256
)
from .session import SigningSession
from .signed_properties import SignedProperties

logger = logging.getLogger(__name__)

CONTENT_ID = "PrescriptionDocument"
SIGNATURE_ID = "PrescriptionSign"
SCHEMA_LOCATION = "EP.xsd"


def build_key_info(signature: etree._Element, session: SigningSession) -> etree._Element:
    """Append ds:KeyInfo carrying the signing certificate."""
    key_info = etree.SubElement(signature, etree.QName(DS_NS, "KeyInfo"))
    key_info.set("Id", session.key_info_id)

    x509_data = etree.SubElement(key_info, etree.QName(DS_NS, "X509Data"))
    x509_certificate = etree.SubElement(x509_data, etree.QName(DS_NS, "X509Certificate"))
    x509_certificate.text = base64.b64encode(session.certificate.raw_der).decode("ascii")

    return key_info


def build_xades_object(signature: etree._Element,
                       signed_properties: SignedProperties) -> etree._Element:
    """Append ds:Object/xades:QualifyingProperties with the SignedProperties."""
    ds_object = etree.SubElement(signature, etree.QName(DS_NS, "Object"))

    qualifying_properties = etree.SubElement(
        ds_object,
        etree.QName(XADES_NS, "QualifyingProperties"),
        nsmap={"xades": XADES_NS}
    )
    qualifying_properties.set("Target", f"#{SIGNATURE_ID}")

    signed_properties.to_element(qualifying_properties)
    return ds_object


def build_prescription_document(content: bytes, session: SigningSession,
                                signed_properties: SignedProperties) -> etree._Element:
    """
    Build the unsigned prescription envelope.

    Args:
        content: Raw prescription payload (embedded base64 encoded)
        session: Signing session of this document
        signed_properties: XAdES properties built for the session

    Returns:
        Root ``Document`` element
    """
    root = etree.Element("Document", nsmap={"xsi": XSI_NS})
    root.set("id", "Document")
    root.set(etree.QName(XSI_NS, "noNamespaceSchemaLocation"), SCHEMA_LOCATION)

    prescription = etree.SubElement(root, "Prescription")

    management = etree.SubElement(prescription, "PrescriptionManagement")
    management.set("id", "PrescriptionManagement")
    version = etree.SubElement(management, "Version")
    version.set("Value", PRESCRIPTION_FORMAT_VERSION)

    document = etree.SubElement(prescription, CONTENT_ID)
    document.set("id", CONTENT_ID)
    document.text = base64.b64encode(content).decode("ascii")

    prescription_sign = etree.SubElement(prescription, "PrescriptionSign")
    signature = etree.SubElement(
        prescription_sign, etree.QName(DS_NS, "Signature"), nsmap={"ds": DS_NS}
    )
    signature.set("Id", SIGNATURE_ID)

    signed_info = etree.SubElement(signature, etree.QName(DS_NS, "SignedInfo"))
    c14n_method = etree.SubElement(signed_info, etree.QName(DS_NS, "CanonicalizationMethod"))
    c14n_method.set("Algorithm", EXC_C14N)
    signature_method = etree.SubElement(signed_info, etree.QName(DS_NS, "SignatureMethod"))
    signature_method.set("Algorithm", RSA_SHA256)

    build_key_info(signature, session)
    build_xades_object(signature, signed_properties)

    logger.debug(f"Built prescription skeleton for session {session.uid}")
    return root
