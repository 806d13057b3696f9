"""
Unit tests for signed document verification
"""

import base64
import copy

import pytest
from lxml import etree

from hpki_signer.core.document_verifier import DocumentVerifier
from hpki_signer.core.signature_assembler import SignatureAssembler

NS = {
    "ds": "http://www.w3.org/2000/09/xmldsig#",
    "xades": "http://uri.etsi.org/01903/v1.3.2#",
}


@pytest.fixture
def signed_document(software_oracle, session):
    signature = SignatureAssembler(software_oracle).assemble(b"sample", session)
    return signature.serialize()


@pytest.fixture
def verifier():
    return DocumentVerifier()


def _tamper(document, path, text):
    root = etree.fromstring(document)
    root.find(path, NS).text = text
    return etree.tostring(root)


def test_valid_document(verifier, signed_document, cert_info):
    """Test that a freshly signed document verifies"""
    result = verifier.verify_bytes(signed_document)

    assert result.is_valid, result.errors
    assert result.signature_valid
    assert result.certificate_digest_valid
    assert [r.digest_valid for r in result.references] == [True, True, True]
    assert result.certificate.raw_der == cert_info.raw_der


def test_tampered_content(verifier, signed_document):
    """Test that changing the prescription breaks the content reference only"""
    tampered = _tamper(
        signed_document, ".//PrescriptionDocument",
        base64.b64encode(b"samplf").decode()
    )

    result = verifier.verify_bytes(tampered)

    assert not result
    assert [r.digest_valid for r in result.references] == [False, True, True]
    assert result.signature_valid
    assert any("#PrescriptionDocument" in error for error in result.errors)


def test_tampered_reference_digest(verifier, signed_document):
    """Test that changing a digest in SignedInfo breaks the signature"""
    tampered = _tamper(
        signed_document, ".//ds:SignedInfo/ds:Reference/ds:DigestValue",
        base64.b64encode(b"\x00" * 32).decode()
    )

    result = verifier.verify_bytes(tampered)

    assert not result
    assert not result.signature_valid


def test_tampered_signed_properties(verifier, signed_document):
    """Test that changing the certificate digest is detected twice"""
    tampered = _tamper(
        signed_document, ".//xades:CertDigest/ds:DigestValue",
        base64.b64encode(b"\x01" * 32).decode()
    )

    result = verifier.verify_bytes(tampered)

    assert not result
    assert not result.certificate_digest_valid
    assert [r.digest_valid for r in result.references] == [True, False, True]


def test_tampered_signature_value(verifier, signed_document):
    """Test that a modified SignatureValue fails verification"""
    root = etree.fromstring(signed_document)
    value = root.find(".//ds:SignatureValue", NS)
    raw = bytearray(base64.b64decode(value.text))
    raw[-1] ^= 0x01
    value.text = base64.b64encode(bytes(raw)).decode()

    result = verifier.verify(root)

    assert not result.signature_valid
    assert not result


def test_removed_reference(verifier, signed_document):
    """Test that a document with fewer than three references is invalid"""
    root = etree.fromstring(signed_document)
    signed_info = root.find(".//ds:SignedInfo", NS)
    signed_info.remove(signed_info.findall("ds:Reference", NS)[2])

    result = verifier.verify(root)

    assert not result
    assert any("Expected 3 references" in error for error in result.errors)


def test_not_xml(verifier):
    """Test that malformed input is reported as a failed result"""
    result = verifier.verify_bytes(b"<Document>")

    assert not result
    assert "well-formed" in result.errors[0]


def test_missing_signature(verifier):
    """Test that an unsigned document is reported as a failed result"""
    result = verifier.verify_bytes(b"<Document><Prescription/></Document>")

    assert not result
    assert result.errors == ["No ds:Signature element found"]


def test_wrapped_payload_rejected(verifier, signed_document):
    """Test that a signed copy hidden in front of a tampered payload is detected"""
    root = etree.fromstring(signed_document)
    prescription = root.find("Prescription")
    payload = prescription.find("PrescriptionDocument")
    prescription.insert(0, copy.deepcopy(payload))
    payload.text = base64.b64encode(b"EVIL-DOSE").decode()

    result = verifier.verify(root)

    assert not result
    assert any("Duplicate id values: PrescriptionDocument" in e for e in result.errors)


def test_relocated_payload_rejected(verifier, signed_document):
    """Test that the referenced payload must sit at Prescription/PrescriptionDocument"""
    root = etree.fromstring(signed_document)
    prescription = root.find("Prescription")
    payload = prescription.find("PrescriptionDocument")
    hidden = etree.SubElement(root, "Extension")
    hidden.append(copy.deepcopy(payload))
    del payload.attrib["id"]
    payload.text = base64.b64encode(b"EVIL-DOSE").decode()

    result = verifier.verify(root)

    assert not result
    assert any("is not the signed prescription payload" in e for e in result.errors)


def test_reference_layout_checked(verifier, signed_document):
    """Test that references out of the content/SignedProperties/KeyInfo order fail"""
    root = etree.fromstring(signed_document)
    references = root.findall(".//ds:SignedInfo/ds:Reference", NS)
    references[2].addprevious(references[0])

    result = verifier.verify(root)

    assert not result
    assert any("Unexpected reference layout" in e for e in result.errors)


def test_signed_properties_reference_needs_type(verifier, signed_document):
    """Test that the SignedProperties reference must carry its Type"""
    root = etree.fromstring(signed_document)
    del root.findall(".//ds:SignedInfo/ds:Reference", NS)[1].attrib["Type"]

    result = verifier.verify(root)

    assert not result
    assert any("Unexpected reference layout" in e for e in result.errors)
