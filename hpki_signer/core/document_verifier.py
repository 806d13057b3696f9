"""
Signed Document Verification

Verifies a serialized prescription document: every reference digest is
recomputed from its target, the certificate digest in SignedProperties
is checked against KeyInfo, and the SignatureValue is verified over the
SignedInfo digest with the embedded certificate's public key.
"""

import base64
import binascii
import hmac
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from lxml import etree

from ..exceptions import SignerError
from .certificate import CertificateInfo
from .constants import DS_NS, XADES_NS, NSMAP, SIGNED_PROPERTIES_TYPE
from .digest import digest, digest_of
from .document import CONTENT_ID
from .verifier import Verifier

logger = logging.getLogger(__name__)

_ID_ATTRIBUTES = ("id", "Id", "ID")


@dataclass
class ReferenceCheck:
    """Outcome of recomputing one reference digest"""
    uri: str
    digest_valid: bool
    error: Optional[str] = None


@dataclass
class DocumentVerificationResult:
    """Result of verifying a signed prescription document"""
    is_valid: bool
    signature_valid: bool
    certificate_digest_valid: bool
    references: List[ReferenceCheck] = field(default_factory=list)
    certificate: Optional[CertificateInfo] = None
    errors: List[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.is_valid


class DocumentVerifier:
    """Verifies the enveloped signature of a signed prescription document"""

    def __init__(self, verifier: Optional[Verifier] = None):
        self.verifier = verifier or Verifier()

    def verify_bytes(self, signed_document: bytes) -> DocumentVerificationResult:
        """Parse and verify a serialized signed document."""
        try:
            root = etree.fromstring(signed_document)
        except etree.XMLSyntaxError as e:
            logger.warning(f"Signed document is not well-formed XML: {e}")
            return self._failure(f"Document is not well-formed XML: {e}")

        return self.verify(root)

    def verify(self, root: etree._Element) -> DocumentVerificationResult:
        """Verify the signature contained in ``root``."""
        signature = root.find(f".//{{{DS_NS}}}Signature")
        if signature is None:
            return self._failure("No ds:Signature element found")

        signed_info = signature.find("ds:SignedInfo", NSMAP)
        signature_value = signature.find("ds:SignatureValue", NSMAP)
        certificate_element = signature.find("ds:KeyInfo/ds:X509Data/ds:X509Certificate", NSMAP)

        missing = [
            name for name, element in (
                ("SignedInfo", signed_info),
                ("SignatureValue", signature_value),
                ("X509Certificate", certificate_element),
            ) if element is None
        ]
        if missing:
            return self._failure(f"Missing signature elements: {', '.join(missing)}")

        try:
            certificate = CertificateInfo.from_der(self._b64(certificate_element.text))
            signature_bytes = self._b64(signature_value.text)
        except (SignerError, ValueError, binascii.Error) as e:
            return self._failure(f"Unreadable signature material: {e}")

        errors: List[str] = []
        index, duplicates = self._index_ids(root)
        if duplicates:
            errors.append(f"Duplicate id values: {', '.join(sorted(duplicates))}")

        content = root.find(f"Prescription/{CONTENT_ID}")
        content_bound = content is not None and index.get(CONTENT_ID) is content
        if not content_bound:
            errors.append(f"{CONTENT_ID} is not the signed prescription payload")

        references = [
            self._check_reference(reference, index)
            for reference in signed_info.findall("ds:Reference", NSMAP)
        ]
        if len(references) != 3:
            errors.append(f"Expected 3 references, found {len(references)}")
        errors.extend(f"Reference {r.uri}: {r.error}" for r in references if r.error)
        layout_errors = self._check_reference_layout(signature, signed_info)
        errors.extend(layout_errors)

        certificate_digest_valid = self._check_certificate_digest(signature, certificate)
        if not certificate_digest_valid:
            errors.append("CertDigest does not match the KeyInfo certificate")

        result = self.verifier.check(
            digest_of(signed_info), signature_bytes, certificate.public_key()
        )
        errors.extend(result.errors)

        is_valid = (
            result.is_valid
            and certificate_digest_valid
            and len(references) == 3
            and not duplicates
            and not layout_errors
            and content_bound
            and all(r.digest_valid for r in references)
        )

        if is_valid:
            logger.info(f"Signature verified for {certificate.subject}")
        else:
            logger.warning(f"Signature verification failed: {'; '.join(errors)}")

        return DocumentVerificationResult(
            is_valid=is_valid,
            signature_valid=result.is_valid,
            certificate_digest_valid=certificate_digest_valid,
            references=references,
            certificate=certificate,
            errors=errors,
        )

    def _check_reference(self, reference: etree._Element,
                         index: Dict[str, etree._Element]) -> ReferenceCheck:
        uri = reference.get("URI", "")
        if not uri.startswith("#"):
            return ReferenceCheck(uri=uri, digest_valid=False,
                                  error="only same-document references are supported")

        target = index.get(uri[1:])
        if target is None:
            return ReferenceCheck(uri=uri, digest_valid=False, error="target not found")

        digest_value = reference.find("ds:DigestValue", NSMAP)
        if digest_value is None:
            return ReferenceCheck(uri=uri, digest_valid=False, error="DigestValue missing")

        try:
            expected = self._b64(digest_value.text)
        except (ValueError, binascii.Error):
            return ReferenceCheck(uri=uri, digest_valid=False, error="DigestValue not base64")

        if not hmac.compare_digest(digest_of(target), expected):
            return ReferenceCheck(uri=uri, digest_valid=False, error="digest mismatch")

        return ReferenceCheck(uri=uri, digest_valid=True)

    def _check_reference_layout(self, signature: etree._Element,
                                signed_info: etree._Element) -> List[str]:
        """References must be content, SignedProperties, KeyInfo in that order."""
        signed_properties = signature.find(f".//{{{XADES_NS}}}SignedProperties")
        key_info = signature.find("ds:KeyInfo", NSMAP)
        if signed_properties is None or key_info is None:
            return ["SignedProperties or KeyInfo missing from Signature"]

        expected = [
            (f"#{CONTENT_ID}", None),
            (f"#{signed_properties.get('Id')}", SIGNED_PROPERTIES_TYPE),
            (f"#{key_info.get('Id')}", None),
        ]
        actual = [
            (reference.get("URI"), reference.get("Type"))
            for reference in signed_info.findall("ds:Reference", NSMAP)
        ]
        if actual != expected:
            return [f"Unexpected reference layout: {actual}"]
        return []

    def _check_certificate_digest(self, signature: etree._Element,
                                  certificate: CertificateInfo) -> bool:
        cert_digest = signature.find(
            f".//{{{XADES_NS}}}CertDigest/{{{DS_NS}}}DigestValue"
        )
        if cert_digest is None:
            return False

        try:
            expected = self._b64(cert_digest.text)
        except (ValueError, binascii.Error):
            return False

        return hmac.compare_digest(digest(certificate.raw_der), expected)

    @staticmethod
    def _index_ids(root: etree._Element) -> Tuple[Dict[str, etree._Element], Set[str]]:
        index = {}
        duplicates = set()
        for element in root.iter(tag=etree.Element):
            for attribute in _ID_ATTRIBUTES:
                value = element.get(attribute)
                if not value:
                    continue
                if value in index:
                    duplicates.add(value)
                else:
                    index[value] = element
        return index, duplicates

    @staticmethod
    def _b64(text: Optional[str]) -> bytes:
        return base64.b64decode("".join((text or "").split()), validate=True)

    @staticmethod
    def _failure(message: str) -> DocumentVerificationResult:
        return DocumentVerificationResult(
            is_valid=False,
            signature_valid=False,
            certificate_digest_valid=False,
            errors=[message],
        )
