"""
Signature Assembler

Orchestrates the enveloped XAdES-BES signature over a prescription
document. Assembly moves through four one-way states:

1. Skeleton: unsigned document with SignedInfo, KeyInfo and SignedProperties
2. References inserted: content, SignedProperties and KeyInfo references
3. SignedInfo digested: exclusive-c14n SHA-256 digest of SignedInfo
4. Signature value inserted: oracle signature placed before KeyInfo
"""

import base64
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Tuple

from lxml import etree

from ..adapters.base.signing_oracle import SigningOracle
from ..config import SignerConfig
from ..exceptions import AssemblyError
from .asn1_encoder import encode_digest_info
from .certificate import CertificateInfo
from .constants import DS_NS, XADES_NS, NSMAP, SIGNED_PROPERTIES_TYPE
from .digest import digest_of
from .document import CONTENT_ID, build_prescription_document
from .references import Reference, build_reference
from .session import SigningSession
from .signed_properties import SignedProperties, build_signed_properties
from .verifier import Verifier

logger = logging.getLogger(__name__)

XML_DECLARATION = b'<?xml version="1.0" encoding="UTF-8"?>'


class AssemblyState(Enum):
    """Signature assembly states, in order"""
    SKELETON = "skeleton"
    REFERENCES_INSERTED = "references_inserted"
    SIGNED_INFO_DIGESTED = "signed_info_digested"
    SIGNATURE_VALUE_INSERTED = "signature_value_inserted"


@dataclass
class SignatureJob:
    """In-progress assembly of one document's signature"""
    session: SigningSession
    document: etree._Element
    signed_properties: SignedProperties
    state: AssemblyState = AssemblyState.SKELETON
    references: List[Reference] = field(default_factory=list)
    signed_info_digest: Optional[bytes] = None
    signature_value: Optional[bytes] = None


@dataclass(frozen=True)
class Signature:
    """Completed signature and the signed document carrying it"""
    references: Tuple[Reference, ...]
    signed_info_digest: bytes
    signature_value: bytes
    certificate: CertificateInfo
    signed_properties: SignedProperties
    document: etree._Element

    @property
    def signature_value_b64(self) -> str:
        return base64.b64encode(self.signature_value).decode("ascii")

    def serialize(self) -> bytes:
        """Serialize the signed document on one line with an XML declaration."""
        return XML_DECLARATION + etree.tostring(self.document, encoding="UTF-8")


class SignatureAssembler:
    """
    Builds and signs a prescription document through a SigningOracle.

    Assembly is strictly sequential. Any failure aborts the job; callers
    must discard the in-progress document.
    """

    def __init__(self, oracle: SigningOracle, config: Optional[SignerConfig] = None,
                 verifier: Optional[Verifier] = None):
        self.oracle = oracle
        self.config = config or SignerConfig()
        self.verifier = verifier or Verifier()

    def assemble(self, content: bytes, session: SigningSession,
                 credential: Optional[str] = None) -> Signature:
        """
        Produce a complete signature over ``content``.

        Args:
            content: Prescription payload to embed and sign
            session: Per-document signing session
            credential: Secret passed to the signing oracle (PIN)

        Returns:
            Completed Signature with the signed document
        """
        job = self.create_job(content, session)
        self.insert_references(job)
        self.digest_signed_info(job)
        self.insert_signature_value(job, credential)

        logger.info(f"Signature {session.uid} assembled")
        return Signature(
            references=tuple(job.references),
            signed_info_digest=job.signed_info_digest,
            signature_value=job.signature_value,
            certificate=session.certificate,
            signed_properties=job.signed_properties,
            document=job.document,
        )

    def create_job(self, content: bytes, session: SigningSession) -> SignatureJob:
        """Build the unsigned skeleton for ``content``."""
        signed_properties = build_signed_properties(session)
        document = build_prescription_document(content, session, signed_properties)

        logger.info(f"Created signature skeleton for session {session.uid}")
        return SignatureJob(
            session=session,
            document=document,
            signed_properties=signed_properties,
        )

    def insert_references(self, job: SignatureJob) -> None:
        """Append the content, SignedProperties and KeyInfo references, in that order."""
        self._require_state(job, AssemblyState.SKELETON)
        session = job.session

        signed_info = self._find(job, f".//{{{DS_NS}}}SignedInfo", "SignedInfo")
        content = self._find(job, f".//{CONTENT_ID}", CONTENT_ID)
        signed_properties = self._find(
            job, f".//{{{XADES_NS}}}SignedProperties", "SignedProperties"
        )
        key_info = self._find(job, f".//{{{DS_NS}}}KeyInfo", "KeyInfo")

        # Each reference is rendered into SignedInfo before the next is built
        targets = [
            (content, f"#{CONTENT_ID}", f"id-ref-{CONTENT_ID}", None),
            (signed_properties, f"#{session.signed_properties_id}", None,
             SIGNED_PROPERTIES_TYPE),
            (key_info, f"#{session.key_info_id}", None, None),
        ]
        for target, uri, ref_id, ref_type in targets:
            reference = build_reference(target, uri, id=ref_id, type=ref_type)
            reference.to_element(signed_info)
            job.references.append(reference)

        job.state = AssemblyState.REFERENCES_INSERTED
        logger.debug(f"Inserted {len(job.references)} references into SignedInfo")

    def digest_signed_info(self, job: SignatureJob) -> bytes:
        """Digest the completed SignedInfo."""
        self._require_state(job, AssemblyState.REFERENCES_INSERTED)

        signed_info = self._find(job, f".//{{{DS_NS}}}SignedInfo", "SignedInfo")
        job.signed_info_digest = digest_of(signed_info)
        job.state = AssemblyState.SIGNED_INFO_DIGESTED

        logger.debug(f"SignedInfo digest: {job.signed_info_digest.hex()}")
        return job.signed_info_digest

    def insert_signature_value(self, job: SignatureJob,
                               credential: Optional[str] = None) -> bytes:
        """Sign the SignedInfo digest and insert ds:SignatureValue before KeyInfo."""
        self._require_state(job, AssemblyState.SIGNED_INFO_DIGESTED)

        signature = self._find(job, f".//{{{DS_NS}}}Signature", "Signature")
        key_info = signature.find(f"{{{DS_NS}}}KeyInfo")
        if key_info is None:
            raise AssemblyError(
                "KeyInfo is not a child of Signature",
                state=job.state.value,
                error_code="NODE_MISSING"
            )

        digest_info = encode_digest_info(job.signed_info_digest)

        logger.info(f"Requesting signature from {self.oracle.describe()['type']}")
        signature_value = self.oracle.sign(digest_info, credential)

        if self.config.verify_after_sign:
            self._verify_signature_value(job, signature_value)

        signature_value_element = etree.SubElement(
            signature, etree.QName(DS_NS, "SignatureValue")
        )
        key_info.addprevious(signature_value_element)
        signature_value_element.set("Id", job.session.signature_value_id)
        signature_value_element.text = base64.b64encode(signature_value).decode("ascii")

        job.signature_value = signature_value
        job.state = AssemblyState.SIGNATURE_VALUE_INSERTED
        return signature_value

    def _verify_signature_value(self, job: SignatureJob, signature_value: bytes) -> None:
        public_key = job.session.certificate.public_key()
        result = self.verifier.check(job.signed_info_digest, signature_value, public_key)

        if not result.is_valid:
            logger.error(
                f"Signature from oracle does not verify against the signing "
                f"certificate: {', '.join(result.errors)}"
            )
            raise AssemblyError(
                "Oracle signature does not match the signing certificate",
                state=job.state.value,
                error_code="VERIFY_AFTER_SIGN_FAILED",
                details={"status": result.status.value}
            )

        logger.info("Verify-after-sign succeeded")

    @staticmethod
    def _require_state(job: SignatureJob, expected: AssemblyState) -> None:
        if job.state != expected:
            raise AssemblyError(
                f"Cannot leave state {job.state.value}: expected {expected.value}",
                state=job.state.value,
                error_code="INVALID_STATE"
            )

    @staticmethod
    def _find(job: SignatureJob, path: str, name: str) -> etree._Element:
        element = job.document.find(path, NSMAP)
        if element is None:
            raise AssemblyError(
                f"{name} element not found in document",
                state=job.state.value,
                error_code="NODE_MISSING"
            )
        return element
