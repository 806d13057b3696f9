"""Signature assembly and verification core."""

from .canonicalizer import canonicalize
from .digest import digest, digest_of
from .asn1_encoder import (
    encode_issuer_serial, decode_issuer_serial, encode_digest_info, decode_digest_info
)
from .certificate import CertificateInfo, load_certificate
from .session import SigningSession
from .references import Reference, build_reference
from .signed_properties import SignedProperties, build_signed_properties
from .document import build_prescription_document
from .verifier import Verifier, VerificationResult, VerificationStatus, verify
from .signature_assembler import SignatureAssembler, AssemblyState, Signature
from .document_verifier import DocumentVerifier, DocumentVerificationResult
