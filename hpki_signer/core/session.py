"""Per-document signing context."""

import uuid
from dataclasses import dataclass, field

from .certificate import CertificateInfo


def _generate_uid() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class SigningSession:
    """
    Context for signing a single document.

    The uid is generated once and suffixes the SignedProperties, KeyInfo
    and SignatureValue ids of the same signature.
    """
    certificate: CertificateInfo
    uid: str = field(default_factory=_generate_uid)

    @property
    def signed_properties_id(self) -> str:
        return f"xades-id-{self.uid}"

    @property
    def key_info_id(self) -> str:
        return f"keyInfo-id-{self.uid}"

    @property
    def signature_value_id(self) -> str:
        return f"value-id-{self.uid}"
