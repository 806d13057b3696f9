"""
Reference Builder

Digests a target element and renders the ``ds:Reference`` that binds it
into SignedInfo.
"""

import base64
import logging
from dataclasses import dataclass
from typing import Optional

from lxml import etree

from ..exceptions import AssemblyError
from .constants import DS_NS, EXC_C14N, SHA256_DIGEST
from .digest import digest_of

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reference:
    """Digest of one signed element plus its reference attributes"""
    uri: str
    digest: bytes
    id: Optional[str] = None
    type: Optional[str] = None

    def __post_init__(self):
        if not self.uri:
            raise AssemblyError("Reference URI must not be empty")

    @property
    def digest_b64(self) -> str:
        return base64.b64encode(self.digest).decode("ascii")

    def to_element(self, parent=None) -> etree._Element:
        """Render as a ds:Reference element, appended to ``parent`` if given."""
        if parent is None:
            reference = etree.Element(etree.QName(DS_NS, "Reference"), nsmap={"ds": DS_NS})
        else:
            reference = etree.SubElement(parent, etree.QName(DS_NS, "Reference"))
        if self.type is not None:
            reference.set("Type", self.type)
        if self.id is not None:
            reference.set("Id", self.id)
        reference.set("URI", self.uri)

        transforms = etree.SubElement(reference, etree.QName(DS_NS, "Transforms"))
        transform = etree.SubElement(transforms, etree.QName(DS_NS, "Transform"))
        transform.set("Algorithm", EXC_C14N)

        digest_method = etree.SubElement(reference, etree.QName(DS_NS, "DigestMethod"))
        digest_method.set("Algorithm", SHA256_DIGEST)

        digest_value = etree.SubElement(reference, etree.QName(DS_NS, "DigestValue"))
        digest_value.text = self.digest_b64

        return reference


def build_reference(target, uri: str, id: Optional[str] = None,
                    type: Optional[str] = None) -> Reference:
    """
    Digest ``target`` and package it with the reference metadata.

    Args:
        target: Element the reference points at
        uri: Same-document URI (``#<id>``)
        id: Optional Id attribute of the reference
        type: Optional Type attribute of the reference

    Returns:
        Immutable Reference carrying the target digest
    """
    reference = Reference(uri=uri, digest=digest_of(target), id=id, type=type)
    logger.debug(f"Built reference {uri} -> {reference.digest_b64}")
    return reference
