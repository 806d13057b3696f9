"""SHA-256 digesting of raw bytes and canonicalized elements."""

import hashlib
import logging

from .canonicalizer import canonicalize

logger = logging.getLogger(__name__)

DIGEST_SIZE = hashlib.sha256().digest_size


def digest(data: bytes) -> bytes:
    """Compute the SHA-256 digest of ``data``."""
    return hashlib.sha256(data).digest()


def digest_of(node) -> bytes:
    """Digest the exclusive-canonical form of an element."""
    value = digest(canonicalize(node))
    logger.debug(f"Digest of <{_element_label(node)}>: {value.hex()}")
    return value


def _element_label(node) -> str:
    """Qualified-name-ish label of an element for log output."""
    prefix = node.prefix
    local = node.tag.split("}")[-1]
    return f"{prefix}:{local}" if prefix else local
