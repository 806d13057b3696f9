"""
Exclusive XML Canonicalization

Serializes a single element subtree following exclusive c14n rules
(no comments). Namespace declarations inherited from ancestors are
emitted on the first output element that visibly uses them.
"""

import logging

from lxml import etree

from ..exceptions import CanonicalizationError

logger = logging.getLogger(__name__)


def canonicalize(node) -> bytes:
    """
    Canonicalize an element with exclusive c14n.

    Args:
        node: lxml element reachable from the document root

    Returns:
        UTF-8 canonical bytes, without XML declaration

    Raises:
        CanonicalizationError: If the node is not an element or cannot
            be serialized
    """
    if not isinstance(node, etree._Element) or not isinstance(node.tag, str):
        raise CanonicalizationError(
            f"Cannot canonicalize {type(node).__name__}: element expected",
            error_code="NOT_AN_ELEMENT"
        )

    try:
        return etree.tostring(
            node, method="c14n", exclusive=True, with_comments=False
        )
    except (etree.LxmlError, ValueError, TypeError) as e:
        logger.error(f"Failed to canonicalize <{node.tag}>: {e}")
        raise CanonicalizationError(
            f"Canonicalization of <{node.tag}> failed: {str(e)}",
            error_code="C14N_FAILED"
        ) from e
