"""
Unit tests for exclusive canonicalization and digesting
"""

import hashlib

import pytest
from lxml import etree

from hpki_signer.core.canonicalizer import canonicalize
from hpki_signer.core.digest import digest, digest_of, DIGEST_SIZE
from hpki_signer.exceptions import CanonicalizationError

DS = "http://www.w3.org/2000/09/xmldsig#"


def test_unused_ancestor_namespaces_are_dropped():
    """Test that exclusive c14n only emits visibly used namespaces"""
    root = etree.fromstring(
        '<Document xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" '
        'xsi:noNamespaceSchemaLocation="EP.xsd">'
        '<Item id="a">text</Item></Document>'
    )

    assert canonicalize(root[0]) == b'<Item id="a">text</Item>'


def test_inherited_namespace_is_declared_on_subtree_root():
    """Test that a namespace used by the subtree is declared on its root"""
    root = etree.fromstring(
        f'<ds:Signature xmlns:ds="{DS}"><ds:KeyInfo Id="k"/></ds:Signature>'
    )

    assert canonicalize(root[0]) == (
        f'<ds:KeyInfo xmlns:ds="{DS}" Id="k"></ds:KeyInfo>'.encode()
    )


def test_attributes_are_sorted_and_empty_elements_expanded():
    """Test attribute ordering and empty element rendering"""
    element = etree.fromstring('<Ref URI="#x" Type="t" Id="r"/>')

    assert canonicalize(element) == b'<Ref Id="r" Type="t" URI="#x"></Ref>'


def test_comments_are_removed():
    """Test that comments do not reach the canonical form"""
    element = etree.fromstring("<a><!-- note -->b</a>")

    assert canonicalize(element) == b"<a>b</a>"


def test_canonicalize_is_deterministic():
    """Test that repeated canonicalization gives identical bytes"""
    element = etree.fromstring('<a z="1" b="2"><c>text</c></a>')

    assert canonicalize(element) == canonicalize(element)
    assert digest_of(element) == digest_of(element)


def test_digest_is_sensitive_to_content():
    """Test that changing one character changes the digest"""
    first = etree.fromstring("<a>sample</a>")
    second = etree.fromstring("<a>samplf</a>")

    assert digest_of(first) != digest_of(second)


def test_digest_of_matches_sha256_of_canonical_bytes():
    """Test that digest_of hashes the canonical form"""
    element = etree.fromstring('<PrescriptionDocument id="PrescriptionDocument">c2FtcGxl</PrescriptionDocument>')
    expected = hashlib.sha256(
        b'<PrescriptionDocument id="PrescriptionDocument">c2FtcGxl</PrescriptionDocument>'
    ).digest()

    assert digest_of(element) == expected
    assert len(expected) == DIGEST_SIZE


def test_digest_of_bytes():
    """Test raw byte digesting"""
    assert digest(b"sample") == hashlib.sha256(b"sample").digest()


@pytest.mark.parametrize("node", [None, "text", b"<a/>"])
def test_canonicalize_rejects_non_elements(node):
    """Test that non-element input raises CanonicalizationError"""
    with pytest.raises(CanonicalizationError) as exc_info:
        canonicalize(node)

    assert exc_info.value.error_code == "NOT_AN_ELEMENT"


def test_canonicalize_rejects_comment_nodes():
    """Test that comment nodes are not treated as elements"""
    comment = etree.Comment("note")

    with pytest.raises(CanonicalizationError):
        canonicalize(comment)
