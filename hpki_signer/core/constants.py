"""Namespaces and algorithm identifiers of the signature profile."""

DS_NS = "http://www.w3.org/2000/09/xmldsig#"
XADES_NS = "http://uri.etsi.org/01903/v1.3.2#"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"

NSMAP = {
    "ds": DS_NS,
    "xades": XADES_NS,
}

EXC_C14N = "http://www.w3.org/2001/10/xml-exc-c14n#"
SHA256_DIGEST = "http://www.w3.org/2001/04/xmlenc#sha256"
RSA_SHA256 = "http://www.w3.org/2001/04/xmldsig-more#rsa-sha256"
SIGNED_PROPERTIES_TYPE = "http://uri.etsi.org/01903#SignedProperties"

# Hash algorithm OID mappings (DigestInfo)
HASH_OID_MAP = {
    "SHA-256": "2.16.840.1.101.3.4.2.1",
}
