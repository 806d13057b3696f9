"""
ASN.1 / DER Encoding

DER structures needed by the signature profile:

- IssuerSerial as embedded in XAdES ``IssuerSerialV2``
- PKCS#1 v1.5 ``DigestInfo`` handed to the signing oracle and rebuilt
  during verification
"""

import logging
import re
from typing import Tuple

from pyasn1.codec.der import encoder, decoder
from pyasn1.error import PyAsn1Error
from pyasn1.type import univ, namedtype
from pyasn1_modules import rfc5280

from ..exceptions import EncodingError
from .constants import HASH_OID_MAP

logger = logging.getLogger(__name__)

_SERIAL_SEPARATORS = re.compile(r"[\s:]")
_HEX_DIGITS = re.compile(r"^[0-9A-F]*$")


class IssuerName(univ.Sequence):
    """Issuer distinguished name carried as opaque DER in an OCTET STRING"""
    componentType = namedtype.NamedTypes(
        namedtype.NamedType('issuerName', univ.OctetString())
    )


class IssuerSerial(univ.Sequence):
    """IssuerSerial ::= SEQUENCE { issuer, serialNumber INTEGER }"""
    componentType = namedtype.NamedTypes(
        namedtype.NamedType('issuer', IssuerName()),
        namedtype.NamedType('serialNumber', univ.Integer())
    )


class DigestInfo(univ.Sequence):
    """DigestInfo ::= SEQUENCE { digestAlgorithm, digest OCTET STRING }"""
    componentType = namedtype.NamedTypes(
        namedtype.NamedType('digestAlgorithm', rfc5280.AlgorithmIdentifier()),
        namedtype.NamedType('digest', univ.OctetString())
    )


def normalize_serial(serial_hex: str) -> bytes:
    """
    Normalize a hexadecimal certificate serial into big-endian bytes.

    Whitespace and ``:`` separators are dropped and casing is ignored.
    Anything else that is not a hex digit is rejected.

    Raises:
        EncodingError: On empty, odd-length or non-hex input
    """
    number = _SERIAL_SEPARATORS.sub("", serial_hex or "").upper()

    if not number:
        raise EncodingError("Serial number is empty", error_code="SERIAL_EMPTY")

    if not _HEX_DIGITS.match(number):
        raise EncodingError(
            f"Serial number contains non-hex characters: {serial_hex!r}",
            error_code="SERIAL_NOT_HEX"
        )

    if len(number) % 2:
        raise EncodingError(
            f"Serial number has odd length ({len(number)} hex digits)",
            error_code="SERIAL_ODD_LENGTH"
        )

    return bytes.fromhex(number)


def encode_issuer_serial(issuer_name_der: bytes, serial_hex: str) -> bytes:
    """
    DER-encode the IssuerSerial structure.

    The serial is encoded as an unsigned value, so DER inserts a leading
    zero octet whenever its first byte has the high bit set.

    Args:
        issuer_name_der: DER encoding of the issuer Name
        serial_hex: Certificate serial number as hex

    Returns:
        DER-encoded IssuerSerial SEQUENCE
    """
    serial = normalize_serial(serial_hex)

    issuer = IssuerName()
    issuer['issuerName'] = univ.OctetString(issuer_name_der)

    issuer_serial = IssuerSerial()
    issuer_serial['issuer'] = issuer
    issuer_serial['serialNumber'] = int.from_bytes(serial, 'big')

    try:
        return encoder.encode(issuer_serial)
    except PyAsn1Error as e:
        logger.error(f"Failed to encode IssuerSerial: {e}")
        raise EncodingError(f"IssuerSerial encoding failed: {str(e)}") from e


def decode_issuer_serial(der: bytes) -> Tuple[bytes, int]:
    """Decode IssuerSerial DER back into (issuer name DER, serial number)."""
    try:
        issuer_serial, remainder = decoder.decode(der, asn1Spec=IssuerSerial())
    except PyAsn1Error as e:
        raise EncodingError(f"IssuerSerial decoding failed: {str(e)}") from e

    if remainder:
        raise EncodingError(
            f"Unexpected data after IssuerSerial: {len(remainder)} bytes"
        )

    issuer_name = bytes(issuer_serial['issuer']['issuerName'])
    serial_number = int(issuer_serial['serialNumber'])
    return issuer_name, serial_number


def encode_digest_info(digest_value: bytes, hash_algorithm: str = "SHA-256") -> bytes:
    """
    Build the DER DigestInfo for PKCS#1 v1.5 signing.

    Raises:
        EncodingError: If the hash algorithm is not supported
    """
    oid = HASH_OID_MAP.get(hash_algorithm)
    if oid is None:
        raise EncodingError(
            f"Unsupported hash algorithm: {hash_algorithm}",
            error_code="UNSUPPORTED_HASH"
        )

    algorithm = rfc5280.AlgorithmIdentifier()
    algorithm['algorithm'] = univ.ObjectIdentifier(oid)
    algorithm['parameters'] = univ.Any(encoder.encode(univ.Null('')))

    digest_info = DigestInfo()
    digest_info['digestAlgorithm'] = algorithm
    digest_info['digest'] = univ.OctetString(digest_value)

    return encoder.encode(digest_info)


def decode_digest_info(der: bytes) -> Tuple[str, bytes]:
    """Decode DigestInfo into (hash algorithm OID, digest)."""
    try:
        digest_info, remainder = decoder.decode(der, asn1Spec=DigestInfo())
    except PyAsn1Error as e:
        raise EncodingError(f"DigestInfo decoding failed: {str(e)}") from e

    if remainder:
        raise EncodingError(
            f"Unexpected data after DigestInfo: {len(remainder)} bytes"
        )

    oid = str(digest_info['digestAlgorithm']['algorithm'])
    return oid, bytes(digest_info['digest'])
