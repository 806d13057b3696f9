"""
Shared fixtures: a throwaway RSA signing key and a self-signed
certificate standing in for the HPKI signing certificate.
"""

import datetime

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID

from hpki_signer.adapters.software.provider import SoftwareSigningOracle
from hpki_signer.core.certificate import CertificateInfo
from hpki_signer.core.session import SigningSession

TEST_SERIAL = 0x0A1B
TEST_UID = "0123456789abcdef0123456789abcdef"
TEST_ISSUER_CN = "HPKI NonRepudiation Test CA"


def make_certificate(key, serial=TEST_SERIAL, issuer_cn=TEST_ISSUER_CN,
                     subject_cn="Test Physician"):
    issuer = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, issuer_cn)])
    subject = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, subject_cn)])
    now = datetime.datetime.now(datetime.timezone.utc)

    return (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer)
        .public_key(key.public_key())
        .serial_number(serial)
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=365))
        .sign(key, hashes.SHA256())
    )


@pytest.fixture(scope="session")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def certificate(rsa_key):
    return make_certificate(rsa_key)


@pytest.fixture(scope="session")
def certificate_der(certificate):
    return certificate.public_bytes(serialization.Encoding.DER)


@pytest.fixture
def cert_info(certificate_der):
    return CertificateInfo.from_der(certificate_der)


@pytest.fixture
def session(cert_info):
    return SigningSession(certificate=cert_info, uid=TEST_UID)


@pytest.fixture
def software_oracle(rsa_key):
    return SoftwareSigningOracle(rsa_key)


@pytest.fixture
def key_and_cert_files(tmp_path, rsa_key, certificate):
    """PEM key and certificate written to disk for CLI tests"""
    key_path = tmp_path / "signer.key"
    key_path.write_bytes(rsa_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ))
    cert_path = tmp_path / "signer.pem"
    cert_path.write_bytes(certificate.public_bytes(serialization.Encoding.PEM))
    return key_path, cert_path


@pytest.fixture(scope="session")
def certificate_factory():
    return make_certificate
