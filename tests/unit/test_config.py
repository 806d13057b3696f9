"""
Unit tests for signer configuration
"""

import pytest

from hpki_signer.config import SignerConfig, SignerConfigManager
from hpki_signer.exceptions import ConfigurationError


def test_defaults():
    """Test configuration defaults with an empty environment"""
    config = SignerConfigManager(environ={}).get_config()

    assert config.pkcs11_module is None
    assert config.slot_index == 0
    assert config.cert_issuer_filter == "NonRepudiation"
    assert config.certificate_path is None
    assert config.verify_after_sign is True
    assert config.log_level == "INFO"
    assert not config.uses_token


def test_environment_values(tmp_path):
    """Test loading every HPKI_* variable"""
    module = tmp_path / "libpkcs11.so"
    module.write_bytes(b"")

    config = SignerConfigManager(environ={
        "HPKI_PKCS11_MODULE": str(module),
        "HPKI_SLOT": "2",
        "HPKI_CERT_ISSUER_FILTER": "Signing",
        "HPKI_CERTIFICATE": "/etc/hpki/signer.pem",
        "HPKI_VERIFY_AFTER_SIGN": "false",
        "HPKI_LOG_LEVEL": "debug",
    }).get_config()

    assert config.pkcs11_module == str(module)
    assert config.slot_index == 2
    assert config.cert_issuer_filter == "Signing"
    assert config.certificate_path == "/etc/hpki/signer.pem"
    assert config.verify_after_sign is False
    assert config.log_level == "DEBUG"
    assert config.uses_token


def test_config_is_cached():
    """Test that the configuration is loaded once"""
    manager = SignerConfigManager(environ={})

    assert manager.get_config() is manager.get_config()


def test_invalid_slot():
    """Test that a non-numeric slot is a configuration error"""
    with pytest.raises(ConfigurationError) as exc_info:
        SignerConfigManager(environ={"HPKI_SLOT": "first"}).get_config()

    assert exc_info.value.parameter == "slot_index"


def test_negative_slot():
    """Test that negative slot indexes are rejected"""
    with pytest.raises(ConfigurationError):
        SignerConfig(slot_index=-1)


def test_invalid_log_level():
    """Test that unknown log levels are rejected"""
    with pytest.raises(ConfigurationError) as exc_info:
        SignerConfig(log_level="chatty")

    assert exc_info.value.parameter == "log_level"


def test_with_overrides_skips_none():
    """Test that CLI overrides only replace given values"""
    config = SignerConfig(slot_index=1, cert_issuer_filter="Signing")

    overridden = config.with_overrides(slot_index=3, cert_issuer_filter=None)

    assert overridden.slot_index == 3
    assert overridden.cert_issuer_filter == "Signing"
    assert config.slot_index == 1
