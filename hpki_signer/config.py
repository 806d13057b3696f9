"""
Signer Configuration Management

Environment-driven configuration for the PKCS#11 module, certificate
selection and signing behaviour.
"""

import os
import logging
from typing import Dict, Any, Optional
from dataclasses import dataclass, replace

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class SignerConfig:
    """Signer configuration settings"""
    pkcs11_module: Optional[str] = None
    slot_index: int = 0

    # Certificate selection; signing certificates carry this marker in
    # their issuer, authentication certificates do not
    cert_issuer_filter: str = "NonRepudiation"
    certificate_path: Optional[str] = None

    verify_after_sign: bool = True
    log_level: str = "INFO"

    def __post_init__(self):
        """Validate configuration after initialization"""
        if self.slot_index < 0:
            raise ConfigurationError(
                f"Slot index must be non-negative, got {self.slot_index}",
                parameter="slot_index"
            )

        self.log_level = self.log_level.upper()
        if self.log_level not in _LOG_LEVELS:
            raise ConfigurationError(
                f"Unknown log level: {self.log_level}",
                parameter="log_level"
            )

        if self.pkcs11_module and not os.path.isfile(self.pkcs11_module):
            logger.warning(f"PKCS#11 module not found at {self.pkcs11_module}")

    @property
    def uses_token(self) -> bool:
        """True when signing goes through a PKCS#11 module"""
        return bool(self.pkcs11_module)

    def with_overrides(self, **overrides: Any) -> "SignerConfig":
        """Return a copy with every non-None override applied."""
        values = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **values)


class SignerConfigManager:
    """Loads signer configuration from the environment"""

    ENV_PREFIX = "HPKI_"

    def __init__(self, environ: Optional[Dict[str, str]] = None):
        self._environ = environ if environ is not None else os.environ
        self._config = None

    def get_config(self) -> SignerConfig:
        """Get signer configuration, loading it on first use"""
        if self._config is None:
            self._config = self._load_config()

        return self._config

    def _get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self._environ.get(f"{self.ENV_PREFIX}{name}", default)

    def _load_config(self) -> SignerConfig:
        """Load configuration from environment variables"""

        slot = self._get("SLOT", "0")
        try:
            slot_index = int(slot)
        except ValueError:
            raise ConfigurationError(
                f"Invalid {self.ENV_PREFIX}SLOT value: {slot}",
                parameter="slot_index"
            )

        config = SignerConfig(
            pkcs11_module=self._get("PKCS11_MODULE") or None,
            slot_index=slot_index,
            cert_issuer_filter=self._get("CERT_ISSUER_FILTER", "NonRepudiation"),
            certificate_path=self._get("CERTIFICATE") or None,
            verify_after_sign=self._get("VERIFY_AFTER_SIGN", "true").lower() == "true",
            log_level=self._get("LOG_LEVEL", "INFO"),
        )

        logger.debug(
            f"Loaded signer configuration (module={config.pkcs11_module}, "
            f"slot={config.slot_index})"
        )
        return config
