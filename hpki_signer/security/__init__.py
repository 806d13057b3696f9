from .hsm_manager import HSMSigningOracle, Pkcs11Token

__all__ = ["HSMSigningOracle", "Pkcs11Token"]
