from .base.signing_oracle import SigningOracle
from .software.provider import SoftwareSigningOracle

__all__ = ["SigningOracle", "SoftwareSigningOracle"]
