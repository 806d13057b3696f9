from .provider import SoftwareSigningOracle

__all__ = ["SoftwareSigningOracle"]
