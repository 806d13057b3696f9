"""Version information for the HPKI prescription signer."""

__version__ = "1.0.0"
__version_info__ = tuple(int(i) for i in __version__.split('.'))

# XAdES profile produced by this release
XADES_VERSION = "1.3.2"
PRESCRIPTION_FORMAT_VERSION = "EPS1.0"
