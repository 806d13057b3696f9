"""
Hardware Security Module (HSM) Manager

PKCS#11 integration for HPKI smart cards and HSMs: the signing oracle
used in production and the token-backed certificate source.
"""

import logging
from typing import Dict, Any, Optional, List

from ..adapters.base.signing_oracle import SigningOracle
from ..core.certificate import CertificateInfo
from ..exceptions import (
    OracleError, NoKeyAvailableError, AuthenticationRejectedError,
    MechanismUnsupportedError, HardwareUnavailableError, CertificateError,
    ConfigurationError
)

logger = logging.getLogger(__name__)


class Pkcs11Token:
    """
    Thin binding to a PKCS#11 module through PyKCS11.

    Every PyKCS11 failure is translated into the matching OracleError.
    """

    def __init__(self, module_path: str, slot_index: int = 0):
        if not module_path:
            raise ConfigurationError("PKCS#11 module path not configured",
                                     parameter="pkcs11_module")
        self.module_path = module_path
        self.slot_index = slot_index
        self._pkcs11 = None
        self._lib = None

    def _load(self):
        if self._lib is not None:
            return self._lib

        try:
            import PyKCS11
        except ImportError as e:
            raise HardwareUnavailableError(
                "PyKCS11 is not installed (install the 'hsm' extra)",
                error_code="PKCS11_UNAVAILABLE"
            ) from e

        lib = PyKCS11.PyKCS11Lib()
        try:
            lib.load(self.module_path)
        except PyKCS11.PyKCS11Error as e:
            raise HardwareUnavailableError(
                f"Failed to load PKCS#11 module {self.module_path}: {e}",
                error_code="MODULE_LOAD_FAILED"
            ) from e

        logger.debug(f"PKCS#11 module loaded: {self.module_path}")
        self._pkcs11 = PyKCS11
        self._lib = lib
        return lib

    def _translate(self, error, action: str) -> OracleError:
        p11 = self._pkcs11
        code = getattr(error, "value", None)

        if code in (p11.CKR_PIN_INCORRECT, p11.CKR_PIN_INVALID, p11.CKR_PIN_LEN_RANGE,
                    p11.CKR_PIN_LOCKED, p11.CKR_PIN_EXPIRED):
            return AuthenticationRejectedError(f"{action}: PIN rejected ({error})",
                                               error_code="PIN_REJECTED")
        if code in (p11.CKR_MECHANISM_INVALID, p11.CKR_MECHANISM_PARAM_INVALID,
                    p11.CKR_KEY_FUNCTION_NOT_PERMITTED, p11.CKR_KEY_TYPE_INCONSISTENT):
            return MechanismUnsupportedError(f"{action}: mechanism unsupported ({error})",
                                             error_code="MECHANISM_INVALID")
        if code in (p11.CKR_TOKEN_NOT_PRESENT, p11.CKR_DEVICE_REMOVED,
                    p11.CKR_DEVICE_ERROR, p11.CKR_SLOT_ID_INVALID):
            return HardwareUnavailableError(f"{action}: token unavailable ({error})",
                                            error_code="TOKEN_UNAVAILABLE")
        return OracleError(f"{action} failed: {error}", error_code="PKCS11_ERROR")

    def open_session(self):
        """Open a read-write session on the configured slot."""
        lib = self._load()
        p11 = self._pkcs11

        try:
            slots = lib.getSlotList(tokenPresent=True)
        except p11.PyKCS11Error as e:
            raise self._translate(e, "Listing slots")

        if not slots:
            raise HardwareUnavailableError("No slots with tokens found",
                                           error_code="TOKEN_UNAVAILABLE")
        if self.slot_index >= len(slots):
            raise HardwareUnavailableError(
                f"Slot index {self.slot_index} out of range ({len(slots)} slots)",
                error_code="TOKEN_UNAVAILABLE"
            )

        logger.info(f"Opening a session with the token in slot {slots[self.slot_index]}")
        try:
            return lib.openSession(slots[self.slot_index],
                                   p11.CKF_SERIAL_SESSION | p11.CKF_RW_SESSION)
        except p11.PyKCS11Error as e:
            raise self._translate(e, "Opening session")

    def login(self, session, pin: Optional[str]) -> None:
        if not pin:
            raise AuthenticationRejectedError("No PIN supplied", error_code="PIN_REJECTED")
        try:
            session.login(pin)
        except self._pkcs11.PyKCS11Error as e:
            raise self._translate(e, "Login")

    def find_private_key(self, session):
        p11 = self._pkcs11
        try:
            keys = session.findObjects([(p11.CKA_CLASS, p11.CKO_PRIVATE_KEY)])
        except p11.PyKCS11Error as e:
            raise self._translate(e, "Searching private key")

        if not keys:
            raise NoKeyAvailableError("Private key not found on token",
                                      error_code="KEY_NOT_FOUND")
        return keys[0]

    def sign(self, session, key, data: bytes) -> bytes:
        """Raw PKCS#1 v1.5 signature (CKM_RSA_PKCS) over ``data``."""
        p11 = self._pkcs11
        try:
            signature = session.sign(key, data, p11.Mechanism(p11.CKM_RSA_PKCS, None))
        except p11.PyKCS11Error as e:
            raise self._translate(e, "Signing")
        return bytes(signature)

    def certificates(self, session) -> List[bytes]:
        p11 = self._pkcs11
        try:
            objects = session.findObjects([(p11.CKA_CLASS, p11.CKO_CERTIFICATE)])
            return [
                bytes(session.getAttributeValue(obj, [p11.CKA_VALUE])[0])
                for obj in objects
            ]
        except p11.PyKCS11Error as e:
            raise self._translate(e, "Reading certificates")

    def logout(self, session) -> None:
        try:
            session.logout()
        except self._pkcs11.PyKCS11Error as e:
            raise self._translate(e, "Logout")

    def close(self, session) -> None:
        try:
            session.closeSession()
        except self._pkcs11.PyKCS11Error as e:
            raise self._translate(e, "Closing session")


class HSMSigningOracle(SigningOracle):
    """
    Signing oracle backed by a PKCS#11 token.

    A session is opened and logged in right before each signature and is
    logged out and closed on every exit path.
    """

    def __init__(self, token, config: Optional[Dict[str, Any]] = None):
        super().__init__({"oracle_name": "pkcs11", **(config or {})})
        self.token = token

    @classmethod
    def from_config(cls, signer_config) -> "HSMSigningOracle":
        token = Pkcs11Token(signer_config.pkcs11_module, signer_config.slot_index)
        return cls(token, {"slot_index": signer_config.slot_index})

    def sign(self, digest_info: bytes, credential: Optional[str] = None) -> bytes:
        session = self.token.open_session()
        logged_in = False
        try:
            self.token.login(session, credential)
            logged_in = True

            key = self.token.find_private_key(session)
            signature = self.token.sign(session, key, digest_info)
            logger.info(f"Token produced {len(signature)}-byte signature")
            return signature
        finally:
            self._release(session, logged_in)

    def find_certificate(self, issuer_filter: Optional[str] = None) -> CertificateInfo:
        """
        Return the first certificate on the token whose issuer contains
        ``issuer_filter``.
        """
        session = self.token.open_session()
        try:
            for der in self.token.certificates(session):
                try:
                    info = CertificateInfo.from_der(der)
                except CertificateError as e:
                    logger.warning(f"Skipping unreadable token certificate: {e}")
                    continue

                if issuer_filter is None or issuer_filter in info.issuer:
                    logger.info(f"Selected token certificate {info.subject}")
                    return info
        finally:
            self._release(session, logged_in=False)

        raise CertificateError(
            f"No certificate on token with issuer containing {issuer_filter!r}",
            error_code="CERT_NOT_FOUND"
        )

    def _release(self, session, logged_in: bool) -> None:
        # Release failures are logged, never raised
        if logged_in:
            try:
                self.token.logout(session)
            except OracleError as e:
                logger.warning(f"Session logout failed: {e.message}")

        try:
            self.token.close(session)
        except OracleError as e:
            logger.warning(f"Session close failed: {e.message}")
