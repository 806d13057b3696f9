"""
Command line entry points.

``hpki-sign`` signs a prescription payload with the HPKI token (or a
development PEM key) and writes the signed document. ``hpki-verify``
checks a signed document.
"""

import argparse
import getpass
import logging
import sys
from typing import List, Optional

from .adapters.base.signing_oracle import SigningOracle
from .adapters.software.provider import SoftwareSigningOracle
from .config import SignerConfig, SignerConfigManager
from .core.certificate import CertificateInfo, load_certificate
from .core.document_verifier import DocumentVerifier
from .core.session import SigningSession
from .core.signature_assembler import SignatureAssembler
from .exceptions import SignerError, ConfigurationError
from .security.hsm_manager import HSMSigningOracle

logger = logging.getLogger(__name__)


def configure_logging(level: str, log_file: Optional[str] = None) -> None:
    """
    Set up application logging.

    Args:
        level: Log level name (DEBUG, INFO, ...)
        log_file: Optional log file path, written in addition to stderr
    """
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


def build_sign_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hpki-sign",
        description="Sign a prescription with an HPKI card and write the XAdES-BES document."
    )
    parser.add_argument("content", help="Prescription payload file to embed and sign")
    parser.add_argument("output", help="Path of the signed XML document to write")
    parser.add_argument("--pin", help="Token PIN (prompted when omitted)")
    parser.add_argument("--module", dest="pkcs11_module",
                        help="PKCS#11 module path (overrides HPKI_PKCS11_MODULE)")
    parser.add_argument("--slot", dest="slot_index", type=int,
                        help="Index among slots with a token present (overrides HPKI_SLOT)")
    parser.add_argument("--cert", dest="certificate_path",
                        help="Signing certificate file, PEM or DER (default: read from token)")
    parser.add_argument("--issuer-filter", dest="cert_issuer_filter",
                        help="Issuer marker of the signing certificate on the token")
    parser.add_argument("--key",
                        help="Development only: sign with this PEM RSA key instead of a token")
    parser.add_argument("--no-verify", action="store_true",
                        help="Skip verifying the signature before inserting it")
    parser.add_argument("--debug", action="store_true", help="Enable DEBUG logging")
    parser.add_argument("--log-file", help="Also write logs to this file")
    return parser


def _resolve_config(args: argparse.Namespace) -> SignerConfig:
    config = SignerConfigManager().get_config()
    return config.with_overrides(
        pkcs11_module=args.pkcs11_module,
        slot_index=args.slot_index,
        certificate_path=args.certificate_path,
        cert_issuer_filter=args.cert_issuer_filter,
        verify_after_sign=False if args.no_verify else None,
        log_level="DEBUG" if args.debug else None,
    )


def _build_oracle(args: argparse.Namespace, config: SignerConfig) -> SigningOracle:
    if args.key:
        with open(args.key, "rb") as f:
            return SoftwareSigningOracle.from_pem(f.read())

    if not config.uses_token:
        raise ConfigurationError(
            "No PKCS#11 module configured (use --module or HPKI_PKCS11_MODULE)",
            parameter="pkcs11_module"
        )
    return HSMSigningOracle.from_config(config)


def _resolve_certificate(oracle: SigningOracle, config: SignerConfig) -> CertificateInfo:
    if config.certificate_path:
        return load_certificate(config.certificate_path)

    if isinstance(oracle, HSMSigningOracle):
        return oracle.find_certificate(config.cert_issuer_filter)

    raise ConfigurationError(
        "A signing certificate file is required when not signing with a token",
        parameter="certificate_path"
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_sign_parser().parse_args(argv)

    try:
        config = _resolve_config(args)
        configure_logging(config.log_level, args.log_file)
        logger.debug(f"Signing {args.content} into {args.output}")

        with open(args.content, "rb") as f:
            content = f.read()

        oracle = _build_oracle(args, config)
        certificate = _resolve_certificate(oracle, config)

        credential = args.pin
        if credential is None and isinstance(oracle, HSMSigningOracle):
            credential = getpass.getpass("Enter your PIN: ")

        session = SigningSession(certificate=certificate)
        signature = SignatureAssembler(oracle, config).assemble(content, session, credential)

        with open(args.output, "wb") as f:
            f.write(signature.serialize())

    except SignerError as e:
        logger.error(f"Signing failed [{e.error_code}]: {e.message}")
        return 1
    except OSError as e:
        logger.error(f"File error: {e}")
        return 1

    logger.info(f"Signed document written to {args.output}")
    return 0


def verify_main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="hpki-verify",
        description="Verify the XAdES-BES signature of a signed prescription document."
    )
    parser.add_argument("document", help="Signed XML document")
    parser.add_argument("--debug", action="store_true", help="Enable DEBUG logging")
    args = parser.parse_args(argv)

    try:
        config = SignerConfigManager().get_config()
        configure_logging("DEBUG" if args.debug else config.log_level)

        with open(args.document, "rb") as f:
            result = DocumentVerifier().verify_bytes(f.read())
    except OSError as e:
        logger.error(f"File error: {e}")
        return 1
    except SignerError as e:
        logger.error(f"Verification failed [{e.error_code}]: {e.message}")
        return 1

    if not result:
        for error in result.errors:
            print(f"INVALID: {error}", file=sys.stderr)
        return 1

    print(f"Signature valid ({result.certificate.subject})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
