"""
Loading of X.509 certificates, private keys and CA pools from disk.
"""

from __future__ import annotations

import logging
import ssl
from pathlib import Path
from typing import TYPE_CHECKING

from cryptography import x509
from cryptography.hazmat.primitives import serialization

from bucketd.common.config import Config
from bucketd.common.exceptions import CertificateError

if TYPE_CHECKING:
    from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes

logger = logging.getLogger(__name__)


def public_cert_file(certs_dir: Path) -> Path:
    return certs_dir / Config.PUBLIC_CERT_FILE


def private_key_file(certs_dir: Path) -> Path:
    return certs_dir / Config.PRIVATE_KEY_FILE


def parse_public_cert_file(cert_file: Path) -> list[x509.Certificate]:
    """Parse every PEM certificate in cert_file, leaf first."""
    try:
        data = cert_file.read_bytes()
    except OSError as err:
        msg = f"Unable to read public certificate file {cert_file}"
        raise CertificateError(str(err), msg) from err

    if not data.strip():
        msg = f"Empty public certificate file {cert_file}"
        raise CertificateError(msg, "Invalid public certificate")

    try:
        certs = x509.load_pem_x509_certificates(data)
    except ValueError as err:
        msg = f"Could not read PEM block from file {cert_file}"
        raise CertificateError(str(err), msg) from err
    return certs


def load_private_key(key_file: Path, password: str | None = None) -> PrivateKeyTypes:
    """Load a PEM private key, decrypting it with password when encrypted."""
    try:
        data = key_file.read_bytes()
    except OSError as err:
        msg = f"Unable to read private key file {key_file}"
        raise CertificateError(str(err), msg) from err

    secret = password.encode() if password else None
    try:
        return serialization.load_pem_private_key(data, secret)
    except TypeError as err:
        # Raised both for a missing and for an unexpected password
        msg = (
            f"The private key {key_file} is encrypted, set "
            f"{Config.ENV_CERT_PASSWD} to decrypt it"
            if secret is None
            else f"The private key {key_file} is not encrypted"
        )
        raise CertificateError(str(err), msg) from err
    except ValueError as err:
        msg = f"Unable to parse private key {key_file}"
        raise CertificateError(str(err), msg) from err


def _spki(public_key: object) -> bytes:
    return public_key.public_bytes(  # type: ignore[attr-defined]
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def load_x509_key_pair(
    cert_file: Path, key_file: Path, password: str | None = None
) -> tuple[list[x509.Certificate], PrivateKeyTypes]:
    """Load a certificate chain and its private key, checking they match."""
    chain = parse_public_cert_file(cert_file)
    key = load_private_key(key_file, password)
    if _spki(chain[0].public_key()) != _spki(key.public_key()):
        msg = f"Private key {key_file} does not match certificate {cert_file}"
        raise CertificateError(msg, "Invalid key pair")
    return chain, key


def load_root_cas(ca_dir: Path) -> list[x509.Certificate]:
    """Read every PEM certificate under ca_dir, skipping other files."""
    if not ca_dir.is_dir():
        return []

    roots: list[x509.Certificate] = []
    for path in sorted(ca_dir.iterdir()):
        if not path.is_file():
            continue
        try:
            roots.extend(x509.load_pem_x509_certificates(path.read_bytes()))
        except (OSError, ValueError):
            logger.debug("Skipping non-certificate file %s", path)
    return roots


def load_ca_path(ca_path: Path) -> list[x509.Certificate]:
    """Load CA certificates from a single PEM file or a directory of them."""
    if ca_path.is_dir():
        return load_root_cas(ca_path)
    return parse_public_cert_file(ca_path)


def client_trust_context(roots: list[x509.Certificate]) -> ssl.SSLContext:
    """Client context trusting the system store plus roots."""
    context = ssl.create_default_context()
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    if roots:
        pem = b"".join(
            cert.public_bytes(serialization.Encoding.PEM) for cert in roots
        )
        context.load_verify_locations(cadata=pem.decode())
    return context
