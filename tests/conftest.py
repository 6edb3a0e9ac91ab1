import datetime
import ipaddress
import os
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID


def make_cert_pair(
    common_name: str,
    dns_names: list[str] | None = None,
    ip_addresses: list[str] | None = None,
) -> tuple[bytes, bytes, ec.EllipticCurvePrivateKey]:
    """Generate a self-signed certificate and PKCS8 key as PEM bytes."""
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.datetime.now(datetime.timezone.utc)
    sans: list[x509.GeneralName] = [
        x509.DNSName(n) for n in (dns_names if dns_names is not None else [common_name])
    ]
    sans.extend(x509.IPAddress(ipaddress.ip_address(ip)) for ip in ip_addresses or [])
    builder = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=30))
    )
    if sans:
        builder = builder.add_extension(
            x509.SubjectAlternativeName(sans), critical=False
        )
    cert = builder.sign(key, hashes.SHA256())
    cert_pem = cert.public_bytes(serialization.Encoding.PEM)
    key_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return cert_pem, key_pem, key


def write_cert_pair(
    directory: Path,
    common_name: str,
    dns_names: list[str] | None = None,
    ip_addresses: list[str] | None = None,
) -> tuple[Path, Path]:
    """Write public.crt and private.key into directory."""
    directory.mkdir(parents=True, exist_ok=True)
    cert_pem, key_pem, _ = make_cert_pair(common_name, dns_names, ip_addresses)
    cert_path = directory / "public.crt"
    key_path = directory / "private.key"
    cert_path.write_bytes(cert_pem)
    key_path.write_bytes(key_pem)
    return cert_path, key_path


@pytest.fixture
def certs_dir(tmp_path: Path) -> Path:
    """Certs directory holding a root pair for localhost."""
    root = tmp_path / "certs"
    write_cert_pair(root, "localhost", ["localhost"], ["127.0.0.1"])
    (root / "CAs").mkdir()
    return root


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Empty environment mapping, with BUCKETD_* cleared from os.environ."""
    for key in list(os.environ):
        if key.startswith(("BUCKETD_", "_BUCKETD_")):
            monkeypatch.delenv(key, raising=False)
    return {}
