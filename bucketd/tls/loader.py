"""
Discovery of the certificate topology under the certs directory.

Expected layout::

    certs/
      public.crt
      private.key
      CAs/                 (skipped)
      example.com/
        public.crt
        private.key
      foobar.org/
        public.crt
        private.key

Every immediate subdirectory holding both files is added to the certificate
manager under its directory name.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import NamedTuple

from cryptography import x509

from bucketd.common.config import Config
from bucketd.common.exceptions import CertificateError

from .certs import parse_public_cert_file, private_key_file, public_cert_file
from .manager import CertificateManager, normalize_server_name

logger = logging.getLogger(__name__)


class TLSConfig(NamedTuple):
    certs: tuple[x509.Certificate, ...]
    manager: CertificateManager | None
    secure: bool


NOT_CONFIGURED = TLSConfig((), None, False)


def _candidate_dirs(root: Path) -> list[tuple[str, Path]]:
    """Immediate subdirectories of root that may hold a certificate bundle."""
    try:
        with os.scandir(root) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError as err:
        msg = f"Unable to read certs directory {root}"
        raise CertificateError(str(err), msg) from err

    visited = {os.path.realpath(root)}
    candidates: list[tuple[str, Path]] = []
    for entry in entries:
        name = entry.name
        if name == Config.CERTS_CA_DIR_NAME or name.startswith(".."):
            continue
        try:
            if entry.is_file(follow_symlinks=False):
                continue
            # Follows symlinks; broken links and links to files drop out here.
            if not entry.is_dir():
                continue
        except OSError:
            continue

        real = os.path.realpath(entry.path)
        if real in visited:
            logger.debug("Skipping %s, already scanned as %s", entry.path, real)
            continue
        visited.add(real)
        candidates.append((name, Path(entry.path)))
    return candidates


def load_certificate_topology(
    certs_dir: Path, password: str | None = None
) -> TLSConfig:
    """
    Build the certificate manager from certs_dir.

    Args:
        certs_dir: Resolved certs directory
        password: Password for encrypted private keys

    Returns:
        NOT_CONFIGURED when the root pair is absent, otherwise the parsed root
        chain and a populated manager with secure set

    Raises:
        CertificateError: the root pair is malformed or certs_dir is unreadable
    """
    root_cert = public_cert_file(certs_dir)
    root_key = private_key_file(certs_dir)
    if not (root_cert.is_file() and root_key.is_file()):
        logger.debug("No TLS certificate in %s, serving without TLS", certs_dir)
        return NOT_CONFIGURED

    certs = parse_public_cert_file(root_cert)
    manager = CertificateManager(root_cert, root_key, password)

    for label, directory in _candidate_dirs(certs_dir):
        cert_file = public_cert_file(directory)
        key_file = private_key_file(directory)
        has_cert, has_key = cert_file.is_file(), key_file.is_file()
        if not has_cert and not has_key:
            continue
        if not (has_cert and has_key):
            missing = key_file if has_cert else cert_file
            logger.warning(
                "Unable to load TLS certificate for %s: missing %s", label, missing
            )
            continue
        if normalize_server_name(label) == manager.default_label:
            logger.warning(
                "Ignoring %s: '%s' is reserved for the root certificate",
                directory,
                manager.default_label,
            )
            continue
        try:
            manager.add_certificate(label, cert_file, key_file)
        except CertificateError as err:
            logger.warning(
                "Unable to load TLS certificate '%s,%s': %s", cert_file, key_file, err
            )

    return TLSConfig(tuple(certs), manager, True)
