"""
Multi-domain certificate manager with SNI based selection.
"""

from __future__ import annotations

import ipaddress
import logging
import ssl
import threading
from pathlib import Path
from typing import TYPE_CHECKING

from cryptography import x509
from pydantic import BaseModel, ConfigDict

from bucketd.common.config import Config
from bucketd.common.exceptions import CertificateError

from .certs import load_x509_key_pair

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)


class CertificateEntry(BaseModel):
    """One certificate/key pair, immutable once added to the manager."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    label: str
    cert_path: Path
    key_path: Path
    chain: tuple[x509.Certificate, ...]
    ssl_context: ssl.SSLContext

    @property
    def leaf(self) -> x509.Certificate:
        return self.chain[0]

    def dns_names(self) -> list[str]:
        try:
            san = self.leaf.extensions.get_extension_for_class(
                x509.SubjectAlternativeName
            )
        except x509.ExtensionNotFound:
            return []
        return san.value.get_values_for_type(x509.DNSName)

    def ip_addresses(self) -> list[str]:
        try:
            san = self.leaf.extensions.get_extension_for_class(
                x509.SubjectAlternativeName
            )
        except x509.ExtensionNotFound:
            return []
        return [str(ip) for ip in san.value.get_values_for_type(x509.IPAddress)]

    def matches(self, server_name: str) -> bool:
        """Check server_name against the leaf SANs, including wildcards."""
        try:
            ip = ipaddress.ip_address(server_name)
        except ValueError:
            ip = None
        if ip is not None:
            return str(ip) in self.ip_addresses()

        for name in self.dns_names():
            name = normalize_server_name(name)
            if name == server_name:
                return True
            # *.example.com covers exactly one extra label
            if name.startswith("*."):
                head, _, rest = server_name.partition(".")
                if head and rest == name[2:]:
                    return True
        return False


def normalize_server_name(name: str) -> str:
    return name.rstrip(".").lower()


def new_server_context(
    cert_path: Path, key_path: Path, password: str | None = None
) -> ssl.SSLContext:
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    context.load_cert_chain(str(cert_path), str(key_path), password=password)
    return context


class CertificateManager:
    """
    Certificate store keyed by label, looked up per TLS handshake.

    Lookups read the current entry map without locking. Writers build a new
    map under a lock and swap the reference, so a lookup sees an entry either
    entirely before or entirely after an add or replace.
    """

    def __init__(
        self,
        cert_path: Path,
        key_path: Path,
        password: str | None = None,
    ):
        self.password = password
        self._lock = threading.Lock()
        self._entries: Mapping[str, CertificateEntry] = {}
        self.default_label = Config.DEFAULT_CERT_LABEL
        self.add_certificate(self.default_label, cert_path, key_path)

    def _load_entry(
        self, label: str, cert_path: Path, key_path: Path
    ) -> CertificateEntry:
        chain, _ = load_x509_key_pair(cert_path, key_path, self.password)
        try:
            context = new_server_context(cert_path, key_path, self.password)
        except ssl.SSLError as err:
            msg = f"Unable to load TLS certificate '{cert_path},{key_path}'"
            raise CertificateError(str(err), msg) from err
        return CertificateEntry(
            label=label,
            cert_path=cert_path,
            key_path=key_path,
            chain=tuple(chain),
            ssl_context=context,
        )

    def add_certificate(self, label: str, cert_path: Path, key_path: Path) -> None:
        """Add or replace the entry for label.

        Raises:
            CertificateError: the pair cannot be loaded; the map is unchanged
        """
        label = normalize_server_name(label)
        if not label:
            msg = "Certificate label cannot be empty"
            raise CertificateError(msg, "Invalid certificate label")
        entry = self._load_entry(label, Path(cert_path), Path(key_path))
        with self._lock:
            entries = dict(self._entries)
            replaced = label in entries
            entries[label] = entry
            self._entries = entries
        logger.info(
            "%s TLS certificate for %s (%s)",
            "Replaced" if replaced else "Added",
            label,
            entry.leaf.subject.rfc4514_string(),
        )

    def remove_certificate(self, label: str) -> None:
        """Remove the entry for label; the default entry cannot be removed."""
        label = normalize_server_name(label)
        if label == self.default_label:
            msg = "The default certificate cannot be removed"
            raise CertificateError(msg, "Invalid certificate label")
        with self._lock:
            if label not in self._entries:
                msg = f"No certificate for {label}"
                raise KeyError(msg)
            entries = dict(self._entries)
            del entries[label]
            self._entries = entries
        logger.info("Removed TLS certificate for %s", label)

    def get_certificate(self, server_name: str | None) -> CertificateEntry:
        """Select the entry for a requested server name."""
        entries = self._entries
        if not server_name:
            return entries[self.default_label]

        name = normalize_server_name(server_name)
        entry = entries.get(name)
        if entry is not None:
            return entry
        for label in sorted(entries):
            if label != self.default_label and entries[label].matches(name):
                return entries[label]
        return entries[self.default_label]

    def sni_callback(
        self,
        ssl_socket: ssl.SSLObject | ssl.SSLSocket,
        server_name: str | None,
        ssl_context: ssl.SSLContext,
    ) -> None:
        """ssl.SSLContext.sni_callback hook switching to the selected context."""
        entry = self.get_certificate(server_name)
        if entry.ssl_context is not ssl_context:
            ssl_socket.context = entry.ssl_context

    def default_entry(self) -> CertificateEntry:
        return self._entries[self.default_label]

    def labels(self) -> list[str]:
        return sorted(self._entries)

    def entries(self) -> list[CertificateEntry]:
        entries = self._entries
        return [entries[label] for label in sorted(entries)]
