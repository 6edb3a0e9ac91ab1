"""
Interfaces and protocols for dependency injection.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from bucketd.tls.manager import CertificateEntry


class IHostResolver(Protocol):
    """Protocol for hostname lookups."""

    def lookup_host(self, host: str) -> list[str]: ...


class IInterfaceLister(Protocol):
    """Protocol for enumerating local interface addresses."""

    def local_ipv4_addresses(self) -> set[str]: ...


class ICertificateStore(Protocol):
    """Protocol for certificate lookup and administration."""

    def add_certificate(self, label: str, cert_path: Path, key_path: Path) -> None: ...

    def remove_certificate(self, label: str) -> None: ...

    def get_certificate(self, server_name: str | None) -> CertificateEntry: ...

    def entries(self) -> list[CertificateEntry]: ...

    def labels(self) -> list[str]: ...
