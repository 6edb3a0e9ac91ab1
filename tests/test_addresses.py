import socket
from typing import Any

import pytest

from bucketd.common.exceptions import ConfigError
from bucketd.startup.addresses import (
    PsutilInterfaceLister,
    SocketHostResolver,
    resolve_public_ips,
)


class FakeResolver:
    def __init__(self, table: dict[str, list[str]]):
        self.table = table
        self.lookups: list[str] = []

    def lookup_host(self, host: str) -> list[str]:
        self.lookups.append(host)
        if host not in self.table:
            raise socket.gaierror(f"no such host {host}")
        return self.table[host]


class FakeInterfaces:
    def local_ipv4_addresses(self) -> set[str]:
        return {"10.0.0.5", "192.168.1.20"}


def test_explicit_ips_added_directly() -> None:
    resolver = FakeResolver({})

    ips = resolve_public_ips("10.1.1.1,fd00::1", resolver=resolver)

    assert ips == frozenset({"10.1.1.1", "fd00::1"})
    assert resolver.lookups == []


def test_explicit_hostnames_resolved() -> None:
    resolver = FakeResolver({"s3.example.com": ["10.2.2.2", "10.2.2.3"]})

    ips = resolve_public_ips("10.1.1.1,s3.example.com", resolver=resolver)

    assert {"10.1.1.1", "10.2.2.2", "10.2.2.3"} <= ips
    assert "s3.example.com" in ips


def test_unresolvable_hostname_is_fatal() -> None:
    with pytest.raises(ConfigError, match="invalid entry found"):
        resolve_public_ips("nowhere.invalid", resolver=FakeResolver({}))


def test_configured_hostnames_ignored_with_explicit_input() -> None:
    ips = resolve_public_ips(
        "10.1.1.1", ["s3.example.com"], resolver=FakeResolver({})
    )
    assert ips == frozenset({"10.1.1.1"})


def test_local_interfaces_plus_hostnames() -> None:
    ips = resolve_public_ips(
        None, ["s3.example.com"], interfaces=FakeInterfaces()
    )
    assert ips == frozenset({"10.0.0.5", "192.168.1.20", "s3.example.com"})


def test_psutil_lister_drops_loopback_and_ipv6(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    class Snic:
        def __init__(self, family: Any, address: str):
            self.family = family
            self.address = address

    fake = {
        "lo": [Snic(socket.AF_INET, "127.0.0.1"), Snic(socket.AF_INET6, "::1")],
        "eth0": [Snic(socket.AF_INET, "10.0.0.7"), Snic(socket.AF_INET6, "fe80::1")],
    }
    monkeypatch.setattr(
        "bucketd.startup.addresses.psutil.net_if_addrs", lambda: fake
    )

    assert PsutilInterfaceLister().local_ipv4_addresses() == {"10.0.0.7"}


def test_socket_resolver_uses_getaddrinfo(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_getaddrinfo(host: str, port: Any, **kwargs: Any) -> list[Any]:
        return [
            (socket.AF_INET, socket.SOCK_STREAM, 6, "", ("10.3.3.3", 0)),
            (socket.AF_INET, socket.SOCK_STREAM, 6, "", ("10.3.3.3", 0)),
            (socket.AF_INET6, socket.SOCK_STREAM, 6, "", ("fd00::3", 0, 0, 0)),
        ]

    monkeypatch.setattr(
        "bucketd.startup.addresses.socket.getaddrinfo", fake_getaddrinfo
    )

    assert SocketHostResolver().lookup_host("s3.example.com") == [
        "10.3.3.3",
        "fd00::3",
    ]
