"""
Resolution of the public addresses the server is reachable at.
"""

from __future__ import annotations

import ipaddress
import logging
import socket
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError

import psutil

from bucketd.common.config import Config
from bucketd.common.exceptions import ConfigError
from bucketd.common.interfaces import IHostResolver, IInterfaceLister

logger = logging.getLogger(__name__)


class SocketHostResolver:
    """Resolve hostnames with getaddrinfo under a bounded timeout."""

    def __init__(self, timeout: float = Config.DNS_LOOKUP_TIMEOUT):
        self.timeout = timeout

    def lookup_host(self, host: str) -> list[str]:
        executor = ThreadPoolExecutor(max_workers=1)
        future = executor.submit(
            socket.getaddrinfo, host, None, proto=socket.IPPROTO_TCP
        )
        try:
            addrinfos = future.result(timeout=self.timeout)
        except FutureTimeoutError as err:
            msg = f"lookup {host}: timed out after {self.timeout}s"
            raise socket.timeout(msg) from err
        finally:
            # A timed out worker is left to the system resolver, whose own
            # timeout bounds it; interpreter exit waits for it to return.
            executor.shutdown(wait=False)
        return sorted({info[4][0] for info in addrinfos})


class PsutilInterfaceLister:
    """List local interface addresses via psutil."""

    def local_ipv4_addresses(self) -> set[str]:
        addresses: set[str] = set()
        for snics in psutil.net_if_addrs().values():
            for snic in snics:
                if snic.family != socket.AF_INET:
                    continue
                if ipaddress.ip_address(snic.address).is_loopback:
                    continue
                addresses.add(snic.address)
        return addresses


def _is_ip(value: str) -> bool:
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return False
    return True


def resolve_public_ips(
    explicit: str | None,
    configured_hostnames: Iterable[str] = (),
    resolver: IHostResolver | None = None,
    interfaces: IInterfaceLister | None = None,
    separator: str = Config.VALUE_SEPARATOR,
) -> frozenset[str]:
    """
    Build the set of addresses and hostnames the server is reachable at.

    Args:
        explicit: Separator-delimited IPs or hostnames, None or "" when unset
        configured_hostnames: Service hostnames, used only without explicit input
        resolver: Hostname resolver, defaults to getaddrinfo
        interfaces: Interface lister, defaults to psutil

    Raises:
        ConfigError: an explicitly named host does not resolve
    """
    if explicit:
        resolver = resolver or SocketHostResolver()
        domain_ips: set[str] = set()
        for endpoint in explicit.split(separator):
            if not _is_ip(endpoint):
                try:
                    addrs = resolver.lookup_host(endpoint)
                except (OSError, UnicodeError) as err:
                    msg = (
                        f"Unable to initialize server with [{endpoint}] invalid "
                        f"entry found in {Config.ENV_PUBLIC_IPS}"
                    )
                    raise ConfigError(str(err), msg) from err
                domain_ips.update(addrs)
            domain_ips.add(endpoint)
        logger.debug("Public addresses from environment: %s", sorted(domain_ips))
        return frozenset(domain_ips)

    # Loopback addresses are dropped by the lister.
    interfaces = interfaces or PsutilInterfaceLister()
    domain_ips = set(interfaces.local_ipv4_addresses())
    domain_ips.update(configured_hostnames)
    logger.debug("Public addresses from local interfaces: %s", sorted(domain_ips))
    return frozenset(domain_ips)
