"""
Selection of the key-management backend from the environment.
"""

from __future__ import annotations

import base64
import binascii
import itertools
import logging
import re
import ssl
from pathlib import Path
from typing import TYPE_CHECKING, assert_never

import httpx

from bucketd.common.config import Config
from bucketd.common.exceptions import (
    AmbiguousKMSError,
    CertificateError,
    InvalidKMSError,
)
from bucketd.common.models import (
    KMSDescriptor,
    LegacyMasterKey,
    RemoteEndpoint,
    StaticSecret,
)
from bucketd.tls.certs import client_trust_context, load_ca_path, load_x509_key_pair

if TYPE_CHECKING:
    from cryptography import x509

    from bucketd.common.env import Environment

logger = logging.getLogger(__name__)

_ELLIPSES_RE = re.compile(r"\{(\d+)\.\.\.(\d+)\}")
_PARSE_HINT = "Unable to parse the KMS secret key inherited from the shell environment"


def _check_key_len(key: bytes) -> None:
    if len(key) != Config.KMS_KEY_LEN:
        msg = f"kms: invalid key length {len(key)}"
        raise InvalidKMSError(msg, _PARSE_HINT)


def parse_secret_key(value: str) -> StaticSecret:
    """Parse <key-id>:<base64 key>."""
    key_id, sep, b64_key = value.partition(":")
    if not sep:
        msg = "kms: invalid master key format"
        raise InvalidKMSError(msg, _PARSE_HINT)
    try:
        key = base64.b64decode(b64_key, validate=True)
    except binascii.Error as err:
        raise InvalidKMSError(str(err), _PARSE_HINT) from err
    _check_key_len(key)
    return StaticSecret(key_id=key_id, key=key)


def parse_master_key(value: str) -> LegacyMasterKey:
    """Parse the deprecated <key-id>:<hex key> form."""
    key_id, sep, hex_key = value.partition(":")
    if not sep:
        msg = f"invalid {Config.ENV_KMS_MASTER_KEY}"
        raise InvalidKMSError(msg, _PARSE_HINT)
    try:
        key = bytes.fromhex(hex_key)
    except ValueError as err:
        raise InvalidKMSError(str(err), _PARSE_HINT) from err
    _check_key_len(key)
    return LegacyMasterKey(key_id=key_id, key=key)


def _expand_ellipses(endpoint: str) -> list[str]:
    """Expand {1...3} style ranges, keeping zero padding."""
    matches = list(_ELLIPSES_RE.finditer(endpoint))
    if not matches:
        return [endpoint]

    ranges: list[list[str]] = []
    for match in matches:
        start, end = match.group(1), match.group(2)
        if int(start) > int(end):
            msg = f"invalid ellipses range {match.group(0)} in {endpoint}"
            raise ValueError(msg)
        width = len(start) if start.startswith("0") else 0
        ranges.append([str(i).zfill(width) for i in range(int(start), int(end) + 1)])

    literals = _ELLIPSES_RE.split(endpoint)[::3]
    expanded = []
    for combo in itertools.product(*ranges):
        parts = [literals[0]]
        for value, literal in zip(combo, literals[1:]):
            parts.extend([value, literal])
        expanded.append("".join(parts))
    return expanded


def parse_kes_endpoints(value: str) -> tuple[str, ...]:
    """Parse comma separated KES endpoint URLs."""
    endpoints: list[str] = []
    for raw in value.split(Config.VALUE_SEPARATOR):
        raw = raw.strip()
        if not raw:
            continue
        for endpoint in _expand_ellipses(raw):
            try:
                url = httpx.URL(endpoint)
            except httpx.InvalidURL as err:
                msg = f"invalid KES endpoint '{endpoint}': {err}"
                raise ValueError(msg) from err
            if url.scheme not in ("http", "https") or not url.host:
                msg = f"invalid KES endpoint '{endpoint}'"
                raise ValueError(msg)
            endpoints.append(endpoint)
    if not endpoints:
        msg = "no KES endpoint specified"
        raise ValueError(msg)
    return tuple(endpoints)


def new_kes_transport(
    root_cas: list[x509.Certificate],
    client_cert: Path | None = None,
    client_key: Path | None = None,
    dial_timeout: float = Config.DEFAULT_DIAL_TIMEOUT,
) -> httpx.Client:
    """HTTP/2 capable client trusting root_cas, with an optional client pair."""
    context = client_trust_context(root_cas)
    if client_cert is not None and client_key is not None:
        context.load_cert_chain(str(client_cert), str(client_key))
    return httpx.Client(
        http2=True,
        verify=context,
        timeout=httpx.Timeout(None, connect=dial_timeout),
    )


def new_kes(
    endpoints: tuple[str, ...],
    default_key_id: str,
    client_cert: str,
    client_key: str,
    ca_path: str,
    root_cas: list[x509.Certificate],
) -> RemoteEndpoint:
    """Build the KES descriptor, loading the client pair and CA certificates."""
    if bool(client_cert) != bool(client_key):
        msg = "both a KES client certificate and a client key are required"
        raise InvalidKMSError(msg, "Invalid KES configuration")

    cert_path = Path(client_cert) if client_cert else None
    key_path = Path(client_key) if client_key else None
    ca = Path(ca_path) if ca_path else None
    try:
        if cert_path is not None and key_path is not None:
            load_x509_key_pair(cert_path, key_path)
        trusted = list(root_cas)
        if ca is not None:
            trusted.extend(load_ca_path(ca))
        transport = new_kes_transport(trusted, cert_path, key_path)
    except (CertificateError, ssl.SSLError) as err:
        raise InvalidKMSError(str(err), "Invalid KES configuration") from err

    return RemoteEndpoint(
        endpoints=endpoints,
        default_key_id=default_key_id,
        client_cert=cert_path,
        client_key=key_path,
        ca_path=ca,
        transport=transport,
    )


def resolve_kms(
    env: Environment,
    certs_ca_dir: Path,
    root_cas: list[x509.Certificate] | None = None,
) -> KMSDescriptor:
    """
    Select at most one KMS backend from the environment.

    Args:
        env: Environment to read
        certs_ca_dir: Default KES server CA path
        root_cas: Process trusted root certificates for the KES transport

    Returns:
        StaticSecret, LegacyMasterKey, RemoteEndpoint or None

    Raises:
        AmbiguousKMSError: a single key and KES are configured together
        InvalidKMSError: key material or KES settings are malformed
    """
    has_secret = env.is_set(Config.ENV_KMS_SECRET_KEY)
    has_master = env.is_set(Config.ENV_KMS_MASTER_KEY)
    has_kes = env.is_set(Config.ENV_KES_ENDPOINT)

    if has_secret and has_kes:
        msg = (
            f"The environment contains {Config.ENV_KMS_SECRET_KEY!r} "
            f"as well as {Config.ENV_KES_ENDPOINT!r}"
        )
        raise AmbiguousKMSError(msg, "ambiguous KMS configuration")
    if has_master and has_kes:
        msg = (
            f"The environment contains {Config.ENV_KMS_MASTER_KEY!r} "
            f"as well as {Config.ENV_KES_ENDPOINT!r}"
        )
        raise AmbiguousKMSError(msg, "ambiguous KMS configuration")

    if has_secret:
        return parse_secret_key(env.get(Config.ENV_KMS_SECRET_KEY))

    if has_master:
        logger.warning(
            "legacy KMS configuration: The environment variable %r is deprecated "
            "and will be removed in the future",
            Config.ENV_KMS_MASTER_KEY,
        )
        return parse_master_key(env.get(Config.ENV_KMS_MASTER_KEY))

    if has_kes:
        try:
            endpoints = parse_kes_endpoints(env.get(Config.ENV_KES_ENDPOINT))
        except ValueError as err:
            msg = "Unable to parse the KES endpoints inherited from the environment"
            raise InvalidKMSError(str(err), msg) from err
        return new_kes(
            endpoints,
            default_key_id=env.get(Config.ENV_KES_KEY_NAME),
            client_cert=env.get(Config.ENV_KES_CLIENT_CERT),
            client_key=env.get(Config.ENV_KES_CLIENT_KEY),
            ca_path=env.get(Config.ENV_KES_SERVER_CA, str(certs_ca_dir)),
            root_cas=root_cas or [],
        )

    return None


def describe_kms(kms: KMSDescriptor) -> dict[str, object]:
    """Summarize the active KMS backend without key material."""
    match kms:
        case None:
            return {"kind": "none"}
        case StaticSecret(key_id=key_id) | LegacyMasterKey(key_id=key_id):
            return {"kind": kms.kind, "key_id": key_id}
        case RemoteEndpoint():
            return {
                "kind": kms.kind,
                "endpoints": list(kms.endpoints),
                "default_key_id": kms.default_key_id,
                "mtls": kms.client_cert is not None,
                "ca_path": str(kms.ca_path) if kms.ca_path else None,
            }
        case _:
            assert_never(kms)
