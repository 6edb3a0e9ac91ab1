"""
Pydantic models for resolved startup state and admin requests.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Literal, Union

import httpx
from pydantic import BaseModel, ConfigDict, Field, SecretStr


class ConfigDirectory(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: Path
    explicitly_set: bool = False

    def get(self) -> str:
        return str(self.path)


class CLIContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    json_output: bool = False
    quiet: bool = False
    anonymous: bool = False
    addr: str = ""
    strict_s3_compat: bool = True


class Credentials(BaseModel):
    model_config = ConfigDict(frozen=True)

    access_key: str
    secret_key: SecretStr


class StaticSecret(BaseModel):
    """Single key KMS parsed from <key-id>:<base64 key>."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["static"] = "static"
    key_id: str
    key: bytes = Field(repr=False)


class LegacyMasterKey(BaseModel):
    """Single key KMS parsed from the deprecated <key-id>:<hex key> form."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["legacy"] = "legacy"
    key_id: str
    key: bytes = Field(repr=False)


class RemoteEndpoint(BaseModel):
    """KES server connection settings."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: Literal["kes"] = "kes"
    endpoints: tuple[str, ...]
    default_key_id: str = ""
    client_cert: Path | None = None
    client_key: Path | None = None
    ca_path: Path | None = None
    transport: httpx.Client = Field(repr=False, exclude=True)


KMSBackend = Annotated[
    Union[StaticSecret, LegacyMasterKey, RemoteEndpoint], Field(discriminator="kind")
]
KMSDescriptor = Union[StaticSecret, LegacyMasterKey, RemoteEndpoint, None]


class StartupConfig(BaseModel):
    """Everything resolved at startup, built once by bootstrap()."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    cli: CLIContext
    config_dir: ConfigDirectory
    certs_dir: ConfigDirectory
    certs_ca_dir: ConfigDirectory
    domains: tuple[str, ...] = ()
    public_ips: frozenset[str] = frozenset()
    credentials: Credentials | None = None
    kms: KMSBackend | None = None
    browser_enabled: bool = True
    fs_osync: bool = False
    inplace_update_disabled: bool = False
    debug: bool = False

    def close(self) -> None:
        """Release the KES transport, if any."""
        if isinstance(self.kms, RemoteEndpoint):
            self.kms.transport.close()


class AddCertificateRequest(BaseModel):
    label: str = Field(min_length=1)
    cert_file: Path
    key_file: Path


class CertificateInfo(BaseModel):
    label: str
    subject: str
    dns_names: list[str] = Field(default_factory=list)
    not_after: str
    cert_file: str
