"""
Startup bootstrap: resolves every setting once into a StartupConfig.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from bucketd.common.config import Config
from bucketd.common.env import Environment
from bucketd.common.exceptions import ConfigError
from bucketd.common.interfaces import IHostResolver, IInterfaceLister
from bucketd.common.models import CLIContext, ConfigDirectory, StartupConfig
from bucketd.tls.certs import load_root_cas

from .addresses import resolve_public_ips
from .credentials import resolve_credentials
from .dirs import resolve_directories
from .domains import validate_domains
from .kms import resolve_kms

logger = logging.getLogger(__name__)


class CommandArgs(BaseModel):
    """Options explicitly set on the invoked command and on its parent group."""

    model_config = ConfigDict(frozen=True)

    local: dict[str, Any] = Field(default_factory=dict)
    parent: dict[str, Any] = Field(default_factory=dict)

    def is_set(self, name: str) -> bool:
        return name in self.local

    def global_is_set(self, name: str) -> bool:
        return name in self.parent

    def get(self, name: str, default: Any = None) -> Any:
        return self.local.get(name, default)

    def global_get(self, name: str, default: Any = None) -> Any:
        return self.parent.get(name, default)


def _flag(args: CommandArgs, name: str) -> bool:
    return bool(args.get(name)) or bool(args.global_get(name))


def handle_common_cmd_args(
    args: CommandArgs,
) -> tuple[CLIContext, ConfigDirectory, ConfigDirectory, ConfigDirectory]:
    """Resolve common flags and the config, certs and CA directories."""
    addr = args.global_get("address", Config.DEFAULT_ADDRESS)
    if addr in ("", Config.DEFAULT_ADDRESS):
        addr = args.get("address", Config.DEFAULT_ADDRESS)

    cli_context = CLIContext(
        json_output=_flag(args, "json"),
        quiet=_flag(args, "quiet"),
        anonymous=_flag(args, "anonymous"),
        addr=addr,
        strict_s3_compat=not _flag(args, "no_compat"),
    )

    config_dir, certs_dir, ca_dir = resolve_directories(
        args.get("config_dir"),
        args.global_get("config_dir"),
        args.get("certs_dir"),
        args.global_get("certs_dir"),
    )
    return cli_context, config_dir, certs_dir, ca_dir


def handle_common_env_vars(
    env: Environment,
    certs_ca_dir: ConfigDirectory,
    configured_hostnames: Iterable[str] = (),
    resolver: IHostResolver | None = None,
    interfaces: IInterfaceLister | None = None,
) -> dict[str, Any]:
    """Resolve environment driven settings into StartupConfig fields."""
    if env.get_bool(Config.ENV_WORM, Config.ENABLE_OFF):
        msg = (
            f"global {Config.ENV_WORM} support is removed, please use "
            "object retention instead"
        )
        raise ConfigError(msg, "WORM is deprecated")

    browser_enabled = env.get_bool(Config.ENV_BROWSER, Config.ENABLE_ON)
    fs_osync = env.get_bool(Config.ENV_FS_OSYNC, Config.ENABLE_OFF)

    domains = validate_domains(env.get(Config.ENV_DOMAIN))
    public_ips = resolve_public_ips(
        env.get(Config.ENV_PUBLIC_IPS),
        [*configured_hostnames, *domains],
        resolver=resolver,
        interfaces=interfaces,
    )

    # In place update stays enabled unless explicitly turned off.
    inplace_update_disabled = (
        env.get(Config.ENV_UPDATE, Config.ENABLE_ON).lower() == Config.ENABLE_OFF
    )

    credentials = resolve_credentials(env)
    kms = resolve_kms(env, certs_ca_dir.path, load_root_cas(certs_ca_dir.path))

    return {
        "domains": domains,
        "public_ips": public_ips,
        "credentials": credentials,
        "kms": kms,
        "browser_enabled": browser_enabled,
        "fs_osync": fs_osync,
        "inplace_update_disabled": inplace_update_disabled,
    }


def bootstrap(
    args: CommandArgs,
    environ: Mapping[str, str] | None = None,
    configured_hostnames: Iterable[str] = (),
    resolver: IHostResolver | None = None,
    interfaces: IInterfaceLister | None = None,
) -> StartupConfig:
    """
    Resolve the complete startup configuration.

    Raises:
        ConfigError: any setting is invalid; nothing is partially applied
    """
    env = Environment(environ)
    debug = env.get_bool(Config.ENV_SERVER_DEBUG, Config.ENABLE_OFF)

    cli_context, config_dir, certs_dir, ca_dir = handle_common_cmd_args(args)
    settings = handle_common_env_vars(
        env,
        ca_dir,
        configured_hostnames,
        resolver=resolver,
        interfaces=interfaces,
    )

    startup = StartupConfig(
        cli=cli_context,
        config_dir=config_dir,
        certs_dir=certs_dir,
        certs_ca_dir=ca_dir,
        debug=debug,
        **settings,
    )
    logger.debug(
        "Startup configuration resolved: domains=%s kms=%s",
        startup.domains,
        startup.kms.kind if startup.kms is not None else "none",
    )
    return startup
