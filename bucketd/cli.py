"""
Command-line interface for the bucketd storage server.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import click
from click.core import ParameterSource

from bucketd.common.config import Config
from bucketd.common.env import Environment
from bucketd.common.exceptions import ConfigError
from bucketd.common.logging_utils import configure_console
from bucketd.common.models import StartupConfig
from bucketd.server import start_server
from bucketd.startup.bootstrap import CommandArgs, bootstrap
from bucketd.startup.kms import describe_kms
from bucketd.tls.loader import TLSConfig, load_certificate_topology

COMMON_OPTIONS = (
    "config_dir",
    "certs_dir",
    "address",
    "json",
    "quiet",
    "anonymous",
    "no_compat",
)


def common_options(func: Callable) -> Callable:
    """Options accepted both on the group and on every command."""
    options = [
        click.option(
            "--config-dir",
            "-C",
            default=Config.default_config_dir,
            show_default="~/.bucketd",
            help="[DEPRECATED] path to legacy configuration directory",
        ),
        click.option(
            "--certs-dir",
            "-S",
            default=Config.default_certs_dir,
            show_default="~/.bucketd/certs",
            help="path to certs directory",
        ),
        click.option(
            "--address",
            default=Config.DEFAULT_ADDRESS,
            show_default=True,
            help="bind to a specific ADDRESS:PORT, ADDRESS can be an IP or hostname",
        ),
        click.option(
            "--json",
            is_flag=True,
            help="output server logs and startup information in json format",
        ),
        click.option("--quiet", is_flag=True, help="disable startup information"),
        click.option(
            "--anonymous",
            is_flag=True,
            help="hide sensitive information from logging",
        ),
        click.option(
            "--no-compat",
            is_flag=True,
            help="disable strict S3 compatibility by turning on certain "
            "performance optimizations",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _explicit(ctx: click.Context | None) -> dict[str, Any]:
    """Values of common options that were set by the user on ctx."""
    if ctx is None:
        return {}
    values = {}
    for name in COMMON_OPTIONS:
        source = ctx.get_parameter_source(name)
        if source is not None and source is not ParameterSource.DEFAULT:
            values[name] = ctx.params[name]
    return values


def command_args(ctx: click.Context) -> CommandArgs:
    return CommandArgs(local=_explicit(ctx), parent=_explicit(ctx.parent))


def _bootstrap(
    ctx: click.Context, hostnames: tuple[str, ...]
) -> tuple[StartupConfig, TLSConfig]:
    args = command_args(ctx)
    configure_console(
        json_output=bool(args.get("json") or args.global_get("json")),
        quiet=bool(args.get("quiet") or args.global_get("quiet")),
        anonymous=bool(args.get("anonymous") or args.global_get("anonymous")),
    )
    try:
        startup = bootstrap(args, configured_hostnames=hostnames)
        configure_console(
            json_output=startup.cli.json_output,
            quiet=startup.cli.quiet,
            anonymous=startup.cli.anonymous,
            debug=startup.debug,
        )
        password = Environment().get(Config.ENV_CERT_PASSWD) or None
        tls = load_certificate_topology(startup.certs_dir.path, password)
    except ConfigError as err:
        raise click.ClickException(str(err)) from err
    return startup, tls


def _summary(startup: StartupConfig, tls: TLSConfig) -> dict[str, Any]:
    return {
        "config_dir": startup.config_dir.get(),
        "certs_dir": startup.certs_dir.get(),
        "certs_ca_dir": startup.certs_ca_dir.get(),
        "address": startup.cli.addr,
        "domains": list(startup.domains),
        "public_ips": sorted(startup.public_ips),
        "kms": describe_kms(startup.kms),
        "credentials": startup.credentials is not None,
        "secure": tls.secure,
        "certificates": tls.manager.labels() if tls.manager is not None else [],
        "browser": startup.browser_enabled,
        "update": not startup.inplace_update_disabled,
        "strict_s3_compat": startup.cli.strict_s3_compat,
    }


@click.group()
@common_options
def cli(**_: Any) -> None:
    """bucketd storage server"""


@cli.command()
@common_options
@click.option(
    "--hostname",
    multiple=True,
    help="service hostname the server is reachable at",
)
@click.pass_context
def server(ctx: click.Context, hostname: tuple[str, ...], **_: Any) -> None:
    """Start the storage server"""
    startup, tls = _bootstrap(ctx, hostname)
    try:
        start_server(startup, tls)
    finally:
        startup.close()


@cli.command()
@common_options
@click.option(
    "--hostname",
    multiple=True,
    help="service hostname the server is reachable at",
)
@click.pass_context
def check(ctx: click.Context, hostname: tuple[str, ...], **_: Any) -> None:
    """Resolve the startup configuration and print it"""
    startup, tls = _bootstrap(ctx, hostname)
    try:
        summary = _summary(startup, tls)
    finally:
        startup.close()
    if startup.cli.json_output:
        click.echo(json.dumps(summary, indent=2))
        return
    for key, value in summary.items():
        if isinstance(value, list):
            value = ", ".join(str(v) for v in value) or "-"
        elif isinstance(value, dict):
            value = " ".join(f"{k}={v}" for k, v in value.items())
        click.echo(f"{key}: {value}")


if __name__ == "__main__":
    cli()
