"""
Admin API server using FastAPI, served over TLS with SNI selection.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import uvicorn
from fastapi import FastAPI

from bucketd.common.config import Config

from .routes import AdminRoutes
from .services import CertificateService

if TYPE_CHECKING:
    from bucketd.common.models import StartupConfig
    from bucketd.tls.loader import TLSConfig


def split_address(addr: str) -> tuple[str, int]:
    """Split host:port, an empty host meaning every interface."""
    host, sep, port = addr.rpartition(":")
    if not sep:
        host, port = addr, Config.DEFAULT_PORT
    host = host.strip("[]") or "0.0.0.0"  # noqa: S104
    try:
        return host, int(port or Config.DEFAULT_PORT)
    except ValueError as err:
        msg = f"Invalid address '{addr}'"
        raise ValueError(msg) from err


class AdminServer:
    """Admin server class wiring startup state into the HTTP surface."""

    def __init__(self, startup: StartupConfig, tls: TLSConfig):
        self.logger = logging.getLogger(__name__)
        self.startup = startup
        self.tls = tls
        self.service = CertificateService(startup, tls.manager, self.logger)
        self.app = FastAPI(title="bucketd admin")
        AdminRoutes(self.service, startup.credentials).setup_routes(self.app)
        if startup.credentials is None:
            self.logger.info("No credentials configured, admin API disabled")

    def uvicorn_config(self) -> uvicorn.Config:
        """Build a loaded uvicorn config, hooking SNI when TLS is configured."""
        host, port = split_address(self.startup.cli.addr)
        manager = self.tls.manager
        kwargs = {}
        if manager is not None:
            default = manager.default_entry()
            kwargs = {
                "ssl_certfile": str(default.cert_path),
                "ssl_keyfile": str(default.key_path),
                "ssl_keyfile_password": manager.password,
            }
        config = uvicorn.Config(
            self.app, host=host, port=port, log_config=None, **kwargs
        )
        config.load()
        if manager is not None and config.ssl is not None:
            config.ssl.sni_callback = manager.sni_callback
        return config

    def run(self) -> None:
        config = self.uvicorn_config()
        scheme = "https" if self.tls.secure else "http"
        self.logger.info(
            "Server listening on %s://%s:%s", scheme, config.host, config.port
        )
        uvicorn.Server(config).run()
