"""
Entry point for the storage server admin surface.
"""

from bucketd.common.models import StartupConfig
from bucketd.tls.loader import TLSConfig

from .core import AdminServer


def start_server(startup: StartupConfig, tls: TLSConfig) -> None:
    """Start the admin server."""
    server = AdminServer(startup, tls)
    server.run()
