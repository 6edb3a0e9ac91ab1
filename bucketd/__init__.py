# bucketd storage server startup configuration

from bucketd.common.models import StartupConfig
from bucketd.startup.bootstrap import CommandArgs, bootstrap
from bucketd.tls.loader import TLSConfig, load_certificate_topology
from bucketd.tls.manager import CertificateManager

__all__ = [
    "CertificateManager",
    "CommandArgs",
    "StartupConfig",
    "TLSConfig",
    "bootstrap",
    "load_certificate_topology",
]
