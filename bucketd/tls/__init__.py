# TLS certificate topology
from bucketd.tls.loader import TLSConfig as TLSConfig
from bucketd.tls.loader import load_certificate_topology as load_certificate_topology
from bucketd.tls.manager import CertificateManager as CertificateManager

__all__ = ["CertificateManager", "TLSConfig", "load_certificate_topology"]
