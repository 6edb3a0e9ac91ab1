# Startup resolvers
from bucketd.startup.addresses import resolve_public_ips as resolve_public_ips
from bucketd.startup.credentials import resolve_credentials as resolve_credentials
from bucketd.startup.dirs import resolve_config_dir as resolve_config_dir
from bucketd.startup.domains import validate_domains as validate_domains
from bucketd.startup.kms import resolve_kms as resolve_kms

__all__ = [
    "resolve_config_dir",
    "resolve_credentials",
    "resolve_kms",
    "resolve_public_ips",
    "validate_domains",
]
