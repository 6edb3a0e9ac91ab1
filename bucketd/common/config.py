"""
Configuration settings for the storage server startup.
"""

from __future__ import annotations

import logging
from pathlib import Path


def _home_dir() -> str:
    try:
        return str(Path.home())
    except (RuntimeError, KeyError):
        return ""


class Config:
    """Central configuration class for all startup settings."""

    # Environment variables
    ENV_PREFIX: str = "BUCKETD_"
    ENV_DOMAIN: str = "BUCKETD_DOMAIN"
    ENV_PUBLIC_IPS: str = "BUCKETD_PUBLIC_IPS"
    ENV_KMS_SECRET_KEY: str = "BUCKETD_KMS_SECRET_KEY"
    ENV_KMS_MASTER_KEY: str = "BUCKETD_KMS_MASTER_KEY"  # Deprecated
    ENV_KES_ENDPOINT: str = "BUCKETD_KMS_KES_ENDPOINT"
    ENV_KES_KEY_NAME: str = "BUCKETD_KMS_KES_KEY_NAME"
    ENV_KES_CLIENT_CERT: str = "BUCKETD_KMS_KES_CERT_FILE"
    ENV_KES_CLIENT_KEY: str = "BUCKETD_KMS_KES_KEY_FILE"
    ENV_KES_SERVER_CA: str = "BUCKETD_KMS_KES_CAPATH"
    ENV_ACCESS_KEY: str = "BUCKETD_ACCESS_KEY"
    ENV_SECRET_KEY: str = "BUCKETD_SECRET_KEY"
    ENV_ROOT_USER: str = "BUCKETD_ROOT_USER"
    ENV_ROOT_PASSWORD: str = "BUCKETD_ROOT_PASSWORD"
    ENV_UPDATE: str = "BUCKETD_UPDATE"
    ENV_BROWSER: str = "BUCKETD_BROWSER"
    ENV_FS_OSYNC: str = "BUCKETD_FS_OSYNC"
    ENV_WORM: str = "BUCKETD_WORM"
    ENV_CERT_PASSWD: str = "BUCKETD_CERT_PASSWD"
    ENV_SERVER_DEBUG: str = "_BUCKETD_SERVER_DEBUG"

    VALUE_SEPARATOR: str = ","
    ENABLE_ON: str = "on"
    ENABLE_OFF: str = "off"

    # Server settings
    DEFAULT_PORT: str = "9000"
    DEFAULT_ADDRESS: str = ":" + DEFAULT_PORT

    # Directory layout
    CONFIG_DIR_NAME: str = ".bucketd"
    CERTS_DIR_NAME: str = "certs"
    CERTS_CA_DIR_NAME: str = "CAs"
    PUBLIC_CERT_FILE: str = "public.crt"
    PRIVATE_KEY_FILE: str = "private.key"
    DEFAULT_CERT_LABEL: str = "default"
    DIR_MODE: int = 0o700

    # Network timeouts in seconds
    DEFAULT_DIAL_TIMEOUT: float = 5.0
    DNS_LOOKUP_TIMEOUT: float = 5.0

    # KMS
    KMS_KEY_LEN: int = 32

    # Credentials
    ACCESS_KEY_MIN_LEN: int = 3
    ACCESS_KEY_MAX_LEN: int = 20
    SECRET_KEY_MIN_LEN: int = 8
    SECRET_KEY_MAX_LEN: int = 40
    ACCESS_KEY_RESERVED_CHARS: str = "=,"

    # Logging
    LOG_LEVEL: int = logging.INFO
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @staticmethod
    def default_config_dir() -> str:
        """Return ~/.bucketd, or "" when the home directory is unknown."""
        home = _home_dir()
        if not home:
            return ""
        return str(Path(home) / Config.CONFIG_DIR_NAME)

    @staticmethod
    def default_certs_dir() -> str:
        """Return ~/.bucketd/certs, or "" when the home directory is unknown."""
        config_dir = Config.default_config_dir()
        if not config_dir:
            return ""
        return str(Path(config_dir) / Config.CERTS_DIR_NAME)
