"""
Configuration directory resolution from command, group and default values.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from pathlib import Path

from bucketd.common.config import Config
from bucketd.common.exceptions import ConfigError
from bucketd.common.models import ConfigDirectory

logger = logging.getLogger(__name__)


def mkdir_all_ignore_perm(path: Path) -> None:
    """Create path and its parents, ignoring permission errors.

    The directory may already be mounted read-only (e.g. in containers),
    so only non-permission failures are reported.
    """
    try:
        path.mkdir(mode=Config.DIR_MODE, parents=True, exist_ok=True)
    except PermissionError:
        logger.debug("Ignoring permission error creating %s", path)


def resolve_config_dir(
    option: str,
    local_value: str | None,
    parent_value: str | None,
    default_provider: Callable[[], str],
) -> tuple[ConfigDirectory, bool]:
    """
    Resolve one directory option to an absolute, existing path.

    Args:
        option: Option name used in error messages, e.g. "config-dir"
        local_value: Value set on the invoked command, None if not set
        parent_value: Value set on an enclosing command group, None if not set
        default_provider: Returns the default directory, "" if unknown

    Returns:
        The resolved directory and whether it was explicitly set
    """
    if local_value is not None:
        directory = local_value
        dir_set = True
    elif parent_value is not None:
        directory = parent_value
        dir_set = True
        # A parent value equal to the default is indistinguishable from unset.
        if directory in ("", default_provider()):
            dir_set = False
    else:
        directory = default_provider()
        dir_set = False
        if not directory:
            msg = f"{option} option must be provided"
            raise ConfigError(msg, "Invalid arguments specified")

    if not directory:
        msg = f"{option} directory cannot be empty"
        raise ConfigError(msg, "empty directory")

    try:
        dir_abs = Path(os.path.abspath(directory))
    except (OSError, ValueError) as err:
        msg = f"Unable to fetch absolute path for {option}={directory}"
        raise ConfigError(str(err), msg) from err

    try:
        mkdir_all_ignore_perm(dir_abs)
    except OSError as err:
        msg = f"Unable to create directory specified {option}={directory}"
        raise ConfigError(str(err), msg) from err

    return ConfigDirectory(path=dir_abs, explicitly_set=dir_set), dir_set


def resolve_directories(
    config_local: str | None,
    config_parent: str | None,
    certs_local: str | None,
    certs_parent: str | None,
    default_config_dir: Callable[[], str] = Config.default_config_dir,
    default_certs_dir: Callable[[], str] = Config.default_certs_dir,
) -> tuple[ConfigDirectory, ConfigDirectory, ConfigDirectory]:
    """Resolve the config, certs and certs CA directories together."""
    config_dir, config_set = resolve_config_dir(
        "config-dir", config_local, config_parent, default_config_dir
    )
    certs_dir, certs_set = resolve_config_dir(
        "certs-dir", certs_local, certs_parent, default_certs_dir
    )

    # certs-dir inherits from an explicit config-dir
    if not certs_set and config_set:
        certs_dir = ConfigDirectory(path=config_dir.path / Config.CERTS_DIR_NAME)

    ca_dir = ConfigDirectory(path=certs_dir.path / Config.CERTS_CA_DIR_NAME)
    try:
        mkdir_all_ignore_perm(ca_dir.path)
    except OSError as err:
        msg = f"Unable to create certs CA directory at {ca_dir.path}"
        raise ConfigError(str(err), msg) from err

    logger.debug(
        "Resolved directories: config=%s certs=%s CAs=%s",
        config_dir.path,
        certs_dir.path,
        ca_dir.path,
    )
    return config_dir, certs_dir, ca_dir
