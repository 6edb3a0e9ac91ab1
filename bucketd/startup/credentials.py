"""
Validation of credential overrides inherited from the environment.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import SecretStr

from bucketd.common.config import Config
from bucketd.common.exceptions import InvalidCredentialsError
from bucketd.common.models import Credentials

if TYPE_CHECKING:
    from bucketd.common.env import Environment

_HINT = "Unable to validate credentials inherited from the shell environment"


def create_credentials(access_key: str, secret_key: str) -> Credentials:
    """Validate an access/secret key pair."""
    if not (Config.ACCESS_KEY_MIN_LEN <= len(access_key) <= Config.ACCESS_KEY_MAX_LEN):
        msg = (
            f"access key length should be between {Config.ACCESS_KEY_MIN_LEN} "
            f"and {Config.ACCESS_KEY_MAX_LEN}"
        )
        raise InvalidCredentialsError(msg, _HINT)
    if any(ch in Config.ACCESS_KEY_RESERVED_CHARS for ch in access_key):
        msg = "access key contains one of reserved characters '=' or ','"
        raise InvalidCredentialsError(msg, _HINT)
    if not (Config.SECRET_KEY_MIN_LEN <= len(secret_key) <= Config.SECRET_KEY_MAX_LEN):
        msg = (
            f"secret key length should be between {Config.SECRET_KEY_MIN_LEN} "
            f"and {Config.SECRET_KEY_MAX_LEN}"
        )
        raise InvalidCredentialsError(msg, _HINT)
    return Credentials(access_key=access_key, secret_key=SecretStr(secret_key))


def resolve_credentials(env: Environment) -> Credentials | None:
    """Resolve credential overrides; the root pair wins over the access pair."""
    credentials = None
    if env.is_set(Config.ENV_ACCESS_KEY) or env.is_set(Config.ENV_SECRET_KEY):
        credentials = create_credentials(
            env.get(Config.ENV_ACCESS_KEY), env.get(Config.ENV_SECRET_KEY)
        )
    if env.is_set(Config.ENV_ROOT_USER) or env.is_set(Config.ENV_ROOT_PASSWORD):
        credentials = create_credentials(
            env.get(Config.ENV_ROOT_USER), env.get(Config.ENV_ROOT_PASSWORD)
        )
    return credentials
