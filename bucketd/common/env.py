"""
Environment lookup helpers.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from bucketd.common.exceptions import ConfigError

_TRUE_VALUES = frozenset({"on", "true", "yes", "enable", "enabled", "1"})
_FALSE_VALUES = frozenset({"off", "false", "no", "disable", "disabled", "0"})


class Environment:
    """Read-only view over environment variables."""

    def __init__(self, environ: Mapping[str, str] | None = None):
        self._environ = dict(os.environ if environ is None else environ)

    def get(self, key: str, default: str = "") -> str:
        """Get a value, or default when the variable is not present."""
        return self._environ.get(key, default)

    def is_set(self, key: str) -> bool:
        """Check whether a variable is present, even when empty."""
        return key in self._environ

    def get_bool(self, key: str, default: str) -> bool:
        """Parse a boolean switch, raising ConfigError on unknown values."""
        value = self.get(key, default)
        try:
            return parse_bool(value)
        except ValueError as err:
            msg = f"Invalid {key} value in environment variable"
            raise ConfigError(str(err), msg) from err


def parse_bool(value: str) -> bool:
    """Parse on/off style switches."""
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    msg = f"'{value}' is not a valid boolean value"
    raise ValueError(msg)
