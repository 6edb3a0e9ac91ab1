import logging
from pathlib import Path
from typing import Any

import pytest

from bucketd.common.config import Config
from bucketd.common.env import Environment, parse_bool
from bucketd.common.exceptions import ConfigError, InvalidDomainError
from bucketd.common.logging_utils import (
    AnonymizeFilter,
    JSONFormatter,
    configure_console,
)


def test_config_class_attributes() -> None:
    config = Config()
    assert config.DEFAULT_ADDRESS == ":9000"
    assert config.KMS_KEY_LEN == 32  # noqa: PLR2004
    assert config.CERTS_CA_DIR_NAME == "CAs"
    assert config.DEFAULT_CERT_LABEL == "default"
    assert config.ENV_DOMAIN.startswith(config.ENV_PREFIX)


def test_config_paths(monkeypatch: Any, tmp_path: Path) -> None:
    """Default directories live under the home directory."""
    monkeypatch.setenv("HOME", str(tmp_path))

    assert Config.default_config_dir() == str(tmp_path / ".bucketd")
    assert Config.default_certs_dir() == str(tmp_path / ".bucketd" / "certs")


def test_config_paths_without_home(monkeypatch: Any) -> None:
    def no_home() -> Path:
        msg = "Could not determine home directory"
        raise RuntimeError(msg)

    monkeypatch.setattr(Path, "home", staticmethod(no_home))

    assert Config.default_config_dir() == ""
    assert Config.default_certs_dir() == ""


def test_environment_lookup() -> None:
    env = Environment({"A": "", "B": "x,y"})

    assert env.is_set("A")
    assert not env.is_set("C")
    assert env.get("C", "fallback") == "fallback"


@pytest.mark.parametrize(
    ("value", "expected"),
    [("on", True), ("ON", True), ("true", True), ("off", False), ("0", False)],
)
def test_parse_bool(value: str, expected: bool) -> None:
    assert parse_bool(value) is expected


def test_get_bool_rejects_unknown_value() -> None:
    env = Environment({"BUCKETD_BROWSER": "perhaps"})
    with pytest.raises(ConfigError, match="Invalid BUCKETD_BROWSER value"):
        env.get_bool("BUCKETD_BROWSER", "on")


def test_config_error_message() -> None:
    err = InvalidDomainError("Unknown value `a b`", "Invalid BUCKETD_DOMAIN value")
    assert str(err) == "Invalid BUCKETD_DOMAIN value: Unknown value `a b`"
    assert err.message == "Unknown value `a b`"
    assert str(ConfigError("plain")) == "plain"


def test_anonymize_filter_masks_addresses() -> None:
    record = logging.LogRecord(
        "bucketd", logging.INFO, __file__, 1, "listening on %s", ("10.1.2.3",), None
    )
    AnonymizeFilter().filter(record)
    assert record.getMessage() == "listening on <ip>"


def test_json_formatter() -> None:
    record = logging.LogRecord(
        "bucketd.test", logging.WARNING, __file__, 1, "hello %s", ("world",), None
    )
    line = JSONFormatter().format(record)
    assert '"message": "hello world"' in line
    assert '"level": "WARNING"' in line


def test_configure_console_levels() -> None:
    logger = logging.getLogger("bucketd")
    try:
        assert configure_console(quiet=True).level == logging.WARNING
        assert configure_console(quiet=True, debug=True).level == logging.DEBUG
        configure_console(json_output=True, anonymous=True)
        handler = logger.handlers[0]
        assert isinstance(handler.formatter, JSONFormatter)
        assert any(isinstance(f, AnonymizeFilter) for f in handler.filters)
        configure_console()
        assert not any(isinstance(f, AnonymizeFilter) for f in handler.filters)
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
        logger.setLevel(logging.NOTSET)
