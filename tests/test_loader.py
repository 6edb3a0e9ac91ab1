import logging
import os
from pathlib import Path

import pytest
from conftest import write_cert_pair

from bucketd.common.exceptions import CertificateError
from bucketd.tls.loader import NOT_CONFIGURED, load_certificate_topology


def _warnings(caplog: pytest.LogCaptureFixture) -> list[str]:
    return [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]


def test_not_configured_without_root_pair(tmp_path: Path) -> None:
    assert load_certificate_topology(tmp_path) is NOT_CONFIGURED


def test_not_configured_with_incomplete_root_pair(tmp_path: Path) -> None:
    write_cert_pair(tmp_path, "localhost")
    (tmp_path / "private.key").unlink()

    tls = load_certificate_topology(tmp_path)

    assert tls.secure is False
    assert tls.manager is None
    assert tls.certs == ()


def test_root_only(certs_dir: Path) -> None:
    tls = load_certificate_topology(certs_dir)

    assert tls.secure is True
    assert len(tls.certs) == 1
    assert tls.manager is not None
    assert tls.manager.labels() == ["default"]


def test_malformed_root_pair_is_fatal(certs_dir: Path) -> None:
    (certs_dir / "public.crt").write_text("garbage")
    with pytest.raises(CertificateError):
        load_certificate_topology(certs_dir)


def test_incomplete_subdirectory_is_skipped(
    certs_dir: Path, caplog: pytest.LogCaptureFixture
) -> None:
    write_cert_pair(certs_dir / "foo.com", "foo.com")
    write_cert_pair(certs_dir / "bar.com", "bar.com")
    (certs_dir / "bar.com" / "private.key").unlink()

    with caplog.at_level(logging.WARNING, logger="bucketd"):
        tls = load_certificate_topology(certs_dir)

    assert tls.manager is not None
    assert tls.manager.labels() == ["default", "foo.com"]
    warnings = _warnings(caplog)
    assert len(warnings) == 1
    assert "bar.com" in warnings[0]


def test_empty_subdirectory_is_silent(
    certs_dir: Path, caplog: pytest.LogCaptureFixture
) -> None:
    (certs_dir / "empty").mkdir()

    with caplog.at_level(logging.WARNING, logger="bucketd"):
        tls = load_certificate_topology(certs_dir)

    assert tls.manager is not None
    assert tls.manager.labels() == ["default"]
    assert _warnings(caplog) == []


def test_skips_ca_and_dotdot_dirs(certs_dir: Path) -> None:
    write_cert_pair(certs_dir / "CAs", "ca.example.com")
    write_cert_pair(certs_dir / "..data", "data.example.com")
    (certs_dir / "notes.txt").write_text("not a directory")

    tls = load_certificate_topology(certs_dir)

    assert tls.manager is not None
    assert tls.manager.labels() == ["default"]


def test_malformed_pair_warns(
    certs_dir: Path, tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    bad = certs_dir / "bad.com"
    write_cert_pair(bad, "bad.com")
    # Key from another pair does not match the certificate.
    _, other_key = write_cert_pair(tmp_path / "other", "other.com")
    (bad / "private.key").write_bytes(other_key.read_bytes())

    with caplog.at_level(logging.WARNING, logger="bucketd"):
        tls = load_certificate_topology(certs_dir)

    assert tls.manager is not None
    assert tls.manager.labels() == ["default"]
    warnings = _warnings(caplog)
    assert len(warnings) == 1
    assert "bad.com" in warnings[0]


def test_default_label_is_reserved(
    certs_dir: Path, caplog: pytest.LogCaptureFixture
) -> None:
    write_cert_pair(certs_dir / "default", "other.com")

    with caplog.at_level(logging.WARNING, logger="bucketd"):
        tls = load_certificate_topology(certs_dir)

    assert tls.manager is not None
    assert tls.manager.default_entry().cert_path == certs_dir / "public.crt"
    assert len(_warnings(caplog)) == 1


def test_default_label_with_trailing_dot_is_reserved(
    certs_dir: Path, caplog: pytest.LogCaptureFixture
) -> None:
    write_cert_pair(certs_dir / "default.", "evil.com")

    with caplog.at_level(logging.WARNING, logger="bucketd"):
        tls = load_certificate_topology(certs_dir)

    assert tls.manager is not None
    assert tls.manager.labels() == ["default"]
    default = tls.manager.default_entry()
    assert default.cert_path == certs_dir / "public.crt"
    assert "localhost" in default.leaf.subject.rfc4514_string()
    assert len(_warnings(caplog)) == 1


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
def test_symlinks(certs_dir: Path, tmp_path: Path) -> None:
    target = tmp_path / "elsewhere" / "linked.com"
    write_cert_pair(target, "linked.com")
    (certs_dir / "linked.com").symlink_to(target, target_is_directory=True)
    (certs_dir / "broken.com").symlink_to(tmp_path / "missing")
    (certs_dir / "file.com").symlink_to(certs_dir / "public.crt")
    (certs_dir / "loop").symlink_to(certs_dir, target_is_directory=True)
    (certs_dir / "twice.com").symlink_to(target, target_is_directory=True)

    tls = load_certificate_topology(certs_dir)

    assert tls.manager is not None
    assert tls.manager.labels() == ["default", "linked.com"]


def test_rescan_is_idempotent(certs_dir: Path) -> None:
    write_cert_pair(certs_dir / "foo.com", "foo.com")
    write_cert_pair(certs_dir / "bar.org", "bar.org")

    first = load_certificate_topology(certs_dir)
    second = load_certificate_topology(certs_dir)

    assert first.manager is not None
    assert second.manager is not None
    assert first.manager.labels() == second.manager.labels()
    assert [e.cert_path for e in first.manager.entries()] == [
        e.cert_path for e in second.manager.entries()
    ]


def test_sni_selects_subdirectory_certificate(certs_dir: Path) -> None:
    write_cert_pair(certs_dir / "foo.com", "foo.com", ["foo.com", "*.foo.com"])

    tls = load_certificate_topology(certs_dir)

    assert tls.manager is not None
    assert tls.manager.get_certificate("foo.com").label == "foo.com"
    assert tls.manager.get_certificate("s3.foo.com").label == "foo.com"
    assert tls.manager.get_certificate("other.net").label == "default"
