"""Business logic for the admin API.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from bucketd.common.exceptions import CertificateError, RequestError
from bucketd.common.models import CertificateInfo

if TYPE_CHECKING:
    from bucketd.common.interfaces import ICertificateStore
    from bucketd.common.models import AddCertificateRequest, StartupConfig
    from bucketd.tls.manager import CertificateEntry


def _info(entry: CertificateEntry) -> CertificateInfo:
    return CertificateInfo(
        label=entry.label,
        subject=entry.leaf.subject.rfc4514_string(),
        dns_names=entry.dns_names(),
        not_after=entry.leaf.not_valid_after_utc.isoformat(),
        cert_file=str(entry.cert_path),
    )


class CertificateService:
    """Handles certificate administration for a running server."""

    def __init__(
        self,
        startup: StartupConfig,
        manager: ICertificateStore | None,
        logger: logging.Logger | None = None,
    ):
        self.startup = startup
        self.manager = manager
        self.logger = logger or logging.getLogger(__name__)

    def _require_manager(self) -> ICertificateStore:
        if self.manager is None:
            msg = "TLS is not configured on this server"
            raise RequestError(msg, 404)
        return self.manager

    def health(self) -> dict[str, Any]:
        return {"status": "ok", "secure": self.manager is not None}

    def list_certificates(self) -> list[CertificateInfo]:
        manager = self._require_manager()
        return [_info(entry) for entry in manager.entries()]

    def add_certificate(self, req: AddCertificateRequest) -> CertificateInfo:
        manager = self._require_manager()
        try:
            manager.add_certificate(req.label, req.cert_file, req.key_file)
        except CertificateError as e:
            self.logger.warning("Rejected certificate for %s: %s", req.label, e)
            raise RequestError(str(e), 400) from e
        return _info(manager.get_certificate(req.label))

    def remove_certificate(self, label: str) -> dict[str, str]:
        manager = self._require_manager()
        try:
            manager.remove_certificate(label)
        except CertificateError as e:
            raise RequestError(str(e), 409) from e
        except KeyError as e:
            raise RequestError(f"No certificate for {label}", 404) from e
        return {"removed": label}
