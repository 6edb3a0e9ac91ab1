"""
Routes for the admin API.
"""

import secrets
from typing import Annotated, Any

from fastapi import Depends, FastAPI, HTTPException
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from bucketd.common.exceptions import RequestError
from bucketd.common.models import AddCertificateRequest, CertificateInfo, Credentials

from .services import CertificateService

security = HTTPBasic()


class AdminRoutes:
    """Handles FastAPI routes for the admin API."""

    def __init__(self, service: CertificateService, credentials: Credentials | None):
        self.service = service
        self.credentials = credentials

    def setup_routes(self, app: FastAPI) -> None:
        """Setup API routes on the FastAPI app."""

        app.get("/health")(self.health)
        if self.credentials is None:
            return
        auth = [Depends(self.authorize)]
        app.get("/admin/v1/certificates", dependencies=auth)(self.list_certificates)
        app.post("/admin/v1/certificates", dependencies=auth)(self.add_certificate)
        app.delete("/admin/v1/certificates/{label}", dependencies=auth)(
            self.remove_certificate
        )

    def authorize(
        self, credentials: Annotated[HTTPBasicCredentials, Depends(security)]
    ) -> None:
        """Check basic auth against the active credentials."""
        expected = self.credentials
        user_ok = secrets.compare_digest(
            credentials.username.encode(), expected.access_key.encode()
        )
        password_ok = secrets.compare_digest(
            credentials.password.encode(),
            expected.secret_key.get_secret_value().encode(),
        )
        if not (user_ok and password_ok):
            raise HTTPException(
                401, "Invalid credentials", headers={"WWW-Authenticate": "Basic"}
            )

    async def health(self) -> dict[str, Any]:
        """Handle /health endpoint."""
        return self.service.health()

    async def list_certificates(self) -> list[CertificateInfo]:
        """Handle GET /admin/v1/certificates."""
        try:
            return self.service.list_certificates()
        except RequestError as e:
            raise HTTPException(e.status_code, str(e))

    async def add_certificate(self, req: AddCertificateRequest) -> CertificateInfo:
        """Handle POST /admin/v1/certificates."""
        try:
            return self.service.add_certificate(req)
        except RequestError as e:
            raise HTTPException(e.status_code, str(e))

    async def remove_certificate(self, label: str) -> dict[str, str]:
        """Handle DELETE /admin/v1/certificates/{label}."""
        try:
            return self.service.remove_certificate(label)
        except RequestError as e:
            raise HTTPException(e.status_code, str(e))
