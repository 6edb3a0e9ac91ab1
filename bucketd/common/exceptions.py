"""
Custom exceptions for startup configuration.
"""

from __future__ import annotations


class ConfigError(Exception):
    """Exception for configuration defects that must stop the server."""

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint

    def __str__(self) -> str:
        if self.hint:
            return f"{self.hint}: {self.message}"
        return self.message


class InvalidDomainError(ConfigError):
    """Exception for a syntactically invalid domain name."""


class OverlappingDomainError(ConfigError):
    """Exception for domains that are suffixes of each other."""


class AmbiguousKMSError(ConfigError):
    """Exception for more than one KMS backend configured at once."""


class InvalidKMSError(ConfigError):
    """Exception for malformed KMS key material or endpoints."""


class InvalidCredentialsError(ConfigError):
    """Exception for credentials that fail validation."""


class CertificateError(ConfigError):
    """Exception for unreadable or malformed certificate material."""


class RequestError(Exception):
    """Exception for admin requests that cannot be served."""

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code
