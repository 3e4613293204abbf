"""Custom exceptions for the storefront core."""
from __future__ import annotations

from typing import Any


class StorefrontException(Exception):
    """Base exception for all storefront errors."""

    def __init__(self, message: str, *args: object) -> None:
        super().__init__(message, *args)
        self.message = message


class ValidationException(StorefrontException):
    """Client-side validation errors, raised before any request is sent."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class ApiException(StorefrontException):
    """Non-2xx response or transport failure from the backend."""

    def __init__(
        self,
        message: str,
        status: int | None = None,
        payload: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.payload = payload


class AuthenticationException(ApiException):
    """401 from the backend; the audience's credentials were cleared."""

    def __init__(self, message: str, audience: str, payload: Any | None = None) -> None:
        super().__init__(message, status=401, payload=payload)
        self.audience = audience


class SchemaException(ApiException):
    """Successful response whose body does not match the expected schema."""

    pass


class ConfigurationException(StorefrontException):
    """Configuration errors."""

    pass
