"""Domain-specific exceptions."""

from __future__ import annotations

from typing import Any, Optional


class ErcaspayError(Exception):
    """Base class for every error raised by this package."""


class KeyNotFoundError(ErcaspayError):
    """Raised when the RSA public key file does not exist."""


class KeyReadError(ErcaspayError):
    """Raised when the RSA public key file exists but cannot be read."""


class EncryptionError(ErcaspayError):
    """Raised when card data cannot be encrypted with the configured key."""


class InvalidCardDetailsError(EncryptionError, ValueError):
    """Raised when a card field is missing or blank."""


class InvalidMethodError(ErcaspayError, ValueError):
    """Raised when a request is dispatched without an HTTP method."""


class ApiError(ErcaspayError):
    """Raised when a call to the Ercaspay API fails.

    ``response_body`` is ``None`` when the request never got a response
    (DNS, connection or timeout failures).
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        response_body: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response_body = response_body

    def __repr__(self) -> str:
        return f"ApiError(status_code={self.status_code}, message={self.message!r})"
