"""Async Python client for the Ercaspay payment gateway."""

from .application.dtos import (
    BrowserDetails,
    CardDetailsDTO,
    Device,
    PayerDeviceDTO,
    RequestContext,
)
from .crypto.card_encryptor import CardEncryptor
from .domain.errors import (
    ApiError,
    EncryptionError,
    ErcaspayError,
    InvalidCardDetailsError,
    InvalidMethodError,
    KeyNotFoundError,
    KeyReadError,
)
from .env import Settings, get_settings
from .infrastructure.ercaspay_client import ErcaspayClient
from .logging_config import configure_logging

__all__ = [
    "ApiError",
    "BrowserDetails",
    "CardDetailsDTO",
    "CardEncryptor",
    "Device",
    "EncryptionError",
    "ErcaspayClient",
    "ErcaspayError",
    "InvalidCardDetailsError",
    "InvalidMethodError",
    "KeyNotFoundError",
    "KeyReadError",
    "PayerDeviceDTO",
    "RequestContext",
    "Settings",
    "configure_logging",
    "get_settings",
]
