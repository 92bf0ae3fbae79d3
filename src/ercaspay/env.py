from __future__ import annotations

import os
from typing import Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, field_validator


class Settings(BaseModel):
    """Typed, immutable client configuration."""

    model_config = ConfigDict(frozen=True)

    base_url: str
    secret_key: str
    verify_ssl: bool = True
    public_key_path: Optional[str] = None
    # None disables the client-side timeout; callers impose their own.
    timeout: Optional[float] = None

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        if not v:
            raise ValueError("Base URL cannot be empty")
        parsed = urlparse(v)
        if parsed.scheme not in {"http", "https"}:
            raise ValueError("Base URL must start with http:// or https://")
        if not parsed.netloc:
            raise ValueError("Base URL must include a host")
        return v

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        if not v:
            raise ValueError("Secret key cannot be empty")
        return v


def get_settings() -> Settings:
    """Return typed settings instance sourced from env vars."""
    base_url = os.environ.get("ERCASPAY_BASE_URL")
    secret_key = os.environ.get("ERCASPAY_SECRET_KEY")
    if not (base_url and secret_key):
        raise ValueError("ERCASPAY_BASE_URL and ERCASPAY_SECRET_KEY are required")
    timeout = os.environ.get("ERCASPAY_TIMEOUT")
    return Settings(
        base_url=base_url,
        secret_key=secret_key,
        verify_ssl=os.environ.get("ERCASPAY_VERIFY_SSL", "true").lower() == "true",
        public_key_path=os.environ.get("ERCASPAY_PUBLIC_KEY_PATH") or None,
        timeout=float(timeout) if timeout else None,
    )
