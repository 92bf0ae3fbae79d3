"""Shared pytest fixtures for the Ercaspay client tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from ercaspay.env import Settings


@pytest.fixture(scope="session")
def rsa_private_key() -> rsa.RSAPrivateKey:
    """Generate a 2048-bit RSA key pair once per test session."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def public_key_pem(rsa_private_key: rsa.RSAPrivateKey) -> str:
    """SubjectPublicKeyInfo PEM for the session key."""
    return (
        rsa_private_key.public_key()
        .public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        .decode("utf-8")
    )


@pytest.fixture
def public_key_path(tmp_path: Path, public_key_pem: str) -> Path:
    """Write the public key PEM to a temporary file."""
    path = tmp_path / "public_key.pem"
    path.write_text(public_key_pem, encoding="utf-8")
    return path


@pytest.fixture
def settings(public_key_path: Path) -> Settings:
    return Settings(
        base_url="https://api.merchant.staging.ercaspay.com",
        secret_key="ECRS-TEST-SK-secret",
        public_key_path=str(public_key_path),
    )
