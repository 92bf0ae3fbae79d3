"""RSA encryption of card fields for the card initialisation endpoint.

The gateway decrypts with RSA PKCS#1 v1.5, so the padding here must stay
PKCS#1 v1.5. OAEP ciphertext is rejected server-side without any client
error.
"""

from __future__ import annotations

import base64
import json
import logging
import os
from typing import Any, Mapping, Union

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from pydantic import ValidationError

from ..application.dtos import CardDetailsDTO
from ..domain.errors import (
    EncryptionError,
    InvalidCardDetailsError,
    KeyNotFoundError,
    KeyReadError,
)

logger = logging.getLogger(__name__)

RSA_PEM_MARKER = "RSA PUBLIC KEY"
GENERIC_PEM_MARKER = "PUBLIC KEY"
PKCS1_V15_OVERHEAD = 11


def card_to_bytes(card: CardDetailsDTO) -> bytes:
    """Serialize card fields to compact JSON bytes in the gateway's key order."""
    return json.dumps(
        card.model_dump(by_alias=True), separators=(",", ":")
    ).encode("utf-8")


def load_rsa_public_key(pem_str: str) -> rsa.RSAPublicKey:
    """Load an RSA public key from PEM text.

    Some distributed key files label a SubjectPublicKeyInfo body with an
    ``RSA PUBLIC KEY`` header. The header is normalised to the generic form
    first; a genuine PKCS#1 body is loaded as-is if that fails.
    """
    pem_str = pem_str.strip()
    candidates = [pem_str.replace(RSA_PEM_MARKER, GENERIC_PEM_MARKER)]
    if RSA_PEM_MARKER in pem_str:
        candidates.append(pem_str)

    last_error: Exception = ValueError("No PEM data")
    for candidate in candidates:
        try:
            key = serialization.load_pem_public_key(candidate.encode("utf-8"))
        except (ValueError, TypeError) as e:
            last_error = e
            continue
        if not isinstance(key, rsa.RSAPublicKey):
            raise EncryptionError("Public key is not an RSA key")
        return key
    raise EncryptionError(f"Invalid public key PEM: {last_error}") from last_error


class CardEncryptor:
    """Encrypts card details with the gateway's RSA public key.

    The key file is re-read on every call so a rotated key on disk is picked
    up without rebuilding the encryptor.
    """

    def __init__(self, public_key_path: Union[str, os.PathLike[str]]) -> None:
        if not os.path.isfile(public_key_path):
            raise KeyNotFoundError(f"Public key file not found: {public_key_path}")
        self.public_key_path = os.fspath(public_key_path)

    def _read_public_key(self) -> str:
        try:
            with open(self.public_key_path, encoding="utf-8") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise KeyReadError(
                f"Failed to read public key file: {self.public_key_path}"
            ) from e

    def encrypt(self, card: Union[CardDetailsDTO, Mapping[str, Any]]) -> str:
        """Return the base64 RSA/PKCS#1 v1.5 ciphertext of the card JSON.

        Raises ``InvalidCardDetailsError`` for missing or blank fields before
        the key file is read.
        """
        if not isinstance(card, CardDetailsDTO):
            try:
                card = CardDetailsDTO.model_validate(card)
            except ValidationError as e:
                raise InvalidCardDetailsError(
                    f"Invalid card details: {e.error_count()} field error(s)"
                ) from None

        public_key = load_rsa_public_key(self._read_public_key())
        plaintext = card_to_bytes(card)

        max_length = public_key.key_size // 8 - PKCS1_V15_OVERHEAD
        if len(plaintext) > max_length:
            raise EncryptionError(
                f"Encryption failed: card payload is {len(plaintext)} bytes, "
                f"key allows at most {max_length}"
            )

        try:
            ciphertext = public_key.encrypt(plaintext, padding.PKCS1v15())
        except ValueError as e:
            raise EncryptionError(f"Encryption failed: {e}") from e

        logger.debug("Encrypted card payload with %d-bit key", public_key.key_size)
        return base64.b64encode(ciphertext).decode("utf-8")
