"""Unit tests for RSA card encryption."""

from __future__ import annotations

import base64
import json
import re
from pathlib import Path

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa
from ercaspay.application.dtos import CardDetailsDTO
from ercaspay.crypto.card_encryptor import CardEncryptor, card_to_bytes
from ercaspay.domain.errors import (
    EncryptionError,
    ErcaspayError,
    InvalidCardDetailsError,
    KeyNotFoundError,
    KeyReadError,
)

BASE64_PATTERN = re.compile(r"^[A-Za-z0-9+/=]+$")

CARD = {
    "pan": "4111111111111111",
    "expiryDate": "1225",
    "cvv": "123",
    "pin": "1234",
}


def _decrypt(private_key: rsa.RSAPrivateKey, encrypted_b64: str) -> bytes:
    return private_key.decrypt(base64.b64decode(encrypted_b64), padding.PKCS1v15())


class TestCardEncryptorConstruction:
    def test_missing_key_file_raises_key_not_found(self, tmp_path: Path) -> None:
        with pytest.raises(KeyNotFoundError, match="Public key file not found"):
            CardEncryptor(tmp_path / "missing.pem")

    def test_directory_is_not_a_key_file(self, tmp_path: Path) -> None:
        with pytest.raises(KeyNotFoundError):
            CardEncryptor(tmp_path)


class TestCardEncryptorEncrypt:
    def test_returns_base64_of_modulus_length(self, public_key_path: Path) -> None:
        encrypted = CardEncryptor(public_key_path).encrypt(CARD)

        assert isinstance(encrypted, str)
        assert BASE64_PATTERN.match(encrypted)
        # 256 raw bytes for a 2048-bit modulus
        assert len(encrypted) == 344

    def test_decrypts_to_original_json(
        self, public_key_path: Path, rsa_private_key: rsa.RSAPrivateKey
    ) -> None:
        encrypted = CardEncryptor(public_key_path).encrypt(CARD)

        plaintext = _decrypt(rsa_private_key, encrypted)
        assert plaintext == (
            b'{"cvv":"123","pin":"1234","expiryDate":"1225","pan":"4111111111111111"}'
        )
        assert json.loads(plaintext) == CARD

    def test_accepts_dto_instance(
        self, public_key_path: Path, rsa_private_key: rsa.RSAPrivateKey
    ) -> None:
        card = CardDetailsDTO(
            pan="5061000000000000", expiry_date="0130", cvv="999", pin="0000"
        )
        encrypted = CardEncryptor(public_key_path).encrypt(card)

        assert _decrypt(rsa_private_key, encrypted) == card_to_bytes(card)

    def test_ciphertext_is_randomised(self, public_key_path: Path) -> None:
        encryptor = CardEncryptor(public_key_path)
        assert encryptor.encrypt(CARD) != encryptor.encrypt(CARD)

    def test_payload_over_pkcs1_limit_raises(self, public_key_path: Path) -> None:
        card = dict(CARD, pan="4" * 250)
        with pytest.raises(EncryptionError, match="at most 245"):
            CardEncryptor(public_key_path).encrypt(card)

    def test_missing_field_fails_before_encrypting(self, public_key_path: Path) -> None:
        card = {k: v for k, v in CARD.items() if k != "pin"}
        with pytest.raises(InvalidCardDetailsError) as exc_info:
            CardEncryptor(public_key_path).encrypt(card)

        assert isinstance(exc_info.value, ErcaspayError)

    @pytest.mark.parametrize("value", ["", " ", "\t\n"])
    def test_blank_field_fails_before_encrypting(
        self, public_key_path: Path, value: str
    ) -> None:
        with pytest.raises(InvalidCardDetailsError, match="Invalid card details"):
            CardEncryptor(public_key_path).encrypt(dict(CARD, cvv=value))

    def test_invalid_card_error_does_not_echo_card_data(
        self, public_key_path: Path
    ) -> None:
        card = dict(CARD, pin=" ")
        with pytest.raises(InvalidCardDetailsError) as exc_info:
            CardEncryptor(public_key_path).encrypt(card)

        assert CARD["pan"] not in str(exc_info.value)
        assert exc_info.value.__cause__ is None

    def test_reads_key_on_every_call(self, public_key_path: Path) -> None:
        encryptor = CardEncryptor(public_key_path)
        encryptor.encrypt(CARD)

        public_key_path.write_text("not a key", encoding="utf-8")
        with pytest.raises(EncryptionError):
            encryptor.encrypt(CARD)


class TestPublicKeyFormats:
    def test_indented_pem_is_accepted(
        self, tmp_path: Path, public_key_pem: str, rsa_private_key: rsa.RSAPrivateKey
    ) -> None:
        path = tmp_path / "indented.pem"
        path.write_text("\n    " + public_key_pem + "\n", encoding="utf-8")

        encrypted = CardEncryptor(path).encrypt(CARD)
        assert json.loads(_decrypt(rsa_private_key, encrypted)) == CARD

    def test_spki_body_with_rsa_header_is_accepted(
        self, tmp_path: Path, public_key_pem: str, rsa_private_key: rsa.RSAPrivateKey
    ) -> None:
        path = tmp_path / "mislabelled.pem"
        path.write_text(
            public_key_pem.replace("PUBLIC KEY", "RSA PUBLIC KEY"), encoding="utf-8"
        )

        encrypted = CardEncryptor(path).encrypt(CARD)
        assert json.loads(_decrypt(rsa_private_key, encrypted)) == CARD

    def test_pkcs1_public_key_is_accepted(
        self, tmp_path: Path, rsa_private_key: rsa.RSAPrivateKey
    ) -> None:
        pem = rsa_private_key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.PKCS1,
        )
        assert b"BEGIN RSA PUBLIC KEY" in pem
        path = tmp_path / "pkcs1.pem"
        path.write_bytes(pem)

        encrypted = CardEncryptor(path).encrypt(CARD)
        assert json.loads(_decrypt(rsa_private_key, encrypted)) == CARD

    def test_malformed_key_raises_encryption_error(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.pem"
        path.write_text(
            "-----BEGIN PUBLIC KEY-----\nAAAA\n-----END PUBLIC KEY-----\n",
            encoding="utf-8",
        )
        with pytest.raises(EncryptionError, match="Invalid public key PEM"):
            CardEncryptor(path).encrypt(CARD)

    def test_non_rsa_key_raises_encryption_error(self, tmp_path: Path) -> None:
        ec_key = ec.generate_private_key(ec.SECP256R1()).public_key()
        path = tmp_path / "ec.pem"
        path.write_bytes(
            ec_key.public_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.PublicFormat.SubjectPublicKeyInfo,
            )
        )
        with pytest.raises(EncryptionError, match="not an RSA key"):
            CardEncryptor(path).encrypt(CARD)

    def test_undecodable_key_file_raises_key_read_error(self, tmp_path: Path) -> None:
        path = tmp_path / "binary.pem"
        path.write_bytes(b"\xff\xfe\x00\x81")
        with pytest.raises(KeyReadError, match="Failed to read public key file"):
            CardEncryptor(path).encrypt(CARD)
