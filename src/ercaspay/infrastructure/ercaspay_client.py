from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Optional, Type
from types import TracebackType

import httpx

from ..application.dtos import PayerDeviceDTO
from ..crypto.card_encryptor import CardEncryptor
from ..domain.errors import ApiError, InvalidMethodError, KeyNotFoundError
from ..env import Settings
from ..logging_config import LOGGER_NAME
from .http.http_client import AsyncHttpClient


class ErcaspayClient:
    """Asynchronous client for the Ercaspay payment gateway API.

    Each public coroutine maps to one gateway endpoint and returns the decoded
    JSON response body unchanged. Failures raise ``ApiError``.
    """

    def __init__(
        self,
        settings: Settings,
        logger: Optional[logging.Logger] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings
        self.logger = logger or logging.getLogger(LOGGER_NAME)
        self.logger.info(
            "Initializing HTTP client base_url=%s verify_ssl=%s",
            settings.base_url,
            settings.verify_ssl,
        )
        self._http = AsyncHttpClient(
            settings.base_url,
            settings.secret_key,
            verify=settings.verify_ssl,
            timeout=settings.timeout,
            transport=transport,
        )

    async def _make_request(
        self,
        relative_url: str,
        method: Optional[str],
        data: Optional[Dict[str, Any]] = None,
    ) -> Any:
        if not method:
            self.logger.error("Method cannot be empty when calling _make_request")
            raise InvalidMethodError("Method cannot be empty")

        method = method.upper()
        self.logger.info("Making API request method=%s url=%s", method, relative_url)
        try:
            response = await self._http.request(
                method,
                relative_url,
                json=data if method != "GET" else None,
            )
        except ApiError as e:
            if e.response_body is None:
                self.logger.error("API request error: %s", e.message)
            else:
                self.logger.error(
                    "API error response status=%s body=%s",
                    e.status_code,
                    e.response_body,
                )
            raise
        self.logger.info("API request successful")
        return response

    async def initiate_transaction(self, data: Dict[str, Any]) -> Any:
        self.logger.info("Initiating payment transaction")
        response = await self._make_request("/api/v1/payment/initiate", "POST", data)
        self.logger.info("Payment transaction initiated successfully")
        return response

    async def verify_transaction(self, transaction_ref: str) -> Any:
        self.logger.info("Verifying transaction ref=%s", transaction_ref)
        response = await self._make_request(
            f"/api/v1/payment/transaction/verify/{transaction_ref}", "GET"
        )
        self.logger.info("Transaction verification completed ref=%s", transaction_ref)
        return response

    async def initiate_bank_transfer(self, transaction_ref: str) -> Any:
        self.logger.info("Initiating bank transfer ref=%s", transaction_ref)
        response = await self._make_request(
            f"/api/v1/payment/bank-transfer/request-bank-account/{transaction_ref}",
            "GET",
        )
        self.logger.info("Bank transfer initiated successfully ref=%s", transaction_ref)
        return response

    async def initiate_ussd_transaction(
        self, transaction_ref: str, bank_name: str
    ) -> Any:
        self.logger.info("Initiating USSD transaction ref=%s", transaction_ref)
        response = await self._make_request(
            f"/api/v1/payment/ussd/request-ussd-code/{transaction_ref}",
            "POST",
            {"bank_name": bank_name},
        )
        self.logger.info(
            "USSD transaction initiated successfully ref=%s", transaction_ref
        )
        return response

    async def get_bank_list_for_ussd(self) -> Any:
        self.logger.info("Fetching USSD supported banks list")
        response = await self._make_request(
            "/api/v1/payment/ussd/supported-banks", "GET"
        )
        self.logger.debug("Retrieved USSD supported banks")
        return response

    def generate_payment_reference_uuid(self) -> str:
        """Return a fresh UUID4 string for use as a payment reference."""
        reference = str(uuid.uuid4())
        self.logger.info("Generated payment reference UUID %s", reference)
        return reference

    async def fetch_transaction_details(self, transaction_ref: str) -> Any:
        self.logger.info("Fetching transaction details ref=%s", transaction_ref)
        response = await self._make_request(
            f"/api/v1/payment/details/{transaction_ref}", "GET"
        )
        self.logger.info("Transaction details retrieved ref=%s", transaction_ref)
        return response

    async def fetch_transaction_status(
        self,
        transaction_ref: str,
        payment_reference: str,
        payment_method: str,
    ) -> Any:
        self.logger.info("Fetching transaction status ref=%s", transaction_ref)
        response = await self._make_request(
            f"/api/v1/payment/status/{transaction_ref}",
            "POST",
            {"payment_method": payment_method, "reference": payment_reference},
        )
        self.logger.info("Transaction status retrieved ref=%s", transaction_ref)
        return response

    async def cancel_transaction(self, transaction_ref: str) -> Any:
        self.logger.info("Cancelling transaction ref=%s", transaction_ref)
        response = await self._make_request(
            f"/api/v1/payment/cancel/{transaction_ref}", "GET"
        )
        self.logger.info("Transaction cancelled successfully ref=%s", transaction_ref)
        return response

    def _card_encryptor(self) -> CardEncryptor:
        if not self.settings.public_key_path:
            raise KeyNotFoundError("No public key path configured")
        return CardEncryptor(self.settings.public_key_path)

    async def initiate_card_transaction(
        self,
        *,
        request: Any,
        transaction_ref: str,
        card_number: str,
        card_expiry_month: str,
        card_expiry_year: str,
        card_cvv: str,
        pin: str,
    ) -> Any:
        """Encrypt the card, capture the payer device and initialise a card payment.

        ``request`` is the inbound web request of the paying customer; any object
        with a ``headers`` mapping and an ``ip`` or ``client.host`` will do.
        """
        self.logger.info("Initiating card transaction ref=%s", transaction_ref)

        device_details = PayerDeviceDTO.from_request(request)
        card = {
            "cvv": card_cvv,
            "pin": pin,
            "expiryDate": f"{card_expiry_month}{card_expiry_year}",
            "pan": card_number,
        }
        encrypted_card = self._card_encryptor().encrypt(card)

        response = await self._make_request(
            "/api/v1/payment/cards/initialize",
            "POST",
            {
                "transactionReference": transaction_ref,
                "payload": encrypted_card,
                "deviceDetails": device_details.to_dict(),
            },
        )
        self.logger.info(
            "Card transaction initiated successfully ref=%s", transaction_ref
        )
        return response

    async def submit_card_otp(
        self, transaction_ref: str, payment_reference: str, otp: str
    ) -> Any:
        self.logger.info("Submitting card OTP ref=%s", transaction_ref)
        response = await self._make_request(
            f"/api/v1/payment/cards/otp/submit/{transaction_ref}",
            "POST",
            {"otp": otp, "gatewayReference": payment_reference},
        )
        self.logger.info("OTP submission completed ref=%s", transaction_ref)
        return response

    async def resend_card_otp(
        self, transaction_ref: str, payment_reference: str
    ) -> Any:
        self.logger.info("Requesting OTP resend ref=%s", transaction_ref)
        response = await self._make_request(
            f"/api/v1/payment/cards/otp/resend/{transaction_ref}",
            "POST",
            {"gatewayReference": payment_reference},
        )
        self.logger.info("OTP resend completed ref=%s", transaction_ref)
        return response

    async def get_card_details(self, transaction_ref: str) -> Any:
        self.logger.info("Fetching saved card details ref=%s", transaction_ref)
        response = await self._make_request(
            f"/api/v1/payment/cards/details/{transaction_ref}", "GET"
        )
        self.logger.info("Card details retrieved successfully ref=%s", transaction_ref)
        return response

    async def verify_card_transaction(self, transaction_ref: str) -> Any:
        self.logger.info("Verifying card transaction ref=%s", transaction_ref)
        response = await self._make_request(
            "/api/v1/payment/cards/transaction/verify",
            "POST",
            {"reference": transaction_ref},
        )
        self.logger.info(
            "Card transaction verification completed ref=%s", transaction_ref
        )
        return response

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "ErcaspayClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()
