"""Data Transfer Objects for card payments and payer device capture."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_IP_ADDRESS = "127.0.0.1"
IPV4_MAPPED_PREFIX = "::ffff:"


class CardDetailsDTO(BaseModel):
    """Sensitive card fields, encrypted before they leave the process.

    Field declaration order is the JSON key order sent to the gateway.
    Missing or blank fields raise pydantic's ``ValidationError``;
    ``CardEncryptor.encrypt`` reports them as ``InvalidCardDetailsError``.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    cvv: str = Field(..., min_length=1)
    pin: str = Field(..., min_length=1)
    expiry_date: str = Field(..., min_length=1, alias="expiryDate")
    pan: str = Field(..., min_length=1)

    @field_validator("cvv", "pin", "expiry_date", "pan")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Card field cannot be blank")
        return v

    def __repr__(self) -> str:
        return "CardDetailsDTO(<redacted>)"

    __str__ = __repr__


class RequestContext(BaseModel):
    """The parts of an inbound web request that device capture needs."""

    headers: Dict[str, str] = Field(default_factory=dict)
    ip: Optional[str] = None

    @classmethod
    def from_request(cls, request: Any) -> "RequestContext":
        """Adapt a framework request object.

        Accepts a ``{"headers": ..., "ip": ...}`` mapping, or anything exposing
        a ``headers`` mapping plus either an ``ip`` attribute or an ASGI-style
        ``client.host``.
        """
        if isinstance(request, RequestContext):
            return request
        if isinstance(request, Mapping):
            raw_headers = request.get("headers") or {}
            ip = request.get("ip")
        else:
            raw_headers = getattr(request, "headers", None) or {}
            ip = getattr(request, "ip", None)
            if not ip:
                client = getattr(request, "client", None)
                ip = getattr(client, "host", None)
        headers = {str(k).lower(): str(v) for k, v in raw_headers.items()}
        return cls(headers=headers, ip=ip)

    def header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup."""
        name = name.lower()
        for key, value in self.headers.items():
            if key.lower() == name:
                return value
        return None


class BrowserDetails(BaseModel):
    """Browser fingerprint sent for 3-D Secure risk checks."""

    model_config = ConfigDict(frozen=True)

    challenge_window_size: str = "FULL_SCREEN"
    accept_headers: str = "application/json"
    color_depth: int = 24
    java_enabled: bool = True
    language: str = "en-US"
    screen_height: int = 473
    screen_width: int = 1600
    time_zone: int = 273

    @classmethod
    def from_request(cls, request: Any) -> "BrowserDetails":
        context = RequestContext.from_request(request)
        return cls(
            accept_headers=context.header("accept") or "application/json",
            language=context.header("accept-language") or "en-US",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "3DSecureChallengeWindowSize": self.challenge_window_size,
            "acceptHeaders": self.accept_headers,
            "colorDepth": self.color_depth,
            "javaEnabled": self.java_enabled,
            "language": self.language,
            "screenHeight": self.screen_height,
            "screenWidth": self.screen_width,
            "timeZone": self.time_zone,
        }


def resolve_ip_address(context: RequestContext) -> str:
    """Pick the caller IP, falling back to loopback.

    ``X-Forwarded-For`` may carry a proxy chain; the left-most entry is the
    original client.
    """
    ip = context.ip
    if not ip:
        forwarded = context.header("x-forwarded-for")
        if forwarded:
            ip = forwarded.split(",")[0].strip()
    if not ip:
        ip = DEFAULT_IP_ADDRESS
    if ip.startswith(IPV4_MAPPED_PREFIX):
        ip = ip[len(IPV4_MAPPED_PREFIX) :]
    return ip


class Device(BaseModel):
    """Payer device derived from an inbound request."""

    model_config = ConfigDict(frozen=True)

    browser: str
    ip_address: str
    browser_details: BrowserDetails

    @classmethod
    def from_request(cls, request: Any) -> "Device":
        context = RequestContext.from_request(request)
        return cls(
            browser=context.header("user-agent") or "Unknown",
            ip_address=resolve_ip_address(context),
            browser_details=BrowserDetails.from_request(context),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "browser": self.browser,
            "browserDetails": self.browser_details.to_dict(),
            "ipAddress": self.ip_address,
        }


class PayerDeviceDTO(BaseModel):
    """Wrapper matching the ``deviceDetails`` body of a card initialisation."""

    model_config = ConfigDict(frozen=True)

    device: Device

    @classmethod
    def from_request(cls, request: Any) -> "PayerDeviceDTO":
        return cls(device=Device.from_request(request))

    def to_dict(self) -> Dict[str, Any]:
        return {"payerDeviceDto": {"device": self.device.to_dict()}}
