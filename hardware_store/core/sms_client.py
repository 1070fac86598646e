# hardware_store/core/sms_client.py
"""
SMS client utilities for the hardware store backend.

Responsibilities:
  - Normalise Philippine mobile numbers (09XXXXXXXXX / 639XXXXXXXXX).
  - Provide a single SmsClient.send(...) for the notification layer.
  - Try each configured provider in SMS_PROVIDERS order.

Typical .env configuration (Semaphore primary, Movider backup):

    SMS_ENABLED=true
    SMS_PROVIDERS=["semaphore", "movider"]
    SMS_SENDER_NAME=HARDWARE
    SEMAPHORE_API_KEY=...
    MOVIDER_API_KEY=...
    MOVIDER_API_SECRET=...

With SMS_ENABLED=false (development) or SMS_TEST_MODE=true nothing is
sent; the message is logged instead.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

import httpx

from hardware_store.core.config import Settings
from hardware_store.core.errors import NotificationDeliveryError, SmsGatewayError

logger = logging.getLogger(__name__)

SEMAPHORE_URL = "https://api.semaphore.co/api/v4/messages"
MOVIDER_URL = "https://api.movider.co/v1/sms"

# Philippine mobile prefixes by network (first 4 digits of 09XXXXXXXXX)
PH_TELCO_PREFIXES: dict[str, frozenset[str]] = {
    "GLOBE": frozenset({
        "0904", "0905", "0906", "0915", "0916", "0917", "0926", "0927",
        "0935", "0936", "0937", "0945", "0953", "0954", "0955", "0956",
        "0965", "0966", "0967", "0975", "0976", "0977", "0978", "0979",
        "0994", "0995", "0996", "0997",
    }),
    "SMART": frozenset({
        "0907", "0908", "0909", "0910", "0911", "0912", "0913", "0914",
        "0918", "0919", "0920", "0921", "0922", "0923", "0924", "0925",
        "0928", "0929", "0930", "0931", "0932", "0933", "0934", "0938",
        "0939", "0940", "0941", "0942", "0943", "0944", "0946", "0947",
        "0948", "0949", "0950", "0951", "0961", "0963", "0968", "0969",
        "0970", "0971", "0973", "0974", "0981", "0989", "0992", "0998",
        "0999",
    }),
    "DITO": frozenset({"0991", "0993"}),
}


# ---------------------------------------------------------------------------
# Phone number helpers
# ---------------------------------------------------------------------------


def format_phone_number(phone: str | None) -> str | None:
    """
    Normalise to the local 11-digit form (09XXXXXXXXX).

    Accepts +63 / 63 / 09 / 9 prefixed input with any punctuation.
    """
    if not phone:
        return None

    cleaned = re.sub(r"\D", "", str(phone))

    if cleaned.startswith("63") and len(cleaned) == 12:
        cleaned = "0" + cleaned[2:]
    if cleaned.startswith("9") and len(cleaned) == 10:
        cleaned = "0" + cleaned

    return cleaned


def format_international(phone: str | None) -> str | None:
    """639XXXXXXXXX, without the leading '+'."""
    formatted = format_phone_number(phone)
    if not formatted or len(formatted) != 11:
        return None
    return "63" + formatted[1:]


def get_telco(phone: str | None) -> str | None:
    formatted = format_phone_number(phone)
    if not formatted:
        return None
    prefix = formatted[:4]
    for network, prefixes in PH_TELCO_PREFIXES.items():
        if prefix in prefixes:
            return network
    return "UNKNOWN"


def validate_phone_number(phone: str | None) -> str:
    """
    Return the normalised number or raise ValueError.

    Unknown network prefixes are allowed (new prefixes get issued).
    """
    formatted = format_phone_number(phone)
    if not formatted:
        raise ValueError("Phone number is required")
    if len(formatted) != 11:
        raise ValueError(
            "Phone number must be 11 digits (e.g., 09171234567). "
            f"Got {len(formatted)} digits."
        )
    if not formatted.startswith("09"):
        raise ValueError("Phone number must start with 09")
    return formatted


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SmsResult:
    provider: str
    phone: str
    message_id: str | None = None
    mode: str = "live"


class SmsClient:
    """
    Thin httpx wrapper around the SMS gateways.

    A single httpx.Client is reused across sends; call close() on shutdown.
    Pass `http_client` to swap the transport (tests use httpx.MockTransport).
    """

    def __init__(self, settings: Settings, http_client: httpx.Client | None = None):
        self.settings = settings
        self._http = http_client or httpx.Client(timeout=settings.SMS_TIMEOUT_SECONDS)

    def close(self) -> None:
        self._http.close()

    def is_provider_configured(self, provider: str) -> bool:
        if provider == "semaphore":
            return bool(self.settings.SEMAPHORE_API_KEY)
        if provider == "movider":
            return bool(
                self.settings.MOVIDER_API_KEY and self.settings.MOVIDER_API_SECRET
            )
        return False

    def send(self, phone: str, message: str) -> SmsResult:
        """
        Send one SMS.

        Raises:
            SmsGatewayError: every configured provider failed.
            NotificationDeliveryError: invalid number, or no provider is
                configured.
        """
        try:
            formatted = validate_phone_number(phone)
        except ValueError as exc:
            raise NotificationDeliveryError(str(exc)) from exc

        telco = get_telco(formatted)

        if not self.settings.SMS_ENABLED:
            logger.info(
                "SMS (development mode, not sent) to %s (%s): %s",
                formatted,
                telco,
                message,
            )
            return SmsResult(provider="none", phone=formatted, mode="development")

        if self.settings.SMS_TEST_MODE:
            logger.info(
                "SMS test mode: would send to %s (%s): %s",
                formatted,
                telco,
                message[:50],
            )
            return SmsResult(provider="none", phone=formatted, mode="test")

        errors: list[str] = []
        for provider in self.settings.SMS_PROVIDERS:
            sender = getattr(self, f"_send_via_{provider}", None)
            if sender is None:
                logger.warning("Unknown SMS provider: %s", provider)
                continue
            if not self.is_provider_configured(provider):
                logger.warning("SMS provider %s not configured, skipping", provider)
                continue

            try:
                logger.info(
                    "Sending SMS via %s to %s (%s)",
                    provider,
                    formatted,
                    telco,
                    extra={"provider": provider, "phone": formatted},
                )
                return sender(formatted, message)
            except (httpx.HTTPError, ValueError) as exc:
                logger.warning("SMS provider %s failed: %s", provider, exc)
                errors.append(f"{provider}: {exc}")

        if not errors:
            raise NotificationDeliveryError("No SMS provider is configured")
        raise SmsGatewayError(
            "All SMS providers failed: " + "; ".join(errors)
        )

    # ---- Providers ----

    def _send_via_semaphore(self, phone: str, message: str) -> SmsResult:
        response = self._http.post(
            SEMAPHORE_URL,
            json={
                "apikey": self.settings.SEMAPHORE_API_KEY,
                "number": format_international(phone),
                "message": message,
                "sendername": self.settings.SMS_SENDER_NAME,
            },
        )
        response.raise_for_status()

        data: Any = response.json()
        # Semaphore answers with a list of per-recipient results
        result = data[0] if isinstance(data, list) and data else data
        if not isinstance(result, dict):
            result = {}
        if result.get("status") == "failed" or result.get("error"):
            raise ValueError(result.get("error") or "Semaphore sending failed")

        message_id = result.get("message_id")
        return SmsResult(
            provider="semaphore",
            phone=phone,
            message_id=str(message_id) if message_id is not None else None,
        )

    def _send_via_movider(self, phone: str, message: str) -> SmsResult:
        response = self._http.post(
            MOVIDER_URL,
            json={
                "api_key": self.settings.MOVIDER_API_KEY,
                "api_secret": self.settings.MOVIDER_API_SECRET,
                "to": "+" + (format_international(phone) or ""),
                "text": message,
            },
        )
        response.raise_for_status()

        data: Any = response.json()
        recipients = []
        if isinstance(data, dict):
            recipients = data.get("phone_number_list") or []
        message_id = recipients[0].get("message_id") if recipients else None
        return SmsResult(
            provider="movider",
            phone=phone,
            message_id=str(message_id) if message_id is not None else None,
        )
