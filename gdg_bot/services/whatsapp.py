"""WhatsApp delivery through the Twilio Messaging API.

Twilio addresses WhatsApp users as ``whatsapp:+15551234567``.  Inside the
bot the prefix is stripped (the bare number is the session key) and it is
re-applied here before delivery.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

import requests
from twilio.base.exceptions import TwilioException, TwilioRestException
from twilio.http.http_client import TwilioHttpClient
from twilio.request_validator import RequestValidator
from twilio.rest import Client

from gdg_bot.config import (
    TWILIO_ACCOUNT_SID,
    TWILIO_AUTH_TOKEN,
    TWILIO_TIMEOUT_SECONDS,
    TWILIO_WHATSAPP_NUMBER,
)
from gdg_bot.models import SendResult
from gdg_bot.services.metrics import metrics

logger = logging.getLogger(__name__)

WHATSAPP_PREFIX = "whatsapp:"
# Twilio rejects WhatsApp bodies longer than this
MAX_BODY_CHARS = 1600


def normalize_address(address: str | None) -> str:
    """``"whatsapp:+1555…"`` → ``"+1555…"`` (whitespace trimmed)."""
    address = (address or "").strip()
    if address.lower().startswith(WHATSAPP_PREFIX):
        address = address[len(WHATSAPP_PREFIX):]
    return address.strip()


def to_whatsapp_address(address: str) -> str:
    """``"+1555…"`` → ``"whatsapp:+1555…"``; idempotent."""
    return f"{WHATSAPP_PREFIX}{normalize_address(address)}"


def split_message(text: str, limit: int = MAX_BODY_CHARS) -> list[str]:
    """Split *text* into chunks of at most *limit* characters.

    Breaks on newlines where possible; a single line longer than *limit*
    is cut hard.
    """
    if len(text) <= limit:
        return [text]

    chunks: list[str] = []
    current = ""
    for line in text.splitlines(keepends=True):
        while len(line) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:limit])
            line = line[limit:]
        if len(current) + len(line) > limit:
            chunks.append(current)
            current = ""
        current += line
    if current:
        chunks.append(current)
    return [c.rstrip("\n") for c in chunks if c.strip()]


class WhatsAppMessenger:
    """Sends WhatsApp messages; never raises for delivery failures."""

    def __init__(
        self,
        client: Client | None = None,
        from_number: str | None = None,
    ) -> None:
        self._client = client or Client(
            TWILIO_ACCOUNT_SID,
            TWILIO_AUTH_TOKEN,
            http_client=TwilioHttpClient(timeout=TWILIO_TIMEOUT_SECONDS),
        )
        self._from = to_whatsapp_address(from_number or TWILIO_WHATSAPP_NUMBER)

    def send(self, recipient: str, text: str) -> SendResult:
        """Deliver *text* to *recipient*, splitting bodies over Twilio's limit.

        Returns the result of the last chunk sent, or the first failure.
        """
        to = to_whatsapp_address(recipient)
        result = SendResult(success=False, error="Empty message")
        for chunk in split_message(text) if text.strip() else []:
            result = self._send_one(to, chunk)
            if not result.success:
                break
        return result

    def _send_one(self, to: str, body: str) -> SendResult:
        logger.info("Sending WhatsApp message to %s (%d chars)", to, len(body))
        try:
            with metrics.timed("twilio", "messages.create"):
                message = self._client.messages.create(from_=self._from, to=to, body=body)
        except TwilioRestException as exc:
            logger.error("Twilio rejected message to %s: %s (code %s)", to, exc.msg, exc.code)
            return SendResult(success=False, error=str(exc.msg), code=exc.code)
        except (TwilioException, requests.RequestException) as exc:
            logger.error("Error sending WhatsApp message to %s: %s", to, exc)
            return SendResult(success=False, error=str(exc))

        logger.info("Message sent successfully. SID: %s", message.sid)
        return SendResult(success=True, message_id=message.sid, status=str(message.status))


def validate_signature(
    url: str,
    params: Mapping[str, str],
    signature: str | None,
    auth_token: str | None = None,
) -> bool:
    """Check Twilio's ``X-Twilio-Signature`` for a webhook request."""
    if not signature:
        logger.warning("No Twilio signature found in request headers")
        return False
    validator = RequestValidator(auth_token or TWILIO_AUTH_TOKEN)
    valid = validator.validate(url, dict(params), signature)
    if not valid:
        logger.warning("Invalid Twilio webhook signature for %s", url)
    return valid
