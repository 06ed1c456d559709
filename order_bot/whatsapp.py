"""
WhatsApp notification channel.

Sends outbound text through Twilio's WhatsApp API when configured, falls back
to logging in mock mode. Delivery is fire-and-forget: failures are logged and
reported in the returned dict, never raised and never retried.

Environment variables (see config.py):
- TWILIO_ACCOUNT_SID: Twilio Account SID (starts with AC)
- TWILIO_AUTH_TOKEN: Twilio Auth Token
- TWILIO_WHATSAPP_NUMBER: Sender, e.g. "whatsapp:+14155238886"
"""

import logging
from typing import Optional

from twilio.base.exceptions import TwilioException
from twilio.rest import Client

logger = logging.getLogger(__name__)

WHATSAPP_PREFIX = "whatsapp:"


def normalize_whatsapp_address(address: str) -> str:
    """
    Normalize an address to Twilio's ``whatsapp:+<digits>`` form.

    Examples:
        "whatsapp:+5491122334455" -> "whatsapp:+5491122334455"
        "+54 9 11 2233-4455"      -> "whatsapp:+5491122334455"
    """
    raw = address.strip()
    if raw.lower().startswith(WHATSAPP_PREFIX):
        raw = raw[len(WHATSAPP_PREFIX):]

    digits = "".join(c for c in raw if c.isdigit())
    return f"{WHATSAPP_PREFIX}+{digits}"


class WhatsAppNotifier:
    """Send-only WhatsApp channel."""

    def __init__(
        self,
        account_sid: Optional[str],
        auth_token: Optional[str],
        from_number: str,
        client: Optional[Client] = None,
    ):
        self.from_number = from_number
        self._client = client
        if self._client is None and account_sid and auth_token:
            self._client = Client(account_sid, auth_token)

    @property
    def mock(self) -> bool:
        return self._client is None

    def send(self, to: str, body: str) -> dict:
        """
        Deliver ``body`` to ``to``.

        Returns:
            dict with status ("sent" or "error"), the normalized address and,
            for real sends, the Twilio message SID.
        """
        if self.mock:
            logger.info("MOCK WhatsApp to %s: %s", to, body)
            return {"status": "sent", "to": to, "mock": True}

        normalized = normalize_whatsapp_address(to)
        try:
            message = self._client.messages.create(
                body=body,
                from_=self.from_number,
                to=normalized,
            )
        except TwilioException as e:
            logger.error("Failed to send WhatsApp message to %s: %s", normalized, e)
            return {"status": "error", "to": normalized, "error": str(e), "mock": False}
        except Exception as e:
            logger.error("Unexpected error sending WhatsApp message to %s: %s", normalized, e, exc_info=True)
            return {"status": "error", "to": normalized, "error": str(e), "mock": False}

        logger.info("WhatsApp message sent to %s (SID: %s)", normalized, message.sid)
        return {"status": "sent", "to": normalized, "mock": False, "message_sid": message.sid}
