"""
WhatsApp Webhook Route
======================

Receives inbound WhatsApp messages forwarded by Twilio as
``application/x-www-form-urlencoded`` POSTs and hands them to the
conversation engine.

Endpoint:
---------
- POST /webhook: One inbound message per call

Form Fields Used:
-----------------
- Body: Message text (may be empty for media-only messages)
- From: Sender address, e.g. ``whatsapp:+5491122334455``
- ProfileName: Display name of the sender, if WhatsApp reports one
- NumMedia / MediaUrl0 / MediaContentType0: First attached media item

Response:
---------
Always an empty 200 once the event is accepted. Replies travel through the
outbound notifier, never in the HTTP response, and engine failures are
handled inside the engine (the customer gets an apology). A request without
``From`` is rejected with 422 by FastAPI's form validation.

Rate Limiting:
--------------
Throttled per sender address (falls back to client IP) with the limit from
RATE_LIMIT_WEBHOOK. A throttled event never reaches the engine; it is logged
and still answered with the empty 200 (see the handler in main.py).
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, Request, Response
from slowapi import Limiter
from slowapi.util import get_remote_address

from ..config import RATE_LIMIT_ENABLED, get_rate_limit_webhook
from ..conversation.engine import ConversationEngine
from ..dependencies import get_engine
from ..models import InboundMessage


logger = logging.getLogger(__name__)

# Router definition
webhook_router = APIRouter(tags=["Webhook"])


# =============================================================================
# Rate Limiting Setup
# =============================================================================

def get_sender_or_ip(request: Request) -> str:
    """Get rate limit key from the already-parsed form's From field or fall back to IP."""
    form = getattr(request, "_form", None)
    if form is not None:
        sender = form.get("From")
        if sender:
            return f"sender:{sender}"
    return get_remote_address(request)


limiter = Limiter(key_func=get_sender_or_ip, enabled=RATE_LIMIT_ENABLED)


# =============================================================================
# Webhook Endpoint
# =============================================================================

@webhook_router.post("/webhook")
@limiter.limit(get_rate_limit_webhook)
def receive_message(
    request: Request,
    sender: str = Form(..., alias="From"),
    body: str = Form("", alias="Body"),
    profile_name: Optional[str] = Form(None, alias="ProfileName"),
    num_media: int = Form(0, alias="NumMedia"),
    media_url: Optional[str] = Form(None, alias="MediaUrl0"),
    media_content_type: Optional[str] = Form(None, alias="MediaContentType0"),
    engine: ConversationEngine = Depends(get_engine),
) -> Response:
    """
    Accept one inbound WhatsApp message.

    The message is processed synchronously before acknowledging, so replies
    are already on their way when Twilio gets the 200.
    """
    logger.info("Inbound message from %s (%d chars, %d media)", sender, len(body or ""), num_media)

    message = InboundMessage(
        body=body or "",
        sender=sender,
        profile_name=profile_name or None,
        media_url=media_url if num_media > 0 else None,
        media_content_type=media_content_type if num_media > 0 else None,
    )
    engine.handle_event(message)

    return Response(status_code=200)
