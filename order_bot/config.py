"""
Configuration Module for the Order Bot
======================================

This module centralizes all configuration settings, environment variables, and
constants used throughout the order bot. Values are read once at import time
(after ``load_dotenv()``) and exposed as typed module-level constants.

Configuration Categories:
-------------------------
- **Messaging Channel**: Twilio credentials and the WhatsApp sender address.
  When credentials are missing the notifier runs in mock mode and only logs.

- **Spreadsheet Store**: Service account credentials and the document id of
  the spreadsheet holding the ``Menu`` and ``Pedidos`` tabs.

- **Rate Limiting**: Throttling for the inbound webhook, keyed by sender.

- **Payments**: Base URL used to synthesize payment links and the bank
  transfer details shown to customers paying online.

- **Server**: Listen port and CORS origins for the admin dashboard.

Environment Variables:
----------------------
- TWILIO_ACCOUNT_SID / TWILIO_AUTH_TOKEN: Twilio credentials
- TWILIO_WHATSAPP_NUMBER: Sender address (default: Twilio sandbox number)
- GOOGLE_SERVICE_ACCOUNT_EMAIL / GOOGLE_PRIVATE_KEY: Service account
- SPREADSHEET_ID: Spreadsheet document identifier
- MENU_RANGE: Catalog range (default: "Menu!A:F")
- ORDERS_SHEET: Orders tab name (default: "Pedidos")
- PORT: Listen port (default: 3000)
- RATE_LIMIT_WEBHOOK: Webhook rate limit (default: "30 per minute")
- RATE_LIMIT_ENABLED: Enable/disable rate limiting (default: "true")
- CORS_ORIGINS: Comma-separated allowed origins (default: "*")
- PAYMENT_LINK_BASE_URL: Prefix for synthesized payment links
- TRANSFER_ALIAS / TRANSFER_HOLDER: Bank transfer instructions

Usage:
------
    from order_bot import config

    if config.is_twilio_configured():
        ...
"""

import os
from typing import List

from dotenv import load_dotenv

load_dotenv()


# =============================================================================
# Messaging Channel (Twilio WhatsApp)
# =============================================================================

TWILIO_ACCOUNT_SID: str = os.getenv("TWILIO_ACCOUNT_SID", "")
TWILIO_AUTH_TOKEN: str = os.getenv("TWILIO_AUTH_TOKEN", "")

# Twilio sandbox number unless a production sender is configured
TWILIO_WHATSAPP_NUMBER: str = os.getenv("TWILIO_WHATSAPP_NUMBER", "whatsapp:+14155238886")


def is_twilio_configured() -> bool:
    """Check if Twilio credentials are present."""
    return all([TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN, TWILIO_WHATSAPP_NUMBER])


# =============================================================================
# Spreadsheet Store (Google Sheets)
# =============================================================================

GOOGLE_SERVICE_ACCOUNT_EMAIL: str = os.getenv("GOOGLE_SERVICE_ACCOUNT_EMAIL", "")

# Keys pasted into .env files usually carry literal "\n" sequences
GOOGLE_PRIVATE_KEY: str = os.getenv("GOOGLE_PRIVATE_KEY", "").replace("\\n", "\n")

SPREADSHEET_ID: str = os.getenv("SPREADSHEET_ID", "")

# Catalog columns: id, name, description, price, category, available
MENU_RANGE: str = os.getenv("MENU_RANGE", "Menu!A:F")

# Order columns: timestamp, phone, customer, items, total, delivery type,
# address, payment method, payment status, status
ORDERS_SHEET: str = os.getenv("ORDERS_SHEET", "Pedidos")


def is_sheets_configured() -> bool:
    """Check if the spreadsheet store can be reached."""
    return all([GOOGLE_SERVICE_ACCOUNT_EMAIL, GOOGLE_PRIVATE_KEY, SPREADSHEET_ID])


# =============================================================================
# Rate Limiting Configuration
# =============================================================================
# Uses slowapi with in-memory storage; the key is the sender address so one
# chatty customer cannot starve the others.

RATE_LIMIT_WEBHOOK: str = os.getenv("RATE_LIMIT_WEBHOOK", "30 per minute")
RATE_LIMIT_ENABLED: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"


def get_rate_limit_webhook() -> str:
    """
    Return the current webhook rate limit.

    This function allows dynamic override in tests without modifying
    the module-level constant.
    """
    return RATE_LIMIT_WEBHOOK


# =============================================================================
# Payments
# =============================================================================
# Payment links are synthesized strings; nothing is verified against a gateway.

PAYMENT_LINK_BASE_URL: str = os.getenv("PAYMENT_LINK_BASE_URL", "https://pagos.example.com/orden")
TRANSFER_ALIAS: str = os.getenv("TRANSFER_ALIAS", "pedidos.bot.alias")
TRANSFER_HOLDER: str = os.getenv("TRANSFER_HOLDER", "Pedidos Bot")


# =============================================================================
# Server
# =============================================================================

PORT: int = int(os.getenv("PORT", "3000"))

# Format: comma-separated list of origins, e.g. "https://panel.mitienda.com"
_cors_origins_env = os.getenv("CORS_ORIGINS", "")
CORS_ORIGINS: List[str] = [
    origin.strip()
    for origin in _cors_origins_env.split(",")
    if origin.strip()
] or ["*"]
