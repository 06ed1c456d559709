"""
FastAPI dependency providers.

The process holds exactly one of each collaborator: the session store, the
spreadsheet client, both gateways, the notifier and the conversation engine.
Routes receive them through ``Depends(...)`` so tests can swap them with
``app.dependency_overrides``.
"""

import logging

from fastapi import Depends

from . import config
from .conversation.engine import ConversationEngine
from .services.catalog import CatalogGateway
from .services.orders import OrderGateway
from .services.session import SessionStore
from .services.sheets import SheetsClient
from .whatsapp import WhatsAppNotifier

logger = logging.getLogger(__name__)

_session_store = SessionStore()
_sheets_client = SheetsClient(
    spreadsheet_id=config.SPREADSHEET_ID,
    client_email=config.GOOGLE_SERVICE_ACCOUNT_EMAIL,
    private_key=config.GOOGLE_PRIVATE_KEY,
)
_notifier = None


def get_session_store() -> SessionStore:
    return _session_store


def get_sheets_client() -> SheetsClient:
    return _sheets_client


def get_catalog(client: SheetsClient = Depends(get_sheets_client)) -> CatalogGateway:
    return CatalogGateway(client, range_a1=config.MENU_RANGE)


def get_order_gateway(client: SheetsClient = Depends(get_sheets_client)) -> OrderGateway:
    return OrderGateway(client, sheet=config.ORDERS_SHEET)


def get_notifier() -> WhatsAppNotifier:
    """Return the shared notifier, building the Twilio client on first use."""
    global _notifier
    if _notifier is None:
        if not config.is_twilio_configured():
            logger.warning("Twilio credentials not configured, WhatsApp messages will only be logged")
        _notifier = WhatsAppNotifier(
            account_sid=config.TWILIO_ACCOUNT_SID,
            auth_token=config.TWILIO_AUTH_TOKEN,
            from_number=config.TWILIO_WHATSAPP_NUMBER,
        )
    return _notifier


def get_engine(
    sessions: SessionStore = Depends(get_session_store),
    catalog: CatalogGateway = Depends(get_catalog),
    orders: OrderGateway = Depends(get_order_gateway),
    notifier: WhatsAppNotifier = Depends(get_notifier),
) -> ConversationEngine:
    return ConversationEngine(
        sessions=sessions,
        catalog=catalog,
        orders=orders,
        notifier=notifier,
        payment_link_base_url=config.PAYMENT_LINK_BASE_URL,
        transfer_alias=config.TRANSFER_ALIAS,
        transfer_holder=config.TRANSFER_HOLDER,
    )
