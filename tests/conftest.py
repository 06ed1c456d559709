import pytest
from fastapi.testclient import TestClient

from order_bot import dependencies
from order_bot.conversation.engine import ConversationEngine
from order_bot.main import app
from order_bot.models import InboundMessage
from order_bot.routes.webhook import limiter
from order_bot.services.catalog import CatalogGateway
from order_bot.services.orders import OrderGateway
from order_bot.services.session import SessionStore
from tests.fakes import (
    CUSTOMER,
    FIXED_NOW,
    ORDERS_HEADER,
    FakeSheetsClient,
    RecordingNotifier,
    make_menu_tab,
)


@pytest.fixture
def sheets():
    return FakeSheetsClient({"Menu": make_menu_tab(), "Pedidos": [list(ORDERS_HEADER)]})


@pytest.fixture
def catalog(sheets):
    return CatalogGateway(sheets, range_a1="Menu!A:F")


@pytest.fixture
def orders(sheets):
    return OrderGateway(sheets, sheet="Pedidos")


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def sessions():
    return SessionStore()


@pytest.fixture
def engine(sessions, catalog, orders, notifier):
    return ConversationEngine(
        sessions=sessions,
        catalog=catalog,
        orders=orders,
        notifier=notifier,
        payment_link_base_url="https://pagos.test/orden",
        transfer_alias="mi.alias.test",
        transfer_holder="Tienda Test",
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def send(engine):
    """Deliver a text message from the default customer through the engine."""
    def _send(body="", sender=CUSTOMER, profile_name="Ana", media_url=None, media_content_type=None):
        return engine.handle_event(InboundMessage(
            body=body,
            sender=sender,
            profile_name=profile_name,
            media_url=media_url,
            media_content_type=media_content_type,
        ))
    return _send


@pytest.fixture
def client(sheets, notifier, sessions):
    """Shared FastAPI TestClient wired to the in-memory sheets client and notifier.

    Rate limiting is disabled; tests that exercise it re-enable it explicitly.
    """
    app.dependency_overrides[dependencies.get_sheets_client] = lambda: sheets
    app.dependency_overrides[dependencies.get_notifier] = lambda: notifier
    app.dependency_overrides[dependencies.get_session_store] = lambda: sessions

    limiter.enabled = False
    limiter.reset()

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    limiter.reset()
