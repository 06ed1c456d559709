"""
Tests for the conversation engine.

Each test drives the engine with inbound messages from one customer and
checks the resulting session, the outbound replies and the rows written to
the in-memory spreadsheet.
"""
import json
import threading

import pytest

from order_bot.conversation import messages
from order_bot.conversation.engine import ConversationEngine
from order_bot.conversation.states import TRANSITIONS, Action, InputKind, lookup
from order_bot.models import ConversationState, DeliveryType, InboundMessage, PaymentMethod
from order_bot.services.orders import OrderGateway

from tests.fakes import CUSTOMER, FIXED_NOW, FailingSheetsClient

ORDER_ID = str(int(FIXED_NOW.timestamp() * 1000))


@pytest.fixture
def session(sessions):
    def _session():
        return sessions.get(CUSTOMER)
    return _session


def _order_rows(sheets):
    return sheets.tabs["Pedidos"][1:]


# =============================================================================
# Transition Table
# =============================================================================

class TestTransitionTable:
    """The (state, input kind) table covers every pair."""

    def test_table_is_exhaustive(self):
        for state in ConversationState:
            for kind in InputKind:
                assert (state, kind) in TRANSITIONS

    def test_commands_win_in_every_state(self):
        for state in ConversationState:
            assert lookup(state, InputKind.MENU).action == Action.SHOW_MENU
            assert lookup(state, InputKind.CHECKOUT).action == Action.START_CHECKOUT
            assert lookup(state, InputKind.CART).next_state is None

    def test_checkout_states_consume_free_input(self):
        for kind in (InputKind.SELECTION, InputKind.TEXT, InputKind.IMAGE):
            assert lookup(ConversationState.DELIVERY_INFO, kind).action == Action.CHOOSE_DELIVERY
            assert lookup(ConversationState.PAYMENT_METHOD, kind).action == Action.CHOOSE_PAYMENT

    def test_image_confirms_payment_only_while_awaiting_proof(self):
        assert lookup(ConversationState.PAYMENT_CONFIRMATION, InputKind.IMAGE) == (
            Action.CONFIRM_PAYMENT, ConversationState.MAIN_MENU,
        )
        assert lookup(ConversationState.MAIN_MENU, InputKind.IMAGE).action == Action.WELCOME


# =============================================================================
# Browsing and Cart
# =============================================================================

class TestBrowsing:

    def test_first_message_creates_session_and_welcomes(self, send, sessions, notifier):
        """Free text from an unknown customer greets them by profile name."""
        assert sessions.get(CUSTOMER) is None
        assert send("hola") == Action.WELCOME
        assert sessions.get(CUSTOMER).state == ConversationState.MAIN_MENU
        assert notifier.last_to(CUSTOMER).startswith("¡Hola Ana!")

    def test_welcome_without_profile_name(self, send, notifier):
        send("hola", profile_name=None)
        assert notifier.last_to(CUSTOMER).startswith("¡Hola Cliente!")

    def test_menu_command_shows_catalog(self, send, session, notifier):
        send("menu")
        reply = notifier.last_to(CUSTOMER)
        assert "1. Empanada de carne - $2.50" in reply
        assert "Flan casero" not in reply  # unavailable
        assert "TU CARRITO" not in reply
        assert session().state == ConversationState.BROWSING_PRODUCTS

    def test_menu_command_appends_non_empty_cart(self, send, notifier):
        send("2")
        send("menu")
        reply = notifier.last_to(CUSTOMER)
        assert "MENÚ DISPONIBLE" in reply
        assert "TU CARRITO" in reply

    def test_repeated_selection_collapses_into_one_line(self, send, session, notifier):
        """'1,2,1' lists product 1 twice but keeps a single cart line with quantity 2."""
        assert send("1,2,1") == Action.SELECT_PRODUCTS

        cart = session().cart
        assert [(line.product.id, line.quantity) for line in cart] == [("1", 2), ("2", 1)]

        reply = notifier.last_to(CUSTOMER)
        added_section = reply.split("\n\n")[0]
        assert added_section.count("• Empanada de carne") == 2
        assert added_section.count("• Pizza muzzarella") == 1
        assert reply.count("Cantidad: 2 x $2.50 = $5.00") == 1
        assert "*TOTAL: $17.00*" in reply
        assert session().state == ConversationState.BROWSING_PRODUCTS

    def test_unknown_ids_are_reported(self, send, session, notifier):
        send("1,9")
        assert len(session().cart) == 1
        assert "Productos no encontrados: 9" in notifier.last_to(CUSTOMER)

    def test_unavailable_product_cannot_be_selected(self, send, session):
        send("4")
        assert session().cart == []

    def test_each_selection_adds_exactly_one(self, send, session):
        for expected in range(1, 4):
            send("3")
            assert session().cart[0].quantity == expected
            assert len(session().cart) == 1

    def test_cart_command_keeps_state(self, send, session, notifier):
        send("1")
        send("carrito")
        assert session().state == ConversationState.BROWSING_PRODUCTS
        assert "TU CARRITO" in notifier.last_to(CUSTOMER)

    def test_clear_then_cart_reports_empty(self, send, session, notifier):
        """limpiar followed by carrito always shows an empty cart with a zero total."""
        send("1,2")
        send("limpiar")
        assert session().state == ConversationState.MAIN_MENU
        send("carrito")
        reply = notifier.last_to(CUSTOMER)
        assert "Tu carrito está vacío" in reply
        assert "*TOTAL: $0.00*" in reply
        assert session().cart == []

    def test_cancel_with_items_resets_session(self, send, session, notifier):
        send("1")
        send("finalizar")
        send("cancelar")
        assert session().state == ConversationState.MAIN_MENU
        assert session().cart == []
        assert session().pending_delivery_type is None
        assert notifier.last_to(CUSTOMER) == messages.format_cancelled()

    def test_cancel_with_empty_cart_keeps_state(self, send, session, notifier):
        send("menu")
        send("cancelar")
        assert session().state == ConversationState.BROWSING_PRODUCTS
        assert notifier.last_to(CUSTOMER) == messages.format_nothing_to_cancel()


# =============================================================================
# Checkout
# =============================================================================

class TestCheckout:

    def test_empty_checkout_touches_nothing(self, send, session, sheets, notifier):
        """Finalizing an empty cart never calls the order store and keeps the state."""
        send("menu")
        send("finalizar")
        assert session().state == ConversationState.BROWSING_PRODUCTS
        assert sheets.calls_to("append", "Pedidos") == []
        assert sheets.calls_to("get", "Pedidos") == []
        assert notifier.last_to(CUSTOMER) == messages.format_empty_cart_checkout()

    def test_checkout_shows_summary_and_asks_delivery(self, send, session, notifier):
        send("2")
        send("finalizar")
        assert session().state == ConversationState.DELIVERY_INFO
        reply = notifier.last_to(CUSTOMER)
        assert "RESUMEN DE TU PEDIDO" in reply
        assert "TIPO DE ENTREGA" in reply

    def test_invalid_delivery_option_reprompts(self, send, session, sheets, notifier):
        send("1")
        send("finalizar")
        sheets.calls.clear()

        send("3")

        assert session().state == ConversationState.DELIVERY_INFO
        assert notifier.last_to(CUSTOMER) == messages.format_invalid_delivery_option()
        assert sheets.calls == []

    def test_digits_in_delivery_step_do_not_add_products(self, send, session):
        send("1")
        send("finalizar")
        send("2")
        assert session().cart[0].quantity == 1
        assert session().pending_delivery_type == DeliveryType.PICKUP

    def test_cart_command_during_checkout_keeps_step(self, send, session):
        send("1")
        send("finalizar")
        send("carrito")
        assert session().state == ConversationState.DELIVERY_INFO

    def test_delivery_asks_for_address(self, send, session, notifier):
        send("1")
        send("finalizar")
        send("1")
        assert session().state == ConversationState.PAYMENT_METHOD
        assert session().pending_delivery_type == DeliveryType.DELIVERY
        assert notifier.last_to(CUSTOMER) == messages.format_address_prompt()

    def test_address_is_recorded_before_payment(self, send, session, sheets, notifier):
        send("1")
        send("finalizar")
        send("1")

        send("Av. Corrientes 1234")

        assert session().pending_address == "Av. Corrientes 1234"
        assert session().state == ConversationState.PAYMENT_METHOD
        assert "MÉTODO DE PAGO" in notifier.last_to(CUSTOMER)
        assert "Av. Corrientes 1234" in notifier.last_to(CUSTOMER)
        assert _order_rows(sheets) == []

    def test_invalid_payment_option_reprompts(self, send, session, notifier):
        send("1")
        send("finalizar")
        send("2")
        send("5")
        assert session().state == ConversationState.PAYMENT_METHOD
        assert notifier.last_to(CUSTOMER) == messages.format_invalid_payment_option()

    def test_payment_step_without_delivery_choice_goes_back(self, send, session, notifier):
        send("1")
        session().state = ConversationState.PAYMENT_METHOD
        send("1")
        assert session().state == ConversationState.DELIVERY_INFO
        assert notifier.last_to(CUSTOMER) == messages.format_delivery_prompt()


# =============================================================================
# Finalizing Orders
# =============================================================================

class TestFinalize:

    def test_pickup_cash_order(self, send, session, sheets, notifier):
        send("1,1,2")
        send("finalizar")
        send("2")
        send("1")

        rows = _order_rows(sheets)
        assert len(rows) == 1
        row = rows[0]
        assert row[1] == CUSTOMER
        assert row[2] == "Ana"
        assert json.loads(row[3]) == [
            {"id": "1", "name": "Empanada de carne", "price": 2.5, "quantity": 2},
            {"id": "2", "name": "Pizza muzzarella", "price": 12.0, "quantity": 1},
        ]
        assert row[4] == 17.0
        assert row[5:] == ["pickup", "", "efectivo", "CONFIRMADO", "NUEVO"]

        assert session().cart == []
        assert session().state == ConversationState.MAIN_MENU

        reply = notifier.last_to(CUSTOMER)
        assert f"Pedido #{ORDER_ID}" in reply
        assert "Retiro en local" in reply

    def test_delivery_online_order_then_proof_of_payment(self, send, session, sheets, notifier):
        send("2")
        send("finalizar")
        send("1")
        send("Av. Corrientes 1234")
        send("2")

        row = _order_rows(sheets)[0]
        assert row[5:] == ["delivery", "Av. Corrientes 1234", "online", "PENDIENTE", "NUEVO"]
        assert session().cart == []
        assert session().state == ConversationState.PAYMENT_CONFIRMATION

        bodies = notifier.bodies()
        assert "PEDIDO CONFIRMADO" in bodies[-2]
        assert "mi.alias.test" in bodies[-2]
        assert f"https://pagos.test/orden/{ORDER_ID}" in bodies[-1]

        action = send("", media_url="https://api.twilio.com/media/1", media_content_type="image/jpeg")

        assert action == Action.CONFIRM_PAYMENT
        assert _order_rows(sheets)[0][8] == "RECIBIDO"
        assert _order_rows(sheets)[0][9] == "NUEVO"
        assert session().state == ConversationState.MAIN_MENU
        assert notifier.last_to(CUSTOMER) == messages.format_payment_received()

    def test_text_while_awaiting_proof_greets(self, send, session):
        send("2")
        send("finalizar")
        send("2")
        send("2")
        assert session().state == ConversationState.PAYMENT_CONFIRMATION
        send("ya pagué")
        assert session().state == ConversationState.MAIN_MENU

    def test_proof_image_with_digit_caption_confirms_payment(self, send, session, sheets, notifier):
        send("2")
        send("finalizar")
        send("2")
        send("2")

        action = send("2", media_url="https://api.twilio.com/media/2", media_content_type="image/jpeg")

        assert action == Action.CONFIRM_PAYMENT
        assert _order_rows(sheets)[0][8] == "RECIBIDO"
        assert session().cart == []
        assert session().state == ConversationState.MAIN_MENU
        assert notifier.last_to(CUSTOMER) == messages.format_payment_received()

    @pytest.mark.parametrize("delivery,payment", [("1", "1"), ("1", "2"), ("2", "1"), ("2", "2")])
    def test_cart_is_empty_after_any_finalization(self, send, session, sheets, delivery, payment):
        send("1,3")
        send("finalizar")
        send(delivery)
        if delivery == "1":
            send("Calle Falsa 123")
        send(payment)

        assert session().cart == []
        assert session().pending_delivery_type is None
        assert session().pending_address is None
        assert len(_order_rows(sheets)) == 1

    def test_failed_save_still_confirms(self, sessions, catalog, notifier):
        engine = ConversationEngine(
            sessions=sessions,
            catalog=catalog,
            orders=OrderGateway(FailingSheetsClient()),
            notifier=notifier,
        )
        for body in ("1", "finalizar", "2", "1"):
            engine.handle_event(InboundMessage(body=body, sender=CUSTOMER))

        assert "PEDIDO CONFIRMADO" in notifier.last_to(CUSTOMER)
        assert sessions.get(CUSTOMER).cart == []

    def test_process_order_returns_timestamp_id(self, engine, sessions, send):
        send("1")
        session = sessions.get(CUSTOMER)
        session.pending_delivery_type = DeliveryType.PICKUP
        assert engine.process_order(session, "Ana", PaymentMethod.CASH) == ORDER_ID


# =============================================================================
# Failures and Concurrency
# =============================================================================

class ExplodingCatalog:
    def fetch_menu(self):
        raise RuntimeError("boom")


class TestFailures:

    def test_unexpected_error_sends_apology(self, sessions, orders, notifier):
        engine = ConversationEngine(sessions, ExplodingCatalog(), orders, notifier)

        result = engine.handle_event(InboundMessage(body="1", sender=CUSTOMER))

        assert result is None
        assert notifier.last_to(CUSTOMER) == messages.format_error()
        assert sessions.get(CUSTOMER).state == ConversationState.MAIN_MENU

    def test_catalog_outage_shows_empty_menu(self, sessions, orders, notifier):
        from order_bot.services.catalog import CatalogGateway

        engine = ConversationEngine(sessions, CatalogGateway(FailingSheetsClient()), orders, notifier)
        engine.handle_event(InboundMessage(body="menu", sender=CUSTOMER))
        assert notifier.last_to(CUSTOMER) == messages.format_menu([])


class TestConcurrency:

    def test_messages_from_one_customer_are_serialized(self, engine, sessions):
        """Concurrent selections never lose an increment."""
        def worker():
            for _ in range(10):
                engine.handle_event(InboundMessage(body="1", sender=CUSTOMER))

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        cart = sessions.get(CUSTOMER).cart
        assert len(cart) == 1
        assert cart[0].quantity == 40

    def test_customers_are_isolated(self, send, sessions):
        send("1", sender="whatsapp:+111")
        send("2", sender="whatsapp:+222")
        assert sessions.get("whatsapp:+111").cart[0].product.id == "1"
        assert sessions.get("whatsapp:+222").cart[0].product.id == "2"


# =============================================================================
# Status Notifications
# =============================================================================

class TestStatusNotifications:

    def test_known_status_notifies(self, engine, notifier):
        assert engine.notify_status_change(CUSTOMER, "LISTO") is True
        assert notifier.last_to(CUSTOMER) == messages.STATUS_NOTIFICATIONS["LISTO"]

    def test_unknown_status_is_silent(self, engine, notifier):
        assert engine.notify_status_change(CUSTOMER, "ARCHIVADO") is False
        assert notifier.sent == []

    def test_notification_does_not_touch_session(self, engine, sessions):
        engine.notify_status_change(CUSTOMER, "PREPARANDO")
        assert sessions.get(CUSTOMER) is None
