"""
Conversation Engine
===================

Turns one inbound WhatsApp message into session mutations, gateway calls and
outbound replies.

Processing Flow:
----------------
1. Acquire the per-customer lock from the session store, so two messages
   from the same customer never interleave.
2. Look up (or lazily create) the customer's Session.
3. Classify the message (command, selection, image, text) and look up the
   (state, input kind) pair in the transition table.
4. Run the action handler. Handlers send replies through the notifier and
   may call the catalog and order gateways.
5. Move the session to the handler's next state (or the table's default).

Finalizing an Order:
--------------------
``process_order`` converts the cart into an Order, appends it through the
order gateway, resets the session (empty cart, MAIN_MENU) and sends the
confirmation. Online payments additionally get a synthesized payment link and
move the session to PAYMENT_CONFIRMATION until a proof-of-payment image
arrives.

Failure Semantics:
------------------
Any exception raised while handling an event is caught in ``handle_event``:
it is logged with its traceback, the customer receives a generic apology and
the webhook still acknowledges the event. Mutations made before the failure
(e.g. items already added to the cart) are kept; the state transition of the
failed action is not applied.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from ..cart import add_product, cart_total, find_product
from ..models import (
    ConversationState,
    DeliveryType,
    InboundMessage,
    Order,
    OrderItem,
    PaymentMethod,
    PaymentStatus,
    Session,
)
from ..services.session import SessionStore
from . import messages
from .parsing import classify, normalize, parse_selection
from .states import Action, Transition, lookup


logger = logging.getLogger(__name__)

DEFAULT_CUSTOMER_NAME = "Cliente"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConversationEngine:
    """The ordering state machine."""

    def __init__(
        self,
        sessions: SessionStore,
        catalog,
        orders,
        notifier,
        payment_link_base_url: str = "https://pagos.example.com/orden",
        transfer_alias: str = "",
        transfer_holder: str = "",
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.sessions = sessions
        self.catalog = catalog
        self.orders = orders
        self.notifier = notifier
        self.payment_link_base_url = payment_link_base_url.rstrip("/")
        self.transfer_alias = transfer_alias
        self.transfer_holder = transfer_holder
        self.clock = clock

        self._handlers = {
            Action.SHOW_MENU: self._show_menu,
            Action.SHOW_CART: self._show_cart,
            Action.CLEAR_CART: self._clear_cart,
            Action.CANCEL_ORDER: self._cancel_order,
            Action.START_CHECKOUT: self._start_checkout,
            Action.CHOOSE_DELIVERY: self._choose_delivery,
            Action.CHOOSE_PAYMENT: self._choose_payment,
            Action.CONFIRM_PAYMENT: self._confirm_payment,
            Action.SELECT_PRODUCTS: self._select_products,
            Action.WELCOME: self._welcome,
        }

    # =========================================================================
    # Entry Points
    # =========================================================================

    def handle_event(self, message: InboundMessage) -> Optional[Action]:
        """
        Process one inbound message. Never raises.

        Returns:
            The action that handled the message, or None if it failed.
        """
        identity = message.sender
        with self.sessions.lock_for(identity):
            session = self.sessions.get_or_create(identity)
            try:
                return self._dispatch(session, message)
            except Exception as e:
                logger.error(
                    "Error processing message from %s (state: %s): %s",
                    identity, session.state.value, e,
                    exc_info=True,
                )
                self._reply(session, messages.format_error())
                return None

    def process_order(
        self,
        session: Session,
        customer_name: str,
        payment_method: PaymentMethod,
    ) -> str:
        """
        Finalize the session's cart into a persisted order.

        Persists the order, clears the session back to MAIN_MENU and sends the
        confirmation. A failed save is logged by the gateway and the customer
        is still confirmed.

        Returns:
            The order id (a millisecond timestamp token).
        """
        now = self.clock()
        delivery_type = session.pending_delivery_type or DeliveryType.PICKUP

        order = Order(
            order_id=str(int(now.timestamp() * 1000)),
            timestamp=now,
            customer_phone=session.identity,
            customer_name=customer_name,
            items=[OrderItem.from_cart_line(line) for line in session.cart],
            total=cart_total(session.cart),
            delivery_type=delivery_type,
            address=(session.pending_address or "") if delivery_type == DeliveryType.DELIVERY else "",
            payment_method=payment_method,
            payment_status=(
                PaymentStatus.CONFIRMED if payment_method == PaymentMethod.CASH else PaymentStatus.PENDING
            ),
        )

        if not self.orders.save_order(order):
            logger.warning("Order %s for %s was not persisted", order.order_id, session.identity)

        session.reset()

        self._reply(session, messages.format_order_confirmation(
            order,
            transfer_alias=self.transfer_alias,
            transfer_holder=self.transfer_holder,
        ))
        logger.info(
            "Order %s finalized for %s (%s, %s, total %.2f)",
            order.order_id, session.identity, delivery_type.value, payment_method.value, order.total,
        )
        return order.order_id

    def notify_status_change(self, phone: str, status: str) -> bool:
        """
        Send the canned notification for ``status`` to ``phone``.

        Used by the dashboard; does not touch the customer's session.
        Returns False when the status has no template.
        """
        text = messages.format_status_notification(status)
        if text is None:
            logger.info("No notification template for status %s", status)
            return False
        self.notifier.send(phone, text)
        return True

    def payment_link(self, order_id: str) -> str:
        return f"{self.payment_link_base_url}/{order_id}"

    # =========================================================================
    # Dispatch
    # =========================================================================

    def _dispatch(self, session: Session, message: InboundMessage) -> Action:
        kind = classify(message, awaiting_proof=session.state == ConversationState.PAYMENT_CONFIRMATION)
        transition: Transition = lookup(session.state, kind)
        logger.debug(
            "Dispatch %s: state=%s input=%s -> %s",
            session.identity, session.state.value, kind.value, transition.action.value,
        )

        override = self._handlers[transition.action](session, message)

        next_state = override or transition.next_state
        if next_state is not None and next_state != session.state:
            logger.info("Session %s: %s -> %s", session.identity, session.state.value, next_state.value)
            session.state = next_state
        return transition.action

    def _reply(self, session: Session, text: str) -> None:
        self.notifier.send(session.identity, text)

    # =========================================================================
    # Command Handlers
    # =========================================================================

    def _show_menu(self, session: Session, message: InboundMessage) -> None:
        menu = self.catalog.fetch_menu()
        text = messages.format_menu(menu)
        if session.cart:
            text += "\n\n" + messages.format_cart(session.cart)
        self._reply(session, text)

    def _show_cart(self, session: Session, message: InboundMessage) -> None:
        self._reply(session, messages.format_cart(session.cart))

    def _clear_cart(self, session: Session, message: InboundMessage) -> None:
        session.cart = []
        session.clear_pending()
        self._reply(session, messages.format_cleared())

    def _cancel_order(self, session: Session, message: InboundMessage) -> Optional[ConversationState]:
        if not session.cart:
            self._reply(session, messages.format_nothing_to_cancel())
            return session.state

        session.reset()
        self._reply(session, messages.format_cancelled())
        return None

    def _start_checkout(self, session: Session, message: InboundMessage) -> Optional[ConversationState]:
        if not session.cart:
            self._reply(session, messages.format_empty_cart_checkout())
            return session.state

        session.clear_pending()
        self._reply(session, messages.format_order_summary(session.cart))
        return None

    # =========================================================================
    # State Handlers
    # =========================================================================

    def _choose_delivery(self, session: Session, message: InboundMessage) -> Optional[ConversationState]:
        choice = normalize(message.body)

        if choice == "1":
            session.pending_delivery_type = DeliveryType.DELIVERY
            session.pending_address = None
            self._reply(session, messages.format_address_prompt())
            return ConversationState.PAYMENT_METHOD

        if choice == "2":
            session.pending_delivery_type = DeliveryType.PICKUP
            session.pending_address = None
            self._reply(session, messages.format_payment_prompt(DeliveryType.PICKUP))
            return ConversationState.PAYMENT_METHOD

        self._reply(session, messages.format_invalid_delivery_option())
        return None

    def _choose_payment(self, session: Session, message: InboundMessage) -> Optional[ConversationState]:
        if session.pending_delivery_type is None:
            # Reached without a delivery choice; ask again
            self._reply(session, messages.format_delivery_prompt())
            return ConversationState.DELIVERY_INFO

        if session.pending_delivery_type == DeliveryType.DELIVERY and not session.pending_address:
            address = (message.body or "").strip()
            if not address:
                self._reply(session, messages.format_address_prompt())
                return None
            session.pending_address = address
            self._reply(session, messages.format_payment_prompt(DeliveryType.DELIVERY, address))
            return None

        choice = normalize(message.body)
        if choice not in ("1", "2"):
            self._reply(session, messages.format_invalid_payment_option())
            return None

        if not session.cart:
            session.reset()
            self._reply(session, messages.format_empty_cart_checkout())
            return ConversationState.MAIN_MENU

        customer_name = message.profile_name or DEFAULT_CUSTOMER_NAME

        if choice == "1":
            self.process_order(session, customer_name, PaymentMethod.CASH)
            return ConversationState.MAIN_MENU

        order_id = self.process_order(session, customer_name, PaymentMethod.ONLINE)
        self._reply(session, messages.format_payment_link(order_id, self.payment_link(order_id)))
        return ConversationState.PAYMENT_CONFIRMATION

    def _confirm_payment(self, session: Session, message: InboundMessage) -> None:
        if not self.orders.update_payment_status(session.identity, PaymentStatus.RECEIVED.value):
            logger.warning("Proof of payment from %s did not match any order", session.identity)
        logger.info("Proof of payment received from %s: %s", session.identity, message.media_url)
        self._reply(session, messages.format_payment_received())

    # =========================================================================
    # Default Handlers
    # =========================================================================

    def _select_products(self, session: Session, message: InboundMessage) -> None:
        tokens = parse_selection(message.body)
        menu = self.catalog.fetch_menu()

        added: List[str] = []
        not_found: List[str] = []
        for token in tokens:
            product = find_product(menu, token)
            if product is None:
                not_found.append(token)
                continue
            add_product(session.cart, product)
            added.append(product.name)

        self._reply(
            session,
            messages.format_selection_result(added, not_found) + "\n\n" + messages.format_cart(session.cart),
        )

    def _welcome(self, session: Session, message: InboundMessage) -> None:
        self._reply(session, messages.format_welcome(message.profile_name or DEFAULT_CUSTOMER_NAME))
