"""
Domain Models for the Order Bot
===============================

Pydantic models for everything the conversation engine touches:

- **Product**: A catalog row. Read-only, sourced from the ``Menu`` tab.
- **CartLine**: A product snapshot taken when it was added, plus a quantity.
- **Session**: Per-customer conversation context (state, cart, pending fields).
- **InboundMessage**: One webhook event, already decoded from the form body.
- **Order**: A finalized cart as persisted in the ``Pedidos`` tab.

Persisted Order Layout:
-----------------------
Columns A:J of the orders tab, in order:

    timestamp, phone, customer, items (JSON), total, delivery type,
    address, payment method, payment status, status

``Order.to_row()`` and ``Order.from_row()`` are the only places that know
this layout.
"""

import json
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


# =============================================================================
# Enums
# =============================================================================

class ConversationState(str, Enum):
    """States of the ordering conversation."""
    MAIN_MENU = "main_menu"
    BROWSING_PRODUCTS = "browsing_products"
    CART_REVIEW = "cart_review"
    DELIVERY_INFO = "delivery_info"
    PAYMENT_METHOD = "payment_method"
    PAYMENT_CONFIRMATION = "payment_confirmation"  # Awaiting proof-of-payment image
    CONFIRMING_ORDER = "confirming_order"  # Address sub-state of the basic flow, never entered


class DeliveryType(str, Enum):
    DELIVERY = "delivery"
    PICKUP = "pickup"


class PaymentMethod(str, Enum):
    CASH = "efectivo"
    ONLINE = "online"


class PaymentStatus(str, Enum):
    CONFIRMED = "CONFIRMADO"
    PENDING = "PENDIENTE"
    RECEIVED = "RECIBIDO"


class OrderStatus(str, Enum):
    """Lifecycle status of a persisted order, as set from the dashboard."""
    NEW = "NUEVO"
    PREPARING = "PREPARANDO"
    READY = "LISTO"
    OUT_FOR_DELIVERY = "EN_DELIVERY"
    DELIVERED = "ENTREGADO"
    FINISHED = "FINALIZADO"
    CANCELLED = "CANCELADO"


# =============================================================================
# Catalog and Cart
# =============================================================================

class Product(BaseModel):
    """A catalog product. ``id`` stays a string even though it looks numeric."""
    id: str
    name: str
    description: str = ""
    price: float = Field(ge=0)
    category: str = ""
    available: bool = True

    @classmethod
    def from_row(cls, row: List[Any]) -> "Product":
        """
        Parse a catalog row: id, name, description, price, category, available.

        Raises:
            ValueError: If id, name or price are missing or the price is not
                        a non-negative number.
        """
        cells = [str(c).strip() if c is not None else "" for c in row]
        cells += [""] * (6 - len(cells))
        product_id, name, description, price, category, available = cells[:6]

        if not product_id or not name:
            raise ValueError(f"Catalog row without id or name: {row!r}")

        return cls(
            id=product_id,
            name=name,
            description=description,
            price=float(price.replace(",", ".")),
            category=category,
            available=available.upper() == "TRUE",
        )


class CartLine(BaseModel):
    product: Product
    quantity: int = Field(default=1, ge=1)

    @property
    def subtotal(self) -> float:
        return self.product.price * self.quantity


# =============================================================================
# Session
# =============================================================================

class Session(BaseModel):
    """
    Conversation context for one customer.

    Created lazily by the session store on the first inbound event and only
    ever mutated by the conversation engine.
    """
    identity: str
    state: ConversationState = ConversationState.MAIN_MENU
    cart: List[CartLine] = Field(default_factory=list)
    pending_delivery_type: Optional[DeliveryType] = None
    pending_address: Optional[str] = None

    def clear_pending(self) -> None:
        self.pending_delivery_type = None
        self.pending_address = None

    def reset(self) -> None:
        """Empty the cart, drop pending checkout fields and go back to the main menu."""
        self.cart = []
        self.clear_pending()
        self.state = ConversationState.MAIN_MENU


# =============================================================================
# Inbound Events
# =============================================================================

class InboundMessage(BaseModel):
    """A decoded webhook event."""
    body: str = ""
    sender: str
    profile_name: Optional[str] = None
    media_url: Optional[str] = None
    media_content_type: Optional[str] = None

    @property
    def has_image(self) -> bool:
        return bool(
            self.media_url
            and self.media_content_type
            and self.media_content_type.lower().startswith("image/")
        )


# =============================================================================
# Orders
# =============================================================================

class OrderItem(BaseModel):
    """Item snapshot stored with an order."""
    id: str
    name: str
    price: float
    quantity: int

    @classmethod
    def from_cart_line(cls, line: CartLine) -> "OrderItem":
        return cls(
            id=line.product.id,
            name=line.product.name,
            price=line.product.price,
            quantity=line.quantity,
        )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Order(BaseModel):
    order_id: str = ""
    timestamp: datetime = Field(default_factory=_utcnow)
    customer_phone: str
    customer_name: str = ""
    items: List[OrderItem] = Field(default_factory=list)
    total: float = 0.0
    delivery_type: Optional[DeliveryType] = None
    address: str = ""
    payment_method: Optional[PaymentMethod] = None
    payment_status: Optional[PaymentStatus] = None
    status: str = OrderStatus.NEW.value

    def to_row(self) -> List[Any]:
        return [
            self.timestamp.isoformat(),
            self.customer_phone,
            self.customer_name,
            json.dumps([item.model_dump() for item in self.items], ensure_ascii=False),
            round(self.total, 2),
            self.delivery_type.value if self.delivery_type else "",
            self.address,
            self.payment_method.value if self.payment_method else "",
            self.payment_status.value if self.payment_status else "",
            self.status,
        ]

    @classmethod
    def from_row(cls, row: List[Any]) -> "Order":
        """
        Parse a persisted order row, tolerating missing optional columns.

        Short rows (hand-edited, or written before the payment columns
        existed) are padded with defaults; unknown enum values are dropped
        instead of failing the whole listing.
        """
        cells = [str(c) if c is not None else "" for c in row]
        cells += [""] * (10 - len(cells))

        (timestamp, phone, customer, items_raw, total, delivery_type,
         address, payment_method, payment_status, status) = cells[:10]

        return cls(
            timestamp=_parse_timestamp(timestamp),
            customer_phone=phone,
            customer_name=customer,
            items=_parse_items(items_raw),
            total=_parse_float(total),
            delivery_type=_parse_enum(DeliveryType, delivery_type),
            address=address,
            payment_method=_parse_enum(PaymentMethod, payment_method),
            payment_status=_parse_enum(PaymentStatus, payment_status),
            status=status or OrderStatus.NEW.value,
        )


def _parse_timestamp(raw: str) -> datetime:
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return datetime.fromtimestamp(0, tz=timezone.utc)


def _parse_float(raw: str) -> float:
    try:
        return float(raw.replace(",", "."))
    except ValueError:
        return 0.0


def _parse_enum(enum_cls, raw: str):
    try:
        return enum_cls(raw.strip())
    except ValueError:
        return None


def _parse_items(raw: str) -> List[OrderItem]:
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Unparseable items column in order row: %.80s", raw)
        return []
    if not isinstance(data, list):
        return []

    items = []
    for entry in data:
        if not isinstance(entry, dict):
            continue
        try:
            items.append(OrderItem(
                id=str(entry.get("id", "")),
                name=str(entry.get("name", "")),
                price=float(entry.get("price", 0) or 0),
                quantity=int(entry.get("quantity", 1) or 1),
            ))
        except (TypeError, ValueError):
            logger.warning("Skipping malformed order item: %r", entry)
    return items
