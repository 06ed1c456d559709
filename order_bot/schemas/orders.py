"""
Order Schemas for the Admin Dashboard
=====================================

Pydantic models for the order endpoints consumed by the dashboard page.

Endpoint Coverage:
------------------
- GET /api/orders: List every persisted order
- POST /api/orders/{phone}/status: Change the status of a customer's latest order

Order Lifecycle:
----------------
1. **NUEVO**: Written by the bot when the customer finalizes
2. **PREPARANDO / LISTO / EN_DELIVERY / ENTREGADO / FINALIZADO**: Set from
   the dashboard; each one notifies the customer
3. **CANCELADO**: Set from the dashboard; notifies the customer

Any other status string is stored as-is without a notification.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from ..models import Order


class OrderItemOut(BaseModel):
    id: str
    name: str
    price: float
    quantity: int


class OrderOut(BaseModel):
    """
    Response model for one persisted order.

    Attributes:
        date: Timestamp written when the order was finalized
        phone: Customer WhatsApp address
        customer: Display name reported by WhatsApp
        items: Item snapshots (id, name, price, quantity)
        total: Order total
        delivery_type: "delivery" or "pickup" (None for malformed rows)
        address: Delivery address, empty for pickup
        payment_method: "efectivo" or "online"
        payment_status: CONFIRMADO, PENDIENTE or RECIBIDO
        status: Lifecycle status
    """
    date: datetime
    phone: str
    customer: str
    items: List[OrderItemOut]
    total: float
    delivery_type: Optional[str] = None
    address: str = ""
    payment_method: Optional[str] = None
    payment_status: Optional[str] = None
    status: str

    @classmethod
    def from_order(cls, order: Order) -> "OrderOut":
        return cls(
            date=order.timestamp,
            phone=order.customer_phone,
            customer=order.customer_name,
            items=[OrderItemOut(**item.model_dump()) for item in order.items],
            total=order.total,
            delivery_type=order.delivery_type.value if order.delivery_type else None,
            address=order.address,
            payment_method=order.payment_method.value if order.payment_method else None,
            payment_status=order.payment_status.value if order.payment_status else None,
            status=order.status,
        )


class StatusUpdateRequest(BaseModel):
    status: str = Field(..., min_length=1, max_length=50)

    @field_validator("status")
    @classmethod
    def normalize_status(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("status must not be blank")
        return v


class StatusUpdateResponse(BaseModel):
    success: bool
    status: Optional[str] = None
    notified: bool = False
    error: Optional[str] = None
