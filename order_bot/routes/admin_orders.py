"""
Admin Orders Routes for the Order Bot
=====================================

Endpoints backing the order dashboard (``static/index.html``). Orders live in
the spreadsheet's orders tab; they are addressed by customer phone because
the persisted row carries no order id.

Endpoints:
----------
- GET /api/orders: List every persisted order, oldest first
- POST /api/orders/{phone}/status: Set the status of the customer's latest order

Notifications:
--------------
A successful status change sends the customer the canned message for that
status (PREPARANDO, LISTO, EN_DELIVERY, ENTREGADO, FINALIZADO, CANCELADO).
Other statuses are stored without notifying anyone; the response reports
which case happened in ``notified``.

Usage:
------
    # List orders
    GET /api/orders

    # Mark a customer's latest order as ready
    POST /api/orders/whatsapp:+5491122334455/status
    {"status": "LISTO"}
"""

import logging
from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..conversation.engine import ConversationEngine
from ..dependencies import get_engine, get_order_gateway
from ..schemas.orders import OrderOut, StatusUpdateRequest, StatusUpdateResponse
from ..services.orders import OrderGateway


logger = logging.getLogger(__name__)

# Router definition
admin_orders_router = APIRouter(prefix="/api/orders", tags=["Admin - Orders"])

ORDER_NOT_FOUND = "Pedido no encontrado"


# =============================================================================
# Order Endpoints
# =============================================================================

@admin_orders_router.get("", response_model=List[OrderOut])
def list_orders(orders: OrderGateway = Depends(get_order_gateway)):
    """Return every persisted order. Empty when the store has no rows."""
    try:
        return [OrderOut.from_order(order) for order in orders.list_orders()]
    except Exception as e:
        logger.error("Failed to list orders: %s", e, exc_info=True)
        return JSONResponse(status_code=500, content={"error": "No se pudieron obtener los pedidos"})


@admin_orders_router.post("/{phone}/status", response_model=StatusUpdateResponse)
def update_order_status(
    phone: str,
    payload: StatusUpdateRequest,
    orders: OrderGateway = Depends(get_order_gateway),
    engine: ConversationEngine = Depends(get_engine),
):
    """
    Update the status of the latest order for ``phone`` and notify the customer.

    Returns 404 when no order matches the phone (or the store could not be
    updated).
    """
    if not orders.update_order_status(phone, payload.status):
        return JSONResponse(
            status_code=404,
            content=StatusUpdateResponse(success=False, error=ORDER_NOT_FOUND).model_dump(exclude_none=True),
        )

    notified = engine.notify_status_change(phone, payload.status)
    logger.info("Order for %s set to %s (notified: %s)", phone, payload.status, notified)
    return StatusUpdateResponse(success=True, status=payload.status, notified=notified)
