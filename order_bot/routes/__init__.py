"""
Routes Package for the Order Bot
================================

API route definitions, one APIRouter per concern:

- webhook.py: Inbound WhatsApp messages (POST /webhook)
- admin_orders.py: Order listing and status updates for the dashboard

Collaborators are injected with FastAPI's Depends() from
``order_bot.dependencies``.

Usage:
------
    from order_bot.routes import webhook_router, admin_orders_router

    app.include_router(webhook_router)
    app.include_router(admin_orders_router)
"""

from .admin_orders import admin_orders_router
from .webhook import webhook_router

__all__ = [
    "admin_orders_router",
    "webhook_router",
]
