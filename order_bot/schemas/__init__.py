"""
Schemas Package for the Order Bot
=================================

Pydantic request/response models for the HTTP surface. Domain models used by
the conversation engine live in ``order_bot.models``.
"""

from .orders import (
    OrderItemOut,
    OrderOut,
    StatusUpdateRequest,
    StatusUpdateResponse,
)

__all__ = [
    "OrderItemOut",
    "OrderOut",
    "StatusUpdateRequest",
    "StatusUpdateResponse",
]
