"""
Order Gateway
=============

Persists finalized orders to the ``Pedidos`` tab and mutates their status.

Row layout (columns A:J, first row is a header):

    timestamp, phone, customer, items, total, delivery type,
    address, payment method, payment status, status

Key Functions:
--------------
- save_order: Append one finalized order
- list_orders: Parse every persisted row for the dashboard
- update_order_status: Overwrite column J of the customer's latest order
- update_payment_status: Overwrite column I of the customer's latest order

Lookup by Phone:
----------------
Orders are addressed by customer phone. Status updates scan rows from the
most recent to the oldest and touch only the first match, so a customer
with several orders always gets their latest one updated. The scan is O(n)
with no index; the sheet is expected to stay small.

Phones are compared on their digits only, so ``whatsapp:+5491122334455``
and ``+54 9 11 2233-4455`` address the same customer.

Failure Semantics:
------------------
Store errors never propagate: they are logged and reported as False / [].
An unconfigured store (``OrderBotError``) is a warning, anything else an
error with traceback.
A failed save does not stop the confirmation message from reaching the
customer.
"""

import logging
from typing import Any, List, Optional, Tuple

from ..exceptions import OrderBotError
from ..models import Order
from .sheets import a1


logger = logging.getLogger(__name__)

PAYMENT_STATUS_COLUMN = "I"
STATUS_COLUMN = "J"


def normalize_phone(phone: str) -> str:
    """Reduce a phone-number-shaped address to its digits."""
    return "".join(c for c in (phone or "") if c.isdigit())


class OrderGateway:
    """Append-only order sink with in-place status updates."""

    def __init__(self, client, sheet: str = "Pedidos"):
        self.client = client
        self.sheet = sheet

    @property
    def range_a1(self) -> str:
        return a1(self.sheet, "A:J")

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def save_order(self, order: Order) -> bool:
        """Append ``order`` as one row. Returns False (and logs) on failure."""
        try:
            self.client.append_rows(self.range_a1, [order.to_row()])
        except OrderBotError as e:
            logger.warning("Order %s for %s not saved: %s", order.order_id, order.customer_phone, e)
            return False
        except Exception as e:
            logger.error(
                "Failed to save order %s for %s: %s",
                order.order_id, order.customer_phone, e,
                exc_info=True,
            )
            return False

        logger.info("Order %s saved (total: %.2f)", order.order_id, order.total)
        return True

    def update_order_status(self, phone: str, status: str) -> bool:
        """Set the lifecycle status of the latest order for ``phone``."""
        return self._update_latest(phone, STATUS_COLUMN, status)

    def update_payment_status(self, phone: str, payment_status: str) -> bool:
        """Set the payment status of the latest order for ``phone``."""
        return self._update_latest(phone, PAYMENT_STATUS_COLUMN, payment_status)

    def _update_latest(self, phone: str, column: str, value: str) -> bool:
        try:
            match = self._find_latest_row(phone)
            if match is None:
                logger.info("No order found for %s", phone)
                return False

            row_number, _row = match
            self.client.update_values(a1(self.sheet, f"{column}{row_number}"), [[value]])
        except OrderBotError as e:
            logger.warning("Column %s for %s not updated: %s", column, phone, e)
            return False
        except Exception as e:
            logger.error("Failed to update column %s for %s: %s", column, phone, e, exc_info=True)
            return False

        logger.info("Order row %d for %s: column %s set to %s", row_number, phone, column, value)
        return True

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def list_orders(self) -> List[Order]:
        """Return every persisted order, oldest first. Empty on failure."""
        try:
            rows = self.client.get_values(self.range_a1)
        except OrderBotError as e:
            logger.warning("Orders unavailable: %s", e)
            return []
        except Exception as e:
            logger.error("Failed to read orders: %s", e, exc_info=True)
            return []

        return [Order.from_row(row) for row in rows[1:] if row]

    def _find_latest_row(self, phone: str) -> Optional[Tuple[int, List[Any]]]:
        """
        Return (1-based sheet row number, row) of the newest order for ``phone``.

        Raises whatever the client raises; callers decide how to degrade.
        """
        target = normalize_phone(phone)
        if not target:
            return None

        rows = self.client.get_values(self.range_a1)
        # rows[0] is the header, data row i lives at sheet row i + 1
        for index in range(len(rows) - 1, 0, -1):
            row = rows[index]
            if len(row) > 1 and normalize_phone(str(row[1])) == target:
                return index + 1, row
        return None
