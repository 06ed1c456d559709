"""
Catalog Gateway
===============

Reads the product list from the ``Menu`` tab of the spreadsheet.

Row layout (columns A:F, first row is a header):

    id, name, description, price, category, available

Only rows whose availability cell is the literal ``TRUE`` reach the
conversation engine. The catalog is fetched on every menu-related command;
there is no cache, so edits in the spreadsheet show up on the next message.

Validation:
-----------
Rows without id/name or with a non-numeric or negative price are skipped
with a warning. Duplicate ids are kept in the listing but logged, and
lookups resolve to the first occurrence.
"""

import logging
from typing import Any, List

from pydantic import ValidationError

from ..exceptions import OrderBotError
from ..models import Product


logger = logging.getLogger(__name__)


class CatalogGateway:
    """Read-only access to the product catalog."""

    def __init__(self, client, range_a1: str = "Menu!A:F"):
        self.client = client
        self.range_a1 = range_a1

    def fetch_menu(self) -> List[Product]:
        """
        Return the available products in sheet order.

        Any read failure is logged and degrades to an empty list. A store
        that is not configured only warns.
        """
        try:
            rows = self.client.get_values(self.range_a1)
        except OrderBotError as e:
            logger.warning("Catalog unavailable: %s", e)
            return []
        except Exception as e:
            logger.error("Failed to read catalog from %s: %s", self.range_a1, e, exc_info=True)
            return []

        if not rows:
            return []

        return self.parse_rows(rows[1:])

    @staticmethod
    def parse_rows(rows: List[List[Any]]) -> List[Product]:
        products: List[Product] = []
        seen_ids = set()

        for row in rows:
            if not row or not any(str(c).strip() for c in row):
                continue
            try:
                product = Product.from_row(row)
            except (ValueError, ValidationError) as e:
                logger.warning("Skipping invalid catalog row %r: %s", row, e)
                continue

            if not product.available:
                continue

            if product.id in seen_ids:
                logger.warning("Duplicate catalog id %s (%s); first occurrence wins", product.id, product.name)
            seen_ids.add(product.id)
            products.append(product)

        return products
