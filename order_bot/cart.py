"""
Cart operations.

A cart is an ordered list of CartLines with at most one line per product id.
Totals are always recomputed from the lines; nothing is cached on the session.
"""

from typing import Iterable, List, Optional

from .models import CartLine, Product


def _id_key(product_id: str):
    """Numeric ids compare by value so "01" and "1" address the same product."""
    try:
        return int(product_id)
    except (TypeError, ValueError):
        return str(product_id).strip()


def find_product(menu: Iterable[Product], product_id: str) -> Optional[Product]:
    """Return the first catalog product whose id matches, or None."""
    key = _id_key(product_id)
    for product in menu:
        if _id_key(product.id) == key:
            return product
    return None


def add_product(cart: List[CartLine], product: Product) -> CartLine:
    """
    Add one unit of ``product`` to ``cart`` in place.

    Increments the existing line for the same id, otherwise appends a new
    line holding a snapshot of the product. Returns the affected line.
    """
    key = _id_key(product.id)
    for line in cart:
        if _id_key(line.product.id) == key:
            line.quantity += 1
            return line

    line = CartLine(product=product.model_copy(), quantity=1)
    cart.append(line)
    return line


def cart_total(cart: Iterable[CartLine]) -> float:
    return sum(line.subtotal for line in cart)
