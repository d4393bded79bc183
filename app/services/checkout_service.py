"""
Checkout: price and place an order for a single product or a user's whole cart.

Responsibility: Order rules behind /api/checkout (stock, price limit, cart
clearing). Token checks happen in the API layer; no HTTP or FastAPI here.
"""

import logging
import uuid
from dataclasses import dataclass

from app.core import cart_cache
from app.services.catalog_service import find_product

logger = logging.getLogger(__name__)


class OrderRejectedError(Exception):
    """Raised when an order cannot be placed; status_code is the HTTP status to answer with."""

    def __init__(self, message: str, status_code: int = 400) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


@dataclass
class OrderResult:
    """A placed order."""

    order_id: str
    product: str
    qty: int
    total: float


def place_order(
    product: str,
    qty: int,
    price_limit: float | None = None,
    user_id: str | None = None,
) -> OrderResult:
    """
    Place an order. With user_id the order is that user's cart (cleared on
    success); otherwise product is looked up in the catalog by code or name.
    """
    logger.info("[checkout_service:place_order] IN  product=%r qty=%d price_limit=%s user_id=%s", product, qty, price_limit, user_id)
    if qty < 1:
        raise OrderRejectedError("qty must be at least 1")

    if user_id:
        cart = cart_cache.take_cart(user_id, max_total=price_limit)
        if not cart["items"]:
            raise OrderRejectedError("Cart is empty")
        total = cart["totalValue"]
        # Cart orders report the item count actually removed
        qty = cart["totalItems"]
    else:
        item = find_product(product_code=product, product_name=product)
        if item is None:
            raise OrderRejectedError(f"Product not found: {product}", status_code=404)
        if not item.get("inStock", True):
            raise OrderRejectedError(f"Product out of stock: {item.get('name') or product}", status_code=409)
        total = round(float(item.get("price") or 0) * qty, 2)

    if price_limit is not None and total > price_limit:
        raise OrderRejectedError(f"Price limit exceeded: total {total:.2f} is above limit {price_limit:.2f}")

    result = OrderResult(order_id=uuid.uuid4().hex, product=product, qty=qty, total=total)
    logger.info("[checkout_service:place_order] OUT order_id=%s total=%.2f", result.order_id, total)
    return result
