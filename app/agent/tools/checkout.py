"""
checkout tool: place an order through the shop API with the CIBA-issued token.
"""

import logging
import threading
from typing import Any

from app.agent.authorization import with_async_authorization
from app.auth.ciba import get_ciba_credentials
from app.core.config import SHOP_API_URL
from app.core.errors import CheckoutError
from app.services.shop_api import shop_client

logger = logging.getLogger(__name__)

SCHEMA = {
    "type": "function",
    "function": {
        "name": "checkout",
        "description": (
            "Tool to checkout and complete grocery orders. Accepts the product, the quantity, and an optional "
            "price limit for the whole order. Calls the checkout API to process payment and finalize the order "
            "for delivery. The user is asked to approve the purchase on their own device before the order is placed."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "product": {"type": "string", "description": "Product code or name (e.g. banana, Whole Milk)"},
                "qty": {"type": "integer", "description": "Number of items to buy"},
                "priceLimit": {"type": "number", "description": "Optional maximum total price for the order"},
            },
            "required": ["product", "qty"],
        },
    },
}

# Set once this module has actually received credentials for a checkout
_shop_state: dict[str, Any] | None = None
_lock = threading.Lock()


def _set_authorization_approved() -> None:
    global _shop_state
    with _lock:
        _shop_state = {"status": "approved"}


def get_shop_auth_state() -> dict[str, Any] | None:
    with _lock:
        return dict(_shop_state) if _shop_state else None


def reset_shop_auth_state() -> None:
    global _shop_state
    with _lock:
        _shop_state = None


def post_order(args: dict[str, Any], context: dict[str, Any]) -> str:
    """POST the order to SHOP_API_URL. Raises CheckoutError on a non-2xx answer."""
    product = args.get("product")
    qty = args.get("qty")
    price_limit = args.get("priceLimit")
    logger.info("[tools:checkout] Processing order: %s %s with price limit %s", qty, product, price_limit)

    headers = {"Content-Type": "application/json"}
    body: dict[str, Any] = {"product": product, "qty": qty, "priceLimit": price_limit}
    if args.get("userId"):
        body["userId"] = args["userId"]

    credentials = get_ciba_credentials() or {}
    access_token = credentials.get("access_token")
    logger.info("[tools:checkout] access token available: %s", bool(access_token))
    if access_token:
        headers["Authorization"] = f"Bearer {access_token}"
        _set_authorization_approved()

    with shop_client() as client:
        response = client.post(SHOP_API_URL, json=body, headers=headers)
    logger.info("[tools:checkout] API response status: %d", response.status_code)
    if not response.is_success:
        logger.error("[tools:checkout] API error: %d - %s", response.status_code, response.text[:300])
        raise CheckoutError(f"Checkout failed: {response.status_code} - {response.text}")
    return response.text or f"Successfully ordered {qty} {product}"


checkout = with_async_authorization(post_order)
