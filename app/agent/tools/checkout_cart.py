"""
checkout_cart tool: check out everything in the current user's cart as one order.
"""

import json
import logging
from typing import Any

import httpx

from app.agent.tools.checkout import checkout
from app.agent.tools.get_cart import fetch_cart

logger = logging.getLogger(__name__)

SCHEMA = {
    "type": "function",
    "function": {
        "name": "checkout_cart",
        "description": (
            "Check out the whole shopping cart of the authenticated user as a single order, capped at the cart's "
            "current total. Use when the user wants to buy what is in their cart. The user is asked to approve "
            "the purchase on their own device before the order is placed."
        ),
        "parameters": {"type": "object", "properties": {}},
    },
}


def checkout_cart(args: dict[str, Any], context: dict[str, Any]) -> str:
    user_id = (context or {}).get("user_id") or ""
    logger.info("[tools:checkout_cart] IN  user_id=%s", user_id[:16])
    try:
        cart = fetch_cart(user_id).get("cart") or {}
    except (httpx.HTTPError, RuntimeError, ValueError) as e:
        logger.warning("[tools:checkout_cart] could not read cart: %s", e)
        return json.dumps({"success": False, "error": str(e)})
    if not cart.get("items"):
        return json.dumps({"success": False, "error": "Your cart is empty"})
    order = {
        "product": "items from your cart",
        "qty": cart.get("totalItems"),
        "priceLimit": cart.get("totalValue"),
        "userId": user_id,
    }
    return checkout(order, context)
