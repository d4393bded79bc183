"""
add_to_cart tool: add a catalog product to the current user's cart.
"""

import json
import logging
from typing import Any

import httpx

from app.services.shop_api import error_detail, shop_client

logger = logging.getLogger(__name__)

SCHEMA = {
    "type": "function",
    "function": {
        "name": "add_to_cart",
        "description": (
            "Add an item to the user's shopping cart. Use this tool when users ask to add products to their cart. "
            "Provide productCode (the product id, e.g. banana, apple, milk) or productName, and optionally quantity "
            "(default 1). This tool does not require step-up authorization, only basic login. Use it immediately "
            "when users express intent to add items to their cart."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "productCode": {"type": "string", "description": "The product code/id (e.g. banana, apple, milk)"},
                "productName": {"type": "string", "description": "Product name, used when the code is unknown"},
                "quantity": {"type": "integer", "description": "Number of items to add (default: 1)"},
            },
        },
    },
}


def add_to_cart(args: dict[str, Any], context: dict[str, Any]) -> str:
    user_id = (context or {}).get("user_id") or ""
    payload = dict(args or {})
    logger.info("[tools:add_to_cart] IN  user_id=%s args=%s", user_id[:16], payload)

    # Models sometimes pass the catalog "id" field instead of productCode
    if payload.get("id") and not payload.get("productCode"):
        payload["productCode"] = payload.pop("id")

    if not payload.get("productCode") and not payload.get("productName"):
        return json.dumps({"success": False, "error": "Either productCode or productName is required"})

    payload["quantity"] = payload.get("quantity") or 1
    payload["userId"] = user_id

    try:
        with shop_client() as client:
            response = client.post("/api/add-to-cart", json=payload)
        if not response.is_success:
            raise RuntimeError(f"Failed to add item to cart: {error_detail(response)}")
        result = response.json()
    except (httpx.HTTPError, RuntimeError, ValueError) as e:
        logger.warning("[tools:add_to_cart] failed: %s", e)
        return json.dumps({"success": False, "error": str(e)})

    logger.info("[tools:add_to_cart] OUT message=%r", result.get("message"))
    return json.dumps({
        "success": True,
        "message": result.get("message"),
        "cartItem": result.get("cartItem"),
        "totalItems": (result.get("cart") or {}).get("totalItems"),
    })
