"""
get_cart tool: read the current user's cart.
"""

import json
import logging
from typing import Any

import httpx

from app.services.shop_api import shop_client

logger = logging.getLogger(__name__)

SCHEMA = {
    "type": "function",
    "function": {
        "name": "get_cart",
        "description": "Get the current cart contents for the authenticated user",
        "parameters": {"type": "object", "properties": {}},
    },
}


def fetch_cart(user_id: str) -> dict[str, Any]:
    """GET /api/get-cart for user_id. Raises RuntimeError / httpx.HTTPError on failure."""
    with shop_client() as client:
        response = client.get("/api/get-cart", params={"userId": user_id})
    if not response.is_success:
        raise RuntimeError(f"HTTP error! status: {response.status_code}")
    data = response.json()
    if not data.get("success"):
        raise RuntimeError(data.get("error") or "Failed to get cart")
    return data


def get_cart(args: dict[str, Any], context: dict[str, Any]) -> str:
    user_id = (context or {}).get("user_id") or ""
    logger.info("[tools:get_cart] IN  user_id=%s", user_id[:16])
    try:
        data = fetch_cart(user_id)
    except (httpx.HTTPError, RuntimeError, ValueError) as e:
        logger.warning("[tools:get_cart] failed: %s", e)
        return json.dumps({"success": False, "error": str(e)})
    return json.dumps({
        "success": True,
        "cart": data.get("cart"),
        "message": data.get("message") or "Cart retrieved successfully",
    })
