"""
In-memory cart cache. Keyed by user_id; carts live for the lifetime of the process.
"""

import copy
import logging
import threading
from datetime import datetime, timezone
from typing import Any, TypedDict

logger = logging.getLogger(__name__)


class CartItem(TypedDict):
    id: str
    quantity: int
    price: float
    totalPrice: float


class Cart(TypedDict):
    userId: str
    items: list[CartItem]
    totalItems: int
    totalValue: float
    updatedAt: str | None


# user_id -> Cart
_carts: dict[str, Cart] = {}
_lock = threading.Lock()


def _empty_cart(user_id: str) -> Cart:
    return {"userId": user_id, "items": [], "totalItems": 0, "totalValue": 0.0, "updatedAt": None}


def _recompute(cart: Cart) -> None:
    cart["totalItems"] = sum(i["quantity"] for i in cart["items"])
    cart["totalValue"] = round(sum(i["totalPrice"] for i in cart["items"]), 2)
    cart["updatedAt"] = datetime.now(timezone.utc).isoformat()


def make_cart_item(product: dict[str, Any], quantity: int) -> CartItem:
    """Build a cart line from a catalog product."""
    price = float(product.get("price") or 0)
    return {
        "id": str(product.get("id", "")),
        "quantity": quantity,
        "price": price,
        "totalPrice": round(price * quantity, 2),
    }


def add_item_to_cart(user_id: str, item: CartItem) -> Cart:
    """Add an item to the user's cart, merging with an existing line for the same product."""
    with _lock:
        cart = _carts.setdefault(user_id, _empty_cart(user_id))
        for line in cart["items"]:
            if line["id"] == item["id"]:
                line["quantity"] += item["quantity"]
                line["price"] = item["price"]
                line["totalPrice"] = round(line["price"] * line["quantity"], 2)
                break
        else:
            cart["items"].append(dict(item))
        _recompute(cart)
        out = copy.deepcopy(cart)
    logger.info(
        "[cart_cache:add_item_to_cart] user_id=%s item=%s qty=%d OUT total_items=%d total_value=%.2f",
        user_id[:16], item["id"], item["quantity"], out["totalItems"], out["totalValue"],
    )
    return out


def get_cart(user_id: str) -> Cart:
    """Return the user's cart (copy so caller cannot mutate store); empty cart if none."""
    with _lock:
        cart = _carts.get(user_id)
        out = copy.deepcopy(cart) if cart else _empty_cart(user_id)
    logger.info("[cart_cache:get_cart] user_id=%s OUT items=%d", user_id[:16], len(out["items"]))
    return out


def take_cart(user_id: str, max_total: float | None = None) -> Cart:
    """
    Remove and return the user's cart in one step. The cart stays in place when it
    is empty or its total is above max_total; the returned copy shows which.
    """
    with _lock:
        cart = _carts.get(user_id)
        out = copy.deepcopy(cart) if cart else _empty_cart(user_id)
        taken = bool(out["items"]) and (max_total is None or out["totalValue"] <= max_total)
        if taken:
            del _carts[user_id]
    logger.info("[cart_cache:take_cart] user_id=%s items=%d total_value=%.2f taken=%s", user_id[:16], len(out["items"]), out["totalValue"], taken)
    return out


def clear_cart(user_id: str) -> bool:
    """Drop the user's cart. Returns True if there was one."""
    with _lock:
        existed = _carts.pop(user_id, None) is not None
    logger.info("[cart_cache:clear_cart] user_id=%s existed=%s", user_id[:16], existed)
    return existed


def clear_all() -> None:
    """Drop every cart."""
    with _lock:
        _carts.clear()
    logger.info("[cart_cache] cleared all carts")
