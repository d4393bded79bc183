"""
API handlers: validate request data, call services/agent, map results/errors to HTTP.

Responsibility: Bridge HTTP types and services. Marshalling and exception-to-HTTP mapping.
Lives in the API layer so services stay free of FastAPI/HTTP types.
"""

import logging

from fastapi import HTTPException
from langgraph.errors import GraphRecursionError

from app.agent.authorization import get_authorization_state, reset_authorization_state
from app.agent.graph import run_agent
from app.auth.user import bearer_token, get_user
from app.core import cart_cache
from app.core.errors import CartRequestError
from app.schemas.cart import AddToCartRequest, CheckoutRequest
from app.schemas.chat import ChatRequest, ChatResponse
from app.services.catalog_client import find_product
from app.services.checkout_service import OrderRejectedError, place_order

logger = logging.getLogger(__name__)

GREETING = "Hello! I'm your shopping assistant. How can I help you today?"
EMPTY_MESSAGE_REPLY = "I didn't receive a message. Please try again."
NO_ANSWER_REPLY = "I'm sorry, I couldn't process that request."
RECURSION_REPLY = (
    "I apologize, but I encountered an issue processing your request. "
    "Please try rephrasing your question or ask for something more specific."
)
FALLBACK_REPLY = (
    "I'm your shopping assistant! I can help you with product recommendations and shopping. "
    "What would you like to do today?"
)


def handle_add_to_cart(body: AddToCartRequest) -> dict:
    """Validate, look the product up in the catalog, and add it to the user's cart."""
    if not body.userId:
        raise CartRequestError("userId is required")
    if not body.productCode and not body.productName:
        raise CartRequestError("Either productCode or productName is required")
    if body.quantity < 1:
        raise CartRequestError("quantity must be a positive integer")

    product = find_product(body.productCode, body.productName)
    if not product:
        raise CartRequestError("Product not found in catalog", status_code=404)

    item = cart_cache.make_cart_item(product, body.quantity)
    cart = cart_cache.add_item_to_cart(body.userId, item)
    logger.info("[api:add_to_cart] added %s x %s for user_id=%s", item["quantity"], item["id"], body.userId[:16])
    return {
        "success": True,
        "message": f"Added {item['quantity']} x {item['id']} to cart",
        "cartItem": item,
        "cart": cart,
    }


def handle_get_cart(user_id: str | None) -> dict:
    if not user_id or not user_id.strip():
        raise CartRequestError("userId is required")
    cart = cart_cache.get_cart(user_id.strip())
    return {"success": True, "cart": cart, "message": "Cart retrieved successfully"}


def handle_checkout(body: CheckoutRequest, authorization: str | None) -> dict:
    """Place an order; requires a bearer token (the CIBA-issued access token)."""
    if not bearer_token(authorization):
        raise HTTPException(status_code=401, detail="Missing bearer token")
    try:
        order = place_order(body.product, body.qty, price_limit=body.priceLimit, user_id=body.userId)
    except OrderRejectedError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    return {
        "success": True,
        "orderId": order.order_id,
        "message": f"Ordered {order.qty} {order.product}",
        "total": order.total,
    }


def handle_chat(body: ChatRequest, authorization: str | None) -> ChatResponse:
    """
    Run the shopping agent on the last message and report the purchase
    authorization status alongside the reply.
    """
    messages = body.messages if isinstance(body.messages, list) else []
    if not messages:
        return ChatResponse(message=GREETING)
    last = messages[-1]
    content = last.get("content") if isinstance(last, dict) else None
    if not content:
        return ChatResponse(message=EMPTY_MESSAGE_REPLY)
    content = str(content)

    try:
        user = get_user(authorization)
        user_id = (user or {}).get("sub")
        logger.info("[api:chat] user=%s message=%r", user_id, content)

        reset_authorization_state()
        result = run_agent(content, user_id=user_id or "", user=user)
    except GraphRecursionError:
        logger.error("[api:chat] recursion limit hit; the agent may be stuck in a loop")
        return ChatResponse(message=RECURSION_REPLY, error="Request too complex - please simplify")
    except Exception:
        logger.exception("[api:chat] agent failed")
        return ChatResponse(message=FALLBACK_REPLY)

    auth_state = get_authorization_state()
    response = ChatResponse(message=result.get("answer") or NO_ANSWER_REPLY)
    if auth_state.get("status") != "idle":
        response.authorizationStatus = auth_state.get("status")
        if auth_state.get("message"):
            response.authorizationMessage = auth_state["message"]
    logger.info("[api:chat] OUT tools_used=%s authorization=%s", result.get("tools_used"), auth_state.get("status"))
    return response
