"""
Agent tools: definitions and execution for the shopping agent.

Tools: add_to_cart, browse_catalog, get_cart, checkout, checkout_cart.
Each takes (arguments, context) where context is the run's configurable
({"user_id", "_credentials": {"user"}}) and returns a string for the LLM.
"""

import logging
from typing import Any, Callable

from app.agent.tools import add_to_cart, browse_catalog, checkout, checkout_cart, get_cart

logger = logging.getLogger(__name__)

# OpenAI function-calling format: list of tool definitions
AGENT_TOOLS = [
    add_to_cart.SCHEMA,
    browse_catalog.SCHEMA,
    get_cart.SCHEMA,
    checkout.SCHEMA,
    checkout_cart.SCHEMA,
]

_HANDLERS: dict[str, Callable[[dict[str, Any], dict[str, Any]], str]] = {
    "add_to_cart": add_to_cart.add_to_cart,
    "browse_catalog": browse_catalog.browse_catalog,
    "get_cart": get_cart.get_cart,
    "checkout": checkout.checkout,
    "checkout_cart": checkout_cart.checkout_cart,
}


def execute_tool(name: str, arguments: dict[str, Any], context: dict[str, Any] | None = None) -> str:
    """
    Execute a tool by name with the given arguments. Returns a string result for the LLM.
    Exceptions raised by a tool (e.g. CheckoutError) propagate to the caller.
    """
    args = arguments or {}
    logger.info("[tools] execute_tool name=%r arguments=%r", name, args)
    handler = _HANDLERS.get(name)
    if handler is None:
        return f"Unknown tool: {name}"
    return handler(args, context or {})
