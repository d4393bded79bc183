"""
Authorization bridge between the chat endpoint and protected (checkout) tools.

Holds the authorization status reported back to the chat client
(idle -> requested -> pending -> approved | denied). The checkout tool module
keeps its own status, set when it actually receives credentials; the two are
reconciled in get_authorization_state() and reset together per chat request.
The checkout module imports this one, so it is imported lazily here.
"""

import logging
import threading
from typing import Any, Literal, TypedDict

from app.auth.ciba import AsyncUserConfirmation, BackchannelRequest
from app.core.config import CHECKOUT_SCOPES, SHOP_API_AUDIENCE
from app.core.errors import AccessDeniedError

logger = logging.getLogger(__name__)

AuthorizationStatus = Literal["idle", "requested", "pending", "approved", "denied"]

ACCESS_DENIED_MESSAGE = "The user has denied the request"


class AuthorizationState(TypedDict, total=False):
    status: AuthorizationStatus
    message: str


_state: AuthorizationState = {"status": "idle"}
_lock = threading.Lock()


def _set_state(status: AuthorizationStatus, message: str | None = None) -> None:
    global _state
    with _lock:
        _state = {"status": status}
        if message:
            _state["message"] = message
    logger.info("[authorization] status=%s message=%r", status, message)


def get_authorization_state() -> AuthorizationState:
    """Current status (copy). Promoted to approved once the checkout tool has used credentials."""
    from app.agent.tools.checkout import get_shop_auth_state

    shop_state = get_shop_auth_state()
    with _lock:
        if shop_state and shop_state.get("status") == "approved" and _state.get("status") in ("requested", "pending"):
            _state["status"] = "approved"
        return dict(_state)


def reset_authorization_state() -> None:
    """Back to idle; also clears the checkout tool's status."""
    global _state
    from app.agent.tools.checkout import reset_shop_auth_state

    with _lock:
        _state = {"status": "idle"}
    reset_shop_auth_state()


def _user_id(args: dict[str, Any], context: dict[str, Any]) -> str | None:
    user = ((context or {}).get("_credentials") or {}).get("user") or {}
    return user.get("sub")


def _binding_message(args: dict[str, Any]) -> str:
    message = f"Do you want to buy {args.get('qty')} {args.get('product')}"
    _set_state("requested", message)
    return message


def _on_pending(request: BackchannelRequest) -> None:
    with _lock:
        if _state.get("status") == "requested":
            _state["status"] = "pending"


def _on_unauthorized(error: Exception) -> str:
    if isinstance(error, AccessDeniedError):
        _set_state("denied", ACCESS_DENIED_MESSAGE)
        return ACCESS_DENIED_MESSAGE
    message = getattr(error, "message", None) or str(error)
    _set_state("denied", message)
    return message


# CIBA flow for user confirmation
with_async_authorization = AsyncUserConfirmation(
    user_id=_user_id,
    binding_message=_binding_message,
    scopes=CHECKOUT_SCOPES,
    audience=SHOP_API_AUDIENCE or None,
    on_pending=_on_pending,
    on_unauthorized=_on_unauthorized,
)
