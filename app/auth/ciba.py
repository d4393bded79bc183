"""
CIBA (Client-Initiated Backchannel Authentication) against Auth0.

CIBAClient starts a backchannel request (/bc-authorize) and polls the token
endpoint with the CIBA grant. AsyncUserConfirmation wraps a tool so each call
first gets the user's out-of-band approval; while the wrapped tool runs, the
issued token set is readable via get_ciba_credentials().
"""

import functools
import json
import logging
import time
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any, Callable

import httpx

from app.core.config import (
    AUTH0_CLIENT_ID,
    AUTH0_CLIENT_SECRET,
    AUTH0_DOMAIN,
    AUTH_API_TIMEOUT,
    CIBA_POLLING_INTERVAL,
    CIBA_SLOW_DOWN_STEP,
    CIBA_TIMEOUT,
)
from app.core.errors import (
    AccessDeniedError,
    AuthorizationError,
    AuthorizationTimeoutError,
    ServiceUnavailableError,
)

logger = logging.getLogger(__name__)

CIBA_GRANT_TYPE = "urn:openid:params:grant-type:ciba"

# Token set for the protected tool call currently running
_credentials: ContextVar[dict[str, Any] | None] = ContextVar("ciba_credentials", default=None)


def get_ciba_credentials() -> dict[str, Any] | None:
    """Token set (access_token, token_type, expires_in, ...) issued for the current protected call."""
    return _credentials.get()


@dataclass
class BackchannelRequest:
    """Accepted /bc-authorize request."""

    auth_req_id: str
    expires_in: int
    interval: float


def normalize_domain(domain: str) -> str:
    domain = domain.strip()
    for prefix in ("https://", "http://"):
        if domain.startswith(prefix):
            domain = domain[len(prefix):]
    return domain.rstrip("/")


class CIBAClient:
    """Minimal Auth0 CIBA client over httpx."""

    def __init__(self, domain: str, client_id: str, client_secret: str, timeout: float = AUTH_API_TIMEOUT) -> None:
        self.domain = normalize_domain(domain)
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout = timeout

    @classmethod
    def from_config(cls) -> "CIBAClient":
        if not (AUTH0_DOMAIN and AUTH0_CLIENT_ID and AUTH0_CLIENT_SECRET):
            raise ServiceUnavailableError(
                "Asynchronous authorization is not configured (set AUTH0_DOMAIN, AUTH0_CLIENT_ID, AUTH0_CLIENT_SECRET in .env)."
            )
        return cls(AUTH0_DOMAIN, AUTH0_CLIENT_ID, AUTH0_CLIENT_SECRET)

    @property
    def base_url(self) -> str:
        return f"https://{self.domain}"

    def _post_form(self, path: str, data: dict[str, str]) -> httpx.Response:
        with httpx.Client(base_url=self.base_url, timeout=self.timeout) as client:
            return client.post(path, data=data)

    @staticmethod
    def _success_body(response: httpx.Response) -> dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            raise AuthorizationError("Authorization request failed: malformed response")
        return body

    @staticmethod
    def _error(response: httpx.Response) -> tuple[str, str]:
        try:
            body = response.json()
        except ValueError:
            return "", response.text or response.reason_phrase
        if not isinstance(body, dict):
            return "", response.text or response.reason_phrase
        return body.get("error", ""), body.get("error_description") or body.get("error", "") or response.reason_phrase

    def start(
        self,
        user_id: str,
        binding_message: str,
        scopes: tuple[str, ...] | list[str],
        audience: str | None = None,
    ) -> BackchannelRequest:
        """Ask Auth0 to push an approval request to the user's device."""
        login_hint = json.dumps({"format": "iss_sub", "iss": f"{self.base_url}/", "sub": user_id})
        data = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "login_hint": login_hint,
            "scope": " ".join(scopes),
            "binding_message": binding_message,
        }
        if audience:
            data["audience"] = audience
        logger.info("[ciba:start] IN  user_id=%s scope=%r binding_message=%r", user_id[:16], data["scope"], binding_message)
        response = self._post_form("/bc-authorize", data)
        if response.status_code != 200:
            code, description = self._error(response)
            logger.warning("[ciba:start] bc-authorize failed status=%d error=%s", response.status_code, code)
            if code == "access_denied":
                raise AccessDeniedError(description)
            raise AuthorizationError(f"Authorization request failed: {description}")
        body = self._success_body(response)
        if not body.get("auth_req_id"):
            logger.warning("[ciba:start] bc-authorize answered without auth_req_id")
            raise AuthorizationError("Authorization request failed: malformed response")
        req = BackchannelRequest(
            auth_req_id=body["auth_req_id"],
            expires_in=int(body.get("expires_in") or 0),
            interval=float(body.get("interval") or 0),
        )
        logger.info("[ciba:start] OUT auth_req_id=%s expires_in=%d interval=%.1f", req.auth_req_id[:12], req.expires_in, req.interval)
        return req

    def poll(self, auth_req_id: str) -> dict[str, Any]:
        """
        One token-endpoint poll. Returns {"status": "pending"}, {"status": "slow_down"},
        or {"status": "approved", **token_set}. Raises on denial, expiry, or other errors.
        """
        data = {
            "grant_type": CIBA_GRANT_TYPE,
            "auth_req_id": auth_req_id,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }
        response = self._post_form("/oauth/token", data)
        if response.status_code == 200:
            logger.info("[ciba:poll] OUT approved auth_req_id=%s", auth_req_id[:12])
            return {"status": "approved", **self._success_body(response)}
        code, description = self._error(response)
        if code == "authorization_pending":
            return {"status": "pending"}
        if code == "slow_down":
            return {"status": "slow_down"}
        logger.info("[ciba:poll] OUT error=%s auth_req_id=%s", code, auth_req_id[:12])
        if code == "access_denied":
            raise AccessDeniedError(description or "The user has denied the request")
        if code == "expired_token":
            raise AuthorizationTimeoutError(description or "The authorization request expired")
        raise AuthorizationError(f"Authorization failed: {description}")


ToolFunc = Callable[[dict[str, Any], dict[str, Any]], str]


class AsyncUserConfirmation:
    """
    Protect tools behind an out-of-band user confirmation.

    user_id(args, context) and binding_message(args) describe the request;
    on_pending(request) runs once the provider accepts it; on_unauthorized(error)
    turns a failure into the tool's result. Polls every polling_interval seconds
    (or the provider's interval if larger) until timeout seconds have been waited.
    """

    def __init__(
        self,
        *,
        user_id: Callable[[dict[str, Any], dict[str, Any]], str | None],
        binding_message: Callable[[dict[str, Any]], str],
        scopes: tuple[str, ...] | list[str],
        audience: str | None = None,
        on_unauthorized: Callable[[Exception], str],
        on_pending: Callable[[BackchannelRequest], None] | None = None,
        client_factory: Callable[[], CIBAClient] = CIBAClient.from_config,
        polling_interval: float = CIBA_POLLING_INTERVAL,
        timeout: float = CIBA_TIMEOUT,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._user_id = user_id
        self._binding_message = binding_message
        self.scopes = tuple(scopes)
        self.audience = audience
        self._on_unauthorized = on_unauthorized
        self._on_pending = on_pending
        self._client_factory = client_factory
        self.polling_interval = polling_interval
        self.timeout = timeout
        self._sleep = sleep

    def authorize(self, user_id: str, binding_message: str) -> dict[str, Any]:
        """Start the request and poll until approved. Returns the token set."""
        client = self._client_factory()
        request = client.start(user_id, binding_message, self.scopes, self.audience)
        if self._on_pending is not None:
            self._on_pending(request)
        interval = max(self.polling_interval, request.interval)
        waited = 0.0
        while True:
            result = client.poll(request.auth_req_id)
            status = result.get("status")
            if status == "approved":
                return {k: v for k, v in result.items() if k != "status"}
            if status == "slow_down":
                interval += CIBA_SLOW_DOWN_STEP
            if waited >= self.timeout:
                raise AuthorizationTimeoutError(
                    f"Authorization request timed out after {self.timeout:.0f} seconds"
                )
            self._sleep(interval)
            waited += interval

    def __call__(self, func: ToolFunc) -> ToolFunc:
        @functools.wraps(func)
        def wrapper(args: dict[str, Any], context: dict[str, Any]) -> str:
            try:
                message = self._binding_message(args)
                user_id = self._user_id(args, context)
                if not user_id:
                    raise AuthorizationError("User is not authenticated")
                credentials = self.authorize(user_id, message)
            except (AuthorizationError, ServiceUnavailableError, httpx.HTTPError) as e:
                logger.warning("[ciba:%s] unauthorized: %s", func.__name__, e)
                return self._on_unauthorized(e)
            token = _credentials.set(credentials)
            try:
                return func(args, context)
            finally:
                _credentials.reset(token)

        return wrapper
