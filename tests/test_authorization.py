"""
Tests for the purchase authorization flow: the CIBA polling loop, the bridge
state that the chat endpoint reports, and the checkout tool's own state.
"""

from unittest.mock import patch

import httpx
import pytest

from app.agent import authorization
from app.agent.authorization import get_authorization_state, reset_authorization_state, with_async_authorization
from app.agent.tools import checkout as checkout_module
from app.auth.ciba import AsyncUserConfirmation, BackchannelRequest, CIBAClient, get_ciba_credentials
from app.core.errors import AccessDeniedError, AuthorizationError, AuthorizationTimeoutError, ServiceUnavailableError

CONTEXT = {"user_id": "auth0|user-1", "_credentials": {"user": {"sub": "auth0|user-1"}}}


class FakeCIBAClient:
    """Scripted CIBA client: poll() returns (or raises) the given outcomes in order."""

    def __init__(self, outcomes: list, interval: float = 0) -> None:
        self.outcomes = list(outcomes)
        self.interval = interval
        self.started: list[tuple] = []
        self.polls = 0

    def start(self, user_id, binding_message, scopes, audience=None) -> BackchannelRequest:
        self.started.append((user_id, binding_message, tuple(scopes), audience))
        return BackchannelRequest(auth_req_id="req-123", expires_in=300, interval=self.interval)

    def poll(self, auth_req_id: str) -> dict:
        self.polls += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _mock_ciba_client(handler) -> CIBAClient:
    """CIBAClient whose form posts go to an httpx.MockTransport handler."""
    client = CIBAClient("https://tenant.example.auth0.com/", "cid", "secret")
    transport = httpx.MockTransport(handler)

    def _post_form(path, data):
        with httpx.Client(base_url=client.base_url, transport=transport) as http:
            return http.post(path, data=data)

    client._post_form = _post_form
    return client


def _confirmation(client, **kwargs) -> AsyncUserConfirmation:
    sleeps: list[float] = []
    confirmation = AsyncUserConfirmation(
        user_id=lambda args, ctx: ctx["_credentials"]["user"]["sub"],
        binding_message=lambda args: f"Do you want to buy {args['qty']} {args['product']}",
        scopes=("openid", "checkout:buy"),
        on_unauthorized=lambda e: f"unauthorized: {e}",
        client_factory=lambda: client,
        sleep=sleeps.append,
        **kwargs,
    )
    confirmation.sleeps = sleeps
    return confirmation


class TestAsyncUserConfirmation:
    """Tests for the polling loop and credentials context."""

    def test_tool_runs_with_credentials_after_approval(self) -> None:
        client = FakeCIBAClient([{"status": "pending"}, {"status": "approved", "access_token": "tok"}])
        confirmation = _confirmation(client)
        seen = {}

        @confirmation
        def tool(args, context):
            seen["credentials"] = get_ciba_credentials()
            return "done"

        assert tool({"product": "banana", "qty": 2}, CONTEXT) == "done"
        assert seen["credentials"] == {"access_token": "tok"}
        assert get_ciba_credentials() is None
        assert client.started == [("auth0|user-1", "Do you want to buy 2 banana", ("openid", "checkout:buy"), None)]
        assert confirmation.sleeps == [2.0]

    def test_provider_interval_wins_when_larger(self) -> None:
        client = FakeCIBAClient([{"status": "pending"}, {"status": "approved", "access_token": "tok"}], interval=5)
        confirmation = _confirmation(client)
        confirmation.authorize("auth0|user-1", "msg")
        assert confirmation.sleeps == [5.0]

    def test_slow_down_increases_interval(self) -> None:
        client = FakeCIBAClient([{"status": "slow_down"}, {"status": "approved", "access_token": "tok"}])
        confirmation = _confirmation(client)
        confirmation.authorize("auth0|user-1", "msg")
        assert confirmation.sleeps == [7.0]

    def test_times_out(self) -> None:
        client = FakeCIBAClient([{"status": "pending"}] * 100)
        confirmation = _confirmation(client, polling_interval=2.0, timeout=10.0)
        with pytest.raises(AuthorizationTimeoutError):
            confirmation.authorize("auth0|user-1", "msg")
        assert client.polls == 6

    def test_denial_goes_to_on_unauthorized(self) -> None:
        client = FakeCIBAClient([AccessDeniedError("nope")])
        confirmation = _confirmation(client)
        tool = confirmation(lambda args, context: "should not run")
        assert tool({"product": "banana", "qty": 1}, CONTEXT) == "unauthorized: nope"

    def test_missing_user_is_unauthorized(self) -> None:
        client = FakeCIBAClient([])
        confirmation = AsyncUserConfirmation(
            user_id=lambda args, ctx: None,
            binding_message=lambda args: "msg",
            scopes=("openid",),
            on_unauthorized=lambda e: str(e),
            client_factory=lambda: client,
        )
        tool = confirmation(lambda args, context: "should not run")
        assert tool({}, {}) == "User is not authenticated"
        assert client.started == []


class TestAuthorizationBridge:
    """Tests for the bridge state reported by the chat endpoint."""

    def test_initial_state_is_idle(self) -> None:
        assert get_authorization_state() == {"status": "idle"}

    def test_denied_checkout(self) -> None:
        client = FakeCIBAClient([AccessDeniedError("User rejected")])
        with patch.object(with_async_authorization, "_client_factory", lambda: client):
            result = checkout_module.checkout({"product": "banana", "qty": 3}, CONTEXT)
        assert result == "The user has denied the request"
        assert get_authorization_state() == {"status": "denied", "message": "The user has denied the request"}

    def test_other_failure_reports_its_message(self) -> None:
        client = FakeCIBAClient([AuthorizationError("Authorization failed: invalid_grant")])
        with patch.object(with_async_authorization, "_client_factory", lambda: client):
            result = checkout_module.checkout({"product": "banana", "qty": 3}, CONTEXT)
        assert result == "Authorization failed: invalid_grant"
        assert get_authorization_state()["status"] == "denied"

    def test_unconfigured_provider_is_denied(self) -> None:
        def _unconfigured():
            raise ServiceUnavailableError("Asynchronous authorization is not configured")

        with patch.object(with_async_authorization, "_client_factory", _unconfigured):
            result = checkout_module.checkout({"product": "banana", "qty": 1}, CONTEXT)
        assert result == "Asynchronous authorization is not configured"
        assert get_authorization_state()["status"] == "denied"

    def test_malformed_provider_response_is_denied(self) -> None:
        client = _mock_ciba_client(lambda request: httpx.Response(200, json={}))
        with patch.object(with_async_authorization, "_client_factory", lambda: client):
            result = checkout_module.checkout({"product": "milk", "qty": 1}, CONTEXT)
        assert result == "Authorization request failed: malformed response"
        assert get_authorization_state() == {
            "status": "denied",
            "message": "Authorization request failed: malformed response",
        }

    def test_approved_checkout_promotes_state(self) -> None:
        client = FakeCIBAClient([{"status": "approved", "access_token": "tok"}])
        with patch.object(with_async_authorization, "_client_factory", lambda: client), patch.object(
            checkout_module, "shop_client",
            lambda: httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200, text="ok"))),
        ):
            result = checkout_module.checkout({"product": "banana", "qty": 2}, CONTEXT)
        assert result == "ok"
        assert checkout_module.get_shop_auth_state() == {"status": "approved"}
        assert get_authorization_state() == {"status": "approved", "message": "Do you want to buy 2 banana"}

    def test_pending_while_waiting(self) -> None:
        authorization._binding_message({"product": "milk", "qty": 1})
        authorization._on_pending(BackchannelRequest(auth_req_id="r", expires_in=60, interval=0))
        assert get_authorization_state() == {"status": "pending", "message": "Do you want to buy 1 milk"}

    def test_shop_approval_does_not_promote_idle_state(self) -> None:
        checkout_module._set_authorization_approved()
        assert get_authorization_state() == {"status": "idle"}

    def test_reset_clears_both_states(self) -> None:
        authorization._binding_message({"product": "milk", "qty": 1})
        checkout_module._set_authorization_approved()
        reset_authorization_state()
        assert get_authorization_state() == {"status": "idle"}
        assert checkout_module.get_shop_auth_state() is None


class TestCIBAClient:
    """Tests for the Auth0 CIBA HTTP calls, using httpx.MockTransport."""

    def _client(self, handler) -> CIBAClient:
        return _mock_ciba_client(handler)

    def test_start_sends_login_hint_and_scope(self) -> None:
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["body"] = request.content.decode()
            return httpx.Response(200, json={"auth_req_id": "abc", "expires_in": 300, "interval": 5})

        req = self._client(handler).start("auth0|u1", "Do you want to buy 1 milk", ("openid", "checkout:buy"), "https://shop")
        assert req == BackchannelRequest(auth_req_id="abc", expires_in=300, interval=5.0)
        assert captured["url"] == "https://tenant.example.auth0.com/bc-authorize"
        assert "scope=openid+checkout%3Abuy" in captured["body"]
        assert "audience=https%3A%2F%2Fshop" in captured["body"]
        assert "iss_sub" in captured["body"]

    @pytest.mark.parametrize(
        ("error", "expected"),
        [("authorization_pending", {"status": "pending"}), ("slow_down", {"status": "slow_down"})],
    )
    def test_poll_waiting_states(self, error: str, expected: dict) -> None:
        client = self._client(lambda request: httpx.Response(400, json={"error": error}))
        assert client.poll("abc") == expected

    def test_poll_approved(self) -> None:
        client = self._client(lambda request: httpx.Response(200, json={"access_token": "tok", "token_type": "Bearer"}))
        assert client.poll("abc") == {"status": "approved", "access_token": "tok", "token_type": "Bearer"}

    def test_poll_access_denied(self) -> None:
        client = self._client(lambda request: httpx.Response(403, json={"error": "access_denied", "error_description": "User rejected"}))
        with pytest.raises(AccessDeniedError):
            client.poll("abc")

    def test_poll_expired(self) -> None:
        client = self._client(lambda request: httpx.Response(400, json={"error": "expired_token"}))
        with pytest.raises(AuthorizationTimeoutError):
            client.poll("abc")

    def test_start_without_auth_req_id(self) -> None:
        client = self._client(lambda request: httpx.Response(200, json={}))
        with pytest.raises(AuthorizationError, match="malformed response"):
            client.start("auth0|u1", "msg", ("openid",))

    def test_start_with_non_json_body(self) -> None:
        client = self._client(lambda request: httpx.Response(200, text="<html>gateway</html>"))
        with pytest.raises(AuthorizationError, match="malformed response"):
            client.start("auth0|u1", "msg", ("openid",))

    def test_poll_approved_with_non_json_body(self) -> None:
        client = self._client(lambda request: httpx.Response(200, text="not json"))
        with pytest.raises(AuthorizationError, match="malformed response"):
            client.poll("abc")
