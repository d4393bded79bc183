"""
Tests for the agent tools. Outbound HTTP goes to httpx.MockTransport handlers
so no server is needed.
"""

import json
from unittest.mock import patch

import httpx
import pytest

from app.agent.tools import AGENT_TOOLS, add_to_cart, browse_catalog, checkout, checkout_cart, execute_tool, get_cart
from app.core.errors import CheckoutError

CONTEXT = {"user_id": "auth0|user-1", "_credentials": {"user": {"sub": "auth0|user-1"}}}


def _mock_client(handler):
    """shop_client replacement: every call returns a client backed by handler."""
    return lambda: httpx.Client(base_url="http://shop.test", transport=httpx.MockTransport(handler))


def test_all_tools_have_schemas() -> None:
    names = [t["function"]["name"] for t in AGENT_TOOLS]
    assert names == ["add_to_cart", "browse_catalog", "get_cart", "checkout", "checkout_cart"]


def test_unknown_tool() -> None:
    assert execute_tool("teleport", {}, CONTEXT) == "Unknown tool: teleport"


class TestAddToCart:
    """Tests for the add_to_cart tool."""

    def test_posts_with_user_and_default_quantity(self) -> None:
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["path"] = request.url.path
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "success": True,
                "message": "Added 1 x apple to cart",
                "cartItem": {"id": "apple", "quantity": 1, "price": 1.29, "totalPrice": 1.29},
                "cart": {"totalItems": 1},
            })

        with patch.object(add_to_cart, "shop_client", _mock_client(handler)):
            result = json.loads(execute_tool("add_to_cart", {"productCode": "apple"}, CONTEXT))
        assert captured["path"] == "/api/add-to-cart"
        assert captured["body"] == {"productCode": "apple", "quantity": 1, "userId": "auth0|user-1"}
        assert result == {
            "success": True,
            "message": "Added 1 x apple to cart",
            "cartItem": {"id": "apple", "quantity": 1, "price": 1.29, "totalPrice": 1.29},
            "totalItems": 1,
        }

    def test_id_is_treated_as_product_code(self) -> None:
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"message": "ok", "cartItem": {}, "cart": {}})

        with patch.object(add_to_cart, "shop_client", _mock_client(handler)):
            add_to_cart.add_to_cart({"id": "banana", "quantity": 5}, CONTEXT)
        assert captured["body"]["productCode"] == "banana"
        assert "id" not in captured["body"]

    def test_requires_product(self) -> None:
        result = json.loads(add_to_cart.add_to_cart({"quantity": 2}, CONTEXT))
        assert result == {"success": False, "error": "Either productCode or productName is required"}

    def test_api_error_is_reported(self) -> None:
        handler = lambda request: httpx.Response(404, json={"success": False, "error": "Product not found in catalog"})
        with patch.object(add_to_cart, "shop_client", _mock_client(handler)):
            result = json.loads(add_to_cart.add_to_cart({"productCode": "caviar"}, CONTEXT))
        assert result == {"success": False, "error": "Failed to add item to cart: Product not found in catalog"}


class TestBrowseCatalog:
    """Tests for the browse_catalog tool."""

    def test_formats_products_and_message(self) -> None:
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["params"] = dict(request.url.params)
            return httpx.Response(200, json={
                "products": [{"id": "apple", "name": "Honeycrisp Apple", "price": 1.29, "category": "Produce", "inStock": True, "description": "Sweet"}],
                "pagination": {"total": 1, "limit": 5, "offset": 0, "hasMore": False},
            })

        with patch("app.services.catalog_client.shop_client", _mock_client(handler)):
            result = json.loads(browse_catalog.browse_catalog({"search": "apple", "category": "Produce", "limit": 5}, CONTEXT))
        assert captured["params"] == {"search": "apple", "category": "Produce", "limit": "5"}
        assert result["success"] is True
        assert result["message"] == 'Found 1 products matching "apple" in Produce category. Here are the products available:'
        assert result["products"][0]["price"] == "$1.29"
        assert result["totalProducts"] == 1
        assert result["completed"] is True

    def test_no_filters_sends_no_params(self) -> None:
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["query"] = request.url.query
            return httpx.Response(200, json={"products": [], "pagination": {"total": 0}})

        with patch("app.services.catalog_client.shop_client", _mock_client(handler)):
            result = json.loads(browse_catalog.browse_catalog({}, CONTEXT))
        assert captured["query"] == b""
        assert result["message"] == "Found 0 products. Here are the products available:"

    def test_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused")

        with patch("app.services.catalog_client.shop_client", _mock_client(handler)):
            result = json.loads(browse_catalog.browse_catalog({}, CONTEXT))
        assert result == {"success": False, "error": "connection refused"}


class TestGetCart:
    """Tests for the get_cart tool."""

    def test_returns_cart(self) -> None:
        cart = {"userId": "auth0|user-1", "items": [], "totalItems": 0, "totalValue": 0.0}

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["userId"] == "auth0|user-1"
            return httpx.Response(200, json={"success": True, "cart": cart, "message": "Cart retrieved successfully"})

        with patch.object(get_cart, "shop_client", _mock_client(handler)):
            result = json.loads(get_cart.get_cart({}, CONTEXT))
        assert result == {"success": True, "cart": cart, "message": "Cart retrieved successfully"}

    def test_http_error(self) -> None:
        with patch.object(get_cart, "shop_client", _mock_client(lambda request: httpx.Response(500, json={}))):
            result = json.loads(get_cart.get_cart({}, CONTEXT))
        assert result == {"success": False, "error": "HTTP error! status: 500"}


class TestCheckout:
    """Tests for the checkout tool body (authorization is covered in test_authorization)."""

    def test_guarded_tool_wraps_post_order(self) -> None:
        assert checkout.checkout.__name__ == "post_order"
        assert checkout.checkout.__wrapped__ is checkout.post_order

    def test_sends_bearer_token_from_credentials(self) -> None:
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["auth"] = request.headers.get("authorization")
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, text='{"success": true}')

        with patch.object(checkout, "shop_client", _mock_client(handler)), patch.object(
            checkout, "get_ciba_credentials", return_value={"access_token": "tok-123"}
        ):
            result = checkout.post_order({"product": "milk", "qty": 2, "priceLimit": 10}, CONTEXT)
        assert result == '{"success": true}'
        assert captured["auth"] == "Bearer tok-123"
        assert captured["body"] == {"product": "milk", "qty": 2, "priceLimit": 10}
        assert checkout.get_shop_auth_state() == {"status": "approved"}

    def test_empty_body_gets_default_message(self) -> None:
        with patch.object(checkout, "shop_client", _mock_client(lambda request: httpx.Response(200, text=""))), patch.object(
            checkout, "get_ciba_credentials", return_value=None
        ):
            result = checkout.post_order({"product": "milk", "qty": 2}, CONTEXT)
        assert result == "Successfully ordered 2 milk"
        assert checkout.get_shop_auth_state() is None

    def test_rejected_order_raises(self) -> None:
        handler = lambda request: httpx.Response(400, text="Price limit exceeded")
        with patch.object(checkout, "shop_client", _mock_client(handler)), patch.object(
            checkout, "get_ciba_credentials", return_value={"access_token": "tok"}
        ):
            with pytest.raises(CheckoutError, match="Checkout failed: 400 - Price limit exceeded"):
                checkout.post_order({"product": "salmon", "qty": 9, "priceLimit": 1}, CONTEXT)


class TestCheckoutCart:
    """Tests for the checkout_cart tool."""

    def test_empty_cart(self) -> None:
        handler = lambda request: httpx.Response(200, json={"success": True, "cart": {"items": []}})
        with patch.object(get_cart, "shop_client", _mock_client(handler)):
            result = json.loads(checkout_cart.checkout_cart({}, CONTEXT))
        assert result == {"success": False, "error": "Your cart is empty"}

    def test_places_cart_order(self) -> None:
        cart = {"items": [{"id": "milk", "quantity": 2}], "totalItems": 2, "totalValue": 7.98}
        handler = lambda request: httpx.Response(200, json={"success": True, "cart": cart})
        with patch.object(get_cart, "shop_client", _mock_client(handler)), patch.object(
            checkout_cart, "checkout", return_value="ordered"
        ) as mock_checkout:
            result = checkout_cart.checkout_cart({}, CONTEXT)
        assert result == "ordered"
        mock_checkout.assert_called_once_with(
            {"product": "items from your cart", "qty": 2, "priceLimit": 7.98, "userId": "auth0|user-1"},
            CONTEXT,
        )
