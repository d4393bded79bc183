"""
API route aggregator: register endpoints; no logic — only delegate to handlers.
"""

import logging

from fastapi import APIRouter, Header, Query
from fastapi.responses import JSONResponse

from app.api.handlers import handle_add_to_cart, handle_chat, handle_checkout, handle_get_cart
from app.schemas.cart import AddToCartRequest, CheckoutRequest, ProductLookupRequest
from app.schemas.chat import ChatRequest, ChatResponse
from app.services.catalog_service import find_product, search_products

logger = logging.getLogger(__name__)
router = APIRouter()


# --- System ---

@router.get("/", tags=["system"])
def root():
    return {"status": "Shopping assistant backend running"}


@router.get("/health", tags=["system"])
def health():
    return {"ok": True}


# --- Chat ---

@router.post(
    "/api/chat",
    response_model=ChatResponse,
    response_model_exclude_none=True,
    tags=["chat"],
    summary="Chat with the shopping agent",
    description="Send the conversation; the agent answers the last message. Includes authorizationStatus when a purchase approval was requested.",
)
def post_chat(body: ChatRequest, authorization: str | None = Header(None)) -> ChatResponse:
    return handle_chat(body, authorization)


@router.get("/api/chat", tags=["chat"])
def get_chat() -> dict:
    return {"status": "Shopping Agent Ready", "message": "LangGraph tool-calling agent active"}


# --- Catalog ---

@router.get("/api/catalog", tags=["catalog"], summary="Browse and search the product catalog")
def get_catalog(
    search: str | None = None,
    category: str | None = None,
    limit: int | None = Query(None, description="Page size (default 10, max 20)"),
    offset: int | None = Query(None, description="Products to skip"),
) -> dict:
    return search_products(search=search, category=category, limit=limit, offset=offset)


@router.post("/api/catalog", tags=["catalog"], summary="Look up one product by code or name")
def post_catalog(body: ProductLookupRequest):
    if not body.productCode and not body.productName:
        return JSONResponse(status_code=400, content={"product": None, "error": "productCode or productName is required"})
    product = find_product(body.productCode, body.productName)
    if product is None:
        return JSONResponse(status_code=404, content={"product": None, "error": "Product not found"})
    return {"product": product}


# --- Cart ---

@router.get("/api/add-to-cart", tags=["cart"])
def add_to_cart_health() -> dict:
    return {"status": "ok", "endpoint": "add-to-cart"}


@router.post(
    "/api/add-to-cart",
    tags=["cart"],
    summary="Add a catalog product to a user's cart",
    description="400 when userId or both product fields are missing, 404 when the product is not in the catalog.",
)
def post_add_to_cart(body: AddToCartRequest) -> dict:
    return handle_add_to_cart(body)


@router.get("/api/get-cart", tags=["cart"], summary="Get a user's cart")
def get_cart(userId: str | None = None) -> dict:
    return handle_get_cart(userId)


# --- Checkout ---

@router.post(
    "/api/checkout",
    tags=["checkout"],
    summary="Place an order (requires the purchase access token)",
    description="401 without a bearer token; 400 when the price limit is exceeded or the cart is empty; 404 for unknown products.",
)
def post_checkout(body: CheckoutRequest, authorization: str | None = Header(None)) -> dict:
    return handle_checkout(body, authorization)
