"""Schemas for the catalog, cart and checkout endpoints."""

from pydantic import BaseModel, Field


class AddToCartRequest(BaseModel):
    """Request body for POST /api/add-to-cart. Required fields are checked by the handler."""

    productCode: str | None = Field(None, description="Catalog product id, e.g. banana.")
    productName: str | None = Field(None, description="Product name, used when the code is unknown.")
    quantity: int = Field(1, description="Number of items to add.")
    userId: str | None = Field(None, description="Owner of the cart.")


class ProductLookupRequest(BaseModel):
    """Request body for POST /api/catalog."""

    productCode: str | None = None
    productName: str | None = None


class CheckoutRequest(BaseModel):
    """Request body for POST /api/checkout. With userId the order is that user's cart."""

    product: str = Field(..., min_length=1, description="Product code or name; free text for cart orders.")
    qty: int = Field(..., ge=1, description="Number of items.")
    priceLimit: float | None = Field(None, description="Maximum total the user agreed to pay.")
    userId: str | None = Field(None, description="Check out this user's cart instead of a single product.")
