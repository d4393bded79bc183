"""
browse_catalog tool: search and page through the product catalog.
"""

import json
import logging
from typing import Any

import httpx

from app.services import catalog_client
from app.services.shop_api import error_detail

logger = logging.getLogger(__name__)

SCHEMA = {
    "type": "function",
    "function": {
        "name": "browse_catalog",
        "description": (
            "Browse and search the product catalog. This tool helps users discover products before adding them "
            "to cart. Call it with no arguments to list all products. This tool does not require authentication."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "search": {"type": "string", "description": "Search term to find products by id, name or category"},
                "category": {"type": "string", "description": "Filter by category (e.g. Produce, Dairy, Seafood)"},
                "limit": {"type": "integer", "description": "Number of products to return (default: 10, max: 20)"},
                "offset": {"type": "integer", "description": "Number of products to skip for pagination (default: 0)"},
            },
        },
    },
}


def _format_product(product: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": product.get("id"),
        "name": product.get("name"),
        "price": f"${product.get('price')}",
        "category": product.get("category"),
        "inStock": product.get("inStock"),
        "description": product.get("description"),
    }


def browse_catalog(args: dict[str, Any], context: dict[str, Any]) -> str:
    args = args or {}
    search = args.get("search")
    category = args.get("category")
    logger.info("[tools:browse_catalog] IN  filters=%s", args)
    try:
        response = catalog_client.browse_catalog(
            search=search,
            category=category,
            limit=args.get("limit"),
            offset=args.get("offset"),
        )
        if not response.is_success:
            raise RuntimeError(f"Failed to browse catalog: {error_detail(response)}")
        result = response.json()
    except (httpx.HTTPError, RuntimeError, ValueError) as e:
        logger.warning("[tools:browse_catalog] failed: %s", e)
        return json.dumps({"success": False, "error": str(e)})

    products = result.get("products") or []
    logger.info("[tools:browse_catalog] OUT found=%d products", len(products))
    message = f"Found {len(products)} products"
    if search:
        message += f' matching "{search}"'
    if category:
        message += f" in {category} category"
    message += ". Here are the products available:"
    return json.dumps({
        "success": True,
        "message": message,
        "products": [_format_product(p) for p in products],
        "totalProducts": (result.get("pagination") or {}).get("total", len(products)),
        "completed": True,
    })
