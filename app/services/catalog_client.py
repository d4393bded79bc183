"""
Catalog client: look up and browse products through the catalog HTTP API.
"""

import logging
from typing import Any

import httpx

from app.core.config import CATALOG_API_URL
from app.services.shop_api import shop_client

logger = logging.getLogger(__name__)


def find_product(product_code: str | None = None, product_name: str | None = None) -> dict[str, Any] | None:
    """POST to the catalog API; returns the product or None if not found or the API failed."""
    body = {}
    if product_code:
        body["productCode"] = product_code
    if product_name:
        body["productName"] = product_name
    if not body:
        return None
    logger.info("[catalog_client:find_product] IN  body=%s", body)
    try:
        with shop_client() as client:
            response = client.post(CATALOG_API_URL, json=body)
        if not response.is_success:
            logger.info("[catalog_client:find_product] OUT status=%d -> None", response.status_code)
            return None
        product = response.json().get("product")
    except (httpx.HTTPError, ValueError) as e:
        logger.warning("[catalog_client:find_product] catalog API call failed: %s", e)
        return None
    logger.info("[catalog_client:find_product] OUT product=%s", (product or {}).get("id"))
    return product


def browse_catalog(
    search: str | None = None,
    category: str | None = None,
    limit: int | None = None,
    offset: int | None = None,
) -> httpx.Response:
    """GET the catalog with only the filters that are set. Raises httpx.HTTPError on transport failure."""
    params: dict[str, Any] = {}
    if search:
        params["search"] = search
    if category:
        params["category"] = category
    if limit:
        params["limit"] = str(limit)
    if offset:
        params["offset"] = str(offset)
    logger.info("[catalog_client:browse_catalog] IN  params=%s", params)
    with shop_client() as client:
        return client.get(CATALOG_API_URL, params=params)
