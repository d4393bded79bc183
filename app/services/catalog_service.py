"""
Product catalog: load the seed catalog and answer search / lookup queries.

Responsibility: Backing store for /api/catalog. Pure functions over the loaded
product list; no HTTP or FastAPI here.
"""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

from app.core.config import CATALOG_DEFAULT_LIMIT, CATALOG_MAX_LIMIT

logger = logging.getLogger(__name__)

_CATALOG_PATH = Path(__file__).resolve().parent.parent / "data" / "catalog.json"


@lru_cache(maxsize=1)
def load_catalog() -> tuple[dict[str, Any], ...]:
    """Read the seed catalog once per process."""
    with _CATALOG_PATH.open(encoding="utf-8") as f:
        products = json.load(f)
    logger.info("[catalog_service:load_catalog] loaded products=%d from %s", len(products), _CATALOG_PATH.name)
    return tuple(products)


def _matches_search(product: dict[str, Any], term: str) -> bool:
    term = term.lower()
    fields = (product.get("id"), product.get("name"), product.get("category"))
    return any(term in str(f or "").lower() for f in fields)


def clamp_limit(limit: int | None) -> int:
    if limit is None:
        return CATALOG_DEFAULT_LIMIT
    return max(1, min(int(limit), CATALOG_MAX_LIMIT))


def search_products(
    search: str | None = None,
    category: str | None = None,
    limit: int | None = None,
    offset: int | None = None,
) -> dict[str, Any]:
    """
    Filter the catalog by search term (id, name, category) and exact category,
    then page the result. total counts every match before paging.
    """
    limit = clamp_limit(limit)
    offset = max(0, int(offset or 0))
    products = list(load_catalog())
    if search and search.strip():
        products = [p for p in products if _matches_search(p, search.strip())]
    if category and category.strip():
        wanted = category.strip().lower()
        products = [p for p in products if str(p.get("category", "")).lower() == wanted]
    total = len(products)
    page = [dict(p) for p in products[offset : offset + limit]]
    logger.info(
        "[catalog_service:search_products] search=%r category=%r limit=%d offset=%d OUT total=%d page=%d",
        search, category, limit, offset, total, len(page),
    )
    return {
        "products": page,
        "pagination": {
            "total": total,
            "limit": limit,
            "offset": offset,
            "hasMore": offset + len(page) < total,
        },
    }


def find_product(product_code: str | None = None, product_name: str | None = None) -> dict[str, Any] | None:
    """
    Exact id match on product_code first; then product_name as an id or a
    case-insensitive substring of the product name.
    """
    catalog = load_catalog()
    code = (product_code or "").strip().lower()
    if code:
        for p in catalog:
            if str(p.get("id", "")).lower() == code:
                return dict(p)
    name = (product_name or "").strip().lower()
    if name:
        for p in catalog:
            if str(p.get("id", "")).lower() == name:
                return dict(p)
        for p in catalog:
            if name in str(p.get("name", "")).lower():
                return dict(p)
    logger.info("[catalog_service:find_product] not found code=%r name=%r", product_code, product_name)
    return None
