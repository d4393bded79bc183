"""
HTTP client for this app's own shop API (catalog, cart, checkout).

Tools and the add-to-cart handler talk to the API over HTTP, the same way an
external agent would. Tests swap shop_client for one backed by httpx.MockTransport.
"""

import httpx

from app.core.config import APP_BASE_URL, TOOLS_HTTP_TIMEOUT


def shop_client() -> httpx.Client:
    """New client rooted at APP_BASE_URL. Use as a context manager."""
    return httpx.Client(base_url=APP_BASE_URL, timeout=TOOLS_HTTP_TIMEOUT)


def error_detail(response: httpx.Response) -> str:
    """Best-effort error text from a non-2xx response."""
    try:
        data = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(data, dict):
        return str(data.get("error") or data.get("detail") or response.reason_phrase)
    return response.reason_phrase
