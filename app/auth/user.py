"""
Resolve the calling user from the request's bearer token via Auth0 /userinfo.
"""

import logging
from typing import Any

import httpx

from app.auth.ciba import normalize_domain
from app.core.config import AUTH0_DOMAIN, AUTH_API_TIMEOUT

logger = logging.getLogger(__name__)


def bearer_token(authorization: str | None) -> str | None:
    """Token from an 'Authorization: Bearer <token>' header value, else None."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_user(authorization: str | None) -> dict[str, Any] | None:
    """
    Return the Auth0 user profile ({"sub": ..., ...}) for the bearer token, or
    None when there is no token, Auth0 is not configured, or the token is rejected.
    """
    token = bearer_token(authorization)
    if not token:
        return None
    if not AUTH0_DOMAIN:
        logger.warning("[user:get_user] AUTH0_DOMAIN not set; treating request as anonymous")
        return None
    url = f"https://{normalize_domain(AUTH0_DOMAIN)}/userinfo"
    try:
        with httpx.Client(timeout=AUTH_API_TIMEOUT) as client:
            response = client.get(url, headers={"Authorization": f"Bearer {token}"})
    except httpx.HTTPError as e:
        logger.warning("[user:get_user] userinfo request failed: %s", e)
        return None
    if response.status_code != 200:
        logger.info("[user:get_user] userinfo rejected token status=%d", response.status_code)
        return None
    user = response.json()
    logger.info("[user:get_user] OUT sub=%s", str(user.get("sub", ""))[:24])
    return user
