"""
Application configuration (env, settings, constants).

Responsibility: Centralize config loading, environment variables, and app-wide
constants. Keeps the rest of the app decoupled from how config is sourced.
"""

import os

from dotenv import load_dotenv

load_dotenv()

# Base URL the tools use to reach this app's own API (catalog, cart, checkout)
APP_BASE_URL: str = (
    os.getenv("APP_BASE_URL", "http://localhost:8000").strip().rstrip("/")
    or "http://localhost:8000"
)
CATALOG_API_URL: str = os.getenv("CATALOG_API_URL", "").strip() or f"{APP_BASE_URL}/api/catalog"
SHOP_API_URL: str = os.getenv("SHOP_API_URL", "").strip() or f"{APP_BASE_URL}/api/checkout"

# Seed catalog served by /api/catalog
CATALOG_DEFAULT_LIMIT: int = 10
CATALOG_MAX_LIMIT: int = 20

# Auth0 (user lookup + CIBA backchannel authorization for checkout)
AUTH0_DOMAIN: str = os.getenv("AUTH0_DOMAIN", "").strip()
AUTH0_CLIENT_ID: str = os.getenv("AUTH0_CLIENT_ID", "").strip()
AUTH0_CLIENT_SECRET: str = os.getenv("AUTH0_CLIENT_SECRET", "").strip()
SHOP_API_AUDIENCE: str = os.getenv("SHOP_API_AUDIENCE", "").strip()

CHECKOUT_SCOPES: tuple[str, ...] = ("openid", "checkout:buy")
CIBA_POLLING_INTERVAL: float = 2.0
CIBA_TIMEOUT: float = 30.0
# Added to the polling interval each time the provider answers slow_down
CIBA_SLOW_DOWN_STEP: float = 5.0

# API timeouts (seconds)
AUTH_API_TIMEOUT: float = 15.0
LLM_API_TIMEOUT: float = 60.0
TOOLS_HTTP_TIMEOUT: float = 15.0

# Hugging Face chat (fallback LLM)
HF_API_KEY: str = os.getenv("HF_API_KEY", "").strip()
HF_CHAT_URL: str = "https://router.huggingface.co/v1/chat/completions"
HF_LLM_MODEL: str = (
    os.getenv("HF_LLM_MODEL", "meta-llama/Llama-3.2-3B-Instruct").strip()
    or "meta-llama/Llama-3.2-3B-Instruct"
)

# OpenAI (agent LLM). When set, the agent uses OpenAI instead of Hugging Face.
OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "").strip()
OPENAI_LLM_MODEL: str = (
    os.getenv("OPENAI_LLM_MODEL", "gpt-4o-mini").strip() or "gpt-4o-mini"
)

# Agent graph
AGENT_RECURSION_LIMIT: int = 50
AGENT_MAX_TOKENS: int = 512
