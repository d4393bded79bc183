"""
Agent LLM: OpenAI (primary) or Hugging Face (fallback) chat completions with tools.
When OPENAI_API_KEY is set, uses OpenAI; otherwise the HF router's OpenAI-compatible endpoint.
"""

import json
import logging
from typing import Any

import httpx
from openai import OpenAI

from app.core.config import (
    HF_API_KEY,
    HF_CHAT_URL,
    HF_LLM_MODEL,
    LLM_API_TIMEOUT,
    OPENAI_API_KEY,
    OPENAI_LLM_MODEL,
)

logger = logging.getLogger(__name__)


def _parse_arguments(raw: Any) -> dict[str, Any]:
    if isinstance(raw, dict):
        return raw
    try:
        args = json.loads(raw) if raw else {}
    except json.JSONDecodeError:
        return {}
    return args if isinstance(args, dict) else {}


def _call_openai(messages: list[dict[str, Any]], tools: list[dict[str, Any]], max_tokens: int) -> tuple[str | None, list[dict[str, Any]]]:
    client = OpenAI(api_key=OPENAI_API_KEY, timeout=LLM_API_TIMEOUT)
    response = client.chat.completions.create(
        model=OPENAI_LLM_MODEL,
        messages=messages,
        tools=tools,
        max_tokens=max_tokens,
    )
    msg = response.choices[0].message if response.choices else None
    if not msg:
        return None, []
    content = (getattr(msg, "content", None) or "").strip() or None
    tool_calls = []
    for tc in getattr(msg, "tool_calls", None) or []:
        fn = getattr(tc, "function", None)
        if not fn:
            continue
        tool_calls.append({
            "id": getattr(tc, "id", None) or "",
            "name": getattr(fn, "name", None) or "",
            "arguments": _parse_arguments(getattr(fn, "arguments", None)),
        })
    return content, tool_calls


def _call_hf(messages: list[dict[str, Any]], tools: list[dict[str, Any]], max_tokens: int) -> tuple[str | None, list[dict[str, Any]]]:
    headers = {"Authorization": f"Bearer {HF_API_KEY}", "Content-Type": "application/json"}
    payload = {
        "model": HF_LLM_MODEL,
        "messages": messages,
        "tools": tools,
        "max_tokens": max_tokens,
    }
    try:
        with httpx.Client(timeout=LLM_API_TIMEOUT) as client:
            response = client.post(HF_CHAT_URL, json=payload, headers=headers)
        if response.status_code != 200:
            logger.warning("[llm:hf] HF LLM error %s: %s", response.status_code, response.text[:200])
            return None, []
        data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning("[llm:hf] request failed: %s", e)
        return None, []
    choices = data.get("choices") or []
    if not choices or not isinstance(choices[0], dict):
        return None, []
    msg = choices[0].get("message") or {}
    content = (msg.get("content") or "").strip() or None
    tool_calls = []
    for tc in msg.get("tool_calls") or []:
        fn = tc.get("function") or {}
        tool_calls.append({
            "id": tc.get("id") or "",
            "name": fn.get("name") or "",
            "arguments": _parse_arguments(fn.get("arguments")),
        })
    return content, tool_calls


def chat_with_tools(
    messages: list[dict[str, Any]],
    tools: list[dict[str, Any]],
    max_tokens: int = 512,
) -> tuple[str | None, list[dict[str, Any]] | None]:
    """
    Call the chat model with tools. Returns (content, tool_calls). If tool_calls is
    non-empty, caller should execute them and call again with tool results; if content
    is set and no tool_calls, that's the final answer. Returns (None, None) when no
    provider is configured.
    """
    logger.info("[llm:chat_with_tools] IN  messages=%d tools=%d", len(messages), len(tools))
    if OPENAI_API_KEY:
        content, tool_calls = _call_openai(messages, tools, max_tokens)
    elif HF_API_KEY:
        content, tool_calls = _call_hf(messages, tools, max_tokens)
    else:
        logger.warning("[llm] chat_with_tools requires OPENAI_API_KEY or HF_API_KEY")
        return None, None
    if tool_calls:
        logger.info("[llm:chat_with_tools] OUT tool_calls=%s", [t["name"] for t in tool_calls])
    if content:
        logger.info("[llm:chat_with_tools] OUT content_len=%d", len(content))
    return content, tool_calls or None
