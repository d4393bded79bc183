"""
LangGraph shopping agent: agent (LLM with tools) -> tools -> agent ... -> END.

The agent node asks the model what to do next; when it requests tools, the tools
node runs them with the run's configurable (user id + credentials) and loops back.
"""

import json
import logging
from typing import Any, Literal, TypedDict

from langchain_core.runnables import RunnableConfig
from langgraph.graph import END, StateGraph

from app.agent.llm import chat_with_tools
from app.agent.tools import AGENT_TOOLS, execute_tool
from app.core.config import AGENT_MAX_TOKENS, AGENT_RECURSION_LIMIT

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a friendly grocery shopping assistant. You help the user discover products, manage their cart, "
    "and check out.\n\n"
    "- Use browse_catalog to find products (by search term or category) before recommending or adding them; "
    "use the product id from the catalog as productCode.\n"
    "- Use add_to_cart as soon as the user asks to add something, and get_cart to show what is in the cart.\n"
    "- Use checkout to buy a specific product and quantity, or checkout_cart to buy everything in the cart. "
    "Both ask the user to approve the purchase on their phone; tell the user to check their device.\n"
    "- If a tool reports that the user denied the request or that authorization failed, say so plainly and do "
    "not retry the purchase.\n"
    "- Keep answers short. Do not call the same tool again once you have what you need."
)


class AgentState(TypedDict):
    messages: list  # OpenAI chat format dicts
    tool_calls: list  # pending tool calls from the last model turn
    answer: str
    tools_used: list


def _call_model(state: AgentState) -> dict:
    """Node: ask the model for the next step."""
    messages = state.get("messages") or []
    logger.info("[graph:agent] IN  messages=%d", len(messages))
    content, tool_calls = chat_with_tools(messages, AGENT_TOOLS, max_tokens=AGENT_MAX_TOKENS)
    if tool_calls:
        messages = messages + [{
            "role": "assistant",
            "content": content or "",
            "tool_calls": [
                {"id": tc["id"], "type": "function", "function": {"name": tc["name"], "arguments": json.dumps(tc.get("arguments") or {})}}
                for tc in tool_calls
            ],
        }]
        logger.info("[graph:agent] OUT tool_calls=%s", [tc["name"] for tc in tool_calls])
        return {"messages": messages, "tool_calls": tool_calls}
    answer = (content or "").strip()
    if answer:
        messages = messages + [{"role": "assistant", "content": answer}]
    logger.info("[graph:agent] OUT answer_len=%d", len(answer))
    return {"messages": messages, "tool_calls": [], "answer": answer}


def _run_tools(state: AgentState, config: RunnableConfig) -> dict:
    """Node: execute every pending tool call; failures become tool results."""
    context: dict[str, Any] = (config or {}).get("configurable") or {}
    messages = list(state.get("messages") or [])
    tools_used = list(state.get("tools_used") or [])
    for tc in state.get("tool_calls") or []:
        name = tc.get("name", "")
        try:
            result = execute_tool(name, tc.get("arguments") or {}, context)
        except Exception as e:
            logger.exception("[graph:tools] tool %s failed", name)
            result = f"Error: {e}"
        tools_used.append(name)
        messages.append({"role": "tool", "tool_call_id": tc.get("id", ""), "content": result})
    logger.info("[graph:tools] OUT tools_used=%s", tools_used)
    return {"messages": messages, "tool_calls": [], "tools_used": tools_used}


def _route_after_agent(state: AgentState) -> Literal["tools", "__end__"]:
    return "tools" if state.get("tool_calls") else END


def build_graph():
    """
    Build and compile the agent graph.
    agent -> (tools -> agent)* -> END.
    """
    graph = StateGraph(AgentState)

    graph.add_node("agent", _call_model)
    graph.add_node("tools", _run_tools)

    graph.set_entry_point("agent")
    graph.add_conditional_edges("agent", _route_after_agent)
    graph.add_edge("tools", "agent")

    return graph.compile()


def run_agent(message: str, user_id: str | None = None, user: dict[str, Any] | None = None) -> dict:
    """
    Run the agent on the latest user message. Returns answer and tools_used.
    Raises ValueError for an empty message and GraphRecursionError when the
    tool loop exceeds AGENT_RECURSION_LIMIT steps.
    """
    if not message or not str(message).strip():
        raise ValueError("message is required")
    q = str(message).strip()
    logger.info("[run_agent] START user_id=%s message=%r", (user_id or "")[:16], q)
    initial: AgentState = {
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": q},
        ],
        "tool_calls": [],
        "answer": "",
        "tools_used": [],
    }
    config: RunnableConfig = {
        "recursion_limit": AGENT_RECURSION_LIMIT,
        "configurable": {
            "user_id": user_id,
            "_credentials": {"user": user},
        },
    }
    final = build_graph().invoke(initial, config=config)
    answer = (final.get("answer") or "").strip()
    tools_used = final.get("tools_used") or []
    logger.info("[run_agent] END tools_used=%s answer_len=%d", tools_used, len(answer))
    return {"answer": answer, "tools_used": tools_used}
