"""
Agent LLM: OpenAI chat completions with tool calling, blocking and streamed.
"""

import json
import logging
from typing import Any

from pottery_agent.core.config import OPENAI_LLM_MODEL
from pottery_agent.services.vector_store import get_openai_client

logger = logging.getLogger(__name__)


def _parse_arguments(raw: Any) -> dict[str, Any]:
    if not raw:
        return {}
    if not isinstance(raw, str):
        return dict(raw)
    try:
        args = json.loads(raw)
    except json.JSONDecodeError:
        return {}
    return args if isinstance(args, dict) else {}


def chat_with_tools(
    messages: list[dict[str, Any]],
    tools: list[dict[str, Any]],
    max_tokens: int = 1024,
) -> tuple[str | None, list[dict[str, Any]] | None]:
    """
    Call OpenAI chat with tools.
    Returns (content, tool_calls). If tool_calls is non-empty, caller should execute
    them and call again with tool results; if content is set and no tool_calls, that's the final answer.
    """
    client = get_openai_client()
    response = client.chat.completions.create(
        model=OPENAI_LLM_MODEL,
        messages=messages,
        tools=tools,
        max_tokens=max_tokens,
    )
    msg = response.choices[0].message if response.choices else None
    if not msg:
        return None, None
    content = (getattr(msg, "content", None) or "").strip() or None
    raw_tool_calls = getattr(msg, "tool_calls", None) or []
    tool_calls = []
    for tc in raw_tool_calls:
        fn = getattr(tc, "function", None)
        if not fn:
            continue
        tool_calls.append({
            "id": getattr(tc, "id", None) or "",
            "name": getattr(fn, "name", None) or "",
            "arguments": _parse_arguments(getattr(fn, "arguments", None)),
        })
    if tool_calls:
        logger.info("[llm:chat_with_tools] OUT tool_calls=%s", [t["name"] for t in tool_calls])
    if content:
        logger.info("[llm:chat_with_tools] OUT content_len=%d", len(content))
    return content, tool_calls if tool_calls else None


def chat_with_tools_stream(
    messages: list[dict[str, Any]],
    tools: list[dict[str, Any]],
    max_tokens: int = 1024,
):
    """
    Call OpenAI chat with tools and stream the response. Yields:
    - ('content_delta', str) for each token of the final answer;
    - ('content_done',) when the answer is complete (no tool_calls);
    - ('tool_calls', list[dict], content_str) when the model called tools (content_str may be empty).
    """
    client = get_openai_client()
    stream = client.chat.completions.create(
        model=OPENAI_LLM_MODEL,
        messages=messages,
        tools=tools,
        max_tokens=max_tokens,
        stream=True,
    )
    content_parts: list[str] = []
    tool_calls_accum: dict[int, dict[str, Any]] = {}
    for chunk in stream:
        if not chunk.choices:
            continue
        d = chunk.choices[0].delta
        if getattr(d, "content", None):
            content_parts.append(d.content)
            yield ("content_delta", d.content)
        if getattr(d, "tool_calls", None):
            for tc in d.tool_calls:
                idx = getattr(tc, "index", 0)
                if idx not in tool_calls_accum:
                    tool_calls_accum[idx] = {"id": "", "name": "", "arguments": ""}
                if getattr(tc, "id", None):
                    tool_calls_accum[idx]["id"] = tc.id
                fn = getattr(tc, "function", None)
                if fn:
                    if getattr(fn, "name", None):
                        tool_calls_accum[idx]["name"] = fn.name
                    if getattr(fn, "arguments", None):
                        tool_calls_accum[idx]["arguments"] += fn.arguments
    full_content = "".join(content_parts)
    if tool_calls_accum:
        tool_calls_list = [
            {
                "id": t["id"],
                "name": t["name"],
                "arguments": _parse_arguments(t["arguments"]),
            }
            for t in (tool_calls_accum[i] for i in sorted(tool_calls_accum))
        ]
        logger.info("[llm:chat_with_tools_stream] OUT tool_calls=%s", [x["name"] for x in tool_calls_list])
        yield ("tool_calls", tool_calls_list, full_content)
    else:
        logger.info("[llm:chat_with_tools_stream] OUT content_done len=%d", len(full_content))
        yield ("content_done",)
