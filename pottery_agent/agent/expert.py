"""
Pottery Expert agent: instructions, memory recall, and the OpenAI tool-calling loop.

generate() returns the full answer; stream() yields events as tokens arrive:
{"event": "text_delta", "content": str}, {"event": "tool", "name": str},
{"event": "done", "text": str, "tool_results": list}.
"""

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any

from pottery_agent.agent.llm import chat_with_tools, chat_with_tools_stream
from pottery_agent.agent.tools import AGENT_TOOLS, execute_tool
from pottery_agent.core.config import (
    AGENT_MAX_TOKENS,
    DEFAULT_RESOURCE_ID,
    MAX_AGENTIC_ROUNDS,
    MEMORY_LAST_MESSAGES,
)
from pottery_agent.core.memory import ThreadMemory

logger = logging.getLogger(__name__)

INCOMPLETE_ANSWER = "I couldn't complete the request."

POTTERY_INSTRUCTIONS = """
You are a helpful expert on pottery with deep knowledge about:
- Different types of pottery techniques (hand-building, wheel throwing, slip casting, etc.)
- Clay types and their properties (earthenware, stoneware, porcelain, etc.)
- Glazing techniques and firing processes
- Pottery history and cultural significance
- Troubleshooting common pottery issues
- Tools and equipment used in pottery making

You can analyze images of pottery pieces, clay work, or studio setups, and you may
receive voice transcriptions of questions.

When a user asks a question:
1. If they provide an image, describe what you observe (pottery type, technique used, issues, etc.).
2. ALWAYS use the potterySearchTool to search your knowledge base for relevant information.
3. If the search tool returns "No relevant information found" or a similar empty message, ignore
   that tool result and answer from your own general knowledge. Do not tell the user the search failed.
4. Base your answer on the search results (if they were useful) or your general knowledge.
5. Provide clear, helpful, and accurate information.
6. Be conversational and encouraging - pottery is an art form!

For images:
- Identify the pottery technique or type
- Point out good aspects and areas for improvement
- Suggest fixes for any visible issues (cracks, warping, glaze defects, etc.)
- Provide encouragement and constructive feedback
""".strip()


@dataclass
class AgentResponse:
    text: str
    tool_results: list[dict[str, Any]] = field(default_factory=list)
    processing_time: float = 0.0


def content_text(content: Any) -> str:
    """Plain text of a chat message content (string or OpenAI content-part list)."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        texts = [p.get("text", "") for p in content if isinstance(p, dict) and p.get("type") == "text"]
        return "\n".join(t for t in texts if t)
    return ""


class PotteryAgent:
    """A single tool-calling agent with thread memory."""

    def __init__(
        self,
        agent_id: str,
        name: str,
        instructions: str,
        memory: ThreadMemory,
        tools: list[dict[str, Any]] | None = None,
        description: str = "",
    ) -> None:
        self.agent_id = agent_id
        self.name = name
        self.instructions = instructions
        self.memory = memory
        self.tools = tools if tools is not None else AGENT_TOOLS
        self.description = description

    def _build_prompt(self, messages: list[dict[str, Any]], thread_id: str | None) -> list[dict[str, Any]]:
        prompt: list[dict[str, Any]] = [{"role": "system", "content": self.instructions}]
        conversation: list[dict[str, Any]] = []
        for m in messages:
            role = (m.get("role") or "user").strip().lower()
            if role == "system":
                prompt.append({"role": "system", "content": content_text(m.get("content"))})
            else:
                conversation.append({
                    "role": "assistant" if role == "assistant" else "user",
                    "content": m.get("content") or "",
                })
        if thread_id:
            prompt.extend(self.memory.get_history(thread_id, limit=MEMORY_LAST_MESSAGES))
        prompt.extend(conversation)
        return prompt

    def _remember(
        self,
        messages: list[dict[str, Any]],
        answer: str,
        thread_id: str | None,
        resource_id: str | None,
    ) -> None:
        if not thread_id:
            return
        owner = resource_id or DEFAULT_RESOURCE_ID
        # Only the newest user turn: earlier turns are already in the thread or held by the caller
        latest = next(
            (m for m in reversed(messages) if (m.get("role") or "user").strip().lower() not in ("system", "assistant")),
            None,
        )
        text = content_text(latest.get("content")) if latest else ""
        if text:
            self.memory.append_message(thread_id, owner, "user", text)
        if answer:
            self.memory.append_message(thread_id, owner, "assistant", answer)

    def _run_tools(
        self,
        prompt: list[dict[str, Any]],
        tool_calls: list[dict[str, Any]],
        content: str,
        tool_results: list[dict[str, Any]],
    ) -> None:
        prompt.append({
            "role": "assistant",
            "content": content or "",
            "tool_calls": [
                {"id": tc["id"], "type": "function", "function": {"name": tc["name"], "arguments": json.dumps(tc.get("arguments") or {})}}
                for tc in tool_calls
            ],
        })
        for tc in tool_calls:
            name = tc.get("name", "")
            args = tc.get("arguments") or {}
            output = execute_tool(name, args)
            tool_results.append({
                "toolCallId": tc.get("id", ""),
                "toolName": name,
                "args": args,
                "result": output.data or output.text,
            })
            prompt.append({"role": "tool", "tool_call_id": tc.get("id", ""), "content": output.text})

    def generate(
        self,
        messages: list[dict[str, Any]],
        thread_id: str | None = None,
        resource_id: str | None = None,
    ) -> AgentResponse:
        """Run the tool loop to completion and return the final answer."""
        started = time.perf_counter()
        prompt = self._build_prompt(messages, thread_id)
        logger.info("[agent:generate] START agent=%s thread_id=%s prompt_messages=%d", self.agent_id, thread_id, len(prompt))
        tool_results: list[dict[str, Any]] = []
        text = INCOMPLETE_ANSWER
        for _ in range(MAX_AGENTIC_ROUNDS):
            content, tool_calls = chat_with_tools(prompt, self.tools, max_tokens=AGENT_MAX_TOKENS)
            if not tool_calls:
                text = content or ""
                break
            self._run_tools(prompt, tool_calls, content or "", tool_results)
        self._remember(messages, text, thread_id, resource_id)
        elapsed = time.perf_counter() - started
        logger.info("[agent:generate] END tools_used=%d answer_len=%d elapsed=%.2fs", len(tool_results), len(text), elapsed)
        return AgentResponse(text=text, tool_results=tool_results, processing_time=elapsed)

    def stream(
        self,
        messages: list[dict[str, Any]],
        thread_id: str | None = None,
        resource_id: str | None = None,
    ):
        """Run the tool loop, yielding text deltas and tool events, then a done event."""
        prompt = self._build_prompt(messages, thread_id)
        logger.info("[agent:stream] START agent=%s thread_id=%s prompt_messages=%d", self.agent_id, thread_id, len(prompt))
        tool_results: list[dict[str, Any]] = []
        # Every delta sent to the caller, across rounds; the final text is their concatenation
        streamed: list[str] = []
        for _ in range(MAX_AGENTIC_ROUNDS):
            pending_calls: list[dict[str, Any]] | None = None
            pending_content = ""
            for item in chat_with_tools_stream(prompt, self.tools, max_tokens=AGENT_MAX_TOKENS):
                if item[0] == "content_delta":
                    streamed.append(item[1])
                    yield {"event": "text_delta", "content": item[1]}
                elif item[0] == "content_done":
                    text = "".join(streamed).strip()
                    self._remember(messages, text, thread_id, resource_id)
                    logger.info("[agent:stream] END tools_used=%d answer_len=%d", len(tool_results), len(text))
                    yield {"event": "done", "text": text, "tool_results": tool_results}
                    return
                elif item[0] == "tool_calls":
                    pending_calls = item[1]
                    pending_content = (item[2] or "").strip()
            if not pending_calls:
                break
            for tc in pending_calls:
                yield {"event": "tool", "name": tc.get("name", "")}
            self._run_tools(prompt, pending_calls, pending_content, tool_results)
        tail = f"\n\n{INCOMPLETE_ANSWER}" if streamed else INCOMPLETE_ANSWER
        streamed.append(tail)
        yield {"event": "text_delta", "content": tail}
        text = "".join(streamed).strip()
        self._remember(messages, text, thread_id, resource_id)
        yield {"event": "done", "text": text, "tool_results": tool_results}
