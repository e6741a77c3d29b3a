"""
A2A (Agent-to-Agent) message helpers: parse incoming message parts, build task results.

Responsibility: Translate between A2A JSON-RPC payloads and the agent's chat messages.
No HTTP here; the API layer calls these and decides status codes.
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from pottery_agent.services.text_processing import clean_text, strip_html

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"
AGENT_DISPLAY_NAME = "Pottery Expert Agent"
KNOWLEDGE_ARTIFACT_NAME = "PotteryKnowledgeResults"

KNOWLEDGE_SYSTEM_CONTEXT = (
    "You are a pottery expert with access to a rich knowledge base of 28,856+ pottery embeddings. "
    "Use the potterySearchTool to find relevant information before answering."
)

_ROLE_MAP = {"user": "user", "agent": "assistant"}


def new_id() -> str:
    return str(uuid.uuid4())


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def text_part(text: str) -> dict[str, Any]:
    return {"kind": "text", "text": text}


def _parts(msg: dict[str, Any]) -> list[dict[str, Any]]:
    parts = msg.get("parts") if isinstance(msg, dict) else None
    if not isinstance(parts, list):
        return []
    return [p for p in parts if isinstance(p, dict)]


def _history_prompt(parts: list[dict[str, Any]]) -> str:
    """
    Some platforms (Telex) send the conversation as a list inside a data part; the
    real prompt is the last text item of that list.
    """
    for part in parts:
        data = part.get("data")
        if part.get("kind") != "data" or not isinstance(data, list):
            continue
        for item in reversed(data):
            if isinstance(item, dict) and item.get("kind") == "text" and item.get("text"):
                return strip_html(item["text"])
    return ""


def message_text(msg: dict[str, Any]) -> str:
    """Plain-text content of an A2A message, cleaned for the LLM and memory."""
    parts = _parts(msg)
    prompt = _history_prompt(parts)
    if prompt:
        return clean_text(prompt)
    pieces: list[str] = []
    for part in parts:
        kind = part.get("kind")
        if kind == "text":
            text = strip_html(part.get("text"))
            if text:
                pieces.append(text)
        elif kind == "data" and part.get("data") is not None and not isinstance(part.get("data"), list):
            pieces.append(json.dumps(part["data"]))
    return clean_text("\n".join(pieces))


def _image_url(part: dict[str, Any]) -> str | None:
    if part.get("kind") != "file":
        return None
    file = part.get("file") or {}
    mime = (file.get("mimeType") or file.get("mime_type") or "").lower()
    if not mime.startswith("image/"):
        return None
    if file.get("uri"):
        return file["uri"]
    if file.get("bytes"):
        return f"data:{mime};base64,{file['bytes']}"
    return None


def to_chat_message(msg: dict[str, Any]) -> dict[str, Any]:
    """A2A message → chat message. Images become OpenAI image_url content parts."""
    raw_role = (msg.get("role") or "user") if isinstance(msg, dict) else "user"
    role = _ROLE_MAP.get(raw_role, raw_role)
    text = message_text(msg)
    images = [url for url in (_image_url(p) for p in _parts(msg)) if url]
    if not images:
        return {"role": role, "content": text}
    content: list[dict[str, Any]] = []
    if text:
        content.append({"type": "text", "text": text})
    content.extend({"type": "image_url", "image_url": {"url": url}} for url in images)
    return {"role": role, "content": content}


def to_chat_messages(messages: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [to_chat_message(m) for m in messages]


def agent_message(text: str, task_id: str | None = None) -> dict[str, Any]:
    msg: dict[str, Any] = {
        "messageId": new_id(),
        "role": "agent",
        "parts": [text_part(text)],
        "kind": "message",
        "timestamp": now_iso(),
    }
    if task_id:
        msg["taskId"] = task_id
    return msg


def build_artifacts(agent_id: str, text: str, tool_results: list[dict[str, Any]] | None = None) -> list[dict[str, Any]]:
    artifacts = [
        {
            "artifactId": new_id(),
            "name": f"{agent_id}Response",
            "description": "Main response from pottery expert",
            "parts": [text_part(text)],
        }
    ]
    if tool_results:
        artifacts.append({
            "artifactId": new_id(),
            "name": KNOWLEDGE_ARTIFACT_NAME,
            "description": "RAG search results from Pinecone vector database",
            "parts": [{"kind": "data", "data": result} for result in tool_results],
        })
    return artifacts


def limit_history(history: list[dict[str, Any]], history_length: int | None) -> list[dict[str, Any]]:
    if history_length and history_length > 0:
        return history[-history_length:]
    return history


def build_history(
    messages: list[dict[str, Any]],
    text: str,
    task_id: str,
    history_length: int | None = None,
) -> list[dict[str, Any]]:
    """Input messages plus the agent reply, each stamped with the task id."""
    history = [
        {
            "kind": "message",
            "role": msg.get("role"),
            "parts": msg.get("parts"),
            "messageId": msg.get("messageId") or new_id(),
            "taskId": task_id,
            "timestamp": msg.get("timestamp") or now_iso(),
        }
        for msg in messages
    ]
    history.append(agent_message(text, task_id=task_id))
    return limit_history(history, history_length)


def build_task(
    task_id: str,
    context_id: str,
    state: str,
    text: str | None = None,
    artifacts: list[dict[str, Any]] | None = None,
    history: list[dict[str, Any]] | None = None,
    metadata: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """A2A task object (the JSON-RPC `result` of message/send and tasks/get)."""
    status: dict[str, Any] = {"state": state, "timestamp": now_iso()}
    if text is not None:
        status["message"] = agent_message(text)
    task: dict[str, Any] = {
        "id": task_id,
        "contextId": context_id,
        "sessionId": context_id,
        "status": status,
        "kind": "task",
    }
    if artifacts is not None:
        task["artifacts"] = artifacts
    if history is not None:
        task["history"] = history
    if metadata is not None:
        task["metadata"] = metadata
    return task


def response_metadata(agent_id: str, processing_time: float | None, tool_results: list[dict[str, Any]]) -> dict[str, Any]:
    return {
        "agentId": agent_id,
        "agentName": AGENT_DISPLAY_NAME,
        "processingTime": processing_time,
        "toolsUsed": len(tool_results),
        "vectorSearchPerformed": len(tool_results) > 0,
    }


def jsonrpc_result(request_id: Any, result: dict[str, Any]) -> dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def jsonrpc_error(request_id: Any, error: dict[str, Any]) -> dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": error}


def sse_event(payload: dict[str, Any]) -> str:
    """Frame one JSON payload as a Server-Sent Event."""
    return f"data: {json.dumps(payload)}\n\n"
