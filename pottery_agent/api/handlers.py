"""
A2A method handlers: validate JSON-RPC params, run the agent, build task results.

Responsibility: Bridge the A2A route and the agent. Raise JsonRpcError for client
mistakes; the route turns it (and anything unexpected) into a JSON-RPC error envelope.
"""

import logging
from typing import Any

import httpx
from fastapi import BackgroundTasks
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ValidationError

from pottery_agent.agent.expert import PotteryAgent
from pottery_agent.core.config import DEFAULT_RESOURCE_ID
from pottery_agent.core.errors import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    SERVER_ERROR,
    TASK_NOT_CANCELABLE,
    TASK_NOT_FOUND,
    JsonRpcError,
)
from pottery_agent.core.task_store import (
    COMPLETED,
    FAILED,
    SUBMITTED,
    TERMINAL_STATES,
    WORKING,
    task_store,
)
from pottery_agent.schemas.a2a import MessageConfiguration, MessageParams, TaskParams
from pottery_agent.services.a2a_messages import (
    KNOWLEDGE_SYSTEM_CONTEXT,
    build_artifacts,
    build_history,
    build_task,
    jsonrpc_error,
    jsonrpc_result,
    limit_history,
    new_id,
    now_iso,
    response_metadata,
    sse_event,
    text_part,
    to_chat_messages,
)
from pottery_agent.services.push_notifications import send_push_notification

logger = logging.getLogger(__name__)

# SSE-only states; never stored
STREAM_PROCESSING = "processing"
STREAM_STREAMING = "streaming"
STREAM_CANCELLED = "cancelled"

AGENT_FAILED_MESSAGE = "Agent failed to generate a response."

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


class MessageRun:
    """Everything needed to run one message/send or message/stream request."""

    def __init__(self, params: MessageParams) -> None:
        if params.message:
            self.messages = [params.message]
        elif params.messages:
            self.messages = params.messages
        else:
            raise JsonRpcError(INVALID_PARAMS, 'Invalid params: either "message" or "messages" is required')
        first = self.messages[0] if isinstance(self.messages[0], dict) else {}
        task_id = params.id or params.taskId or first.get("taskId")
        explicit_context = params.sessionId or params.contextId or first.get("contextId")
        self.task_id = str(task_id) if task_id else new_id()
        self.context_id = str(explicit_context) if explicit_context else new_id()
        # Memory thread: the conversation if the caller named one, else this task
        self.thread_id = str(explicit_context) if explicit_context else self.task_id
        self.resource_id = (params.metadata or {}).get("userId") or DEFAULT_RESOURCE_ID
        self.history_length = params.historyLength
        self.configuration = params.configuration or MessageConfiguration()
        self.chat = [{"role": "system", "content": KNOWLEDGE_SYSTEM_CONTEXT}, *to_chat_messages(self.messages)]


def _parse(model: type[BaseModel], params: Any) -> Any:
    if params is None:
        params = {}
    if not isinstance(params, dict):
        raise JsonRpcError(INVALID_PARAMS, "Invalid params: params must be an object")
    try:
        return model.model_validate(params)
    except ValidationError as e:
        first = e.errors()[0]
        where = ".".join(str(p) for p in first.get("loc", ()))
        raise JsonRpcError(INVALID_PARAMS, f"Invalid params: {where}: {first.get('msg')}") from e


def _run_task(agent: PotteryAgent, agent_id: str, run: MessageRun) -> dict[str, Any] | None:
    """Generate, then store the completed task. Returns None if the task was cancelled meanwhile."""
    response = agent.generate(run.chat, thread_id=run.thread_id, resource_id=run.resource_id)
    if task_store.is_cancelled(run.task_id):
        logger.info("[a2a:run_task] task_id=%s cancelled during generation; result dropped", run.task_id)
        return None
    task = build_task(
        run.task_id,
        run.context_id,
        COMPLETED,
        text=response.text,
        artifacts=build_artifacts(agent_id, response.text, response.tool_results),
        history=build_history(run.messages, response.text, run.task_id),
        metadata=response_metadata(agent_id, response.processing_time, response.tool_results),
    )
    task_store.save(task)
    return task


def _is_webhook_url(url: str) -> bool:
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, UnicodeError):
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.host)


def _with_history_limit(task: dict[str, Any], history_length: int | None) -> dict[str, Any]:
    task = dict(task)
    if "history" in task:
        task["history"] = limit_history(task["history"], history_length)
    return task


def handle_message_send(
    agent: PotteryAgent,
    agent_id: str,
    request_id: Any,
    params: Any,
    background_tasks: BackgroundTasks,
) -> dict[str, Any]:
    """message/send: blocking returns the finished task; non-blocking returns a submitted task and pushes later."""
    run = MessageRun(_parse(MessageParams, params))
    logger.info("[a2a:message/send] IN  task_id=%s context_id=%s blocking=%s messages=%d",
                run.task_id, run.context_id, run.configuration.blocking, len(run.messages))

    if not run.configuration.blocking:
        push = run.configuration.pushNotificationConfig
        if push is None or not push.url:
            raise JsonRpcError(
                INVALID_PARAMS,
                "Invalid params: configuration.pushNotificationConfig.url is required for non-blocking requests",
            )
        if not _is_webhook_url(push.url):
            raise JsonRpcError(
                INVALID_PARAMS,
                f"Invalid params: configuration.pushNotificationConfig.url is not a valid http(s) URL: {push.url!r}",
            )
        task = build_task(run.task_id, run.context_id, SUBMITTED)
        task_store.save(task)
        background_tasks.add_task(run_in_background, agent, agent_id, request_id, run, push.url, push.token)
        return jsonrpc_result(request_id, task)

    task_store.save(build_task(run.task_id, run.context_id, WORKING))
    try:
        task = _run_task(agent, agent_id, run)
    except Exception:
        task_store.set_state(run.task_id, FAILED)
        raise
    if task is None:
        task = task_store.get(run.task_id)
    return jsonrpc_result(request_id, _with_history_limit(task, run.history_length))


def _deliver(url: str, token: str | None, payload: dict[str, Any]) -> None:
    try:
        send_push_notification(url, token, payload)
    except (httpx.HTTPError, httpx.InvalidURL):
        logger.exception("[a2a:push] delivery to %s failed", url)


def run_in_background(
    agent: PotteryAgent,
    agent_id: str,
    request_id: Any,
    run: MessageRun,
    webhook_url: str,
    webhook_token: str | None,
) -> None:
    """Non-blocking message/send: generate, then POST the JSON-RPC result (or error) to the webhook."""
    if task_store.is_cancelled(run.task_id):
        logger.info("[a2a:background] task_id=%s cancelled before start", run.task_id)
        return
    task_store.set_state(run.task_id, WORKING)
    try:
        task = _run_task(agent, agent_id, run)
    except Exception as e:
        logger.exception("[a2a:background] task_id=%s failed", run.task_id)
        task_store.set_state(run.task_id, FAILED)
        error = {"code": SERVER_ERROR, "message": AGENT_FAILED_MESSAGE, "data": {"details": str(e)}}
        _deliver(webhook_url, webhook_token, jsonrpc_error(request_id, error))
        return
    if task is None:
        return
    _deliver(webhook_url, webhook_token, jsonrpc_result(request_id, _with_history_limit(task, run.history_length)))


def _stream_status(task_id: str, context_id: str, state: str, text: str | None = None) -> dict[str, Any]:
    status: dict[str, Any] = {"state": state, "timestamp": now_iso()}
    if text is not None:
        status["message"] = {"kind": "message", "role": "agent", "parts": [text_part(text)]}
    return {"id": task_id, "contextId": context_id, "status": status}


def _stream_events(agent: PotteryAgent, agent_id: str, request_id: Any, run: MessageRun):
    """Yield SSE frames: processing, one streaming frame per delta, then completed (or error/cancelled)."""
    start = build_task(run.task_id, run.context_id, STREAM_PROCESSING)
    yield sse_event(jsonrpc_result(request_id, start))
    task_store.save(build_task(run.task_id, run.context_id, WORKING))
    try:
        full_text = ""
        tool_results: list[dict[str, Any]] = []
        for evt in agent.stream(run.chat, thread_id=run.thread_id, resource_id=run.resource_id):
            if task_store.is_cancelled(run.task_id):
                logger.info("[a2a:message/stream] task_id=%s cancelled", run.task_id)
                yield sse_event(jsonrpc_result(request_id, _stream_status(run.task_id, run.context_id, STREAM_CANCELLED)))
                return
            event_type = evt.get("event", "")
            if event_type == "text_delta":
                delta = evt.get("content", "")
                full_text += delta
                yield sse_event(jsonrpc_result(request_id, _stream_status(run.task_id, run.context_id, STREAM_STREAMING, delta)))
            elif event_type == "done":
                full_text = evt.get("text", full_text)
                tool_results = evt.get("tool_results") or []
        task = build_task(
            run.task_id,
            run.context_id,
            COMPLETED,
            text=full_text,
            artifacts=build_artifacts(agent_id, full_text, tool_results),
            history=build_history(run.messages, full_text, run.task_id),
            metadata=response_metadata(agent_id, None, tool_results),
        )
        task_store.save(task)
        completion = {k: v for k, v in task.items() if k != "history"}
        yield sse_event(jsonrpc_result(request_id, completion))
    except Exception as e:
        logger.exception("[a2a:message/stream] stream failed task_id=%s", run.task_id)
        task_store.set_state(run.task_id, FAILED)
        error = {"code": INTERNAL_ERROR, "message": "Streaming error", "data": {"details": str(e)}}
        yield sse_event(jsonrpc_error(request_id, error))


def handle_message_stream(
    agent: PotteryAgent,
    agent_id: str,
    request_id: Any,
    params: Any,
) -> StreamingResponse:
    """message/stream: params are validated before the stream opens so errors stay plain JSON-RPC."""
    run = MessageRun(_parse(MessageParams, params))
    logger.info("[a2a:message/stream] IN  task_id=%s context_id=%s", run.task_id, run.context_id)
    return StreamingResponse(
        _stream_events(agent, agent_id, request_id, run),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


def _require_task_id(params: TaskParams) -> str:
    if params.id is None or str(params.id).strip() == "":
        raise JsonRpcError(INVALID_PARAMS, 'Invalid params: "id" (taskId) is required')
    return str(params.id)


def handle_tasks_get(request_id: Any, params: Any) -> dict[str, Any]:
    p = _parse(TaskParams, params)
    task_id = _require_task_id(p)
    task = task_store.get(task_id)
    if task is None:
        raise JsonRpcError(TASK_NOT_FOUND, f"Task '{task_id}' not found", http_status=404)
    return jsonrpc_result(request_id, _with_history_limit(task, p.historyLength))


def handle_tasks_cancel(request_id: Any, params: Any) -> dict[str, Any]:
    p = _parse(TaskParams, params)
    task_id = _require_task_id(p)
    state = task_store.state(task_id)
    if state is None:
        raise JsonRpcError(TASK_NOT_FOUND, f"Task '{task_id}' not found", http_status=404)
    if state in TERMINAL_STATES:
        raise JsonRpcError(
            TASK_NOT_CANCELABLE,
            f"Task '{task_id}' cannot be cancelled (state: {state})",
            http_status=409,
        )
    task = task_store.cancel(task_id)
    return jsonrpc_result(request_id, task)
