"""
A2A (Agent-to-Agent) JSON-RPC 2.0 route, health check and agent card.

Endpoint: POST /a2a/agent/{agent_id}
Methods: message/send, message/stream, tasks/get, tasks/cancel
"""

import json
import logging
import traceback
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from pottery_agent.agent.registry import AGENTS, get_agent, list_agents
from pottery_agent.api.handlers import (
    handle_message_send,
    handle_message_stream,
    handle_tasks_cancel,
    handle_tasks_get,
)
from pottery_agent.core.config import APP_ENV, PUBLIC_BASE_URL
from pottery_agent.core.errors import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    SERVER_ERROR,
    JsonRpcError,
    ServiceUnavailableError,
)
from pottery_agent.services.a2a_messages import JSONRPC_VERSION, jsonrpc_error, now_iso

logger = logging.getLogger(__name__)
router = APIRouter(tags=["a2a"])

SUPPORTED_METHODS = ("message/send", "message/stream", "tasks/get", "tasks/cancel")


def _error_response(request_id: Any, error: dict[str, Any], status_code: int) -> JSONResponse:
    return JSONResponse(jsonrpc_error(request_id, error), status_code=status_code)


@router.post(
    "/a2a/agent/{agent_id}",
    summary="A2A JSON-RPC endpoint",
    description="JSON-RPC 2.0 Agent-to-Agent endpoint. Methods: message/send, message/stream (SSE), tasks/get, tasks/cancel.",
)
async def a2a_agent(agent_id: str, request: Request, background_tasks: BackgroundTasks):
    request_id: Any = None
    try:
        try:
            body = json.loads(await request.body())
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise JsonRpcError(PARSE_ERROR, "Parse error: request body must be valid JSON") from e

        if isinstance(body, dict):
            request_id = body.get("id")
        if not isinstance(body, dict) or body.get("jsonrpc") != JSONRPC_VERSION or request_id is None or request_id == "":
            raise JsonRpcError(INVALID_REQUEST, 'Invalid Request: jsonrpc must be "2.0" and id is required')

        agent = get_agent(agent_id)
        if agent is None:
            raise JsonRpcError(
                INVALID_PARAMS,
                f"Agent '{agent_id}' not found. Available agents: {', '.join(AGENTS)}",
                http_status=404,
            )

        method = body.get("method")
        params = body.get("params")
        logger.info("[api:a2a] IN  agent_id=%s method=%s request_id=%r", agent_id, method, request_id)

        if method == "message/send":
            result = await run_in_threadpool(handle_message_send, agent, agent_id, request_id, params, background_tasks)
            return JSONResponse(result)
        if method == "message/stream":
            return handle_message_stream(agent, agent_id, request_id, params)
        if method == "tasks/get":
            return JSONResponse(handle_tasks_get(request_id, params))
        if method == "tasks/cancel":
            return JSONResponse(handle_tasks_cancel(request_id, params))
        raise JsonRpcError(
            METHOD_NOT_FOUND,
            f"Method '{method}' not found. Supported methods: {', '.join(SUPPORTED_METHODS)}",
        )

    except JsonRpcError as e:
        logger.info("[api:a2a] OUT error code=%d message=%s", e.code, e.message)
        return _error_response(request_id, e.to_error(), e.http_status)
    except ServiceUnavailableError as e:
        logger.warning("[api:a2a] service unavailable: %s", e.message)
        return _error_response(
            request_id,
            {"code": SERVER_ERROR, "message": f"Service unavailable: {e.message}"},
            503,
        )
    except Exception as e:
        logger.exception("A2A route error")
        data: dict[str, Any] = {"details": str(e)}
        if APP_ENV == "development":
            data["stack"] = traceback.format_exc()
        return _error_response(request_id, {"code": INTERNAL_ERROR, "message": "Internal error", "data": data}, 500)


@router.get("/a2a/health", summary="A2A health check")
def a2a_health() -> dict:
    return {
        "status": "ok",
        "agents": [a["id"] for a in list_agents()],
        "timestamp": now_iso(),
    }


@router.get("/.well-known/agent.json", summary="A2A agent card")
def agent_card() -> dict:
    """Discovery document for the pottery agent (capabilities, skills, endpoint)."""
    return {
        "name": "Pottery Expert Agent",
        "description": "Answers pottery questions on clay bodies, wheel throwing, hand-building, glazing, firing, kilns, tools and troubleshooting, backed by a Pinecone knowledge base.",
        "url": f"{PUBLIC_BASE_URL}/a2a/agent/potteryAgent",
        "version": "1.0.0",
        "capabilities": {"streaming": True, "pushNotifications": True},
        "defaultInputModes": ["text", "image"],
        "defaultOutputModes": ["text"],
        "skills": [
            {
                "id": "pottery-qa",
                "name": "Pottery Q&A",
                "description": "Answer pottery questions using retrieval over the pottery knowledge base.",
                "tags": ["pottery", "ceramics", "rag"],
                "examples": [
                    "What are the different types of clay used in pottery?",
                    "What's the difference between bisque firing and glaze firing?",
                    "How can I fix cracks in my pottery?",
                ],
            },
            {
                "id": "pottery-critique",
                "name": "Pottery Image Feedback",
                "description": "Describe a photo of a pottery piece and suggest fixes for visible issues.",
                "tags": ["pottery", "image", "feedback"],
                "examples": ["Here is my bowl after glaze firing, why did the glaze crawl?"],
            },
        ],
    }
