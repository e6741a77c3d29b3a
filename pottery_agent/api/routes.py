"""
API route aggregator: register endpoints; no logic, only delegate to agents, workflow and memory.
"""

import json
import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse

from pottery_agent.agent.expert import PotteryAgent
from pottery_agent.agent.graph import run_workflow
from pottery_agent.agent.registry import get_agent, list_agents
from pottery_agent.core.errors import ServiceUnavailableError
from pottery_agent.core.memory import memory
from pottery_agent.schemas.agents import (
    GenerateRequest,
    GenerateResponse,
    WorkflowRequest,
    WorkflowResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter()


# --- System ---

@router.get("/", tags=["system"])
def root():
    return {"status": "Pottery Expert agent running"}


@router.get("/health", tags=["system"])
def health():
    return {"ok": True}


# --- Agents ---

def _agent_or_404(agent_id: str) -> PotteryAgent:
    agent = get_agent(agent_id)
    if agent is None:
        raise HTTPException(status_code=404, detail=f"Agent not found: {agent_id!r}")
    return agent


@router.get("/api/agents", tags=["agents"], summary="List agents")
def get_agents() -> dict:
    return {"agents": list_agents()}


@router.post(
    "/api/agents/{agent_id}/generate",
    response_model=GenerateResponse,
    tags=["agents"],
    summary="Generate an answer (sync)",
    description="Send messages; receive the final text and tool results. 404 unknown agent, 503 when OpenAI is not configured, 500 on agent failure.",
)
def post_generate(agent_id: str, body: GenerateRequest) -> GenerateResponse:
    agent = _agent_or_404(agent_id)
    messages = [m.model_dump() for m in body.messages]
    logger.info("[api:post_generate] IN  agent_id=%s messages=%d thread_id=%s", agent_id, len(messages), body.threadId)
    try:
        response = agent.generate(messages, thread_id=body.threadId, resource_id=body.resourceId)
    except ServiceUnavailableError as e:
        raise HTTPException(status_code=503, detail=e.message) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except Exception as e:
        logger.exception("Agent failed")
        raise HTTPException(status_code=500, detail=str(e)) from e
    logger.info("[api:post_generate] OUT tools_used=%d answer_len=%d", len(response.tool_results), len(response.text))
    return GenerateResponse(
        text=response.text,
        toolResults=response.tool_results,
        processingTime=response.processing_time,
    )


def _sse_generator(agent: PotteryAgent, messages: list, thread_id: str | None, resource_id: str | None):
    """Yield Server-Sent Events for streaming agent response."""
    try:
        for evt in agent.stream(messages, thread_id=thread_id, resource_id=resource_id):
            event_type = evt.get("event", "")
            if event_type == "text_delta":
                yield f"event: text_delta\ndata: {json.dumps({'content': evt.get('content', '')})}\n\n"
            elif event_type == "tool":
                yield f"event: tool\ndata: {json.dumps({'name': evt.get('name', '')})}\n\n"
            elif event_type == "done":
                payload = {"text": evt.get("text", ""), "toolResults": evt.get("tool_results", [])}
                yield f"event: done\ndata: {json.dumps(payload)}\n\n"
    except Exception as e:
        logger.exception("SSE stream failed")
        yield f"event: error\ndata: {json.dumps({'message': str(e)})}\n\n"


@router.post(
    "/api/agents/{agent_id}/stream",
    tags=["agents"],
    summary="Generate an answer (SSE stream)",
    description="Stream the answer token-by-token via Server-Sent Events. Events: text_delta, tool, done, error.",
)
def post_stream(agent_id: str, body: GenerateRequest) -> StreamingResponse:
    agent = _agent_or_404(agent_id)
    messages = [m.model_dump() for m in body.messages]
    logger.info("[api:post_stream] IN  agent_id=%s messages=%d thread_id=%s", agent_id, len(messages), body.threadId)
    return StreamingResponse(
        _sse_generator(agent, messages, body.threadId, body.resourceId),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


# --- Workflows ---

@router.post(
    "/api/workflows/pottery-workflow/run",
    response_model=WorkflowResponse,
    tags=["workflows"],
    summary="Run the pottery knowledge workflow",
    description="Categorize the question, search the knowledge base and return a formatted answer with related topics.",
)
def post_pottery_workflow(body: WorkflowRequest) -> WorkflowResponse:
    logger.info("[api:post_pottery_workflow] IN  question=%r", body.question)
    try:
        result = run_workflow(body.question)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return WorkflowResponse(**result)


# --- Memory ---

@router.get("/api/memory/threads", tags=["memory"], summary="List memory threads for a resource")
def get_threads(resourceId: str) -> dict:
    return {"threads": memory.list_threads(resourceId)}


@router.get("/api/memory/threads/{thread_id}/messages", tags=["memory"], summary="Messages stored in a thread")
def get_thread_messages(thread_id: str) -> dict:
    messages = memory.get_messages(thread_id)
    if not messages:
        raise HTTPException(status_code=404, detail=f"Thread not found: {thread_id!r}")
    return {"threadId": thread_id, "messages": messages}


@router.delete("/api/memory/threads/{thread_id}", tags=["memory"], summary="Delete a memory thread")
def delete_thread(thread_id: str) -> dict:
    removed = memory.delete_thread(thread_id)
    return {"deleted": removed > 0, "messages_removed": removed}
