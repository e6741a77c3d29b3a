"""
Tool server: exposes the agent's tools over HTTP so external agents and tests can
call retrieval through the same interface the LLM uses.
"""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException

from pottery_agent.agent.tools import execute_tool, list_tools
from pottery_agent.schemas.agents import ToolExecuteRequest, ToolExecuteResponse

logger = logging.getLogger(__name__)

tools_router = APIRouter(prefix="/api/tools", tags=["tools"])


@tools_router.get("", summary="List tools")
def get_tools() -> dict[str, list[dict[str, Any]]]:
    return {"tools": list_tools()}


@tools_router.post(
    "/{tool_id}/execute",
    response_model=ToolExecuteResponse,
    summary="Execute a tool",
    description="Run a tool with the given arguments, e.g. potterySearchTool with {\"data\": {\"query\": \"...\"}}.",
)
def post_execute_tool(tool_id: str, body: ToolExecuteRequest) -> ToolExecuteResponse:
    logger.info("Tool called over HTTP: %s", tool_id)
    if tool_id not in {t["id"] for t in list_tools()}:
        raise HTTPException(status_code=404, detail=f"Tool not found: {tool_id!r}")
    output = execute_tool(tool_id, body.data)
    return ToolExecuteResponse(result=output.text, data=output.data)
