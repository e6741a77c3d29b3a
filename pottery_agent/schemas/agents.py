"""Schemas for the agent, tool and workflow REST endpoints."""

from typing import Any

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    """One chat message. Content is plain text or an OpenAI content-part list (text + image_url)."""

    role: str = Field("user", description="user, assistant or system.")
    content: str | list[dict[str, Any]] = Field(..., description="Message text or content parts.")


class GenerateRequest(BaseModel):
    """Request body for POST /api/agents/{agent_id}/generate and /stream."""

    messages: list[ChatMessage] = Field(..., min_length=1, description="Conversation turns to send to the agent.")
    threadId: str | None = Field(None, description="Memory thread; recalled history is prepended when set.")
    resourceId: str | None = Field(None, description="Owner of the thread (e.g. user id).")


class GenerateResponse(BaseModel):
    """Response for POST /api/agents/{agent_id}/generate."""

    text: str = Field(..., description="Final answer from the agent.")
    toolResults: list[dict[str, Any]] = Field(default_factory=list, description="Tool calls made while answering.")
    processingTime: float = Field(0.0, description="Seconds spent generating.")


class ToolExecuteRequest(BaseModel):
    """Request body for POST /api/tools/{tool_id}/execute."""

    data: dict[str, Any] = Field(default_factory=dict, description="Tool arguments, e.g. {\"query\": \"...\"}.")


class ToolExecuteResponse(BaseModel):
    result: str = Field(..., description="Text the tool returns to the model.")
    data: dict[str, Any] = Field(default_factory=dict, description="Structured tool output.")


class WorkflowRequest(BaseModel):
    """Request body for POST /api/workflows/pottery-workflow/run."""

    question: str = Field(..., min_length=1, description="The pottery question to answer.")


class WorkflowResponse(BaseModel):
    answer: str
    category: str
    related_topics: list[str] = Field(default_factory=list)
    sources: int = 0
