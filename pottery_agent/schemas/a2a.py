"""Schemas for A2A JSON-RPC params. Unknown fields are kept; platforms add their own."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PushNotificationConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    url: str | None = Field(None, description="Webhook that receives the JSON-RPC result.")
    token: str | None = Field(None, description="Sent as a Bearer token to the webhook.")


class MessageConfiguration(BaseModel):
    model_config = ConfigDict(extra="allow")

    blocking: bool = True
    pushNotificationConfig: PushNotificationConfig | None = None


class MessageParams(BaseModel):
    """params of message/send and message/stream."""

    model_config = ConfigDict(extra="allow")

    message: dict[str, Any] | None = None
    messages: list[dict[str, Any]] | None = None
    id: str | int | None = None
    taskId: str | int | None = None
    contextId: str | int | None = None
    sessionId: str | int | None = None
    metadata: dict[str, Any] | None = None
    historyLength: int | None = None
    configuration: MessageConfiguration | None = None


class TaskParams(BaseModel):
    """params of tasks/get and tasks/cancel."""

    model_config = ConfigDict(extra="allow")

    id: str | int | None = None
    historyLength: int | None = None
    metadata: dict[str, Any] | None = None
