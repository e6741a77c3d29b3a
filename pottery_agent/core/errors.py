"""
Application errors for clean API error handling.

Use ServiceUnavailableError when a dependency (Pinecone, embeddings, LLM)
is misconfigured or unreachable so the API can return 503 with a user-facing message.
JsonRpcError carries a JSON-RPC 2.0 error code plus the HTTP status the A2A route answers with.
"""

from typing import Any

# JSON-RPC 2.0 standard codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# Implementation-defined server errors (-32000 .. -32099)
SERVER_ERROR = -32000
TASK_NOT_FOUND = -32001
TASK_NOT_CANCELABLE = -32002


class ServiceUnavailableError(Exception):
    """Raised when a required service (e.g. Pinecone, OpenAI) is unavailable or misconfigured."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class JsonRpcError(Exception):
    """Raised by A2A handlers; the route turns it into a JSON-RPC error envelope."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 400,
        data: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        self.data = data
        super().__init__(message)

    def to_error(self) -> dict[str, Any]:
        error: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error
