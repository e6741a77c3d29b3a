"""
Agent tools: definitions and execution for tool-calling (agentic) mode.

Tools: potterySearchTool (Pinecone semantic search with keyword fallback).
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from pottery_agent.services.retrieval_service import format_results, retrieve_context

logger = logging.getLogger(__name__)

POTTERY_SEARCH_TOOL = "potterySearchTool"

# OpenAI function-calling format: list of tool definitions
AGENT_TOOLS = [
    {
        "type": "function",
        "function": {
            "name": POTTERY_SEARCH_TOOL,
            "description": "Search the pottery knowledge base (clay bodies, techniques, glazing, firing, kilns, tools, troubleshooting) using semantic retrieval. Returns scored passages with their topic.",
            "parameters": {
                "type": "object",
                "properties": {
                    "query": {
                        "type": "string",
                        "description": "Search query (keywords or natural language question about pottery)",
                    }
                },
                "required": ["query"],
            },
        },
    },
]


@dataclass
class ToolOutput:
    """Text goes back to the LLM; data is surfaced to A2A callers as an artifact."""

    text: str
    data: dict[str, Any] = field(default_factory=dict)


def list_tools() -> list[dict[str, Any]]:
    """Tool id, description and parameter schema for discovery endpoints."""
    return [
        {
            "id": t["function"]["name"],
            "description": t["function"]["description"],
            "input_schema": t["function"]["parameters"],
        }
        for t in AGENT_TOOLS
    ]


def execute_tool(name: str, arguments: dict[str, Any]) -> ToolOutput:
    """
    Execute a tool by name with the given arguments. Never raises for bad input;
    errors are returned as text so the model can recover.
    """
    args = arguments or {}
    logger.info("[tools] execute_tool name=%r arguments=%r", name, args)

    if name == POTTERY_SEARCH_TOOL:
        query = (args.get("query") or "").strip()
        if not query:
            return ToolOutput(text="Error: query is required.")
        result = retrieve_context(query)
        return ToolOutput(text=format_results(result.matches), data=result.to_dict())

    return ToolOutput(text=f"Unknown tool: {name}")
