"""
Shared fixtures: a TestClient over the app and a scripted agent in place of the real one.
"""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from pottery_agent.agent.expert import AgentResponse
from pottery_agent.agent.registry import AGENTS
from pottery_agent.core.task_store import task_store
from pottery_agent.main import app

AGENT_ID = "potteryAgent"


class FakeAgent:
    """Stands in for PotteryAgent; replays a fixed answer and records every call."""

    name = "Pottery Expert"
    description = "Scripted pottery agent"

    def __init__(self, text="Stoneware fires to cone 5-10.", deltas=None, tool_results=None, error=None, on_delta=None, on_generate=None):
        self.text = text
        self.deltas = deltas if deltas is not None else ["Stoneware fires", " to cone 5-10."]
        self.tool_results = tool_results or []
        self.error = error
        self.on_delta = on_delta
        self.on_generate = on_generate
        self.calls: list[dict] = []

    def generate(self, messages, thread_id=None, resource_id=None):
        self.calls.append({"messages": messages, "thread_id": thread_id, "resource_id": resource_id})
        if self.on_generate:
            self.on_generate()
        if self.error:
            raise self.error
        return AgentResponse(text=self.text, tool_results=self.tool_results, processing_time=0.05)

    def stream(self, messages, thread_id=None, resource_id=None):
        self.calls.append({"messages": messages, "thread_id": thread_id, "resource_id": resource_id})
        if self.tool_results:
            yield {"event": "tool", "name": "potterySearchTool"}
        for i, delta in enumerate(self.deltas):
            if self.error and i == 1:
                raise self.error
            yield {"event": "text_delta", "content": delta}
            if self.on_delta:
                self.on_delta(i)
        yield {"event": "done", "text": "".join(self.deltas), "tool_results": self.tool_results}


@pytest.fixture(autouse=True)
def clear_tasks():
    task_store.clear()
    yield
    task_store.clear()


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def fake_agent():
    agent = FakeAgent()
    with patch.dict(AGENTS, {AGENT_ID: agent}):
        yield agent


@pytest.fixture
def install_agent():
    """Install a FakeAgent built with custom arguments for the duration of the test."""
    patches = []

    def _install(**kwargs) -> FakeAgent:
        agent = FakeAgent(**kwargs)
        p = patch.dict(AGENTS, {AGENT_ID: agent})
        p.start()
        patches.append(p)
        return agent

    yield _install
    for p in reversed(patches):
        p.stop()
