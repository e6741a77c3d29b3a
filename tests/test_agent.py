"""
Tests for the Pottery Expert agent loop: prompt building, tool calls, memory, streaming.
The LLM and the retrieval tool are mocked.
"""

from unittest.mock import patch

import pytest

from pottery_agent.agent.expert import INCOMPLETE_ANSWER, PotteryAgent, content_text
from pottery_agent.agent.tools import POTTERY_SEARCH_TOOL, ToolOutput
from pottery_agent.core.config import MAX_AGENTIC_ROUNDS
from pottery_agent.core.memory import ThreadMemory

MODULE = "pottery_agent.agent.expert"

SEARCH_CALL = {"id": "call_1", "name": POTTERY_SEARCH_TOOL, "arguments": {"query": "stoneware"}}
SEARCH_OUTPUT = ToolOutput(
    text="[Result 1] (88.0%) Clay Types:\nStoneware fires to cone 5-10.",
    data={"query": "stoneware", "source": "pinecone", "matches": [{"id": "a", "score": 0.88}]},
)


@pytest.fixture
def mem(tmp_path) -> ThreadMemory:
    return ThreadMemory(tmp_path / "memory.db")


@pytest.fixture
def agent(mem: ThreadMemory) -> PotteryAgent:
    return PotteryAgent("potteryAgent", "Pottery Expert", "You are a pottery expert.", memory=mem)


def test_content_text() -> None:
    assert content_text("hi") == "hi"
    assert content_text([
        {"type": "text", "text": "What is this?"},
        {"type": "image_url", "image_url": {"url": "https://example.com/pot.png"}},
    ]) == "What is this?"
    assert content_text(None) == ""


def test_direct_answer_without_tools(agent: PotteryAgent) -> None:
    with patch(f"{MODULE}.chat_with_tools", return_value=("Porcelain is fine and white.", None)) as chat:
        response = agent.generate([{"role": "user", "content": "What is porcelain?"}])
    assert response.text == "Porcelain is fine and white."
    assert response.tool_results == []
    prompt = chat.call_args.args[0]
    assert prompt[0] == {"role": "system", "content": "You are a pottery expert."}
    assert prompt[-1] == {"role": "user", "content": "What is porcelain?"}


def test_tool_call_then_answer(agent: PotteryAgent) -> None:
    replies = [(None, [SEARCH_CALL]), ("Stoneware fires to cone 5-10.", None)]
    with patch(f"{MODULE}.chat_with_tools", side_effect=replies) as chat, \
         patch(f"{MODULE}.execute_tool", return_value=SEARCH_OUTPUT) as tool:
        response = agent.generate([{"role": "user", "content": "Tell me about stoneware"}])
    tool.assert_called_once_with(POTTERY_SEARCH_TOOL, {"query": "stoneware"})
    assert chat.call_count == 2
    assert response.text == "Stoneware fires to cone 5-10."
    assert response.tool_results == [{
        "toolCallId": "call_1",
        "toolName": POTTERY_SEARCH_TOOL,
        "args": {"query": "stoneware"},
        "result": SEARCH_OUTPUT.data,
    }]
    prompt = chat.call_args.args[0]
    assert prompt[-2]["role"] == "assistant"
    assert prompt[-2]["tool_calls"][0]["function"]["name"] == POTTERY_SEARCH_TOOL
    assert prompt[-1] == {"role": "tool", "tool_call_id": "call_1", "content": SEARCH_OUTPUT.text}


def test_tool_result_falls_back_to_text_without_data(agent: PotteryAgent) -> None:
    replies = [(None, [SEARCH_CALL]), ("ok", None)]
    with patch(f"{MODULE}.chat_with_tools", side_effect=replies), \
         patch(f"{MODULE}.execute_tool", return_value=ToolOutput(text="Error: query is required.")):
        response = agent.generate([{"role": "user", "content": "?"}])
    assert response.tool_results[0]["result"] == "Error: query is required."


def test_rounds_exhausted_returns_incomplete_answer(agent: PotteryAgent) -> None:
    with patch(f"{MODULE}.chat_with_tools", return_value=(None, [SEARCH_CALL])), \
         patch(f"{MODULE}.execute_tool", return_value=SEARCH_OUTPUT):
        response = agent.generate([{"role": "user", "content": "loop"}])
    assert response.text == INCOMPLETE_ANSWER
    assert len(response.tool_results) == MAX_AGENTIC_ROUNDS


def test_memory_recall_and_storage(agent: PotteryAgent, mem: ThreadMemory) -> None:
    mem.append_message("thread-1", "user-1", "user", "I work with stoneware.")
    mem.append_message("thread-1", "user-1", "assistant", "Great choice.")
    messages = [
        {"role": "system", "content": "Knowledge base context."},
        {"role": "user", "content": "What cone should I fire to?"},
    ]
    with patch(f"{MODULE}.chat_with_tools", return_value=("Cone 6 works well.", None)) as chat:
        agent.generate(messages, thread_id="thread-1", resource_id="user-1")
    prompt = chat.call_args.args[0]
    assert [m["role"] for m in prompt] == ["system", "system", "user", "assistant", "user"]
    assert prompt[1]["content"] == "Knowledge base context."
    assert prompt[2]["content"] == "I work with stoneware."
    history = mem.get_history("thread-1")
    assert [h["content"] for h in history[-2:]] == ["What cone should I fire to?", "Cone 6 works well."]
    assert all(h["content"] != "Knowledge base context." for h in history)
    assert mem.list_threads("user-1")[0]["messageCount"] == 4


def test_no_thread_id_leaves_memory_untouched(agent: PotteryAgent, mem: ThreadMemory) -> None:
    with patch(f"{MODULE}.chat_with_tools", return_value=("Hi!", None)):
        agent.generate([{"role": "user", "content": "Hello"}])
    assert mem.list_threads("telex-user") == []


def test_image_content_stored_as_text(agent: PotteryAgent, mem: ThreadMemory) -> None:
    content = [
        {"type": "text", "text": "Why did this crack?"},
        {"type": "image_url", "image_url": {"url": "https://example.com/bowl.jpg"}},
    ]
    with patch(f"{MODULE}.chat_with_tools", return_value=("Uneven drying.", None)) as chat:
        agent.generate([{"role": "user", "content": content}], thread_id="t-img")
    assert chat.call_args.args[0][-1]["content"] == content
    assert mem.get_history("t-img")[0] == {"role": "user", "content": "Why did this crack?"}
    assert mem.list_threads("telex-user")[0]["threadId"] == "t-img"


def test_stream_yields_tool_and_text_events(agent: PotteryAgent, mem: ThreadMemory) -> None:
    rounds = [
        iter([("tool_calls", [SEARCH_CALL], "")]),
        iter([("content_delta", "Stoneware"), ("content_delta", " is durable."), ("content_done",)]),
    ]
    with patch(f"{MODULE}.chat_with_tools_stream", side_effect=rounds), \
         patch(f"{MODULE}.execute_tool", return_value=SEARCH_OUTPUT):
        events = list(agent.stream([{"role": "user", "content": "stoneware?"}], thread_id="t-stream"))
    assert events[0] == {"event": "tool", "name": POTTERY_SEARCH_TOOL}
    assert [e["content"] for e in events if e["event"] == "text_delta"] == ["Stoneware", " is durable."]
    done = events[-1]
    assert done["event"] == "done"
    assert done["text"] == "Stoneware is durable."
    assert done["tool_results"][0]["toolName"] == POTTERY_SEARCH_TOOL
    assert mem.get_history("t-stream")[-1]["content"] == "Stoneware is durable."


def test_stream_propagates_llm_errors(agent: PotteryAgent) -> None:
    with patch(f"{MODULE}.chat_with_tools_stream", side_effect=RuntimeError("rate limited")):
        with pytest.raises(RuntimeError):
            list(agent.stream([{"role": "user", "content": "hi"}]))


def test_stream_text_before_tool_call_is_part_of_final_text(agent: PotteryAgent) -> None:
    rounds = [
        iter([("content_delta", "Let me check. "), ("tool_calls", [SEARCH_CALL], "Let me check. ")]),
        iter([("content_delta", "Cone 6 is typical."), ("content_done",)]),
    ]
    with patch(f"{MODULE}.chat_with_tools_stream", side_effect=rounds), \
         patch(f"{MODULE}.execute_tool", return_value=SEARCH_OUTPUT):
        events = list(agent.stream([{"role": "user", "content": "What cone?"}]))
    deltas = "".join(e["content"] for e in events if e["event"] == "text_delta")
    assert deltas == "Let me check. Cone 6 is typical."
    assert events[-1]["text"] == deltas


def test_stream_rounds_exhausted_streams_incomplete_answer(agent: PotteryAgent) -> None:
    with patch(f"{MODULE}.chat_with_tools_stream", side_effect=lambda *a, **k: iter([("tool_calls", [SEARCH_CALL], "")])), \
         patch(f"{MODULE}.execute_tool", return_value=SEARCH_OUTPUT):
        events = list(agent.stream([{"role": "user", "content": "loop"}]))
    deltas = [e["content"] for e in events if e["event"] == "text_delta"]
    assert deltas == [INCOMPLETE_ANSWER]
    assert events[-1]["text"] == INCOMPLETE_ANSWER
    assert len(events[-1]["tool_results"]) == MAX_AGENTIC_ROUNDS


def test_resent_conversation_is_not_stored_twice(agent: PotteryAgent, mem: ThreadMemory) -> None:
    first = [{"role": "user", "content": "I throw porcelain."}]
    with patch(f"{MODULE}.chat_with_tools", return_value=("Nice.", None)):
        agent.generate(first, thread_id="t-full", resource_id="user-1")
    second = first + [
        {"role": "assistant", "content": "Nice."},
        {"role": "user", "content": "Why does it warp?"},
    ]
    with patch(f"{MODULE}.chat_with_tools", return_value=("Uneven walls.", None)):
        agent.generate(second, thread_id="t-full", resource_id="user-1")
    assert [m["content"] for m in mem.get_messages("t-full")] == [
        "I throw porcelain.", "Nice.", "Why does it warp?", "Uneven walls.",
    ]
