"""
Tests for the OpenAI chat wrappers. The OpenAI client is replaced with canned responses.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from pottery_agent.agent.llm import _parse_arguments, chat_with_tools, chat_with_tools_stream

CLIENT = "pottery_agent.agent.llm.get_openai_client"


def _client(create_result) -> MagicMock:
    client = MagicMock()
    client.chat.completions.create.return_value = create_result
    return client


def _tool_call(call_id, name, arguments):
    return SimpleNamespace(id=call_id, function=SimpleNamespace(name=name, arguments=arguments))


def _completion(content=None, tool_calls=None):
    message = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _chunk(content=None, tool_calls=None):
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=content, tool_calls=tool_calls))])


def _fragment(index, call_id=None, name=None, arguments=None):
    return SimpleNamespace(index=index, id=call_id, function=SimpleNamespace(name=name, arguments=arguments))


class TestParseArguments:
    """Tests for _parse_arguments()."""

    def test_json_object(self) -> None:
        assert _parse_arguments('{"query": "bisque"}') == {"query": "bisque"}

    def test_bad_json_is_empty(self) -> None:
        assert _parse_arguments('{"query": ') == {}

    def test_non_object_json_is_empty(self) -> None:
        assert _parse_arguments('["bisque"]') == {}

    def test_empty_and_dict(self) -> None:
        assert _parse_arguments(None) == {}
        assert _parse_arguments("") == {}
        assert _parse_arguments({"query": "kiln"}) == {"query": "kiln"}


class TestChatWithTools:
    """Tests for chat_with_tools()."""

    def test_final_answer(self) -> None:
        with patch(CLIENT, return_value=_client(_completion(content="  Cone 6.  "))):
            content, tool_calls = chat_with_tools([{"role": "user", "content": "?"}], tools=[])
        assert content == "Cone 6."
        assert tool_calls is None

    def test_tool_calls_with_bad_arguments(self) -> None:
        calls = [
            _tool_call("call_1", "potterySearchTool", '{"query": "glaze"}'),
            _tool_call("call_2", "potterySearchTool", "{not json"),
        ]
        client = _client(_completion(tool_calls=calls))
        with patch(CLIENT, return_value=client):
            content, tool_calls = chat_with_tools([{"role": "user", "content": "?"}], tools=[], max_tokens=200)
        assert content is None
        assert tool_calls == [
            {"id": "call_1", "name": "potterySearchTool", "arguments": {"query": "glaze"}},
            {"id": "call_2", "name": "potterySearchTool", "arguments": {}},
        ]
        assert client.chat.completions.create.call_args.kwargs["max_tokens"] == 200

    def test_no_choices(self) -> None:
        with patch(CLIENT, return_value=_client(SimpleNamespace(choices=[]))):
            assert chat_with_tools([], tools=[]) == (None, None)


class TestChatWithToolsStream:
    """Tests for chat_with_tools_stream()."""

    def test_content_deltas_then_done(self) -> None:
        chunks = [_chunk(content="Bisque "), SimpleNamespace(choices=[]), _chunk(content="first.")]
        client = _client(iter(chunks))
        with patch(CLIENT, return_value=client):
            items = list(chat_with_tools_stream([], tools=[]))
        assert items == [("content_delta", "Bisque "), ("content_delta", "first."), ("content_done",)]
        assert client.chat.completions.create.call_args.kwargs["stream"] is True

    def test_tool_call_fragments_accumulate_by_index(self) -> None:
        chunks = [
            _chunk(content="Searching. "),
            _chunk(tool_calls=[_fragment(0, call_id="call_a", name="potterySearchTool", arguments='{"que')]),
            _chunk(tool_calls=[_fragment(1, call_id="call_b", name="potterySearchTool", arguments='{"query"')]),
            _chunk(tool_calls=[_fragment(0, arguments='ry": "kiln"}')]),
            _chunk(tool_calls=[_fragment(1, arguments=': "slip"}')]),
        ]
        with patch(CLIENT, return_value=_client(iter(chunks))):
            items = list(chat_with_tools_stream([], tools=[]))
        assert items[0] == ("content_delta", "Searching. ")
        kind, calls, content = items[-1]
        assert kind == "tool_calls"
        assert content == "Searching. "
        assert calls == [
            {"id": "call_a", "name": "potterySearchTool", "arguments": {"query": "kiln"}},
            {"id": "call_b", "name": "potterySearchTool", "arguments": {"query": "slip"}},
        ]

    def test_truncated_tool_arguments_become_empty(self) -> None:
        chunks = [_chunk(tool_calls=[_fragment(0, call_id="call_a", name="potterySearchTool", arguments='{"query": "ki')])]
        with patch(CLIENT, return_value=_client(iter(chunks))):
            items = list(chat_with_tools_stream([], tools=[]))
        assert items == [("tool_calls", [{"id": "call_a", "name": "potterySearchTool", "arguments": {}}], "")]
