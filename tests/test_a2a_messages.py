"""
Unit tests for A2A message helpers and webhook delivery.
"""

import json
from unittest.mock import MagicMock, patch

import httpx
import pytest

from pottery_agent.services.a2a_messages import (
    build_history,
    message_text,
    sse_event,
    to_chat_message,
)
from pottery_agent.services.push_notifications import send_push_notification


class TestMessageText:
    """Tests for message_text()."""

    def test_joins_text_parts_without_html(self) -> None:
        msg = {"parts": [{"kind": "text", "text": "<p>How do I</p>"}, {"kind": "text", "text": "trim a foot?"}]}
        assert message_text(msg) == "How do I\ntrim a foot?"

    def test_object_data_part_is_serialized(self) -> None:
        msg = {"parts": [{"kind": "text", "text": "Glaze recipe:"}, {"kind": "data", "data": {"cone": 6}}]}
        assert message_text(msg) == 'Glaze recipe:\n{"cone": 6}'

    def test_history_data_part_wins(self) -> None:
        msg = {"parts": [
            {"kind": "text", "text": "preview"},
            {"kind": "data", "data": [{"kind": "text", "text": "old"}, {"kind": "text", "text": "<i>newest</i>"}]},
        ]}
        assert message_text(msg) == "newest"

    def test_missing_parts(self) -> None:
        assert message_text({}) == ""
        assert message_text({"parts": "nope"}) == ""

    def test_text_is_cleaned(self) -> None:
        msg = {"parts": [
            {"kind": "text", "text": "<p>Why did my glaze crawl?</p>"},
            {"kind": "text", "text": "Why did my glaze crawl?"},
            {"kind": "text", "text": "ｃｏｎｅ 6"},
        ]}
        assert message_text(msg) == "Why did my glaze crawl?\ncone 6"


class TestToChatMessage:
    """Tests for to_chat_message()."""

    def test_roles(self) -> None:
        assert to_chat_message({"role": "agent", "parts": [{"kind": "text", "text": "hi"}]})["role"] == "assistant"
        assert to_chat_message({"parts": [{"kind": "text", "text": "hi"}]})["role"] == "user"
        assert to_chat_message({"role": "system", "parts": []})["role"] == "system"

    def test_image_uri_becomes_image_url_part(self) -> None:
        msg = {"role": "user", "parts": [
            {"kind": "text", "text": "What went wrong?"},
            {"kind": "file", "file": {"mimeType": "image/png", "uri": "https://example.com/bowl.png"}},
        ]}
        assert to_chat_message(msg) == {"role": "user", "content": [
            {"type": "text", "text": "What went wrong?"},
            {"type": "image_url", "image_url": {"url": "https://example.com/bowl.png"}},
        ]}

    def test_inline_image_bytes_become_data_url(self) -> None:
        msg = {"parts": [{"kind": "file", "file": {"mimeType": "image/jpeg", "bytes": "QUJD"}}]}
        content = to_chat_message(msg)["content"]
        assert content == [{"type": "image_url", "image_url": {"url": "data:image/jpeg;base64,QUJD"}}]

    def test_non_image_file_ignored(self) -> None:
        msg = {"parts": [{"kind": "text", "text": "notes"}, {"kind": "file", "file": {"mimeType": "application/pdf", "uri": "x"}}]}
        assert to_chat_message(msg) == {"role": "user", "content": "notes"}


def test_build_history_stamps_task_id_and_appends_reply() -> None:
    history = build_history([{"role": "user", "parts": [{"kind": "text", "text": "q"}], "messageId": "m1"}], "answer", "task-1")
    assert [m["role"] for m in history] == ["user", "agent"]
    assert history[0]["messageId"] == "m1"
    assert all(m["taskId"] == "task-1" for m in history)
    assert history[1]["parts"] == [{"kind": "text", "text": "answer"}]


def test_sse_event_framing() -> None:
    frame = sse_event({"jsonrpc": "2.0", "id": 1})
    assert frame.startswith("data: ") and frame.endswith("\n\n")
    assert json.loads(frame[len("data: "):]) == {"jsonrpc": "2.0", "id": 1}


class TestPushNotification:
    """Tests for send_push_notification()."""

    def _client(self, status_code: int) -> MagicMock:
        client = MagicMock()
        client.__enter__.return_value = client
        request = httpx.Request("POST", "https://hooks.example.com/a2a")
        client.post.return_value = httpx.Response(status_code, request=request)
        return client

    def test_posts_payload_with_bearer_token(self) -> None:
        client = self._client(200)
        with patch("pottery_agent.services.push_notifications.httpx.Client", return_value=client):
            status = send_push_notification("https://hooks.example.com/a2a", "secret", {"id": 1})
        assert status == 200
        kwargs = client.post.call_args.kwargs
        assert kwargs["json"] == {"id": 1}
        assert kwargs["headers"]["Authorization"] == "Bearer secret"

    def test_no_token_no_auth_header(self) -> None:
        client = self._client(202)
        with patch("pottery_agent.services.push_notifications.httpx.Client", return_value=client):
            send_push_notification("https://hooks.example.com/a2a", None, {})
        assert "Authorization" not in client.post.call_args.kwargs["headers"]

    def test_error_status_raises(self) -> None:
        client = self._client(500)
        with patch("pottery_agent.services.push_notifications.httpx.Client", return_value=client):
            with pytest.raises(httpx.HTTPStatusError):
                send_push_notification("https://hooks.example.com/a2a", None, {})
