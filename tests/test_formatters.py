"""Tests for result payloads and chat texts."""

from __future__ import annotations

import json

from tgbridge.formatters import (
    CONTEXT_LIMIT,
    approval_keyboard,
    error_result,
    format_approval_message,
    format_approval_outcome,
    format_notification_message,
    format_pending_messages,
    format_prompt_message,
    format_status_message,
    success_result,
)
from tgbridge.message_queue import QueuedMessage

NOW = 1_700_000_000_000


class TestResults:
    def test_success_result(self):
        result = success_result(count=5)
        assert result == {"status": "success", "count": 5}
        assert json.loads(json.dumps(result)) == result

    def test_error_result(self):
        assert error_result("Something went wrong") == {"status": "error", "message": "Something went wrong"}


class TestFormatPendingMessages:
    def test_empty(self):
        assert format_pending_messages([], NOW) == {"status": "success", "count": 0, "messages": []}

    def test_plain_message_age(self):
        result = format_pending_messages(
            [QueuedMessage(id="msg_1", text="hi", timestamp=NOW - 60_000)], NOW
        )
        assert result["count"] == 1
        item = result["messages"][0]
        assert item["age_seconds"] == 60
        assert item["type"] == "message"
        assert item == {
            "id": "msg_1",
            "text": "hi",
            "timestamp": NOW - 60_000,
            "type": "message",
            "age_seconds": 60,
        }

    def test_command_type(self):
        result = format_pending_messages(
            [QueuedMessage(id="msg_2", text="x", timestamp=NOW, is_command=True, command="quest")], NOW
        )
        assert result["messages"][0]["type"] == "quest"
        assert result["messages"][0]["age_seconds"] == 0

    def test_command_without_name(self):
        result = format_pending_messages(
            [QueuedMessage(id="msg_3", text="x", timestamp=NOW, is_command=True)], NOW
        )
        assert result["messages"][0]["type"] == "command"

    def test_age_is_floored(self):
        messages = [
            QueuedMessage(id="a", text="", timestamp=NOW - 120_000),
            QueuedMessage(id="b", text="", timestamp=NOW - 1_999),
        ]
        ages = [m["age_seconds"] for m in format_pending_messages(messages, NOW)["messages"]]
        assert ages == [120, 1]


class TestChatTexts:
    def test_notification(self):
        text = format_notification_message("Task completed")
        assert "**Notification from Qoder**" in text
        assert "Task completed" in text
        assert not text.startswith("!")

    def test_high_priority_marker(self):
        assert format_notification_message("Urgent", "high").startswith("!")

    def test_low_priority_has_no_marker(self):
        assert format_notification_message("FYI", "low").startswith("**Notification")

    def test_approval_without_context(self):
        text = format_approval_message("Deploy", "Ready to deploy?")
        assert text == "**Approval Request**\n\n**Deploy**\n\nReady to deploy?"

    def test_approval_with_context(self):
        text = format_approval_message("Deploy", "Ready?", "const x = 1;")
        assert "```\nconst x = 1;\n```" in text

    def test_approval_context_truncated_to_limit(self):
        context = "x" * 1000
        text = format_approval_message("T", "D", context)
        fenced = text.split("```\n")[1].split("\n```")[0]
        assert len(fenced) == CONTEXT_LIMIT == 500

    def test_prompt_with_options(self):
        text = format_prompt_message("Pick one", ["Option A", "Option B", "Option C"])
        assert "**Question from Qoder**" in text
        assert "*Suggested options:*" in text
        assert "1. Option A\n2. Option B\n3. Option C" in text
        assert "Reply to this message" in text

    def test_prompt_empty_options(self):
        assert "Suggested options" not in format_prompt_message("Name?", [])

    def test_approval_outcome(self):
        assert format_approval_outcome("Approval Request", "APPROVED") == (
            "Approval Request\n\n**Response: APPROVED**"
        )

    def test_status(self):
        text = format_status_message(queue_size=3, active_connections=1, mode="Webhook")
        assert "Pending messages: 3" in text
        assert "Active MCP connections: 1" in text
        assert "Mode: Webhook" in text


def test_approval_keyboard_encodes_request_id():
    assert approval_keyboard("req_1_abc") == [
        [("Approve", "approve:req_1_abc"), ("Deny", "deny:req_1_abc")]
    ]
