"""
Message bodies and tool result payloads.

Pure builders: no I/O, no state. Chat texts use Telegram ``Markdown``
parse mode.
"""

from __future__ import annotations

from typing import Any, Iterable

from tgbridge.message_queue import QueuedMessage

CONTEXT_LIMIT = 500     # max characters of approval context shown in chat


# ---------------------------------------------------------------------------
# Tool results
# ---------------------------------------------------------------------------

def success_result(**payload: Any) -> dict[str, Any]:
    return {"status": "success", **payload}


def error_result(message: str) -> dict[str, Any]:
    return {"status": "error", "message": message}


def format_pending_messages(messages: Iterable[QueuedMessage], now: int) -> dict[str, Any]:
    """Payload for ``get_pending_messages``.

    ``type`` is the command name for command messages and ``"message"``
    otherwise; ``age_seconds`` is whole seconds elapsed at ``now`` (epoch ms).
    """
    items = [
        {
            "id": m.id,
            "text": m.text,
            "timestamp": m.timestamp,
            "type": (m.command or "command") if m.is_command else "message",
            "age_seconds": (now - m.timestamp) // 1000,
        }
        for m in messages
    ]
    return success_result(count=len(items), messages=items)


# ---------------------------------------------------------------------------
# Chat texts
# ---------------------------------------------------------------------------

def format_notification_message(
    message: str,
    priority: str | None = None,
    agent_name: str = "Qoder",
) -> str:
    marker = "! " if priority == "high" else ""
    return f"{marker}**Notification from {agent_name}**\n\n{message}"


def format_approval_message(title: str, description: str, context: str | None = None) -> str:
    text = f"**Approval Request**\n\n**{title}**\n\n{description}"
    if context:
        text += f"\n\n```\n{context[:CONTEXT_LIMIT]}\n```"
    return text


def format_prompt_message(
    question: str,
    options: list[str] | None = None,
    agent_name: str = "Qoder",
) -> str:
    text = f"**Question from {agent_name}**\n\n{question}"
    if options:
        numbered = "\n".join(f"{i}. {option}" for i, option in enumerate(options, start=1))
        text += f"\n\n*Suggested options:*\n{numbered}"
    text += "\n\n_Reply to this message with your answer._"
    return text


def format_approval_outcome(original_text: str, response: str) -> str:
    """Text of the approval message after a button click."""
    return f"{original_text}\n\n**Response: {response}**"


def format_status_message(queue_size: int, active_connections: int, mode: str) -> str:
    return (
        "**Queue Status**\n\n"
        f"Pending messages: {queue_size}\n"
        f"Active MCP connections: {active_connections}\n"
        f"Mode: {mode}"
    )


def format_online_message(mode: str) -> str:
    return f"MCP Server online!\nMode: {mode}"


def approval_keyboard(request_id: str) -> list[list[tuple[str, str]]]:
    """Inline button layout as rows of (label, callback data)."""
    return [[("Approve", f"approve:{request_id}"), ("Deny", f"deny:{request_id}")]]
