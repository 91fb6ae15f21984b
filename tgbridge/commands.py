"""
Chat command parsing and routing.

Both steps are pure: nothing here touches the queue or the chat. The
gateway pushes ``CommandResult.queued_message`` when ``should_queue`` is
set and sends ``response_text`` back to the user.

Recognized commands:
    /quest <task>, /q <task>       — queue a new quest for the agent
    /chat <message>, /c <message>  — queue a message for the agent
    /help                          — usage text
    /status                        — queue/connection status (HTTP mode only)

Command tokens are case-insensitive and may carry a ``@BotName`` suffix.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from tgbridge.message_queue import QueuedMessage

COMMAND_MARKER = "/"
DEFAULT_QUEST_TEXT = "New Quest requested"


class CommandType(str, Enum):
    QUEST = "quest"
    CHAT = "chat"
    HELP = "help"
    STATUS = "status"
    UNKNOWN = "unknown"


_ALIASES: dict[str, CommandType] = {
    "/quest": CommandType.QUEST,
    "/q": CommandType.QUEST,
    "/chat": CommandType.CHAT,
    "/c": CommandType.CHAT,
    "/help": CommandType.HELP,
}


@dataclass(frozen=True)
class ParsedCommand:
    is_command: bool
    command: str | None
    content: str


@dataclass
class CommandResult:
    type: CommandType
    should_queue: bool
    queued_message: QueuedMessage | None = None
    response_text: str | None = None


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def parse_command(text: str) -> ParsedCommand:
    """Split raw chat text into command and content.

    Non-command text comes back trimmed as ``content``. For commands the
    first token is lower-cased and stripped of any ``@handle`` suffix
    (``/help@MyBot`` -> ``/help``); the remaining tokens are re-joined with
    single spaces.
    """
    trimmed = text.strip()
    if not trimmed.startswith(COMMAND_MARKER):
        return ParsedCommand(is_command=False, command=None, content=trimmed)

    parts = trimmed.split()
    command = parts[0].lower().split("@")[0]
    return ParsedCommand(is_command=True, command=command, content=" ".join(parts[1:]))


# ---------------------------------------------------------------------------
# Routing
# ---------------------------------------------------------------------------

def get_command_type(command: str, *, allow_status: bool = False) -> CommandType:
    if allow_status and command == "/status":
        return CommandType.STATUS
    return _ALIASES.get(command, CommandType.UNKNOWN)


def help_text(*, allow_status: bool = False, agent_name: str = "Qoder") -> str:
    lines = [
        "**Available Commands**",
        "",
        "/quest <task> or /q <task> - Create a new Quest",
        f"/chat <message> or /c <message> - Send message to {agent_name}",
    ]
    if allow_status:
        lines.append("/status - Check queue status")
    lines += [
        "/help - Show this help",
        "",
        f"You can also just type a message and it will be queued for {agent_name}.",
    ]
    return "\n".join(lines)


def handle_command(
    command: str,
    content: str,
    timestamp: int,
    *,
    allow_status: bool = False,
    agent_name: str = "Qoder",
) -> CommandResult:
    """Map a parsed command to the action the gateway should take."""
    command_type = get_command_type(command, allow_status=allow_status)

    if command_type is CommandType.QUEST:
        return CommandResult(
            type=command_type,
            should_queue=True,
            queued_message=QueuedMessage(
                id=f"msg_{timestamp}",
                text=content or DEFAULT_QUEST_TEXT,
                timestamp=timestamp,
                is_command=True,
                command=CommandType.QUEST.value,
            ),
            response_text=f"Quest request queued. {agent_name} will pick it up when ready.",
        )

    if command_type is CommandType.CHAT:
        return CommandResult(
            type=command_type,
            should_queue=True,
            queued_message=QueuedMessage(
                id=f"msg_{timestamp}",
                text=content or "",
                timestamp=timestamp,
                is_command=True,
                command=CommandType.CHAT.value,
            ),
            response_text=f"Message queued for {agent_name}.",
        )

    if command_type is CommandType.HELP:
        return CommandResult(
            type=command_type,
            should_queue=False,
            response_text=help_text(allow_status=allow_status, agent_name=agent_name),
        )

    # STATUS needs live state; the gateway renders it.
    return CommandResult(type=command_type, should_queue=False)


def create_queued_message(text: str, timestamp: int) -> QueuedMessage:
    """Wrap free (non-command) text for the queue."""
    return QueuedMessage(id=f"msg_{timestamp}", text=text, timestamp=timestamp)
