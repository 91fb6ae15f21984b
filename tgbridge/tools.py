"""
MCP tools exposed by the bridge.

Each tool is an async function taking the BridgeContext first; ``@tool``
turns it into a ``Tool`` whose JSON input schema comes from the type hints
and the ``name: text`` lines of its docstring. Every tool returns a
JSON-serializable dict, either a success payload or
``{"status": "error", "message": ...}``.

    request_approval      — Approve/Deny buttons, waits for a click
    send_prompt           — question, waits for a free-text reply
    notify                — one-way notification
    get_pending_messages  — messages the user typed on their own
    send_message          — one-way plain message
"""

from __future__ import annotations

import inspect
import types
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Union, get_args, get_origin, get_type_hints

from loguru import logger

from tgbridge.context import BridgeContext, now_ms
from tgbridge.errors import UnknownToolError
from tgbridge.formatters import (
    approval_keyboard,
    error_result,
    format_approval_message,
    format_notification_message,
    format_pending_messages,
    format_prompt_message,
    success_result,
)
from tgbridge.pending import Outcome, RequestKind

ToolResult = dict[str, Any]
ToolHandler = Callable[..., Awaitable[ToolResult]]


def _empty_schema() -> dict[str, Any]:
    return {"type": "object", "properties": {}, "required": []}


@dataclass
class Tool:
    """A bridge operation callable by MCP clients."""

    name: str
    description: str
    handler: ToolHandler
    input_schema: dict[str, Any] = field(default_factory=_empty_schema)

    def to_schema(self) -> dict[str, Any]:
        """MCP tool definition, as returned by ``tools/list``."""
        return {"name": self.name, "description": self.description, "inputSchema": self.input_schema}

    async def __call__(self, ctx: BridgeContext, **arguments: Any) -> ToolResult:
        return await self.handler(ctx, **arguments)


# ---------------------------------------------------------------------------
# Schema generation
# ---------------------------------------------------------------------------

_JSON_TYPES: dict[Any, str] = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
    list: "array",
    dict: "object",
}


def _json_type(hint: Any) -> dict[str, Any]:
    origin = get_origin(hint)
    if origin in (Union, types.UnionType):
        # X | None -> X
        members = [arg for arg in get_args(hint) if arg is not type(None)]
        return _json_type(members[0]) if members else {"type": "string"}
    if origin is list:
        item_args = get_args(hint)
        schema: dict[str, Any] = {"type": "array"}
        if item_args:
            schema["items"] = _json_type(item_args[0])
        return schema
    return {"type": _JSON_TYPES.get(origin or hint, "string")}


def _param_docs(doc: str) -> dict[str, str]:
    """Collect ``name: text`` docstring lines by parameter name."""
    docs: dict[str, str] = {}
    for line in doc.splitlines():
        key, sep, text = line.strip().partition(":")
        if sep and key.isidentifier() and text.strip():
            docs.setdefault(key, text.strip())
    return docs


def input_schema(fn: Callable, overrides: dict[str, dict[str, Any]] | None = None) -> dict[str, Any]:
    """JSON schema for ``fn``'s arguments, ``ctx`` excluded.

    Parameters without a default are required. ``overrides`` adds keys per
    parameter (``enum``, ...).
    """
    hints = get_type_hints(fn)
    docs = _param_docs(inspect.getdoc(fn) or "")
    schema = _empty_schema()

    for param_name, param in inspect.signature(fn).parameters.items():
        if param_name == "ctx":
            continue
        prop = _json_type(hints.get(param_name, str))
        if param_name in docs:
            prop["description"] = docs[param_name]
        prop.update((overrides or {}).get(param_name, {}))
        schema["properties"][param_name] = prop
        if param.default is inspect.Parameter.empty:
            schema["required"].append(param_name)

    return schema


def tool(
    name: str | None = None,
    description: str | None = None,
    params: dict[str, dict[str, Any]] | None = None,
) -> Callable[[ToolHandler], Tool]:
    """Wrap an async ``fn(ctx, ...)`` as a Tool.

    The description defaults to the first docstring line::

        @tool(params={"priority": {"enum": ["low", "normal", "high"]}})
        async def notify(ctx: BridgeContext, message: str, priority: str = "normal") -> ToolResult:
            \"\"\"Send a notification.

            message: The notification message to send
            \"\"\"
    """
    def decorator(fn: ToolHandler) -> Tool:
        summary = (inspect.getdoc(fn) or "").split("\n", 1)[0]
        return Tool(
            name=name or fn.__name__,
            description=description or summary,
            handler=fn,
            input_schema=input_schema(fn, params),
        )

    return decorator


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class ToolRegistry:
    """Tools by name, in registration order."""

    def __init__(self, tools: list[Tool] | None = None) -> None:
        self._by_name: dict[str, Tool] = {}
        for t in tools or []:
            self.register(t)

    def register(self, t: Tool) -> None:
        self._by_name[t.name] = t
        logger.debug(f"[tools] Registered {t.name}")

    def get(self, name: str) -> Tool | None:
        return self._by_name.get(name)

    def schemas(self) -> list[dict[str, Any]]:
        return [t.to_schema() for t in self._by_name.values()]

    async def execute(self, ctx: BridgeContext, name: str, arguments: dict[str, Any] | None) -> ToolResult:
        """Run a tool. Unknown names raise; handler failures become error results."""
        target = self.get(name)
        if target is None:
            raise UnknownToolError(name)

        logger.info(f"[tools] {name} called")
        try:
            return await target(ctx, **(arguments or {}))
        except Exception as exc:
            logger.error(f"[tools] {name} failed: {exc}")
            return error_result(str(exc))

    def __len__(self) -> int:
        return len(self._by_name)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __repr__(self) -> str:
        return f"ToolRegistry({', '.join(self._by_name)})"


# ---------------------------------------------------------------------------
# Bridge tools
# ---------------------------------------------------------------------------

@tool(description=(
    "Request approval from the user via Telegram. "
    "Sends a message with Approve/Deny buttons and waits for response."
))
async def request_approval(ctx: BridgeContext, title: str, description: str, context: str = "") -> ToolResult:
    """Request approval from the user.

    title: Short title for the approval request
    description: Detailed description of what needs approval
    context: Additional context or code snippet (optional)
    """
    request = ctx.pending.register(RequestKind.APPROVAL)
    sent = await ctx.send_text(
        format_approval_message(title, description, context or None),
        buttons=approval_keyboard(request.request_id),
    )
    if not sent.ok:
        ctx.pending.discard(request.request_id)
        return error_result(sent.error or "Failed to send approval request")
    ctx.pending.attach_message(request.request_id, sent.message_id)

    resolution = await ctx.pending.wait(request)
    if resolution.outcome is Outcome.TIMEOUT:
        return {"status": "timeout", "message": "Approval request timed out"}
    if resolution.outcome is Outcome.CANCELLED:
        return error_result("Approval request was cancelled")

    response = resolution.value or "DENIED"
    return {
        "status": response.lower(),
        "approved": response == "APPROVED",
        "message": f"Request was {response}",
    }


@tool(description="Send a prompt/question to the user via Telegram and wait for their text response.")
async def send_prompt(ctx: BridgeContext, question: str, options: list[str] | None = None) -> ToolResult:
    """Ask the user a question.

    question: The question or prompt to send to the user
    options: Optional list of suggested options
    """
    request = ctx.pending.register(RequestKind.PROMPT)
    sent = await ctx.send_text(format_prompt_message(question, options, agent_name=ctx.config.agent_name))
    if not sent.ok:
        ctx.pending.discard(request.request_id)
        return error_result(sent.error or "Failed to send prompt")
    ctx.pending.attach_message(request.request_id, sent.message_id)

    resolution = await ctx.pending.wait(request)
    if resolution.outcome is Outcome.TIMEOUT:
        return {"status": "timeout"}
    if resolution.outcome is Outcome.CANCELLED:
        return error_result("Prompt was cancelled")
    return success_result(response=resolution.value or "")


@tool(
    description="Send a notification to the user via Telegram (no response expected).",
    params={"priority": {"enum": ["low", "normal", "high"]}},
)
async def notify(ctx: BridgeContext, message: str, priority: str = "normal") -> ToolResult:
    """Send a notification.

    message: The notification message to send
    priority: Priority level
    """
    sent = await ctx.send_text(format_notification_message(message, priority, agent_name=ctx.config.agent_name))
    if not sent.ok:
        return error_result(sent.error or "Failed to send notification")
    return success_result()


@tool(description=(
    "Get any pending messages sent by the user via Telegram. "
    "Returns queued messages and clears the queue."
))
async def get_pending_messages(ctx: BridgeContext, peek: bool = False) -> ToolResult:
    """Fetch queued user messages.

    peek: If true, returns messages without clearing the queue (default: false)
    """
    messages = ctx.queue.get_all() if peek else ctx.queue.drain()
    return format_pending_messages(messages, now_ms())


@tool(description="Send a message to the user via Telegram.")
async def send_message(ctx: BridgeContext, message: str) -> ToolResult:
    """Send a plain message.

    message: The message to send to the user
    """
    sent = await ctx.send_text(message)
    if not sent.ok:
        return error_result(sent.error or "Failed to send message")
    return success_result()


def get_bridge_tools() -> list[Tool]:
    """Return all bridge tools."""
    return [request_approval, send_prompt, notify, get_pending_messages, send_message]


def default_registry() -> ToolRegistry:
    return ToolRegistry(get_bridge_tools())
