"""tgbridge — Telegram approval and messaging bridge for MCP agents."""

__version__ = "0.1.0"

from tgbridge.commands import CommandType, ParsedCommand, CommandResult, parse_command, get_command_type, handle_command
from tgbridge.message_queue import MessageQueue, QueuedMessage
from tgbridge.pending import PendingRequest, PendingRequestTable, RequestKind, Resolution, Outcome, generate_request_id
from tgbridge.config import BridgeConfig, load_config
from tgbridge.context import BridgeContext
from tgbridge.gateway import Gateway, log_messages
from tgbridge.tools import Tool, ToolRegistry, tool, default_registry
from tgbridge.channels.base import Channel, IncomingMessage, IncomingCallback, OutgoingMessage, SendResult
from tgbridge.errors import BridgeError, ConfigError, UnknownToolError

__all__ = [
    # Commands
    "CommandType", "ParsedCommand", "CommandResult",
    "parse_command", "get_command_type", "handle_command",
    # Queue
    "MessageQueue", "QueuedMessage",
    # Pending requests
    "PendingRequest", "PendingRequestTable", "RequestKind", "Resolution", "Outcome",
    "generate_request_id",
    # Wiring
    "BridgeConfig", "load_config", "BridgeContext", "Gateway",
    # Tools
    "Tool", "ToolRegistry", "tool", "default_registry",
    # Channels
    "Channel", "IncomingMessage", "IncomingCallback", "OutgoingMessage", "SendResult",
    # Middleware
    "log_messages",
    # Errors
    "BridgeError", "ConfigError", "UnknownToolError",
]
