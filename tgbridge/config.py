"""
Configuration from environment variables (.env file or system env).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping

from dotenv import load_dotenv

from tgbridge.errors import ConfigError
from tgbridge.pending import APPROVAL_TIMEOUT, PROMPT_TIMEOUT

TRANSPORT_MODES = ("stdio", "http")


@dataclass
class BridgeConfig:
    """Bridge configuration."""

    # Telegram
    bot_token: str
    chat_id: str

    # Transport
    transport: str = "stdio"            # "stdio" | "http"
    host: str = "0.0.0.0"
    port: int = 3000
    webhook_url: str = ""               # Public base URL, e.g. https://bridge.example.com

    # Access: Telegram user IDs allowed to talk to the bot (empty = anyone in the chat)
    allowed_users: list[str] = field(default_factory=list)

    # Chat texts
    agent_name: str = "Qoder"

    # Pending requests (seconds)
    approval_timeout: float = APPROVAL_TIMEOUT
    prompt_timeout: float = PROMPT_TIMEOUT

    # Logging
    log_level: str = "INFO"
    log_file: str = ""

    @property
    def use_webhook(self) -> bool:
        """Webhook delivery only makes sense when we run an HTTP server."""
        return self.transport == "http" and bool(self.webhook_url)

    @property
    def mode_label(self) -> str:
        return "Webhook" if self.use_webhook else "Polling"


def _require(env: Mapping[str, str], key: str) -> str:
    val = env.get(key, "").strip()
    if not val:
        raise ConfigError(f"{key} is not set. Copy .env.example to .env and fill in values.")
    return val


def _number(env: Mapping[str, str], key: str, default: float, cast: type = float) -> float:
    raw = env.get(key, "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigError(f"{key} must be a number, got {raw!r}") from None


def _timeout(env: Mapping[str, str], key: str, default: float) -> float:
    seconds = _number(env, key, default)
    if not seconds > 0:
        raise ConfigError(f"{key} must be a positive number of seconds, got {seconds:g}")
    return seconds


def load_config(env: Mapping[str, str] | None = None, *, dotenv: bool = True) -> BridgeConfig:
    """Build a BridgeConfig from ``env`` (defaults to ``os.environ``).

    Raises ConfigError when the Telegram credentials are missing or a
    value cannot be parsed.
    """
    if env is None:
        if dotenv:
            load_dotenv()
        env = os.environ

    transport = env.get("TRANSPORT_MODE", "stdio").strip().lower() or "stdio"
    if transport not in TRANSPORT_MODES:
        raise ConfigError(f"TRANSPORT_MODE must be one of {TRANSPORT_MODES}, got {transport!r}")

    return BridgeConfig(
        bot_token=_require(env, "TELEGRAM_BOT_TOKEN"),
        chat_id=_require(env, "TELEGRAM_CHAT_ID"),
        transport=transport,
        host=env.get("HOST", "0.0.0.0").strip() or "0.0.0.0",
        port=int(_number(env, "PORT", 3000, int)),
        webhook_url=env.get("WEBHOOK_URL", "").strip().rstrip("/"),
        allowed_users=[u.strip() for u in env.get("ALLOWED_USER_IDS", "").split(",") if u.strip()],
        agent_name=env.get("AGENT_NAME", "").strip() or "Qoder",
        approval_timeout=_timeout(env, "APPROVAL_TIMEOUT", APPROVAL_TIMEOUT),
        prompt_timeout=_timeout(env, "PROMPT_TIMEOUT", PROMPT_TIMEOUT),
        log_level=env.get("LOG_LEVEL", "INFO").strip().upper() or "INFO",
        log_file=env.get("LOG_FILE", "").strip(),
    )
