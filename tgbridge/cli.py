"""
tgbridge CLI entry point.

Usage:
    tgbridge                       # stdio MCP server (TRANSPORT_MODE from env)
    tgbridge --transport http      # HTTP/SSE server on $PORT
    tgbridge --help

Reads config from environment variables (.env file or system env).
Logs go to stderr; stdout belongs to the stdio MCP transport.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from dataclasses import replace
from pathlib import Path

from loguru import logger

from tgbridge import __version__
from tgbridge.config import TRANSPORT_MODES, BridgeConfig, load_config
from tgbridge.errors import ConfigError


def setup_logging(level: str = "INFO", log_file: str = "") -> None:
    """Configure loguru sinks."""
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
        level=level,
    )
    if log_file:
        logger.add(
            Path(log_file).expanduser(),
            rotation="10 MB",
            retention="7 days",
            level="DEBUG",
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tgbridge",
        description="tgbridge - Telegram approval and messaging bridge for MCP agents",
    )
    parser.add_argument(
        "--transport",
        choices=TRANSPORT_MODES,
        default=None,
        help="MCP transport (default: $TRANSPORT_MODE or stdio)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="HTTP port (default: $PORT or 3000)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: $LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"tgbridge {__version__}",
    )
    return parser


def apply_overrides(config: BridgeConfig, args: argparse.Namespace) -> BridgeConfig:
    """Command-line flags win over the environment."""
    overrides: dict[str, object] = {}
    if args.transport:
        overrides["transport"] = args.transport
    if args.port:
        overrides["port"] = args.port
    if args.log_level:
        overrides["log_level"] = args.log_level.upper()
    return replace(config, **overrides)


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    try:
        config = apply_overrides(load_config(), args)
    except ConfigError as exc:
        setup_logging(args.log_level.upper() if args.log_level else "INFO")
        logger.error(f"Error: {exc}")
        sys.exit(1)

    setup_logging(config.log_level, config.log_file)

    try:
        asyncio.run(run(config))
    except KeyboardInterrupt:
        logger.info("Shutting down...")


async def run(config: BridgeConfig) -> None:
    from tgbridge.channels.telegram import TelegramChannel
    from tgbridge.context import BridgeContext
    from tgbridge.formatters import format_online_message
    from tgbridge.gateway import Gateway, log_messages
    from tgbridge.tools import default_registry

    logger.info("Starting tgbridge...")
    logger.info(f"Mode: {config.transport}, Webhook: {'Yes' if config.use_webhook else 'No'}")

    channel = TelegramChannel(
        config.bot_token,
        webhook_url=config.webhook_url if config.use_webhook else "",
    )
    ctx = BridgeContext(config=config, channel=channel)

    Gateway(ctx).use(log_messages())
    if config.allowed_users:
        logger.info(f"Allowed users: {', '.join(config.allowed_users)}")

    registry = default_registry()

    await channel.start()
    try:
        online = await ctx.send_text(format_online_message(config.mode_label), parse_mode=None)
        if not online.ok:
            logger.warning(f"Startup message failed: {online.error}")

        if config.transport == "http":
            from tgbridge.web import serve_http
            await serve_http(ctx, registry)
        else:
            from tgbridge.server import serve_stdio
            await serve_stdio(ctx, registry)
    finally:
        await channel.stop()
        logger.info("tgbridge stopped")


if __name__ == "__main__":
    main()
