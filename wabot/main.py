"""WhatsApp bot entry point.

Starts the HTTP status surface, brings up the WhatsApp Web session under the
connection supervisor, and runs until SIGINT/SIGTERM.

Usage:
    # Headless, port from PORT (default 3000)
    python -m wabot

    # Visible browser window, custom port
    python -m wabot --headed --port 8080
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import dataclasses
import logging
import signal

from wabot.config import Settings, load_settings
from wabot.sessions.whatsapp_session import WhatsAppWebSession
from wabot.supervisor.status import StatusStore
from wabot.supervisor.supervisor import ConnectionSupervisor
from wabot.utils.logging_utils import setup_logging
from wabot.web.qr import render_terminal
from wabot.web.server import start_http_server

logger = logging.getLogger(__name__)


def _show_qr(payload: str) -> None:
    logger.info("Scan this QR code with WhatsApp:\n%s", render_terminal(payload))


def build_supervisor(settings: Settings, store: StatusStore | None = None) -> ConnectionSupervisor:
    """Wire a supervisor that creates WhatsApp Web sessions from ``settings``."""

    def session_factory() -> WhatsAppWebSession:
        return WhatsAppWebSession(
            session_path=settings.session_path,
            headless=settings.headless,
            poll_interval=settings.poll_interval,
            pairing_timeout=settings.pairing_timeout,
        )

    return ConnectionSupervisor(
        session_factory,
        store,
        pairing_display=_show_qr,
        auth_failure_delay=settings.auth_failure_delay,
        disconnect_delay=settings.disconnect_delay,
        reinitialize_delay=settings.reinitialize_delay,
        mark_seen_retry_delay=settings.mark_seen_retry_delay,
    )


async def run(settings: Settings) -> None:
    """Run the bot until a termination signal arrives."""
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig, message in (
        (signal.SIGINT, "Shutting down gracefully..."),
        (signal.SIGTERM, "Received SIGTERM, shutting down..."),
    ):
        try:
            loop.add_signal_handler(sig, lambda m=message: (logger.info(m), stop.set()))
        except NotImplementedError:
            # Windows event loops lack add_signal_handler; Ctrl+C still raises
            pass

    supervisor = build_supervisor(settings)
    runner = await start_http_server(supervisor, settings.host, settings.port)
    heartbeat = asyncio.create_task(supervisor.heartbeat(settings.heartbeat_interval))
    try:
        await supervisor.start()
        await stop.wait()
    finally:
        heartbeat.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await heartbeat
        await supervisor.shutdown()
        await runner.cleanup()
        logger.info("Stopped")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="WhatsApp bot with status dashboard")
    parser.add_argument("--port", type=int, help="HTTP port (overrides PORT)")
    parser.add_argument(
        "--headed",
        action="store_true",
        help="Show the browser window (useful for first-time pairing)",
    )
    parser.add_argument("--env-file", default=".env", help="Path to a .env file")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the bot."""
    args = _parse_args(argv)
    settings = load_settings(args.env_file)
    if args.port is not None:
        settings = dataclasses.replace(settings, port=args.port)
    if args.headed:
        settings = dataclasses.replace(settings, headless=False)

    setup_logging(settings.log_level)
    logger.info(
        "Starting WhatsApp bot (port: %d, session: %s, headless: %s)",
        settings.port,
        settings.session_path,
        settings.headless,
    )
    asyncio.run(run(settings))


if __name__ == "__main__":
    main()
