"""Connection lifecycle supervisor.

Owns the one live session, folds its lifecycle events into the status store,
and keeps it alive across failures. Every failure path uses the same policy:
wait a fixed delay, tear the session down, wait again, build a fresh one.
There is no backoff and no retry cap.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Coroutine
from functools import partial
from typing import Any

from wabot.events import (
    AuthFailed,
    Authenticated,
    Disconnected,
    LifecycleEvent,
    MessageReceived,
    PairingIssued,
    Ready,
)
from wabot.sessions.base_session import BaseSession
from wabot.supervisor.reconnect import ReconnectSlot
from wabot.supervisor.status import BotState, StatusStore
from wabot.utils.logging_utils import preview

logger = logging.getLogger(__name__)

AUTH_FAILURE_RESTART_DELAY = 10.0
DISCONNECT_RESTART_DELAY = 15.0
REINITIALIZE_DELAY = 5.0
MARK_SEEN_RETRY_DELAY = 1.0
HEARTBEAT_INTERVAL = 300.0

SessionFactory = Callable[[], BaseSession]
PairingDisplay = Callable[[str], None]


class ConnectionSupervisor:
    """Drives one session through its lifecycle and restarts it on failure."""

    def __init__(
        self,
        session_factory: SessionFactory,
        store: StatusStore | None = None,
        *,
        pairing_display: PairingDisplay | None = None,
        auth_failure_delay: float = AUTH_FAILURE_RESTART_DELAY,
        disconnect_delay: float = DISCONNECT_RESTART_DELAY,
        reinitialize_delay: float = REINITIALIZE_DELAY,
        mark_seen_retry_delay: float = MARK_SEEN_RETRY_DELAY,
    ):
        self.store = store or StatusStore()
        self.session: BaseSession | None = None
        self.auth_failure_delay = auth_failure_delay
        self.disconnect_delay = disconnect_delay
        self.reinitialize_delay = reinitialize_delay
        self.mark_seen_retry_delay = mark_seen_retry_delay
        self._session_factory = session_factory
        self._pairing_display = pairing_display
        self._reconnect = ReconnectSlot()
        self._background: set[asyncio.Task[Any]] = set()
        self._closed = False
        self._handlers: dict[type, Callable[[Any], Awaitable[None]]] = {
            PairingIssued: self._on_pairing_issued,
            Authenticated: self._on_authenticated,
            Ready: self._on_ready,
            MessageReceived: self._on_message,
            AuthFailed: self._on_auth_failed,
            Disconnected: self._on_disconnected,
        }

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect.pending

    # ── Session Lifecycle ───────────────────────────────────────────

    async def start(self) -> None:
        """Create and initialize the first session."""
        await self._initialize()

    async def _initialize(self) -> None:
        if self._closed:
            return
        if self.session is not None:
            logger.debug("Session already initialized, skipping")
            return

        self.store.mark_starting()
        logger.info("Initializing WhatsApp client...")
        try:
            session = self._session_factory()
            session.subscribe(partial(self._on_session_event, session))
            self.session = session
            await session.initialize()
        except Exception as exc:
            logger.exception("WhatsApp client failed to initialize")
            await self.dispatch(Disconnected(f"INITIALIZE_FAILED: {exc}"))
            return

        # Events raised during initialize() may already have moved the state on
        if self.store.state is BotState.STARTING:
            self.store.mark_initializing()

    def _schedule_restart(self, delay: float) -> None:
        if self._closed:
            return
        logger.info("Restarting WhatsApp client in %.0fs", delay)
        self._reconnect.schedule(self._restart(delay), name="session-restart")

    async def _restart(self, delay: float) -> None:
        await asyncio.sleep(delay)

        # Past this point a newer failure must not interrupt the teardown
        task = asyncio.current_task()
        self._reconnect.release(task)
        if task is not None:
            self._track(task)

        session, self.session = self.session, None
        if session is not None:
            session.unsubscribe_all()
            try:
                await session.destroy()
            except Exception as exc:
                logger.warning("Error destroying WhatsApp client: %s", exc)

        await asyncio.sleep(self.reinitialize_delay)
        await self._initialize()

    async def shutdown(self) -> None:
        """Cancel pending timers and make one best-effort session teardown."""
        self._closed = True
        self._reconnect.cancel()
        for task in list(self._background):
            if task is not asyncio.current_task():
                task.cancel()

        session, self.session = self.session, None
        if session is None:
            return
        session.unsubscribe_all()
        try:
            await session.destroy()
        except Exception as exc:
            logger.warning("Error during WhatsApp client teardown: %s", exc)

    async def heartbeat(self, interval: float = HEARTBEAT_INTERVAL) -> None:
        """Log the current status label every ``interval`` seconds, forever."""
        while True:
            await asyncio.sleep(interval)
            logger.info("Heartbeat - Status: %s", self.store.label)

    def _track(self, task: asyncio.Task[Any]) -> None:
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    def _spawn(self, coro: Coroutine[Any, Any, None], name: str) -> asyncio.Task[None]:
        task = asyncio.create_task(coro, name=name)
        self._track(task)
        return task

    # ── Event Dispatch ──────────────────────────────────────────────

    async def _on_session_event(self, session: BaseSession, event: LifecycleEvent) -> None:
        if session is not self.session:
            logger.debug("Ignoring %s from a replaced session", type(event).__name__)
            return
        await self.dispatch(event)

    async def dispatch(self, event: LifecycleEvent) -> None:
        """Apply one lifecycle event. Handler errors are logged, never raised."""
        handler = self._handlers.get(type(event))
        if handler is None:
            logger.warning("Unhandled lifecycle event: %r", event)
            return
        try:
            await handler(event)
        except Exception:
            logger.exception("Error handling %s", type(event).__name__)

    async def _on_pairing_issued(self, event: PairingIssued) -> None:
        self.store.set_pairing(event.payload, event.issued_at)
        logger.info("QR code generated, scan it from WhatsApp > Linked Devices")
        if self._pairing_display is None:
            return
        try:
            self._pairing_display(event.payload)
        except Exception as exc:
            logger.warning("Could not display QR code: %s", exc)

    async def _on_authenticated(self, event: Authenticated) -> None:
        self.store.mark_authenticated()
        logger.info("WhatsApp authentication successful")

    async def _on_ready(self, event: Ready) -> None:
        self.store.mark_ready()
        logger.info("WhatsApp bot is ready")

        session = self.session
        if session is None:
            return
        try:
            info = await session.get_info()
            logger.info("Connected as: %s (%s)", info.pushname or "Unknown", info.number or "unknown")
        except Exception as exc:
            logger.warning("Could not read bot info: %s", exc)

    async def _on_auth_failed(self, event: AuthFailed) -> None:
        logger.error("Authentication failed: %s", event.reason or "no reason given")
        self.store.mark_auth_failed()
        self._schedule_restart(self.auth_failure_delay)

    async def _on_disconnected(self, event: Disconnected) -> None:
        logger.warning("WhatsApp disconnected: %s", event.reason)
        self.store.mark_disconnected(event.reason)
        self._schedule_restart(self.disconnect_delay)

    async def _on_message(self, event: MessageReceived) -> None:
        message = event.message
        if message.from_me:
            return
        if not self.store.ready:
            logger.debug("Ignoring message in %s, client not ready", message.chat_id)
            return

        total = self.store.record_message(message.timestamp)
        logger.info(
            "New message #%d from %s in %s: %s",
            total,
            message.sender or "unknown",
            message.chat_name or "Private Chat",
            preview(message.body),
        )
        await self._mark_seen(message.chat_id)

    # ── Mark As Seen ────────────────────────────────────────────────

    async def _mark_seen(self, chat_id: str) -> None:
        session = self.session
        if session is None:
            return
        try:
            await session.send_seen(chat_id)
        except Exception as exc:
            logger.warning(
                "Mark as seen failed for %s, retrying in %.1fs: %s",
                chat_id,
                self.mark_seen_retry_delay,
                exc,
            )
            self._spawn(self._retry_mark_seen(session, chat_id), name=f"mark-seen-retry:{chat_id}")

    async def _retry_mark_seen(self, session: BaseSession, chat_id: str) -> None:
        await asyncio.sleep(self.mark_seen_retry_delay)
        if session is not self.session:
            logger.debug("Dropping mark-as-seen retry for %s, session replaced", chat_id)
            return
        try:
            await session.send_seen(chat_id)
        except Exception as exc:
            logger.error("Mark as seen retry failed for %s, giving up: %s", chat_id, exc)
