"""Process-wide bot status record and the store that owns it.

The supervisor is the only writer; HTTP handlers read copies via
``StatusStore.snapshot()``. Nothing is persisted, a fresh store starts in
``BotState.STARTING`` on every process start.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from wabot.utils.timestamps import utc_now


class BotState(Enum):
    STARTING = "starting"
    INITIALIZING = "initializing"
    PAIRING_REQUIRED = "pairing_required"
    AUTHENTICATED = "authenticated"
    READY = "ready"
    AUTH_FAILED = "auth_failed"
    DISCONNECTED = "disconnected"


STATUS_LABELS = {
    BotState.STARTING: "Starting...",
    BotState.INITIALIZING: "Initializing...",
    BotState.PAIRING_REQUIRED: "QR Code Ready - Please Scan",
    BotState.AUTHENTICATED: "Authenticated - Starting...",
    BotState.READY: "Online - Reading Messages",
    BotState.AUTH_FAILED: "Auth Failed - Retrying...",
}


@dataclass
class BotStatus:
    """Snapshot of everything the reporting surface knows about the bot."""

    ready: bool = False
    state: BotState = BotState.STARTING
    status: str = STATUS_LABELS[BotState.STARTING]
    pairing_payload: str | None = None
    pairing_issued_at: datetime | None = None
    message_count: int = 0
    last_message_at: datetime | None = None
    started_at: datetime = field(default_factory=utc_now)

    @property
    def has_pairing(self) -> bool:
        return self.pairing_payload is not None

    def uptime_seconds(self, now: datetime | None = None) -> float:
        return ((now or utc_now()) - self.started_at).total_seconds()


class StatusStore:
    """Owns the single ``BotStatus`` and exposes the transitions allowed on it."""

    def __init__(self, status: BotStatus | None = None) -> None:
        self._status = status or BotStatus()

    def snapshot(self) -> BotStatus:
        return dataclasses.replace(self._status)

    @property
    def ready(self) -> bool:
        return self._status.ready

    @property
    def state(self) -> BotState:
        return self._status.state

    @property
    def label(self) -> str:
        return self._status.status

    def _set_state(self, state: BotState, label: str | None = None) -> None:
        self._status.state = state
        self._status.status = label if label is not None else STATUS_LABELS[state]

    def _clear_pairing(self) -> None:
        self._status.pairing_payload = None
        self._status.pairing_issued_at = None

    def mark_starting(self) -> None:
        self._status.ready = False
        self._clear_pairing()
        self._set_state(BotState.STARTING)

    def mark_initializing(self) -> None:
        self._set_state(BotState.INITIALIZING)

    def set_pairing(self, payload: str, issued_at: datetime) -> None:
        self._status.ready = False
        self._status.pairing_payload = payload
        self._status.pairing_issued_at = issued_at
        self._set_state(BotState.PAIRING_REQUIRED)

    def mark_authenticated(self) -> None:
        self._clear_pairing()
        self._set_state(BotState.AUTHENTICATED)

    def mark_ready(self) -> None:
        self._clear_pairing()
        self._status.ready = True
        self._set_state(BotState.READY)

    def mark_auth_failed(self) -> None:
        self._status.ready = False
        self._clear_pairing()
        self._set_state(BotState.AUTH_FAILED)

    def mark_disconnected(self, reason: str) -> None:
        self._status.ready = False
        self._clear_pairing()
        self._set_state(BotState.DISCONNECTED, f"Disconnected: {reason}")

    def record_message(self, at: datetime) -> int:
        """Count one inbound message observed at ``at``. Returns the new total."""
        self._status.message_count += 1
        self._status.last_message_at = at
        return self._status.message_count
