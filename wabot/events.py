"""Lifecycle events emitted by a session and consumed by the supervisor.

The set is closed: a session only ever reports one of the event types in
``LifecycleEvent``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime

from wabot.utils.timestamps import utc_now


@dataclass(frozen=True)
class InboundMessage:
    """A message observed by the session."""

    chat_id: str
    body: str
    sender: str = ""
    chat_name: str = ""
    from_me: bool = False
    timestamp: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class PairingIssued:
    payload: str
    issued_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class Authenticated:
    pass


@dataclass(frozen=True)
class Ready:
    pass


@dataclass(frozen=True)
class AuthFailed:
    reason: str = ""


@dataclass(frozen=True)
class Disconnected:
    reason: str = ""


@dataclass(frozen=True)
class MessageReceived:
    message: InboundMessage


LifecycleEvent = PairingIssued | Authenticated | Ready | AuthFailed | Disconnected | MessageReceived

EventListener = Callable[[LifecycleEvent], Awaitable[None]]
