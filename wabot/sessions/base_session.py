"""Abstract base class for messaging sessions the supervisor can drive."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from wabot.events import EventListener, LifecycleEvent


@dataclass(frozen=True)
class SessionInfo:
    """Descriptive metadata about the connected account."""

    pushname: str | None
    number: str | None


class BaseSession(ABC):
    """Base class for sessions that report lifecycle events to listeners.

    Subclasses must implement:
        - initialize() -> start the connection, return once it is underway
        - destroy() -> tear the connection down
        - get_info() -> SessionInfo for the connected account
        - send_seen(chat_id) -> mark a conversation as read
        - get_chats() -> list of chat names
    """

    def __init__(self) -> None:
        self._listeners: list[EventListener] = []
        self.logger = logging.getLogger(self.__class__.__name__)

    def subscribe(self, listener: EventListener) -> None:
        """Register a coroutine function called with every lifecycle event."""
        self._listeners.append(listener)

    def unsubscribe_all(self) -> None:
        self._listeners.clear()

    async def _emit(self, event: LifecycleEvent) -> None:
        self.logger.debug("Emitting %s", type(event).__name__)
        for listener in list(self._listeners):
            try:
                await listener(event)
            except Exception:
                self.logger.exception("Listener failed for %s", type(event).__name__)

    @abstractmethod
    async def initialize(self) -> None:
        """Start connecting. Progress is reported through events."""

    @abstractmethod
    async def destroy(self) -> None:
        """Close the connection and release its resources."""

    @abstractmethod
    async def get_info(self) -> SessionInfo:
        """Return metadata about the connected account."""

    @abstractmethod
    async def send_seen(self, chat_id: str) -> None:
        """Mark a conversation as read. Raises on failure."""

    @abstractmethod
    async def get_chats(self) -> list[str]:
        """Return the names of the chats visible to the session."""
