"""Shared fixtures: an in-memory session and a supervisor with short delays."""

from __future__ import annotations

from collections.abc import AsyncIterator
from unittest.mock import AsyncMock, MagicMock

import pytest

from wabot.events import LifecycleEvent
from wabot.sessions.base_session import BaseSession, SessionInfo
from wabot.supervisor.status import StatusStore
from wabot.supervisor.supervisor import ConnectionSupervisor


class FakeSession(BaseSession):
    """Session double whose behaviour is driven by AsyncMocks."""

    def __init__(self) -> None:
        super().__init__()
        self.initialize_mock = AsyncMock()
        self.destroy_mock = AsyncMock()
        self.seen = AsyncMock()
        self.info = AsyncMock(return_value=SessionInfo(pushname="Test Bot", number="15551234567"))
        self.chats = AsyncMock(return_value=["Alice", "Family Group"])

    async def fire(self, event: LifecycleEvent) -> None:
        await self._emit(event)

    async def initialize(self) -> None:
        await self.initialize_mock()

    async def destroy(self) -> None:
        await self.destroy_mock()

    async def get_info(self) -> SessionInfo:
        return await self.info()

    async def send_seen(self, chat_id: str) -> None:
        await self.seen(chat_id)

    async def get_chats(self) -> list[str]:
        return await self.chats()


@pytest.fixture
def sessions() -> list[FakeSession]:
    """Every session the supervisor has created, oldest first."""
    return []


@pytest.fixture
def pairing_display() -> MagicMock:
    return MagicMock()


@pytest.fixture
async def supervisor(
    sessions: list[FakeSession], pairing_display: MagicMock
) -> AsyncIterator[ConnectionSupervisor]:
    """Supervisor wired to FakeSession with delays short enough for tests."""

    def factory() -> FakeSession:
        session = FakeSession()
        sessions.append(session)
        return session

    sup = ConnectionSupervisor(
        factory,
        StatusStore(),
        pairing_display=pairing_display,
        auth_failure_delay=0.05,
        disconnect_delay=0.05,
        reinitialize_delay=0.01,
        mark_seen_retry_delay=0.02,
    )
    yield sup
    await sup.shutdown()
