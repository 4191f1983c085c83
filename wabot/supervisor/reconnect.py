"""Single-slot holder for the pending reconnect attempt."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

logger = logging.getLogger(__name__)


class ReconnectSlot:
    """Holds at most one pending reconnect task.

    Scheduling a new reconnect cancels the one still waiting. A reconnect that
    has called ``release()`` is committed: it keeps running and no longer
    occupies the slot.
    """

    def __init__(self) -> None:
        self._task: asyncio.Task[None] | None = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def schedule(self, coro: Coroutine[Any, Any, None], name: str = "reconnect") -> asyncio.Task[None]:
        if self.pending:
            assert self._task is not None
            logger.info("Replacing pending %s", self._task.get_name())
            self._task.cancel()
        self._task = asyncio.create_task(coro, name=name)
        return self._task

    def release(self, task: asyncio.Task[Any] | None) -> None:
        """Detach ``task`` from the slot so later schedules leave it running."""
        if task is not None and self._task is task:
            self._task = None

    def cancel(self) -> None:
        if self.pending:
            assert self._task is not None
            self._task.cancel()
        self._task = None
