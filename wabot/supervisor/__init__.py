"""Connection lifecycle supervision and the status record it maintains."""

from wabot.supervisor.reconnect import ReconnectSlot
from wabot.supervisor.status import STATUS_LABELS, BotState, BotStatus, StatusStore
from wabot.supervisor.supervisor import ConnectionSupervisor

__all__ = [
    "BotState",
    "BotStatus",
    "ConnectionSupervisor",
    "ReconnectSlot",
    "STATUS_LABELS",
    "StatusStore",
]
