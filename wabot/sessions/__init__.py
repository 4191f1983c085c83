"""Session modules wrapping the messaging backend."""

from wabot.sessions.base_session import BaseSession, SessionInfo
from wabot.sessions.whatsapp_session import WhatsAppWebSession

__all__ = ["BaseSession", "SessionInfo", "WhatsAppWebSession"]
