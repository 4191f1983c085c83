"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


def _bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 3000
    session_path: str = "./wa_auth"
    headless: bool = True
    poll_interval: float = 2.0
    pairing_timeout: float = 300.0
    auth_failure_delay: float = 10.0
    disconnect_delay: float = 15.0
    reinitialize_delay: float = 5.0
    mark_seen_retry_delay: float = 1.0
    heartbeat_interval: float = 300.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Settings:
        """Build settings from ``env`` (``os.environ`` by default).

        Raises:
            ValueError: If a numeric variable does not parse.
        """
        env = os.environ if env is None else env
        return cls(
            host=env.get("HOST", "0.0.0.0"),
            port=int(env.get("PORT", "3000")),
            session_path=env.get("WHATSAPP_SESSION_PATH", "./wa_auth"),
            headless=_bool(env.get("WHATSAPP_HEADLESS", "true")),
            poll_interval=float(env.get("WHATSAPP_POLL_INTERVAL", "2")),
            pairing_timeout=float(env.get("WHATSAPP_PAIRING_TIMEOUT", "300")),
            auth_failure_delay=float(env.get("AUTH_FAILURE_RESTART_DELAY", "10")),
            disconnect_delay=float(env.get("DISCONNECT_RESTART_DELAY", "15")),
            reinitialize_delay=float(env.get("REINITIALIZE_DELAY", "5")),
            mark_seen_retry_delay=float(env.get("MARK_SEEN_RETRY_DELAY", "1")),
            heartbeat_interval=float(env.get("HEARTBEAT_INTERVAL", "300")),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
        )


def load_settings(env_file: str | Path | None = ".env") -> Settings:
    """Load ``env_file`` into the environment (without overriding) and read settings."""
    if env_file is not None:
        load_dotenv(env_file)
    return Settings.from_env()
