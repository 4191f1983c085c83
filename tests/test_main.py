"""Tests for the CLI entry point (wabot.main)."""

from __future__ import annotations

import asyncio
import os
import signal
from unittest.mock import AsyncMock, MagicMock, patch

from wabot.config import Settings
from wabot.main import _parse_args, build_supervisor, main, run
from wabot.sessions.whatsapp_session import WhatsAppWebSession


class TestParseArgs:
    def test_defaults(self) -> None:
        args = _parse_args([])
        assert args.port is None
        assert args.headed is False
        assert args.env_file == ".env"

    def test_flags(self) -> None:
        args = _parse_args(["--port", "8080", "--headed", "--env-file", "prod.env"])
        assert args.port == 8080
        assert args.headed is True
        assert args.env_file == "prod.env"


class TestBuildSupervisor:
    def test_factory_uses_settings(self) -> None:
        settings = Settings(session_path="/tmp/wa", headless=False, poll_interval=1.5)
        supervisor = build_supervisor(settings)

        session = supervisor._session_factory()
        assert isinstance(session, WhatsAppWebSession)
        assert str(session.session_path) == "/tmp/wa"
        assert session.headless is False
        assert session.poll_interval == 1.5

    def test_delays_come_from_settings(self) -> None:
        settings = Settings(auth_failure_delay=1, disconnect_delay=2, reinitialize_delay=3)
        supervisor = build_supervisor(settings)
        assert supervisor.auth_failure_delay == 1
        assert supervisor.disconnect_delay == 2
        assert supervisor.reinitialize_delay == 3


class TestMain:
    def test_cli_overrides_settings(self) -> None:
        with (
            patch("wabot.main.load_settings", return_value=Settings()),
            patch("wabot.main.setup_logging"),
            patch("wabot.main.run", MagicMock()) as run_mock,
            patch("wabot.main.asyncio.run") as asyncio_run,
        ):
            main(["--port", "9000", "--headed"])

        settings = run_mock.call_args.args[0]
        assert settings.port == 9000
        assert settings.headless is False
        asyncio_run.assert_called_once_with(run_mock.return_value)


class TestRun:
    async def test_signal_triggers_clean_shutdown(self) -> None:
        supervisor = MagicMock()
        supervisor.start = AsyncMock()
        supervisor.shutdown = AsyncMock()
        supervisor.heartbeat = AsyncMock()
        runner = AsyncMock()

        with (
            patch("wabot.main.build_supervisor", return_value=supervisor),
            patch("wabot.main.start_http_server", AsyncMock(return_value=runner)),
        ):
            task = asyncio.create_task(run(Settings(port=0)))
            await asyncio.sleep(0.05)
            supervisor.start.assert_awaited_once()
            assert not task.done()

            os.kill(os.getpid(), signal.SIGTERM)
            await asyncio.wait_for(task, timeout=2.0)

        supervisor.shutdown.assert_awaited_once()
        runner.cleanup.assert_awaited_once()


    async def test_heartbeat_finished_before_run_returns(self) -> None:
        stopped: list[bool] = []

        async def heartbeat(interval: float) -> None:
            try:
                await asyncio.sleep(3600)
            finally:
                stopped.append(True)

        supervisor = MagicMock()
        supervisor.start = AsyncMock()
        supervisor.shutdown = AsyncMock()
        supervisor.heartbeat = heartbeat

        with (
            patch("wabot.main.build_supervisor", return_value=supervisor),
            patch("wabot.main.start_http_server", AsyncMock(return_value=AsyncMock())),
        ):
            task = asyncio.create_task(run(Settings(port=0)))
            await asyncio.sleep(0.05)
            os.kill(os.getpid(), signal.SIGTERM)
            await asyncio.wait_for(task, timeout=2.0)

            assert stopped == [True]
