"""HTTP status surface for the bot.

Endpoints:
    GET /             - HTML dashboard
    GET /qr-image     - HTML page with the pending QR code
    GET /health       - Liveness JSON, always 200
    GET /api/status   - Status record summary
    GET /api/qr       - Raw pending pairing payload
    GET /api/test     - Live probe of the session
"""

from __future__ import annotations

import logging

from aiohttp import web

from wabot.supervisor.status import StatusStore
from wabot.supervisor.supervisor import ConnectionSupervisor
from wabot.utils.timestamps import now_iso, to_iso
from wabot.web.pages import render_dashboard, render_qr_page

logger = logging.getLogger(__name__)

STORE_KEY = web.AppKey("store", StatusStore)
SUPERVISOR_KEY = web.AppKey("supervisor", ConnectionSupervisor)


# ── HTTP Handlers ────────────────────────────────────────────────────────────


async def handle_dashboard(request: web.Request) -> web.Response:
    status = request.app[STORE_KEY].snapshot()
    return web.Response(text=render_dashboard(status), content_type="text/html")


async def handle_qr_image(request: web.Request) -> web.Response:
    status = request.app[STORE_KEY].snapshot()
    return web.Response(text=render_qr_page(status), content_type="text/html")


async def handle_health(request: web.Request) -> web.Response:
    status = request.app[STORE_KEY].snapshot()
    return web.json_response({
        "status": "healthy",
        "bot_status": status.status,
        "bot_ready": status.ready,
        "has_qr": status.has_pairing,
        "uptime_seconds": status.uptime_seconds(),
        "messages_processed": status.message_count,
        "last_message": to_iso(status.last_message_at),
        "timestamp": now_iso(),
    })


async def handle_status(request: web.Request) -> web.Response:
    status = request.app[STORE_KEY].snapshot()
    return web.json_response({
        "ready": status.ready,
        "state": status.state.value,
        "status": status.status,
        "has_qr": status.has_pairing,
        "qr_generated_at": to_iso(status.pairing_issued_at),
        "messages_processed": status.message_count,
        "last_message": to_iso(status.last_message_at),
        "started_at": to_iso(status.started_at),
        "uptime_seconds": status.uptime_seconds(),
    })


async def handle_qr(request: web.Request) -> web.Response:
    status = request.app[STORE_KEY].snapshot()
    if status.pairing_payload is None:
        return web.json_response({"qr": None, "available": False})
    return web.json_response({
        "qr": status.pairing_payload,
        "available": True,
        "generated_at": to_iso(status.pairing_issued_at),
    })


async def handle_test(request: web.Request) -> web.Response:
    supervisor = request.app[SUPERVISOR_KEY]
    store = request.app[STORE_KEY]
    session = supervisor.session

    if not store.ready or session is None:
        return web.json_response(
            {"success": False, "error": "Bot not ready", "status": store.label},
            status=503,
        )

    try:
        info = await session.get_info()
        chats = await session.get_chats()
    except Exception as e:
        logger.warning("Session probe failed: %s", e)
        return web.json_response(
            {"success": False, "error": str(e), "status": store.label},
            status=500,
        )

    return web.json_response({
        "success": True,
        "bot_info": {"pushname": info.pushname, "number": info.number},
        "chat_count": len(chats),
        "status": store.label,
    })


# ── App Factory ──────────────────────────────────────────────────────────────


def create_app(supervisor: ConnectionSupervisor) -> web.Application:
    app = web.Application()
    app[SUPERVISOR_KEY] = supervisor
    app[STORE_KEY] = supervisor.store

    app.router.add_get("/", handle_dashboard)
    app.router.add_get("/qr-image", handle_qr_image)
    app.router.add_get("/health", handle_health)
    app.router.add_get("/api/status", handle_status)
    app.router.add_get("/api/qr", handle_qr)
    app.router.add_get("/api/test", handle_test)

    return app


async def start_http_server(
    supervisor: ConnectionSupervisor,
    host: str = "0.0.0.0",
    port: int = 3000,
) -> web.AppRunner:
    """Start serving in the background. Call ``runner.cleanup()`` to stop."""
    runner = web.AppRunner(create_app(supervisor))
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()
    logger.info("Server running on %s:%d", host, port)
    return runner
