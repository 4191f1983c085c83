"""HTTP dashboard and JSON status endpoints."""

from wabot.web.server import create_app, start_http_server

__all__ = ["create_app", "start_http_server"]
