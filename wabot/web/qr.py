"""Render pairing payloads as scannable QR codes."""

from __future__ import annotations

import base64
import io

import qrcode
from qrcode.image.svg import SvgImage


def render_svg(payload: str) -> str:
    """Return a standalone SVG document encoding ``payload``."""
    qr = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_Q,
        box_size=8,
        border=2,
    )
    qr.add_data(payload)
    qr.make(fit=True)
    img = qr.make_image(image_factory=SvgImage)
    buf = io.BytesIO()
    img.save(buf)
    return buf.getvalue().decode("utf-8")


def svg_data_url(payload: str) -> str:
    """Return the QR code as a ``data:`` URL usable in an ``<img>`` tag."""
    encoded = base64.b64encode(render_svg(payload).encode("utf-8")).decode("ascii")
    return f"data:image/svg+xml;base64,{encoded}"


def render_terminal(payload: str) -> str:
    """Return ``payload`` as a QR code drawn with block characters."""
    qr = qrcode.QRCode(border=1)
    qr.add_data(payload)
    qr.make(fit=True)
    buf = io.StringIO()
    qr.print_ascii(out=buf, invert=True)
    return buf.getvalue()
