"""HTML pages for the status dashboard and the QR scan page."""

from __future__ import annotations

from html import escape

from wabot.supervisor.status import BotStatus
from wabot.utils.timestamps import format_duration, to_iso
from wabot.web.qr import svg_data_url

DASHBOARD_REFRESH_SECONDS = 10
QR_REFRESH_SECONDS = 5

_STYLE = """
body { font-family: -apple-system, Segoe UI, Roboto, sans-serif; background: #f0f2f5; margin: 0; }
main { max-width: 560px; margin: 40px auto; background: #fff; border-radius: 8px; padding: 24px 32px; }
h1 { font-size: 1.4em; color: #075e54; }
table { width: 100%; border-collapse: collapse; }
td { padding: 6px 0; border-bottom: 1px solid #eee; }
td.label { color: #667781; width: 40%; }
.online { color: #25d366; font-weight: bold; }
.offline { color: #d93025; font-weight: bold; }
.qr { text-align: center; padding: 16px 0; }
.qr img { width: 320px; height: 320px; }
a.button { display: inline-block; margin-top: 16px; padding: 8px 16px; background: #25d366;
           color: #fff; border-radius: 4px; text-decoration: none; }
"""


def _page(title: str, body: str, refresh_seconds: int) -> str:
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta http-equiv="refresh" content="{refresh_seconds}">
<title>{escape(title)}</title>
<style>{_STYLE}</style>
</head>
<body>
<main>
{body}
</main>
</body>
</html>
"""


def render_dashboard(status: BotStatus) -> str:
    """Dashboard with status, uptime and message counters."""
    state_class = "online" if status.ready else "offline"
    last_message = to_iso(status.last_message_at) or "never"
    rows = [
        ("Status", f'<span class="{state_class}">{escape(status.status)}</span>'),
        ("Ready", "yes" if status.ready else "no"),
        ("Uptime", format_duration(status.uptime_seconds())),
        ("Messages processed", str(status.message_count)),
        ("Last message", escape(last_message)),
    ]
    table = "\n".join(
        f'<tr><td class="label">{label}</td><td>{value}</td></tr>' for label, value in rows
    )

    pairing = ""
    if status.has_pairing:
        pairing = (
            "<p>A device needs to be linked.</p>"
            '<a class="button" href="/qr-image">Scan QR code</a>'
        )

    body = f"""<h1>WhatsApp Bot</h1>
<table>
{table}
</table>
{pairing}"""
    return _page("WhatsApp Bot Status", body, DASHBOARD_REFRESH_SECONDS)


def render_qr_page(status: BotStatus) -> str:
    """Scan page showing the pending QR code, or a placeholder."""
    if status.pairing_payload is not None:
        issued = to_iso(status.pairing_issued_at) or ""
        content = f"""<div class="qr"><img alt="WhatsApp pairing QR code" src="{svg_data_url(status.pairing_payload)}"></div>
<p>Open WhatsApp on your phone, go to Settings &gt; Linked Devices &gt; Link a Device
and scan this code.</p>
<p><small>Generated at {escape(issued)}</small></p>"""
    elif status.ready:
        content = "<p>The bot is already linked and online. No QR code is needed.</p>"
    else:
        content = (
            f"<p>No QR code available yet. Current status: "
            f"<strong>{escape(status.status)}</strong></p>"
        )

    body = f"""<h1>Link WhatsApp</h1>
{content}
<a class="button" href="/">Back to dashboard</a>"""
    return _page("WhatsApp QR Code", body, QR_REFRESH_SECONDS)
