"""WhatsApp Web session - drives web.whatsapp.com via Playwright and reports lifecycle events.

The session never sends or modifies messages. It watches the page, translates
what it sees (QR code, chat list, phone-disconnected banner, unread chats)
into lifecycle events, and opens chats on request so WhatsApp marks them read.

Session material (cookies, IndexedDB) lives in a persistent Chromium profile
under ``session_path``; scanning the QR code once is enough until WhatsApp
revokes the linked device.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from pathlib import Path
from typing import Any

from wabot.events import (
    AuthFailed,
    Authenticated,
    Disconnected,
    InboundMessage,
    LifecycleEvent,
    MessageReceived,
    PairingIssued,
    Ready,
)
from wabot.sessions.base_session import BaseSession, SessionInfo

WHATSAPP_WEB_URL = "https://web.whatsapp.com"

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/133.0.0.0 Safari/537.36"
)

BROWSER_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
    "--disable-setuid-sandbox",
    "--disable-gpu",
    "--no-first-run",
    "--no-sandbox",
]

# Selectors for WhatsApp Web DOM
SELECTORS = {
    "qr_code": 'canvas[aria-label*="Scan this QR code"]',
    "qr_code_fallback": 'div[data-testid="qrcode"], div[role="img"][aria-label*="QR"]',
    "qr_payload": "div[data-ref]",
    "phone_disconnected": 'div[data-testid="alert-phone"]',
    "loading": 'div[data-testid="startup"]',
    "chat_title": "#pane-side span[title]",
    "conversation_header": 'div[data-testid="conversation-header"] span[dir="auto"]',
    "back_button": 'button[data-testid="back"]',
}

# Any of these means the chat list is on screen, i.e. the device is linked
CHAT_LOADED_SELECTOR = ", ".join([
    'div[data-testid="chat-list"]',
    'div[aria-label="Chat list"]',
    "#pane-side",
    'div[role="listitem"]',
])

UNREAD_ROW_STRATEGIES = [
    ("row + aria unread", 'div[role="row"]:has(span[aria-label*="unread"])'),
    ("row + icon-unread-count", 'div[role="row"]:has(span[data-testid="icon-unread-count"])'),
    (
        "cell-frame + aria unread",
        'div[data-testid="cell-frame-container"]:has(span[aria-label*="unread"])',
    ),
    ("listitem + aria unread", 'div[role="listitem"]:has(span[aria-label*="unread"])'),
]

PREVIEW_SELECTORS = [
    'span[data-testid="last-msg-status"] + span[dir="ltr"]',
    'div[data-testid="cell-frame-secondary"] span[dir="ltr"]',
    'span[dir="ltr"]',
    "span.selectable-text",
]

TIME_SELECTORS = [
    'div[data-testid="cell-frame-primary-detail"]',
    'div[role="gridcell"] > div:last-child',
]

ACCOUNT_INFO_SCRIPT = """() => ({
    wid: window.localStorage.getItem('last-wid-md') || window.localStorage.getItem('last-wid'),
    pushname: window.localStorage.getItem('me-display-name'),
})"""


def _make_dedup_key(chat_name: str, message_text: str, timestamp: str) -> str:
    """Create a deduplication key from message components."""
    return f"{chat_name}|{message_text[:100]}|{timestamp}"


def _css_string(value: str) -> str:
    """Escape a value for use inside a double-quoted CSS attribute selector."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _strip_storage_value(raw: str | None) -> str | None:
    """WhatsApp Web stores most localStorage values JSON-quoted."""
    if raw is None:
        return None
    value = raw.strip().strip('"').strip()
    return value or None


def _parse_wid(raw: str | None) -> str | None:
    """Extract the phone number from a stored WhatsApp id.

    Examples:
        >>> _parse_wid('"15551234567:12@c.us"')
        '15551234567'
        >>> _parse_wid("15551234567@c.us")
        '15551234567'
        >>> _parse_wid(None) is None
        True
    """
    value = _strip_storage_value(raw)
    if value is None:
        return None
    user = value.split("@", 1)[0].split(":", 1)[0]
    return user or None


class WhatsAppWebSession(BaseSession):
    """Reports WhatsApp Web lifecycle changes as events by polling the page."""

    def __init__(
        self,
        session_path: str = "./wa_auth",
        headless: bool = True,
        poll_interval: float = 2.0,
        pairing_timeout: float = 300.0,
    ):
        super().__init__()
        self.session_path = Path(session_path)
        self.headless = headless
        self.poll_interval = poll_interval
        self.pairing_timeout = pairing_timeout
        self._playwright: Any = None
        self._context: Any = None
        self._page: Any = None
        self._watch_task: asyncio.Task[None] | None = None
        self._page_lock = asyncio.Lock()
        self._authenticated = False
        self._ready = False
        self._last_qr: str | None = None
        self._pairing_since: float | None = None
        self._seen_keys: set[str] = set()

    # ── Browser Management ──────────────────────────────────────────

    async def _launch_browser(self) -> None:
        """Launch Playwright browser with persistent context for session."""
        from playwright.async_api import async_playwright

        self._playwright = await async_playwright().start()
        self.session_path.mkdir(parents=True, exist_ok=True)

        self._context = await self._playwright.chromium.launch_persistent_context(
            user_data_dir=str(self.session_path),
            headless=self.headless,
            user_agent=USER_AGENT,
            args=BROWSER_ARGS,
        )
        self._page = self._context.pages[0] if self._context.pages else await self._context.new_page()
        await self._page.set_viewport_size({"width": 1280, "height": 720})

    async def _close_browser(self) -> None:
        """Close browser and cleanup."""
        if self._context:
            await self._context.close()
            self._context = None
            self._page = None
        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

    async def _navigate_to_whatsapp(self) -> None:
        assert self._page is not None
        self.logger.debug("Navigating to %s...", WHATSAPP_WEB_URL)
        await self._page.goto(WHATSAPP_WEB_URL, wait_until="domcontentloaded", timeout=60000)

    def _require_page(self) -> Any:
        if self._page is None:
            raise RuntimeError("WhatsApp Web page is not open")
        return self._page

    # ── Lifecycle ───────────────────────────────────────────────────

    async def initialize(self) -> None:
        """Open WhatsApp Web and start watching it for lifecycle changes."""
        self.logger.info(
            "Opening WhatsApp Web (session: %s, headless: %s)", self.session_path, self.headless
        )
        await self._launch_browser()
        await self._navigate_to_whatsapp()
        self._watch_task = asyncio.create_task(self._watch(), name="whatsapp-web-watch")

    async def destroy(self) -> None:
        """Stop watching and close the browser."""
        task = self._watch_task
        self._watch_task = None
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        await self._close_browser()
        self._authenticated = False
        self._ready = False
        self._last_qr = None
        self._pairing_since = None
        self.logger.info("WhatsApp Web session closed")

    async def _watch(self) -> None:
        """Poll the page until a terminal event (disconnect or auth failure)."""
        self.logger.debug("Watching WhatsApp Web every %.1fs", self.poll_interval)
        while True:
            try:
                events = await self.poll_once()
            except Exception:
                self.logger.exception("WhatsApp Web poll failed")
                events = [Disconnected("NAVIGATION")]

            for event in events:
                await self._emit(event)

            if any(isinstance(event, (Disconnected, AuthFailed)) for event in events):
                self.logger.debug("Poll loop stopped after %s", type(events[-1]).__name__)
                return

            await asyncio.sleep(self.poll_interval)

    async def poll_once(self) -> list[LifecycleEvent]:
        """Inspect the page once and return the events it implies."""
        async with self._page_lock:
            state = await self._check_session_state()
            self.logger.debug("Session state: %s", state)
            return await self._events_for_state(state)

    async def _events_for_state(self, state: str) -> list[LifecycleEvent]:
        events: list[LifecycleEvent] = []

        if state == "qr_code":
            if self._ready:
                # Device was unlinked from the phone
                self._ready = False
                self._authenticated = False
                events.append(Disconnected("LOGOUT"))
                return events

            now = time.monotonic()
            if self._pairing_since is None:
                self._pairing_since = now
            elif now - self._pairing_since > self.pairing_timeout:
                self._pairing_since = None
                events.append(AuthFailed("Pairing timed out"))
                return events

            payload = await self._read_qr_payload()
            if payload and payload != self._last_qr:
                self._last_qr = payload
                events.append(PairingIssued(payload))
            return events

        if state == "ready":
            self._pairing_since = None
            self._last_qr = None
            if not self._authenticated:
                self._authenticated = True
                events.append(Authenticated())
            if not self._ready:
                self._ready = True
                events.append(Ready())
            events.extend(await self._scan_unread())
            return events

        if state == "phone_disconnected" and self._ready:
            self._ready = False
            events.append(Disconnected("PHONE_DISCONNECTED"))

        return events

    # ── Page Inspection ─────────────────────────────────────────────

    async def _is_chat_loaded(self) -> bool:
        assert self._page is not None
        result = await self._page.query_selector(CHAT_LOADED_SELECTOR)
        return result is not None

    async def _check_session_state(self) -> str:
        """Check current WhatsApp Web session state.

        Returns:
            One of: "ready", "qr_code", "phone_disconnected", "loading", "unknown"
        """
        assert self._page is not None

        if await self._is_chat_loaded():
            if await self._page.query_selector(SELECTORS["phone_disconnected"]):
                return "phone_disconnected"
            return "ready"

        if await self._page.query_selector(SELECTORS["qr_code"]):
            return "qr_code"
        if await self._page.query_selector(SELECTORS["qr_code_fallback"]):
            return "qr_code"
        if await self._page.query_selector(SELECTORS["loading"]):
            return "loading"

        return "unknown"

    async def _read_qr_payload(self) -> str | None:
        """Read the raw pairing payload WhatsApp Web renders into the QR code."""
        assert self._page is not None
        container = await self._page.query_selector(SELECTORS["qr_payload"])
        if container is None:
            return None
        payload = await container.get_attribute("data-ref")
        return payload or None

    async def _get_unread_rows(self) -> list[Any]:
        """Find chat rows carrying an unread badge.

        Tries multiple selector strategies since WhatsApp Web DOM changes frequently.
        """
        assert self._page is not None
        for strategy_name, selector in UNREAD_ROW_STRATEGIES:
            try:
                rows = await self._page.query_selector_all(selector)
            except Exception:
                self.logger.debug("Unread strategy '%s' failed", strategy_name, exc_info=True)
                continue
            if rows:
                self.logger.debug("Unread strategy '%s': %d rows", strategy_name, len(rows))
                return rows
        return []

    async def _extract_chat_name_from_row(self, row: Any) -> str:
        """Try multiple approaches to extract the chat name from a row element."""
        for sel in ('span[dir="auto"][title]', "span[title]", 'span[dir="auto"]'):
            try:
                el = await row.query_selector(sel)
                if el:
                    title = await el.get_attribute("title")
                    if title and title.strip():
                        return title.strip()
                    text = await el.inner_text()
                    if text and text.strip() and len(text.strip()) < 100:
                        return text.strip()
            except Exception:
                continue
        return ""

    async def _first_text(self, row: Any, selectors: list[str]) -> str:
        for sel in selectors:
            try:
                el = await row.query_selector(sel)
                if el:
                    text = (await el.inner_text()).strip()
                    if text:
                        return text
            except Exception:
                continue
        return ""

    async def _scan_unread(self) -> list[LifecycleEvent]:
        """Turn unread chat rows into message events, skipping ones already reported.

        A row is only suppressed while it stays unread. Once it leaves the unread
        list its key is forgotten, so an identical message arriving later is
        reported again.
        """
        events: list[LifecycleEvent] = []
        unread_keys: set[str] = set()
        for row in await self._get_unread_rows():
            chat_name = await self._extract_chat_name_from_row(row)
            if not chat_name:
                self.logger.debug("Found unread row but could not extract chat name")
                continue
            body = await self._first_text(row, PREVIEW_SELECTORS)
            when = await self._first_text(row, TIME_SELECTORS)

            key = _make_dedup_key(chat_name, body, when)
            unread_keys.add(key)
            if key in self._seen_keys:
                continue

            events.append(
                MessageReceived(
                    InboundMessage(
                        chat_id=chat_name,
                        chat_name=chat_name,
                        sender=chat_name,
                        body=body,
                    )
                )
            )

        self._seen_keys = unread_keys
        return events

    # ── Session Queries ─────────────────────────────────────────────

    async def send_seen(self, chat_id: str) -> None:
        """Open the chat so WhatsApp marks it read, then return to the chat list."""
        async with self._page_lock:
            page = self._require_page()
            title = await page.query_selector(f'#pane-side span[title="{_css_string(chat_id)}"]')
            if title is None:
                raise LookupError(f"Chat not found in chat list: {chat_id}")
            await title.click()
            await page.wait_for_selector(SELECTORS["conversation_header"], timeout=5000)

            back_btn = await page.query_selector(SELECTORS["back_button"])
            if back_btn:
                await back_btn.click()
            else:
                await page.keyboard.press("Escape")

    async def get_info(self) -> SessionInfo:
        async with self._page_lock:
            page = self._require_page()
            raw = await page.evaluate(ACCOUNT_INFO_SCRIPT)
        return SessionInfo(
            pushname=_strip_storage_value(raw.get("pushname")),
            number=_parse_wid(raw.get("wid")),
        )

    async def get_chats(self) -> list[str]:
        async with self._page_lock:
            page = self._require_page()
            titles = await page.query_selector_all(SELECTORS["chat_title"])
            names = []
            for el in titles:
                name = await el.get_attribute("title")
                if name:
                    names.append(name)
        return names
