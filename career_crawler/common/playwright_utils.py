from __future__ import annotations

# Page rendering adapter: given a URL, return the rendered DOM as HTML.
# Everything site-specific (what to extract) lives in data_collection.extraction.

import contextlib
import logging
from collections.abc import Sequence
from typing import Any, Optional, Protocol

from playwright.async_api import Browser, BrowserContext, Page, Playwright, Route, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..core.exceptions import TransientFetchError

BLOCKED_RESOURCE_TYPES: frozenset[str] = frozenset({"image", "font", "media"})
DEFAULT_VIEWPORT: dict[str, int] = {"width": 1366, "height": 900}
LAUNCH_ARGS: list[str] = ["--no-sandbox", "--disable-setuid-sandbox"]

CONSENT_SELECTORS: list[str] = [
    "#onetrust-accept-btn-handler",
    "button#onetrust-accept-btn-handler",
    'button[aria-label="Accept all"]',
    "button[title='Accept & continue']",
    "button:has-text('Accept All')",
    "button:has-text('Accept')",
]


class PageExtractor(Protocol):
    async def fetch_html(
        self,
        url: str,
        *,
        wait_selectors: Sequence[str] = (),
        timeout_ms: Optional[int] = None,
    ) -> str: ...


async def accept_consent(page: Page) -> bool:
    """Click the first consent button found on the page or one of its frames.
    Returns True if something was clicked.
    """
    frames = [page.main_frame] + [f for f in page.frames if f is not page.main_frame]
    for frame in frames:
        for sel in CONSENT_SELECTORS:
            try:
                el = await frame.query_selector(sel)
                if el:
                    await el.click()
                    await page.wait_for_timeout(500)
                    return True
            except PlaywrightError:
                continue
    return False


async def scroll_to_bottom(page: Page, *, settle_ms: int = 1000) -> None:
    await page.evaluate("() => window.scrollTo(0, document.body.scrollHeight)")
    await page.wait_for_timeout(settle_ms)


class PlaywrightPageExtractor:
    """Single reused Chromium page with blocked media, fixed fingerprint and proxy support.

    Usage:
        async with PlaywrightPageExtractor.from_settings(settings) as extractor:
            html = await extractor.fetch_html(url, wait_selectors=["table.items"])
    """

    def __init__(
        self,
        *,
        headless: bool = True,
        user_agent: Optional[str] = None,
        accept_language: str = "en-US,en;q=0.9",
        proxy: Optional[dict[str, str]] = None,
        page_timeout_ms: int = 30000,
        wait_timeout_ms: int = 10000,
        blocked_resource_types: frozenset[str] = BLOCKED_RESOURCE_TYPES,
    ) -> None:
        self.headless = headless
        self.user_agent = user_agent
        self.accept_language = accept_language
        self.proxy = proxy
        self.page_timeout_ms = page_timeout_ms
        self.wait_timeout_ms = wait_timeout_ms
        self.blocked_resource_types = blocked_resource_types
        self.logger = logging.getLogger("crawler.browser")
        self._pw: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None
        self._consent_done = False

    @classmethod
    def from_settings(cls, settings) -> "PlaywrightPageExtractor":
        return cls(
            headless=settings.headless,
            user_agent=settings.user_agent,
            accept_language=settings.accept_language,
            proxy=settings.proxy,
            page_timeout_ms=settings.page_timeout_ms,
            wait_timeout_ms=settings.wait_timeout_ms,
        )

    async def start(self) -> None:
        self._pw = await async_playwright().start()
        try:
            launch_args: dict[str, Any] = {"headless": self.headless, "args": LAUNCH_ARGS}
            if self.proxy:
                launch_args["proxy"] = self.proxy
            self._browser = await self._pw.chromium.launch(**launch_args)
            context_args: dict[str, Any] = {
                "viewport": DEFAULT_VIEWPORT,
                "extra_http_headers": {"Accept-Language": self.accept_language},
            }
            if self.user_agent:
                context_args["user_agent"] = self.user_agent
            self._context = await self._browser.new_context(**context_args)
            self._page = await self._context.new_page()
            self._page.set_default_timeout(self.page_timeout_ms)
            await self._page.route("**/*", self._route)
        except Exception:
            await self.close()
            raise
        self.logger.info("Browser started (headless=%s, proxy=%s)", self.headless, bool(self.proxy))

    async def close(self) -> None:
        for closer in (
            self._page.close if self._page else None,
            self._context.close if self._context else None,
            self._browser.close if self._browser else None,
            self._pw.stop if self._pw else None,
        ):
            if closer is not None:
                with contextlib.suppress(Exception):
                    await closer()
        self._page = self._context = self._browser = self._pw = None

    async def __aenter__(self) -> "PlaywrightPageExtractor":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _route(self, route: Route) -> None:
        if route.request.resource_type in self.blocked_resource_types:
            await route.abort()
        else:
            await route.continue_()

    async def _wait_for_selectors(self, page: Page, selectors: Sequence[str]) -> bool:
        ok = True
        for sel in selectors:
            try:
                await page.wait_for_selector(sel, timeout=self.wait_timeout_ms)
            except PlaywrightError:
                ok = False
        return ok

    async def fetch_html(
        self,
        url: str,
        *,
        wait_selectors: Sequence[str] = (),
        timeout_ms: Optional[int] = None,
    ) -> str:
        if self._page is None:
            raise RuntimeError("PlaywrightPageExtractor not started")
        page = self._page
        try:
            await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms or self.page_timeout_ms)
        except PlaywrightTimeoutError as e:
            raise TransientFetchError(f"Timeout loading {url}: {e}") from e
        except PlaywrightError as e:
            raise TransientFetchError(f"Failed loading {url}: {e}") from e

        if not self._consent_done:
            with contextlib.suppress(Exception):
                self._consent_done = await accept_consent(page)

        if selectors := list(wait_selectors):
            if not await self._wait_for_selectors(page, selectors):
                # Soft wait and scroll so lazy content can still render
                with contextlib.suppress(Exception):
                    await page.wait_for_timeout(1500)
                    await scroll_to_bottom(page)

        try:
            html = await page.content()
        except PlaywrightError as e:
            raise TransientFetchError(f"Could not read DOM of {url}: {e}") from e
        if not html:
            raise TransientFetchError(f"Empty document for {url}")
        return html


__all__ = [
    "PageExtractor",
    "PlaywrightPageExtractor",
    "accept_consent",
    "scroll_to_bottom",
    "BLOCKED_RESOURCE_TYPES",
]
