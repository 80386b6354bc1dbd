# csgostats/scraper/session.py
"""
Browser session management for Playwright-based scraping.

One session is one browser context + page, owned by exactly one extraction
operation and released when that operation ends.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, AsyncIterator, Dict, Optional, Tuple

from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError, async_playwright

from csgostats.errors import (
    HttpStatusError,
    NotFoundError,
    ScraperBlockedError,
    SessionError,
)

if TYPE_CHECKING:
    from csgostats.scraper.markup import MarkupVersion

LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 2 * 60 * 1000
DEFAULT_POLL_TIMEOUT = 30.0
DEFAULT_POLL_INTERVAL = 0.1

BLOCKED_STATUS_CODES = (403, 429, 503)
BLOCKED_TITLE_MARKERS = ("just a moment", "attention")


class FetchResponse:
    """Outcome of an HTTP request issued from inside a session."""

    def __init__(self, status: int, status_text: str = "", body: Any = None):
        self.status = status
        self.status_text = status_text
        self.body = body

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        return self.body

    def __repr__(self) -> str:
        return f"FetchResponse(status={self.status}, status_text={self.status_text!r})"


class BrowserSession:
    """Capabilities an extraction operation may use on its page."""

    async def goto(self, url: str, timeout: Optional[int] = None) -> int:
        """Navigate and return the HTTP status of the main document. ``timeout`` is in ms."""
        raise NotImplementedError

    async def title(self) -> str:
        raise NotImplementedError

    async def content(self) -> str:
        """Serialized rendered DOM."""
        raise NotImplementedError

    async def url(self) -> str:
        raise NotImplementedError

    async def submit_search(self, selector: str, text: str, timeout: Optional[int] = None) -> None:
        """Click ``selector``, type ``text``, press Enter and wait for the navigation."""
        raise NotImplementedError

    async def fetch(
        self,
        url: str,
        method: str = "GET",
        data: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> FetchResponse:
        """HTTP request sharing the session's cookies."""
        raise NotImplementedError

    async def js_value(self, name: str) -> Any:
        """Value of a page-script global, or None while it is undefined."""
        raise NotImplementedError

    async def computed_style(self, selector: str, index: int, prop: str) -> Optional[str]:
        """Computed CSS ``prop`` of the ``index``-th element matching ``selector``."""
        raise NotImplementedError

    async def close(self) -> None:
        raise NotImplementedError


class SessionFactory:
    """Creates sessions; shut down once when the scraper is done."""

    async def create(self) -> BrowserSession:
        raise NotImplementedError

    async def shutdown(self) -> None:
        raise NotImplementedError


class PlaywrightSession(BrowserSession):
    """Session backed by a dedicated Playwright browser context."""

    def __init__(self, context, page, logger: Optional[logging.Logger] = None):
        self.context = context
        self.page = page
        self.logger = logger or LOGGER

    async def goto(self, url: str, timeout: Optional[int] = None) -> int:
        try:
            response = await self.page.goto(url, wait_until="domcontentloaded", timeout=timeout)
        except PlaywrightError as exc:
            raise SessionError(f"Navigation to {url} failed: {exc}") from exc
        if response is None:
            raise SessionError(f"Navigation to {url} produced no response")
        return response.status

    async def title(self) -> str:
        return await self.page.title()

    async def content(self) -> str:
        return await self.page.content()

    async def url(self) -> str:
        return self.page.url

    async def submit_search(self, selector: str, text: str, timeout: Optional[int] = None) -> None:
        try:
            await self.page.click(selector, timeout=timeout)
            await self.page.keyboard.type(text)
            async with self.page.expect_navigation(wait_until="domcontentloaded", timeout=timeout):
                await self.page.keyboard.press("Enter")
        except PlaywrightError as exc:
            raise SessionError(f"Search interaction failed: {exc}") from exc

    async def fetch(
        self,
        url: str,
        method: str = "GET",
        data: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> FetchResponse:
        try:
            response = await self.page.request.fetch(
                url, method=method, data=data, headers=headers
            )
        except PlaywrightError as exc:
            raise SessionError(f"{method} {url} failed: {exc}") from exc
        try:
            body = await response.json() if response.ok else None
        except (ValueError, PlaywrightError) as exc:
            raise SessionError(f"{method} {url} returned a body that is not JSON: {exc}") from exc
        finally:
            await response.dispose()
        return FetchResponse(response.status, response.status_text, body)

    async def js_value(self, name: str) -> Any:
        if not name.isidentifier():
            raise ValueError(f"Not a script identifier: {name!r}")
        try:
            return await self.page.evaluate(
                f"() => (typeof {name} === 'undefined' ? null : {name})"
            )
        except PlaywrightError as exc:
            # Execution context is replaced while the page is still loading
            raise SessionError(f"Could not read {name}: {exc}") from exc

    async def computed_style(self, selector: str, index: int, prop: str) -> Optional[str]:
        try:
            return await self.page.evaluate(
                """([selector, index, prop]) => {
                    const element = document.querySelectorAll(selector)[index];
                    return element ? getComputedStyle(element).getPropertyValue(prop) : null;
                }""",
                [selector, index, prop],
            )
        except PlaywrightError as exc:
            raise SessionError(f"Could not read {prop} of {selector}[{index}]: {exc}") from exc

    async def close(self) -> None:
        try:
            await self.context.close()
        except PlaywrightError as exc:
            self.logger.warning("Browser context did not close cleanly: %s", exc)


class PlaywrightSessionFactory(SessionFactory):
    """Launches (or connects to) Chromium once and hands out one context per session."""

    USER_AGENT = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    )
    VIEWPORT = {"width": 1280, "height": 720}
    BLOCKED_RESOURCE_TYPES = frozenset({"image", "media", "font", "stylesheet"})

    def __init__(
        self,
        timeout: int = DEFAULT_TIMEOUT_MS,
        headless: bool = True,
        use_local_browser: bool = True,
        remote_endpoint: Optional[str] = None,
        block_resources: bool = True,
        launch_options: Optional[Dict[str, Any]] = None,
        context_options: Optional[Dict[str, Any]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        if not use_local_browser and not remote_endpoint:
            raise ValueError("remote_endpoint is required when use_local_browser is False")
        self.timeout = timeout
        self.headless = headless
        self.use_local_browser = use_local_browser
        self.remote_endpoint = remote_endpoint
        self.block_resources = block_resources
        self.launch_options = dict(launch_options or {})
        self.context_options = dict(context_options or {})
        self.logger = logger or LOGGER
        self._playwright = None
        self._browser = None
        self._start_lock = asyncio.Lock()

    async def _ensure_browser(self):
        # Guards only the one-time backend start, not session creation
        async with self._start_lock:
            if self._browser is not None:
                return self._browser

            self._playwright = await async_playwright().start()
            if self.use_local_browser:
                self.logger.debug("Launching local Chromium (headless=%s)", self.headless)
                self._browser = await self._playwright.chromium.launch(
                    headless=self.headless, **self.launch_options
                )
            else:
                self.logger.debug("Connecting to remote browser at %s", self.remote_endpoint)
                self._browser = await self._playwright.chromium.connect(
                    self.remote_endpoint, **self.launch_options
                )
            return self._browser

    async def _block_resource(self, route) -> None:
        if route.request.resource_type in self.BLOCKED_RESOURCE_TYPES:
            await route.abort()
        else:
            await route.continue_()

    async def create(self) -> PlaywrightSession:
        browser = await self._ensure_browser()
        context_kwargs: Dict[str, Any] = {
            "user_agent": self.USER_AGENT,
            "viewport": self.VIEWPORT,
            "locale": "en-US",
        }
        context_kwargs.update(self.context_options)
        context = await browser.new_context(**context_kwargs)
        context.set_default_timeout(self.timeout)
        context.set_default_navigation_timeout(self.timeout)
        if self.block_resources:
            await context.route("**/*", self._block_resource)
        page = await context.new_page()
        return PlaywrightSession(context, page, logger=self.logger)

    async def shutdown(self) -> None:
        if self._browser is not None:
            self.logger.debug("Shutting down browser")
            try:
                await self._browser.close()
            except PlaywrightError as exc:
                self.logger.warning("Browser did not close cleanly: %s", exc)
        if self._playwright is not None:
            await self._playwright.stop()
        self._browser = None
        self._playwright = None


class OperationContext:
    """
    Everything an extraction operation needs, passed explicitly.

    Args:
        session_factory: Source of browser sessions
        logger: Sink for debug output
        timeout: Timeout (ms) passed to every navigation and search interaction
        markup_version: Force a profile markup version instead of detecting it
        poll_timeout: Seconds to wait for embedded script data
        poll_interval: Seconds between embedded script data reads
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        logger: Optional[logging.Logger] = None,
        timeout: int = DEFAULT_TIMEOUT_MS,
        markup_version: Optional["MarkupVersion"] = None,
        poll_timeout: float = DEFAULT_POLL_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ):
        self.session_factory = session_factory
        self.logger = logger or LOGGER
        self.timeout = timeout
        self.markup_version = markup_version
        self.poll_timeout = poll_timeout
        self.poll_interval = poll_interval


@asynccontextmanager
async def open_session(ctx: OperationContext) -> AsyncIterator[BrowserSession]:
    """Acquire a session for one operation and release it on every exit path."""
    session = await ctx.session_factory.create()
    try:
        yield session
    finally:
        ctx.logger.debug("Closing session")
        await session.close()


async def navigate(session: BrowserSession, url: str, ctx: OperationContext) -> None:
    """Navigate and raise for any non-200 main document."""
    ctx.logger.debug("Going to %s", url)
    status = await session.goto(url, timeout=ctx.timeout)
    if status == 200:
        return
    if status == 404:
        raise NotFoundError(status)
    if status in BLOCKED_STATUS_CODES:
        title = (await session.title()).lower()
        if any(marker in title for marker in BLOCKED_TITLE_MARKERS):
            raise ScraperBlockedError(
                status, f"csgostats.gg served a bot check instead of the page: {status}"
            )
    raise HttpStatusError(status)


async def load_page(session: BrowserSession) -> Tuple[str, BeautifulSoup]:
    """Rendered HTML of the current page and its parsed tree."""
    html = await session.content()
    return html, BeautifulSoup(html, "html.parser")
