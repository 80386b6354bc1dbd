# tests/helpers.py

import os
import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from csgostats.errors import SessionError
from csgostats.scraper.session import (
    BrowserSession,
    FetchResponse,
    OperationContext,
    SessionFactory,
)


def fixture_path(filename: str) -> str:
    candidates = [
        os.path.join(os.path.dirname(__file__), "fixtures", filename),
        os.path.join(os.path.dirname(__file__), "..", "tests", "fixtures", filename),
    ]
    for candidate in candidates:
        if os.path.exists(candidate):
            return candidate
    raise FileNotFoundError(filename)


def read_fixture(filename: str) -> str:
    with open(fixture_path(filename), "r", encoding="utf-8") as f:
        return f.read()


class FixtureSession(BrowserSession):
    """In-memory session that serves canned pages instead of driving a browser."""

    def __init__(self, factory: "FixtureSessionFactory"):
        self.factory = factory
        self.current_url = "about:blank"
        self.visited: List[str] = []
        self.typed: List[Tuple[str, str]] = []
        self.requests: List[Dict[str, Any]] = []
        self.timeouts: List[Optional[int]] = []
        self.closed = False
        self._js_values = list(factory.js_values)

    def _page(self) -> Tuple[int, str]:
        return self.factory.pages.get(self.current_url, (404, "<html><body></body></html>"))

    async def goto(self, url: str, timeout: Optional[int] = None) -> int:
        if self.factory.delay:
            await asyncio.sleep(self.factory.delay)
        self.visited.append(url)
        self.timeouts.append(timeout)
        self.current_url = url
        return self._page()[0]

    async def title(self) -> str:
        return self.factory.title

    async def content(self) -> str:
        return self._page()[1]

    async def url(self) -> str:
        return self.current_url

    async def submit_search(self, selector: str, text: str, timeout: Optional[int] = None) -> None:
        self.typed.append((selector, text))
        self.timeouts.append(timeout)
        self.current_url = self.factory.search_result_url

    async def fetch(self, url, method="GET", data=None, headers=None) -> FetchResponse:
        self.requests.append({"url": url, "method": method, "data": data, "headers": headers})
        if url not in self.factory.responses:
            return FetchResponse(404, "Not Found")
        return self.factory.responses[url]

    async def js_value(self, name: str) -> Any:
        if not self._js_values:
            return None
        value = self._js_values.pop(0)
        if isinstance(value, Exception):
            raise value
        return value

    async def computed_style(self, selector: str, index: int, prop: str) -> Optional[str]:
        return self.factory.computed_styles.get((selector, index, prop))

    async def close(self) -> None:
        self.closed = True


class FixtureSessionFactory(SessionFactory):
    """
    Hands out FixtureSessions and records their lifecycle.

    Args:
        pages: url -> (status, html)
        responses: url -> FetchResponse for in-session fetches
        js_values: successive results of js_value() for each new session
        title: page title served for every url
        search_result_url: where submit_search() lands
        delay: seconds every goto() sleeps, to hold sessions open
        computed_styles: (selector, index, prop) -> value served by computed_style()
    """

    def __init__(
        self,
        pages: Optional[Dict[str, Tuple[int, str]]] = None,
        responses: Optional[Dict[str, FetchResponse]] = None,
        js_values: Iterable[Any] = (),
        title: str = "CSGO Stats",
        search_result_url: str = "about:blank",
        delay: float = 0.0,
        computed_styles: Optional[Dict[Tuple[str, int, str], str]] = None,
    ):
        self.pages = dict(pages or {})
        self.responses = dict(responses or {})
        self.js_values = list(js_values)
        self.title = title
        self.search_result_url = search_result_url
        self.delay = delay
        self.computed_styles = dict(computed_styles or {})
        self.sessions: List[FixtureSession] = []
        self.open_sessions = 0
        self.max_open_sessions = 0
        self.shutdown_calls = 0

    async def create(self) -> FixtureSession:
        session = _TrackedSession(self)
        self.sessions.append(session)
        self.open_sessions += 1
        self.max_open_sessions = max(self.max_open_sessions, self.open_sessions)
        return session

    async def shutdown(self) -> None:
        self.shutdown_calls += 1

    @property
    def all_closed(self) -> bool:
        return all(session.closed for session in self.sessions)


class _TrackedSession(FixtureSession):
    async def close(self) -> None:
        if not self.closed:
            self.factory.open_sessions -= 1
        await super().close()


def make_context(factory: FixtureSessionFactory, **kwargs) -> OperationContext:
    kwargs.setdefault("poll_timeout", 0.05)
    kwargs.setdefault("poll_interval", 0.001)
    return OperationContext(factory, logger=logging.getLogger("csgostats.tests"), **kwargs)


def session_error(message: str = "Execution context was destroyed") -> SessionError:
    return SessionError(message)
