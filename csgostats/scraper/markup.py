# csgostats/scraper/markup.py
"""
Profile page markup versions.

csgostats.gg has served two profile layouts. Both carry the same data but
render rank badges differently and expose the graph data differently:

- LEGACY:  rank ``<img>`` tags; graph data only as a live ``raw_data`` script
           variable that may appear some time after load
- CURRENT: rank badges drawn with CSS background images; graph data inlined
           in a ``<script>`` block
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from bs4 import BeautifulSoup

from csgostats.errors import ExtractionTimeoutError, MarkupError, SessionError
from csgostats.models import MatchmakingRank
from csgostats.parser import (
    RANK_BADGE_SELECTOR,
    RANK_IMG_PREFIX,
    RAW_DATA_PATTERN,
    extract_raw_data,
    parse_computed_rank,
    parse_rank,
)
from csgostats.scraper.session import BrowserSession, OperationContext

RAW_DATA_VARIABLE = "raw_data"


class MarkupVersion(str, Enum):
    LEGACY = "legacy"
    CURRENT = "current"


async def wait_for_js_value(session: BrowserSession, name: str, ctx: OperationContext) -> Any:
    """
    Poll a page-script variable until it is defined.

    Raises:
        ExtractionTimeoutError: If it is still undefined after ``ctx.poll_timeout``
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + ctx.poll_timeout
    last_error: Optional[SessionError] = None

    while True:
        try:
            value = await session.js_value(name)
        except SessionError as exc:
            value = None
            last_error = exc
        if value is not None:
            return value
        if loop.time() >= deadline:
            detail = f": {last_error}" if last_error else ""
            raise ExtractionTimeoutError(
                f"Timeout after {int(ctx.poll_timeout * 1000)}ms waiting for {name}{detail}"
            )
        await asyncio.sleep(ctx.poll_interval)


class ProfileMarkup:
    """Reads the layout-dependent parts of a player profile."""

    version: MarkupVersion

    def current_rank(self, soup: BeautifulSoup) -> Optional[MatchmakingRank]:
        raise NotImplementedError

    def best_rank(self, soup: BeautifulSoup) -> Optional[MatchmakingRank]:
        raise NotImplementedError

    async def ranks(
        self, session: BrowserSession, soup: BeautifulSoup
    ) -> Tuple[Optional[MatchmakingRank], Optional[MatchmakingRank]]:
        """(current, best) as rendered on the page."""
        return self.current_rank(soup), self.best_rank(soup)

    async def raw_data(
        self, session: BrowserSession, html: str, ctx: OperationContext
    ) -> List[Any]:
        raise NotImplementedError


class LegacyProfileMarkup(ProfileMarkup):
    version = MarkupVersion.LEGACY

    CURRENT_RANK_SELECTOR = '[width="92"]'
    BEST_RANK_SELECTOR = '[height="24"]'

    def current_rank(self, soup: BeautifulSoup) -> Optional[MatchmakingRank]:
        return parse_rank(soup, self.CURRENT_RANK_SELECTOR)

    def best_rank(self, soup: BeautifulSoup) -> Optional[MatchmakingRank]:
        return parse_rank(soup, self.BEST_RANK_SELECTOR)

    async def raw_data(
        self, session: BrowserSession, html: str, ctx: OperationContext
    ) -> List[Any]:
        # The script block is sometimes not loaded yet when the DOM is ready
        return await wait_for_js_value(session, RAW_DATA_VARIABLE, ctx)


class CurrentProfileMarkup(ProfileMarkup):
    version = MarkupVersion.CURRENT

    CURRENT_RANK_INDEX = 0
    BEST_RANK_INDEX = 1

    async def _badge_rank(
        self, session: BrowserSession, soup: BeautifulSoup, index: int
    ) -> Optional[MatchmakingRank]:
        rank = parse_rank(soup, index)
        if rank is not None or index >= len(soup.select(RANK_BADGE_SELECTOR)):
            return rank
        # Badge styled from a stylesheet rather than inline
        css_value = await session.computed_style(RANK_BADGE_SELECTOR, index, "background-image")
        return parse_computed_rank(css_value)

    async def ranks(
        self, session: BrowserSession, soup: BeautifulSoup
    ) -> Tuple[Optional[MatchmakingRank], Optional[MatchmakingRank]]:
        return (
            await self._badge_rank(session, soup, self.CURRENT_RANK_INDEX),
            await self._badge_rank(session, soup, self.BEST_RANK_INDEX),
        )

    async def raw_data(
        self, session: BrowserSession, html: str, ctx: OperationContext
    ) -> List[Any]:
        data = extract_raw_data(html)
        if data is None:
            raise MarkupError(f"No embedded {RAW_DATA_VARIABLE} script on the page")
        return data


MARKUPS: Dict[MarkupVersion, ProfileMarkup] = {
    MarkupVersion.LEGACY: LegacyProfileMarkup(),
    MarkupVersion.CURRENT: CurrentProfileMarkup(),
}


def detect_markup_version(soup: BeautifulSoup, html: str) -> MarkupVersion:
    """Fingerprint the profile layout from its rank badges, then its scripts."""
    if soup.select(RANK_BADGE_SELECTOR):
        return MarkupVersion.CURRENT
    if soup.select(f'img[src^="{RANK_IMG_PREFIX}"]'):
        return MarkupVersion.LEGACY
    if RAW_DATA_PATTERN.search(html):
        return MarkupVersion.CURRENT
    return MarkupVersion.LEGACY


def markup_for(
    soup: BeautifulSoup, html: str, version: Optional[MarkupVersion] = None
) -> ProfileMarkup:
    return MARKUPS[version or detect_markup_version(soup, html)]
