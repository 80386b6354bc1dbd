from __future__ import annotations

import logging
from functools import partial
from typing import Any, Dict, List, Optional, Union

from csgostats.models import (
    MatchOutput,
    MatchSummary,
    PlayedWith,
    PlayedWithFilters,
    PlayedWithRequest,
    PlayerFilters,
    PlayerOutput,
)
from csgostats.scraper import match, player
from csgostats.scraper.gate import ConcurrencyGate
from csgostats.scraper.markup import MarkupVersion
from csgostats.scraper.session import (
    DEFAULT_TIMEOUT_MS,
    OperationContext,
    PlaywrightSessionFactory,
    SessionFactory,
)

DEFAULT_CONCURRENCY = 10


class CSGOStatsScraper:
    """Automated csgostats.gg data scraper using Playwright."""

    def __init__(
        self,
        timeout: int = DEFAULT_TIMEOUT_MS,
        concurrency: int = DEFAULT_CONCURRENCY,
        use_local_browser: bool = True,
        remote_endpoint: Optional[str] = None,
        headless: bool = True,
        block_resources: bool = True,
        launch_options: Optional[Dict[str, Any]] = None,
        context_options: Optional[Dict[str, Any]] = None,
        markup_version: Optional[MarkupVersion] = None,
        logger: Optional[logging.Logger] = None,
        session_factory: Optional[SessionFactory] = None,
    ):
        self.logger = logger or logging.getLogger("csgostats")
        if session_factory is None:
            session_factory = PlaywrightSessionFactory(
                timeout=timeout,
                headless=headless,
                use_local_browser=use_local_browser,
                remote_endpoint=remote_endpoint,
                block_resources=block_resources,
                launch_options=launch_options,
                context_options=context_options,
                logger=self.logger,
            )
        self.session_factory = session_factory
        self.context = OperationContext(
            session_factory,
            logger=self.logger,
            timeout=timeout,
            markup_version=markup_version,
        )
        self.gate = ConcurrencyGate(concurrency, logger=self.logger)

    async def __aenter__(self) -> "CSGOStatsScraper":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # --- Player ---

    async def search_player(
        self, query: str, filters: Optional[PlayerFilters] = None
    ) -> PlayerOutput:
        """Search by name, SteamID or profile URL and scrape the first hit."""
        return await self.gate.submit(partial(player.search_player, self.context, query, filters))

    async def get_player(
        self, any_steam_id: Union[str, int], filters: Optional[PlayerFilters] = None
    ) -> PlayerOutput:
        return await self.gate.submit(
            partial(player.get_player, self.context, any_steam_id, filters)
        )

    async def get_played_with(
        self,
        steam_id64: Union[str, int, PlayedWithRequest],
        filters: Optional[PlayedWithFilters] = None,
    ) -> PlayedWith:
        """
        Fetch played-with data.

        Accepts either an id (plus optional filters) or the ``played_with``
        request attached to a PlayerOutput.
        """
        if isinstance(steam_id64, PlayedWithRequest):
            request = steam_id64
            steam_id64, filters = request.steam_id64, filters or request.filters
        return await self.gate.submit(
            partial(player.get_played_with, self.context, steam_id64, filters)
        )

    # --- Matches ---

    async def search_match(self, share_code: str) -> MatchOutput:
        return await self.gate.submit(partial(match.search_match, self.context, share_code))

    async def get_match(self, match_id: int) -> MatchOutput:
        return await self.gate.submit(partial(match.get_match, self.context, match_id))

    async def list_latest_matches(self) -> List[MatchSummary]:
        return await self.gate.submit(partial(match.list_latest_matches, self.context))

    # --- Lifecycle ---

    async def shutdown(self) -> None:
        """Release the browser backend. Sessions already closed themselves."""
        await self.session_factory.shutdown()

    async def close(self) -> None:
        await self.shutdown()
