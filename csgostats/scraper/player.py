# csgostats/scraper/player.py
"""Player extraction: profile summary, headline stats, graphs and played-with data."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Optional, Tuple, Union
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag
from pydantic import ValidationError as PydanticValidationError

from csgostats.errors import HttpStatusError, MarkupError, SearchError
from csgostats.models import (
    BanType,
    MatchmakingRank,
    PlayedWith,
    PlayedWithFilters,
    PlayedWithRequest,
    PlayerFilters,
    PlayerGraphs,
    PlayerOutput,
    PlayerStats,
    PlayerSummary,
)
from csgostats.parser import (
    element_children,
    optional_attr,
    optional_text,
    parse_csgostats_date,
    parse_float,
    parse_int,
    parse_number,
    parse_percent,
)
from csgostats.scraper.markup import markup_for
from csgostats.scraper.session import (
    OperationContext,
    load_page,
    navigate,
    open_session,
)
from csgostats.scraper.urls import HOMEPAGE, played_with_url, player_url
from csgostats.steamid import to_steam_id64

SEARCH_INPUT_SELECTOR = "#search-input"
ERROR_BANNER_SELECTOR = "div.alert.alert-danger"

STEAM_ICON_SELECTOR = ".steam-icon"
ESEA_ICON_SELECTOR = ".esea-icon"
AVATAR_SELECTOR = 'img[src*="steamcdn"][width="120"][height="120"]'
# sic, the site misspells the id
COMPETITIVE_WINS_SELECTOR = "#competitve-wins > span"
LAST_GAME_SELECTOR = "#last-game"
NO_MATCHES_SELECTOR = "#player-outer-section > div:nth-child(2) > div > span"

_COL_1 = "#player-overview > div.stats-col-1"
_COL_2 = "#player-overview > div.stats-col-2 > div"

STAT_FIELDS: Tuple[Tuple[str, Callable[[str], Any], str], ...] = (
    ("kill_death_ratio", parse_float, "#kpd > span"),
    ("hltv_rating", parse_float, "#rating > span"),
    (
        "clutch_success_rate",
        parse_percent,
        f"{_COL_2} > div:nth-child(1) > div:nth-child(2) > div:nth-child(1) > span:nth-child(2)",
    ),
    (
        "win_rate",
        parse_percent,
        f"{_COL_1} > div:nth-child(4) > div > div:nth-child(2) > div:nth-child(2)",
    ),
    (
        "headshot_rate",
        parse_percent,
        f"{_COL_1} > div:nth-child(5) > div > div:nth-child(2) > div:nth-child(2)",
    ),
    (
        "average_damage_round",
        parse_int,
        f"{_COL_1} > div:nth-child(6) > div > div:nth-child(2) > div:nth-child(2)",
    ),
    (
        "entry_success_rate",
        parse_percent,
        f"{_COL_2} > div:nth-child(2) > div:nth-child(2) > div:nth-child(1) > span:nth-child(2)",
    ),
)


# --- Page parsing ---

def _parent_href(soup: BeautifulSoup, selector: str) -> Optional[str]:
    icon = soup.select_one(selector)
    if icon is None or icon.parent is None:
        return None
    href = icon.parent.get("href")
    return href if href else None


def _own_text(element: Tag) -> Optional[str]:
    """First non-blank text node directly inside ``element``."""
    for text in element.find_all(string=True, recursive=False):
        if text.strip():
            return text.strip()
    return None


def parse_last_game(
    soup: BeautifulSoup,
) -> Tuple[Optional[datetime], Optional[BanType], Optional[datetime]]:
    """
    Read the last-game line and, when present, the ban notice.

    A banned profile renders its ban notice as an extra element in front of
    the last-game text, so ``#last-game`` has more than one child element.

    Returns:
        (last_game_date, ban_type, ban_date)
    """
    container = soup.select_one(LAST_GAME_SELECTOR)
    if container is None:
        return None, None, None

    last_game_text = _own_text(container)
    last_game_date = parse_csgostats_date(last_game_text) if last_game_text else None

    ban_type = None
    ban_date = None
    children = element_children(container)
    if len(children) > 1:
        # Overwatch Banned 97 days ago.
        # VAC Banned 83 days ago.
        ban_text = children[0].get_text(" ", strip=True)
        ban_type = BanType.VAC if ban_text.startswith("VAC") else BanType.OVERWATCH
        ban_date = parse_csgostats_date(ban_text)

    return last_game_date, ban_type, ban_date


def parse_summary(
    soup: BeautifulSoup,
    steam_id64: str,
    ranks: Tuple[Optional[MatchmakingRank], Optional[MatchmakingRank]],
    ctx: OperationContext,
) -> PlayerSummary:
    """Profile header. ``ranks`` is (current, best) as the page markup resolved them."""
    debug = ctx.logger.debug

    steam_profile_url = _parent_href(soup, STEAM_ICON_SELECTOR)
    debug("steamProfileUrl: %s", steam_profile_url)
    esea_url = _parent_href(soup, ESEA_ICON_SELECTOR)
    debug("eseaUrl: %s", esea_url)
    steam_picture_url = optional_attr(soup, AVATAR_SELECTOR, "src")
    debug("steamPictureUrl: %s", steam_picture_url)

    current_rank, best_rank = ranks
    debug("currentRank: %s", current_rank)
    if current_rank and not best_rank:
        best_rank = current_rank
    debug("bestRank: %s", best_rank)

    competitive_wins = parse_number(soup, parse_int, COMPETITIVE_WINS_SELECTOR)
    debug("competitiveWins: %s", competitive_wins)

    last_game_date, ban_type, ban_date = parse_last_game(soup)
    debug("lastGameDate: %s, banType: %s, banDate: %s", last_game_date, ban_type, ban_date)

    return PlayerSummary(
        steam_id64=steam_id64,
        steam_profile_url=steam_profile_url,
        esea_url=esea_url,
        steam_picture_url=steam_picture_url,
        current_rank=current_rank,
        best_rank=best_rank,
        competitive_wins=competitive_wins,
        last_game_date=last_game_date,
        ban_type=ban_type,
        ban_date=ban_date,
    )


def parse_stats(soup: BeautifulSoup, ctx: OperationContext) -> PlayerStats:
    values = {}
    for field, parse_fn, selector in STAT_FIELDS:
        values[field] = parse_number(soup, parse_fn, selector)
        ctx.logger.debug("%s: %s", field, values[field])
    return PlayerStats(**values)


def played_with_request(steam_id64: str, filters: Optional[PlayerFilters]) -> PlayedWithRequest:
    """Played-with follow-up scoped to the same match type and date range."""
    if filters is None:
        return PlayedWithRequest(steam_id64=steam_id64)
    return PlayedWithRequest(
        steam_id64=steam_id64,
        filters=PlayedWithFilters(
            mode=filters.match_type,
            start_date=filters.start_date,
            end_date=filters.end_date,
        ),
    )


# --- Operations ---

async def get_player(
    ctx: OperationContext,
    any_steam_id: Union[str, int],
    filters: Optional[PlayerFilters] = None,
) -> PlayerOutput:
    """
    Scrape a player profile.

    Args:
        ctx: Operation dependencies
        any_steam_id: SteamID64, Steam2, Steam3 or profile URL
        filters: Optional profile filters (match type, maps, date range)

    Returns:
        PlayerOutput. ``stats`` and ``graphs`` are None when the profile has
        no matches under the filters.

    Raises:
        InvalidSteamIdError: If the id cannot be normalized
        HttpStatusError: If the profile page is not a 200
        ExtractionTimeoutError: If the graph data never appears
    """
    steam_id64 = to_steam_id64(any_steam_id)
    url = player_url(steam_id64, filters)
    played_with = played_with_request(steam_id64, filters)

    async with open_session(ctx) as session:
        await navigate(session, url, ctx)
        html, soup = await load_page(session)
        markup = markup_for(soup, html, ctx.markup_version)
        ctx.logger.debug("Profile markup: %s", markup.version.value)

        ranks = await markup.ranks(session, soup)
        summary = parse_summary(soup, steam_id64, ranks, ctx)

        no_matches_message = optional_text(soup, NO_MATCHES_SELECTOR)
        if no_matches_message:
            ctx.logger.debug(no_matches_message)
            return PlayerOutput(summary=summary, played_with=played_with)

        stats = parse_stats(soup, ctx)
        raw_data = await markup.raw_data(session, html, ctx)
        ctx.logger.debug("graphsRawData.length: %d", len(raw_data))

    return PlayerOutput(
        summary=summary,
        stats=stats,
        graphs=PlayerGraphs(raw_data=raw_data),
        played_with=played_with,
    )


async def search_player(
    ctx: OperationContext,
    query: str,
    filters: Optional[PlayerFilters] = None,
) -> PlayerOutput:
    """Search csgostats.gg the way a visitor would, then scrape the resulting profile."""
    async with open_session(ctx) as session:
        # Cloudflare answers the homepage with a 403 when it wants a challenge
        await navigate(session, HOMEPAGE, ctx)
        await session.submit_search(SEARCH_INPUT_SELECTOR, query, timeout=ctx.timeout)
        ctx.logger.debug("Search for %r landed on %s", query, await session.url())

        _, soup = await load_page(session)
        error_message = optional_text(soup, ERROR_BANNER_SELECTOR)
        if error_message:
            raise SearchError(error_message)

        steam_id64 = urlparse(await session.url()).path.rstrip("/").split("/")[-1]
        ctx.logger.debug("steamId64: %s", steam_id64)

    return await get_player(ctx, steam_id64, filters)


async def get_played_with(
    ctx: OperationContext,
    steam_id64: Union[str, int],
    filters: Optional[PlayedWithFilters] = None,
) -> PlayedWith:
    """Fetch the played-with JSON for a player. The homepage visit sets the session cookies."""
    url = played_with_url(to_steam_id64(steam_id64), filters)

    async with open_session(ctx) as session:
        ctx.logger.debug("Going to %s", HOMEPAGE)
        await session.goto(HOMEPAGE, timeout=ctx.timeout)
        ctx.logger.debug("Fetching %s", url)
        response = await session.fetch(url, method="GET")
        if not response.ok:
            raise HttpStatusError(
                response.status, f"Failed to get playedWith data: {response.status_text}"
            )
        body = response.json()

    try:
        return PlayedWith.model_validate(body)
    except PydanticValidationError as exc:
        raise MarkupError(f"Unexpected playedWith response: {exc}") from exc
