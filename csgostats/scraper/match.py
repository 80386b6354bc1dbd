# csgostats/scraper/match.py
"""Match extraction: match detail pages, share code lookups and the latest-matches list."""

from __future__ import annotations

from datetime import timezone
from typing import List
from urllib.parse import urlencode

from bs4 import BeautifulSoup, Tag
from pydantic import ValidationError as PydanticValidationError

from csgostats.errors import HttpStatusError, MarkupError, MatchNotReadyError
from csgostats.models import MatchOutput, MatchSummary, UploadMatchResponse
from csgostats.parser import (
    RANK_IMG_PREFIX,
    element_children,
    optional_attr,
    optional_text,
    parse_average_rank,
    parse_csgostats_date,
    parse_demo_watch_days,
    parse_match_id,
    parse_matchmaking_service,
    required_attr,
    required_text,
)
from csgostats.scraper.session import (
    OperationContext,
    load_page,
    navigate,
    open_session,
)
from csgostats.scraper.urls import HOMEPAGE, MATCH_LIST_URL, MATCH_UPLOAD_URL, match_url

SERVICE_ICON_SELECTOR = (
    "#match-main > div > div.main-header > div.main-content > div:nth-child(1) > div > img"
)
AVERAGE_RANK_SELECTOR = f'span > img[src^="{RANK_IMG_PREFIX}"]'
MAP_SELECTOR = ".map-text"
SERVER_LOCATION_SELECTOR = ".server-loc-text"
DATE_SELECTOR = ".match-date-text"
WATCH_LINK_SELECTOR = ".match-watch > a"
WATCH_DAYS_SELECTOR = ".match-watch-days"
BANNED_MARKER_SELECTOR = ".has-banned"
MATCH_ROW_SELECTOR = ".p-row"

UPLOAD_COMPLETE_MESSAGE = "Complete"


def parse_match_page(soup: BeautifulSoup, ctx: OperationContext) -> MatchOutput:
    debug = ctx.logger.debug

    matchmaking_service = parse_matchmaking_service(
        required_attr(soup, SERVICE_ICON_SELECTOR, "src")
    )
    debug("Got matchmakingService: %s", matchmaking_service.value)

    average_rank = parse_average_rank(optional_attr(soup, AVERAGE_RANK_SELECTOR, "src"))
    debug("Got averageRank: %s", average_rank)

    map_name = required_text(soup, MAP_SELECTOR)
    debug("Got map: %s", map_name)

    server_location = optional_text(soup, SERVER_LOCATION_SELECTOR) or None
    debug("Got serverLocation: %s", server_location)

    date = parse_csgostats_date(required_text(soup, DATE_SELECTOR), tz=timezone.utc)
    debug("Got date: %s", date)

    watch_url = optional_attr(soup, WATCH_LINK_SELECTOR, "href")
    demo_watch_days = parse_demo_watch_days(optional_text(soup, WATCH_DAYS_SELECTOR))
    debug("Got watchUrl: %s, demoWatchDays: %s", watch_url, demo_watch_days)

    has_banned_player = len(soup.select(BANNED_MARKER_SELECTOR)) > 0

    return MatchOutput(
        matchmaking_service=matchmaking_service,
        average_rank=average_rank,
        map=map_name,
        server_location=server_location,
        date=date,
        watch_url=watch_url,
        demo_watch_days=demo_watch_days,
        has_banned_player=has_banned_player,
    )


def parse_match_row(row: Tag, ctx: OperationContext) -> MatchSummary:
    """
    Parse one latest-matches row.

    Row cells: [service icon, average rank icon (optional), date]. The match
    id only exists inside the row's ``onclick`` handler.
    """
    match_id = parse_match_id(row.get("onclick"))
    if not match_id:
        ctx.logger.debug("Match row without a resolvable id, using 0")

    cells = element_children(row)
    if len(cells) < 3:
        raise MarkupError(f"Match row has {len(cells)} cells, expected 3")

    service_icon = cells[0].select_one("img")
    if service_icon is None or not service_icon.get("src"):
        raise MarkupError("Match row has no matchmaking service icon")
    matchmaking_service = parse_matchmaking_service(service_icon["src"])

    rank_icon = cells[1].select_one("img")
    average_rank = parse_average_rank(rank_icon.get("src") if rank_icon is not None else None)

    date = parse_csgostats_date(cells[2].get_text(" ", strip=True), tz=timezone.utc)

    return MatchSummary(
        match_id=match_id,
        matchmaking_service=matchmaking_service,
        average_rank=average_rank,
        date=date,
    )


async def get_match(ctx: OperationContext, match_id: int) -> MatchOutput:
    """
    Scrape a match detail page.

    Raises:
        NotFoundError: If the match does not exist
        HttpStatusError: For any other non-200 page
        MarkupError: If the page lacks the service icon, map or date
    """
    async with open_session(ctx) as session:
        await navigate(session, match_url(match_id), ctx)
        _, soup = await load_page(session)
        return parse_match_page(soup, ctx)


async def search_match(ctx: OperationContext, share_code: str) -> MatchOutput:
    """
    Resolve a share code through the upload endpoint, then scrape the match.

    Raises:
        HttpStatusError: If the upload endpoint rejects the request
        MatchNotReadyError: If csgostats.gg has not finished parsing the demo
        MarkupError: If the upload response body is not the expected shape
    """
    async with open_session(ctx) as session:
        ctx.logger.debug("Going to %s", HOMEPAGE)
        await session.goto(HOMEPAGE, timeout=ctx.timeout)

        request_body = urlencode({"sharecode": share_code, "index": "0"})
        ctx.logger.debug("requestBody: %s", request_body)
        response = await session.fetch(
            MATCH_UPLOAD_URL,
            method="POST",
            data=request_body,
            headers={"content-type": "application/x-www-form-urlencoded"},
        )
        if not response.ok:
            raise HttpStatusError(
                response.status, f"Failed to find match: {response.status_text}"
            )
        try:
            body = UploadMatchResponse.model_validate(response.json())
        except PydanticValidationError as exc:
            raise MarkupError(f"Unexpected upload response: {exc}") from exc
        ctx.logger.debug("Upload match response: %s", body.model_dump_json())

    if body.data.msg != UPLOAD_COMPLETE_MESSAGE:
        raise MatchNotReadyError(f"Match not parsed yet! ({body.data.msg})")
    if not body.data.demo_id:
        raise MatchNotReadyError("Match has no demo id yet")

    ctx.logger.debug("matchId: %s", body.data.demo_id)
    return await get_match(ctx, body.data.demo_id)


async def list_latest_matches(ctx: OperationContext) -> List[MatchSummary]:
    """Scrape the public latest-matches list, rows in page order."""
    async with open_session(ctx) as session:
        await navigate(session, MATCH_LIST_URL, ctx)
        _, soup = await load_page(session)

    rows = soup.select(MATCH_ROW_SELECTOR)
    ctx.logger.debug("Parsing %d match rows", len(rows))
    return [parse_match_row(row, ctx) for row in rows]
