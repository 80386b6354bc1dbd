# csgostats/parser.py
"""
Field parsers for csgostats.gg pages.

Pure functions turning rendered DOM (BeautifulSoup trees) and raw strings
into typed values. Optional elements that are missing resolve to ``None``;
anything present but malformed raises.
"""

from __future__ import annotations

import json
import re
from datetime import datetime, tzinfo
from typing import Any, Callable, List, Optional, Union
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from csgostats.errors import MarkupError
from csgostats.models import (
    ESEA_ICON_MAP,
    FACEIT_ICON_MAP,
    AnyRank,
    MatchmakingRank,
    MatchmakingService,
)

RANK_IMG_PREFIX = "https://static.csgostats.gg/images/ranks/"
RANK_IMG_EXT = ".png"
RANK_BADGE_SELECTOR = ".player-ranks .rank-badge"

RELATIVE_DATE_PATTERN = re.compile(
    r"\b(\d+|an?)\s+(second|minute|hour|day|week|month|year)s?\s+ago\b", re.I
)
# "Mon, 2nd Nov, 20" - dateutil reads a bare two-digit tail as a day, not a year
YEAR_SUFFIX_PATTERN = re.compile(r"^(.*?,.*?), (\d{2})$")
ORDINAL_PATTERN = re.compile(r"\b(\d{1,2})(?:st|nd|rd|th)\b", re.I)
BACKGROUND_IMAGE_PATTERN = re.compile(
    r"background(?:-image)?\s*:[^;]*?url\(\s*(['\"]?)(.*?)\1\s*\)", re.I
)
CSS_URL_PATTERN = re.compile(r"url\(\s*(['\"]?)(.*?)\1\s*\)", re.I)
RAW_DATA_PATTERN = re.compile(r"raw_data\s*=\s*(\[.*?\]);\s*\n", re.S)
MATCH_ID_PATTERN = re.compile(r"/match/(\d+)")
WATCH_DAYS_PATTERN = re.compile(r"\((\d+).*\)")
LEADING_INT_PATTERN = re.compile(r"^\s*([+-]?\d+)")
LEADING_FLOAT_PATTERN = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+))")

Source = Union[BeautifulSoup, Tag]


# --- Element access ---

def optional_text(source: Source, selector: str) -> Optional[str]:
    """Stripped text of the first match, or None when nothing matches."""
    element = source.select_one(selector)
    if element is None:
        return None
    return element.get_text(" ", strip=True)


def optional_attr(source: Source, selector: str, attr: str) -> Optional[str]:
    element = source.select_one(selector)
    if element is None:
        return None
    value = element.get(attr)
    return value if value else None


def required_text(source: Source, selector: str) -> str:
    text = optional_text(source, selector)
    if text is None:
        raise MarkupError(f"Expected element not found: {selector}")
    return text


def required_attr(source: Source, selector: str, attr: str) -> str:
    value = optional_attr(source, selector, attr)
    if value is None:
        raise MarkupError(f"Expected {attr} on element: {selector}")
    return value


def element_children(element: Tag) -> List[Tag]:
    """Direct child elements, skipping text nodes (DOM ``children``)."""
    return element.find_all(True, recursive=False)


# --- Numbers ---

def parse_int(text: str) -> int:
    """Parse the leading integer of ``text`` ("1,024 wins" -> 1024)."""
    match = LEADING_INT_PATTERN.match((text or "").replace(",", ""))
    if not match:
        raise ValueError(f"No integer in {text!r}")
    return int(match.group(1))


def parse_float(text: str) -> float:
    """Parse the leading decimal of ``text`` ("1.07" -> 1.07)."""
    match = LEADING_FLOAT_PATTERN.match((text or "").replace(",", ""))
    if not match:
        raise ValueError(f"No number in {text!r}")
    return float(match.group(1))


def parse_percent(text: str) -> float:
    """Parse '52%' -> 0.52."""
    return parse_int(text) / 100


def parse_number(
    source: Source,
    parse_fn: Callable[[str], Union[int, float]],
    selector: str,
) -> Optional[Union[int, float]]:
    """Apply ``parse_fn`` to the text at ``selector``; None if the element is absent."""
    text = optional_text(source, selector)
    if text is None:
        return None
    return parse_fn(text)


def boolean_to_int(value: Optional[bool]) -> Optional[int]:
    if value is None:
        return None
    return 1 if value else 0


# --- Ranks ---

def _icon_code(icon_url: str) -> str:
    filename = urlparse(icon_url).path.rsplit("/", 1)[-1]
    return filename[: -len(RANK_IMG_EXT)] if filename.endswith(RANK_IMG_EXT) else filename


def _matchmaking_rank(code: str) -> Optional[MatchmakingRank]:
    if not code.isdigit():
        return None
    tier = int(code)
    if tier < MatchmakingRank.SILVER_I or tier > MatchmakingRank.GLOBAL_ELITE:
        return None
    return MatchmakingRank(tier)


def parse_background_image_url(style: Optional[str]) -> Optional[str]:
    """Extract the URL from an inline ``background-image: url(...)`` declaration."""
    if not style:
        return None
    match = BACKGROUND_IMAGE_PATTERN.search(style)
    return match.group(2) if match else None


def parse_computed_rank(css_value: Optional[str]) -> Optional[MatchmakingRank]:
    """Rank from a computed ``background-image`` value such as ``url(".../12.png")``."""
    if not css_value:
        return None
    match = CSS_URL_PATTERN.search(css_value)
    if not match or not match.group(2).startswith(RANK_IMG_PREFIX):
        return None
    return _matchmaking_rank(_icon_code(match.group(2)))


def parse_rank(source: Source, selector_or_index: Union[str, int]) -> Optional[MatchmakingRank]:
    """
    Read a matchmaking rank badge.

    Args:
        source: Parsed page
        selector_or_index: A selector suffix narrowing ``img[src^=<rank prefix>]``
            (image markup), or a position in the rendered rank-badge list
            (background-image markup)

    Returns:
        The rank, or None if the badge is not on the page
    """
    if isinstance(selector_or_index, int):
        badges = source.select(RANK_BADGE_SELECTOR)
        if selector_or_index >= len(badges):
            return None
        rank_url = parse_background_image_url(badges[selector_or_index].get("style"))
    else:
        rank_url = optional_attr(source, f'img[src^="{RANK_IMG_PREFIX}"]{selector_or_index}', "src")

    if not rank_url:
        return None
    return _matchmaking_rank(_icon_code(rank_url))


def parse_average_rank(icon_url: Optional[str]) -> Optional[AnyRank]:
    """Map a rank icon URL onto the FaceIt, ESEA or matchmaking scale."""
    if not icon_url:
        return None
    code = _icon_code(icon_url)
    if "esea" in icon_url:
        return ESEA_ICON_MAP.get(code)
    if "faceit" in icon_url:
        return FACEIT_ICON_MAP.get(code)
    return _matchmaking_rank(code)


def parse_matchmaking_service(icon_path: str) -> MatchmakingService:
    if "esea" in icon_path:
        return MatchmakingService.ESEA
    if "faceit" in icon_path:
        return MatchmakingService.FACE_IT
    return MatchmakingService.MM


# --- Dates ---

def parse_csgostats_date(
    text: str,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> datetime:
    """
    Parse the human dates csgostats.gg prints.

    Handles:
        Last Game Sun, 9th May
        Last Game Mon, 2nd Nov, 20
        Last Game 2 days ago
        Last Game 25 minutes ago
        Overwatch Banned 97 days ago.
        Sun 17th Oct 2021 21:37:12

    Args:
        text: Raw element text, labels included
        now: Reference time for relative dates and the missing-year default
        tz: Timezone for ``now`` when it is not given

    Raises:
        ValueError: If no date can be read from the text
    """
    if now is None:
        now = datetime.now(tz)

    cleaned = " ".join((text or "").split()).rstrip(".")
    lowered = cleaned.lower()

    if "just now" in lowered:
        return now

    relative = RELATIVE_DATE_PATTERN.search(cleaned)
    if relative:
        amount_text, unit = relative.groups()
        amount = 1 if amount_text.lower() in ("a", "an") else int(amount_text)
        return now - relativedelta(**{f"{unit.lower()}s": amount})

    if re.search(r"\byesterday\b", lowered):
        return now - relativedelta(days=1)
    if re.search(r"\btoday\b", lowered):
        return now

    suffix = YEAR_SUFFIX_PATTERN.match(cleaned)
    if suffix:
        cleaned = f"{suffix.group(1)} {2000 + int(suffix.group(2))}"

    cleaned = ORDINAL_PATTERN.sub(r"\1", cleaned)
    default = now.replace(hour=0, minute=0, second=0, microsecond=0)
    try:
        return date_parser.parse(cleaned, default=default, fuzzy=True)
    except (ValueError, OverflowError) as exc:
        raise ValueError(f"Unrecognised csgostats.gg date: {text!r}") from exc


# --- Match pages ---

def parse_demo_watch_days(text: Optional[str]) -> Optional[int]:
    """'Demo available (21 more days)' -> 21."""
    if not text:
        return None
    match = WATCH_DAYS_PATTERN.search(text)
    return int(match.group(1)) if match else None


def parse_match_id(onclick: Optional[str]) -> int:
    """Match id from a row click handler; 0 when it cannot be resolved."""
    if not onclick:
        return 0
    match = MATCH_ID_PATTERN.search(onclick)
    return int(match.group(1)) if match else 0


# --- Embedded script data ---

def extract_raw_data(html: str) -> Optional[List[Any]]:
    """Read the profile graph array from the page's inline ``raw_data = [...];`` script."""
    match = RAW_DATA_PATTERN.search(html)
    if not match:
        return None
    return json.loads(match.group(1))
