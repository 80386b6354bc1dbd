# csgostats/scraper/urls.py
"""URL builders for csgostats.gg pages and endpoints."""

from datetime import datetime
from typing import Dict, Optional
from urllib.parse import urlencode

from csgostats.models import PlayedWithFilters, PlayerFilters
from csgostats.parser import boolean_to_int

HOMEPAGE = "https://csgostats.gg"
MATCH_LIST_URL = f"{HOMEPAGE}/match"
MATCH_UPLOAD_URL = f"{HOMEPAGE}/match/upload/ajax"


def epoch_millis(value: Optional[datetime]) -> Optional[str]:
    """Datetime -> epoch milliseconds string, the form the site's date filters take."""
    if value is None:
        return None
    return str(int(value.timestamp() * 1000))


def _with_query(url: str, params: Dict[str, Optional[str]]) -> str:
    """Append only non-empty parameters, in the given order."""
    present = {key: value for key, value in params.items() if value}
    if not present:
        return url
    return f"{url}?{urlencode(present)}"


def player_url(steam_id64: str, filters: Optional[PlayerFilters] = None) -> str:
    url = f"{HOMEPAGE}/player/{steam_id64}"
    if filters is None:
        return url
    return _with_query(url, {
        "type": filters.match_type.value if filters.match_type else None,
        "maps": ",".join(filters.maps) if filters.maps else None,
        "date_start": epoch_millis(filters.start_date),
        "date_end": epoch_millis(filters.end_date),
    })


def played_with_url(steam_id64: str, filters: Optional[PlayedWithFilters] = None) -> str:
    url = f"{HOMEPAGE}/player/{steam_id64}/ajax/played-with"
    if filters is None:
        return url
    vac = boolean_to_int(filters.vac)
    return _with_query(url, {
        "vac": str(vac) if vac is not None else None,
        "offset": str(filters.offset) if filters.offset is not None else None,
        "mode": filters.mode.value if filters.mode else None,
        "date_start": epoch_millis(filters.start_date),
        "date_end": epoch_millis(filters.end_date),
        "order": filters.order,
        "source": filters.source,
    })


def match_url(match_id: int) -> str:
    return f"{HOMEPAGE}/match/{match_id}"
