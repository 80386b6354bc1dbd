"""csgostats.gg player and match extractor."""

from .errors import (
    ExtractionTimeoutError,
    HttpStatusError,
    InvalidSteamIdError,
    MarkupError,
    MatchNotReadyError,
    NotFoundError,
    ScraperBlockedError,
    ScraperError,
    SearchError,
    SessionError,
    ValidationError,
)
from .models import (
    BanType,
    ESEARank,
    FaceItRank,
    MatchmakingRank,
    MatchmakingService,
    MatchOutput,
    MatchSummary,
    MatchType,
    PlayedWith,
    PlayedWithFilters,
    PlayedWithRequest,
    PlayerFilters,
    PlayerOutput,
)
from .scraper import CSGOStatsScraper, MarkupVersion
from .steamid import to_steam_id64

__version__ = "0.1.0"

__all__ = [
    'CSGOStatsScraper',
    'MarkupVersion',
    'to_steam_id64',
    'BanType',
    'ESEARank',
    'FaceItRank',
    'MatchmakingRank',
    'MatchmakingService',
    'MatchOutput',
    'MatchSummary',
    'MatchType',
    'PlayedWith',
    'PlayedWithFilters',
    'PlayedWithRequest',
    'PlayerFilters',
    'PlayerOutput',
    'ExtractionTimeoutError',
    'HttpStatusError',
    'InvalidSteamIdError',
    'MarkupError',
    'MatchNotReadyError',
    'NotFoundError',
    'ScraperBlockedError',
    'ScraperError',
    'SearchError',
    'SessionError',
    'ValidationError',
]
