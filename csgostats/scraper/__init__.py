# csgostats/scraper/__init__.py
"""
Browser-driven scraping for csgostats.gg.

Playwright sessions, profile markup strategies, extraction operations and
the bounded-concurrency façade that ties them together.
"""

from .core import CSGOStatsScraper
from .gate import ConcurrencyGate
from .markup import MarkupVersion
from .session import (
    BrowserSession,
    FetchResponse,
    OperationContext,
    PlaywrightSessionFactory,
    SessionFactory,
)

__all__ = [
    'CSGOStatsScraper',
    'ConcurrencyGate',
    'MarkupVersion',
    'BrowserSession',
    'FetchResponse',
    'OperationContext',
    'PlaywrightSessionFactory',
    'SessionFactory',
]
