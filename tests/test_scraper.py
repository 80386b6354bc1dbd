# tests/test_scraper.py
"""
Tests for the CSGOStatsScraper façade.

Routing, bounded concurrency and lifecycle run against fixture sessions.
Web integration tests are skipped unless RUN_WEB_TESTS env var is set.
"""

import os
import json
import asyncio
import logging
import unittest
from datetime import datetime, timezone

from csgostats import CSGOStatsScraper, MatchType, PlayerFilters
from csgostats.errors import NotFoundError
from csgostats.scraper.markup import MarkupVersion
from csgostats.scraper.session import FetchResponse, PlaywrightSessionFactory
from csgostats.scraper.urls import MATCH_UPLOAD_URL, match_url, played_with_url, player_url

from tests.helpers import FixtureSessionFactory, read_fixture

HIKO = "76561197960268519"


class TestFacade(unittest.TestCase):

    def _scraper(self, factory, **kwargs):
        return CSGOStatsScraper(session_factory=factory, **kwargs)

    def test_default_logger_and_factory(self):
        scraper = CSGOStatsScraper()
        self.assertEqual(scraper.logger.name, "csgostats")
        self.assertIsInstance(scraper.session_factory, PlaywrightSessionFactory)
        self.assertEqual(scraper.context.timeout, 120000)
        self.assertEqual(scraper.gate.concurrency, 10)

    def test_remote_backend_requires_endpoint(self):
        with self.assertRaises(ValueError):
            CSGOStatsScraper(use_local_browser=False)

    def test_remote_backend_configuration(self):
        scraper = CSGOStatsScraper(
            use_local_browser=False, remote_endpoint="ws://localhost:3000", timeout=5000
        )
        self.assertFalse(scraper.session_factory.use_local_browser)
        self.assertEqual(scraper.session_factory.remote_endpoint, "ws://localhost:3000")
        self.assertEqual(scraper.session_factory.timeout, 5000)

    def test_invalid_concurrency(self):
        with self.assertRaises(ValueError):
            self._scraper(FixtureSessionFactory(), concurrency=0)

    def test_get_player_and_played_with_request(self):
        filters = PlayerFilters(
            match_type=MatchType.SCRIMMAGE,
            start_date=datetime(2021, 1, 1, tzinfo=timezone.utc),
        )
        body = json.loads(read_fixture("played_with.json"))
        factory = FixtureSessionFactory(
            pages={player_url(HIKO, filters): (200, read_fixture("player_current.html"))},
        )

        async def scenario():
            async with self._scraper(factory) as scraper:
                output = await scraper.get_player(HIKO, filters)
                url = played_with_url(HIKO, output.played_with.filters)
                factory.responses[url] = FetchResponse(200, "OK", body)
                played_with = await scraper.get_played_with(output.played_with)
                return output, played_with, url

        output, played_with, url = asyncio.run(scenario())

        self.assertEqual(output.summary.steam_id64, HIKO)
        self.assertEqual(len(played_with.players), 2)
        self.assertIn("mode=scrimmage", url)
        self.assertEqual(factory.sessions[1].requests[0]["url"], url)
        self.assertEqual(factory.shutdown_calls, 1)
        self.assertTrue(factory.all_closed)

    def test_forced_markup_version(self):
        factory = FixtureSessionFactory(
            pages={player_url(HIKO): (200, read_fixture("player_current.html"))},
        )
        scraper = self._scraper(factory, markup_version=MarkupVersion.CURRENT)
        output = asyncio.run(scraper.get_player(HIKO))
        self.assertEqual(len(output.graphs.raw_data), 2)

    def test_concurrency_bounds_open_sessions(self):
        ids = list(range(100, 106))
        detail = read_fixture("match_detail.html")
        factory = FixtureSessionFactory(
            pages={match_url(i): (200, detail) for i in ids}, delay=0.01
        )
        scraper = self._scraper(factory, concurrency=2)

        async def scenario():
            return await asyncio.gather(*(scraper.get_match(i) for i in ids))

        results = asyncio.run(scenario())
        self.assertEqual(len(results), len(ids))
        self.assertEqual(factory.max_open_sessions, 2)
        self.assertEqual([s.visited[0] for s in factory.sessions], [match_url(i) for i in ids])
        self.assertTrue(factory.all_closed)

    def test_search_match_with_single_slot(self):
        upload = {
            "status": "success",
            "data": {"msg": "Complete", "demo_id": 46327747},
            "error": 0,
        }
        factory = FixtureSessionFactory(
            pages={match_url(46327747): (200, read_fixture("match_detail.html"))},
            responses={MATCH_UPLOAD_URL: FetchResponse(200, "OK", upload)},
        )
        scraper = self._scraper(factory, concurrency=1)

        output = asyncio.run(asyncio.wait_for(scraper.search_match("CSGO-xxxxx"), timeout=5))
        self.assertEqual(output.map, "de_mirage")
        self.assertEqual(scraper.gate.pending, 0)

    def test_errors_propagate_through_gate(self):
        factory = FixtureSessionFactory()
        scraper = self._scraper(factory, concurrency=1)

        async def scenario():
            with self.assertRaises(NotFoundError):
                await scraper.get_match(1)
            return await scraper.list_latest_matches()

        factory.pages["https://csgostats.gg/match"] = (200, read_fixture("match_list.html"))
        rows = asyncio.run(scenario())
        self.assertEqual(len(rows), 4)
        self.assertEqual(scraper.gate.pending, 0)

    def test_timeout_reaches_custom_session_factory(self):
        factory = FixtureSessionFactory(
            pages={match_url(7): (200, read_fixture("match_detail.html"))}
        )
        scraper = self._scraper(factory, timeout=777)

        asyncio.run(scraper.get_match(7))
        self.assertEqual(factory.sessions[0].timeouts, [777])

    def test_operations_log_to_configured_logger(self):
        logger = logging.getLogger("csgostats.tests.facade")
        factory = FixtureSessionFactory(
            pages={match_url(7): (200, read_fixture("match_detail.html"))}
        )
        scraper = self._scraper(factory, logger=logger)

        with self.assertLogs(logger, level="DEBUG") as logs:
            asyncio.run(scraper.get_match(7))
        self.assertTrue(any("Got map: de_mirage" in line for line in logs.output))


@unittest.skipUnless(os.getenv('RUN_WEB_TESTS'), "Set RUN_WEB_TESTS=1 to hit csgostats.gg")
class TestLiveSite(unittest.TestCase):
    """Live web tests. Slow, and subject to Cloudflare."""

    def test_get_player(self):
        async def scenario():
            async with CSGOStatsScraper() as scraper:
                return await scraper.get_player(HIKO)

        output = asyncio.run(scenario())
        self.assertEqual(output.summary.steam_id64, HIKO)

    def test_latest_matches(self):
        async def scenario():
            async with CSGOStatsScraper() as scraper:
                return await scraper.list_latest_matches()

        rows = asyncio.run(scenario())
        self.assertTrue(rows)
