#!/usr/bin/env python3
# main.py
"""
CLI for scraping csgostats.gg players and matches.

Usage:
    python main.py player 76561197960268519
    python main.py player STEAM_0:1:1395 --type comp --maps de_dust2,de_mirage
    python main.py search "s1mple"
    python main.py played-with 76561197960268519 --vac --offset 20
    python main.py match 46327747
    python main.py search-match CSGO-qM3Zr-HNVSy-vXvma-hGDn9-j8FQN
    python main.py latest --verbose
"""

import sys
import json
import asyncio
import logging
import argparse
from datetime import datetime

from csgostats import (
    CSGOStatsScraper,
    MatchType,
    PlayedWithFilters,
    PlayerFilters,
    ScraperError,
)


def _date(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an ISO date: {value!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Scrape player profiles and matches from csgostats.gg',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py player 76561197960268519
  python main.py player "[U:1:2791]" --start 2021-01-01 --end 2021-06-30
  python main.py search-match CSGO-qM3Zr-HNVSy-vXvma-hGDn9-j8FQN
        """
    )
    parser.add_argument(
        '--timeout',
        type=int,
        default=120000,
        help='Navigation and interaction timeout in ms (default: 120000)'
    )
    parser.add_argument(
        '--concurrency',
        type=int,
        default=10,
        help='Maximum simultaneous browser sessions (default: 10)'
    )
    parser.add_argument(
        '--headed',
        action='store_true',
        help='Run in headed mode (visible browser)'
    )
    parser.add_argument(
        '--remote-endpoint',
        metavar='WS_URL',
        help='Connect to a remote Chromium instead of launching one'
    )
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')

    commands = parser.add_subparsers(dest='command', required=True)

    player = commands.add_parser('player', help='Scrape a player profile')
    player.add_argument('steam_id', help='SteamID64, STEAM_X:Y:Z, [U:1:N] or profile URL')
    _add_player_filters(player)

    search = commands.add_parser('search', help='Search for a player and scrape the hit')
    search.add_argument('query')
    _add_player_filters(search)

    played_with = commands.add_parser('played-with', help='Fetch played-with data')
    played_with.add_argument('steam_id')
    played_with.add_argument('--vac', action='store_true', help='Only VAC-banned co-players')
    played_with.add_argument('--offset', type=int, help='Pagination offset')

    match = commands.add_parser('match', help='Scrape a match by id')
    match.add_argument('match_id', type=int)

    search_match = commands.add_parser('search-match', help='Resolve a share code')
    search_match.add_argument('share_code')

    commands.add_parser('latest', help='List the latest matches')

    return parser


def _add_player_filters(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        '--type',
        choices=[m.value for m in MatchType],
        help='Match type filter'
    )
    parser.add_argument('--maps', help='Comma-separated map filter, e.g. de_dust2,de_inferno')
    parser.add_argument('--start', type=_date, help='Start date (YYYY-MM-DD)')
    parser.add_argument('--end', type=_date, help='End date (YYYY-MM-DD)')


def _player_filters(args) -> PlayerFilters:
    return PlayerFilters(
        match_type=MatchType(args.type) if args.type else None,
        maps=args.maps.split(',') if args.maps else None,
        start_date=args.start,
        end_date=args.end,
    )


async def run(args):
    async with CSGOStatsScraper(
        timeout=args.timeout,
        concurrency=args.concurrency,
        use_local_browser=args.remote_endpoint is None,
        remote_endpoint=args.remote_endpoint,
        headless=not args.headed,
    ) as scraper:
        if args.command == 'player':
            return await scraper.get_player(args.steam_id, _player_filters(args))
        if args.command == 'search':
            return await scraper.search_player(args.query, _player_filters(args))
        if args.command == 'played-with':
            filters = PlayedWithFilters(vac=args.vac or None, offset=args.offset)
            return await scraper.get_played_with(args.steam_id, filters)
        if args.command == 'match':
            return await scraper.get_match(args.match_id)
        if args.command == 'search-match':
            return await scraper.search_match(args.share_code)
        return await scraper.list_latest_matches()


def _to_json(result) -> str:
    if isinstance(result, list):
        return json.dumps([item.model_dump(mode='json') for item in result], indent=2)
    return result.model_dump_json(indent=2)


def main(argv=None) -> int:
    """Main CLI entrypoint."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    try:
        result = asyncio.run(run(args))
    except ScraperError as exc:
        print(f"✗ ERROR: {exc}", file=sys.stderr)
        return 1

    print(_to_json(result))
    return 0


if __name__ == '__main__':
    sys.exit(main())
