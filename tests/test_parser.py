# tests/test_parser.py

from datetime import datetime, timezone

import pytest
from bs4 import BeautifulSoup

from csgostats.errors import MarkupError
from csgostats.models import ESEARank, FaceItRank, MatchmakingRank, MatchmakingService
from csgostats.parser import (
    boolean_to_int,
    extract_raw_data,
    parse_average_rank,
    parse_background_image_url,
    parse_computed_rank,
    parse_csgostats_date,
    parse_demo_watch_days,
    parse_float,
    parse_int,
    parse_match_id,
    parse_matchmaking_service,
    parse_number,
    parse_percent,
    parse_rank,
    required_attr,
    required_text,
)

NOW = datetime(2021, 10, 20, 15, 30, 0)
RANKS = "https://static.csgostats.gg/images/ranks/"


class TestNumbers:
    """Leading-number parsing of stat text."""

    def test_parse_int_commas(self):
        assert parse_int("1,024") == 1024
        assert parse_int(" 84 ADR") == 84

    def test_parse_float(self):
        assert parse_float("1.07") == 1.07
        assert parse_float(".5") == 0.5

    def test_parse_percent(self):
        assert parse_percent("52%") == 0.52
        assert parse_percent("0%") == 0

    def test_parse_int_rejects_text(self):
        with pytest.raises(ValueError):
            parse_int("N/A")

    def test_parse_number_absent_element_is_none(self):
        soup = BeautifulSoup("<div id='kpd'><span>1.2</span></div>", "html.parser")
        assert parse_number(soup, parse_float, "#kpd > span") == 1.2
        assert parse_number(soup, parse_float, "#rating > span") is None

    def test_boolean_to_int(self):
        assert boolean_to_int(True) == 1
        assert boolean_to_int(False) == 0
        assert boolean_to_int(None) is None


class TestElementAccess:

    def test_required_text_missing_raises(self):
        soup = BeautifulSoup("<p>hi</p>", "html.parser")
        with pytest.raises(MarkupError):
            required_text(soup, ".map-text")

    def test_required_attr_empty_raises(self):
        soup = BeautifulSoup("<img src=''>", "html.parser")
        with pytest.raises(MarkupError):
            required_attr(soup, "img", "src")


class TestRanks:

    def test_parse_rank_from_img_selector(self):
        soup = BeautifulSoup(
            f"<img src='{RANKS}15.png' width='92'><img src='{RANKS}17.png' height='24'>",
            "html.parser",
        )
        assert parse_rank(soup, '[width="92"]') == MatchmakingRank.LEGENDARY_EAGLE
        assert parse_rank(soup, '[height="24"]') == MatchmakingRank.SUPREME_MASTER_FIRST_CLASS

    def test_parse_rank_from_badge_index(self):
        soup = BeautifulSoup(
            "<div class='player-ranks'>"
            f"<div class='rank-badge' style=\"background-image: url('{RANKS}12.png');\"></div>"
            f"<div class='rank-badge' style='background: url({RANKS}18.png) no-repeat'></div>"
            "</div>",
            "html.parser",
        )
        assert parse_rank(soup, 0) == MatchmakingRank.MASTER_GUARDIAN_II
        assert parse_rank(soup, 1) == MatchmakingRank.GLOBAL_ELITE
        assert parse_rank(soup, 2) is None

    def test_parse_rank_missing_is_none(self):
        soup = BeautifulSoup("<div></div>", "html.parser")
        assert parse_rank(soup, '[width="92"]') is None

    def test_parse_rank_out_of_range_is_none(self):
        soup = BeautifulSoup(f"<img src='{RANKS}0.png' width='92'>", "html.parser")
        assert parse_rank(soup, '[width="92"]') is None

    def test_background_image_url(self):
        assert parse_background_image_url('background-image: url("a/b.png")') == "a/b.png"
        assert parse_background_image_url("color: red") is None
        assert parse_background_image_url(None) is None

    def test_computed_rank(self):
        assert parse_computed_rank(f'url("{RANKS}7.png")') == MatchmakingRank.GOLD_NOVA_I
        assert parse_computed_rank(f"url({RANKS}18.png)") == MatchmakingRank.GLOBAL_ELITE
        assert parse_computed_rank('url("https://example.com/7.png")') is None
        assert parse_computed_rank("none") is None
        assert parse_computed_rank(None) is None

    @pytest.mark.parametrize("url,expected", [
        (f"{RANKS}13.png", MatchmakingRank.MASTER_GUARDIAN_ELITE),
        ("https://static.csgostats.gg/images/ranks/faceit/level7.png", FaceItRank.LEVEL_7),
        ("https://static.csgostats.gg/images/ranks/esea/bminus.png", ESEARank.B_MINUS),
        ("https://static.csgostats.gg/images/ranks/esea/s.png", ESEARank.RANK_S),
        ("https://static.csgostats.gg/images/ranks/faceit/unknown.png", None),
        (None, None),
    ])
    def test_parse_average_rank(self, url, expected):
        assert parse_average_rank(url) == expected

    def test_parse_matchmaking_service(self):
        assert parse_matchmaking_service("/images/esea-icon.png") == MatchmakingService.ESEA
        assert parse_matchmaking_service("/images/faceit-icon.png") == MatchmakingService.FACE_IT
        assert parse_matchmaking_service("/images/mm-icon.png") == MatchmakingService.MM


class TestDates:
    """Human dates as csgostats.gg prints them."""

    def test_day_and_month_uses_current_year(self):
        assert parse_csgostats_date("Last Game Sun, 9th May", now=NOW) == datetime(2021, 5, 9)

    def test_two_digit_year_suffix(self):
        assert parse_csgostats_date("Last Game Mon, 2nd Nov, 20", now=NOW) == datetime(2020, 11, 2)

    def test_full_timestamp(self):
        assert parse_csgostats_date("Sun 17th Oct 2021 21:37:12", now=NOW) == datetime(
            2021, 10, 17, 21, 37, 12
        )

    def test_timezone_carried_from_reference(self):
        now = datetime(2021, 10, 20, tzinfo=timezone.utc)
        parsed = parse_csgostats_date("Sun 17th Oct 2021 21:37:12", now=now)
        assert parsed == datetime(2021, 10, 17, 21, 37, 12, tzinfo=timezone.utc)

    @pytest.mark.parametrize("text,expected", [
        ("Last Game 2 days ago", datetime(2021, 10, 18, 15, 30)),
        ("Last Game 25 minutes ago", datetime(2021, 10, 20, 15, 5)),
        ("Overwatch Banned 97 days ago.", datetime(2021, 7, 15, 15, 30)),
        ("VAC Banned a year ago", datetime(2020, 10, 20, 15, 30)),
        ("an hour ago", datetime(2021, 10, 20, 14, 30)),
        ("3 months ago", datetime(2021, 7, 20, 15, 30)),
    ])
    def test_relative_dates(self, text, expected):
        assert parse_csgostats_date(text, now=NOW) == expected

    def test_just_now_today_yesterday(self):
        assert parse_csgostats_date("Last Game just now", now=NOW) == NOW
        assert parse_csgostats_date("Last Game Today", now=NOW) == NOW
        assert parse_csgostats_date("Last Game Yesterday", now=NOW) == datetime(2021, 10, 19, 15, 30)

    def test_unparseable_raises(self):
        with pytest.raises(ValueError):
            parse_csgostats_date("Last Game never", now=NOW)


class TestMatchFields:

    def test_demo_watch_days(self):
        assert parse_demo_watch_days("Demo available (21 more days)") == 21
        assert parse_demo_watch_days("Demo expired") is None
        assert parse_demo_watch_days(None) is None

    def test_match_id_from_onclick(self):
        assert parse_match_id("window.location='/match/46327747'") == 46327747
        assert parse_match_id("openMatch(this)") == 0
        assert parse_match_id(None) == 0


class TestRawData:

    def test_extract_raw_data(self):
        html = '<script>\n  var raw_data = [{"K": 1}, {"K": 2}];\n  var x = 1;\n</script>'
        assert extract_raw_data(html) == [{"K": 1}, {"K": 2}]

    def test_extract_raw_data_absent(self):
        assert extract_raw_data("<script>var other = [];\n</script>") is None
