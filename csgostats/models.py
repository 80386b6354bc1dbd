# csgostats/models.py
"""
Typed result records for csgostats.gg extraction.

All records are immutable pydantic models created once per extraction call.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


# --- Enums ---

class MatchType(str, Enum):
    COMPETITIVE = "comp"
    SCRIMMAGE = "scrimmage"


class BanType(str, Enum):
    VAC = "VAC"
    OVERWATCH = "OVERWATCH"


class MatchmakingRank(IntEnum):
    SILVER_I = 1
    SILVER_II = 2
    SILVER_III = 3
    SILVER_IV = 4
    SILVER_ELITE = 5
    SILVER_ELITE_MASTER = 6
    GOLD_NOVA_I = 7
    GOLD_NOVA_II = 8
    GOLD_NOVA_III = 9
    GOLD_NOVA_MASTER = 10
    MASTER_GUARDIAN_I = 11
    MASTER_GUARDIAN_II = 12
    MASTER_GUARDIAN_ELITE = 13
    DISTINGUISHED_MASTER_GUARDIAN = 14
    LEGENDARY_EAGLE = 15
    LEGENDARY_EAGLE_MASTER = 16
    SUPREME_MASTER_FIRST_CLASS = 17
    GLOBAL_ELITE = 18


class MatchmakingService(str, Enum):
    MM = "Official Matchmaking"
    FACE_IT = "FaceIt"
    ESEA = "ESEA"


class FaceItRank(str, Enum):
    LEVEL_1 = "Level 1"
    LEVEL_2 = "Level 2"
    LEVEL_3 = "Level 3"
    LEVEL_4 = "Level 4"
    LEVEL_5 = "Level 5"
    LEVEL_6 = "Level 6"
    LEVEL_7 = "Level 7"
    LEVEL_8 = "Level 8"
    LEVEL_9 = "Level 9"
    LEVEL_10 = "Level 10"


class ESEARank(str, Enum):
    D_MINUS = "D-"
    D = "D"
    D_PLUS = "D+"
    C_MINUS = "C-"
    C = "C"
    C_PLUS = "C+"
    B_MINUS = "B-"
    B = "B"
    B_PLUS = "B+"
    A_MINUS = "A-"
    A = "A"
    A_PLUS = "A+"
    RANK_G = "Rank G"
    RANK_S = "Rank S"


FACEIT_ICON_MAP: Dict[str, FaceItRank] = {
    f"level{level}": FaceItRank(f"Level {level}") for level in range(1, 11)
}

ESEA_ICON_MAP: Dict[str, ESEARank] = {
    "dminus": ESEARank.D_MINUS,
    "d": ESEARank.D,
    "dplus": ESEARank.D_PLUS,
    "cminus": ESEARank.C_MINUS,
    "c": ESEARank.C,
    "cplus": ESEARank.C_PLUS,
    "bminus": ESEARank.B_MINUS,
    "b": ESEARank.B,
    "bplus": ESEARank.B_PLUS,
    "aminus": ESEARank.A_MINUS,
    "a": ESEARank.A,
    "aplus": ESEARank.A_PLUS,
    "g": ESEARank.RANK_G,
    "s": ESEARank.RANK_S,
}

AnyRank = Union[MatchmakingRank, FaceItRank, ESEARank]


# --- Filters ---

class PlayerFilters(_Record):
    """Profile page filters. Unset values are not sent."""

    match_type: Optional[MatchType] = None
    maps: Optional[List[str]] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class PlayedWithFilters(_Record):
    """Query filters for the played-with endpoint."""

    vac: Optional[bool] = None
    offset: Optional[int] = None
    mode: Optional[MatchType] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    order: Optional[str] = None
    source: Optional[str] = None


# --- Player ---

class PlayerSummary(_Record):
    steam_id64: str
    steam_profile_url: Optional[str] = None
    esea_url: Optional[str] = None
    steam_picture_url: Optional[str] = None
    current_rank: Optional[MatchmakingRank] = None
    best_rank: Optional[MatchmakingRank] = None
    competitive_wins: Optional[int] = None
    last_game_date: Optional[datetime] = None
    ban_type: Optional[BanType] = None
    ban_date: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def _default_best_rank(cls, data: Any) -> Any:
        if isinstance(data, dict):
            current = data.get("current_rank")
            best = data.get("best_rank")
            if current is not None and (best is None or int(best) < int(current)):
                data = {**data, "best_rank": current}
        return data


class PlayerStats(_Record):
    """Headline ratios. Percentages are fractions in [0, 1]."""

    kill_death_ratio: Optional[float] = Field(default=None, ge=0)
    hltv_rating: Optional[float] = Field(default=None, ge=0)
    clutch_success_rate: Optional[float] = Field(default=None, ge=0)
    win_rate: Optional[float] = Field(default=None, ge=0)
    headshot_rate: Optional[float] = Field(default=None, ge=0)
    average_damage_round: Optional[float] = Field(default=None, ge=0)
    entry_success_rate: Optional[float] = Field(default=None, ge=0)


class GraphsRawDatum(_Record):
    """One point of the profile's per-match graph data, keyed as the page emits it."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    kills: Optional[int] = Field(default=None, alias="K")
    deaths: Optional[int] = Field(default=None, alias="D")
    headshots: Optional[int] = Field(default=None, alias="HS")
    damage: Optional[float] = Field(default=None, alias="dmg")
    rating: Optional[float] = None
    team1_score: Optional[int] = None
    team2_score: Optional[int] = None
    winner: Optional[int] = None
    team: Optional[int] = None
    date: Optional[str] = None
    id: Optional[int] = None
    win_rate: Optional[float] = Field(default=None, alias="WR")
    clutches_won: Optional[int] = Field(default=None, alias="1vX_won")
    clutches_lost: Optional[int] = Field(default=None, alias="1vX_lost")
    clutches: Optional[int] = Field(default=None, alias="1vX")
    rank: Optional[int] = None


class PlayerGraphs(_Record):
    raw_data: List[GraphsRawDatum] = Field(default_factory=list)


class PlayedWithRequest(_Record):
    """Follow-up request for a player's played-with data, bound to the same filters."""

    steam_id64: str
    filters: PlayedWithFilters = Field(default_factory=PlayedWithFilters)


class PlayerOutput(_Record):
    summary: PlayerSummary
    stats: Optional[PlayerStats] = None
    graphs: Optional[PlayerGraphs] = None
    played_with: PlayedWithRequest

    @model_validator(mode="after")
    def _stats_and_graphs_together(self) -> "PlayerOutput":
        if (self.stats is None) != (self.graphs is None):
            raise ValueError("stats and graphs must both be present or both be absent")
        return self


# --- Played with ---

class PlayedWithPlayerDetails(_Record):
    model_config = ConfigDict(frozen=True, extra="allow", coerce_numbers_to_str=True)

    name: Optional[str] = None
    avatar: Optional[str] = None
    is_banned: Optional[int] = None
    vac_banned: Optional[int] = None
    banned_date: Optional[str] = None


class PlayedWithStats(_Record):
    """Aggregate stats against or alongside one co-player. Counts arrive as strings."""

    model_config = ConfigDict(
        frozen=True, populate_by_name=True, extra="allow", coerce_numbers_to_str=True
    )

    last_played: Optional[str] = None
    games: Optional[int] = None
    win: Optional[int] = None
    lose: Optional[int] = None
    draw: Optional[int] = None
    rounds: Optional[str] = None
    kills: Optional[str] = Field(default=None, alias="K")
    deaths: Optional[str] = Field(default=None, alias="D")
    assists: Optional[str] = Field(default=None, alias="A")
    dmg: Optional[str] = None
    rating: Optional[str] = None
    headshots: Optional[str] = Field(default=None, alias="HS")
    first_kills_t: Optional[str] = Field(default=None, alias="FK_T")
    first_kills_ct: Optional[str] = Field(default=None, alias="FK_CT")
    first_deaths_t: Optional[str] = Field(default=None, alias="FD_T")
    first_deaths_ct: Optional[str] = Field(default=None, alias="FD_CT")
    kills_5k: Optional[str] = Field(default=None, alias="5k")
    kills_4k: Optional[str] = Field(default=None, alias="4k")
    kills_3k: Optional[str] = Field(default=None, alias="3k")
    kills_2k: Optional[str] = Field(default=None, alias="2k")
    kills_1k: Optional[str] = Field(default=None, alias="1k")
    clutch_1v1: Optional[str] = Field(default=None, alias="1v1")
    clutch_1v2: Optional[str] = Field(default=None, alias="1v2")
    clutch_1v3: Optional[str] = Field(default=None, alias="1v3")
    clutch_1v4: Optional[str] = Field(default=None, alias="1v4")
    clutch_1v5: Optional[str] = Field(default=None, alias="1v5")
    clutch_1v1_lost: Optional[str] = Field(default=None, alias="1v1_lost")
    clutch_1v2_lost: Optional[str] = Field(default=None, alias="1v2_lost")
    clutch_1v3_lost: Optional[str] = Field(default=None, alias="1v3_lost")
    clutch_1v4_lost: Optional[str] = Field(default=None, alias="1v4_lost")
    clutch_1v5_lost: Optional[str] = Field(default=None, alias="1v5_lost")


class PlayedWithPlayer(_Record):
    model_config = ConfigDict(frozen=True, extra="allow", coerce_numbers_to_str=True)

    steam_id: str
    stats: Optional[PlayedWithStats] = None
    vs: Optional[PlayedWithStats] = None
    details: Optional[PlayedWithPlayerDetails] = None


class PlayedWith(_Record):
    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    players: List[PlayedWithPlayer] = Field(default_factory=list)
    vac: str = "0"
    offset: int = 0


# --- Matches ---

class UploadMatchData(_Record):
    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    msg: str
    index: Optional[str] = None
    sharecode: Optional[str] = None
    queue_id: Optional[int] = None
    demo_id: Optional[int] = None
    url: Optional[str] = None


class UploadMatchResponse(_Record):
    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    status: str
    data: UploadMatchData
    error: int = 0


class MatchOutput(_Record):
    matchmaking_service: MatchmakingService
    average_rank: Optional[AnyRank] = None
    map: str
    server_location: Optional[str] = None
    date: datetime
    watch_url: Optional[str] = None
    demo_watch_days: Optional[int] = None
    has_banned_player: bool = False


class MatchSummary(_Record):
    """One row of the latest-matches listing. ``match_id`` 0 means unresolved."""

    match_id: int = Field(default=0, ge=0)
    matchmaking_service: MatchmakingService
    average_rank: Optional[AnyRank] = None
    date: datetime
