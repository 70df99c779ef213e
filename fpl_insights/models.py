from __future__ import annotations

from dataclasses import asdict, dataclass, field

MAX_GAMEWEEK = 38
STARTING_SLOTS = 11


@dataclass
class Team:
    id: int
    name: str
    short_name: str
    code: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Fixture:
    id: int
    gameweek: int | None
    home_team: int
    away_team: int
    home_difficulty: int
    away_difficulty: int
    finished: bool
    home_score: int | None = None
    away_score: int | None = None
    kickoff_time: str | None = None
    started: bool | None = None

    def difficulty_for(self, team_id: int) -> int:
        return self.home_difficulty if team_id == self.home_team else self.away_difficulty

    def opponent_of(self, team_id: int) -> int:
        return self.away_team if team_id == self.home_team else self.home_team

    def involves(self, team_id: int) -> bool:
        return team_id in (self.home_team, self.away_team)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Gameweek:
    id: int
    name: str
    finished: bool
    is_current: bool
    is_next: bool
    deadline_time: str | None = None
    average_entry_score: int | None = None


@dataclass
class Player:
    id: int
    web_name: str
    team: int
    position: int  # 1=GK, 2=DEF, 3=MID, 4=FWD
    now_cost: int  # tenths of a million (65 = 6.5m)
    first_name: str = ""
    second_name: str = ""
    status: str = "a"  # a/d/i/s/u/n
    total_points: int = 0
    minutes: int = 0
    starts: int = 0
    form: float = 0.0
    points_per_game: float = 0.0
    selected_by_percent: float = 0.0
    ep_next: float = 0.0
    xG: float = 0.0
    xA: float = 0.0
    ict_index: float = 0.0
    transfers_in_event: int = 0
    transfers_out_event: int = 0
    cost_change_event: int = 0
    chance_of_playing: int | None = None
    penalties_order: int | None = None
    direct_freekicks_order: int | None = None
    corners_order: int | None = None
    news: str = ""

    @property
    def xGI(self) -> float:
        return self.xG + self.xA

    @property
    def cost(self) -> float:
        return self.now_cost / 10.0

    @property
    def net_transfers(self) -> int:
        return self.transfers_in_event - self.transfers_out_event

    def to_dict(self) -> dict:
        d = asdict(self)
        d["cost"] = self.cost
        d["xGI"] = round(self.xGI, 2)
        return d


@dataclass
class EnrichedPlayer(Player):
    team_name: str = "Unknown"
    team_short_name: str = "???"
    position_name: str = "Unknown"
    position_short: str = "??"
    price_formatted: str = ""
    value_score: float = 0.0
    status_label: str = "Unknown"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.second_name}".strip() or self.web_name


@dataclass
class Pick:
    element: int
    position: int  # squad slot 1-15
    multiplier: int = 1
    is_captain: bool = False
    is_vice_captain: bool = False

    @property
    def is_starting(self) -> bool:
        return self.position <= STARTING_SLOTS

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class LeagueStanding:
    entry: int
    entry_name: str
    player_name: str
    rank: int
    total: int
    last_rank: int = 0
    event_total: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ManagerChip:
    name: str  # wildcard / freehit / 3xc / bboost
    event: int
    time: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class HistoryEntry:
    event: int
    points: int
    total_points: int = 0
    points_on_bench: int = 0
    rank: int | None = None


@dataclass
class RivalTeam:
    entry: int
    name: str
    player_name: str
    rank: int
    total: int
    points_gap: int  # rival total - user total
    picks: list[Pick] = field(default_factory=list)

    @property
    def active_picks(self) -> list[Pick]:
        return [p for p in self.picks if p.multiplier > 0]

    @property
    def captain(self) -> int | None:
        return next((p.element for p in self.picks if p.is_captain), None)

    def to_dict(self) -> dict:
        return {
            "entry": self.entry,
            "name": self.name,
            "player_name": self.player_name,
            "rank": self.rank,
            "total": self.total,
            "points_gap": self.points_gap,
            "captain": self.captain,
            "picks": [p.to_dict() for p in self.picks],
        }
