from __future__ import annotations

from dataclasses import dataclass, field

from .models import MAX_GAMEWEEK, Fixture, Gameweek, Team

NEUTRAL_DIFFICULTY = 3


@dataclass
class FixtureCell:
    opponent_id: int
    opponent_short_name: str
    difficulty: int
    is_home: bool
    fixture_id: int

    def to_dict(self) -> dict:
        return {
            "opponent_id": self.opponent_id,
            "opponent": self.opponent_short_name,
            "difficulty": self.difficulty,
            "is_home": self.is_home,
            "fixture_id": self.fixture_id,
        }


@dataclass
class TeamFixtureRow:
    team: Team
    fixtures: dict[int, list[FixtureCell]] = field(default_factory=dict)  # gw -> cells
    total_difficulty: int = 0

    @property
    def fixture_count(self) -> int:
        return sum(len(cells) for cells in self.fixtures.values())

    @property
    def average_difficulty(self) -> float | None:
        count = self.fixture_count
        return self.total_difficulty / count if count else None

    def to_dict(self) -> dict:
        avg = self.average_difficulty
        return {
            "team_id": self.team.id,
            "team_name": self.team.short_name,
            "fixtures": {
                gw: [c.to_dict() for c in cells] for gw, cells in sorted(self.fixtures.items())
            },
            "total_difficulty": self.total_difficulty,
            "fixture_count": self.fixture_count,
            "avg_difficulty": round(avg, 2) if avg is not None else None,
        }


def team_fixtures(team_id: int, fixtures: list[Fixture], gw_start: int, gw_end: int) -> list[Fixture]:
    """Fixtures for a team with a confirmed gameweek in [gw_start, gw_end]."""
    return [
        f for f in fixtures
        if f.gameweek is not None and gw_start <= f.gameweek <= gw_end and f.involves(team_id)
    ]


def easiest_fixture_in(team_id: int, fixtures: list[Fixture], gw_id: int) -> tuple[Fixture, int] | None:
    """The easiest fixture a team plays in one gameweek, with its count.

    Returns ``None`` for a blank gameweek. For doubles the fixture with the
    lowest difficulty wins, ties going to the lower fixture id.
    """
    matches = team_fixtures(team_id, fixtures, gw_id, gw_id)
    if not matches:
        return None
    best = min(matches, key=lambda f: (f.difficulty_for(team_id), f.id))
    return best, len(matches)


def average_difficulty(team_id: int, fixtures: list[Fixture], gw_start: int, gw_end: int) -> float | None:
    relevant = team_fixtures(team_id, fixtures, gw_start, gw_end)
    if not relevant:
        return None
    return sum(f.difficulty_for(team_id) for f in relevant) / len(relevant)


def build_fixture_grid(
    teams: list[Team],
    fixtures: list[Fixture],
    gw_start: int,
    gw_end: int,
) -> list[TeamFixtureRow]:
    """One row per team with its fixtures for gameweeks gw_start..gw_end.

    Cells inside each gameweek are kept in kickoff/id order so double
    gameweeks render deterministically.
    """
    if not (1 <= gw_start <= MAX_GAMEWEEK and 1 <= gw_end <= MAX_GAMEWEEK):
        raise ValueError(f"Gameweek range {gw_start}-{gw_end} outside 1-{MAX_GAMEWEEK}")
    if gw_start > gw_end:
        raise ValueError(f"gw_start {gw_start} is after gw_end {gw_end}")

    team_map = {t.id: t for t in teams}
    rows = {t.id: TeamFixtureRow(team=t) for t in teams}

    ordered = sorted(
        (f for f in fixtures if f.gameweek is not None and gw_start <= f.gameweek <= gw_end),
        key=lambda f: (f.gameweek, f.kickoff_time or "", f.id),
    )
    for f in ordered:
        home, away = team_map.get(f.home_team), team_map.get(f.away_team)
        if home is None or away is None:
            continue
        for row, opponent, difficulty, is_home in (
            (rows[home.id], away, f.home_difficulty, True),
            (rows[away.id], home, f.away_difficulty, False),
        ):
            row.fixtures.setdefault(f.gameweek, []).append(
                FixtureCell(
                    opponent_id=opponent.id,
                    opponent_short_name=opponent.short_name,
                    difficulty=difficulty,
                    is_home=is_home,
                    fixture_id=f.id,
                )
            )
            row.total_difficulty += difficulty

    return [rows[t.id] for t in teams]


def sort_by_easiest_fixtures(rows: list[TeamFixtureRow]) -> list[TeamFixtureRow]:
    """Easiest average difficulty first; teams with no fixtures go last."""

    def key(row: TeamFixtureRow):
        avg = row.average_difficulty
        return (avg is None, avg if avg is not None else 0.0, -row.fixture_count, row.team.id)

    return sorted(rows, key=key)


def find_special_gameweeks(
    fixtures: list[Fixture],
    teams: list[Team],
    gameweeks: list[Gameweek],
) -> tuple[dict[int, list[int]], dict[int, list[int]]]:
    """Map gameweek id -> team ids with a double, and -> team ids with a blank."""
    doubles: dict[int, list[int]] = {}
    blanks: dict[int, list[int]] = {}
    for gw in gameweeks:
        counts = {t.id: 0 for t in teams}
        for f in fixtures:
            if f.gameweek != gw.id:
                continue
            for tid in (f.home_team, f.away_team):
                if tid in counts:
                    counts[tid] += 1
        dgw = sorted(tid for tid, n in counts.items() if n >= 2)
        bgw = sorted(tid for tid, n in counts.items() if n == 0)
        if dgw:
            doubles[gw.id] = dgw
        if bgw:
            blanks[gw.id] = bgw
    return doubles, blanks
