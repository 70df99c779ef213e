from __future__ import annotations

import logging
from dataclasses import dataclass

from .aggregation import RivalBatch, fetch_rival_data
from .api import FplClient, SeasonData, load_season
from .chips import ChipHistoryAnalysis, analyze_chip_history
from .enrichment import (
    build_player_map,
    current_gameweek,
    next_gameweek,
    parse_chips,
    parse_history,
    parse_picks,
    parse_standings,
)
from .league import (
    LeagueAnalysis,
    RivalChipAnalysis,
    RivalComparison,
    analyze_league,
    analyze_rival_chips,
    compare_with_rival,
    rival_teams_from_results,
    select_rivals,
)
from .models import LeagueStanding

logger = logging.getLogger(__name__)

DEFAULT_RIVAL_COUNT = 10


class ManagerNotInLeague(LookupError):
    pass


@dataclass
class LeagueReport:
    league_id: int
    league_name: str
    manager_id: int
    gameweek: int
    user: LeagueStanding
    analysis: LeagueAnalysis
    comparisons: list[RivalComparison]
    rival_chips: RivalChipAnalysis
    chip_history: ChipHistoryAnalysis
    batch: RivalBatch

    def to_dict(self) -> dict:
        stats = self.batch.to_response()["stats"]
        return {
            "league_id": self.league_id,
            "league_name": self.league_name,
            "manager_id": self.manager_id,
            "gameweek": self.gameweek,
            "user": self.user.to_dict(),
            "analysis": self.analysis.to_dict(),
            "comparisons": [c.to_dict() for c in self.comparisons],
            "rival_chips": self.rival_chips.to_dict(),
            "chip_history": self.chip_history.to_dict(),
            "stats": stats,
        }


def resolve_gameweek(season: SeasonData, gameweek: int | None = None) -> int:
    """Explicit gameweek, else the current one, else the next, else GW1."""
    if gameweek is not None:
        return gameweek
    gw = current_gameweek(season.gameweeks) or next_gameweek(season.gameweeks)
    return gw.id if gw else 1


def build_league_report(
    client: FplClient,
    league_id: int,
    manager_id: int,
    rival_count: int = DEFAULT_RIVAL_COUNT,
    gameweek: int | None = None,
    max_workers: int = 5,
    season: SeasonData | None = None,
) -> LeagueReport:
    """Fetch everything for one manager's mini-league and run the analyzers.

    Rivals whose picks fail to load are left out of every percentage; the
    batch stats on the report say how many that was.
    """
    season = season or load_season(client)
    gw = resolve_gameweek(season, gameweek)

    league_data = client.league_standings(league_id)
    standings = parse_standings(league_data)
    user = next((s for s in standings if s.entry == manager_id), None)
    if user is None:
        raise ManagerNotInLeague(f"Manager {manager_id} is not in league {league_id}")

    rival_standings = select_rivals(standings, manager_id, rival_count)
    user_picks = parse_picks(client.manager_picks(manager_id, gw))
    user_history = client.manager_history(manager_id)
    user_chips = parse_chips(user_history)

    batch = fetch_rival_data(
        client,
        [s.entry for s in rival_standings],
        gw,
        include_chips=True,
        max_workers=max_workers,
    )
    rivals = rival_teams_from_results(rival_standings, batch.parsed_picks(), user.total)
    if batch.failed_picks:
        logger.info("Analysing %d of %d rivals", len(rivals), len(rival_standings))

    leader_total = max((s.total for s in standings), default=user.total)
    player_map = build_player_map(season.players)
    analysis = analyze_league(user_picks, user, rivals, leader_total, player_map, season.teams)

    return LeagueReport(
        league_id=league_id,
        league_name=league_data.get("league", {}).get("name", f"League {league_id}"),
        manager_id=manager_id,
        gameweek=gw,
        user=user,
        analysis=analysis,
        comparisons=[compare_with_rival(user_picks, r) for r in rivals],
        rival_chips=analyze_rival_chips(
            user_chips,
            rival_standings,
            batch.chips_by_manager(),
            user.total,
            gw,
            season.chip_windows or None,
        ),
        chip_history=analyze_chip_history(user_chips, parse_history(user_history), season.gameweeks),
        batch=batch,
    )
