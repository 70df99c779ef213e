from __future__ import annotations

import httpx
import pytest

from fpl_insights.api import FplClient
from fpl_insights.cache import TTLCache
from fpl_insights.enrichment import enrich_player
from fpl_insights.models import (
    EnrichedPlayer,
    Fixture,
    Gameweek,
    LeagueStanding,
    Player,
    Team,
)

TEAMS = {
    1: Team(id=1, name="Arsenal", short_name="ARS", code=3),
    2: Team(id=2, name="Chelsea", short_name="CHE", code=8),
    3: Team(id=3, name="Liverpool", short_name="LIV", code=14),
    4: Team(id=4, name="Man City", short_name="MCI", code=43),
    5: Team(id=5, name="Tottenham", short_name="TOT", code=6),
    6: Team(id=6, name="Aston Villa", short_name="AVL", code=7),
    7: Team(id=7, name="Newcastle", short_name="NEW", code=4),
}


def _make_player(id: int, name: str, team: int, position: int, cost: float, **kw) -> EnrichedPlayer:
    defaults = dict(
        total_points=50, minutes=900, starts=10, form=4.0, points_per_game=4.0,
        xG=3.0, xA=2.0, ict_index=80.0, selected_by_percent=10.0, ep_next=4.0,
    )
    defaults.update(kw)
    player = Player(id=id, web_name=name, team=team, position=position, now_cost=round(cost * 10), **defaults)
    return enrich_player(player, TEAMS)


@pytest.fixture
def mock_teams() -> dict[int, Team]:
    return dict(TEAMS)


@pytest.fixture
def mock_gameweeks() -> list[Gameweek]:
    return [
        Gameweek(id=1, name="Gameweek 1", finished=True, is_current=False, is_next=False, average_entry_score=50),
        Gameweek(id=2, name="Gameweek 2", finished=False, is_current=True, is_next=False, average_entry_score=55),
        Gameweek(id=3, name="Gameweek 3", finished=False, is_current=False, is_next=True),
    ]


@pytest.fixture
def mock_fixtures() -> list[Fixture]:
    return [
        # GW 1 (finished)
        Fixture(id=1, gameweek=1, home_team=1, away_team=2, home_difficulty=3, away_difficulty=3,
                finished=True, home_score=2, away_score=1, started=True),
        Fixture(id=2, gameweek=1, home_team=3, away_team=4, home_difficulty=2, away_difficulty=4,
                finished=True, home_score=1, away_score=1, started=True),
        Fixture(id=9, gameweek=1, home_team=5, away_team=6, home_difficulty=3, away_difficulty=3,
                finished=True, home_score=3, away_score=0, started=True),
        # GW 2 (current)
        Fixture(id=3, gameweek=2, home_team=2, away_team=3, home_difficulty=3, away_difficulty=3,
                finished=False, started=False),
        Fixture(id=4, gameweek=2, home_team=4, away_team=1, home_difficulty=4, away_difficulty=2,
                finished=False, started=False),
        Fixture(id=10, gameweek=2, home_team=6, away_team=7, home_difficulty=3, away_difficulty=3,
                finished=False, started=False),
        # GW 3 (next): team 6 blanks, team 5 plays twice
        Fixture(id=5, gameweek=3, home_team=1, away_team=3, home_difficulty=3, away_difficulty=3,
                finished=False, started=False),
        Fixture(id=6, gameweek=3, home_team=2, away_team=4, home_difficulty=2, away_difficulty=4,
                finished=False, started=False),
        Fixture(id=11, gameweek=3, home_team=5, away_team=7, home_difficulty=2, away_difficulty=3,
                finished=False, started=False),
        Fixture(id=12, gameweek=3, home_team=7, away_team=5, home_difficulty=3, away_difficulty=4,
                finished=False, started=False),
        # GW 4-5 (future)
        Fixture(id=7, gameweek=4, home_team=3, away_team=2, home_difficulty=3, away_difficulty=3,
                finished=False, started=False),
        Fixture(id=8, gameweek=5, home_team=1, away_team=4, home_difficulty=2, away_difficulty=4,
                finished=False, started=False),
        # Not yet scheduled
        Fixture(id=13, gameweek=None, home_team=6, away_team=1, home_difficulty=2, away_difficulty=2,
                finished=False, started=False),
    ]


@pytest.fixture
def mock_players() -> list[EnrichedPlayer]:
    """22 players spread across 7 teams."""
    return [
        # Goalkeepers
        _make_player(1, "GK1", 1, 1, 5.0),
        _make_player(2, "GK2", 2, 1, 4.5),
        _make_player(3, "GK3", 3, 1, 5.5),
        # Defenders
        _make_player(6, "DEF1", 1, 2, 6.0, form=5.0),
        _make_player(7, "DEF2", 2, 2, 5.5),
        _make_player(8, "DEF3", 3, 2, 6.5, form=6.0, total_points=70),
        _make_player(9, "DEF4", 4, 2, 5.0, form=2.0),
        _make_player(10, "DEF5", 5, 2, 4.5, form=1.5),
        _make_player(21, "DEF6", 6, 2, 4.5),
        _make_player(22, "DEF7", 7, 2, 4.0),
        # Midfielders
        _make_player(11, "MID1", 1, 3, 8.0, xG=8.0, xA=6.0, form=7.0, selected_by_percent=35.0,
                     penalties_order=1, total_points=90),
        _make_player(12, "MID2", 2, 3, 7.5, xG=6.0, xA=5.0, form=5.5),
        _make_player(13, "MID3", 3, 3, 9.0, xG=10.0, xA=8.0, form=8.0, selected_by_percent=55.0,
                     total_points=110, corners_order=1),
        _make_player(14, "MID4", 4, 3, 6.5, xG=4.0, xA=3.0),
        _make_player(15, "MID5", 5, 3, 5.5, xG=2.0, xA=2.0, form=3.0),
        _make_player(23, "MID6", 6, 3, 6.0, xG=5.0, xA=4.0, form=6.5),
        # Forwards
        _make_player(16, "FWD1", 4, 4, 9.0, xG=12.0, xA=4.0, form=7.5, selected_by_percent=25.0),
        _make_player(17, "FWD2", 5, 4, 8.5, xG=10.0, xA=3.0, form=6.0),
        _make_player(18, "FWD3", 6, 4, 7.0, xG=6.0, xA=2.0),
        _make_player(19, "FWD4", 7, 4, 6.0, xG=4.0, xA=1.0, form=2.5),
        _make_player(20, "FWD5", 3, 4, 5.5, xG=2.0, xA=1.0, minutes=0, starts=0, form=9.0),
        _make_player(24, "FWD6", 2, 4, 4.5, status="i", form=0.0, minutes=180, starts=2),
    ]


@pytest.fixture
def mock_bootstrap() -> dict:
    """Raw bootstrap-static payload as the FPL API returns it."""
    return {
        "teams": [
            {"id": 1, "name": "Arsenal", "short_name": "ARS", "code": 3},
            {"id": 2, "name": "Chelsea", "short_name": "CHE", "code": 8},
            {"id": 3, "name": "Liverpool", "short_name": "LIV", "code": 14},
        ],
        "events": [
            {"id": 1, "name": "Gameweek 1", "finished": True, "is_current": False, "is_next": False,
             "average_entry_score": 52},
            {"id": 2, "name": "Gameweek 2", "finished": False, "is_current": True, "is_next": False},
            {"id": 3, "name": "Gameweek 3", "finished": False, "is_current": False, "is_next": True},
        ],
        "elements": [
            {"id": 1, "web_name": "Raya", "first_name": "David", "second_name": "Raya", "team": 1,
             "element_type": 1, "now_cost": 55, "status": "a", "total_points": 40, "minutes": 900,
             "starts": 10, "form": "4.5", "points_per_game": "4.0", "selected_by_percent": "22.1",
             "ep_next": "4.2", "expected_goals": "0.00", "expected_assists": "0.10",
             "ict_index": "30.2", "transfers_in_event": 1000, "transfers_out_event": 200,
             "cost_change_event": 0},
            {"id": 2, "web_name": "Salah", "first_name": "Mohamed", "second_name": "Salah", "team": 3,
             "element_type": 3, "now_cost": 130, "status": "a", "total_points": 120, "minutes": 900,
             "starts": 10, "form": "9.1", "points_per_game": "8.0", "selected_by_percent": "61.3",
             "ep_next": "8.5", "expected_goals": "7.10", "expected_assists": "3.40",
             "ict_index": "150.0", "transfers_in_event": 250000, "transfers_out_event": 5000,
             "cost_change_event": 1, "penalties_order": 1},
            {"id": 3, "web_name": "Mystery", "team": 99, "element_type": 4, "now_cost": 45,
             "status": "d", "form": "not-a-number", "selected_by_percent": "150",
             "expected_goals": None, "minutes": 0},
        ],
        "chips": [
            {"name": "wildcard", "start_event": 2, "stop_event": 19},
            {"name": "wildcard", "start_event": 20, "stop_event": 38},
            {"name": "bboost", "start_event": 1, "stop_event": 19},
            {"name": "bboost", "start_event": 20, "stop_event": 38},
            {"name": "3xc", "start_event": 1, "stop_event": 19},
            {"name": "3xc", "start_event": 20, "stop_event": 38},
            {"name": "freehit", "start_event": 2, "stop_event": 19},
            {"name": "freehit", "start_event": 20, "stop_event": 38},
        ],
    }


@pytest.fixture
def mock_raw_fixtures() -> list[dict]:
    return [
        {"id": 1, "event": 2, "team_h": 1, "team_a": 2, "team_h_difficulty": 3, "team_a_difficulty": 4,
         "finished": False, "kickoff_time": "2024-08-24T14:00:00Z", "started": False},
        {"id": 2, "event": 3, "team_h": 3, "team_a": 1, "team_h_difficulty": 4, "team_a_difficulty": 5,
         "finished": False, "kickoff_time": "2024-08-31T14:00:00Z", "started": False},
        {"id": 3, "event": None, "team_h": 2, "team_a": 3, "team_h_difficulty": 9, "team_a_difficulty": 0,
         "finished": False},
    ]


@pytest.fixture
def mock_standings() -> list[LeagueStanding]:
    """Twelve-manager league; entry id = 100 + rank."""
    totals = [900, 880, 870, 860, 850, 845, 840, 830, 820, 815, 800, 780]
    return [
        LeagueStanding(entry=100 + rank, entry_name=f"Team {rank}", player_name=f"Manager {rank}",
                       rank=rank, total=total)
        for rank, total in enumerate(totals, start=1)
    ]


@pytest.fixture
def make_player():
    return _make_player


# ---------------------------------------------------------------------------
# Fake FPL API
# ---------------------------------------------------------------------------

BASE_URL = "https://fpl.test/api"
LEAGUE_ID = 77
USER_ENTRY = 105
BROKEN_ENTRY = 104  # picks endpoint answers 500


def picks_payload(ids: list[int], captain: int) -> dict:
    return {
        "picks": [
            {"element": pid, "position": slot, "multiplier": 0 if slot > 11 else (2 if pid == captain else 1),
             "is_captain": pid == captain, "is_vice_captain": False}
            for slot, pid in enumerate(ids, 1)
        ]
    }


@pytest.fixture
def fpl_routes(mock_bootstrap, mock_raw_fixtures, mock_standings) -> dict:
    """API path -> JSON payload, or an int status code to fail with."""
    routes = {
        "/bootstrap-static/": mock_bootstrap,
        "/fixtures/": mock_raw_fixtures,
        f"/leagues-classic/{LEAGUE_ID}/standings/": {
            "league": {"id": LEAGUE_ID, "name": "Office League"},
            "standings": {"results": [s.to_dict() for s in mock_standings]},
        },
    }
    for s in mock_standings:
        squad = [1, 2] if s.entry == USER_ENTRY else [1, 2, 3]
        captain = 1 if s.entry % 2 else 2
        routes[f"/entry/{s.entry}/event/2/picks/"] = picks_payload(squad, captain)
        routes[f"/entry/{s.entry}/history/"] = {
            "current": [{"event": 1, "points": 60, "total_points": 60, "points_on_bench": 4},
                        {"event": 2, "points": 45, "total_points": 105, "points_on_bench": 2}],
            "chips": [{"name": "3xc", "event": 2, "time": "2024-08-24T10:00:00Z"}] if s.entry == 106 else [],
        }
    routes[f"/entry/{BROKEN_ENTRY}/event/2/picks/"] = 500
    routes[f"/entry/{USER_ENTRY}/"] = {
        "id": USER_ENTRY, "name": "Team 5", "player_first_name": "Sam", "player_last_name": "Jones",
        "summary_overall_points": 850, "summary_overall_rank": 120_000,
        "leagues": {"classic": [{"id": LEAGUE_ID, "name": "Office League"}], "h2h": []},
    }
    routes["/event/2/live/"] = {
        "elements": [
            {"id": 1, "stats": {"minutes": 90, "total_points": 6}},
            {"id": 2, "stats": {"minutes": 90, "total_points": 13}},
            {"id": 99, "stats": {"minutes": 90, "total_points": 20}},
        ]
    }
    return routes


@pytest.fixture
def fpl_requests() -> list[str]:
    return []


@pytest.fixture
def fpl_client(fpl_routes, fpl_requests):
    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/api")
        fpl_requests.append(path)
        payload = fpl_routes.get(path)
        if payload is None:
            return httpx.Response(404, json={"detail": "Not found."})
        if isinstance(payload, int):
            return httpx.Response(payload, json={"detail": "Server error"})
        return httpx.Response(200, json=payload)

    http = httpx.Client(transport=httpx.MockTransport(handler))
    client = FplClient(http, TTLCache(ttl_by_category={"default": 300}), BASE_URL)
    yield client
    client.close()
