"""Normalise raw FPL API payloads into typed models.

String-encoded numbers (form, ownership, expected stats) are parsed once
here; scoring modules only ever see floats.
"""

from __future__ import annotations

from .models import (
    MAX_GAMEWEEK,
    EnrichedPlayer,
    Fixture,
    Gameweek,
    HistoryEntry,
    LeagueStanding,
    ManagerChip,
    Pick,
    Player,
    Team,
)

POSITION_NAMES = {1: "Goalkeeper", 2: "Defender", 3: "Midfielder", 4: "Forward"}
POSITION_SHORT = {1: "GK", 2: "DEF", 3: "MID", 4: "FWD"}
STATUS_LABELS = {
    "a": "Available",
    "d": "Doubtful",
    "i": "Injured",
    "s": "Suspended",
    "u": "Unavailable",
    "n": "Not in squad",
}


def parse_float(value) -> float:
    """Parse an upstream numeric field; anything unparseable becomes 0.0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        result = float(value)
    except (TypeError, ValueError):
        return 0.0
    if result != result or result in (float("inf"), float("-inf")):
        return 0.0
    return result


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def _difficulty(value) -> int:
    return int(_clamp(round(parse_float(value) or 3), 1, 5))


def _gameweek(value) -> int | None:
    if value is None:
        return None
    gw = int(parse_float(value))
    return gw if 1 <= gw <= MAX_GAMEWEEK else None


def format_price(now_cost: int) -> str:
    return f"£{now_cost / 10:.1f}m"


def position_name(element_type: int) -> str:
    return POSITION_NAMES.get(element_type, "Unknown")


def position_short(element_type: int) -> str:
    return POSITION_SHORT.get(element_type, "??")


def status_label(status: str) -> str:
    return STATUS_LABELS.get(status, "Unknown")


def value_score(total_points: int, now_cost: int) -> float:
    """Points per million."""
    price = now_cost / 10.0
    if price <= 0:
        return 0.0
    return total_points / price


# ---------------------------------------------------------------------------
# Bootstrap parsing
# ---------------------------------------------------------------------------

def parse_teams(data: dict) -> dict[int, Team]:
    teams = {}
    for t in data.get("teams", []):
        teams[t["id"]] = Team(
            id=t["id"],
            name=t.get("name", ""),
            short_name=t.get("short_name", "???"),
            code=t.get("code", 0),
        )
    return teams


def build_team_map(teams) -> dict[int, Team]:
    return {t.id: t for t in teams}


def build_player_map(players) -> dict[int, Player]:
    return {p.id: p for p in players}


def parse_gameweeks(data: dict) -> list[Gameweek]:
    return [
        Gameweek(
            id=gw["id"],
            name=gw.get("name", f"Gameweek {gw['id']}"),
            finished=gw.get("finished", False),
            is_current=gw.get("is_current", False),
            is_next=gw.get("is_next", False),
            deadline_time=gw.get("deadline_time"),
            average_entry_score=gw.get("average_entry_score"),
        )
        for gw in data.get("events", [])
        if 1 <= gw.get("id", 0) <= MAX_GAMEWEEK
    ]


def parse_player(e: dict) -> Player:
    return Player(
        id=e["id"],
        web_name=e.get("web_name") or "Unknown",
        first_name=e.get("first_name") or "",
        second_name=e.get("second_name") or "",
        team=e.get("team") or 0,
        position=e.get("element_type") or 0,
        now_cost=int(parse_float(e.get("now_cost"))),
        status=e.get("status") or "u",
        total_points=int(parse_float(e.get("total_points"))),
        minutes=int(parse_float(e.get("minutes"))),
        starts=int(parse_float(e.get("starts"))),
        form=parse_float(e.get("form")),
        points_per_game=parse_float(e.get("points_per_game")),
        selected_by_percent=_clamp(parse_float(e.get("selected_by_percent")), 0.0, 100.0),
        ep_next=parse_float(e.get("ep_next")),
        xG=parse_float(e.get("expected_goals")),
        xA=parse_float(e.get("expected_assists")),
        ict_index=parse_float(e.get("ict_index")),
        transfers_in_event=int(parse_float(e.get("transfers_in_event"))),
        transfers_out_event=int(parse_float(e.get("transfers_out_event"))),
        cost_change_event=int(parse_float(e.get("cost_change_event"))),
        chance_of_playing=e.get("chance_of_playing_next_round"),
        penalties_order=e.get("penalties_order"),
        direct_freekicks_order=e.get("direct_freekicks_order"),
        corners_order=e.get("corners_and_indirect_freekicks_order"),
        news=e.get("news") or "",
    )


def enrich_player(player: Player, team_map: dict[int, Team]) -> EnrichedPlayer:
    team = team_map.get(player.team)
    return EnrichedPlayer(
        **vars(player),
        team_name=team.name if team else "Unknown",
        team_short_name=team.short_name if team else "???",
        position_name=position_name(player.position),
        position_short=position_short(player.position),
        price_formatted=format_price(player.now_cost),
        value_score=value_score(player.total_points, player.now_cost),
        status_label=status_label(player.status),
    )


def enrich_players(bootstrap: dict) -> list[EnrichedPlayer]:
    """Enrich every element of a bootstrap-static snapshot.

    The team map is built once; each player is then resolved in a single
    pass. Unknown teams get the ``"???"`` label rather than an error.
    """
    team_map = parse_teams(bootstrap)
    return [enrich_player(parse_player(e), team_map) for e in bootstrap.get("elements", [])]


def parse_fixtures(raw: list[dict]) -> list[Fixture]:
    return [
        Fixture(
            id=f["id"],
            gameweek=_gameweek(f.get("event")),
            home_team=f["team_h"],
            away_team=f["team_a"],
            home_difficulty=_difficulty(f.get("team_h_difficulty", 3)),
            away_difficulty=_difficulty(f.get("team_a_difficulty", 3)),
            finished=f.get("finished", False),
            home_score=f.get("team_h_score"),
            away_score=f.get("team_a_score"),
            kickoff_time=f.get("kickoff_time"),
            started=f.get("started"),
        )
        for f in raw
    ]


# ---------------------------------------------------------------------------
# Manager / league payloads
# ---------------------------------------------------------------------------

def parse_picks(data: dict) -> list[Pick]:
    return [
        Pick(
            element=p["element"],
            position=p.get("position", 0),
            multiplier=p.get("multiplier", 1),
            is_captain=p.get("is_captain", False),
            is_vice_captain=p.get("is_vice_captain", False),
        )
        for p in data.get("picks", [])
    ]


def parse_standings(data: dict) -> list[LeagueStanding]:
    return [
        LeagueStanding(
            entry=s["entry"],
            entry_name=s.get("entry_name", ""),
            player_name=s.get("player_name", ""),
            rank=s.get("rank", 0),
            last_rank=s.get("last_rank", 0),
            total=s.get("total", 0),
            event_total=s.get("event_total", 0),
        )
        for s in data.get("standings", {}).get("results", [])
    ]


def parse_chips(history: dict) -> list[ManagerChip]:
    return [
        ManagerChip(name=c["name"], event=c["event"], time=c.get("time", ""))
        for c in history.get("chips", [])
    ]


def parse_history(history: dict) -> list[HistoryEntry]:
    return [
        HistoryEntry(
            event=h["event"],
            points=h.get("points", 0),
            total_points=h.get("total_points", 0),
            points_on_bench=h.get("points_on_bench", 0),
            rank=h.get("rank"),
        )
        for h in history.get("current", [])
    ]


# ---------------------------------------------------------------------------
# Gameweek helpers
# ---------------------------------------------------------------------------

def current_gameweek(gameweeks: list[Gameweek]) -> Gameweek | None:
    return next((gw for gw in gameweeks if gw.is_current), None)


def next_gameweek(gameweeks: list[Gameweek]) -> Gameweek | None:
    return next((gw for gw in gameweeks if gw.is_next), None)


def gameweek_by_id(gameweeks: list[Gameweek], gw_id: int) -> Gameweek | None:
    return next((gw for gw in gameweeks if gw.id == gw_id), None)


def validate_gameweeks(gameweeks: list[Gameweek]) -> list[str]:
    """Return a list of problems with the current/next flags (empty if fine)."""
    problems = []
    current = [gw for gw in gameweeks if gw.is_current]
    upcoming = [gw for gw in gameweeks if gw.is_next]
    if len(current) > 1:
        problems.append(f"{len(current)} gameweeks flagged current")
    if len(upcoming) > 1:
        problems.append(f"{len(upcoming)} gameweeks flagged next")
    if len(current) == 1 and len(upcoming) == 1 and upcoming[0].id != current[0].id + 1:
        problems.append(
            f"next gameweek {upcoming[0].id} does not follow current {current[0].id}"
        )
    return problems


# ---------------------------------------------------------------------------
# Sorting and filtering
# ---------------------------------------------------------------------------

SORT_KEYS = {
    "points": lambda p: p.total_points,
    "form": lambda p: p.form,
    "price": lambda p: p.now_cost,
    "value": lambda p: p.value_score,
    "ownership": lambda p: p.selected_by_percent,
}


def sort_players(players: list[EnrichedPlayer], key: str = "points") -> list[EnrichedPlayer]:
    if key not in SORT_KEYS:
        raise ValueError(f"Unknown sort key {key!r}; expected one of {sorted(SORT_KEYS)}")
    return sorted(players, key=SORT_KEYS[key], reverse=True)


def filter_players(
    players: list[EnrichedPlayer],
    position: int | None = None,
    team: int | None = None,
    min_price: float | None = None,
    max_price: float | None = None,
    available_only: bool = False,
) -> list[EnrichedPlayer]:
    result = []
    for p in players:
        if position is not None and p.position != position:
            continue
        if team is not None and p.team != team:
            continue
        if min_price is not None and p.now_cost < round(min_price * 10):
            continue
        if max_price is not None and p.now_cost > round(max_price * 10):
            continue
        if available_only and p.status != "a":
            continue
        result.append(p)
    return result


def search_players(players: list[EnrichedPlayer], query: str) -> list[EnrichedPlayer]:
    q = query.lower()
    return [
        p for p in players
        if q in p.web_name.lower() or q in p.first_name.lower() or q in p.second_name.lower()
    ]
