from __future__ import annotations

from dataclasses import dataclass

from .fixtures import easiest_fixture_in
from .models import EnrichedPlayer, Fixture, Team

# Captain model weights (sum to 1.0)
CAPTAIN_WEIGHTS = {
    "form": 0.35,
    "fixture": 0.25,
    "xgi": 0.20,
    "home": 0.10,
    "set_pieces": 0.10,
}

SET_PIECE_POINTS = {
    "primary_penalty": 5,
    "secondary_penalty": 2,
    "direct_freekick": 2,
    "corners": 1,
}
MAX_SET_PIECE_SCORE = (
    SET_PIECE_POINTS["primary_penalty"]
    + SET_PIECE_POINTS["direct_freekick"]
    + SET_PIECE_POINTS["corners"]
)

SAFE_OWNERSHIP_THRESHOLD = 15.0


@dataclass
class CaptainPick:
    player: EnrichedPlayer
    score: float
    form_score: float
    fixture_score: float
    xgi_score: float
    home_bonus: float
    set_piece_score: float
    is_home: bool
    opponent_short_name: str
    difficulty: int
    fixture_count: int
    category: str  # "safe" | "differential"

    def to_dict(self) -> dict:
        p = self.player
        return {
            "id": p.id,
            "name": p.web_name,
            "team_name": p.team_short_name,
            "position_name": p.position_short,
            "cost": p.cost,
            "form": p.form,
            "selected_by_percent": p.selected_by_percent,
            "score": round(self.score, 3),
            "breakdown": {
                "form": round(self.form_score, 2),
                "fixture": round(self.fixture_score, 2),
                "xgi": round(self.xgi_score, 2),
                "home": round(self.home_bonus, 2),
                "set_pieces": round(self.set_piece_score, 2),
            },
            "is_home": self.is_home,
            "opponent": self.opponent_short_name,
            "difficulty": self.difficulty,
            "is_dgw": self.fixture_count >= 2,
            "category": self.category,
        }


def set_piece_points(player: EnrichedPlayer) -> int:
    score = 0
    if player.penalties_order is not None and player.penalties_order <= 1:
        score += SET_PIECE_POINTS["primary_penalty"]
    elif player.penalties_order is not None and player.penalties_order <= 2:
        score += SET_PIECE_POINTS["secondary_penalty"]
    if player.direct_freekicks_order is not None and player.direct_freekicks_order <= 1:
        score += SET_PIECE_POINTS["direct_freekick"]
    if player.corners_order is not None and player.corners_order <= 1:
        score += SET_PIECE_POINTS["corners"]
    return score


def score_captain_options(
    players: list[EnrichedPlayer],
    fixtures: list[Fixture],
    team_map: dict[int, Team],
    gameweek_id: int,
) -> list[CaptainPick]:
    """Rank captain candidates for one gameweek, best first.

    Players who have not played a minute, or whose team blanks in the
    gameweek, are left out. Equal scores are ordered by season points.
    """
    if not players:
        return []
    max_form = max(max(p.form for p in players), 1.0)
    max_xgi = max(max(p.xGI for p in players), 0.1)

    picks: list[CaptainPick] = []
    for p in players:
        if p.minutes <= 0:
            continue
        found = easiest_fixture_in(p.team, fixtures, gameweek_id)
        if found is None:
            continue
        fixture, count = found
        difficulty = fixture.difficulty_for(p.team)
        is_home = fixture.home_team == p.team
        opponent = team_map.get(fixture.opponent_of(p.team))

        # Each component on a 0-10 scale
        form_score = max(p.form, 0.0) / max_form * 10
        fixture_score = (5 - difficulty) / 4 * 10
        xgi_score = max(p.xGI, 0.0) / max_xgi * 10
        home_bonus = 10.0 if is_home else 0.0
        set_piece_score = set_piece_points(p) / MAX_SET_PIECE_SCORE * 10

        score = (
            form_score * CAPTAIN_WEIGHTS["form"]
            + fixture_score * CAPTAIN_WEIGHTS["fixture"]
            + xgi_score * CAPTAIN_WEIGHTS["xgi"]
            + home_bonus * CAPTAIN_WEIGHTS["home"]
            + set_piece_score * CAPTAIN_WEIGHTS["set_pieces"]
        )

        picks.append(
            CaptainPick(
                player=p,
                score=score,
                form_score=form_score,
                fixture_score=fixture_score,
                xgi_score=xgi_score,
                home_bonus=home_bonus,
                set_piece_score=set_piece_score,
                is_home=is_home,
                opponent_short_name=opponent.short_name if opponent else "???",
                difficulty=difficulty,
                fixture_count=count,
                category="safe" if p.selected_by_percent >= SAFE_OWNERSHIP_THRESHOLD else "differential",
            )
        )

    picks.sort(key=lambda c: (-c.score, -c.player.total_points, c.player.id))
    return picks
