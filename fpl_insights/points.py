"""Single-gameweek expected points.

Model::

    base        = points per game
    form_adj    = (form - ppg) * 0.4
    fixture_adj = (3 - difficulty) * 0.5
    home_adj    = +0.3 at home
    predicted   = max(0, (base + form_adj + fixture_adj + home_adj) * minutes_prob)

Doubles add a second fixture_adj/home_adj pair plus another base share;
blanks predict zero.
"""

from __future__ import annotations

from dataclasses import dataclass

from .fixtures import team_fixtures
from .models import EnrichedPlayer, Fixture

FORM_WEIGHT = 0.4
FIXTURE_WEIGHT = 0.5
HOME_BONUS = 0.3

STATUS_PLAY_PROBABILITY = {"d": 0.25, "i": 0.0, "s": 0.0, "u": 0.0, "n": 0.0}


@dataclass
class PointsPrediction:
    player: EnrichedPlayer
    predicted_points: float
    form_score: float
    fixture_score: float
    confidence: str  # high / medium / low
    base: float
    form_adj: float
    fixture_adj: float
    home_adj: float
    minutes_prob: float
    fixture_count: int

    def to_dict(self) -> dict:
        p = self.player
        return {
            "id": p.id,
            "name": p.web_name,
            "team_name": p.team_short_name,
            "position_name": p.position_short,
            "predicted_points": self.predicted_points,
            "confidence": self.confidence,
            "form_score": round(self.form_score, 2),
            "fixture_score": round(self.fixture_score, 2),
            "fixture_count": self.fixture_count,
            "breakdown": {
                "base": round(self.base, 1),
                "form_adj": round(self.form_adj, 1),
                "fixture_adj": round(self.fixture_adj, 1),
                "home_adj": round(self.home_adj, 1),
                "minutes_prob": round(self.minutes_prob, 2),
            },
        }


def minutes_probability(player: EnrichedPlayer) -> float:
    """Chance the player features, 0-1, from status and start history."""
    if player.status != "a":
        return STATUS_PLAY_PROBABILITY.get(player.status, 0.0)
    if player.minutes == 0:
        return 0.1
    games_available = max(-(-player.minutes // 90) + 2, player.starts + 3)
    start_rate = min(player.starts / max(games_available, 1), 1.0)
    return max(start_rate, 0.1)


def start_rate(player: EnrichedPlayer) -> float:
    return player.starts / max(player.minutes / 90, 1)


def confidence_label(player: EnrichedPlayer, fixture_count: int) -> str:
    if fixture_count == 0:
        return "low"
    rate = start_rate(player)
    if rate > 0.7 and player.form > 3 and player.minutes > 270:
        return "high"
    if rate > 0.4 and player.minutes > 90:
        return "medium"
    return "low"


def predict_points(
    players: list[EnrichedPlayer],
    fixtures: list[Fixture],
    gameweek_id: int,
) -> list[PointsPrediction]:
    predictions = []
    for p in players:
        matches = team_fixtures(p.team, fixtures, gameweek_id, gameweek_id)
        prob = minutes_probability(p)

        base = p.points_per_game
        form_adj = (p.form - base) * FORM_WEIGHT
        fixture_adj = sum((3 - f.difficulty_for(p.team)) * FIXTURE_WEIGHT for f in matches)
        home_adj = sum(HOME_BONUS for f in matches if f.home_team == p.team)
        # Each extra fixture in a double is worth another appearance
        extra = base * max(len(matches) - 1, 0)

        raw = base + form_adj + fixture_adj + home_adj + extra if matches else 0.0
        predicted = max(0.0, round(raw * prob, 1))

        predictions.append(
            PointsPrediction(
                player=p,
                predicted_points=predicted,
                form_score=form_adj,
                fixture_score=fixture_adj,
                confidence=confidence_label(p, len(matches)),
                base=base,
                form_adj=form_adj,
                fixture_adj=fixture_adj,
                home_adj=home_adj,
                minutes_prob=prob,
                fixture_count=len(matches),
            )
        )

    predictions.sort(key=lambda x: (-x.predicted_points, -x.player.total_points, x.player.id))
    return predictions
