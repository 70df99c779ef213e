from __future__ import annotations

from dataclasses import dataclass

from .fixtures import NEUTRAL_DIFFICULTY, team_fixtures
from .models import MAX_GAMEWEEK, EnrichedPlayer, Fixture

# Transfer model weights (sum to 1.0)
TRANSFER_WEIGHTS = {
    "form": 0.30,
    "fixture": 0.25,
    "value": 0.25,
    "xgi": 0.20,
}

DEFAULT_LOOK_AHEAD = 5
MAX_NORMALIZED_SCORE = 10.0


@dataclass
class TransferRecommendation:
    player: EnrichedPlayer
    score: float
    form_score: float
    fixture_score: float
    value_score: float
    xgi_score: float
    upcoming_difficulty: float
    fixture_count: int
    confidence: str

    def to_dict(self) -> dict:
        p = self.player
        return {
            "id": p.id,
            "name": p.web_name,
            "team_name": p.team_short_name,
            "position_name": p.position_short,
            "cost": p.cost,
            "form": p.form,
            "total_points": p.total_points,
            "selected_by_percent": p.selected_by_percent,
            "score": round(self.score, 3),
            "form_score": round(self.form_score, 2),
            "fixture_score": round(self.fixture_score, 2),
            "value_score": round(self.value_score, 2),
            "xgi_score": round(self.xgi_score, 2),
            "upcoming_difficulty": round(self.upcoming_difficulty, 2),
            "fixture_count": self.fixture_count,
            "confidence": self.confidence,
        }


def _confidence(player: EnrichedPlayer, fixture_count: int, look_ahead: int) -> str:
    if player.minutes >= 900 and fixture_count >= look_ahead:
        return "high"
    if player.minutes >= 270 and fixture_count >= max(look_ahead // 2, 1):
        return "medium"
    return "low"


def score_transfer_targets(
    players: list[EnrichedPlayer],
    fixtures: list[Fixture],
    next_gameweek_id: int,
    look_ahead: int = DEFAULT_LOOK_AHEAD,
) -> list[TransferRecommendation]:
    """Score every player who has played as a transfer target, best first.

    form 30%, fixture ease 25%, points per million 25%, xGI 20%; each
    component is normalised to 0-10 against the pool maximum.
    """
    if not players:
        return []
    gw_end = min(next_gameweek_id + look_ahead - 1, MAX_GAMEWEEK)

    max_form = max(max(p.form for p in players), 1.0)
    max_value = max(max(p.value_score for p in players), 1.0)
    max_xgi = max(max(p.xGI for p in players), 0.1)

    results: list[TransferRecommendation] = []
    for p in players:
        if p.minutes <= 0:
            continue
        relevant = team_fixtures(p.team, fixtures, next_gameweek_id, gw_end)
        if relevant:
            avg_difficulty = sum(f.difficulty_for(p.team) for f in relevant) / len(relevant)
        else:
            avg_difficulty = float(NEUTRAL_DIFFICULTY)

        form_score = max(p.form, 0.0) / max_form * MAX_NORMALIZED_SCORE
        # Invert difficulty: 1 (easy) -> 10, 5 (hard) -> 0
        fixture_score = (5 - avg_difficulty) / 4 * MAX_NORMALIZED_SCORE
        value_score = max(p.value_score, 0.0) / max_value * MAX_NORMALIZED_SCORE
        xgi_score = max(p.xGI, 0.0) / max_xgi * MAX_NORMALIZED_SCORE

        score = (
            form_score * TRANSFER_WEIGHTS["form"]
            + fixture_score * TRANSFER_WEIGHTS["fixture"]
            + value_score * TRANSFER_WEIGHTS["value"]
            + xgi_score * TRANSFER_WEIGHTS["xgi"]
        )
        results.append(
            TransferRecommendation(
                player=p,
                score=score,
                form_score=form_score,
                fixture_score=fixture_score,
                value_score=value_score,
                xgi_score=xgi_score,
                upcoming_difficulty=avg_difficulty,
                fixture_count=len(relevant),
                confidence=_confidence(p, len(relevant), look_ahead),
            )
        )

    results.sort(key=lambda r: (-r.score, -r.player.total_points, r.player.id))
    return results


def suggest_replacements(
    squad_ids: set[int],
    recommendations: list[TransferRecommendation],
    squad_positions: dict[int, int],
    per_position: int = 3,
) -> dict[int, list[TransferRecommendation]]:
    """Best targets not already owned, for each position present in the squad.

    ``squad_positions`` maps squad player id -> position; the result maps
    position -> up to ``per_position`` recommendations in score order.
    """
    wanted = set(squad_positions.values())
    suggestions: dict[int, list[TransferRecommendation]] = {pos: [] for pos in sorted(wanted)}
    for rec in recommendations:
        pos = rec.player.position
        if rec.player.id in squad_ids or pos not in suggestions:
            continue
        if len(suggestions[pos]) < per_position:
            suggestions[pos].append(rec)
    return suggestions
