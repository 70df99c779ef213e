"""Chip play: grading chips already used and timing the ones still in hand."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field

from .league import ALL_CHIPS, CHIP_LABELS
from .models import MAX_GAMEWEEK, EnrichedPlayer, Fixture, Gameweek, HistoryEntry, ManagerChip

DEFAULT_GW_POINTS = 50  # assumed average before any history exists
# Chip users typically outscore the gameweek average on TC/BB weeks
BOOSTED_CHIP_FACTOR = 1.15

# (excellent, good, average) lower bounds on points gained
TRIPLE_CAPTAIN_BANDS = (25, 10, 0)
FREE_HIT_BANDS = (30, 15, 0)
# lower bounds on bench points
BENCH_BOOST_BANDS = (15, 10, 5)

MISSED_BENCH_POINTS = 12
MISSED_CAPTAIN_MARGIN = 20


@dataclass
class ChipPerformance:
    chip_name: str
    chip_label: str
    gw_played: int
    points_scored: int
    average_chip_points: int | None
    points_above_average: int | None
    bench_points: int
    typical_gw_points: int
    points_gained: int
    verdict: str  # excellent / good / average / poor
    reasoning: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class MissedOpportunity:
    chip_name: str
    chip_label: str
    gameweek: int
    potential_points: int
    description: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ChipHistoryAnalysis:
    used_chips: list[ChipPerformance] = field(default_factory=list)
    unused_chips: list[str] = field(default_factory=list)
    total_roi: int = 0
    best_chip: ChipPerformance | None = None
    worst_chip: ChipPerformance | None = None
    missed_opportunities: list[MissedOpportunity] = field(default_factory=list)
    summary: str = ""

    def to_dict(self) -> dict:
        return {
            "used_chips": [c.to_dict() for c in self.used_chips],
            "unused_chips": self.unused_chips,
            "total_roi": self.total_roi,
            "best_chip": self.best_chip.to_dict() if self.best_chip else None,
            "worst_chip": self.worst_chip.to_dict() if self.worst_chip else None,
            "missed_opportunities": [m.to_dict() for m in self.missed_opportunities],
            "summary": self.summary,
        }


def _band(value: float, bands: tuple[int, int, int]) -> str:
    excellent, good, average = bands
    if value >= excellent:
        return "excellent"
    if value >= good:
        return "good"
    if value >= average:
        return "average"
    return "poor"


def _verdict(chip: str, points_gained: float, bench_points: int) -> tuple[str, str]:
    if chip == "3xc":
        verdict = _band(points_gained, TRIPLE_CAPTAIN_BANDS)
        reasoning = {
            "excellent": "Outstanding TC play with huge captain haul",
            "good": "Solid TC choice with above-average return",
            "average": "TC returned slightly above your average",
            "poor": "TC failed to deliver meaningful points boost",
        }[verdict]
    elif chip == "bboost":
        verdict = _band(bench_points, BENCH_BOOST_BANDS)
        reasoning = {
            "excellent": f"Bench contributed {bench_points} pts - excellent BB timing",
            "good": f"Bench contributed {bench_points} pts - good BB return",
            "average": f"Bench contributed {bench_points} pts - modest BB return",
            "poor": f"Bench only contributed {bench_points} pts - poor BB timing",
        }[verdict]
    elif chip == "freehit":
        verdict = _band(points_gained, FREE_HIT_BANDS)
        reasoning = {
            "excellent": "Free Hit significantly outperformed your average",
            "good": "Solid Free Hit with good squad selection",
            "average": "Free Hit performed around your average",
            "poor": "Free Hit underperformed your typical GW",
        }[verdict]
    else:
        # Wildcards pay off over the following weeks, not on the week played
        verdict = "average"
        reasoning = "Wildcard impact is measured over following weeks"
    return verdict, reasoning


def _summary(performances: list[ChipPerformance], total_roi: int) -> str:
    if not performances:
        return "No chips used yet this season"
    if total_roi >= 40:
        return f"Excellent chip usage this season (+{total_roi} pts above average)"
    if total_roi >= 15:
        return f"Good chip timing with +{total_roi} pts gained"
    if total_roi >= 0:
        return "Chips performed close to your average"
    return f"Chip timing could be improved ({total_roi} pts below average)"


def analyze_chip_history(
    user_chips: list[ManagerChip],
    history: list[HistoryEntry],
    gameweeks: list[Gameweek],
) -> ChipHistoryAnalysis:
    """Grade each chip played against the manager's typical gameweek score.

    Chips played in a gameweek missing from ``history`` are skipped. Unused
    chip types are checked for the single best week they could have been
    played in.
    """
    if history:
        avg_gw_points = sum(h.points for h in history) / len(history)
    else:
        avg_gw_points = float(DEFAULT_GW_POINTS)
    by_event = {h.event: h for h in history}
    gw_by_id = {gw.id: gw for gw in gameweeks}

    performances: list[ChipPerformance] = []
    for chip in sorted(user_chips, key=lambda c: (c.event, c.name)):
        entry = by_event.get(chip.event)
        if entry is None:
            continue
        gw = gw_by_id.get(chip.event)

        average_chip_points = None
        points_above_average = None
        if gw is not None and gw.average_entry_score:
            factor = BOOSTED_CHIP_FACTOR if chip.name in ("3xc", "bboost") else 1.0
            average_chip_points = round(gw.average_entry_score * factor)
            points_above_average = entry.points - average_chip_points

        points_gained = entry.points - avg_gw_points
        verdict, reasoning = _verdict(chip.name, points_gained, entry.points_on_bench)
        performances.append(
            ChipPerformance(
                chip_name=chip.name,
                chip_label=CHIP_LABELS.get(chip.name, chip.name),
                gw_played=chip.event,
                points_scored=entry.points,
                average_chip_points=average_chip_points,
                points_above_average=points_above_average,
                bench_points=entry.points_on_bench,
                typical_gw_points=round(avg_gw_points),
                points_gained=round(points_gained),
                verdict=verdict,
                reasoning=reasoning,
            )
        )

    used_names = {c.name for c in user_chips}
    unused = [c for c in ALL_CHIPS if c not in used_names]
    total_roi = sum(p.points_gained for p in performances)

    scorable = [p for p in performances if p.chip_name != "wildcard"]
    best = max(scorable, key=lambda p: p.points_gained) if scorable else None
    worst = min(scorable, key=lambda p: p.points_gained) if scorable else None

    missed: list[MissedOpportunity] = []
    if "bboost" in unused and history:
        top_bench = max(history, key=lambda h: (h.points_on_bench, -h.event))
        if top_bench.points_on_bench >= MISSED_BENCH_POINTS:
            missed.append(
                MissedOpportunity(
                    chip_name="bboost",
                    chip_label=CHIP_LABELS["bboost"],
                    gameweek=top_bench.event,
                    potential_points=top_bench.points_on_bench,
                    description=f"Bench scored {top_bench.points_on_bench} pts in GW{top_bench.event}",
                )
            )
    if "3xc" in unused and history:
        top_gw = max(history, key=lambda h: (h.points, -h.event))
        if top_gw.points >= avg_gw_points + MISSED_CAPTAIN_MARGIN:
            above = round(top_gw.points - avg_gw_points)
            missed.append(
                MissedOpportunity(
                    chip_name="3xc",
                    chip_label=CHIP_LABELS["3xc"],
                    gameweek=top_gw.event,
                    potential_points=above,
                    description=f"GW{top_gw.event} scored {top_gw.points} pts (+{above} above avg)",
                )
            )

    return ChipHistoryAnalysis(
        used_chips=performances,
        unused_chips=unused,
        total_roi=total_roi,
        best_chip=best,
        worst_chip=worst,
        missed_opportunities=missed,
        summary=_summary(performances, total_roi),
    )


# =============================================================================
# Strategy for chips still in hand
# =============================================================================

STRATEGY_HORIZON = 6  # gameweeks after the current one
LEAGUE_TEAMS = 20
FULL_GW_FIXTURES = LEAGUE_TEAMS // 2
BLANK_TEAM_THRESHOLD = 18  # fewer teams than this playing marks a blank week
PREMIUM_COST = 100  # 10.0m
WILDCARD_POOL = 15


@dataclass
class ChipRecommendation:
    chip: str
    label: str
    score: int  # 0-100
    reasoning: list[str] = field(default_factory=list)
    suggested_gw: int | None = None

    def to_dict(self) -> dict:
        return asdict(self)


class _BestWeek:
    """Keeps the highest-scoring gameweek seen while collecting reasons."""

    def __init__(self):
        self.score = 0.0
        self.gw: int | None = None
        self.reasoning: list[str] = []

    def offer(self, gw_id: int, score: float, reason: str) -> None:
        self.reasoning.append(reason)
        if score > self.score:
            self.score = score
            self.gw = gw_id


def _recommendation(chip: str, base: float, best: _BestWeek, fallback: str) -> ChipRecommendation:
    return ChipRecommendation(
        chip=chip,
        label=CHIP_LABELS[chip],
        score=min(round(base + best.score), 100),
        reasoning=best.reasoning or [fallback],
        suggested_gw=best.gw,
    )


def _fixture_counts(gw_fixtures: list[Fixture]) -> dict[int, int]:
    counts: dict[int, int] = {}
    for f in gw_fixtures:
        counts[f.home_team] = counts.get(f.home_team, 0) + 1
        counts[f.away_team] = counts.get(f.away_team, 0) + 1
    return counts


def _wildcard(players: list[EnrichedPlayer], current_gw: int) -> ChipRecommendation:
    score = 30
    reasoning = []
    in_form = sorted((p for p in players if p.status == "a"), key=lambda p: -p.form)[:WILDCARD_POOL]
    if in_form:
        avg_form = sum(p.form for p in in_form) / len(in_form)
        if avg_form > 6:
            score += 20
            reasoning.append(f"Strong in-form players available (avg form {avg_form:.1f})")
    if 18 <= current_gw <= 22:
        score += 15
        reasoning.append("Mid-season window, a good time to restructure the squad")
    return ChipRecommendation(
        chip="wildcard",
        label=CHIP_LABELS["wildcard"],
        score=min(score, 100),
        reasoning=reasoning or ["No strong trigger, consider saving it for a better window"],
    )


def _free_hit(by_gw: dict[int, list[Fixture]], window: list[int]) -> ChipRecommendation:
    best = _BestWeek()
    for gw_id in window:
        gw_fixtures = by_gw.get(gw_id, [])
        playing = len(_fixture_counts(gw_fixtures))
        if playing < BLANK_TEAM_THRESHOLD:
            blank = LEAGUE_TEAMS - playing
            best.offer(gw_id, 30 + blank * 5, f"GW{gw_id}: {blank} teams without a fixture (blank GW)")
        if len(gw_fixtures) > FULL_GW_FIXTURES:
            extra = len(gw_fixtures) - FULL_GW_FIXTURES
            best.offer(gw_id, 25 + extra * 8, f"GW{gw_id}: {len(gw_fixtures)} fixtures (double GW)")
    return _recommendation(
        "freehit", 20, best, f"No blank or double GWs in the next {STRATEGY_HORIZON} gameweeks, save it for later"
    )


def _triple_captain(
    players: list[EnrichedPlayer], by_gw: dict[int, list[Fixture]], window: list[int]
) -> ChipRecommendation:
    premiums = sorted(
        (p for p in players if p.now_cost >= PREMIUM_COST and p.status == "a" and p.form > 5),
        key=lambda p: (-p.form, p.id),
    )[:10]
    best = _BestWeek()
    for gw_id in window:
        gw_fixtures = by_gw.get(gw_id, [])
        counts = _fixture_counts(gw_fixtures)
        for p in premiums:
            fixture = next((f for f in gw_fixtures if f.involves(p.team)), None)
            if fixture is None:
                continue
            difficulty = fixture.difficulty_for(p.team)
            if fixture.home_team == p.team and difficulty <= 2 and p.form > 7:
                best.offer(
                    gw_id,
                    40 + (10 - difficulty * 3) + p.form * 2,
                    f"GW{gw_id}: {p.web_name} (form {p.form}) has an easy home fixture (FDR {difficulty})",
                )
        for p in premiums:
            if counts.get(p.team, 0) >= 2:
                best.offer(
                    gw_id,
                    50 + p.form * 3,
                    f"GW{gw_id}: {p.web_name} has {counts[p.team]} fixtures (DGW) with form {p.form}",
                )
    return _recommendation(
        "3xc", 15, best, f"No standout captain week in the next {STRATEGY_HORIZON} GWs, keep it for a DGW"
    )


def _bench_boost(by_gw: dict[int, list[Fixture]], window: list[int]) -> ChipRecommendation:
    best = _BestWeek()
    for gw_id in window:
        gw_fixtures = by_gw.get(gw_id, [])
        if len(gw_fixtures) > FULL_GW_FIXTURES:
            extra = len(gw_fixtures) - FULL_GW_FIXTURES
            best.offer(gw_id, 35 + extra * 10, f"GW{gw_id}: {len(gw_fixtures)} fixtures, a DGW maximises bench value")
        if len(gw_fixtures) >= FULL_GW_FIXTURES:
            avg = sum(f.home_difficulty + f.away_difficulty for f in gw_fixtures) / (len(gw_fixtures) * 2)
            if avg < 2.8:
                best.offer(gw_id, 20 + (3 - avg) * 20, f"GW{gw_id}: average FDR {avg:.1f}, a kind fixture spread")
    return _recommendation("bboost", 15, best, "No clear window yet, best saved for a DGW with a strong bench")


def analyze_chip_strategies(
    players: list[EnrichedPlayer],
    fixtures: list[Fixture],
    gameweeks: list[Gameweek],
    current_gw: int,
    available_chips: list[str],
) -> list[ChipRecommendation]:
    """Score each chip still available from 0 to 100, strongest first.

    Free Hit looks for blank and double weeks, Triple Captain for in-form
    premiums at home to weak sides or with two fixtures, Bench Boost for
    double weeks and easy fixture spreads. Wildcard has no suggested week.
    """
    last_gw = max((gw.id for gw in gameweeks), default=MAX_GAMEWEEK)
    window = [
        gw.id for gw in sorted(gameweeks, key=lambda g: g.id)
        if current_gw <= gw.id <= min(current_gw + STRATEGY_HORIZON, last_gw)
    ]
    by_gw: dict[int, list[Fixture]] = {}
    for f in fixtures:
        if f.gameweek is not None:
            by_gw.setdefault(f.gameweek, []).append(f)

    recs = []
    if "wildcard" in available_chips:
        recs.append(_wildcard(players, current_gw))
    if "freehit" in available_chips:
        recs.append(_free_hit(by_gw, window))
    if "3xc" in available_chips:
        recs.append(_triple_captain(players, by_gw, window))
    if "bboost" in available_chips:
        recs.append(_bench_boost(by_gw, window))
    recs.sort(key=lambda r: -r.score)
    return recs
