"""Mini-league analysis for one gameweek snapshot.

All functions are pure: they take the user's picks plus whatever rival
squads were fetched successfully and recompute everything from scratch.
Percentages are always taken against the rivals actually analysed, never
against the number that was requested.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field

from .models import (
    LeagueStanding,
    ManagerChip,
    Pick,
    Player,
    RivalTeam,
    Team,
)
from .enrichment import position_short
from .results import FetchOk, FetchResult

SWING_POINTS = (2, 6, 10, 15)
HIGH_EO_THRESHOLD = 50.0
LOW_OWNERSHIP_SHARE = 0.25  # attack differentials: at most this share of rivals own

CHIP_LABELS = {
    "wildcard": "Wildcard",
    "freehit": "Free Hit",
    "3xc": "Triple Captain",
    "bboost": "Bench Boost",
}
ALL_CHIPS = ("wildcard", "freehit", "3xc", "bboost")
# Every chip is granted once per half-season unless bootstrap says otherwise
DEFAULT_CHIP_WINDOWS = [
    {"name": chip, "start_event": start, "stop_event": stop}
    for chip in ALL_CHIPS
    for start, stop in ((1, 19), (20, 38))
]
RECENT_CHIP_WINDOW = 1  # gameweeks


# =============================================================================
# Result types
# =============================================================================

@dataclass
class EffectiveOwnership:
    player_id: int
    player_name: str
    position: str
    team_short_name: str
    global_ownership: float
    league_ownership: float  # % of rivals owning, 0-100
    effective_ownership: float  # multiplier-weighted, captains count double
    captain_share: float  # % of rivals captaining, 0-100
    owner_count: int
    sample_size: int
    user_status: str  # captain / own / bench / dont_own

    def to_dict(self) -> dict:
        d = asdict(self)
        for key in ("league_ownership", "effective_ownership", "captain_share"):
            d[key] = round(d[key], 1)
        return d


@dataclass
class Differential:
    player_id: int
    player_name: str
    position: str
    team_short_name: str
    form: float
    expected_points: float
    rivals_owning: int
    total_rivals: int
    risk_score: int  # 0-100
    type: str  # attack / cover

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SwingScenario:
    player_id: int
    player_name: str
    position: str
    team_short_name: str
    rivals_owning: int
    total_rivals: int
    net_impact: dict[int, float]  # hypothetical points -> avg points lost per rival
    field_swing: dict[int, float]  # hypothetical points -> owners-vs-non-owners shift

    def to_dict(self) -> dict:
        d = asdict(self)
        d["net_impact"] = {str(k): v for k, v in self.net_impact.items()}
        d["field_swing"] = {str(k): v for k, v in self.field_swing.items()}
        return d


@dataclass
class RivalComparison:
    rival: RivalTeam
    shared: list[int]
    user_only: list[int]
    rival_only: list[int]
    captain_match: bool
    points_gap: int

    def to_dict(self) -> dict:
        return {
            "rival": {
                "entry": self.rival.entry,
                "name": self.rival.name,
                "player_name": self.rival.player_name,
                "rank": self.rival.rank,
                "total": self.rival.total,
            },
            "shared": self.shared,
            "user_only": self.user_only,
            "rival_only": self.rival_only,
            "captain_match": self.captain_match,
            "points_gap": self.points_gap,
        }


@dataclass
class LeagueAnalysis:
    effective_ownership: list[EffectiveOwnership] = field(default_factory=list)
    your_differentials: list[Differential] = field(default_factory=list)
    their_differentials: list[Differential] = field(default_factory=list)
    rivals: list[RivalTeam] = field(default_factory=list)
    swing_scenarios: list[SwingScenario] = field(default_factory=list)
    user_rank: int = 0
    gap_to_leader: int = 0
    unique_player_count: int = 0
    eo_coverage: int = 100
    sample_size: int = 0

    def to_dict(self) -> dict:
        return {
            "effective_ownership": [e.to_dict() for e in self.effective_ownership],
            "your_differentials": [d.to_dict() for d in self.your_differentials],
            "their_differentials": [d.to_dict() for d in self.their_differentials],
            "rivals": [r.to_dict() for r in self.rivals],
            "swing_scenarios": [s.to_dict() for s in self.swing_scenarios],
            "user_rank": self.user_rank,
            "gap_to_leader": self.gap_to_leader,
            "unique_player_count": self.unique_player_count,
            "eo_coverage": self.eo_coverage,
            "sample_size": self.sample_size,
        }


@dataclass
class RivalChipStatus:
    entry: int
    name: str
    player_name: str
    rank: int
    total: int
    points_gap: int
    available: dict[str, bool]

    @property
    def chips_remaining(self) -> int:
        return sum(self.available.values())

    def to_dict(self) -> dict:
        d = asdict(self)
        d["chips_remaining"] = self.chips_remaining
        return d


@dataclass
class ChipAlert:
    entry: int
    rival_name: str
    chip: str
    label: str
    event: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ChipAdvantage:
    chip: str
    label: str
    user_has: bool
    rivals_with: int
    rivals_without: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class RivalChipAnalysis:
    rivals: list[RivalChipStatus] = field(default_factory=list)
    chip_advantages: list[ChipAdvantage] = field(default_factory=list)
    active_chip_alerts: list[ChipAlert] = field(default_factory=list)
    user_available: dict[str, bool] = field(default_factory=dict)
    summary: str = ""

    def to_dict(self) -> dict:
        return {
            "rivals": [r.to_dict() for r in self.rivals],
            "chip_advantages": [a.to_dict() for a in self.chip_advantages],
            "active_chip_alerts": [a.to_dict() for a in self.active_chip_alerts],
            "user_available": self.user_available,
            "summary": self.summary,
        }


# =============================================================================
# Rival selection
# =============================================================================

def select_rivals(standings: list[LeagueStanding], user_entry: int, count: int) -> list[LeagueStanding]:
    """The ``count`` managers ranked closest to the user, nearest first.

    Distance is ``abs(rank - user_rank)``; equal distances go to the lower
    entry id. If the user is not in the standings the top of the table is
    returned instead.
    """
    if count < 0:
        raise ValueError("count must not be negative")
    others = [s for s in standings if s.entry != user_entry]
    user = next((s for s in standings if s.entry == user_entry), None)
    if user is None:
        return sorted(others, key=lambda s: (s.rank, s.entry))[:count]
    return sorted(others, key=lambda s: (abs(s.rank - user.rank), s.entry))[:count]


def build_rival_team(standing: LeagueStanding, picks: list[Pick], user_total: int) -> RivalTeam:
    return RivalTeam(
        entry=standing.entry,
        name=standing.entry_name,
        player_name=standing.player_name,
        rank=standing.rank,
        total=standing.total,
        points_gap=standing.total - user_total,
        picks=list(picks),
    )


def rival_teams_from_results(
    standings: list[LeagueStanding],
    results: list[FetchResult],
    user_total: int,
) -> list[RivalTeam]:
    """RivalTeams for the managers whose picks were fetched.

    Failed fetches are dropped rather than treated as empty squads.
    """
    by_entry = {r.manager_id: r for r in results}
    teams = []
    for standing in standings:
        result = by_entry.get(standing.entry)
        if isinstance(result, FetchOk):
            teams.append(build_rival_team(standing, result.value, user_total))
    return teams


# =============================================================================
# Ownership
# =============================================================================

def _user_status(pick: Pick | None) -> str:
    if pick is None:
        return "dont_own"
    if pick.is_captain:
        return "captain"
    if pick.multiplier > 0:
        return "own"
    return "bench"


def calculate_effective_ownership(
    user_picks: list[Pick],
    rivals: list[RivalTeam],
    player_map: dict[int, Player],
    team_map: dict[int, Team],
) -> list[EffectiveOwnership]:
    """EO row for every player in the user's or any rival's squad."""
    sample = len(rivals)
    if sample == 0:
        return []

    user_by_id = {p.element: p for p in user_picks}
    rival_picks = [{p.element: p for p in r.picks} for r in rivals]

    player_ids = set(user_by_id)
    for picks in rival_picks:
        player_ids.update(picks)

    rows = []
    for pid in player_ids:
        player = player_map.get(pid)
        if player is None:
            continue
        owners = [picks[pid] for picks in rival_picks if pid in picks]
        weight = sum(p.multiplier for p in owners)
        captains = sum(1 for p in owners if p.is_captain)
        team = team_map.get(player.team)
        rows.append(
            EffectiveOwnership(
                player_id=pid,
                player_name=player.web_name,
                position=position_short(player.position),
                team_short_name=team.short_name if team else "???",
                global_ownership=player.selected_by_percent,
                league_ownership=len(owners) / sample * 100,
                effective_ownership=weight / sample * 100,
                captain_share=captains / sample * 100,
                owner_count=len(owners),
                sample_size=sample,
                user_status=_user_status(user_by_id.get(pid)),
            )
        )

    rows.sort(key=lambda e: (-e.effective_ownership, -e.league_ownership, e.player_id))
    return rows


def _active_rival_counts(rivals: list[RivalTeam]) -> dict[int, int]:
    counts: dict[int, int] = {}
    for rival in rivals:
        for pick in rival.active_picks:
            counts[pick.element] = counts.get(pick.element, 0) + 1
    return counts


def _differential(player: Player, team_map, count: int, total: int, kind: str) -> Differential:
    team = team_map.get(player.team)
    return Differential(
        player_id=player.id,
        player_name=player.web_name,
        position=position_short(player.position),
        team_short_name=team.short_name if team else "???",
        form=player.form,
        expected_points=player.ep_next or player.form,
        rivals_owning=count,
        total_rivals=total,
        risk_score=round(count / total * 100),
        type=kind,
    )


def identify_differentials(
    user_picks: list[Pick],
    rivals: list[RivalTeam],
    player_map: dict[int, Player],
    team_map: dict[int, Team],
) -> tuple[list[Differential], list[Differential]]:
    """Split starting players into (attack, cover) differentials.

    attack: the user starts the player and at most LOW_OWNERSHIP_SHARE of
    rivals do. cover: rivals start the player and the user does not.
    """
    total = len(rivals)
    if total == 0:
        return [], []
    user_active = {p.element for p in user_picks if p.multiplier > 0}
    counts = _active_rival_counts(rivals)

    attack = []
    for pid in user_active:
        player = player_map.get(pid)
        count = counts.get(pid, 0)
        if player is None or count / total > LOW_OWNERSHIP_SHARE:
            continue
        attack.append(_differential(player, team_map, count, total, "attack"))
    attack.sort(key=lambda d: (-d.form, d.rivals_owning, d.player_id))

    cover = []
    for pid, count in counts.items():
        player = player_map.get(pid)
        if pid in user_active or player is None:
            continue
        cover.append(_differential(player, team_map, count, total, "cover"))
    cover.sort(key=lambda d: (-d.risk_score, -d.form, d.player_id))

    return attack, cover


def generate_swing_scenarios(
    user_picks: list[Pick],
    rivals: list[RivalTeam],
    player_map: dict[int, Player],
    team_map: dict[int, Team],
) -> list[SwingScenario]:
    """What each cover differential costs the user if it returns 2/6/10/15.

    ``net_impact`` is the average points the user drops per rival analysed;
    ``field_swing`` is how far owners move relative to non-owners across
    the same sample, i.e. (owning - not owning) * points / sample.
    """
    total = len(rivals)
    if total == 0:
        return []
    user_active = {p.element for p in user_picks if p.multiplier > 0}
    counts = _active_rival_counts(rivals)

    scenarios = []
    for pid, owning in counts.items():
        player = player_map.get(pid)
        if pid in user_active or player is None:
            continue
        team = team_map.get(player.team)
        fraction = owning / total
        not_owning = total - owning
        scenarios.append(
            SwingScenario(
                player_id=pid,
                player_name=player.web_name,
                position=position_short(player.position),
                team_short_name=team.short_name if team else "???",
                rivals_owning=owning,
                total_rivals=total,
                net_impact={pts: round(-pts * fraction, 1) for pts in SWING_POINTS},
                field_swing={pts: round((owning - not_owning) * pts / total, 1) for pts in SWING_POINTS},
            )
        )

    worst = SWING_POINTS[-1]
    scenarios.sort(key=lambda s: (s.net_impact[worst], s.player_id))
    return scenarios


def compare_with_rival(user_picks: list[Pick], rival: RivalTeam) -> RivalComparison:
    """Head-to-head squad overlap using all 15 players of each squad."""
    user_ids = {p.element for p in user_picks}
    rival_ids = {p.element for p in rival.picks}
    user_captain = next((p.element for p in user_picks if p.is_captain), None)
    return RivalComparison(
        rival=rival,
        shared=sorted(user_ids & rival_ids),
        user_only=sorted(user_ids - rival_ids),
        rival_only=sorted(rival_ids - user_ids),
        captain_match=user_captain is not None and user_captain == rival.captain,
        points_gap=rival.points_gap,
    )


def analyze_league(
    user_picks: list[Pick],
    user_standing: LeagueStanding,
    rivals: list[RivalTeam],
    leader_total: int,
    player_map: dict[int, Player],
    team_map: dict[int, Team],
) -> LeagueAnalysis:
    eo = calculate_effective_ownership(user_picks, rivals, player_map, team_map)
    attack, cover = identify_differentials(user_picks, rivals, player_map, team_map)
    swings = generate_swing_scenarios(user_picks, rivals, player_map, team_map)

    high_eo = [e for e in eo if e.effective_ownership >= HIGH_EO_THRESHOLD]
    covered = [e for e in high_eo if e.user_status != "dont_own"]
    coverage = round(len(covered) / len(high_eo) * 100) if high_eo else 100

    return LeagueAnalysis(
        effective_ownership=eo,
        your_differentials=attack,
        their_differentials=cover,
        rivals=list(rivals),
        swing_scenarios=swings,
        user_rank=user_standing.rank,
        gap_to_leader=leader_total - user_standing.total,
        unique_player_count=sum(1 for d in attack if d.rivals_owning == 0),
        eo_coverage=coverage,
        sample_size=len(rivals),
    )


# =============================================================================
# Chips
# =============================================================================

def chip_availability(
    chips_used: list[ManagerChip],
    current_gw: int,
    chip_windows: list[dict] | None = None,
) -> dict[str, bool]:
    """Whether each chip can still be played in the window covering current_gw.

    The relevant window for a chip is the earliest one that has not closed
    yet; the chip is available if no usage falls inside it.
    """
    windows = chip_windows or DEFAULT_CHIP_WINDOWS
    available = {}
    for chip in ALL_CHIPS:
        open_windows = sorted(
            (w for w in windows if w["name"] == chip and w["stop_event"] >= current_gw),
            key=lambda w: w["start_event"],
        )
        if not open_windows:
            available[chip] = False
            continue
        window = open_windows[0]
        used = any(
            c.name == chip and window["start_event"] <= c.event <= window["stop_event"]
            for c in chips_used
        )
        available[chip] = not used
    return available


def _chip_summary(user_available: dict[str, bool], statuses: list[RivalChipStatus]) -> str:
    if not statuses:
        return "No rival chip data available"
    user_left = sum(user_available.values())
    avg_rival = sum(s.chips_remaining for s in statuses) / len(statuses)
    if user_left > avg_rival:
        return f"You have {user_left} chips left, more than your rivals' average of {avg_rival:.1f}"
    if user_left < avg_rival:
        return f"You have {user_left} chips left, fewer than your rivals' average of {avg_rival:.1f}"
    return f"You have {user_left} chips left, level with your rivals"


def analyze_rival_chips(
    user_chips: list[ManagerChip],
    rivals: list[LeagueStanding],
    rival_chips: dict[int, list[ManagerChip]],
    user_total: int,
    current_gw: int,
    chip_windows: list[dict] | None = None,
) -> RivalChipAnalysis:
    """Chip availability for the user and every rival whose history loaded.

    Rivals missing from ``rival_chips`` (failed fetches) are left out of
    every count.
    """
    user_available = chip_availability(user_chips, current_gw, chip_windows)

    statuses: list[RivalChipStatus] = []
    alerts: list[ChipAlert] = []
    for rival in rivals:
        if rival.entry not in rival_chips:
            continue
        used = rival_chips[rival.entry]
        statuses.append(
            RivalChipStatus(
                entry=rival.entry,
                name=rival.entry_name,
                player_name=rival.player_name,
                rank=rival.rank,
                total=rival.total,
                points_gap=rival.total - user_total,
                available=chip_availability(used, current_gw, chip_windows),
            )
        )
        for chip in used:
            if current_gw - RECENT_CHIP_WINDOW <= chip.event <= current_gw:
                alerts.append(
                    ChipAlert(
                        entry=rival.entry,
                        rival_name=rival.player_name or rival.entry_name,
                        chip=chip.name,
                        label=CHIP_LABELS.get(chip.name, chip.name),
                        event=chip.event,
                    )
                )

    advantages = []
    for chip in ALL_CHIPS:
        with_chip = sum(1 for s in statuses if s.available[chip])
        advantages.append(
            ChipAdvantage(
                chip=chip,
                label=CHIP_LABELS[chip],
                user_has=user_available[chip],
                rivals_with=with_chip,
                rivals_without=len(statuses) - with_chip,
            )
        )

    statuses.sort(key=lambda s: (s.rank, s.entry))
    alerts.sort(key=lambda a: (-a.event, a.entry, a.chip))

    return RivalChipAnalysis(
        rivals=statuses,
        chip_advantages=advantages,
        active_chip_alerts=alerts,
        user_available=user_available,
        summary=_chip_summary(user_available, statuses),
    )
