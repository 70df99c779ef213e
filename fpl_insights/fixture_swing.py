from __future__ import annotations

from dataclasses import asdict, dataclass, field

from .fixtures import average_difficulty, team_fixtures
from .models import MAX_GAMEWEEK, Fixture, Team

BLANK_WINDOW_FDR = 5.0  # no fixtures in a window is the worst case
TREND_THRESHOLD = 0.5
SWING_THRESHOLD = 0.8
HIGH_SEVERITY_SWING = 1.2
GREEN_RUN_FDR = 2.5
RED_RUN_FDR = 3.5
CURRENT_GREEN_FDR = 2.2
CURRENT_RED_FDR = 3.8
TARGET_FDR = 2.8
MAX_ALERTS = 10
MAX_LISTED_TEAMS = 6

SEVERITY_ORDER = {"high": 0, "medium": 1, "low": 2}


@dataclass
class TeamFdrWindow:
    team_id: int
    team_name: str
    team_short: str
    current_fdr: float
    next_fdr: float
    change: float  # positive = next window easier
    fixture_count: int
    trend: str  # improving / worsening / stable

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class FixtureSwingAlert:
    team_id: int
    team_name: str
    team_short: str
    alert_type: str  # green_run / red_run / improving / worsening
    message: str
    fdr_before: float
    fdr_after: float
    fdr_change: float
    window_start: int
    window_end: int
    severity: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class FixtureSwingAnalysis:
    alerts: list[FixtureSwingAlert] = field(default_factory=list)
    team_rankings: list[TeamFdrWindow] = field(default_factory=list)
    best_targets: list[TeamFdrWindow] = field(default_factory=list)
    teams_to_avoid: list[TeamFdrWindow] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "alerts": [a.to_dict() for a in self.alerts],
            "team_rankings": [t.to_dict() for t in self.team_rankings],
            "best_targets": [t.to_dict() for t in self.best_targets],
            "teams_to_avoid": [t.to_dict() for t in self.teams_to_avoid],
        }


def window_fdr(team_id: int, fixtures: list[Fixture], gw_start: int, gw_end: int) -> tuple[float, int]:
    """Average FDR and fixture count for a team across a window."""
    if gw_start > gw_end:
        return BLANK_WINDOW_FDR, 0
    avg = average_difficulty(team_id, fixtures, gw_start, gw_end)
    if avg is None:
        return BLANK_WINDOW_FDR, 0
    return avg, len(team_fixtures(team_id, fixtures, gw_start, gw_end))


def _trend(change: float) -> str:
    if change > TREND_THRESHOLD:
        return "improving"
    if change < -TREND_THRESHOLD:
        return "worsening"
    return "stable"


def analyze_fixture_swings(
    teams: list[Team],
    fixtures: list[Fixture],
    start_gw: int,
    window_size: int = 5,
) -> FixtureSwingAnalysis:
    """Compare each team's FDR over the next window with the window after it.

    A swing is declared when the average changes by at least
    ``SWING_THRESHOLD`` (inclusive). Values are compared unrounded and all
    orderings break ties on team id, so the output is fully deterministic.
    """
    if window_size < 1:
        raise ValueError("window_size must be at least 1")

    current_start = start_gw
    current_end = min(start_gw + window_size - 1, MAX_GAMEWEEK)
    next_start = current_end + 1
    next_end = min(next_start + window_size - 1, MAX_GAMEWEEK)

    alerts: list[FixtureSwingAlert] = []
    rankings: list[TeamFdrWindow] = []

    for team in teams:
        current_avg, current_count = window_fdr(team.id, fixtures, current_start, current_end)
        if next_start <= MAX_GAMEWEEK:
            next_avg, _ = window_fdr(team.id, fixtures, next_start, next_end)
        else:
            next_avg = current_avg
        change = current_avg - next_avg

        rankings.append(
            TeamFdrWindow(
                team_id=team.id,
                team_name=team.name,
                team_short=team.short_name,
                current_fdr=round(current_avg, 1),
                next_fdr=round(next_avg, 1),
                change=round(change, 1),
                fixture_count=current_count,
                trend=_trend(change),
            )
        )

        def alert(alert_type: str, message: str, severity: str, start: int, end: int) -> FixtureSwingAlert:
            return FixtureSwingAlert(
                team_id=team.id,
                team_name=team.name,
                team_short=team.short_name,
                alert_type=alert_type,
                message=message,
                fdr_before=round(current_avg, 1),
                fdr_after=round(next_avg, 1),
                fdr_change=round(change, 1),
                window_start=start,
                window_end=end,
                severity=severity,
            )

        team_alerts: list[FixtureSwingAlert] = []
        if abs(change) >= SWING_THRESHOLD:
            improving = change > 0
            if improving and next_avg <= GREEN_RUN_FDR:
                team_alerts.append(alert(
                    "green_run",
                    f"{team.name} enters favorable run (FDR {next_avg:.1f}) from GW{next_start}",
                    "high", next_start, next_end,
                ))
            elif not improving and next_avg >= RED_RUN_FDR:
                team_alerts.append(alert(
                    "red_run",
                    f"{team.name} faces tough fixtures (FDR {next_avg:.1f}) from GW{next_start}",
                    "high", next_start, next_end,
                ))
            else:
                severity = "high" if abs(change) >= HIGH_SEVERITY_SWING else "medium"
                if improving:
                    message = f"{team.name} fixtures improve by {change:.1f} FDR from GW{next_start}"
                else:
                    message = f"{team.name} fixtures worsen by {abs(change):.1f} FDR from GW{next_start}"
                team_alerts.append(alert(
                    "improving" if improving else "worsening",
                    message, severity, next_start, next_end,
                ))

        full_window = current_count >= window_size - 1
        existing = {a.alert_type for a in team_alerts}
        if full_window and current_avg <= CURRENT_GREEN_FDR and "green_run" not in existing:
            team_alerts.append(alert(
                "green_run",
                f"{team.name} currently in green run (FDR {current_avg:.1f})",
                "high", current_start, current_end,
            ))
        elif full_window and current_avg >= CURRENT_RED_FDR and "red_run" not in existing:
            team_alerts.append(alert(
                "red_run",
                f"{team.name} currently in tough run (FDR {current_avg:.1f})",
                "high", current_start, current_end,
            ))
        alerts.extend(team_alerts)

    alerts.sort(key=lambda a: (SEVERITY_ORDER[a.severity], -abs(a.fdr_change), a.team_id, a.window_start))
    rankings.sort(key=lambda t: (t.current_fdr, t.team_id))

    best = [
        t for t in rankings
        if t.current_fdr <= TARGET_FDR or (t.trend == "improving" and t.change >= SWING_THRESHOLD)
    ][:MAX_LISTED_TEAMS]
    avoid = sorted(
        (t for t in rankings
         if t.current_fdr >= RED_RUN_FDR or (t.trend == "worsening" and t.change <= -SWING_THRESHOLD)),
        key=lambda t: (-t.current_fdr, t.team_id),
    )[:MAX_LISTED_TEAMS]

    return FixtureSwingAnalysis(
        alerts=alerts[:MAX_ALERTS],
        team_rankings=rankings,
        best_targets=best,
        teams_to_avoid=avoid,
    )


def easiest_fixture_teams(
    teams: list[Team],
    fixtures: list[Fixture],
    gw_start: int,
    gw_end: int,
    limit: int = 5,
) -> list[TeamFdrWindow]:
    windows = []
    for team in teams:
        avg, count = window_fdr(team.id, fixtures, gw_start, gw_end)
        windows.append(
            TeamFdrWindow(
                team_id=team.id,
                team_name=team.name,
                team_short=team.short_name,
                current_fdr=round(avg, 1),
                next_fdr=0.0,
                change=0.0,
                fixture_count=count,
                trend="stable",
            )
        )
    windows.sort(key=lambda t: (t.current_fdr, -t.fixture_count, t.team_id))
    return windows[:limit]
