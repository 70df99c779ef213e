from __future__ import annotations

from rich.console import Console
from rich.table import Table

from .league import Differential
from .league_report import LeagueReport

STATUS_STYLES = {
    "captain": "[bold green]C[/bold green]",
    "own": "[green]✓[/green]",
    "bench": "[yellow]B[/yellow]",
    "dont_own": "[red]✗[/red]",
}


def _differential_table(title: str, rows: list[Differential], style: str) -> Table:
    table = Table(title=title, show_lines=False)
    table.add_column("Pos", style="bold cyan", width=4)
    table.add_column("Player", style=style, min_width=14)
    table.add_column("Team", width=5)
    table.add_column("Form", justify="right", width=5)
    table.add_column("xPts", justify="right", width=5)
    table.add_column("Rivals", justify="right", width=7)
    table.add_column("Risk", justify="right", width=5)

    for d in rows:
        table.add_row(
            d.position,
            d.player_name,
            d.team_short_name,
            f"{d.form:.1f}",
            f"{d.expected_points:.1f}",
            f"{d.rivals_owning}/{d.total_rivals}",
            f"{d.risk_score}%",
        )
    return table


def print_report(report: LeagueReport, console: Console | None = None, limit: int = 15) -> None:
    console = console or Console()
    analysis = report.analysis
    stats = report.batch.to_response()["stats"]

    console.print()
    console.rule(f"[bold blue]{report.league_name} - GW{report.gameweek}[/bold blue]")
    console.print()

    console.print(
        f"[bold]Your rank:[/bold] {analysis.user_rank}   "
        f"[bold]Gap to leader:[/bold] {analysis.gap_to_leader} pts   "
        f"[bold]EO coverage:[/bold] {analysis.eo_coverage}%"
    )
    console.print(
        f"[bold]Rivals analysed:[/bold] {stats['successfulPicks']}/{stats['totalRequested']}"
        + (f" [red]({stats['failedPicks']} failed)[/red]" if stats["failedPicks"] else "")
    )
    console.print()

    if analysis.sample_size == 0:
        console.print("[dim]No rival data available.[/dim]")
        return

    eo_table = Table(title="Effective Ownership", show_lines=False)
    eo_table.add_column("Player", style="bold white", min_width=14)
    eo_table.add_column("Team", width=5)
    eo_table.add_column("Pos", width=4)
    eo_table.add_column("Global", justify="right", width=7)
    eo_table.add_column("League", justify="right", width=7)
    eo_table.add_column("EO", justify="right", style="bold green", width=6)
    eo_table.add_column("You", justify="center", width=4)
    for e in analysis.effective_ownership[:limit]:
        eo_table.add_row(
            e.player_name,
            e.team_short_name,
            e.position,
            f"{e.global_ownership:.1f}%",
            f"{e.league_ownership:.0f}%",
            f"{e.effective_ownership:.0f}%",
            STATUS_STYLES[e.user_status],
        )
    console.print(eo_table)
    console.print()

    if analysis.your_differentials:
        console.print(_differential_table("Your Differentials", analysis.your_differentials[:limit], "green"))
        console.print()
    if analysis.their_differentials:
        console.print(_differential_table("Players To Cover", analysis.their_differentials[:limit], "red"))
        console.print()

    if analysis.swing_scenarios:
        s_table = Table(title="Swing Scenarios (avg pts lost per rival)", show_lines=False)
        s_table.add_column("Player", style="bold white", min_width=14)
        s_table.add_column("Owned", justify="right", width=7)
        for pts in sorted(analysis.swing_scenarios[0].net_impact):
            s_table.add_column(f"{pts} pts", justify="right", width=7)
        for s in analysis.swing_scenarios[:limit]:
            s_table.add_row(
                s.player_name,
                f"{s.rivals_owning}/{s.total_rivals}",
                *(f"{s.net_impact[pts]:+.1f}" for pts in sorted(s.net_impact)),
            )
        console.print(s_table)
        console.print()

    r_table = Table(title="Head to Head", show_lines=False)
    r_table.add_column("#", width=4)
    r_table.add_column("Manager", min_width=14)
    r_table.add_column("Team", min_width=14)
    r_table.add_column("Gap", justify="right", width=6)
    r_table.add_column("Shared", justify="right", width=6)
    r_table.add_column("Diff", justify="right", width=6)
    r_table.add_column("Same C", justify="center", width=6)
    for c in report.comparisons:
        r_table.add_row(
            str(c.rival.rank),
            c.rival.player_name,
            c.rival.name,
            f"{c.points_gap:+d}",
            str(len(c.shared)),
            str(len(c.rival_only)),
            "✓" if c.captain_match else "",
        )
    console.print(r_table)
    console.print()

    chips = report.rival_chips
    if chips.active_chip_alerts:
        for alert in chips.active_chip_alerts:
            console.print(f"[bold yellow]![/bold yellow] {alert.rival_name} played {alert.label} in GW{alert.event}")
        console.print()
    console.print(f"[bold]Chips:[/bold] {chips.summary}")
    console.print(f"[bold]Chip history:[/bold] {report.chip_history.summary}")
    console.print()
