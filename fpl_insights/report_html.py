from __future__ import annotations

from datetime import datetime
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from .league_report import LeagueReport

TEMPLATE_DIR = Path(__file__).parent / "templates"


def render_html(report: LeagueReport, limit: int = 20) -> str:
    env = Environment(loader=FileSystemLoader(str(TEMPLATE_DIR)), autoescape=True)
    template = env.get_template("league_report.html")

    return template.render(
        report=report,
        analysis=report.analysis,
        stats=report.batch.to_response()["stats"],
        limit=limit,
        generated_at=datetime.now().strftime("%Y-%m-%d %H:%M"),
    )


def generate_html(report: LeagueReport, output_path: str = "league_report.html") -> None:
    Path(output_path).write_text(render_html(report), encoding="utf-8")
