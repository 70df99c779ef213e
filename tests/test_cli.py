from __future__ import annotations

import pytest
from rich.console import Console

from fpl_insights import cli
from fpl_insights.api import FplClient
from fpl_insights.league_report import ManagerNotInLeague, build_league_report
from fpl_insights.report_console import print_report
from fpl_insights.report_html import render_html


@pytest.fixture
def report(fpl_client):
    return build_league_report(fpl_client, 77, 105, rival_count=3)


@pytest.fixture
def patched_client(monkeypatch, fpl_client):
    monkeypatch.setattr(FplClient, "from_settings", lambda settings: fpl_client)
    return fpl_client


def test_build_league_report(report):
    assert report.gameweek == 2
    assert report.user.entry == 105
    assert report.analysis.sample_size == 2
    assert [r.entry for r in report.rival_chips.rivals] == [103, 104, 106]
    assert report.chip_history.summary == "No chips used yet this season"


def test_build_league_report_unknown_manager(fpl_client):
    with pytest.raises(ManagerNotInLeague):
        build_league_report(fpl_client, 77, 4242)


def test_console_report(report):
    console = Console(record=True, width=140)
    print_report(report, console=console)
    text = console.export_text()
    assert "Office League - GW2" in text
    assert "Effective Ownership" in text
    assert "Rivals analysed: 2/3 (1 failed)" in text
    assert "played Triple Captain in GW2" in text


def test_html_report(report):
    html = render_html(report)
    assert "<h1>Office League</h1>" in html
    assert "Effective Ownership" in html
    assert "Triple Captain" in html


def test_cli_writes_html(patched_client, tmp_path):
    out = tmp_path / "report.html"
    cli.main(["--league", "77", "--manager", "105", "--rivals", "3", "--no-console", "--html", str(out)])
    assert "Office League" in out.read_text(encoding="utf-8")


def test_cli_unknown_manager_exits(patched_client, capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["--league", "77", "--manager", "4242", "--no-console"])
    assert exc.value.code == 1
    assert "4242" in capsys.readouterr().err


def test_cli_unknown_league_exits(patched_client, capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["--league", "999", "--manager", "105", "--no-console"])
    assert exc.value.code == 1
    assert "Error fetching data" in capsys.readouterr().err


def test_cli_requires_league_and_manager():
    with pytest.raises(SystemExit) as exc:
        cli.main(["--league", "77"])
    assert exc.value.code == 2
