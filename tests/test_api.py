from __future__ import annotations

import logging

import httpx
import pytest

from fpl_insights.api import FplApiError, FplClient, load_season

BASE_URL = "https://fpl.test/api"


def _html_client() -> FplClient:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>The game is being updated.</html>")

    return FplClient(httpx.Client(transport=httpx.MockTransport(handler)), base_url=BASE_URL)


def test_non_json_body_raises_api_error():
    client = _html_client()
    with pytest.raises(FplApiError) as exc:
        client.bootstrap()
    assert exc.value.status_code == 502
    assert not exc.value.not_found
    assert exc.value.message == "Invalid response from FPL API for /bootstrap-static/"


def test_error_status_raises_api_error(fpl_client):
    with pytest.raises(FplApiError) as exc:
        fpl_client.manager_picks(104, 2)
    assert exc.value.status_code == 500


def test_load_season(fpl_client):
    season = load_season(fpl_client)
    assert [gw.id for gw in season.gameweeks] == [1, 2, 3]
    assert [t.id for t in season.team_list] == sorted(season.teams)


def test_load_season_warns_on_inconsistent_gameweeks(fpl_client, mock_bootstrap, caplog):
    mock_bootstrap["events"][0]["is_current"] = True
    with caplog.at_level(logging.WARNING, logger="fpl_insights.api"):
        load_season(fpl_client)
    assert "Gameweek data problem: 2 gameweeks flagged current" in caplog.text


def test_load_season_quiet_on_clean_data(fpl_client, caplog):
    with caplog.at_level(logging.WARNING, logger="fpl_insights.api"):
        load_season(fpl_client)
    assert "Gameweek data problem" not in caplog.text
