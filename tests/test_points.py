from __future__ import annotations

import pytest

from fpl_insights.models import Fixture
from fpl_insights.points import confidence_label, minutes_probability, predict_points


def _single_fixture(home_difficulty: int = 3, away_difficulty: int = 3) -> list[Fixture]:
    return [Fixture(id=1, gameweek=7, home_team=1, away_team=2, home_difficulty=home_difficulty,
                    away_difficulty=away_difficulty, finished=False)]


def test_predictions_sorted_and_non_negative(mock_players, mock_fixtures):
    preds = predict_points(mock_players, mock_fixtures, 3)
    assert len(preds) == len(mock_players)
    values = [p.predicted_points for p in preds]
    assert values == sorted(values, reverse=True)
    assert all(v >= 0 for v in values)


def test_blank_gameweek_predicts_zero(mock_players, mock_fixtures):
    preds = {p.player.id: p for p in predict_points(mock_players, mock_fixtures, 3)}
    assert preds[23].predicted_points == 0.0
    assert preds[23].fixture_count == 0
    assert preds[23].confidence == "low"


def test_injured_player_predicts_zero(mock_players, mock_fixtures):
    preds = {p.player.id: p for p in predict_points(mock_players, mock_fixtures, 3)}
    assert preds[24].predicted_points == 0.0


def test_double_gameweek_beats_single(make_player, mock_fixtures):
    dgw = make_player(1, "Double", 5, 3, 7.0)
    sgw = make_player(2, "Single", 1, 3, 7.0)
    preds = {p.player.id: p for p in predict_points([dgw, sgw], mock_fixtures, 3)}
    assert preds[1].fixture_count == 2
    assert preds[1].predicted_points > preds[2].predicted_points


def test_monotonic_in_form(make_player):
    fixtures = _single_fixture()
    players = [make_player(i, f"P{i}", 1, 3, 7.0, form=form) for i, form in enumerate([1.0, 3.0, 5.0, 8.0], 1)]
    preds = {p.player.id: p.predicted_points for p in predict_points(players, fixtures, 7)}
    assert preds[1] <= preds[2] <= preds[3] <= preds[4]


def test_inversely_monotonic_in_difficulty(make_player):
    player = make_player(1, "P", 1, 3, 7.0)
    previous = None
    for difficulty in range(1, 6):
        pred = predict_points([player], _single_fixture(home_difficulty=difficulty), 7)[0]
        if previous is not None:
            assert pred.fixture_score <= previous.fixture_score
            assert pred.predicted_points <= previous.predicted_points
        previous = pred


def test_home_bonus_applied(make_player):
    fixtures = _single_fixture(3, 3)
    home = make_player(1, "Home", 1, 3, 7.0)
    away = make_player(2, "Away", 2, 3, 7.0)
    preds = {p.player.id: p for p in predict_points([home, away], fixtures, 7)}
    assert preds[1].home_adj == pytest.approx(0.3)
    assert preds[2].home_adj == 0.0


def test_minutes_probability(make_player):
    assert minutes_probability(make_player(1, "Doubt", 1, 3, 7.0, status="d")) == 0.25
    assert minutes_probability(make_player(2, "Sus", 1, 3, 7.0, status="s")) == 0.0
    assert minutes_probability(make_player(3, "New", 1, 3, 7.0, minutes=0, starts=0)) == 0.1
    regular = minutes_probability(make_player(4, "Reg", 1, 3, 7.0, minutes=900, starts=10))
    assert 0.1 <= regular <= 1.0


def test_confidence_label(make_player):
    nailed = make_player(1, "Nailed", 1, 3, 7.0, minutes=900, starts=10, form=5.0)
    rotated = make_player(2, "Rotated", 1, 3, 7.0, minutes=450, starts=3, form=2.0)
    cameo = make_player(3, "Cameo", 1, 3, 7.0, minutes=60, starts=0)
    assert confidence_label(nailed, 1) == "high"
    assert confidence_label(rotated, 1) == "medium"
    assert confidence_label(cameo, 1) == "low"
    assert confidence_label(nailed, 0) == "low"
