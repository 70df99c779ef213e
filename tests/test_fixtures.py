from __future__ import annotations

import pytest

from fpl_insights.fixtures import (
    average_difficulty,
    build_fixture_grid,
    easiest_fixture_in,
    find_special_gameweeks,
    sort_by_easiest_fixtures,
)


def test_grid_has_row_per_team(mock_teams, mock_fixtures):
    teams = list(mock_teams.values())
    rows = build_fixture_grid(teams, mock_fixtures, 3, 5)
    assert [r.team.id for r in rows] == [t.id for t in teams]


def test_grid_double_gameweek_cells_ordered(mock_teams, mock_fixtures):
    rows = {r.team.id: r for r in build_fixture_grid(list(mock_teams.values()), mock_fixtures, 3, 3)}
    spurs = rows[5]
    cells = spurs.fixtures[3]
    assert [c.fixture_id for c in cells] == [11, 12]
    assert [c.is_home for c in cells] == [True, False]
    assert [c.opponent_short_name for c in cells] == ["NEW", "NEW"]
    assert spurs.total_difficulty == 6
    assert spurs.fixture_count == 2


def test_grid_blank_team_has_no_average(mock_teams, mock_fixtures):
    rows = {r.team.id: r for r in build_fixture_grid(list(mock_teams.values()), mock_fixtures, 3, 3)}
    assert rows[6].fixtures == {}
    assert rows[6].average_difficulty is None
    assert rows[6].to_dict()["avg_difficulty"] is None


def test_grid_ignores_unscheduled_fixtures(mock_teams, mock_fixtures):
    rows = build_fixture_grid(list(mock_teams.values()), mock_fixtures, 1, 38)
    fixture_ids = {c.fixture_id for r in rows for cells in r.fixtures.values() for c in cells}
    assert 13 not in fixture_ids


@pytest.mark.parametrize("start, end", [(0, 5), (1, 39), (6, 5)])
def test_grid_rejects_bad_range(mock_teams, mock_fixtures, start, end):
    with pytest.raises(ValueError):
        build_fixture_grid(list(mock_teams.values()), mock_fixtures, start, end)


def test_sort_by_easiest(mock_teams, mock_fixtures):
    rows = build_fixture_grid(list(mock_teams.values()), mock_fixtures, 3, 5)
    ordered = sort_by_easiest_fixtures(rows)
    assert [r.team.id for r in ordered] == [1, 2, 3, 5, 7, 4, 6]


def test_easiest_fixture_in_double(mock_fixtures):
    fixture, count = easiest_fixture_in(5, mock_fixtures, 3)
    assert fixture.id == 11
    assert count == 2
    assert easiest_fixture_in(6, mock_fixtures, 3) is None


def test_average_difficulty(mock_fixtures):
    assert average_difficulty(1, mock_fixtures, 3, 5) == pytest.approx(2.5)
    assert average_difficulty(6, mock_fixtures, 3, 3) is None


def test_find_special_gameweeks(mock_teams, mock_fixtures, mock_gameweeks):
    doubles, blanks = find_special_gameweeks(mock_fixtures, list(mock_teams.values()), mock_gameweeks)
    assert doubles == {3: [5, 7]}
    assert blanks == {1: [7], 2: [5], 3: [6]}
