"""Tests for weekly actual and optimal lineup evaluation."""

from __future__ import annotations

from typing import Dict, List

import pytest

from data_processor.lineup import (
    WeeklyTeamResult,
    build_candidates,
    evaluate_week,
    management_percent,
    pick_optimal,
)
from data_processor.models import MatchupEntry, PlayerRecord
from data_processor.slots import parse_lineup


def make_lookup(positions: Dict[str, List[str]]) -> Dict[str, PlayerRecord]:
    return {
        player_id: PlayerRecord(player_id, values[0], tuple(values))
        for player_id, values in positions.items()
    }


@pytest.fixture()
def standard_lookup() -> Dict[str, PlayerRecord]:
    return make_lookup(
        {
            "q1": ["QB"],
            "r1": ["RB"],
            "r2": ["RB"],
            "r3": ["RB"],
        }
    )


def test_end_to_end_week(standard_lookup: Dict[str, PlayerRecord]) -> None:
    slots = parse_lineup(["QB", "RB", "RB", "FLEX"])
    entry = MatchupEntry(
        roster_id="1",
        matchup_id=1,
        starters=("q1", "r1", "r2", "0"),
        players=("q1", "r1", "r2", "r3"),
        players_points={"q1": 18.0, "r1": 10.0, "r2": 8.0, "r3": 14.0},
    )

    result = evaluate_week(slots, entry, standard_lookup, season="2023", week=1)

    assert result.actual.total == pytest.approx(36.0)
    assert result.optimal.total == pytest.approx(50.0)
    assert result.management_percent == pytest.approx(72.0)
    assert result.actual.positions["QB"].points == pytest.approx(18.0)
    assert result.actual.positions["RB"].points == pytest.approx(18.0)
    assert result.actual.positions["RB"].count == 2
    assert result.optimal.positions["RB"].points == pytest.approx(32.0)
    assert result.optimal.positions["RB"].count == 3
    assert result.actual.offense == pytest.approx(36.0)
    assert result.actual.defense == 0.0
    assert result.matchup_points == pytest.approx(36.0)


def test_greedy_superflex_regression() -> None:
    lookup = make_lookup({"qb": ["QB"], "rb": ["RB"]})
    slots = parse_lineup(["QB", "SUPER_FLEX"])
    entry = MatchupEntry(
        roster_id="1",
        starters=("qb", "rb"),
        players=("qb", "rb"),
        players_points={"qb": 20.0, "rb": 25.0},
    )

    result = evaluate_week(slots, entry, lookup)

    assert result.optimal.total == pytest.approx(45.0)
    picks = {assignment.slot_label: assignment.player_id for assignment in result.optimal.assignments}
    assert picks == {"QB": "qb", "SUPER_FLEX": "rb"}


def test_greedy_ties_go_to_first_candidate() -> None:
    lookup = make_lookup({"a": ["WR"], "b": ["WR"]})
    slots = parse_lineup(["WR"])
    entry = MatchupEntry(roster_id="1", players=("a", "b"), players_points={"a": 9.0, "b": 9.0})

    picks = pick_optimal(slots, build_candidates(entry, lookup))

    assert [candidate.player_id for _, candidate in picks] == ["a"]


def test_crediting_agrees_between_actual_and_optimal() -> None:
    lookup = make_lookup({"q": ["QB"], "t": ["TE", "WR"]})
    slots = parse_lineup(["QB", "SUPER_FLEX"])
    entry = MatchupEntry(
        roster_id="1",
        starters=("q", "t"),
        players=("q", "t"),
        players_points={"q": 15.0, "t": 11.0},
    )

    result = evaluate_week(slots, entry, lookup)

    actual = {item.player_id: item.credited_position for item in result.actual.assignments}
    optimal = {item.player_id: item.credited_position for item in result.optimal.assignments}
    assert actual == optimal == {"q": "QB", "t": "TE"}
    assert dict(result.actual.positions) == dict(result.optimal.positions)


def test_multi_position_player_credited_by_slot() -> None:
    lookup = make_lookup({"x": ["WR", "RB"], "y": ["RB"]})
    slots = parse_lineup(["RB", "FLEX"])
    entry = MatchupEntry(
        roster_id="1",
        starters=("x", "y"),
        players=("x", "y"),
        players_points={"x": 12.0, "y": 4.0},
    )

    result = evaluate_week(slots, entry, lookup)

    credited = {item.player_id: item.credited_position for item in result.actual.assignments}
    assert credited == {"x": "RB", "y": "RB"}
    optimal = {item.player_id: item.credited_position for item in result.optimal.assignments}
    assert optimal == {"x": "RB", "y": "RB"}


def test_idp_points_count_as_defense() -> None:
    lookup = make_lookup({"lb": ["OLB"], "cb": ["CB"], "qb": ["QB"]})
    slots = parse_lineup(["QB", "IDP_FLEX", "DB"])
    entry = MatchupEntry(
        roster_id="1",
        starters=("qb", "lb", "cb"),
        players=("qb", "lb", "cb"),
        players_points={"qb": 10.0, "lb": 7.0, "cb": 5.0},
    )

    result = evaluate_week(slots, entry, lookup)

    assert result.actual.offense == pytest.approx(10.0)
    assert result.actual.defense == pytest.approx(12.0)
    assert result.defensive_management_percent == pytest.approx(100.0)
    assert set(result.actual.positions) == {"QB", "LB", "DB"}


def test_starter_count_mismatch_matches_by_eligibility(standard_lookup: Dict[str, PlayerRecord]) -> None:
    slots = parse_lineup(["QB", "RB", "FLEX"])
    entry = MatchupEntry(
        roster_id="1",
        starters=("r1", "q1"),
        players=("q1", "r1"),
        players_points={"q1": 18.0, "r1": 10.0},
    )

    result = evaluate_week(slots, entry, standard_lookup)

    assigned = {item.slot_label: item.player_id for item in result.actual.assignments}
    assert assigned == {"QB": "q1", "RB": "r1"}
    assert result.actual.total == pytest.approx(28.0)


def test_starter_with_no_eligible_slot_is_left_out() -> None:
    lookup = make_lookup({"k": ["K"], "q": ["QB"]})
    slots = parse_lineup(["QB", "RB", "WR"])
    entry = MatchupEntry(
        roster_id="1",
        starters=("q", "k"),
        players=("q", "k"),
        players_points={"q": 20.0, "k": 9.0},
    )

    result = evaluate_week(slots, entry, lookup)

    assert result.actual.total == pytest.approx(20.0)
    assert [item.player_id for item in result.actual.assignments] == ["q"]


def test_dropped_player_with_recorded_points_is_a_candidate(standard_lookup: Dict[str, PlayerRecord]) -> None:
    slots = parse_lineup(["RB"])
    entry = MatchupEntry(
        roster_id="1",
        starters=("r1",),
        players=("r1",),
        players_points={"r1": 4.0, "r3": 21.0},
    )

    candidates = build_candidates(entry, standard_lookup)
    result = evaluate_week(slots, entry, standard_lookup)

    assert [candidate.player_id for candidate in candidates] == ["r1", "r3"]
    assert result.optimal.total == pytest.approx(21.0)


def test_unknown_player_is_never_an_optimal_pick() -> None:
    lookup = make_lookup({"q": ["QB"]})
    slots = parse_lineup(["QB", "FLEX", "ZZTOP"])
    entry = MatchupEntry(
        roster_id="1",
        starters=("q", "0", "0"),
        players=("q", "ghost"),
        players_points={"q": 12.0, "ghost": 30.0},
    )

    result = evaluate_week(slots, entry, lookup)

    candidates = build_candidates(entry, lookup)
    assert candidates[1].base_position == "UNK"
    assert result.optimal.total == pytest.approx(12.0)
    assert result.actual.total == pytest.approx(12.0)


def test_empty_week_is_zero_not_error() -> None:
    slots = parse_lineup(["QB", "RB"])
    entry = MatchupEntry(roster_id="1")

    result = evaluate_week(slots, entry, {})

    assert result.actual.total == 0.0
    assert result.optimal.total == 0.0
    assert result.management_percent == 0.0


def test_management_percent_bounds(standard_lookup: Dict[str, PlayerRecord]) -> None:
    slots = parse_lineup(["QB", "RB", "RB", "FLEX"])
    for starters in [("q1", "r1", "r2", "r3"), ("q1", "r3", "0", "0"), ("0", "0", "0", "0")]:
        entry = MatchupEntry(
            roster_id="1",
            starters=starters,
            players=("q1", "r1", "r2", "r3"),
            players_points={"q1": 18.0, "r1": 10.0, "r2": 8.0, "r3": 14.0},
        )
        result = evaluate_week(slots, entry, standard_lookup)
        assert 0.0 <= result.management_percent <= 100.0 + 1e-9
        assert result.actual.total <= result.optimal.total + 1e-9

    assert management_percent(10.0, 0.0) == 0.0


def test_weekly_result_dict_round_trip(standard_lookup: Dict[str, PlayerRecord]) -> None:
    slots = parse_lineup(["QB", "RB", "RB", "FLEX"])
    entry = MatchupEntry(
        roster_id="1",
        matchup_id=3,
        points=36.0,
        starters=("q1", "r1", "r2", "0"),
        players=("q1", "r1", "r2", "r3"),
        players_points={"q1": 18.0, "r1": 10.0, "r2": 8.0, "r3": 14.0},
    )
    opponent = MatchupEntry(roster_id="2", matchup_id=3, points=40.5)
    result = evaluate_week(slots, entry, standard_lookup, season="2023", week=4, opponent=opponent)

    restored = WeeklyTeamResult.from_dict(result.to_dict())

    assert restored == result
    assert restored.opponent_points == pytest.approx(40.5)
