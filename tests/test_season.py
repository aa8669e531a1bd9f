"""Tests for season aggregation."""

from __future__ import annotations

import dataclasses
from typing import Any, Dict

import pytest

from data_processor.lineup import LineupScore, PositionTally, WeeklyTeamResult
from data_processor.models import LeagueSnapshot, TeamSettlement
from data_processor.pipeline import build_season_summary, evaluate_season
from data_processor.season import (
    RULE_VERSION,
    PlayoffStats,
    SeasonSummary,
    SeasonTeamStats,
    aggregate_playoffs,
    aggregate_season,
    completed_weeks,
)


def make_result(week: int, actual: float, optimal: float, *, roster_id: str = "1") -> WeeklyTeamResult:
    return WeeklyTeamResult(
        season="2023",
        week=week,
        roster_id=roster_id,
        actual=LineupScore(total=actual, offense=actual, positions={"WR": PositionTally(actual, 1)}),
        optimal=LineupScore(total=optimal, offense=optimal, positions={"WR": PositionTally(optimal, 1)}),
    )


def test_completed_weeks_requires_a_later_week() -> None:
    assert completed_weeks([1, 2, 3]) == [1, 2]
    assert completed_weeks([3, 1, 2, 2]) == [1, 2]


def test_completed_weeks_single_week_fallback() -> None:
    assert completed_weeks([5]) == [5]
    assert completed_weeks([]) == []


def test_completed_weeks_excludes_playoffs() -> None:
    weeks = list(range(1, 18))

    assert completed_weeks(weeks, 14) == list(range(1, 14))
    assert completed_weeks(weeks, 13) == list(range(1, 13))


def test_aggregate_season_sums_completed_weeks_only() -> None:
    settlement = TeamSettlement(roster_id="1", owner_id="owner-a", name="Alpha")
    results = [make_result(1, 10.0, 20.0), make_result(2, 30.0, 30.0), make_result(3, 99.0, 99.0)]

    stats = aggregate_season(results, settlement, season="2023")

    assert stats.weeks_played == 2
    assert stats.points_for == pytest.approx(40.0)
    assert stats.max_points_for == pytest.approx(50.0)
    assert stats.management_percent == pytest.approx(80.0)
    assert stats.team_ppw == pytest.approx(20.0)
    assert stats.best_week == 2
    assert stats.weekly_points == {1: 10.0, 2: 30.0}
    assert stats.rule_version == RULE_VERSION


def playoff_game(week: int, actual: float, optimal: float, opponent_points: float) -> WeeklyTeamResult:
    return dataclasses.replace(
        make_result(week, actual, optimal),
        recorded_points=actual,
        opponent_roster_id="2",
        opponent_points=opponent_points,
    )


def test_playoff_weeks_are_folded_separately() -> None:
    settlement = TeamSettlement(roster_id="1", owner_id="owner-a")
    results = [
        make_result(1, 10.0, 20.0),
        make_result(2, 30.0, 30.0),
        make_result(3, 12.0, 15.0),
        playoff_game(14, 40.0, 50.0, 30.0),
        playoff_game(15, 20.0, 20.0, 25.0),
        playoff_game(16, 25.0, 25.0, 25.0),
        make_result(17, 11.0, 11.0),
    ]

    stats = aggregate_season(results, settlement, season="2023", playoff_start_week=14)
    playoffs = stats.playoffs

    assert stats.weeks_played == 3
    assert stats.points_for == pytest.approx(52.0)
    assert playoffs.weeks == 3
    assert playoffs.points_for == pytest.approx(85.0)
    assert playoffs.max_points_for == pytest.approx(95.0)
    assert playoffs.offensive_points_for == pytest.approx(85.0)
    assert playoffs.defensive_points_for == 0.0
    assert playoffs.ppw == pytest.approx(85.0 / 3)
    assert playoffs.management_percent == pytest.approx(85.0 / 95.0 * 100)
    assert (playoffs.wins, playoffs.losses, playoffs.ties) == (1, 1, 1)
    assert playoffs.record == "1-1-1"
    assert not playoffs.is_champion


def test_unbeaten_playoff_run_is_a_championship() -> None:
    playoffs = aggregate_playoffs([playoff_game(14, 40.0, 50.0, 30.0), playoff_game(15, 35.0, 35.0, 20.0)], 14)

    assert playoffs.record == "2-0"
    assert playoffs.is_champion
    assert not aggregate_playoffs([make_result(14, 40.0, 40.0)], 14).is_champion
    assert PlayoffStats.from_dict(playoffs.to_dict()) == playoffs


def test_zero_starts_give_zero_averages() -> None:
    settlement = TeamSettlement(roster_id="1", owner_id="owner-a")
    stats = aggregate_season([make_result(1, 10.0, 10.0), make_result(2, 0.0, 0.0)], settlement)

    assert stats.individual_position_ppw["DL"] == 0.0
    assert stats.position_avg_ppw["DL"] == 0.0
    assert stats.starters_per_week["WR"] == pytest.approx(1.0)


def test_season_without_weeks_is_all_zero() -> None:
    stats = aggregate_season([], TeamSettlement(roster_id="9", owner_id="owner-z"), season="2020")

    assert stats.weeks_played == 0
    assert stats.management_percent == 0.0
    assert stats.team_ppw == 0.0
    assert stats.best_week is None
    assert list(stats.position_points) == ["QB", "RB", "WR", "TE", "K", "DL", "LB", "DB"]


def test_aggregate_season_is_idempotent(league_payload: Dict[str, Any]) -> None:
    league = LeagueSnapshot.from_dict(league_payload)
    season = league.season("2023")
    assert season is not None

    first = build_season_summary(season, league.players, max_workers=2)
    second = build_season_summary(season, league.players, max_workers=4)

    assert first.to_dict() == second.to_dict()


def test_fixture_season_statistics(league_payload: Dict[str, Any]) -> None:
    league = LeagueSnapshot.from_dict(league_payload)
    season = league.season("2023")
    assert season is not None

    summary = build_season_summary(season, league.players)
    alpha = summary.team("1")
    bravo = summary.team("2")
    assert alpha is not None and bravo is not None

    assert summary.completed_weeks == [1, 2]
    assert alpha.owner_id == "owner-a"
    assert alpha.weeks_played == 2
    assert alpha.points_for == pytest.approx(72.0)
    assert alpha.max_points_for == pytest.approx(100.0)
    assert alpha.management_percent == pytest.approx(72.0)
    assert alpha.points_against == pytest.approx(96.0)
    assert alpha.position_points["RB"] == pytest.approx(36.0)
    assert alpha.position_starts["RB"] == 4
    assert alpha.position_avg_ppw["RB"] == pytest.approx(18.0)
    assert alpha.individual_position_ppw["RB"] == pytest.approx(9.0)
    assert alpha.starters_per_week["RB"] == pytest.approx(2.0)
    assert alpha.optimal_position_points["RB"] == pytest.approx(64.0)
    assert alpha.best_week == 1
    assert alpha.championships == 1
    assert (alpha.waiver_moves, alpha.faab_spent, alpha.trades) == (2, 12.0, 1)
    assert (bravo.waiver_moves, bravo.faab_spent, bravo.trades) == (0, 0.0, 1)
    assert bravo.management_percent == pytest.approx(100.0)
    assert bravo.position_points["WR"] == pytest.approx(14.0)


def test_evaluate_season_returns_every_unit_in_week_order(league_payload: Dict[str, Any]) -> None:
    league = LeagueSnapshot.from_dict(league_payload)
    season = league.season("2022")
    assert season is not None

    results = evaluate_season(season, league.players, max_workers=3)

    assert [(result.week, result.roster_id) for result in results] == [
        (1, "1"), (1, "2"), (2, "1"), (2, "2"), (3, "1"), (3, "2"),
    ]
    assert results[0].opponent_roster_id == "2"
    assert results[0].opponent_points == pytest.approx(48.0)


def test_season_summary_round_trip(league_payload: Dict[str, Any]) -> None:
    league = LeagueSnapshot.from_dict(league_payload)
    season = league.season("2023")
    assert season is not None
    summary = build_season_summary(season, league.players)

    restored = SeasonSummary.from_dict(summary.to_dict())

    assert restored == summary
    assert SeasonTeamStats.from_dict(summary.teams[0].to_dict()) == summary.teams[0]
