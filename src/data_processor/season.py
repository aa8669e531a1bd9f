"""Roll weekly lineup results into per-team season statistics."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .lineup import WeeklyTeamResult, management_percent
from .models import DEFAULT_PLAYOFF_START_WEEK, TeamSettlement
from .positions import CANONICAL_POSITIONS, ordered_position_keys

RULE_VERSION = 5


def completed_weeks(weeks: Iterable[int], playoff_start_week: int = DEFAULT_PLAYOFF_START_WEEK) -> List[int]:
    """Regular-season weeks that are safe to aggregate.

    A week counts as completed once a later week exists in the data. When
    only a single week exists it is used anyway.
    """
    distinct = sorted(set(weeks))
    if len(distinct) > 1:
        distinct = distinct[:-1]
    return [week for week in distinct if week < playoff_start_week]


@dataclass
class PlayoffStats:
    """Playoff-week production and record, from weeks at or after the playoff start."""

    weeks: int = 0
    points_for: float = 0.0
    max_points_for: float = 0.0
    offensive_points_for: float = 0.0
    max_offensive_points_for: float = 0.0
    defensive_points_for: float = 0.0
    max_defensive_points_for: float = 0.0
    wins: int = 0
    losses: int = 0
    ties: int = 0

    @property
    def management_percent(self) -> float:
        return management_percent(self.points_for, self.max_points_for)

    @property
    def offensive_management_percent(self) -> float:
        return management_percent(self.offensive_points_for, self.max_offensive_points_for)

    @property
    def defensive_management_percent(self) -> float:
        return management_percent(self.defensive_points_for, self.max_defensive_points_for)

    @property
    def ppw(self) -> float:
        return _ratio(self.points_for, self.weeks)

    @property
    def offensive_ppw(self) -> float:
        return _ratio(self.offensive_points_for, self.weeks)

    @property
    def defensive_ppw(self) -> float:
        return _ratio(self.defensive_points_for, self.weeks)

    @property
    def is_champion(self) -> bool:
        """Reached the playoffs and never lost a playoff game."""
        return self.weeks > 0 and self.losses == 0

    @property
    def record(self) -> str:
        if self.ties:
            return f"{self.wins}-{self.losses}-{self.ties}"
        return f"{self.wins}-{self.losses}"

    @classmethod
    def combine(cls, blocks: Sequence["PlayoffStats"]) -> "PlayoffStats":
        """Sum several blocks; floats use exact summation so order does not matter."""
        return cls(
            weeks=sum(block.weeks for block in blocks),
            points_for=math.fsum(block.points_for for block in blocks),
            max_points_for=math.fsum(block.max_points_for for block in blocks),
            offensive_points_for=math.fsum(block.offensive_points_for for block in blocks),
            max_offensive_points_for=math.fsum(block.max_offensive_points_for for block in blocks),
            defensive_points_for=math.fsum(block.defensive_points_for for block in blocks),
            max_defensive_points_for=math.fsum(block.max_defensive_points_for for block in blocks),
            wins=sum(block.wins for block in blocks),
            losses=sum(block.losses for block in blocks),
            ties=sum(block.ties for block in blocks),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weeks": self.weeks,
            "points_for": self.points_for,
            "max_points_for": self.max_points_for,
            "management_percent": self.management_percent,
            "ppw": self.ppw,
            "offensive_points_for": self.offensive_points_for,
            "max_offensive_points_for": self.max_offensive_points_for,
            "offensive_management_percent": self.offensive_management_percent,
            "offensive_ppw": self.offensive_ppw,
            "defensive_points_for": self.defensive_points_for,
            "max_defensive_points_for": self.max_defensive_points_for,
            "defensive_management_percent": self.defensive_management_percent,
            "defensive_ppw": self.defensive_ppw,
            "wins": self.wins,
            "losses": self.losses,
            "ties": self.ties,
            "record": self.record,
            "is_champion": self.is_champion,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PlayoffStats":
        return cls(
            weeks=int(data.get("weeks", 0)),
            points_for=float(data.get("points_for", 0.0)),
            max_points_for=float(data.get("max_points_for", 0.0)),
            offensive_points_for=float(data.get("offensive_points_for", 0.0)),
            max_offensive_points_for=float(data.get("max_offensive_points_for", 0.0)),
            defensive_points_for=float(data.get("defensive_points_for", 0.0)),
            max_defensive_points_for=float(data.get("max_defensive_points_for", 0.0)),
            wins=int(data.get("wins", 0)),
            losses=int(data.get("losses", 0)),
            ties=int(data.get("ties", 0)),
        )


def aggregate_playoffs(
    results: Sequence[WeeklyTeamResult],
    playoff_start_week: int = DEFAULT_PLAYOFF_START_WEEK,
) -> PlayoffStats:
    """Fold a team's playoff weeks into a :class:`PlayoffStats` block.

    A playoff week counts only when the team was paired with an opponent;
    eliminated teams and byes carry no opponent. The record compares
    matchup points against the opponent's recorded points when known.
    """
    games = sorted(
        (result for result in results if result.week >= playoff_start_week and result.opponent_roster_id is not None),
        key=lambda result: result.week,
    )
    wins = losses = ties = 0
    for result in games:
        if result.opponent_points is None:
            continue
        if result.matchup_points > result.opponent_points:
            wins += 1
        elif result.matchup_points < result.opponent_points:
            losses += 1
        else:
            ties += 1
    return PlayoffStats(
        weeks=len(games),
        points_for=math.fsum(result.actual.total for result in games),
        max_points_for=math.fsum(result.optimal.total for result in games),
        offensive_points_for=math.fsum(result.actual.offense for result in games),
        max_offensive_points_for=math.fsum(result.optimal.offense for result in games),
        defensive_points_for=math.fsum(result.actual.defense for result in games),
        max_defensive_points_for=math.fsum(result.optimal.defense for result in games),
        wins=wins,
        losses=losses,
        ties=ties,
    )


@dataclass
class SeasonTeamStats:
    """Season-level statistics for one team. Rebuilt wholesale, never patched."""

    season: str
    roster_id: str
    owner_id: str
    team_name: str = ""
    weeks_played: int = 0
    points_for: float = 0.0
    max_points_for: float = 0.0
    offensive_points_for: float = 0.0
    max_offensive_points_for: float = 0.0
    defensive_points_for: float = 0.0
    max_defensive_points_for: float = 0.0
    points_against: float = 0.0
    position_points: Dict[str, float] = field(default_factory=dict)
    position_starts: Dict[str, int] = field(default_factory=dict)
    optimal_position_points: Dict[str, float] = field(default_factory=dict)
    weekly_points: Dict[int, float] = field(default_factory=dict)
    standing: int = 0
    wins: int = 0
    losses: int = 0
    ties: int = 0
    championships: int = 0
    playoff_wins: int = 0
    playoff_losses: int = 0
    waiver_moves: int = 0
    faab_spent: float = 0.0
    trades: int = 0
    playoffs: PlayoffStats = field(default_factory=PlayoffStats)
    rule_version: int = RULE_VERSION

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def management_percent(self) -> float:
        return management_percent(self.points_for, self.max_points_for)

    @property
    def offensive_management_percent(self) -> float:
        return management_percent(self.offensive_points_for, self.max_offensive_points_for)

    @property
    def defensive_management_percent(self) -> float:
        return management_percent(self.defensive_points_for, self.max_defensive_points_for)

    @property
    def team_ppw(self) -> float:
        return _ratio(self.points_for, self.weeks_played)

    @property
    def offensive_ppw(self) -> float:
        return _ratio(self.offensive_points_for, self.weeks_played)

    @property
    def defensive_ppw(self) -> float:
        return _ratio(self.defensive_points_for, self.weeks_played)

    @property
    def position_avg_ppw(self) -> Dict[str, float]:
        """Points per week credited to each position."""
        return {
            position: _ratio(self.position_points.get(position, 0.0), self.weeks_played)
            for position in _stat_positions(self.position_points)
        }

    @property
    def individual_position_ppw(self) -> Dict[str, float]:
        """Points per start at each position."""
        return {
            position: _ratio(self.position_points.get(position, 0.0), self.position_starts.get(position, 0))
            for position in _stat_positions(self.position_points)
        }

    @property
    def starters_per_week(self) -> Dict[str, float]:
        return {
            position: _ratio(self.position_starts.get(position, 0), self.weeks_played)
            for position in _stat_positions(self.position_starts)
        }

    @property
    def best_week(self) -> Optional[int]:
        if not self.weekly_points:
            return None
        return max(self.weekly_points, key=lambda week: (self.weekly_points[week], -week))

    @property
    def record(self) -> str:
        return f"{self.wins}-{self.losses}-{self.ties}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "season": self.season,
            "roster_id": self.roster_id,
            "owner_id": self.owner_id,
            "team_name": self.team_name,
            "weeks_played": self.weeks_played,
            "points_for": self.points_for,
            "max_points_for": self.max_points_for,
            "management_percent": self.management_percent,
            "offensive_points_for": self.offensive_points_for,
            "max_offensive_points_for": self.max_offensive_points_for,
            "offensive_management_percent": self.offensive_management_percent,
            "defensive_points_for": self.defensive_points_for,
            "max_defensive_points_for": self.max_defensive_points_for,
            "defensive_management_percent": self.defensive_management_percent,
            "points_against": self.points_against,
            "team_ppw": self.team_ppw,
            "offensive_ppw": self.offensive_ppw,
            "defensive_ppw": self.defensive_ppw,
            "position_points": dict(self.position_points),
            "position_starts": dict(self.position_starts),
            "position_avg_ppw": self.position_avg_ppw,
            "individual_position_ppw": self.individual_position_ppw,
            "starters_per_week": self.starters_per_week,
            "optimal_position_points": dict(self.optimal_position_points),
            "weekly_points": {str(week): points for week, points in self.weekly_points.items()},
            "best_week": self.best_week,
            "standing": self.standing,
            "wins": self.wins,
            "losses": self.losses,
            "ties": self.ties,
            "championships": self.championships,
            "playoff_wins": self.playoff_wins,
            "playoff_losses": self.playoff_losses,
            "waiver_moves": self.waiver_moves,
            "faab_spent": self.faab_spent,
            "trades": self.trades,
            "playoffs": self.playoffs.to_dict(),
            "rule_version": self.rule_version,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SeasonTeamStats":
        return cls(
            season=str(data["season"]),
            roster_id=str(data["roster_id"]),
            owner_id=str(data["owner_id"]),
            team_name=str(data.get("team_name", "")),
            weeks_played=int(data.get("weeks_played", 0)),
            points_for=float(data.get("points_for", 0.0)),
            max_points_for=float(data.get("max_points_for", 0.0)),
            offensive_points_for=float(data.get("offensive_points_for", 0.0)),
            max_offensive_points_for=float(data.get("max_offensive_points_for", 0.0)),
            defensive_points_for=float(data.get("defensive_points_for", 0.0)),
            max_defensive_points_for=float(data.get("max_defensive_points_for", 0.0)),
            points_against=float(data.get("points_against", 0.0)),
            position_points={k: float(v) for k, v in data.get("position_points", {}).items()},
            position_starts={k: int(v) for k, v in data.get("position_starts", {}).items()},
            optimal_position_points={k: float(v) for k, v in data.get("optimal_position_points", {}).items()},
            weekly_points={int(k): float(v) for k, v in data.get("weekly_points", {}).items()},
            standing=int(data.get("standing", 0)),
            wins=int(data.get("wins", 0)),
            losses=int(data.get("losses", 0)),
            ties=int(data.get("ties", 0)),
            championships=int(data.get("championships", 0)),
            playoff_wins=int(data.get("playoff_wins", 0)),
            playoff_losses=int(data.get("playoff_losses", 0)),
            waiver_moves=int(data.get("waiver_moves", 0)),
            faab_spent=float(data.get("faab_spent", 0.0)),
            trades=int(data.get("trades", 0)),
            playoffs=PlayoffStats.from_dict(data.get("playoffs", {})),
            rule_version=int(data.get("rule_version", 0)),
        )


def aggregate_season(
    results: Sequence[WeeklyTeamResult],
    settlement: TeamSettlement,
    *,
    season: str = "",
    weeks: Optional[Iterable[int]] = None,
    playoff_start_week: int = DEFAULT_PLAYOFF_START_WEEK,
) -> SeasonTeamStats:
    """Accumulate one team's weekly results into season statistics.

    ``weeks`` is every week present in the season's data (defaults to the
    weeks of ``results``) and decides which weeks are completed. Pure: the
    same inputs always produce the same output.
    """
    all_weeks = list(weeks) if weeks is not None else [result.week for result in results]
    usable = set(completed_weeks(all_weeks, playoff_start_week))
    counted = sorted((result for result in results if result.week in usable), key=lambda result: result.week)

    position_points: Dict[str, float] = {}
    position_starts: Dict[str, int] = {}
    optimal_points: Dict[str, float] = {}
    for result in counted:
        for position, tally in result.actual.positions.items():
            position_points[position] = position_points.get(position, 0.0) + tally.points
            position_starts[position] = position_starts.get(position, 0) + tally.count
        for position, tally in result.optimal.positions.items():
            optimal_points[position] = optimal_points.get(position, 0.0) + tally.points

    return SeasonTeamStats(
        season=season or (counted[0].season if counted else ""),
        roster_id=settlement.roster_id,
        owner_id=settlement.owner_id,
        team_name=settlement.name,
        weeks_played=len(counted),
        points_for=math.fsum(result.actual.total for result in counted),
        max_points_for=math.fsum(result.optimal.total for result in counted),
        offensive_points_for=math.fsum(result.actual.offense for result in counted),
        max_offensive_points_for=math.fsum(result.optimal.offense for result in counted),
        defensive_points_for=math.fsum(result.actual.defense for result in counted),
        max_defensive_points_for=math.fsum(result.optimal.defense for result in counted),
        points_against=math.fsum(result.opponent_points or 0.0 for result in counted),
        position_points=_complete(position_points, 0.0),
        position_starts=_complete(position_starts, 0),
        optimal_position_points=_complete(optimal_points, 0.0),
        weekly_points={result.week: result.actual.total for result in counted},
        standing=settlement.standing,
        wins=settlement.wins,
        losses=settlement.losses,
        ties=settlement.ties,
        championships=settlement.championships,
        playoff_wins=settlement.playoff_wins,
        playoff_losses=settlement.playoff_losses,
        waiver_moves=settlement.waiver_moves or 0,
        faab_spent=settlement.faab_spent or 0.0,
        trades=settlement.trades or 0,
        playoffs=aggregate_playoffs(results, playoff_start_week),
    )


def _complete(values: Mapping[str, Any], zero: Any) -> Dict[str, Any]:
    """Every canonical position present, in fixed order, plus any extra keys."""
    keys = ordered_position_keys(list(values) + list(CANONICAL_POSITIONS))
    return {key: values.get(key, zero) for key in keys}


def _stat_positions(values: Mapping[str, Any]) -> List[str]:
    return ordered_position_keys(list(values) + list(CANONICAL_POSITIONS))


def _ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator > 0 else 0.0


@dataclass
class SeasonSummary:
    """One season's evaluated weeks and per-team statistics."""

    season: str
    playoff_start_week: int
    completed_weeks: List[int]
    teams: List[SeasonTeamStats]
    weekly_results: List[WeeklyTeamResult]
    rule_version: int = RULE_VERSION

    def team(self, roster_id: str) -> Optional[SeasonTeamStats]:
        for stats in self.teams:
            if stats.roster_id == roster_id:
                return stats
        return None

    def owner_by_roster(self) -> Dict[str, str]:
        return {stats.roster_id: stats.owner_id for stats in self.teams}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "season": self.season,
            "playoff_start_week": self.playoff_start_week,
            "completed_weeks": list(self.completed_weeks),
            "rule_version": self.rule_version,
            "teams": [stats.to_dict() for stats in self.teams],
            "weekly_results": [result.to_dict() for result in self.weekly_results],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SeasonSummary":
        return cls(
            season=str(data["season"]),
            playoff_start_week=int(data.get("playoff_start_week", DEFAULT_PLAYOFF_START_WEEK)),
            completed_weeks=[int(week) for week in data.get("completed_weeks", [])],
            teams=[SeasonTeamStats.from_dict(item) for item in data.get("teams", [])],
            weekly_results=[WeeklyTeamResult.from_dict(item) for item in data.get("weekly_results", [])],
            rule_version=int(data.get("rule_version", 0)),
        )
