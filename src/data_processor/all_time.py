"""Per-owner career aggregates and head-to-head records across seasons."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .lineup import WeeklyTeamResult, management_percent
from .models import season_sort_key
from .positions import CANONICAL_POSITIONS, ordered_position_keys
from .season import RULE_VERSION, PlayoffStats, SeasonSummary, SeasonTeamStats

logger = logging.getLogger(__name__)


@dataclass
class HeadToHeadRecord:
    """One owner's record against one opposing owner."""

    opponent_owner_id: str
    wins: int = 0
    losses: int = 0
    ties: int = 0
    points_for: float = 0.0
    points_against: float = 0.0
    management_for: float = 0.0
    management_against: float = 0.0

    @property
    def games(self) -> int:
        return self.wins + self.losses + self.ties

    @property
    def avg_points_for(self) -> float:
        return _ratio(self.points_for, self.games)

    @property
    def avg_points_against(self) -> float:
        return _ratio(self.points_against, self.games)

    @property
    def avg_management_for(self) -> float:
        return _ratio(self.management_for, self.games)

    @property
    def avg_management_against(self) -> float:
        return _ratio(self.management_against, self.games)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "opponent_owner_id": self.opponent_owner_id,
            "wins": self.wins,
            "losses": self.losses,
            "ties": self.ties,
            "games": self.games,
            "points_for": self.points_for,
            "points_against": self.points_against,
            "management_for": self.management_for,
            "management_against": self.management_against,
            "avg_points_for": self.avg_points_for,
            "avg_points_against": self.avg_points_against,
            "avg_management_for": self.avg_management_for,
            "avg_management_against": self.avg_management_against,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "HeadToHeadRecord":
        return cls(
            opponent_owner_id=str(data["opponent_owner_id"]),
            wins=int(data.get("wins", 0)),
            losses=int(data.get("losses", 0)),
            ties=int(data.get("ties", 0)),
            points_for=float(data.get("points_for", 0.0)),
            points_against=float(data.get("points_against", 0.0)),
            management_for=float(data.get("management_for", 0.0)),
            management_against=float(data.get("management_against", 0.0)),
        )


@dataclass
class OwnerAllTimeStats:
    """Career totals for one owner. Ratios are zero when their denominator is."""

    owner_id: str
    team_name: str = ""
    seasons: List[str] = field(default_factory=list)
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
    head_to_head: Dict[str, HeadToHeadRecord] = field(default_factory=dict)
    rule_version: int = RULE_VERSION

    @property
    def season_count(self) -> int:
        return len(self.seasons)

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
        return {
            position: _ratio(points, self.weeks_played)
            for position, points in self.position_points.items()
        }

    @property
    def individual_position_ppw(self) -> Dict[str, float]:
        return {
            position: _ratio(points, self.position_starts.get(position, 0))
            for position, points in self.position_points.items()
        }

    @property
    def win_percent(self) -> float:
        games = self.wins + self.losses + self.ties
        return _ratio(self.wins + 0.5 * self.ties, games) * 100

    @property
    def faab_per_move(self) -> float:
        return _ratio(self.faab_spent, self.waiver_moves)

    @property
    def trades_per_season(self) -> float:
        return _ratio(self.trades, self.season_count)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "owner_id": self.owner_id,
            "team_name": self.team_name,
            "seasons": list(self.seasons),
            "season_count": self.season_count,
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
            "optimal_position_points": dict(self.optimal_position_points),
            "wins": self.wins,
            "losses": self.losses,
            "ties": self.ties,
            "win_percent": self.win_percent,
            "championships": self.championships,
            "playoff_wins": self.playoff_wins,
            "playoff_losses": self.playoff_losses,
            "waiver_moves": self.waiver_moves,
            "faab_spent": self.faab_spent,
            "faab_per_move": self.faab_per_move,
            "trades": self.trades,
            "trades_per_season": self.trades_per_season,
            "playoffs": self.playoffs.to_dict(),
            "head_to_head": {owner: record.to_dict() for owner, record in self.head_to_head.items()},
            "rule_version": self.rule_version,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "OwnerAllTimeStats":
        return cls(
            owner_id=str(data["owner_id"]),
            team_name=str(data.get("team_name", "")),
            seasons=[str(season) for season in data.get("seasons", [])],
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
            head_to_head={
                str(owner): HeadToHeadRecord.from_dict(record)
                for owner, record in data.get("head_to_head", {}).items()
            },
            rule_version=int(data.get("rule_version", 0)),
        )


@dataclass(frozen=True)
class HeadToHeadGame:
    """One side of a completed regular-season matchup between two owners."""

    season: str
    week: int
    owner_id: str
    opponent_owner_id: str
    points_for: float
    points_against: float
    management_for: float
    management_against: float


def head_to_head_games(summary: SeasonSummary) -> List[HeadToHeadGame]:
    """Extract completed regular-season games from one season, once per side.

    Games where either side scored exactly zero are treated as missing data
    and skipped.
    """
    owners = summary.owner_by_roster()
    completed = set(summary.completed_weeks)
    by_key: Dict[Tuple[int, str], WeeklyTeamResult] = {
        (result.week, result.roster_id): result for result in summary.weekly_results
    }
    games: List[HeadToHeadGame] = []
    for result in sorted(summary.weekly_results, key=lambda item: (item.week, item.roster_id)):
        if result.week not in completed or result.opponent_roster_id is None:
            continue
        opponent = by_key.get((result.week, result.opponent_roster_id))
        owner_id = owners.get(result.roster_id)
        opponent_owner = owners.get(result.opponent_roster_id)
        if opponent is None or owner_id is None or opponent_owner is None or owner_id == opponent_owner:
            continue
        points_for = result.matchup_points
        points_against = opponent.matchup_points
        if points_for == 0 or points_against == 0:
            logger.debug(
                "Skipping %s week %s %s vs %s: zero score.",
                summary.season,
                result.week,
                result.roster_id,
                result.opponent_roster_id,
            )
            continue
        games.append(
            HeadToHeadGame(
                season=summary.season,
                week=result.week,
                owner_id=owner_id,
                opponent_owner_id=opponent_owner,
                points_for=points_for,
                points_against=points_against,
                management_for=result.management_percent,
                management_against=opponent.management_percent,
            )
        )
    return games


def aggregate_all_time(
    summaries: Iterable[SeasonSummary],
    *,
    owner_ids: Optional[Iterable[str]] = None,
) -> Dict[str, OwnerAllTimeStats]:
    """Fold season summaries into per-owner career statistics.

    Seasons are processed in season-id order and floats are summed with
    :func:`math.fsum`, so the result does not depend on input order. The
    owner set defaults to the owners of the latest season; head-to-head
    opponents are restricted to the same set.
    """
    ordered = sorted(summaries, key=lambda summary: season_sort_key(summary.season))
    if owner_ids is None:
        owners = [stats.owner_id for stats in ordered[-1].teams] if ordered else []
    else:
        owners = list(owner_ids)
    owner_set = set(owners)

    season_rows: Dict[str, List[SeasonTeamStats]] = {owner: [] for owner in owners}
    games: Dict[str, List[HeadToHeadGame]] = {owner: [] for owner in owners}
    for summary in ordered:
        for stats in summary.teams:
            if stats.owner_id in owner_set:
                season_rows[stats.owner_id].append(stats)
        for game in head_to_head_games(summary):
            if game.owner_id in owner_set and game.opponent_owner_id in owner_set:
                games[game.owner_id].append(game)

    results: Dict[str, OwnerAllTimeStats] = {}
    for owner in sorted(owner_set):
        rows = season_rows[owner]
        if not rows:
            logger.debug("Owner %s has no seasons; reporting an empty record.", owner)
        results[owner] = _owner_totals(owner, rows, games[owner])
    return results


def _owner_totals(
    owner_id: str,
    rows: Sequence[SeasonTeamStats],
    games: Sequence[HeadToHeadGame],
) -> OwnerAllTimeStats:
    def total(attribute: str) -> float:
        return math.fsum(getattr(row, attribute) for row in rows)

    def count(attribute: str) -> int:
        return sum(getattr(row, attribute) for row in rows)

    positions = ordered_position_keys(
        list(CANONICAL_POSITIONS)
        + [key for row in rows for key in list(row.position_points) + list(row.optimal_position_points)]
    )
    return OwnerAllTimeStats(
        owner_id=owner_id,
        team_name=rows[-1].team_name if rows else "",
        seasons=[row.season for row in rows],
        weeks_played=count("weeks_played"),
        points_for=total("points_for"),
        max_points_for=total("max_points_for"),
        offensive_points_for=total("offensive_points_for"),
        max_offensive_points_for=total("max_offensive_points_for"),
        defensive_points_for=total("defensive_points_for"),
        max_defensive_points_for=total("max_defensive_points_for"),
        points_against=total("points_against"),
        position_points={
            position: math.fsum(row.position_points.get(position, 0.0) for row in rows) for position in positions
        },
        position_starts={
            position: sum(row.position_starts.get(position, 0) for row in rows) for position in positions
        },
        optimal_position_points={
            position: math.fsum(row.optimal_position_points.get(position, 0.0) for row in rows)
            for position in positions
        },
        wins=count("wins"),
        losses=count("losses"),
        ties=count("ties"),
        championships=count("championships"),
        playoff_wins=count("playoff_wins"),
        playoff_losses=count("playoff_losses"),
        waiver_moves=count("waiver_moves"),
        faab_spent=total("faab_spent"),
        trades=count("trades"),
        playoffs=PlayoffStats.combine([row.playoffs for row in rows]),
        head_to_head=_head_to_head(games),
    )


def _head_to_head(games: Sequence[HeadToHeadGame]) -> Dict[str, HeadToHeadRecord]:
    grouped: Dict[str, List[HeadToHeadGame]] = {}
    for game in games:
        grouped.setdefault(game.opponent_owner_id, []).append(game)

    records: Dict[str, HeadToHeadRecord] = {}
    for opponent in sorted(grouped):
        played = grouped[opponent]
        records[opponent] = HeadToHeadRecord(
            opponent_owner_id=opponent,
            wins=sum(1 for game in played if game.points_for > game.points_against),
            losses=sum(1 for game in played if game.points_for < game.points_against),
            ties=sum(1 for game in played if game.points_for == game.points_against),
            points_for=math.fsum(game.points_for for game in played),
            points_against=math.fsum(game.points_against for game in played),
            management_for=math.fsum(game.management_for for game in played),
            management_against=math.fsum(game.management_against for game in played),
        )
    return records


def _ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator > 0 else 0.0
