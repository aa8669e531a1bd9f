"""Run the evaluator over a league: weekly units, season roll-ups, career totals."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .all_time import OwnerAllTimeStats, aggregate_all_time
from .lineup import PlayerLookup, WeeklyTeamResult, evaluate_week
from .models import LeagueSnapshot, MatchupEntry, SeasonSnapshot
from .season import RULE_VERSION, SeasonSummary, aggregate_season, completed_weeks
from .slots import Slot, parse_lineup

logger = logging.getLogger(__name__)


@dataclass
class LeagueAggregates:
    """Every derived aggregate for one league, stamped with the rule version that built it."""

    league_id: str
    seasons: List[SeasonSummary] = field(default_factory=list)
    all_time: Dict[str, OwnerAllTimeStats] = field(default_factory=dict)
    rule_version: int = RULE_VERSION

    def season(self, season_id: str) -> Optional[SeasonSummary]:
        for summary in self.seasons:
            if summary.season == season_id:
                return summary
        return None

    def stamped_versions(self) -> List[int]:
        """Rule versions recorded anywhere in the aggregate tree."""
        versions = {self.rule_version}
        for summary in self.seasons:
            versions.add(summary.rule_version)
            versions.update(stats.rule_version for stats in summary.teams)
        versions.update(stats.rule_version for stats in self.all_time.values())
        return sorted(versions)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "league_id": self.league_id,
            "rule_version": self.rule_version,
            "seasons": [summary.to_dict() for summary in self.seasons],
            "all_time": {owner: stats.to_dict() for owner, stats in self.all_time.items()},
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LeagueAggregates":
        return cls(
            league_id=str(data["league_id"]),
            rule_version=int(data.get("rule_version", 0)),
            seasons=[SeasonSummary.from_dict(item) for item in data.get("seasons", [])],
            all_time={
                str(owner): OwnerAllTimeStats.from_dict(stats)
                for owner, stats in data.get("all_time", {}).items()
            },
        )


def evaluate_season(
    season: SeasonSnapshot,
    lookup: PlayerLookup,
    *,
    max_workers: Optional[int] = None,
) -> List[WeeklyTeamResult]:
    """Evaluate every (team, week) unit of a season.

    Units are independent and run on a thread pool; all of them finish
    before this returns. Results come back in week order, then in the
    order entries appear in the snapshot.
    """
    slots = parse_lineup(season.roster_positions)
    units = [(week, entry) for week in season.weeks for entry in season.matchups[week]]
    if not units:
        return []
    logger.debug("Evaluating %d team-weeks for season %s.", len(units), season.season)
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [
            executor.submit(_evaluate_unit, slots, season, week, entry, lookup)
            for week, entry in units
        ]
        return [future.result() for future in futures]


def summarize_season(season: SeasonSnapshot, results: Sequence[WeeklyTeamResult]) -> SeasonSummary:
    """Aggregate a season's weekly results into per-team statistics."""
    weeks = season.weeks
    by_roster: Dict[str, List[WeeklyTeamResult]] = {}
    for result in results:
        by_roster.setdefault(result.roster_id, []).append(result)

    teams = [
        aggregate_season(
            by_roster.get(settlement.roster_id, []),
            settlement,
            season=season.season,
            weeks=weeks,
            playoff_start_week=season.playoff_start_week,
        )
        for settlement in season.settlements()
    ]
    return SeasonSummary(
        season=season.season,
        playoff_start_week=season.playoff_start_week,
        completed_weeks=completed_weeks(weeks, season.playoff_start_week),
        teams=teams,
        weekly_results=list(results),
    )


def build_season_summary(
    season: SeasonSnapshot,
    lookup: PlayerLookup,
    *,
    max_workers: Optional[int] = None,
) -> SeasonSummary:
    return summarize_season(season, evaluate_season(season, lookup, max_workers=max_workers))


def build_league_aggregates(
    league: LeagueSnapshot,
    *,
    max_workers: Optional[int] = None,
    owner_ids: Optional[Iterable[str]] = None,
) -> LeagueAggregates:
    """Recompute every season summary and the all-time table for a league."""
    summaries = [
        build_season_summary(season, league.players, max_workers=max_workers)
        for season in league.seasons
    ]
    logger.info("Built %d season summaries for league %s.", len(summaries), league.league_id)
    return LeagueAggregates(
        league_id=league.league_id,
        seasons=summaries,
        all_time=aggregate_all_time(summaries, owner_ids=owner_ids),
    )


def evaluate_team_week(
    league: LeagueSnapshot,
    season_id: str,
    week: int,
    roster_id: str,
) -> Optional[WeeklyTeamResult]:
    """Evaluate a single team-week, or return None when the snapshot lacks it."""
    season = league.season(season_id)
    if season is None:
        return None
    entry = season.entry_for(week, roster_id)
    if entry is None:
        return None
    return _evaluate_unit(parse_lineup(season.roster_positions), season, week, entry, league.players)


def _evaluate_unit(
    slots: Sequence[Slot],
    season: SeasonSnapshot,
    week: int,
    entry: MatchupEntry,
    lookup: PlayerLookup,
) -> WeeklyTeamResult:
    return evaluate_week(
        slots,
        entry,
        lookup,
        season=season.season,
        week=week,
        opponent=season.opponent_for(week, entry),
    )
