"""Weekly lineup evaluation: actual points versus the greedy best lineup.

Both computations run over the same candidate pool and credit points via
:func:`data_processor.slots.credited_position`, so the per-position maps of
the actual and optimal lineups are directly comparable.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .models import MatchupEntry, PlayerRecord, is_empty_starter
from .positions import UNKNOWN_POSITION, eligible_positions, is_defensive, is_offensive, normalize, ordered_position_keys
from .slots import Slot, SlotKind, credited_position, flex_last

logger = logging.getLogger(__name__)

PlayerLookup = Mapping[str, PlayerRecord]


@dataclass(frozen=True)
class Candidate:
    """A player's participation in one week."""

    player_id: str
    base_position: str
    positions: Tuple[str, ...]
    points: float
    order: int

    def is_eligible(self, slot: Slot) -> bool:
        return self.base_position in slot.eligible or slot.accepts(self.positions)


@dataclass(frozen=True)
class PositionTally:
    points: float = 0.0
    count: int = 0

    def add(self, points: float) -> "PositionTally":
        return PositionTally(points=self.points + points, count=self.count + 1)

    def to_dict(self) -> Dict[str, Any]:
        return {"points": self.points, "count": self.count}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PositionTally":
        return cls(points=float(data.get("points", 0.0)), count=int(data.get("count", 0)))


@dataclass(frozen=True)
class LineupAssignment:
    """One filled slot of an actual or optimal lineup."""

    slot_label: str
    slot_kind: SlotKind
    player_id: str
    credited_position: str
    points: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "slot": self.slot_label,
            "slot_kind": self.slot_kind.value,
            "player_id": self.player_id,
            "credited_position": self.credited_position,
            "points": self.points,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LineupAssignment":
        return cls(
            slot_label=str(data["slot"]),
            slot_kind=SlotKind(data["slot_kind"]),
            player_id=str(data["player_id"]),
            credited_position=str(data["credited_position"]),
            points=float(data["points"]),
        )


@dataclass(frozen=True)
class LineupScore:
    """Totals and per-position tallies of one lineup."""

    total: float = 0.0
    offense: float = 0.0
    defense: float = 0.0
    positions: Mapping[str, PositionTally] = field(default_factory=dict)
    assignments: Tuple[LineupAssignment, ...] = ()


@dataclass(frozen=True)
class WeeklyTeamResult:
    """Evaluation of one team for one week. Treated as immutable history."""

    season: str
    week: int
    roster_id: str
    actual: LineupScore
    optimal: LineupScore
    matchup_id: Optional[int] = None
    recorded_points: Optional[float] = None
    opponent_roster_id: Optional[str] = None
    opponent_points: Optional[float] = None

    @property
    def matchup_points(self) -> float:
        """Platform-recorded score when available, else the evaluated actual total."""
        if self.recorded_points is not None:
            return self.recorded_points
        return self.actual.total

    @property
    def management_percent(self) -> float:
        return management_percent(self.actual.total, self.optimal.total)

    @property
    def offensive_management_percent(self) -> float:
        return management_percent(self.actual.offense, self.optimal.offense)

    @property
    def defensive_management_percent(self) -> float:
        return management_percent(self.actual.defense, self.optimal.defense)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "season": self.season,
            "week": self.week,
            "roster_id": self.roster_id,
            "matchup_id": self.matchup_id,
            "recorded_points": self.recorded_points,
            "opponent_roster_id": self.opponent_roster_id,
            "opponent_points": self.opponent_points,
            "actual": _score_to_dict(self.actual),
            "optimal": _score_to_dict(self.optimal),
            "management_percent": self.management_percent,
            "offensive_management_percent": self.offensive_management_percent,
            "defensive_management_percent": self.defensive_management_percent,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "WeeklyTeamResult":
        return cls(
            season=str(data["season"]),
            week=int(data["week"]),
            roster_id=str(data["roster_id"]),
            actual=_score_from_dict(data["actual"]),
            optimal=_score_from_dict(data["optimal"]),
            matchup_id=data.get("matchup_id"),
            recorded_points=data.get("recorded_points"),
            opponent_roster_id=data.get("opponent_roster_id"),
            opponent_points=data.get("opponent_points"),
        )


def management_percent(actual: float, optimal: float) -> float:
    return actual / optimal * 100 if optimal > 0 else 0.0


# ---------------------------------------------------------------------------
# Candidate pool
# ---------------------------------------------------------------------------

def build_candidate(player_id: str, points: float, order: int, lookup: PlayerLookup) -> Candidate:
    record = lookup.get(player_id)
    if record is None:
        return Candidate(player_id, UNKNOWN_POSITION, (), points, order)
    base = normalize(record.position)
    return Candidate(
        player_id=player_id,
        base_position=base,
        positions=tuple(eligible_positions(record.position, record.fantasy_positions)),
        points=points,
        order=order,
    )


def build_candidates(entry: MatchupEntry, lookup: PlayerLookup) -> List[Candidate]:
    """Every player who could have been started that week, in first-seen order.

    The weekly pool comes first, then starters missing from it, then anyone
    else with a recorded score, so players dropped later in the season still
    count for the week they were rostered.
    """
    seen: Dict[str, Candidate] = {}
    ordered_ids: List[str] = list(entry.players)
    ordered_ids.extend(pid for pid in entry.starters if not is_empty_starter(pid))
    ordered_ids.extend(entry.players_points)
    for player_id in ordered_ids:
        if player_id in seen:
            continue
        points = entry.players_points.get(player_id, 0.0)
        seen[player_id] = build_candidate(player_id, points, len(seen), lookup)
    return list(seen.values())


# ---------------------------------------------------------------------------
# Actual lineup
# ---------------------------------------------------------------------------

def match_starters(
    slots: Sequence[Slot],
    starters: Sequence[Optional[str]],
    candidates: Mapping[str, Candidate],
) -> List[Tuple[Slot, Candidate]]:
    """Pair each real starter with the slot it filled.

    Equal lengths pair positionally. Otherwise each starter takes the first
    unfilled slot it is eligible for, strict slots first.
    """
    if len(starters) == len(slots):
        pairs: List[Tuple[Slot, Candidate]] = []
        for slot, player_id in zip(slots, starters):
            if is_empty_starter(player_id):
                continue
            pairs.append((slot, candidates[player_id]))
        return pairs

    logger.debug("Starter count %d differs from slot count %d; matching by eligibility.", len(starters), len(slots))
    search_order = list(enumerate(slots))
    search_order = [item for item in search_order if item[1].is_strict] + [
        item for item in search_order if not item[1].is_strict
    ]
    filled: Dict[int, Candidate] = {}
    for player_id in starters:
        if is_empty_starter(player_id):
            continue
        candidate = candidates[player_id]
        for index, slot in search_order:
            if index not in filled and candidate.is_eligible(slot):
                filled[index] = candidate
                break
        else:
            logger.debug("Starter %s fits no open slot; left out of the actual lineup.", player_id)
    return [(slots[index], filled[index]) for index in sorted(filled)]


def score_actual(
    slots: Sequence[Slot],
    starters: Sequence[Optional[str]],
    candidates: Sequence[Candidate],
) -> LineupScore:
    by_id = {candidate.player_id: candidate for candidate in candidates}
    return _score(match_starters(slots, starters, by_id))


# ---------------------------------------------------------------------------
# Optimal lineup (greedy)
# ---------------------------------------------------------------------------

def pick_optimal(slots: Sequence[Slot], candidates: Sequence[Candidate]) -> List[Tuple[Slot, Candidate]]:
    """Greedy best lineup.

    Strict slots are filled before flex slots; each slot takes the highest
    scoring unused eligible candidate, ties going to the earlier candidate.
    The result is not a global maximum matching.
    """
    used: set[str] = set()
    picks: List[Tuple[Slot, Candidate]] = []
    for slot in flex_last(slots):
        best: Optional[Candidate] = None
        for candidate in candidates:
            if candidate.player_id in used or not candidate.is_eligible(slot):
                continue
            if best is None or candidate.points > best.points:
                best = candidate
        if best is None:
            continue
        used.add(best.player_id)
        picks.append((slot, best))
    return picks


def score_optimal(slots: Sequence[Slot], candidates: Sequence[Candidate]) -> LineupScore:
    return _score(pick_optimal(slots, candidates))


# ---------------------------------------------------------------------------
# Weekly evaluation
# ---------------------------------------------------------------------------

def evaluate_week(
    slots: Sequence[Slot],
    entry: MatchupEntry,
    lookup: PlayerLookup,
    *,
    season: str = "",
    week: int = 0,
    opponent: Optional[MatchupEntry] = None,
) -> WeeklyTeamResult:
    """Evaluate one team for one week.

    Pure: depends only on the lineup configuration, the team's own matchup
    entry, the player lookup snapshot and (for bookkeeping) the opponent's
    recorded score.
    """
    candidates = build_candidates(entry, lookup)
    return WeeklyTeamResult(
        season=season,
        week=week,
        roster_id=entry.roster_id,
        actual=score_actual(slots, entry.starters, candidates),
        optimal=score_optimal(slots, candidates),
        matchup_id=entry.matchup_id,
        recorded_points=entry.points,
        opponent_roster_id=opponent.roster_id if opponent else None,
        opponent_points=opponent.points if opponent else None,
    )


def _score(pairs: Iterable[Tuple[Slot, Candidate]]) -> LineupScore:
    total = offense = defense = 0.0
    tallies: Dict[str, PositionTally] = {}
    assignments: List[LineupAssignment] = []
    for slot, candidate in pairs:
        credited = credited_position(slot, candidate.positions, candidate.base_position)
        total += candidate.points
        if is_offensive(credited):
            offense += candidate.points
        elif is_defensive(credited):
            defense += candidate.points
        tallies[credited] = tallies.get(credited, PositionTally()).add(candidate.points)
        assignments.append(
            LineupAssignment(slot.label, slot.kind, candidate.player_id, credited, candidate.points)
        )
    ordered = {key: tallies[key] for key in ordered_position_keys(tallies)}
    return LineupScore(total, offense, defense, ordered, tuple(assignments))


def _score_to_dict(score: LineupScore) -> Dict[str, Any]:
    return {
        "total": score.total,
        "offense": score.offense,
        "defense": score.defense,
        "positions": {key: tally.to_dict() for key, tally in score.positions.items()},
        "assignments": [assignment.to_dict() for assignment in score.assignments],
    }


def _score_from_dict(data: Mapping[str, Any]) -> LineupScore:
    return LineupScore(
        total=float(data["total"]),
        offense=float(data["offense"]),
        defense=float(data["defense"]),
        positions={key: PositionTally.from_dict(value) for key, value in data.get("positions", {}).items()},
        assignments=tuple(LineupAssignment.from_dict(item) for item in data.get("assignments", [])),
    )
