"""Typed league snapshot consumed by the engine.

A snapshot is what the data-retrieval side hands over: the league's player
lookup table, and per season the lineup configuration, settlement records
and weekly matchup entries. Everything here is plain data with
``to_dict``/``from_dict`` so snapshots can be stored as JSON.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

DEFAULT_PLAYOFF_START_WEEK = 14
EMPTY_STARTER_IDS = frozenset({"", "0"})


class SnapshotError(ValueError):
    """Raised when a snapshot payload is structurally unusable."""


def clamp_playoff_start_week(value: Optional[Any]) -> int:
    """Return the playoff start week limited to weeks 13-18 (default 14)."""
    week = _safe_int(value)
    if week is None:
        return DEFAULT_PLAYOFF_START_WEEK
    return min(max(13, week), 18)


@dataclass(frozen=True)
class PlayerRecord:
    """Player lookup entry: raw position strings as the platform reports them."""

    player_id: str
    position: Optional[str] = None
    fantasy_positions: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "position": self.position,
            "fantasy_positions": list(self.fantasy_positions),
        }

    @classmethod
    def from_dict(cls, player_id: str, data: Mapping[str, Any]) -> "PlayerRecord":
        alternates = data.get("fantasy_positions") or ()
        return cls(
            player_id=str(player_id),
            position=data.get("position"),
            fantasy_positions=tuple(str(item) for item in alternates if item),
        )


@dataclass(frozen=True)
class MatchupEntry:
    """One team's side of one week's matchup."""

    roster_id: str
    matchup_id: Optional[int] = None
    points: Optional[float] = None
    starters: Tuple[Optional[str], ...] = ()
    players: Tuple[str, ...] = ()
    players_points: Mapping[str, float] = field(default_factory=dict)

    @property
    def has_starters(self) -> bool:
        return any(not is_empty_starter(player_id) for player_id in self.starters)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "roster_id": self.roster_id,
            "matchup_id": self.matchup_id,
            "points": self.points,
            "starters": list(self.starters),
            "players": list(self.players),
            "players_points": dict(self.players_points),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MatchupEntry":
        roster_id = _require_key(data, "roster_id", "matchup entry")
        points_raw = data.get("players_points") or {}
        players_points: Dict[str, float] = {}
        for player_id, value in points_raw.items():
            points = _safe_float(value)
            if points is not None:
                players_points[str(player_id)] = points
        starters = tuple(None if item is None else str(item) for item in data.get("starters") or ())
        return cls(
            roster_id=str(roster_id),
            matchup_id=_safe_int(data.get("matchup_id")),
            points=_safe_float(data.get("points")),
            starters=starters,
            players=tuple(str(item) for item in data.get("players") or ()),
            players_points=players_points,
        )


@dataclass(frozen=True)
class Transaction:
    """A league transaction as far as season counters care."""

    transaction_id: str
    type: str = ""
    status: str = ""
    roster_ids: Tuple[str, ...] = ()
    waiver_bid: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transaction_id": self.transaction_id,
            "type": self.type,
            "status": self.status,
            "roster_ids": list(self.roster_ids),
            "waiver_bid": self.waiver_bid,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Transaction":
        return cls(
            transaction_id=str(data.get("transaction_id", "")),
            type=str(data.get("type") or "").lower(),
            status=str(data.get("status") or "").lower(),
            roster_ids=tuple(str(item) for item in data.get("roster_ids") or ()),
            waiver_bid=_safe_float(data.get("waiver_bid")) or 0.0,
        )


@dataclass(frozen=True)
class TransactionTotals:
    waiver_moves: int = 0
    faab_spent: float = 0.0
    trades: int = 0


def count_transactions(transactions: Iterable[Transaction], roster_id: str) -> TransactionTotals:
    """Count completed waiver/free-agent moves, FAAB bids and trades for a roster."""
    waiver_moves = 0
    faab_spent = 0.0
    trades = 0
    for transaction in transactions:
        if transaction.status != "complete" or roster_id not in transaction.roster_ids:
            continue
        if transaction.type in {"waiver", "free_agent"}:
            waiver_moves += 1
        if transaction.type == "waiver":
            faab_spent += transaction.waiver_bid
        elif transaction.type == "trade":
            trades += 1
    return TransactionTotals(waiver_moves=waiver_moves, faab_spent=faab_spent, trades=trades)


@dataclass(frozen=True)
class TeamSettlement:
    """Settled season facts for one team, supplied by the platform."""

    roster_id: str
    owner_id: str
    name: str = ""
    standing: int = 0
    wins: int = 0
    losses: int = 0
    ties: int = 0
    championships: int = 0
    playoff_wins: int = 0
    playoff_losses: int = 0
    waiver_moves: Optional[int] = None
    faab_spent: Optional[float] = None
    trades: Optional[int] = None

    def with_transactions(self, transactions: Iterable[Transaction]) -> "TeamSettlement":
        """Fill any missing transaction counters from raw transactions."""
        if None not in (self.waiver_moves, self.faab_spent, self.trades):
            return self
        totals = count_transactions(transactions, self.roster_id)
        return TeamSettlement(
            roster_id=self.roster_id,
            owner_id=self.owner_id,
            name=self.name,
            standing=self.standing,
            wins=self.wins,
            losses=self.losses,
            ties=self.ties,
            championships=self.championships,
            playoff_wins=self.playoff_wins,
            playoff_losses=self.playoff_losses,
            waiver_moves=totals.waiver_moves if self.waiver_moves is None else self.waiver_moves,
            faab_spent=totals.faab_spent if self.faab_spent is None else self.faab_spent,
            trades=totals.trades if self.trades is None else self.trades,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "roster_id": self.roster_id,
            "owner_id": self.owner_id,
            "name": self.name,
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
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TeamSettlement":
        roster_id = str(_require_key(data, "roster_id", "team"))
        owner_id = data.get("owner_id")
        return cls(
            roster_id=roster_id,
            # Orphaned rosters have no owner; keep them distinct per roster.
            owner_id=str(owner_id) if owner_id else f"roster-{roster_id}",
            name=str(data.get("name") or ""),
            standing=_safe_int(data.get("standing")) or 0,
            wins=_safe_int(data.get("wins")) or 0,
            losses=_safe_int(data.get("losses")) or 0,
            ties=_safe_int(data.get("ties")) or 0,
            championships=_parse_championships(data),
            playoff_wins=_safe_int(data.get("playoff_wins")) or 0,
            playoff_losses=_safe_int(data.get("playoff_losses")) or 0,
            waiver_moves=_safe_int(data.get("waiver_moves")),
            faab_spent=_safe_float(data.get("faab_spent")),
            trades=_safe_int(data.get("trades")),
        )


@dataclass(frozen=True)
class SeasonSnapshot:
    """Everything the engine needs for one season of one league."""

    season: str
    roster_positions: Tuple[str, ...]
    teams: Tuple[TeamSettlement, ...]
    matchups: Mapping[int, Tuple[MatchupEntry, ...]]
    playoff_start_week: int = DEFAULT_PLAYOFF_START_WEEK
    transactions: Tuple[Transaction, ...] = ()

    @property
    def weeks(self) -> List[int]:
        return sorted(self.matchups)

    def settlements(self) -> List[TeamSettlement]:
        """Settlements with transaction counters filled in."""
        return [team.with_transactions(self.transactions) for team in self.teams]

    def entry_for(self, week: int, roster_id: str) -> Optional[MatchupEntry]:
        for entry in self.matchups.get(week, ()):
            if entry.roster_id == roster_id:
                return entry
        return None

    def opponent_for(self, week: int, entry: MatchupEntry) -> Optional[MatchupEntry]:
        if entry.matchup_id is None:
            return None
        for other in self.matchups.get(week, ()):
            if other.matchup_id == entry.matchup_id and other.roster_id != entry.roster_id:
                return other
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "season": self.season,
            "roster_positions": list(self.roster_positions),
            "playoff_start_week": self.playoff_start_week,
            "teams": [team.to_dict() for team in self.teams],
            "transactions": [transaction.to_dict() for transaction in self.transactions],
            "matchups": {
                str(week): [entry.to_dict() for entry in entries]
                for week, entries in sorted(self.matchups.items())
            },
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, default_playoff_start_week: Optional[int] = None) -> "SeasonSnapshot":
        season = str(_require_key(data, "season", "season"))
        matchups: Dict[int, Tuple[MatchupEntry, ...]] = {}
        for week_raw, entries in (data.get("matchups") or {}).items():
            week = _safe_int(week_raw)
            if week is None:
                raise SnapshotError(f"Season {season} has a non-numeric matchup week: {week_raw!r}")
            matchups[week] = tuple(MatchupEntry.from_dict(entry) for entry in entries or ())
        playoff_start = data.get("playoff_start_week", default_playoff_start_week)
        return cls(
            season=season,
            roster_positions=tuple(str(item) for item in data.get("roster_positions") or ()),
            teams=tuple(TeamSettlement.from_dict(team) for team in data.get("teams") or ()),
            matchups=matchups,
            playoff_start_week=clamp_playoff_start_week(playoff_start),
            transactions=tuple(Transaction.from_dict(item) for item in data.get("transactions") or ()),
        )


@dataclass(frozen=True)
class LeagueSnapshot:
    """A league across all of its seasons plus the shared player lookup."""

    league_id: str
    name: str
    players: Mapping[str, PlayerRecord]
    seasons: Tuple[SeasonSnapshot, ...]

    def season(self, season_id: str) -> Optional[SeasonSnapshot]:
        for season in self.seasons:
            if season.season == season_id:
                return season
        return None

    def latest_season(self) -> Optional[SeasonSnapshot]:
        if not self.seasons:
            return None
        return max(self.seasons, key=lambda season: season_sort_key(season.season))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "league_id": self.league_id,
            "name": self.name,
            "players": {player_id: record.to_dict() for player_id, record in self.players.items()},
            "seasons": [season.to_dict() for season in self.seasons],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, default_playoff_start_week: Optional[int] = None) -> "LeagueSnapshot":
        league_id = str(_require_key(data, "league_id", "league"))
        players = {
            str(player_id): PlayerRecord.from_dict(player_id, record or {})
            for player_id, record in (data.get("players") or {}).items()
        }
        seasons = tuple(
            SeasonSnapshot.from_dict(season, default_playoff_start_week=default_playoff_start_week)
            for season in data.get("seasons") or ()
        )
        return cls(
            league_id=league_id,
            name=str(data.get("name") or ""),
            players=players,
            seasons=tuple(sorted(seasons, key=lambda season: season_sort_key(season.season))),
        )


# ---------------------------------------------------------------------------
# Utility helpers
# ---------------------------------------------------------------------------

def is_empty_starter(player_id: Optional[str]) -> bool:
    return player_id is None or player_id in EMPTY_STARTER_IDS


def season_sort_key(season: str) -> Tuple[int, str]:
    value = _safe_int(season)
    return (value if value is not None else 0, season)


def _parse_championships(data: Mapping[str, Any]) -> int:
    if data.get("champion") is True:
        return 1
    count = _safe_int(data.get("championships"))
    if count is not None:
        return count
    seasons = data.get("championship_seasons")
    if isinstance(seasons, list):
        return len(seasons)
    return 0


def _require_key(container: Mapping[str, Any], key: str, context: str) -> Any:
    if not isinstance(container, Mapping) or container.get(key) in (None, ""):
        raise SnapshotError(f"Expected key {key} in {context} payload.")
    return container[key]


def _safe_float(value: Any) -> Optional[float]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value))
    except (TypeError, ValueError):
        return None


def _safe_int(value: Any) -> Optional[int]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None
