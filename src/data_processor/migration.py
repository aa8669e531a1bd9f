"""Rebuild derived aggregates when the lineup-evaluation rules change.

Raw league snapshots are the source of truth. Everything derived from them
is stamped with :data:`RULE_VERSION`; when the stored tags fall behind, the
harness recomputes each league from its raw snapshot and advances the tags.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from data_store.league_store import LeagueStore

from .models import LeagueSnapshot, SnapshotError
from .pipeline import LeagueAggregates, build_league_aggregates
from .season import RULE_VERSION

logger = logging.getLogger(__name__)

AggregateBuilder = Callable[..., LeagueAggregates]


class MigrationError(RuntimeError):
    """Raised when stored or recomputed data carries an inconsistent rule version."""


@dataclass
class MigrationReport:
    """Outcome of one harness run."""

    target_version: int = RULE_VERSION
    skipped: bool = False
    migrated: List[str] = field(default_factory=list)
    up_to_date: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target_version": self.target_version,
            "skipped": self.skipped,
            "migrated": list(self.migrated),
            "up_to_date": list(self.up_to_date),
            "failed": dict(self.failed),
        }


class MigrationHarness:
    """Bring every league in a store up to the current rule version."""

    def __init__(
        self,
        store: LeagueStore,
        *,
        max_workers: Optional[int] = None,
        default_playoff_start_week: Optional[int] = None,
        builder: AggregateBuilder = build_league_aggregates,
    ) -> None:
        self.store = store
        self.max_workers = max_workers
        self.default_playoff_start_week = default_playoff_start_week
        self.builder = builder

    def run(self) -> MigrationReport:
        """Migrate every stale league; advance the global tag only if all succeed."""
        report = MigrationReport()
        current = self.store.get_data_version()
        if current >= RULE_VERSION:
            logger.info("Data at rule version %d (engine %d); nothing to migrate.", current, RULE_VERSION)
            report.skipped = True
            return report

        logger.info("Migrating league data from rule version %d to %d.", current, RULE_VERSION)
        for league_id in self.store.list_league_ids():
            try:
                migrated = self.migrate_league(league_id)
            except (MigrationError, SnapshotError, ValueError, TypeError, OSError) as exc:
                logger.error("Migration failed for league %s: %s", league_id, exc)
                report.failed[league_id] = str(exc)
                continue
            if migrated:
                report.migrated.append(league_id)
            else:
                report.up_to_date.append(league_id)

        if report.ok:
            self.store.set_data_version(RULE_VERSION)
            logger.info("Migration complete: %d league(s) rebuilt.", len(report.migrated))
        else:
            logger.warning("Migration incomplete: %d league(s) failed.", len(report.failed))
        return report

    def migrate_league(self, league_id: str, *, force: bool = False) -> bool:
        """Rebuild one league's aggregates if its tag is stale.

        Returns True when aggregates were rebuilt. The league tag only
        advances after the new aggregates are safely written.
        """
        stored = self.store.get_league_version(league_id)
        if stored > RULE_VERSION:
            raise MigrationError(
                f"League {league_id} is tagged with rule version {stored}, newer than {RULE_VERSION}."
            )
        if stored == RULE_VERSION and not force:
            return False

        aggregates = self.rebuild(league_id)
        self.store.delete_aggregates(league_id)
        self.store.save_aggregates(league_id, aggregates.to_dict())
        self.store.set_league_version(league_id, RULE_VERSION)
        logger.info("League %s rebuilt at rule version %d.", league_id, RULE_VERSION)
        return True

    def rebuild(self, league_id: str) -> LeagueAggregates:
        """Recompute a league's aggregates in memory without touching the store."""
        payload = self.store.load_league(league_id)
        if payload is None:
            raise SnapshotError(f"No stored snapshot for league {league_id}.")
        league = LeagueSnapshot.from_dict(payload, default_playoff_start_week=self.default_playoff_start_week)
        aggregates = self.builder(league, max_workers=self.max_workers)
        stale = [version for version in aggregates.stamped_versions() if version != RULE_VERSION]
        if stale:
            raise MigrationError(
                f"Recomputed aggregates for league {league_id} carry rule version(s) {stale}, expected {RULE_VERSION}."
            )
        return aggregates


def load_current_aggregates(store: LeagueStore, league_id: str) -> Optional[LeagueAggregates]:
    """Return stored aggregates only when they match the current rule version."""
    payload = store.load_aggregates(league_id)
    if payload is None:
        return None
    aggregates = LeagueAggregates.from_dict(payload)
    if aggregates.rule_version != RULE_VERSION:
        logger.debug("Ignoring league %s aggregates at rule version %d.", league_id, aggregates.rule_version)
        return None
    return aggregates
