"""CLI utilities for the lineup-efficiency engine."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from data_processor.config import EngineConfig
from data_processor.migration import MigrationError, MigrationHarness, load_current_aggregates
from data_processor.models import LeagueSnapshot, SnapshotError
from data_processor.pipeline import build_league_aggregates, build_season_summary, evaluate_team_week
from data_processor.season import RULE_VERSION
from data_store.league_store import LeagueStore


def build_parser() -> argparse.ArgumentParser:
    """Create command-line parser."""
    parser = argparse.ArgumentParser(
        description="Fantasy lineup efficiency and all-time statistics engine.",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="League store directory (default: STATDROP_DATA_DIR or data/).",
    )
    parser.add_argument(
        "--max-workers",
        type=_positive_int,
        default=None,
        help="Thread pool size for weekly evaluation (default: STATDROP_MAX_WORKERS).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("rule-version", help="Print the current rule version.")

    week_parser = subparsers.add_parser(
        "evaluate-week",
        help="Evaluate one team's actual and optimal lineup for one week.",
    )
    _add_snapshot_arguments(week_parser)
    week_parser.add_argument("--season", required=True, help="Season id (e.g. 2023).")
    week_parser.add_argument("--week", required=True, type=int, help="Week number.")
    week_parser.add_argument("--roster-id", required=True, help="Roster id of the team.")

    season_parser = subparsers.add_parser(
        "season-stats",
        help="Compute per-team season statistics.",
    )
    _add_snapshot_arguments(season_parser)
    season_parser.add_argument(
        "--season",
        help="Season id (defaults to the latest season in the snapshot).",
    )

    all_time_parser = subparsers.add_parser(
        "all-time",
        help="Compute per-owner all-time statistics and head-to-head records.",
    )
    _add_snapshot_arguments(all_time_parser)
    all_time_parser.add_argument(
        "--owner",
        action="append",
        dest="owners",
        help="Restrict to these owner ids (repeatable; defaults to latest season owners).",
    )

    ingest_parser = subparsers.add_parser(
        "ingest",
        help="Store a league snapshot and build its aggregates.",
    )
    _add_snapshot_arguments(ingest_parser, output=False)

    show_parser = subparsers.add_parser(
        "show",
        help="Print stored aggregates for a league if they are current.",
    )
    show_parser.add_argument("league_id", help="League id.")
    show_parser.add_argument("--pretty", action="store_true", help="Pretty-print JSON output.")

    rebuild_parser = subparsers.add_parser(
        "rebuild",
        help="Recompute stored aggregates for one league regardless of its version tag.",
    )
    rebuild_parser.add_argument("league_id", help="League id.")

    subparsers.add_parser(
        "migrate",
        help="Rebuild every league whose aggregates predate the current rule version.",
    )

    return parser


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def _add_snapshot_arguments(parser: argparse.ArgumentParser, *, output: bool = True) -> None:
    parser.add_argument("snapshot", type=Path, help="League snapshot JSON file.")
    parser.add_argument(
        "--playoff-start-week",
        type=int,
        default=None,
        help="Playoff start week for seasons that omit it (default: STATDROP_PLAYOFF_START_WEEK or 14).",
    )
    if not output:
        return
    parser.add_argument(
        "--output",
        type=Path,
        help="Optional output file to write JSON.",
    )
    parser.add_argument(
        "--pretty",
        action="store_true",
        help="Pretty-print JSON output.",
    )


def main(argv: Optional[list[str]] = None) -> int:
    """Entrypoint for CLI execution."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = EngineConfig.from_env()
    except RuntimeError as exc:
        parser.error(str(exc))
    if args.data_dir is not None:
        config.data_dir = args.data_dir
    if args.max_workers is not None:
        config.max_workers = args.max_workers

    try:
        if args.command == "rule-version":
            print(RULE_VERSION)
            return 0

        if args.command == "evaluate-week":
            league = _load_snapshot(args.snapshot, _playoff_week(args, config))
            result = evaluate_team_week(league, args.season, args.week, args.roster_id)
            if result is None:
                raise SnapshotError(
                    f"No matchup entry for roster {args.roster_id} in season {args.season} week {args.week}."
                )
            _emit(result.to_dict(), output=args.output, pretty=args.pretty)
            return 0

        if args.command == "season-stats":
            league = _load_snapshot(args.snapshot, _playoff_week(args, config))
            season = league.season(args.season) if args.season else league.latest_season()
            if season is None:
                raise SnapshotError(f"Season {args.season or '(latest)'} not found in snapshot.")
            summary = build_season_summary(season, league.players, max_workers=config.max_workers)
            payload = {
                "season": summary.season,
                "completed_weeks": summary.completed_weeks,
                "rule_version": summary.rule_version,
                "teams": [stats.to_dict() for stats in summary.teams],
            }
            _emit(payload, output=args.output, pretty=args.pretty)
            return 0

        if args.command == "all-time":
            league = _load_snapshot(args.snapshot, _playoff_week(args, config))
            aggregates = build_league_aggregates(
                league,
                max_workers=config.max_workers,
                owner_ids=args.owners,
            )
            payload = {
                "league_id": aggregates.league_id,
                "rule_version": aggregates.rule_version,
                "owners": {owner: stats.to_dict() for owner, stats in aggregates.all_time.items()},
            }
            _emit(payload, output=args.output, pretty=args.pretty)
            return 0

        store = LeagueStore(config.data_dir)
        harness = MigrationHarness(
            store,
            max_workers=config.max_workers,
            default_playoff_start_week=_playoff_week(args, config),
        )

        if args.command == "ingest":
            payload = json.loads(args.snapshot.read_text(encoding="utf-8"))
            league = LeagueSnapshot.from_dict(payload, default_playoff_start_week=harness.default_playoff_start_week)
            store.save_league(league.league_id, payload)
            harness.migrate_league(league.league_id, force=True)
            print(f"Stored league {league.league_id} at rule version {RULE_VERSION}.")
            return 0

        if args.command == "show":
            aggregates = load_current_aggregates(store, args.league_id)
            if aggregates is None:
                print(f"No current aggregates for league {args.league_id}; run migrate or rebuild.", file=sys.stderr)
                return 1
            _emit(aggregates.to_dict(), output=None, pretty=args.pretty)
            return 0

        if args.command == "rebuild":
            harness.migrate_league(args.league_id, force=True)
            print(f"Rebuilt league {args.league_id} at rule version {RULE_VERSION}.")
            return 0

        if args.command == "migrate":
            report = harness.run()
            _emit(report.to_dict(), output=None, pretty=True)
            return 0 if report.ok else 1

        parser.error("Unknown command.")
    except (SnapshotError, MigrationError, OSError, json.JSONDecodeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


def _playoff_week(args: argparse.Namespace, config: EngineConfig) -> int:
    override = getattr(args, "playoff_start_week", None)
    if override is not None:
        return override
    return config.playoff_start_week


def _load_snapshot(path: Path, default_playoff_start_week: int) -> LeagueSnapshot:
    payload = json.loads(path.read_text(encoding="utf-8"))
    return LeagueSnapshot.from_dict(payload, default_playoff_start_week=default_playoff_start_week)


def _emit(payload: dict[str, Any], *, output: Optional[Path], pretty: bool) -> None:
    rendered = json.dumps(payload, indent=2 if pretty else None)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(rendered, encoding="utf-8")
    else:
        print(rendered)


if __name__ == "__main__":
    raise SystemExit(main())
