"""Pytest configuration for adjusting import paths and shared league fixtures."""

from __future__ import annotations

import copy
import sys
from pathlib import Path
from typing import Any, Dict, List

import pytest


def pytest_configure() -> None:
    """Ensure the src/ directory is importable without installing the package."""
    root = Path(__file__).resolve().parents[1]
    src_dir = root / "src"
    src_path = str(src_dir)
    if src_path not in sys.path:
        sys.path.insert(0, src_path)


PLAYERS: Dict[str, Dict[str, Any]] = {
    "q1": {"position": "QB", "fantasy_positions": ["QB"]},
    "r1": {"position": "RB", "fantasy_positions": ["RB"]},
    "r2": {"position": "RB", "fantasy_positions": ["RB"]},
    "r3": {"position": "RB", "fantasy_positions": ["RB"]},
    "q2": {"position": "QB", "fantasy_positions": ["QB"]},
    "r4": {"position": "RB", "fantasy_positions": ["RB"]},
    "r5": {"position": "RB", "fantasy_positions": ["RB"]},
    "w2": {"position": "WR", "fantasy_positions": ["WR"]},
}


def _week_entries() -> List[Dict[str, Any]]:
    return [
        {
            "roster_id": "1",
            "matchup_id": 1,
            "points": 36.0,
            "starters": ["q1", "r1", "r2", "0"],
            "players": ["q1", "r1", "r2", "r3"],
            "players_points": {"q1": 18.0, "r1": 10.0, "r2": 8.0, "r3": 14.0},
        },
        {
            "roster_id": "2",
            "matchup_id": 1,
            "points": 48.0,
            "starters": ["q2", "r4", "r5", "w2"],
            "players": ["q2", "r4", "r5", "w2"],
            "players_points": {"q2": 20.0, "r4": 12.0, "r5": 9.0, "w2": 7.0},
        },
    ]


def _season(season: str, *, transactions: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "season": season,
        "roster_positions": ["QB", "RB", "RB", "FLEX", "BN", "BN", "IR"],
        "playoff_start_week": 14,
        "teams": [
            {
                "roster_id": "1",
                "owner_id": "owner-a",
                "name": f"Alpha {season}",
                "standing": 1,
                "wins": 2,
                "losses": 1,
                "ties": 0,
                "champion": True,
                "playoff_wins": 2,
                "playoff_losses": 0,
            },
            {
                "roster_id": "2",
                "owner_id": "owner-b",
                "name": f"Bravo {season}",
                "standing": 2,
                "wins": 1,
                "losses": 2,
                "ties": 0,
                "playoff_wins": 1,
                "playoff_losses": 1,
            },
        ],
        "transactions": transactions,
        "matchups": {str(week): _week_entries() for week in (1, 2, 3)},
    }


@pytest.fixture()
def league_payload() -> Dict[str, Any]:
    """Two seasons, two teams, three weeks each (weeks 1 and 2 completed)."""
    transactions = [
        {"transaction_id": "t1", "type": "waiver", "status": "complete", "roster_ids": ["1"], "waiver_bid": 12},
        {"transaction_id": "t2", "type": "free_agent", "status": "complete", "roster_ids": ["1"]},
        {"transaction_id": "t3", "type": "trade", "status": "complete", "roster_ids": ["1", "2"]},
        {"transaction_id": "t4", "type": "waiver", "status": "failed", "roster_ids": ["2"], "waiver_bid": 30},
    ]
    return {
        "league_id": "league-1",
        "name": "Test League",
        "players": copy.deepcopy(PLAYERS),
        "seasons": [
            _season("2022", transactions=[]),
            _season("2023", transactions=transactions),
        ],
    }
