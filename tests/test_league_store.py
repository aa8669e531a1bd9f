"""Tests for the JSON league store."""

from __future__ import annotations

from pathlib import Path

from data_store.league_store import LeagueStore


def test_league_round_trip(tmp_path: Path) -> None:
    store = LeagueStore(tmp_path)
    payload = {"league_id": "abc", "seasons": []}

    store.save_league("abc", payload)

    assert store.load_league("abc") == payload
    assert store.load_league("missing") is None
    assert store.list_league_ids() == ["abc"]


def test_aggregates_can_be_deleted(tmp_path: Path) -> None:
    store = LeagueStore(tmp_path)
    store.save_aggregates("abc", {"rule_version": 5})

    assert store.load_aggregates("abc") == {"rule_version": 5}
    store.delete_aggregates("abc")
    store.delete_aggregates("abc")
    assert store.load_aggregates("abc") is None


def test_version_tags_default_to_zero(tmp_path: Path) -> None:
    store = LeagueStore(tmp_path)

    assert store.get_data_version() == 0
    assert store.get_league_version("abc") == 0

    store.set_league_version("abc", 5)
    store.set_data_version(5)

    reopened = LeagueStore(tmp_path)
    assert reopened.get_league_version("abc") == 5
    assert reopened.get_league_version("other") == 0
    assert reopened.get_data_version() == 5


def test_keys_are_sanitized_and_writes_leave_no_temp_files(tmp_path: Path) -> None:
    store = LeagueStore(tmp_path)

    store.save_league("league/../x", {"league_id": "league/../x"})

    files = sorted(path.name for path in (tmp_path / "leagues").iterdir())
    assert files == ["league____x.json"]
    assert store.load_league("league/../x") == {"league_id": "league/../x"}
