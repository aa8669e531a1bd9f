"""Tests for position normalization."""

from __future__ import annotations

import pytest

from data_processor.positions import (
    CANONICAL_POSITIONS,
    UNKNOWN_POSITION,
    eligible_positions,
    is_defensive,
    is_offensive,
    normalize,
    ordered_position_keys,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("DE", "DL"),
        ("dt", "DL"),
        (" edge ", "DL"),
        ("OLB", "LB"),
        ("ilb", "LB"),
        ("CB", "DB"),
        ("s", "DB"),
        ("SS", "DB"),
        ("PK", "K"),
        ("HB", "RB"),
        ("FB", "RB"),
        ("wr", "WR"),
    ],
)
def test_normalize_maps_aliases(raw: str, expected: str) -> None:
    assert normalize(raw) == expected


@pytest.mark.parametrize("raw", ["DEF", "DP", "IDP", "", None, "ZZTOP"])
def test_normalize_unknown_tokens(raw) -> None:
    assert normalize(raw) == UNKNOWN_POSITION


def test_canonical_tokens_pass_through() -> None:
    assert [normalize(position) for position in CANONICAL_POSITIONS] == list(CANONICAL_POSITIONS)


def test_offense_and_defense_partition_the_canon() -> None:
    for position in CANONICAL_POSITIONS:
        assert is_offensive(position) != is_defensive(position)
    assert not is_offensive(UNKNOWN_POSITION)
    assert not is_defensive(UNKNOWN_POSITION)


def test_eligible_positions_orders_primary_first_and_dedupes() -> None:
    assert eligible_positions("CB", ["DB", "S", "LB", "DEF"]) == ["DB", "LB"]
    assert eligible_positions(None, ["WR", "RB"]) == ["WR", "RB"]
    assert eligible_positions("DEF") == []


def test_ordered_position_keys_puts_canon_first() -> None:
    assert ordered_position_keys(["ZZTOP", "DB", "QB", "UNK"]) == ["QB", "DB", "UNK", "ZZTOP"]
