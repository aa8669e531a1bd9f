"""Tests for environment-driven engine configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from data_processor.config import EngineConfig


def test_defaults() -> None:
    config = EngineConfig.from_env({})

    assert config.data_dir == Path("data")
    assert config.max_workers is None
    assert config.playoff_start_week == 14


def test_values_from_environment() -> None:
    config = EngineConfig.from_env(
        {
            "STATDROP_DATA_DIR": "/tmp/leagues",
            "STATDROP_MAX_WORKERS": "8",
            "STATDROP_PLAYOFF_START_WEEK": "15",
        }
    )

    assert config.data_dir == Path("/tmp/leagues")
    assert config.max_workers == 8
    assert config.playoff_start_week == 15


@pytest.mark.parametrize(("raw", "expected"), [("9", 13), ("22", 18), ("soon", 14)])
def test_playoff_start_week_is_clamped(raw: str, expected: int) -> None:
    assert EngineConfig.from_env({"STATDROP_PLAYOFF_START_WEEK": raw}).playoff_start_week == expected


@pytest.mark.parametrize("raw", ["many", "0"])
def test_invalid_worker_count(raw: str) -> None:
    with pytest.raises(RuntimeError):
        EngineConfig.from_env({"STATDROP_MAX_WORKERS": raw})
