"""Runtime settings for the engine, read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .models import DEFAULT_PLAYOFF_START_WEEK, clamp_playoff_start_week

DEFAULT_DATA_DIR = "data"


@dataclass()
class EngineConfig:
    """Container for engine settings."""

    data_dir: Path = Path(DEFAULT_DATA_DIR)
    max_workers: Optional[int] = None
    playoff_start_week: int = DEFAULT_PLAYOFF_START_WEEK

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        """Build settings from ``STATDROP_*`` environment variables."""
        env = os.environ if environ is None else environ

        workers_env = env.get("STATDROP_MAX_WORKERS")
        try:
            max_workers = int(workers_env) if workers_env else None
        except ValueError as exc:
            raise RuntimeError(f"STATDROP_MAX_WORKERS must be an integer, got {workers_env!r}") from exc
        if max_workers is not None and max_workers < 1:
            raise RuntimeError("STATDROP_MAX_WORKERS must be at least 1.")

        return cls(
            data_dir=Path(env.get("STATDROP_DATA_DIR", DEFAULT_DATA_DIR)),
            max_workers=max_workers,
            playoff_start_week=clamp_playoff_start_week(env.get("STATDROP_PLAYOFF_START_WEEK")),
        )
