"""JSON file storage for league snapshots, derived aggregates and version tags."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

VERSIONS_FILE = "versions.json"


class LeagueStore:
    """Persist raw league snapshots and their derived aggregates on disk.

    Layout under ``directory``::

        leagues/<league_id>.json   raw snapshots, never rewritten by migrations
        derived/<league_id>.json   recomputable aggregates
        versions.json              global and per-league rule-version tags
    """

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    # ------------------------------------------------------------------
    # Raw snapshots
    # ------------------------------------------------------------------

    def save_league(self, league_id: str, payload: dict[str, Any]) -> None:
        self._write_json(self._league_path(league_id), payload)

    def load_league(self, league_id: str) -> Optional[dict[str, Any]]:
        """Return the stored snapshot, or None when the league is unknown."""
        return self._read_json(self._league_path(league_id))

    def list_league_ids(self) -> List[str]:
        leagues_dir = self.directory / "leagues"
        if not leagues_dir.exists():
            return []
        return sorted(path.stem for path in leagues_dir.glob("*.json"))

    # ------------------------------------------------------------------
    # Derived aggregates
    # ------------------------------------------------------------------

    def save_aggregates(self, league_id: str, payload: dict[str, Any]) -> None:
        self._write_json(self._derived_path(league_id), payload)

    def load_aggregates(self, league_id: str) -> Optional[dict[str, Any]]:
        return self._read_json(self._derived_path(league_id))

    def delete_aggregates(self, league_id: str) -> None:
        path = self._derived_path(league_id)
        if path.exists():
            path.unlink()

    # ------------------------------------------------------------------
    # Version tags
    # ------------------------------------------------------------------

    def get_data_version(self) -> int:
        return int(self._versions().get("data_version", 0))

    def set_data_version(self, version: int) -> None:
        versions = self._versions()
        versions["data_version"] = version
        self._write_json(self.directory / VERSIONS_FILE, versions)

    def get_league_version(self, league_id: str) -> int:
        leagues = self._versions().get("leagues", {})
        return int(leagues.get(self._sanitize(league_id), 0))

    def set_league_version(self, league_id: str, version: int) -> None:
        versions = self._versions()
        versions.setdefault("leagues", {})[self._sanitize(league_id)] = version
        self._write_json(self.directory / VERSIONS_FILE, versions)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _versions(self) -> Dict[str, Any]:
        return self._read_json(self.directory / VERSIONS_FILE) or {}

    def _league_path(self, league_id: str) -> Path:
        return self.directory / "leagues" / f"{self._sanitize(league_id)}.json"

    def _derived_path(self, league_id: str) -> Path:
        return self.directory / "derived" / f"{self._sanitize(league_id)}.json"

    @staticmethod
    def _read_json(path: Path) -> Optional[dict[str, Any]]:
        if not path.exists():
            return None
        return json.loads(path.read_text(encoding="utf-8"))

    @staticmethod
    def _write_json(path: Path, payload: dict[str, Any]) -> None:
        """Write atomically: a crash leaves either the old file or the new one."""
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, indent=2)
            os.replace(temp_name, path)
        except BaseException:
            if os.path.exists(temp_name):
                os.unlink(temp_name)
            raise

    @staticmethod
    def _sanitize(value: str) -> str:
        return "".join(ch if ch.isalnum() or ch in {"-", "_"} else "_" for ch in value)
