"""Configuration and data directory management."""

from __future__ import annotations

import os
import sqlite3
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from disco.errors import ConfigError, DatabaseError, DiscoIOError
from disco.persistence.db import Database

APP_NAME = "disco"


class HashMode(Enum):
    """When file hashes are calculated."""

    OFF = "off"
    ON_DEMAND = "on_demand"
    FULL = "full"


def _platform_data_dir() -> Path:
    try:
        home = Path.home()
    except RuntimeError as exc:
        raise ConfigError("Could not determine data directory") from exc
    if sys.platform == "darwin":
        return home / "Library" / "Application Support" / APP_NAME
    if sys.platform.startswith("win"):
        appdata = os.environ.get("APPDATA")
        base = Path(appdata) if appdata else home / "AppData" / "Roaming"
        return base / APP_NAME / "data"
    xdg = os.environ.get("XDG_DATA_HOME")
    base = Path(xdg) if xdg and Path(xdg).is_absolute() else home / ".local" / "share"
    return base / APP_NAME


@dataclass
class Config:
    """Locations of the data files and default settings."""

    data_dir: Path
    db_path: Path
    log_path: Path
    default_solid_layer: str = "0"
    hash_mode: HashMode = HashMode.ON_DEMAND

    @classmethod
    def load(cls) -> Config:
        """Load the configuration, creating the data directory if needed."""
        data_dir = _platform_data_dir()
        try:
            data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise DiscoIOError(exc) from exc
        return cls.load_from_dir(data_dir)

    @classmethod
    def load_from_dir(cls, data_dir: str | Path) -> Config:
        """Build the configuration rooted at a given directory."""
        data_dir = Path(data_dir)
        return cls(
            data_dir=data_dir,
            db_path=data_dir / "index.db",
            log_path=data_dir / "disco.log",
        )

    def get_value(self, key: str, db: Database) -> str | None:
        """Read a stored setting, or None if it was never set."""
        try:
            row = db.conn.execute(
                "SELECT value FROM config WHERE key = ?", (key,)
            ).fetchone()
        except sqlite3.Error as exc:
            raise DatabaseError(exc) from exc
        return None if row is None else row[0]

    def set_value(self, key: str, value: str, db: Database) -> None:
        """Store a setting, replacing any previous value."""
        try:
            db.conn.execute(
                "INSERT OR REPLACE INTO config (key, value) VALUES (?, ?)",
                (key, value),
            )
        except sqlite3.Error as exc:
            raise DatabaseError(exc) from exc