"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from sqlalchemy.pool import StaticPool

from .services.intervals import IntervalPolicy, parse_weekday

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int, *, minimum: int = 1) -> int:
    """Read a positive integer from the environment."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc
    if parsed < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {parsed}")
    return parsed


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "HabitPixel"
    DB_FILENAME = "habitpixel.db"
    SQLITE_PRAGMAS = {"journal_mode": "wal", "foreign_keys": "on"}

    def __init__(self) -> None:
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("HABITPIXEL_DEV_MODE", default=True)
        self.DATABASE_URL = os.getenv("HABITPIXEL_DATABASE_URL", self._build_sqlite_url())
        self.TIMEZONE = self._resolve_timezone()
        self.FIRST_WEEKDAY = parse_weekday(os.getenv("HABITPIXEL_FIRST_WEEKDAY", "monday"))
        self.GRID_LOOKBACK_MONTHS = _env_int("HABITPIXEL_GRID_LOOKBACK_MONTHS", 15)
        self.GRID_BATCH_SIZE = _env_int("HABITPIXEL_GRID_BATCH_SIZE", 100)

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = os.getenv("HABITPIXEL_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _resolve_timezone(self) -> ZoneInfo | None:
        """Return the configured calendar zone, or None for local wall-clock time."""

        name = os.getenv("HABITPIXEL_TIMEZONE")
        if not name:
            return None
        try:
            return ZoneInfo(name)
        except ZoneInfoNotFoundError as exc:
            raise ValueError(f"HABITPIXEL_TIMEZONE names an unknown zone: {name!r}") from exc

    def _build_sqlite_url(self) -> str:
        db_path = self.DATA_DIR / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        connect_args: dict[str, Any] = {"check_same_thread": False}
        engine_options: dict[str, Any] = {"connect_args": connect_args}
        if self.DATABASE_URL in {"sqlite://", "sqlite:///:memory:"}:
            # one shared connection, otherwise every session sees an empty database
            engine_options["poolclass"] = StaticPool
        return engine_options

    def interval_policy(self) -> IntervalPolicy:
        """Build the calendar policy every engine call should share."""

        return IntervalPolicy(tz=self.TIMEZONE, first_weekday=self.FIRST_WEEKDAY)


class TestConfig(BaseConfig):
    """Configuration for the test suite: in-memory database, quiet console."""

    __test__ = False  # keep pytest from collecting this class

    DEBUG = False
    TESTING = True

    def __init__(self) -> None:
        super().__init__()
        self.DEV_MODE = False
        self.DATABASE_URL = "sqlite://"
