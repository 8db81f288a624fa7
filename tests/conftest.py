"""Pytest configuration and shared fixtures for HabitPixel tests.

This module provides database fixtures, engine-context factories and fixed
reference dates so streak and grid tests never depend on the wall clock.
"""

from __future__ import annotations

import logging
import tempfile
from datetime import date, datetime, timedelta
from pathlib import Path
from types import SimpleNamespace

import pytest
from sqlmodel import Session, SQLModel, create_engine

from factories import TODAY, at
from habitpixel.logging_config import ROOT_LOGGER_NAME
from habitpixel.models import Habit, HabitEntry
from habitpixel.services.habits import HabitConfig, HabitProgress
from habitpixel.services.intervals import FrequencyKind, IntervalPolicy


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Drop handlers installed by setup_logging so tests stay isolated."""
    yield
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def policy() -> IntervalPolicy:
    return IntervalPolicy()


# =============================================================================
# Engine-context Factories
# =============================================================================


@pytest.fixture
def progress_factory(policy):
    """Factory for in-memory HabitProgress contexts.

    Returns:
        Callable: Function that builds a HabitProgress from goal/frequency/timestamps
    """

    def _create_progress(
        timestamps=(),
        goal: int = 1,
        frequency: FrequencyKind | str = FrequencyKind.DAILY,
        created_at: datetime | None = None,
        habit_id: int | str = 1,
        title: str = "Test Habit",
    ) -> HabitProgress:
        config = HabitConfig(
            id=habit_id,
            goal=goal,
            frequency=FrequencyKind.parse(frequency),
            created_at=created_at or at(TODAY - timedelta(days=30)),
            title=title,
        )
        return HabitProgress(config, timestamps, policy=policy)

    return _create_progress


@pytest.fixture
def habit_record():
    """Plain record shaped like a persisted habit, for from_record tests."""

    def _record(**overrides):
        values = {
            "id": 7,
            "title": "Read",
            "goal": 1,
            "frequency": "Daily",
            "created_at": at(TODAY - timedelta(days=10)),
            "icon_name": "book",
            "color": "#34C759",
            "entries": [],
        }
        values.update(overrides)
        return SimpleNamespace(**values)

    return _record


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database file for each test.

    Yields:
        Engine: SQLModel engine connected to test database
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Create a database session for a single test."""
    session = Session(db_engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory matching the repository's Callable[[], Session] contract."""

    def factory() -> Session:
        return Session(db_engine, expire_on_commit=False)

    return factory


@pytest.fixture
def habit_factory(db_session):
    """Factory for creating persisted habits.

    Returns:
        Callable: Function that creates and persists Habit instances
    """

    def _create_habit(
        title: str = "Test Habit",
        goal: int = 1,
        frequency: str = "Daily",
        created_at: datetime | None = None,
        is_archived: bool = False,
    ) -> Habit:
        habit = Habit(
            title=title,
            goal=goal,
            frequency=frequency,
            created_at=created_at or at(TODAY - timedelta(days=30)),
            is_archived=is_archived,
        )
        db_session.add(habit)
        db_session.commit()
        db_session.refresh(habit)
        return habit

    return _create_habit


@pytest.fixture
def entry_factory(db_session):
    """Factory for persisting completion entries for a habit."""

    def _create_entries(habit: Habit, *timestamps: datetime) -> list[HabitEntry]:
        entries = [HabitEntry(habit_id=habit.id, timestamp=ts) for ts in timestamps]
        db_session.add_all(entries)
        db_session.commit()
        return entries

    return _create_entries
