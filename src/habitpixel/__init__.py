"""HabitPixel habit completion and streak engine."""

from __future__ import annotations

from .config import BaseConfig
from .services.completion_index import CompletionCache, CompletionIndex
from .services.grid import CellState, GridData, build_grid_data
from .services.habits import HabitConfig, HabitProgress
from .services.intervals import FrequencyKind, IntervalBounds, IntervalPolicy, get_interval_bounds

__all__ = [
    "BaseConfig",
    "CellState",
    "CompletionCache",
    "CompletionIndex",
    "FrequencyKind",
    "GridData",
    "HabitConfig",
    "HabitProgress",
    "IntervalBounds",
    "IntervalPolicy",
    "build_grid_data",
    "get_interval_bounds",
]
