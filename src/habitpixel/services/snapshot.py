"""Widget snapshot export for out-of-process renderers."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Iterable

from .habits import HabitProgress


@dataclass(frozen=True, slots=True)
class HabitDisplayInfo:
    """Everything a widget needs to draw one habit without the engine."""

    id: str
    title: str
    icon_name: str
    color: str
    completed_days: frozenset[date]
    start_date: date
    end_date: date

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "iconName": self.icon_name,
            "color": self.color,
            "completedDays": [day.isoformat() for day in sorted(self.completed_days)],
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
        }


def build_snapshot(progress: HabitProgress) -> HabitDisplayInfo:
    """Snapshot a habit; the range falls back to its creation day when empty."""

    config = progress.config
    created = progress.policy.day_of(config.created_at)
    date_range = progress.date_range
    start, end = date_range if date_range is not None else (created, created)
    return HabitDisplayInfo(
        id=str(config.id),
        title=config.title,
        icon_name=config.icon_name,
        color=config.color,
        completed_days=frozenset(progress.sorted_days),
        start_date=start,
        end_date=end,
    )


def export_widget_snapshots(*, habits: Iterable[HabitProgress], output_path: Path) -> Path:
    """Write a JSON list of snapshots to ``output_path`` and return the path."""

    payload = [build_snapshot(progress).to_dict() for progress in habits]
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8") as fh:
        json.dump(payload, fh, indent=2)
    return output_path


__all__ = ["HabitDisplayInfo", "build_snapshot", "export_widget_snapshots"]
