"""Habit tracking data structures."""

from __future__ import annotations

from datetime import datetime, time
from typing import ClassVar, Optional

from sqlalchemy import DateTime, Time
from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

from ..services.intervals import FrequencyKind


class Habit(SQLModel, table=True):
    """A user-defined habit with a goal per daily, weekly or monthly interval."""

    __tablename__: ClassVar[str] = "habit"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(nullable=False, max_length=80, index=True)
    description: str = Field(default="", max_length=255)
    goal: int = Field(default=1, nullable=False)
    frequency: str = Field(default=FrequencyKind.DAILY.value, max_length=16)
    icon_name: str = Field(default="checkmark", max_length=64)
    color: str = Field(default="#0A84FF", max_length=9)
    category: str = Field(default="None", max_length=32)
    # Naive wall-clock values; the interval policy decides their calendar day.
    created_at: datetime = Field(default_factory=datetime.now, nullable=False, sa_type=DateTime())
    reminder_time: Optional[time] = Field(default=None, sa_type=Time())
    is_archived: bool = Field(default=False, nullable=False)

    entries: list["HabitEntry"] = Relationship(
        back_populates="habit",
        sa_relationship=relationship(
            "HabitEntry",
            back_populates="habit",
            cascade="all, delete-orphan",
            order_by="HabitEntry.timestamp",
        ),
    )


class HabitEntry(SQLModel, table=True):
    """One recorded completion; several may share a calendar day."""

    __tablename__: ClassVar[str] = "habit_entry"

    id: Optional[int] = Field(default=None, primary_key=True)
    habit_id: int = Field(foreign_key="habit.id", nullable=False, index=True)
    timestamp: datetime = Field(
        default_factory=datetime.now, nullable=False, index=True, sa_type=DateTime()
    )

    habit: "Habit" = Relationship(
        back_populates="entries",
        sa_relationship=relationship("Habit", back_populates="entries"),
    )
