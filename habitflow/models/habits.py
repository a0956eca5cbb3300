from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator


Mood = Literal["terrible", "bad", "okay", "good", "great"]
HabitFrequency = Literal["daily", "weekly"]


class Habit(BaseModel):
    id: str
    name: str
    category: str = Field(default="Personal", description="Free-form category label")
    frequency: HabitFrequency = "daily"
    created_at: datetime
    archived: bool = False


class CompletionEvent(BaseModel):
    """
    One "habit done on this day" event.

    completed_at is either a calendar date or a timestamp. Bare "YYYY-MM-DD"
    strings stay dates (no time of day); anything longer is a timestamp.
    """

    habit_id: str
    completed_at: Union[datetime, date]
    notes: Optional[str] = None
    mood: Optional[Mood] = None

    @field_validator("completed_at", mode="before")
    @classmethod
    def _parse_completed_at(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            if len(value) == 10:
                return date.fromisoformat(value)
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        return value
