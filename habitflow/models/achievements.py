from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


AchievementCategory = Literal["streak", "consistency", "milestone", "special"]
AchievementRarity = Literal["common", "rare", "epic", "legendary"]


class Achievement(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Stable catalog key, e.g. 'week-warrior'")
    title: str
    description: str
    icon: str
    category: AchievementCategory
    requirement: int = Field(..., gt=0)
    rarity: AchievementRarity


class AchievementStats(BaseModel):
    max_streak: int = 0
    total_completions: int = 0
    habit_count: int = 0
    category_count: int = 0
    has_early_bird: bool = False
    has_night_owl: bool = False
    has_comeback_kid: bool = False


class AchievementProgress(BaseModel):
    achievement: Achievement
    is_unlocked: bool
    current_progress: int
    progress_percentage: int = Field(..., ge=0, le=100)
