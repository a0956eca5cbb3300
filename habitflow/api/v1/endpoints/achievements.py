"""
Achievement Badges API endpoints

Unlock state is derived from the habit history on every request; the
client stores which unlocks it has already celebrated and sends them back
as `seen`.
"""

from typing import List

import pytz
from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from habitflow.core.database import get_service_client
from habitflow.models.achievements import (
    Achievement,
    AchievementProgress,
    AchievementStats,
)
from habitflow.services.achievement_service import (
    ACHIEVEMENTS,
    build_achievement_stats,
    evaluate_achievements,
    find_new_unlocks,
    get_achievement_progress,
    mark_seen,
)
from habitflow.services.habit_repository import SupabaseHabitRepository
from habitflow.services.logger import logger

router = APIRouter(redirect_slashes=False)


class UserAchievementsResponse(BaseModel):
    stats: AchievementStats
    progress: List[AchievementProgress]
    unlocked_ids: List[str]
    newly_unlocked: List[Achievement]
    seen_ids: List[str]


def get_habit_repository(
    supabase=Depends(get_service_client),
) -> SupabaseHabitRepository:
    return SupabaseHabitRepository(supabase)


@router.get("/achievements/catalog", response_model=List[Achievement])
async def get_achievement_catalog():
    """Get all available achievements"""
    return list(ACHIEVEMENTS)


@router.get("/users/{user_id}/achievements", response_model=UserAchievementsResponse)
async def get_user_achievements(
    user_id: str,
    timezone: str = Query("UTC"),
    seen: List[str] = Query([]),
    repository: SupabaseHabitRepository = Depends(get_habit_repository),
):
    """Get unlock state, progress bars and not-yet-celebrated unlocks"""
    if timezone not in pytz.all_timezones_set:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown timezone: {timezone}",
        )

    try:
        habits = await repository.fetch_habits(user_id, include_archived=True)
        completions = await repository.fetch_all_completions(user_id)
    except Exception as e:
        logger.error(
            f"Failed to load habit history for user {user_id}",
            {"error": str(e), "user_id": user_id},
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve achievements",
        )

    stats = build_achievement_stats(habits, completions, timezone=timezone)
    unlocked = evaluate_achievements(stats)
    newly_unlocked = find_new_unlocks(unlocked, seen)

    return UserAchievementsResponse(
        stats=stats,
        progress=get_achievement_progress(stats),
        unlocked_ids=[a.id for a in unlocked],
        newly_unlocked=newly_unlocked,
        seen_ids=sorted(mark_seen(seen, newly_unlocked)),
    )
