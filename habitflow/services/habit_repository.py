"""
Read access to a user's habits and completion log.
"""

from typing import List, Optional, Protocol

from supabase import Client

from habitflow.core.config import settings
from habitflow.models.habits import CompletionEvent, Habit
from habitflow.services.logger import logger

# PostgREST returns at most 1000 rows per request by default
PAGE_SIZE = 1000

class HabitRepository(Protocol):
    async def fetch_habits(
        self, user_id: str, include_archived: bool = False
    ) -> List[Habit]: ...

    async def fetch_completions(
        self, user_id: str, limit: Optional[int] = None
    ) -> List[CompletionEvent]: ...


class SupabaseHabitRepository:
    """
    Supabase-backed repository.

    The client is the service-role client and bypasses RLS, so every query
    filters on user_id explicitly.
    """

    def __init__(self, client: Client):
        self.supabase = client

    async def fetch_habits(
        self, user_id: str, include_archived: bool = False
    ) -> List[Habit]:
        """Habits oldest first; archived ones only when asked for."""
        query = (
            self.supabase.table("habits")
            .select("id, name, category, frequency, created_at, archived")
            .eq("user_id", user_id)
        )
        if not include_archived:
            query = query.eq("archived", False)

        result = query.order("created_at").execute()
        return [Habit.model_validate(row) for row in result.data or []]

    async def fetch_completions(
        self, user_id: str, limit: Optional[int] = None
    ) -> List[CompletionEvent]:
        """Completions newest first, capped at `limit` rows."""
        if limit is None:
            limit = settings.INSIGHT_COMPLETION_FETCH_LIMIT

        result = (
            self.supabase.table("habit_completions")
            .select("habit_id, completed_at, notes, mood")
            .eq("user_id", user_id)
            .order("completed_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [CompletionEvent.model_validate(row) for row in result.data or []]

    async def fetch_all_completions(self, user_id: str) -> List[CompletionEvent]:
        """Entire completion history, newest first, paged past the row cap."""
        completions: List[CompletionEvent] = []
        offset = 0
        while True:
            result = (
                self.supabase.table("habit_completions")
                .select("habit_id, completed_at, notes, mood")
                .eq("user_id", user_id)
                .order("completed_at", desc=True)
                .range(offset, offset + PAGE_SIZE - 1)
                .execute()
            )
            rows = result.data or []
            completions.extend(CompletionEvent.model_validate(row) for row in rows)
            if len(rows) < PAGE_SIZE:
                return completions
            offset += PAGE_SIZE

    async def list_active_user_ids(self) -> List[str]:
        """Users with at least one non-archived habit."""
        result = (
            self.supabase.table("habits")
            .select("user_id")
            .eq("archived", False)
            .execute()
        )
        user_ids = sorted({row["user_id"] for row in result.data or []})
        logger.info(
            f"Found {len(user_ids)} users with active habits",
            {"user_count": len(user_ids)},
        )
        return user_ids
