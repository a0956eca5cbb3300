"""
Insight Tasks

Celery tasks that keep cached AI insights warm:
- refresh_user_insights: resolve all three types for one user (never forced)
- refresh_user_insights_chunk: fan a chunk of users out to per-user tasks
- refresh_all_user_insights: daily beat entry point
"""

from typing import Any, Dict, List

from habitflow.services.tasks.base import (
    celery_app,
    get_service_client,
    logger,
    run_async,
)
from habitflow.services.tasks.task_utils import (
    DEFAULT_CHUNK_SIZE,
    dispatch_chunked_tasks,
)


def build_insight_cache_service():
    from habitflow.services.habit_repository import SupabaseHabitRepository
    from habitflow.services.insight_cache_service import InsightCacheService
    from habitflow.services.insight_generator import get_insight_generator
    from habitflow.services.insight_store import SupabaseInsightStore

    client = get_service_client()
    return InsightCacheService(
        repository=SupabaseHabitRepository(client),
        store=SupabaseInsightStore(client),
        generator=get_insight_generator(),
    )


@celery_app.task(
    name="refresh_user_insights",
    bind=True,
    max_retries=2,
    default_retry_delay=60,
)
def refresh_user_insights_task(self, user_id: str) -> Dict[str, Any]:
    """
    Regenerate whichever of a user's insights are stale.

    Not forced, so fresh insights are served from cache and the forced-refresh
    rate limit never applies here.
    """
    try:
        service = build_insight_cache_service()
        results = run_async(service.get_all_insights(user_id, force_refresh=False))

        statuses = {t.value: r.status for t, r in results.items()}
        regenerated = [
            t.value for t, r in results.items() if r.status == "ok" and not r.cached
        ]
        logger.info(
            f"Refreshed insights for user {user_id}",
            {"user_id": user_id, "statuses": statuses, "regenerated": regenerated},
        )
        return {"success": True, "statuses": statuses, "regenerated": regenerated}

    except Exception as e:
        logger.error(
            f"Failed to refresh insights for user {user_id}",
            {"error": str(e), "user_id": user_id},
        )

        if self.request.retries >= self.max_retries:
            return {"success": False, "error": str(e)}

        raise self.retry(exc=e)


@celery_app.task(name="refresh_user_insights_chunk", bind=True)
def refresh_user_insights_chunk_task(self, user_ids: List[str]) -> Dict[str, Any]:
    for user_id in user_ids:
        refresh_user_insights_task.delay(user_id)
    return {"success": True, "queued": len(user_ids)}


@celery_app.task(name="refresh_all_user_insights", bind=True)
def refresh_all_user_insights_task(self) -> Dict[str, Any]:
    """Daily: queue an insight refresh for every user with active habits."""
    from habitflow.services.habit_repository import SupabaseHabitRepository

    try:
        repository = SupabaseHabitRepository(get_service_client())
        user_ids = run_async(repository.list_active_user_ids())

        if not user_ids:
            logger.info("No users with active habits to refresh insights for")
            return {"success": True, "processed": 0}

        result = dispatch_chunked_tasks(
            task=refresh_user_insights_chunk_task,
            items=user_ids,
            chunk_size=DEFAULT_CHUNK_SIZE,
        )
        return {"success": True, **result}

    except Exception as e:
        logger.error(
            "Failed to schedule insight refresh",
            {"error": str(e)},
        )
        return {"success": False, "error": str(e)}
