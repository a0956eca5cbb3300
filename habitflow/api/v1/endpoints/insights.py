"""
AI Insights API endpoints

Authentication happens upstream; the user id arrives as a path parameter.
"""

from datetime import timezone
from email.utils import format_datetime
from typing import Dict

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from habitflow.core.database import get_service_client
from habitflow.models.insights import InsightResult, InsightType
from habitflow.services.habit_repository import SupabaseHabitRepository
from habitflow.services.insight_cache_service import InsightCacheService
from habitflow.services.insight_generator import get_insight_generator
from habitflow.services.insight_store import SupabaseInsightStore

router = APIRouter(redirect_slashes=False)

STATUS_CODES = {
    "ok": status.HTTP_200_OK,
    "insufficient_data": status.HTTP_400_BAD_REQUEST,
    "rate_limited": status.HTTP_429_TOO_MANY_REQUESTS,
    "service_unavailable": status.HTTP_503_SERVICE_UNAVAILABLE,
    "generation_failed": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class InsightRequest(BaseModel):
    force_refresh: bool = False


def get_insight_cache_service(
    supabase=Depends(get_service_client),
) -> InsightCacheService:
    return InsightCacheService(
        repository=SupabaseHabitRepository(supabase),
        store=SupabaseInsightStore(supabase),
        generator=get_insight_generator(),
    )


@router.post("/users/{user_id}/insights/{insight_type}", response_model=InsightResult)
async def get_insight(
    user_id: str,
    insight_type: InsightType,
    body: InsightRequest = InsightRequest(),
    service: InsightCacheService = Depends(get_insight_cache_service),
):
    """Get one AI insight, regenerating it if stale (or forced)"""
    result = await service.get_insight(
        user_id, insight_type, force_refresh=body.force_refresh
    )

    headers = None
    if result.status == "rate_limited" and result.retry_after is not None:
        retry_at = result.retry_after.astimezone(timezone.utc)
        headers = {"Retry-After": format_datetime(retry_at, usegmt=True)}

    return JSONResponse(
        content=result.model_dump(mode="json"),
        status_code=STATUS_CODES[result.status],
        headers=headers,
    )


@router.post("/users/{user_id}/insights", response_model=Dict[str, InsightResult])
async def get_all_insights(
    user_id: str,
    body: InsightRequest = InsightRequest(),
    service: InsightCacheService = Depends(get_insight_cache_service),
):
    """Get all three insight types; each carries its own status"""
    results = await service.get_all_insights(
        user_id, force_refresh=body.force_refresh
    )
    return {t.value: result for t, result in results.items()}
