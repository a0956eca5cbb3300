"""
Persistence for cached AI insights (table: ai_insights).

One row per (user_id, insight_type); regenerations overwrite it in a single
upsert so hash, content and timestamps always belong to the same generation.
"""

from typing import Optional, Protocol

from supabase import Client

from habitflow.models.insights import InsightRecord, InsightType
from habitflow.services.logger import logger

INSIGHTS_TABLE = "ai_insights"


class InsightStore(Protocol):
    async def get_insight_record(
        self, user_id: str, insight_type: InsightType
    ) -> Optional[InsightRecord]: ...

    async def upsert_insight_record(self, record: InsightRecord) -> None: ...


class SupabaseInsightStore:
    def __init__(self, client: Client):
        self.supabase = client

    async def get_insight_record(
        self, user_id: str, insight_type: InsightType
    ) -> Optional[InsightRecord]:
        try:
            result = (
                self.supabase.table(INSIGHTS_TABLE)
                .select(
                    "user_id, insight_type, content, generated_at, expires_at, "
                    "data_hash, tokens_used"
                )
                .eq("user_id", user_id)
                .eq("insight_type", InsightType(insight_type).value)
                .maybe_single()
                .execute()
            )
        except Exception as e:
            logger.warning(
                f"Error fetching cached insight: {e}",
                {"user_id": user_id, "insight_type": str(insight_type)},
            )
            return None

        if not result or not result.data:
            return None
        return InsightRecord.model_validate(result.data)

    async def upsert_insight_record(self, record: InsightRecord) -> None:
        data = record.model_dump(mode="json")
        self.supabase.table(INSIGHTS_TABLE).upsert(
            data, on_conflict="user_id,insight_type"
        ).execute()
