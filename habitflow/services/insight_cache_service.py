"""
HabitFlow - AI Insight Cache Service

Decides, per (user, insight type), whether to serve the cached insight or pay
for a new generation.

Flow:
1. Not enough history: insufficient_data (cache untouched)
2. Fingerprint habits + 50 most recent completions
3. Cached record, not forced, not expired, same fingerprint: serve it
4. Forced refresh within the rate-limit window: rate_limited
5. Otherwise generate, validate, upsert, serve

A failed regeneration never touches the stored record; it is handed back as
last_known_good so callers can keep showing it.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Tuple

from pydantic import ValidationError

from habitflow.core.analytics import (
    track_insight_generated,
    track_insight_rate_limited,
)
from habitflow.core.config import settings
from habitflow.models.habits import CompletionEvent, Habit
from habitflow.models.insights import (
    INSIGHT_PAYLOAD_MODELS,
    InsightRecord,
    InsightResult,
    InsightType,
)
from habitflow.services.habit_repository import HabitRepository
from habitflow.services.insight_data_formatter import (
    compute_data_hash,
    sufficiency_check,
    summarize,
    to_prompt_text,
)
from habitflow.services.insight_generator import (
    InsightGenerator,
    InsightServiceNotConfiguredError,
    MalformedInsightOutputError,
)
from habitflow.services.insight_prompts import SYSTEM_PROMPTS
from habitflow.services.insight_store import InsightStore
from habitflow.services.logger import logger

UNAVAILABLE_MESSAGE = "AI insights are temporarily unavailable. Please try again."

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class InsightCacheService:
    def __init__(
        self,
        repository: HabitRepository,
        store: InsightStore,
        generator: InsightGenerator,
        clock: Optional[Clock] = None,
        ttl: Optional[timedelta] = None,
        rate_limit_window: Optional[timedelta] = None,
        generation_timeout: Optional[float] = None,
        hash_window: Optional[int] = None,
        min_days: Optional[int] = None,
    ):
        self.repository = repository
        self.store = store
        self.generator = generator
        self.clock = clock or _utc_now
        self.ttl = ttl or timedelta(hours=settings.INSIGHT_TTL_HOURS)
        self.rate_limit_window = rate_limit_window or timedelta(
            hours=settings.INSIGHT_RATE_LIMIT_HOURS
        )
        self.generation_timeout = (
            generation_timeout or settings.INSIGHT_GENERATION_TIMEOUT_SECONDS
        )
        self.hash_window = hash_window or settings.INSIGHT_HASH_COMPLETION_WINDOW
        self.min_days = min_days if min_days is not None else settings.INSIGHTS_MIN_DAYS

    async def get_insight(
        self, user_id: str, insight_type: InsightType, force_refresh: bool = False
    ) -> InsightResult:
        insight_type = InsightType(insight_type)
        habits, completions = await self._load_user_data(user_id)
        return await self._resolve(
            user_id, insight_type, habits, completions, force_refresh
        )

    async def get_all_insights(
        self, user_id: str, force_refresh: bool = False
    ) -> Dict[InsightType, InsightResult]:
        """Resolve all types concurrently; one failing doesn't block the others."""
        habits, completions = await self._load_user_data(user_id)
        types = list(InsightType)

        outcomes = await asyncio.gather(
            *[
                self._resolve(user_id, t, habits, completions, force_refresh)
                for t in types
            ],
            return_exceptions=True,
        )

        results: Dict[InsightType, InsightResult] = {}
        for insight_type, outcome in zip(types, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(
                    f"Unexpected error resolving {insight_type.value} insight: {outcome}",
                    {"user_id": user_id, "insight_type": insight_type.value},
                )
                outcome = InsightResult(
                    status="generation_failed",
                    insight_type=insight_type,
                    message=UNAVAILABLE_MESSAGE,
                )
            results[insight_type] = outcome
        return results

    async def _load_user_data(
        self, user_id: str
    ) -> Tuple[List[Habit], List[CompletionEvent]]:
        habits = await self.repository.fetch_habits(user_id)
        completions = await self.repository.fetch_completions(user_id)
        return habits, completions

    async def _resolve(
        self,
        user_id: str,
        insight_type: InsightType,
        habits: List[Habit],
        completions: List[CompletionEvent],
        force_refresh: bool,
    ) -> InsightResult:
        sufficiency = sufficiency_check(habits, completions, min_days=self.min_days)
        if not sufficiency.has_enough:
            return InsightResult(
                status="insufficient_data",
                insight_type=insight_type,
                message=sufficiency.message,
                days_needed=sufficiency.days_needed,
            )

        data_hash = compute_data_hash(habits, completions, window=self.hash_window)
        existing = await self.store.get_insight_record(user_id, insight_type)
        now = self.clock()

        if existing is not None:
            generated_at = _as_aware(existing.generated_at)

            if (
                not force_refresh
                and now < _as_aware(existing.expires_at)
                and existing.data_hash == data_hash
            ):
                return InsightResult.from_record(existing, cached=True)

            # Only explicit refreshes are throttled; organic staleness always regenerates
            if force_refresh and now - generated_at < self.rate_limit_window:
                retry_after = generated_at + self.rate_limit_window
                logger.info(
                    f"Forced {insight_type.value} refresh rate limited",
                    {"user_id": user_id, "retry_after": retry_after.isoformat()},
                )
                track_insight_rate_limited(
                    user_id, insight_type.value, retry_after.isoformat()
                )
                return InsightResult(
                    status="rate_limited",
                    insight_type=insight_type,
                    retry_after=retry_after,
                    message=(
                        "Insights were refreshed recently. "
                        f"You can refresh again after {retry_after.isoformat()}."
                    ),
                    last_known_good=existing,
                )

        return await self._regenerate(
            user_id, insight_type, habits, completions, data_hash, existing, now
        )

    async def _regenerate(
        self,
        user_id: str,
        insight_type: InsightType,
        habits: List[Habit],
        completions: List[CompletionEvent],
        data_hash: str,
        existing: Optional[InsightRecord],
        now: datetime,
    ) -> InsightResult:
        user_prompt = to_prompt_text(summarize(habits, completions, now=now))
        payload_model = INSIGHT_PAYLOAD_MODELS[insight_type]
        log_context = {"user_id": user_id, "insight_type": insight_type.value}

        def failure(status: str) -> InsightResult:
            return InsightResult(
                status=status,
                insight_type=insight_type,
                message=UNAVAILABLE_MESSAGE,
                last_known_good=existing,
            )

        try:
            generated = await asyncio.wait_for(
                self.generator.generate(SYSTEM_PROMPTS[insight_type], user_prompt),
                timeout=self.generation_timeout,
            )
            try:
                content = payload_model.model_validate(generated.data).model_dump(
                    by_alias=True
                )
            except ValidationError as e:
                raise MalformedInsightOutputError(str(e)) from e

        except InsightServiceNotConfiguredError as e:
            logger.error(f"AI insight service not configured: {e}", log_context)
            return failure("service_unavailable")
        except MalformedInsightOutputError as e:
            logger.error(
                f"Malformed {insight_type.value} output: {e}", log_context, exc_info=e
            )
            return failure("generation_failed")
        except asyncio.TimeoutError as e:
            logger.error(
                f"{insight_type.value} generation timed out after "
                f"{self.generation_timeout}s",
                log_context,
                exc_info=e,
            )
            return failure("generation_failed")
        except Exception as e:
            logger.error(
                f"{insight_type.value} generation failed: {e}", log_context, exc_info=e
            )
            return failure("generation_failed")

        generated_at = now
        if existing is not None:
            generated_at = max(now, _as_aware(existing.generated_at))

        record = InsightRecord(
            user_id=user_id,
            insight_type=insight_type,
            content=content,
            generated_at=generated_at,
            expires_at=generated_at + self.ttl,
            data_hash=data_hash,
            tokens_used=generated.tokens_used,
        )

        try:
            await self.store.upsert_insight_record(record)
        except Exception as e:
            # Content is still served; the stored record stays as it was
            logger.error(f"Failed to save {insight_type.value} insight: {e}", log_context)

        track_insight_generated(user_id, insight_type.value, generated.tokens_used)
        logger.info(
            f"Generated {insight_type.value} insight",
            {**log_context, "tokens_used": generated.tokens_used},
        )
        return InsightResult.from_record(record, cached=False)
