"""
Pytest configuration and fixtures for HabitFlow API tests.

Collaborators (habit repository, insight store, generator) are replaced by
in-memory fakes; no Supabase, OpenAI or Redis connection is needed.
"""

import copy
from datetime import datetime, timedelta, timezone
from typing import Dict, Generator, List, Optional, Tuple
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from habitflow.main import app
from habitflow.models.habits import CompletionEvent, Habit
from habitflow.models.insights import InsightRecord, InsightType
from habitflow.services.insight_cache_service import InsightCacheService
from habitflow.services.insight_generator import GenerationResult
from habitflow.services.insight_prompts import SYSTEM_PROMPTS

# Friday
FIXED_NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)

VALID_PAYLOADS = {
    InsightType.WEEKLY_SUMMARY: {
        "overallScore": 82,
        "headline": "Five days of calm, keep going",
        "wins": ["5-day Meditate streak!"],
        "improvements": ["Run on more than two days"],
        "advice": "Try running right after your morning meditation",
    },
    InsightType.CORRELATIONS: {
        "habitPairs": [
            {
                "habit1": "Meditate",
                "habit2": "Run",
                "correlation": 0.6,
                "insight": "When you meditate, you're 40% more likely to run",
            }
        ],
        "moodCorrelations": [
            {
                "habit": "Run",
                "moodImpact": "positive",
                "insight": "Run days are your best mood days",
            }
        ],
        "trendAnalysis": "Consistency is building around mornings.",
    },
    InsightType.RECOMMENDATIONS: {
        "optimalTimes": [
            {
                "habit": "Run",
                "suggestedDay": "Wednesday",
                "reason": "Both of your runs fell mid-to-late week",
            }
        ],
        "habitStacking": [],
        "atRiskHabits": [],
    },
}


class FakeClock:
    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeHabitRepository:
    def __init__(
        self,
        habits: Optional[List[Habit]] = None,
        completions: Optional[List[CompletionEvent]] = None,
    ):
        self.habits = list(habits or [])
        self.completions = list(completions or [])
        self.fetch_count = 0

    def _newest_first(self) -> List[CompletionEvent]:
        return sorted(
            self.completions,
            key=lambda c: _sort_key(c.completed_at),
            reverse=True,
        )

    async def fetch_habits(self, user_id: str, include_archived: bool = False):
        self.fetch_count += 1
        return [h for h in self.habits if include_archived or not h.archived]

    async def fetch_completions(self, user_id: str, limit: Optional[int] = None):
        rows = self._newest_first()
        return rows[:limit] if limit else rows

    async def fetch_all_completions(self, user_id: str):
        return self._newest_first()

    async def list_active_user_ids(self):
        return ["user-1"] if any(not h.archived for h in self.habits) else []


def _sort_key(value) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)


class InMemoryInsightStore:
    def __init__(self):
        self.records: Dict[Tuple[str, InsightType], InsightRecord] = {}
        self.upserts: List[InsightRecord] = []

    async def get_insight_record(self, user_id: str, insight_type: InsightType):
        return self.records.get((user_id, InsightType(insight_type)))

    async def upsert_insight_record(self, record: InsightRecord) -> None:
        self.records[(record.user_id, record.insight_type)] = record
        self.upserts.append(record)


def make_generator(payloads=None, tokens_used: int = 321) -> AsyncMock:
    """Generator mock answering each system prompt with its type's payload."""
    payloads = payloads if payloads is not None else VALID_PAYLOADS
    prompt_types = {prompt: t for t, prompt in SYSTEM_PROMPTS.items()}

    async def generate(system_prompt: str, user_prompt: str) -> GenerationResult:
        data = payloads[prompt_types[system_prompt]]
        if isinstance(data, Exception):
            raise data
        return GenerationResult(data=copy.deepcopy(data), tokens_used=tokens_used)

    generator = AsyncMock()
    generator.generate = AsyncMock(side_effect=generate)
    return generator


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def habits() -> List[Habit]:
    return [
        Habit(
            id="h-meditate",
            name="Meditate",
            category="Mindfulness",
            frequency="daily",
            created_at=datetime(2024, 2, 1, tzinfo=timezone.utc),
        ),
        Habit(
            id="h-run",
            name="Run",
            category="Fitness",
            frequency="daily",
            created_at=datetime(2024, 2, 10, tzinfo=timezone.utc),
        ),
    ]


@pytest.fixture
def completions() -> List[CompletionEvent]:
    """Meditate every morning Mar 11-15, Run late on Mar 13 and Mar 15."""
    rows = [
        CompletionEvent(
            habit_id="h-meditate",
            completed_at=datetime(2024, 3, day, 7, 0, tzinfo=timezone.utc),
            mood="good",
        )
        for day in range(11, 16)
    ]
    rows += [
        CompletionEvent(
            habit_id="h-run",
            completed_at=datetime(2024, 3, day, 22, 30, tzinfo=timezone.utc),
            mood="great",
            notes="5k",
        )
        for day in (13, 15)
    ]
    return rows


@pytest.fixture
def repository(habits, completions) -> FakeHabitRepository:
    return FakeHabitRepository(habits, completions)


@pytest.fixture
def store() -> InMemoryInsightStore:
    return InMemoryInsightStore()


@pytest.fixture
def generator() -> AsyncMock:
    return make_generator()


@pytest.fixture
def service(repository, store, generator, clock) -> InsightCacheService:
    return InsightCacheService(
        repository=repository,
        store=store,
        generator=generator,
        clock=clock,
        ttl=timedelta(hours=24),
        rate_limit_window=timedelta(hours=6),
        generation_timeout=5.0,
        hash_window=50,
        min_days=1,
    )


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Test client for the FastAPI app; dependency overrides reset afterwards."""
    with TestClient(app, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def api_base() -> str:
    """Base path for API v1 endpoints."""
    return "/api/v1"
