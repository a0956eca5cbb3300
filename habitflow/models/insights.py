from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class InsightType(str, Enum):
    WEEKLY_SUMMARY = "weekly_summary"
    CORRELATIONS = "correlations"
    RECOMMENDATIONS = "recommendations"


InsightStatus = Literal[
    "ok",
    "insufficient_data",
    "rate_limited",
    "service_unavailable",
    "generation_failed",
]


# ==========================================
# GENERATED PAYLOADS
# ==========================================
# The model is prompted for camelCase keys; content is stored and served that way.


class _GeneratedPayload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WeeklySummary(_GeneratedPayload):
    overall_score: int = Field(..., ge=0, le=100)
    headline: str
    wins: List[str]
    improvements: List[str]
    advice: str


class HabitPairCorrelation(_GeneratedPayload):
    habit1: str
    habit2: str
    correlation: float = Field(..., ge=0.0, le=1.0)
    insight: str


class MoodCorrelation(_GeneratedPayload):
    habit: str
    mood_impact: Literal["positive", "negative", "neutral"]
    insight: str


class Correlations(_GeneratedPayload):
    habit_pairs: List[HabitPairCorrelation]
    mood_correlations: List[MoodCorrelation]
    trend_analysis: str


class OptimalTime(_GeneratedPayload):
    habit: str
    suggested_day: str
    reason: str


class HabitStackingSuggestion(_GeneratedPayload):
    existing_habit: str
    suggested_habit: str
    reason: str


class AtRiskHabit(_GeneratedPayload):
    habit: str
    risk: Literal["low", "medium", "high"]
    pattern: str
    suggestion: str


class Recommendations(_GeneratedPayload):
    optimal_times: List[OptimalTime]
    habit_stacking: List[HabitStackingSuggestion]
    at_risk_habits: List[AtRiskHabit]


INSIGHT_PAYLOAD_MODELS = {
    InsightType.WEEKLY_SUMMARY: WeeklySummary,
    InsightType.CORRELATIONS: Correlations,
    InsightType.RECOMMENDATIONS: Recommendations,
}


# ==========================================
# FORMATTED MODEL INPUT
# ==========================================


class HabitSummary(BaseModel):
    habit_id: str
    name: str
    category: str
    frequency: str
    days_active: int
    total: int
    last_7_days: int
    last_30_days: int
    completed_dates: List[str] = Field(
        default_factory=list, description="Last 30 unique ISO dates, ascending"
    )
    current_streak: int
    longest_streak: int


class MoodDay(BaseModel):
    date: str
    mood: str
    habits_completed: List[str] = Field(default_factory=list)


class OverallStats(BaseModel):
    total_habits: int
    total_completions: int
    days_tracked: int
    completion_rate_7d: int
    completion_rate_30d: int


class FormattedSummary(BaseModel):
    habits: List[HabitSummary]
    weekly_patterns: Dict[str, int]
    mood_data: List[MoodDay]
    overall_stats: OverallStats


class SufficiencyResult(BaseModel):
    has_enough: bool
    message: Optional[str] = None
    days_needed: Optional[int] = None


# ==========================================
# CACHE RECORD + CONTROLLER OUTCOME
# ==========================================


class InsightRecord(BaseModel):
    user_id: str
    insight_type: InsightType
    content: Dict[str, Any]
    generated_at: datetime
    expires_at: datetime
    data_hash: str
    tokens_used: int = 0


class InsightResult(BaseModel):
    status: InsightStatus
    insight_type: InsightType
    content: Optional[Dict[str, Any]] = None
    cached: bool = False
    generated_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    message: Optional[str] = None
    days_needed: Optional[int] = None
    retry_after: Optional[datetime] = None
    last_known_good: Optional[InsightRecord] = Field(
        None,
        description="Previously cached record, still servable after a failed regeneration",
    )

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @classmethod
    def from_record(cls, record: InsightRecord, cached: bool) -> "InsightResult":
        return cls(
            status="ok",
            insight_type=record.insight_type,
            content=record.content,
            cached=cached,
            generated_at=record.generated_at,
            expires_at=record.expires_at,
        )
