"""
HabitFlow - Insight Data Formatter

Reduces raw habit/completion rows into the compact summary the model sees.

- summarize(): deterministic per-habit stats, weekday histogram, mood timeline
- to_prompt_text(): flat text rendering of that summary (model input only)
- sufficiency_check(): gate before any generation is attempted
- compute_data_hash(): dirty-check fingerprint over the structured rows,
  never over the rendered text, so wording changes don't invalidate caches
"""

import hashlib
import json
import math
from collections import Counter, defaultdict
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from habitflow.core.config import settings
from habitflow.models.habits import CompletionEvent, Habit
from habitflow.models.insights import (
    FormattedSummary,
    HabitSummary,
    MoodDay,
    OverallStats,
    SufficiencyResult,
)
from habitflow.services.streak_calculator import (
    current_streak,
    longest_streak,
    to_utc_date,
    unique_dates,
)

DAY_NAMES = [
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
]

COMPLETED_DATES_LIMIT = 30
MOOD_DAYS_LIMIT = 30


def _as_utc_datetime(value) -> datetime:
    """Date-only completions count as UTC midnight of that day."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _completion_rate(completed: int, daily_habits: int, window_days: int) -> int:
    possible = daily_habits * window_days
    if possible <= 0:
        return 0
    return _round_half_up(completed / possible * 100)


def _weekday_name(day: date) -> str:
    # date.weekday(): 0=Monday; DAY_NAMES starts at Sunday
    return DAY_NAMES[(day.weekday() + 1) % 7]


def summarize(
    habits: List[Habit],
    completions: List[CompletionEvent],
    now: Optional[datetime] = None,
) -> FormattedSummary:
    now = now or datetime.now(timezone.utc)
    today = now.astimezone(timezone.utc).date()
    seven_days_ago = now - timedelta(days=7)
    thirty_days_ago = now - timedelta(days=30)

    by_habit: Dict[str, List[CompletionEvent]] = defaultdict(list)
    for completion in completions:
        by_habit[completion.habit_id].append(completion)

    habit_names = {h.id: h.name for h in habits}

    habit_summaries = []
    for habit in habits:
        habit_completions = by_habit.get(habit.id, [])
        timestamps = [_as_utc_datetime(c.completed_at) for c in habit_completions]
        days = unique_dates(c.completed_at for c in habit_completions)

        habit_summaries.append(
            HabitSummary(
                habit_id=habit.id,
                name=habit.name,
                category=habit.category,
                frequency=habit.frequency,
                days_active=max(0, (now - _as_utc_datetime(habit.created_at)).days),
                total=len(habit_completions),
                last_7_days=sum(1 for t in timestamps if t >= seven_days_ago),
                last_30_days=sum(1 for t in timestamps if t >= thirty_days_ago),
                completed_dates=[d.isoformat() for d in days[-COMPLETED_DATES_LIMIT:]],
                current_streak=current_streak(days, today=today),
                longest_streak=longest_streak(days),
            )
        )

    weekly_patterns = {name: 0 for name in DAY_NAMES}
    for completion in completions:
        weekly_patterns[_weekday_name(to_utc_date(completion.completed_at))] += 1

    # Mood timeline: one entry per day that has at least one mood
    moods_by_day: Dict[date, List[str]] = defaultdict(list)
    habits_by_day: Dict[date, List[str]] = defaultdict(list)
    for completion in completions:
        day = to_utc_date(completion.completed_at)
        name = habit_names.get(completion.habit_id)
        if name and name not in habits_by_day[day]:
            habits_by_day[day].append(name)
        if completion.mood:
            moods_by_day[day].append(completion.mood)

    mood_data = []
    for day in sorted(moods_by_day):
        # Counter.most_common keeps first-seen order among equal counts
        dominant = Counter(moods_by_day[day]).most_common(1)[0][0]
        mood_data.append(
            MoodDay(
                date=day.isoformat(),
                mood=dominant,
                habits_completed=habits_by_day[day],
            )
        )

    daily_habits = sum(1 for h in habits if h.frequency == "daily")
    all_timestamps = [_as_utc_datetime(c.completed_at) for c in completions]
    completed_7d = sum(1 for t in all_timestamps if t >= seven_days_ago)
    completed_30d = sum(1 for t in all_timestamps if t >= thirty_days_ago)

    return FormattedSummary(
        habits=habit_summaries,
        weekly_patterns=weekly_patterns,
        mood_data=mood_data[-MOOD_DAYS_LIMIT:],
        overall_stats=OverallStats(
            total_habits=len(habits),
            total_completions=len(completions),
            days_tracked=len(unique_dates(c.completed_at for c in completions)),
            completion_rate_7d=_completion_rate(completed_7d, daily_habits, 7),
            completion_rate_30d=_completion_rate(completed_30d, daily_habits, 30),
        ),
    )


def to_prompt_text(summary: FormattedSummary) -> str:
    """Render the summary as the user prompt. Not used for cache hashing."""
    stats = summary.overall_stats
    lines = [
        "=== USER HABIT DATA ===",
        "",
        f"Total Habits: {stats.total_habits}",
        f"Days Tracked: {stats.days_tracked}",
        f"7-Day Completion Rate: {stats.completion_rate_7d}%",
        f"30-Day Completion Rate: {stats.completion_rate_30d}%",
        "",
        "=== HABITS ===",
    ]

    for habit in summary.habits:
        lines.extend(
            [
                f"- {habit.name} ({habit.category}, {habit.frequency})",
                f"  Last 7 days: {habit.last_7_days} completions",
                f"  Last 30 days: {habit.last_30_days} completions",
                f"  Current streak: {habit.current_streak} days",
                f"  Longest streak: {habit.longest_streak} days",
            ]
        )
    lines.append("")

    lines.append("=== WEEKLY PATTERNS ===")
    for day in DAY_NAMES:
        lines.append(f"{day}: {summary.weekly_patterns.get(day, 0)} completions")
    lines.append("")

    if summary.mood_data:
        lines.append(f"=== MOOD DATA (last {MOOD_DAYS_LIMIT} days) ===")
        mood_days: Dict[str, int] = {}
        mood_habits: Dict[str, List[str]] = {}
        for entry in summary.mood_data:
            mood_days[entry.mood] = mood_days.get(entry.mood, 0) + 1
            bucket = mood_habits.setdefault(entry.mood, [])
            for name in entry.habits_completed:
                if name not in bucket:
                    bucket.append(name)

        for mood, count in mood_days.items():
            lines.append(
                f"{mood}: {count} days - habits: {', '.join(mood_habits[mood])}"
            )

    return "\n".join(lines)


def sufficiency_check(
    habits: List[Habit],
    completions: List[CompletionEvent],
    min_days: Optional[int] = None,
) -> SufficiencyResult:
    """Is there enough history to say anything useful?"""
    if min_days is None:
        min_days = settings.INSIGHTS_MIN_DAYS

    if not habits:
        return SufficiencyResult(
            has_enough=False,
            message="Add some habits to unlock AI insights!",
        )

    tracked_days = len(unique_dates(c.completed_at for c in completions))
    if tracked_days < min_days:
        days_needed = min_days - tracked_days
        return SufficiencyResult(
            has_enough=False,
            message=(
                f"Keep tracking for {days_needed} more "
                f"{'day' if days_needed == 1 else 'days'} to unlock AI insights!"
            ),
            days_needed=days_needed,
        )

    return SufficiencyResult(has_enough=True)


def _isoformat(value: Any) -> str:
    return value.isoformat() if isinstance(value, (date, datetime)) else str(value)


def compute_data_hash(
    habits: List[Habit],
    completions: List[CompletionEvent],
    window: Optional[int] = None,
) -> str:
    """
    Fingerprint of all habits plus the `window` most recent completions.

    The payload is canonical JSON (sorted keys, stable ordering), so the
    same rows always hash the same regardless of fetch order.
    """
    if window is None:
        window = settings.INSIGHT_HASH_COMPLETION_WINDOW

    recent = sorted(
        completions,
        key=lambda c: (
            _as_utc_datetime(c.completed_at),
            c.habit_id,
            c.mood or "",
            c.notes or "",
            _isoformat(c.completed_at),
        ),
        reverse=True,
    )[:window]

    payload = {
        "habits": [
            {
                "id": h.id,
                "name": h.name,
                "category": h.category,
                "frequency": h.frequency,
                "created_at": _isoformat(h.created_at),
            }
            for h in sorted(habits, key=lambda h: h.id)
        ],
        "completions": [
            {
                "habit_id": c.habit_id,
                "completed_at": _isoformat(c.completed_at),
                "notes": c.notes,
                "mood": c.mood,
            }
            for c in recent
        ],
    }

    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode()).hexdigest()
