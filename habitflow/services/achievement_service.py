"""
Achievement Service

Static achievement catalog plus the pure rules that turn a stats snapshot
into unlocked achievements and progress bars.

Nothing here remembers which unlocks were already celebrated: the caller
keeps its own "seen" set and passes it to find_new_unlocks().
"""

import math
from collections import defaultdict
from datetime import datetime, timezone
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional

import pytz

from habitflow.models.achievements import (
    Achievement,
    AchievementProgress,
    AchievementStats,
)
from habitflow.models.habits import CompletionEvent, Habit
from habitflow.services.streak_calculator import longest_streak, unique_dates

EARLY_BIRD_BEFORE_HOUR = 6
NIGHT_OWL_FROM_HOUR = 22
COMEBACK_GAP_DAYS = 3


def _achievement(
    id: str,
    title: str,
    description: str,
    icon: str,
    category: str,
    requirement: int,
    rarity: str,
) -> Achievement:
    return Achievement(
        id=id,
        title=title,
        description=description,
        icon=icon,
        category=category,
        requirement=requirement,
        rarity=rarity,
    )


ACHIEVEMENTS = (
    # Streak
    _achievement(
        "first-step",
        "First Step",
        "Complete your first habit",
        "👣",
        "streak",
        1,
        "common",
    ),
    _achievement(
        "getting-started",
        "Getting Started",
        "Achieve a 3-day streak",
        "🌱",
        "streak",
        3,
        "common",
    ),
    _achievement(
        "week-warrior",
        "Week Warrior",
        "Achieve a 7-day streak",
        "⚡",
        "streak",
        7,
        "common",
    ),
    _achievement(
        "fortnight-force",
        "Fortnight Force",
        "Achieve a 14-day streak",
        "💫",
        "streak",
        14,
        "rare",
    ),
    _achievement(
        "month-master",
        "Month Master",
        "Achieve a 30-day streak",
        "🔥",
        "streak",
        30,
        "rare",
    ),
    _achievement(
        "quarter-champion",
        "Quarter Champion",
        "Achieve a 90-day streak",
        "💎",
        "streak",
        90,
        "epic",
    ),
    _achievement(
        "century-club",
        "Century Club",
        "Achieve a 100-day streak",
        "💯",
        "streak",
        100,
        "epic",
    ),
    _achievement(
        "half-year-hero",
        "Half-Year Hero",
        "Achieve a 180-day streak",
        "🌟",
        "streak",
        180,
        "legendary",
    ),
    _achievement(
        "year-legend",
        "Year Legend",
        "Achieve a 365-day streak",
        "🏆",
        "streak",
        365,
        "legendary",
    ),
    # Consistency
    _achievement(
        "daily-dedication",
        "Daily Dedication",
        "Complete all daily habits for 7 days",
        "📅",
        "consistency",
        7,
        "common",
    ),
    _achievement(
        "perfect-month",
        "Perfect Month",
        "Complete all daily habits for 30 days",
        "🎯",
        "consistency",
        30,
        "epic",
    ),
    _achievement(
        "no-excuses",
        "No Excuses",
        "Complete all habits (daily & weekly) for 7 days",
        "💪",
        "consistency",
        7,
        "rare",
    ),
    # Milestone
    _achievement(
        "habit-collector",
        "Habit Collector",
        "Create 5 habits",
        "📝",
        "milestone",
        5,
        "common",
    ),
    _achievement(
        "habit-enthusiast",
        "Habit Enthusiast",
        "Create 10 habits",
        "📚",
        "milestone",
        10,
        "rare",
    ),
    _achievement(
        "completion-streak",
        "Completion Streak",
        "Complete 50 total habits",
        "✅",
        "milestone",
        50,
        "rare",
    ),
    _achievement(
        "century-completions",
        "Century Completions",
        "Complete 100 total habits",
        "💯",
        "milestone",
        100,
        "epic",
    ),
    _achievement(
        "productivity-machine",
        "Productivity Machine",
        "Complete 500 total habits",
        "🚀",
        "milestone",
        500,
        "legendary",
    ),
    # Special
    _achievement(
        "early-bird",
        "Early Bird",
        "Complete a habit before 6 AM",
        "🌅",
        "special",
        1,
        "rare",
    ),
    _achievement(
        "night-owl",
        "Night Owl",
        "Complete a habit after 10 PM",
        "🦉",
        "special",
        1,
        "rare",
    ),
    _achievement(
        "multi-category",
        "Well-Rounded",
        "Have active habits in 4+ categories",
        "🌈",
        "special",
        4,
        "epic",
    ),
    _achievement(
        "comeback-kid",
        "Comeback Kid",
        "Restart a habit after missing 3+ days",
        "🔄",
        "special",
        1,
        "rare",
    ),
)

ACHIEVEMENTS_BY_ID: Dict[str, Achievement] = {a.id: a for a in ACHIEVEMENTS}


# ==========================================
# UNLOCK RULES
# ==========================================
# Each rule returns the raw counter compared against the entry's requirement.

ProgressRule = Callable[[AchievementStats], int]


def _max_streak(stats: AchievementStats) -> int:
    return stats.max_streak


def _total_completions(stats: AchievementStats) -> int:
    return stats.total_completions


def _habit_count(stats: AchievementStats) -> int:
    return stats.habit_count


def _category_count(stats: AchievementStats) -> int:
    return stats.category_count


def _flag(name: str) -> ProgressRule:
    return lambda stats: int(getattr(stats, name))


def _perfect_days(stats: AchievementStats) -> int:
    # No data source tracks "all habits done" days yet, so these never unlock
    return 0


_CATEGORY_DEFAULT_RULES: Dict[str, ProgressRule] = {
    "streak": _max_streak,
    "milestone": _total_completions,
    "consistency": _perfect_days,
}

_RULE_OVERRIDES: Dict[str, ProgressRule] = {
    "habit-collector": _habit_count,
    "habit-enthusiast": _habit_count,
    "multi-category": _category_count,
    "early-bird": _flag("has_early_bird"),
    "night-owl": _flag("has_night_owl"),
    "comeback-kid": _flag("has_comeback_kid"),
}

ACHIEVEMENT_RULES: Dict[str, ProgressRule] = {
    a.id: _RULE_OVERRIDES.get(a.id) or _CATEGORY_DEFAULT_RULES[a.category]
    for a in ACHIEVEMENTS
}


# ==========================================
# SPECIAL-ACHIEVEMENT PREDICATES
# ==========================================


def _local_hours(completions: Iterable[CompletionEvent], tz_name: str) -> List[int]:
    """Local hour of every timestamped completion; date-only ones have no hour."""
    tz = pytz.timezone(tz_name or "UTC")
    hours = []
    for completion in completions:
        completed_at = completion.completed_at
        if not isinstance(completed_at, datetime):
            continue
        if completed_at.tzinfo is None:
            completed_at = completed_at.replace(tzinfo=timezone.utc)
        hours.append(completed_at.astimezone(tz).hour)
    return hours


def has_early_bird(
    completions: Iterable[CompletionEvent], timezone: str = "UTC"
) -> bool:
    hours = _local_hours(completions, timezone)
    return any(hour < EARLY_BIRD_BEFORE_HOUR for hour in hours)


def has_night_owl(
    completions: Iterable[CompletionEvent], timezone: str = "UTC"
) -> bool:
    hours = _local_hours(completions, timezone)
    return any(hour >= NIGHT_OWL_FROM_HOUR for hour in hours)


def has_comeback_kid(completions: Iterable[CompletionEvent]) -> bool:
    """True if one habit's history resumes after a gap of 3+ days."""
    days = unique_dates(c.completed_at for c in completions)
    return any(
        (current - previous).days >= COMEBACK_GAP_DAYS
        for previous, current in zip(days, days[1:])
    )


def build_achievement_stats(
    habits: List[Habit],
    completions: List[CompletionEvent],
    timezone: str = "UTC",
) -> AchievementStats:
    """
    Aggregate the stats snapshot the rules run against.

    Archived habits do not count towards habit or category totals. Comeback
    Kid is evaluated per habit, the other flags over all completions.
    """
    active_habits = [h for h in habits if not h.archived]

    by_habit: Dict[str, List[CompletionEvent]] = defaultdict(list)
    for completion in completions:
        by_habit[completion.habit_id].append(completion)

    return AchievementStats(
        max_streak=longest_streak(c.completed_at for c in completions),
        total_completions=len(completions),
        habit_count=len(active_habits),
        category_count=len({h.category for h in active_habits}),
        has_early_bird=has_early_bird(completions, timezone),
        has_night_owl=has_night_owl(completions, timezone),
        has_comeback_kid=any(
            has_comeback_kid(by_habit.get(h.id, [])) for h in habits
        ),
    )


# ==========================================
# EVALUATION
# ==========================================


def _is_unlocked(achievement: Achievement, stats: AchievementStats) -> bool:
    return ACHIEVEMENT_RULES[achievement.id](stats) >= achievement.requirement


def evaluate_achievements(stats: AchievementStats) -> List[Achievement]:
    """Unlocked achievements, in catalog order."""
    return [a for a in ACHIEVEMENTS if _is_unlocked(a, stats)]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def get_achievement_progress(stats: AchievementStats) -> List[AchievementProgress]:
    progress = []
    for achievement in ACHIEVEMENTS:
        current = ACHIEVEMENT_RULES[achievement.id](stats)
        is_unlocked = current >= achievement.requirement
        percentage = min(100, _round_half_up(current / achievement.requirement * 100))
        if not is_unlocked:
            # 499/500 rounds to 100; a locked badge must not look complete
            percentage = min(percentage, 99)
        progress.append(
            AchievementProgress(
                achievement=achievement,
                is_unlocked=is_unlocked,
                current_progress=current,
                progress_percentage=max(0, percentage),
            )
        )
    return progress


# ==========================================
# CELEBRATIONS
# ==========================================


def find_new_unlocks(
    unlocked: Iterable[Achievement], seen_ids: Iterable[str]
) -> List[Achievement]:
    """Unlocked achievements the caller has not celebrated yet."""
    seen = set(seen_ids)
    return [a for a in unlocked if a.id not in seen]


def mark_seen(
    seen_ids: Iterable[str], achievements: Iterable[Achievement]
) -> FrozenSet[str]:
    """New seen-set for the caller to store; the input is left untouched."""
    return frozenset(seen_ids) | {a.id for a in achievements}


STREAK_CELEBRATIONS = {7: "small", 30: "big", 100: "massive"}


def get_streak_celebration(streak: int) -> Optional[str]:
    """Celebration level when a streak lands exactly on a milestone day."""
    return STREAK_CELEBRATIONS.get(streak)
