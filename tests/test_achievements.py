"""Tests for the achievement catalog, unlock rules and progress."""

from collections import Counter
from datetime import date, datetime, timezone

import pytest

from habitflow.models.achievements import AchievementStats
from habitflow.models.habits import CompletionEvent, Habit
from habitflow.services.achievement_service import (
    ACHIEVEMENTS,
    ACHIEVEMENTS_BY_ID,
    build_achievement_stats,
    evaluate_achievements,
    find_new_unlocks,
    get_achievement_progress,
    get_streak_celebration,
    has_comeback_kid,
    has_early_bird,
    has_night_owl,
    mark_seen,
)


def _unlocked_ids(stats: AchievementStats):
    return {a.id for a in evaluate_achievements(stats)}


def _progress_for(stats: AchievementStats, achievement_id: str):
    return next(
        p for p in get_achievement_progress(stats) if p.achievement.id == achievement_id
    )


def _completion(habit_id, completed_at):
    return CompletionEvent(habit_id=habit_id, completed_at=completed_at)


class TestCatalog:
    def test_catalog_has_21_unique_entries(self):
        assert len(ACHIEVEMENTS) == 21
        assert len(ACHIEVEMENTS_BY_ID) == 21

    def test_category_counts(self):
        counts = Counter(a.category for a in ACHIEVEMENTS)
        assert counts == {"streak": 9, "consistency": 3, "milestone": 5, "special": 4}

    def test_entries_are_immutable(self):
        with pytest.raises(Exception):
            ACHIEVEMENTS_BY_ID["week-warrior"].requirement = 1


class TestEvaluation:
    def test_week_streak_unlocks_week_warrior_only(self):
        unlocked = _unlocked_ids(AchievementStats(max_streak=7))

        assert {"first-step", "getting-started", "week-warrior"} <= unlocked
        assert "fortnight-force" not in unlocked

    def test_empty_stats_unlock_nothing(self):
        assert evaluate_achievements(AchievementStats()) == []

    @pytest.mark.parametrize(
        "field",
        ["max_streak", "total_completions", "habit_count", "category_count"],
    )
    @pytest.mark.parametrize("bump", [1, 6, 93, 500])
    def test_raising_a_count_never_removes_unlocks(self, field, bump):
        base = AchievementStats(
            max_streak=14,
            total_completions=100,
            habit_count=5,
            category_count=3,
            has_night_owl=True,
        )
        raised = base.model_copy(update={field: getattr(base, field) + bump})

        assert _unlocked_ids(base) <= _unlocked_ids(raised)

    @pytest.mark.parametrize(
        "flag", ["has_early_bird", "has_night_owl", "has_comeback_kid"]
    )
    def test_setting_a_flag_never_removes_unlocks(self, flag):
        base = AchievementStats(max_streak=30, total_completions=10, habit_count=1)
        raised = base.model_copy(update={flag: True})

        assert _unlocked_ids(base) <= _unlocked_ids(raised)

    def test_unlocked_in_catalog_order(self):
        unlocked = evaluate_achievements(
            AchievementStats(max_streak=3, total_completions=50, has_night_owl=True)
        )
        catalog_order = [a.id for a in ACHIEVEMENTS]
        ids = [a.id for a in unlocked]
        assert ids == sorted(ids, key=catalog_order.index)

    def test_milestones_use_habit_count_and_completions(self):
        unlocked = _unlocked_ids(
            AchievementStats(habit_count=5, total_completions=100, category_count=4)
        )

        assert {
            "habit-collector",
            "completion-streak",
            "century-completions",
            "multi-category",
        } <= unlocked
        assert "habit-enthusiast" not in unlocked
        assert "productivity-machine" not in unlocked

    def test_special_flags(self):
        unlocked = _unlocked_ids(
            AchievementStats(has_early_bird=True, has_comeback_kid=True)
        )

        assert {"early-bird", "comeback-kid"} <= unlocked
        assert "night-owl" not in unlocked

    def test_consistency_achievements_never_unlock(self):
        stats = AchievementStats(
            max_streak=1000,
            total_completions=10000,
            habit_count=50,
            category_count=10,
        )
        consistency = {a.id for a in ACHIEVEMENTS if a.category == "consistency"}

        assert not consistency & _unlocked_ids(stats)


class TestProgress:
    def test_partial_streak_progress(self):
        progress = _progress_for(AchievementStats(max_streak=7), "fortnight-force")

        assert progress.is_unlocked is False
        assert progress.current_progress == 7
        assert progress.progress_percentage == 50

    def test_unlocked_progress_is_capped_at_100(self):
        progress = _progress_for(AchievementStats(max_streak=30), "week-warrior")

        assert progress.is_unlocked is True
        assert progress.progress_percentage == 100

    @pytest.mark.parametrize("streak,expected", [(1, 33), (2, 67)])
    def test_percentage_rounds_half_up(self, streak, expected):
        progress = _progress_for(AchievementStats(max_streak=streak), "getting-started")
        assert progress.progress_percentage == expected

    def test_locked_never_shows_100(self):
        progress = _progress_for(
            AchievementStats(total_completions=499), "productivity-machine"
        )

        assert progress.is_unlocked is False
        assert progress.progress_percentage == 99

    def test_one_entry_per_catalog_achievement(self):
        assert len(get_achievement_progress(AchievementStats())) == len(ACHIEVEMENTS)


class TestSpecialPredicates:
    def test_early_bird_in_user_timezone(self):
        # 07:00 UTC is 03:00 in New York (EDT)
        completions = [
            _completion("h1", datetime(2024, 3, 15, 7, 0, tzinfo=timezone.utc))
        ]

        assert has_early_bird(completions, "UTC") is False
        assert has_early_bird(completions, "America/New_York") is True

    def test_naive_timestamps_are_utc(self):
        completions = [_completion("h1", datetime(2024, 3, 15, 5, 59))]
        assert has_early_bird(completions) is True

    def test_night_owl_boundary(self):
        at_22 = [_completion("h1", datetime(2024, 3, 15, 22, 0, tzinfo=timezone.utc))]
        before_22 = [
            _completion("h1", datetime(2024, 3, 15, 21, 59, tzinfo=timezone.utc))
        ]

        assert has_night_owl(at_22) is True
        assert has_night_owl(before_22) is False

    def test_date_only_completions_have_no_hour(self):
        completions = [_completion("h1", date(2024, 3, 15))]

        assert has_early_bird(completions) is False
        assert has_night_owl(completions) is False

    def test_comeback_needs_three_day_gap(self):
        gap_of_3 = [_completion("h1", "2024-01-01"), _completion("h1", "2024-01-04")]
        gap_of_2 = [_completion("h1", "2024-01-01"), _completion("h1", "2024-01-03")]

        assert has_comeback_kid(gap_of_3) is True
        assert has_comeback_kid(gap_of_2) is False


class TestBuildStats:
    def test_stats_from_history(self, habits, completions):
        stats = build_achievement_stats(habits, completions)

        assert stats.max_streak == 5
        assert stats.total_completions == 7
        assert stats.habit_count == 2
        assert stats.category_count == 2
        assert stats.has_night_owl is True
        assert stats.has_early_bird is False
        assert stats.has_comeback_kid is False

    def test_archived_habits_do_not_count(self, habits, completions):
        archived = Habit(
            id="h-old",
            name="Journal",
            category="Writing",
            created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            archived=True,
        )
        stats = build_achievement_stats(habits + [archived], completions)

        assert stats.habit_count == 2
        assert stats.category_count == 2

    def test_comeback_is_per_habit(self, habits):
        # Each habit on its own has a 3-day gap; together the days are contiguous
        interleaved = [
            _completion("h-meditate", "2024-03-01"),
            _completion("h-run", "2024-03-02"),
            _completion("h-run", "2024-03-03"),
            _completion("h-meditate", "2024-03-04"),
        ]
        stats = build_achievement_stats(habits, interleaved)

        assert stats.max_streak == 4
        assert stats.has_comeback_kid is True


class TestCelebrations:
    def test_find_new_unlocks_skips_seen(self):
        unlocked = evaluate_achievements(AchievementStats(max_streak=3))

        new = find_new_unlocks(unlocked, {"first-step"})

        assert [a.id for a in new] == ["getting-started"]

    def test_mark_seen_returns_new_set(self):
        seen = {"first-step"}
        updated = mark_seen(seen, [ACHIEVEMENTS_BY_ID["getting-started"]])

        assert updated == {"first-step", "getting-started"}
        assert seen == {"first-step"}

    @pytest.mark.parametrize(
        "streak,level", [(7, "small"), (30, "big"), (100, "massive"), (8, None)]
    )
    def test_streak_celebrations(self, streak, level):
        assert get_streak_celebration(streak) == level
