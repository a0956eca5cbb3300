"""
Streak Calculator

Pure functions for current/longest streaks over completion dates.
All dates are compared as UTC calendar days.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Iterable, List, Optional, Union

DateLike = Union[date, datetime, str]


def to_utc_date(value: DateLike) -> date:
    """
    Truncate a date, datetime or ISO string to its UTC calendar day.

    Naive datetimes are taken as UTC.
    """
    if isinstance(value, str):
        value = value.strip()
        if len(value) == 10:
            return date.fromisoformat(value)
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()

    return value


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def unique_dates(dates: Iterable[DateLike]) -> List[date]:
    """De-duplicated UTC days, ascending."""
    return sorted({to_utc_date(d) for d in dates})


def current_streak(dates: Iterable[DateLike], today: Optional[date] = None) -> int:
    """
    Consecutive days ending today or yesterday.

    A run that ended before yesterday is a broken streak and reports 0,
    however long it was.
    """
    days = unique_dates(dates)
    if not days:
        return 0

    today = today or utc_today()
    most_recent = days[-1]
    if most_recent != today and most_recent != today - timedelta(days=1):
        return 0

    streak = 1
    for i in range(len(days) - 1, 0, -1):
        if (days[i] - days[i - 1]).days == 1:
            streak += 1
        else:
            break

    return streak


def longest_streak(dates: Iterable[DateLike]) -> int:
    """Longest run of consecutive days anywhere in the history."""
    days = unique_dates(dates)
    if not days:
        return 0

    longest = 1
    run = 1
    for previous, current in zip(days, days[1:]):
        if (current - previous).days == 1:
            run += 1
            longest = max(longest, run)
        else:
            run = 1

    return longest
