# PURPOSE: date math for recurring schedules.
# - Day-of-week numbers run Sunday=0 .. Saturday=6.
# - Month steps keep the day when it exists and clamp to the month's last day
#   otherwise (Jan 31 + 1 month -> Feb 28/29); dayOfMonth clamps the same way.

from collections.abc import Sequence
from datetime import datetime, timedelta

from dateutil.relativedelta import relativedelta

FREQUENCIES: tuple[str, ...] = ("DAILY", "WEEKLY", "MONTHLY", "YEARLY", "CUSTOM")
PREVIEW_COUNT = 5


def week_day(value: datetime) -> int:
    """Sunday=0 .. Saturday=6 (datetime.weekday() starts at Monday=0)."""
    return (value.weekday() + 1) % 7


def next_occurrence(
    current: datetime,
    frequency: str,
    interval: int = 1,
    days_of_week: Sequence[int] | None = None,
    day_of_month: int | None = None,
    month_of_year: int | None = None,
) -> datetime:
    """The occurrence that follows `current` under the given rule."""
    if frequency == "WEEKLY":
        if not days_of_week:
            return current + timedelta(weeks=interval)
        days = sorted(set(days_of_week))
        today = week_day(current)
        later = [day for day in days if day > today]
        if later:
            return current + timedelta(days=later[0] - today)
        # wrap to the first listed day, `interval` weeks on
        return current + timedelta(days=(7 - today) + days[0] + (interval - 1) * 7)

    if frequency == "MONTHLY":
        following = current + relativedelta(months=interval)
        if day_of_month:
            following += relativedelta(day=day_of_month)
        return following

    if frequency == "YEARLY":
        following = current + relativedelta(years=interval)
        if month_of_year:
            following += relativedelta(month=month_of_year)
            if day_of_month:
                following += relativedelta(day=day_of_month)
        return following

    # DAILY, and CUSTOM which steps in days as well
    return current + timedelta(days=interval)


def occurrences(
    start: datetime,
    frequency: str,
    interval: int = 1,
    days_of_week: Sequence[int] | None = None,
    day_of_month: int | None = None,
    month_of_year: int | None = None,
    *,
    count: int = PREVIEW_COUNT,
    end: datetime | None = None,
) -> list[datetime]:
    """Up to `count` occurrences after `start`, none later than `end`."""
    found: list[datetime] = []
    current = start
    for _ in range(count):
        current = next_occurrence(
            current, frequency, interval, days_of_week, day_of_month, month_of_year
        )
        if end is not None and current > end:
            break
        found.append(current)
    return found


def schedule_occurrences(schedule, *, count: int = PREVIEW_COUNT) -> list[datetime]:
    """Upcoming occurrences of a stored schedule, counted from its next due date."""
    return occurrences(
        schedule.next_due_date,
        schedule.frequency,
        schedule.interval,
        schedule.days_of_week,
        schedule.day_of_month,
        schedule.month_of_year,
        count=count,
        end=schedule.end_date,
    )
