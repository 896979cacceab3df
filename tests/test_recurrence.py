# tests/test_recurrence.py
# PURPOSE: date math behind recurring schedules (2026-10-18 is a Sunday).

from datetime import datetime
from types import SimpleNamespace

from taskflow.recurrence import next_occurrence, occurrences, schedule_occurrences, week_day

SUNDAY = datetime(2026, 10, 18, 9, 0)


def test_week_day_starts_on_sunday():
    assert week_day(SUNDAY) == 0
    assert week_day(datetime(2026, 10, 19)) == 1
    assert week_day(datetime(2026, 10, 24)) == 6


def test_daily_and_custom_step_in_days():
    assert next_occurrence(SUNDAY, "DAILY") == datetime(2026, 10, 19, 9, 0)
    assert next_occurrence(SUNDAY, "DAILY", 3) == datetime(2026, 10, 21, 9, 0)
    assert next_occurrence(SUNDAY, "CUSTOM", 10) == datetime(2026, 10, 28, 9, 0)


def test_weekly_without_days_steps_whole_weeks():
    assert next_occurrence(SUNDAY, "WEEKLY", 2) == datetime(2026, 11, 1, 9, 0)


def test_weekly_picks_next_listed_day():
    # Monday and Wednesday
    assert next_occurrence(SUNDAY, "WEEKLY", 1, [3, 1]) == datetime(2026, 10, 19, 9, 0)
    monday = datetime(2026, 10, 19, 9, 0)
    assert next_occurrence(monday, "WEEKLY", 1, [1, 3]) == datetime(2026, 10, 21, 9, 0)


def test_weekly_wraps_to_first_day_after_interval():
    wednesday = datetime(2026, 10, 21, 9, 0)
    assert next_occurrence(wednesday, "WEEKLY", 1, [1, 3]) == datetime(2026, 10, 26, 9, 0)
    assert next_occurrence(wednesday, "WEEKLY", 2, [1, 3]) == datetime(2026, 11, 2, 9, 0)


def test_monthly_clamps_to_month_end():
    assert next_occurrence(datetime(2026, 1, 31), "MONTHLY") == datetime(2026, 2, 28)
    assert next_occurrence(datetime(2026, 2, 28), "MONTHLY", 1, day_of_month=31) == datetime(2026, 3, 31)
    assert next_occurrence(datetime(2026, 3, 31), "MONTHLY", 1, day_of_month=31) == datetime(2026, 4, 30)
    assert next_occurrence(datetime(2026, 1, 15), "MONTHLY", 3, day_of_month=1) == datetime(2026, 4, 1)


def test_yearly_with_month_and_day():
    assert next_occurrence(datetime(2024, 2, 29), "YEARLY") == datetime(2025, 2, 28)
    following = next_occurrence(datetime(2027, 3, 1), "YEARLY", 1, day_of_month=29, month_of_year=2)
    assert following == datetime(2028, 2, 29)


def test_occurrences_stop_at_count_and_end():
    found = occurrences(SUNDAY, "DAILY", count=3)
    assert [d.day for d in found] == [19, 20, 21]

    # the end bound is inclusive
    found = occurrences(SUNDAY, "DAILY", count=10, end=datetime(2026, 10, 21, 9, 0))
    assert [d.day for d in found] == [19, 20, 21]

    assert occurrences(SUNDAY, "DAILY", end=SUNDAY) == []


def test_schedule_occurrences_count_from_next_due_date():
    schedule = SimpleNamespace(
        next_due_date=datetime(2026, 10, 19, 9, 0),
        frequency="WEEKLY",
        interval=1,
        days_of_week=[1, 3],
        day_of_month=None,
        month_of_year=None,
        end_date=datetime(2026, 11, 1),
    )
    assert schedule_occurrences(schedule) == [
        datetime(2026, 10, 21, 9, 0),
        datetime(2026, 10, 26, 9, 0),
        datetime(2026, 10, 28, 9, 0),
    ]
