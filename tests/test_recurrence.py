from __future__ import annotations

import calendar
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from app.lib.alerts.models import MAX_INTERVAL_HOURS, FrequencyType, ScheduleSpec
from app.lib.alerts.recurrence import calculate_next_run


UTC = timezone.utc
NEW_YORK = ZoneInfo("America/New_York")


def _utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=UTC)


def _elapsed(start: datetime, end: datetime) -> timedelta:
    return end.astimezone(UTC) - start.astimezone(UTC)


def _sunday_weekday(moment: datetime) -> int:
    return (moment.weekday() + 1) % 7


ALL_SCHEDULES = [
    ScheduleSpec(kind=FrequencyType.HOURLY, interval_hours=4),
    ScheduleSpec(kind=FrequencyType.DAILY),
    ScheduleSpec(kind=FrequencyType.WEEKLY, day_of_week=0),
    ScheduleSpec(kind=FrequencyType.BIWEEKLY, day_of_week=6),
    ScheduleSpec(kind=FrequencyType.MONTHLY, day_of_month=31),
    ScheduleSpec(kind=FrequencyType.SEMI_ANNUALLY, day_of_month=30),
    ScheduleSpec(kind=FrequencyType.ANNUALLY, month=1, day_of_month=29),
]


@pytest.mark.parametrize("schedule", ALL_SCHEDULES, ids=lambda s: s.kind.value)
def test_next_run_is_strictly_after_reference(schedule):
    reference = _utc(2024, 1, 1, 0, 0)
    for _ in range(60):
        next_run = calculate_next_run(schedule, reference)
        assert next_run > reference
        reference = next_run - timedelta(minutes=7)


def test_weekly_same_weekday_moves_a_full_week():
    # 2025-01-15 is a Wednesday
    reference = _utc(2025, 1, 15, 10, 0)
    schedule = ScheduleSpec(kind=FrequencyType.WEEKLY, day_of_week=3)

    assert calculate_next_run(schedule, reference) == _utc(2025, 1, 22, 10, 0)


def test_monthly_day_31_clamps_into_february():
    schedule = ScheduleSpec(kind=FrequencyType.MONTHLY, day_of_month=31)

    assert calculate_next_run(schedule, _utc(2025, 1, 15, 9, 30)) == _utc(2025, 2, 28, 9, 30)
    assert calculate_next_run(schedule, _utc(2024, 1, 15, 9, 30)) == _utc(2024, 2, 29, 9, 30)


def test_monthly_from_month_end_keeps_target_day():
    schedule = ScheduleSpec(kind=FrequencyType.MONTHLY, day_of_month=31)

    assert calculate_next_run(schedule, _utc(2025, 1, 31, 8, 0)) == _utc(2025, 2, 28, 8, 0)
    assert calculate_next_run(schedule, _utc(2025, 3, 31, 8, 0)) == _utc(2025, 4, 30, 8, 0)


def test_monthly_rolls_over_year_end():
    schedule = ScheduleSpec(kind=FrequencyType.MONTHLY, day_of_month=15)

    assert calculate_next_run(schedule, _utc(2025, 12, 10, 12, 0)) == _utc(2026, 1, 15, 12, 0)


def test_hourly_adds_exact_interval():
    reference = _utc(2025, 6, 1, 23, 45)
    for hours in (1, 3, 24, 50):
        schedule = ScheduleSpec(kind=FrequencyType.HOURLY, interval_hours=hours)
        assert _elapsed(reference, calculate_next_run(schedule, reference)) == timedelta(hours=hours)


@pytest.mark.parametrize("interval", [None, 0, -2])
def test_hourly_without_positive_interval_defaults_to_one_hour(interval):
    reference = _utc(2025, 6, 1, 12, 0)
    schedule = ScheduleSpec(kind=FrequencyType.HOURLY, interval_hours=interval)

    assert calculate_next_run(schedule, reference) == _utc(2025, 6, 1, 13, 0)


def test_daily_adds_one_calendar_day():
    schedule = ScheduleSpec(kind=FrequencyType.DAILY)

    assert calculate_next_run(schedule, _utc(2024, 2, 28, 18, 5)) == _utc(2024, 2, 29, 18, 5)


def test_weekly_and_biweekly_land_on_target_weekday_within_window():
    start = _utc(2025, 3, 2, 7, 0)
    for offset in range(14):
        reference = start + timedelta(days=offset)
        for day in range(7):
            weekly = calculate_next_run(ScheduleSpec(kind=FrequencyType.WEEKLY, day_of_week=day), reference)
            biweekly = calculate_next_run(ScheduleSpec(kind=FrequencyType.BIWEEKLY, day_of_week=day), reference)

            assert _sunday_weekday(weekly) == day
            assert _sunday_weekday(biweekly) == day
            assert timedelta(0) < weekly - reference <= timedelta(days=7)
            assert timedelta(days=7) < biweekly - reference <= timedelta(days=14)


def test_weekly_defaults_to_monday():
    reference = _utc(2025, 1, 15, 10, 0)
    next_run = calculate_next_run(ScheduleSpec(kind=FrequencyType.WEEKLY), reference)

    assert next_run == _utc(2025, 1, 20, 10, 0)


def test_sunday_is_day_zero():
    reference = _utc(2025, 1, 15, 10, 0)
    next_run = calculate_next_run(ScheduleSpec(kind=FrequencyType.WEEKLY, day_of_week=0), reference)

    assert next_run == _utc(2025, 1, 19, 10, 0)


def test_semi_annually_advances_six_months_with_clamp():
    schedule = ScheduleSpec(kind=FrequencyType.SEMI_ANNUALLY, day_of_month=31)

    assert calculate_next_run(schedule, _utc(2025, 8, 31, 6, 0)) == _utc(2026, 2, 28, 6, 0)
    assert calculate_next_run(schedule, _utc(2025, 1, 10, 6, 0)) == _utc(2025, 7, 31, 6, 0)


def test_annually_pins_month_and_clamps_leap_day():
    schedule = ScheduleSpec(kind=FrequencyType.ANNUALLY, month=1, day_of_month=29)

    assert calculate_next_run(schedule, _utc(2024, 2, 29, 0, 0)) == _utc(2025, 2, 28, 0, 0)
    assert calculate_next_run(schedule, _utc(2027, 5, 1, 0, 0)) == _utc(2028, 2, 29, 0, 0)


def test_annually_defaults_to_january_first():
    next_run = calculate_next_run(ScheduleSpec(kind=FrequencyType.ANNUALLY), _utc(2025, 3, 10, 14, 0))

    assert next_run == _utc(2026, 1, 1, 14, 0)


@pytest.mark.parametrize(
    "kind",
    [FrequencyType.MONTHLY, FrequencyType.SEMI_ANNUALLY, FrequencyType.ANNUALLY],
)
def test_day_of_month_matches_clamped_target(kind):
    reference = _utc(2023, 1, 31, 12, 0)
    for day in (1, 28, 29, 30, 31):
        schedule = ScheduleSpec(kind=kind, day_of_month=day, month=1)
        next_run = calculate_next_run(schedule, reference)
        last_day = calendar.monthrange(next_run.year, next_run.month)[1]
        assert next_run.day == min(day, last_day)


def test_irrelevant_and_out_of_range_fields_are_tolerated():
    reference = _utc(2025, 1, 15, 10, 0)
    daily = ScheduleSpec(kind=FrequencyType.DAILY, interval_hours=9, day_of_week=42, month=99)
    weekly = ScheduleSpec(kind=FrequencyType.WEEKLY, day_of_week=10)
    monthly = ScheduleSpec(kind=FrequencyType.MONTHLY, day_of_month=45)

    assert calculate_next_run(daily, reference) == _utc(2025, 1, 16, 10, 0)
    assert _sunday_weekday(calculate_next_run(weekly, reference)) == 3
    assert calculate_next_run(monthly, reference) == _utc(2025, 2, 28, 10, 0)


def test_naive_reference_is_treated_as_utc():
    next_run = calculate_next_run(ScheduleSpec(kind=FrequencyType.DAILY), datetime(2025, 1, 15, 10, 0))

    assert next_run == _utc(2025, 1, 16, 10, 0)


def test_calendar_zone_decides_the_weekday():
    # 03:00 UTC Thursday is still Wednesday evening in New York.
    reference = _utc(2025, 1, 16, 3, 0)
    schedule = ScheduleSpec(kind=FrequencyType.WEEKLY, day_of_week=3)

    next_run = calculate_next_run(schedule, reference, tz=NEW_YORK)

    assert next_run.tzinfo == NEW_YORK
    assert _sunday_weekday(next_run) == 3
    assert next_run.astimezone(UTC) == _utc(2025, 1, 23, 3, 0)


def test_daily_across_fall_back_keeps_wall_clock_time():
    reference = datetime(2025, 11, 1, 12, 0, tzinfo=NEW_YORK)

    next_run = calculate_next_run(ScheduleSpec(kind=FrequencyType.DAILY), reference)

    assert (next_run.day, next_run.hour) == (2, 12)
    assert _elapsed(reference, next_run) == timedelta(hours=25)


def test_hourly_across_spring_forward_is_elapsed_time():
    reference = datetime(2025, 3, 9, 1, 30, tzinfo=NEW_YORK)

    next_run = calculate_next_run(ScheduleSpec(kind=FrequencyType.HOURLY, interval_hours=1), reference)

    assert _elapsed(reference, next_run) == timedelta(hours=1)
    assert next_run.hour == 3


def test_hourly_inside_repeated_hour_still_moves_forward():
    # Second 01:30 of the fall-back night (EST).
    reference = datetime(2025, 11, 2, 1, 30, fold=1, tzinfo=NEW_YORK)

    next_run = calculate_next_run(ScheduleSpec(kind=FrequencyType.HOURLY, interval_hours=1), reference)

    assert _elapsed(reference, next_run) == timedelta(hours=1)


def test_daily_into_spring_forward_gap_resolves_to_real_instant():
    reference = datetime(2025, 3, 8, 2, 30, tzinfo=NEW_YORK)

    next_run = calculate_next_run(ScheduleSpec(kind=FrequencyType.DAILY), reference)

    assert next_run.astimezone(UTC) > reference.astimezone(UTC)
    assert next_run.day == 9
    assert next_run.hour == 3


def test_oversized_hourly_interval_is_capped():
    reference = _utc(2025, 1, 1, 0, 0)
    schedule = ScheduleSpec(kind=FrequencyType.HOURLY, interval_hours=100_000_000)

    next_run = calculate_next_run(schedule, reference)

    assert next_run - reference == timedelta(hours=MAX_INTERVAL_HOURS)
