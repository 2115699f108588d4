from __future__ import annotations

import pytest

from app.lib.alerts import FrequencyType, ScheduleSpec, format_schedule


@pytest.mark.parametrize(
    ("schedule", "label"),
    [
        (ScheduleSpec(kind=FrequencyType.HOURLY, interval_hours=1), "Every 1 Hour"),
        (ScheduleSpec(kind=FrequencyType.HOURLY, interval_hours=6), "Every 6 Hours"),
        (ScheduleSpec(kind=FrequencyType.HOURLY), "Every 1 Hour"),
        (ScheduleSpec(kind=FrequencyType.DAILY), "Daily"),
        (ScheduleSpec(kind=FrequencyType.WEEKLY, day_of_week=0), "Weekly (Sun)"),
        (ScheduleSpec(kind=FrequencyType.WEEKLY), "Weekly (Mon)"),
        (ScheduleSpec(kind=FrequencyType.BIWEEKLY, day_of_week=5), "Bi-Weekly (Fri)"),
        (ScheduleSpec(kind=FrequencyType.MONTHLY, day_of_month=31), "Monthly (Day 31)"),
        (ScheduleSpec(kind=FrequencyType.SEMI_ANNUALLY, day_of_month=15), "Semi-Annually (Day 15)"),
        (ScheduleSpec(kind=FrequencyType.ANNUALLY, month=1, day_of_month=29), "Annually (Feb 29)"),
        (ScheduleSpec(kind=FrequencyType.ANNUALLY), "Annually (Jan 1)"),
    ],
)
def test_format_schedule_labels(schedule, label):
    assert format_schedule(schedule) == label


def test_unknown_kind_is_custom():
    assert format_schedule(ScheduleSpec(kind="fortnightly")) == "Custom"


def test_label_ignores_fields_for_other_kinds():
    schedule = ScheduleSpec(kind=FrequencyType.DAILY, interval_hours=5, day_of_week=3, month=7)

    assert format_schedule(schedule) == "Daily"
