from __future__ import annotations

import calendar
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional

from .models import FrequencyType, ScheduleSpec


def _ensure_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _normalize(value: datetime, zone: tzinfo) -> datetime:
    # Round-trip through UTC so wall times inside a DST gap resolve to a real instant.
    return value.astimezone(timezone.utc).astimezone(zone)


def _sunday_weekday(moment: datetime) -> int:
    return (moment.weekday() + 1) % 7


def _clamped(moment: datetime, year: int, month: int, day_of_month: int) -> datetime:
    last_day = calendar.monthrange(year, month)[1]
    return moment.replace(year=year, month=month, day=min(day_of_month, last_day))


def _shift_months(moment: datetime, months: int, day_of_month: int) -> datetime:
    index = moment.month - 1 + months
    return _clamped(moment, moment.year + index // 12, index % 12 + 1, day_of_month)


def _days_until_weekday(moment: datetime, day_of_week: int) -> int:
    days_until = (day_of_week - _sunday_weekday(moment) + 7) % 7
    return days_until or 7


def _advance(schedule: ScheduleSpec, moment: datetime) -> datetime:
    kind = FrequencyType(schedule.kind)

    if kind is FrequencyType.HOURLY:
        elapsed = moment.astimezone(timezone.utc) + timedelta(hours=schedule.effective_interval_hours)
        return elapsed.astimezone(moment.tzinfo)
    if kind is FrequencyType.DAILY:
        return moment + timedelta(days=1)
    if kind is FrequencyType.WEEKLY:
        return moment + timedelta(days=_days_until_weekday(moment, schedule.effective_day_of_week))
    if kind is FrequencyType.BIWEEKLY:
        return moment + timedelta(days=_days_until_weekday(moment, schedule.effective_day_of_week) + 7)
    if kind is FrequencyType.MONTHLY:
        return _shift_months(moment, 1, schedule.effective_day_of_month)
    if kind is FrequencyType.SEMI_ANNUALLY:
        return _shift_months(moment, 6, schedule.effective_day_of_month)
    return _clamped(
        moment,
        moment.year + 1,
        schedule.effective_month + 1,
        schedule.effective_day_of_month,
    )


def calculate_next_run(
    schedule: ScheduleSpec,
    reference: datetime,
    tz: Optional[tzinfo] = None,
) -> datetime:
    """
    Return the next trigger instant for ``schedule``, strictly after ``reference``.

    Calendar rules (weekday, day-of-month, month) are evaluated in ``tz`` when
    given, otherwise in the reference's own zone. Naive references are treated
    as UTC. Time of day is carried over from the reference; hourly schedules
    step in elapsed time so the gap is exactly ``interval_hours``.
    """
    reference = _ensure_aware(reference)
    zone = tz or reference.tzinfo
    candidate = _normalize(_advance(schedule, reference.astimezone(zone)), zone)
    # Equal-tzinfo comparisons ignore offsets; compare in UTC.
    while candidate.astimezone(timezone.utc) <= reference.astimezone(timezone.utc):
        candidate = _normalize(_advance(schedule, candidate), zone)
    return candidate
