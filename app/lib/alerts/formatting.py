from __future__ import annotations

from .models import FrequencyType, ScheduleSpec

DAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def format_schedule(schedule: ScheduleSpec) -> str:
    """Human-readable label for a schedule. Display only."""
    try:
        kind = FrequencyType(schedule.kind)
    except ValueError:
        return "Custom"

    if kind is FrequencyType.HOURLY:
        interval = schedule.effective_interval_hours
        return f"Every {interval} Hour{'s' if interval != 1 else ''}"
    if kind is FrequencyType.DAILY:
        return "Daily"
    if kind is FrequencyType.WEEKLY:
        return f"Weekly ({DAY_NAMES[schedule.effective_day_of_week]})"
    if kind is FrequencyType.BIWEEKLY:
        return f"Bi-Weekly ({DAY_NAMES[schedule.effective_day_of_week]})"
    if kind is FrequencyType.MONTHLY:
        return f"Monthly (Day {schedule.effective_day_of_month})"
    if kind is FrequencyType.SEMI_ANNUALLY:
        return f"Semi-Annually (Day {schedule.effective_day_of_month})"
    return f"Annually ({MONTH_NAMES[schedule.effective_month]} {schedule.effective_day_of_month})"
