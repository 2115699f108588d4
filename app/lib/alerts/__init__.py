"""Alerts package exposing the scheduling engine, dispatcher and models."""

from .dispatcher import AlertDispatcher
from .engine import AlertEngine
from .formatting import format_schedule
from .models import (
    Alert,
    AlertDraft,
    AlertLog,
    AlertNotFoundError,
    AppSettings,
    FrequencyType,
    LogStatus,
    ScheduleSpec,
)
from .recurrence import calculate_next_run

__all__ = [
    "AlertDispatcher",
    "AlertEngine",
    "Alert",
    "AlertDraft",
    "AlertLog",
    "AlertNotFoundError",
    "AppSettings",
    "FrequencyType",
    "LogStatus",
    "ScheduleSpec",
    "calculate_next_run",
    "format_schedule",
]
