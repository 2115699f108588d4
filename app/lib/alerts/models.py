from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class AlertNotFoundError(LookupError):
    """Raised when a command references an alert id the engine does not own."""

    def __init__(self, alert_id: str) -> None:
        super().__init__(f"Alert '{alert_id}' not found")
        self.alert_id = alert_id


class LogTransitionError(RuntimeError):
    """Raised when a resolved log entry is asked to change status again."""


MAX_INTERVAL_HOURS = 8760


class FrequencyType(str, Enum):
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    SEMI_ANNUALLY = "semi-annually"
    ANNUALLY = "annually"


class LogStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ScheduleSpec:
    """Recurrence rule attached to an alert.

    Only the fields relevant to ``kind`` are read; the ``effective_*``
    properties apply the defaults and keep out-of-range values usable.
    """

    kind: FrequencyType
    interval_hours: Optional[int] = None
    day_of_week: Optional[int] = None
    day_of_month: Optional[int] = None
    month: Optional[int] = None

    @property
    def effective_interval_hours(self) -> int:
        if not self.interval_hours or self.interval_hours < 1:
            return 1
        return min(int(self.interval_hours), MAX_INTERVAL_HOURS)

    @property
    def effective_day_of_week(self) -> int:
        if self.day_of_week is None:
            return 1
        return int(self.day_of_week) % 7

    @property
    def effective_day_of_month(self) -> int:
        if self.day_of_month is None:
            return 1
        return min(max(int(self.day_of_month), 1), 31)

    @property
    def effective_month(self) -> int:
        if self.month is None:
            return 0
        return int(self.month) % 12

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScheduleSpec":
        def to_optional_int(value: Any) -> Optional[int]:
            if value in (None, "", "null"):
                return None
            return int(value)

        raw_kind = data.get("kind") or data.get("type")
        if not raw_kind:
            raise ValueError("Schedule configuration missing 'kind'")
        return cls(
            kind=FrequencyType(str(raw_kind).strip().lower()),
            interval_hours=to_optional_int(data.get("interval_hours", data.get("intervalHours"))),
            day_of_week=to_optional_int(data.get("day_of_week", data.get("dayOfWeek"))),
            day_of_month=to_optional_int(data.get("day_of_month", data.get("dayOfMonth"))),
            month=to_optional_int(data.get("month")),
        )


@dataclass(slots=True)
class Alert:
    id: str
    name: str
    prompt: str
    email: str
    schedule: ScheduleSpec
    next_run: datetime
    last_run: Optional[datetime] = None
    is_active: bool = True
    is_ai_generated: bool = True


@dataclass(slots=True)
class AlertDraft:
    """Attributes supplied by a caller when creating an alert."""

    name: str
    prompt: str
    schedule: ScheduleSpec
    email: Optional[str] = None
    is_ai_generated: bool = True
    is_active: bool = True
    id: Optional[str] = None


@dataclass(slots=True)
class AlertLog:
    """One processing attempt.

    ``alert_name`` and ``email_target`` are snapshots taken when the entry is
    opened. ``content`` and ``status`` change exactly once, when the entry is
    resolved.
    """

    id: str
    alert_id: str
    alert_name: str
    email_target: str
    content: str
    timestamp: datetime
    sequence: int
    status: LogStatus = LogStatus.PENDING

    @property
    def is_resolved(self) -> bool:
        return self.status is not LogStatus.PENDING

    def resolve(self, status: LogStatus, content: str) -> None:
        if status is LogStatus.PENDING:
            raise LogTransitionError("A log entry cannot be resolved back to pending")
        if self.is_resolved:
            raise LogTransitionError(
                f"Log entry '{self.id}' is already {self.status.value}"
            )
        self.content = content
        self.status = status


@dataclass(slots=True)
class AppSettings:
    default_email: str = "admin@ag.com"
    delivery_method: str = "simulated"
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_pass: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppSettings":
        delivery_method = str(data.get("delivery_method", "simulated")).strip().lower()
        if delivery_method not in {"simulated", "smtp"}:
            raise ValueError(f"Unsupported delivery method: {delivery_method}")
        return cls(
            default_email=str(data.get("default_email", "admin@ag.com")),
            delivery_method=delivery_method,
            smtp_host=str(data.get("smtp_host") or ""),
            smtp_port=int(data.get("smtp_port", 587)),
            smtp_user=str(data.get("smtp_user") or ""),
            smtp_pass=str(data.get("smtp_pass") or ""),
        )


@dataclass(slots=True)
class AlertStats:
    active_alerts: int
    total_alerts: int
    total_sent: int

