from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.lib.alerts.formatting import format_schedule
from app.lib.alerts.models import (
    Alert,
    AlertLog,
    AlertStats,
    AppSettings,
    FrequencyType,
    MAX_INTERVAL_HOURS,
    LogStatus,
    ScheduleSpec,
)


class ScheduleSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: FrequencyType
    interval_hours: Optional[int] = Field(
        None, alias="intervalHours", ge=1, le=MAX_INTERVAL_HOURS
    )
    day_of_week: Optional[int] = Field(None, alias="dayOfWeek", ge=0, le=6)
    day_of_month: Optional[int] = Field(None, alias="dayOfMonth", ge=1, le=31)
    month: Optional[int] = Field(None, ge=0, le=11)

    def to_spec(self) -> ScheduleSpec:
        return ScheduleSpec(
            kind=self.type,
            interval_hours=self.interval_hours,
            day_of_week=self.day_of_week,
            day_of_month=self.day_of_month,
            month=self.month,
        )

    @classmethod
    def from_spec(cls, spec: ScheduleSpec) -> "ScheduleSchema":
        return cls(
            type=spec.kind,
            interval_hours=spec.interval_hours,
            day_of_week=spec.day_of_week,
            day_of_month=spec.day_of_month,
            month=spec.month,
        )


class AlertCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1)
    prompt: str = Field(..., min_length=1)
    email: Optional[str] = None
    schedule: ScheduleSchema
    is_ai_generated: bool = Field(True, alias="isAiGenerated")


class AlertUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(None, min_length=1)
    prompt: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = None
    schedule: Optional[ScheduleSchema] = None
    is_ai_generated: Optional[bool] = Field(None, alias="isAiGenerated")


class AlertResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    prompt: str
    email: str
    schedule: ScheduleSchema
    schedule_label: str = Field(..., alias="scheduleLabel")
    next_run: datetime = Field(..., alias="nextRun")
    last_run: Optional[datetime] = Field(None, alias="lastRun")
    is_active: bool = Field(..., alias="isActive")
    is_ai_generated: bool = Field(..., alias="isAiGenerated")
    is_processing: bool = Field(False, alias="isProcessing")

    @classmethod
    def from_alert(cls, alert: Alert, *, is_processing: bool = False) -> "AlertResponse":
        return cls(
            id=alert.id,
            name=alert.name,
            prompt=alert.prompt,
            email=alert.email,
            schedule=ScheduleSchema.from_spec(alert.schedule),
            schedule_label=format_schedule(alert.schedule),
            next_run=alert.next_run,
            last_run=alert.last_run,
            is_active=alert.is_active,
            is_ai_generated=alert.is_ai_generated,
            is_processing=is_processing,
        )


class AlertLogResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    alert_id: str = Field(..., alias="alertId")
    alert_name: str = Field(..., alias="alertName")
    email_target: str = Field(..., alias="emailTarget")
    content: str
    timestamp: datetime
    status: LogStatus

    @classmethod
    def from_log(cls, entry: AlertLog) -> "AlertLogResponse":
        return cls(
            id=entry.id,
            alert_id=entry.alert_id,
            alert_name=entry.alert_name,
            email_target=entry.email_target,
            content=entry.content,
            timestamp=entry.timestamp,
            status=entry.status,
        )


class TriggerResponse(BaseModel):
    triggered: bool
    log: Optional[AlertLogResponse] = None


class StatsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    active_alerts: int = Field(..., alias="activeAlerts", ge=0)
    total_alerts: int = Field(..., alias="totalAlerts", ge=0)
    total_sent: int = Field(..., alias="totalSent", ge=0)

    @classmethod
    def from_stats(cls, stats: AlertStats) -> "StatsResponse":
        return cls(
            active_alerts=stats.active_alerts,
            total_alerts=stats.total_alerts,
            total_sent=stats.total_sent,
        )


class SettingsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    default_email: str = Field(..., alias="defaultEmail")
    delivery_method: Literal["simulated", "smtp"] = Field("simulated", alias="deliveryMethod")
    smtp_host: str = Field("", alias="smtpHost")
    smtp_port: int = Field(587, alias="smtpPort", ge=1, le=65535)
    smtp_user: str = Field("", alias="smtpUser")
    smtp_pass: Optional[str] = Field(
        None,
        alias="smtpPass",
        description="Omit to keep the stored password",
    )

    def to_settings(self, current: AppSettings) -> AppSettings:
        return AppSettings(
            default_email=self.default_email,
            delivery_method=self.delivery_method,
            smtp_host=self.smtp_host,
            smtp_port=self.smtp_port,
            smtp_user=self.smtp_user,
            smtp_pass=current.smtp_pass if self.smtp_pass is None else self.smtp_pass,
        )


class SettingsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    default_email: str = Field(..., alias="defaultEmail")
    delivery_method: str = Field(..., alias="deliveryMethod")
    smtp_host: str = Field(..., alias="smtpHost")
    smtp_port: int = Field(..., alias="smtpPort")
    smtp_user: str = Field(..., alias="smtpUser")
    smtp_pass_set: bool = Field(..., alias="smtpPassSet")

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "SettingsResponse":
        return cls(
            default_email=settings.default_email,
            delivery_method=settings.delivery_method,
            smtp_host=settings.smtp_host,
            smtp_port=settings.smtp_port,
            smtp_user=settings.smtp_user,
            smtp_pass_set=bool(settings.smtp_pass),
        )


class SchedulePreviewResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    schedule: ScheduleSchema
    label: str
    next_runs: List[datetime] = Field(..., alias="nextRuns")
