from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Dict, Iterable, List, Optional

from app.lib.clients.base import ContentGenerator

from .activity import ActivityLog
from .clock import Clock, SystemClock
from .models import (
    Alert,
    AlertDraft,
    AlertLog,
    AlertNotFoundError,
    AlertStats,
    AppSettings,
    LogStatus,
    ScheduleSpec,
)
from .processor import AlertProcessor
from .recurrence import calculate_next_run

logger = logging.getLogger("alertgenius.engine")


@dataclass(slots=True)
class AlertState:
    """Everything the engine owns. Lives for the lifetime of the process."""

    alerts: Dict[str, Alert] = field(default_factory=dict)
    activity: ActivityLog = field(default_factory=ActivityLog)
    settings: AppSettings = field(default_factory=AppSettings)


class AlertEngine:
    """
    Owner of the alert collection, activity log and settings.

    Every mutation goes through one of the command methods below; the
    dispatcher and the HTTP layer only hold a reference to the engine.
    """

    def __init__(
        self,
        generator: ContentGenerator,
        *,
        clock: Optional[Clock] = None,
        settings: Optional[AppSettings] = None,
        calendar_tz: Optional[tzinfo] = None,
        generation_timeout: Optional[float] = None,
    ) -> None:
        self._clock = clock or SystemClock()
        self._calendar_tz = calendar_tz
        self._state = AlertState(settings=settings or AppSettings())
        self._processor = AlertProcessor(
            self._state.activity,
            generator,
            clock=self._clock,
            calendar_tz=calendar_tz,
            generation_timeout=generation_timeout,
        )

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def settings(self) -> AppSettings:
        return self._state.settings

    def list_alerts(self) -> List[Alert]:
        return list(self._state.alerts.values())

    def get_alert(self, alert_id: str) -> Alert:
        alert = self._state.alerts.get(alert_id)
        if alert is None:
            raise AlertNotFoundError(alert_id)
        return alert

    def create_alert(self, draft: AlertDraft) -> Alert:
        alert_id = draft.id or uuid.uuid4().hex
        if alert_id in self._state.alerts:
            raise ValueError(f"Alert id '{alert_id}' already exists")
        alert = Alert(
            id=alert_id,
            name=draft.name,
            prompt=draft.prompt,
            email=draft.email or self._state.settings.default_email,
            schedule=draft.schedule,
            next_run=self._next_run(draft.schedule),
            is_active=draft.is_active,
            is_ai_generated=draft.is_ai_generated,
        )
        self._state.alerts[alert.id] = alert
        logger.info("Alert created", extra={"alert_id": alert.id, "next_run": alert.next_run.isoformat()})
        return alert

    def create_alerts(self, drafts: Iterable[AlertDraft]) -> List[Alert]:
        return [self.create_alert(draft) for draft in drafts]

    def update_alert(
        self,
        alert_id: str,
        *,
        name: Optional[str] = None,
        prompt: Optional[str] = None,
        email: Optional[str] = None,
        schedule: Optional[ScheduleSpec] = None,
        is_ai_generated: Optional[bool] = None,
    ) -> Alert:
        alert = self.get_alert(alert_id)
        if name is not None:
            alert.name = name
        if prompt is not None:
            alert.prompt = prompt
        if email is not None:
            alert.email = email
        if is_ai_generated is not None:
            alert.is_ai_generated = is_ai_generated
        if schedule is not None:
            alert.schedule = schedule
            alert.next_run = self._next_run(schedule)
        return alert

    def delete_alert(self, alert_id: str) -> None:
        if self._state.alerts.pop(alert_id, None) is None:
            raise AlertNotFoundError(alert_id)
        logger.info("Alert deleted", extra={"alert_id": alert_id})

    def toggle_alert(self, alert_id: str) -> Alert:
        alert = self.get_alert(alert_id)
        alert.is_active = not alert.is_active
        return alert

    async def process(self, alert: Alert) -> Optional[AlertLog]:
        return await self._processor.process(alert)

    async def trigger(self, alert_id: str) -> Optional[AlertLog]:
        """Run an alert now, subject to the same in-flight guard as the dispatcher."""
        return await self.process(self.get_alert(alert_id))

    def is_processing(self, alert_id: str) -> bool:
        return alert_id in self._processor.guard

    def list_logs(
        self,
        *,
        limit: Optional[int] = None,
        alert_id: Optional[str] = None,
    ) -> List[AlertLog]:
        return self._state.activity.entries(limit=limit, alert_id=alert_id)

    def update_settings(self, settings: AppSettings) -> AppSettings:
        self._state.settings = settings
        return settings

    def stats(self) -> AlertStats:
        alerts = self._state.alerts.values()
        return AlertStats(
            active_alerts=sum(1 for alert in alerts if alert.is_active),
            total_alerts=len(self._state.alerts),
            total_sent=self._state.activity.count(LogStatus.SUCCESS),
        )

    def _next_run(self, schedule: ScheduleSpec) -> datetime:
        return calculate_next_run(schedule, self._clock.now(), tz=self._calendar_tz)
