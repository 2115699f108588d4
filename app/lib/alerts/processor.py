from __future__ import annotations

import asyncio
import logging
from datetime import tzinfo
from typing import Optional

from app.lib.clients.base import ContentGenerator

from .activity import ActivityLog
from .clock import Clock
from .guard import InFlightGuard
from .models import Alert, AlertLog, LogStatus
from .recurrence import calculate_next_run

FAILURE_MESSAGE = "Error generating alert."

logger = logging.getLogger("alertgenius.processor")


class AlertProcessor:
    """
    Runs one processing pass for an alert.

    A pass opens a pending log entry, produces content (through the generator
    for AI alerts, the prompt verbatim otherwise), resolves the entry and
    reschedules the alert from the current time. Generation errors end up as
    a failed entry and never leave ``process``.
    """

    def __init__(
        self,
        activity: ActivityLog,
        generator: ContentGenerator,
        *,
        clock: Clock,
        guard: Optional[InFlightGuard] = None,
        calendar_tz: Optional[tzinfo] = None,
        generation_timeout: Optional[float] = None,
    ) -> None:
        self._activity = activity
        self._generator = generator
        self._clock = clock
        self._guard = guard or InFlightGuard()
        self._calendar_tz = calendar_tz
        self._generation_timeout = generation_timeout

    @property
    def guard(self) -> InFlightGuard:
        return self._guard

    async def process(self, alert: Alert) -> Optional[AlertLog]:
        with self._guard.hold(alert.id) as acquired:
            if not acquired:
                logger.debug("Alert %s already in flight; skipping", alert.id)
                return None

            entry = self._activity.open(alert, self._clock.now())
            try:
                content = await self._produce_content(alert)
            except Exception:  # noqa: BLE001 - failures are recorded on the log entry
                logger.exception(
                    "Content generation failed",
                    extra={"alert_id": alert.id, "log_id": entry.id},
                )
                entry.resolve(LogStatus.FAILED, FAILURE_MESSAGE)
            else:
                entry.resolve(LogStatus.SUCCESS, content)

            now = self._clock.now()
            alert.last_run = now
            alert.next_run = calculate_next_run(alert.schedule, now, tz=self._calendar_tz)
            logger.info(
                "Alert processed",
                extra={
                    "alert_id": alert.id,
                    "status": entry.status.value,
                    "next_run": alert.next_run.isoformat(),
                },
            )
            return entry

    async def _produce_content(self, alert: Alert) -> str:
        if not alert.is_ai_generated:
            return alert.prompt
        if self._generation_timeout is None:
            return await self._generator.generate(alert.prompt)
        return await asyncio.wait_for(
            self._generator.generate(alert.prompt),
            timeout=self._generation_timeout,
        )
