from __future__ import annotations

import itertools
import uuid
from datetime import datetime
from typing import List, Optional

from .models import Alert, AlertLog, LogStatus

PENDING_PLACEHOLDER = "Generating content..."


class ActivityLog:
    """Append-only record of processing attempts."""

    def __init__(self) -> None:
        self._entries: List[AlertLog] = []
        self._sequence = itertools.count(1)

    def open(self, alert: Alert, timestamp: datetime) -> AlertLog:
        entry = AlertLog(
            id=uuid.uuid4().hex,
            alert_id=alert.id,
            alert_name=alert.name,
            email_target=alert.email,
            content=PENDING_PLACEHOLDER,
            timestamp=timestamp,
            sequence=next(self._sequence),
        )
        self._entries.append(entry)
        return entry

    def entries(
        self,
        *,
        limit: Optional[int] = None,
        alert_id: Optional[str] = None,
    ) -> List[AlertLog]:
        # Newest first; equal timestamps fall back to insertion order.
        selected = [
            entry for entry in self._entries
            if alert_id is None or entry.alert_id == alert_id
        ]
        selected.sort(key=lambda entry: (entry.timestamp, entry.sequence), reverse=True)
        if limit is not None:
            return selected[: max(limit, 0)]
        return selected

    def count(self, status: Optional[LogStatus] = None) -> int:
        if status is None:
            return len(self._entries)
        return sum(1 for entry in self._entries if entry.status is status)
