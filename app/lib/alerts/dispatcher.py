from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Set

from .clock import Clock
from .engine import AlertEngine

logger = logging.getLogger("alertgenius.dispatcher")


class AlertDispatcher:
    """
    Fixed-period poll that fires due alerts.

    Each tick scans the engine's alerts synchronously and spawns a processing
    task for every active alert whose ``next_run`` has elapsed. Duplicate
    passes for one alert are rejected by the processor's in-flight guard.
    """

    def __init__(
        self,
        engine: AlertEngine,
        *,
        tick_seconds: float = 1.0,
        clock: Optional[Clock] = None,
    ) -> None:
        if tick_seconds <= 0:
            raise ValueError("tick_seconds must be positive")
        self._engine = engine
        self._tick_seconds = tick_seconds
        self._clock = clock or engine.clock
        self._task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()
        self._pending: Set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._task is not None

    @property
    def pending_tasks(self) -> Set[asyncio.Task]:
        return set(self._pending)

    def start(self) -> None:
        if self._task is not None:
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run_loop())
        logger.info("Alert dispatcher started (tick=%ss)", self._tick_seconds)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._stop_event.set()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        # In-flight passes are never cancelled; let them finish.
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        logger.info("Alert dispatcher stopped")

    def tick(self) -> List[asyncio.Task]:
        now = self._clock.now()
        spawned: List[asyncio.Task] = []
        for alert in self._engine.list_alerts():
            try:
                if not alert.is_active or now < alert.next_run:
                    continue
                task = asyncio.create_task(self._engine.process(alert))
            except Exception:  # noqa: BLE001 - one alert must not abort the scan
                logger.exception("Failed to dispatch alert", extra={"alert_id": alert.id})
                continue
            self._pending.add(task)
            task.add_done_callback(self._on_task_done)
            spawned.append(task)
        if spawned:
            logger.debug("Dispatched %s due alert(s)", len(spawned))
        return spawned

    async def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception:  # noqa: BLE001 - the loop outlives a failed scan
                logger.exception("Dispatcher tick failed")
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._tick_seconds)
            except asyncio.TimeoutError:
                continue

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Alert processing task crashed", exc_info=exc)
