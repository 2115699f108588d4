from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Set


class InFlightGuard:
    """
    Set of alert ids with a processing pass underway.

    All access happens on the event loop thread, so membership checks need no
    lock. ``hold`` is the only entry point the processor uses: it yields
    whether the id was acquired and releases it on every exit path.
    """

    def __init__(self) -> None:
        self._active: Set[str] = set()

    def __contains__(self, key: object) -> bool:
        return key in self._active

    def try_acquire(self, key: str) -> bool:
        if key in self._active:
            return False
        self._active.add(key)
        return True

    def release(self, key: str) -> None:
        self._active.discard(key)

    @contextmanager
    def hold(self, key: str) -> Iterator[bool]:
        acquired = self.try_acquire(key)
        try:
            yield acquired
        finally:
            if acquired:
                self.release(key)
