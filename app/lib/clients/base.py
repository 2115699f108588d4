from __future__ import annotations

from typing import Protocol


class ContentGenerator(Protocol):
    """Turns an alert prompt into message content. Raises on failure."""

    async def generate(self, prompt: str) -> str:
        ...

    async def aclose(self) -> None:
        ...
