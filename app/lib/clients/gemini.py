from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, Dict, Optional

import httpx

from app.lib.utils.retry import with_retry

from .base import ContentGenerator

if TYPE_CHECKING:
    from app.lib.config import GenerationConfig

__all__ = [
    "GeminiClient",
    "GeminiClientError",
    "GeminiContentGenerator",
    "PlaceholderContentGenerator",
    "build_content_generator",
]


DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
EMPTY_CONTENT_MESSAGE = "No content generated."

EMAIL_BODY_PROMPT = (
    "You are an automated alert system.\n"
    "Write a short, concise email body (max 100 words) based on the following requirement:\n"
    '"{prompt}".\n'
    'Do not include subject lines or placeholders like "[Your Name]". Just the body text.'
)


class GeminiClientError(RuntimeError):
    """Raised when a Gemini request fails."""

    def __init__(self, message: str, *, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


logger = logging.getLogger("alertgenius.clients.gemini")


class GeminiClient:
    """
    Thin async wrapper over the Gemini ``generateContent`` REST endpoint.
    """

    def __init__(
        self,
        api_key: str,
        *,
        model: str = DEFAULT_GEMINI_MODEL,
        base_url: str = DEFAULT_GEMINI_BASE_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        attempts: int = 3,
        base_delay: float = 0.5,
    ) -> None:
        if not api_key:
            raise ValueError("Gemini API key is required")
        self._model = model
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={"x-goog-api-key": api_key, "Content-Type": "application/json"},
            transport=transport,
        )
        self._attempts = max(1, attempts)
        self._base_delay = base_delay

    @property
    def model(self) -> str:
        return self._model

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "GeminiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def generate_content(self, text: str) -> Dict[str, Any]:
        path = f"/models/{self._model}:generateContent"
        payload = {"contents": [{"role": "user", "parts": [{"text": text}]}]}

        async def _call() -> Dict[str, Any]:
            start = time.perf_counter()
            try:
                response = await self._client.post(path, json=payload)
            except httpx.TransportError as exc:
                raise GeminiClientError(f"Gemini request failed: {exc}", retryable=True) from exc
            duration = time.perf_counter() - start
            status = response.status_code
            if status == 429 or status >= 500:
                raise GeminiClientError(
                    f"Gemini generateContent received {status}",
                    retryable=True,
                )
            try:
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                raise GeminiClientError(
                    f"Gemini generateContent error {exc.response.status_code}",
                    retryable=False,
                ) from exc
            try:
                data = response.json()
            except ValueError as exc:
                raise GeminiClientError("Gemini returned a non-JSON response") from exc
            logger.info(
                "Gemini request success",
                extra={
                    "event": "gemini_request",
                    "model": self._model,
                    "status": status,
                    "duration": duration,
                },
            )
            return data

        return await with_retry(
            _call,
            attempts=self._attempts,
            base_delay=self._base_delay,
            exceptions=(GeminiClientError,),
            logger=logger,
            description=f"gemini.generateContent[{self._model}]",
        )

    @staticmethod
    def extract_text(payload: Dict[str, Any]) -> str:
        feedback = payload.get("promptFeedback") or {}
        block_reason = feedback.get("blockReason") if isinstance(feedback, dict) else None
        if block_reason:
            raise GeminiClientError(f"Gemini blocked the prompt: {block_reason}")

        candidates = payload.get("candidates") or []
        if not candidates or not isinstance(candidates[0], dict):
            return ""
        parts = (candidates[0].get("content") or {}).get("parts") or []
        texts = [
            str(part["text"])
            for part in parts
            if isinstance(part, dict) and part.get("text")
        ]
        return "".join(texts).strip()


class GeminiContentGenerator(ContentGenerator):
    """Asks Gemini for a short email body built from the alert prompt."""

    def __init__(self, client: GeminiClient) -> None:
        self._client = client

    async def generate(self, prompt: str) -> str:
        payload = await self._client.generate_content(EMAIL_BODY_PROMPT.format(prompt=prompt))
        return GeminiClient.extract_text(payload) or EMPTY_CONTENT_MESSAGE

    async def aclose(self) -> None:
        await self._client.aclose()


class PlaceholderContentGenerator(ContentGenerator):
    """Used when no API key is configured; content is marked as simulated."""

    def __init__(self) -> None:
        self._warned = False

    async def generate(self, prompt: str) -> str:
        if not self._warned:
            logger.warning("Gemini API key not configured; returning simulated content")
            self._warned = True
        return f"[Simulated AI Content]: {prompt}"

    async def aclose(self) -> None:
        return


def build_content_generator(
    config: "GenerationConfig",
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ContentGenerator:
    if config.provider == "none" or not config.api_key:
        return PlaceholderContentGenerator()
    client = GeminiClient(
        config.api_key,
        model=config.model,
        base_url=config.base_url,
        timeout=config.timeout_seconds,
        transport=transport,
        attempts=config.attempts,
    )
    return GeminiContentGenerator(client)
