from .base import ContentGenerator
from .gemini import (
    GeminiClient,
    GeminiClientError,
    GeminiContentGenerator,
    PlaceholderContentGenerator,
    build_content_generator,
)

__all__ = [
    "ContentGenerator",
    "GeminiClient",
    "GeminiClientError",
    "GeminiContentGenerator",
    "PlaceholderContentGenerator",
    "build_content_generator",
]
