"""Expose constructed client wrappers."""

from .gemini import (
    AudioPayload,
    ConfigurationError,
    GeminiClient,
    GeminiModelError,
    GeneratedImage,
    UpstreamError,
)

__all__ = [
    "AudioPayload",
    "ConfigurationError",
    "GeminiClient",
    "GeminiModelError",
    "GeneratedImage",
    "UpstreamError",
]
