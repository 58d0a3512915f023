"""
Application configuration models and helpers.

Centralizes settings management so the FastAPI app, the analysis
orchestrator, and the operator scripts share a consistent configuration
surface.
"""

from functools import lru_cache
from typing import Annotated, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class GeminiSettings(BaseSettings):
    """Configuration for the Gemini reasoning, image, and speech models."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    api_key: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "API_KEY"),
        description=(
            "Credential for all Gemini capabilities. When absent every call fails "
            "with a configuration error before touching the network."
        ),
    )
    analysis_model_name: str = Field(
        "gemini-3-pro-preview",
        validation_alias="GEMINI_ANALYSIS_MODEL",
    )
    analysis_model_fallbacks: Annotated[tuple[str, ...], NoDecode] = Field(
        ("gemini-2.5-pro",),
        validation_alias="GEMINI_ANALYSIS_FALLBACKS",
        description="Models tried in order when the configured one is not found.",
    )
    image_model_name: str = Field(
        "gemini-2.5-flash-image",
        validation_alias="GEMINI_IMAGE_MODEL",
    )
    speech_model_name: str = Field(
        "gemini-2.5-flash-preview-tts",
        validation_alias="GEMINI_SPEECH_MODEL",
    )
    thinking_budget: int = Field(
        16000,
        ge=0,
        validation_alias="GEMINI_THINKING_BUDGET",
    )
    image_aspect_ratio: str = Field(
        "16:9",
        validation_alias="GEMINI_IMAGE_ASPECT_RATIO",
    )
    narration_voice: str = Field(
        "Aoede",
        validation_alias="GEMINI_NARRATION_VOICE",
    )
    stakeholder_voices: Annotated[tuple[str, ...], NoDecode] = Field(
        ("Puck", "Kore", "Fenrir", "Aoede", "Charon"),
        validation_alias="GEMINI_STAKEHOLDER_VOICES",
    )

    @field_validator("analysis_model_fallbacks", "stakeholder_voices", mode="before")
    @classmethod
    def _split_names(
        cls, value: str | tuple[str, ...] | list[str]
    ) -> tuple[str, ...]:
        """Support providing name lists as a comma-separated string."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(value)
        return tuple(name.strip() for name in value.split(",") if name.strip())

    @field_validator("stakeholder_voices")
    @classmethod
    def _require_voice(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value:
            raise ValueError("At least one stakeholder voice must be configured.")
        return value

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key and self.api_key.strip())


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    max_evidence_bytes: int = Field(
        20 * 1024 * 1024,
        gt=0,
        validation_alias="MAX_EVIDENCE_BYTES",
        description="Upper bound for a single evidence attachment.",
    )
    gemini: GeminiSettings = Field(default_factory=GeminiSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "GeminiSettings",
    "get_settings",
]
