"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_analysis_orchestrator,
    get_app_settings,
    get_audio_sink,
    get_evidence_encoder,
    get_gemini_client,
    get_result_store,
    get_speech_player,
)

__all__ = [
    "get_analysis_orchestrator",
    "get_app_settings",
    "get_audio_sink",
    "get_evidence_encoder",
    "get_gemini_client",
    "get_result_store",
    "get_speech_player",
]
