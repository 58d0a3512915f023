"""
Factory functions to provide shared clients and services as FastAPI dependencies.

The dashboard is single-session, so the orchestrator and the playback surface
are process-wide singletons.
"""

from functools import lru_cache

from app.clients import GeminiClient
from app.core.config import AppSettings, get_settings
from app.services import (
    AnalysisOrchestrator,
    BufferedAudioSink,
    EvidenceEncoder,
    ResultStore,
    SpeechPlayer,
)


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


def get_app_settings() -> AppSettings:
    """FastAPI dependency returning application settings."""
    return _settings()


@lru_cache()
def get_gemini_client() -> GeminiClient:
    """Provide Gemini client instance."""
    settings = _settings()
    return GeminiClient(settings.gemini)


@lru_cache()
def get_result_store() -> ResultStore:
    """Provide the session result store."""
    return ResultStore()


@lru_cache()
def get_analysis_orchestrator() -> AnalysisOrchestrator:
    """Provide the session state machine, the only writer of the result store."""
    return AnalysisOrchestrator(
        gemini_client=get_gemini_client(),
        store=get_result_store(),
    )


@lru_cache()
def get_audio_sink() -> BufferedAudioSink:
    """Provide the buffer holding the clip currently being played."""
    return BufferedAudioSink()


@lru_cache()
def get_speech_player() -> SpeechPlayer:
    """Provide the exclusive playback surface for the dashboard."""
    return SpeechPlayer(get_audio_sink())


def get_evidence_encoder() -> EvidenceEncoder:
    """Build an evidence encoder honouring the configured size limit."""
    return EvidenceEncoder(max_bytes=_settings().max_evidence_bytes)


__all__ = [
    "get_analysis_orchestrator",
    "get_app_settings",
    "get_audio_sink",
    "get_evidence_encoder",
    "get_gemini_client",
    "get_result_store",
    "get_speech_player",
]
