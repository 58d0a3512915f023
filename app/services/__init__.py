"""Service layer exports."""

from .errors import (
    EmptyPolicyError,
    EvidenceTooLargeError,
    InvalidTransitionError,
    UnknownAnalysisError,
)
from .evidence import EvidenceEncoder
from .orchestrator import AnalysisOrchestrator, AppState
from .playback import BufferedAudioSink, PlaybackState, SpeechPlayer
from .result_store import ResultStore, ResultStoreView

__all__ = [
    "AnalysisOrchestrator",
    "AppState",
    "BufferedAudioSink",
    "EmptyPolicyError",
    "EvidenceEncoder",
    "EvidenceTooLargeError",
    "InvalidTransitionError",
    "PlaybackState",
    "ResultStore",
    "ResultStoreView",
    "SpeechPlayer",
    "UnknownAnalysisError",
]
