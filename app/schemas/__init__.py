"""Pydantic schema exports."""

from .analysis import (
    ANALYSIS_RESPONSE_SCHEMA,
    AnalysisPayload,
    AnalysisRequest,
    Blueprint,
    Diagnosis,
    Evidence,
    EvidenceAnalysis,
    HistoryEntry,
    NewsArticle,
    PlaybackStatus,
    PolicyAnalysis,
    ResearchPaper,
    SessionSnapshot,
    Source,
    Stakeholder,
    TimelineEvent,
    Viability,
)

__all__ = [
    "ANALYSIS_RESPONSE_SCHEMA",
    "AnalysisPayload",
    "AnalysisRequest",
    "Blueprint",
    "Diagnosis",
    "Evidence",
    "EvidenceAnalysis",
    "HistoryEntry",
    "NewsArticle",
    "PlaybackStatus",
    "PolicyAnalysis",
    "ResearchPaper",
    "SessionSnapshot",
    "Source",
    "Stakeholder",
    "TimelineEvent",
    "Viability",
]
