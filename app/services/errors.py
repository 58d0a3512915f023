"""Errors raised by the analysis session services."""

from __future__ import annotations


class EmptyPolicyError(ValueError):
    """Raised when a submission carries no policy text."""


class InvalidTransitionError(RuntimeError):
    """Raised when an operation is not permitted in the current session state."""


class UnknownAnalysisError(KeyError):
    """Raised when selecting an analysis id that is not in the history."""

    def __init__(self, analysis_id: str) -> None:
        super().__init__(analysis_id)
        self.analysis_id = analysis_id

    def __str__(self) -> str:
        return f"Analysis '{self.analysis_id}' is not in the session history."


class EvidenceTooLargeError(ValueError):
    """Raised when an attachment exceeds the configured size limit."""


__all__ = [
    "EmptyPolicyError",
    "EvidenceTooLargeError",
    "InvalidTransitionError",
    "UnknownAnalysisError",
]
