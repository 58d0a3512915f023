"""In-memory holder for the current analysis, session history, and visual."""

from __future__ import annotations

import logging
from typing import Optional

from app.clients.gemini import GeneratedImage
from app.schemas.analysis import PolicyAnalysis
from app.services.errors import UnknownAnalysisError

logger = logging.getLogger(__name__)


class ResultStore:
    """Session result state. Only the orchestrator should call the writers.

    ``current`` is always a member of ``history``; ``generated_image`` always
    belongs to ``current``.
    """

    def __init__(self) -> None:
        self._current: Optional[PolicyAnalysis] = None
        self._history: list[PolicyAnalysis] = []
        self._image: Optional[GeneratedImage] = None

    @property
    def current(self) -> Optional[PolicyAnalysis]:
        return self._current

    @property
    def history(self) -> tuple[PolicyAnalysis, ...]:
        """Most recent first."""
        return tuple(self._history)

    @property
    def generated_image(self) -> Optional[GeneratedImage]:
        return self._image

    def get(self, analysis_id: str) -> Optional[PolicyAnalysis]:
        for item in self._history:
            if item.id == analysis_id:
                return item
        return None

    def commit(self, result: PolicyAnalysis) -> None:
        """Prepend ``result`` to history and make it current."""
        self._history.insert(0, result)
        self._current = result
        self._image = None

    def set_image(self, image: GeneratedImage, *, for_id: str) -> bool:
        """Attach ``image`` only if ``for_id`` is still the current analysis."""
        if self._current is None or self._current.id != for_id:
            logger.debug("Discarding stale image for analysis %s", for_id)
            return False
        self._image = image
        return True

    def select_history(self, analysis_id: str) -> PolicyAnalysis:
        item = self.get(analysis_id)
        if item is None:
            raise UnknownAnalysisError(analysis_id)
        self._current = item
        self._image = None
        return item

    def reset(self) -> None:
        self._current = None
        self._image = None


class ResultStoreView:
    """Read-only facade handed to the view layer.

    Views change the selection through the orchestrator, never through the store.
    """

    def __init__(self, store: ResultStore) -> None:
        self._store = store

    @property
    def current(self) -> Optional[PolicyAnalysis]:
        return self._store.current

    @property
    def history(self) -> tuple[PolicyAnalysis, ...]:
        return self._store.history

    @property
    def generated_image(self) -> Optional[GeneratedImage]:
        return self._store.generated_image

    def get(self, analysis_id: str) -> Optional[PolicyAnalysis]:
        return self._store.get(analysis_id)


__all__ = ["ResultStore", "ResultStoreView"]
