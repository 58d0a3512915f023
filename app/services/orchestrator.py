"""
State machine governing a single-session policy analysis dashboard.

One blocking call produces the analysis; the future-state image is requested
afterwards in a background task and only applied if its analysis is still the
one on screen.
"""

from __future__ import annotations

import asyncio
import enum
import itertools
import logging
from typing import Optional

from app.clients import GeminiClient
from app.clients.gemini import GeminiModelError
from app.schemas.analysis import (
    AnalysisRequest,
    HistoryEntry,
    PolicyAnalysis,
    SessionSnapshot,
)
from app.services.errors import EmptyPolicyError, InvalidTransitionError
from app.services.result_store import ResultStore, ResultStoreView

_GENERIC_FAILURE = "An unexpected error occurred during simulation."

logger = logging.getLogger(__name__)


class AppState(str, enum.Enum):
    IDLE = "IDLE"
    ANALYZING = "ANALYZING"
    RESULTS = "RESULTS"
    ERROR = "ERROR"
    ABOUT = "ABOUT"


class AnalysisOrchestrator:
    """Sole writer of the :class:`ResultStore`."""

    def __init__(
        self,
        gemini_client: GeminiClient,
        store: Optional[ResultStore] = None,
    ) -> None:
        self._gemini = gemini_client
        self._store = store or ResultStore()
        self._view = ResultStoreView(self._store)
        self._state = AppState.IDLE
        self._error_message: Optional[str] = None
        self._runs = itertools.count(1)
        self._active_run: Optional[int] = None
        self._background: set[asyncio.Task] = set()

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def error_message(self) -> Optional[str]:
        return self._error_message

    @property
    def results(self) -> ResultStoreView:
        return self._view

    @property
    def background_tasks(self) -> frozenset[asyncio.Task]:
        return frozenset(self._background)

    async def submit(self, request: AnalysisRequest) -> Optional[PolicyAnalysis]:
        """Run one analysis.

        Returns the committed result, or ``None`` when the run was abandoned by a
        reset or history selection before it finished. Upstream failures move the
        session to ERROR and are re-raised for the caller to report.
        """
        if not request.policy_text or not request.policy_text.strip():
            raise EmptyPolicyError("Policy text must not be empty.")
        if self._state is AppState.ANALYZING:
            raise InvalidTransitionError("An analysis is already in progress.")

        self._store.reset()
        self._error_message = None
        self._state = AppState.ANALYZING
        run_id = next(self._runs)
        self._active_run = run_id
        logger.info("Analysis run %d started", run_id)

        try:
            result = await self._gemini.analyze_policy(
                request.policy_text,
                request.geography,
                request.evidence,
            )
        except GeminiModelError as exc:
            if self._abandoned(run_id):
                return None
            logger.exception("Analysis run %d failed", run_id)
            self._fail(str(exc) or _GENERIC_FAILURE)
            raise
        except Exception:
            if self._abandoned(run_id):
                raise
            logger.exception("Analysis run %d failed unexpectedly", run_id)
            self._fail(_GENERIC_FAILURE)
            raise

        if self._abandoned(run_id):
            return None

        self._active_run = None
        self._store.commit(result)
        self._state = AppState.RESULTS
        logger.info("Analysis run %d committed as %s", run_id, result.id)
        self._launch_image_enrichment(result)
        return result

    def reset(self) -> None:
        """Return to the input form. History is preserved."""
        self._active_run = None
        self._store.reset()
        self._error_message = None
        self._state = AppState.IDLE

    def select_history(self, analysis_id: str) -> PolicyAnalysis:
        item = self._store.select_history(analysis_id)
        self._active_run = None
        self._error_message = None
        self._state = AppState.RESULTS
        return item

    def show_about(self) -> None:
        self._state = AppState.ABOUT

    async def enrich_with_image(self, result: PolicyAnalysis) -> bool:
        """Generate the future-state visual for ``result``; never raises."""
        try:
            image = await self._gemini.generate_image(result.visualization_prompt)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Image enrichment failed for analysis %s", result.id)
            return False
        if image is None:
            logger.info("No image produced for analysis %s", result.id)
            return False
        return self._store.set_image(image, for_id=result.id)

    async def drain(self) -> None:
        """Wait for outstanding background enrichment to settle."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    def snapshot(self) -> SessionSnapshot:
        current = self._store.current
        return SessionSnapshot(
            state=self._state.value,
            error_message=self._error_message,
            current_id=current.id if current else None,
            has_image=self._store.generated_image is not None,
            history=[HistoryEntry.from_analysis(item) for item in self._store.history],
        )

    def _launch_image_enrichment(self, result: PolicyAnalysis) -> None:
        if not result.visualization_prompt.strip():
            return
        task = asyncio.create_task(
            self.enrich_with_image(result), name=f"image-enrichment:{result.id}"
        )
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    def _abandoned(self, run_id: int) -> bool:
        if self._active_run == run_id:
            return False
        logger.debug("Discarding outcome of abandoned analysis run %d", run_id)
        return True

    def _fail(self, message: str) -> None:
        self._active_run = None
        self._error_message = message
        self._state = AppState.ERROR


__all__ = ["AnalysisOrchestrator", "AppState"]
