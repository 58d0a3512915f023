"""
FastAPI routes for the policy analysis dashboard.

Routes read session state through the orchestrator's read-only result view and
never write to the result store themselves.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import HTMLResponse, JSONResponse, Response

from app.clients.gemini import ConfigurationError, GeminiModelError
from app.dependencies import (
    get_analysis_orchestrator,
    get_app_settings,
    get_audio_sink,
    get_evidence_encoder,
    get_gemini_client,
    get_speech_player,
)
from app.schemas import (
    AnalysisRequest,
    Evidence,
    HistoryEntry,
    PlaybackStatus,
    PolicyAnalysis,
    SessionSnapshot,
)
from app.services import (
    AnalysisOrchestrator,
    EmptyPolicyError,
    EvidenceTooLargeError,
    InvalidTransitionError,
    UnknownAnalysisError,
)
from app.services.export import export_html, export_json, report_filename

router = APIRouter()
logger = logging.getLogger(__name__)


def _require_current(orchestrator: AnalysisOrchestrator) -> PolicyAnalysis:
    current = orchestrator.results.current
    if current is None:
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND,
            detail="No analysis is currently selected.",
        )
    return current


def _attachment(filename: str) -> dict[str, str]:
    return {"Content-Disposition": f'attachment; filename="{filename}"'}


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck(
    settings: Annotated[Any, Depends(get_app_settings)],
) -> dict:
    """Simple health endpoint for monitoring."""
    return {
        "status": "ok",
        "environment": settings.environment,
        "gemini_configured": settings.gemini.has_credentials,
    }


@router.get("/session", response_model=SessionSnapshot)
async def read_session(
    orchestrator: Annotated[Any, Depends(get_analysis_orchestrator)],
) -> SessionSnapshot:
    return orchestrator.snapshot()


@router.post("/session/reset", response_model=SessionSnapshot)
async def reset_session(
    orchestrator: Annotated[Any, Depends(get_analysis_orchestrator)],
    player: Annotated[Any, Depends(get_speech_player)],
) -> SessionSnapshot:
    """Start a new simulation: clear the current result but keep history."""
    player.stop()
    orchestrator.reset()
    return orchestrator.snapshot()


@router.post("/session/about", response_model=SessionSnapshot)
async def show_about(
    orchestrator: Annotated[Any, Depends(get_analysis_orchestrator)],
) -> SessionSnapshot:
    orchestrator.show_about()
    return orchestrator.snapshot()


@router.post("/evidence", response_model=Evidence, status_code=HTTPStatus.CREATED)
async def upload_evidence(
    encoder: Annotated[Any, Depends(get_evidence_encoder)],
    file: UploadFile = File(..., description="Image, video, or PDF evidence."),
    caption: Optional[str] = Form(None),
) -> Evidence:
    """Encode an uploaded file into an evidence draft for a later submission."""
    try:
        return await encoder.encode_upload(file, caption=caption)
    except EvidenceTooLargeError as exc:
        raise HTTPException(
            status_code=HTTPStatus.REQUEST_ENTITY_TOO_LARGE, detail=str(exc)
        ) from exc
    except ValueError as exc:
        raise HTTPException(
            status_code=HTTPStatus.UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc


@router.post(
    "/analyses", response_model=PolicyAnalysis, status_code=HTTPStatus.CREATED
)
async def submit_analysis(
    payload: AnalysisRequest,
    orchestrator: Annotated[Any, Depends(get_analysis_orchestrator)],
    player: Annotated[Any, Depends(get_speech_player)],
) -> PolicyAnalysis:
    """Run the primary analysis. The future-state image follows in the background."""
    player.stop()
    try:
        result = await orchestrator.submit(payload)
    except EmptyPolicyError as exc:
        raise HTTPException(
            status_code=HTTPStatus.UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    except InvalidTransitionError as exc:
        raise HTTPException(status_code=HTTPStatus.CONFLICT, detail=str(exc)) from exc
    except ConfigurationError as exc:
        raise HTTPException(
            status_code=HTTPStatus.SERVICE_UNAVAILABLE,
            detail=orchestrator.error_message or str(exc),
        ) from exc
    except GeminiModelError as exc:
        raise HTTPException(
            status_code=HTTPStatus.BAD_GATEWAY,
            detail=orchestrator.error_message or str(exc),
        ) from exc

    if result is None:
        raise HTTPException(
            status_code=HTTPStatus.CONFLICT,
            detail="The analysis was abandoned before it completed.",
        )
    return result


@router.get("/analyses/current", response_model=PolicyAnalysis)
async def read_current_analysis(
    orchestrator: Annotated[Any, Depends(get_analysis_orchestrator)],
) -> PolicyAnalysis:
    return _require_current(orchestrator)


@router.get("/analyses/current/image")
async def read_current_image(
    orchestrator: Annotated[Any, Depends(get_analysis_orchestrator)],
) -> Response:
    """Return the generated visual, or 202 while it is still pending."""
    current = _require_current(orchestrator)
    image = orchestrator.results.generated_image
    if image is None:
        return JSONResponse(
            status_code=HTTPStatus.ACCEPTED,
            content={"status": "pending", "analysisId": current.id},
        )
    return Response(content=image.data, media_type=image.mime_type)


@router.get("/analyses/current/export.json")
async def export_current_json(
    orchestrator: Annotated[Any, Depends(get_analysis_orchestrator)],
) -> Response:
    current = _require_current(orchestrator)
    return Response(
        content=export_json(current),
        media_type="application/json",
        headers=_attachment(report_filename(current, "json")),
    )


@router.get("/analyses/current/export.html", response_class=HTMLResponse)
async def export_current_html(
    orchestrator: Annotated[Any, Depends(get_analysis_orchestrator)],
) -> HTMLResponse:
    current = _require_current(orchestrator)
    document = export_html(current, orchestrator.results.generated_image)
    return HTMLResponse(
        content=document,
        headers=_attachment(report_filename(current, "html")),
    )


@router.get("/history", response_model=list[HistoryEntry])
async def read_history(
    orchestrator: Annotated[Any, Depends(get_analysis_orchestrator)],
) -> list[HistoryEntry]:
    return [HistoryEntry.from_analysis(item) for item in orchestrator.results.history]


@router.post("/history/{analysis_id}/select", response_model=SessionSnapshot)
async def select_history(
    analysis_id: str,
    orchestrator: Annotated[Any, Depends(get_analysis_orchestrator)],
    player: Annotated[Any, Depends(get_speech_player)],
) -> SessionSnapshot:
    try:
        orchestrator.select_history(analysis_id)
    except UnknownAnalysisError as exc:
        raise HTTPException(status_code=HTTPStatus.NOT_FOUND, detail=str(exc)) from exc
    player.stop()
    return orchestrator.snapshot()


@router.get("/playback", response_model=PlaybackStatus)
async def read_playback(
    player: Annotated[Any, Depends(get_speech_player)],
) -> PlaybackStatus:
    return player.status()


@router.get("/playback/audio")
async def read_playback_audio(
    sink: Annotated[Any, Depends(get_audio_sink)],
) -> Response:
    if sink.audio is None:
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND, detail="Nothing is playing."
        )
    return Response(content=sink.audio, media_type="audio/wav")


@router.post("/playback/summary", response_model=PlaybackStatus)
async def toggle_summary_playback(
    orchestrator: Annotated[Any, Depends(get_analysis_orchestrator)],
    gemini_client: Annotated[Any, Depends(get_gemini_client)],
    player: Annotated[Any, Depends(get_speech_player)],
) -> PlaybackStatus:
    """Read the executive summary aloud, or stop it if already active."""
    current = _require_current(orchestrator)
    await player.toggle(
        f"summary:{current.id}",
        lambda: gemini_client.generate_speech(current.executive_summary),
    )
    return player.status()


@router.post("/playback/stakeholders/{index}", response_model=PlaybackStatus)
async def toggle_stakeholder_playback(
    index: int,
    orchestrator: Annotated[Any, Depends(get_analysis_orchestrator)],
    gemini_client: Annotated[Any, Depends(get_gemini_client)],
    player: Annotated[Any, Depends(get_speech_player)],
) -> PlaybackStatus:
    """Voice one stakeholder's concern, or stop it if already active."""
    current = _require_current(orchestrator)
    if not 0 <= index < len(current.stakeholders):
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND,
            detail=f"Stakeholder {index} does not exist in the current analysis.",
        )
    stakeholder = current.stakeholders[index]
    await player.toggle(
        f"stakeholder:{current.id}:{index}",
        lambda: gemini_client.generate_stakeholder_speech(stakeholder),
    )
    return player.status()


@router.post("/playback/stop", response_model=PlaybackStatus)
async def stop_playback(
    player: Annotated[Any, Depends(get_speech_player)],
) -> PlaybackStatus:
    player.stop()
    return player.status()


@router.post("/playback/finished", response_model=PlaybackStatus)
async def finish_playback(
    sink: Annotated[Any, Depends(get_audio_sink)],
    player: Annotated[Any, Depends(get_speech_player)],
) -> PlaybackStatus:
    """Called by the browser when the active clip reaches its end."""
    sink.finish()
    return player.status()
