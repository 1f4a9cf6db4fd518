import logging

from fastapi import APIRouter, File, HTTPException, UploadFile
from fastapi.responses import PlainTextResponse, Response

from supportiq.config import MAX_AUDIO_BYTES
from supportiq.errors import AudioValidationError, ChartRenderError, InvalidTransition
from supportiq.models.analysis import AnalysisResult
from supportiq.models.session import SessionDeleted, SessionResponse
from supportiq.models.views import ResultsView
from supportiq.services.analyzer import get_analysis_client
from supportiq.services.audio import validate_audio_upload
from supportiq.services.chart import render_sentiment_chart_png
from supportiq.services.export import (
    PDF_FILENAME,
    TRANSCRIPT_FILENAME,
    build_coaching_pdf,
    export_transcript_text,
)
from supportiq.services.presentation import build_sentiment_chart, render_results
from supportiq.services.session import AnalysisSession, get_session_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


def _get_session(session_id: str) -> AnalysisSession:
    try:
        return get_session_store().get(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Session not found") from None


def _require_result(session: AnalysisSession) -> AnalysisResult:
    if session.result is None:
        raise HTTPException(status_code=409, detail="No analysis results for this session")
    return session.result


def _attachment(filename: str) -> dict[str, str]:
    return {"Content-Disposition": f'attachment; filename="{filename}"'}


@router.post("", response_model=SessionResponse)
async def create_session():
    """Start a new session in the Idle state."""
    session = get_session_store().create()
    logger.info("Created session %s", session.id)
    return session.to_response()


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(session_id: str):
    return _get_session(session_id).to_response()


@router.delete("/{session_id}", response_model=SessionDeleted)
async def delete_session(session_id: str):
    if not get_session_store().delete(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return SessionDeleted(id=session_id)


@router.post("/{session_id}/audio", response_model=SessionResponse)
async def submit_audio(session_id: str, file: UploadFile = File(...)):
    """Validate an uploaded recording and analyze it.

    Validation failures leave the session untouched. Otherwise the session
    is Analyzing until the remote call resolves, and the response carries
    the final Results or Error state.
    """
    session = _get_session(session_id)
    # One byte past the cap is enough to reject an oversized upload
    data = await file.read(MAX_AUDIO_BYTES + 1)
    try:
        asset = validate_audio_upload(file.filename, file.content_type, data, max_bytes=MAX_AUDIO_BYTES)
    except AudioValidationError as e:
        raise HTTPException(status_code=415, detail=str(e)) from e

    try:
        await session.submit(asset, get_analysis_client())
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return session.to_response()


@router.post("/{session_id}/reset", response_model=SessionResponse)
async def reset_session(session_id: str):
    session = _get_session(session_id)
    try:
        session.reset()
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return session.to_response()


@router.get("/{session_id}/view", response_model=ResultsView)
async def get_results_view(session_id: str):
    return render_results(_require_result(_get_session(session_id)))


@router.get("/{session_id}/chart.png")
async def get_chart_image(session_id: str):
    result = _require_result(_get_session(session_id))
    try:
        png = render_sentiment_chart_png(build_sentiment_chart(result.transcript))
    except ChartRenderError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e
    return Response(content=png, media_type="image/png")


@router.get("/{session_id}/export/transcript")
async def export_transcript(session_id: str):
    result = _require_result(_get_session(session_id))
    return PlainTextResponse(
        export_transcript_text(result),
        media_type="text/plain; charset=utf-8",
        headers=_attachment(TRANSCRIPT_FILENAME),
    )


@router.get("/{session_id}/export/pdf")
async def export_pdf(session_id: str):
    result = _require_result(_get_session(session_id))
    return Response(
        content=build_coaching_pdf(result),
        media_type="application/pdf",
        headers=_attachment(PDF_FILENAME),
    )
