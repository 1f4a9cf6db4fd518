"""WebSocket endpoint for microphone recordings.

The browser streams MediaRecorder chunks as base64 ``audio_chunk`` messages
and sends ``stop`` when the user ends the recording. The chunks become one
``audio/webm`` asset that is analyzed like an upload.
"""

import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from supportiq.errors import AudioValidationError, DeviceError, InvalidTransition
from supportiq.models.session import IdleState
from supportiq.services.analyzer import get_analysis_client
from supportiq.services.audio import AudioRecorder
from supportiq.services.session import AnalysisSession, get_session_store

logger = logging.getLogger(__name__)
router = APIRouter()

MALFORMED_MESSAGE = "Malformed recording message."


def _state_message(session: AnalysisSession) -> dict:
    return {"type": "state", **session.to_response().model_dump(mode="json", by_alias=True)}


@router.websocket("/ws/sessions/{session_id}/record")
async def record_endpoint(websocket: WebSocket, session_id: str):
    await websocket.accept()

    async def _safe_send(data: dict) -> None:
        try:
            await websocket.send_json(data)
        except Exception:
            logger.debug("WebSocket send failed (client may have disconnected)")

    try:
        session = get_session_store().get(session_id)
    except KeyError:
        await websocket.send_json({"type": "error", "message": f"Session {session_id} not found"})
        await websocket.close()
        return

    if not isinstance(session.state, IdleState):
        await websocket.send_json(
            {"type": "error", "message": "This session is busy. Reset it before recording again."}
        )
        await websocket.close()
        return

    asset = None
    with AudioRecorder(on_release=lambda: logger.info("Recorder released for session %s", session_id)) as recorder:
        await _safe_send({"type": "recording_started"})
        try:
            while True:
                data = json.loads(await websocket.receive_text())
                if not isinstance(data, dict):
                    await _safe_send({"type": "error", "message": MALFORMED_MESSAGE})
                    break
                msg_type = data.get("type")

                if msg_type == "audio_chunk":
                    recorder.add_base64_chunk(data.get("data", ""))
                elif msg_type == "stop":
                    asset = recorder.stop()
                    break
                elif msg_type == "cancel":
                    logger.info("Recording cancelled for session %s", session_id)
                    break
        except WebSocketDisconnect:
            logger.info("Client disconnected while recording session %s", session_id)
            return
        except (AudioValidationError, DeviceError) as e:
            logger.warning("Recording failed for session %s: %s", session_id, e)
            await _safe_send({"type": "error", "message": str(e)})
        except json.JSONDecodeError:
            await _safe_send({"type": "error", "message": MALFORMED_MESSAGE})

    if asset is not None:
        try:
            session.begin()
        except InvalidTransition as e:
            await _safe_send({"type": "error", "message": str(e)})
        else:
            await _safe_send(_state_message(session))
            await session.run_analysis(asset, get_analysis_client())
            await _safe_send(_state_message(session))

    try:
        await websocket.close()
    except RuntimeError:
        logger.debug("WebSocket already closed for session %s", session_id)
