"""Per-session state machine and the in-memory session store.

Idle -> Analyzing -> Results | Error, and Results | Error -> Idle on reset.
Every other transition raises InvalidTransition.
"""

import logging
import uuid
from datetime import UTC, datetime
from typing import Protocol

from supportiq.errors import AnalysisError, InvalidTransition
from supportiq.models.analysis import AnalysisResult
from supportiq.models.session import (
    AnalyzingState,
    ErrorState,
    IdleState,
    ResultsState,
    SessionResponse,
    SessionState,
)
from supportiq.services.audio import AudioAsset

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "An error occurred during analysis."
UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred."


class Analyzer(Protocol):
    async def analyze(self, audio: bytes, mime_type: str) -> AnalysisResult: ...


class AnalysisSession:
    def __init__(self, session_id: str | None = None) -> None:
        self.id = session_id or str(uuid.uuid4())
        self.created_at = datetime.now(UTC).isoformat()
        self._state: SessionState = IdleState()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def result(self) -> AnalysisResult | None:
        return self._state.result if isinstance(self._state, ResultsState) else None

    @property
    def error(self) -> str | None:
        return self._state.message if isinstance(self._state, ErrorState) else None

    def _move(self, new_state: SessionState, allowed_from: tuple[type, ...]) -> None:
        if not isinstance(self._state, allowed_from):
            raise InvalidTransition(
                f"Cannot move session from {self._state.name} to {new_state.name}."
            )
        logger.info("Session %s: %s -> %s", self.id, self._state.name, new_state.name)
        self._state = new_state

    def begin(self) -> None:
        self._move(AnalyzingState(), (IdleState,))

    def succeed(self, result: AnalysisResult) -> None:
        if result is None:
            raise InvalidTransition("Results require an analysis result.")
        self._move(ResultsState(result=result), (AnalyzingState,))

    def fail(self, message: str) -> None:
        self._move(ErrorState(message=message.strip() or DEFAULT_ERROR_MESSAGE), (AnalyzingState,))

    def reset(self) -> None:
        self._move(IdleState(), (ResultsState, ErrorState))

    async def submit(self, asset: AudioAsset, analyzer: Analyzer) -> SessionState:
        """Run one analysis for ``asset``; the session is Analyzing until it resolves."""
        self.begin()
        return await self.run_analysis(asset, analyzer)

    async def run_analysis(self, asset: AudioAsset, analyzer: Analyzer) -> SessionState:
        """Resolve an Analyzing session into Results or Error."""
        if not isinstance(self._state, AnalyzingState):
            raise InvalidTransition(f"Session is {self._state.name}, not analyzing.")
        try:
            result = await analyzer.analyze(asset.data, asset.mime_type)
        except AnalysisError as exc:
            logger.error("Analysis failed for session %s: %s", self.id, exc)
            self.fail(str(exc))
        except Exception:
            logger.exception("Unexpected analysis failure for session %s", self.id)
            self.fail(UNEXPECTED_ERROR_MESSAGE)
        else:
            self.succeed(result)
        return self._state

    def to_response(self) -> SessionResponse:
        return SessionResponse(
            id=self.id,
            created_at=self.created_at,
            state=self._state.name,
            error=self.error,
            result=self.result,
        )


class SessionStore:
    """Simple in-memory registry of analysis sessions."""

    def __init__(self) -> None:
        self._sessions: dict[str, AnalysisSession] = {}

    def create(self) -> AnalysisSession:
        session = AnalysisSession()
        self._sessions[session.id] = session
        return session

    def get(self, session_id: str) -> AnalysisSession:
        """Return the session or raise KeyError."""
        return self._sessions[session_id]

    def delete(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def clear(self) -> None:
        self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)


_store: SessionStore | None = None


def get_session_store() -> SessionStore:
    global _store
    if _store is None:
        _store = SessionStore()
    return _store
