"""Session state union and its API representation."""

from dataclasses import dataclass
from typing import ClassVar, Literal

from supportiq.models.analysis import AnalysisResult, WireModel

StateName = Literal["idle", "analyzing", "results", "error"]


@dataclass(frozen=True)
class IdleState:
    name: ClassVar[StateName] = "idle"


@dataclass(frozen=True)
class AnalyzingState:
    name: ClassVar[StateName] = "analyzing"


@dataclass(frozen=True)
class ResultsState:
    result: AnalysisResult
    name: ClassVar[StateName] = "results"


@dataclass(frozen=True)
class ErrorState:
    message: str
    name: ClassVar[StateName] = "error"

    def __post_init__(self) -> None:
        if not self.message.strip():
            raise ValueError("ErrorState requires a non-empty message")


SessionState = IdleState | AnalyzingState | ResultsState | ErrorState


class SessionResponse(WireModel):
    id: str
    created_at: str
    state: StateName
    error: str | None = None
    result: AnalysisResult | None = None


class SessionDeleted(WireModel):
    id: str
    deleted: bool = True
