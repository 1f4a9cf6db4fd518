"""Analysis result models and the JSON schema the hosted model must follow."""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, StrictStr
from pydantic.alias_generators import to_camel

Speaker = Literal["Agent", "Customer"]
SPEAKERS: tuple[str, ...] = ("Agent", "Customer")

SENTIMENT_MIN, SENTIMENT_MAX = 0, 10
ENGAGEMENT_MIN, ENGAGEMENT_MAX = 0, 100
COACHING_POINTS = 3

SentimentScore = Annotated[float, Field(strict=True, ge=SENTIMENT_MIN, le=SENTIMENT_MAX)]
EngagementScore = Annotated[float, Field(strict=True, ge=ENGAGEMENT_MIN, le=ENGAGEMENT_MAX)]
CoachingPoints = Annotated[
    list[StrictStr],
    Field(min_length=COACHING_POINTS, max_length=COACHING_POINTS),
]


class WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python, no unknown keys, immutable."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )


class TranscriptSegment(WireModel):
    speaker: Speaker
    text: StrictStr
    sentiment_score: SentimentScore
    timestamp: StrictStr | None = None


class CoachingInsights(WireModel):
    strengths: CoachingPoints
    missed_opportunities: CoachingPoints
    summary: StrictStr


class AnalysisResult(WireModel):
    transcript: list[TranscriptSegment]
    coaching: CoachingInsights
    overall_engagement_score: EngagementScore


# Canonical JSON Schema for the response body. Provider adapters derive
# their own dialect from this one.
ANALYSIS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "required": ["transcript", "coaching", "overallEngagementScore"],
    "properties": {
        "transcript": {
            "type": "array",
            "items": {
                "type": "object",
                "additionalProperties": False,
                "required": ["speaker", "text", "sentimentScore", "timestamp"],
                "properties": {
                    "speaker": {"type": "string", "enum": list(SPEAKERS)},
                    "text": {"type": "string"},
                    "sentimentScore": {
                        "type": "number",
                        "minimum": SENTIMENT_MIN,
                        "maximum": SENTIMENT_MAX,
                        "description": (
                            "A score from 0 (very negative) to 10 (very positive) "
                            "representing the sentiment of this specific segment."
                        ),
                    },
                    "timestamp": {
                        "type": ["string", "null"],
                        "description": "Start time of the segment as MM:SS, or null if unknown.",
                    },
                },
            },
        },
        "coaching": {
            "type": "object",
            "additionalProperties": False,
            "required": ["strengths", "missedOpportunities", "summary"],
            "properties": {
                "strengths": {
                    "type": "array",
                    "items": {"type": "string"},
                    "minItems": COACHING_POINTS,
                    "maxItems": COACHING_POINTS,
                    "description": "List of 3 distinct things the agent did well.",
                },
                "missedOpportunities": {
                    "type": "array",
                    "items": {"type": "string"},
                    "minItems": COACHING_POINTS,
                    "maxItems": COACHING_POINTS,
                    "description": "List of 3 distinct missed opportunities for improvement.",
                },
                "summary": {
                    "type": "string",
                    "description": "A brief 2-sentence summary of the call.",
                },
            },
        },
        "overallEngagementScore": {
            "type": "number",
            "minimum": ENGAGEMENT_MIN,
            "maximum": ENGAGEMENT_MAX,
            "description": "Overall engagement score for the call from 0 to 100.",
        },
    },
}
