"""Pure view builders for transcript, sentiment chart and coaching card."""

from collections.abc import Sequence

from supportiq.models.analysis import (
    SENTIMENT_MAX,
    SENTIMENT_MIN,
    AnalysisResult,
    CoachingInsights,
    TranscriptSegment,
)
from supportiq.models.views import (
    Band,
    ChartPoint,
    CoachingCardView,
    NumberedItem,
    ResultsView,
    SentimentChart,
    TranscriptTurnView,
    TranscriptView,
)

SPEAKER_COLORS = {
    "Agent": "#6366f1",
    "Customer": "#10b981",
}

EXCERPT_LENGTH = 60


def sentiment_band(score: float) -> Band:
    if score >= 7:
        return "positive"
    if score <= 4:
        return "negative"
    return "neutral"


def engagement_band(score: float) -> Band:
    if score >= 80:
        return "positive"
    if score >= 60:
        return "neutral"
    return "negative"


def excerpt(text: str, length: int = EXCERPT_LENGTH) -> str:
    return text if len(text) <= length else text[:length] + "..."


def render_transcript(transcript: Sequence[TranscriptSegment]) -> TranscriptView:
    turns = [
        TranscriptTurnView(
            index=index,
            speaker=segment.speaker,
            text=segment.text,
            sentiment_score=segment.sentiment_score,
            sentiment_band=sentiment_band(segment.sentiment_score),
            color=SPEAKER_COLORS[segment.speaker],
            align="left" if segment.speaker == "Agent" else "right",
            timestamp=segment.timestamp,
        )
        for index, segment in enumerate(transcript)
    ]
    return TranscriptView(turn_count=len(turns), turns=turns)


def build_sentiment_chart(transcript: Sequence[TranscriptSegment]) -> SentimentChart:
    """Split the turns into one series per speaker.

    Each turn owns one ordinal position and appears in exactly one series;
    the other series holds None there so the chart can connect through it.
    """
    labels: list[str] = []
    agent: list[float | None] = []
    customer: list[float | None] = []
    points: list[ChartPoint] = []
    for index, segment in enumerate(transcript):
        label = f"Turn {index + 1}"
        labels.append(label)
        is_agent = segment.speaker == "Agent"
        agent.append(segment.sentiment_score if is_agent else None)
        customer.append(None if is_agent else segment.sentiment_score)
        points.append(
            ChartPoint(
                label=label,
                speaker=segment.speaker,
                score=segment.sentiment_score,
                band=sentiment_band(segment.sentiment_score),
                excerpt=excerpt(segment.text),
            )
        )
    return SentimentChart(
        labels=labels,
        agent_series=agent,
        customer_series=customer,
        points=points,
        y_domain=(SENTIMENT_MIN, SENTIMENT_MAX),
    )


def _numbered(items: Sequence[str]) -> list[NumberedItem]:
    return [NumberedItem(number=i + 1, text=text) for i, text in enumerate(items)]


def render_coaching_card(coaching: CoachingInsights, overall_score: float) -> CoachingCardView:
    return CoachingCardView(
        summary=coaching.summary,
        strengths=_numbered(coaching.strengths),
        missed_opportunities=_numbered(coaching.missed_opportunities),
        overall_score=overall_score,
        score_band=engagement_band(overall_score),
    )


def render_results(result: AnalysisResult) -> ResultsView:
    return ResultsView(
        transcript=render_transcript(result.transcript),
        chart=build_sentiment_chart(result.transcript),
        coaching=render_coaching_card(result.coaching, result.overall_engagement_score),
    )
