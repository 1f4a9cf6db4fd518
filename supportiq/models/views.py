"""View models consumed by the browser client and the exporters."""

from typing import Literal

from supportiq.models.analysis import Speaker, WireModel

Band = Literal["positive", "neutral", "negative"]


class TranscriptTurnView(WireModel):
    index: int
    speaker: Speaker
    text: str
    sentiment_score: float
    sentiment_band: Band
    color: str
    align: Literal["left", "right"]
    timestamp: str | None = None


class TranscriptView(WireModel):
    turn_count: int
    turns: list[TranscriptTurnView]


class ChartPoint(WireModel):
    label: str
    speaker: Speaker
    score: float
    band: Band
    excerpt: str


class SentimentChart(WireModel):
    labels: list[str]
    agent_series: list[float | None]
    customer_series: list[float | None]
    points: list[ChartPoint]
    y_domain: tuple[float, float] = (0, 10)


class NumberedItem(WireModel):
    number: int
    text: str


class CoachingCardView(WireModel):
    summary: str
    strengths: list[NumberedItem]
    missed_opportunities: list[NumberedItem]
    overall_score: float
    score_band: Band


class ResultsView(WireModel):
    transcript: TranscriptView
    chart: SentimentChart
    coaching: CoachingCardView
