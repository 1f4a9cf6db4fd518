"""Tests for Pydantic models - analysis result schema and session responses."""

import json

import pytest
from pydantic import ValidationError

from conftest import make_payload
from supportiq.models.analysis import (
    ANALYSIS_SCHEMA,
    AnalysisResult,
    CoachingInsights,
    TranscriptSegment,
)
from supportiq.models.session import ErrorState, SessionResponse

# --- TranscriptSegment ---


class TestTranscriptSegment:
    def test_parses_camel_case(self):
        seg = TranscriptSegment.model_validate(
            {"speaker": "Agent", "text": "Hello", "sentimentScore": 6}
        )
        assert seg.speaker == "Agent"
        assert seg.sentiment_score == 6
        assert seg.timestamp is None

    def test_accepts_bounds(self):
        low = TranscriptSegment(speaker="Customer", text="a", sentiment_score=0)
        high = TranscriptSegment(speaker="Customer", text="b", sentiment_score=10)
        assert low.sentiment_score == 0
        assert high.sentiment_score == 10

    def test_accepts_fractional_score(self):
        seg = TranscriptSegment.model_validate_json(
            '{"speaker": "Agent", "text": "ok", "sentimentScore": 6.5}'
        )
        assert seg.sentiment_score == 6.5

    @pytest.mark.parametrize("score", [-1, 10.5, 11])
    def test_rejects_out_of_range_score(self, score):
        with pytest.raises(ValidationError):
            TranscriptSegment.model_validate(
                {"speaker": "Agent", "text": "x", "sentimentScore": score}
            )

    def test_rejects_numeric_string_score(self):
        with pytest.raises(ValidationError):
            TranscriptSegment.model_validate_json(
                '{"speaker": "Agent", "text": "x", "sentimentScore": "5"}'
            )

    def test_rejects_boolean_score(self):
        with pytest.raises(ValidationError):
            TranscriptSegment.model_validate_json(
                '{"speaker": "Agent", "text": "x", "sentimentScore": true}'
            )

    @pytest.mark.parametrize("speaker", ["agent", "Supervisor", ""])
    def test_rejects_unknown_speaker(self, speaker):
        with pytest.raises(ValidationError):
            TranscriptSegment.model_validate(
                {"speaker": speaker, "text": "x", "sentimentScore": 5}
            )

    def test_rejects_unknown_key(self):
        with pytest.raises(ValidationError):
            TranscriptSegment.model_validate(
                {"speaker": "Agent", "text": "x", "sentimentScore": 5, "emotion": "calm"}
            )

    def test_is_immutable(self):
        seg = TranscriptSegment(speaker="Agent", text="x", sentiment_score=5)
        with pytest.raises(ValidationError):
            seg.text = "changed"


# --- CoachingInsights ---


class TestCoachingInsights:
    def test_requires_exactly_three_points(self):
        with pytest.raises(ValidationError):
            CoachingInsights(
                strengths=["a", "b"],
                missed_opportunities=["c", "d", "e"],
                summary="s",
            )
        with pytest.raises(ValidationError):
            CoachingInsights(
                strengths=["a", "b", "c"],
                missed_opportunities=["c", "d", "e", "f"],
                summary="s",
            )

    def test_rejects_non_string_points(self):
        with pytest.raises(ValidationError):
            CoachingInsights.model_validate(
                {"strengths": [1, 2, 3], "missedOpportunities": ["a", "b", "c"], "summary": "s"}
            )


# --- AnalysisResult ---


class TestAnalysisResult:
    def test_valid_payload(self, payload):
        result = AnalysisResult.model_validate_json(json.dumps(payload))
        assert len(result.transcript) == 3
        assert result.transcript[1].speaker == "Customer"
        assert result.coaching.missed_opportunities[0] == "Did not confirm account details"
        assert result.overall_engagement_score == 85

    def test_dump_uses_wire_names(self, sample_result):
        dumped = sample_result.model_dump(by_alias=True)
        assert "overallEngagementScore" in dumped
        assert "missedOpportunities" in dumped["coaching"]
        assert "sentimentScore" in dumped["transcript"][0]

    def test_missing_engagement_score_rejected(self, payload):
        del payload["overallEngagementScore"]
        with pytest.raises(ValidationError):
            AnalysisResult.model_validate(payload)

    @pytest.mark.parametrize("overall", [-5, 100.1, 250])
    def test_engagement_out_of_range_rejected(self, overall):
        with pytest.raises(ValidationError):
            AnalysisResult.model_validate(make_payload(overall=overall))

    def test_empty_transcript_allowed(self):
        result = AnalysisResult.model_validate(make_payload(transcript=[]))
        assert result.transcript == []

    def test_serialization_roundtrip(self, sample_result):
        restored = AnalysisResult.model_validate_json(sample_result.model_dump_json(by_alias=True))
        assert restored == sample_result


class TestAnalysisSchema:
    def test_speaker_enum(self):
        speaker = ANALYSIS_SCHEMA["properties"]["transcript"]["items"]["properties"]["speaker"]
        assert speaker["enum"] == ["Agent", "Customer"]

    def test_numeric_ranges(self):
        item = ANALYSIS_SCHEMA["properties"]["transcript"]["items"]["properties"]
        assert item["sentimentScore"]["minimum"] == 0
        assert item["sentimentScore"]["maximum"] == 10
        overall = ANALYSIS_SCHEMA["properties"]["overallEngagementScore"]
        assert (overall["minimum"], overall["maximum"]) == (0, 100)

    def test_required_top_level_keys(self):
        assert set(ANALYSIS_SCHEMA["required"]) == {
            "transcript",
            "coaching",
            "overallEngagementScore",
        }


# --- Session models ---


class TestSessionModels:
    def test_error_state_requires_message(self):
        with pytest.raises(ValueError):
            ErrorState(message="   ")

    def test_session_response_camel_case(self, sample_result):
        resp = SessionResponse(
            id="abc",
            created_at="2025-01-01T00:00:00+00:00",
            state="results",
            result=sample_result,
        )
        data = resp.model_dump(by_alias=True)
        assert data["createdAt"] == "2025-01-01T00:00:00+00:00"
        assert data["error"] is None
        assert data["result"]["overallEngagementScore"] == 85
