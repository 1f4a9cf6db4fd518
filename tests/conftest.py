import os

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

# No provider keys in tests: every remote call goes through a fake or a mock transport
os.environ["GEMINI_API_KEY"] = ""
os.environ["OPENAI_API_KEY"] = ""
os.environ["ANALYSIS_PROVIDER"] = "auto"

import supportiq.services.analyzer as _analyzer_mod
from supportiq.main import app
from supportiq.models.analysis import AnalysisResult
from supportiq.services.session import get_session_store


def make_payload(
    transcript: list[dict] | None = None,
    overall: float = 85,
    summary: str = "The agent resolved a billing dispute. The customer left satisfied.",
) -> dict:
    """A response body exactly as the hosted model is asked to return it."""
    if transcript is None:
        transcript = [
            {"speaker": "Agent", "text": "Thanks for calling, how can I help?", "sentimentScore": 7},
            {"speaker": "Customer", "text": "I was charged twice this month.", "sentimentScore": 3},
            {"speaker": "Agent", "text": "I'm sorry about that, let me refund the duplicate.", "sentimentScore": 8},
        ]
    return {
        "transcript": transcript,
        "coaching": {
            "strengths": ["Warm greeting", "Clear apology", "Fast resolution"],
            "missedOpportunities": [
                "Did not confirm account details",
                "No follow-up offered",
                "Skipped closing survey",
            ],
            "summary": summary,
        },
        "overallEngagementScore": overall,
    }


class FakeAnalyzer:
    """Stands in for AnalysisClient; records every call."""

    provider = "fake"
    model = "fake-model"

    def __init__(self, result: AnalysisResult | None = None, error: Exception | None = None):
        self.result = result
        self.error = error
        self.calls: list[tuple[bytes, str]] = []
        self.on_call = None

    def available(self) -> bool:
        return True

    async def analyze(self, audio: bytes, mime_type: str) -> AnalysisResult:
        self.calls.append((audio, mime_type))
        if self.on_call is not None:
            self.on_call()
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def payload() -> dict:
    return make_payload()


@pytest.fixture
def sample_result(payload) -> AnalysisResult:
    return AnalysisResult.model_validate(payload)


@pytest.fixture(autouse=True)
def clean_state():
    """Fresh session store and analysis client for each test."""
    get_session_store().clear()
    _analyzer_mod._client = None
    yield
    get_session_store().clear()
    _analyzer_mod._client = None


@pytest.fixture
def fake_analyzer(sample_result) -> FakeAnalyzer:
    fake = FakeAnalyzer(result=sample_result)
    _analyzer_mod._client = fake
    return fake


@pytest.fixture
def client():
    """Provide a synchronous TestClient for HTTP and WebSocket tests."""
    with TestClient(app) as test_client:
        yield test_client


@pytest_asyncio.fixture
async def async_client():
    """Provide an async httpx client for async HTTP tests."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
