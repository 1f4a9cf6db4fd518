"""Client for the hosted multimodal model that analyzes support calls.

One analysis is one request: the base64 audio, a fixed coaching prompt and
the response schema go out together, and the JSON body that comes back is
validated against ``AnalysisResult`` before anyone else sees it.
"""

import base64
import copy
import logging
from typing import Any

import httpx
from openai import APIError, AsyncOpenAI
from pydantic import ValidationError

from supportiq.config import (
    ANALYSIS_PROVIDER,
    ANALYSIS_TIMEOUT_SECONDS,
    GEMINI_API_KEY,
    GEMINI_BASE_URL,
    GEMINI_MODEL,
    GEMINI_THINKING_BUDGET,
    OPENAI_API_KEY,
    OPENAI_AUDIO_MODEL,
)
from supportiq.errors import SchemaError, TransportError
from supportiq.models.analysis import ANALYSIS_SCHEMA, AnalysisResult

logger = logging.getLogger(__name__)

ANALYSIS_PROMPT = """Analyze this support call audio. You are an expert support team coach.
1. Diarize the transcript between the 'Agent' and the 'Customer'.
2. Assign a sentiment score (0-10) to each transcript segment based on tone and content.
3. Create a coaching card with exactly 3 key strengths and 3 missed opportunities for the Agent.
4. Provide an overall engagement score (0-100).

Return the result purely as JSON matching the provided schema."""

# Chat-completions audio input only takes these two containers
_OPENAI_AUDIO_FORMATS = {
    "audio/wav": "wav",
    "audio/wave": "wav",
    "audio/x-wav": "wav",
    "audio/vnd.wave": "wav",
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
}


def to_gemini_schema(schema: dict[str, Any]) -> dict[str, Any]:
    """Convert the canonical JSON Schema into Gemini's OpenAPI-style dialect.

    Gemini wants upper-case type names, ``nullable`` instead of a ``null``
    type member, and has no ``additionalProperties``.
    """
    out: dict[str, Any] = {}
    for key, value in schema.items():
        if key == "additionalProperties":
            continue
        if key == "type":
            types = value if isinstance(value, list) else [value]
            concrete = [t for t in types if t != "null"]
            out["type"] = concrete[0].upper()
            if "null" in types:
                out["nullable"] = True
        elif key == "properties":
            out["properties"] = {name: to_gemini_schema(sub) for name, sub in value.items()}
        elif key == "items":
            out["items"] = to_gemini_schema(value)
        else:
            out[key] = copy.deepcopy(value)
    return out


def parse_analysis(raw: str | None) -> AnalysisResult:
    """Validate a raw response body. Nothing is repaired or coerced."""
    if raw is None or not raw.strip():
        raise TransportError("The analysis service returned an empty response.")
    try:
        return AnalysisResult.model_validate_json(raw)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first["loc"]) or "response"
        logger.warning("Analysis response failed validation: %d error(s), first at %s", exc.error_count(), location)
        raise SchemaError(
            f"The analysis response did not match the expected format ({location}: {first['msg']})."
        ) from exc


def _base_mime(mime_type: str) -> str:
    return mime_type.split(";")[0].strip().lower()


def _gemini_error_detail(response: httpx.Response) -> str:
    try:
        return response.json().get("error", {}).get("message", "") or response.reason_phrase
    except ValueError:
        return response.reason_phrase


def _gemini_text(data: dict[str, Any]) -> str:
    candidates = data.get("candidates") or []
    if not candidates:
        reason = (data.get("promptFeedback") or {}).get("blockReason")
        if reason:
            raise TransportError(f"The analysis request was blocked ({reason}).")
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(
        part.get("text", "")
        for part in parts
        if isinstance(part, dict) and not part.get("thought")
    )


class AnalysisClient:
    def __init__(
        self,
        *,
        provider: str | None = None,
        gemini_api_key: str | None = None,
        openai_api_key: str | None = None,
        gemini_model: str = GEMINI_MODEL,
        openai_model: str = OPENAI_AUDIO_MODEL,
        base_url: str = GEMINI_BASE_URL,
        timeout: float = ANALYSIS_TIMEOUT_SECONDS,
        http_client: httpx.AsyncClient | None = None,
        openai_client: AsyncOpenAI | None = None,
    ) -> None:
        gemini_key = GEMINI_API_KEY if gemini_api_key is None else gemini_api_key
        openai_key = OPENAI_API_KEY if openai_api_key is None else openai_api_key

        provider = (provider or ANALYSIS_PROVIDER or "auto").lower()
        if provider == "auto":
            if gemini_key:
                provider = "gemini"
            elif openai_key or openai_client is not None:
                provider = "openai"
            else:
                provider = "none"
        self.provider = provider

        self.gemini_model = gemini_model
        self.openai_model = openai_model
        self.timeout = timeout
        self._gemini_key = gemini_key
        self._base_url = base_url.rstrip("/")
        self._http = http_client
        if openai_client is None and openai_key:
            openai_client = AsyncOpenAI(api_key=openai_key, timeout=timeout, max_retries=0)
        self._openai = openai_client

    def available(self) -> bool:
        if self.provider == "gemini":
            return bool(self._gemini_key)
        if self.provider == "openai":
            return self._openai is not None
        return False

    @property
    def model(self) -> str:
        return self.openai_model if self.provider == "openai" else self.gemini_model

    async def analyze(self, audio: bytes, mime_type: str) -> AnalysisResult:
        """Send one recording for analysis and return the validated result."""
        if not self.available():
            raise TransportError(
                "No analysis provider is configured. Set GEMINI_API_KEY or OPENAI_API_KEY."
            )

        encoded = base64.b64encode(audio).decode("ascii")
        logger.info(
            "Analyzing %d bytes of %s with %s (%s)", len(audio), mime_type, self.provider, self.model
        )
        if self.provider == "gemini":
            raw = await self._generate_gemini(encoded, mime_type)
        else:
            raw = await self._generate_openai(encoded, mime_type)

        result = parse_analysis(raw)
        logger.info(
            "Analysis complete: %d turns, engagement %s",
            len(result.transcript),
            result.overall_engagement_score,
        )
        return result

    async def _generate_gemini(self, encoded: str, mime_type: str) -> str:
        url = f"{self._base_url}/v1beta/models/{self.gemini_model}:generateContent"
        body = {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"inlineData": {"mimeType": _base_mime(mime_type), "data": encoded}},
                        {"text": ANALYSIS_PROMPT},
                    ],
                }
            ],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": to_gemini_schema(ANALYSIS_SCHEMA),
                "thinkingConfig": {"thinkingBudget": GEMINI_THINKING_BUDGET},
            },
        }
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self._gemini_key,
        }

        try:
            if self._http is not None:
                response = await self._http.post(url, json=body, headers=headers, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(url, json=body, headers=headers)
        except httpx.TimeoutException as exc:
            logger.error("Gemini request timed out after %ss", self.timeout)
            raise TransportError("The analysis service timed out.") from exc
        except httpx.HTTPError as exc:
            logger.error("Gemini request failed: %s", exc)
            raise TransportError("Could not reach the analysis service.") from exc

        if response.is_error:
            detail = _gemini_error_detail(response)
            logger.error("Gemini returned HTTP %d: %s", response.status_code, detail)
            raise TransportError(f"The analysis service returned HTTP {response.status_code}: {detail}")

        if not response.content.strip():
            return ""
        try:
            data = response.json()
        except ValueError as exc:
            raise SchemaError("The analysis service returned a body that is not JSON.") from exc
        return _gemini_text(data)

    async def _generate_openai(self, encoded: str, mime_type: str) -> str:
        audio_format = _OPENAI_AUDIO_FORMATS.get(_base_mime(mime_type))
        if audio_format is None:
            raise TransportError(
                f"The OpenAI provider only accepts WAV or MP3 audio, not {mime_type}."
            )

        try:
            response = await self._openai.chat.completions.create(
                model=self.openai_model,
                modalities=["text"],
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": ANALYSIS_PROMPT},
                            {
                                "type": "input_audio",
                                "input_audio": {"data": encoded, "format": audio_format},
                            },
                        ],
                    }
                ],
                response_format={
                    "type": "json_schema",
                    "json_schema": {
                        "name": "analysis_result",
                        "schema": ANALYSIS_SCHEMA,
                        "strict": True,
                    },
                },
            )
        except APIError as exc:
            logger.error("OpenAI request failed: %s", exc)
            raise TransportError(f"The analysis service request failed: {exc.message}") from exc

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


_client: AnalysisClient | None = None


def get_analysis_client() -> AnalysisClient:
    global _client
    if _client is None:
        _client = AnalysisClient()
    return _client
