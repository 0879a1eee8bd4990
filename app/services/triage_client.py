"""Symptom triage via the Gemini text generation API."""

from typing import Protocol

import httpx
import structlog

from app.config import settings
from app.core.exceptions import ExternalServiceException
from app.schemas.triage import TriageResult
from app.services.triage_parser import build_error_result, parse_triage_response

logger = structlog.get_logger()

QUOTA_EXCEEDED_MESSAGE = "AI service quota exceeded. Please try again later"
MODEL_UNAVAILABLE_MESSAGE = "AI model temporarily unavailable"
AUTH_FAILED_MESSAGE = "AI service authentication failed"
SERVICE_UNAVAILABLE_MESSAGE = "AI service temporarily unavailable"

PROMPT_TEMPLATE = """You are an AI medical assistant providing structured health information. \
Analyze the symptoms and provide a well-formatted response.

**User Symptoms**: {symptoms}

Please provide your response in the following EXACT JSON format (make sure it's valid JSON):

{{
  "severity_score": [number from 1-10, where 1=very mild, 10=life-threatening emergency],
  "severity_level": "[Low/Moderate/High/Critical]",
  "primary_assessment": "[Brief possible condition/assessment in 1-2 sentences]",
  "possible_conditions": ["condition1", "condition2", "condition3"],
  "immediate_actions": ["action1", "action2", "action3"],
  "self_care_tips": ["tip1", "tip2", "tip3"],
  "warning_signs": ["sign1", "sign2", "sign3"],
  "when_to_seek_help": "[Specific guidance on when to see a doctor]",
  "recommended_action": "[One short next step, e.g. Book an appointment soon]",
  "urgency": "[Routine/Same Day/Urgent/Emergency]",
  "disclaimer": "This is AI-generated health information for educational purposes only. \
Always consult healthcare professionals for medical advice, diagnosis, or treatment."
}}

Ensure the JSON is properly formatted and valid. Base severity score on symptom combination \
and potential seriousness."""


class TriageClient(Protocol):
    """Anything that can turn free-text symptoms into a triage result."""

    async def analyze_symptoms(self, symptoms: str) -> TriageResult:
        """Analyze symptoms; must always return a usable result."""
        ...


def build_prompt(symptoms: str) -> str:
    """Embed the caller's symptoms in the fixed instruction template."""
    return PROMPT_TEMPLATE.format(symptoms=symptoms)


def classify_service_error(error: ExternalServiceException) -> str:
    """
    Pick the user-facing message for an AI service failure.

    Checked in priority order: quota, missing model, credentials, anything else.
    """
    status_code = error.upstream_status
    text = error.message.lower()

    if status_code == 429 or "quota" in text or "resource_exhausted" in text:
        return QUOTA_EXCEEDED_MESSAGE
    if status_code == 404 or "not found" in text:
        return MODEL_UNAVAILABLE_MESSAGE
    if status_code in (401, 403) or "api key" in text or "permission_denied" in text:
        return AUTH_FAILED_MESSAGE
    return SERVICE_UNAVAILABLE_MESSAGE


class GeminiTriageClient:
    """Single-shot Gemini ``generateContent`` client with a deterministic fallback."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize client.

        Args:
            api_key: Gemini API key, defaults to settings
            model: Model name, defaults to settings
            base_url: API root, defaults to settings
            timeout: Request timeout in seconds, defaults to settings
            http_client: Optional shared client (tests pass one with a mock transport)
        """
        self.api_key = settings.gemini_api_key if api_key is None else api_key
        self.model = model or settings.gemini_model
        self.base_url = (base_url or settings.gemini_base_url).rstrip("/")
        self.timeout = timeout or settings.triage_timeout_seconds
        self._http_client = http_client

    @property
    def endpoint(self) -> str:
        """Full ``generateContent`` URL for the configured model."""
        return f"{self.base_url}/models/{self.model}:generateContent"

    async def _post(self, client: httpx.AsyncClient, prompt: str) -> httpx.Response:
        return await client.post(
            self.endpoint,
            headers={"x-goog-api-key": self.api_key},
            json={"contents": [{"parts": [{"text": prompt}]}]},
            timeout=self.timeout,
        )

    async def generate_text(self, prompt: str) -> str:
        """
        Request one completion and return its text.

        Raises:
            ExternalServiceException: On transport errors, non-200 responses,
                or a response body without candidate text
        """
        if not self.api_key:
            raise ExternalServiceException("Gemini API key is not configured", upstream_status=401)

        try:
            if self._http_client is not None:
                response = await self._post(self._http_client, prompt)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await self._post(client, prompt)
        except httpx.TimeoutException as e:
            raise ExternalServiceException(f"Gemini request timed out: {e!s}") from e
        except httpx.HTTPError as e:
            raise ExternalServiceException(f"Gemini request failed: {e!s}") from e

        if response.status_code != 200:
            raise ExternalServiceException(
                f"Gemini returned {response.status_code}: {response.text[:500]}",
                upstream_status=response.status_code,
            )

        try:
            payload = response.json()
            parts = payload["candidates"][0]["content"]["parts"]
            return "".join(part.get("text", "") for part in parts)
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            raise ExternalServiceException("Gemini response had no candidate text") from e

    async def analyze_symptoms(self, symptoms: str) -> TriageResult:
        """
        Analyze free-text symptoms.

        Upstream failures are absorbed: the caller always gets a result, with
        fixed fallback values and the failure reason in the report.

        Args:
            symptoms: Free-text symptom description

        Returns:
            Normalized triage result
        """
        try:
            text = await self.generate_text(build_prompt(symptoms))
        except ExternalServiceException as e:
            message = classify_service_error(e)
            logger.error(
                "triage_service_failed",
                model=self.model,
                upstream_status=e.upstream_status,
                error=e.message,
                classified_as=message,
            )
            return build_error_result(symptoms, message)

        result = parse_triage_response(symptoms, text)
        logger.info(
            "triage_completed",
            model=self.model,
            severity_score=result.severity_score,
            urgency=result.urgency.value,
        )
        return result
