"""
Scoring oracle backed by Gemini.

The oracle is the only place that talks to the language model. It is built once
by the composition layer and handed to the services that need it; nothing in
the pipeline reads the API key itself.
"""
import asyncio
import json
import logging
import math
import re
from typing import Any, Optional, Type

from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from pydantic import BaseModel

from ..config import Settings
from ..errors import OracleError

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}

SCORING_SYSTEM_PROMPT = (
    "You are an ATS and recruiter. Evaluate candidate fit for the role and respond ONLY with JSON."
)


class MatchScore(BaseModel):
    score: int
    explanation: str


_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```\s*$")


def strip_code_fences(text: str) -> str:
    """Remove a leading ```json / ``` fence and a trailing ``` fence."""
    cleaned = text.strip()
    cleaned = _FENCE_OPEN.sub("", cleaned)
    cleaned = _FENCE_CLOSE.sub("", cleaned)
    return cleaned.strip()


def clamp_score(value: Any) -> int:
    """Round half up and clamp into [0, 100]. Non-numeric input is an OracleError."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise OracleError(OracleError.INVALID_JSON, f"score is not a number: {value!r}")
    if not math.isfinite(number):
        raise OracleError(OracleError.INVALID_JSON, f"score is not finite: {value!r}")
    return max(0, min(100, math.floor(number + 0.5)))


def parse_match_score(response_text: str) -> MatchScore:
    cleaned = strip_code_fences(response_text)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise OracleError(
            OracleError.INVALID_JSON,
            f"Failed to parse AI match score response: {cleaned[:200]}",
        ) from e

    if not isinstance(parsed, dict) or "score" not in parsed:
        raise OracleError(OracleError.INVALID_JSON, f"Match score response has no score: {cleaned[:200]}")

    return MatchScore(
        score=clamp_score(parsed["score"]),
        explanation=str(parsed.get("explanation") or "").strip(),
    )


class GeminiOracle:
    """
    Thin async wrapper over the Gemini client.

    Every call gets a per-call timeout and is retried with linear backoff on
    timeouts and transient upstream errors. Exhausted retries raise
    OracleError("upstream failure").
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        timeout: float = 60.0,
        max_retries: int = 3,
        retry_backoff: float = 1.0,
        extraction_temperature: float = 0.1,
        scoring_temperature: float = 0.0,
        client: Optional[Any] = None,
    ):
        if not api_key and client is None:
            raise OracleError(OracleError.NOT_CONFIGURED, "GEMINI_API_KEY is not set")
        self.model = model
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.retry_backoff = retry_backoff
        self.extraction_temperature = extraction_temperature
        self.scoring_temperature = scoring_temperature
        self._client = client or genai.Client(api_key=api_key)

    @classmethod
    def from_settings(cls, settings: Settings) -> "GeminiOracle":
        return cls(
            api_key=settings.gemini_api_key.strip(),
            model=settings.gemini_model,
            timeout=settings.oracle_timeout_seconds,
            max_retries=settings.oracle_max_retries,
            retry_backoff=settings.oracle_retry_backoff_seconds,
            extraction_temperature=settings.oracle_extraction_temperature,
            scoring_temperature=settings.oracle_scoring_temperature,
        )

    async def _generate(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        json_response: bool,
    ) -> str:
        config = types.GenerateContentConfig(
            system_instruction=system_prompt,
            temperature=temperature,
            max_output_tokens=8192,
            response_mime_type="application/json" if json_response else None,
        )

        last_error: Optional[BaseException] = None
        for attempt in range(self.max_retries):
            try:
                response = await asyncio.wait_for(
                    self._client.aio.models.generate_content(
                        model=self.model,
                        contents=user_prompt,
                        config=config,
                    ),
                    timeout=self.timeout,
                )
            except asyncio.TimeoutError as e:
                last_error = e
                logger.warning(f"Oracle call timed out after {self.timeout}s (attempt {attempt + 1}/{self.max_retries})")
            except genai_errors.APIError as e:
                if e.code not in RETRYABLE_STATUS_CODES:
                    raise OracleError(OracleError.UPSTREAM_FAILURE, str(e)) from e
                last_error = e
                logger.warning(f"Oracle attempt {attempt + 1}/{self.max_retries} failed: {e}")
            else:
                text = response.text
                if not text or not text.strip():
                    raise OracleError(OracleError.EMPTY_RESPONSE, "Received empty response from Gemini")
                return text

            if attempt < self.max_retries - 1:
                await asyncio.sleep(self.retry_backoff * (attempt + 1))

        raise OracleError(
            OracleError.UPSTREAM_FAILURE,
            f"Gemini call failed after {self.max_retries} attempts: {last_error or 'timeout'}",
        )

    async def complete_structured(
        self,
        system_prompt: str,
        user_prompt: str,
        schema: Optional[Type[BaseModel]] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """Ask for a JSON document. The schema is embedded in the system instruction."""
        if schema is not None:
            system_prompt = (
                f"{system_prompt}\n\nThe response must be a single JSON object matching this JSON Schema:\n"
                f"{json.dumps(schema.model_json_schema())}"
            )
        if temperature is None:
            temperature = self.extraction_temperature
        return await self._generate(system_prompt, user_prompt, temperature, json_response=True)

    async def generate_text(self, system_prompt: str, user_prompt: str, temperature: float = 0.5) -> str:
        text = await self._generate(system_prompt, user_prompt, temperature, json_response=False)
        return text.strip()

    async def score_match(self, job_text: str, candidate_text: str) -> MatchScore:
        """Score how well a candidate fits a job, 0-100."""
        user_prompt = (
            f"Job Description:\n{job_text}\n\n"
            f"Candidate Resume:\n{candidate_text}\n\n"
            'Return ONLY JSON in this exact shape: {"score": number, "explanation": string}. '
            "Score must be 0-100."
        )
        response_text = await self._generate(
            SCORING_SYSTEM_PROMPT,
            user_prompt,
            self.scoring_temperature,
            json_response=True,
        )
        return parse_match_score(response_text)


def build_oracle(settings: Settings) -> Optional[GeminiOracle]:
    """Return a configured oracle, or None when no API key is set."""
    if not settings.oracle_configured:
        logger.warning("GEMINI_API_KEY not set - AI parsing and matching disabled")
        return None
    return GeminiOracle.from_settings(settings)
