"""HTTP client for the Gemini ``generateContent`` endpoint.

Each attempt reserves a rate limiter slot, posts the prompt and classifies the
outcome into the exception hierarchy at the bottom of this module. The retry
loop itself lives in :class:`wellness.services.retry.RetryPolicy`; this module
only decides which failures are worth retrying and how long to wait.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

import httpx

from wellness.config import GenerationSettings
from wellness.services.rate_limiter import RateLimiter
from wellness.services.retry import RetryPolicy

logger = logging.getLogger(__name__)


class GeminiClient:
    """Send prompts to Gemini and return the raw text of the first candidate."""

    def __init__(
        self,
        settings: GenerationSettings,
        *,
        rate_limiter: RateLimiter | None = None,
        client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        self.settings = settings
        self.rate_limiter = rate_limiter or RateLimiter(settings.min_request_interval)
        self._client = client
        self._owns_client = client is None
        self._sleep = sleep or asyncio.sleep

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def generate(self, prompt: str) -> str:
        """Return the model's text answer for ``prompt``.

        Raises :class:`ConfigurationError` without touching the network when
        no API key is configured. Throttling and transient failures are
        retried; the error from the last attempt propagates as-is.
        """

        if not self.settings.has_api_key:
            raise ConfigurationError(
                "Gemini API key is not configured. Set GEMINI_API_KEY to enable AI recommendations."
            )

        policy = RetryPolicy(
            max_attempts=self.settings.max_attempts,
            is_retryable=is_retryable,
            delay_for=self.retry_delay,
            sleep=self._sleep,
        )
        return await policy.run(lambda: self._attempt(prompt), label="Gemini request")

    def retry_delay(self, exc: BaseException, attempt: int) -> float:
        """Exponential backoff for throttling, a short fixed pause otherwise."""

        if isinstance(exc, ThrottlingError):
            return (2**attempt) * self.settings.backoff_base
        return self.settings.retry_delay

    def build_payload(self, prompt: str) -> dict[str, Any]:
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.settings.temperature,
                "maxOutputTokens": self.settings.max_output_tokens,
                "topP": self.settings.top_p,
                "topK": self.settings.top_k,
            },
        }

    @property
    def endpoint(self) -> str:
        return f"{self.settings.base_url}/models/{self.settings.model}:generateContent"

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "GeminiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.settings.request_timeout)
        return self._client

    async def _attempt(self, prompt: str) -> str:
        await self.rate_limiter.acquire()
        logger.debug("Calling Gemini model %s", self.settings.model)

        try:
            response = await self._http().post(
                self.endpoint,
                params={"key": self.settings.api_key},
                json=self.build_payload(prompt),
                timeout=self.settings.request_timeout,
            )
        except httpx.TimeoutException as exc:
            raise EmptyResponseError(
                f"Gemini request timed out after {self.settings.request_timeout:.0f}s"
            ) from exc
        except httpx.HTTPError as exc:
            raise EmptyResponseError(f"Gemini request failed: {exc}") from exc

        return _interpret_response(response)


# ------------------------------------------------------------------
# Response interpretation
# ------------------------------------------------------------------

def _interpret_response(response: httpx.Response) -> str:
    status = response.status_code
    if status == 429:
        raise ThrottlingError(
            "Rate limit reached. Please wait a moment and try again.",
            status_code=status,
        )

    if not response.is_success:
        message = _error_message(response)
        if 400 <= status < 500:
            raise RequestError(
                f"Gemini rejected the request: {message}" if message else "Gemini rejected the request",
                status_code=status,
            )
        raise APIError(
            f"Gemini API error ({status}): {message}" if message else f"Gemini API error ({status})",
            status_code=status,
        )

    try:
        data = response.json()
    except ValueError as exc:
        raise EmptyResponseError("Gemini returned a non-JSON body", status_code=status) from exc

    text = extract_candidate_text(data)
    if not text:
        raise EmptyResponseError("Gemini returned no text", status_code=status)
    return text


def extract_candidate_text(data: Any) -> str | None:
    """Return ``candidates[0].content.parts[0].text`` if present and non-blank."""

    if not isinstance(data, dict):
        return None
    candidates = data.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return None
    content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list) or not parts or not isinstance(parts[0], dict):
        return None
    text = parts[0].get("text")
    if isinstance(text, str) and text.strip():
        return text
    return None


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text.strip()[:200]
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"].strip()
    return ""


def is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, (ConfigurationError, RequestError)):
        return False
    return isinstance(exc, GenerationError)


# ------------------------------------------------------------------
# Exceptions
# ------------------------------------------------------------------

class GenerationError(Exception):
    """Base exception for failures talking to the generation provider."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ConfigurationError(GenerationError):
    """No API credential is configured."""


class ThrottlingError(GenerationError):
    """The provider answered HTTP 429."""


class RequestError(GenerationError):
    """The provider rejected the request (4xx other than 429)."""


class APIError(GenerationError):
    """Any other non-2xx answer from the provider."""


class EmptyResponseError(GenerationError):
    """A successful answer without usable text, or no answer at all."""
