"""Client for the Gemini ``generateContent`` REST endpoint.

A single attempt is reported as an :data:`ApiResult` value so the retry loop
can decide eligibility by inspecting the value. :meth:`GeminiClient.invoke`
turns the final value into text or a :class:`GeminiError`.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import httpx
from flask import current_app

_LOGGER = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash-preview-05-20"
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_TIMEOUT_SECONDS = 60.0
MAX_RETRIES = 5

DEFAULT_GENERATION_OPTIONS: Dict[str, Any] = {
    "temperature": 0.7,
    "topP": 0.95,
    "topK": 40,
}

Conversation = Union[str, Sequence[Dict[str, Any]]]


@dataclass(frozen=True)
class Success:
    text: str


@dataclass(frozen=True)
class RateLimited:
    status_code: int = 429
    detail: str = ""


@dataclass(frozen=True)
class Malformed:
    description: str


@dataclass(frozen=True)
class NetworkFailure:
    description: str
    status_code: Optional[int] = None
    retryable: bool = True


ApiResult = Union[Success, RateLimited, Malformed, NetworkFailure]


def is_retryable(result: ApiResult) -> bool:
    """Return True when another attempt may succeed."""
    if isinstance(result, RateLimited):
        return True
    if isinstance(result, NetworkFailure):
        return result.retryable
    return False


def describe_result(result: ApiResult) -> str:
    """Short human-readable description used in logs and error messages."""
    if isinstance(result, Success):
        return "success"
    if isinstance(result, RateLimited):
        return f"rate limited (HTTP {result.status_code})"
    if isinstance(result, Malformed):
        return f"malformed response ({result.description})"
    if result.status_code is not None:
        return f"HTTP {result.status_code}: {result.description}"
    return result.description


class GeminiError(RuntimeError):
    """Base error for failed Gemini calls."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, detail: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class GeminiHTTPError(GeminiError):
    """The API answered with a status that is not worth retrying."""


class MalformedResponseError(GeminiError):
    """The API answered 2xx but without ``candidates[0].content.parts[0].text``."""


class MaxRetriesExceededError(GeminiError):
    """Every attempt was rate limited or failed transiently."""

    def __init__(self, message: str, *, last_result: ApiResult, attempts: int):
        status_code = getattr(last_result, "status_code", None)
        super().__init__(message, status_code=status_code, detail=describe_result(last_result))
        self.last_result = last_result
        self.attempts = attempts


def build_contents(conversation: Conversation) -> List[Dict[str, Any]]:
    """Convert a prompt string or a role-tagged transcript into ``contents``."""
    if isinstance(conversation, str):
        return [{"role": "user", "parts": [{"text": conversation}]}]

    contents: List[Dict[str, Any]] = []
    for message in conversation:
        if "parts" in message:
            parts = list(message["parts"])
        else:
            parts = [{"text": message.get("text", "")}]
        contents.append({"role": message.get("role", "user"), "parts": parts})
    return contents


def build_request_body(
    conversation: Conversation,
    *,
    response_schema: Optional[Dict[str, Any]] = None,
    generation_options: Optional[Dict[str, Any]] = None,
    system_instruction: Optional[str] = None,
) -> Dict[str, Any]:
    """Assemble the JSON body for one ``generateContent`` request."""
    generation_config = dict(DEFAULT_GENERATION_OPTIONS)
    if generation_options:
        generation_config.update(generation_options)

    if response_schema is not None:
        generation_config["responseMimeType"] = "application/json"
        generation_config["responseSchema"] = response_schema

    body: Dict[str, Any] = {
        "contents": build_contents(conversation),
        "generationConfig": generation_config,
    }
    if system_instruction:
        body["systemInstruction"] = {"parts": [{"text": system_instruction}]}
    return body


def extract_text(payload: Any) -> ApiResult:
    """Pull the first candidate's text out of a decoded response body."""
    if not isinstance(payload, dict):
        return Malformed("response body is not a JSON object")

    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return Malformed("missing candidates")

    content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
    if not isinstance(content, dict):
        return Malformed("first candidate has no content")

    parts = content.get("parts")
    if not isinstance(parts, list) or not parts or not isinstance(parts[0], dict):
        return Malformed("first candidate has no parts")

    text = parts[0].get("text")
    if not isinstance(text, str):
        return Malformed("first part has no text")

    return Success(text)


def backoff_delay(attempt: int, rng: Callable[[], float] = random.random) -> float:
    """Seconds to wait after the zero-based ``attempt`` failed."""
    return 2 ** attempt + rng()


class GeminiClient:
    """Stateless caller for one Gemini model; every call is a fresh round trip."""

    def __init__(
        self,
        api_key: str,
        *,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_retries: int = MAX_RETRIES,
        transport: Optional[httpx.BaseTransport] = None,
        sleep: Callable[[float], None] = time.sleep,
        rng: Callable[[], float] = random.random,
    ):
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self._transport = transport
        self._sleep = sleep
        self._rng = rng

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def attempt(self, body: Dict[str, Any]) -> ApiResult:
        """Issue exactly one request and classify the outcome."""
        try:
            with httpx.Client(transport=self._transport, timeout=self.timeout) as client:
                response = client.post(
                    self.endpoint,
                    params={"key": self.api_key},
                    headers={"Content-Type": "application/json"},
                    json=body,
                )
        except httpx.TimeoutException as exc:
            return NetworkFailure(f"Request to Gemini API timed out: {exc}")
        except httpx.TransportError as exc:
            return NetworkFailure(f"Request to Gemini API failed: {exc}")

        status = response.status_code
        if status == 429:
            return RateLimited(status, response.text[:500])
        if response.is_error:
            return NetworkFailure(
                f"Gemini API error: {status} {response.reason_phrase}",
                status_code=status,
                retryable=status >= 500,
            )

        try:
            payload = response.json()
        except ValueError:
            return Malformed("response body is not valid JSON")
        return extract_text(payload)

    def generate(
        self,
        conversation: Conversation,
        *,
        response_schema: Optional[Dict[str, Any]] = None,
        generation_options: Optional[Dict[str, Any]] = None,
        system_instruction: Optional[str] = None,
    ) -> ApiResult:
        """Run the retry loop and return the final attempt's result.

        A retryable value coming back from here means every attempt was used.
        """
        body = build_request_body(
            conversation,
            response_schema=response_schema,
            generation_options=generation_options,
            system_instruction=system_instruction,
        )

        result: ApiResult = NetworkFailure("no attempt was made")
        for attempt in range(self.max_retries):
            result = self.attempt(body)
            if not is_retryable(result):
                return result
            if attempt == self.max_retries - 1:
                break

            delay = backoff_delay(attempt, self._rng)
            _LOGGER.warning(
                "Gemini call %s on attempt %d/%d, retrying in %.2fs",
                describe_result(result),
                attempt + 1,
                self.max_retries,
                delay,
            )
            self._sleep(delay)

        return result

    def invoke(
        self,
        conversation: Conversation,
        response_schema: Optional[Dict[str, Any]] = None,
        generation_options: Optional[Dict[str, Any]] = None,
        *,
        system_instruction: Optional[str] = None,
    ) -> str:
        """Return the model's text or raise a :class:`GeminiError` subclass."""
        result = self.generate(
            conversation,
            response_schema=response_schema,
            generation_options=generation_options,
            system_instruction=system_instruction,
        )

        if isinstance(result, Success):
            return result.text

        if isinstance(result, Malformed):
            _LOGGER.error("Unexpected Gemini API response structure: %s", result.description)
            raise MalformedResponseError(
                "Gemini API returned an unexpected response structure.",
                detail=result.description,
            )

        if is_retryable(result):
            _LOGGER.error("Gemini call gave up after %d attempts: %s", self.max_retries, describe_result(result))
            raise MaxRetriesExceededError(
                "Max retries reached for Gemini API call.",
                last_result=result,
                attempts=self.max_retries,
            )

        _LOGGER.error("Gemini call failed: %s", describe_result(result))
        raise GeminiHTTPError(result.description, status_code=result.status_code)


def get_gemini_client() -> GeminiClient:
    """Return the application's client, building it from config on first use."""
    client = current_app.extensions.get("gemini_client")
    if client is not None:
        return client

    api_key = current_app.config.get("GEMINI_API_KEY")
    if not api_key:
        raise RuntimeError("GEMINI_API_KEY environment variable is not set")

    client = GeminiClient(
        api_key,
        model=current_app.config.get("GEMINI_MODEL") or DEFAULT_MODEL,
        base_url=current_app.config.get("GEMINI_API_BASE_URL") or DEFAULT_BASE_URL,
        timeout=current_app.config.get("GEMINI_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
        max_retries=current_app.config.get("GEMINI_MAX_RETRIES", MAX_RETRIES),
    )
    current_app.extensions["gemini_client"] = client
    return client
