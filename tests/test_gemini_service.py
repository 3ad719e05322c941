"""Tests for the Gemini REST client and its retry policy."""

from __future__ import annotations

import httpx
import pytest

from interview_pro.main import create_app
from interview_pro.services.gemini_service import (
    GeminiClient,
    GeminiHTTPError,
    Malformed,
    MalformedResponseError,
    MaxRetriesExceededError,
    NetworkFailure,
    RateLimited,
    Success,
    backoff_delay,
    build_contents,
    extract_text,
    get_gemini_client,
    is_retryable,
)


def test_invoke_returns_first_candidate_text(gemini_client, fake_gemini):
    fake_gemini.queue_payload(
        {
            "candidates": [
                {"content": {"parts": [{"text": "first"}, {"text": "second"}]}},
                {"content": {"parts": [{"text": "other candidate"}]}},
            ]
        }
    )

    assert gemini_client.invoke("Hello") == "first"


def test_request_targets_model_endpoint_with_key_param(gemini_client, fake_gemini):
    fake_gemini.queue_text("ok")

    gemini_client.invoke("Hello")

    request = fake_gemini.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/v1beta/models/gemini-test:generateContent"
    assert request.url.params["key"] == "test-key"


def test_request_body_carries_defaults_and_schema(gemini_client, fake_gemini):
    fake_gemini.queue_text("{}")
    schema = {"type": "OBJECT", "properties": {"a": {"type": "STRING"}}}

    gemini_client.invoke("Describe", schema, {"temperature": 0.2})

    body = fake_gemini.bodies[0]
    assert body["contents"] == [{"role": "user", "parts": [{"text": "Describe"}]}]
    assert body["generationConfig"] == {
        "temperature": 0.2,
        "topP": 0.95,
        "topK": 40,
        "responseMimeType": "application/json",
        "responseSchema": schema,
    }
    assert "systemInstruction" not in body


def test_free_form_request_has_no_mime_type(gemini_client, fake_gemini):
    fake_gemini.queue_text("plain")

    gemini_client.invoke("Say hi")

    config = fake_gemini.bodies[0]["generationConfig"]
    assert config == {"temperature": 0.7, "topP": 0.95, "topK": 40}


def test_conversation_history_and_system_instruction(gemini_client, fake_gemini):
    fake_gemini.queue_text("feedback")
    history = [
        {"role": "user", "text": "Question: Q1\nMy Answer: A1"},
        {"role": "model", "text": "Nice."},
        {"role": "user", "parts": [{"text": "Question: Q2\nMy Answer: A2"}]},
    ]

    gemini_client.invoke(history, system_instruction="Be an interviewer.")

    body = fake_gemini.bodies[0]
    assert [message["role"] for message in body["contents"]] == ["user", "model", "user"]
    assert body["contents"][1]["parts"] == [{"text": "Nice."}]
    assert body["contents"][2]["parts"] == [{"text": "Question: Q2\nMy Answer: A2"}]
    assert body["systemInstruction"] == {"parts": [{"text": "Be an interviewer."}]}


@pytest.mark.parametrize("rate_limited", [0, 1, 2, 3, 4])
def test_rate_limits_below_the_cap_are_retried(gemini_client, fake_gemini, sleeps, rate_limited):
    for _ in range(rate_limited):
        fake_gemini.queue_status(429)
    fake_gemini.queue_text("finally")

    assert gemini_client.invoke("Hello") == "finally"
    assert len(fake_gemini.requests) == rate_limited + 1
    assert sleeps == [2 ** attempt + 0.5 for attempt in range(rate_limited)]


@pytest.mark.parametrize("rate_limited", [5, 6])
def test_rate_limits_at_the_cap_raise_max_retries(gemini_client, fake_gemini, sleeps, rate_limited):
    for _ in range(rate_limited):
        fake_gemini.queue_status(429)

    with pytest.raises(MaxRetriesExceededError) as excinfo:
        gemini_client.invoke("Hello")

    assert "Max retries reached" in str(excinfo.value)
    assert excinfo.value.status_code == 429
    assert excinfo.value.attempts == 5
    assert isinstance(excinfo.value.last_result, RateLimited)
    assert len(fake_gemini.requests) == 5
    # No wait after the final attempt.
    assert sleeps == [1.5, 2.5, 4.5, 8.5]


def test_server_errors_are_retried(gemini_client, fake_gemini):
    fake_gemini.queue_status(503).queue_status(500).queue_text("recovered")

    assert gemini_client.invoke("Hello") == "recovered"
    assert len(fake_gemini.requests) == 3


def test_transport_errors_are_retried(gemini_client, fake_gemini, sleeps):
    fake_gemini.queue_exception(httpx.ConnectError("connection refused"))
    fake_gemini.queue_exception(httpx.ReadTimeout("timed out"))
    fake_gemini.queue_text("back online")

    assert gemini_client.invoke("Hello") == "back online"
    assert len(sleeps) == 2


def test_exhausted_transport_errors_raise_max_retries(gemini_client, fake_gemini):
    for _ in range(5):
        fake_gemini.queue_exception(httpx.ConnectError("connection refused"))

    with pytest.raises(MaxRetriesExceededError) as excinfo:
        gemini_client.invoke("Hello")

    assert excinfo.value.status_code is None
    assert "connection refused" in excinfo.value.detail


@pytest.mark.parametrize("status", [400, 401, 403, 404])
def test_client_errors_are_not_retried(gemini_client, fake_gemini, sleeps, status):
    fake_gemini.queue_status(status)

    with pytest.raises(GeminiHTTPError) as excinfo:
        gemini_client.invoke("Hello")

    assert excinfo.value.status_code == status
    assert str(status) in str(excinfo.value)
    assert len(fake_gemini.requests) == 1
    assert sleeps == []


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"candidates": []},
        {"candidates": [{"finishReason": "SAFETY"}]},
        {"candidates": [{"content": {"parts": []}}]},
        {"candidates": [{"content": {"parts": [{"inlineData": {}}]}}]},
        ["not", "an", "object"],
    ],
)
def test_malformed_payloads_are_not_retried(gemini_client, fake_gemini, sleeps, payload):
    fake_gemini.queue_payload(payload)

    with pytest.raises(MalformedResponseError) as excinfo:
        gemini_client.invoke("Hello")

    assert "unexpected response structure" in str(excinfo.value)
    assert excinfo.value.detail
    assert len(fake_gemini.requests) == 1
    assert sleeps == []


def test_non_json_body_is_malformed(sleeps):
    client = GeminiClient(
        "k",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, text="<html>oops</html>")),
        sleep=sleeps.append,
    )

    result = client.generate("Hello")

    assert isinstance(result, Malformed)


def test_generate_exposes_result_values(gemini_client, fake_gemini):
    fake_gemini.queue_text("done")
    assert gemini_client.generate("Hello") == Success("done")

    for _ in range(5):
        fake_gemini.queue_status(429)
    exhausted = gemini_client.generate("Hello")
    assert isinstance(exhausted, RateLimited)
    assert is_retryable(exhausted)

    fake_gemini.queue_status(404)
    not_found = gemini_client.generate("Hello")
    assert isinstance(not_found, NetworkFailure)
    assert not_found.status_code == 404
    assert not is_retryable(not_found)


def test_extract_text_and_helpers():
    assert extract_text({"candidates": [{"content": {"parts": [{"text": "x"}]}}]}) == Success("x")
    assert isinstance(extract_text({"candidates": "nope"}), Malformed)
    assert build_contents("hi") == [{"role": "user", "parts": [{"text": "hi"}]}]
    assert backoff_delay(0, lambda: 0.0) == 1
    assert backoff_delay(3, lambda: 0.25) == 8.25


def test_max_retries_must_be_positive():
    with pytest.raises(ValueError):
        GeminiClient("k", max_retries=0)


def test_get_gemini_client_requires_api_key():
    app = create_app({"TESTING": True, "GEMINI_API_KEY": ""})

    with app.app_context():
        with pytest.raises(RuntimeError, match="GEMINI_API_KEY"):
            get_gemini_client()


def test_get_gemini_client_builds_from_config_once():
    app = create_app(
        {
            "TESTING": True,
            "GEMINI_API_KEY": "abc",
            "GEMINI_MODEL": "gemini-custom",
            "GEMINI_MAX_RETRIES": 3,
        }
    )

    with app.app_context():
        client = get_gemini_client()
        assert client.model == "gemini-custom"
        assert client.max_retries == 3
        assert get_gemini_client() is client
