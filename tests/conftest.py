"""Shared pytest fixtures: a scripted Gemini endpoint and an app wired to it."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Dict, List

import httpx
import pytest

# Ensure the application package is importable during tests.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from interview_pro.main import create_app  # noqa: E402
from interview_pro.services.gemini_service import GeminiClient  # noqa: E402
from interview_pro.storage import SESSION_TTL_SECONDS, MemorySessionStore, session_key  # noqa: E402


def gemini_payload(text: str) -> Dict[str, Any]:
    return {
        "candidates": [
            {
                "content": {"role": "model", "parts": [{"text": text}]},
                "finishReason": "STOP",
            }
        ]
    }


class FakeGemini:
    """Replays queued responses and records every request it receives."""

    def __init__(self) -> None:
        self.responses: List[Any] = []
        self.requests: List[httpx.Request] = []

    def queue_text(self, text: str) -> "FakeGemini":
        self.responses.append(httpx.Response(200, json=gemini_payload(text)))
        return self

    def queue_json(self, data: Any) -> "FakeGemini":
        return self.queue_text(json.dumps(data))

    def queue_status(self, status: int, body: Any = None) -> "FakeGemini":
        if body is None:
            body = {"error": {"code": status, "message": "scripted failure"}}
        self.responses.append(httpx.Response(status, json=body))
        return self

    def queue_payload(self, payload: Any) -> "FakeGemini":
        self.responses.append(httpx.Response(200, json=payload))
        return self

    def queue_exception(self, exc: Exception) -> "FakeGemini":
        self.responses.append(exc)
        return self

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError("Unexpected Gemini request: no scripted response left")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    @property
    def bodies(self) -> List[Dict[str, Any]]:
        return [json.loads(request.content) for request in self.requests]

    def prompt_texts(self) -> List[str]:
        return [body["contents"][-1]["parts"][0]["text"] for body in self.bodies]


@pytest.fixture
def fake_gemini() -> FakeGemini:
    return FakeGemini()


@pytest.fixture
def sleeps() -> List[float]:
    return []


@pytest.fixture
def gemini_client(fake_gemini: FakeGemini, sleeps: List[float]) -> GeminiClient:
    return GeminiClient(
        "test-key",
        model="gemini-test",
        transport=httpx.MockTransport(fake_gemini.handle),
        sleep=sleeps.append,
        rng=lambda: 0.5,
    )


class FakeClock:
    """Manually advanced time source for expiry tests."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> MemorySessionStore:
    return MemorySessionStore(ttl_seconds=SESSION_TTL_SECONDS, clock=clock)


@pytest.fixture
def write_raw_session(store: MemorySessionStore, clock: FakeClock):
    """Place undecodable text in the store, bypassing serialization."""

    def write(handle: str, text: str) -> None:
        store._items[session_key(handle)] = {
            "handle": handle,
            "value": text,
            "expires_at": clock() + store.ttl_seconds,
        }

    return write


@pytest.fixture
def app(gemini_client: GeminiClient, store: MemorySessionStore):
    app = create_app({"TESTING": True, "GEMINI_API_KEY": "test-key"}, store=store)
    app.extensions["gemini_client"] = gemini_client
    return app


@pytest.fixture
def api_client(app):
    return app.test_client()


@pytest.fixture
def parsed_jd() -> Dict[str, Any]:
    return {
        "jobTitle": "Senior Data Engineer",
        "requiredSkills": ["SQL", "Python", "Data Modeling", "ETL"],
        "keyTools": ["Airflow", "Snowflake"],
        "seoSummary": "Senior Data Engineer role building SQL and Airflow pipelines.",
    }


@pytest.fixture
def interview_qna() -> List[Dict[str, str]]:
    kinds = ["Technical", "Behavioral", "Situational"]
    return [
        {
            "question": f"Question {number} about SQL and Airflow?",
            "type": kinds[number % 3],
            "answer": f"Situation {number}. Task {number}. Action {number}. Result {number}.",
        }
        for number in range(1, 11)
    ]


@pytest.fixture
def skill_gap() -> Dict[str, Any]:
    return {
        "missingSkills": ["Kafka", "dbt"],
        "affiliateSuggestions": [
            {
                "skill": "Kafka",
                "resourceTitle": "Best Kafka Course",
                "affiliateLinkPlaceholder": "[Affiliate_Link]",
            }
        ],
    }


@pytest.fixture
def queue_analysis(fake_gemini: FakeGemini, parsed_jd, interview_qna, skill_gap):
    """Queue the three successful stage responses of one analysis run."""

    def _queue() -> FakeGemini:
        return fake_gemini.queue_json(parsed_jd).queue_json(interview_qna).queue_json(skill_gap)

    return _queue


@pytest.fixture
def analysis_record(parsed_jd, interview_qna, skill_gap) -> Dict[str, Any]:
    from interview_pro.services.analysis_service import build_analysis_record

    return build_analysis_record(
        "Senior Data Engineer, must know SQL and Airflow",
        parsed_jd,
        interview_qna,
        skill_gap,
        year=2026,
    )
