"""Mock-interview practice loop over a stored analysis."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional

from flask import current_app

from interview_pro.services.gemini_service import GeminiClient, GeminiError, get_gemini_client
from interview_pro.services.prompt_service import build_feedback_prompt
from interview_pro.storage import SessionStore, get_session_store

_LOGGER = logging.getLogger(__name__)

COMPLETION_MESSAGE = (
    "You've completed all the mock interview questions! Great job. "
    "You can review your answers and feedback above, or go back to practice again."
)


class PracticeBusyError(RuntimeError):
    """A feedback request for this session is still running."""


class PracticeError(RuntimeError):
    """Feedback could not be produced for the submitted answer."""


def format_answer_turn(question: str, answer: str) -> str:
    return f"Question: {question}\nMy Answer: {answer}"


class PracticeSession:
    """Steps through a session's questions and records feedback turns.

    Only ``mockInterviewHistory`` of the stored record is ever changed, always
    by writing the whole record back.
    """

    def __init__(
        self,
        session_id: str,
        store: SessionStore,
        client_factory: Callable[[], GeminiClient],
    ):
        record = store.get(session_id)
        self.session_id = session_id
        self.store = store
        self.client_factory = client_factory
        self.questions: List[Dict[str, Any]] = list(record.get("interviewQnA") or [])
        self.transcript: List[Dict[str, Any]] = list(record.get("mockInterviewHistory") or [])
        self.current_index = 0
        self.feedback = ""
        self.answer_input = ""
        self._in_flight = threading.Lock()

    @property
    def current_question(self) -> Optional[Dict[str, Any]]:
        if 0 <= self.current_index < len(self.questions):
            return self.questions[self.current_index]
        return None

    @property
    def busy(self) -> bool:
        return self._in_flight.locked()

    def submit_answer(self, answer_text: str) -> Optional[str]:
        """Get feedback on ``answer_text`` for the current question.

        Blank answers and sessions without questions are ignored (returns None).
        """
        if not answer_text or not answer_text.strip():
            return None
        question = self.current_question
        if question is None:
            return None

        if not self._in_flight.acquire(blocking=False):
            raise PracticeBusyError("Feedback is already being generated for this session. Please wait.")

        try:
            self.answer_input = answer_text
            self.feedback = ""
            record = self.store.get(self.session_id)

            working = list(self.transcript)
            working.append({"role": "user", "text": format_answer_turn(question["question"], answer_text)})

            spec = build_feedback_prompt(
                record["jobTitle"],
                record["jobDescriptionText"],
                question["question"],
                answer_text,
                working,
            )
            try:
                reply = spec.send(self.client_factory())
            except GeminiError as exc:
                _LOGGER.warning("Mock interview feedback failed for session %s: %s", self.session_id, exc)
                raise PracticeError(str(exc) or "Failed to get feedback. Please try again.") from exc

            working.append({"role": "model", "text": reply})
            record["mockInterviewHistory"] = working
            self.store.put(self.session_id, record)

            self.transcript = working
            self.feedback = reply
            self.answer_input = ""
            return reply
        finally:
            self._in_flight.release()

    def _ensure_idle(self) -> None:
        if self.busy:
            raise PracticeBusyError("Feedback is still being generated. Please wait before changing questions.")

    def advance(self) -> Optional[str]:
        """Move to the next question, or return the completion message at the end."""
        self._ensure_idle()
        if self.current_index < len(self.questions) - 1:
            self.current_index += 1
            self._reset_turn()
            return None
        self.feedback = COMPLETION_MESSAGE
        return COMPLETION_MESSAGE

    def retreat(self) -> None:
        self._ensure_idle()
        if self.current_index > 0:
            self.current_index -= 1
            self._reset_turn()

    def _reset_turn(self) -> None:
        self.answer_input = ""
        self.feedback = ""

    def snapshot(self) -> Dict[str, Any]:
        question = self.current_question
        return {
            "sessionId": self.session_id,
            "currentIndex": self.current_index,
            "total": len(self.questions),
            "question": {"question": question["question"], "type": question["type"]} if question else None,
            "isLast": self.current_index >= len(self.questions) - 1,
            "transcript": list(self.transcript),
            "feedback": self.feedback,
            "answerInput": self.answer_input,
            "busy": self.busy,
        }


class PracticeRegistry:
    """Practice sessions kept alive between requests, one per session id."""

    def __init__(self) -> None:
        self._sessions: Dict[str, PracticeSession] = {}
        self._lock = threading.Lock()

    def get_or_create(
        self,
        session_id: str,
        store: SessionStore,
        client_factory: Callable[[], GeminiClient],
    ) -> PracticeSession:
        with self._lock:
            practice = self._sessions.get(session_id)
            if practice is None:
                practice = PracticeSession(session_id, store, client_factory)
                self._sessions[session_id] = practice
            return practice

    def discard(self, session_ids: Iterable[str]) -> None:
        with self._lock:
            for session_id in session_ids:
                self._sessions.pop(session_id, None)


def get_practice_session(session_id: str) -> PracticeSession:
    """Return the practice session for the active app, loading it on first use."""
    registry: PracticeRegistry = current_app.extensions["practice_sessions"]
    return registry.get_or_create(session_id, get_session_store(), get_gemini_client)
