"""/api/sessions/<id>/practice endpoints driving the mock interview."""

from __future__ import annotations

from typing import Any, Dict

from flask import Blueprint, current_app, jsonify, request

from interview_pro.services.practice_service import (
    PracticeBusyError,
    PracticeError,
    get_practice_session,
)
from interview_pro.utils.session import load_session

bp = Blueprint("practice", __name__, url_prefix="/api/sessions")

NO_QUESTIONS_MESSAGE = (
    "It looks like there are no interview questions generated. "
    "Please go back to the home page and analyze a job description."
)


def _practice_or_error(session_id: str):
    _, error_response = load_session(session_id)
    if error_response is not None:
        return None, error_response
    return get_practice_session(session_id), None


@bp.get("/<session_id>/practice")
def practice_state(session_id: str):
    """Return the current question, transcript and status for the practice view."""
    practice, error_response = _practice_or_error(session_id)
    if error_response is not None:
        return error_response

    return jsonify(practice.snapshot()), 200


@bp.post("/<session_id>/practice/answer")
def submit_answer(session_id: str):
    """Send the candidate's answer for feedback and record both turns."""
    practice, error_response = _practice_or_error(session_id)
    if error_response is not None:
        return error_response

    if practice.current_question is None:
        return jsonify(error=NO_QUESTIONS_MESSAGE), 404

    payload: Dict[str, Any] = request.get_json(silent=True) or {}
    answer = payload.get("answer") or ""
    if not isinstance(answer, str) or not answer.strip():
        return jsonify(error="Please type an answer before submitting."), 400

    try:
        feedback = practice.submit_answer(answer)
    except PracticeBusyError as exc:
        return jsonify(error=str(exc)), 409
    except PracticeError as exc:
        current_app.logger.exception("Mock interview feedback error")
        return jsonify(error=str(exc), state=practice.snapshot()), 502
    except RuntimeError as exc:
        current_app.logger.exception("Mock interview feedback could not start")
        return jsonify(error=str(exc)), 500

    return jsonify(feedback=feedback, state=practice.snapshot()), 200


@bp.post("/<session_id>/practice/next")
def next_question(session_id: str):
    """Advance to the next question; at the end the completion message is returned."""
    practice, error_response = _practice_or_error(session_id)
    if error_response is not None:
        return error_response

    try:
        message = practice.advance()
    except PracticeBusyError as exc:
        return jsonify(error=str(exc), state=practice.snapshot()), 409
    return jsonify(message=message, state=practice.snapshot()), 200


@bp.post("/<session_id>/practice/previous")
def previous_question(session_id: str):
    """Go back one question; does nothing on the first question."""
    practice, error_response = _practice_or_error(session_id)
    if error_response is not None:
        return error_response

    try:
        practice.retreat()
    except PracticeBusyError as exc:
        return jsonify(error=str(exc), state=practice.snapshot()), 409
    return jsonify(state=practice.snapshot()), 200
