"""Session handle helpers shared by the results and practice routes."""

from __future__ import annotations

import uuid
from typing import Any, Dict, Optional, Tuple

from flask import Flask, current_app, jsonify

from interview_pro.storage import SessionDataError, SessionNotFoundError, get_session_store

MISSING_HANDLE_MESSAGE = "No session ID provided. Please go back and analyze a job description."
NOT_FOUND_MESSAGE = "Session data not found. Please analyze a job description first."
CORRUPTED_MESSAGE = "Failed to load session data. It might be corrupted."


def generate_session_handle() -> str:
    """Return a new random session handle."""
    return str(uuid.uuid4())


def load_session(handle: Optional[str]) -> Tuple[Optional[Dict[str, Any]], Optional[Any]]:
    """Fetch the record for ``handle`` or build the matching error response."""
    handle = (handle or "").strip()
    if not handle:
        return None, (jsonify(error=MISSING_HANDLE_MESSAGE), 400)

    try:
        record = get_session_store().get(handle)
    except SessionNotFoundError:
        current_app.logger.info("Session %s not found", handle)
        return None, (jsonify(error=NOT_FOUND_MESSAGE), 404)
    except SessionDataError:
        current_app.logger.exception("Failed to decode session %s", handle)
        return None, (jsonify(error=CORRUPTED_MESSAGE), 500)

    return record, None


def prune_expired_sessions(app: Flask) -> None:
    """Remove expired records from the store and their practice sessions."""
    expired = app.extensions["session_store"].prune_expired()
    if expired:
        app.extensions["practice_sessions"].discard(expired)
        app.logger.info("Pruned %d expired session(s)", len(expired))


def register_session_cleanup(app: Flask) -> None:
    """Attach a before-request handler that keeps session state tidy."""

    @app.before_request
    def _cleanup_state() -> None:
        prune_expired_sessions(app)
