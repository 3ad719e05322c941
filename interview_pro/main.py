"""Flask application setup and blueprint wiring."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from flask import Flask
from flask_cors import CORS

from interview_pro import config
from interview_pro.routes import register_routes
from interview_pro.services.practice_service import PracticeRegistry
from interview_pro.storage import MemorySessionStore, SessionStore
from interview_pro.utils.session import register_session_cleanup


def create_app(test_config: Optional[Dict[str, Any]] = None, *, store: Optional[SessionStore] = None) -> Flask:
    """Configure and return the Flask application instance."""
    app = Flask(__name__)
    CORS(app, resources={r"/api/*": {"origins": "*"}})

    app.config.from_mapping(config.as_mapping())
    if test_config:
        app.config.update(test_config)

    app.logger.setLevel(app.config["LOG_LEVEL"])
    logging.getLogger("interview_pro").setLevel(app.config["LOG_LEVEL"])

    if store is None:
        store = MemorySessionStore(ttl_seconds=app.config["SESSION_TTL_SECONDS"])
    app.extensions["session_store"] = store
    app.extensions["practice_sessions"] = PracticeRegistry()

    register_session_cleanup(app)
    register_routes(app)
    return app
