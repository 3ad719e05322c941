"""Blueprint registration helper."""

from __future__ import annotations

from flask import Flask, jsonify

from .analysis import bp as analysis_bp
from .practice import bp as practice_bp
from .sessions import bp as sessions_bp


def register_routes(app: Flask) -> None:
    """Register all application blueprints on the provided Flask app."""
    app.register_blueprint(analysis_bp)
    app.register_blueprint(sessions_bp)
    app.register_blueprint(practice_bp)

    @app.get("/")
    def index():
        return jsonify(message="Hello from the Interview Pro API"), 200
