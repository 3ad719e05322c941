"""/api/sessions endpoints serving stored analyses."""

from __future__ import annotations

from io import BytesIO

from flask import Blueprint, current_app, jsonify, send_file

from interview_pro.services.pdf_service import render_analysis_report_pdf
from interview_pro.utils.session import load_session

bp = Blueprint("sessions", __name__, url_prefix="/api/sessions")


@bp.get("/<session_id>")
def get_session(session_id: str):
    """Return the stored analysis record for the results view."""
    record, error_response = load_session(session_id)
    if error_response is not None:
        return error_response

    return jsonify(sessionId=session_id, record=record), 200


@bp.get("/<session_id>/report.pdf")
def download_report(session_id: str):
    """Return a downloadable PDF report for a finished analysis."""
    record, error_response = load_session(session_id)
    if error_response is not None:
        return error_response

    try:
        pdf_bytes = render_analysis_report_pdf(record)
    except Exception:
        current_app.logger.exception("Failed to render analysis report PDF")
        return jsonify(error="Failed to generate the PDF report."), 500

    buffer = BytesIO(pdf_bytes)
    buffer.seek(0)

    return send_file(
        buffer,
        mimetype="application/pdf",
        as_attachment=True,
        download_name=f"interview-report-{session_id}.pdf",
    )
