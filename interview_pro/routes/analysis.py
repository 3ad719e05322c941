"""/api/analyses endpoint turning a job description into a prep session."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from flask import Blueprint, current_app, jsonify, request

from interview_pro.services.analysis_service import AnalysisError, AnalysisPipeline, InvalidInputError
from interview_pro.services.gemini_service import get_gemini_client
from interview_pro.storage import get_session_store
from interview_pro.utils.text import ResumeReadError, extract_resume_text, make_text_excerpt

bp = Blueprint("analysis", __name__, url_prefix="/api/analyses")

RESUME_READ_WARNING = "Failed to read resume file. The analysis continued without it."


def _read_submission() -> Dict[str, Any]:
    """Collect job description and resume text from a JSON or multipart body."""
    if request.is_json:
        payload: Dict[str, Any] = request.get_json(silent=True) or {}
        return {
            "job_description": payload.get("jobDescription") or "",
            "resume_text": payload.get("resumeText") or "",
            "resume_file": None,
        }

    return {
        "job_description": request.form.get("jobDescription", ""),
        "resume_text": request.form.get("resumeText", ""),
        "resume_file": request.files.get("resume"),
    }


@bp.post("")
def create_analysis():
    """Run the analysis pipeline and return the new session id with its record."""
    submission = _read_submission()
    job_description: str = submission["job_description"]
    if not isinstance(job_description, str) or not job_description.strip():
        return jsonify(error="Please paste a job description before analyzing."), 400
    if not isinstance(submission["resume_text"], str):
        return jsonify(error="Resume text must be a string."), 400

    warnings: List[str] = []
    resume_text: Optional[str] = submission["resume_text"] or None
    storage = submission["resume_file"]
    if storage is not None and storage.filename:
        try:
            resume_text = extract_resume_text(storage.read(), storage.filename, storage.mimetype)
        except ResumeReadError as exc:
            current_app.logger.warning("Error reading resume file %s: %s", storage.filename, exc)
            warnings.append(f"{RESUME_READ_WARNING} ({exc})")
            resume_text = None

    try:
        pipeline = AnalysisPipeline(get_gemini_client(), get_session_store())
        result = pipeline.run(job_description, resume_text)
    except InvalidInputError as exc:
        return jsonify(error=str(exc)), 400
    except AnalysisError as exc:
        current_app.logger.exception("Analysis failed during %s", exc.stage.value)
        return jsonify(error=exc.message, stage=exc.stage.value, warnings=warnings), 502
    except RuntimeError as exc:
        current_app.logger.exception("Analysis could not start")
        return jsonify(error=str(exc), warnings=warnings), 500

    return (
        jsonify(
            sessionId=result.session_id,
            record=result.record,
            skillGapVariant=result.skill_gap_stage,
            resumeExcerpt=make_text_excerpt(resume_text or "", limit=300),
            warnings=warnings,
        ),
        201,
    )
