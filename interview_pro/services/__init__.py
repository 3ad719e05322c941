"""Service layer modules for the Interview Pro API."""

from . import analysis_service, gemini_service, pdf_service, practice_service, prompt_service

__all__ = [
    "analysis_service",
    "gemini_service",
    "pdf_service",
    "practice_service",
    "prompt_service",
]
