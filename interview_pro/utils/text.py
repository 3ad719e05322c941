"""Resume text extraction and small text helpers."""

from __future__ import annotations

from io import BytesIO
from typing import List

from docx import Document
from flask import current_app
from pypdf import PdfReader

MAX_STORED_TEXT_LENGTH = 20_000

TEXT_EXTENSIONS = (".txt", ".md", ".text")


class ResumeReadError(ValueError):
    """The uploaded resume could not be turned into text."""


def make_text_excerpt(text: str, limit: int = 1200) -> str:
    """Normalize raw text and clamp it to a preview-friendly length."""
    if not text:
        return ""
    cleaned = " ".join(text.split())
    return cleaned[:limit]


def extract_pdf_text(raw_bytes: bytes) -> str:
    """Extract text from a PDF file while guarding against parser errors."""
    try:
        reader = PdfReader(BytesIO(raw_bytes))
        pages = list(reader.pages)
    except Exception:
        current_app.logger.warning("Unable to initialize PdfReader for uploaded resume", exc_info=True)
        return ""

    collected: List[str] = []
    for page in pages:
        try:
            page_text = page.extract_text() or ""
        except Exception:
            current_app.logger.warning("Failed to extract text from a PDF page", exc_info=True)
            page_text = ""

        if page_text:
            collected.append(page_text)

    combined = "\n".join(collected).strip()
    return combined[:MAX_STORED_TEXT_LENGTH]


def extract_docx_text(raw_bytes: bytes) -> str:
    """Extract paragraph text from a .docx document."""
    try:
        document = Document(BytesIO(raw_bytes))
    except Exception:
        current_app.logger.warning("Unable to open uploaded resume as a DOCX document", exc_info=True)
        return ""

    paragraphs = [paragraph.text for paragraph in document.paragraphs if paragraph.text.strip()]
    return "\n".join(paragraphs).strip()[:MAX_STORED_TEXT_LENGTH]


def decode_plain_text(raw_bytes: bytes) -> str:
    try:
        text = raw_bytes.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ResumeReadError("Resume file is not valid UTF-8 text.") from exc
    return text.strip()[:MAX_STORED_TEXT_LENGTH]


def extract_resume_text(raw_bytes: bytes, filename: str, mimetype: str) -> str:
    """Return the text of an uploaded resume or raise :class:`ResumeReadError`."""
    lowered = (filename or "").lower()
    mime = (mimetype or "").lower()

    if not raw_bytes:
        raise ResumeReadError("Resume file is empty.")

    if mime == "application/pdf" or lowered.endswith(".pdf"):
        text = extract_pdf_text(raw_bytes)
    elif lowered.endswith(".docx") or "wordprocessingml" in mime:
        text = extract_docx_text(raw_bytes)
    elif lowered.endswith(TEXT_EXTENSIONS) or mime.startswith("text/"):
        text = decode_plain_text(raw_bytes)
    else:
        raise ResumeReadError(f"Unsupported resume file type: {filename or mime or 'unknown'}")

    if not text:
        raise ResumeReadError("No readable text found in the resume file.")
    return text
