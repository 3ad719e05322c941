"""Utilities for rendering analysis reports using FPDF."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from fpdf import FPDF
from fpdf.enums import XPos, YPos

CORE_FONT_ENCODING = "latin-1"

_ACCENT = (79, 70, 229)
_HEADING = (34, 197, 94)
_BODY = (15, 23, 42)
_MUTED = (100, 116, 139)


def _pdf_bytes(pdf: FPDF) -> bytes:
    """Return raw PDF bytes from an FPDF instance."""
    return bytes(pdf.output())


def _latin1_safe(text: str) -> str:
    """Best-effort conversion ensuring FPDF receives core-font friendly content."""
    if not text:
        return ""
    replacements = {
        "‘": "'",
        "’": "'",
        "“": '"',
        "”": '"',
        "–": "-",
        "—": "-",
        "•": "-",
        "…": "...",
    }
    for source, target in replacements.items():
        text = text.replace(source, target)
    return text.encode(CORE_FONT_ENCODING, "replace").decode(CORE_FONT_ENCODING)


def _wrap_long_words_for_pdf(text: str, pdf: FPDF) -> str:
    """Split tokens wider than the printable area so `multi_cell` can wrap them."""
    if not text:
        return ""

    max_w = pdf.w - pdf.l_margin - pdf.r_margin
    out_words: List[str] = []

    for word in text.split(" "):
        if pdf.get_string_width(word) <= max_w:
            out_words.append(word)
            continue

        chunk = ""
        for ch in word:
            if pdf.get_string_width(chunk + ch) <= max_w:
                chunk += ch
            else:
                if chunk:
                    out_words.append(chunk)
                chunk = ch
        if chunk:
            out_words.append(chunk)

    return " ".join(out_words)


def _write_paragraph(pdf: FPDF, text: str, *, height: float = 6) -> None:
    for line in (text or "").splitlines() or [""]:
        safe = _wrap_long_words_for_pdf(_latin1_safe(line), pdf)
        pdf.set_x(pdf.l_margin)
        pdf.multi_cell(0, height, safe, align="L", new_x=XPos.LMARGIN, new_y=YPos.NEXT)


def _section_heading(pdf: FPDF, title: str) -> None:
    pdf.ln(4)
    pdf.set_font("Helvetica", "B", 14)
    pdf.set_text_color(*_HEADING)
    pdf.cell(0, 8, _latin1_safe(title), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_font("Helvetica", size=11)
    pdf.set_text_color(*_BODY)


def _bullets(pdf: FPDF, items: Sequence[str], empty_text: str) -> None:
    if not items:
        pdf.set_text_color(*_MUTED)
        _write_paragraph(pdf, empty_text)
        pdf.set_text_color(*_BODY)
        return
    for item in items:
        _write_paragraph(pdf, f"- {item}")


def render_analysis_report_pdf(record: Dict[str, Any], *, generated_at: Optional[datetime] = None) -> bytes:
    """Render the downloadable interview-preparation report for a session record."""
    pdf = FPDF()
    pdf.set_left_margin(15)
    pdf.set_right_margin(15)
    pdf.set_auto_page_break(auto=True, margin=20)
    pdf.add_page()

    job_title = record.get("jobTitle") or "Interview Preparation"

    pdf.set_font("Helvetica", "B", 20)
    pdf.set_text_color(*_ACCENT)
    pdf.multi_cell(0, 10, _latin1_safe(f"Interview Prep: {job_title}"), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_draw_color(*_ACCENT)
    pdf.set_line_width(0.6)
    current_y = pdf.get_y()
    pdf.line(15, current_y, 195, current_y)
    pdf.ln(4)

    stamp = (generated_at or datetime.now()).strftime("%B %d, %Y")
    pdf.set_font("Helvetica", "I", 10)
    pdf.set_text_color(*_MUTED)
    pdf.cell(0, 6, _latin1_safe(f"Generated on {stamp}"), new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    summary = record.get("seoSummary")
    if summary:
        _section_heading(pdf, "Role Summary")
        _write_paragraph(pdf, summary)

    _section_heading(pdf, "Required Skills")
    _bullets(pdf, record.get("requiredSkills") or [], "No skills extracted.")

    _section_heading(pdf, "Key Tools")
    _bullets(pdf, record.get("keyTools") or [], "No tools extracted.")

    _section_heading(pdf, "Interview Questions & STAR Answers")
    for number, item in enumerate(record.get("interviewQnA") or [], start=1):
        pdf.set_font("Helvetica", "B", 11)
        _write_paragraph(pdf, f"{number}. {item.get('question', '')} ({item.get('type', '')})")
        pdf.set_font("Helvetica", size=11)
        _write_paragraph(pdf, item.get("answer", ""))
        pdf.ln(2)

    _section_heading(pdf, "Skill Gaps")
    _bullets(pdf, record.get("skillGap") or [], "No skill gaps identified.")

    suggestions = record.get("affiliateSuggestions") or []
    if suggestions:
        _section_heading(pdf, "Suggested Resources")
        _bullets(
            pdf,
            [
                f"{s.get('resourceTitle', '')} ({s.get('skill', '')}): {s.get('affiliateLinkPlaceholder', '')}"
                for s in suggestions
            ],
            "",
        )

    return _pdf_bytes(pdf)
