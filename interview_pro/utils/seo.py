"""SEO metadata derived from an analysis."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional, Sequence

FAQ_LIMIT = 5
PRIMARY_SKILL_COUNT = 3


def _primary_skills(skills: Sequence[str]) -> str:
    return ", ".join(list(skills)[:PRIMARY_SKILL_COUNT])


def generate_meta(kind: str, role: str, skills: Sequence[str], *, year: Optional[int] = None) -> str:
    """Return the meta title (``kind='title'``) or description for a role.

    Unknown kinds yield an empty string.
    """
    primary_skills = _primary_skills(skills)

    if kind == "title":
        guide_year = year if year is not None else date.today().year
        return f"Top Interview Questions for {role} ({guide_year} Guide) | Master {primary_skills}"
    if kind == "description":
        return (
            f"Prepare for your {role} interview with key questions on {primary_skills} and more. "
            "Get STAR-based answers and skill gap analysis for an ATS-friendly preparation."
        )
    return ""


def generate_faq_schema(job_title: str, qna_list: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
    """Build FAQPage JSON-LD from the first few question/answer pairs."""
    main_entity = [
        {
            "@type": "Question",
            "name": item["question"],
            "acceptedAnswer": {
                "@type": "Answer",
                "text": item["answer"],
            },
        }
        for item in list(qna_list)[:FAQ_LIMIT]
    ]

    return {
        "@context": "https://schema.org",
        "@type": "FAQPage",
        "mainEntity": main_entity,
        "headline": f"Interview Questions for {job_title} - FAQ",
        "description": f"Frequently asked questions to prepare for a {job_title} interview.",
    }


def build_seo(job_title: str, required_skills: Sequence[str], qna_list: Sequence[Dict[str, Any]], *, year: Optional[int] = None) -> Dict[str, Any]:
    return {
        "metaTitle": generate_meta("title", job_title, required_skills, year=year),
        "metaDescription": generate_meta("description", job_title, required_skills),
        "faqSchema": generate_faq_schema(job_title, qna_list),
    }
