"""Prompt construction for each stage of the analysis and practice flows."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple

QUESTION_COUNT = 10
QUESTION_TYPES = ("Technical", "Behavioral", "Situational")

STAGE_JD_PARSING = "jd_parsing"
STAGE_QUESTIONS = "question_generation"
STAGE_SKILL_GAP_RESUME = "skill_gap_resume"
STAGE_SKILL_GAP_GENERAL = "skill_gap_general"
STAGE_FEEDBACK = "mock_feedback"

FEEDBACK_GENERATION_OPTIONS = {"temperature": 0.8}

JD_PARSING_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "jobTitle": {"type": "STRING"},
        "requiredSkills": {"type": "ARRAY", "items": {"type": "STRING"}},
        "keyTools": {"type": "ARRAY", "items": {"type": "STRING"}},
        "seoSummary": {"type": "STRING"},
    },
    "required": ["jobTitle", "requiredSkills", "keyTools", "seoSummary"],
}

QUESTIONS_SCHEMA: Dict[str, Any] = {
    "type": "ARRAY",
    "minItems": QUESTION_COUNT,
    "maxItems": QUESTION_COUNT,
    "items": {
        "type": "OBJECT",
        "properties": {
            "question": {"type": "STRING"},
            "type": {"type": "STRING", "format": "enum", "enum": list(QUESTION_TYPES)},
            "answer": {"type": "STRING"},
        },
        "required": ["question", "type", "answer"],
    },
}

SKILL_GAP_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "missingSkills": {"type": "ARRAY", "items": {"type": "STRING"}},
        "affiliateSuggestions": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "skill": {"type": "STRING"},
                    "resourceTitle": {"type": "STRING"},
                    "affiliateLinkPlaceholder": {"type": "STRING"},
                },
                "required": ["skill", "resourceTitle", "affiliateLinkPlaceholder"],
            },
        },
    },
    "required": ["missingSkills", "affiliateSuggestions"],
}


@dataclass(frozen=True)
class PromptSpec:
    """A prompt paired with the output schema the model must follow.

    When ``history`` is set the text is sent as the system instruction and the
    history is sent as the conversation.
    """

    stage: str
    text: str
    schema: Optional[Dict[str, Any]] = None
    generation_options: Optional[Dict[str, Any]] = None
    history: Optional[Tuple[Dict[str, Any], ...]] = None

    def send(self, client) -> str:
        if self.history is None:
            return client.invoke(self.text, self.schema, self.generation_options)
        return client.invoke(
            list(self.history),
            self.schema,
            self.generation_options,
            system_instruction=self.text,
        )


def _csv(values: Sequence[str]) -> str:
    return ", ".join(value for value in values if value)


def build_jd_parsing_prompt(job_description: str) -> PromptSpec:
    text = f"""
Analyze the following job description and extract the key information.
Provide the output in a JSON format with the following keys:
- jobTitle: (string)
- requiredSkills: (array of strings)
- keyTools: (array of strings)
- seoSummary: (string, a concise SEO-optimized summary for the role)

Job Description:
{job_description}
""".strip()
    return PromptSpec(STAGE_JD_PARSING, text, JD_PARSING_SCHEMA)


def build_question_prompt(job_title: str, required_skills: Sequence[str], key_tools: Sequence[str]) -> PromptSpec:
    types = ", ".join(t.lower() for t in QUESTION_TYPES)
    text = f"""
Generate exactly {QUESTION_COUNT} SEO-rich interview questions ({types}) for a "{job_title}" role,
focusing on skills like {_csv(required_skills)} and tools like {_csv(key_tools)}.
For each question, provide a sample answer that follows the STAR method
(Situation, Task, Action, Result) and is optimized with relevant keywords.
The output should be a JSON array of {QUESTION_COUNT} objects, where each object has:
- question: (string)
- type: (string, one of "Technical", "Behavioral", "Situational")
- answer: (string, STAR-based, SEO-optimized)

Ensure answers are detailed and ready for an interview.
""".strip()
    return PromptSpec(STAGE_QUESTIONS, text, QUESTIONS_SCHEMA)


def build_resume_skill_gap_prompt(job_description: str, resume_text: str) -> PromptSpec:
    text = f"""
Given the following job description and candidate resume, identify skill gaps.
Suggest SEO-rich resources with affiliate link placeholders for missing skills.
The output should be a JSON object with:
- missingSkills: (array of strings)
- affiliateSuggestions: (array of objects with 'skill', 'resourceTitle', 'affiliateLinkPlaceholder')

Job Description:
{job_description}

Candidate Resume:
{resume_text}
""".strip()
    return PromptSpec(STAGE_SKILL_GAP_RESUME, text, SKILL_GAP_SCHEMA)


def build_general_skill_gap_prompt(job_title: str, required_skills: Sequence[str]) -> PromptSpec:
    text = f"""
For a "{job_title}" role, what are common skill gaps candidates might have related to {_csv(required_skills)}?
Suggest 3-5 SEO-rich resources with affiliate link placeholders (e.g., "Best Python Certification on [Affiliate_Link]").
The output should be a JSON object with:
- missingSkills: (array of strings)
- affiliateSuggestions: (array of objects with 'skill', 'resourceTitle', 'affiliateLinkPlaceholder')
""".strip()
    return PromptSpec(STAGE_SKILL_GAP_GENERAL, text, SKILL_GAP_SCHEMA)


def build_skill_gap_prompt(
    job_title: str,
    required_skills: Sequence[str],
    job_description: str,
    resume_text: Optional[str] = None,
) -> PromptSpec:
    """Pick the resume comparison when resume text is present, else the general variant."""
    if resume_text and resume_text.strip():
        return build_resume_skill_gap_prompt(job_description, resume_text)
    return build_general_skill_gap_prompt(job_title, required_skills)


def build_feedback_prompt(
    job_title: str,
    job_description: str,
    question: str,
    answer: str,
    transcript: Sequence[Dict[str, Any]],
) -> PromptSpec:
    """Free-form interviewer feedback; ``transcript`` must already end with the answer turn."""
    text = f"""
You are an expert interviewer providing feedback to a candidate.
The candidate is interviewing for a "{job_title}" role based on the following job description:
---
{job_description}
---

Here's the question asked: "{question}"
Here's the candidate's answer: "{answer}"

Provide constructive feedback on the candidate's answer.
Focus on clarity, completeness, relevance to the job description, and use of the STAR method if applicable.
Suggest specific areas for improvement. Keep the feedback concise and actionable.
""".strip()
    return PromptSpec(
        STAGE_FEEDBACK,
        text,
        None,
        dict(FEEDBACK_GENERATION_OPTIONS),
        tuple(dict(message) for message in transcript),
    )
