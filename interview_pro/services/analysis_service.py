"""Job-description analysis pipeline.

Four stages run strictly in order, each feeding the next:

    ParsingJD -> GeneratingQnA -> AnalyzingSkillGap -> BuildingRecord -> Done

Any stage may move the pipeline to ``Failed``. The record is written to the
session store only after every stage succeeded.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from interview_pro.services.gemini_service import GeminiClient, GeminiError
from interview_pro.services.prompt_service import (
    PromptSpec,
    build_jd_parsing_prompt,
    build_question_prompt,
    build_skill_gap_prompt,
)
from interview_pro.storage import SessionStore
from interview_pro.utils.schema import SchemaValidationError, parse_json_response
from interview_pro.utils.seo import build_seo
from interview_pro.utils.session import generate_session_handle

_LOGGER = logging.getLogger(__name__)


class AnalysisStage(str, Enum):
    PARSING_JD = "ParsingJD"
    GENERATING_QNA = "GeneratingQnA"
    ANALYZING_SKILL_GAP = "AnalyzingSkillGap"
    BUILDING_RECORD = "BuildingRecord"
    DONE = "Done"
    FAILED = "Failed"


class InvalidInputError(ValueError):
    """The submission cannot be analyzed as given."""


class AnalysisError(RuntimeError):
    """A stage failed; nothing was persisted."""

    def __init__(self, stage: AnalysisStage, message: str):
        super().__init__(message)
        self.stage = stage
        self.message = message


@dataclass
class AnalysisResult:
    session_id: str
    record: Dict[str, Any]
    skill_gap_stage: str


@dataclass
class AnalysisPipeline:
    """Runs one analysis submission through the staged flow."""

    client: GeminiClient
    store: SessionStore
    handle_factory: Callable[[], str] = generate_session_handle
    year: Optional[int] = None
    stage: Optional[AnalysisStage] = None
    transitions: List[AnalysisStage] = field(default_factory=list)

    def _enter(self, stage: AnalysisStage) -> None:
        _LOGGER.debug("Analysis stage %s -> %s", self.stage.value if self.stage else "start", stage.value)
        self.stage = stage
        self.transitions.append(stage)

    def _run_structured(self, spec: PromptSpec) -> Any:
        text = spec.send(self.client)
        return parse_json_response(text, spec.schema)

    def run(self, job_description: str, resume_text: Optional[str] = None) -> AnalysisResult:
        if not job_description or not job_description.strip():
            raise InvalidInputError("Please paste a job description before analyzing.")

        # Branch for stage three is fixed before any call is made.
        use_resume = bool(resume_text and resume_text.strip())

        try:
            self._enter(AnalysisStage.PARSING_JD)
            parsed = self._run_structured(build_jd_parsing_prompt(job_description))

            self._enter(AnalysisStage.GENERATING_QNA)
            interview_qna = self._run_structured(
                build_question_prompt(parsed["jobTitle"], parsed["requiredSkills"], parsed["keyTools"])
            )

            self._enter(AnalysisStage.ANALYZING_SKILL_GAP)
            skill_gap_spec = build_skill_gap_prompt(
                parsed["jobTitle"],
                parsed["requiredSkills"],
                job_description,
                resume_text if use_resume else None,
            )
            skill_gap = self._run_structured(skill_gap_spec)

            self._enter(AnalysisStage.BUILDING_RECORD)
            record = build_analysis_record(job_description, parsed, interview_qna, skill_gap, year=self.year)
        except GeminiError as exc:
            raise self._fail(str(exc)) from exc
        except json.JSONDecodeError as exc:
            raise self._fail(f"The model returned invalid JSON during {self.stage.value}: {exc.msg}") from exc
        except SchemaValidationError as exc:
            raise self._fail(f"The model response for {self.stage.value} did not match the expected format ({exc})") from exc

        session_id = self.handle_factory()
        self.store.put(session_id, record)
        self._enter(AnalysisStage.DONE)
        _LOGGER.info("Stored analysis for %r as session %s", record["jobTitle"], session_id)
        return AnalysisResult(session_id, record, skill_gap_spec.stage)

    def _fail(self, message: str) -> AnalysisError:
        failed_stage = self.stage
        self._enter(AnalysisStage.FAILED)
        _LOGGER.warning("Analysis failed during %s: %s", failed_stage.value, message)
        return AnalysisError(failed_stage, message)


def build_analysis_record(
    job_description: str,
    parsed: Dict[str, Any],
    interview_qna: List[Dict[str, Any]],
    skill_gap: Dict[str, Any],
    *,
    year: Optional[int] = None,
) -> Dict[str, Any]:
    """Assemble the session record from the three model outputs."""
    job_title = parsed["jobTitle"]
    required_skills = list(parsed["requiredSkills"])
    qna = [
        {"question": item["question"], "type": item["type"], "answer": item["answer"]}
        for item in interview_qna
    ]

    return {
        "jobDescriptionText": job_description,
        "jobTitle": job_title,
        "requiredSkills": required_skills,
        "keyTools": list(parsed["keyTools"]),
        "seoSummary": parsed["seoSummary"],
        "interviewQnA": qna,
        "skillGap": list(skill_gap["missingSkills"]),
        "affiliateSuggestions": [
            {
                "skill": suggestion["skill"],
                "resourceTitle": suggestion["resourceTitle"],
                "affiliateLinkPlaceholder": suggestion["affiliateLinkPlaceholder"],
            }
            for suggestion in skill_gap["affiliateSuggestions"]
        ],
        "seo": build_seo(job_title, required_skills, qna, year=year),
        "mockInterviewHistory": [],
    }
