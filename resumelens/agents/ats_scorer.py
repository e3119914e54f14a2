from __future__ import annotations
from typing import Any, List
from langchain_core.messages import HumanMessage, SystemMessage
from ..state import AnalysisRequest, AtsResult

TARGET_ROLE = "target_role"
DEFAULT_TARGET_ROLE = "Software Engineer"

SCHEMA_EXAMPLE = (
    '{"score": number (0-100), "missingKeywords": string[], '
    '"feedback": string, "summary": string}'
)


def build_scoring_prompt(request: AnalysisRequest) -> List[Any]:
    """ATS scoring prompt for the resume text and target role, JSON-only answer."""
    role = request.task_parameters.get(TARGET_ROLE, DEFAULT_TARGET_ROLE)
    system = SystemMessage(content=(
        "Act as an expert Application Tracking System (ATS) and Career Coach. "
        "Return ONLY JSON, no markdown, no code fences, no commentary."
    ))
    parts = [
        f'Analyze the following resume text for the position of "{role}".',
        "",
        "Resume Content:",
        request.subject_text,
        "",
        "Provide:",
        "1. score: an ATS Score (0-100) based on relevance to the role.",
        "2. missingKeywords: critical keywords that are common for this role but missing in the resume.",
        "3. feedback: constructive, actionable feedback on how to improve the resume.",
        "4. summary: a brief executive summary of the candidate's profile.",
        "",
        "SCHEMA (all fields required):",
        SCHEMA_EXAMPLE,
    ]
    human = HumanMessage(content="\n".join(parts))
    return [system, human]


def score_band(result: AtsResult) -> str:
    if result.score >= 80:
        return "good"
    if result.score >= 60:
        return "fair"
    return "poor"
