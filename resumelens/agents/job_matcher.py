from __future__ import annotations
from typing import Any, Dict
from ..state import AnalysisRequest, JobMatch, MatchResult

DEMO_NOTICE = "Backend not reachable. Showing example data."

# Substitute dataset for when the matching backend is unreachable.
# Not derived from the user's resume; always surfaced as degraded.
DEMO_JOBS = MatchResult(items=[
    JobMatch(
        title="Senior Frontend Engineer",
        organization="TechFlow Systems",
        location="Remote",
        reference_url="https://google.com/search?q=frontend+jobs",
        match_score=94,
    ),
    JobMatch(
        title="React Developer",
        organization="Creative Solutions Inc.",
        location="New York, NY",
        reference_url="https://google.com/search?q=react+jobs",
        match_score=88,
    ),
    JobMatch(
        title="Full Stack Developer",
        organization="Innovate AI",
        location="San Francisco, CA",
        reference_url="https://google.com/search?q=fullstack+jobs",
        match_score=82,
    ),
    JobMatch(
        title="UI/UX Engineer",
        organization="Design Studio",
        location="Austin, TX (Hybrid)",
        reference_url="https://google.com/search?q=ui+ux+jobs",
        match_score=76,
    ),
])


def build_matching_payload(request: AnalysisRequest) -> Dict[str, Any]:
    return {"resumeText": request.subject_text}


def match_band(job: JobMatch) -> str:
    if job.match_score >= 85:
        return "high"
    if job.match_score >= 70:
        return "medium"
    return "low"
