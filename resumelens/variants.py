"""The two analysis variants run by the shared pipeline.

Scoring has no substitute dataset: an example ATS score would say nothing
about the user's own resume, so remote failures end in ERROR. Matching
falls back to the demo job list, labeled as degraded.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Type
from pydantic import BaseModel
from .agents.ats_scorer import TARGET_ROLE, build_scoring_prompt
from .agents.job_matcher import DEMO_JOBS, DEMO_NOTICE, build_matching_payload
from .config import Settings, matching_endpoint, scoring_endpoint
from .state import AtsResult, EndpointDescriptor, MatchResult
from .tools.remote_client import PayloadBuilder, PromptBuilder


@dataclass(frozen=True)
class AnalysisVariant:
    name: str
    schema: Type[BaseModel]
    endpoint_factory: Callable[[Settings], EndpointDescriptor]
    required_params: Tuple[str, ...] = ()
    payload_builder: Optional[PayloadBuilder] = None
    prompt_builder: Optional[PromptBuilder] = None
    substitute: Optional[BaseModel] = None
    fallback_enabled: bool = False
    degraded_notice: Optional[str] = None


ATS_SCORING = AnalysisVariant(
    name="ats_scoring",
    schema=AtsResult,
    endpoint_factory=scoring_endpoint,
    required_params=(TARGET_ROLE,),
    prompt_builder=build_scoring_prompt,
)

JOB_MATCHING = AnalysisVariant(
    name="job_matching",
    schema=MatchResult,
    endpoint_factory=matching_endpoint,
    payload_builder=build_matching_payload,
    substitute=DEMO_JOBS,
    fallback_enabled=True,
    degraded_notice=DEMO_NOTICE,
)
