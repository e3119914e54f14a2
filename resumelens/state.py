from __future__ import annotations
import math
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, SecretStr, field_validator


class MimeKind(str, Enum):
    PDF = "pdf"
    PLAIN_TEXT = "plain_text"


class AnalysisStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class ErrorKind(str, Enum):
    EXTRACTION = "extraction"
    VALIDATION = "validation"
    REMOTE = "remote"


class Transport(str, Enum):
    WEBHOOK = "webhook"
    LLM = "llm"


# -------- Documents --------
class SourceDocument(BaseModel):
    model_config = ConfigDict(frozen=True)

    data: bytes
    mime_kind: MimeKind
    filename: Optional[str] = None


class ExtractedText(BaseModel):
    model_config = ConfigDict(frozen=True)

    content: str
    page_count: Optional[int] = None


class AnalysisRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    subject_text: str
    task_parameters: Dict[str, str] = Field(default_factory=dict)


# -------- Endpoints --------
class EndpointDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    transport: Transport
    url: Optional[str] = None
    provider: Optional[str] = None
    model: Optional[str] = None
    api_key: Optional[SecretStr] = None
    timeout_seconds: float = Field(default=30.0, gt=0)


# -------- Results --------
def _strict_score(value: Any) -> Any:
    # JSON numbers only; bool is an int subclass and strings would be coerced in lax mode
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("score must be a number")
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError("score must be finite")
    # Range is checked on the raw number so 100.4 or -0.4 cannot round into it
    if not 0 <= value <= 100:
        raise ValueError("score must be between 0 and 100")
    return round(value) if isinstance(value, float) else value


Score = Annotated[int, BeforeValidator(_strict_score), Field(ge=0, le=100)]


class AtsResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    score: Score
    missing_keywords: List[str] = Field(alias="missingKeywords")
    feedback: str
    summary: str


class JobMatch(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    title: str
    organization: str = Field(alias="company")
    location: str
    reference_url: str = Field(alias="url")
    match_score: Score = Field(alias="score")


class MatchResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    items: List[JobMatch] = Field(default_factory=list, alias="jobs")
    degraded: bool = False

    @field_validator("items", mode="before")
    @classmethod
    def _missing_jobs_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value


# -------- Pipeline --------
class FailureInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    reason: str
    message: str
    retryable: bool = False
    detail: Optional[str] = None


class PipelineState(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    # Input
    variant: str
    document: Optional[SourceDocument] = None
    pasted_text: str = ""
    params: Dict[str, str] = Field(default_factory=dict)

    # Intermediate
    extracted: Optional[ExtractedText] = None
    request: Optional[AnalysisRequest] = None

    # Output
    result: Optional[Any] = None
    failure: Optional[FailureInfo] = None
    degraded: bool = False
    notice: Optional[str] = None


class StatusSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    status: AnalysisStatus = AnalysisStatus.IDLE
    result: Optional[Any] = None
    error: Optional[FailureInfo] = None
    degraded: bool = False
    notice: Optional[str] = None
    generation: int = 0
