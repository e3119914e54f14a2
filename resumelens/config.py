"""
Runtime configuration.

Values come from Streamlit secrets when running inside the app, then from the
process environment (a local .env is loaded first). Credentials are never
hard-coded here.
"""

from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv
from pydantic import SecretStr
from .state import EndpointDescriptor, Transport


DEFAULT_JOB_MATCH_BASE_URL = "http://localhost:5678"
DEFAULT_JOB_MATCH_PATH = "/webhook-test/resume-job-search"

# Upper bound on the pause before substitute results are shown
MAX_GRACE_SECONDS = 2.0

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    """Analysis pipeline settings"""

    # Scoring (LLM)
    SCORING_PROVIDER: str
    GEMINI_API_KEY: Optional[str]
    GEMINI_MODEL: str
    MISTRAL_API_KEY: Optional[str]
    MISTRAL_MODEL: str

    # Matching (webhook)
    JOB_MATCH_BASE_URL: str
    JOB_MATCH_PATH: str

    # Timing
    REMOTE_TIMEOUT_SECONDS: float
    FALLBACK_GRACE_SECONDS: float

    # Documents
    MAX_UPLOAD_BYTES: int
    PDF_STRICT: bool
    PDF_EXTRACTION_MODE: str

    LOG_LEVEL: str

    @property
    def job_match_url(self) -> str:
        return self.JOB_MATCH_BASE_URL.rstrip("/") + "/" + self.JOB_MATCH_PATH.lstrip("/")


def _read_secrets() -> dict[str, str]:
    try:
        import streamlit as st  # type: ignore
        if hasattr(st, "secrets"):
            return dict(st.secrets)
    except Exception:
        # No secrets.toml, or not running under Streamlit
        pass
    return {}


def _get_secret(name: str, secrets: Optional[dict] = None) -> Optional[str]:
    if secrets is None:
        secrets = _read_secrets()
    value = secrets.get(name) or os.getenv(name)
    return str(value) if value not in (None, "") else None


def _as_bool(value: Optional[str]) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _as_int(value: Optional[str], default: int) -> int:
    try:
        return int(value) if value is not None else default
    except ValueError:
        return default


def _as_float(value: Optional[str], default: float) -> float:
    try:
        parsed = float(value) if value is not None else default
    except ValueError:
        return default
    return parsed if parsed >= 0 else default


def _grace_seconds(value: Optional[str]) -> float:
    grace = _as_float(value, 1.5)
    if grace > MAX_GRACE_SECONDS:
        logger.warning("FALLBACK_GRACE_SECONDS=%s exceeds %.1fs, clamping", value, MAX_GRACE_SECONDS)
        return MAX_GRACE_SECONDS
    return grace


def get_settings() -> Settings:
    """Get settings from Streamlit secrets and environment variables"""
    load_dotenv()
    secrets = _read_secrets()

    def get(name: str) -> Optional[str]:
        return _get_secret(name, secrets)

    max_upload_mb = _as_int(get("MAX_UPLOAD_MB"), 10)

    return Settings(
        SCORING_PROVIDER=(get("SCORING_PROVIDER") or "gemini").strip().lower(),
        # Prefer GEMINI_API_KEY, fallback to GOOGLE_API_KEY
        GEMINI_API_KEY=get("GEMINI_API_KEY") or get("GOOGLE_API_KEY"),
        GEMINI_MODEL=get("GEMINI_MODEL") or "gemini-2.0-flash",
        MISTRAL_API_KEY=get("MISTRAL_API_KEY"),
        MISTRAL_MODEL=get("MISTRAL_MODEL") or "mistral-large-latest",

        JOB_MATCH_BASE_URL=get("JOB_MATCH_BASE_URL") or DEFAULT_JOB_MATCH_BASE_URL,
        JOB_MATCH_PATH=get("JOB_MATCH_PATH") or DEFAULT_JOB_MATCH_PATH,

        REMOTE_TIMEOUT_SECONDS=_as_float(get("REMOTE_TIMEOUT_SECONDS"), 30.0),
        FALLBACK_GRACE_SECONDS=_grace_seconds(get("FALLBACK_GRACE_SECONDS")),

        MAX_UPLOAD_BYTES=max_upload_mb * 1024 * 1024,
        PDF_STRICT=_as_bool(get("PDF_STRICT")),
        PDF_EXTRACTION_MODE=get("PDF_EXTRACTION_MODE") or "plain",

        LOG_LEVEL=(get("LOG_LEVEL") or "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def scoring_endpoint(settings: Settings) -> EndpointDescriptor:
    provider = settings.SCORING_PROVIDER if settings.SCORING_PROVIDER in ("gemini", "mistral") else "gemini"
    if provider == "mistral":
        key, model = settings.MISTRAL_API_KEY, settings.MISTRAL_MODEL
    else:
        key, model = settings.GEMINI_API_KEY, settings.GEMINI_MODEL
    return EndpointDescriptor(
        name=f"ats-scoring:{provider}",
        transport=Transport.LLM,
        provider=provider,
        model=model,
        api_key=SecretStr(key) if key else None,
        timeout_seconds=settings.REMOTE_TIMEOUT_SECONDS or 30.0,
    )


def matching_endpoint(settings: Settings) -> EndpointDescriptor:
    return EndpointDescriptor(
        name="job-matching",
        transport=Transport.WEBHOOK,
        url=settings.job_match_url,
        timeout_seconds=settings.REMOTE_TIMEOUT_SECONDS or 30.0,
    )
