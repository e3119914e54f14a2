"""
Shared fixtures for the analysis pipeline test suites.
"""

import io
import json
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
from pypdf import PdfWriter

from resumelens.config import Settings
from resumelens.state import EndpointDescriptor, MimeKind, SourceDocument, Transport
from resumelens.tools.text_extractor import PdfBackend, TextExtractor


# ────────────────────────────────────────────────────────────
# PDF builders
# ────────────────────────────────────────────────────────────

def _escape_pdf_text(text: str) -> str:
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def make_pdf(page_texts: List[str]) -> bytes:
    """Build a minimal PDF with one Helvetica text run per page."""
    kids = []
    page_objects = []
    next_id = 4
    for text in page_texts:
        page_id, content_id = next_id, next_id + 1
        next_id += 2
        kids.append(f"{page_id} 0 R")
        stream = (
            f"BT /F1 24 Tf 72 720 Td ({_escape_pdf_text(text)}) Tj ET".encode("latin-1")
            if text else b""
        )
        page_objects.append((page_id, (
            "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
            f"/Resources << /Font << /F1 3 0 R >> >> /Contents {content_id} 0 R >>"
        ).encode("ascii")))
        page_objects.append((content_id, b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream"))

    objects = [
        (1, b"<< /Type /Catalog /Pages 2 0 R >>"),
        (2, f"<< /Type /Pages /Kids [{' '.join(kids)}] /Count {len(page_texts)} >>".encode("ascii")),
        (3, b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>"),
    ] + page_objects

    out = bytearray(b"%PDF-1.4\n")
    offsets = {}
    for obj_id, body in objects:
        offsets[obj_id] = len(out)
        out += b"%d 0 obj\n" % obj_id + body + b"\nendobj\n"
    xref_pos = len(out)
    size = len(objects) + 1
    out += b"xref\n0 %d\n" % size
    out += b"0000000000 65535 f \n"
    for obj_id in range(1, size):
        out += b"%010d 00000 n \n" % offsets[obj_id]
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (size, xref_pos)
    return bytes(out)


def make_encrypted_pdf() -> bytes:
    writer = PdfWriter()
    writer.add_blank_page(width=612, height=792)
    writer.encrypt("secret")
    buf = io.BytesIO()
    writer.write(buf)
    return buf.getvalue()


def make_empty_pdf() -> bytes:
    buf = io.BytesIO()
    PdfWriter().write(buf)
    return buf.getvalue()


@pytest.fixture
def pdf_factory() -> Callable[[List[str]], bytes]:
    return make_pdf


@pytest.fixture
def two_page_pdf() -> SourceDocument:
    return SourceDocument(data=make_pdf(["Alice", "Engineer"]), mime_kind=MimeKind.PDF, filename="resume.pdf")


@pytest.fixture
def encrypted_pdf() -> SourceDocument:
    return SourceDocument(data=make_encrypted_pdf(), mime_kind=MimeKind.PDF, filename="locked.pdf")


@pytest.fixture
def empty_pdf() -> SourceDocument:
    return SourceDocument(data=make_empty_pdf(), mime_kind=MimeKind.PDF, filename="empty.pdf")


@pytest.fixture
def extractor() -> TextExtractor:
    return TextExtractor(PdfBackend(), max_bytes=1024 * 1024)


# ────────────────────────────────────────────────────────────
# Settings & endpoints
# ────────────────────────────────────────────────────────────

def make_settings(**overrides: Any) -> Settings:
    values: Dict[str, Any] = dict(
        SCORING_PROVIDER="gemini",
        GEMINI_API_KEY="test-gemini-key",
        GEMINI_MODEL="gemini-2.0-flash",
        MISTRAL_API_KEY=None,
        MISTRAL_MODEL="mistral-large-latest",
        JOB_MATCH_BASE_URL="http://matcher.test",
        JOB_MATCH_PATH="/webhook/resume-job-search",
        REMOTE_TIMEOUT_SECONDS=2.0,
        FALLBACK_GRACE_SECONDS=0.01,
        MAX_UPLOAD_BYTES=1024 * 1024,
        PDF_STRICT=False,
        PDF_EXTRACTION_MODE="plain",
        LOG_LEVEL="DEBUG",
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def webhook_endpoint() -> EndpointDescriptor:
    return EndpointDescriptor(
        name="job-matching",
        transport=Transport.WEBHOOK,
        url="http://matcher.test/webhook/resume-job-search",
        timeout_seconds=2.0,
    )


@pytest.fixture
def llm_endpoint() -> EndpointDescriptor:
    return EndpointDescriptor(
        name="ats-scoring:gemini",
        transport=Transport.LLM,
        provider="gemini",
        model="gemini-2.0-flash",
        timeout_seconds=2.0,
    )


# ────────────────────────────────────────────────────────────
# Remote fakes
# ────────────────────────────────────────────────────────────

class FakeChatModel:
    """Stands in for a langchain chat model; records every ainvoke call."""

    def __init__(self, content: Any = "", error: Optional[Exception] = None):
        self.content = content
        self.error = error
        self.calls: List[List[Any]] = []

    async def ainvoke(self, messages: List[Any]) -> Any:
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(content=self.content)


class RecordingTransport:
    """httpx.MockTransport wrapper counting requests and replaying a handler."""

    def __init__(self, handler: Callable[[httpx.Request], Any]):
        self.requests: List[httpx.Request] = []
        self._handler = handler
        self.transport = httpx.MockTransport(self._handle)

    async def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        result = self._handler(request)
        if hasattr(result, "__await__"):
            result = await result
        return result

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport)


def json_response(payload: Any, status_code: int = 200) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json=payload)
    return handler


@pytest.fixture
def fake_llm_factory():
    def factory(content: Any = "", error: Optional[Exception] = None):
        model = FakeChatModel(content=content, error=error)
        return model, (lambda endpoint: model)
    return factory


ATS_REPLY = {
    "score": 91,
    "missingKeywords": ["Kubernetes"],
    "feedback": "Quantify the impact of your backend work.",
    "summary": "Backend engineer with six years of Python experience.",
}

JOBS_REPLY = {
    "jobs": [
        {
            "title": "Platform Engineer",
            "company": "ScaleCo",
            "location": "London, UK",
            "url": "https://jobs.example.com/1018",
            "score": 87,
        },
        {
            "title": "Backend Engineer",
            "company": "Stripe",
            "location": "Remote",
            "url": "https://jobs.example.com/1005",
            "score": 72.4,
        },
    ]
}


@pytest.fixture
def ats_reply_text() -> str:
    return json.dumps(ATS_REPLY)


SAMPLE_RESUME_TEXT = """
Jane Doe
Berlin, DE | jane@example.com

EXPERIENCE
Backend Engineer, DataWorks (2019 - 2025)
- Built REST APIs in Python and FastAPI
- Ran PostgreSQL and Redis in production

SKILLS
Python, SQL, Docker, Terraform
"""
