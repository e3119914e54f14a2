"""
Document text extraction.

Turns a SourceDocument (PDF bytes or plain text) into one normalized
ExtractedText. PDF pages are extracted one at a time off the event loop and
joined in page order, each page followed by a single newline.
"""

from __future__ import annotations
import asyncio
import io
import logging
from dataclasses import dataclass
from typing import Any, List, Optional
from pypdf import PdfReader
from ..config import Settings
from ..errors import ExtractionError, ExtractionReason
from ..state import ExtractedText, MimeKind, SourceDocument

logger = logging.getLogger(__name__)

EXTRACTION_MODES = {"plain", "layout"}


@dataclass(frozen=True)
class PdfBackend:
    """PDF reader configuration, created once per process by init_pdf_backend()."""

    strict: bool = False
    extraction_mode: str = "plain"

    def open(self, data: bytes) -> PdfReader:
        return PdfReader(io.BytesIO(data), strict=self.strict)

    def page_text(self, page: Any) -> str:
        return page.extract_text(extraction_mode=self.extraction_mode) or ""


def init_pdf_backend(settings: Optional[Settings] = None) -> PdfBackend:
    # pypdf reports recoverable stream problems on its own logger; keep only real errors
    logging.getLogger("pypdf").setLevel(logging.ERROR)
    if settings is None:
        return PdfBackend()
    mode = settings.PDF_EXTRACTION_MODE.strip().lower()
    if mode not in EXTRACTION_MODES:
        logger.warning("Unknown PDF_EXTRACTION_MODE %r, using 'plain'", settings.PDF_EXTRACTION_MODE)
        mode = "plain"
    return PdfBackend(strict=settings.PDF_STRICT, extraction_mode=mode)


def _normalize_page(text: str) -> str:
    s = text.replace("\r\n", "\n").replace("\r", "\n")
    return s.rstrip("\n")


def decode_plain_text(data: bytes) -> str:
    if b"\x00" in data:
        raise ExtractionError(ExtractionReason.UNSUPPORTED, "binary content in plain-text upload")
    return data.decode("utf-8", errors="replace")


class TextExtractor:
    def __init__(self, pdf_backend: PdfBackend, max_bytes: Optional[int] = None):
        self.pdf_backend = pdf_backend
        self.max_bytes = max_bytes

    def _check_size(self, doc: SourceDocument) -> None:
        if self.max_bytes is not None and len(doc.data) > self.max_bytes:
            raise ExtractionError(
                ExtractionReason.UNSUPPORTED,
                f"{len(doc.data)} bytes exceeds upload limit of {self.max_bytes}",
            )

    def _open_pdf(self, data: bytes) -> List[Any]:
        try:
            reader = self.pdf_backend.open(data)
            if reader.is_encrypted:
                raise ExtractionError(ExtractionReason.CORRUPT, "document is encrypted")
            pages = list(reader.pages)
        except ExtractionError:
            raise
        except Exception as e:
            raise ExtractionError(ExtractionReason.CORRUPT, str(e)) from e
        if not pages:
            raise ExtractionError(ExtractionReason.CORRUPT, "document has no pages")
        return pages

    def _page_text(self, page: Any, number: int) -> str:
        try:
            return _normalize_page(self.pdf_backend.page_text(page))
        except Exception as e:
            raise ExtractionError(ExtractionReason.CORRUPT, f"page {number}: {e}") from e

    @staticmethod
    def _join(page_texts: List[str]) -> ExtractedText:
        return ExtractedText(
            content="".join(text + "\n" for text in page_texts),
            page_count=len(page_texts),
        )

    async def extract(self, doc: SourceDocument) -> ExtractedText:
        self._check_size(doc)
        if doc.mime_kind is MimeKind.PLAIN_TEXT:
            return ExtractedText(content=decode_plain_text(doc.data))

        pages = await asyncio.to_thread(self._open_pdf, doc.data)
        texts: List[str] = []
        # Sequential awaits keep page order; nothing is returned until every page is done
        for number, page in enumerate(pages, 1):
            texts.append(await asyncio.to_thread(self._page_text, page, number))
        extracted = self._join(texts)
        logger.info("Extracted %d page(s), %d chars from %s",
                    extracted.page_count, len(extracted.content), doc.filename or "upload")
        return extracted
