"""Unit tests for document text extraction."""

import asyncio

import pytest

from resumelens.errors import ExtractionError, ExtractionReason
from resumelens.state import ExtractedText, MimeKind, SourceDocument
from resumelens.tools.text_extractor import PdfBackend, TextExtractor, init_pdf_backend

from tests.conftest import make_pdf, make_settings


def _extract(extractor: TextExtractor, doc: SourceDocument) -> ExtractedText:
    return asyncio.run(extractor.extract(doc))


class TestPdfExtraction:
    """Page order, page joins and page count."""

    @pytest.mark.unit
    def test_two_page_scenario(self, extractor, two_page_pdf):
        result = _extract(extractor, two_page_pdf)
        assert result.content == "Alice\nEngineer\n"
        assert result.page_count == 2

    @pytest.mark.unit
    def test_pages_joined_in_ascending_order(self, extractor):
        pages = [f"Page{i}" for i in range(1, 8)]
        doc = SourceDocument(data=make_pdf(pages), mime_kind=MimeKind.PDF)
        result = _extract(extractor, doc)

        assert result.page_count == 7
        assert result.content.split("\n")[:-1] == pages
        # exactly one newline after each page, none doubled
        assert "\n\n" not in result.content
        assert result.content.count("\n") == 7

    @pytest.mark.unit
    def test_concurrent_extractions_keep_their_own_pages(self, extractor, two_page_pdf):
        other = SourceDocument(data=make_pdf(["Bob", "Designer", "Portfolio"]), mime_kind=MimeKind.PDF)

        async def both():
            return await asyncio.gather(extractor.extract(two_page_pdf), extractor.extract(other))

        first, second = asyncio.run(both())
        assert first.content == "Alice\nEngineer\n"
        assert second.content == "Bob\nDesigner\nPortfolio\n"
        assert second.page_count == 3

    @pytest.mark.unit
    def test_extraction_is_idempotent(self, extractor):
        data = make_pdf(["Senior Python Developer", "Skills (Go, SQL)"])
        first = _extract(extractor, SourceDocument(data=data, mime_kind=MimeKind.PDF))
        second = _extract(extractor, SourceDocument(data=bytes(data), mime_kind=MimeKind.PDF))
        assert first == second
        assert first.content.encode("utf-8") == second.content.encode("utf-8")

    @pytest.mark.unit
    def test_blank_page_still_counts(self, extractor):
        doc = SourceDocument(data=make_pdf(["Alice", "", "Engineer"]), mime_kind=MimeKind.PDF)
        result = _extract(extractor, doc)
        assert result.page_count == 3
        assert result.content == "Alice\n\nEngineer\n"


class TestPdfFailures:

    @pytest.mark.unit
    def test_corrupt_stream(self, extractor):
        doc = SourceDocument(data=b"%PDF-1.4\nthis is not a pdf at all", mime_kind=MimeKind.PDF)
        with pytest.raises(ExtractionError) as exc:
            _extract(extractor, doc)
        assert exc.value.extraction_reason is ExtractionReason.CORRUPT

    @pytest.mark.unit
    def test_encrypted_document(self, extractor, encrypted_pdf):
        with pytest.raises(ExtractionError) as exc:
            _extract(extractor, encrypted_pdf)
        assert exc.value.extraction_reason is ExtractionReason.CORRUPT
        assert "encrypted" in exc.value.message

    @pytest.mark.unit
    def test_zero_pages(self, extractor, empty_pdf):
        with pytest.raises(ExtractionError) as exc:
            _extract(extractor, empty_pdf)
        assert exc.value.extraction_reason is ExtractionReason.CORRUPT

    @pytest.mark.unit
    def test_text_file_labeled_as_pdf_is_corrupt(self, extractor):
        doc = SourceDocument(data=b"Just a plain resume", mime_kind=MimeKind.PDF)
        with pytest.raises(ExtractionError) as exc:
            _extract(extractor, doc)
        assert exc.value.extraction_reason is ExtractionReason.CORRUPT


class TestPlainText:

    @pytest.mark.unit
    @pytest.mark.parametrize("text", [
        "Jane Doe\nBackend Engineer\n",
        "  leading and trailing whitespace kept  \n\n",
        "Ünïcödé résumé, 履歴書",
        "line one\r\nline two\r\n",
    ])
    def test_decoded_content_is_unmodified(self, extractor, text):
        doc = SourceDocument(data=text.encode("utf-8"), mime_kind=MimeKind.PLAIN_TEXT)
        result = _extract(extractor, doc)
        assert result.content == text
        assert result.page_count is None

    @pytest.mark.unit
    def test_invalid_utf8_is_replaced_not_rejected(self, extractor):
        doc = SourceDocument(data=b"Caf\xe9 manager", mime_kind=MimeKind.PLAIN_TEXT)
        assert _extract(extractor, doc).content == "Caf\ufffd manager"

    @pytest.mark.unit
    def test_binary_content_is_unsupported(self, extractor):
        doc = SourceDocument(data=b"PK\x03\x04\x00\x00docx", mime_kind=MimeKind.PLAIN_TEXT)
        with pytest.raises(ExtractionError) as exc:
            _extract(extractor, doc)
        assert exc.value.extraction_reason is ExtractionReason.UNSUPPORTED

    @pytest.mark.unit
    def test_upload_limit(self):
        small = TextExtractor(PdfBackend(), max_bytes=8)
        doc = SourceDocument(data=b"much more than eight bytes", mime_kind=MimeKind.PLAIN_TEXT)
        with pytest.raises(ExtractionError) as exc:
            _extract(small, doc)
        assert exc.value.extraction_reason is ExtractionReason.UNSUPPORTED


class TestPdfBackendInit:

    @pytest.mark.unit
    def test_defaults_without_settings(self):
        backend = init_pdf_backend()
        assert backend == PdfBackend(strict=False, extraction_mode="plain")

    @pytest.mark.unit
    def test_reads_settings(self):
        backend = init_pdf_backend(make_settings(PDF_STRICT=True, PDF_EXTRACTION_MODE="Layout"))
        assert backend.strict is True
        assert backend.extraction_mode == "layout"

    @pytest.mark.unit
    def test_unknown_mode_falls_back_to_plain(self):
        backend = init_pdf_backend(make_settings(PDF_EXTRACTION_MODE="ocr"))
        assert backend.extraction_mode == "plain"
