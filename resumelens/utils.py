from __future__ import annotations
import asyncio
import mimetypes
import re
from pathlib import Path
from typing import BinaryIO, Optional, Union
from .errors import ExtractionError, ExtractionReason
from .state import MimeKind, SourceDocument

PDF_MEDIA_TYPE = "application/pdf"


def classify_media_type(content_type: Optional[str], filename: Optional[str] = None) -> MimeKind:
    """application/pdf goes down the PDF path, anything else is read as plain text."""
    ct = (content_type or "").split(";")[0].strip().lower()
    if not ct and filename:
        ct = (mimetypes.guess_type(filename)[0] or "").lower()
    return MimeKind.PDF if ct == PDF_MEDIA_TYPE else MimeKind.PLAIN_TEXT


Source = Union[str, Path, BinaryIO]


def _read_bytes(source: Source) -> bytes:
    if isinstance(source, (str, Path)):
        return Path(source).read_bytes()
    # Streamlit's UploadedFile is a BytesIO; plain file objects only have read()
    getvalue = getattr(source, "getvalue", None)
    return getvalue() if getvalue is not None else source.read()


def _source_name(source: Source) -> Optional[str]:
    if isinstance(source, (str, Path)):
        return Path(source).name
    name = getattr(source, "name", None)
    return Path(name).name if isinstance(name, str) else None


async def read_source(source: Source) -> bytes:
    """Read a path or an uploaded file object off the event loop; failures are ExtractionError(IO)."""
    try:
        return await asyncio.to_thread(_read_bytes, source)
    except (OSError, ValueError) as e:
        raise ExtractionError(ExtractionReason.IO, f"{_source_name(source) or 'upload'}: {e}") from e


async def load_document(source: Source,
                        content_type: Optional[str] = None,
                        filename: Optional[str] = None) -> SourceDocument:
    data = await read_source(source)
    name = filename or _source_name(source)
    return SourceDocument(data=data, mime_kind=classify_media_type(content_type, name), filename=name)


def extract_json_block(text: str) -> str:
    """Extract JSON from an LLM response, handling code fences and finding the first {...} block."""
    t = text.strip()
    # Strip code fences if any
    t = re.sub(r"^```[a-zA-Z]*\n|```$", "", t, flags=re.MULTILINE)
    # Find first {...}
    m = re.search(r"\{[\s\S]*\}", t)
    if m:
        return t[m.start():m.end()]
    return t
