"""Exception taxonomy for the analysis pipeline.

Local preprocessing failures (extraction, validation) mean the user's input
cannot be analyzed. Remote failures (network, schema) mean the analysis
service could not produce a usable answer and may be retried or masked by
the fallback policy.
"""

from __future__ import annotations
from enum import Enum
from typing import Optional

from .state import ErrorKind, FailureInfo


class ExtractionReason(str, Enum):
    CORRUPT = "corrupt"
    UNSUPPORTED = "unsupported"
    IO = "io"


class ValidationReason(str, Enum):
    EMPTY_TEXT = "empty_text"
    MISSING_PARAMETER = "missing_parameter"


class AnalysisError(Exception):
    """
    Base class for every failure the pipeline classifies.

    Attributes:
        kind: Which pipeline stage failed
        reason: Machine-readable sub-classification
        user_message: Short, actionable text shown to the user
        retryable: True when trying again later may help
    """

    kind: ErrorKind = ErrorKind.REMOTE
    retryable: bool = False

    def __init__(self, message: str, reason: str, user_message: Optional[str] = None):
        self.message = message
        self.reason = reason
        self.user_message = user_message or message
        super().__init__(message)

    def to_failure(self) -> FailureInfo:
        return FailureInfo(
            kind=self.kind,
            reason=self.reason,
            message=self.user_message,
            retryable=self.retryable,
            detail=self.message,
        )


_EXTRACTION_MESSAGES = {
    ExtractionReason.CORRUPT: "Failed to parse the PDF file. It might be corrupted or protected.",
    ExtractionReason.UNSUPPORTED: "This file type is not supported. Upload a PDF, TXT or MD file.",
    ExtractionReason.IO: "Failed to read the file. Please select it again.",
}


class ExtractionError(AnalysisError):
    """Raised when a source document cannot be turned into text."""

    kind = ErrorKind.EXTRACTION

    def __init__(self, reason: ExtractionReason, detail: Optional[str] = None):
        self.detail = detail
        message = f"Extraction failed ({reason.value})"
        if detail:
            message += f": {detail}"
        super().__init__(message, reason.value, _EXTRACTION_MESSAGES[reason])
        self.extraction_reason = reason


class ValidationError(AnalysisError):
    """Raised when a request cannot be built from the extracted text and parameters."""

    kind = ErrorKind.VALIDATION

    def __init__(self, reason: ValidationReason, field: Optional[str] = None):
        self.field = field
        if reason is ValidationReason.EMPTY_TEXT:
            message = "Extracted text is empty"
            user_message = "No readable text was found. Paste your resume or upload a text-based PDF."
        else:
            message = f"Missing required parameter: {field}"
            label = (field or "parameter").replace("_", " ")
            user_message = f"Please enter a {label}."
        super().__init__(message, reason.value, user_message)
        self.validation_reason = reason


class RemoteAnalysisError(AnalysisError):
    """
    Failure of the remote analysis step.

    NetworkError and SchemaError are interchangeable for the fallback policy;
    the split only exists for logging and diagnostics.
    """

    kind = ErrorKind.REMOTE
    retryable = True

    def __init__(self, message: str, reason: str, endpoint: Optional[str] = None):
        self.endpoint = endpoint
        super().__init__(
            message,
            reason,
            "The analysis service is unavailable right now. Please try again in a moment.",
        )


class NetworkError(RemoteAnalysisError):
    """Connection refused, timeout, DNS failure, non-2xx status or provider exception."""

    def __init__(self, message: str, endpoint: Optional[str] = None, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message, "network", endpoint)


class SchemaError(RemoteAnalysisError):
    """Response body is not valid structured data or violates the declared schema."""

    def __init__(self, message: str, endpoint: Optional[str] = None, body: Optional[str] = None):
        self.body = body
        parts = [message]
        if body:
            # Truncate snippet if too long
            snippet = body[:200] + "..." if len(body) > 200 else body
            parts.append(f"Body: {snippet}")
        super().__init__("\n".join(parts), "schema", endpoint)
