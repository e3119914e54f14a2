from __future__ import annotations
from typing import Dict, Iterable, Mapping, Optional, Tuple
from ..errors import ValidationError, ValidationReason
from ..state import AnalysisRequest, ExtractedText


class AnalysisRequestBuilder:
    """Turns extracted text plus task parameters into an AnalysisRequest.

    Only presence and non-blankness are checked; the meaning of a parameter
    (e.g. which role is targeted) is left to the remote service.
    """

    def __init__(self, required_params: Iterable[str] = ()):
        self.required_params: Tuple[str, ...] = tuple(required_params)

    def build(self, text: ExtractedText, params: Optional[Mapping[str, str]] = None) -> AnalysisRequest:
        if not text.content.strip():
            raise ValidationError(ValidationReason.EMPTY_TEXT)

        cleaned: Dict[str, str] = {
            k: (v or "").strip() for k, v in (params or {}).items()
        }
        for name in self.required_params:
            if not cleaned.get(name):
                raise ValidationError(ValidationReason.MISSING_PARAMETER, field=name)

        return AnalysisRequest(subject_text=text.content, task_parameters=cleaned)
