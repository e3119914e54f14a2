from __future__ import annotations
import asyncio
import logging
from typing import Optional
from pydantic import BaseModel
from ..config import MAX_GRACE_SECONDS
from ..state import ErrorKind, FailureInfo

logger = logging.getLogger(__name__)

DEFAULT_GRACE_SECONDS = 1.5


class FallbackPolicy:
    """Masks a failed remote call with a fixed substitute result.

    Only remote failures reach this policy. After a fixed grace period the
    substitute is returned with ``degraded=True``; when the policy is disabled
    ``recover`` returns None and the caller ends in ERROR.
    """

    def __init__(self,
                 substitute: Optional[BaseModel] = None,
                 grace_seconds: float = DEFAULT_GRACE_SECONDS,
                 enabled: bool = True):
        if enabled and substitute is None:
            raise ValueError("An enabled fallback policy needs a substitute result")
        self.substitute = substitute
        self.grace_seconds = min(max(0.0, grace_seconds), MAX_GRACE_SECONDS)
        self.enabled = enabled

    def applies_to(self, failure: Optional[FailureInfo]) -> bool:
        return self.enabled and failure is not None and failure.kind is ErrorKind.REMOTE

    async def recover(self, failure: FailureInfo) -> Optional[BaseModel]:
        if not self.applies_to(failure):
            return None
        logger.warning("Remote analysis failed (%s), serving substitute after %.2fs: %s",
                       failure.reason, self.grace_seconds, failure.detail or failure.message)
        await asyncio.sleep(self.grace_seconds)
        return self.substitute.model_copy(update={"degraded": True})
