"""
Analysis session: the status state machine presentation reads from.

    IDLE -> LOADING -> SUCCESS | ERROR
    SUCCESS | ERROR -> LOADING (new submission)

LOADING is entered synchronously when a submission starts. Every run gets a
generation number; selecting a new document or cancelling bumps the
generation, so a run that completes late is discarded instead of
overwriting newer state.
"""

from __future__ import annotations
import asyncio
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional
from .config import Settings
from .graph.workflow import PipelineRunner, make_pipeline
from .state import (
    AnalysisStatus,
    ErrorKind,
    FailureInfo,
    PipelineState,
    SourceDocument,
    StatusSnapshot,
)
from .variants import AnalysisVariant

logger = logging.getLogger(__name__)

Listener = Callable[[StatusSnapshot], None]

UNEXPECTED_FAILURE = FailureInfo(
    kind=ErrorKind.REMOTE,
    reason="internal",
    message="Something went wrong while analyzing. Please try again.",
    retryable=True,
)


class AnalysisSession:
    def __init__(self, variant: AnalysisVariant, pipeline: PipelineRunner):
        self.variant = variant
        self._pipeline = pipeline
        self._snapshot = StatusSnapshot()
        self._generation = 0
        self._in_flight: Optional[int] = None
        self.document: Optional[SourceDocument] = None
        self.text: str = ""
        self.params: Dict[str, str] = {}
        self.listeners: List[Listener] = []

    # -------- Observation --------
    def snapshot(self) -> StatusSnapshot:
        return self._snapshot

    @property
    def status(self) -> AnalysisStatus:
        return self._snapshot.status

    @property
    def in_flight(self) -> Optional[int]:
        """Generation of the outstanding run, None when nothing is in flight."""
        return self._in_flight

    # -------- Inputs --------
    def select_document(self, document: Optional[SourceDocument]) -> None:
        self.document = document
        self.text = ""
        self._invalidate("new document selected")

    def set_text(self, text: str) -> None:
        text = text or ""
        if text != self.text:
            self._invalidate("text edited")
        self.text = text

    def set_param(self, name: str, value: str) -> None:
        self.params[name] = value

    def cancel(self) -> None:
        self._invalidate("cancelled")

    def can_submit(self) -> bool:
        if self.status is AnalysisStatus.LOADING:
            return False
        return self.document is not None or bool(self.text.strip())

    # -------- Transitions --------
    def begin(self) -> Optional[int]:
        """Enter LOADING and return the run's generation, or None when submit is inert."""
        if not self.can_submit():
            return None
        self._generation += 1
        self._in_flight = self._generation
        self._transition(StatusSnapshot(status=AnalysisStatus.LOADING, generation=self._generation))
        return self._generation

    async def submit(self, params: Optional[Mapping[str, str]] = None) -> Optional[StatusSnapshot]:
        generation = self.begin()
        if generation is None:
            return None

        merged = dict(self.params)
        merged.update(params or {})
        state = PipelineState(
            variant=self.variant.name,
            document=self.document,
            pasted_text="" if self.document is not None else self.text,
            params=merged,
        )
        try:
            final = await self._pipeline(state)
        except asyncio.CancelledError:
            if generation == self._generation:
                self._invalidate("task cancelled")
            raise
        except Exception:
            logger.exception("[%s] pipeline run %d crashed", self.variant.name, generation)
            final = PipelineState(variant=self.variant.name, failure=UNEXPECTED_FAILURE)
        return self._complete(generation, final)

    def _complete(self, generation: int, final: PipelineState) -> Optional[StatusSnapshot]:
        if generation != self._generation:
            logger.debug("[%s] discarding stale run %d (current %d)",
                         self.variant.name, generation, self._generation)
            return None
        self._in_flight = None

        if final.failure is None and final.result is not None:
            snap = StatusSnapshot(
                status=AnalysisStatus.SUCCESS,
                result=final.result,
                degraded=final.degraded,
                notice=final.notice,
                generation=generation,
            )
        else:
            snap = StatusSnapshot(
                status=AnalysisStatus.ERROR,
                error=final.failure or UNEXPECTED_FAILURE,
                generation=generation,
            )
        self._transition(snap)
        return snap

    def _invalidate(self, why: str) -> None:
        if self._in_flight is None:
            return
        self._generation += 1
        self._in_flight = None
        logger.debug("[%s] run superseded: %s", self.variant.name, why)
        self._transition(StatusSnapshot(status=AnalysisStatus.IDLE, generation=self._generation))

    def _transition(self, snap: StatusSnapshot) -> None:
        logger.debug("[%s] %s -> %s", self.variant.name, self._snapshot.status.value, snap.status.value)
        self._snapshot = snap
        for listener in list(self.listeners):
            listener(snap)


def open_session(variant: AnalysisVariant, settings: Optional[Settings] = None, **pipeline_kwargs: Any) -> AnalysisSession:
    return AnalysisSession(variant, make_pipeline(variant, settings, **pipeline_kwargs))
