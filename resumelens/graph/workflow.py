from __future__ import annotations
import logging
from typing import Awaitable, Callable, Optional
import httpx
from langgraph.graph import StateGraph, END
from ..agents.fallback import FallbackPolicy
from ..agents.request_builder import AnalysisRequestBuilder
from ..config import Settings, get_settings
from ..errors import ExtractionError, RemoteAnalysisError, ValidationError
from ..state import EndpointDescriptor, ExtractedText, PipelineState
from ..tools.remote_client import LLMFactory, RemoteAnalysisClient
from ..tools.text_extractor import PdfBackend, TextExtractor, init_pdf_backend
from ..variants import AnalysisVariant

logger = logging.getLogger(__name__)

PipelineRunner = Callable[[PipelineState], Awaitable[PipelineState]]


def build_graph(variant: AnalysisVariant,
                endpoint: EndpointDescriptor,
                extractor: TextExtractor,
                client: RemoteAnalysisClient,
                fallback: FallbackPolicy) -> PipelineRunner:
    builder = AnalysisRequestBuilder(variant.required_params)

    async def extract_node(state: PipelineState) -> dict:
        # Pasted text skips extraction; it is already the user's text
        if state.document is None:
            return {"extracted": ExtractedText(content=state.pasted_text)}
        try:
            extracted = await extractor.extract(state.document)
        except ExtractionError as e:
            logger.warning("[%s] %s", variant.name, e.message)
            return {"failure": e.to_failure()}
        return {"extracted": extracted}

    def build_node(state: PipelineState) -> dict:
        try:
            request = builder.build(state.extracted, state.params)
        except ValidationError as e:
            logger.info("[%s] request rejected: %s", variant.name, e.message)
            return {"failure": e.to_failure()}
        return {"request": request}

    async def submit_node(state: PipelineState) -> dict:
        try:
            result = await client.submit(state.request, endpoint)
        except RemoteAnalysisError as e:
            logger.warning("[%s] remote analysis failed: %s", variant.name, e.message)
            return {"failure": e.to_failure()}
        return {"result": result, "degraded": False}

    async def degrade_node(state: PipelineState) -> dict:
        substitute = await fallback.recover(state.failure)
        return {
            "result": substitute,
            "degraded": True,
            "failure": None,
            "notice": variant.degraded_notice,
        }

    def route_local(next_node: str) -> Callable[[PipelineState], str]:
        def route(state: PipelineState) -> str:
            return "fail" if state.failure else next_node
        return route

    def route_remote(state: PipelineState) -> str:
        if state.failure is None:
            return "done"
        return "degrade" if fallback.applies_to(state.failure) else "done"

    g = StateGraph(PipelineState)
    g.add_node("extract", extract_node)
    g.add_node("build", build_node)
    g.add_node("submit", submit_node)
    g.add_node("degrade", degrade_node)

    g.set_entry_point("extract")
    g.add_conditional_edges("extract", route_local("build"), {"build": "build", "fail": END})
    g.add_conditional_edges("build", route_local("submit"), {"submit": "submit", "fail": END})
    g.add_conditional_edges("submit", route_remote, {"degrade": "degrade", "done": END})
    g.add_edge("degrade", END)

    app = g.compile()

    async def runner(state: PipelineState) -> PipelineState:
        final = await app.ainvoke(state)
        # LangGraph ainvoke returns a plain dict; coerce into PipelineState for uniform handling
        if isinstance(final, dict):
            final = PipelineState.model_validate(final)
        return final

    return runner


def make_pipeline(variant: AnalysisVariant,
                  settings: Optional[Settings] = None,
                  *,
                  pdf_backend: Optional[PdfBackend] = None,
                  endpoint: Optional[EndpointDescriptor] = None,
                  http_client: Optional[httpx.AsyncClient] = None,
                  llm_factory: Optional[LLMFactory] = None,
                  grace_seconds: Optional[float] = None) -> PipelineRunner:
    """Wire one variant's pipeline from settings. Call once per session."""
    settings = settings or get_settings()
    extractor = TextExtractor(pdf_backend or init_pdf_backend(settings), max_bytes=settings.MAX_UPLOAD_BYTES)

    client_kwargs = {"http_client": http_client}
    if llm_factory is not None:
        client_kwargs["llm_factory"] = llm_factory
    client = RemoteAnalysisClient(
        variant.schema,
        payload_builder=variant.payload_builder,
        prompt_builder=variant.prompt_builder,
        **client_kwargs,
    )
    fallback = FallbackPolicy(
        variant.substitute,
        grace_seconds=settings.FALLBACK_GRACE_SECONDS if grace_seconds is None else grace_seconds,
        enabled=variant.fallback_enabled,
    )
    return build_graph(
        variant,
        endpoint or variant.endpoint_factory(settings),
        extractor,
        client,
        fallback,
    )
