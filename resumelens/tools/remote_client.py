"""
Remote analysis client.

One submit is exactly one outbound call: an HTTP POST for webhook endpoints
or one chat-model invocation for LLM endpoints. The call races a deadline;
the response is accepted only after it validates against the variant's
pydantic schema.
"""

from __future__ import annotations
import asyncio
import json
import logging
from typing import Any, Callable, Dict, List, Optional, Type
import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from ..errors import NetworkError, SchemaError
from ..llm_provider import get_llm
from ..state import AnalysisRequest, EndpointDescriptor, Transport
from ..utils import extract_json_block

logger = logging.getLogger(__name__)

PayloadBuilder = Callable[[AnalysisRequest], Dict[str, Any]]
PromptBuilder = Callable[[AnalysisRequest], List[Any]]
LLMFactory = Callable[[EndpointDescriptor], Any]


def _message_text(resp: Any) -> str:
    content = getattr(resp, "content", "")
    if isinstance(content, list):
        # Some chat models return content as a list of parts
        return "".join(
            p.get("text", "") if isinstance(p, dict) else str(p) for p in content
        )
    return content or ""


class RemoteAnalysisClient:
    def __init__(self,
                 schema: Type[BaseModel],
                 payload_builder: Optional[PayloadBuilder] = None,
                 prompt_builder: Optional[PromptBuilder] = None,
                 http_client: Optional[httpx.AsyncClient] = None,
                 llm_factory: LLMFactory = get_llm):
        self.schema = schema
        self.payload_builder = payload_builder
        self.prompt_builder = prompt_builder
        self.http_client = http_client
        self.llm_factory = llm_factory

    async def submit(self, request: AnalysisRequest, endpoint: EndpointDescriptor) -> BaseModel:
        if endpoint.transport is Transport.WEBHOOK:
            call = self._call_webhook(request, endpoint)
        else:
            call = self._call_llm(request, endpoint)

        logger.info("Dispatching %d chars to %s", len(request.subject_text), endpoint.name)
        try:
            body = await asyncio.wait_for(call, timeout=endpoint.timeout_seconds)
        except asyncio.TimeoutError as e:
            raise NetworkError(
                f"{endpoint.name} timed out after {endpoint.timeout_seconds:g}s", endpoint.name
            ) from e
        return self._validate(body, endpoint)

    # -------- Transports --------
    async def _post(self, client: httpx.AsyncClient, endpoint: EndpointDescriptor, payload: Dict[str, Any]) -> Any:
        try:
            resp = await client.post(endpoint.url, json=payload)
        except httpx.HTTPError as e:
            raise NetworkError(f"POST {endpoint.url} failed: {e!r}", endpoint.name) from e
        if not resp.is_success:
            raise NetworkError(
                f"{endpoint.url} returned {resp.status_code} {resp.reason_phrase}",
                endpoint.name,
                status_code=resp.status_code,
            )
        try:
            return resp.json()
        except ValueError as e:
            raise SchemaError("Response is not valid JSON", endpoint.name, resp.text) from e

    async def _call_webhook(self, request: AnalysisRequest, endpoint: EndpointDescriptor) -> Any:
        if not endpoint.url:
            raise NetworkError("Endpoint has no URL configured", endpoint.name)
        if self.payload_builder is None:
            raise TypeError(f"{self.schema.__name__} client has no payload builder for webhook endpoints")
        payload = self.payload_builder(request)
        if self.http_client is not None:
            return await self._post(self.http_client, endpoint, payload)
        async with httpx.AsyncClient(timeout=endpoint.timeout_seconds) as client:
            return await self._post(client, endpoint, payload)

    async def _call_llm(self, request: AnalysisRequest, endpoint: EndpointDescriptor) -> Any:
        if self.prompt_builder is None:
            raise TypeError(f"{self.schema.__name__} client has no prompt builder for LLM endpoints")
        messages = self.prompt_builder(request)
        try:
            llm = self.llm_factory(endpoint)
            resp = await llm.ainvoke(messages)
        except Exception as e:
            raise NetworkError(f"{endpoint.name} call failed: {e}", endpoint.name) from e

        content = _message_text(resp).strip()
        if not content:
            raise SchemaError("Empty response from AI", endpoint.name)
        try:
            return json.loads(extract_json_block(content))
        except json.JSONDecodeError as e:
            raise SchemaError("Model reply is not valid JSON", endpoint.name, content) from e

    # -------- Contract --------
    def _validate(self, body: Any, endpoint: EndpointDescriptor) -> BaseModel:
        if not isinstance(body, dict):
            raise SchemaError(
                f"Expected a JSON object, got {type(body).__name__}", endpoint.name, json.dumps(body)[:200]
            )
        data = dict(body)
        # Only the fallback policy may mark a result degraded
        data.pop("degraded", None)
        try:
            result = self.schema.model_validate(data)
        except PydanticValidationError as e:
            raise SchemaError(
                f"Response violates {self.schema.__name__} ({e.error_count()} error(s)): "
                + "; ".join(f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors()),
                endpoint.name,
            ) from e
        logger.debug("Accepted %s from %s", self.schema.__name__, endpoint.name)
        return result
