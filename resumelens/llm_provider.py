from __future__ import annotations
from typing import Any
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_mistralai import ChatMistralAI
from .state import EndpointDescriptor


PROVIDERS = {"gemini", "mistral"}


def normalize_provider(p: str | None) -> str:
    if not p:
        return "gemini"
    p = p.strip().lower()
    if p in PROVIDERS:
        return p
    return "gemini"


def _require_key(endpoint: EndpointDescriptor, env_name: str) -> str:
    key = endpoint.api_key.get_secret_value() if endpoint.api_key else ""
    if not key:
        raise RuntimeError(f"{env_name} is missing. Set it in .env or Streamlit secrets.")
    return key


# Provider-side retries are disabled: one submit is exactly one outbound call.
def build_gemini(endpoint: EndpointDescriptor, temperature: float = 0.2) -> ChatGoogleGenerativeAI:
    key = _require_key(endpoint, "GEMINI_API_KEY")
    return ChatGoogleGenerativeAI(
        model=endpoint.model or "gemini-2.0-flash",
        google_api_key=key,
        temperature=temperature,
        max_retries=0,
    )


def build_mistral(endpoint: EndpointDescriptor, temperature: float = 0.2) -> ChatMistralAI:
    key = _require_key(endpoint, "MISTRAL_API_KEY")
    return ChatMistralAI(
        model=endpoint.model or "mistral-large-latest",
        api_key=key,
        temperature=temperature,
        max_retries=0,
    )


def get_llm(endpoint: EndpointDescriptor, temperature: float = 0.2) -> Any:
    p = normalize_provider(endpoint.provider)
    if p == "mistral":
        return build_mistral(endpoint, temperature)
    return build_gemini(endpoint, temperature)
