"""
Completion provider adapters.

Both adapters perform the same single-shot completion; they differ only in
the request envelope and where the completion text lives in the response.
The active adapter is picked by SUBSLAYER_LLM_PROVIDER.

  - ChatCompletionProvider: OpenAI-compatible /chat/completions (Groq)
    text at choices[0].message.content
  - GenerateContentProvider: Gemini models/{model}:generateContent
    text at candidates[0].content.parts[*].text
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from subslayer.extraction.errors import ConfigurationMissing
from subslayer.infrastructure.settings import (
    GEMINI_API_BASE,
    GEMINI_MODEL,
    GROQ_API_URL,
    GROQ_MODEL,
    LLM_PROVIDER,
)


@dataclass
class ProviderRequest:
    """Everything needed to POST one completion request."""

    url: str
    headers: dict[str, str]
    json: dict[str, Any] = field(default_factory=dict)


class CompletionProvider(ABC):
    """Request/response envelope for one completion API."""

    name: str = "provider"

    def __init__(self, model: str):
        self.model = model

    @abstractmethod
    def build_request(
        self, prompt: str, api_key: str, temperature: float, max_tokens: int
    ) -> ProviderRequest:
        """Build the HTTP request for a single user prompt."""

    @abstractmethod
    def extract_text(self, payload: dict[str, Any]) -> str | None:
        """Return the completion text from a decoded response, or None if absent."""


class ChatCompletionProvider(CompletionProvider):
    name = "groq"

    def __init__(self, model: str = GROQ_MODEL, url: str = GROQ_API_URL):
        super().__init__(model)
        self.url = url

    def build_request(
        self, prompt: str, api_key: str, temperature: float, max_tokens: int
    ) -> ProviderRequest:
        return ProviderRequest(
            url=self.url,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            json={
                "model": self.model,
                "messages": [{"role": "user", "content": prompt}],
                "temperature": temperature,
                "max_tokens": max_tokens,
            },
        )

    def extract_text(self, payload: dict[str, Any]) -> str | None:
        choices = payload.get("choices") or []
        if not choices or not isinstance(choices[0], dict):
            return None
        message = choices[0].get("message") or {}
        content = message.get("content")
        return content if isinstance(content, str) else None


class GenerateContentProvider(CompletionProvider):
    name = "gemini"

    def __init__(self, model: str = GEMINI_MODEL, base_url: str = GEMINI_API_BASE):
        super().__init__(model)
        self.base_url = base_url.rstrip("/")

    def build_request(
        self, prompt: str, api_key: str, temperature: float, max_tokens: int
    ) -> ProviderRequest:
        return ProviderRequest(
            url=f"{self.base_url}/{self.model}:generateContent",
            headers={
                "x-goog-api-key": api_key,
                "Content-Type": "application/json",
            },
            json={
                "contents": [{"role": "user", "parts": [{"text": prompt}]}],
                "generationConfig": {
                    "temperature": temperature,
                    "maxOutputTokens": max_tokens,
                },
            },
        )

    def extract_text(self, payload: dict[str, Any]) -> str | None:
        candidates = payload.get("candidates") or []
        if not candidates or not isinstance(candidates[0], dict):
            return None
        parts = (candidates[0].get("content") or {}).get("parts") or []
        texts = [p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)]
        return "".join(texts) if texts else None


_PROVIDERS: dict[str, type[CompletionProvider]] = {
    ChatCompletionProvider.name: ChatCompletionProvider,
    GenerateContentProvider.name: GenerateContentProvider,
}


def get_completion_provider(name: str | None = None) -> CompletionProvider:
    """
    Instantiate the configured provider adapter.

    Raises:
        ConfigurationMissing: If the provider name is unknown
    """
    key = (name or LLM_PROVIDER).lower()
    provider_cls = _PROVIDERS.get(key)
    if provider_cls is None:
        raise ConfigurationMissing(f"Unknown completion provider: {key}")
    return provider_cls()
