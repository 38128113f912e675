"""
Extraction client - one outbound completion call per email.

Builds the extraction prompt, POSTs it through the configured provider
adapter, and returns the raw completion text. No retries: a failed call is
terminal for the pipeline run and retry policy belongs to the caller.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import httpx

from subslayer.config import LLM_ERROR_BODY_PREVIEW, LLM_TIMEOUT_SECONDS
from subslayer.extraction.errors import EmptyCompletion, UpstreamUnavailable
from subslayer.infrastructure.settings import LLM_MAX_TOKENS, LLM_TEMPERATURE
from subslayer.llm.prompts import build_extraction_prompt
from subslayer.llm.providers import CompletionProvider, get_completion_provider
from subslayer.observability.logging import get_logger
from subslayer.observability.telemetry import counter, time_block

logger = get_logger(__name__)


class ExtractionClient:
    """
    Send the extraction prompt to a completion provider.

    Args:
        provider: Adapter for the provider's envelope (defaults to configured one)
        http_client: Shared httpx.AsyncClient; when omitted a client is opened per call
        temperature: Sampling temperature (low, for determinism)
        max_tokens: Output length cap
        timeout: HTTP timeout in seconds for per-call clients
    """

    def __init__(
        self,
        provider: CompletionProvider | None = None,
        http_client: httpx.AsyncClient | None = None,
        temperature: float = LLM_TEMPERATURE,
        max_tokens: int = LLM_MAX_TOKENS,
        timeout: float = LLM_TIMEOUT_SECONDS,
    ):
        self.provider = provider or get_completion_provider()
        self._http_client = http_client
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            yield client

    async def extract(
        self, email_text: str, api_key: str, current_year: int | None = None
    ) -> str:
        """
        Run one completion for the given email.

        Args:
            email_text: Raw email body, embedded verbatim in the prompt
            api_key: Provider credential
            current_year: Year hint for the prompt (defaults to the current UTC year)

        Returns:
            Raw completion text, stripped of surrounding whitespace

        Raises:
            UpstreamUnavailable: Transport failure or non-success HTTP status
            EmptyCompletion: Provider answered without any completion text
        """
        year = current_year or datetime.now(UTC).year
        prompt = build_extraction_prompt(email_text, year)
        request = self.provider.build_request(prompt, api_key, self.temperature, self.max_tokens)

        logger.info(
            "Calling %s completion API (model=%s, email_length=%d)",
            self.provider.name,
            self.provider.model,
            len(email_text),
        )

        try:
            with time_block("llm.completion.latency"):
                async with self._client() as client:
                    response = await client.post(
                        request.url, headers=request.headers, json=request.json
                    )
        except httpx.HTTPError as e:
            counter("llm.completion.transport_error")
            logger.error("%s API request failed: %s", self.provider.name, e)
            raise UpstreamUnavailable(f"AI API unreachable: {type(e).__name__}") from e

        if not response.is_success:
            counter("llm.completion.http_error")
            logger.error(
                "%s API error: status=%d body=%s",
                self.provider.name,
                response.status_code,
                response.text[:LLM_ERROR_BODY_PREVIEW],
            )
            raise UpstreamUnavailable(status=response.status_code)

        try:
            payload = response.json()
        except ValueError as e:
            counter("llm.completion.bad_envelope")
            logger.error(
                "%s API returned non-JSON body: %s",
                self.provider.name,
                response.text[:LLM_ERROR_BODY_PREVIEW],
            )
            raise UpstreamUnavailable("AI API returned an unreadable response") from e

        text = self.provider.extract_text(payload) if isinstance(payload, dict) else None
        if not text or not text.strip():
            counter("llm.completion.empty")
            logger.error("No completion text from %s", self.provider.name)
            raise EmptyCompletion()

        counter("llm.completion.success")
        return text.strip()
