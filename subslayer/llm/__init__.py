"""LLM access: prompt construction, provider adapters and the extraction client."""

from subslayer.llm.client import ExtractionClient
from subslayer.llm.prompts import build_extraction_prompt
from subslayer.llm.providers import (
    ChatCompletionProvider,
    CompletionProvider,
    GenerateContentProvider,
    get_completion_provider,
)

__all__ = [
    "ChatCompletionProvider",
    "CompletionProvider",
    "ExtractionClient",
    "GenerateContentProvider",
    "build_extraction_prompt",
    "get_completion_provider",
]
