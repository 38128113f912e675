"""
SubSlayer extraction - email text to ParsedSubscription.

Leaf modules only; the orchestrating pipeline lives in
subslayer.extraction.pipeline.
"""

from subslayer.extraction.dates import DateNormalizer
from subslayer.extraction.errors import (
    ConfigurationMissing,
    DateUnparseable,
    EmptyCompletion,
    EmptyInput,
    ExtractionError,
    IncompleteExtraction,
    MalformedPayload,
    UpstreamUnavailable,
)
from subslayer.extraction.sanitizer import sanitize
from subslayer.extraction.types import ExtractionResult, ExtractionStage, ParsedSubscription

__all__ = [
    # Types
    "ExtractionResult",
    "ExtractionStage",
    "ParsedSubscription",
    # Errors
    "ConfigurationMissing",
    "DateUnparseable",
    "EmptyCompletion",
    "EmptyInput",
    "ExtractionError",
    "IncompleteExtraction",
    "MalformedPayload",
    "UpstreamUnavailable",
    # Steps
    "DateNormalizer",
    "sanitize",
]
