"""
Extraction failure taxonomy.

Every failure a single pipeline run can end in. Each class carries a stable
`reason` code (used in results and telemetry), a default human-readable
message and the HTTP status the API layer maps it to.
"""

from __future__ import annotations


class ExtractionError(Exception):
    """Base class for terminal extraction failures."""

    reason: str = "extraction_failed"
    status_code: int = 500
    default_message: str = "Failed to parse email. Please try again."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class EmptyInput(ExtractionError):
    reason = "empty_input"
    status_code = 400
    default_message = "Email text is required"


class ConfigurationMissing(ExtractionError):
    reason = "configuration_missing"
    status_code = 500
    default_message = "Extraction service is not configured"


class UpstreamUnavailable(ExtractionError):
    reason = "upstream_unavailable"
    status_code = 500

    def __init__(self, message: str | None = None, status: int | None = None):
        if message is None:
            message = f"AI API error: {status}" if status is not None else "AI API unavailable"
        super().__init__(message)
        self.upstream_status = status


class EmptyCompletion(ExtractionError):
    reason = "empty_completion"
    status_code = 500
    default_message = "No response from AI"


class MalformedPayload(ExtractionError):
    reason = "malformed_payload"
    status_code = 500
    default_message = "AI response was not valid JSON"


class IncompleteExtraction(ExtractionError):
    reason = "incomplete_extraction"
    status_code = 422
    default_message = "Could not extract all fields from email"


class DateUnparseable(ExtractionError):
    reason = "date_unparseable"
    status_code = 500

    def __init__(self, date_text: str):
        super().__init__(f"Could not understand renewal date: {date_text[:50]!r}")
        self.date_text = date_text
