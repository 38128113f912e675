"""
Module: types
Purpose: Domain types for the extraction pipeline.
Dependencies: subslayer.extraction.errors

Leaf module shared by the pipeline, the API routes and the subscription
repository, so none of them import each other for types.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from subslayer.extraction.errors import ExtractionError


class ParsedSubscription(BaseModel):
    """A fully validated subscription extracted from one email."""

    model_config = ConfigDict(frozen=True)

    service_name: str = Field(..., min_length=1, description="Subscription service name")
    cost: float = Field(..., gt=0, description="Monthly-equivalent cost")
    currency: str = Field(default="USD", pattern=r"^[A-Z]{3}$")
    renewal_date: date = Field(..., description="Next renewal date, never in the past")
    cancellation_url: str | None = None
    website_url: str | None = None

    @field_validator("service_name")
    @classmethod
    def service_name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("service_name cannot be empty")
        return v.strip()


class ExtractionStage(str, Enum):
    """Pipeline stage reached during extraction.

    Extends str so JSON serialization produces raw strings (e.g. "decoded").
    """

    RECEIVED = "received"
    PROMPTED = "prompted"
    RAW_RESPONSE = "raw_response"
    SANITIZED = "sanitized"
    DECODED = "decoded"
    VALIDATED = "validated"
    NORMALIZED = "normalized"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ExtractionResult:
    """Outcome of one pipeline run: either `data` or a failure `reason`."""

    success: bool
    data: ParsedSubscription | None = None
    error: str | None = None
    reason: str | None = None
    status_code: int = 200
    stage_reached: ExtractionStage = ExtractionStage.RECEIVED
    failed_at: ExtractionStage | None = None

    @classmethod
    def done(cls, data: ParsedSubscription) -> ExtractionResult:
        return cls(success=True, data=data, stage_reached=ExtractionStage.DONE)

    @classmethod
    def failed(cls, error: ExtractionError, stage: ExtractionStage) -> ExtractionResult:
        """Failure after reaching `stage`; the terminal stage is always FAILED."""
        return cls(
            success=False,
            error=error.message,
            reason=error.reason,
            status_code=error.status_code,
            stage_reached=ExtractionStage.FAILED,
            failed_at=stage,
        )

    def to_response(self) -> dict[str, object]:
        """Render as the public `{success, data}` / `{success, error}` envelope."""
        if self.success and self.data is not None:
            return {"success": True, "data": self.data.model_dump(mode="json")}
        return {"success": False, "error": self.error}
