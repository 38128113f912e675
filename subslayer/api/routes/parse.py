"""Subscription extraction endpoint.

Turns pasted email text into a ParsedSubscription preview. Nothing is
stored here; the client confirms and posts to /api/subscriptions.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from subslayer.api.middleware.user_auth import AuthenticatedUser, get_current_user
from subslayer.config import PIPELINE_MAX_EMAIL_CHARS
from subslayer.extraction.errors import ExtractionError
from subslayer.extraction.pipeline import ExtractionPipeline
from subslayer.observability.logging import get_logger
from subslayer.observability.telemetry import time_block
from subslayer.utils.error_sanitizer import get_safe_error_detail

router = APIRouter(prefix="/api", tags=["parse"])
logger = get_logger(__name__)


def get_pipeline_factory() -> Callable[[], ExtractionPipeline]:
    """Dependency: builds pipelines with credentials resolved from the environment."""
    return ExtractionPipeline


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@router.post("/parse-subscription")
async def parse_subscription(
    request: Request,
    user: AuthenticatedUser = Depends(get_current_user),
    build_pipeline: Callable[[], ExtractionPipeline] = Depends(get_pipeline_factory),
) -> Any:
    """
    Extract subscription details from email text.

    Body: {"emailText": "..."}

    Returns:
        {"success": true, "data": {...}} or {"success": false, "error": "..."}
    """
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return _error("Email text is required", 400)

    email_text = body.get("emailText") if isinstance(body, dict) else None
    if not isinstance(email_text, str) or not email_text.strip():
        return _error("Email text is required", 400)
    if len(email_text) > PIPELINE_MAX_EMAIL_CHARS:
        return _error("Email text is too long", 400)

    logger.info("Parsing email for user %s (%d chars)", user.id, len(email_text))

    try:
        pipeline = build_pipeline()
        with time_block("api.parse_subscription"):
            result = await pipeline.run(email_text)
    except ExtractionError as e:
        logger.error("Extraction pipeline unavailable: %s", e.message)
        return _error(e.message, e.status_code)
    except Exception as e:
        detail = get_safe_error_detail(e, 500, context="Failed to parse email. Please try again.")
        return _error(detail, 500)

    if not result.success:
        logger.warning(
            "Extraction failed for user %s: %s at %s",
            user.id,
            result.reason,
            result.failed_at.value if result.failed_at else None,
        )
        return JSONResponse(status_code=result.status_code, content=result.to_response())

    return result.to_response()
