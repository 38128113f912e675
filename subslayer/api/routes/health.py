"""Health check endpoint for SubSlayer API.

Provides a liveness probe plus credential readiness.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter

from subslayer.config import APP_VERSION, resolve_llm_api_key
from subslayer.infrastructure import settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> dict[str, Any]:
    """Health check endpoint.

    Reports whether an LLM credential is configured for the active provider
    (does not make an API call, only checks presence).
    """
    return {
        "status": "healthy",
        "service": "SubSlayer API",
        "version": APP_VERSION,
        "timestamp": datetime.now(UTC).isoformat(),
        "llm": {
            "provider": settings.LLM_PROVIDER,
            "ready": resolve_llm_api_key(settings.LLM_PROVIDER) is not None,
        },
        "auth": {"configured": bool(settings.AUTH_URL)},
    }
