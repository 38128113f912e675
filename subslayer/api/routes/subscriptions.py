"""Subscription CRUD endpoints.

All routes are scoped to the authenticated user.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field, field_validator

from subslayer.api.middleware.user_auth import AuthenticatedUser, get_current_user
from subslayer.extraction.dates import DateNormalizer
from subslayer.observability.logging import get_logger
from subslayer.observability.telemetry import counter
from subslayer.subscriptions.models import SpendingSummary, SubscriptionCreate, SubscriptionStatus
from subslayer.subscriptions.repository import SubscriptionRepository
from subslayer.subscriptions.service import present, resolve_cancellation_url, summarize_spending
from subslayer.utils.error_sanitizer import get_safe_error_detail
from subslayer.utils.validators import (
    ValidationError,
    normalize_absolute_url,
    normalize_currency,
    validate_subscription_id,
)

router = APIRouter(prefix="/api", tags=["subscriptions"])
logger = get_logger(__name__)


def get_today() -> date:
    """Dependency: today's date in the configured reference time zone."""
    return DateNormalizer().today()


# ============================================================================
# Request/Response Models
# ============================================================================


class SubscriptionIn(BaseModel):
    """A confirmed extraction the user wants to track."""

    service_name: str = Field(..., min_length=1, max_length=200)
    cost: float = Field(..., gt=0)
    currency: str = "USD"
    renewal_date: date
    cancellation_url: str | None = None
    website_url: str | None = None
    can_cancel_via_api: bool = False

    @field_validator("currency")
    @classmethod
    def currency_code(cls, v: str) -> str:
        return normalize_currency(v)

    @field_validator("cancellation_url", "website_url")
    @classmethod
    def absolute_url(cls, v: str | None) -> str | None:
        return normalize_absolute_url(v)


class CancelRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    subscription_id: str | None = Field(default=None, alias="subscriptionId")


# ============================================================================
# Endpoints
# ============================================================================


@router.get("/subscriptions")
def list_subscriptions(
    include_cancelled: bool = Query(False),
    user: AuthenticatedUser = Depends(get_current_user),
    today: date = Depends(get_today),
) -> dict[str, Any]:
    """List the caller's subscriptions, soonest renewal first."""
    subscriptions = SubscriptionRepository.list_active(user.id, include_cancelled=include_cancelled)
    return {
        "subscriptions": [present(s, today) for s in subscriptions],
        "count": len(subscriptions),
    }


@router.post("/subscriptions", status_code=status.HTTP_201_CREATED)
def create_subscription(
    body: SubscriptionIn,
    user: AuthenticatedUser = Depends(get_current_user),
    today: date = Depends(get_today),
) -> dict[str, Any]:
    """Persist a confirmed subscription for the caller."""
    try:
        subscription = SubscriptionRepository.insert(
            SubscriptionCreate(user_id=user.id, **body.model_dump()), user.id
        )
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=get_safe_error_detail(e, 500, context="Failed to save subscription"),
        ) from e

    counter("subscriptions.created")
    return {"success": True, "subscription": present(subscription, today)}


@router.get("/subscriptions/summary", response_model=SpendingSummary)
def spending_summary(user: AuthenticatedUser = Depends(get_current_user)) -> SpendingSummary:
    """Monthly spend for the caller's non-cancelled subscriptions."""
    return summarize_spending(SubscriptionRepository.list_active(user.id))


@router.post("/cancel-subscription")
def cancel_subscription(
    body: CancelRequest,
    user: AuthenticatedUser = Depends(get_current_user),
) -> dict[str, Any]:
    """
    Mark a subscription cancelled and return where to finish cancelling.

    Only the owner can cancel; other users' ids behave as not found.
    """
    try:
        subscription_id = validate_subscription_id(body.subscription_id)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    subscription = SubscriptionRepository.update_status(
        subscription_id, user.id, SubscriptionStatus.CANCELLED
    )
    if subscription is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subscription not found")

    counter("subscriptions.cancelled")
    logger.info("User %s cancelled subscription %s", user.id, subscription_id)
    return {
        "success": True,
        "message": "Subscription cancelled successfully",
        "subscriptionId": subscription_id,
        "cancellationUrl": resolve_cancellation_url(subscription),
    }
