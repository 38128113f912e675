"""
Subscription domain models.

A Subscription is a ParsedSubscription the user confirmed, owned by one user
and tracked through its renewal lifecycle.
"""

from __future__ import annotations

from datetime import UTC, date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utc_now() -> datetime:
    """Return current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


class SubscriptionStatus(str, Enum):
    """Lifecycle status of a tracked subscription."""

    ACTIVE = "active"
    EXPIRING_SOON = "expiring_soon"  # Renews within the reminder window
    CANCELLED = "cancelled"  # Set only by the cancel action


class Urgency(str, Enum):
    """Display urgency derived from days until renewal."""

    DANGER = "danger"
    WARNING = "warning"
    SAFE = "safe"


class Subscription(BaseModel):
    """A persisted subscription."""

    model_config = ConfigDict(use_enum_values=True)

    id: str = Field(..., description="Unique identifier (UUID)")
    user_id: str = Field(..., description="User who owns this subscription")
    service_name: str = Field(..., min_length=1)
    cost: float = Field(..., gt=0, description="Monthly-equivalent cost")
    currency: str = Field(default="USD", pattern=r"^[A-Z]{3}$")
    renewal_date: date
    status: SubscriptionStatus = Field(default=SubscriptionStatus.ACTIVE)
    cancellation_url: str | None = None
    website_url: str | None = None
    can_cancel_via_api: bool = False
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def to_db_dict(self) -> dict[str, Any]:
        """Convert to dict for database storage."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "service_name": self.service_name,
            "cost": self.cost,
            "currency": self.currency,
            "renewal_date": self.renewal_date.isoformat(),
            "status": self.status if isinstance(self.status, str) else self.status.value,
            "cancellation_url": self.cancellation_url,
            "website_url": self.website_url,
            "can_cancel_via_api": int(self.can_cancel_via_api),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> Subscription:
        """Create Subscription from database row."""
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            service_name=row["service_name"],
            cost=row["cost"],
            currency=row["currency"],
            renewal_date=date.fromisoformat(row["renewal_date"]),
            status=SubscriptionStatus(row["status"]),
            cancellation_url=row.get("cancellation_url"),
            website_url=row.get("website_url"),
            can_cancel_via_api=bool(row.get("can_cancel_via_api")),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


class SubscriptionCreate(BaseModel):
    """Input model for persisting a confirmed extraction."""

    user_id: str
    service_name: str = Field(..., min_length=1)
    cost: float = Field(..., gt=0)
    currency: str = Field(default="USD", pattern=r"^[A-Z]{3}$")
    renewal_date: date
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    cancellation_url: str | None = None
    website_url: str | None = None
    can_cancel_via_api: bool = False

    @field_validator("service_name")
    @classmethod
    def service_name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("service_name cannot be empty")
        return v.strip()


class SpendingSummary(BaseModel):
    """Monthly spend across a user's non-cancelled subscriptions."""

    total: float = 0.0
    by_currency: dict[str, float] = Field(default_factory=dict)
    by_category: dict[str, float] = Field(default_factory=dict)
    count: int = 0
