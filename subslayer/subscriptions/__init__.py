"""Tracked subscriptions: models, storage and presentation helpers."""

from subslayer.subscriptions.models import (
    SpendingSummary,
    Subscription,
    SubscriptionCreate,
    SubscriptionStatus,
    Urgency,
)
from subslayer.subscriptions.repository import SubscriptionRepository, UserRepository

__all__ = [
    "SpendingSummary",
    "Subscription",
    "SubscriptionCreate",
    "SubscriptionRepository",
    "SubscriptionStatus",
    "Urgency",
    "UserRepository",
]
