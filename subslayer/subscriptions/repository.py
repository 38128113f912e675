"""
Subscription Repository - owner-scoped CRUD for the subscriptions table.

Rows are never deleted; cancellation flips `status` to cancelled.
"""

from __future__ import annotations

import uuid
from datetime import date, timedelta
from typing import Any

from subslayer.infrastructure.database import db_transaction, get_db_connection, retry_on_db_lock
from subslayer.observability.logging import get_logger
from subslayer.subscriptions.models import (
    Subscription,
    SubscriptionCreate,
    SubscriptionStatus,
    utc_now,
)

logger = get_logger(__name__)

_NOT_CANCELLED = "status != 'cancelled'"


class SubscriptionRepository:
    """
    Repository for Subscription persistence.

    Every user-facing method takes the owner id and filters on it.
    """

    @staticmethod
    @retry_on_db_lock()
    def insert(fields: SubscriptionCreate | dict[str, Any], owner_id: str) -> Subscription:
        """
        Persist a confirmed subscription for owner_id.

        Args:
            fields: Subscription fields (owner in `fields` is ignored)
            owner_id: Authenticated user id

        Returns:
            The stored Subscription with generated id and timestamps
        """
        if isinstance(fields, SubscriptionCreate):
            data = fields.model_dump()
        else:
            data = dict(fields)
        data["user_id"] = owner_id
        create = SubscriptionCreate(**data)

        now = utc_now()
        subscription = Subscription(
            id=str(uuid.uuid4()),
            user_id=owner_id,
            service_name=create.service_name,
            cost=create.cost,
            currency=create.currency,
            renewal_date=create.renewal_date,
            status=create.status,
            cancellation_url=create.cancellation_url,
            website_url=create.website_url,
            can_cancel_via_api=create.can_cancel_via_api,
            created_at=now,
            updated_at=now,
        )

        with db_transaction() as conn:
            conn.execute(
                """
                INSERT INTO subscriptions (
                    id, user_id, service_name, cost, currency, renewal_date,
                    status, cancellation_url, website_url, can_cancel_via_api,
                    created_at, updated_at
                ) VALUES (
                    :id, :user_id, :service_name, :cost, :currency, :renewal_date,
                    :status, :cancellation_url, :website_url, :can_cancel_via_api,
                    :created_at, :updated_at
                )
                """,
                subscription.to_db_dict(),
            )

        logger.info("Created subscription %s for user %s", subscription.id, owner_id)
        return subscription

    @staticmethod
    def get(subscription_id: str, owner_id: str) -> Subscription | None:
        """Get a subscription by id, only if owner_id owns it."""
        with get_db_connection() as conn:
            row = conn.execute(
                "SELECT * FROM subscriptions WHERE id = ? AND user_id = ?",
                (subscription_id, owner_id),
            ).fetchone()

        if not row:
            return None
        return Subscription.from_db_row(dict(row))

    @staticmethod
    @retry_on_db_lock()
    def update_status(
        subscription_id: str, owner_id: str, status: SubscriptionStatus
    ) -> Subscription | None:
        """
        Set the status of an owned subscription.

        Returns:
            Updated Subscription, or None if it does not exist for this owner
        """
        status_value = status.value if isinstance(status, SubscriptionStatus) else str(status)
        SubscriptionStatus(status_value)

        with db_transaction() as conn:
            cursor = conn.execute(
                """
                UPDATE subscriptions
                SET status = ?, updated_at = ?
                WHERE id = ? AND user_id = ?
                """,
                (status_value, utc_now().isoformat(), subscription_id, owner_id),
            )
            updated = cursor.rowcount

        if not updated:
            logger.warning(
                "Status update skipped: subscription %s not found for user %s",
                subscription_id,
                owner_id,
            )
            return None

        logger.info("Subscription %s status -> %s", subscription_id, status_value)
        return SubscriptionRepository.get(subscription_id, owner_id)

    @staticmethod
    def list_active(owner_id: str, include_cancelled: bool = False) -> list[Subscription]:
        """
        List an owner's subscriptions ordered by renewal date ascending.

        Cancelled rows are excluded unless include_cancelled is set.
        """
        query = "SELECT * FROM subscriptions WHERE user_id = ?"
        if not include_cancelled:
            query += f" AND {_NOT_CANCELLED}"
        query += " ORDER BY renewal_date ASC, created_at ASC"

        with get_db_connection() as conn:
            rows = conn.execute(query, (owner_id,)).fetchall()

        return [Subscription.from_db_row(dict(row)) for row in rows]

    @staticmethod
    def list_renewing_between(start: date, end: date) -> list[Subscription]:
        """
        List non-cancelled subscriptions of all users renewing in [start, end].

        Used by the reminder job, which runs without a user context.
        """
        with get_db_connection() as conn:
            rows = conn.execute(
                f"""
                SELECT * FROM subscriptions
                WHERE {_NOT_CANCELLED}
                  AND renewal_date >= ? AND renewal_date <= ?
                ORDER BY user_id, renewal_date ASC
                """,
                (start.isoformat(), end.isoformat()),
            ).fetchall()

        return [Subscription.from_db_row(dict(row)) for row in rows]

    @staticmethod
    @retry_on_db_lock()
    def refresh_statuses(today: date, window_days: int) -> int:
        """
        Move active subscriptions renewing within the window to expiring_soon.

        Subscriptions whose renewal moved back outside the window return to
        active. Cancelled rows are never touched.

        Returns:
            Number of rows updated
        """
        horizon = (today + timedelta(days=window_days)).isoformat()
        now = utc_now().isoformat()

        with db_transaction() as conn:
            soon = conn.execute(
                """
                UPDATE subscriptions SET status = 'expiring_soon', updated_at = ?
                WHERE status = 'active' AND renewal_date >= ? AND renewal_date <= ?
                """,
                (now, today.isoformat(), horizon),
            ).rowcount
            back = conn.execute(
                """
                UPDATE subscriptions SET status = 'active', updated_at = ?
                WHERE status = 'expiring_soon' AND renewal_date > ?
                """,
                (now, horizon),
            ).rowcount

        if soon or back:
            logger.info("Refreshed statuses: %d expiring_soon, %d back to active", soon, back)
        return soon + back


class UserRepository:
    """Known users, recorded on authentication so jobs can address them."""

    @staticmethod
    @retry_on_db_lock()
    def upsert(user_id: str, email: str | None) -> None:
        """Insert or refresh a user row. Users without an email are not recorded."""
        if not email:
            return

        now = utc_now().isoformat()
        with db_transaction() as conn:
            conn.execute(
                """
                INSERT INTO users (id, email, created_at, last_seen_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    email = excluded.email,
                    last_seen_at = excluded.last_seen_at
                """,
                (user_id, email, now, now),
            )

    @staticmethod
    def get_email(user_id: str) -> str | None:
        with get_db_connection() as conn:
            row = conn.execute("SELECT email FROM users WHERE id = ?", (user_id,)).fetchone()
        return row["email"] if row else None

    @staticmethod
    def get_emails(user_ids: list[str]) -> dict[str, str]:
        """Map user id to email for the given ids; unknown ids are omitted."""
        if not user_ids:
            return {}
        placeholders = ",".join("?" for _ in user_ids)
        with get_db_connection() as conn:
            rows = conn.execute(
                f"SELECT id, email FROM users WHERE id IN ({placeholders})",
                list(user_ids),
            ).fetchall()
        return {row["id"]: row["email"] for row in rows}
