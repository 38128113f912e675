"""
Tests for the subscription repository.

Validates:
1. Inserts are owned by the caller and read back intact
2. Reads are owner-scoped and ordered by renewal date
3. Cancellation hides rows from default views without deleting them
4. Reminder queries span all users and skip cancelled rows
"""

from __future__ import annotations

from datetime import date

import pytest

from subslayer.infrastructure.database import get_db_connection
from subslayer.subscriptions.models import SubscriptionCreate, SubscriptionStatus
from subslayer.subscriptions.repository import SubscriptionRepository, UserRepository


def fields(name: str, renewal: date, cost: float = 9.99, **extra) -> dict:
    return {"service_name": name, "cost": cost, "renewal_date": renewal, **extra}


class TestInsert:
    def test_insert_and_get(self, db):
        created = SubscriptionRepository.insert(
            fields(
                "Netflix",
                date(2026, 1, 15),
                15.49,
                cancellation_url="https://www.netflix.com/cancelplan",
            ),
            "user-a",
        )

        loaded = SubscriptionRepository.get(created.id, "user-a")
        assert loaded is not None
        assert loaded.user_id == "user-a"
        assert loaded.service_name == "Netflix"
        assert loaded.cost == 15.49
        assert loaded.currency == "USD"
        assert loaded.renewal_date == date(2026, 1, 15)
        assert loaded.status == "active"
        assert loaded.can_cancel_via_api is False
        assert loaded.cancellation_url == "https://www.netflix.com/cancelplan"

    def test_owner_argument_wins_over_fields(self, db):
        created = SubscriptionRepository.insert(
            SubscriptionCreate(user_id="someone-else", **fields("Hulu", date(2025, 7, 1))),
            "user-a",
        )
        assert created.user_id == "user-a"
        assert SubscriptionRepository.get(created.id, "someone-else") is None

    def test_rejects_non_positive_cost(self, db):
        with pytest.raises(ValueError):
            SubscriptionRepository.insert(fields("Free", date(2025, 7, 1), 0), "user-a")


class TestOwnerScoping:
    def test_list_active_only_returns_own_rows_in_renewal_order(self, db):
        SubscriptionRepository.insert(fields("Later", date(2025, 9, 1)), "user-a")
        SubscriptionRepository.insert(fields("Sooner", date(2025, 6, 5)), "user-a")
        SubscriptionRepository.insert(fields("Other user", date(2025, 6, 2)), "user-b")

        names = [s.service_name for s in SubscriptionRepository.list_active("user-a")]
        assert names == ["Sooner", "Later"]

    def test_cannot_update_other_users_subscription(self, db):
        created = SubscriptionRepository.insert(fields("Netflix", date(2025, 7, 1)), "user-a")

        result = SubscriptionRepository.update_status(
            created.id, "user-b", SubscriptionStatus.CANCELLED
        )

        assert result is None
        assert SubscriptionRepository.get(created.id, "user-a").status == "active"

    def test_get_unknown_id(self, db):
        assert SubscriptionRepository.get("missing", "user-a") is None


class TestCancellation:
    def test_cancelled_rows_hidden_but_kept(self, db):
        keep = SubscriptionRepository.insert(fields("Spotify", date(2025, 7, 1)), "user-a")
        gone = SubscriptionRepository.insert(fields("Netflix", date(2025, 6, 20)), "user-a")

        updated = SubscriptionRepository.update_status(
            gone.id, "user-a", SubscriptionStatus.CANCELLED
        )

        assert updated.status == "cancelled"
        assert updated.updated_at >= gone.updated_at
        assert [s.id for s in SubscriptionRepository.list_active("user-a")] == [keep.id]
        everything = SubscriptionRepository.list_active("user-a", include_cancelled=True)
        assert {s.id for s in everything} == {keep.id, gone.id}

        with get_db_connection() as conn:
            count = conn.execute("SELECT COUNT(*) FROM subscriptions").fetchone()[0]
        assert count == 2

    def test_rejects_unknown_status(self, db):
        created = SubscriptionRepository.insert(fields("Netflix", date(2025, 7, 1)), "user-a")
        with pytest.raises(ValueError):
            SubscriptionRepository.update_status(created.id, "user-a", "paused")


class TestRenewalQueries:
    def test_list_renewing_between_is_inclusive_and_cross_user(self, db):
        SubscriptionRepository.insert(fields("Start", date(2025, 6, 1)), "user-a")
        SubscriptionRepository.insert(fields("End", date(2025, 6, 4)), "user-b")
        SubscriptionRepository.insert(fields("Outside", date(2025, 6, 5)), "user-a")
        cancelled = SubscriptionRepository.insert(fields("Cancelled", date(2025, 6, 2)), "user-a")
        SubscriptionRepository.update_status(cancelled.id, "user-a", SubscriptionStatus.CANCELLED)

        found = SubscriptionRepository.list_renewing_between(date(2025, 6, 1), date(2025, 6, 4))

        assert sorted(s.service_name for s in found) == ["End", "Start"]

    def test_refresh_statuses(self, db):
        soon = SubscriptionRepository.insert(fields("Soon", date(2025, 6, 3)), "user-a")
        later = SubscriptionRepository.insert(fields("Later", date(2025, 8, 1)), "user-a")
        cancelled = SubscriptionRepository.insert(fields("Cancelled", date(2025, 6, 2)), "user-a")
        SubscriptionRepository.update_status(cancelled.id, "user-a", SubscriptionStatus.CANCELLED)

        changed = SubscriptionRepository.refresh_statuses(date(2025, 6, 1), 3)

        assert changed == 1
        assert SubscriptionRepository.get(soon.id, "user-a").status == "expiring_soon"
        assert SubscriptionRepository.get(later.id, "user-a").status == "active"
        assert SubscriptionRepository.get(cancelled.id, "user-a").status == "cancelled"

        # Still listed as non-cancelled
        assert len(SubscriptionRepository.list_active("user-a")) == 2


class TestUserRepository:
    def test_upsert_and_lookup(self, db):
        UserRepository.upsert("user-a", "a@example.com")
        UserRepository.upsert("user-a", "new-a@example.com")
        UserRepository.upsert("user-b", "b@example.com")

        assert UserRepository.get_email("user-a") == "new-a@example.com"
        assert UserRepository.get_emails(["user-a", "user-b", "user-c"]) == {
            "user-a": "new-a@example.com",
            "user-b": "b@example.com",
        }

    def test_users_without_email_not_recorded(self, db):
        UserRepository.upsert("user-a", "")
        assert UserRepository.get_email("user-a") is None
        assert UserRepository.get_emails([]) == {}
