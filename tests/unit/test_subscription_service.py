"""Unit tests for subscription presentation helpers."""

from __future__ import annotations

from datetime import date

import pytest

from subslayer.subscriptions.models import Subscription, SubscriptionStatus, Urgency
from subslayer.subscriptions.service import (
    categorize,
    countdown_label,
    days_until_renewal,
    present,
    resolve_cancellation_url,
    summarize_spending,
    urgency,
)

TODAY = date(2025, 6, 1)


def make_subscription(name: str = "Netflix", **overrides) -> Subscription:
    values = {
        "id": f"id-{name.lower().replace(' ', '-')}",
        "user_id": "user-a",
        "service_name": name,
        "cost": 10.0,
        "renewal_date": date(2025, 6, 10),
    }
    values.update(overrides)
    return Subscription(**values)


class TestCountdown:
    def test_days_until_renewal(self):
        assert days_until_renewal(date(2025, 6, 4), TODAY) == 3
        assert days_until_renewal(date(2025, 5, 30), TODAY) == -2

    @pytest.mark.parametrize(
        "days,expected",
        [(-1, Urgency.DANGER), (0, Urgency.DANGER), (3, Urgency.DANGER), (4, Urgency.WARNING),
         (10, Urgency.WARNING), (11, Urgency.SAFE)],
    )
    def test_urgency_thresholds(self, days, expected):
        assert urgency(days) == expected

    @pytest.mark.parametrize(
        "days,label",
        [(0, "Renews today!"), (1, "Renews tomorrow"), (-3, "Renewal overdue"), (12, "12 days remaining")],
    )
    def test_countdown_label(self, days, label):
        assert countdown_label(days) == label


class TestCancellationUrl:
    def test_stored_url_wins(self):
        subscription = make_subscription(cancellation_url="https://example.com/cancel")
        assert resolve_cancellation_url(subscription) == "https://example.com/cancel"

    def test_known_service(self):
        assert resolve_cancellation_url(make_subscription("Netflix Standard")) == (
            "https://www.netflix.com/cancelplan"
        )

    def test_known_service_partial_name(self):
        """A short name contained in a known key still matches."""
        assert resolve_cancellation_url(make_subscription("Hul")) == "https://secure.hulu.com/account"

    def test_search_fallback(self):
        url = resolve_cancellation_url(make_subscription("Acme Cloud & Co"))
        assert url == "https://www.google.com/search?q=cancel+Acme+Cloud+%26+Co+subscription"


class TestCategorize:
    @pytest.mark.parametrize(
        "name,category",
        [
            ("Netflix", "Entertainment"),
            ("Notion Plus", "Productivity"),
            ("GitHub Copilot", "Development"),
            ("Xbox Game Pass", "Gaming"),
            ("Coursera Plus", "Learning"),
            ("Gym membership", "Other"),
        ],
    )
    def test_categories(self, name, category):
        assert categorize(name) == category


class TestSpendingSummary:
    def test_totals(self):
        subscriptions = [
            make_subscription("Netflix", cost=15.49),
            make_subscription("Spotify", cost=9.99),
            make_subscription("GitHub", cost=4.0),
            make_subscription("Canal+", cost=20.0, currency="EUR"),
            make_subscription("Hulu", cost=7.99, status=SubscriptionStatus.CANCELLED),
        ]

        summary = summarize_spending(subscriptions)

        assert summary.count == 4
        assert summary.total == 49.48
        assert summary.by_currency == {"USD": 29.48, "EUR": 20.0}
        assert summary.by_category == {"Entertainment": 25.48, "Development": 4.0, "Other": 20.0}

    def test_empty(self):
        summary = summarize_spending([])
        assert summary.count == 0
        assert summary.total == 0.0


def test_present_adds_display_fields():
    payload = present(make_subscription("Spotify", renewal_date=date(2025, 6, 3)), TODAY)

    assert payload["renewal_date"] == "2025-06-03"
    assert payload["days_until_renewal"] == 2
    assert payload["urgency"] == "danger"
    assert payload["countdown"] == "2 days remaining"
    assert payload["category"] == "Entertainment"
    assert payload["resolved_cancellation_url"] == "https://www.spotify.com/account/subscription/"
