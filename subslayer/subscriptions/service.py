"""
Subscription presentation and aggregation helpers.

Pure functions over Subscription rows: renewal countdowns, urgency, where
to send the user to cancel, spend categories and the spending summary.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from typing import Any
from urllib.parse import quote_plus

from subslayer.config import URGENCY_DANGER_DAYS, URGENCY_SAFE_DAYS
from subslayer.subscriptions.models import (
    SpendingSummary,
    Subscription,
    SubscriptionStatus,
    Urgency,
)

# Ordered: first match wins
KNOWN_CANCELLATION_URLS: dict[str, str] = {
    "netflix": "https://www.netflix.com/cancelplan",
    "spotify": "https://www.spotify.com/account/subscription/",
    "spotify premium": "https://www.spotify.com/account/subscription/",
    "adobe": "https://account.adobe.com/plans",
    "adobe creative cloud": "https://account.adobe.com/plans",
    "github": "https://github.com/settings/billing",
    "github pro": "https://github.com/settings/billing",
    "chatgpt": "https://chat.openai.com/settings/subscription",
    "chatgpt plus": "https://chat.openai.com/settings/subscription",
    "openai": "https://platform.openai.com/account/billing",
    "figma": "https://www.figma.com/settings",
    "youtube": "https://www.youtube.com/paid_memberships",
    "youtube premium": "https://www.youtube.com/paid_memberships",
    "amazon prime": "https://www.amazon.com/gp/primecentral",
    "apple music": "https://support.apple.com/en-us/HT202039",
    "disney+": "https://www.disneyplus.com/account",
    "hulu": "https://secure.hulu.com/account",
    "hbo max": "https://www.max.com/account",
    "max": "https://www.max.com/account",
}

SEARCH_FALLBACK_URL = "https://www.google.com/search?q=cancel+{query}+subscription"

CATEGORY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "Entertainment": (
        "netflix", "spotify", "hulu", "disney", "hbo", "max", "youtube",
        "twitch", "apple music", "amazon prime", "peacock", "paramount",
    ),
    "Productivity": (
        "adobe", "figma", "notion", "slack", "zoom", "microsoft", "office",
        "dropbox", "google", "evernote", "todoist", "asana", "trello",
        "linear", "canva",
    ),
    "Development": (
        "github", "gitlab", "vercel", "netlify", "aws", "azure",
        "digitalocean", "heroku", "docker", "jetbrains", "openai",
        "chatgpt", "copilot", "cursor",
    ),
    "Gaming": (
        "xbox", "playstation", "nintendo", "steam", "ea play", "ubisoft",
        "game pass", "humble",
    ),
    "Learning": (
        "medium", "substack", "nyt", "times", "journal", "coursera",
        "udemy", "skillshare", "masterclass", "linkedin learning",
    ),
}
DEFAULT_CATEGORY = "Other"


def days_until_renewal(renewal_date: date, today: date) -> int:
    """Whole days from today to renewal_date (negative when overdue)."""
    return (renewal_date - today).days


def urgency(days: int) -> Urgency:
    """Danger within URGENCY_DANGER_DAYS, safe beyond URGENCY_SAFE_DAYS, else warning."""
    if days <= URGENCY_DANGER_DAYS:
        return Urgency.DANGER
    if days > URGENCY_SAFE_DAYS:
        return Urgency.SAFE
    return Urgency.WARNING


def countdown_label(days: int) -> str:
    if days == 0:
        return "Renews today!"
    if days == 1:
        return "Renews tomorrow"
    if days < 0:
        return "Renewal overdue"
    return f"{days} days remaining"


def resolve_cancellation_url(subscription: Subscription) -> str:
    """
    Where to send the user to cancel.

    Stored URL first, then the known-service table (substring match in
    either direction), then a web search for the service name.
    """
    if subscription.cancellation_url:
        return subscription.cancellation_url

    name = subscription.service_name.strip().lower()
    if name:
        for key, url in KNOWN_CANCELLATION_URLS.items():
            if key in name or name in key:
                return url

    return SEARCH_FALLBACK_URL.format(query=quote_plus(subscription.service_name.strip()))


def categorize(service_name: str) -> str:
    name = service_name.lower()
    for category, keywords in CATEGORY_KEYWORDS.items():
        if any(keyword in name for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


def summarize_spending(subscriptions: Iterable[Subscription]) -> SpendingSummary:
    """
    Aggregate monthly spend of non-cancelled subscriptions.

    `total` adds costs regardless of currency, as the dashboard does;
    `by_currency` keeps the per-currency split for callers that care.
    """
    summary = SpendingSummary()
    for subscription in subscriptions:
        if subscription.status == SubscriptionStatus.CANCELLED.value:
            continue
        cost = subscription.cost
        category = categorize(subscription.service_name)
        summary.total += cost
        summary.by_currency[subscription.currency] = (
            summary.by_currency.get(subscription.currency, 0.0) + cost
        )
        summary.by_category[category] = summary.by_category.get(category, 0.0) + cost
        summary.count += 1

    summary.total = round(summary.total, 2)
    summary.by_currency = {k: round(v, 2) for k, v in summary.by_currency.items()}
    summary.by_category = {k: round(v, 2) for k, v in summary.by_category.items()}
    return summary


def present(subscription: Subscription, today: date) -> dict[str, Any]:
    """Render a subscription for the list endpoint."""
    days = days_until_renewal(subscription.renewal_date, today)
    payload = subscription.model_dump(mode="json")
    payload.update(
        {
            "days_until_renewal": days,
            "urgency": urgency(days).value,
            "countdown": countdown_label(days),
            "category": categorize(subscription.service_name),
            "resolved_cancellation_url": resolve_cancellation_url(subscription),
        }
    )
    return payload
