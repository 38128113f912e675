"""
Renewal reminder job.

Finds subscriptions renewing within the reminder window, groups them by
owner and emails each owner one summary. A failure for one user is logged
and counted; the job moves on to the next user.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import asdict, dataclass
from datetime import date, timedelta
from html import escape

from subslayer.config import REMINDER_WINDOW_DAYS
from subslayer.infrastructure.settings import APP_URL
from subslayer.notifications.delivery import ReminderDelivery
from subslayer.observability.logging import get_logger
from subslayer.observability.telemetry import counter, log_event
from subslayer.subscriptions.models import Subscription
from subslayer.subscriptions.repository import SubscriptionRepository, UserRepository
from subslayer.subscriptions.service import days_until_renewal

logger = get_logger(__name__)

CURRENCY_SYMBOLS = {"USD": "$", "EUR": "€", "GBP": "£", "INR": "₹", "JPY": "¥"}


@dataclass
class ReminderReport:
    subscriptions_found: int = 0
    users_notified: int = 0
    emails_sent: int = 0
    failures: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass
class ReminderEmail:
    subject: str
    text: str
    html: str


def format_amount(amount: float, currency: str) -> str:
    symbol = CURRENCY_SYMBOLS.get(currency)
    if symbol:
        return f"{symbol}{amount:.2f}"
    return f"{amount:.2f} {currency}"


def _format_total(subscriptions: list[Subscription]) -> str:
    totals: dict[str, float] = defaultdict(float)
    for subscription in subscriptions:
        totals[subscription.currency] += subscription.cost
    return " + ".join(format_amount(amount, currency) for currency, amount in totals.items())


def render_reminder(
    subscriptions: list[Subscription], today: date, window_days: int, app_url: str = APP_URL
) -> ReminderEmail:
    """
    Render one user's reminder.

    Lines read "• Netflix: $15.49 (renews in 2 days)"; mixed currencies are
    totalled per currency.
    """
    lines = []
    for subscription in subscriptions:
        days = days_until_renewal(subscription.renewal_date, today)
        unit = "day" if days == 1 else "days"
        cost = format_amount(subscription.cost, subscription.currency)
        lines.append(f"• {subscription.service_name}: {cost} (renews in {days} {unit})")

    count = len(subscriptions)
    total = _format_total(subscriptions)
    noun = "subscription" if count == 1 else "subscriptions"
    subject = f"{count} {noun} renewing soon - {total} total"

    body = "\n".join(lines)
    text = (
        f"The following subscriptions are renewing in the next {window_days} days:\n\n"
        f"{body}\n\nTotal: {total}\n\nWant to cancel? Open SubSlayer: {app_url}\n"
    )
    html = f"""
    <div style="font-family: monospace; padding: 20px;">
        <h1>SubSlayer Alert</h1>
        <p>The following subscriptions are renewing in the next {window_days} days:</p>
        <pre>{escape(body)}

Total: {escape(total)}</pre>
        <p>Want to cancel? <a href="{escape(app_url, quote=True)}">Open SubSlayer</a></p>
    </div>
    """
    return ReminderEmail(subject=subject, text=text, html=html)


class RenewalReminderJob:
    """
    Batch job behind the renewal cron endpoint.

    Args:
        repository: Subscription store (needs list_renewing_between)
        delivery: Reminder delivery (needs send)
        users: User store (needs get_emails)
        window_days: Days ahead to look, inclusive
    """

    def __init__(
        self,
        repository: type[SubscriptionRepository] | SubscriptionRepository = SubscriptionRepository,
        delivery: ReminderDelivery | None = None,
        users: type[UserRepository] | UserRepository = UserRepository,
        window_days: int = REMINDER_WINDOW_DAYS,
    ):
        self.repository = repository
        self.delivery = delivery or ReminderDelivery()
        self.users = users
        self.window_days = window_days

    def run(self, today: date) -> ReminderReport:
        end = today + timedelta(days=self.window_days)
        logger.info("Checking renewals between %s and %s", today, end)

        subscriptions = self.repository.list_renewing_between(today, end)
        report = ReminderReport(subscriptions_found=len(subscriptions))
        if not subscriptions:
            log_event("reminders.complete", **report.to_dict())
            return report

        by_user: dict[str, list[Subscription]] = defaultdict(list)
        for subscription in subscriptions:
            by_user[subscription.user_id].append(subscription)
        report.users_notified = len(by_user)

        emails = self.users.get_emails(list(by_user))

        for user_id, user_subscriptions in by_user.items():
            email = emails.get(user_id)
            if not email:
                logger.info("No email on record for user %s, skipping", user_id)
                counter("reminders.skipped_no_email")
                continue

            try:
                message = render_reminder(user_subscriptions, today, self.window_days)
                sent = self.delivery.send(email, message.subject, message.html, message.text)
            except Exception as e:
                logger.exception("Reminder for user %s failed: %s", user_id, e)
                sent = False

            if sent:
                report.emails_sent += 1
            else:
                report.failures += 1
                counter("reminders.failed")

        log_event("reminders.complete", **report.to_dict())
        return report
