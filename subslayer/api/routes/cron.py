"""Scheduler-triggered endpoints."""

from __future__ import annotations

from datetime import date
from typing import Any

from fastapi import APIRouter, Depends

from subslayer.api.middleware.auth import require_cron_auth
from subslayer.api.routes.subscriptions import get_today
from subslayer.config import REMINDER_WINDOW_DAYS
from subslayer.notifications.renewals import RenewalReminderJob
from subslayer.subscriptions.repository import SubscriptionRepository

router = APIRouter(prefix="/api/cron", tags=["cron"])


def get_reminder_job() -> RenewalReminderJob:
    return RenewalReminderJob(window_days=REMINDER_WINDOW_DAYS)


@router.get("/check-renewals")
def check_renewals(
    _authenticated: bool = Depends(require_cron_auth),
    job: RenewalReminderJob = Depends(get_reminder_job),
    today: date = Depends(get_today),
) -> dict[str, Any]:
    """Refresh expiring_soon statuses and email owners about upcoming renewals."""
    SubscriptionRepository.refresh_statuses(today, job.window_days)
    report = job.run(today)

    message = "Renewal check complete" if report.subscriptions_found else "No upcoming renewals"
    return {"message": message, **report.to_dict()}
