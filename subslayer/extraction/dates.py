"""
Renewal date normalization.

Models frequently return dates without a year ("Jan 15"), with a stale year
copied from the email ("2023-01-15"), or in a local numeric format ("15/01").
DateNormalizer turns any of these into a calendar date that is never before
"today" in the configured time zone.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import UTC, date, datetime, tzinfo
from zoneinfo import ZoneInfo

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from subslayer.config import PIPELINE_YEAR_HORIZON
from subslayer.infrastructure.settings import TIMEZONE
from subslayer.extraction.errors import DateUnparseable
from subslayer.observability.logging import get_logger
from subslayer.observability.telemetry import counter

logger = get_logger(__name__)

# Numeric "month/day" or "month-day"; lookarounds stop it matching inside a year
MONTH_DAY_PATTERN = re.compile(r"(?<!\d)(\d{1,2})[/\-](\d{1,2})(?!\d)")


def _month_day(first: int, second: int) -> tuple[int, int] | None:
    """Read a numeric pair as (month, day), falling back to day/month order."""
    if 1 <= first <= 12 and 1 <= second <= 31:
        return first, second
    if 1 <= second <= 12 and 1 <= first <= 31:
        return second, first
    return None


def _build_date(year: int, month: int, day: int) -> date:
    # relativedelta(day=...) clamps to month end (Feb 29 -> Feb 28 in common years)
    return date(year, month, 1) + relativedelta(day=day)


class DateNormalizer:
    """
    Resolve ambiguous date strings to a future (or today) calendar date.

    Args:
        tz: Reference time zone name or tzinfo used to decide what "today" is
        clock: Callable returning the current instant; injected for tests
        year_horizon: Years ahead of the current year still trusted as-is
    """

    def __init__(
        self,
        tz: str | tzinfo = TIMEZONE,
        clock: Callable[[], datetime] | None = None,
        year_horizon: int = PIPELINE_YEAR_HORIZON,
    ):
        self.tz = ZoneInfo(tz) if isinstance(tz, str) else tz
        self._clock = clock or (lambda: datetime.now(UTC))
        self.year_horizon = year_horizon

    def today(self, reference_now: datetime | date | None = None) -> date:
        """Calendar date of the reference instant in the normalizer's time zone."""
        now = reference_now if reference_now is not None else self._clock()
        if not isinstance(now, datetime):
            return now
        if now.tzinfo is None:
            now = now.replace(tzinfo=self.tz)
        return now.astimezone(self.tz).date()

    def normalize(self, date_text: str, reference_now: datetime | date | None = None) -> date:
        """
        Normalize a date string to a date on or after the reference date.

        Args:
            date_text: Date-like string in any common format
            reference_now: Anchor instant; defaults to the injected clock

        Returns:
            Normalized calendar date

        Raises:
            DateUnparseable: If no date can be recovered from date_text
        """
        text = (date_text or "").strip()
        if not text:
            raise DateUnparseable(date_text or "")

        today = self.today(reference_now)
        parsed = self._parse(text, today.year)

        if parsed is not None and self._year_is_reliable(parsed.year, today.year):
            result = parsed
        else:
            rebuilt = self._rebuild_in_current_year(text, parsed, today)
            if rebuilt is None:
                counter("extraction.dates.unparseable")
                logger.warning("Unparseable renewal date (length=%d)", len(text))
                raise DateUnparseable(text)
            result = rebuilt

        if result < today:
            result = result + relativedelta(years=1)
            counter("extraction.dates.rolled_forward")

        return result

    def normalize_iso(self, date_text: str, reference_now: datetime | date | None = None) -> str:
        """Same as normalize(), serialized as YYYY-MM-DD."""
        return self.normalize(date_text, reference_now).isoformat()

    def _parse(self, text: str, current_year: int) -> date | None:
        default = datetime(current_year, 1, 1)
        for candidate in (text, f"{text} {current_year}"):
            try:
                return date_parser.parse(candidate, default=default).date()
            except (ValueError, OverflowError):
                continue
        return None

    def _year_is_reliable(self, year: int, current_year: int) -> bool:
        return current_year <= year <= current_year + self.year_horizon

    def _rebuild_in_current_year(
        self, text: str, parsed: date | None, today: date
    ) -> date | None:
        """Keep month/day, replace an untrusted year, roll past dates to next year."""
        month_day: tuple[int, int] | None = None

        match = MONTH_DAY_PATTERN.search(text)
        if match:
            month_day = _month_day(int(match.group(1)), int(match.group(2)))

        if month_day is None and parsed is not None:
            month_day = (parsed.month, parsed.day)

        if month_day is None:
            return None

        month, day = month_day
        rebuilt = _build_date(today.year, month, day)
        if rebuilt < today:
            rebuilt = _build_date(today.year + 1, month, day)
        counter("extraction.dates.year_replaced")
        return rebuilt
