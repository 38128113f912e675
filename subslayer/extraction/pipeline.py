"""
Extraction pipeline - pasted email text to ParsedSubscription.

Linear stages, no loops and no retries:

    received -> prompted -> raw_response -> sanitized -> decoded
             -> validated -> normalized -> done

Any stage can end the run in `failed` with a specific reason. The only
suspension point is the completion call inside the extraction client.
"""

from __future__ import annotations

import json
import math
from datetime import date, datetime
from typing import Any

from subslayer.config import DEFAULT_CURRENCY, resolve_llm_api_key
from subslayer.extraction.dates import DateNormalizer
from subslayer.extraction.errors import (
    ConfigurationMissing,
    EmptyInput,
    ExtractionError,
    IncompleteExtraction,
    MalformedPayload,
)
from subslayer.extraction.sanitizer import sanitize
from subslayer.extraction.types import ExtractionResult, ExtractionStage, ParsedSubscription
from subslayer.llm.client import ExtractionClient
from subslayer.observability.logging import get_logger
from subslayer.observability.telemetry import counter, log_event
from subslayer.utils.validators import normalize_absolute_url, normalize_currency

logger = get_logger(__name__)


def decode_payload(text: str) -> dict[str, Any]:
    """
    Decode sanitized completion text into a JSON object.

    Raises:
        MalformedPayload: If the text is not JSON or not a JSON object
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedPayload() from e

    if not isinstance(data, dict):
        raise MalformedPayload("AI response was not a JSON object")

    return data


def validate_fields(data: dict[str, Any]) -> tuple[str, float, str]:
    """
    Check the required fields are present and typed.

    Returns:
        (service_name, cost, renewal_date_text)

    Raises:
        IncompleteExtraction: If any required field is missing or mistyped
    """
    service_name = data.get("service_name")
    cost = data.get("cost")
    renewal_date = data.get("renewal_date")

    if not isinstance(service_name, str) or not service_name.strip():
        raise IncompleteExtraction()
    # bool is an int subclass; "true" is not a price
    if isinstance(cost, bool) or not isinstance(cost, int | float):
        raise IncompleteExtraction()
    # json.loads accepts NaN, Infinity and overflowing literals like 1e999
    if not math.isfinite(cost) or cost <= 0:
        raise IncompleteExtraction()
    if not isinstance(renewal_date, str) or not renewal_date.strip():
        raise IncompleteExtraction()

    return service_name.strip(), float(cost), renewal_date.strip()


class ExtractionPipeline:
    """
    Orchestrates one extraction run.

    Args:
        client: Extraction client wrapping the completion provider
        normalizer: Date normalizer (its clock defines "today")
        api_key: Provider credential; resolved from the environment when omitted
    """

    def __init__(
        self,
        client: ExtractionClient | None = None,
        normalizer: DateNormalizer | None = None,
        api_key: str | None = None,
    ):
        self.client = client or ExtractionClient()
        self.normalizer = normalizer or DateNormalizer()
        self.api_key = api_key if api_key is not None else resolve_llm_api_key(
            self.client.provider.name
        )

    async def run(
        self, email_text: str, reference_now: datetime | date | None = None
    ) -> ExtractionResult:
        """
        Extract a subscription from email text.

        Args:
            email_text: Pasted email body
            reference_now: Anchor for date normalization (defaults to normalizer clock)

        Returns:
            ExtractionResult that is either done with data or failed with a reason
        """
        stage = ExtractionStage.RECEIVED
        try:
            if not isinstance(email_text, str) or not email_text.strip():
                raise EmptyInput()

            stage = ExtractionStage.PROMPTED
            if not self.api_key:
                logger.error("No API key configured for %s", self.client.provider.name)
                raise ConfigurationMissing(
                    f"API key for {self.client.provider.name} is not configured"
                )

            today = self.normalizer.today(reference_now)
            raw = await self.client.extract(email_text, self.api_key, current_year=today.year)

            stage = ExtractionStage.RAW_RESPONSE
            cleaned = sanitize(raw)

            stage = ExtractionStage.SANITIZED
            data = decode_payload(cleaned)

            stage = ExtractionStage.DECODED
            service_name, cost, renewal_text = validate_fields(data)

            stage = ExtractionStage.VALIDATED
            renewal_date = self.normalizer.normalize(renewal_text, today)

            stage = ExtractionStage.NORMALIZED
            parsed = ParsedSubscription(
                service_name=service_name,
                cost=cost,
                currency=normalize_currency(data.get("currency"), DEFAULT_CURRENCY),
                renewal_date=renewal_date,
                cancellation_url=normalize_absolute_url(data.get("cancellation_url")),
                website_url=normalize_absolute_url(data.get("website_url")),
            )

        except ExtractionError as e:
            counter(f"extraction.failed.{e.reason}")
            log_event("extraction.failed", reason=e.reason, stage=stage.value)
            return ExtractionResult.failed(e, stage)

        counter("extraction.success")
        log_event(
            "extraction.complete",
            service=parsed.service_name,
            currency=parsed.currency,
            renewal_date=parsed.renewal_date.isoformat(),
        )
        return ExtractionResult.done(parsed)
