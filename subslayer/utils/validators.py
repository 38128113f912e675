"""
Input validation utilities.

Validates values coming from users or from model output before they are
stored or echoed back.
"""

from __future__ import annotations

import re
from urllib.parse import urlparse

CURRENCY_CODE_PATTERN = re.compile(r"^[A-Z]{3}$")
SUBSCRIPTION_ID_PATTERN = re.compile(r"^[A-Za-z0-9-]+$")

MAX_URL_LENGTH = 2048
MAX_SUBSCRIPTION_ID_LENGTH = 64


class ValidationError(ValueError):
    """Raised when input validation fails."""


def normalize_currency(code: object, default: str = "USD") -> str:
    """
    Upper-case a currency code, falling back to default when not a 3-letter code.

    Args:
        code: Candidate code from model output or user input
        default: Code used when the candidate is missing or invalid

    Returns:
        A 3-letter upper-case code
    """
    if not isinstance(code, str):
        return default
    code = code.strip().upper()
    return code if CURRENCY_CODE_PATTERN.match(code) else default


def normalize_absolute_url(url: object) -> str | None:
    """
    Return url if it is an absolute http(s) URL, otherwise None.

    Model output sometimes contains "N/A", bare domains or relative paths;
    those are treated as absent rather than stored.
    """
    if not isinstance(url, str):
        return None

    url = url.strip()
    if not url or len(url) > MAX_URL_LENGTH:
        return None

    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None

    return url


def validate_subscription_id(subscription_id: str | None) -> str:
    """
    Validate a subscription identifier.

    Raises:
        ValidationError: If missing or malformed
    """
    if subscription_id is None or not subscription_id.strip():
        raise ValidationError("Subscription ID is required")

    subscription_id = subscription_id.strip()

    if len(subscription_id) > MAX_SUBSCRIPTION_ID_LENGTH:
        raise ValidationError("Subscription ID exceeds maximum length")

    if not SUBSCRIPTION_ID_PATTERN.match(subscription_id):
        raise ValidationError("Invalid subscription ID format")

    return subscription_id
