"""Prompt templates for subscription extraction."""

from __future__ import annotations

SUBSCRIPTION_EXTRACTION_PROMPT = """You are an expert at extracting subscription information from emails.

Analyze the following email text and extract:
1. service_name: The name of the subscription service (e.g., "Netflix", "Spotify Premium")
2. cost: The monthly cost as a number (e.g., 15.99). If it's yearly, divide by 12.
3. currency: The 3-letter currency code (e.g., "USD", "EUR", "GBP", "RON", "CAD", "AUD", "JPY"). Detect from symbols like $, €, £, lei, ¥ or text like "USD", "EUR", etc. Default to "USD" if unclear.
4. renewal_date: The next renewal/billing date in YYYY-MM-DD format. If only month and day are provided, assume year {current_year} or {next_year} (whichever makes the date in the future).
5. cancellation_url: The cancellation/account settings URL for this service.
6. website_url: The main website URL for this service (e.g., "https://netflix.com" for Netflix).

Return ONLY a valid JSON object with these exact fields. No markdown, no explanation, just the JSON.

Example: {{"service_name": "Netflix", "cost": 15.99, "currency": "USD", "renewal_date": "{current_year}-01-15", "cancellation_url": "https://netflix.com/cancelplan", "website_url": "https://netflix.com"}}

Email:
{email_text}"""


def build_extraction_prompt(email_text: str, current_year: int) -> str:
    """Render the extraction prompt; the email body is embedded verbatim."""
    return SUBSCRIPTION_EXTRACTION_PROMPT.format(
        current_year=current_year,
        next_year=current_year + 1,
        email_text=email_text,
    )
