"""Centralized configuration for the SubSlayer backend.

Re-exports everything from subslayer.infrastructure.settings, then adds typed
constants for database, pipeline, LLM, auth, reminders and API settings.
Environment variable overrides use safe defaults so the app starts without
extra env configuration.

Credentials are resolved through resolve_credential(), which walks a fixed
precedence list of variable names and logs which one was used.
"""

from __future__ import annotations

import os

from subslayer.infrastructure.settings import *  # noqa: F401, F403
from subslayer.infrastructure.settings import LLM_PROVIDER
from subslayer.observability.logging import get_logger

logger = get_logger(__name__)

# --- App ---
APP_VERSION: str = "1.0.0"

# --- Database ---
DB_POOL_SIZE: int = int(os.getenv("SUBSLAYER_DB_POOL_SIZE", "5"))
DB_POOL_TIMEOUT: float = float(os.getenv("SUBSLAYER_DB_POOL_TIMEOUT", "5.0"))
DB_CONNECT_TIMEOUT: float = float(os.getenv("SUBSLAYER_DB_CONNECT_TIMEOUT", "30.0"))
DB_RETRY_MAX: int = int(os.getenv("SUBSLAYER_DB_RETRY_MAX", "5"))
DB_RETRY_BASE_DELAY: float = float(os.getenv("SUBSLAYER_DB_RETRY_BASE_DELAY", "0.1"))
DB_RETRY_MAX_DELAY: float = float(os.getenv("SUBSLAYER_DB_RETRY_MAX_DELAY", "2.0"))
DB_RETRY_JITTER: float = float(os.getenv("SUBSLAYER_DB_RETRY_JITTER", "0.1"))

# --- Extraction Pipeline ---
PIPELINE_MAX_EMAIL_CHARS: int = 20000
PIPELINE_YEAR_HORIZON: int = 5
DEFAULT_CURRENCY: str = "USD"

# --- LLM ---
LLM_TIMEOUT_SECONDS: float = float(os.getenv("SUBSLAYER_LLM_TIMEOUT", "30"))
LLM_ERROR_BODY_PREVIEW: int = 200

# --- Auth ---
AUTH_CACHE_MAX_SIZE: int = 1000
AUTH_CACHE_TTL_SECONDS: int = int(os.getenv("SUBSLAYER_AUTH_CACHE_TTL", "600"))

# --- Renewals ---
REMINDER_WINDOW_DAYS: int = int(os.getenv("SUBSLAYER_REMINDER_WINDOW_DAYS", "3"))
URGENCY_DANGER_DAYS: int = 3
URGENCY_SAFE_DAYS: int = 10

# --- SMTP ---
SMTP_MAX_RETRIES: int = int(os.getenv("SUBSLAYER_SMTP_MAX_RETRIES", "3"))


# Precedence lists, first configured name wins
LLM_KEY_PRECEDENCE: dict[str, tuple[str, ...]] = {
    "groq": ("SUBSLAYER_LLM_API_KEY", "GROQ_API_KEY"),
    "gemini": ("SUBSLAYER_LLM_API_KEY", "GEMINI_API_KEY", "GOOGLE_API_KEY"),
}
CRON_SECRET_PRECEDENCE: tuple[str, ...] = ("SUBSLAYER_CRON_SECRET", "CRON_SECRET")


def resolve_credential(*names: str) -> tuple[str, str] | None:
    """
    Resolve a credential from environment variables in precedence order.

    Args:
        names: Variable names, highest precedence first

    Returns:
        (variable_name, value) for the first non-empty variable, or None
    """
    for name in names:
        value = os.getenv(name, "").strip()
        if value:
            logger.debug("Resolved credential from %s", name)
            return name, value
    return None


def resolve_llm_api_key(provider: str | None = None) -> str | None:
    """Return the API key for the configured completion provider, if any."""
    provider = (provider or os.getenv("SUBSLAYER_LLM_PROVIDER", LLM_PROVIDER)).lower()
    names = LLM_KEY_PRECEDENCE.get(provider, ("SUBSLAYER_LLM_API_KEY",))
    resolved = resolve_credential(*names)
    if resolved is None:
        return None
    name, value = resolved
    if name != names[0]:
        logger.info("Using %s for %s completion provider", name, provider)
    return value


def resolve_cron_secret() -> str | None:
    resolved = resolve_credential(*CRON_SECRET_PRECEDENCE)
    return resolved[1] if resolved else None
