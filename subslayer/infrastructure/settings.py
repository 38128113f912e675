"""
Application-wide settings and environment configuration
"""

from __future__ import annotations

import os

# Environment
ENV = os.getenv("SUBSLAYER_ENV", "development")

# API Configuration
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))
LOG_LEVEL = os.getenv("SUBSLAYER_LOG_LEVEL", os.getenv("LOG_LEVEL", "INFO"))

# Completion provider: "groq" (chat-completion envelope) or "gemini" (generate-content envelope)
LLM_PROVIDER = os.getenv("SUBSLAYER_LLM_PROVIDER", "groq").lower()

# Groq / OpenAI-compatible chat completions
GROQ_API_URL = os.getenv("GROQ_API_URL", "https://api.groq.com/openai/v1/chat/completions")
GROQ_MODEL = os.getenv("GROQ_MODEL", "llama-3.1-8b-instant")

# Gemini generate-content
GEMINI_API_BASE = os.getenv(
    "GEMINI_API_BASE", "https://generativelanguage.googleapis.com/v1beta/models"
)
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash-001")

# Sampling: low temperature, short bounded output
LLM_TEMPERATURE = float(os.getenv("SUBSLAYER_LLM_TEMPERATURE", "0.1"))
LLM_MAX_TOKENS = int(os.getenv("SUBSLAYER_LLM_MAX_TOKENS", "300"))

# Auth provider (Supabase-compatible /auth/v1/user endpoint)
AUTH_URL = os.getenv("SUBSLAYER_AUTH_URL", os.getenv("SUPABASE_URL", ""))
AUTH_API_KEY = os.getenv("SUBSLAYER_AUTH_API_KEY", os.getenv("SUPABASE_ANON_KEY", ""))

# Public URL used in reminder emails
APP_URL = os.getenv("SUBSLAYER_APP_URL", "https://subslayer.vercel.app")

# Normalizer reference time zone
TIMEZONE = os.getenv("SUBSLAYER_TIMEZONE", "UTC")


def is_production() -> bool:
    """Check if running in production"""
    return ENV == "production"


def is_development() -> bool:
    """Check if running in development"""
    return ENV == "development"
