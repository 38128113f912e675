"""Unit tests for credential precedence resolution."""

from __future__ import annotations

import pytest

from subslayer.config import resolve_credential, resolve_cron_secret, resolve_llm_api_key

LLM_VARS = ["SUBSLAYER_LLM_API_KEY", "GROQ_API_KEY", "GEMINI_API_KEY", "GOOGLE_API_KEY"]


@pytest.fixture(autouse=True)
def clear_credentials(monkeypatch):
    for name in [*LLM_VARS, "SUBSLAYER_CRON_SECRET", "CRON_SECRET"]:
        monkeypatch.delenv(name, raising=False)


def test_first_configured_name_wins(monkeypatch):
    monkeypatch.setenv("B", "second")
    monkeypatch.setenv("C", "third")
    assert resolve_credential("A", "B", "C") == ("B", "second")


def test_blank_values_are_skipped(monkeypatch):
    monkeypatch.setenv("A", "   ")
    monkeypatch.setenv("B", "value")
    assert resolve_credential("A", "B") == ("B", "value")


def test_nothing_configured():
    assert resolve_credential("A", "B") is None
    assert resolve_llm_api_key("groq") is None


def test_groq_provider_key(monkeypatch):
    monkeypatch.setenv("GROQ_API_KEY", "gsk-test")
    monkeypatch.setenv("GEMINI_API_KEY", "gemini-test")
    assert resolve_llm_api_key("groq") == "gsk-test"


def test_generic_key_takes_precedence(monkeypatch):
    monkeypatch.setenv("SUBSLAYER_LLM_API_KEY", "generic")
    monkeypatch.setenv("GROQ_API_KEY", "gsk-test")
    assert resolve_llm_api_key("groq") == "generic"


def test_gemini_falls_back_to_google_key(monkeypatch):
    monkeypatch.setenv("GOOGLE_API_KEY", "google-test")
    assert resolve_llm_api_key("gemini") == "google-test"

    monkeypatch.setenv("GEMINI_API_KEY", "gemini-test")
    assert resolve_llm_api_key("gemini") == "gemini-test"


def test_groq_ignores_gemini_keys(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "gemini-test")
    assert resolve_llm_api_key("groq") is None


def test_cron_secret_precedence(monkeypatch):
    monkeypatch.setenv("CRON_SECRET", "legacy")
    assert resolve_cron_secret() == "legacy"
    monkeypatch.setenv("SUBSLAYER_CRON_SECRET", "preferred")
    assert resolve_cron_secret() == "preferred"
