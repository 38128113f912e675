"""Unit tests for the extraction pipeline.

The completion provider is mocked with httpx.MockTransport; the normalizer
is pinned to 2025-06-01 UTC.
"""

from __future__ import annotations

import asyncio
import json
from datetime import UTC, date, datetime

import httpx
import pytest

from subslayer.extraction.pipeline import ExtractionPipeline, decode_payload, validate_fields
from subslayer.extraction.errors import IncompleteExtraction, MalformedPayload
from subslayer.extraction.types import ExtractionStage
from subslayer.llm.client import ExtractionClient
from subslayer.llm.providers import ChatCompletionProvider
from subslayer.observability.telemetry import get_counter

NETFLIX_EMAIL = """Hi there,

Thanks for subscribing to Netflix Standard. Your membership will renew on
January 15 and you'll be charged $15.49.

Manage your membership at https://www.netflix.com/account
"""


class FakeCompletion:
    """Records outbound calls and answers with a fixed completion."""

    def __init__(self, content: str | None = None, status_code: int = 200):
        self.content = content
        self.status_code = status_code
        self.calls = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        if self.status_code != 200:
            return httpx.Response(self.status_code, text="error body")
        return httpx.Response(
            200, json={"choices": [{"message": {"role": "assistant", "content": self.content}}]}
        )


@pytest.fixture
def make_pipeline(normalizer):
    def _make(completion: FakeCompletion, api_key: str | None = "test-key") -> ExtractionPipeline:
        client = ExtractionClient(
            provider=ChatCompletionProvider(),
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(completion)),
        )
        return ExtractionPipeline(client=client, normalizer=normalizer, api_key=api_key)

    return _make


def run(pipeline: ExtractionPipeline, text: str):
    return asyncio.run(pipeline.run(text))


class TestSuccess:
    def test_netflix_end_to_end(self, make_pipeline):
        completion = FakeCompletion(
            "```json\n"
            '{"service_name": "Netflix", "cost": 15.49, "currency": "usd", '
            '"renewal_date": "2025-01-15", '
            '"cancellation_url": "https://www.netflix.com/cancelplan", '
            '"website_url": "https://www.netflix.com"}\n'
            "```"
        )
        result = run(make_pipeline(completion), NETFLIX_EMAIL)

        assert result.success
        assert result.stage_reached == ExtractionStage.DONE
        assert result.data.service_name == "Netflix"
        assert result.data.cost == 15.49
        assert result.data.currency == "USD"
        assert result.data.renewal_date == date(2026, 1, 15)
        assert result.data.cancellation_url == "https://www.netflix.com/cancelplan"
        assert result.to_response() == {
            "success": True,
            "data": {
                "service_name": "Netflix",
                "cost": 15.49,
                "currency": "USD",
                "renewal_date": "2026-01-15",
                "cancellation_url": "https://www.netflix.com/cancelplan",
                "website_url": "https://www.netflix.com",
            },
        }
        assert completion.calls == 1
        assert get_counter("extraction.success") == 1

    def test_future_renewal_kept_unchanged(self, make_pipeline):
        completion = FakeCompletion(
            "```json\n"
            '{"service_name":"Netflix","cost":15.99,"renewal_date":"2025-01-15"}\n'
            "```"
        )
        pipeline = make_pipeline(completion)
        result = asyncio.run(
            pipeline.run(NETFLIX_EMAIL, reference_now=datetime(2024, 12, 1, tzinfo=UTC))
        )

        assert result.to_response() == {
            "success": True,
            "data": {
                "service_name": "Netflix",
                "cost": 15.99,
                "currency": "USD",
                "renewal_date": "2025-01-15",
                "cancellation_url": None,
                "website_url": None,
            },
        }

    def test_currency_defaults_to_usd(self, make_pipeline):
        completion = FakeCompletion(
            json.dumps({"service_name": "Spotify", "cost": 9.99, "renewal_date": "Dec 1"})
        )
        result = run(make_pipeline(completion), "Spotify receipt")

        assert result.data.currency == "USD"
        assert result.data.renewal_date == date(2025, 12, 1)
        assert result.data.cancellation_url is None
        assert result.data.website_url is None

    def test_invalid_currency_and_urls_dropped(self, make_pipeline):
        completion = FakeCompletion(
            json.dumps(
                {
                    "service_name": "  Figma  ",
                    "cost": 12,
                    "currency": "dollars",
                    "renewal_date": "2025-09-01",
                    "cancellation_url": "N/A",
                    "website_url": "figma.com",
                }
            )
        )
        result = run(make_pipeline(completion), "Figma")

        assert result.success
        assert result.data.service_name == "Figma"
        assert result.data.cost == 12.0
        assert result.data.currency == "USD"
        assert result.data.cancellation_url is None
        assert result.data.website_url is None

    def test_non_usd_currency_kept(self, make_pipeline):
        completion = FakeCompletion(
            json.dumps(
                {"service_name": "Orange", "cost": 30, "currency": "ron", "renewal_date": "2025-07-01"}
            )
        )
        assert run(make_pipeline(completion), "Orange").data.currency == "RON"


class TestFailures:
    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    def test_blank_input_makes_no_outbound_call(self, make_pipeline, text):
        completion = FakeCompletion("{}")
        result = run(make_pipeline(completion), text)

        assert not result.success
        assert result.reason == "empty_input"
        assert result.status_code == 400
        assert result.error == "Email text is required"
        assert result.failed_at == ExtractionStage.RECEIVED
        assert completion.calls == 0

    def test_missing_credential(self, make_pipeline):
        completion = FakeCompletion("{}")
        result = run(make_pipeline(completion, api_key=""), "email")

        assert result.reason == "configuration_missing"
        assert result.status_code == 500
        assert completion.calls == 0

    def test_upstream_error(self, make_pipeline):
        result = run(make_pipeline(FakeCompletion(status_code=429)), "email")

        assert result.reason == "upstream_unavailable"
        assert result.error == "AI API error: 429"
        assert result.status_code == 500
        assert result.failed_at == ExtractionStage.PROMPTED

    def test_empty_completion(self, make_pipeline):
        result = run(make_pipeline(FakeCompletion("")), "email")
        assert result.reason == "empty_completion"
        assert result.error == "No response from AI"

    @pytest.mark.parametrize("content", ["not json at all", "[1, 2, 3]", '"Netflix"', "{broken"])
    def test_malformed_payload(self, make_pipeline, content):
        result = run(make_pipeline(FakeCompletion(content)), "email")

        assert result.reason == "malformed_payload"
        assert result.status_code == 500
        assert result.failed_at == ExtractionStage.SANITIZED

    @pytest.mark.parametrize(
        "payload",
        [
            {"service_name": "Netflix", "renewal_date": "2025-07-01"},
            {"service_name": "Netflix", "cost": "15.49", "renewal_date": "2025-07-01"},
            {"service_name": "Netflix", "cost": True, "renewal_date": "2025-07-01"},
            {"service_name": "Netflix", "cost": 0, "renewal_date": "2025-07-01"},
            {"service_name": "Netflix", "cost": -4.5, "renewal_date": "2025-07-01"},
            {"service_name": "", "cost": 15.49, "renewal_date": "2025-07-01"},
            {"cost": 15.49, "renewal_date": "2025-07-01"},
            {"service_name": "Netflix", "cost": 15.49},
            {"service_name": "Netflix", "cost": 15.49, "renewal_date": None},
        ],
    )
    def test_incomplete_extraction(self, make_pipeline, payload):
        result = run(make_pipeline(FakeCompletion(json.dumps(payload))), "email")

        assert result.reason == "incomplete_extraction"
        assert result.status_code == 422
        assert result.error == "Could not extract all fields from email"
        assert result.failed_at == ExtractionStage.DECODED

    @pytest.mark.parametrize("cost", ["NaN", "Infinity", "-Infinity", "1e999"])
    def test_non_finite_cost(self, make_pipeline, cost):
        content = '{"service_name": "X", "cost": ' + cost + ', "renewal_date": "2025-12-25"}'
        result = run(make_pipeline(FakeCompletion(content)), "email")

        assert not result.success
        assert result.reason == "incomplete_extraction"
        assert result.status_code == 422
        assert result.failed_at == ExtractionStage.DECODED

    def test_unparseable_date(self, make_pipeline):
        payload = {"service_name": "Netflix", "cost": 15.49, "renewal_date": "sometime soon"}
        result = run(make_pipeline(FakeCompletion(json.dumps(payload))), "email")

        assert result.reason == "date_unparseable"
        assert result.status_code == 500
        assert result.failed_at == ExtractionStage.VALIDATED
        assert result.data is None

    def test_failure_response_envelope(self, make_pipeline):
        result = run(make_pipeline(FakeCompletion("nope")), "email")
        assert result.to_response() == {"success": False, "error": result.error}
        assert get_counter("extraction.failed.malformed_payload") == 1


class TestHelpers:
    def test_decode_payload_object(self):
        assert decode_payload('{"a": 1}') == {"a": 1}

    def test_decode_payload_rejects_array(self):
        with pytest.raises(MalformedPayload):
            decode_payload("[]")

    def test_validate_fields_accepts_int_cost(self):
        assert validate_fields(
            {"service_name": " Hulu ", "cost": 8, "renewal_date": " Jan 3 "}
        ) == ("Hulu", 8.0, "Jan 3")

    def test_validate_fields_rejects_bool(self):
        with pytest.raises(IncompleteExtraction):
            validate_fields({"service_name": "Hulu", "cost": False, "renewal_date": "Jan 3"})
