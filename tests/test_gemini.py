"""Tests for the Gemini REST provider: payloads, retries and outcome classification."""

from unittest.mock import MagicMock

import requests

from config.config import Generation_Outcome
from impl.gemini import GeminiRestProvider, extract_text
from schemas.ai_types import GenerationRequest, ModelConfig

BETA = ModelConfig(name="gemini-2.5-flash", version="v1beta", rank=100)
STABLE = ModelConfig(name="gemini-legacy", version="v1", rank=10)
NO_SEARCH = ModelConfig(name="gemini-offline", version="v1beta", rank=5, supports_web_search=False)


def _provider(session, sleeps=None):
    sleeps = sleeps if sleeps is not None else []
    return GeminiRestProvider(
        "test-key",
        session=session,
        base_url="https://gemini.test",
        sleep=sleeps.append,
    )


def test_body_uses_generation_defaults():
    body = _provider(MagicMock()).build_body(BETA, GenerationRequest(prompt="Hello"))

    assert body["contents"] == [{"parts": [{"text": "Hello"}]}]
    assert body["generationConfig"] == {
        "temperature": 0.2,
        "topK": 40,
        "topP": 0.85,
        "maxOutputTokens": 8192,
    }
    assert "tools" not in body


def test_body_adds_search_and_schema_on_v1beta():
    schema = {"type": "OBJECT"}
    request = GenerationRequest(prompt="p", use_search=True, response_schema=schema, temperature=0.9)
    body = _provider(MagicMock()).build_body(BETA, request)

    assert body["tools"] == [{"googleSearch": {}}]
    assert body["generationConfig"]["responseMimeType"] == "application/json"
    assert body["generationConfig"]["responseSchema"] == schema
    assert body["generationConfig"]["temperature"] == 0.9


def test_body_skips_extensions_when_unsupported():
    request = GenerationRequest(prompt="p", use_search=True, response_schema={"type": "OBJECT"})
    provider = _provider(MagicMock())

    v1_body = provider.build_body(STABLE, request)
    assert "tools" not in v1_body
    assert "responseSchema" not in v1_body["generationConfig"]

    no_search_body = provider.build_body(NO_SEARCH, request)
    assert "tools" not in no_search_body
    assert "responseSchema" in no_search_body["generationConfig"]


def test_success_on_first_attempt(gemini_response):
    session = MagicMock()
    session.post.return_value = gemini_response(text="Growth plan")

    result = _provider(session).call_model(BETA, GenerationRequest(prompt="p"))

    assert result.ok
    assert result.text == "Growth plan"
    assert result.attempts == 1
    args, kwargs = session.post.call_args
    assert args[0] == "https://gemini.test/v1beta/models/gemini-2.5-flash:generateContent"
    assert kwargs["params"] == {"key": "test-key"}


def test_rate_limit_is_not_retried(gemini_response):
    """Test that a 429 returns immediately after a single attempt."""
    session = MagicMock()
    session.post.return_value = gemini_response(status=429)
    sleeps = []

    result = _provider(session, sleeps).call_model(BETA, GenerationRequest(prompt="p"))

    assert result.kind is Generation_Outcome.RATE_LIMITED
    assert result.attempts == 1
    assert session.post.call_count == 1
    assert sleeps == []


def test_http_error_retried_with_backoff(gemini_response):
    """Test that a 5xx is attempted three times with growing delays."""
    session = MagicMock()
    session.post.return_value = gemini_response(status=503)
    sleeps = []

    result = _provider(session, sleeps).call_model(BETA, GenerationRequest(prompt="p"))

    assert result.kind is Generation_Outcome.HTTP_ERROR
    assert result.status == 503
    assert result.attempts == 3
    assert session.post.call_count == 3
    assert sleeps == [0.5, 1.0]


def test_http_error_then_success(gemini_response):
    session = MagicMock()
    session.post.side_effect = [gemini_response(status=500), gemini_response(text="ok")]
    sleeps = []

    result = _provider(session, sleeps).call_model(BETA, GenerationRequest(prompt="p"))

    assert result.ok
    assert result.attempts == 2
    assert sleeps == [0.5]


def test_transport_errors_retried_then_reported():
    session = MagicMock()
    session.post.side_effect = requests.exceptions.ConnectionError("connection refused")
    sleeps = []

    result = _provider(session, sleeps).call_model(BETA, GenerationRequest(prompt="p"))

    assert result.kind is Generation_Outcome.EXCEPTION
    assert "connection refused" in result.message
    assert session.post.call_count == 3
    assert sleeps == [0.5, 1.0]


def test_empty_response_is_terminal(gemini_response):
    session = MagicMock()
    session.post.return_value = gemini_response(payload={"candidates": []})
    sleeps = []

    result = _provider(session, sleeps).call_model(BETA, GenerationRequest(prompt="p"))

    assert result.kind is Generation_Outcome.EMPTY_RESPONSE
    assert session.post.call_count == 1
    assert sleeps == []


def test_undecodable_body_is_empty_response(gemini_response):
    session = MagicMock()
    response = gemini_response()
    response.json.side_effect = ValueError("not json")
    session.post.return_value = response

    result = _provider(session).call_model(BETA, GenerationRequest(prompt="p"))

    assert result.kind is Generation_Outcome.EMPTY_RESPONSE
    assert session.post.call_count == 1


def test_extract_text_handles_missing_levels():
    assert extract_text(None) is None
    assert extract_text({}) is None
    assert extract_text({"candidates": [{"content": {}}]}) is None
    assert extract_text({"candidates": [{"content": {"parts": [{"text": ""}]}}]}) is None
    assert extract_text({"candidates": [{"content": {"parts": [{"text": "hi"}]}}]}) == "hi"


def test_discover_models_filters_generate_content(gemini_response):
    session = MagicMock()
    session.get.return_value = gemini_response(
        payload={
            "models": [
                {"name": "models/gemini-2.5-flash", "supportedGenerationMethods": ["generateContent"]},
                {"name": "models/embedding-001", "supportedGenerationMethods": ["embedContent"]},
            ]
        }
    )
    provider = _provider(session)

    models = provider.discover_models()
    again = provider.discover_models()

    assert [(m.name, m.version) for m in models] == [("gemini-2.5-flash", "v1")]
    assert again is models
    assert session.get.call_count == 1


def test_discover_models_falls_through_to_v1beta(gemini_response):
    session = MagicMock()
    session.get.side_effect = [
        gemini_response(status=403),
        gemini_response(
            payload={
                "models": [
                    {"name": "models/gemini-pro-latest", "supportedGenerationMethods": ["generateContent"]}
                ]
            }
        ),
    ]

    models = _provider(session).discover_models()

    assert [(m.name, m.version) for m in models] == [("gemini-pro-latest", "v1beta")]


def test_discover_models_returns_empty_when_nothing_found():
    session = MagicMock()
    session.get.side_effect = requests.exceptions.Timeout("timed out")

    assert _provider(session).discover_models() == []
