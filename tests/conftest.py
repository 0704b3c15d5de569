"""Shared fixtures: fake clock, fake HTTP responses and a fake configuration database."""

from unittest.mock import MagicMock

import pytest


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _gemini_response(status=200, text=None, payload=None):
    response = MagicMock()
    response.status_code = status
    response.ok = 200 <= status < 300
    if payload is None and text is not None:
        payload = {"candidates": [{"content": {"parts": [{"text": text}]}}]}
    response.json.return_value = payload if payload is not None else {}
    return response


MODEL_ROWS = [
    {"name": "gemini-second", "version": "v1beta", "rank": 50, "enabled": True, "supports_web_search": True},
    {"name": "gemini-first", "version": "v1beta", "rank": 100, "enabled": True, "supports_web_search": True},
    {"name": "gemini-third", "version": "v1", "rank": 10, "enabled": True, "supports_web_search": False},
]

PROMPT_ROWS = [
    {
        "key": "company_summary",
        "name": "Company Summary",
        "prompt_template": "Summarise {company} in {sector}. {company} wants growth. {missing}",
        "use_web_search": True,
        "temperature": 0.5,
        "max_tokens": 2048,
        "json_schema": '{"type": "OBJECT", "properties": {"summary": {"type": "STRING"}}}',
        "enabled": True,
    }
]

SETTING_ROWS = [{"key": "default_language", "value": "en", "description": "Output language"}]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def gemini_response():
    """Factory building a fake requests.Response for generateContent."""
    return _gemini_response


@pytest.fixture
def fake_db():
    db = MagicMock()
    db.fetch_models.return_value = [dict(row) for row in MODEL_ROWS]
    db.fetch_prompts.return_value = [dict(row) for row in PROMPT_ROWS]
    db.fetch_settings.return_value = [dict(row) for row in SETTING_ROWS]
    return db
