"""Tests for search-grounded company research."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from impl.research import CompanyResearchProvider
from services.exceptions import ResearchError

PAYLOAD = (
    '{"name": "Acme Pvt Ltd", "industry": "Manufacturing", "description": "Makes widgets",'
    ' "promoters": ["A. Founder"], "gstNumber": "27ABCDE1234F1Z5", "products": ["Widgets"],'
    ' "customers": ["B2B"], "marketPosition": "Regional leader"}'
)


def _response(text, chunks):
    metadata = SimpleNamespace(grounding_chunks=chunks)
    return SimpleNamespace(text=text, candidates=[SimpleNamespace(grounding_metadata=metadata)])


def _web(uri, title):
    return SimpleNamespace(web=SimpleNamespace(uri=uri, title=title))


def test_research_returns_profile_with_sources():
    client = MagicMock()
    client.models.generate_content.return_value = _response(
        PAYLOAD,
        [_web("https://acme.example", "Acme"), _web("https://no-title.example", None), SimpleNamespace(web=None)],
    )
    provider = CompanyResearchProvider(client, model="gemini-test")

    profile = provider.research_company("  Acme  ")

    assert profile.name == "Acme Pvt Ltd"
    assert profile.gst_number == "27ABCDE1234F1Z5"
    assert profile.promoters == ["A. Founder"]
    assert profile.market_position == "Regional leader"
    assert profile.key_financials is None
    assert profile.sources == [{"title": "Acme", "uri": "https://acme.example"}]

    kwargs = client.models.generate_content.call_args.kwargs
    assert kwargs["model"] == "gemini-test"
    assert '"Acme"' in kwargs["contents"]
    assert kwargs["config"].response_mime_type == "application/json"
    assert kwargs["config"].tools[0].google_search is not None


def test_research_without_grounding_metadata():
    client = MagicMock()
    client.models.generate_content.return_value = SimpleNamespace(text=PAYLOAD, candidates=[])

    profile = CompanyResearchProvider(client).research_company("Acme")

    assert profile.industry == "Manufacturing"
    assert profile.sources == []


def test_research_requires_company_name():
    client = MagicMock()
    with pytest.raises(ValueError):
        CompanyResearchProvider(client).research_company("   ")
    client.models.generate_content.assert_not_called()


def test_research_wraps_sdk_failure():
    client = MagicMock()
    client.models.generate_content.side_effect = RuntimeError("quota exceeded")

    with pytest.raises(ResearchError) as excinfo:
        CompanyResearchProvider(client).research_company("Acme")

    assert isinstance(excinfo.value.original_error, RuntimeError)
