"""Tests for the database-driven configuration cache."""

from impl.config_store import ConfigStore, fallback_snapshot


def test_models_are_ordered_by_rank(fake_db, clock):
    store = ConfigStore(fake_db, ttl=300, clock=clock)
    config = store.fetch_config()

    assert [m.name for m in config.models] == ["gemini-first", "gemini-second", "gemini-third"]
    assert config.is_fallback is False
    assert config.fetched_at == clock.now


def test_cached_within_ttl(fake_db, clock):
    """Test that a fresh snapshot is served without touching the database."""
    store = ConfigStore(fake_db, ttl=300, clock=clock)
    first = store.fetch_config()
    clock.advance(299)
    second = store.fetch_config()

    assert first is second
    assert fake_db.fetch_models.call_count == 1
    assert fake_db.fetch_prompts.call_count == 1
    assert fake_db.fetch_settings.call_count == 1


def test_refresh_after_ttl(fake_db, clock):
    store = ConfigStore(fake_db, ttl=300, clock=clock)
    store.fetch_config()
    clock.advance(300)
    store.fetch_config()
    store.fetch_config()

    assert fake_db.fetch_models.call_count == 2


def test_prompts_and_settings_are_keyed(fake_db, clock):
    store = ConfigStore(fake_db, clock=clock)

    template = store.get_prompt_config("company_summary")
    assert template.name == "Company Summary"
    assert template.json_schema == {"type": "OBJECT", "properties": {"summary": {"type": "STRING"}}}
    assert store.get_prompt_config("unknown") is None
    assert store.get_setting("default_language") == "en"
    assert store.get_setting("absent", "fallback") == "fallback"


def test_database_failure_returns_fallback(fake_db, clock):
    """Test that a failed read yields the built-in models instead of raising."""
    fake_db.fetch_prompts.side_effect = RuntimeError("connection reset")
    store = ConfigStore(fake_db, clock=clock)

    config = store.fetch_config()

    assert config.is_fallback is True
    assert [m.name for m in config.models] == [
        "gemini-2.5-flash",
        "gemini-3-flash-preview",
        "gemini-pro-latest",
    ]
    assert config.prompts == {}


def test_fallback_is_not_cached(fake_db, clock):
    fake_db.fetch_models.side_effect = [RuntimeError("down"), [dict(name="recovered", rank=1)]]
    store = ConfigStore(fake_db, clock=clock)

    assert store.fetch_config().is_fallback is True
    recovered = store.fetch_config()

    assert recovered.is_fallback is False
    assert [m.name for m in recovered.models] == ["recovered"]


def test_missing_database_uses_fallback(clock):
    store = ConfigStore(None, clock=clock)
    config = store.fetch_config()
    assert config.is_fallback is True
    assert len(config.models) == 3


def test_invalidate_forces_refresh(fake_db, clock):
    store = ConfigStore(fake_db, clock=clock)
    store.fetch_config()
    store.invalidate()
    store.fetch_config()
    assert fake_db.fetch_models.call_count == 2


def test_fallback_snapshot_models_support_extended_features():
    config = fallback_snapshot()
    assert all(m.version == "v1beta" and m.supports_web_search for m in config.models)
