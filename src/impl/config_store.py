"""
Database-driven AI configuration with a short-lived in-memory cache.
Models, prompt templates and settings are managed from the admin console and
picked up here without a deployment.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Optional

from common.logging import get_logger
from config.config import FALLBACK_MODELS
from config.settings import CONFIG_CACHE_SECONDS
from schemas.ai_types import ConfigSnapshot, ModelConfig, PromptTemplate
from services.exceptions import ConfigurationError

logger = get_logger(__name__)


def fallback_snapshot(now: float = 0.0) -> ConfigSnapshot:
    """
    Built-in configuration used when the database cannot be read.
    """
    models = [
        ModelConfig(name=name, version=version, rank=rank)
        for name, version, rank in FALLBACK_MODELS
    ]
    return ConfigSnapshot(models=models, fetched_at=now, is_fallback=True)


class ConfigStore:
    """
    Serves the current ConfigSnapshot, refreshing it from the database once it
    is older than `ttl` seconds.
    """

    def __init__(
        self,
        db=None,
        ttl: float = CONFIG_CACHE_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            db: Object exposing fetch_models/fetch_prompts/fetch_settings, or None
                when no database is reachable.
            ttl (float): Cache lifetime in seconds.
            clock: Time source returning epoch seconds.
        """
        self.db = db
        self.ttl = ttl
        self._clock = clock
        self._snapshot: Optional[ConfigSnapshot] = None

    def _is_fresh(self, now: float) -> bool:
        return self._snapshot is not None and (now - self._snapshot.fetched_at) < self.ttl

    def _load(self, now: float) -> ConfigSnapshot:
        if self.db is None:
            raise ConfigurationError("No configuration database available")

        try:
            with ThreadPoolExecutor(max_workers=3, thread_name_prefix="ai-config") as pool:
                models_future = pool.submit(self.db.fetch_models)
                prompts_future = pool.submit(self.db.fetch_prompts)
                settings_future = pool.submit(self.db.fetch_settings)
                model_rows = models_future.result()
                prompt_rows = prompts_future.result()
                setting_rows = settings_future.result()

            models = [ModelConfig.from_row(row) for row in model_rows or []]
            models.sort(key=lambda m: m.rank, reverse=True)
            prompts = {row["key"]: PromptTemplate.from_row(row) for row in prompt_rows or []}
            settings = {row["key"]: row.get("value") for row in setting_rows or []}
        except Exception as e:
            raise ConfigurationError("Failed to read AI configuration", original_error=e)

        return ConfigSnapshot(models=models, prompts=prompts, settings=settings, fetched_at=now)

    def fetch_config(self) -> ConfigSnapshot:
        """
        Return the cached snapshot, refreshing it when stale.

        Never raises: a failed refresh yields the built-in fallback snapshot,
        which is not cached so the next call tries the database again.

        Returns:
            ConfigSnapshot: Current configuration.
        """
        now = self._clock()
        if self._is_fresh(now):
            return self._snapshot

        logger.info("Fetching AI configuration from database")
        try:
            snapshot = self._load(now)
        except ConfigurationError as e:
            logger.error(
                "Failed to fetch AI configuration",
                extra={"error": str(e.original_error or e)},
            )
            logger.warning("Using fallback AI configuration")
            return fallback_snapshot(now)

        self._snapshot = snapshot
        logger.info(
            "AI configuration loaded",
            extra={"models": len(snapshot.models), "prompts": len(snapshot.prompts)},
        )
        return snapshot

    def get_prompt_config(self, key: str) -> Optional[PromptTemplate]:
        return self.fetch_config().prompts.get(key)

    def get_setting(self, key: str, default: Any = None) -> Any:
        return self.fetch_config().settings.get(key, default)

    def invalidate(self) -> None:
        self._snapshot = None
