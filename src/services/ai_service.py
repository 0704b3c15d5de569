"""
Resilient AI generation service.
Cascades through the configured Gemini models by rank, blocks rate-limited
models for a cooldown, and fills named prompt templates from the database.
"""

from typing import Any, Dict, List, Mapping, Optional

from common.logging import get_logger
from common.utils import clean_and_parse_json, fill_template
from config.config import MODEL_BLOCK_SETTING_KEY, Generation_Outcome
from config.settings import GEMINI_API_KEY, MODEL_BLOCK_SECONDS
from impl.blocklist import ModelBlocklist
from impl.config_store import ConfigStore
from impl.gemini import GeminiRestProvider
from schemas.ai_types import ConfigSnapshot, GenerationRequest, ModelConfig
from services.exceptions import GenerationFailedError, TemplateNotFoundError

logger = get_logger(__name__)


class AIService:
    """
    Owns the configuration cache and the model blocklist for one process
    (or one test), so no state lives in module globals.
    """

    def __init__(
        self,
        config_store: ConfigStore,
        provider: Optional[GeminiRestProvider] = None,
        blocklist: Optional[ModelBlocklist] = None,
        api_key: str = GEMINI_API_KEY,
        block_seconds: float = MODEL_BLOCK_SECONDS,
    ):
        self.config_store = config_store
        self.api_key = api_key
        self.provider = provider or GeminiRestProvider(api_key)
        self.blocklist = blocklist or ModelBlocklist()
        self.block_seconds = block_seconds

    @property
    def simulation_mode(self) -> bool:
        return not self.api_key

    def _block_duration(self, config: ConfigSnapshot) -> float:
        value = config.settings.get(MODEL_BLOCK_SETTING_KEY)
        if value is None:
            return self.block_seconds
        try:
            return float(value)
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid block duration setting", extra={"value": value})
            return self.block_seconds

    def candidate_models(self, models: List[ModelConfig]) -> List[ModelConfig]:
        """
        Unblocked models by rank, or every model when all of them are blocked.
        """
        available = [m for m in models if not self.blocklist.is_blocked(m.name)]
        if not available:
            if models:
                logger.warning("All models blocked, trying anyway")
            available = list(models)
        return sorted(available, key=lambda m: m.rank, reverse=True)

    def generate(
        self,
        prompt: str,
        *,
        temperature: Optional[float] = None,
        top_k: Optional[int] = None,
        top_p: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
        use_search: Optional[bool] = False,
        response_schema: Optional[Dict[str, Any]] = None,
    ) -> Optional[str]:
        """
        Generate text with the first configured model that succeeds.

        Args:
            prompt (str): Prompt text.
            temperature, top_k, top_p, max_output_tokens: Sampling overrides; None uses defaults.
            use_search (bool): Ground the answer with Google Search where supported.
            response_schema (dict, optional): Structured output schema.

        Returns:
            str or None: Generated text, or None when no API key is configured.

        Raises:
            GenerationFailedError: If every candidate model failed.
        """
        if self.simulation_mode:
            logger.warning("No API key configured, skipping generation")
            return None

        request = GenerationRequest(
            prompt=prompt,
            temperature=temperature,
            top_k=top_k,
            top_p=top_p,
            max_output_tokens=max_output_tokens,
            use_search=bool(use_search),
            response_schema=response_schema,
        )

        config = self.config_store.fetch_config()
        candidates = self.candidate_models(config.models)
        logger.info(
            "Starting generation",
            extra={
                "models": [m.name for m in candidates],
                "use_search": request.use_search,
                "fallback_config": config.is_fallback,
            },
        )

        for model in candidates:
            logger.debug("Attempting model", extra={"model": model.name})
            result = self.provider.call_model(model, request)

            if result.ok:
                return result.text

            if result.kind is Generation_Outcome.RATE_LIMITED:
                self.blocklist.block(model.name, self._block_duration(config))

            logger.info(
                "Model failed, trying next",
                extra={
                    "model": model.name,
                    "outcome": result.kind.value,
                    "status": result.status,
                    "attempts": result.attempts,
                },
            )

        logger.error("All models failed", extra={"models": [m.name for m in candidates]})
        raise GenerationFailedError("AI Generation Failed: All models returned errors")

    def generate_from_template(
        self,
        prompt_key: str,
        variables: Optional[Mapping[str, Any]] = None,
        **options: Any,
    ) -> Optional[str]:
        """
        Fill a named prompt template and generate with its stored options.

        Args:
            prompt_key (str): Template key in the ai_prompts table.
            variables (dict, optional): Values for `{name}` placeholders.
            **options: Generation overrides; these win over the template's defaults.

        Returns:
            str or None: Generated text, or None when no API key is configured.

        Raises:
            TemplateNotFoundError: If no enabled template has this key.
            GenerationFailedError: If every candidate model failed.
        """
        template = self.config_store.get_prompt_config(prompt_key)
        if template is None:
            raise TemplateNotFoundError(prompt_key)

        prompt = fill_template(template.prompt_template, variables)
        merged = {**template.generation_options(), **options}

        logger.info("Using prompt template", extra={"key": prompt_key, "template": template.name})
        return self.generate(prompt, **merged)

    def generate_json(self, prompt: str, **options: Any) -> Any:
        """
        Generate and parse the completion as JSON. Returns {} when nothing was generated.
        """
        return clean_and_parse_json(self.generate(prompt, **options))
