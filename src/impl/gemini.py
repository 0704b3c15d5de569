"""
Gemini REST provider.
Stateless per call: sends one prompt to one model with local retries and
classifies the result so the caller can decide whether to move on.
"""

import time
from typing import Callable, Dict, List, Optional

import requests

from common.logging import get_logger
from config.config import Api_Version, EXTENDED_FEATURE_VERSIONS
from config.settings import (
    GEMINI_BASE_URL,
    GEMINI_REQUEST_TIMEOUT,
    MAX_MODEL_ATTEMPTS,
    RETRY_BASE_DELAY_SECONDS,
)
from schemas.ai_types import GenerationRequest, GenerationResult, ModelConfig

logger = get_logger(__name__)

RATE_LIMIT_STATUS = 429


def extract_text(data) -> Optional[str]:
    """
    Pull `candidates[0].content.parts[0].text` out of a generateContent response.

    Returns:
        str or None: The text, or None when any level is missing or empty.
    """
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) and text else None


class GeminiRestProvider:
    """
    Calls the Generative Language REST API for a single configured model.
    """

    def __init__(
        self,
        api_key: str,
        session: Optional[requests.Session] = None,
        base_url: str = GEMINI_BASE_URL,
        timeout: float = GEMINI_REQUEST_TIMEOUT,
        max_attempts: int = MAX_MODEL_ATTEMPTS,
        base_delay: float = RETRY_BASE_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            api_key (str): Gemini API key.
            session (requests.Session, optional): HTTP session; one is created if omitted.
            base_url (str): API root, without version.
            timeout (float): Per-request timeout in seconds.
            max_attempts (int): Attempts per model for transient failures.
            base_delay (float): First backoff delay in seconds; doubles per retry.
            sleep: Delay function, replaceable in tests.
        """
        self.api_key = api_key
        self.session = session or requests.Session()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self._sleep = sleep
        self._discovered: Optional[List[ModelConfig]] = None

    def model_url(self, model: ModelConfig) -> str:
        return f"{self.base_url}/{model.version}/models/{model.name}:generateContent"

    def build_body(self, model: ModelConfig, request: GenerationRequest) -> Dict:
        """
        Build the generateContent payload, adding search and schema directives
        when the model's endpoint version supports them.

        Args:
            model (ModelConfig): Target model.
            request (GenerationRequest): Prompt and sampling parameters.

        Returns:
            dict: JSON-serialisable request body.
        """
        body = {
            "contents": [{"parts": [{"text": request.prompt}]}],
            "generationConfig": request.generation_config(),
        }
        extended = model.version in EXTENDED_FEATURE_VERSIONS

        if request.use_search and extended and model.supports_web_search:
            body["tools"] = [{"googleSearch": {}}]
            logger.debug("Web search enabled", extra={"model": model.name})

        if request.response_schema and extended:
            body["generationConfig"] = {
                **body["generationConfig"],
                "responseMimeType": "application/json",
                "responseSchema": request.response_schema,
            }
            logger.debug("JSON schema enforced", extra={"model": model.name})

        return body

    def _backoff(self, attempt: int) -> float:
        return (2**attempt) * self.base_delay

    def call_model(self, model: ModelConfig, request: GenerationRequest) -> GenerationResult:
        """
        Try one model, retrying HTTP errors and transport failures with
        exponential backoff. Rate limits and empty answers are not retried.

        Args:
            model (ModelConfig): Model to call.
            request (GenerationRequest): Prompt and sampling parameters.

        Returns:
            GenerationResult: Classified outcome for this model.
        """
        url = self.model_url(model)
        body = self.build_body(model, request)
        last_attempt = self.max_attempts - 1

        for attempt in range(self.max_attempts):
            attempts = attempt + 1
            try:
                response = self.session.post(
                    url,
                    params={"key": self.api_key},
                    json=body,
                    timeout=self.timeout,
                )
            except requests.exceptions.RequestException as e:
                if attempt < last_attempt:
                    delay = self._backoff(attempt)
                    logger.warning(
                        "Model request failed, retrying",
                        extra={"model": model.name, "error": str(e), "delay": delay},
                    )
                    self._sleep(delay)
                    continue
                logger.error("Model request failed", extra={"model": model.name, "error": str(e)})
                return GenerationResult.exception(str(e), attempts)

            if response.status_code == RATE_LIMIT_STATUS:
                logger.warning("Model rate limited", extra={"model": model.name})
                return GenerationResult.rate_limited(attempts)

            if not response.ok:
                if attempt < last_attempt:
                    delay = self._backoff(attempt)
                    logger.warning(
                        "Model returned HTTP error, retrying",
                        extra={"model": model.name, "status": response.status_code, "delay": delay},
                    )
                    self._sleep(delay)
                    continue
                logger.error(
                    "Model returned HTTP error",
                    extra={"model": model.name, "status": response.status_code},
                )
                return GenerationResult.http_error(response.status_code, attempts)

            try:
                data = response.json()
            except ValueError:
                data = None

            text = extract_text(data)
            if text is None:
                logger.warning("Model returned empty response", extra={"model": model.name})
                return GenerationResult.empty_response(attempts)

            logger.info(
                "Model generation succeeded",
                extra={"model": model.name, "chars": len(text), "attempts": attempts},
            )
            return GenerationResult.success(text, attempts)

        return GenerationResult.exception("Retries exhausted", self.max_attempts)

    def discover_models(self) -> List[ModelConfig]:
        """
        List the models this API key can use for generateContent.

        Tries the v1 endpoint first, then v1beta; the first endpoint that
        yields any usable model wins. Results are kept for the provider's lifetime.

        Returns:
            list[ModelConfig]: Discovered models, or an empty list.
        """
        if self._discovered is not None:
            return self._discovered

        for version in (Api_Version.V1, Api_Version.V1BETA):
            try:
                response = self.session.get(
                    f"{self.base_url}/{version}/models",
                    params={"key": self.api_key},
                    timeout=self.timeout,
                )
                if not response.ok:
                    logger.warning(
                        "Model listing failed",
                        extra={"version": version, "status": response.status_code},
                    )
                    continue
                listed = response.json().get("models") or []
            except (requests.exceptions.RequestException, ValueError, AttributeError) as e:
                logger.warning("Model listing failed", extra={"version": version, "error": str(e)})
                continue

            models = [
                ModelConfig(name=m["name"].replace("models/", "", 1), version=version)
                for m in listed
                if "generateContent" in (m.get("supportedGenerationMethods") or [])
            ]
            if models:
                logger.info(
                    "Models discovered",
                    extra={"version": version, "models": [m.name for m in models]},
                )
                self._discovered = models
                return models

        logger.warning("Could not discover any models")
        return []
