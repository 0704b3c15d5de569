"""
Types shared by the configuration store, the Gemini provider and the AI service.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from config.config import Api_Version, Generation_Defaults, Generation_Outcome


@dataclass(frozen=True)
class ModelConfig:
    """
    One ranked Gemini model as configured in the `ai_models` table.
    Higher rank is tried first.
    """

    name: str
    version: str = Api_Version.V1BETA
    rank: int = 0
    supports_web_search: bool = True
    enabled: bool = True
    use_case: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "ModelConfig":
        supports_web_search = row.get("supports_web_search")
        return cls(
            name=row["name"],
            version=row.get("version") or Api_Version.V1BETA,
            rank=int(row.get("rank") or 0),
            supports_web_search=True if supports_web_search is None else bool(supports_web_search),
            enabled=bool(row.get("enabled", True)),
            use_case=row.get("use_case"),
            description=row.get("description"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "rank": self.rank,
            "supports_web_search": self.supports_web_search,
            "enabled": self.enabled,
            "use_case": self.use_case,
        }


def _optional(convert, value: Any) -> Any:
    return None if value is None else convert(value)


def _decode_schema(value: Any) -> Optional[Dict[str, Any]]:
    # jsonb columns arrive decoded; text columns arrive as a JSON string.
    if value is None or isinstance(value, dict):
        return value
    if isinstance(value, str) and value.strip():
        try:
            decoded = json.loads(value)
        except json.JSONDecodeError:
            return None
        return decoded if isinstance(decoded, dict) else None
    return None


@dataclass(frozen=True)
class PromptTemplate:
    """
    Named prompt from the `ai_prompts` table with its default generation options.
    """

    key: str
    name: str
    prompt_template: str
    use_web_search: Optional[bool] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    json_schema: Optional[Dict[str, Any]] = None
    enabled: bool = True
    description: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "PromptTemplate":
        # NUMERIC columns arrive as Decimal, which the request body cannot serialise.
        return cls(
            key=row["key"],
            name=row.get("name") or row["key"],
            prompt_template=row.get("prompt_template") or "",
            use_web_search=_optional(bool, row.get("use_web_search")),
            temperature=_optional(float, row.get("temperature")),
            max_tokens=_optional(int, row.get("max_tokens")),
            json_schema=_decode_schema(row.get("json_schema")),
            enabled=bool(row.get("enabled", True)),
            description=row.get("description"),
        )

    def generation_options(self) -> Dict[str, Any]:
        """Template defaults in `AIService.generate` keyword form."""
        return {
            "use_search": self.use_web_search,
            "temperature": self.temperature,
            "max_output_tokens": self.max_tokens,
            "response_schema": self.json_schema,
        }


@dataclass
class ConfigSnapshot:
    """
    Cached bundle of models, prompt templates and general settings.
    Replaced wholesale on every refresh.
    """

    models: List[ModelConfig] = field(default_factory=list)
    prompts: Dict[str, PromptTemplate] = field(default_factory=dict)
    settings: Dict[str, Any] = field(default_factory=dict)
    fetched_at: float = 0.0
    is_fallback: bool = False


@dataclass
class GenerationRequest:
    """Per-call prompt and sampling parameters. None fields take the service defaults."""

    prompt: str
    temperature: Optional[float] = None
    top_k: Optional[int] = None
    top_p: Optional[float] = None
    max_output_tokens: Optional[int] = None
    use_search: bool = False
    response_schema: Optional[Dict[str, Any]] = None

    def generation_config(self) -> Dict[str, Any]:
        def _or(value, default):
            return default if value is None else value

        return {
            "temperature": _or(self.temperature, Generation_Defaults.TEMPERATURE),
            "topK": _or(self.top_k, Generation_Defaults.TOP_K),
            "topP": _or(self.top_p, Generation_Defaults.TOP_P),
            "maxOutputTokens": _or(self.max_output_tokens, Generation_Defaults.MAX_OUTPUT_TOKENS),
        }


@dataclass(frozen=True)
class GenerationResult:
    """Result of trying a single model. Failures are values, not exceptions."""

    kind: Generation_Outcome
    text: Optional[str] = None
    status: Optional[int] = None
    message: Optional[str] = None
    attempts: int = 1

    @property
    def ok(self) -> bool:
        return self.kind is Generation_Outcome.SUCCESS

    @classmethod
    def success(cls, text: str, attempts: int = 1) -> "GenerationResult":
        return cls(Generation_Outcome.SUCCESS, text=text, attempts=attempts)

    @classmethod
    def rate_limited(cls, attempts: int = 1) -> "GenerationResult":
        return cls(Generation_Outcome.RATE_LIMITED, status=429, attempts=attempts)

    @classmethod
    def http_error(cls, status: int, attempts: int) -> "GenerationResult":
        return cls(Generation_Outcome.HTTP_ERROR, status=status, attempts=attempts)

    @classmethod
    def empty_response(cls, attempts: int = 1) -> "GenerationResult":
        return cls(Generation_Outcome.EMPTY_RESPONSE, attempts=attempts)

    @classmethod
    def exception(cls, message: str, attempts: int) -> "GenerationResult":
        return cls(Generation_Outcome.EXCEPTION, message=message, attempts=attempts)


@dataclass
class CompanyProfile:
    """Search-grounded company research result."""

    name: str = ""
    industry: str = ""
    description: str = ""
    promoters: List[str] = field(default_factory=list)
    gst_number: str = ""
    products: List[str] = field(default_factory=list)
    customers: List[str] = field(default_factory=list)
    key_financials: Optional[str] = None
    market_position: Optional[str] = None
    sources: List[Dict[str, str]] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any], sources: List[Dict[str, str]]) -> "CompanyProfile":
        return cls(
            name=payload.get("name") or "",
            industry=payload.get("industry") or "",
            description=payload.get("description") or "",
            promoters=list(payload.get("promoters") or []),
            gst_number=payload.get("gstNumber") or "",
            products=list(payload.get("products") or []),
            customers=list(payload.get("customers") or []),
            key_financials=payload.get("keyFinancials"),
            market_position=payload.get("marketPosition"),
            sources=sources,
        )
