"""
Configuration constants and enums for AI generation.
Defines model IDs, endpoint versions, generation defaults and store table names.
"""

from enum import Enum


class Models:
    GEMINI_2_5_FLASH = "gemini-2.5-flash"
    GEMINI_3_FLASH_PREVIEW = "gemini-3-flash-preview"
    GEMINI_PRO_LATEST = "gemini-pro-latest"


class Api_Version:
    V1 = "v1"
    V1BETA = "v1beta"


# Only v1beta accepts the googleSearch tool and responseSchema.
EXTENDED_FEATURE_VERSIONS = (Api_Version.V1BETA,)


class Generation_Defaults:
    TEMPERATURE = 0.2
    TOP_K = 40
    TOP_P = 0.85
    MAX_OUTPUT_TOKENS = 8192


class Config_Table:
    MODELS = "ai_models"
    PROMPTS = "ai_prompts"
    SETTINGS = "ai_settings"


class Generation_Outcome(str, Enum):
    SUCCESS = "success"
    RATE_LIMITED = "rate_limited"
    HTTP_ERROR = "http_error"
    EMPTY_RESPONSE = "empty_response"
    EXCEPTION = "exception"


# (name, version, rank) used when the configuration store cannot be read.
FALLBACK_MODELS = (
    (Models.GEMINI_2_5_FLASH, Api_Version.V1BETA, 100),
    (Models.GEMINI_3_FLASH_PREVIEW, Api_Version.V1BETA, 90),
    (Models.GEMINI_PRO_LATEST, Api_Version.V1BETA, 80),
)

MODEL_BLOCK_SETTING_KEY = "model_block_seconds"
