"""
Application-wide settings and environment variable management.
Loads configuration from .env and validates presence of critical variables.
"""

import os
from dotenv import load_dotenv

load_dotenv()

APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# An empty key puts the service in simulation mode: generation returns None.
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
GEMINI_BASE_URL = os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com")
GEMINI_REQUEST_TIMEOUT = float(os.getenv("GEMINI_REQUEST_TIMEOUT", "120") or "120")
RESEARCH_MODEL = os.getenv("RESEARCH_MODEL", "gemini-3-flash-preview")

CONFIG_CACHE_SECONDS = float(os.getenv("CONFIG_CACHE_SECONDS", "300") or "300")
MODEL_BLOCK_SECONDS = float(os.getenv("MODEL_BLOCK_SECONDS", "300") or "300")
MAX_MODEL_ATTEMPTS = int(os.getenv("MAX_MODEL_ATTEMPTS", "3") or "3")
RETRY_BASE_DELAY_SECONDS = float(os.getenv("RETRY_BASE_DELAY_SECONDS", "0.5") or "0.5")

# Supabase exposes its Postgres database directly; the AI tables are read from there.
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = int(os.getenv("DB_PORT", "5432") or "5432")
DB_USER = os.getenv("DB_USER", "postgres")
DB_PASSWORD = os.getenv("DB_PASSWORD", "")
DB_NAME = os.getenv("DB_NAME", "postgres")
DB_SSLMODE = os.getenv("DB_SSLMODE", "prefer")


required_vars = {
    "GEMINI_BASE_URL": GEMINI_BASE_URL,
    "CONFIG_CACHE_SECONDS": CONFIG_CACHE_SECONDS,
    "MAX_MODEL_ATTEMPTS": MAX_MODEL_ATTEMPTS,
    "DB_HOST": DB_HOST,
    "DB_PORT": DB_PORT,
    "DB_USER": DB_USER,
    "DB_NAME": DB_NAME,
}

for var_name, var_value in required_vars.items():
    if not var_value:
        raise ValueError(f"Missing required environment variable: {var_name}")
