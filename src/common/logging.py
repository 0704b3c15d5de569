"""
Centralized logging configuration for the generation service.
JSON records in production, readable lines with trailing 'extra' context everywhere else.
"""

import json
import logging
import logging.config
import os
from typing import Optional

__all__ = ("configure_logging", "get_logger")

# Attributes every LogRecord carries; anything else on a record came in via `extra`.
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime", "taskName"}


class ReadableExtraFormatter(logging.Formatter):
    """
    Appends the record's 'extra' fields to the formatted line as a JSON object.
    """

    def format(self, record):
        line = super().format(record)
        extras = {k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS}
        if extras:
            line = f"{line} | {json.dumps(extras, default=str)}"
        return line


def _env() -> str:
    """Detect the current application environment."""
    return (os.getenv("APP_ENV") or os.getenv("ENV") or "development").lower()


def _level() -> str:
    """Detect the default logging level."""
    return (os.getenv("LOG_LEVEL") or "INFO").upper()


def _formatter(env: str) -> tuple:
    if env in ("production", "prod"):
        return "json", {
            "()": "pythonjsonlogger.json.JsonFormatter",
            "fmt": "%(asctime)s %(name)s %(levelname)s %(message)s",
        }
    return "dev", {
        "()": ReadableExtraFormatter,
        "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        "datefmt": "%Y-%m-%d %H:%M:%S",
    }


def configure_logging(
    env: Optional[str] = None, level: Optional[str] = None, force: bool = False
) -> None:
    """
    Initialize global logging configuration using dictConfig.

    Args:
        env (str, optional): Target environment ('production' enables JSON).
        level (str, optional): Logging level (DEBUG, INFO, etc.).
        force (bool): If True, reconfigures even if handlers exist.
    """
    env = (env or _env()).lower()
    level = (level or _level()).upper()

    root = logging.getLogger()
    if root.handlers and not force:
        return

    formatter_name, fmt = _formatter(env)
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {formatter_name: fmt},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": formatter_name,
                    "stream": "ext://sys.stdout",
                    "level": level,
                }
            },
            "root": {"handlers": ["console"], "level": level},
            # urllib3 logs every retry/connection at DEBUG; keep it out of our stream.
            "loggers": {"urllib3": {"level": "WARNING"}},
        }
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Retrieve a named logger, configuring logging on first use.

    Args:
        name (str, optional): Name for the logger, typically __name__.

    Returns:
        logging.Logger: Configured logger instance.
    """
    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name)
