"""Logging configuration."""

import logging.config

JSON_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
TEXT_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Configure the root logger once at startup.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR)
        fmt: Output format, 'json' for JSON lines or 'text' for plain text

    """
    formatters = {
        "json": {
            "()": "pythonjsonlogger.json.JsonFormatter",
            "fmt": JSON_LOG_FORMAT,
            "rename_fields": {"asctime": "timestamp", "levelname": "level", "name": "logger"},
        },
        "text": {"format": TEXT_LOG_FORMAT},
    }

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": formatters,
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": fmt,
                },
            },
            "root": {"level": level.upper(), "handlers": ["default"]},
        }
    )
