"""
Logging configuration for DerivDesk.

Provides the Django ``LOGGING`` dict used by the settings modules, a filter
that keeps provider credentials out of log output, and the ``get_logger``
factory every service module uses.
"""

import copy
import logging
import re
from pathlib import Path

# Project root, not services/
BASE_DIR = Path(__file__).resolve().parent.parent.parent
LOGS_DIR = BASE_DIR / "logs"

LOGS_DIR.mkdir(exist_ok=True)


class SensitiveDataFilter(logging.Filter):
    """
    Logging filter that redacts credentials from log messages.

    Quote and custody providers authenticate with API keys, OAuth client
    secrets and bearer tokens, and those values end up in request URLs and
    error payloads. Every handler runs this filter so they never reach disk.
    """

    def __init__(self):
        super().__init__()
        self.patterns = [
            (re.compile(r"(bearer\s+)[a-zA-Z0-9\-._~+/]+=*", re.IGNORECASE), r"\1[REDACTED_TOKEN]"),
            (
                re.compile(
                    r"(access[_-]?token[\"']?\s*[:=]\s*[\"']?)([^\"'\s,}&]+)", re.IGNORECASE
                ),
                r"\1[REDACTED_TOKEN]",
            ),
            # Polygon passes its key as ?apiKey=... on every request
            (
                re.compile(r"(api[_-]?key[\"']?\s*[:=]\s*[\"']?)([^\"'\s,}&]+)", re.IGNORECASE),
                r"\1[REDACTED_API_KEY]",
            ),
            (
                re.compile(
                    r"(client[_-]?secret[\"']?\s*[:=]\s*[\"']?)([^\"'\s,}&]+)", re.IGNORECASE
                ),
                r"\1[REDACTED_SECRET]",
            ),
            (
                re.compile(r"(secret[_-]?key[\"']?\s*[:=]\s*[\"']?)([^\"'\s,}&]+)", re.IGNORECASE),
                r"\1[REDACTED_SECRET]",
            ),
            (
                re.compile(r"(password[\"']?\s*[:=]\s*[\"']?)([^\"'\s,}&]+)", re.IGNORECASE),
                r"\1[REDACTED_PASSWORD]",
            ),
        ]

    def _redact(self, text: str) -> str:
        for pattern, replacement in self.patterns:
            text = pattern.sub(replacement, text)
        return text

    def filter(self, record):
        """
        Redact credentials from the record's message and string args.

        Returns:
            bool: Always True; records are rewritten, never suppressed
        """
        if hasattr(record, "msg"):
            record.msg = self._redact(str(record.msg))

        if hasattr(record, "args") and record.args:
            if isinstance(record.args, dict):
                record.args = {
                    key: self._redact(value) if isinstance(value, str) else value
                    for key, value in record.args.items()
                }
            elif isinstance(record.args, (list, tuple)):
                filtered_args = [
                    self._redact(arg) if isinstance(arg, str) else arg for arg in record.args
                ]
                record.args = (
                    tuple(filtered_args) if isinstance(record.args, tuple) else filtered_args
                )

        return True


LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "sensitive_data": {
            "()": "services.core.logging.SensitiveDataFilter",
        }
    },
    "formatters": {
        "verbose": {
            "format": "{levelname} {asctime} {module} {process:d} {thread:d} {message}",
            "style": "{",
        },
        "console_dev": {
            "format": "{asctime} {levelname:8} {name:20} {message}",
            "style": "{",
            "datefmt": "%H:%M:%S",
        },
        "structured": {
            "format": (
                "{asctime} [{levelname:8}] {name:30} PID:{process:5} TID:{thread:8} {message}"
            ),
            "style": "{",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "level": "DEBUG",
            "formatter": "console_dev",
            "filters": ["sensitive_data"],
        },
        "file_structured": {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "DEBUG",
            "formatter": "structured",
            "filename": LOGS_DIR / "application.log",
            "maxBytes": 10 * 1024 * 1024,  # 10MB
            "backupCount": 5,
            "filters": ["sensitive_data"],
        },
        "error_file": {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "ERROR",
            "formatter": "verbose",
            "filename": LOGS_DIR / "errors.log",
            "maxBytes": 10 * 1024 * 1024,  # 10MB
            "backupCount": 5,
            "filters": ["sensitive_data"],
        },
        "market_data_file": {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "DEBUG",
            "formatter": "structured",
            "filename": LOGS_DIR / "market_data.log",
            "maxBytes": 50 * 1024 * 1024,  # 50MB
            "backupCount": 10,
            "filters": ["sensitive_data"],
        },
    },
    "root": {
        "level": "INFO",
        "handlers": ["console", "file_structured"],
    },
    "loggers": {
        "django": {
            "handlers": ["console", "file_structured"],
            "level": "INFO",
            "propagate": False,
        },
        "django.request": {
            "handlers": ["console", "file_structured", "error_file"],
            "level": "DEBUG",
            "propagate": False,
        },
        "django.security": {
            "handlers": ["console", "error_file"],
            "level": "WARNING",
            "propagate": False,
        },
        "services": {
            "handlers": ["console", "file_structured", "market_data_file"],
            "level": "DEBUG",
            "propagate": False,
        },
        "derivatives": {
            "handlers": ["console", "file_structured"],
            "level": "DEBUG",
            "propagate": False,
        },
        "httpcore": {
            "handlers": ["console", "file_structured"],
            "level": "WARNING",  # Connection pool chatter
            "propagate": False,
        },
        "httpx": {
            "handlers": ["console", "file_structured"],
            "level": "INFO",
            "propagate": False,
        },
        "asyncio": {
            "handlers": ["console", "file_structured"],
            "level": "WARNING",
            "propagate": False,
        },
    },
}


def get_development_logging():
    """Get logging configuration optimized for development."""
    config = copy.deepcopy(LOGGING)

    config["handlers"]["console"]["level"] = "DEBUG"
    config["root"]["level"] = "DEBUG"

    return config


def get_production_logging():
    """Get logging configuration optimized for production."""
    config = copy.deepcopy(LOGGING)

    config["handlers"]["console"]["level"] = "WARNING"
    config["root"]["level"] = "WARNING"
    config["root"]["handlers"] = ["file_structured", "error_file"]

    return config


def get_logger(name: str):
    """
    Factory function for consistent logger creation.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)
