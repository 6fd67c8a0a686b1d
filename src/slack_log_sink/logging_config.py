"""Structured JSON logging for the sink's own diagnostics.

Only the ``slack_log_sink`` logger is configured; the host application's root
logger and handlers are left untouched.

Usage:
    from slack_log_sink.logging_config import configure_logging
    configure_logging("DEBUG")
"""

import logging.config


def build_logging_config(level: str = "INFO") -> dict:
    """Return the dictConfig for sink diagnostics at the given level."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "pythonjsonlogger.json.JsonFormatter",
                "format": "%(asctime)s %(levelname)s %(name)s %(funcName)s %(message)s",
                "rename_fields": {
                    "levelname": "severity",
                    "asctime": "timestamp",
                    "name": "logger",
                },
                "static_fields": {
                    "service": "slack-log-sink",
                },
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "json",
                "stream": "ext://sys.stderr",
            },
        },
        "loggers": {
            "slack_log_sink": {
                "level": level.upper(),
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }


def configure_logging(level: str = "INFO") -> None:
    """Apply the JSON diagnostics configuration.

    Call once at startup. Delivery failures and shutdown summaries are then
    emitted as JSON lines on stderr.
    """
    logging.config.dictConfig(build_logging_config(level))
