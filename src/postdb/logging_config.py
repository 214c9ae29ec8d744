"""Logging setup shared by the HTTP server and the replicator."""

import json
import logging.config


def setup_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """Configure the root logger once at process start.

    ``json`` emits one JSON-ish object per line; ``text`` is meant for
    local development.
    """
    if log_format == "json":
        fmt = json.dumps(
            {
                "time": "%(asctime)s",
                "level": "%(levelname)s",
                "module": "%(name)s",
                "message": "%(message)s",
            }
        )
    else:
        fmt = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": {"format": fmt}},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "stream": "ext://sys.stdout",
                }
            },
            "root": {"level": log_level.upper(), "handlers": ["console"]},
            "loggers": {
                "psycopg": {"level": "WARNING"},
                "httpx": {"level": "WARNING"},
            },
        }
    )
