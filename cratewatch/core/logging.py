"""Structured logging for the CLI: structlog events rendered on stderr."""

from __future__ import annotations

import logging
import logging.config
import os
import sys

import structlog

# httpx/httpcore log per request at INFO/DEBUG; keep them quiet unless asked.
_NOISY_LOGGERS = ("httpx", "httpcore")


def setup_logging(level: str | None = None) -> None:
    """Route structlog and stdlib records to stderr.

    *level* wins over ``CRATEWATCH_LOG_LEVEL`` (default WARNING).
    ``CRATEWATCH_LOG_FORMAT=json`` switches to one JSON object per line.
    """
    log_level = (level or os.environ.get("CRATEWATCH_LOG_LEVEL", "WARNING")).upper()
    as_json = os.environ.get("CRATEWATCH_LOG_FORMAT", "console").lower() == "json"

    pre_chain: list[structlog.types.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
    ]
    if as_json:
        pre_chain.append(structlog.processors.TimeStamper(fmt="iso", utc=True))
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    third_party = "DEBUG" if log_level == "DEBUG" else "WARNING"
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structlog": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    # stdlib records (httpx) get the same level/name fields
                    "foreign_pre_chain": pre_chain,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        renderer,
                    ],
                },
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "structlog",
                },
            },
            "root": {"handlers": ["stderr"], "level": log_level},
            "loggers": {name: {"level": third_party} for name in _NOISY_LOGGERS},
        }
    )
