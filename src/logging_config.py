"""
Competition Radar - Structured Logging.

Every module logs through structlog with snake_case event names and
keyword context:

    from logging_config import get_logger
    logger = get_logger(__name__)

    logger.info("crawl_complete", url="https://example.com", results=12)
    logger.warning("site_unreachable", url="https://example.com", status_code=503)

The orchestrator binds `analysis_id` and `url` with
structlog.contextvars, so all provider logs of one run carry them.
LOG_JSON switches between console and JSON output; LOG_LEVEL sets the
threshold.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

_NOISY_LOGGERS = ("httpx", "httpcore", "urllib3", "hpack", "litellm", "LiteLLM")


def _service_fields(service: str, env: str) -> structlog.types.Processor:
    def add_service(logger: Any, method_name: str, event_dict: dict) -> dict:
        event_dict.setdefault("service", service)
        event_dict.setdefault("env", env)
        return event_dict

    return add_service


def configure_logging(
    json_mode: bool = False,
    level: str = "INFO",
    service: str = "competition-radar",
    env: str = "dev",
) -> None:
    """
    Route stdlib and structlog output through one formatter on stdout.

    Args:
        json_mode: JSON lines (production) instead of colored console output
        level: Root log level name
        service: Value of the `service` field on every event
        env: Value of the `env` field on every event
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _service_fields(service, env),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_mode:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
        # JSON output needs the traceback as a string field
        shared_processors.append(structlog.processors.format_exc_info)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for noisy in _NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def _init() -> None:
    try:
        from config import settings
    except Exception:
        configure_logging()
        return
    configure_logging(
        json_mode=settings.log_json,
        level=settings.log_level,
        service=settings.app_name,
        env=settings.app_env,
    )


_init()
