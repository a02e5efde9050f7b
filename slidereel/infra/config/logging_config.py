"""
Structlog setup for the API process and its render worker task.

Log events are dotted keys (``render.slide.skipped``). Correlation ids
(request_id, slideshow_id, user_id) travel in contextvars, so the render task
and the request that admitted it log with their own ids.
"""

from __future__ import annotations

import logging
from typing import Any, MutableMapping, Optional

import structlog

# Third-party loggers that report every HTTP call or image decode at INFO/DEBUG.
QUIET_LOGGERS = (
    "httpx",
    "httpcore",
    "openai",
    "hpack",
    "aiosqlite",
    "PIL",
    "postgrest",
    "storage3",
)


class _ServiceTag:
    """Stamp every event with the service name and environment."""

    def __init__(self, service: str, environment: str):
        self.service = service
        self.environment = environment

    def __call__(
        self, logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
    ) -> MutableMapping[str, Any]:
        event_dict.setdefault("service", self.service)
        event_dict.setdefault("env", self.environment)
        return event_dict


def setup_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """Configure structlog and route stdlib logging through the same level.

    Args:
        log_level: Level name; ``LOG_LEVEL`` when omitted.
        log_format: ``json`` or ``console``; ``LOG_FORMAT`` when omitted.
    """
    from slidereel.infra.config.settings import get_settings

    settings = get_settings()
    level = logging.getLevelName((log_level or settings.log_level).upper())
    if not isinstance(level, int):
        level = logging.INFO
    json_output = (log_format or settings.log_format).lower() == "json"

    logging.basicConfig(level=level, format="%(message)s")
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            _ServiceTag(settings.app_name, settings.environment),
            structlog.processors.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(sort_keys=True)
            if json_output
            else structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None) -> Any:
    return structlog.get_logger(name) if name else structlog.get_logger()


def bind_context(**kwargs: Any) -> None:
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
