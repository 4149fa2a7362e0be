"""Structured logging for cache operations.

Hosts call ``configure_logging()`` once at startup. Cache modules log
through ``structlog.get_logger()``; the processors installed here shorten
cache keys and tag every event with the cache component name.
"""

import logging
import sys
from typing import Literal, Optional

import structlog
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

KEY_PREVIEW_LENGTH = 60


class LogSettings(BaseSettings):
    """Logging settings loaded from ``GROUPCACHE_LOG_*`` variables."""

    level: str = Field(default="INFO", description="Minimum log level")
    format: Literal["json", "text"] = Field(default="text", description="Renderer")
    component: str = Field(default="groupcache", description="Value of the component field")

    model_config = SettingsConfigDict(env_prefix="GROUPCACHE_LOG_", extra="ignore")


def shorten_cache_keys(logger, method_name, event_dict):
    """Trim long cache keys so parameter-heavy keys do not flood the log."""
    key = event_dict.get("key")
    if isinstance(key, str) and len(key) > KEY_PREVIEW_LENGTH:
        event_dict["key"] = key[:KEY_PREVIEW_LENGTH] + "..."
    return event_dict


def configure_logging(settings: Optional[LogSettings] = None) -> None:
    """Route cache logs through stdlib logging with structlog processors."""
    settings = settings or LogSettings()
    level = getattr(logging, settings.level.upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    def add_component(logger, method_name, event_dict):
        event_dict.setdefault("component", settings.component)
        return event_dict

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.format == "json"
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            add_component,
            shorten_cache_keys,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )


logger = structlog.get_logger(__name__)


def log_cache_operation(
    operation: Literal["hit", "miss"],
    group_key: str,
    duration_ms: float,
):
    """Log the outcome of a read-through lookup.

    Args:
        operation: "hit" when served from cache, "miss" when produced
        group_key: Cache group name
        duration_ms: Time spent, including the producer on a miss
    """
    logger.debug(
        "cache_operation",
        operation=operation,
        group=group_key,
        duration_ms=duration_ms,
    )
