"""Error reporter interface and a structlog-backed default."""

from abc import ABC, abstractmethod

import structlog

logger = structlog.get_logger()


class ErrorReporter(ABC):
    """External error tracker (Bugsnag, Sentry, ...)."""

    @abstractmethod
    async def report(self, error: BaseException, context_json: str, severity: str) -> None:
        """Send an error with a JSON encoded context."""


class LoggingErrorReporter(ErrorReporter):
    """Reports errors to the application log."""

    async def report(self, error: BaseException, context_json: str, severity: str) -> None:
        log = getattr(logger, severity, logger.error)
        log(
            "cache_error_reported",
            error_type=type(error).__name__,
            error=str(error),
            context=context_json,
        )
