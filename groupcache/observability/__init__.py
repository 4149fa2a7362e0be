"""Error reporting for cache failures."""

from .reporting import ErrorReporter, LoggingErrorReporter

__all__ = ["ErrorReporter", "LoggingErrorReporter"]
