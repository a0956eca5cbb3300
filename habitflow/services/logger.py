import logging
import sys
from typing import Optional

from habitflow.core.analytics import (
    capture_exception as posthog_capture_exception,
    track_event as posthog_track_event,
    get_posthog,
)


def _configure_logger() -> logging.Logger:
    logger = logging.getLogger("habitflow.api")
    if not logger.handlers:
        logger.setLevel(logging.INFO)
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            fmt="%(asctime)s %(levelname)s [%(name)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.propagate = False

        # ERROR records go to PostHog too; the handler is inert without an API key
        logger.addHandler(_PostHogErrorHandler())
    return logger


class _PostHogErrorHandler(logging.Handler):
    """Sends ERROR/CRITICAL logs to PostHog for observability."""

    def __init__(self, level: int = logging.ERROR) -> None:
        super().__init__(level=level)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            if get_posthog() is None:
                return

            properties = {
                "logger_name": record.name,
                "level": record.levelname,
                "message": record.getMessage(),
                "module": record.module,
                "funcName": record.funcName,
                "lineno": record.lineno,
            }

            # If an actual exception is attached, capture it; otherwise send as event
            if record.exc_info:
                exc_type, exc_value, _ = record.exc_info
                exc: Optional[Exception] = (
                    exc_value
                    if isinstance(exc_value, Exception)
                    else Exception(record.getMessage())
                )
                posthog_capture_exception(exc, properties=properties)
            else:
                posthog_track_event(
                    "server", "server_log_error", properties=properties
                )
        except Exception:
            # Never raise from a logging handler
            self.handleError(record)


logger = _configure_logger()
