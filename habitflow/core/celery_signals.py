"""
Celery Signal Handlers

Hooks for Celery worker lifecycle events.
"""

from celery.signals import worker_ready, worker_shutdown

from habitflow.core.analytics import initialize_posthog, shutdown_posthog
from habitflow.core.config import settings
from habitflow.services.logger import logger


@worker_ready.connect
def on_worker_ready(sender, **kwargs):
    """Start PostHog so insight events from background refreshes are tracked."""
    if settings.POSTHOG_API_KEY:
        initialize_posthog()

    logger.info("Celery worker ready")


@worker_shutdown.connect
def on_worker_shutdown(sender, **kwargs):
    """Flush queued PostHog events before the worker exits."""
    if settings.POSTHOG_API_KEY:
        try:
            shutdown_posthog()
        except Exception as e:
            logger.warning(f"PostHog shutdown failed: {e}")
