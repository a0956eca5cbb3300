"""
PostHog Analytics Service
Handles product event tracking and exception monitoring for the insights core
"""

from posthog import Posthog
from habitflow.core.config import settings
import logging

logger = logging.getLogger(__name__)

# Initialize PostHog client
posthog = None


def initialize_posthog():
    """Initialize PostHog client with configuration"""
    global posthog

    if not settings.POSTHOG_API_KEY:
        logger.warning("PostHog API key not found, analytics disabled")
        return None

    try:
        posthog = Posthog(
            project_api_key=settings.POSTHOG_API_KEY,
            host=settings.POSTHOG_HOST,
            enable_exception_autocapture=settings.POSTHOG_ENABLE_EXCEPTION_AUTOCAPTURE,
        )
        logger.info("PostHog analytics initialized")
        return posthog
    except Exception as e:
        logger.error(f"Failed to initialize PostHog: {e}")
        return None


def get_posthog():
    """Get PostHog client instance"""
    global posthog
    if posthog is None and settings.POSTHOG_API_KEY:
        posthog = initialize_posthog()
    return posthog


def track_event(user_id: str, event_name: str, properties: dict = None):
    """Track an event for a user"""
    client = get_posthog()
    if not client:
        return

    try:
        client.capture(
            distinct_id=user_id, event=event_name, properties=properties or {}
        )
        logger.debug(f"Event tracked: {event_name} for user {user_id}")
    except Exception as e:
        logger.error(f"Failed to track event {event_name}: {e}")


def track_insight_generated(user_id: str, insight_type: str, tokens_used: int):
    """Track a successful insight generation (token spend per type)"""
    track_event(
        user_id=user_id,
        event_name="ai_insight_generated",
        properties={"insight_type": insight_type, "tokens_used": tokens_used},
    )


def track_insight_rate_limited(user_id: str, insight_type: str, retry_after: str):
    """Track a forced regeneration that was refused by the rate limit"""
    track_event(
        user_id=user_id,
        event_name="ai_insight_rate_limited",
        properties={"insight_type": insight_type, "retry_after": retry_after},
    )


def capture_exception(error: Exception, user_id: str = None, properties: dict = None):
    """Manually capture an exception"""
    client = get_posthog()
    if not client:
        return

    try:
        client.capture_exception(
            error, distinct_id=user_id or "anonymous", properties=properties or {}
        )
        logger.debug(f"Exception captured for user {user_id or 'anonymous'}")
    except Exception as e:
        logger.error(f"Failed to capture exception: {e}")


def shutdown_posthog():
    """Shutdown PostHog client"""
    global posthog
    if posthog:
        try:
            posthog.shutdown()
            posthog = None
        except Exception as e:
            logger.error(f"Failed to shutdown PostHog: {e}")
