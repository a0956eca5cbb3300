"""
Celery Application Configuration

Celery task queue using Redis as broker and backend.
"""

from __future__ import annotations

import ssl
from typing import Dict, Optional

from celery import Celery
from habitflow.core.config import settings


def _build_redis_ssl_options(url: str) -> Optional[Dict[str, int]]:
    """
    Celery requires explicit SSL options when connecting to Redis over TLS.
    Hosted Redis often supplies rediss:// URLs without extra parameters.
    """

    if not url or not url.startswith("rediss://"):
        return None

    # Respect explicit ssl_cert_reqs in the URL if provided.
    if "ssl_cert_reqs" in url:
        return None

    return {"ssl_cert_reqs": ssl.CERT_NONE}


redis_url = settings.REDIS_URL
redis_ssl_options = _build_redis_ssl_options(redis_url)

celery_app = Celery(
    "habitflow",
    broker=redis_url,
    backend=redis_url,
    include=["habitflow.services.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    # Three generations per user, each bounded by INSIGHT_GENERATION_TIMEOUT_SECONDS
    task_time_limit=180,
    task_soft_time_limit=150,
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=1000,
    result_expires=3600,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    broker_use_ssl=redis_ssl_options,
    redis_backend_use_ssl=redis_ssl_options,
    beat_schedule={
        "refresh-ai-insights": {
            "task": "refresh_all_user_insights",
            "schedule": 60.0 * 60.0 * 24.0,  # Run DAILY
            # Only stale insights regenerate; fresh ones are served from cache
        },
    },
)
