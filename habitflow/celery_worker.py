"""
Celery Worker Entry Point

Start workers:
    celery -A habitflow.celery_worker worker --loglevel=info

Run Celery Beat (daily insight refresh):
    celery -A habitflow.celery_worker beat --loglevel=info

Or run both worker and beat together:
    celery -A habitflow.celery_worker worker --beat --loglevel=info
"""

from habitflow.core.celery_app import celery_app
from habitflow.core import celery_signals  # noqa: F401  registers signal handlers

__all__ = ["celery_app"]
