"""
Celery Tasks Package

Re-exports all tasks for Celery autodiscovery.

- insight_tasks: background refresh of cached AI insights
"""

from habitflow.services.tasks.insight_tasks import (
    refresh_all_user_insights_task,
    refresh_user_insights_chunk_task,
    refresh_user_insights_task,
)

__all__ = [
    "refresh_user_insights_task",
    "refresh_user_insights_chunk_task",
    "refresh_all_user_insights_task",
]
