"""
Shared utilities for Celery tasks.

This module contains common imports and helper functions used across all
task modules.
"""

import asyncio
from typing import Any, Awaitable, Dict, Optional

from habitflow.core.celery_app import celery_app
from habitflow.core.database import get_service_client
from habitflow.services.logger import logger


def run_async(coro: Awaitable[Any]) -> Any:
    """
    Run a coroutine to completion from a sync Celery task.

    Reuses the worker's event loop between tasks, creating a new one if the
    previous loop was closed.
    """
    try:
        loop = asyncio.get_event_loop()
        if loop.is_closed():
            loop = asyncio.new_event_loop()
            asyncio.set_event_loop(loop)
    except RuntimeError:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)

    return loop.run_until_complete(coro)


# Re-export common imports for use in task modules
__all__ = [
    "celery_app",
    "get_service_client",
    "logger",
    "run_async",
    "Dict",
    "Any",
    "Optional",
]
