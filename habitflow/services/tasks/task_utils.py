"""
Task Utilities for Celery

Chunking helpers for fanning work out over many users:
- Smaller chunks = better distribution but more overhead
- Larger chunks = less overhead but risk of timeouts
"""

from typing import Any, Dict, List

from habitflow.services.logger import logger

# 100 users per chunk balances memory vs overhead
DEFAULT_CHUNK_SIZE = 100


def chunk_list(
    items: List[Any], chunk_size: int = DEFAULT_CHUNK_SIZE
) -> List[List[Any]]:
    """
    Split a list into chunks of specified size.

    Args:
        items: List to split
        chunk_size: Size of each chunk

    Returns:
        List of chunks
    """
    return [items[i : i + chunk_size] for i in range(0, len(items), chunk_size)]


def dispatch_chunked_tasks(
    task: Any,
    items: List[Any],
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    **kwargs,
) -> Dict[str, Any]:
    """
    Dispatch a Celery task for each chunk of items (fire-and-forget).

    Args:
        task: Celery task whose first argument is the chunk
        items: List of items to process
        chunk_size: Number of items per chunk (default: 100)
        **kwargs: Additional arguments passed to each task call

    Returns:
        Dict with dispatch stats
    """
    if not items:
        return {"dispatched": 0, "total_items": 0, "chunk_size": chunk_size}

    chunks = chunk_list(items, chunk_size)

    for chunk in chunks:
        task.delay(chunk, **kwargs)

    logger.info(
        f"Dispatched {len(chunks)} chunk tasks for {len(items)} items",
        {
            "chunk_size": chunk_size,
            "task": str(task.name) if hasattr(task, "name") else str(task),
        },
    )

    return {
        "dispatched": len(chunks),
        "total_items": len(items),
        "chunk_size": chunk_size,
    }
