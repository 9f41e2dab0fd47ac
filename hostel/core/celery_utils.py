"""Helpers for queueing Celery tasks without making them a hard dependency."""

from __future__ import annotations

import logging
from typing import Any, Optional

from kombu.exceptions import OperationalError

logger = logging.getLogger(__name__)


def safe_celery_delay(task, *args, **kwargs) -> Optional[Any]:
    """
    Queue a Celery task, tolerating an unreachable broker.

    Notifications are best effort: if the broker cannot be reached the
    failure is logged and None is returned instead of failing the request.
    """
    try:
        result = task.delay(*args, **kwargs)
        logger.debug(f"Celery task {task.name} queued with ID: {result.id}")
        return result
    except OperationalError as e:
        logger.warning(
            f"Failed to queue Celery task {task.name}: {e}. "
            f"Continuing without background task execution."
        )
        return None
