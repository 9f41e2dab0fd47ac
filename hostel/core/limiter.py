"""Rate limiting configuration."""

from __future__ import annotations

import logging

from slowapi import Limiter
from slowapi.util import get_remote_address

from hostel.core.config import settings

logger = logging.getLogger(__name__)

# Booking writes are limited per client address; storage defaults to memory://
# and can point at Redis when several workers share one limit.
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    enabled=settings.RATE_LIMIT_ENABLED,
    in_memory_fallback_enabled=True,
)
logger.info(f"Rate limiter configured with storage: {settings.RATE_LIMIT_STORAGE_URI}")


def get_limiter() -> Limiter:
    """Get limiter instance."""
    return limiter
