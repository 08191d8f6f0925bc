"""Utility modules for the concert group formation engine.

- **errors** -- Domain exception hierarchy rooted at ConcertGroupsError.
- **logging** -- structlog setup stamping job and run ids, with coloured
  console output in development and JSON in production.
- **concurrency** -- the shared artist Pacer and a semaphore-bounded gather.
- **geo** (not re-exported here) -- haversine great-circle distance.
"""

from concert_groups.utils.concurrency import Pacer, throttled_gather
from concert_groups.utils.errors import (
    ConcertGroupsError,
    ConfigurationError,
    EventCatalogError,
    GroupConflictError,
    GroupInvariantError,
    ProviderUnavailableError,
    RateLimitError,
    StoreError,
)
from concert_groups.utils.logging import configure_logging, get_logger, new_run_id, run_context

__all__ = [
    "ConcertGroupsError",
    "ConfigurationError",
    "EventCatalogError",
    "GroupConflictError",
    "GroupInvariantError",
    "Pacer",
    "ProviderUnavailableError",
    "RateLimitError",
    "StoreError",
    "configure_logging",
    "get_logger",
    "new_run_id",
    "run_context",
    "throttled_gather",
]
