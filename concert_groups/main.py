"""Concert group engine entry point.

Wires together providers, services and the batch orchestrator via
constructor injection.  Loads configuration from ``.env`` and
``config/config.yaml`` and configures structured logging.

Nothing is built at import time: every store handle is constructed here and
passed in explicitly, so tests and the CLI can build as many independent
jobs as they like.
"""

from __future__ import annotations

from typing import Any, Callable

import httpx
import structlog

from concert_groups.config.loader import formation_config_from, load_config
from concert_groups.config.settings import FormationConfig, Settings
from concert_groups.interfaces.event_catalog_provider import IEventCatalogProvider
from concert_groups.models.run import BatchRunReport
from concert_groups.pipeline.orchestrator import ConcertGroupFormationJob
from concert_groups.providers.event_catalog.ticketmaster_provider import (
    TicketmasterEventCatalogProvider,
)
from concert_groups.providers.social.sqlite_friendship_store import SQLiteFriendshipStore
from concert_groups.providers.social.sqlite_listening_history import (
    SQLiteListeningHistoryProvider,
)
from concert_groups.providers.social.sqlite_user_directory import SQLiteUserDirectory
from concert_groups.providers.store.sqlite_group_store import SQLiteGroupStore
from concert_groups.services.event_fetcher import EventFetcher
from concert_groups.services.friendship_clusterer import FriendshipClusterer
from concert_groups.services.geo_filter import GeoFilter
from concert_groups.services.merge_resolver import MergeResolver
from concert_groups.services.shared_interest_selector import SharedInterestSelector
from concert_groups.utils.errors import ConfigurationError
from concert_groups.utils.logging import configure_logging, get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


def build_stores(config: dict[str, Any]) -> dict[str, Any]:
    """Construct the SQLite-backed collaborators from the ``storage`` section."""
    storage = config.get("storage") or {}
    db_path = storage.get("database_path", "data/concert_groups.db")
    timeout = float(storage.get("timeout_seconds", 5.0))

    return {
        "user_directory": SQLiteUserDirectory(db_path, timeout=timeout),
        "friendship_store": SQLiteFriendshipStore(db_path, timeout=timeout),
        "listening_history": SQLiteListeningHistoryProvider(db_path, timeout=timeout),
        "group_store": SQLiteGroupStore(db_path, timeout=timeout),
    }


async def initialize_stores(stores: dict[str, Any]) -> None:
    """Create every table the engine reads or writes."""
    for name in ("user_directory", "friendship_store", "listening_history", "group_store"):
        await stores[name].initialize()


def build_catalog(
    config: dict[str, Any],
    http_client: httpx.AsyncClient,
) -> TicketmasterEventCatalogProvider:
    """Construct the Ticketmaster adapter from the ``event_catalog`` section."""
    section = config.get("event_catalog") or {}
    api_key = section.get("ticketmaster_api_key") or ""
    if not api_key:
        raise ConfigurationError(
            message="TICKETMASTER_API_KEY is not set",
            provider_name="ticketmaster",
        )
    return TicketmasterEventCatalogProvider(
        http_client=http_client,
        api_key=api_key,
        base_url=section.get("base_url", "https://app.ticketmaster.com/discovery/v2"),
        min_interval=float(section.get("min_interval_seconds", 0.25)),
    )


def build_job(
    stores: dict[str, Any],
    catalog: IEventCatalogProvider,
    formation: FormationConfig | None = None,
) -> ConcertGroupFormationJob:
    """Assemble the services and the orchestrator around existing stores."""
    user_directory = stores["user_directory"]
    friendship_store = stores["friendship_store"]

    return ConcertGroupFormationJob(
        selector=SharedInterestSelector(stores["listening_history"]),
        event_fetcher=EventFetcher(catalog),
        geo_filter=GeoFilter(user_directory),
        clusterer=FriendshipClusterer(friendship_store),
        resolver=MergeResolver(stores["group_store"], friendship_store),
        user_directory=user_directory,
        config=formation,
    )


async def run_daily_job(
    settings: Settings | None = None,
    config_path: str = "config/config.yaml",
    overrides: dict[str, Any] | None = None,
    on_job_built: Callable[[ConcertGroupFormationJob], None] | None = None,
    json_logs: bool = False,
) -> BatchRunReport:
    """Run one full formation pass with production wiring.

    Parameters
    ----------
    settings:
        Pre-built settings; read from the environment if omitted.
    config_path:
        YAML defaults layered under the environment.
    overrides:
        Values merged over the ``formation`` section (CLI flags).
    on_job_built:
        Called with the job before it starts, so the caller can hook
        signal handlers up to :meth:`ConcertGroupFormationJob.request_stop`.
    json_logs:
        Force JSON log rendering.
    """
    settings = settings or Settings()
    config = load_config(config_path, settings=settings)
    if overrides:
        config.setdefault("formation", {}).update(overrides)

    log_section = config.get("logging") or {}
    configure_logging(
        log_level=log_section.get("level", settings.log_level),
        json_output=json_logs or settings.app_env == "production",
    )

    formation = formation_config_from(config)
    stores = build_stores(config)
    await initialize_stores(stores)

    timeout = float((config.get("event_catalog") or {}).get("http_timeout_seconds", 15.0))
    async with httpx.AsyncClient(timeout=timeout) as http_client:
        catalog = build_catalog(config, http_client)
        job = build_job(stores, catalog, formation)
        if on_job_built is not None:
            on_job_built(job)
        _logger.info(
            "daily_job_starting",
            database=(config.get("storage") or {}).get("database_path"),
        )
        return await job.run()
