"""Event-catalog provider implementations.

TicketmasterEventCatalogProvider queries the Discovery API v2 for music
attractions and their upcoming events (requires TICKETMASTER_API_KEY).
"""

from concert_groups.providers.event_catalog.ticketmaster_provider import (
    TicketmasterEventCatalogProvider,
)

__all__ = ["TicketmasterEventCatalogProvider"]
