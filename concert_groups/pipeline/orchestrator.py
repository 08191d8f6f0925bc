"""Batch orchestrator for the daily concert-group formation job.

One pass of the job walks every *shared artist* (followed by two or more
users) through a fixed, strictly sequential pipeline:

    1. Event Fetcher       → upcoming concerts with located venues
    2. Geo Filter          → the artist's followers near each venue
    3. Friendship Clusterer→ friend components among those followers
    4. User Directory      → drop ids that vanished since the last sync
    5. Merge Resolver      → create or extend the group for the concert

ARCHITECTURE NOTE:
    Each artist is an isolated unit of work.  Any failure while processing
    one artist (catalog outage, SQLite lock timeout, bad payload) is logged
    with the artist's context, recorded as a FAILED outcome, and the run
    moves on.  The single exception is :class:`GroupInvariantError`: it means
    an earlier stage handed the resolver something it must never receive,
    so the job stops and the error propagates to the caller.

    The run is not transactional.  Whatever groups were written before a
    failure or a stop request stay written; the next run converges because
    every step is idempotent.

    A shared :class:`Pacer` inserts ``artist_delay_ms`` after each artist
    finishes before the next one starts.  When more than one worker is
    configured, the semaphore bounds how many artists are in flight while
    the pacer still keeps starts that far apart.

    ``request_stop()`` sets a signal that is checked before each artist
    starts; an artist already in flight always finishes.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import structlog

from concert_groups.config.settings import FormationConfig
from concert_groups.interfaces.user_directory import IUserDirectory
from concert_groups.models.concert import Concert
from concert_groups.models.group import MIN_GROUP_SIZE, ResolutionAction
from concert_groups.models.run import ArtistOutcome, ArtistStatus, BatchRunReport
from concert_groups.models.social import SharedArtist
from concert_groups.services.event_fetcher import EventFetcher
from concert_groups.services.friendship_clusterer import FriendshipClusterer
from concert_groups.services.geo_filter import GeoFilter
from concert_groups.services.merge_resolver import MergeResolver
from concert_groups.services.shared_interest_selector import SharedInterestSelector
from concert_groups.utils.concurrency import Pacer, throttled_gather
from concert_groups.utils.errors import GroupInvariantError
from concert_groups.utils.logging import get_logger, new_run_id, run_context


class _ArtistTally:
    """Mutable counters for one artist, frozen into an ArtistOutcome at the end."""

    def __init__(self) -> None:
        self.events_seen = 0
        self.clusters_found = 0
        self.groups_created = 0
        self.groups_extended = 0
        self.members_added = 0
        self.dropped_unknown_users = 0


class ConcertGroupFormationJob:
    """Runs one full pass of group formation over every shared artist.

    All collaborators are injected; see :func:`concert_groups.main.build_job`
    for the production wiring.
    """

    def __init__(
        self,
        selector: SharedInterestSelector,
        event_fetcher: EventFetcher,
        geo_filter: GeoFilter,
        clusterer: FriendshipClusterer,
        resolver: MergeResolver,
        user_directory: IUserDirectory,
        config: FormationConfig | None = None,
    ) -> None:
        self._selector = selector
        self._fetcher = event_fetcher
        self._geo = geo_filter
        self._clusterer = clusterer
        self._resolver = resolver
        self._users = user_directory
        self._config = config or FormationConfig()
        self._stop = asyncio.Event()
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def config(self) -> FormationConfig:
        return self._config

    @property
    def stop_requested(self) -> bool:
        return self._stop.is_set()

    def request_stop(self) -> None:
        """Finish the artist in flight, then halt before starting another."""
        if not self._stop.is_set():
            self._logger.info("formation_stop_requested")
        self._stop.set()

    # -- Public API -----------------------------------------------------------

    async def run(self) -> BatchRunReport:
        """Process every shared artist once and report what happened."""
        run_id = new_run_id()
        with run_context(run_id):
            return await self._run(run_id)

    async def _run(self, run_id: str) -> BatchRunReport:
        started_at = datetime.now(tz=timezone.utc)  # noqa: UP017
        artists = await self._selector.shared_artists()

        self._logger.info(
            "formation_run_started",
            artists=len(artists),
            radius_miles=self._config.radius_miles,
            artist_delay_ms=self._config.artist_delay_ms,
            workers=self._config.max_concurrent_artists,
        )

        pacer = Pacer(self._config.artist_delay_seconds)
        semaphore = asyncio.Semaphore(self._config.max_concurrent_artists)

        results = await throttled_gather(
            [self._paced(artist, pacer) for artist in artists],
            semaphore,
            return_exceptions=True,
        )

        outcomes: list[ArtistOutcome] = []
        for result in results:
            if isinstance(result, BaseException):
                raise result
            if result is not None:
                outcomes.append(result)

        report = BatchRunReport(
            run_id=run_id,
            started_at=started_at,
            artists_total=len(artists),
            stopped_early=len(outcomes) < len(artists),
            outcomes=outcomes,
        )
        self._logger.info(
            "formation_run_finished",
            artists_total=report.artists_total,
            artists_processed=report.artists_processed,
            artists_failed=report.artists_failed,
            groups_created=report.groups_created,
            groups_extended=report.groups_extended,
            members_added=report.members_added,
            stopped_early=report.stopped_early,
        )
        return report

    # -- Per-artist processing -------------------------------------------------

    async def _paced(self, artist: SharedArtist, pacer: Pacer) -> ArtistOutcome | None:
        if not await pacer.wait(self._stop):
            return None
        try:
            return await self._process_artist_safely(artist)
        except GroupInvariantError:
            # Keep sibling workers from starting new artists.
            self._stop.set()
            raise
        finally:
            pacer.mark_finished()

    async def _process_artist_safely(self, artist: SharedArtist) -> ArtistOutcome:
        with structlog.contextvars.bound_contextvars(artist_id=artist.artist_id):
            try:
                return await self._process_artist(artist)
            except GroupInvariantError:
                self._logger.error("group_invariant_violated", artist=artist.search_name)
                raise
            except Exception as exc:
                self._logger.error(
                    "artist_processing_failed",
                    artist=artist.search_name,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                return ArtistOutcome(
                    artist_id=artist.artist_id,
                    artist_name=artist.artist_name,
                    status=ArtistStatus.FAILED,
                    error=str(exc),
                )

    async def _process_artist(self, artist: SharedArtist) -> ArtistOutcome:
        concerts = await self._fetcher.events_for(artist.search_name)
        if not concerts:
            return ArtistOutcome(
                artist_id=artist.artist_id,
                artist_name=artist.artist_name,
                status=ArtistStatus.NO_EVENTS,
            )

        tally = _ArtistTally()
        for concert in concerts:
            tally.events_seen += 1
            await self._process_concert(artist, concert, tally)

        self._logger.info(
            "artist_processed",
            artist=artist.search_name,
            events=tally.events_seen,
            clusters=tally.clusters_found,
            groups_created=tally.groups_created,
            groups_extended=tally.groups_extended,
        )
        return ArtistOutcome(
            artist_id=artist.artist_id,
            artist_name=artist.artist_name,
            status=ArtistStatus.PROCESSED,
            events_seen=tally.events_seen,
            clusters_found=tally.clusters_found,
            groups_created=tally.groups_created,
            groups_extended=tally.groups_extended,
            members_added=tally.members_added,
            dropped_unknown_users=tally.dropped_unknown_users,
        )

    async def _process_concert(
        self,
        artist: SharedArtist,
        concert: Concert,
        tally: _ArtistTally,
    ) -> None:
        nearby = await self._geo.nearby(
            concert.venue_location,
            artist.user_ids,
            radius_miles=self._config.radius_miles,
        )
        if len(nearby) < MIN_GROUP_SIZE:
            return

        clusters = await self._clusterer.cluster_among(n.user_id for n in nearby)
        for cluster in clusters:
            tally.clusters_found += 1
            for survivor in await self._without_unknown_users(cluster, tally):
                resolution = await self._resolver.resolve(artist.artist_id, concert, survivor)
                if resolution.action == ResolutionAction.CREATED:
                    tally.groups_created += 1
                elif resolution.action == ResolutionAction.EXTENDED:
                    tally.groups_extended += 1
                tally.members_added += len(resolution.added_members)

    async def _without_unknown_users(
        self,
        cluster: frozenset[str],
        tally: _ArtistTally,
    ) -> list[frozenset[str]]:
        """Drop ids the directory no longer knows about.

        If anyone was dropped the remainder is re-clustered, since the
        dropped user may have been the only link between two halves.
        """
        known = await self._users.existing(cluster)
        if len(known) == len(cluster):
            return [cluster]

        dropped = cluster - known
        tally.dropped_unknown_users += len(dropped)
        self._logger.warning("unknown_users_dropped", user_ids=sorted(dropped))
        return await self._clusterer.cluster_among(known)
