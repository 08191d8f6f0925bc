"""Pick the artists worth forming groups for.

Only an artist followed by at least two distinct users can ever yield a
group, so everything else is skipped before any catalog call is made.
"""

from __future__ import annotations

import structlog

from concert_groups.interfaces.listening_history_provider import IListeningHistoryProvider
from concert_groups.models.group import MIN_GROUP_SIZE
from concert_groups.models.social import SharedArtist
from concert_groups.utils.logging import get_logger


class SharedInterestSelector:
    """Inverts user follows into artist -> followers and keeps shared artists."""

    def __init__(self, listening_history: IListeningHistoryProvider) -> None:
        self._history = listening_history
        self._logger: structlog.BoundLogger = get_logger(__name__)

    async def shared_artists(self) -> list[SharedArtist]:
        """Artists with at least two followers, most-followed first.

        Ties are broken by artist id so the processing order is stable
        from run to run.
        """
        follows = await self._history.artist_follows()

        followers: dict[str, set[str]] = {}
        for user_id, artist_ids in follows.items():
            if not user_id:
                continue
            for artist_id in artist_ids:
                if artist_id and artist_id.strip():
                    followers.setdefault(artist_id, set()).add(user_id)

        shared_ids = sorted(
            (a for a, users in followers.items() if len(users) >= MIN_GROUP_SIZE),
            key=lambda a: (-len(followers[a]), a),
        )

        shared: list[SharedArtist] = []
        for artist_id in shared_ids:
            name = await self._history.artist_name(artist_id)
            shared.append(
                SharedArtist(
                    artist_id=artist_id,
                    artist_name=name,
                    user_ids=frozenset(followers[artist_id]),
                )
            )

        self._logger.info(
            "shared_artists_selected",
            users=len(follows),
            artists_followed=len(followers),
            shared=len(shared),
        )
        return shared
