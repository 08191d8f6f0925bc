"""Per-artist and per-run metrics for the daily formation job.

The job is a background process with no user-visible surface, so these
reports (plus the logs) are the only way to see what a run did.  Outcomes
are appended as artists finish; the report is assembled once at the end.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ArtistStatus(str, Enum):  # noqa: UP042 — StrEnum requires Python 3.11+
    PROCESSED = "processed"
    NO_EVENTS = "no_events"
    FAILED = "failed"


class ArtistOutcome(BaseModel):
    """What happened while processing one shared artist."""

    model_config = ConfigDict(frozen=True)

    artist_id: str
    artist_name: str | None = None
    status: ArtistStatus
    events_seen: int = 0
    clusters_found: int = 0
    groups_created: int = 0
    groups_extended: int = 0
    members_added: int = 0
    dropped_unknown_users: int = 0
    error: str | None = None


class BatchRunReport(BaseModel):
    """Summary of one pass of the orchestrator."""

    model_config = ConfigDict(frozen=True)

    run_id: str = ""
    started_at: datetime
    finished_at: datetime = Field(
        default_factory=lambda: datetime.now(tz=timezone.utc)  # noqa: UP017
    )
    artists_total: int = 0
    stopped_early: bool = False
    outcomes: list[ArtistOutcome] = Field(default_factory=list)

    @property
    def artists_processed(self) -> int:
        return sum(1 for o in self.outcomes if o.status != ArtistStatus.FAILED)

    @property
    def artists_failed(self) -> int:
        return sum(1 for o in self.outcomes if o.status == ArtistStatus.FAILED)

    @property
    def groups_created(self) -> int:
        return sum(o.groups_created for o in self.outcomes)

    @property
    def groups_extended(self) -> int:
        return sum(o.groups_extended for o in self.outcomes)

    @property
    def members_added(self) -> int:
        return sum(o.members_added for o in self.outcomes)
