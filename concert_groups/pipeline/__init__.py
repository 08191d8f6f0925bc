"""Batch orchestration for the concert-group formation job."""

from concert_groups.pipeline.orchestrator import ConcertGroupFormationJob

__all__ = ["ConcertGroupFormationJob"]
