"""Custom exception hierarchy for the concert group formation engine.

All application exceptions inherit from :class:`ConcertGroupsError`, which
carries an optional ``provider_name`` so error handlers can identify which
collaborator (e.g. "ticketmaster", "sqlite_group_store") caused the failure.

The hierarchy is organized by how the batch job reacts to each failure:

    ConcertGroupsError  (base -- catch-all for any engine error)
    +-- ProviderUnavailableError (upstream service down / timed out)
    +-- RateLimitError           (upstream rate limit exceeded)
    +-- EventCatalogError        (catalog returned an unusable response)
    +-- StoreError               (unexpected persistence failure)
    |   +-- GroupConflictError   (business key already taken by another writer)
    +-- GroupInvariantError      (programming-contract violation, fail fast)
    +-- ConfigurationError       (startup / invalid config)

Transient upstream errors are isolated per artist by the orchestrator.
GroupConflictError is recovered inside the merge resolver.  GroupInvariantError
is never caught by the engine: it means an upstream stage broke an invariant.
"""


class ConcertGroupsError(Exception):
    """Base exception for all concert group formation errors.

    The ``__str__`` method prefixes the provider name in brackets for
    structured log output, e.g. ``[ticketmaster] Rate limit exceeded``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Upstream (event catalog / listening history) errors
# ---------------------------------------------------------------------------

class ProviderUnavailableError(ConcertGroupsError):
    """Raised when an external service is unreachable or a call timed out."""

    def __init__(
        self,
        message: str = "External service is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RateLimitError(ConcertGroupsError):
    """Raised when an upstream API rate limit is exceeded.

    Treated like any other transient failure: the current artist is skipped
    and the next scheduled run picks it up again.
    """

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EventCatalogError(ConcertGroupsError):
    """Raised when the event catalog answers with something we cannot parse."""

    def __init__(
        self,
        message: str = "Event catalog request failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Persistence errors
# ---------------------------------------------------------------------------

class StoreError(ConcertGroupsError):
    """Raised when the group store or a SQLite-backed collaborator fails."""

    def __init__(
        self,
        message: str = "Store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class GroupConflictError(StoreError):
    """Raised when creating a group whose business key already exists.

    Another writer (an overlapping run) won the race.  The merge resolver
    catches this and merges into the now-existing row instead.
    """

    def __init__(
        self,
        message: str = "A group already exists for this artist, venue and date",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Contract / configuration errors
# ---------------------------------------------------------------------------

class GroupInvariantError(ConcertGroupsError):
    """Raised when a caller breaks a group invariant (e.g. a solo group)."""

    def __init__(
        self,
        message: str = "Concert group invariant violated",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(ConcertGroupsError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
