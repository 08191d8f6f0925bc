"""Application settings loaded from environment variables via pydantic-settings.

Settings are read from two sources (in priority order):

  1. **Environment variables** — e.g. ``TICKETMASTER_API_KEY=abc123``
  2. **.env file** — key=value lines in the project root ``.env`` file

Field ``radius_miles`` maps to env var ``RADIUS_MILES`` and so on.  Defaults
apply when neither source sets a value.

``FormationConfig`` is the typed, validated view of the two knobs the
formation job itself takes (proximity radius and artist pacing) plus the
optional worker count.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_RADIUS_MILES = 50.0
DEFAULT_ARTIST_DELAY_MS = 1000


class Settings(BaseSettings):
    """Concert group engine settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Event Catalog ===
    ticketmaster_api_key: str = ""
    ticketmaster_base_url: str = "https://app.ticketmaster.com/discovery/v2"
    ticketmaster_min_interval_seconds: float = 0.25  # Discovery API: 5 req/s

    # === Storage ===
    # One SQLite file holds users, relations, follows and groups.
    database_path: str = "data/concert_groups.db"
    db_timeout_seconds: float = 5.0

    # === Formation job ===
    radius_miles: float = DEFAULT_RADIUS_MILES
    artist_delay_ms: int = DEFAULT_ARTIST_DELAY_MS
    max_concurrent_artists: int = 1
    http_timeout_seconds: float = 15.0

    # === App Config ===
    app_env: str = "development"
    log_level: str = "INFO"


class FormationConfig(BaseModel):
    """Validated knobs of one formation run."""

    model_config = ConfigDict(frozen=True)

    radius_miles: float = Field(default=DEFAULT_RADIUS_MILES, gt=0)
    artist_delay_ms: int = Field(default=DEFAULT_ARTIST_DELAY_MS, ge=0)
    max_concurrent_artists: int = Field(default=1, ge=1)

    @property
    def artist_delay_seconds(self) -> float:
        return self.artist_delay_ms / 1000.0
