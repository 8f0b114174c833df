"""
Application settings and environment configuration.
"""
import logging
from typing import Optional, TYPE_CHECKING

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

if TYPE_CHECKING:
    from .config import RosterConfig

logger = logging.getLogger(__name__)

DEFAULT_PORTAL_URL = "https://securelink.labmed.uw.edu/cascadia/result"
DEFAULT_SQLITE_PATH = "./samples.db"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Lab Result Sync"
    app_version: str = "1.0.0"
    debug: bool = False
    testing: bool = False
    host: str = "127.0.0.1"
    port: int = 9000

    # Storage; falls back to the roster file's database_path
    database_url: Optional[str] = None

    # Roster / process configuration file
    config_path: str = "config.json"

    # Portal
    portal_url: str = Field(default=DEFAULT_PORTAL_URL)
    portal_timeout: Optional[float] = None  # None = wait forever

    # Scheduler
    scheduler_enabled: bool = True
    poll_interval_hours: float = 12.0

    # Listing page
    listing_limit: int = 10

    @field_validator("poll_interval_hours")
    @classmethod
    def validate_poll_interval(cls, v):
        if v <= 0:
            raise ValueError("poll_interval_hours must be positive")
        return v

    @field_validator("portal_url")
    @classmethod
    def validate_portal_url(cls, v):
        if not v.startswith(("http://", "https://")):
            raise ValueError("portal_url must be an http(s) URL")
        if v != DEFAULT_PORTAL_URL:
            logger.warning(f"Using non-default portal URL: {v}")
        return v

    def resolve_database_url(self, roster: Optional["RosterConfig"] = None) -> str:
        """Pick the store location: explicit URL, then roster file, then default."""
        if self.database_url:
            return self.database_url
        path = roster.database_path if roster and roster.database_path else DEFAULT_SQLITE_PATH
        return f"sqlite+aiosqlite:///{path}"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"
