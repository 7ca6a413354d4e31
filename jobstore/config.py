import logging
from pathlib import Path

from pydantic_settings import BaseSettings
from functools import lru_cache

_config_logger = logging.getLogger(__name__)

_PROJECT_DIR = Path(__file__).resolve().parents[1]
_ENV_FILES = (
    _PROJECT_DIR / ".env",
    ".env",
)


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    # Document store (CouchDB)
    couchdb_url: str = "http://localhost:5984"
    couchdb_database: str = "deepstyle"
    couchdb_username: str = ""
    couchdb_password: str = ""
    request_timeout: float = 30.0

    # Optimistic-concurrency retry ceilings
    edit_max_attempts: int = 10
    attachment_max_attempts: int = 10

    # Used when no content type is given and none can be guessed from the file name
    default_attachment_content_type: str = "application/octet-stream"

    # Logging — per-category log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    log_level: str = "INFO"                  # Root / app-wide
    log_level_http: str = "WARNING"          # httpx / httpcore — outbound HTTP
    log_level_store: str = "INFO"            # CouchDB client, retry engine, uploader

    model_config = {
        "env_file": _ENV_FILES,
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def database_url(self) -> str:
        """Base URL of the job database, e.g. ``http://localhost:5984/deepstyle``."""
        return f"{self.couchdb_url.rstrip('/')}/{self.couchdb_database.strip('/')}"

    @property
    def couchdb_auth(self) -> tuple[str, str] | None:
        if not self.couchdb_username:
            return None
        return (self.couchdb_username, self.couchdb_password)

    def model_post_init(self, __context: object) -> None:
        if self.edit_max_attempts < 1 or self.attachment_max_attempts < 1:
            _config_logger.warning(
                "Retry ceilings must be >= 1 (edit=%s, attachment=%s); using 1",
                self.edit_max_attempts,
                self.attachment_max_attempts,
            )
            object.__setattr__(self, "edit_max_attempts", max(1, self.edit_max_attempts))
            object.__setattr__(
                self, "attachment_max_attempts", max(1, self.attachment_max_attempts)
            )


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance — reads .env once."""
    return Settings()
