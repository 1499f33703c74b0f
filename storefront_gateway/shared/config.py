"""
config.py - Gateway Settings

All vendor credentials are read from the environment once, at startup, into a
single ``Settings`` object. Route handlers never touch ``os.environ``; they get
the settings (and the clients built from them) through ``app.state``.

REQUIRED:
    SQUARE_ACCESS_TOKEN, SQUARE_LOCATION_ID, PINECONE_API_KEY

OPTIONAL:
    SQUARE_ENVIRONMENT (production | sandbox), SQUARE_API_VERSION,
    PINECONE_INDEX_NAME, PINECONE_INDEX_HOST, SEARCH_NAMESPACE, ADMIN_PASSWORD,
    REDIS_HOST, REDIS_PORT, WEBHOOK_DEDUPE_TTL_SECONDS,
    HTTP_TIMEOUT_SECONDS, LOG_LEVEL, GATEWAY_PORT
"""

import logging
from typing import List, Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

# Local development only. A warning is logged whenever it is in effect.
DEFAULT_ADMIN_PASSWORD = "admin123"

SQUARE_BASE_URLS = {
    "production": "https://connect.squareup.com",
    "sandbox": "https://connect.squareupsandbox.com",
}

REQUIRED_FIELDS = ("square_access_token", "square_location_id", "pinecone_api_key")


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    square_access_token: Optional[str] = None
    square_location_id: Optional[str] = None
    square_environment: Literal["production", "sandbox"] = "production"
    square_api_version: str = "2024-12-18"

    pinecone_api_key: Optional[str] = None
    pinecone_index_name: str = "books-index"
    pinecone_index_host: Optional[str] = None
    search_namespace: str = "books"

    admin_password: str = DEFAULT_ADMIN_PASSWORD

    redis_host: Optional[str] = None
    redis_port: int = 6379
    webhook_dedupe_ttl_seconds: int = 24 * 60 * 60

    http_timeout_seconds: float = 10.0
    log_level: str = "INFO"
    gateway_port: int = 8000

    @property
    def square_base_url(self) -> str:
        return SQUARE_BASE_URLS[self.square_environment]

    def missing_required(self) -> List[str]:
        """Names of required environment variables that are unset or blank."""
        return [
            name.upper()
            for name in REQUIRED_FIELDS
            if not (getattr(self, name) or "").strip()
        ]

    def require_complete(self) -> "Settings":
        """Raise ConfigurationError if any required credential is absent."""
        missing = self.missing_required()
        if missing:
            raise ConfigurationError(
                f"Missing required environment variable(s): {', '.join(missing)}"
            )
        return self

    def uses_default_admin_password(self) -> bool:
        return self.admin_password == DEFAULT_ADMIN_PASSWORD
