"""Configuration management for bookreviews.

Loads configuration from environment variables and provides defaults.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
VALID_LOG_FORMATS = ("console", "json")
DEFAULT_SECRET = "change-me"


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Config:
    """Application configuration."""

    # Database
    db_path: str
    db_timeout: float  # seconds

    # Tokens
    secret_key: str
    token_ttl: int  # seconds

    # Server
    host: str
    port: int
    debug: bool

    # Logging
    log_level: str
    log_format: str

    # API behaviour
    max_page_size: int
    books_require_auth: bool

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        db_path = os.environ.get("BOOKREVIEWS_DB_PATH", "bookreviews.db")
        if db_path != ":memory:":
            db_path = str(Path(db_path).expanduser())

        return cls(
            db_path=db_path,
            db_timeout=float(os.environ.get("BOOKREVIEWS_DB_TIMEOUT", "5.0")),
            secret_key=os.environ.get(
                "BOOKREVIEWS_SECRET_KEY",
                os.environ.get("JWT_SECRET", DEFAULT_SECRET),
            ),
            token_ttl=int(os.environ.get("BOOKREVIEWS_TOKEN_TTL", "3600")),
            host=os.environ.get("HOST", "127.0.0.1"),
            port=int(os.environ.get("PORT", "3000")),
            debug=_env_bool("BOOKREVIEWS_DEBUG"),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
            log_format=os.environ.get("LOG_FORMAT", "console").lower(),
            max_page_size=int(os.environ.get("BOOKREVIEWS_MAX_PAGE_SIZE", "100")),
            books_require_auth=_env_bool("BOOKREVIEWS_BOOKS_REQUIRE_AUTH"),
        )

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if self.log_level not in VALID_LOG_LEVELS:
            errors.append(f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}")
        if self.log_format not in VALID_LOG_FORMATS:
            errors.append(f"log_format must be one of: {', '.join(VALID_LOG_FORMATS)}")
        if self.token_ttl <= 0:
            errors.append("token_ttl must be positive")
        if self.max_page_size <= 0:
            errors.append("max_page_size must be positive")
        if self.db_timeout <= 0:
            errors.append("db_timeout must be positive")
        if not self.debug and self.secret_key == DEFAULT_SECRET:
            errors.append("BOOKREVIEWS_SECRET_KEY must be set outside debug mode")

        # Check database directory is writable
        if self.db_path != ":memory:":
            parent = Path(self.db_path).parent
            if not parent.exists():
                try:
                    parent.mkdir(parents=True, exist_ok=True)
                except PermissionError:
                    errors.append(f"Cannot create database directory: {parent}")

        return errors


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Reset the global config instance. Used for testing."""
    global _config
    _config = None
