"""Configuration management for homelibrary.

Loads configuration from environment variables and provides defaults.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

DEFAULT_CORS_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:8080",
    "http://localhost:3000",
]


def _env_bool(name: str, default: bool) -> bool:
    """Read a boolean flag from the environment."""
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Config:
    """Application configuration."""

    # Database
    db_path: str

    # File uploads
    upload_dir: Path

    # Server
    environment: str = "development"
    host: str = "127.0.0.1"
    port: int = 3001
    cors_origins: list[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    log_level: str = "INFO"

    # Lending policy
    allow_wishlist_lending: bool = True

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        db_path = os.environ.get(
            "HOMELIBRARY_DB_PATH",
            str(Path.home() / ".homelibrary" / "library.db"),
        )
        if db_path != ":memory:":
            db_path = str(Path(db_path).expanduser())

        upload_dir = Path(
            os.environ.get("HOMELIBRARY_UPLOAD_DIR", str(Path.cwd() / "uploads"))
        ).expanduser()

        origins = os.environ.get("HOMELIBRARY_CORS_ORIGINS")
        cors_origins = (
            [o.strip() for o in origins.split(",") if o.strip()]
            if origins
            else list(DEFAULT_CORS_ORIGINS)
        )

        return cls(
            db_path=db_path,
            upload_dir=upload_dir,
            environment=os.environ.get("HOMELIBRARY_ENV", "development").lower(),
            host=os.environ.get("HOMELIBRARY_HOST", "127.0.0.1"),
            port=int(os.environ.get("HOMELIBRARY_PORT", "3001")),
            cors_origins=cors_origins,
            log_level=os.environ.get("HOMELIBRARY_LOG_LEVEL", "INFO").upper(),
            allow_wishlist_lending=_env_bool("HOMELIBRARY_ALLOW_WISHLIST_LENDING", True),
        )

    @property
    def is_production(self) -> bool:
        """Whether error details should be hidden from clients."""
        return self.environment == "production"

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if self.db_path != ":memory:":
            db_dir = Path(self.db_path).parent
            if not db_dir.exists():
                try:
                    db_dir.mkdir(parents=True, exist_ok=True)
                except PermissionError:
                    errors.append(f"Cannot create database directory: {db_dir}")

        if self.environment not in ("development", "production"):
            errors.append(f"Unknown environment: {self.environment}")

        if not 0 < self.port < 65536:
            errors.append(f"Invalid port: {self.port}")

        return errors


# Global config instance, used by the CLI only
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
