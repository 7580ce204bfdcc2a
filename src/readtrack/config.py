"""Configuration management for readtrack.

Loads configuration from environment variables and provides defaults.
"""

import logging
import os
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


@dataclass
class Config:
    """Application configuration."""

    # Database
    db_path: Path

    # Acting user for the CLI
    user_id: str

    # Day boundary used for "today" in streaks
    timezone: str

    # Logging
    log_level: str

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        db_path_str = os.environ.get(
            "READTRACK_DB_PATH",
            str(Path.home() / ".readtrack" / "readtrack.db"),
        )
        db_path = Path(db_path_str).expanduser()

        return cls(
            db_path=db_path,
            user_id=os.environ.get("READTRACK_USER_ID", "local"),
            timezone=os.environ.get("READTRACK_TIMEZONE", "UTC"),
            log_level=os.environ.get("READTRACK_LOG_LEVEL", "WARNING").upper(),
        )

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        # Check database directory is writable
        if not self.db_path.parent.exists():
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            except PermissionError:
                errors.append(f"Cannot create database directory: {self.db_path.parent}")

        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            errors.append(f"Unknown timezone: {self.timezone}")

        if not isinstance(logging.getLevelName(self.log_level), int):
            errors.append(f"Unknown log level: {self.log_level}")

        if not self.user_id:
            errors.append("READTRACK_USER_ID must not be empty")

        return errors

    def today(self) -> date:
        """Current calendar day in the configured timezone."""
        return datetime.now(ZoneInfo(self.timezone)).date()

    def local_date(self, moment: datetime) -> date:
        """Calendar day of an aware moment in the configured timezone."""
        return moment.astimezone(ZoneInfo(self.timezone)).date()


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
