"""Runtime settings read from the environment."""

import os
from dataclasses import dataclass
from typing import Optional

from .database import get_database_url
from .sync.scheduler import DEFAULT_INTERVAL_MINUTES, validate_interval
from .sync.service import DEFAULT_BATCH_LIMIT, DEFAULT_STATS_LIMIT

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")


@dataclass
class SyncSettings:
    """Settings for the sync service process."""
    database_url: str
    api_key: Optional[str] = None
    interval_minutes: int = DEFAULT_INTERVAL_MINUTES
    auto_start: bool = False
    batch_limit: int = DEFAULT_BATCH_LIMIT
    stats_limit: int = DEFAULT_STATS_LIMIT
    gateway: str = "simulator"

    @classmethod
    def from_env(cls) -> "SyncSettings":
        """Build settings from environment variables.

        Raises:
            ValueError: If a numeric variable is malformed or the interval is out of range.
        """
        settings = cls(
            database_url=get_database_url(),
            api_key=os.getenv("API_KEY"),
            interval_minutes=_env_int("SYNC_INTERVAL_MINUTES", DEFAULT_INTERVAL_MINUTES),
            auto_start=os.getenv("SYNC_AUTO_START", "false").strip().lower() in _TRUE_VALUES,
            batch_limit=_env_int("SYNC_BATCH_LIMIT", DEFAULT_BATCH_LIMIT),
            stats_limit=_env_int("SYNC_STATS_LIMIT", DEFAULT_STATS_LIMIT),
            gateway=os.getenv("BOLETO_GATEWAY", "simulator"),
        )
        validate_interval(settings.interval_minutes)
        return settings
