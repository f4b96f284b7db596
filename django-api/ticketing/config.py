"""Engine configuration.

Settings come from the environment (or a ``.env`` file) and are read once
per process through ``get_settings``. Only the handler wiring reads them;
services receive plain values through their constructors.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Engine tunables, read from ``TICKETING_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TICKETING_", env_file=".env", extra="ignore", case_sensitive=False
    )

    currency: str = Field(default="EUR", min_length=3, max_length=3)

    # Token checksum
    checksum_secret: str = ""
    checksum_length: int = Field(default=16, ge=8, le=64)

    # Wallet
    max_balance_cents: int = Field(default=100_000, gt=0)
    min_top_up_cents: int = Field(default=500, gt=0)
    max_top_up_cents: int = Field(default=20_000, gt=0)

    # Sessions
    max_session_minutes: int = Field(default=480, gt=0)
    minimum_billable_minutes: int = Field(default=15, ge=0)

    # Deterministic fault injection (off in production)
    fault_injection_enabled: bool = False
    fault_sentinel: str = Field(default="FAIL", min_length=1)
    declined_top_up_cents: int = 1337


_settings: EngineSettings | None = None


def get_settings() -> EngineSettings:
    global _settings
    if _settings is None:
        _settings = EngineSettings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
