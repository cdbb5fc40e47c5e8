"""
Bakestock settings.

Each section reads its own environment prefix (``STORAGE_``, ``API_``,
``LEDGER_``, ``ANALYTICS_``, ``CLIENT_``); top-level values and a local ``.env``
file are read by ``Settings``.
"""

from pathlib import Path
from typing import Any, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Location and tuning of the SQLite ledger database."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    data_dir: Path = Path("data")
    db_name: str = "bakestock.db"

    pool_size: int = 5
    busy_timeout: int = 30000  # ms

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


class APISettings(BaseSettings):
    """HTTP server and listing defaults."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = ["*"]

    # Movement listings: limit defaults to and is capped by these
    default_page_size: int = 50
    max_page_size: int = 200


class LedgerSettings(BaseSettings):
    """Stock ledger configuration."""

    model_config = SettingsConfigDict(env_prefix="LEDGER_")

    # IANA zone used for calendar-day and calendar-month bucketing
    timezone: str = "UTC"

    count_units: list[str] = [
        "units",
        "pieces",
        "pcs",
        "loaves",
        "cakes",
        "bottles",
        "packs",
    ]
    continuous_units: list[str] = ["kg", "g", "lb", "oz", "liter", "l"]

    low_stock_threshold: float = 10.0

    @field_validator("timezone")
    @classmethod
    def known_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"unknown IANA time zone: {v}") from e
        return v

    @model_validator(mode="after")
    def disjoint_unit_classes(self) -> "LedgerSettings":
        overlap = {u.lower() for u in self.count_units} & {
            u.lower() for u in self.continuous_units
        }
        if overlap:
            raise ValueError(f"units cannot be both count and continuous: {sorted(overlap)}")
        return self


class AnalyticsSettings(BaseSettings):
    """Usage analytics configuration."""

    model_config = SettingsConfigDict(env_prefix="ANALYTICS_")

    # |change| at or above this percentage is labelled significant
    significant_change_percent: float = 50.0
    default_previous_months: int = Field(default=3, ge=1)
    max_previous_months: int = Field(default=24, ge=1)


class ClientSettings(BaseSettings):
    """Defaults for BakestockClient."""

    model_config = SettingsConfigDict(env_prefix="CLIENT_")

    base_url: str = "http://localhost:8000"
    timeout: float = 30.0


class Settings(BaseSettings):
    """Root settings object; sections are nested models."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Bakestock Inventory"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    storage: StorageSettings = Field(default_factory=StorageSettings)
    api: APISettings = Field(default_factory=APISettings)
    ledger: LedgerSettings = Field(default_factory=LedgerSettings)
    analytics: AnalyticsSettings = Field(default_factory=AnalyticsSettings)
    client: ClientSettings = Field(default_factory=ClientSettings)

    @field_validator("storage", mode="before")
    @classmethod
    def ensure_data_dir(cls, v: Any) -> StorageSettings:
        if isinstance(v, dict):
            settings = StorageSettings(**v)
        else:
            settings = v or StorageSettings()
        settings.data_dir.mkdir(parents=True, exist_ok=True)
        return settings


_settings: Settings | None = None


def get_settings() -> Settings:
    """Process-wide settings, built on first use."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
