"""
Application settings with Pydantic v2 validation.

Loads configuration from environment variables with sensible defaults.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class InventorySettings(BaseSettings):
    """Stock ledger, alerting and reorder configuration."""

    model_config = SettingsConfigDict(env_prefix="INVENTORY_")

    # Alert thresholds
    expiration_warning_days: int = 30
    expiration_urgent_days: int = 7
    overstock_factor: float = 1.2

    # Auto-reorder
    auto_reorder_enabled: bool = True
    default_lead_time_days: int = 7
    reorder_fallback_multiplier: int = 3  # minimum_stock * N when no maximum
    default_supplier_id: str = "default_supplier"
    default_supplier_name: str = "Primary Supplier"
    default_currency: str = "MXN"

    # Optimistic concurrency retries
    conflict_max_retries: int = 5
    conflict_retry_delay: float = 0.01

    # Sweep paging
    sweep_page_size: int = 200


class NotificationSettings(BaseSettings):
    """Notification sink configuration."""

    model_config = SettingsConfigDict(env_prefix="NOTIFY_")

    webhook_url: str | None = None  # None -> log-only sink
    timeout: float = 10.0
    max_retries: int = 3
    retry_delay: float = 0.5
    purchasing_recipient: str = "purchasing@ranch.local"


class StorageSettings(BaseSettings):
    """Storage configuration."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    data_dir: Path = Path("data")
    db_name: str = "ranch_inventory.db"

    # SQLite settings
    pool_size: int = 5
    busy_timeout: int = 30000  # ms

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


class AnalysisSettings(BaseSettings):
    """Valuation and analysis report configuration."""

    model_config = SettingsConfigDict(env_prefix="ANALYSIS_")

    # Turnover per year
    fast_moving_threshold: float = 12.0
    medium_moving_threshold: float = 4.0
    slow_moving_threshold: float = 2.0

    # ABC cumulative percentage cut-offs
    abc_a_threshold: float = 80.0
    abc_b_threshold: float = 95.0

    cost_variance_threshold: float = 10.0  # percent
    top_items: int = 10
    max_recommendations: int = 5


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Ranch Inventory Ledger"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Sub-settings
    inventory: InventorySettings = Field(default_factory=InventorySettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    analysis: AnalysisSettings = Field(default_factory=AnalysisSettings)

    @field_validator("storage", mode="before")
    @classmethod
    def ensure_data_dir(cls, v: Any) -> StorageSettings:
        if isinstance(v, dict):
            settings = StorageSettings(**v)
        else:
            settings = v or StorageSettings()
        settings.data_dir.mkdir(parents=True, exist_ok=True)
        return settings


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None
