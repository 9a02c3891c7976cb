"""Application configuration."""

from pydantic_settings import BaseSettings, SettingsConfigDict

from safetrail.core.sos_policies import DECOY_DELAY_MS


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    app_name: str = "safetrail"
    debug: bool = False
    database_url: str = "sqlite:///./safetrail.db"

    # Risk evaluation clock (device-local time in the mobile app)
    local_timezone: str = "UTC"

    # SOS
    decoy_delay_ms: int = DECOY_DELAY_MS

    # Geolocation watch policy. A timeout is reported as an error but keeps the
    # watch open, so devices pushing slower than this stay tracked.
    geolocation_high_accuracy: bool = True
    geolocation_timeout_ms: int = 10000
    geolocation_max_age_ms: int = 0

    # Tracking side effects
    location_log_interval_seconds: int = 30
    auto_risk_alerts: bool = False


settings = Settings()
