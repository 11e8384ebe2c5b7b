"""
HealthCast Configuration.

Pydantic Settings v2 — loads from .env, environment variables.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ──────────────────────────────────────────────────────
    app_name: str = "HealthCast"
    app_version: str = "1.0.0"
    environment: str = Field(default="development", alias="HEALTHCAST_ENVIRONMENT")

    # ── Logging ──────────────────────────────────────────────────────────
    log_level: str = Field(default="INFO", alias="HEALTHCAST_LOG_LEVEL")
    log_format: str = Field(
        default="console", alias="HEALTHCAST_LOG_FORMAT",
        description="'json' for machine-readable logs, 'console' for humans",
    )

    # ── Severity Scorer ──────────────────────────────────────────────────
    feature_weight_min_history: int = Field(
        default=10, alias="HEALTHCAST_FEATURE_WEIGHT_MIN_HISTORY",
        description="Historical gaps required before feature weights are calibrated",
    )

    # ── Risk Engine ──────────────────────────────────────────────────────
    monte_carlo_trials: int = Field(default=1000, alias="HEALTHCAST_MONTE_CARLO_TRIALS")
    monte_carlo_jitter: float = Field(default=0.1, alias="HEALTHCAST_MONTE_CARLO_JITTER")
    monte_carlo_seed: int | None = Field(default=None, alias="HEALTHCAST_MONTE_CARLO_SEED")
    dynamic_threshold_min_points: int = Field(
        default=10, alias="HEALTHCAST_DYNAMIC_THRESHOLD_MIN_POINTS",
    )

    # ── Trend Analyzer ───────────────────────────────────────────────────
    trend_significance_slope: float = Field(
        default=0.05, alias="HEALTHCAST_TREND_SIGNIFICANCE_SLOPE",
    )
    trend_forecast_horizon: int = Field(default=7, alias="HEALTHCAST_TREND_FORECAST_HORIZON")

    # ── Alerting ─────────────────────────────────────────────────────────
    escalation_threshold_hours: float = Field(
        default=24.0, alias="HEALTHCAST_ESCALATION_THRESHOLD_HOURS",
    )
    escalated_alert_ttl_hours: float = Field(
        default=12.0, alias="HEALTHCAST_ESCALATED_ALERT_TTL_HOURS",
    )


settings = Settings()
