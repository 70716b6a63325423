"""
LifeLine Application Settings

Configuration management using Pydantic Settings.
All values can be overridden from environment variables.

SAFETY: The signal and escalation constants below are operational
defaults, not clinically validated values.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SignalSettings(BaseSettings):
    """Sampling loop and signal processing configuration."""

    model_config = SettingsConfigDict(env_prefix="LIFELINE_SIGNAL_")

    sample_rate_hz: float = Field(default=30.0, gt=0, le=500, description="Frames per second")
    window_seconds: float = Field(default=10.0, gt=0, le=300, description="Rolling buffer length")
    min_samples: int = Field(default=100, ge=10, description="Samples required before recompute")
    recompute_every: int = Field(default=10, ge=1, description="Recompute cadence in frames")

    # Band-pass approximation (physiological heart-rate band)
    low_cut_hz: float = Field(default=0.5, gt=0)
    high_cut_hz: float = Field(default=3.0, gt=0)
    peak_threshold_ratio: float = Field(default=0.5, gt=0, lt=1)
    # Beat-to-beat periodicity mapped linearly onto a confidence weight
    periodicity_floor: float = Field(default=0.2, ge=0, lt=1)
    periodicity_full: float = Field(default=0.8, gt=0, le=1)

    # Physiological clamps
    min_heart_rate: float = Field(default=40.0, gt=0)
    max_heart_rate: float = Field(default=180.0, gt=0)
    default_heart_rate: float = Field(default=70.0, gt=0)

    # HRV / rhythm analysis
    rr_history_size: int = Field(default=50, ge=10)
    min_rr_for_hrv: int = Field(default=10, ge=2)
    rhythm_window: int = Field(default=20, ge=2)
    irregular_cv_threshold: float = Field(default=0.15, gt=0)
    premature_beat_fraction: float = Field(default=0.3, gt=0)
    bradycardia_below: float = Field(default=50.0, gt=0)
    tachycardia_above: float = Field(default=120.0, gt=0)

    # Degradation
    confidence_decay: float = Field(default=0.8, gt=0, le=1)
    synthetic_confidence_cap: float = Field(default=0.25, ge=0, le=1)
    synthetic_heart_rate: float = Field(default=72.0, gt=0)
    synthetic_seed: int = Field(default=7)

    @property
    def capacity(self) -> int:
        """Buffer capacity in samples."""
        return int(round(self.window_seconds * self.sample_rate_hz))

    @property
    def period_seconds(self) -> float:
        """Sampling loop period."""
        return 1.0 / self.sample_rate_hz

    @model_validator(mode="after")
    def validate_bands(self) -> "SignalSettings":
        """Reject inverted physiological ranges."""
        if self.low_cut_hz >= self.high_cut_hz:
            raise ValueError("low_cut_hz must be below high_cut_hz")
        if self.min_heart_rate >= self.max_heart_rate:
            raise ValueError("min_heart_rate must be below max_heart_rate")
        if self.periodicity_floor >= self.periodicity_full:
            raise ValueError("periodicity_floor must be below periodicity_full")
        return self


class RiskSettings(BaseSettings):
    """Risk scoring configuration."""

    model_config = SettingsConfigDict(env_prefix="LIFELINE_RISK_")

    min_vitals_confidence: float = Field(default=0.3, ge=0, le=1)
    event_ttl_seconds: float = Field(default=300.0, gt=0)
    event_decay_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Time constant of the exponential decay of an event's scalar contribution",
    )
    history_size: int = Field(default=300, ge=10)
    trend_delta: float = Field(default=2.0, ge=0)


class EscalationSettings(BaseSettings):
    """Escalation state machine and notification protocol timing."""

    model_config = SettingsConfigDict(env_prefix="LIFELINE_ESCALATION_")

    trigger_tier: Literal["medium", "high", "critical"] = Field(
        default="high",
        description="Minimum risk tier that starts an escalation",
    )
    countdown_seconds: float = Field(default=10.0, ge=0)
    stagger_seconds: float = Field(default=2.0, ge=0)
    retry_backoff_seconds: float = Field(default=30.0, ge=0)
    max_retries: int = Field(default=2, ge=0, le=2)
    critical_followup_seconds: float = Field(default=30.0, ge=0)
    backup_followup_seconds: float = Field(default=60.0, ge=0)
    rearm_below_trigger: bool = Field(
        default=True,
        description="After a session closes, require risk to fall below the trigger tier before the same tier can open another",
    )
    history_size: int = Field(default=50, ge=1)
    drain_timeout_seconds: float = Field(
        default=5.0,
        ge=0,
        description="How long shutdown waits for in-flight notifications",
    )


class Settings(BaseSettings):
    """
    Main application settings.

    All configuration is loaded from environment variables with LIFELINE_ prefix.

    Usage:
        settings = get_settings()
        capacity = settings.signal.capacity
    """

    model_config = SettingsConfigDict(
        env_prefix="LIFELINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level"
    )
    api_version: str = Field(default="v1", description="API version prefix")
    cors_origins: list[str] = Field(
        default=["http://localhost:5173"],
        description="Allowed CORS origins"
    )

    # Notification dispatch
    dispatcher: Literal["logging", "none"] = Field(
        default="logging",
        description="Notification transport used by the escalation engine",
    )

    # Source selection
    use_synthetic_fallback: bool = Field(
        default=True,
        description="Substitute the synthetic generator when no capture device answers",
    )

    # Nested settings
    signal: SignalSettings = Field(default_factory=SignalSettings)
    risk: RiskSettings = Field(default_factory=RiskSettings)
    escalation: EscalationSettings = Field(default_factory=EscalationSettings)

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.env == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.
    For testing, construct Settings directly and inject it.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
