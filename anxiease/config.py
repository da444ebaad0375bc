"""
Configuration management with environment variable support and validation.

Design principles:
- Environment-specific configs (dev, staging, prod)
- Validation at startup (fail fast)
- Type safety with Pydantic
- Connection details and tuning passed in explicitly, never hardcoded in services
"""

import os
from functools import lru_cache
from typing import Literal, cast

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

from anxiease.domain.models import ALERT_LEVELS, Severity

# Load environment variables from .env file
load_dotenv()

MINUTE = 60.0


class DetectionConfig(BaseModel):
    """Sustained anxiety detection settings."""

    min_sustained_seconds: float = Field(
        default=30.0, gt=0.0, description="How long heart rate must stay elevated"
    )
    min_data_points: int = Field(
        default=3, ge=1, description="Fewest readings worth analyzing"
    )
    history_window_seconds: float = Field(
        default=40.0, gt=0.0, description="How far back to fetch readings"
    )
    fetch_timeout_seconds: float = Field(
        default=5.0, gt=0.0, description="Timeout for fetching readings from a source"
    )

    @model_validator(mode="after")
    def window_covers_duration(self) -> "DetectionConfig":
        """A window shorter than the required duration could never detect anything."""
        if self.history_window_seconds < self.min_sustained_seconds:
            raise ValueError("history window must be at least as long as the sustained duration")
        return self


class SeverityCooldown(BaseModel):
    """Cooldowns for one severity, chosen by the user's last response."""

    base_seconds: float = Field(gt=0.0, description="After 'yes' or no response")
    denied_seconds: float = Field(gt=0.0, description="After the user said they are not anxious")
    dismissed_seconds: float = Field(gt=0.0, description="After the user said 'not now'")
    max_seconds: float = Field(gt=0.0, description="How long a response keeps influencing cooldown")


def _default_cooldowns() -> dict[Severity, SeverityCooldown]:
    return {
        Severity.MILD: SeverityCooldown(
            base_seconds=20 * MINUTE,
            denied_seconds=60 * MINUTE,
            dismissed_seconds=15 * MINUTE,
            max_seconds=120 * MINUTE,
        ),
        Severity.MODERATE: SeverityCooldown(
            base_seconds=15 * MINUTE,
            denied_seconds=60 * MINUTE,
            dismissed_seconds=15 * MINUTE,
            max_seconds=120 * MINUTE,
        ),
        Severity.SEVERE: SeverityCooldown(
            base_seconds=10 * MINUTE,
            denied_seconds=30 * MINUTE,
            dismissed_seconds=10 * MINUTE,
            max_seconds=60 * MINUTE,
        ),
        Severity.CRITICAL: SeverityCooldown(
            base_seconds=5 * MINUTE,
            denied_seconds=10 * MINUTE,
            dismissed_seconds=3 * MINUTE,
            max_seconds=15 * MINUTE,
        ),
    }


class RateLimitConfig(BaseModel):
    """Alert rate limiting settings."""

    user_window_seconds: float = Field(
        default=2 * MINUTE, ge=0.0, description="Minimum gap between any two alerts to one user"
    )
    cooldowns: dict[Severity, SeverityCooldown] = Field(default_factory=_default_cooldowns)

    @model_validator(mode="after")
    def every_alert_level_has_cooldown(self) -> "RateLimitConfig":
        missing = [level.value for level in ALERT_LEVELS if level not in self.cooldowns]
        if missing:
            raise ValueError(f"missing cooldowns for: {', '.join(missing)}")
        return self


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    format: Literal["json", "console"] = Field(default="json", description="Logging format")


class AppConfig(BaseModel):
    """Main application configuration combining all subsystems."""

    # Environment
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")
    alert_history_size: int = Field(default=1000, gt=0, description="Alerts kept in memory")

    # Component configs
    detection: DetectionConfig = Field(default_factory=DetectionConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def debug_only_in_dev(self) -> "AppConfig":
        """Ensure debug mode is only allowed in development environment."""
        if self.debug and self.environment != "development":
            raise ValueError("debug mode is only allowed in development environment")
        return self


def load_config_from_env() -> AppConfig:
    """Load configuration from environment variables with validation."""

    def _env_to_literal(val: str) -> Literal["development", "staging", "production"]:
        v = val.strip().lower()
        if v in {"dev", "development"}:
            return "development"
        if v in {"stage", "staging"}:
            return "staging"
        return "production"

    def _level_to_literal(val: str) -> Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
        v = val.strip().upper()
        return cast(
            Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            v if v in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO",
        )

    # Detect environment
    environment = _env_to_literal(os.getenv("ENVIRONMENT", "development"))
    debug = environment == "development"

    detection_config = DetectionConfig(
        min_sustained_seconds=float(os.getenv("MIN_SUSTAINED_SECONDS", "30.0")),
        min_data_points=int(os.getenv("MIN_DATA_POINTS", "3")),
        history_window_seconds=float(os.getenv("HISTORY_WINDOW_SECONDS", "40.0")),
    )

    rate_limit_config = RateLimitConfig(
        user_window_seconds=float(os.getenv("USER_RATE_LIMIT_SECONDS", "120.0")),
    )

    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("LOG_LEVEL", "INFO")),
        format="console" if debug else "json",
    )

    return AppConfig(
        environment=environment,
        debug=debug,
        detection=detection_config,
        rate_limit=rate_limit_config,
        logging=logging_config,
    )


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return load_config_from_env()


# Development helpers
def print_config_summary() -> None:
    """Print configuration summary for debugging."""
    config = get_config()

    print("\nCONFIGURATION SUMMARY")
    print(f"Environment: {config.environment}")
    print(f"Debug Mode: {config.debug}")
    print(f"Log Level: {config.logging.level}")

    print("\nDETECTION")
    print(f"Sustained Duration: {config.detection.min_sustained_seconds}s")
    print(f"History Window: {config.detection.history_window_seconds}s")
    print(f"Minimum Readings: {config.detection.min_data_points}")

    print("\nRATE LIMITS")
    print(f"Per-user Window: {config.rate_limit.user_window_seconds}s")
    for severity, cooldown in config.rate_limit.cooldowns.items():
        print(
            f"{severity.value}: {cooldown.base_seconds / MINUTE:.0f}m base, "
            f"{cooldown.denied_seconds / MINUTE:.0f}m denied, "
            f"{cooldown.dismissed_seconds / MINUTE:.0f}m dismissed"
        )


if __name__ == "__main__":
    print_config_summary()
