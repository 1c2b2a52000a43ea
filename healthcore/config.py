"""
Configuration management with environment variable support and validation.

Design principles:
- Environment-specific configs (dev, staging, prod)
- Validation at startup (fail fast)
- Type safety with Pydantic
- Thresholds live in one place so tests can override them
"""

import os
from functools import lru_cache
from typing import Literal, cast

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

# Load environment variables from .env file
load_dotenv()

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
Environment = Literal["development", "staging", "production"]


class ScoringConfig(BaseModel):
    """Thresholds used by the health score composer."""

    max_insights: int = Field(default=3, gt=0, description="Maximum insights shown at once")
    variability_penalty_threshold: float = Field(
        default=10, ge=0, description="BP variability penalty above which a warning fires"
    )
    duration_score_threshold: float = Field(
        default=60, ge=0, le=100, description="Sleep duration score below which a warning fires"
    )
    restorative_pct_threshold: float = Field(
        default=35, ge=0, le=100, description="Deep + REM percentage below which a warning fires"
    )
    poor_sleep_minutes: int = Field(
        default=360, gt=0, description="Nights shorter than this count as poor sleep"
    )
    next_day_systolic_threshold: float = Field(
        default=130, gt=0, description="Mean next-day systolic above which a correlation fires"
    )
    critical_subscore: float = Field(
        default=35, ge=0, le=100, description="Subscore below which the overall score is capped"
    )
    critical_overall_cap: float = Field(
        default=50, ge=0, le=100, description="Overall score cap when a subscore is critical"
    )


class RegistryConfig(BaseModel):
    """Ignored-metric registry persistence settings."""

    debounce_seconds: float = Field(
        default=0.5, ge=0.0, description="Quiet period after the last mutation before writing"
    )
    storage_key: str = Field(
        default="soma-ignored-blood-metrics", min_length=1, description="Key used in the store"
    )
    storage_path: str = Field(
        default="./data/healthcore.json", description="Path of the JSON key-value store"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(default="INFO", description="Logging level")
    format: Literal["json", "console"] = Field(default="json", description="Logging format")


class AppConfig(BaseModel):
    """Main application configuration combining all subsystems."""

    environment: Environment = Field(default="development", description="Environment")
    debug: bool = Field(default=False, description="Enable debug mode")

    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def debug_only_in_dev(self) -> "AppConfig":
        """Ensure debug mode is only allowed in development environment."""
        if self.debug and self.environment != "development":
            raise ValueError("debug mode is only allowed in development environment")
        return self


def load_config_from_env() -> AppConfig:
    """Load configuration from environment variables with validation."""

    def _env_to_literal(val: str) -> Environment:
        v = val.strip().lower()
        if v in {"dev", "development"}:
            return "development"
        if v in {"stage", "staging"}:
            return "staging"
        return "production"

    def _level_to_literal(val: str) -> LogLevel:
        v = val.strip().upper()
        return cast(
            LogLevel,
            v if v in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO",
        )

    environment = _env_to_literal(os.getenv("ENVIRONMENT", "development"))
    debug = environment == "development"

    scoring_config = ScoringConfig(
        max_insights=int(os.getenv("MAX_INSIGHTS", "3")),
    )

    registry_config = RegistryConfig(
        debounce_seconds=float(os.getenv("IGNORED_METRICS_DEBOUNCE_SECONDS", "0.5")),
        storage_key=os.getenv("IGNORED_METRICS_STORAGE_KEY", "soma-ignored-blood-metrics"),
        storage_path=os.getenv("IGNORED_METRICS_STORAGE_PATH", "./data/healthcore.json"),
    )

    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("LOG_LEVEL", "INFO")),
        format="console" if debug else "json",
    )

    return AppConfig(
        environment=environment,
        debug=debug,
        scoring=scoring_config,
        registry=registry_config,
        logging=logging_config,
    )


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return load_config_from_env()


def print_config_summary() -> None:
    """Print configuration summary for debugging."""
    config = get_config()

    print("\nCONFIGURATION SUMMARY")
    print(f"Environment: {config.environment}")
    print(f"Debug Mode: {config.debug}")
    print(f"Log Level: {config.logging.level} ({config.logging.format})")

    print("\nSCORING")
    print(f"Max Insights: {config.scoring.max_insights}")
    print(f"Poor Sleep: < {config.scoring.poor_sleep_minutes} min")
    print(f"Next-day Systolic: > {config.scoring.next_day_systolic_threshold}")

    print("\nIGNORED METRICS")
    print(f"Debounce: {config.registry.debounce_seconds}s")
    print(f"Store: {config.registry.storage_path} [{config.registry.storage_key}]")


if __name__ == "__main__":
    print_config_summary()
