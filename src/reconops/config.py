"""Configuration management for reconops."""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RECONOPS_",
        case_sensitive=False,
        extra="ignore",
        env_parse_none_str="",
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Log format: json or console")

    # Agent Simulation
    random_seed: int | None = Field(
        default=None, description="Seed for agent simulation (random when unset)"
    )
    agent_error_rate: float = Field(
        default=0.10, description="Probability that an agent simulates an internal failure"
    )
    agent_latency_scale: float = Field(
        default=1.0, description="Multiplier applied to simulated agent latency (0 disables it)"
    )

    # Control Cycle Pacing
    planning_delay_ms: int = Field(default=600, description="Pause after the planning event")
    agent_delay_ms: int = Field(
        default=800, description="Pause between agent start and agent completion events"
    )
    synthesis_delay_ms: int = Field(default=700, description="Pause after the synthesis event")
    completion_delay_ms: int = Field(default=600, description="Pause before the completion event")

    # Reference Data
    catalog_path: Path | None = Field(
        default=None, description="YAML reference catalog (packaged catalog when unset)"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Level names understood by the logging module."""
        v = v.upper()
        if v not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {v!r}")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Only json and console renderers are supported."""
        v = v.lower()
        if v not in ("json", "console"):
            raise ValueError(f"log_format must be 'json' or 'console', got {v!r}")
        return v

    @field_validator("agent_error_rate")
    @classmethod
    def validate_error_rate(cls, v: float) -> float:
        """Error rate is a probability."""
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"agent_error_rate must be between 0 and 1, got {v}")
        return v

    @field_validator(
        "agent_latency_scale",
        "planning_delay_ms",
        "agent_delay_ms",
        "synthesis_delay_ms",
        "completion_delay_ms",
    )
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        """Delays and scales cannot be negative."""
        if v < 0:
            raise ValueError(f"value must be non-negative, got {v}")
        return v

    def without_pacing(self) -> "Settings":
        """Copy of these settings with every delay and simulated latency disabled."""
        return self.model_copy(
            update={
                "agent_latency_scale": 0.0,
                "planning_delay_ms": 0,
                "agent_delay_ms": 0,
                "synthesis_delay_ms": 0,
                "completion_delay_ms": 0,
            }
        )


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
