"""Environment-based service configuration."""

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RuntimeEnvironment(str, Enum):
    """Process-wide mode deciding how much error detail clients receive."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"


@dataclass(frozen=True)
class LogOptions:
    """Which channels operational errors are logged to."""

    log_to_file: bool = False
    log_to_console: bool = False


class ServiceSettings(BaseSettings):
    """Immutable service configuration read from ``ERRSHAPE_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ERRSHAPE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    service_name: str = Field(default="errshape", description="Service name bound to log events")
    environment: RuntimeEnvironment = Field(
        default=RuntimeEnvironment.PRODUCTION,
        description="development exposes stacks to clients, production does not",
    )
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="json or dev")
    log_to_file: bool = Field(default=True, description="Write operational errors to files")
    log_to_console: bool = Field(default=True, description="Log operational errors to stderr")
    error_log_dir: Path = Field(default=Path("errorLogs"), description="Directory for error log files")
    shutdown_grace_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Time allowed for graceful shutdown before forcing exit",
    )
    host: str = Field(default="0.0.0.0", description="Demo server host")
    port: int = Field(default=3000, description="Demo server port")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {', '.join(sorted(valid_levels))}")
        return upper

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        lower = v.lower()
        if lower not in {"json", "dev"}:
            raise ValueError(f"Invalid log_format '{v}'. Must be 'json' or 'dev'")
        return lower

    def log_options(self) -> LogOptions:
        return LogOptions(log_to_file=self.log_to_file, log_to_console=self.log_to_console)


@lru_cache(maxsize=1)
def get_settings() -> ServiceSettings:
    """Return a cached ServiceSettings instance."""
    return ServiceSettings()
