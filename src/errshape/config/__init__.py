"""Service configuration."""

from errshape.config.settings import (
    LogOptions,
    RuntimeEnvironment,
    ServiceSettings,
    get_settings,
)

__all__ = ["LogOptions", "RuntimeEnvironment", "ServiceSettings", "get_settings"]
