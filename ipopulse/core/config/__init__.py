"""Configuration management module."""

from ipopulse.core.config.settings import (
    ConfigManager,
    DelayConfig,
    DelayRange,
    IpoPulseConfig,
    LoggingConfig,
    SchedulerConfig,
    StorageConfig,
    UpstreamConfig,
    get_default_config,
    load_config_from_env,
)

__all__ = [
    "ConfigManager",
    "DelayConfig",
    "DelayRange",
    "IpoPulseConfig",
    "LoggingConfig",
    "SchedulerConfig",
    "StorageConfig",
    "UpstreamConfig",
    "get_default_config",
    "load_config_from_env",
]
