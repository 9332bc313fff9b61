"""Configuration management for the ipopulse collectors."""

import os
import tomllib
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from loguru import logger

from ipopulse.core.exceptions import ConfigError


@dataclass(frozen=True)
class DelayRange:
    """Randomised suspension window in seconds."""

    min_seconds: float
    max_seconds: float

    def __post_init__(self) -> None:
        if self.min_seconds < 0 or self.max_seconds < 0:
            raise ConfigError("delay bounds must be non-negative", {"range": [self.min_seconds, self.max_seconds]})
        if self.min_seconds > self.max_seconds:
            raise ConfigError("delay min must not exceed max", {"range": [self.min_seconds, self.max_seconds]})

    @classmethod
    def fixed(cls, seconds: float) -> "DelayRange":
        return cls(seconds, seconds)

    @classmethod
    def coerce(cls, value: Any) -> "DelayRange":
        """Accept ``DelayRange``, ``[min, max]``, ``{"min_seconds":..}`` or a single number."""
        if isinstance(value, DelayRange):
            return value
        if isinstance(value, (int, float)):
            return cls.fixed(float(value))
        if isinstance(value, dict):
            return cls(float(value["min_seconds"]), float(value["max_seconds"]))
        if isinstance(value, (list, tuple)) and len(value) == 2:
            return cls(float(value[0]), float(value[1]))
        raise ConfigError(f"Cannot interpret delay range: {value!r}")


@dataclass
class UpstreamConfig:
    """Exchange website settings"""

    base_url: str = "https://www.nseindia.com"
    timeout: float = 30.0
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    error_excerpt_chars: int = 200

    def __post_init__(self) -> None:
        if not self.base_url:
            raise ConfigError("base_url cannot be empty")
        if self.timeout <= 0:
            raise ConfigError("timeout must be positive")
        self.base_url = self.base_url.rstrip("/")


@dataclass
class DelayConfig:
    """Randomised courtesy delays, one range per suspension point"""

    bootstrap: DelayRange = field(default_factory=lambda: DelayRange(3.0, 5.0))
    request: DelayRange = field(default_factory=lambda: DelayRange(4.0, 6.0))
    retry: DelayRange = field(default_factory=lambda: DelayRange(7.0, 10.0))
    between_listings: DelayRange = field(default_factory=lambda: DelayRange(8.0, 12.0))
    settle: DelayRange = field(default_factory=lambda: DelayRange.fixed(30.0))

    def __post_init__(self) -> None:
        self.bootstrap = DelayRange.coerce(self.bootstrap)
        self.request = DelayRange.coerce(self.request)
        self.retry = DelayRange.coerce(self.retry)
        self.between_listings = DelayRange.coerce(self.between_listings)
        self.settle = DelayRange.coerce(self.settle)

    @classmethod
    def zero(cls) -> "DelayConfig":
        """All suspension points disabled."""
        none = DelayRange.fixed(0.0)
        return cls(bootstrap=none, request=none, retry=none, between_listings=none, settle=none)


@dataclass
class StorageConfig:
    """DuckDB storage settings"""

    database: str = str(Path.home() / ".ipopulse" / "ipopulse.duckdb")
    max_series_points: int = 100

    def __post_init__(self) -> None:
        if self.max_series_points <= 0:
            raise ConfigError("max_series_points must be positive")


@dataclass
class SchedulerConfig:
    """Interval job settings"""

    interval_minutes: float = 60.0
    series_classes: list[str] = field(default_factory=lambda: ["EQ", "SME"])
    refresh_listings: bool = True

    def __post_init__(self) -> None:
        if self.interval_minutes <= 0:
            raise ConfigError("interval_minutes must be positive")


@dataclass
class LoggingConfig:
    """Logging settings"""

    level: str = "INFO"
    file: str | None = None
    serialize: bool = True


@dataclass
class IpoPulseConfig:
    """Main configuration"""

    upstream: UpstreamConfig = field(default_factory=UpstreamConfig)
    delays: DelayConfig = field(default_factory=DelayConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> "IpoPulseConfig":
        """Build a configuration from a nested dictionary"""
        try:
            return cls(
                upstream=UpstreamConfig(**config_dict.get("upstream", {})),
                delays=DelayConfig(**config_dict.get("delays", {})),
                storage=StorageConfig(**config_dict.get("storage", {})),
                scheduler=SchedulerConfig(**config_dict.get("scheduler", {})),
                logging=LoggingConfig(**config_dict.get("logging", {})),
            )
        except TypeError as exc:
            raise ConfigError(f"Unknown configuration key: {exc}") from exc

    def to_dict(self) -> dict[str, Any]:
        """Convert to a nested dictionary"""
        return {
            "upstream": asdict(self.upstream),
            "delays": {name: [value.min_seconds, value.max_seconds] for name, value in vars(self.delays).items()},
            "storage": asdict(self.storage),
            "scheduler": asdict(self.scheduler),
            "logging": asdict(self.logging),
        }


class ConfigManager:
    """Loads configuration from a TOML file merged with environment overrides"""

    def __init__(self, config_path: Path | None = None):
        """Initialise the manager.

        Args:
            config_path: TOML file to read; defaults to ``~/.ipopulse/config.toml``.
        """
        self.config_path = config_path or Path(
            os.getenv("IPOPULSE_CONFIG", str(Path.home() / ".ipopulse" / "config.toml"))
        )
        self.config = self._load_config()

    def _load_config(self) -> IpoPulseConfig:
        config_dict: dict[str, Any] = {}
        if self.config_path.exists():
            try:
                with open(self.config_path, "rb") as f:
                    config_dict = tomllib.load(f)
            except (OSError, tomllib.TOMLDecodeError) as e:
                # Unreadable file falls back to defaults plus environment
                logger.warning(f"Failed to load config from {self.config_path}: {e}")
                config_dict = {}

        _deep_update(config_dict, load_config_from_env())
        return IpoPulseConfig.from_dict(config_dict)

    def get_config(self) -> IpoPulseConfig:
        return self.config

    def update_config(self, **updates: Any) -> None:
        """Apply nested overrides, e.g. ``update_config(storage={"database": ":memory:"})``"""
        config_dict = self.config.to_dict()
        _deep_update(config_dict, updates)
        self.config = IpoPulseConfig.from_dict(config_dict)


def _deep_update(d: dict[str, Any], u: dict[str, Any]) -> dict[str, Any]:
    for k, v in u.items():
        if isinstance(v, dict):
            d[k] = _deep_update(d.get(k, {}), v)
        else:
            d[k] = v
    return d


def get_default_config() -> IpoPulseConfig:
    return IpoPulseConfig()


def _parse_range(raw: str) -> list[float]:
    parts = [part.strip() for part in raw.split(",") if part.strip()]
    if len(parts) == 1:
        return [float(parts[0]), float(parts[0])]
    if len(parts) == 2:
        return [float(parts[0]), float(parts[1])]
    raise ConfigError(f"Delay range must be 'min,max', got {raw!r}")


def load_config_from_env() -> dict[str, Any]:
    """Read ``IPOPULSE_*`` environment overrides"""
    config: dict[str, Any] = {}

    upstream_config: dict[str, Any] = {}
    base_url = os.getenv("IPOPULSE_BASE_URL")
    if base_url is not None:
        upstream_config["base_url"] = base_url
    timeout = os.getenv("IPOPULSE_TIMEOUT")
    if timeout is not None:
        upstream_config["timeout"] = float(timeout)
    user_agent = os.getenv("IPOPULSE_USER_AGENT")
    if user_agent is not None:
        upstream_config["user_agent"] = user_agent
    if upstream_config:
        config["upstream"] = upstream_config

    delay_config: dict[str, Any] = {}
    for name in ("bootstrap", "request", "retry", "between_listings", "settle"):
        raw = os.getenv(f"IPOPULSE_DELAY_{name.upper()}")
        if raw is not None:
            delay_config[name] = _parse_range(raw)
    if delay_config:
        config["delays"] = delay_config

    storage_config: dict[str, Any] = {}
    database = os.getenv("IPOPULSE_DATABASE")
    if database is not None:
        storage_config["database"] = database
    max_points = os.getenv("IPOPULSE_MAX_SERIES_POINTS")
    if max_points is not None:
        storage_config["max_series_points"] = int(max_points)
    if storage_config:
        config["storage"] = storage_config

    scheduler_config: dict[str, Any] = {}
    interval = os.getenv("IPOPULSE_INTERVAL_MINUTES")
    if interval is not None:
        scheduler_config["interval_minutes"] = float(interval)
    series = os.getenv("IPOPULSE_SERIES_CLASSES")
    if series is not None:
        scheduler_config["series_classes"] = [item.strip() for item in series.split(",") if item.strip()]
    if scheduler_config:
        config["scheduler"] = scheduler_config

    logging_config: dict[str, Any] = {}
    level = os.getenv("IPOPULSE_LOGGING_LEVEL")
    if level is not None:
        logging_config["level"] = level
    log_file = os.getenv("IPOPULSE_LOGGING_FILE")
    if log_file is not None:
        logging_config["file"] = log_file
    if logging_config:
        config["logging"] = logging_config

    return config
