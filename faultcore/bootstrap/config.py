"""
bootstrap/config.py - Application configuration

Read once from the environment (and optionally a JSON file) and shared
by the event logger, the telemetry reporter and the entry points.
"""

from __future__ import annotations
from typing import Any, Dict, Optional
from dataclasses import dataclass, field
from pathlib import Path
import json
import logging
import os
import threading

from faultcore.eventlog.config import DEFAULT_MAX_LOGS, LoggerConfig
from faultcore.telemetry.config import TelemetryConfig

logger = logging.getLogger("bootstrap.config")

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _env_bool(name: str, default: Optional[bool] = None) -> Optional[bool]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Invalid integer for {name}: '{raw}', using {default}")
        return default
    if value <= 0:
        logger.warning(f"{name} must be positive, got {value}, using {default}")
        return default
    return value


@dataclass
class LoggingConfig:
    """Logging configuration."""

    # Explicit minimum level; None derives it from the environment
    level: Optional[str] = None
    format: str = DEFAULT_LOG_FORMAT
    log_file: Optional[str] = None
    json_logs: bool = False

    console: bool = True
    persistence: bool = True
    max_logs: int = DEFAULT_MAX_LOGS
    # None means "on for DEBUG/TRACE builds"
    performance_tracking: Optional[bool] = None

    @classmethod
    def from_env(cls) -> "LoggingConfig":
        return cls(
            level=os.getenv("FAULTCORE_LOG_LEVEL") or None,
            format=os.getenv("FAULTCORE_LOG_FORMAT", DEFAULT_LOG_FORMAT),
            log_file=os.getenv("FAULTCORE_LOG_FILE") or None,
            json_logs=_env_bool("FAULTCORE_JSON_LOGS", False),
            console=_env_bool("FAULTCORE_LOG_CONSOLE", True),
            persistence=_env_bool("FAULTCORE_LOG_PERSISTENCE", True),
            max_logs=_env_int("FAULTCORE_MAX_LOGS", DEFAULT_MAX_LOGS),
            performance_tracking=_env_bool("FAULTCORE_PERFORMANCE_TRACKING"),
        )


@dataclass
class APIConfig:
    """Monitoring API server configuration."""

    host: str = "127.0.0.1"
    port: int = 8000
    enable_docs: bool = True

    @classmethod
    def from_env(cls) -> "APIConfig":
        return cls(
            host=os.getenv("FAULTCORE_API_HOST", "127.0.0.1"),
            port=_env_int("FAULTCORE_API_PORT", 8000),
            enable_docs=_env_bool("FAULTCORE_API_ENABLE_DOCS", True),
        )


@dataclass
class FaultcoreConfig:
    """Root configuration."""

    environment: str = "development"
    debug: bool = False
    version: str = "1.0.0"

    logging: LoggingConfig = field(default_factory=LoggingConfig)
    telemetry: TelemetryConfig = field(default_factory=TelemetryConfig)
    api: APIConfig = field(default_factory=APIConfig)

    # Additional settings
    settings: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_env(cls) -> "FaultcoreConfig":
        """Create configuration from environment variables."""
        environment = os.getenv("FAULTCORE_ENVIRONMENT", "development")
        return cls(
            environment=environment,
            debug=_env_bool("FAULTCORE_DEBUG", False),
            logging=LoggingConfig.from_env(),
            telemetry=TelemetryConfig.from_env(environment),
            api=APIConfig.from_env(),
        )

    @classmethod
    def from_file(cls, filepath: str) -> "FaultcoreConfig":
        """Load configuration from JSON file."""
        path = Path(filepath)
        if not path.exists():
            logger.warning(f"Config file not found: {filepath}, using defaults")
            return cls.from_env()

        try:
            with open(path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read config file {filepath}: {e}, using defaults")
            return cls.from_env()

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "FaultcoreConfig":
        """Create config from dictionary. File values override the environment."""
        config = cls.from_env()

        if "environment" in data:
            config.environment = data["environment"]
            config.telemetry.environment = data["environment"]
        if "debug" in data:
            config.debug = bool(data["debug"])

        for section in ("logging", "api"):
            if section in data:
                target = getattr(config, section)
                for key, value in data[section].items():
                    if hasattr(target, key):
                        setattr(target, key, value)

        if "telemetry" in data:
            values = {
                key: value
                for key, value in data["telemetry"].items()
                if key in TelemetryConfig.__dataclass_fields__
            }
            merged = {**config.telemetry.__dict__, **values}
            # __post_init__ re-validates service and sample rate
            config.telemetry = TelemetryConfig(**merged)

        if "settings" in data:
            config.settings.update(data["settings"])

        return config

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() in ("production", "prod")

    def logger_config(self) -> LoggerConfig:
        """EventLogger settings for this configuration."""
        overrides: Dict[str, Any] = {
            "console": self.logging.console,
            "persistence": self.logging.persistence,
            "max_logs": self.logging.max_logs,
        }
        if self.logging.performance_tracking is not None:
            overrides["performance_tracking"] = self.logging.performance_tracking
        return LoggerConfig.for_environment(
            self.environment,
            debug=self.debug,
            level=self.logging.level,
            **overrides,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize config to dictionary."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "version": self.version,
            "logging": {
                "level": self.logging.level,
                "effective_level": self.logger_config().level.name,
                "log_file": self.logging.log_file,
                "json_logs": self.logging.json_logs,
                "console": self.logging.console,
                "persistence": self.logging.persistence,
                "max_logs": self.logging.max_logs,
                "performance_tracking": self.logging.performance_tracking,
            },
            "telemetry": self.telemetry.to_dict(),
            "api": {
                "host": self.api.host,
                "port": self.api.port,
                "enable_docs": self.api.enable_docs,
            },
            "settings": dict(self.settings),
        }


# Global config instance
_config: Optional[FaultcoreConfig] = None
_config_lock = threading.Lock()


def load_config(filepath: str = None) -> FaultcoreConfig:
    """
    Load configuration from file or environment.

    Args:
        filepath: Optional path to JSON config file

    Returns:
        FaultcoreConfig instance
    """
    global _config

    if filepath:
        config = FaultcoreConfig.from_file(filepath)
    else:
        config = None
        default_paths = [
            "./faultcore.json",
            "./config/faultcore.json",
            os.path.expanduser("~/.faultcore/config.json"),
        ]
        for path in default_paths:
            if Path(path).exists():
                logger.info(f"Loading config from: {path}")
                config = FaultcoreConfig.from_file(path)
                break

        if config is None:
            config = FaultcoreConfig.from_env()

    _config = config
    logger.info(f"Configuration loaded: environment={config.environment}")
    return config


def get_config() -> FaultcoreConfig:
    """Get current configuration, loading if needed."""
    global _config
    if _config is None:
        with _config_lock:
            if _config is None:
                load_config()
    return _config


def set_config(config: Optional[FaultcoreConfig]) -> None:
    global _config
    _config = config


def reset_config() -> None:
    set_config(None)
