"""Configuration module for deepwatch.

Configuration is stored in ~/.deepwatch/config.yaml; every field has a
default, so the file is optional.

Usage:
    from deepwatch.config import load_config

    config = load_config()
    capacity = config.monitor.log_capacity
"""

from deepwatch.config.loader import (
    config_exists,
    create_default_config,
    ensure_config_dir,
    load_config,
)
from deepwatch.config.models import (
    DeepwatchConfig,
    EngineConfig,
    LoggingConfig,
    MonitorConfig,
    ProtocolConfig,
    get_config_dir,
    get_default_config,
)

__all__ = [
    # Models
    "DeepwatchConfig",
    "MonitorConfig",
    "ProtocolConfig",
    "EngineConfig",
    "LoggingConfig",
    # Loader functions
    "load_config",
    "create_default_config",
    "ensure_config_dir",
    "config_exists",
    # Model helpers
    "get_config_dir",
    "get_default_config",
]
