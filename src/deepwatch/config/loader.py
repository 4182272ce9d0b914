"""Configuration loading and management for deepwatch.

Functions:
    load_config: Load configuration from ~/.deepwatch/config.yaml
    create_default_config: Write a default config.yaml
    ensure_config_dir: Ensure ~/.deepwatch/ exists
    config_exists: Check whether config.yaml exists
"""

from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import ValidationError as PydanticValidationError
import yaml

from deepwatch.config.models import (
    DeepwatchConfig,
    get_config_dir,
    get_default_config,
)
from deepwatch.core.errors import ConfigError

# API keys for the engine's model provider usually live here
load_dotenv()
load_dotenv(Path.home() / ".deepwatch" / ".env")


def ensure_config_dir() -> Path:
    """Create ~/.deepwatch/ and its logs/ and traces/ subdirectories."""
    config_dir = get_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / "logs").mkdir(exist_ok=True)
    (config_dir / "traces").mkdir(exist_ok=True)
    return config_dir


def create_default_config(
    config_dir: Path | None = None,
    *,
    overwrite: bool = False,
) -> Path:
    """Write config.yaml populated with default values.

    Args:
        config_dir: Directory to create the file in. Defaults to ~/.deepwatch/
        overwrite: If True, replace an existing file.

    Returns:
        Path of the written config file.

    Raises:
        ConfigError: If the file exists and overwrite=False.
    """
    if config_dir is None:
        config_dir = ensure_config_dir()
    else:
        config_dir.mkdir(parents=True, exist_ok=True)

    config_path = config_dir / "config.yaml"
    if config_path.exists() and not overwrite:
        raise ConfigError(
            f"Configuration file already exists: {config_path}",
            config_file=str(config_path),
        )

    config_dict: dict[str, Any] = get_default_config().model_dump(mode="json")
    with config_path.open("w") as f:
        yaml.dump(
            config_dict,
            f,
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
        )
    return config_path


def load_config(config_path: Path | None = None) -> DeepwatchConfig:
    """Load and validate configuration.

    A missing default file is not an error: defaults are returned. A file
    named explicitly must exist.

    Args:
        config_path: Path to config file. Defaults to ~/.deepwatch/config.yaml.

    Returns:
        Validated DeepwatchConfig instance.

    Raises:
        ConfigError: If the file is missing (explicit path), malformed, or
            fails validation.
    """
    explicit = config_path is not None
    if config_path is None:
        config_path = get_config_dir() / "config.yaml"

    if not config_path.exists():
        if explicit:
            raise ConfigError(
                f"Configuration file not found: {config_path}",
                config_file=str(config_path),
            )
        return get_default_config()

    try:
        with config_path.open() as f:
            config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Failed to parse configuration file: {e}",
            config_file=str(config_path),
            details={"yaml_error": str(e)},
        ) from e

    if config_dict is None:
        config_dict = {}

    try:
        return DeepwatchConfig.model_validate(config_dict)
    except PydanticValidationError as e:
        error_messages = []
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            error_messages.append(f"  - {loc}: {error['msg']}")

        raise ConfigError(
            "Configuration validation failed:\n" + "\n".join(error_messages),
            config_file=str(config_path),
            details={"validation_errors": e.errors()},
        ) from e


def config_exists() -> bool:
    return (get_config_dir() / "config.yaml").exists()
