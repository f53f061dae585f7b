"""Configuration loading and validation."""

from pathlib import Path

import yaml
from pydantic import ValidationError

from relaychat.config.schema import RelayConfig
from relaychat.errors import ConfigurationError

DEFAULT_CONFIG_PATH = Path.home() / ".relaychat" / "relaychat.yaml"


def load_config(path: Path | None = None) -> RelayConfig:
    """Load and validate relaychat configuration from a YAML file.

    Args:
        path: Path to config file. If None, tries default location.
              If file doesn't exist, returns default config.

    Returns:
        Validated configuration object

    Raises:
        ConfigurationError: If config file exists but is invalid
    """
    if path is None:
        path = DEFAULT_CONFIG_PATH

    # Zero-config mode: if file doesn't exist, use all defaults
    if not path.exists():
        return RelayConfig()

    try:
        with open(path) as f:
            config_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Failed to read config from {path}: {e}") from e

    if config_data is None:
        return RelayConfig()
    if not isinstance(config_data, dict):
        raise ConfigurationError(f"Expected a mapping at the top level of {path}")

    try:
        return RelayConfig(**config_data)
    except ValidationError as e:
        raise ConfigurationError(f"Configuration validation failed: {e}") from e


def save_config(config: RelayConfig, path: str | Path | None = None) -> Path:
    """Save configuration to a YAML file.

    Args:
        config: Configuration object to save
        path: Destination path. If None, uses default location.

    Returns:
        The path written to
    """
    if path is None:
        path = DEFAULT_CONFIG_PATH
    elif isinstance(path, str):
        path = Path(path)

    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        yaml.safe_dump(config.model_dump(), f, default_flow_style=False, sort_keys=False)

    return path
