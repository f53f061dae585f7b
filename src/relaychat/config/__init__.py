"""Configuration schema and YAML loading."""

from .loader import DEFAULT_CONFIG_PATH, load_config, save_config
from .schema import (
    ChatConfig,
    LocalModelConfig,
    PrivacyConfig,
    RelayConfig,
    RemoteModelConfig,
    RoutingConfig,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "ChatConfig",
    "LocalModelConfig",
    "PrivacyConfig",
    "RelayConfig",
    "RemoteModelConfig",
    "RoutingConfig",
    "load_config",
    "save_config",
]
