# settings/__init__.py
# collect-files – Settings subsystem exports

from .settings import (
    load_config,
    create_config_file,
    config_from_dict,
    output_ignore_entries,
    to_ruleset,
    CollectConfig,
    ConfigError,
    UNIVERSAL_INIT_CONFIG,
    DEFAULT_CONFIG_FILENAME,
    TOOL_VERSION,
)

__all__ = [
    "load_config",
    "create_config_file",
    "config_from_dict",
    "output_ignore_entries",
    "to_ruleset",
    "CollectConfig",
    "ConfigError",
    "UNIVERSAL_INIT_CONFIG",
    "DEFAULT_CONFIG_FILENAME",
    "TOOL_VERSION",
]
