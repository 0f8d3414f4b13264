"""
Configuration Package.

Dataclass-based settings registered by name. Importing this package
registers every built-in config class.
"""

from flowgen.config.base import (
    BaseConfig,
    ConfigField,
    FieldType,
    get_config,
    get_config_registry,
    register_config,
)
from flowgen.config.sub_config.general.compiler_config import CompilerConfig

__all__ = [
    "BaseConfig",
    "CompilerConfig",
    "ConfigField",
    "FieldType",
    "get_config",
    "get_config_registry",
    "register_config",
]
