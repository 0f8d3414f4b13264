"""
Config Base — dataclass settings with field metadata.

A config class is a ``@dataclass`` subclass of ``BaseConfig`` decorated
with ``@register_config``. It names itself (``get_config_name``),
describes its fields for forms and CLI help (``get_fields_metadata``),
and builds its default instance from environment variables through
its ``_ENV_MAP``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from logging import getLogger
from typing import Any, ClassVar, Dict, List, Optional, Type, TypeVar

logger = getLogger(__name__)

T = TypeVar("T", bound="BaseConfig")


class FieldType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    SELECT = "select"


@dataclass
class ConfigField:
    """UI/CLI metadata for one config field."""

    name: str
    field_type: FieldType
    label: str
    description: str = ""
    default: Any = None
    options: List[Dict[str, str]] = field(default_factory=list)
    group: str = "general"


@dataclass
class BaseConfig:
    """Base class for registered configuration dataclasses."""

    _ENV_MAP: ClassVar[Dict[str, str]] = {}

    @classmethod
    def get_default_instance(cls: Type[T]) -> T:
        return cls()

    @classmethod
    def get_config_name(cls) -> str:
        raise NotImplementedError

    @classmethod
    def get_display_name(cls) -> str:
        return cls.get_config_name()

    @classmethod
    def get_description(cls) -> str:
        return ""

    @classmethod
    def get_category(cls) -> str:
        return "general"

    @classmethod
    def get_fields_metadata(cls) -> List[ConfigField]:
        return []

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def with_overrides(self: T, **overrides: Any) -> T:
        """Copy with some fields replaced; unknown names are rejected."""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ValueError(
                f"Unknown {self.get_config_name()} config fields: {sorted(unknown)}"
            )
        values = self.to_dict()
        values.update(overrides)
        return type(self)(**values)


_registry: Dict[str, Type[BaseConfig]] = {}


def register_config(cls: Type[T]) -> Type[T]:
    """Class decorator: make a config class available by name."""
    name = cls.get_config_name()
    if name in _registry:
        logger.warning(f"Config '{name}' re-registered by {cls.__name__}")
    _registry[name] = cls
    return cls


def get_config_registry() -> Dict[str, Type[BaseConfig]]:
    return dict(_registry)


def get_config(name: str) -> Optional[BaseConfig]:
    """Default instance of the config registered as ``name``."""
    cls = _registry.get(name)
    if cls is None:
        return None
    return cls.get_default_instance()
