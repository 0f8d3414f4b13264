"""
Environment helpers for config defaults.
"""

from __future__ import annotations

import os
from dataclasses import MISSING, Field
from logging import getLogger
from typing import Any, Dict, Mapping, Optional

logger = getLogger(__name__)

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _coerce(raw: str, default: Any, name: str) -> Any:
    if isinstance(default, bool):
        lowered = raw.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        logger.warning(f"Ignoring non-boolean value for {name}: {raw!r}")
        return default
    if isinstance(default, int):
        try:
            return int(raw)
        except ValueError:
            logger.warning(f"Ignoring non-integer value for {name}: {raw!r}")
            return default
    return raw


def read_env_defaults(
    env_map: Mapping[str, str],
    dataclass_fields: Mapping[str, Field],
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    """Field values taken from the environment, typed like the defaults.

    Only fields whose variable is set appear in the result.
    """
    env = os.environ if environ is None else environ
    values: Dict[str, Any] = {}
    for field_name, env_name in env_map.items():
        raw = env.get(env_name)
        if raw is None or field_name not in dataclass_fields:
            continue
        default = dataclass_fields[field_name].default
        if default is MISSING:
            default = ""
        values[field_name] = _coerce(raw, default, env_name)
    return values
