"""
Compiler Configuration.

Defaults the generated module falls back to when a node leaves a
setting blank, plus the names of the generated entry point.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from flowgen.config.base import BaseConfig, ConfigField, FieldType, register_config
from flowgen.config.sub_config.general.env_utils import read_env_defaults

EFFORT_OPTIONS = [
    {"value": "minimal", "label": "Minimal"},
    {"value": "low", "label": "Low"},
    {"value": "medium", "label": "Medium"},
    {"value": "high", "label": "High"},
]

LOG_LEVEL_OPTIONS = [
    {"value": level, "label": level}
    for level in ("DEBUG", "INFO", "WARNING", "ERROR")
]


@register_config
@dataclass
class CompilerConfig(BaseConfig):
    """Code generation defaults."""

    default_model: str = "gpt-5"
    default_reasoning_effort: str = "low"
    entrypoint_name: str = "run_workflow"
    input_class_name: str = "WorkflowInput"
    log_level: str = "INFO"

    _ENV_MAP = {
        "default_model": "FLOWGEN_DEFAULT_MODEL",
        "default_reasoning_effort": "FLOWGEN_REASONING_EFFORT",
        "entrypoint_name": "FLOWGEN_ENTRYPOINT",
        "input_class_name": "FLOWGEN_INPUT_CLASS",
        "log_level": "FLOWGEN_LOG_LEVEL",
    }

    @classmethod
    def get_default_instance(cls) -> "CompilerConfig":
        defaults = read_env_defaults(cls._ENV_MAP, cls.__dataclass_fields__)
        return cls(**defaults)

    @classmethod
    def get_config_name(cls) -> str:
        return "compiler"

    @classmethod
    def get_display_name(cls) -> str:
        return "Workflow Compiler"

    @classmethod
    def get_description(cls) -> str:
        return "Default model, reasoning effort and entry point names for generated code."

    @classmethod
    def get_fields_metadata(cls) -> List[ConfigField]:
        return [
            ConfigField(
                name="default_model",
                field_type=FieldType.STRING,
                label="Default Model",
                description="Model used by agents that do not name one",
                default="gpt-5",
                group="agents",
            ),
            ConfigField(
                name="default_reasoning_effort",
                field_type=FieldType.SELECT,
                label="Default Reasoning Effort",
                description="Reasoning effort used by agents that do not set one",
                default="low",
                options=EFFORT_OPTIONS,
                group="agents",
            ),
            ConfigField(
                name="entrypoint_name",
                field_type=FieldType.STRING,
                label="Entry Point",
                description="Name of the generated async workflow function",
                default="run_workflow",
                group="module",
            ),
            ConfigField(
                name="input_class_name",
                field_type=FieldType.STRING,
                label="Input Model",
                description="Name of the generated workflow input class",
                default="WorkflowInput",
                group="module",
            ),
            ConfigField(
                name="log_level",
                field_type=FieldType.SELECT,
                label="Log Level",
                description="Level used by the command-line tool",
                default="INFO",
                options=LOG_LEVEL_OPTIONS,
                group="logging",
            ),
        ]
