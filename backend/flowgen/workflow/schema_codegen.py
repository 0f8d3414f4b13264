"""
Schema / Declaration Generator.

Turns JSON-schema fragments into the top-level declarations of the
generated module:

* pydantic classes for structured agent output and ``WorkflowInput``
  (nested objects become ``Parent__Prop`` classes, declared first)
* the defaults literal used by End / object-mode Transform
* ``@function_tool`` stubs for function tools
* the ``state`` initializer

Every function that can introduce a new import records it in the
``needs`` set it is given (``"typing.Any"``, ``"pydantic.Field"``).
"""

from __future__ import annotations

import keyword
import re
from typing import Any, Dict, List, Set, Tuple

from flowgen.workflow.code_builder import INDENT, py_literal, py_string
from flowgen.workflow.naming import pascal_case, snake_case, tool_identifier
from flowgen.workflow.workflow_model import StateVar, ToolSpec

SCALAR_TYPES: Dict[str, str] = {
    "string": "str",
    "number": "float",
    "integer": "int",
    "boolean": "bool",
}


def _split_type(prop: Dict[str, Any]) -> Tuple[Any, bool]:
    """``(type, nullable)`` for a property; type lists drop ``"null"``."""
    declared = prop.get("type")
    if isinstance(declared, list):
        concrete = [t for t in declared if t != "null"]
        return (concrete[0] if concrete else None), len(concrete) < len(declared)
    return declared, False


def _member_suffix(key: str) -> str:
    if key.isidentifier():
        return key[:1].upper() + key[1:]
    return pascal_case(key) or "Field"


def _annotation(
    owner: str,
    key: str,
    prop: Dict[str, Any],
    classes: List[str],
    needs: Set[str],
) -> str:
    kind, nullable = _split_type(prop)
    if kind == "object":
        if prop.get("properties"):
            nested = f"{owner}__{_member_suffix(key)}"
            classes.extend(schema_classes(nested, prop, needs))
            ann = nested
        else:
            ann = "dict"
    elif kind == "array":
        items = prop.get("items") or {}
        item_kind, _ = _split_type(items)
        if item_kind == "object" and items.get("properties"):
            nested = f"{owner}__{_member_suffix(key)}Item"
            classes.extend(schema_classes(nested, items, needs))
            ann = f"list[{nested}]"
        elif item_kind in SCALAR_TYPES:
            ann = f"list[{SCALAR_TYPES[item_kind]}]"
        else:
            needs.add("typing.Any")
            ann = "list[Any]"
    elif kind in SCALAR_TYPES:
        ann = SCALAR_TYPES[kind]
    else:
        needs.add("typing.Any")
        ann = "Any"
    if nullable:
        ann = f"{ann} | None"
    return ann


def _field_line(key: str, ann: str, needs: Set[str]) -> str:
    if key.isidentifier() and not keyword.iskeyword(key):
        return f"{INDENT}{key}: {ann}"
    needs.add("pydantic.Field")
    name = snake_case(key) or "field"
    if name[0].isdigit() or keyword.iskeyword(name):
        name = f"field_{name}"
    return f"{INDENT}{name}: {ann} = Field(alias={py_string(key)})"


def schema_classes(class_name: str, schema: Dict[str, Any], needs: Set[str]) -> List[str]:
    """Class declarations for ``schema``; nested classes come first."""
    classes: List[str] = []
    fields: List[str] = []
    for key, prop in (schema.get("properties") or {}).items():
        ann = _annotation(class_name, key, prop or {}, classes, needs)
        fields.append(_field_line(key, ann, needs))
    body = "\n".join(fields) if fields else f"{INDENT}pass"
    classes.append(f"class {class_name}(BaseModel):\n{body}")
    return classes


def schema_defaults(schema: Dict[str, Any]) -> Dict[str, Any]:
    """Only the properties that declare a default (recursively)."""
    out: Dict[str, Any] = {}
    for key, prop in (schema.get("properties") or {}).items():
        prop = prop or {}
        if "default" in prop:
            out[key] = prop["default"]
        elif _split_type(prop)[0] == "object":
            nested = schema_defaults(prop)
            if nested:
                out[key] = nested
    return out


def _param_name(key: str) -> str:
    name = re.sub(r"[^A-Za-z0-9_]", "_", key).strip("_") or "arg"
    if name[0].isdigit() or keyword.iskeyword(name):
        name = f"arg_{name}"
    return name


def tool_stub(tool: ToolSpec, needs: Set[str]) -> str:
    """A ``@function_tool`` placeholder with a typed signature."""
    params: List[str] = []
    for key, prop in ((tool.parameters or {}).get("properties") or {}).items():
        kind, _ = _split_type(prop or {})
        if kind in SCALAR_TYPES:
            ann = SCALAR_TYPES[kind]
        elif kind == "array":
            ann = "list"
        elif kind == "object":
            ann = "dict"
        else:
            needs.add("typing.Any")
            ann = "Any"
        name = _param_name(key)
        params.append(f"{name}: {ann}")
    signature = ", ".join(params)
    return (
        "@function_tool\n"
        f"def {tool_identifier(tool.name)}({signature}):\n"
        f"{INDENT}pass"
    )


def input_model(class_name: str, schema: Dict[str, Any], needs: Set[str]) -> List[str]:
    """The ``WorkflowInput`` model (and any nested classes)."""
    return schema_classes(class_name, schema or {}, needs)


def state_initializer(state_vars: List[StateVar]) -> str:
    """``state = {...}`` with every variable's default value."""
    values = {var.name: var.default for var in state_vars}
    return f"state = {py_literal(values)}"
