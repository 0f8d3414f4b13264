"""
Code Builder — the intermediate tree behind every generated body.

Emitters do not concatenate indented strings. They return a small
tree of ``Line`` / ``Blank`` / ``Block`` nodes, and branching emitters
leave ``BranchSlot`` holes that the walker fills with the tree of the
branch it walked. ``render`` turns the finished tree into text in one
pass, so indentation is decided in exactly one place.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

INDENT = "  "


@dataclass
class Line:
    """One statement. ``text`` may span several physical lines; the
    continuation lines carry their indentation relative to the first."""

    text: str


@dataclass
class Blank:
    pass


@dataclass
class Block:
    """A compound statement header (``if x:``, ``else:``, ``while x:``)."""

    header: str
    body: List["CodeNode"] = field(default_factory=list)


@dataclass
class BranchSlot:
    """A hole for the code of the branch leaving ``port``.

    ``default`` is used when the port has no edge; ``default_terminates``
    says whether that default ends the procedure (a ``return``).
    ``fallback`` is appended when the walked branch does not end the
    procedure itself. ``chain`` is carried into the branch's scope
    (guardrails chains).
    """

    port: str
    default: List["CodeNode"] = field(default_factory=list)
    default_terminates: bool = False
    fallback: List["CodeNode"] = field(default_factory=list)
    chain: Optional[str] = None


CodeNode = Union[Line, Blank, Block, BranchSlot]


# ====================================================================
# Rendering
# ====================================================================


def _is_empty(nodes: List[CodeNode]) -> bool:
    return all(
        isinstance(n, Blank) or (isinstance(n, BranchSlot) and _is_empty(n.default))
        for n in nodes
    )


def render(nodes: List[CodeNode], level: int = 0) -> List[str]:
    """Render a tree into physical lines at ``level``."""
    return _collapse_blanks(_render(nodes, level))


def _render(nodes: List[CodeNode], level: int) -> List[Optional[str]]:
    # ``None`` marks a separator produced by ``Blank``; empty strings
    # inside multi-line statements are kept verbatim.
    pad = INDENT * level
    lines: List[Optional[str]] = []
    for node in nodes:
        if isinstance(node, Blank):
            lines.append(None)
        elif isinstance(node, Line):
            lines.extend(
                f"{pad}{part}" if part else "" for part in node.text.split("\n")
            )
        elif isinstance(node, Block):
            lines.append(f"{pad}{node.header}")
            if _is_empty(node.body):
                lines.append(f"{pad}{INDENT}pass")
            else:
                lines.extend(_render(node.body, level + 1))
        elif isinstance(node, BranchSlot):
            lines.extend(_render(node.default, level))
        else:
            raise TypeError(f"Unknown code node: {node!r}")
    return lines


def _collapse_blanks(lines: List[Optional[str]]) -> List[str]:
    """Separators never lead, trail, or double up."""
    out: List[Optional[str]] = []
    for line in lines:
        if line is None and (not out or out[-1] is None):
            continue
        out.append(line)
    while out and out[-1] is None:
        out.pop()
    return ["" if line is None else line for line in out]


def render_text(nodes: List[CodeNode], level: int = 0) -> str:
    return "\n".join(render(nodes, level))


# ====================================================================
# Python literals
# ====================================================================


def py_string(text: str) -> str:
    """A double-quoted Python string literal."""
    return json.dumps(text, ensure_ascii=False)


def py_text(text: str) -> str:
    """Like :func:`py_string`, but multi-line text stays readable."""
    if "\n" not in text:
        return py_string(text)
    body = text.replace("\\", "\\\\").replace('"""', '\\"""')
    if body.endswith('"'):
        body = body[:-1] + '\\"'
    return f'"""{body}"""'


def py_literal(value: Any, level: int = 0) -> str:
    """Render JSON-like data as a Python literal.

    Containers open on the current line and close at ``level``; their
    items sit one level deeper.
    """
    pad = INDENT * (level + 1)
    close = INDENT * level
    if isinstance(value, dict):
        if not value:
            return "{}"
        items = [
            f"{pad}{py_string(str(k))}: {py_literal(v, level + 1)}"
            for k, v in value.items()
        ]
        return "{\n" + ",\n".join(items) + f"\n{close}}}"
    if isinstance(value, (list, tuple)):
        if not value:
            return "[]"
        items = [f"{pad}{py_literal(v, level + 1)}" for v in value]
        return "[\n" + ",\n".join(items) + f"\n{close}]"
    if value is None:
        return "None"
    if isinstance(value, bool):
        return "True" if value else "False"
    if isinstance(value, (int, float)):
        return repr(value)
    return py_string(str(value))


def py_dict(entries: Dict[str, str], level: int = 0) -> str:
    """A dict literal whose values are already Python source."""
    if not entries:
        return "{}"
    pad = INDENT * (level + 1)
    items = [f"{pad}{py_string(k)}: {v}" for k, v in entries.items()]
    return "{\n" + ",\n".join(items) + f"\n{INDENT * level}}}"
