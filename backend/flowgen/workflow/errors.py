"""
Compilation errors.

Fatal errors derive from ``WorkflowCompileError`` and are caught once,
at the ``compile_workflow`` boundary, where they become the ``error``
field of the result. ``MissingEdgeError`` is internal and non-fatal:
the walker treats it as the natural end of a path.
"""

from __future__ import annotations


class WorkflowCompileError(Exception):
    """Base class for errors that abort a compile."""


class StructuralError(WorkflowCompileError):
    """The graph cannot be walked (e.g. the start node is missing)."""


class ExpressionParseError(WorkflowCompileError):
    """An expression failed validation."""

    def __init__(self, message: str, expressions=None) -> None:
        super().__init__(message)
        self.expressions = list(expressions or [])


# Short name used throughout the expression module.
ParseError = ExpressionParseError


class MissingEdgeError(Exception):
    """No outgoing edge exists for the requested port(s)."""

    def __init__(self, node_id: str, ports) -> None:
        super().__init__(
            f"No outgoing edge from node '{node_id}' on ports {list(ports)}"
        )
        self.node_id = node_id
        self.ports = tuple(ports)
