"""
Terminal Emitters — Start and End.
"""

from __future__ import annotations

from logging import getLogger

from flowgen.workflow.code_builder import Line, py_literal
from flowgen.workflow.context import CompilationContext, WalkScope
from flowgen.workflow.emitters.base import BaseEmitter, EmitResult, register_emitter
from flowgen.workflow.schema_codegen import schema_defaults
from flowgen.workflow.workflow_model import EndNode, NodeKind, StartNode

logger = getLogger(__name__)


@register_emitter
class StartEmitter(BaseEmitter):
    """Emits nothing; the preamble of the entry point is the start."""

    kind = NodeKind.START

    def emit(self, node: StartNode, ctx: CompilationContext, scope: WalkScope) -> EmitResult:
        return EmitResult(next_ports=self.continue_ports)


@register_emitter
class EndEmitter(BaseEmitter):
    """Return the structured-output defaults, or the latest result.

    The latest result is the last agent or file-search result bound on
    this path, or the raw ``workflow`` input when there is none.
    """

    kind = NodeKind.END

    def emit(self, node: EndNode, ctx: CompilationContext, scope: WalkScope) -> EmitResult:
        output = node.config.workflow_output
        schema = output.json_schema if output is not None else {}
        if schema.get("properties"):
            defaults = schema_defaults(schema)
            nodes = [
                Line(f"end_result = {py_literal(defaults)}"),
                Line("return end_result"),
            ]
        else:
            nodes = [Line(f"return {scope.last_result}")]
        return EmitResult(nodes=nodes, terminal=True)
