"""
Data Emitters — Transform and SetState.

Both are plain assignments: SetState writes into the workflow
``state`` dict, Transform binds ``transform_result``.
"""

from __future__ import annotations

from logging import getLogger
from typing import Dict, List

from flowgen.workflow.code_builder import Line, py_dict, py_literal, py_string
from flowgen.workflow.context import CompilationContext, WalkScope
from flowgen.workflow.emitters.base import BaseEmitter, EmitResult, register_emitter
from flowgen.workflow.expressions import translate_expression
from flowgen.workflow.schema_codegen import schema_defaults
from flowgen.workflow.workflow_model import NodeKind, SetStateNode, TransformNode

logger = getLogger(__name__)

TRANSFORM_RESULT = "transform_result"


@register_emitter
class SetStateEmitter(BaseEmitter):
    """``state["name"] = <expr>`` per assignment; blank ones are skipped."""

    kind = NodeKind.SET_STATE

    def emit(self, node: SetStateNode, ctx: CompilationContext, scope: WalkScope) -> EmitResult:
        lines: List[Line] = []
        for assignment in node.config.assignments:
            expression = assignment.expression.expression.strip()
            name = assignment.name.strip()
            if name.startswith("state."):
                name = name[len("state."):]
            if not expression or not name:
                continue
            value = translate_expression(expression, scope.previous)
            lines.append(Line(f"state[{py_string(name)}] = {value}"))
        return EmitResult(nodes=list(lines), next_ports=self.continue_ports)


@register_emitter
class TransformEmitter(BaseEmitter):
    """Bind ``transform_result`` from an expression, a key/expression
    list, or (object mode) the defaults of an object schema."""

    kind = NodeKind.TRANSFORM

    def emit(self, node: TransformNode, ctx: CompilationContext, scope: WalkScope) -> EmitResult:
        config = node.config
        if config.output_kind == "object" and config.object_schema is not None:
            value = py_literal(schema_defaults(config.object_schema.json_schema))
        elif config.expressions:
            entries: Dict[str, str] = {}
            for item in config.expressions:
                if not item.key:
                    continue
                entries[item.key] = (
                    translate_expression(item.expression.expression, scope.previous)
                    or "None"
                )
            value = py_dict(entries)
        else:
            value = translate_expression(config.expr.expression, scope.previous) or "{}"

        scope.previous = TRANSFORM_RESULT
        return EmitResult(
            nodes=[Line(f"{TRANSFORM_RESULT} = {value}")],
            next_ports=self.continue_ports,
        )
