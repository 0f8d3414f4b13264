"""
Guard Emitters — guardrail checks on text.

A Guardrails node serializes its checks into a module-level config
dict and, at the call site, runs them through the guardrails runtime:

    input → run_guardrails → tripwire? → checked text → output

``on_fail`` runs when a tripwire fires, ``on_pass`` otherwise; both
default to returning the output. With ``continue_on_error`` the check
is wrapped in ``try/except`` and ``on_error`` handles the failure. A
guardrails node reached from another one's ``on_pass`` checks the
text its predecessor already cleaned.
"""

from __future__ import annotations

from logging import getLogger
from typing import Any, Dict, List, Optional

from flowgen.workflow.code_builder import INDENT, Block, BranchSlot, CodeNode, Line, py_literal
from flowgen.workflow.context import CompilationContext, DeclKind, WalkScope
from flowgen.workflow.emitters.base import BaseEmitter, EmitResult, register_emitter
from flowgen.workflow.expressions import translate_expression
from flowgen.workflow.naming import numbered
from flowgen.workflow.workflow_model import GuardrailSpec, GuardrailsNode, NodeKind

logger = getLogger(__name__)

DEFAULT_GUARDRAILS_INPUT = "workflow.input_as_text"


def guardrail_entry(spec: GuardrailSpec) -> Dict[str, Any]:
    """One entry of the ``"guardrails"`` list in the config bundle."""
    options = dict(spec.model_extra or {})
    options.update(spec.config)
    kind = spec.type.lower()
    if kind == "moderation":
        return {
            "name": "Moderation",
            "config": {"categories": list(options.get("categories") or [])},
        }
    if kind == "pii":
        return {
            "name": "Contains PII",
            "config": {
                "block": options.get("block") is True,
                "entities": list(options.get("entities") or []),
            },
        }
    if kind == "jailbreak":
        return {
            "name": "Jailbreak",
            "config": {
                "model": options.get("model") or "gpt-4o-mini",
                "confidence_threshold": options.get("confidence_threshold") or 0.7,
            },
        }
    if spec.name:
        return {"name": spec.name, "config": dict(spec.config)}
    return {"name": spec.type or "Unknown", "config": dict(spec.config)}


@register_emitter
class GuardrailsEmitter(BaseEmitter):
    kind = NodeKind.GUARDRAILS

    def declare(self, node: GuardrailsNode, ctx: CompilationContext) -> None:
        name = ctx.naming.guardrails_config_name(node.id)
        bundle = {"guardrails": [guardrail_entry(g) for g in node.config.guardrails]}
        ctx.declare(
            DeclKind.GUARDRAILS_CONFIG,
            name,
            (ctx.naming.guardrails_order(node.id),),
            f"{name} = {py_literal(bundle)}",
        )

    def emit(self, node: GuardrailsNode, ctx: CompilationContext, scope: WalkScope) -> EmitResult:
        self.declare(node, ctx)
        config_var = ctx.naming.guardrails_config_name(node.id)
        index = ctx.naming.next_index("guardrails")

        input_var = numbered("guardrails_inputtext", index)
        result_var = numbered("guardrails_result", index)
        tripwire_var = numbered("guardrails_hastripwire", index)
        text_var = numbered("guardrails_anonymizedtext", index)
        output_var = numbered("guardrails_output", index)
        error_var = numbered("guardrails_errorresult", index)

        if scope.chain:
            source = scope.chain
        else:
            source = translate_expression(
                node.config.expr.expression or DEFAULT_GUARDRAILS_INPUT, scope.previous
            )

        give_output = [Line(f"return {output_var}")]
        check: List[CodeNode] = [
            Line(f"{input_var} = {source}"),
            Line(
                f"{result_var} = await run_guardrails(ctx, {input_var}, \"text/plain\", "
                f"instantiate_guardrails(load_config_bundle({config_var})), "
                f"suppress_tripwire=True)"
            ),
            Line(f"{tripwire_var} = guardrails_has_tripwire({result_var})"),
            Line(f"{text_var} = get_guardrail_checked_text({result_var}, {input_var})"),
            Line(
                f"{output_var} = ({tripwire_var} and build_guardrail_fail_output("
                f"{result_var} or [])) or ({text_var} or {input_var})"
            ),
            Block(f"if {tripwire_var}:", [
                BranchSlot("on_fail", default=give_output, default_terminates=True),
            ]),
            Block("else:", [
                BranchSlot(
                    "on_pass",
                    default=give_output,
                    default_terminates=True,
                    chain=text_var,
                ),
            ]),
        ]

        if not node.config.continue_on_error:
            return EmitResult(nodes=check, branching=True)

        give_error = [Line(f"return {error_var}")]
        handler: List[CodeNode] = [
            Line(
                f"{error_var} = {{\n"
                f'{INDENT}"message": getattr(guardrails_error, "message", "Unknown error"),\n'
                "}"
            ),
            BranchSlot(
                "on_error",
                default=give_error,
                default_terminates=True,
                fallback=give_error,
            ),
        ]
        return EmitResult(
            nodes=[
                Block("try:", check),
                Block("except Exception as guardrails_error:", handler),
            ],
            branching=True,
        )

    def describe(self, node: GuardrailsNode, ctx: CompilationContext) -> Optional[str]:
        return ctx.naming.guardrails_config_name(node.id)
