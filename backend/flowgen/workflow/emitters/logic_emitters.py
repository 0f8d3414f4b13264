"""
Logic Emitters — branching and looping node kinds.

IfElse and BinaryApproval return skeletons whose branch bodies are
``BranchSlot`` holes; the walker fills each hole by walking the
matching port. While compiles its nested body graph in place.
"""

from __future__ import annotations

from logging import getLogger
from typing import List, Optional

from flowgen.workflow.code_builder import INDENT, Blank, Block, BranchSlot, CodeNode, Line
from flowgen.workflow.context import CompilationContext, DeclKind, WalkScope
from flowgen.workflow.emitters.base import BaseEmitter, EmitResult, register_emitter
from flowgen.workflow.expressions import (
    ensure_all_valid,
    ensure_valid,
    literal_or_expression,
    translate_expression,
)
from flowgen.workflow.workflow_model import (
    BinaryApprovalNode,
    IfElseNode,
    NodeKind,
    WhileNode,
)

logger = getLogger(__name__)


# ============================================================================
# IfElse
# ============================================================================


@register_emitter
class IfElseEmitter(BaseEmitter):
    """``if`` / ``elif`` per case, then one ``else`` for the fallback.

    A case without a predicate is always true. Every case gets a
    clause even when its port has no edge.
    """

    kind = NodeKind.IF_ELSE

    def emit(self, node: IfElseNode, ctx: CompilationContext, scope: WalkScope) -> EmitResult:
        cases = node.config.cases
        ensure_all_valid(c.predicate.expression for c in cases if c.predicate is not None)

        fallback_port = node.config.fallback.output_port_id or "fallback"
        if not cases:
            return EmitResult(nodes=[BranchSlot(fallback_port)], branching=True)

        nodes: List[CodeNode] = []
        for i, case in enumerate(cases):
            if case.predicate is None:
                condition = "True"
            else:
                condition = translate_expression(case.predicate.expression, scope.previous)
            keyword = "if" if i == 0 else "elif"
            port = case.output_port_id or f"case-{i}"
            nodes.append(Block(f"{keyword} {condition}:", [BranchSlot(port)]))
        nodes.append(Block("else:", [BranchSlot(fallback_port)]))
        return EmitResult(nodes=nodes, branching=True)


# ============================================================================
# While
# ============================================================================


@register_emitter
class WhileEmitter(BaseEmitter):
    """``while <condition>:`` around the compiled loop body.

    Agents inside the body declare themselves at module level like any
    other agent. Bindings made inside the loop do not leak out: after
    the loop, End sees the result bound before it.
    """

    kind = NodeKind.WHILE

    def emit(self, node: WhileNode, ctx: CompilationContext, scope: WalkScope) -> EmitResult:
        condition = translate_expression(
            ensure_valid(node.config.condition.expression), scope.previous
        )

        inner: List[CodeNode] = []
        body = node.config.body
        if body is not None and body.get_node(body.start_node_id) is not None:
            result = ctx.walker.walk(body, body.start_node_id, scope.nested())
            inner = result.nodes
        elif body is not None and body.nodes:
            logger.warning(
                f"While '{node.label or node.id}': body start node "
                f"'{body.start_node_id}' not found, loop body left empty"
            )

        return EmitResult(
            nodes=[Block(f"while {condition}:", inner)],
            next_ports=self.continue_ports,
        )


# ============================================================================
# BinaryApproval
# ============================================================================


@register_emitter
class BinaryApprovalEmitter(BaseEmitter):
    """Bind the message, then branch on the approval stub.

    Chains of approvals come out nested, one ``if`` per approval,
    because each approve/reject port is walked like any other branch.
    """

    kind = NodeKind.BINARY_APPROVAL

    def declare(self, node: BinaryApprovalNode, ctx: CompilationContext) -> None:
        stub, _ = ctx.naming.approval_names(node.id)
        text = (
            f"def {stub}(message: str):\n"
            f"{INDENT}# TODO: Implement\n"
            f"{INDENT}return True"
        )
        ctx.declare(DeclKind.APPROVAL, stub, (ctx.naming.approval_index(node.id),), text)

    def emit(
        self, node: BinaryApprovalNode, ctx: CompilationContext, scope: WalkScope
    ) -> EmitResult:
        self.declare(node, ctx)
        stub, message_var = ctx.naming.approval_names(node.id)
        message = literal_or_expression(node.config.message.expression, scope.previous)
        nodes: List[CodeNode] = [
            Line(f"{message_var} = {message}"),
            Blank(),
            Block(f"if {stub}({message_var}):", [BranchSlot("on_approve")]),
            Block("else:", [BranchSlot("on_reject")]),
        ]
        return EmitResult(nodes=nodes, branching=True)

    def describe(self, node: BinaryApprovalNode, ctx: CompilationContext) -> Optional[str]:
        return ctx.naming.approval_names(node.id)[0]
