"""
Graph Walker — turn the edge list back into structured control flow.

The walker follows continuation edges from the start node, asking
the registered emitter of each node for its fragment. Branching
emitters return skeletons with ``BranchSlot`` holes; the walker then
walks every slot's port independently (each branch gets a copy of the
scope, so visited sets are never shared between siblings) and puts
the resulting trees into the holes.

A path ends at an End node, at a node with no matching outgoing
edge, or at a node already visited on the current path. Outside loop
bodies a path that ends without an End returns the latest result.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import List, Optional

from flowgen.workflow.code_builder import Blank, Block, BranchSlot, CodeNode, Line
from flowgen.workflow.context import CompilationContext, WalkScope
from flowgen.workflow.emitters.base import EmitterRegistry, get_emitter_registry
from flowgen.workflow.errors import MissingEdgeError
from flowgen.workflow.workflow_model import NodeKind, WorkflowEdge, WorkflowGraph

logger = getLogger(__name__)


@dataclass
class WalkResult:
    nodes: List[CodeNode] = field(default_factory=list)
    terminated: bool = False


def require_edge(graph: WorkflowGraph, node_id: str, ports) -> WorkflowEdge:
    edge = graph.find_edge(node_id, ports)
    if edge is None:
        raise MissingEdgeError(node_id, ports)
    return edge


class GraphWalker:
    """Walks one graph (or loop body) inside a compilation context."""

    def __init__(
        self,
        ctx: CompilationContext,
        registry: Optional[EmitterRegistry] = None,
    ) -> None:
        self._ctx = ctx
        self._registry = registry or get_emitter_registry()

    def walk(self, graph: WorkflowGraph, start_id: str, scope: WalkScope) -> WalkResult:
        """Emit the straight-line path starting at ``start_id``."""
        nodes: List[CodeNode] = []
        current: Optional[str] = start_id

        while current is not None:
            if current in scope.visited:
                self._ctx.log.log_cycle_stop(current)
                break
            node = graph.get_node(current)
            if node is None:
                logger.warning(f"Edge points at unknown node '{current}'")
                break
            scope.visited.add(current)

            emitter = self._registry.get(node.kind)
            result = emitter.emit(node, self._ctx, scope)
            if node.kind != NodeKind.GUARDRAILS:
                scope.chain = None
            self._ctx.log.log_node_emitted(node.id, node.kind.value, node.label)
            if nodes and result.nodes:
                nodes.append(Blank())

            if result.branching:
                outcomes: List[bool] = []
                nodes.extend(self._fill(result.nodes, graph, node.id, scope, outcomes))
                return self._finish(nodes, bool(outcomes) and all(outcomes), scope)

            nodes.extend(result.nodes)
            if result.terminal:
                return WalkResult(nodes, terminated=True)
            if not result.next_ports:
                break

            try:
                edge = require_edge(graph, node.id, result.next_ports)
            except MissingEdgeError as exc:
                self._ctx.log.log_dead_end(exc.node_id, exc.ports)
                break
            current = edge.target_node_id

        return self._finish(nodes, False, scope)

    def _finish(self, nodes: List[CodeNode], terminated: bool, scope: WalkScope) -> WalkResult:
        """Close a path that ran out of edges with an implicit return."""
        if terminated or not scope.returns:
            return WalkResult(nodes, terminated=terminated)
        if nodes:
            nodes.append(Blank())
        nodes.append(Line(f"return {scope.last_result}"))
        return WalkResult(nodes, terminated=True)

    # ── Second phase: fill branch slots ──

    def _fill(
        self,
        nodes: List[CodeNode],
        graph: WorkflowGraph,
        source_id: str,
        scope: WalkScope,
        outcomes: List[bool],
    ) -> List[CodeNode]:
        filled: List[CodeNode] = []
        for item in nodes:
            if isinstance(item, Block):
                body = self._fill(item.body, graph, source_id, scope, outcomes)
                filled.append(Block(item.header, body))
            elif isinstance(item, BranchSlot):
                filled.extend(self._fill_slot(item, graph, source_id, scope, outcomes))
            else:
                filled.append(item)
        return filled

    def _fill_slot(
        self,
        slot: BranchSlot,
        graph: WorkflowGraph,
        source_id: str,
        scope: WalkScope,
        outcomes: List[bool],
    ) -> List[CodeNode]:
        edge = graph.find_edge(source_id, (slot.port,))
        if edge is None:
            outcomes.append(slot.default_terminates)
            return list(slot.default)

        self._ctx.log.log_branch(source_id, slot.port, edge.target_node_id)
        # A slot with a fallback supplies its own return.
        returns = False if slot.fallback else None
        branch = self.walk(
            graph, edge.target_node_id, scope.branch(chain=slot.chain, returns=returns)
        )
        if branch.terminated or not slot.fallback:
            outcomes.append(branch.terminated)
            return branch.nodes
        outcomes.append(True)
        return branch.nodes + list(slot.fallback)
