"""
Workflow Inspector — a structured view of how a graph compiles.

Compiles the workflow and reports alongside the generated code:

* Per-node details: kind, generated identifier, outgoing ports
* Per-edge details: which control-flow construct each edge becomes
* Summary statistics (nesting depth of loops, branch counts, ...)
* Validation problems found without compiling
"""

from __future__ import annotations

from logging import getLogger
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from flowgen.config.sub_config.general.compiler_config import CompilerConfig
from flowgen.workflow.compiler import GraphSource, WorkflowCompiler, format_validation_error
from flowgen.workflow.context import CompilationContext
from flowgen.workflow.emitters.base import get_emitter_registry
from flowgen.workflow.workflow_model import (
    NodeKind,
    WhileNode,
    WorkflowGraph,
    WorkflowNode,
    load_workflow,
)

logger = getLogger(__name__)

_BRANCHING_KINDS = {NodeKind.IF_ELSE, NodeKind.BINARY_APPROVAL, NodeKind.GUARDRAILS}

_PORT_WIRING = {
    "on_approve": "approve branch",
    "on_reject": "reject branch",
    "on_pass": "guardrails pass branch",
    "on_fail": "guardrails tripwire branch",
    "on_error": "guardrails error handler",
    "fallback": "else branch",
}


# ====================================================================
# Public API
# ====================================================================


def inspect_workflow(
    source: GraphSource,
    config: Optional[CompilerConfig] = None,
) -> Dict[str, Any]:
    """Inspect a workflow and produce the compile report.

    Returns a dict containing:
        - ``code``       : Generated module source ("" on failure)
        - ``error``      : Compile error message ("" on success)
        - ``nodes``      : Per-node detail list (loop bodies included)
        - ``edges``      : Per-edge detail list
        - ``summary``    : High-level stats
        - ``validation`` : Validation result

    A graph that does not load yields the same shape with ``error``
    set and empty details.
    """
    try:
        graph = load_workflow(source)
    except ValidationError as exc:
        message = format_validation_error(exc)
        logger.warning(f"Cannot inspect workflow: {message}")
        return _unloadable_report(message)

    compiler = WorkflowCompiler(graph, config)
    result = compiler.compile()
    ctx = compiler.context if result.ok else None

    errors = graph.validate_graph()
    node_details = _build_node_details(graph, ctx)
    edge_details = _build_edge_details(graph)

    all_nodes = list(graph.iter_nodes())
    return {
        "code": result.code,
        "error": result.error,
        "nodes": node_details,
        "edges": edge_details,
        "summary": {
            "total_nodes": len(all_nodes),
            "total_edges": graph.edge_count(),
            "agents": sum(1 for n in all_nodes if n.kind == NodeKind.AGENT),
            "branching_nodes": sum(1 for n in all_nodes if n.kind in _BRANCHING_KINDS),
            "loops": sum(1 for n in all_nodes if n.kind == NodeKind.WHILE),
            "max_loop_depth": _loop_depth(graph),
            "compiled": result.ok,
            "is_valid": len(errors) == 0,
        },
        "validation": {
            "valid": len(errors) == 0,
            "errors": errors,
        },
    }


def _unloadable_report(message: str) -> Dict[str, Any]:
    return {
        "code": "",
        "error": message,
        "nodes": [],
        "edges": [],
        "summary": {
            "total_nodes": 0,
            "total_edges": 0,
            "agents": 0,
            "branching_nodes": 0,
            "loops": 0,
            "max_loop_depth": 0,
            "compiled": False,
            "is_valid": False,
        },
        "validation": {"valid": False, "errors": [message]},
    }


# ====================================================================
# Node detail builder
# ====================================================================


def _build_node_details(
    graph: WorkflowGraph,
    ctx: Optional[CompilationContext],
    depth: int = 0,
) -> List[Dict[str, Any]]:
    registry = get_emitter_registry()
    details: List[Dict[str, Any]] = []
    for node in graph.nodes:
        targets = []
        for e in graph.get_edges_from(node.id):
            target = graph.get_node(e.target_node_id)
            targets.append({
                "port": e.source_port_id,
                "target_id": e.target_node_id,
                "target_label": (target.label if target else "") or e.target_node_id,
            })

        identifier = None
        if ctx is not None:
            identifier = registry.get(node.kind).describe(node, ctx)

        details.append({
            "id": node.id,
            "label": node.label or node.kind.name.title(),
            "node_type": node.node_type,
            "loop_depth": depth,
            "identifier": identifier,
            "config": _config_summary(node),
            "targets": targets,
        })

        if isinstance(node, WhileNode) and node.config.body is not None:
            details.extend(_build_node_details(node.config.body, ctx, depth + 1))
    return details


def _config_summary(node: WorkflowNode) -> Dict[str, Any]:
    """Config with long strings shortened, aliases as exported."""
    summary: Dict[str, Any] = {}
    for key, value in node.config.model_dump(by_alias=True, exclude_none=True).items():
        if key == "body":
            continue
        if isinstance(value, str) and len(value) > 100:
            summary[key] = value[:100] + "…"
        else:
            summary[key] = value
    return summary


# ====================================================================
# Edge detail builder
# ====================================================================


def _wiring(graph: WorkflowGraph, source: Optional[WorkflowNode], port: str) -> str:
    if source is None:
        return "dangling"
    if source.kind == NodeKind.IF_ELSE:
        for i, case in enumerate(source.config.cases):
            if port == (case.output_port_id or f"case-{i}"):
                return "if branch" if i == 0 else "elif branch"
        return "else branch"
    if source.kind == NodeKind.START:
        return "start"
    return _PORT_WIRING.get(port, "sequence")


def _build_edge_details(graph: WorkflowGraph, scope: str = "") -> List[Dict[str, Any]]:
    details: List[Dict[str, Any]] = []
    for e in graph.edges:
        source = graph.get_node(e.source_node_id)
        target = graph.get_node(e.target_node_id)
        details.append({
            "scope": scope or "main",
            "source": e.source_node_id,
            "source_label": (source.label if source else "") or e.source_node_id,
            "port": e.source_port_id,
            "target": e.target_node_id,
            "target_label": (target.label if target else "") or e.target_node_id,
            "wiring": _wiring(graph, source, e.source_port_id),
        })
    for node in graph.nodes:
        if isinstance(node, WhileNode) and node.config.body is not None:
            details.extend(_build_edge_details(node.config.body, f"loop:{node.id}"))
    return details


def _loop_depth(graph: WorkflowGraph) -> int:
    depth = 0
    for node in graph.nodes:
        if isinstance(node, WhileNode):
            inner = _loop_depth(node.config.body) if node.config.body else 0
            depth = max(depth, 1 + inner)
    return depth
