"""
Pre-built Workflow Templates.

Factory functions returning ready-made ``WorkflowGraph`` objects for
the common topologies (single agent, if/else, counter loop, approval
chain, guardrails chain). The CLI compiles them with ``--template``;
the test-suite uses them as fixtures.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from flowgen.workflow.workflow_model import WorkflowGraph


class _GraphBuilder:
    """Collects raw node/edge dicts, validated once at the end."""

    def __init__(self, start: str = "start") -> None:
        self.start = start
        self.nodes: List[Dict[str, Any]] = []
        self.edges: List[Dict[str, Any]] = []

    def add(self, ntype: str, nid: str, label: str = "", cfg: Optional[Dict[str, Any]] = None) -> None:
        self.nodes.append({
            "id": nid, "node_type": ntype, "label": label, "config": cfg or {},
        })

    def edge(self, src: str, tgt: str, port: str = "out") -> None:
        self.edges.append({
            "source_node_id": src, "source_port_id": port, "target_node_id": tgt,
        })

    def raw(self, **extra: Any) -> Dict[str, Any]:
        data = {"nodes": self.nodes, "edges": self.edges, "start_node_id": self.start}
        data.update(extra)
        return data

    def build(self, **extra: Any) -> WorkflowGraph:
        return WorkflowGraph.model_validate(self.raw(**extra))


def _agent(instructions: str) -> Dict[str, Any]:
    return {"instructions": instructions, "model": "gpt-5"}


# ============================================================================
# Templates
# ============================================================================


def create_single_agent_template() -> WorkflowGraph:
    """START → Agent → END"""
    g = _GraphBuilder()
    g.add("Start", "start", "Start")
    g.add("Agent", "agent", "Agent", _agent("You are a helpful assistant."))
    g.add("End", "end", "End")

    g.edge("start", "agent")
    g.edge("agent", "end", "on_result")
    return g.build()


def create_if_else_template() -> WorkflowGraph:
    """Route on an input field to one of two agents.

    Topology::
        START → route ─[input.x > 0]→ Positive → END
                      └[else]──────→ Negative → END
    """
    g = _GraphBuilder()
    g.add("Start", "start", "Start")
    g.add("IfElse", "route", "Route", {
        "cases": [{"label": "Positive", "output_port_id": "case-0",
                   "predicate": {"expression": "input.x > 0"}}],
        "fallback": {"label": "Else", "output_port_id": "fallback"},
    })
    g.add("Agent", "pos", "Positive", _agent("Handle positive input."))
    g.add("Agent", "neg", "Negative", _agent("Handle other input."))
    g.add("End", "end_pos", "End")
    g.add("End", "end_neg", "End")

    g.edge("start", "route")
    g.edge("route", "pos", "case-0")
    g.edge("route", "neg", "fallback")
    g.edge("pos", "end_pos", "on_result")
    g.edge("neg", "end_neg", "on_result")
    return g.build()


def create_counter_loop_template() -> WorkflowGraph:
    """Run an agent three times, counting in workflow state.

    Topology::
        START → while state.count < 3 { Agent → SetState } → END
    """
    body = _GraphBuilder(start="body_start")
    body.add("Start", "body_start", "Start")
    body.add("Agent", "agent", "Agent", _agent("Refine the draft."))
    body.add("SetState", "inc", "Increment", {
        "assignments": [{"name": "count", "expression": "state.count + 1"}],
    })
    body.edge("body_start", "agent")
    body.edge("agent", "inc", "on_result")

    g = _GraphBuilder()
    g.add("Start", "start", "Start")
    g.add("While", "loop", "While", {
        "condition": {"expression": "state.count < 3"},
        "body": body.raw(),
    })
    g.add("End", "end", "End")

    g.edge("start", "loop")
    g.edge("loop", "end")
    return g.build(state_vars=[{"name": "count", "type": "number", "default": 0}])


def create_approval_chain_template() -> WorkflowGraph:
    """Two approvals in a row before a drafting agent runs.

    Topology::
        START → Approval ─approve→ Approval ─approve→ Writer → END
                  └reject→ END      └reject→ END
    """
    g = _GraphBuilder()
    g.add("Start", "start", "Start")
    g.add("BinaryApproval", "approve1", "Approval", {
        "message": {"expression": "Proceed with the draft?"},
    })
    g.add("BinaryApproval", "approve2", "Approval", {
        "message": {"expression": "Confirm once more?"},
    })
    g.add("Agent", "writer", "Writer", _agent("Write the draft."))
    g.add("End", "end", "End")
    g.add("End", "end_reject1", "End")
    g.add("End", "end_reject2", "End")

    g.edge("start", "approve1")
    g.edge("approve1", "approve2", "on_approve")
    g.edge("approve1", "end_reject1", "on_reject")
    g.edge("approve2", "writer", "on_approve")
    g.edge("approve2", "end_reject2", "on_reject")
    g.edge("writer", "end", "on_result")
    return g.build()


def create_guardrails_chain_template() -> WorkflowGraph:
    """PII check, then a jailbreak check, then an agent.

    Topology::
        START → Guardrails(PII) ─pass→ Guardrails(Jailbreak) ─pass→ Agent → END
    """
    g = _GraphBuilder()
    g.add("Start", "start", "Start")
    g.add("Guardrails", "pii", "Guardrails", {
        "guardrails": [{"type": "pii", "entities": ["EMAIL_ADDRESS"]}],
    })
    g.add("Guardrails", "jailbreak", "Guardrails", {
        "continue_on_error": True,
        "guardrails": [{"type": "jailbreak"}],
    })
    g.add("Agent", "agent", "Agent", _agent("Answer the question."))
    g.add("End", "end", "End")

    g.edge("start", "pii")
    g.edge("pii", "jailbreak", "on_pass")
    g.edge("jailbreak", "agent", "on_pass")
    g.edge("agent", "end", "on_result")
    return g.build()


TEMPLATES: Dict[str, Callable[[], WorkflowGraph]] = {
    "single-agent": create_single_agent_template,
    "if-else": create_if_else_template,
    "counter-loop": create_counter_loop_template,
    "approval-chain": create_approval_chain_template,
    "guardrails-chain": create_guardrails_chain_template,
}


def get_template(name: str) -> WorkflowGraph:
    """Build the named template; raises ``KeyError`` for unknown names."""
    try:
        factory = TEMPLATES[name]
    except KeyError:
        raise KeyError(
            f"Unknown template '{name}'. Available: {', '.join(sorted(TEMPLATES))}"
        ) from None
    return factory()
