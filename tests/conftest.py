"""Shared fixtures: compiler config and exported workflow graphs."""

import pytest

from flowgen.config import CompilerConfig


@pytest.fixture
def config():
    """Default compiler settings, independent of the environment."""
    return CompilerConfig()


def agent_node(node_id, label="Agent", instructions="You are a helpful assistant.", **config):
    cfg = {"instructions": instructions, "model": "gpt-5"}
    cfg.update(config)
    return {"id": node_id, "node_type": "builtins.Agent", "label": label, "config": cfg}


def node(node_id, node_type, label="", **config):
    return {"id": node_id, "node_type": node_type, "label": label, "config": config}


def edge(source, target, port="out"):
    return {"source_node_id": source, "source_port_id": port, "target_node_id": target}


def graph(nodes, edges, start="start", **extra):
    data = {"nodes": nodes, "edges": edges, "start_node_id": start}
    data.update(extra)
    return data


@pytest.fixture
def single_agent_graph():
    """Start → Agent("Agent") → End"""
    return graph(
        [
            node("start", "builtins.Start", "Start"),
            agent_node("agent"),
            node("end", "builtins.End", "End"),
        ],
        [edge("start", "agent"), edge("agent", "end", "on_result")],
    )


@pytest.fixture
def if_else_graph():
    """Start → IfElse(input.x > 0) → Positive / Negative → End"""
    return graph(
        [
            node("start", "builtins.Start", "Start"),
            node(
                "route", "builtins.IfElse", "Route",
                cases=[{"label": "Positive", "output_port_id": "case-0",
                        "predicate": {"expression": "input.x > 0", "format": "cel"}}],
                fallback={"label": "Else", "output_port_id": "fallback"},
            ),
            agent_node("pos", "Positive", "Handle positive input."),
            agent_node("neg", "Negative", "Handle other input."),
            node("end_pos", "builtins.End", "End"),
            node("end_neg", "builtins.End", "End"),
        ],
        [
            edge("start", "route"),
            edge("route", "pos", "case-0"),
            edge("route", "neg", "fallback"),
            edge("pos", "end_pos", "on_result"),
            edge("neg", "end_neg", "on_result"),
        ],
    )


@pytest.fixture
def counter_loop_graph():
    """Start → While(state.count < 3){Agent → SetState} → End"""
    body = graph(
        [
            node("body_start", "builtins.Start", "Start"),
            agent_node("agent", instructions="Refine the draft."),
            node(
                "inc", "builtins.SetState", "Increment",
                assignments=[{"name": "count", "expression": {"expression": "state.count + 1"}}],
            ),
        ],
        [edge("body_start", "agent"), edge("agent", "inc", "on_result")],
        start="body_start",
    )
    return graph(
        [
            node("start", "builtins.Start", "Start"),
            node("loop", "builtins.While", "While",
                 condition={"expression": "state.count < 3"}, body=body),
            node("end", "builtins.End", "End"),
        ],
        [edge("start", "loop"), edge("loop", "end")],
        state_vars=[{"id": "s1", "name": "count", "type": "number", "default": 0}],
    )
