"""Tests for parsing exported workflow graphs."""

import pytest
from pydantic import ValidationError

from flowgen.workflow.workflow_model import (
    AgentNode,
    EndNode,
    McpNode,
    NodeKind,
    WhileNode,
    WorkflowGraph,
    load_workflow,
    normalize_node_type,
)

from conftest import agent_node, edge, graph, node


class TestNodeTypes:
    def test_short_names_normalized(self):
        assert normalize_node_type("Agent") == "builtins.Agent"
        assert normalize_node_type("FileSearch") == "builtins.tool.FileSearch"
        assert normalize_node_type("builtins.MCP") == "builtins.MCP"
        assert normalize_node_type("Mystery") == "Mystery"

    def test_discriminated_union(self):
        wf = load_workflow(graph([node("start", "Start"), agent_node("a"), node("m", "MCP")], []))
        assert isinstance(wf.nodes[1], AgentNode)
        assert isinstance(wf.nodes[2], McpNode)
        assert [n.kind for n in wf.nodes] == [NodeKind.START, NodeKind.AGENT, NodeKind.MCP]

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            load_workflow(graph([node("x", "Teleport")], []))

    def test_null_config(self):
        wf = load_workflow({"nodes": [{"id": "e", "node_type": "End", "config": None}]})
        assert isinstance(wf.nodes[0], EndNode)
        assert wf.nodes[0].config.workflow_output is None


class TestGraph:
    def test_defaults(self):
        wf = WorkflowGraph()
        assert wf.input_schema == {
            "type": "object", "properties": {"input_as_text": {"type": "string"}},
        }
        assert wf.edges == []

    def test_edge_ports_default(self):
        wf = load_workflow({"edges": [{"source_node_id": "a", "target_node_id": "b",
                                       "source_port_id": "", "target_port_id": None}]})
        assert wf.edges[0].source_port_id == "out"
        assert wf.edges[0].target_port_id == "in"

    def test_find_edge_port_priority(self):
        wf = load_workflow(graph(
            [node("a", "Start"), node("b", "End"), node("c", "End")],
            [edge("a", "b", "out"), edge("a", "c", "on_result")],
        ))
        assert wf.find_edge("a", ("on_result", "out")).target_node_id == "c"
        assert wf.find_edge("a", ("out", "on_result")).target_node_id == "b"
        assert wf.find_edge("a", ("on_fail",)) is None

    def test_recursive_loop_body(self, counter_loop_graph):
        wf = load_workflow(counter_loop_graph)
        loop = wf.get_node("loop")
        assert isinstance(loop, WhileNode)
        assert isinstance(loop.config.body, WorkflowGraph)
        assert [n.id for n in wf.iter_nodes()] == ["start", "loop", "body_start", "agent", "inc", "end"]
        assert wf.edge_count() == 4
        assert NodeKind.SET_STATE in wf.node_kinds()

    def test_mcp_json_text_fields(self):
        wf = load_workflow(graph([node("m", "MCP", parameters='{"q": 1}', customHeaders="not json")], []))
        assert wf.nodes[0].config.parameters == {"q": 1}
        assert wf.nodes[0].config.custom_headers == {}


class TestValidateGraph:
    def test_valid(self, single_agent_graph):
        assert load_workflow(single_agent_graph).validate_graph() == []

    def test_problems_reported(self):
        wf = load_workflow(graph(
            [node("start", "Start"), agent_node("lonely", "Lonely"),
             node("loop", "While", condition={"expression": " "})],
            [edge("start", "loop"), edge("loop", "ghost")],
        ))
        errors = wf.validate_graph()
        assert "Edge references unknown target node: ghost" in errors
        assert "Node 'Lonely' (lonely) is disconnected (no edges)." in errors
        assert "While node 'loop' has an empty condition." in errors

    def test_missing_start(self):
        assert load_workflow(graph([], [], start="x")).validate_graph() == ["Start node not found"]
