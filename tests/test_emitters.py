"""Tests for per-kind code generation."""

import pytest

from flowgen.workflow import compile_workflow
from flowgen.workflow.emitters import register_all_emitters
from flowgen.workflow.emitters.base import get_emitter_registry
from flowgen.workflow.emitters.guard_emitters import guardrail_entry
from flowgen.workflow.templates import (
    create_approval_chain_template,
    create_guardrails_chain_template,
)
from flowgen.workflow.workflow_model import GuardrailSpec, NodeKind

from conftest import agent_node, edge, graph, node


def _compile(data, config):
    result = compile_workflow(data, config)
    assert result.error == ""
    return result.code


def _single(node_data, config, end=True):
    nodes = [node("start", "Start"), node_data]
    edges = [edge("start", node_data["id"])]
    if end:
        nodes.append(node("end", "End"))
        edges.append(edge(node_data["id"], "end"))
    return _compile(graph(nodes, edges), config)


class TestRegistry:
    def test_every_kind_has_an_emitter(self):
        register_all_emitters()
        registry = get_emitter_registry()
        assert registry.missing_kinds() == []
        assert [e.kind for e in registry.list_all()] == list(NodeKind)


class TestAgentEmitter:
    def test_tools(self, config):
        code = _single(agent_node("a", tools=[
            {"type": "function", "name": "get_weather",
             "parameters": {"properties": {"city": {"type": "string"}}}},
            {"type": "web_search", "search_context_size": "high"},
            {"type": "file_search", "vector_store_ids": ["vs_1"]},
            {"type": "code_interpreter"},
        ]), config)
        assert code.startswith(
            "from agents import WebSearchTool, FileSearchTool, function_tool, "
            "Agent, ModelSettings, TResponseInputItem, Runner\n"
        )
        assert (
            'web_search_preview = WebSearchTool(\n'
            '  search_context_size="high",\n'
            '  user_location={\n'
            '    "type": "approximate"\n'
            '  }\n'
            ')'
        ) in code
        assert "@function_tool\ndef get_weather(city: str):\n  pass" in code
        assert (
            "  tools=[\n"
            "    get_weather,\n"
            "    web_search_preview,\n"
            '    FileSearchTool(vector_store_ids=["vs_1"])\n'
            "  ],\n"
        ) in code
        assert code.index("WebSearchTool(") < code.index("@function_tool") < code.index("agent = Agent(")

    def test_web_search_tools_numbered_across_agents(self, config):
        data = graph(
            [
                node("start", "Start"),
                agent_node("a", tools=[{"type": "web_search"}]),
                agent_node("b", tools=[{"type": "web_search"}]),
            ],
            [edge("start", "a"), edge("a", "b", "on_result")],
        )
        code = _compile(data, config)
        assert "web_search_preview = WebSearchTool(" in code
        assert "web_search_preview1 = WebSearchTool(" in code

    def test_structured_output(self, config):
        code = _single(agent_node("a", text={"format": {
            "type": "json_schema", "name": "answer",
            "schema": {"type": "object", "properties": {"answer": {"type": "string"}}},
        }}), config)
        assert "class AgentSchema(BaseModel):\n  answer: str" in code
        assert "  output_type=AgentSchema,\n" in code
        assert '"output_text": agent_result_temp.final_output.model_dump_json(),' in code
        assert '"output_parsed": agent_result_temp.final_output.model_dump()' in code
        assert code.index("class AgentSchema") < code.index("agent = Agent(")

    def test_messages_without_history(self, config):
        code = _single(agent_node(
            "a",
            messages=[{"role": "user", "content": "Summarize"}],
            reads_from_history=False,
            writes_to_history=False,
        ), config)
        assert "*conversation_history" not in code
        assert "conversation_history.extend" not in code
        assert '"text": "Summarize"' in code

    def test_reasoning_and_parallel_tools(self, config):
        code = _single(agent_node(
            "a",
            reasoning={"effort": "high", "summary": "auto"},
            parallel_tool_calls=True,
        ), config)
        assert (
            "  model_settings=ModelSettings(\n"
            "    parallel_tool_calls=True,\n"
            "    store=True,\n"
            "    reasoning=Reasoning(\n"
            '      effort="high",\n'
            '      summary="auto"\n'
            "    )\n"
            "  )\n"
        ) in code

    def test_multiline_instructions(self, config):
        code = _single(agent_node("a", instructions="Line one\\nLine two", model='"gpt-4.1"'), config)
        assert 'instructions="""Line one\nLine two""",' in code
        assert 'model="gpt-4.1",' in code


class TestGuardrailsEmitter:
    def test_entries(self):
        assert guardrail_entry(GuardrailSpec(type="moderation", categories=["hate"])) == {
            "name": "Moderation", "config": {"categories": ["hate"]},
        }
        assert guardrail_entry(GuardrailSpec(type="jailbreak")) == {
            "name": "Jailbreak",
            "config": {"model": "gpt-4o-mini", "confidence_threshold": 0.7},
        }
        assert guardrail_entry(GuardrailSpec(name="Custom", config={"x": 1})) == {
            "name": "Custom", "config": {"x": 1},
        }

    def test_chain(self, config):
        """The second check runs on the text the first one cleaned."""
        code = _compile(create_guardrails_chain_template(), config)
        assert code.startswith(
            "from openai import AsyncOpenAI\n"
            "from types import SimpleNamespace\n"
            "from guardrails.runtime import load_config_bundle, instantiate_guardrails, run_guardrails\n"
        )
        assert (
            "# Shared client for guardrails and file search\n"
            "client = AsyncOpenAI()\n"
            "ctx = SimpleNamespace(guardrail_llm=client)"
        ) in code
        assert (
            "# Guardrails definitions\n"
            "guardrails_config = {\n"
            '  "guardrails": [\n'
            "    {\n"
            '      "name": "Contains PII",\n'
            '      "config": {\n'
            '        "block": False,\n'
            '        "entities": [\n'
            '          "EMAIL_ADDRESS"\n'
            "        ]\n"
            "      }\n"
            "    }\n"
            "  ]\n"
            "}\n"
            "\n"
            "guardrails1_config = {"
        ) in code
        assert "def guardrails_has_tripwire(results):" in code
        assert (
            '  guardrails_inputtext = workflow["input_as_text"]\n'
            '  guardrails_result = await run_guardrails(ctx, guardrails_inputtext, "text/plain", '
            "instantiate_guardrails(load_config_bundle(guardrails_config)), suppress_tripwire=True)\n"
            "  guardrails_hastripwire = guardrails_has_tripwire(guardrails_result)\n"
            "  guardrails_anonymizedtext = get_guardrail_checked_text(guardrails_result, guardrails_inputtext)\n"
            "  guardrails_output = (guardrails_hastripwire and build_guardrail_fail_output("
            "guardrails_result or [])) or (guardrails_anonymizedtext or guardrails_inputtext)\n"
            "  if guardrails_hastripwire:\n"
            "    return guardrails_output\n"
            "  else:\n"
            "    try:\n"
            "      guardrails_inputtext1 = guardrails_anonymizedtext\n"
        ) in code
        assert (
            "    except Exception as guardrails_error:\n"
            "      guardrails_errorresult1 = {\n"
            '        "message": getattr(guardrails_error, "message", "Unknown error"),\n'
            "      }\n"
            "      return guardrails_errorresult1\n"
        ) in code
        assert "        agent_result_temp = await Runner.run(" in code

    def test_error_branch_gets_fallback_return(self, config):
        data = graph(
            [
                node("start", "Start"),
                node("g", "Guardrails", "Check", continue_on_error=True),
                node("mark", "SetState", assignments=[{"name": "failed", "expression": "true"}]),
            ],
            [edge("start", "g"), edge("g", "mark", "on_error")],
        )
        code = _compile(data, config)
        assert "check_config = {" in code
        assert (
            "  except Exception as guardrails_error:\n"
            "    guardrails_errorresult = {\n"
            '      "message": getattr(guardrails_error, "message", "Unknown error"),\n'
            "    }\n"
            '    state["failed"] = True\n'
            "    return guardrails_errorresult\n"
        ) in code

    def test_error_branch_ending_in_end_has_no_fallback(self, config):
        data = graph(
            [
                node("start", "Start"),
                node("g", "Guardrails", continue_on_error=True),
                node("end", "End"),
            ],
            [edge("start", "g"), edge("g", "end", "on_error")],
        )
        code = _compile(data, config)
        assert "return guardrails_errorresult" not in code
        assert "    return workflow\n" in code

    def test_custom_input_expression(self, config):
        code = _single(node("g", "Guardrails", expr={"expression": "state.draft"}), config, end=False)
        assert '  guardrails_inputtext = state["draft"]\n' in code


class TestApprovalEmitter:
    def test_chain_nests(self, config):
        code = _compile(create_approval_chain_template(), config)
        assert "def approval_request(message: str):\n  # TODO: Implement\n  return True" in code
        assert "def approval_request1(message: str):" in code
        assert code.index("writer = Agent(") < code.index("def approval_request(")
        assert (
            '  approval_message = "Proceed with the draft?"\n'
            "\n"
            "  if approval_request(approval_message):\n"
            '    approval_message1 = "Confirm once more?"\n'
            "\n"
            "    if approval_request1(approval_message1):\n"
            "      writer_result_temp = await Runner.run(\n"
        ) in code
        assert (
            "      return writer_result\n"
            "    else:\n"
            "      return workflow\n"
            "  else:\n"
            "    return workflow\n"
        ) in code

    def test_message_reference(self, config):
        code = _single(node("ap", "BinaryApproval", message="workflow.input_as_text"), config, end=False)
        assert '  approval_message = workflow["input_as_text"]\n' in code
        assert "  if approval_request(approval_message):\n    pass\n  else:\n    pass\n" in code


class TestDataEmitters:
    def test_set_state(self, config):
        code = _single(node("s", "SetState", assignments=[
            {"name": "state.total", "expression": "workflow.count"},
            {"name": "", "expression": "1"},
            {"name": "empty", "expression": ""},
        ]), config, end=False)
        assert code.endswith('\n\n  state["total"] = workflow["count"]\n\n  return workflow\n')

    def test_transform_expressions_read_previous_result(self, config):
        data = graph(
            [
                node("start", "Start"),
                agent_node("a"),
                node("t", "Transform", expressions=[
                    {"key": "summary", "expression": "input.output_text"},
                ]),
                node("end", "End"),
            ],
            [edge("start", "a"), edge("a", "t", "on_result"), edge("t", "end")],
        )
        code = _compile(data, config)
        assert (
            "  transform_result = {\n"
            '    "summary": agent_result["output_text"]\n'
            "  }\n"
            "\n"
            "  return agent_result\n"
        ) in code

    def test_transform_object_mode(self, config):
        code = _single(node("t", "Transform", outputKind="object", objectSchema={
            "name": "out",
            "schema": {"properties": {"status": {"type": "string", "default": "ok"}}},
        }), config, end=False)
        assert '  transform_result = {\n    "status": "ok"\n  }\n' in code

    def test_transform_plain_expression(self, config):
        code = _single(node("t", "Transform", expr="workflow.payload"), config, end=False)
        assert '  transform_result = workflow["payload"]\n' in code


class TestToolEmitters:
    def test_file_search(self, config):
        code = _single(node(
            "fs", "builtins.tool.FileSearch",
            vector_store_id="vs_1", query="workflow.input_as_text", max_results=5,
        ), config)
        assert "from openai import AsyncOpenAI\n" in code
        assert "from agents import TResponseInputItem\n" in code
        assert (
            '  filesearch_result = {"results": [\n'
            "    {\n"
            '      "id": result.file_id,\n'
            '      "filename": result.filename,\n'
            '      "score": result.score,\n'
            '    } async for result in client.vector_stores.search(vector_store_id="vs_1", '
            'query=workflow["input_as_text"], max_num_results=5)\n'
            "  ]}\n"
            "\n"
            "  return filesearch_result\n"
        ) in code

    def test_mcp_http(self, config):
        code = _single(node(
            "m", "MCP",
            transportType="http", url="https://mcp.example.com/sse",
            authType="bearer", bearerToken="tok",
            toolName="search", parameters='{"q": "hello"}',
        ), config)
        assert "from mcp.client import Client, SSEClientTransport\n" in code
        assert (
            "  # MCP client initialization (HTTP/SSE)\n"
            "  mcp_transport = SSEClientTransport(\n"
            '    url="https://mcp.example.com/sse",\n'
            "    headers={\n"
            '      "Authorization": "Bearer tok"\n'
            "    }\n"
            "  )\n"
            "  mcp_client = Client(transport=mcp_transport, timeout=30)\n"
            "  await mcp_client.initialize()\n"
            "\n"
            "  try:\n"
            "    mcp_result = await mcp_client.call_tool(\n"
            '      name="search",\n'
            "      arguments={\n"
            '        "q": "hello"\n'
            "      }\n"
            "    )\n"
            "  finally:\n"
            "    await mcp_client.close()\n"
        ) in code

    def test_mcp_stdio_and_numbering(self, config):
        data = graph(
            [
                node("start", "Start"),
                node("m1", "MCP", transportType="stdio", serverUrl="server.py", toolName="a"),
                node("m2", "MCP", transportType="sse", url="http://x", toolName="b", timeout=5),
            ],
            [edge("start", "m1"), edge("m1", "m2")],
        )
        code = _compile(data, config)
        assert "from mcp.client import Client, StdioClientTransport, SSEClientTransport\n" in code
        assert (
            "  mcp_transport = StdioClientTransport(\n"
            '    command="python",\n'
            '    args=["server.py"]\n'
            "  )\n"
        ) in code
        assert "  mcp_client1 = Client(transport=mcp_transport1, timeout=5)\n" in code
        assert "    headers={}\n" in code

    @pytest.mark.parametrize("auth,field,header", [
        ("api_key", {"apiKey": "k"}, "Api-Key k"),
        ("custom", {"customHeaders": '{"Authorization": "Token t"}'}, "Token t"),
    ])
    def test_mcp_auth_headers(self, config, auth, field, header):
        code = _single(node("m", "MCP", authType=auth, url="http://x", **field), config)
        assert f'"Authorization": "{header}"' in code


class TestEndEmitter:
    def test_workflow_output_defaults_from_ui_metadata(self, single_agent_graph, config):
        single_agent_graph["ui_metadata"] = {"dataByNodeId": {"end": {"workflowOutput": {
            "name": "result",
            "schema": {"type": "object", "properties": {
                "status": {"type": "string", "default": "done"},
                "score": {"type": "number"},
            }},
        }}}}
        code = _compile(single_agent_graph, config)
        assert code.endswith(
            "  end_result = {\n"
            '    "status": "done"\n'
            "  }\n"
            "  return end_result\n"
        )

    def test_returns_workflow_without_results(self, config):
        code = _compile(graph(
            [node("start", "Start"), node("end", "End")],
            [edge("start", "end")],
        ), config)
        assert code.endswith("  ]\n\n  return workflow\n")
