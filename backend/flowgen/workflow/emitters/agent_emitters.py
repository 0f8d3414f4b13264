"""
Agent Emitters — agent declarations and ``Runner.run`` calls.

An Agent node contributes three things:

* a top-level ``Agent(...)`` declaration, hoisted out of any branch or
  loop and declared once per node
* the tools it references (``@function_tool`` stubs and hosted tool
  objects) and its structured-output class, if any
* at each call site, a ``Runner.run`` call threaded through
  ``conversation_history`` and a result dict with ``output_text``
"""

from __future__ import annotations

import json
from logging import getLogger
from typing import Any, Dict, List, Optional

from flowgen.workflow.code_builder import INDENT, Blank, Line, py_literal, py_string, py_text
from flowgen.workflow.context import CompilationContext, DeclKind, WalkScope
from flowgen.workflow.emitters.base import BaseEmitter, EmitResult, register_emitter
from flowgen.workflow.expressions import strip_quotes
from flowgen.workflow.naming import tool_identifier
from flowgen.workflow.schema_codegen import schema_classes, tool_stub
from flowgen.workflow.workflow_model import AgentMessage, AgentNode, NodeKind

logger = getLogger(__name__)


# ============================================================================
# Declaration helpers
# ============================================================================


def _instructions(node: AgentNode) -> str:
    text = strip_quotes(node.config.instructions.expression)
    # The builder stores line breaks as a literal backslash-n.
    return py_text(text.replace("\\n", "\n"))


def _tool_refs(node: AgentNode, ctx: CompilationContext) -> List[str]:
    """Declare the agent's tools; return the expressions for ``tools=[...]``."""
    order = ctx.naming.agent_order(node.id)
    refs: List[str] = []
    for i, tool in enumerate(node.config.tools):
        if tool.type == "function":
            ident = tool_identifier(tool.name)
            ctx.declare(DeclKind.FUNCTION_TOOL, ident, (order, i), tool_stub(tool, ctx.needs))
            ctx.require("agents.function_tool")
            refs.append(ident)
        elif tool.type == "web_search":
            name = ctx.naming.web_search_name(node.id, i)
            text = (
                f"{name} = WebSearchTool(\n"
                f"{INDENT}search_context_size={py_string(tool.search_context_size)},\n"
                f"{INDENT}user_location={py_literal(tool.user_location, 1)}\n"
                ")"
            )
            ctx.declare(DeclKind.WEB_SEARCH_TOOL, name, (order, i), text)
            ctx.require("agents.WebSearchTool")
            refs.append(name)
        elif tool.type == "file_search":
            ctx.require("agents.FileSearchTool")
            ids = json.dumps(tool.vector_store_ids, ensure_ascii=False)
            refs.append(f"FileSearchTool(vector_store_ids={ids})")
        else:
            logger.warning(
                f"Agent '{node.label or node.id}': skipping unsupported tool type {tool.type!r}"
            )
    return refs


def _model_settings(node: AgentNode, ctx: CompilationContext) -> str:
    reasoning = node.config.reasoning
    effort = reasoning.effort or ctx.config.default_reasoning_effort
    reasoning_args = [f"effort={py_string(effort)}"]
    if reasoning.summary:
        reasoning_args.append(f"summary={py_string(reasoning.summary)}")

    pad2 = INDENT * 2
    pad3 = INDENT * 3
    lines = ["model_settings=ModelSettings("]
    if node.config.parallel_tool_calls:
        lines.append(f"{pad2}parallel_tool_calls=True,")
    lines.append(f"{pad2}store=True,")
    lines.append(f"{pad2}reasoning=Reasoning(")
    lines.append(",\n".join(f"{pad3}{arg}" for arg in reasoning_args))
    lines.append(f"{pad2})")
    lines.append(f"{INDENT})")
    return "\n".join(lines)


def agent_declaration(node: AgentNode, ctx: CompilationContext) -> str:
    name = ctx.naming.agent_name(node.id)
    model = strip_quotes(node.config.model.expression) or ctx.config.default_model

    args = [
        f"name={py_string(node.label or 'Agent')}",
        f"instructions={_instructions(node)}",
        f"model={py_string(model)}",
    ]
    refs = _tool_refs(node, ctx)
    if refs:
        items = ",\n".join(f"{INDENT * 2}{ref}" for ref in refs)
        args.append(f"tools=[\n{items}\n{INDENT}]")
    schema_name = ctx.naming.schema_name(node.id)
    if schema_name:
        args.append(f"output_type={schema_name}")
    args.append(_model_settings(node, ctx))

    body = ",\n".join(f"{INDENT}{arg}" for arg in args)
    return f"{name} = Agent(\n{body}\n)"


# ============================================================================
# Call-site helpers
# ============================================================================


def _message_literal(message: AgentMessage) -> Dict[str, Any]:
    value: Dict[str, Any] = {
        "role": message.role,
        "content": [{"type": c.type, "text": c.text} for c in message.content],
    }
    if message.id is not None or message.role == "assistant":
        value["id"] = message.id
    return value


def _run_call(node: AgentNode, agent_name: str, temp: str) -> str:
    items: List[str] = []
    if node.config.reads_from_history:
        items.append("*conversation_history")
    items.extend(py_literal(_message_literal(m), 2) for m in node.config.messages)
    if items:
        joined = ",\n".join(f"{INDENT * 2}{item}" for item in items)
        input_list = f"[\n{joined}\n{INDENT}]"
    else:
        input_list = "[]"
    return (
        f"{temp} = await Runner.run(\n"
        f"{INDENT}{agent_name},\n"
        f"{INDENT}input={input_list}\n"
        ")"
    )


def _result_binding(result: str, temp: str, structured: bool) -> str:
    if structured:
        return (
            f"{result} = {{\n"
            f'{INDENT}"output_text": {temp}.final_output.model_dump_json(),\n'
            f'{INDENT}"output_parsed": {temp}.final_output.model_dump()\n'
            "}"
        )
    return (
        f"{result} = {{\n"
        f'{INDENT}"output_text": {temp}.final_output_as(str)\n'
        "}"
    )


# ============================================================================
# Agent
# ============================================================================


@register_emitter
class AgentEmitter(BaseEmitter):
    """Declare the agent once; call it at every site that reaches it."""

    kind = NodeKind.AGENT
    continue_ports = ("on_result", "out")

    def declare(self, node: AgentNode, ctx: CompilationContext) -> None:
        if ctx.is_declared(DeclKind.AGENT, node.id):
            return
        order = (ctx.naming.agent_order(node.id),)
        schema = node.config.output_schema
        schema_name = ctx.naming.schema_name(node.id)
        if schema and schema_name:
            classes = schema_classes(schema_name, schema, ctx.needs)
            ctx.declare(DeclKind.SCHEMA, node.id, order, "\n\n\n".join(classes))
        ctx.declare(DeclKind.AGENT, node.id, order, agent_declaration(node, ctx))

    def emit(self, node: AgentNode, ctx: CompilationContext, scope: WalkScope) -> EmitResult:
        self.declare(node, ctx)
        agent_name = ctx.naming.agent_name(node.id)
        result, temp = ctx.naming.agent_result_names(node.id)
        structured = ctx.naming.schema_name(node.id) is not None

        nodes = [Line(_run_call(node, agent_name, temp)), Blank()]
        if node.config.writes_to_history:
            nodes.append(Line(
                f"conversation_history.extend([item.to_input_item() for item in {temp}.new_items])"
            ))
            nodes.append(Blank())
        nodes.append(Line(_result_binding(result, temp, structured)))

        scope.last_result = result
        scope.previous = result
        return EmitResult(nodes=nodes, next_ports=self.continue_ports)

    def describe(self, node: AgentNode, ctx: CompilationContext) -> Optional[str]:
        return ctx.naming.agent_name(node.id)
