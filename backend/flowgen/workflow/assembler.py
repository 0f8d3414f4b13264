"""
Module Assembler — stitch declarations and body into one module.

Order of the generated module:

    imports
    tool definitions (web search tools, function tool stubs)
    shared client           (file search or guardrails present)
    guardrails configs + helper functions
    schema classes
    agent / approval declarations
    workflow input model
    async entry point wrapping the walked body

Imports are chosen from the node kinds present anywhere in the graph,
loop bodies included, plus what the emitted declarations asked for.
"""

from __future__ import annotations

from logging import getLogger
from typing import List, Set

from flowgen.workflow.code_builder import INDENT, Blank, CodeNode, Line, render
from flowgen.workflow.context import CompilationContext, DeclKind
from flowgen.workflow.schema_codegen import input_model, state_initializer
from flowgen.workflow.workflow_model import McpNode, NodeKind

logger = getLogger(__name__)

CHUNK_SEPARATOR = "\n\n\n"

SHARED_CLIENT = "client = AsyncOpenAI()\nctx = SimpleNamespace(guardrail_llm=client)"

GUARDRAILS_HELPERS = [
    """\
def guardrails_has_tripwire(results):
  return any(getattr(r, "tripwire_triggered", False) is True for r in (results or []))""",
    """\
def get_guardrail_checked_text(results, fallback_text):
  for r in (results or []):
    info = getattr(r, "info", None) or {}
    if isinstance(info, dict) and ("checked_text" in info):
      return info.get("checked_text") or fallback_text
  return fallback_text""",
    """\
def build_guardrail_fail_output(results):
  failures = []
  for r in (results or []):
    if getattr(r, "tripwire_triggered", False):
      info = getattr(r, "info", None) or {}
      failure = {
        "guardrail_name": info.get("guardrail_name"),
      }
      for key in ("flagged", "confidence", "threshold", "hallucination_type", "hallucinated_statements", "verified_statements"):
        if key in (info or {}):
          failure[key] = info.get(key)
      failures.append(failure)
  return {"failed": len(failures) > 0, "failures": failures}""",
]

CONVERSATION_SEED = (
    "conversation_history: list[TResponseInputItem] = [\n"
    f"{INDENT}{{\n"
    f'{INDENT * 2}"role": "user",\n'
    f'{INDENT * 2}"content": [\n'
    f"{INDENT * 3}{{\n"
    f'{INDENT * 4}"type": "input_text",\n'
    f'{INDENT * 4}"text": workflow["input_as_text"]\n'
    f"{INDENT * 3}}}\n"
    f"{INDENT * 2}]\n"
    f"{INDENT}}}\n"
    "]"
)


class ModuleAssembler:
    """Builds the final source text from a finished context."""

    def __init__(self, ctx: CompilationContext) -> None:
        self._ctx = ctx
        self._kinds: Set[NodeKind] = ctx.graph.node_kinds()

    # ── Sections ──

    def imports(self) -> List[str]:
        kinds = self._kinds
        needs = self._ctx.needs
        lines: List[str] = []

        if kinds & {NodeKind.FILE_SEARCH, NodeKind.GUARDRAILS}:
            lines.append("from openai import AsyncOpenAI")
            lines.append("from types import SimpleNamespace")
        if NodeKind.GUARDRAILS in kinds:
            lines.append(
                "from guardrails.runtime import load_config_bundle, "
                "instantiate_guardrails, run_guardrails"
            )
        if NodeKind.MCP in kinds:
            lines.append(f"from mcp.client import {', '.join(self._mcp_names())}")

        has_agents = NodeKind.AGENT in kinds
        agent_names: List[str] = []
        for optional in ("WebSearchTool", "FileSearchTool", "function_tool"):
            if f"agents.{optional}" in needs:
                agent_names.append(optional)
        if has_agents:
            agent_names.extend(["Agent", "ModelSettings"])
        agent_names.append("TResponseInputItem")
        if has_agents:
            agent_names.append("Runner")
        lines.append(f"from agents import {', '.join(agent_names)}")

        if has_agents:
            lines.append("from openai.types.shared.reasoning import Reasoning")
        pydantic_names = ["BaseModel"]
        if "pydantic.Field" in needs:
            pydantic_names.append("Field")
        lines.append(f"from pydantic import {', '.join(pydantic_names)}")
        if "typing.Any" in needs:
            lines.append("from typing import Any")
        return lines

    def _mcp_names(self) -> List[str]:
        transports = set()
        for node in self._ctx.graph.iter_nodes():
            if isinstance(node, McpNode):
                if node.config.transport_type in ("http", "sse"):
                    transports.add("SSEClientTransport")
                else:
                    transports.add("StdioClientTransport")
        return ["Client"] + sorted(transports, reverse=True)

    def _texts(self, kind: DeclKind) -> List[str]:
        return [d.text for d in self._ctx.declarations(kind)]

    def declaration_chunks(self) -> List[str]:
        chunks: List[str] = []
        chunks.extend(self._texts(DeclKind.WEB_SEARCH_TOOL))
        chunks.extend(self._texts(DeclKind.FUNCTION_TOOL))

        if self._kinds & {NodeKind.FILE_SEARCH, NodeKind.GUARDRAILS}:
            chunks.append(f"# Shared client for guardrails and file search\n{SHARED_CLIENT}")

        if NodeKind.GUARDRAILS in self._kinds:
            configs = self._texts(DeclKind.GUARDRAILS_CONFIG)
            if configs:
                chunks.append("# Guardrails definitions\n" + "\n\n".join(configs))
            chunks.extend(GUARDRAILS_HELPERS)

        chunks.extend(self._texts(DeclKind.SCHEMA))
        chunks.extend(self._texts(DeclKind.AGENT))
        chunks.extend(self._texts(DeclKind.APPROVAL))
        return chunks

    def entrypoint(self, body: List[CodeNode]) -> str:
        config = self._ctx.config
        preamble: List[CodeNode] = [
            Line(state_initializer(self._ctx.graph.state_vars)),
            Line("workflow = workflow_input.model_dump()"),
            Line(CONVERSATION_SEED),
        ]
        if body:
            preamble.append(Blank())
        lines = render(preamble + list(body), level=1)
        header = (
            "# Main code entrypoint\n"
            f"async def {config.entrypoint_name}(workflow_input: {config.input_class_name}):"
        )
        return header + "\n" + "\n".join(lines)

    # ── Whole module ──

    def assemble(self, body: List[CodeNode]) -> str:
        config = self._ctx.config
        # The input model may need extra imports, so build it first.
        input_classes = input_model(
            config.input_class_name, self._ctx.graph.input_schema, self._ctx.needs
        )
        chunks = self.declaration_chunks()
        chunks.extend(input_classes)
        chunks.append(self.entrypoint(body))

        module = "\n".join(self.imports()) + CHUNK_SEPARATOR + CHUNK_SEPARATOR.join(chunks)
        return module + "\n"
