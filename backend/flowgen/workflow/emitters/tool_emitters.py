"""
Tool Emitters — FileSearch and MCP calls.

Each occurrence gets its own numbered variables (``filesearch_result``,
``filesearch_result1``, ...; ``mcp_result`` / ``mcp_client`` /
``mcp_transport`` share one index).
"""

from __future__ import annotations

from logging import getLogger
from typing import Dict

from flowgen.workflow.code_builder import INDENT, Blank, Block, Line, py_literal, py_string
from flowgen.workflow.context import CompilationContext, WalkScope
from flowgen.workflow.emitters.base import BaseEmitter, EmitResult, register_emitter
from flowgen.workflow.expressions import literal_or_expression
from flowgen.workflow.naming import numbered
from flowgen.workflow.workflow_model import FileSearchNode, McpConfig, McpNode, NodeKind

logger = getLogger(__name__)


# ============================================================================
# FileSearch
# ============================================================================


@register_emitter
class FileSearchEmitter(BaseEmitter):
    """Vector store search through the shared ``client``."""

    kind = NodeKind.FILE_SEARCH

    def emit(self, node: FileSearchNode, ctx: CompilationContext, scope: WalkScope) -> EmitResult:
        config = node.config
        var = ctx.naming.next_name("filesearch_result")
        query = literal_or_expression(config.query.expression, scope.previous)
        search = (
            f"client.vector_stores.search(vector_store_id={py_string(config.vector_store_id)}, "
            f"query={query}, max_num_results={config.max_results})"
        )
        text = (
            f'{var} = {{"results": [\n'
            f"{INDENT}{{\n"
            f'{INDENT * 2}"id": result.file_id,\n'
            f'{INDENT * 2}"filename": result.filename,\n'
            f'{INDENT * 2}"score": result.score,\n'
            f"{INDENT}}} async for result in {search}\n"
            "]}"
        )
        scope.last_result = var
        scope.previous = var
        return EmitResult(nodes=[Line(text)], next_ports=self.continue_ports)


# ============================================================================
# MCP
# ============================================================================


def mcp_headers(config: McpConfig) -> Dict[str, str]:
    auth = config.auth_type
    if auth == "api_key" and config.api_key:
        return {"Authorization": f"Api-Key {config.api_key}"}
    if auth == "bearer" and config.bearer_token:
        return {"Authorization": f"Bearer {config.bearer_token}"}
    if auth == "custom":
        return {str(k): str(v) for k, v in config.custom_headers.items()}
    return {}


@register_emitter
class McpEmitter(BaseEmitter):
    """Open an MCP client, call one tool, close the client."""

    kind = NodeKind.MCP

    def emit(self, node: McpNode, ctx: CompilationContext, scope: WalkScope) -> EmitResult:
        config = node.config
        index = ctx.naming.next_index("mcp")
        result_var = numbered("mcp_result", index)
        client_var = numbered("mcp_client", index)
        transport_var = numbered("mcp_transport", index)

        if config.transport_type in ("http", "sse"):
            comment = "# MCP client initialization (HTTP/SSE)"
            transport = (
                "SSEClientTransport(\n"
                f"{INDENT}url={py_string(config.url)},\n"
                f"{INDENT}headers={py_literal(mcp_headers(config), 1)}\n"
                ")"
            )
        else:
            comment = "# MCP client initialization (stdio)"
            transport = (
                "StdioClientTransport(\n"
                f'{INDENT}command="python",\n'
                f"{INDENT}args=[{py_string(config.server_url)}]\n"
                ")"
            )

        call = (
            f"{result_var} = await {client_var}.call_tool(\n"
            f"{INDENT}name={py_string(config.tool_name)},\n"
            f"{INDENT}arguments={py_literal(config.parameters, 1)}\n"
            ")"
        )
        nodes = [
            Line(comment),
            Line(f"{transport_var} = {transport}"),
            Line(f"{client_var} = Client(transport={transport_var}, timeout={config.timeout})"),
            Line(f"await {client_var}.initialize()"),
            Blank(),
            Block("try:", [Line(call)]),
            Block("finally:", [Line(f"await {client_var}.close()")]),
        ]
        scope.previous = result_var
        return EmitResult(nodes=nodes, next_ports=self.continue_ports)
