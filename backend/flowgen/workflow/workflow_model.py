"""
Workflow Data Models — the graph IR consumed by the compiler.

These are the serializable structures exported by the visual
workflow builder: typed node variants, port-addressed edges,
workflow-scoped state variables and the input JSON schema.

Every node kind is its own pydantic model with a typed ``config``;
the node list is a discriminated union keyed on ``node_type``.
A ``While`` node carries its loop body as a nested ``WorkflowGraph``.
"""

from __future__ import annotations

import json
from enum import Enum
from logging import getLogger
from typing import Annotated, Any, Dict, Iterator, List, Literal, Optional, Set, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

logger = getLogger(__name__)


class NodeKind(str, Enum):
    """Closed set of node kinds understood by the compiler."""

    START = "builtins.Start"
    AGENT = "builtins.Agent"
    END = "builtins.End"
    IF_ELSE = "builtins.IfElse"
    WHILE = "builtins.While"
    BINARY_APPROVAL = "builtins.BinaryApproval"
    GUARDRAILS = "builtins.Guardrails"
    TRANSFORM = "builtins.Transform"
    SET_STATE = "builtins.SetState"
    FILE_SEARCH = "builtins.tool.FileSearch"
    MCP = "builtins.MCP"


# Short names accepted on input ("Agent" -> "builtins.Agent").
_SHORT_KIND_NAMES: Dict[str, str] = {
    kind.value.rsplit(".", 1)[-1]: kind.value for kind in NodeKind
}

DEFAULT_INPUT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {"input_as_text": {"type": "string"}},
}


def normalize_node_type(value: Any) -> Any:
    """Map a short node type name onto its wire tag."""
    if not isinstance(value, str):
        return value
    if value in _SHORT_KIND_NAMES.values():
        return value
    return _SHORT_KIND_NAMES.get(value, value)


class _Model(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# ====================================================================
# Shared value types
# ====================================================================


class Expression(_Model):
    """An expression string in the builder's expression language."""

    expression: str = ""
    format: str = "cel"

    @model_validator(mode="before")
    @classmethod
    def _from_plain(cls, data: Any) -> Any:
        if data is None:
            return {}
        if isinstance(data, (str, int, float, bool)):
            return {"expression": str(data)}
        return data


class SchemaSpec(_Model):
    """A named JSON schema (structured output / object transform)."""

    name: str = ""
    strict: bool = True
    json_schema: Dict[str, Any] = Field(default_factory=dict, alias="schema")


# ====================================================================
# Per-kind configuration
# ====================================================================


class StartConfig(_Model):
    pass


class MessageContent(_Model):
    type: str = "input_text"
    text: str = ""


class AgentMessage(_Model):
    role: str = "user"
    content: List[MessageContent] = Field(default_factory=list)
    id: Optional[str] = None

    @field_validator("content", mode="before")
    @classmethod
    def _content_from_text(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [{"type": "input_text", "text": value}]
        return value or []


class ToolSpec(_Model):
    """A tool reference on an agent (function or hosted)."""

    type: str = "function"
    name: str = ""
    description: str = ""
    parameters: Dict[str, Any] = Field(default_factory=dict)
    search_context_size: str = "medium"
    user_location: Dict[str, Any] = Field(
        default_factory=lambda: {"type": "approximate"}
    )
    vector_store_ids: List[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _flatten_function(cls, data: Any) -> Any:
        # {"type": "function", "function": {"name": ..., "parameters": ...}}
        if isinstance(data, dict) and isinstance(data.get("function"), dict):
            merged = dict(data)
            merged.update(data["function"])
            return merged
        return data


class ReasoningConfig(_Model):
    effort: Optional[str] = None
    summary: Optional[str] = None


class TextFormat(_Model):
    type: str = "text"
    name: str = ""
    json_schema: Dict[str, Any] = Field(default_factory=dict, alias="schema")


class TextConfig(_Model):
    format: TextFormat = Field(default_factory=TextFormat)


class AgentConfig(_Model):
    instructions: Expression = Field(default_factory=Expression)
    model: Expression = Field(default_factory=Expression)
    reasoning: ReasoningConfig = Field(default_factory=ReasoningConfig)
    messages: List[AgentMessage] = Field(default_factory=list)
    tools: List[ToolSpec] = Field(default_factory=list)
    text: Optional[TextConfig] = None
    parallel_tool_calls: bool = False
    reads_from_history: bool = True
    writes_to_history: bool = True

    @property
    def output_schema(self) -> Optional[Dict[str, Any]]:
        """The JSON schema when structured output is configured."""
        if self.text and self.text.format.type == "json_schema":
            return self.text.format.json_schema or None
        return None


class EndConfig(_Model):
    workflow_output: Optional[SchemaSpec] = Field(
        default=None, alias="workflowOutput"
    )


class IfElseCase(_Model):
    label: str = ""
    output_port_id: str = ""
    predicate: Optional[Expression] = None


class IfElseFallback(_Model):
    label: str = "Else"
    output_port_id: str = "fallback"


class IfElseConfig(_Model):
    cases: List[IfElseCase] = Field(default_factory=list)
    fallback: IfElseFallback = Field(default_factory=IfElseFallback)

    @field_validator("fallback", mode="before")
    @classmethod
    def _fallback_default(cls, value: Any) -> Any:
        return value or {}


class WhileConfig(_Model):
    condition: Expression = Field(default_factory=Expression)
    body: Optional[WorkflowGraph] = None


class BinaryApprovalConfig(_Model):
    message: Expression = Field(default_factory=Expression)
    variable_mapping: List[Dict[str, Any]] = Field(default_factory=list)


class GuardrailSpec(_Model):
    """One guardrail check. Either builder form ``{type, ...}`` or
    export form ``{name, config}``."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    type: str = ""
    name: str = ""
    config: Dict[str, Any] = Field(default_factory=dict)


class GuardrailsConfig(_Model):
    continue_on_error: bool = False
    expr: Expression = Field(
        default_factory=lambda: Expression(expression="workflow.input_as_text")
    )
    guardrails: List[GuardrailSpec] = Field(default_factory=list)


class TransformField(_Model):
    key: str = ""
    expression: Expression = Field(default_factory=Expression)


class TransformConfig(_Model):
    expr: Expression = Field(default_factory=lambda: Expression(expression="{}"))
    expressions: List[TransformField] = Field(default_factory=list)
    output_kind: str = Field(default="expressions", alias="outputKind")
    object_schema: Optional[SchemaSpec] = Field(default=None, alias="objectSchema")


class SetStateAssignment(_Model):
    name: str = ""
    expression: Expression = Field(default_factory=Expression)


class SetStateConfig(_Model):
    assignments: List[SetStateAssignment] = Field(default_factory=list)


class FileSearchConfig(_Model):
    vector_store_id: str = ""
    query: Expression = Field(default_factory=Expression)
    max_results: int = 10


class McpConfig(_Model):
    transport_type: str = Field(default="http", alias="transportType")
    url: str = ""
    server_url: str = Field(default="", alias="serverUrl")
    auth_type: str = Field(default="none", alias="authType")
    api_key: str = Field(default="", alias="apiKey")
    bearer_token: str = Field(default="", alias="bearerToken")
    custom_headers: Dict[str, Any] = Field(default_factory=dict, alias="customHeaders")
    timeout: int = 30
    tool_name: str = Field(default="", alias="toolName")
    parameters: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("custom_headers", "parameters", mode="before")
    @classmethod
    def _parse_json_text(cls, value: Any) -> Any:
        # The builder stores these as JSON text areas.
        if value is None or value == "":
            return {}
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
            except ValueError:
                logger.warning(f"Ignoring malformed MCP JSON field: {value!r}")
                return {}
            return parsed if isinstance(parsed, dict) else {}
        return value


# ====================================================================
# Nodes
# ====================================================================


class _BaseNode(_Model):
    """Fields shared by every node variant."""

    id: str
    label: str = ""

    @model_validator(mode="before")
    @classmethod
    def _null_config(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("config") is None:
            data = dict(data)
            data["config"] = {}
        return data

    @property
    def kind(self) -> NodeKind:
        return NodeKind(self.node_type)  # type: ignore[attr-defined]


class StartNode(_BaseNode):
    node_type: Literal["builtins.Start"] = "builtins.Start"
    config: StartConfig = Field(default_factory=StartConfig)


class AgentNode(_BaseNode):
    node_type: Literal["builtins.Agent"] = "builtins.Agent"
    config: AgentConfig = Field(default_factory=AgentConfig)


class EndNode(_BaseNode):
    node_type: Literal["builtins.End"] = "builtins.End"
    config: EndConfig = Field(default_factory=EndConfig)


class IfElseNode(_BaseNode):
    node_type: Literal["builtins.IfElse"] = "builtins.IfElse"
    config: IfElseConfig = Field(default_factory=IfElseConfig)


class WhileNode(_BaseNode):
    node_type: Literal["builtins.While"] = "builtins.While"
    config: WhileConfig = Field(default_factory=WhileConfig)


class BinaryApprovalNode(_BaseNode):
    node_type: Literal["builtins.BinaryApproval"] = "builtins.BinaryApproval"
    config: BinaryApprovalConfig = Field(default_factory=BinaryApprovalConfig)


class GuardrailsNode(_BaseNode):
    node_type: Literal["builtins.Guardrails"] = "builtins.Guardrails"
    config: GuardrailsConfig = Field(default_factory=GuardrailsConfig)


class TransformNode(_BaseNode):
    node_type: Literal["builtins.Transform"] = "builtins.Transform"
    config: TransformConfig = Field(default_factory=TransformConfig)


class SetStateNode(_BaseNode):
    node_type: Literal["builtins.SetState"] = "builtins.SetState"
    config: SetStateConfig = Field(default_factory=SetStateConfig)


class FileSearchNode(_BaseNode):
    node_type: Literal["builtins.tool.FileSearch"] = "builtins.tool.FileSearch"
    config: FileSearchConfig = Field(default_factory=FileSearchConfig)


class McpNode(_BaseNode):
    node_type: Literal["builtins.MCP"] = "builtins.MCP"
    config: McpConfig = Field(default_factory=McpConfig)


WorkflowNode = Annotated[
    Union[
        StartNode,
        AgentNode,
        EndNode,
        IfElseNode,
        WhileNode,
        BinaryApprovalNode,
        GuardrailsNode,
        TransformNode,
        SetStateNode,
        FileSearchNode,
        McpNode,
    ],
    Field(discriminator="node_type"),
]


class WorkflowEdge(_Model):
    """A directed, port-addressed edge between two nodes."""

    id: Optional[str] = None
    source_node_id: str
    source_port_id: str = "out"
    target_node_id: str
    target_port_id: str = "in"

    @field_validator("source_port_id", mode="before")
    @classmethod
    def _default_source_port(cls, value: Any) -> Any:
        return value or "out"

    @field_validator("target_port_id", mode="before")
    @classmethod
    def _default_target_port(cls, value: Any) -> Any:
        return value or "in"


class StateVar(_Model):
    """A workflow-scoped mutable variable."""

    id: Optional[str] = None
    name: str
    type: Optional[str] = None
    default: Any = None


# ====================================================================
# Graph
# ====================================================================


class WorkflowGraph(_Model):
    """A complete workflow graph (or a While loop body).

    Edge lookups are linear scans; graphs are small and the compiler
    walks them once.
    """

    nodes: List[WorkflowNode] = Field(default_factory=list)
    edges: List[WorkflowEdge] = Field(default_factory=list)
    start_node_id: str = ""
    state_vars: List[StateVar] = Field(default_factory=list)
    input_schema: Dict[str, Any] = Field(
        default_factory=lambda: json.loads(json.dumps(DEFAULT_INPUT_SCHEMA)),
        alias="input_variable_json_schema",
    )
    ui_metadata: Optional[Dict[str, Any]] = None

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        nodes = []
        for raw in data.get("nodes") or []:
            if isinstance(raw, dict) and "node_type" in raw:
                raw = dict(raw)
                raw["node_type"] = normalize_node_type(raw["node_type"])
            nodes.append(raw)
        data["nodes"] = nodes
        if data.get("edges") is None:
            data["edges"] = []
        for key in ("input_variable_json_schema", "input_schema"):
            if key in data and not data[key]:
                del data[key]
        return data

    @model_validator(mode="after")
    def _merge_ui_metadata(self) -> WorkflowGraph:
        by_node = (self.ui_metadata or {}).get("dataByNodeId") or {}
        for node in self.nodes:
            if not isinstance(node, EndNode) or node.config.workflow_output:
                continue
            output = (by_node.get(node.id) or {}).get("workflowOutput")
            if output:
                node.config.workflow_output = SchemaSpec.model_validate(output)
        return self

    # ── Lookups ──

    def get_node(self, node_id: str) -> Optional[WorkflowNode]:
        """Find a node by ID (top level only)."""
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None

    def get_edges_from(self, node_id: str) -> List[WorkflowEdge]:
        """Get all edges originating from a node."""
        return [e for e in self.edges if e.source_node_id == node_id]

    def get_edges_to(self, node_id: str) -> List[WorkflowEdge]:
        """Get all edges pointing to a node."""
        return [e for e in self.edges if e.target_node_id == node_id]

    def find_edge(self, node_id: str, ports) -> Optional[WorkflowEdge]:
        """First outgoing edge of ``node_id`` on one of ``ports``.

        Ports are tried in the given order; ties go to edge order.
        """
        outgoing = self.get_edges_from(node_id)
        for port in ports:
            for edge in outgoing:
                if edge.source_port_id == port:
                    return edge
        return None

    def iter_nodes(self) -> Iterator[WorkflowNode]:
        """Yield every node in document order, loop bodies inline."""
        for node in self.nodes:
            yield node
            if isinstance(node, WhileNode) and node.config.body is not None:
                yield from node.config.body.iter_nodes()

    def node_kinds(self) -> Set[NodeKind]:
        """All node kinds present, including inside loop bodies."""
        return {node.kind for node in self.iter_nodes()}

    def edge_count(self) -> int:
        """Number of edges, including inside loop bodies."""
        total = len(self.edges)
        for node in self.nodes:
            if isinstance(node, WhileNode) and node.config.body is not None:
                total += node.config.body.edge_count()
        return total

    # ── Validation ──

    def validate_graph(self) -> List[str]:
        """Validate the graph structure.

        Returns a list of error messages (empty = valid). Never raises.
        """
        errors: List[str] = []

        if self.get_node(self.start_node_id) is None:
            errors.append("Start node not found")

        node_ids = {n.id for n in self.nodes}
        for edge in self.edges:
            if edge.source_node_id not in node_ids:
                errors.append(
                    f"Edge references unknown source node: {edge.source_node_id}"
                )
            if edge.target_node_id not in node_ids:
                errors.append(
                    f"Edge references unknown target node: {edge.target_node_id}"
                )

        if self.edges:
            for node in self.nodes:
                if node.id == self.start_node_id:
                    continue
                if not self.get_edges_to(node.id) and not self.get_edges_from(node.id):
                    errors.append(
                        f"Node '{node.label or node.node_type}' ({node.id}) "
                        f"is disconnected (no edges)."
                    )

        for node in self.nodes:
            if not isinstance(node, WhileNode):
                continue
            if not node.config.condition.expression.strip():
                errors.append(
                    f"While node '{node.label or node.id}' has an empty condition."
                )
            if node.config.body is not None:
                errors.extend(
                    f"[{node.label or node.id}] {msg}"
                    for msg in node.config.body.validate_graph()
                )

        return errors


WhileConfig.model_rebuild()
WhileNode.model_rebuild()
WorkflowGraph.model_rebuild()


def load_workflow(data: Union[str, bytes, Dict[str, Any], WorkflowGraph]) -> WorkflowGraph:
    """Parse an exported workflow (JSON text or mapping)."""
    if isinstance(data, WorkflowGraph):
        return data
    if isinstance(data, (str, bytes)):
        return WorkflowGraph.model_validate_json(data)
    return WorkflowGraph.model_validate(data)
