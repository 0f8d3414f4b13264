"""
Workflow Compiler — visual agent workflows to OpenAI Agents SDK code.

Takes a workflow graph exported by the visual builder and emits one
self-contained Python module that runs it.

Architecture:
    workflow_model     — Pydantic models for the exported graph
    expressions        — Builder expression → Python expression
    naming             — Deterministic identifier allocation
    schema_codegen     — JSON schema → Pydantic class source
    code_builder       — Line/Block/BranchSlot tree and renderer
    emitters/          — BaseEmitter ABC + one emitter per node kind
    walker             — Edge list → nested control flow
    assembler          — Imports, declarations, entry point
    compiler           — compile_workflow / WorkflowCompiler facade
    workflow_inspector — Compile report for tooling
    templates          — Pre-built example graphs
"""

from flowgen.workflow.compiler import (
    CompileResult,
    WorkflowCompiler,
    compile_workflow,
)
from flowgen.workflow.errors import (
    ExpressionParseError,
    MissingEdgeError,
    ParseError,
    StructuralError,
    WorkflowCompileError,
)
from flowgen.workflow.templates import TEMPLATES, get_template
from flowgen.workflow.workflow_inspector import inspect_workflow
from flowgen.workflow.workflow_model import (
    NodeKind,
    WorkflowEdge,
    WorkflowGraph,
    load_workflow,
)

__all__ = [
    "CompileResult",
    "WorkflowCompiler",
    "compile_workflow",
    "ExpressionParseError",
    "MissingEdgeError",
    "ParseError",
    "StructuralError",
    "WorkflowCompileError",
    "TEMPLATES",
    "get_template",
    "inspect_workflow",
    "NodeKind",
    "WorkflowEdge",
    "WorkflowGraph",
    "load_workflow",
]
