"""
Workflow Compiler — compile a WorkflowGraph into Python source.

Takes the exported visual workflow and produces one runnable module
for the OpenAI Agents SDK: top-level agent/tool/schema declarations
and an ``async def run_workflow(...)`` whose body follows the graph.

Compilation is all-or-nothing and never raises: every failure comes
back as ``CompileResult(code="", error=...)``.
"""

from __future__ import annotations

from logging import getLogger
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ValidationError

from flowgen.config.sub_config.general.compiler_config import CompilerConfig
from flowgen.logging import CompileLogger, get_compile_logger
from flowgen.workflow.assembler import ModuleAssembler
from flowgen.workflow.context import CompilationContext, WalkScope
from flowgen.workflow.emitters import register_all_emitters
from flowgen.workflow.emitters.base import EmitterRegistry, get_emitter_registry
from flowgen.workflow.errors import StructuralError, WorkflowCompileError
from flowgen.workflow.walker import GraphWalker
from flowgen.workflow.workflow_model import WorkflowGraph, load_workflow

logger = getLogger(__name__)

GraphSource = Union[WorkflowGraph, Dict[str, Any], str, bytes]


class CompileResult(BaseModel):
    """``{code, error}``: exactly one of them is non-empty."""

    code: str = ""
    error: str = ""

    @property
    def ok(self) -> bool:
        return not self.error


def format_validation_error(exc: ValidationError) -> str:
    details = "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
        for err in exc.errors()[:5]
    )
    return f"Invalid workflow graph: {details}"


class WorkflowCompiler:
    """Compile a workflow graph → Python module source.

    Steps:
        1. Load and check the graph (start node must exist).
        2. Allocate names for every node in document order.
        3. Walk from the start node; emitters register declarations
           and return body fragments, branches fill their slots.
        4. Assemble imports, declarations and the entry point.

    Usage::

        compiler = WorkflowCompiler(graph)
        result = compiler.compile()
        if result.ok:
            print(result.code)
    """

    def __init__(
        self,
        graph: GraphSource,
        config: Optional[CompilerConfig] = None,
        registry: Optional[EmitterRegistry] = None,
        compile_logger: Optional[CompileLogger] = None,
    ) -> None:
        self._source = graph
        self._config = config or CompilerConfig.get_default_instance()
        self._registry = registry or get_emitter_registry()
        self._log = compile_logger or get_compile_logger()
        self._context: Optional[CompilationContext] = None

    @property
    def compile_logger(self) -> CompileLogger:
        return self._log

    @property
    def context(self) -> Optional[CompilationContext]:
        """Context of the last compile (``None`` before or on early failure)."""
        return self._context

    # ========================================================================
    # Compilation
    # ========================================================================

    def compile(self) -> CompileResult:
        """Compile the graph. Never raises."""
        try:
            code = self._compile()
        except WorkflowCompileError as exc:
            self._log.log_compile_error(str(exc))
            return CompileResult(error=str(exc))
        except ValidationError as exc:
            message = format_validation_error(exc)
            self._log.log_compile_error(message)
            return CompileResult(error=message)
        except Exception as exc:
            logger.exception("Unexpected error while compiling workflow")
            message = f"Internal compiler error: {exc}"
            self._log.log_compile_error(message)
            return CompileResult(error=message)

        self._log.log_compile_end(len(code))
        return CompileResult(code=code)

    def _compile(self) -> str:
        register_all_emitters()
        graph = load_workflow(self._source)
        self._log.log_compile_start(
            sum(1 for _ in graph.iter_nodes()), graph.edge_count()
        )

        if graph.get_node(graph.start_node_id) is None:
            raise StructuralError("Start node not found")

        ctx = CompilationContext(graph, self._config, self._log)
        ctx.walker = GraphWalker(ctx, self._registry)
        self._context = ctx

        scope = WalkScope()
        if graph.edge_count() == 0:
            # Partially built workflow: declare everything, run nothing.
            logger.info("Workflow has no edges; declaring all nodes")
            for node in graph.iter_nodes():
                self._registry.get(node.kind).declare(node, ctx)
            scope.returns = False

        result = ctx.walker.walk(graph, graph.start_node_id, scope)
        return ModuleAssembler(ctx).assemble(result.nodes)


def compile_workflow(
    graph: GraphSource,
    config: Optional[CompilerConfig] = None,
) -> CompileResult:
    """Compile ``graph`` (model, mapping or JSON text) to Python source."""
    return WorkflowCompiler(graph, config).compile()
