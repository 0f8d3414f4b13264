"""
Compilation Context — the per-compile arena.

One ``CompilationContext`` is created for each ``compile_workflow``
call and handed by reference to the walker and every emitter. It owns
the naming registry, the deduplicated top-level declarations, and the
import requirements discovered while emitting. Nothing here outlives
the compile, so concurrent compiles never share state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from logging import getLogger
from typing import TYPE_CHECKING, Dict, List, Optional, Set, Tuple

from flowgen.config.sub_config.general.compiler_config import CompilerConfig
from flowgen.logging import CompileLogger
from flowgen.workflow.naming import NamingRegistry
from flowgen.workflow.workflow_model import WorkflowGraph

if TYPE_CHECKING:
    from flowgen.workflow.walker import GraphWalker

logger = getLogger(__name__)


class DeclKind(IntEnum):
    """Top-level declaration families, in module order."""

    WEB_SEARCH_TOOL = 0
    FUNCTION_TOOL = 1
    GUARDRAILS_CONFIG = 2
    SCHEMA = 3
    AGENT = 4
    APPROVAL = 5


@dataclass
class Declaration:
    kind: DeclKind
    key: str
    order: Tuple[int, ...]
    text: str


@dataclass
class WalkScope:
    """Per-branch walk state. Branches get copies, never shared sets.

    ``last_result``  what an End node returns
    ``previous``     the variable ``input.*`` resolves against
    ``chain``        checked text of a guardrails node whose ``on_pass``
                     led here
    ``returns``      a path that runs out of edges returns ``last_result``
    """

    visited: Set[str] = field(default_factory=set)
    last_result: str = "workflow"
    previous: Optional[str] = None
    chain: Optional[str] = None
    returns: bool = True

    def branch(
        self,
        chain: Optional[str] = None,
        returns: Optional[bool] = None,
    ) -> WalkScope:
        return WalkScope(
            visited=set(self.visited),
            last_result=self.last_result,
            previous=self.previous,
            chain=chain,
            returns=self.returns if returns is None else returns,
        )

    def nested(self) -> WalkScope:
        """Scope for a loop body: same bindings, its own node namespace."""
        return WalkScope(
            visited=set(),
            last_result=self.last_result,
            previous=self.previous,
            returns=False,
        )


class CompilationContext:
    """Shared, deduplicating state for one compile."""

    def __init__(
        self,
        graph: WorkflowGraph,
        config: CompilerConfig,
        compile_logger: CompileLogger,
    ) -> None:
        self.graph = graph
        self.config = config
        self.log = compile_logger
        self.naming = NamingRegistry(graph)
        self.needs: Set[str] = set()
        self.walker: Optional[GraphWalker] = None
        self._declarations: Dict[Tuple[DeclKind, str], Declaration] = {}

    # ── Declarations ──

    def declare(self, kind: DeclKind, key: str, order: Tuple[int, ...], text: str) -> bool:
        """Register a top-level declaration once.

        Returns ``False`` when ``key`` was already declared; the
        earliest ``order`` wins so sorting stays traversal-independent.
        """
        existing = self._declarations.get((kind, key))
        if existing is not None:
            if order < existing.order:
                existing.order = order
            return False
        self._declarations[(kind, key)] = Declaration(kind, key, order, text)
        return True

    def is_declared(self, kind: DeclKind, key: str) -> bool:
        return (kind, key) in self._declarations

    def declarations(self, kind: DeclKind) -> List[Declaration]:
        found = [d for d in self._declarations.values() if d.kind == kind]
        return sorted(found, key=lambda d: (d.order, d.key))

    def require(self, name: str) -> None:
        """Record an import requirement (e.g. ``"agents.WebSearchTool"``)."""
        self.needs.add(name)
