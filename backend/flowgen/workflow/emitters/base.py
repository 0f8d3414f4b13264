"""
Emitter base class and registry.

Each node kind has exactly one emitter class. Emitters are
registered with ``@register_emitter`` and looked up by ``NodeKind``;
the registry is closed over the kinds in ``NodeKind`` and
``EmitterRegistry.missing_kinds`` reports any gap.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from logging import getLogger
from typing import Dict, List, Optional, Tuple, Type

from flowgen.workflow.code_builder import CodeNode
from flowgen.workflow.context import CompilationContext, WalkScope
from flowgen.workflow.workflow_model import NodeKind, WorkflowNode

logger = getLogger(__name__)

SEQUENTIAL_PORTS: Tuple[str, ...] = ("out", "on_result")


@dataclass
class EmitResult:
    """What an emitter hands back to the walker.

    ``nodes``       code-tree fragment (may hold ``BranchSlot`` holes)
    ``next_ports``  ports to continue from; empty means stop here
    ``terminal``    the fragment ends the procedure (``return``)
    ``branching``   the walker must fill slots and not continue
    """

    nodes: List[CodeNode] = field(default_factory=list)
    next_ports: Tuple[str, ...] = ()
    terminal: bool = False
    branching: bool = False


class BaseEmitter(ABC):
    """Code generator for a single node kind."""

    kind: NodeKind
    continue_ports: Tuple[str, ...] = SEQUENTIAL_PORTS

    @abstractmethod
    def emit(
        self,
        node: WorkflowNode,
        ctx: CompilationContext,
        scope: WalkScope,
    ) -> EmitResult:
        """Produce the body fragment for ``node`` and register its
        declarations on ``ctx``."""

    def declare(self, node: WorkflowNode, ctx: CompilationContext) -> None:
        """Register top-level declarations without emitting a call.

        Used when a graph has no edges at all and nothing is walked.
        """

    def describe(self, node: WorkflowNode, ctx: CompilationContext) -> Optional[str]:
        """The identifier this node declares, if any (for reports)."""
        return None


class EmitterRegistry:
    """Process-wide map of node kind → emitter instance."""

    def __init__(self) -> None:
        self._emitters: Dict[NodeKind, BaseEmitter] = {}

    def register(self, emitter: BaseEmitter) -> None:
        if emitter.kind in self._emitters:
            logger.warning(f"Emitter for {emitter.kind.value} re-registered")
        self._emitters[emitter.kind] = emitter

    def get(self, kind: NodeKind) -> BaseEmitter:
        try:
            return self._emitters[kind]
        except KeyError:
            raise LookupError(f"No emitter registered for {kind.value}") from None

    def list_all(self) -> List[BaseEmitter]:
        return [self._emitters[k] for k in NodeKind if k in self._emitters]

    def missing_kinds(self) -> List[NodeKind]:
        return [k for k in NodeKind if k not in self._emitters]


_registry: Optional[EmitterRegistry] = None


def get_emitter_registry() -> EmitterRegistry:
    global _registry
    if _registry is None:
        _registry = EmitterRegistry()
    return _registry


def register_emitter(cls: Type[BaseEmitter]) -> Type[BaseEmitter]:
    """Class decorator: instantiate and register an emitter."""
    get_emitter_registry().register(cls())
    return cls
