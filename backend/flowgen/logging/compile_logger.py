"""
Compile Logger — structured event log for one compile run.

Every compile gets its own ``CompileLogger``. Events are kept in
memory (``events``) so callers such as the inspector can show how a
graph was walked, and are mirrored to the standard ``logging`` tree
under ``flowgen.compile``.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from logging import DEBUG, INFO, WARNING, getLogger
from typing import Any, Dict, List, Optional, Sequence

logger = getLogger("flowgen.compile")


@dataclass
class CompileEvent:
    kind: str
    message: str
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)


class CompileLogger:
    """Collects the events of a single compile."""

    def __init__(self, compile_id: Optional[str] = None) -> None:
        self.compile_id = compile_id or uuid.uuid4().hex[:8]
        self.events: List[CompileEvent] = []
        self._started: Optional[float] = None

    def _record(self, level: int, kind: str, message: str, **data: Any) -> None:
        self.events.append(CompileEvent(kind, message, data))
        logger.log(level, f"[{self.compile_id}] {message}")

    # ── Lifecycle ──

    def log_compile_start(self, node_count: int, edge_count: int) -> None:
        self._started = time.perf_counter()
        self._record(
            INFO, "compile_start",
            f"Compiling workflow: {node_count} nodes, {edge_count} edges",
            node_count=node_count, edge_count=edge_count,
        )

    def log_compile_end(self, code_length: int) -> None:
        elapsed = (time.perf_counter() - self._started) if self._started else 0.0
        self._record(
            INFO, "compile_end",
            f"Compiled workflow in {elapsed * 1000:.1f}ms ({code_length} chars)",
            code_length=code_length, elapsed=elapsed,
        )

    def log_compile_error(self, error: str) -> None:
        self._record(WARNING, "compile_error", f"Compilation failed: {error}", error=error)

    # ── Walk ──

    def log_node_emitted(self, node_id: str, kind: str, label: str = "") -> None:
        self._record(
            DEBUG, "node",
            f"Emitted {kind} '{label or node_id}'",
            node_id=node_id, node_kind=kind,
        )

    def log_branch(self, node_id: str, port: str, target_id: str) -> None:
        self._record(
            DEBUG, "branch",
            f"Branch {node_id}:{port} -> {target_id}",
            node_id=node_id, port=port, target_id=target_id,
        )

    def log_cycle_stop(self, node_id: str) -> None:
        self._record(
            DEBUG, "cycle",
            f"Node {node_id} already visited on this path, stopping",
            node_id=node_id,
        )

    def log_dead_end(self, node_id: str, ports: Sequence[str]) -> None:
        self._record(
            DEBUG, "dead_end",
            f"No continuation from {node_id} on {list(ports)}",
            node_id=node_id, ports=list(ports),
        )

    def events_of(self, kind: str) -> List[CompileEvent]:
        return [e for e in self.events if e.kind == kind]


def get_compile_logger(compile_id: Optional[str] = None) -> CompileLogger:
    """A fresh logger for one compile run."""
    return CompileLogger(compile_id)
