"""
Naming Registry — deterministic, collision-free identifiers.

Every identifier the generated module declares is allocated here,
once per compile, from a scan of the whole graph in document order
(loop bodies inline). Allocation is a pure function of the labels, so
two compiles of the same graph always agree. All families share one
namespace: an agent labelled ``Check Config`` and a guardrails node
labelled ``Check`` never both bind ``check_config``.

Families
--------
* agents        ``agent``, ``agent1``, ... or ``<snake label>``
* guardrails    ``guardrails_config``, ... or ``<snake label>_config``
* approvals     ``approval_request``, ``approval_request1``, ...
* schemas       ``<PascalLabel>Schema``
* call sites    ``filesearch_result``, ``mcp_result``, ... numbered per
                emitted occurrence
"""

from __future__ import annotations

import keyword
import re
from logging import getLogger
from typing import Callable, Dict, List, Optional, Set, Tuple

from flowgen.workflow.workflow_model import (
    AgentNode,
    BinaryApprovalNode,
    GuardrailsNode,
    WorkflowGraph,
)

logger = getLogger(__name__)

# Names the generated module binds itself.
RESERVED_NAMES: Set[str] = {
    "workflow", "state", "client", "ctx", "conversation_history",
    "workflow_input", "run_workflow", "item", "result", "end_result",
    "guardrails_has_tripwire", "get_guardrail_checked_text",
    "build_guardrail_fail_output", "guardrails_error",
    "Agent", "Runner", "ModelSettings", "Reasoning", "BaseModel", "Field",
    "WebSearchTool", "FileSearchTool", "function_tool", "TResponseInputItem",
    "AsyncOpenAI", "SimpleNamespace", "Any", "Client",
    "StdioClientTransport", "SSEClientTransport",
    "load_config_bundle", "instantiate_guardrails", "run_guardrails",
}

# Variable families emitted at call sites.
_GENERATED_FAMILY = re.compile(
    r"^(?:agent_result(?:_temp)?|filesearch_result|mcp_(?:result|client|transport)"
    r"|guardrails_(?:inputtext|result|hastripwire|anonymizedtext|output|errorresult)"
    r"|approval_(?:request|message)|transform_result|web_search_preview)\d*$"
)


# ====================================================================
# Case conversion
# ====================================================================


def snake_case(label: str) -> str:
    """Lowercase, drop punctuation, join words with ``_``."""
    text = (label or "").lower()
    text = re.sub(r"[^a-z0-9\s_]", "", text)
    text = re.sub(r"\s+", "_", text.strip())
    text = re.sub(r"_+", "_", text)
    return text.strip("_")


def pascal_case(label: str) -> str:
    """``"research agent"`` → ``ResearchAgent``."""
    words = re.split(r"[^A-Za-z0-9]+", label or "")
    return "".join(w[:1].upper() + w[1:] for w in words if w)


def class_stem(label: str) -> str:
    """Schema class stem: ``"myAgent v2"`` → ``MyagentV2``.

    Words are split on whitespace only and lowercased before the first
    letter is raised, so inner capitals do not survive.
    """
    text = re.sub(r"[^a-z0-9\s]", "", (label or "").lower())
    return "".join(w[:1].upper() + w[1:] for w in text.split())


def is_default_label(label: str, default: str) -> bool:
    return snake_case(label) == default


def _is_free(name: str, taken: Set[str]) -> bool:
    return (
        name not in taken
        and name not in RESERVED_NAMES
        and not keyword.iskeyword(name)
    )


def _sanitize(name: str, family: str, index: int) -> str:
    if not name:
        return f"{family}_{index + 1}"
    if name[0].isdigit():
        name = f"{family}_{name}"
    if (
        keyword.iskeyword(name)
        or name in RESERVED_NAMES
        or _GENERATED_FAMILY.match(name)
    ):
        name = f"{name}_{family}"
    return name


def _binds_itself(name: str) -> List[str]:
    return [name]


def allocate_family(
    labels: List[str],
    default: str,
    taken: Optional[Set[str]] = None,
    binds: Callable[[str], List[str]] = _binds_itself,
) -> List[str]:
    """Allocate one identifier per label of a same-kind family.

    * A default label takes ``default`` on its first occurrence and
      ``default<N>`` afterwards, where ``N`` starts at the number of
      earlier default labels and skips any name already claimed.
    * A custom label takes its snake-cased form; an empty form falls
      back to ``<default>_<position>``; a clash gets the smallest free
      numeric suffix.

    ``binds`` maps a candidate to every module name it would introduce;
    a candidate is accepted only when all of them are free in ``taken``,
    which is updated in place so several families can share it.
    """
    names: List[Optional[str]] = [None] * len(labels)
    if taken is None:
        taken = set()

    def free(name: str) -> bool:
        return all(_is_free(bound, taken) for bound in binds(name))

    # Custom labels claim their names first so defaults can skip them.
    for i, label in enumerate(labels):
        if is_default_label(label, default):
            continue
        base = _sanitize(snake_case(label), default, i)
        name = base
        n = 1
        while not free(name):
            name = f"{base}{n}"
            n += 1
        names[i] = name
        taken.update(binds(name))

    seen_defaults = 0
    for i, label in enumerate(labels):
        if not is_default_label(label, default):
            continue
        candidate = seen_defaults
        name = default if candidate == 0 else f"{default}{candidate}"
        while not free(name):
            candidate += 1
            name = f"{default}{candidate}"
        names[i] = name
        taken.update(binds(name))
        seen_defaults += 1

    return [n for n in names if n is not None]


def allocate_classes(
    labels: List[str],
    suffix: str,
    taken: Optional[Set[str]] = None,
) -> List[str]:
    """PascalCase class names, deduplicated with numeric suffixes."""
    if taken is None:
        taken = set()
    out: List[str] = []
    for i, label in enumerate(labels):
        stem = class_stem(label) or f"Output{i + 1}"
        if stem[0].isdigit():
            stem = f"Output{stem}"
        base = f"{stem}{suffix}"
        name = base
        n = 1
        while name in taken or name in RESERVED_NAMES:
            name = f"{base}{n}"
            n += 1
        taken.add(name)
        out.append(name)
    return out


def numbered(base: str, index: int) -> str:
    """``base`` for the first occurrence, ``base<index>`` afterwards."""
    return base if index == 0 else f"{base}{index}"


# ====================================================================
# Registry
# ====================================================================


class NamingRegistry:
    """Identifiers for one compile.

    Node-bound names are resolved up front from the whole graph;
    call-site names are handed out in emission order by
    :meth:`next_index`.
    """

    def __init__(self, graph: WorkflowGraph) -> None:
        nodes = list(graph.iter_nodes())
        agents = [n for n in nodes if isinstance(n, AgentNode)]
        # One namespace for every module-level binding. Fixed names
        # (tool stubs, approvals, web search) claim first; label-derived
        # families yield to them and to each other in allocation order.
        self._taken: Set[str] = set()

        self._web_search: Dict[Tuple[str, int], str] = {}
        for n in agents:
            for i, tool in enumerate(n.config.tools):
                if tool.type == "function":
                    self._taken.add(tool_identifier(tool.name))
                elif tool.type == "web_search":
                    self._web_search[(n.id, i)] = numbered(
                        "web_search_preview", len(self._web_search)
                    )
        self._taken.update(self._web_search.values())

        approvals = [n for n in nodes if isinstance(n, BinaryApprovalNode)]
        self._approvals: Dict[str, int] = {n.id: i for i, n in enumerate(approvals)}
        for i in range(len(approvals)):
            self._taken.update(
                (numbered("approval_request", i), numbered("approval_message", i))
            )

        agent_names = allocate_family(
            [n.label or "Agent" for n in agents], "agent", self._taken,
            binds=lambda name: [name, f"{name}_result", f"{name}_result_temp"],
        )
        self._agents: Dict[str, str] = {n.id: name for n, name in zip(agents, agent_names)}
        self._agent_order: Dict[str, int] = {n.id: i for i, n in enumerate(agents)}
        self._default_agents: Set[str] = {
            n.id for n in agents if is_default_label(n.label or "Agent", "agent")
        }

        structured = [n for n in agents if n.config.output_schema]
        schema_names = allocate_classes(
            [n.label or "Agent" for n in structured], "Schema", self._taken
        )
        self._schemas: Dict[str, str] = {
            n.id: name for n, name in zip(structured, schema_names)
        }

        guards = [n for n in nodes if isinstance(n, GuardrailsNode)]
        guard_names = allocate_family(
            [n.label or "Guardrails" for n in guards], "guardrails", self._taken,
            binds=lambda name: [f"{name}_config"],
        )
        self._guardrails: Dict[str, str] = {
            n.id: f"{name}_config" for n, name in zip(guards, guard_names)
        }
        self._guard_order: Dict[str, int] = {n.id: i for i, n in enumerate(guards)}

        self._counters: Dict[str, int] = {}
        logger.debug(
            f"Naming: {len(agents)} agents, {len(guards)} guardrails, "
            f"{len(approvals)} approvals"
        )

    # ── Agents ──

    def agent_name(self, node_id: str) -> str:
        return self._agents[node_id]

    def agent_order(self, node_id: str) -> int:
        return self._agent_order[node_id]

    def agent_result_names(self, node_id: str) -> Tuple[str, str]:
        """``(result, temp)`` variable names for an agent's call."""
        name = self._agents[node_id]
        if node_id in self._default_agents:
            suffix = name[len("agent"):]
            return f"agent_result{suffix}", f"agent_result_temp{suffix}"
        return f"{name}_result", f"{name}_result_temp"

    def web_search_name(self, node_id: str, tool_index: int) -> str:
        return self._web_search[(node_id, tool_index)]

    def schema_name(self, node_id: str) -> Optional[str]:
        return self._schemas.get(node_id)

    # ── Guardrails / approvals ──

    def guardrails_config_name(self, node_id: str) -> str:
        return self._guardrails[node_id]

    def guardrails_order(self, node_id: str) -> int:
        return self._guard_order[node_id]

    def approval_index(self, node_id: str) -> int:
        return self._approvals[node_id]

    def approval_names(self, node_id: str) -> Tuple[str, str]:
        """``(stub function, message variable)`` for an approval node."""
        index = self._approvals[node_id]
        return numbered("approval_request", index), numbered("approval_message", index)

    # ── Call sites ──

    def next_index(self, family: str) -> int:
        """Occurrence index for a call-site family (0, 1, 2, ...)."""
        index = self._counters.get(family, 0)
        self._counters[family] = index + 1
        return index

    def next_name(self, base: str) -> str:
        return numbered(base, self.next_index(base))


def tool_identifier(name: str) -> str:
    """A valid function name for a tool stub."""
    ident = re.sub(r"[^A-Za-z0-9_]", "_", name or "").strip("_") or "tool"
    if ident[0].isdigit():
        ident = f"tool_{ident}"
    if keyword.iskeyword(ident) or ident in RESERVED_NAMES or _GENERATED_FAMILY.match(ident):
        ident = f"{ident}_tool"
    return ident
