"""
Workflow Emitters Package.

Auto-registers one emitter per node kind into the global
EmitterRegistry. Import this package to make every kind compilable.
"""

from logging import getLogger

from flowgen.workflow.emitters.base import get_emitter_registry

# Import all emitter modules to trigger registration
from flowgen.workflow.emitters import agent_emitters     # noqa: F401
from flowgen.workflow.emitters import logic_emitters     # noqa: F401
from flowgen.workflow.emitters import guard_emitters     # noqa: F401
from flowgen.workflow.emitters import data_emitters      # noqa: F401
from flowgen.workflow.emitters import tool_emitters      # noqa: F401
from flowgen.workflow.emitters import terminal_emitters  # noqa: F401

logger = getLogger(__name__)


def register_all_emitters() -> None:
    """Ensure every node kind has an emitter.

    The module-level imports above trigger the ``@register_emitter``
    decorators; this function checks the registry is complete.
    """
    registry = get_emitter_registry()
    missing = registry.missing_kinds()
    if missing:
        raise RuntimeError(
            f"No emitter for node kinds: {[k.value for k in missing]}"
        )
    logger.debug(f"Workflow emitters registered: {len(registry.list_all())} node kinds")


__all__ = ["register_all_emitters"]
