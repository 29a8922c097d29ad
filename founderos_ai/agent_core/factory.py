from __future__ import annotations

"""Convenience factories for wiring the agent core.

These helpers keep application wiring and tests concise while still allowing
deployments to provide their own registry or dependency bundles.
"""

from typing import Iterable, Optional

from .agent_registry import AgentRegistry
from .agents import BUILTIN_AGENTS, AgentDefinition
from .runtime import EngineDeps, ExecutionEngine


def build_default_registry(extra: Optional[Iterable[AgentDefinition]] = None) -> AgentRegistry:
    """Build and freeze a registry holding the built-in agents.

    Args:
        extra: Additional definitions registered after the built-ins.
    """
    reg = AgentRegistry()
    for agent_cls in BUILTIN_AGENTS:
        reg.register(agent_cls().definition())
    for definition in extra or ():
        reg.register(definition)
    reg.freeze()
    return reg


def build_engine(*, deps: EngineDeps) -> ExecutionEngine:
    """Construct an ``ExecutionEngine`` from its dependency bundle."""
    return ExecutionEngine(deps)
