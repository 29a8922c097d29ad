from __future__ import annotations

from typing import Dict, List, Optional

from .agents.base import AgentDefinition
from .errors import DuplicateAgentError, RegistryFrozenError, UnknownAgentError


class AgentRegistry:
    """
    Registry of agent definitions keyed by agent id.

    The registry is populated once at startup and then frozen. After
    ``freeze()`` it is read-only, so concurrent requests can share a single
    instance without locking.

    Iteration order is registration order.
    """

    def __init__(self) -> None:
        """Initialize an empty agent registry."""
        self._agents: Dict[str, AgentDefinition] = {}
        self._frozen = False

    def register(self, definition: AgentDefinition) -> None:
        """
        Register an agent definition.

        Args:
            definition: The agent to register.

        Raises:
            DuplicateAgentError: If an agent with the same id is already registered.
            RegistryFrozenError: If the registry has been frozen.
        """
        if self._frozen:
            raise RegistryFrozenError(f"registry is frozen; cannot register {definition.id!r}")
        if definition.id in self._agents:
            raise DuplicateAgentError(definition.id)
        self._agents[definition.id] = definition

    def get(self, agent_id: str) -> Optional[AgentDefinition]:
        """Return the definition for ``agent_id``, or None when it is unknown."""
        return self._agents.get(str(agent_id))

    def require(self, agent_id: str) -> AgentDefinition:
        """
        Retrieve the definition for ``agent_id``.

        Raises:
            UnknownAgentError: If no agent is registered under that id.
        """
        try:
            return self._agents[str(agent_id)]
        except KeyError as e:
            raise UnknownAgentError(agent_id) from e

    def has(self, agent_id: str) -> bool:
        return str(agent_id) in self._agents

    def get_all(self) -> List[AgentDefinition]:
        return list(self._agents.values())

    def get_all_by_category(self, category: str) -> List[AgentDefinition]:
        """Return the agents in ``category``; an unknown category yields an empty list."""
        return [a for a in self._agents.values() if a.category == category]

    def categories(self) -> List[str]:
        seen: Dict[str, None] = {}
        for a in self._agents.values():
            seen.setdefault(a.category, None)
        return list(seen)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __len__(self) -> int:
        return len(self._agents)

    def __contains__(self, agent_id: object) -> bool:
        return isinstance(agent_id, str) and agent_id in self._agents
