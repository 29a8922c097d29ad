from __future__ import annotations

"""Error taxonomy for the agent core.

Only infrastructure failures propagate out of the core as exceptions. Failures
that happen inside a single agent invocation are converted into an
``AgentResult`` by the engine and never escape it.

- ``UnauthorizedError``: no valid caller identity (HTTP boundary only).
- ``UnknownAgentError``: the requested agent id is not registered.
- ``DuplicateAgentError`` / ``RegistryFrozenError``: registry configuration
  errors surfaced at startup.
- ``AgentExecutionError``: the agent's own logic failed.
- ``AuditWriteError``: the execution log could not be written.
- ``QueryError``: a history or listing query could not be served.
- ``DataStoreError``: invalid use of the user-scoped data store.
"""


class FounderOSError(Exception):
    """Base class for all errors raised by the agent core."""


class UnauthorizedError(FounderOSError):
    """Raised when a request carries no valid caller identity."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class UnknownAgentError(FounderOSError, KeyError):
    """Raised when an agent id is not present in the registry."""

    def __init__(self, agent_id: str) -> None:
        super().__init__(f"unknown agent: {agent_id}")
        self.agent_id = agent_id

    def __str__(self) -> str:
        return f"unknown agent: {self.agent_id}"


class DuplicateAgentError(FounderOSError, ValueError):
    """Raised when registering an agent id that is already registered."""

    def __init__(self, agent_id: str) -> None:
        super().__init__(f"agent already registered: {agent_id}")
        self.agent_id = agent_id


class RegistryFrozenError(FounderOSError, RuntimeError):
    """Raised when registering into a registry that has been frozen."""


class AgentExecutionError(FounderOSError):
    """Raised by agent logic when it cannot produce a result."""


class AuditWriteError(FounderOSError):
    """Raised by the execution log when a record cannot be persisted."""


class QueryError(FounderOSError):
    """Raised when a read against persistence fails (distinct from no results)."""


class DataStoreError(FounderOSError, ValueError):
    """Raised for invalid data-store usage, e.g. an unknown table or column."""
