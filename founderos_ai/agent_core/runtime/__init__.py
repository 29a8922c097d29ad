"""Runtime package for executing agents.

- ``ExecutionEngine``: validates input, runs one agent invocation and records
  it in the execution log.
- ``ExecutionContext``: caller-scoped environment handed to an agent.
- ``EngineDeps``: the engine's injected dependencies.
"""

from .engine import ExecutionEngine
from .models import DataStoreFactory, EngineDeps, ExecutionContext

__all__ = ["DataStoreFactory", "EngineDeps", "ExecutionContext", "ExecutionEngine"]
