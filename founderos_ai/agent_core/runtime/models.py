from __future__ import annotations

"""Per-invocation context and the engine dependency bundle.

- ``ExecutionContext`` is what an agent sees: the caller identity, a data
  store already scoped to that caller, the completion service and a clock
  reading. The engine builds a fresh one for every invocation.
- ``EngineDeps`` collects what the engine needs to build contexts and record
  executions.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from ..completion import CompletionDefaults, TextCompletionService
from ..repos.interfaces import ExecutionLogRepository, UserDataStore
from ..schemas.domain import ExecutionRecord

if TYPE_CHECKING:
    from ..agent_registry import AgentRegistry

DataStoreFactory = Callable[[str], UserDataStore]
"""
DataStoreFactory:
    Builds a ``UserDataStore`` scoped to the given user id.
"""


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ExecutionContext:
    """Caller-scoped environment handed to an agent's ``execute``."""

    user_id: str
    data_store: UserDataStore
    completion: TextCompletionService
    now: datetime = field(default_factory=_utc_now)
    settings: CompletionDefaults = field(default_factory=CompletionDefaults)
    execution_log: Optional[ExecutionLogRepository] = None

    async def profile(self) -> Dict[str, Any]:
        """Return the caller's profile row, or an empty dict when none exists."""
        return await self.data_store.get_user() or {}

    async def recent_executions(self, limit: int = 50) -> List[ExecutionRecord]:
        """The caller's own execution history, newest first."""
        if self.execution_log is None:
            return []
        return await self.execution_log.query(self.user_id, limit=limit)


@dataclass(frozen=True)
class EngineDeps:
    """Dependency bundle for ``ExecutionEngine``.

    Typically constructed by application wiring code (see
    ``founderos_ai.server.services.agent_service``) or directly by tests.
    """

    registry: "AgentRegistry"
    execution_log: ExecutionLogRepository
    data_store_factory: DataStoreFactory
    completion: TextCompletionService
    completion_defaults: CompletionDefaults = field(default_factory=CompletionDefaults)
    default_timeout: Optional[float] = None
