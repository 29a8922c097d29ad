from __future__ import annotations

"""Repository interface contracts.

The engine and the proactive pipeline depend on these Protocols instead of
concrete persistence implementations.

Contract guidelines
-------------------

- All methods are async.
- Implementations must not leak SQLAlchemy sessions/transactions to callers.
- Every read that returns user data takes the user id as a mandatory argument;
  there is no "all users" variant of a user-facing query.
- The execution log is append-only from the caller's point of view: a record
  is appended once and later finished once.

Failure semantics
-----------------

- Writes to the execution log raise ``AuditWriteError``.
- Reads raise ``QueryError`` when the store is unreachable.
"""

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Protocol

from ..schemas.domain import ExecutionRecord, ProactiveMessage, ProactiveMessageStatus


class UserDataStore(Protocol):
    """User-scoped persistence boundary handed to agents.

    Every operation is implicitly filtered to ``user_id``; callers cannot read
    or write rows owned by another user through this interface.
    """

    user_id: str

    async def get_user(self) -> Optional[Dict[str, Any]]:
        """Return the caller's profile row, or None if no profile exists."""
        ...

    async def select(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        *,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Return rows of ``table`` matching all equality ``filters``."""
        ...

    async def insert(self, table: str, row: Mapping[str, Any]) -> Dict[str, Any]:
        """Insert a row owned by the caller and return it."""
        ...

    async def update(self, table: str, filters: Mapping[str, Any], values: Mapping[str, Any]) -> int:
        """Update the caller's rows matching ``filters``; return the row count."""
        ...

    async def upsert(self, table: str, row: Mapping[str, Any]) -> Dict[str, Any]:
        """Insert or replace a row (by primary key) owned by the caller."""
        ...

    async def delete(self, table: str, filters: Mapping[str, Any]) -> int:
        """Delete the caller's rows matching ``filters``; return the row count."""
        ...


class ExecutionLogRepository(Protocol):
    """Durable record of agent invocations."""

    async def append(self, record: ExecutionRecord) -> None:
        """
        Persist a newly started execution.

        Args:
            record: The record in ``running`` (or ``pending``) state.
        """
        ...

    async def finish(self, record: ExecutionRecord) -> None:
        """
        Persist the terminal state of an execution.

        Implementations insert the record when the initial ``append`` was lost
        so that a terminal record always exists.
        """
        ...

    async def get(self, user_id: str, record_id: str) -> Optional[ExecutionRecord]:
        """Fetch a single record owned by ``user_id``."""
        ...

    async def query(self, user_id: str, *, agent_id: Optional[str] = None, limit: int = 50) -> List[ExecutionRecord]:
        """
        List a user's executions, newest first.

        Args:
            user_id: Mandatory owner filter.
            agent_id: Optional agent filter.
            limit: Max number of records to return.
        """
        ...

    async def recent_completed(self, user_id: str, since: datetime) -> List[ExecutionRecord]:
        """List a user's completed executions that finished at or after ``since``."""
        ...


class ProactiveMessageRepository(Protocol):
    """Persisted seen-set and inbox of proactive messages."""

    async def add(self, message: ProactiveMessage) -> None: ...

    async def seen_fingerprints(self, user_id: str, fingerprints: List[str], since: datetime) -> set[str]:
        """Return the subset of ``fingerprints`` surfaced for ``user_id`` at or after ``since``."""
        ...

    async def list(
        self, user_id: str, *, status: Optional[ProactiveMessageStatus] = None, limit: int = 10
    ) -> List[ProactiveMessage]: ...

    async def set_status(
        self, user_id: str, message_id: str, status: ProactiveMessageStatus
    ) -> Optional[ProactiveMessage]:
        """Update a message owned by ``user_id``; return None when it does not exist."""
        ...


class UserDirectory(Protocol):
    """Cross-user lookup used only by scheduled sweeps."""

    async def list_active_user_ids(self, limit: int = 100) -> List[str]: ...
