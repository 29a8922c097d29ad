from __future__ import annotations

"""SQLAlchemy async repository implementations.

This module provides the SQL persistence implementation for the repository
interfaces defined in ``founderos_ai.agent_core.repos.interfaces``.

Usage
-----

Typical wiring (tests or application setup):

- Create an async engine with ``create_engine``.
- Create tables with ``create_all`` (for tests/dev; production uses the
  Alembic migrations).
- Create a session factory with ``create_sessionmaker``.
- Build repository instances with ``build_sql_repos``.

Transaction model
-----------------

Each repository method opens an ``AsyncSession``, performs its operation, and
commits. Concurrent engine invocations therefore never share a session, and
every persisted record is durable when the method returns.

Timestamps
----------

All timestamps are written in UTC. SQLite drops timezone information, so
values read back are normalized to timezone-aware UTC datetimes.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Type

from sqlalchemy import delete as sa_delete
from sqlalchemy import select
from sqlalchemy import update as sa_update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.sql.sqltypes import DateTime

from ..errors import AuditWriteError, DataStoreError, QueryError
from ..schemas.domain import (
    ExecutionRecord,
    ExecutionStatus,
    ProactiveEventType,
    ProactiveMessage,
    ProactiveMessageStatus,
    Severity,
)
from .interfaces import (
    ExecutionLogRepository,
    ProactiveMessageRepository,
    UserDataStore,
    UserDirectory,
)
from .models import (
    AgentExecutionRow,
    Base,
    ContactRow,
    DocumentRow,
    FundingRoundRow,
    InvestorRow,
    MarketingPlatformRow,
    ProactiveMessageRow,
    RoadmapItemRow,
    SkillRow,
    TeamMemberRow,
    UserRow,
)

MAX_QUERY_LIMIT = 200


def create_engine(db_url: str) -> AsyncEngine:
    """Create an async SQLAlchemy engine.

    The helper normalizes Postgres URLs to ensure the async driver is used.
    For example, it rewrites ``postgresql://`` and other variants to
    ``postgresql+asyncpg://``.
    """
    url = re.sub(r"^postgres(?:ql)?(?:\+[a-z0-9_]+)?://", "postgresql+asyncpg://", db_url, count=1)
    if url.startswith("sqlite"):
        return create_async_engine(url)
    return create_async_engine(url, pool_pre_ping=True)


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create an ``async_sessionmaker`` with safe defaults for this project."""
    return async_sessionmaker(engine, expire_on_commit=False)


async def create_all(engine: AsyncEngine) -> None:
    """Create all tables for the current ORM metadata.

    This is mainly intended for tests and local development.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _to_utc(value: datetime) -> datetime:
    return value.astimezone(timezone.utc) if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _record_from_row(r: AgentExecutionRow) -> ExecutionRecord:
    return ExecutionRecord(
        id=r.id,
        agent_id=r.agent_id,
        agent_name=r.agent_name,
        user_id=r.user_id,
        status=ExecutionStatus(r.status),
        input=dict(r.input or {}),
        output=r.output,
        error=r.error_message,
        tokens_used=r.tokens_used,
        started_at=_aware(r.started_at),
        completed_at=_aware(r.completed_at),
        duration_ms=r.duration_ms,
    )


def _apply_record(row: AgentExecutionRow, record: ExecutionRecord) -> None:
    row.agent_name = record.agent_name
    row.status = record.status.value
    row.input = dict(record.input)
    row.output = record.output
    row.error_message = record.error
    row.tokens_used = record.tokens_used
    row.completed_at = _to_utc(record.completed_at) if record.completed_at else None
    row.duration_ms = record.duration_ms


def _new_execution_row(record: ExecutionRecord) -> AgentExecutionRow:
    row = AgentExecutionRow(
        id=record.id,
        user_id=record.user_id,
        agent_id=record.agent_id,
        started_at=_to_utc(record.started_at),
    )
    _apply_record(row, record)
    return row


@dataclass(frozen=True)
class SqlExecutionLog(ExecutionLogRepository):
    """SQL implementation of ``ExecutionLogRepository``."""

    session_factory: async_sessionmaker[AsyncSession]

    async def append(self, record: ExecutionRecord) -> None:
        """
        Persist a newly started execution.

        Raises:
            AuditWriteError: If the insert fails.
        """
        try:
            async with self.session_factory() as s:
                s.add(_new_execution_row(record))
                await s.commit()
        except SQLAlchemyError as e:
            raise AuditWriteError(f"failed to append execution {record.id}: {e}") from e

    async def finish(self, record: ExecutionRecord) -> None:
        """
        Persist the terminal state of an execution, inserting it if missing.

        Raises:
            AuditWriteError: If the write fails.
        """
        try:
            async with self.session_factory() as s:
                row = await s.get(AgentExecutionRow, record.id)
                if row is None:
                    s.add(_new_execution_row(record))
                else:
                    _apply_record(row, record)
                await s.commit()
        except SQLAlchemyError as e:
            raise AuditWriteError(f"failed to finish execution {record.id}: {e}") from e

    async def get(self, user_id: str, record_id: str) -> Optional[ExecutionRecord]:
        try:
            async with self.session_factory() as s:
                row = await s.get(AgentExecutionRow, record_id)
        except SQLAlchemyError as e:
            raise QueryError(f"failed to load execution {record_id}: {e}") from e
        if row is None or row.user_id != user_id:
            return None
        return _record_from_row(row)

    async def query(self, user_id: str, *, agent_id: Optional[str] = None, limit: int = 50) -> List[ExecutionRecord]:
        """
        List a user's executions, newest first.

        Args:
            user_id: Mandatory owner filter.
            agent_id: Optional agent filter.
            limit: Max number of records, clamped to ``1..200``.

        Raises:
            ValueError: If ``user_id`` is empty.
            QueryError: If the store cannot be read.
        """
        if not user_id:
            raise ValueError("user_id is required")
        limit = max(1, min(int(limit), MAX_QUERY_LIMIT))
        stmt = select(AgentExecutionRow).where(AgentExecutionRow.user_id == user_id)
        if agent_id:
            stmt = stmt.where(AgentExecutionRow.agent_id == agent_id)
        stmt = stmt.order_by(AgentExecutionRow.started_at.desc(), AgentExecutionRow.id.desc()).limit(limit)
        try:
            async with self.session_factory() as s:
                rows = (await s.execute(stmt)).scalars().all()
        except SQLAlchemyError as e:
            raise QueryError(f"failed to query executions: {e}") from e
        return [_record_from_row(r) for r in rows]

    async def recent_completed(self, user_id: str, since: datetime) -> List[ExecutionRecord]:
        stmt = (
            select(AgentExecutionRow)
            .where(AgentExecutionRow.user_id == user_id)
            .where(AgentExecutionRow.status == ExecutionStatus.completed.value)
            .where(AgentExecutionRow.completed_at >= _to_utc(since))
            .order_by(AgentExecutionRow.completed_at.desc())
        )
        try:
            async with self.session_factory() as s:
                rows = (await s.execute(stmt)).scalars().all()
        except SQLAlchemyError as e:
            raise QueryError(f"failed to query completed executions: {e}") from e
        return [_record_from_row(r) for r in rows]


def _message_from_row(r: ProactiveMessageRow) -> ProactiveMessage:
    return ProactiveMessage(
        id=r.id,
        user_id=r.user_id,
        fingerprint=r.fingerprint,
        event_type=ProactiveEventType(r.event_type),
        priority=Severity(r.priority),
        message=r.message,
        suggested_agent_id=r.suggested_agent_id,
        suggested_input=dict(r.suggested_input or {}),
        payload=dict(r.payload or {}),
        status=ProactiveMessageStatus(r.status),
        created_at=_aware(r.created_at),
        read_at=_aware(r.read_at),
    )


@dataclass(frozen=True)
class SqlProactiveMessageRepository(ProactiveMessageRepository):
    """SQL implementation of ``ProactiveMessageRepository``."""

    session_factory: async_sessionmaker[AsyncSession]

    async def add(self, message: ProactiveMessage) -> None:
        async with self.session_factory() as s:
            s.add(
                ProactiveMessageRow(
                    id=message.id,
                    user_id=message.user_id,
                    fingerprint=message.fingerprint,
                    event_type=message.event_type.value,
                    priority=message.priority.value,
                    message=message.message,
                    suggested_agent_id=message.suggested_agent_id,
                    suggested_input=dict(message.suggested_input),
                    payload=dict(message.payload),
                    status=message.status.value,
                    created_at=_to_utc(message.created_at),
                    read_at=_to_utc(message.read_at) if message.read_at else None,
                )
            )
            await s.commit()

    async def seen_fingerprints(self, user_id: str, fingerprints: List[str], since: datetime) -> set[str]:
        if not fingerprints:
            return set()
        stmt = (
            select(ProactiveMessageRow.fingerprint)
            .where(ProactiveMessageRow.user_id == user_id)
            .where(ProactiveMessageRow.fingerprint.in_(list(fingerprints)))
            .where(ProactiveMessageRow.created_at >= _to_utc(since))
        )
        try:
            async with self.session_factory() as s:
                return set((await s.execute(stmt)).scalars().all())
        except SQLAlchemyError as e:
            raise QueryError(f"failed to read proactive seen-set: {e}") from e

    async def list(
        self, user_id: str, *, status: Optional[ProactiveMessageStatus] = None, limit: int = 10
    ) -> List[ProactiveMessage]:
        limit = max(1, min(int(limit), MAX_QUERY_LIMIT))
        stmt = select(ProactiveMessageRow).where(ProactiveMessageRow.user_id == user_id)
        if status is not None:
            stmt = stmt.where(ProactiveMessageRow.status == ProactiveMessageStatus(status).value)
        stmt = stmt.order_by(ProactiveMessageRow.created_at.desc()).limit(limit)
        try:
            async with self.session_factory() as s:
                rows = (await s.execute(stmt)).scalars().all()
        except SQLAlchemyError as e:
            raise QueryError(f"failed to list proactive messages: {e}") from e
        return [_message_from_row(r) for r in rows]

    async def set_status(
        self, user_id: str, message_id: str, status: ProactiveMessageStatus
    ) -> Optional[ProactiveMessage]:
        async with self.session_factory() as s:
            row = await s.get(ProactiveMessageRow, message_id)
            if row is None or row.user_id != user_id:
                return None
            row.status = ProactiveMessageStatus(status).value
            if status == ProactiveMessageStatus.read and row.read_at is None:
                row.read_at = datetime.now(timezone.utc)
            await s.commit()
            return _message_from_row(row)


@dataclass(frozen=True)
class SqlUserDirectory(UserDirectory):
    """Lists onboarded users for scheduled proactive sweeps."""

    session_factory: async_sessionmaker[AsyncSession]

    async def list_active_user_ids(self, limit: int = 100) -> List[str]:
        stmt = select(UserRow.id).where(UserRow.onboarding_complete.is_(True)).order_by(UserRow.id).limit(limit)
        try:
            async with self.session_factory() as s:
                return list((await s.execute(stmt)).scalars().all())
        except SQLAlchemyError as e:
            raise QueryError(f"failed to list users: {e}") from e


WORKSPACE_TABLES: Dict[str, Tuple[Type[Base], str]] = {
    "users": (UserRow, "id"),
    "roadmap_items": (RoadmapItemRow, "user_id"),
    "contacts": (ContactRow, "user_id"),
    "documents": (DocumentRow, "user_id"),
    "skills": (SkillRow, "user_id"),
    "team_members": (TeamMemberRow, "user_id"),
    "funding_rounds": (FundingRoundRow, "user_id"),
    "investors": (InvestorRow, "user_id"),
    "marketing_platforms": (MarketingPlatformRow, "user_id"),
}
"""Tables reachable through ``SqlUserDataStore`` and their owner column."""


def _row_to_dict(obj: Base) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for col in obj.__table__.columns:
        value = getattr(obj, col.key)
        out[col.key] = _aware(value) if isinstance(value, datetime) else value
    return out


def _parse_datetime(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return _to_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
        except ValueError as e:
            raise DataStoreError(f"invalid datetime value: {value!r}") from e
    if isinstance(value, datetime):
        return _to_utc(value)
    return value


@dataclass(frozen=True)
class SqlUserDataStore(UserDataStore):
    """
    SQL implementation of ``UserDataStore``.

    Every statement is filtered by the table's owner column and every written
    row carries the owner id, so one user's agents can never reach another
    user's rows.
    """

    session_factory: async_sessionmaker[AsyncSession]
    user_id: str

    def _table(self, table: str) -> Tuple[Type[Base], str]:
        try:
            return WORKSPACE_TABLES[table]
        except KeyError as e:
            raise DataStoreError(f"unknown table: {table}") from e

    @staticmethod
    def _column(model: Type[Base], name: str) -> Any:
        col = model.__table__.columns.get(name)
        if col is None:
            raise DataStoreError(f"unknown column {name!r} on {model.__tablename__}")
        return col

    def _values(self, model: Type[Base], owner: str, values: Mapping[str, Any]) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for key, value in values.items():
            col = self._column(model, key)
            if key == owner and value != self.user_id:
                raise DataStoreError(f"cannot write {model.__tablename__} rows owned by another user")
            out[key] = _parse_datetime(value) if isinstance(col.type, DateTime) else value
        return out

    def _where(self, model: Type[Base], owner: str, filters: Optional[Mapping[str, Any]]) -> List[Any]:
        clauses = [self._column(model, owner) == self.user_id]
        for key, value in (filters or {}).items():
            col = self._column(model, key)
            if isinstance(col.type, DateTime):
                value = _parse_datetime(value)
            clauses.append(col.is_(None) if value is None else col == value)
        return clauses

    async def get_user(self) -> Optional[Dict[str, Any]]:
        rows = await self.select("users", limit=1)
        return rows[0] if rows else None

    async def select(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        *,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        model, owner = self._table(table)
        stmt = select(model).where(*self._where(model, owner, filters))
        if order_by:
            col = self._column(model, order_by)
            stmt = stmt.order_by(col.desc() if descending else col.asc())
        if limit is not None:
            stmt = stmt.limit(max(0, int(limit)))
        try:
            async with self.session_factory() as s:
                rows = (await s.execute(stmt)).scalars().all()
        except SQLAlchemyError as e:
            raise QueryError(f"failed to read {table}: {e}") from e
        return [_row_to_dict(r) for r in rows]

    async def insert(self, table: str, row: Mapping[str, Any]) -> Dict[str, Any]:
        model, owner = self._table(table)
        values = self._values(model, owner, row)
        values[owner] = self.user_id
        obj = model(**values)
        async with self.session_factory() as s:
            s.add(obj)
            await s.flush()
            await s.refresh(obj)
            out = _row_to_dict(obj)
            await s.commit()
        return out

    async def update(self, table: str, filters: Mapping[str, Any], values: Mapping[str, Any]) -> int:
        model, owner = self._table(table)
        changes = self._values(model, owner, values)
        changes.pop(owner, None)
        if not changes:
            return 0
        stmt = sa_update(model).where(*self._where(model, owner, filters)).values(**changes)
        async with self.session_factory() as s:
            result = await s.execute(stmt)
            await s.commit()
        return int(result.rowcount or 0)

    async def upsert(self, table: str, row: Mapping[str, Any]) -> Dict[str, Any]:
        model, owner = self._table(table)
        values = self._values(model, owner, row)
        values[owner] = self.user_id
        pk = values.get("id")
        if pk is None:
            return await self.insert(table, values)
        async with self.session_factory() as s:
            obj = await s.get(model, pk)
            if obj is None:
                obj = model(**values)
                s.add(obj)
            elif getattr(obj, owner) != self.user_id:
                raise DataStoreError(f"{table} row {pk!r} belongs to another user")
            else:
                for key, value in values.items():
                    setattr(obj, key, value)
            await s.flush()
            await s.refresh(obj)
            out = _row_to_dict(obj)
            await s.commit()
        return out

    async def delete(self, table: str, filters: Mapping[str, Any]) -> int:
        model, owner = self._table(table)
        stmt = sa_delete(model).where(*self._where(model, owner, filters))
        async with self.session_factory() as s:
            result = await s.execute(stmt)
            await s.commit()
        return int(result.rowcount or 0)


class SqlRepoBundle:
    """Convenience container for SQL repositories."""

    def __init__(
        self,
        *,
        executions: SqlExecutionLog,
        messages: SqlProactiveMessageRepository,
        users: SqlUserDirectory,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        self.executions = executions
        self.messages = messages
        self.users = users
        self._session_factory = session_factory

    def data_store(self, user_id: str) -> SqlUserDataStore:
        """Build a data store scoped to ``user_id``."""
        return SqlUserDataStore(session_factory=self._session_factory, user_id=user_id)

    @property
    def data_store_factory(self) -> Callable[[str], SqlUserDataStore]:
        return self.data_store


def build_sql_repos(*, session_factory: async_sessionmaker[AsyncSession]) -> SqlRepoBundle:
    """Build the SQL repositories sharing a single session factory."""
    return SqlRepoBundle(
        executions=SqlExecutionLog(session_factory),
        messages=SqlProactiveMessageRepository(session_factory),
        users=SqlUserDirectory(session_factory),
        session_factory=session_factory,
    )
