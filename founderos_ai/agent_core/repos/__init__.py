"""Persistence layer for the agent core.

- ``interfaces``: Protocols the engine, agents and proactive pipeline depend on.
- ``models``: SQLAlchemy ORM schema.
- ``sql``: async SQLAlchemy implementations plus engine/session helpers.
"""

from .interfaces import (
    ExecutionLogRepository,
    ProactiveMessageRepository,
    UserDataStore,
    UserDirectory,
)
from .sql import (
    SqlExecutionLog,
    SqlProactiveMessageRepository,
    SqlRepoBundle,
    SqlUserDataStore,
    SqlUserDirectory,
    build_sql_repos,
    create_all,
    create_engine,
    create_sessionmaker,
)

__all__ = [
    "ExecutionLogRepository",
    "ProactiveMessageRepository",
    "UserDataStore",
    "UserDirectory",
    "SqlExecutionLog",
    "SqlProactiveMessageRepository",
    "SqlRepoBundle",
    "SqlUserDataStore",
    "SqlUserDirectory",
    "build_sql_repos",
    "create_all",
    "create_engine",
    "create_sessionmaker",
]
