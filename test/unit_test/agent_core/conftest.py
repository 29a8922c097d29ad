from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Union

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from founderos_ai.agent_core.completion import ChatMessage, Completion, CompletionDefaults
from founderos_ai.agent_core.repos.sql import build_sql_repos, create_all, create_sessionmaker
from founderos_ai.agent_core.runtime.models import ExecutionContext

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class ScriptedCompletion:
    """Completion service returning queued texts (or raising queued exceptions)."""

    def __init__(self, *responses: Union[str, Exception], tokens_used: int = 42) -> None:
        self.responses: List[Union[str, Exception]] = list(responses)
        self.tokens_used = tokens_used
        self.calls: List[Dict[str, Any]] = []

    async def complete(
        self,
        messages: Sequence[ChatMessage],
        *,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        json_output: bool = False,
    ) -> Completion:
        self.calls.append(
            {
                "messages": list(messages),
                "model": model,
                "max_tokens": max_tokens,
                "temperature": temperature,
                "json_output": json_output,
            }
        )
        if not self.responses:
            raise RuntimeError("no scripted completion left")
        nxt = self.responses.pop(0)
        if isinstance(nxt, Exception):
            raise nxt
        return Completion(text=nxt, tokens_used=self.tokens_used, model=model)


@pytest.fixture
def completion_cls():
    return ScriptedCompletion


@pytest_asyncio.fixture
async def sql_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_all(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(sql_engine):
    return create_sessionmaker(sql_engine)


@pytest.fixture
def repos(session_factory):
    return build_sql_repos(session_factory=session_factory)


@pytest.fixture
def now() -> datetime:
    return datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_context(repos, now):
    def _make(user_id: str, completion: Any, *, at: Optional[datetime] = None) -> ExecutionContext:
        return ExecutionContext(
            user_id=user_id,
            data_store=repos.data_store(user_id),
            completion=completion,
            now=at or now,
            settings=CompletionDefaults(model="test:model"),
            execution_log=repos.executions,
        )

    return _make
