from __future__ import annotations

from typing import Any, Dict, List, Optional

from founderos_ai.agent_core.agent_registry import AgentRegistry
from founderos_ai.agent_core.agents.base import AgentDefinition
from founderos_ai.agent_core.completion import PydanticAICompletionService, TextCompletionService
from founderos_ai.agent_core.factory import build_default_registry
from founderos_ai.agent_core.proactive import ProactiveCheckResult, ProactivePipeline, SweepReport
from founderos_ai.agent_core.repos.sql import SqlRepoBundle, build_sql_repos
from founderos_ai.agent_core.runtime import EngineDeps, ExecutionEngine
from founderos_ai.agent_core.schemas.domain import (
    AgentResult,
    ExecutionRecord,
    ProactiveMessage,
    ProactiveMessageStatus,
)
from founderos_ai.core.logging_config import get_logger
from founderos_ai.server.core.config import settings
from founderos_ai.server.core.database import async_session_maker

logger = get_logger(__name__)


class AgentService:
    """
    Service layer behind the agent and proactive endpoints.

    Wires the frozen registry, the execution engine, the SQL repositories and
    the proactive pipeline together. Every method takes the authenticated
    user id explicitly.
    """

    def __init__(
        self,
        *,
        repos: Optional[SqlRepoBundle] = None,
        registry: Optional[AgentRegistry] = None,
        completion: Optional[TextCompletionService] = None,
    ) -> None:
        self.repos: SqlRepoBundle = repos or build_sql_repos(session_factory=async_session_maker)
        self.registry = registry or build_default_registry()
        defaults = settings.completion.to_defaults()

        self.engine = ExecutionEngine(
            EngineDeps(
                registry=self.registry,
                execution_log=self.repos.executions,
                data_store_factory=self.repos.data_store,
                completion=completion or PydanticAICompletionService(defaults=defaults),
                completion_defaults=defaults,
                default_timeout=settings.agents.timeout_seconds,
            )
        )
        self.pipeline = ProactivePipeline(
            registry=self.registry,
            messages=self.repos.messages,
            execution_log=self.repos.executions,
            data_store_factory=self.repos.data_store,
            settings=settings.proactive.to_settings(),
        )

    # ------------------------------------------------------------------
    # Agents
    # ------------------------------------------------------------------

    async def execute(self, agent_id: str, input: Dict[str, Any], user_id: str) -> AgentResult:
        return await self.engine.execute(agent_id, input, user_id)

    async def history(self, user_id: str, *, agent_id: Optional[str] = None, limit: Optional[int] = None) -> List[ExecutionRecord]:
        size = limit if limit is not None else settings.agents.history_default_limit
        return await self.repos.executions.query(user_id, agent_id=agent_id, limit=size)

    def list_agents(self, category: Optional[str] = None) -> List[AgentDefinition]:
        if category:
            return self.registry.get_all_by_category(category)
        return self.registry.get_all()

    def get_agent(self, agent_id: str) -> AgentDefinition:
        return self.registry.require(agent_id)

    # ------------------------------------------------------------------
    # Proactive
    # ------------------------------------------------------------------

    async def proactive_check(self, user_id: str) -> ProactiveCheckResult:
        return await self.pipeline.check(user_id)

    async def list_messages(
        self, user_id: str, *, status: Optional[ProactiveMessageStatus], limit: int
    ) -> List[ProactiveMessage]:
        return await self.pipeline.list_messages(user_id, status=status, limit=limit)

    async def mark_read(self, user_id: str, message_id: str) -> Optional[ProactiveMessage]:
        return await self.pipeline.mark_read(user_id, message_id)

    async def dismiss(self, user_id: str, message_id: str) -> Optional[ProactiveMessage]:
        return await self.pipeline.dismiss(user_id, message_id)

    async def cron_sweep(self) -> SweepReport:
        user_ids = await self.repos.users.list_active_user_ids(limit=settings.proactive.cron_max_users)
        logger.info(f"Proactive cron sweep over {len(user_ids)} user(s)")
        return await self.pipeline.sweep(user_ids)


_agent_service: Optional[AgentService] = None


def get_agent_service() -> AgentService:
    global _agent_service
    if _agent_service is None:
        _agent_service = AgentService()
    return _agent_service
