"""Agent core: registry, execution engine, built-in agents, persistence and
the proactive pipeline.

Typical wiring::

    registry = build_default_registry()
    repos = build_sql_repos(session_factory=create_sessionmaker(engine))
    engine = ExecutionEngine(
        EngineDeps(
            registry=registry,
            execution_log=repos.executions,
            data_store_factory=repos.data_store,
            completion=PydanticAICompletionService(),
        )
    )
    result = await engine.execute("strategic-planner", {"timeframe": 8}, user_id)
"""

from .agent_registry import AgentRegistry
from .completion import Completion, CompletionDefaults, PydanticAICompletionService, TextCompletionService
from .factory import build_default_registry, build_engine
from .runtime import EngineDeps, ExecutionContext, ExecutionEngine
from .schemas import AgentResult, ExecutionRecord, ExecutionStatus

__all__ = [
    "AgentRegistry",
    "AgentResult",
    "Completion",
    "CompletionDefaults",
    "EngineDeps",
    "ExecutionContext",
    "ExecutionEngine",
    "ExecutionRecord",
    "ExecutionStatus",
    "PydanticAICompletionService",
    "TextCompletionService",
    "build_default_registry",
    "build_engine",
]
