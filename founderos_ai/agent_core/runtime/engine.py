from __future__ import annotations

"""Execution engine.

``ExecutionEngine.execute`` is the single entry point for running an agent on
behalf of a user. Per invocation it:

1. resolves the agent in the injected registry,
2. validates the input against the agent's required keys and input model,
3. builds a fresh ``ExecutionContext`` scoped to the caller,
4. appends a ``running`` record to the execution log,
5. awaits the agent (optionally under a timeout),
6. finishes the record as ``completed`` or ``failed``.

Agent failures never escape: they come back as ``AgentResult`` values. The
only exception that propagates is ``asyncio.CancelledError``, after the
terminal record has been written.

Execution-log writes are best effort. A failed write is logged and does not
change the result returned to the caller.
"""

import asyncio
import logging
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from ...core.monitoring import log_agent_completion, log_agent_run
from ..agents.base import AgentDefinition
from ..schemas.domain import AgentResult, ExecutionRecord, ExecutionStatus
from .models import EngineDeps, ExecutionContext

logger = logging.getLogger(__name__)


def _validation_message(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "input"
        parts.append(f"{loc}: {err.get('msg')}")
    return "; ".join(parts)


class ExecutionEngine:
    """Runs agents and records every invocation in the execution log."""

    def __init__(self, deps: EngineDeps) -> None:
        self._deps = deps

    @property
    def deps(self) -> EngineDeps:
        return self._deps

    def _validate_input(self, definition: AgentDefinition, input: Mapping[str, Any]) -> Optional[str]:
        missing = [key for key in definition.required_inputs if input.get(key) in (None, "", [], {})]
        if missing:
            return f"missing required input: {', '.join(missing)}"
        if definition.input_model is not None:
            try:
                definition.input_model.model_validate(dict(input))
            except ValidationError as e:
                return _validation_message(e)
        return None

    def _build_context(self, user_id: str) -> ExecutionContext:
        return ExecutionContext(
            user_id=user_id,
            data_store=self._deps.data_store_factory(user_id),
            completion=self._deps.completion,
            settings=self._deps.completion_defaults,
            execution_log=self._deps.execution_log,
        )

    async def _append(self, record: ExecutionRecord) -> None:
        try:
            await self._deps.execution_log.append(record)
        except Exception as e:
            logger.warning(f"Could not append execution record {record.id}: {e}")

    async def _finish(self, record: ExecutionRecord) -> None:
        try:
            await self._deps.execution_log.finish(record)
        except Exception as e:
            logger.error(f"Could not finish execution record {record.id}: {e}")
        log_agent_completion(record.id, record.status.value, record.duration_ms)

    async def execute(
        self,
        agent_id: str,
        input: Optional[Mapping[str, Any]],
        user_id: str,
        *,
        timeout: Optional[float] = None,
    ) -> AgentResult:
        """
        Run one agent invocation for ``user_id``.

        Args:
            agent_id: Registry id of the agent.
            input: Agent input; ``None`` is treated as an empty mapping.
            user_id: Authenticated caller. Every data access is scoped to it.
            timeout: Seconds before the invocation is abandoned. Falls back to
                the engine default when omitted.

        Returns:
            The agent's result envelope. Never raises for agent failures.
        """
        definition = self._deps.registry.get(agent_id)
        if definition is None:
            logger.warning(f"Execution requested for unknown agent {agent_id!r} by user {user_id}")
            return AgentResult.failure(f"unknown agent: {agent_id}")

        payload = dict(input or {})
        problem = self._validate_input(definition, payload)
        if problem is not None:
            logger.info(f"Rejected input for agent {agent_id}: {problem}")
            return AgentResult.failure(f"invalid input: {problem}")

        context = self._build_context(user_id)
        record = ExecutionRecord(
            agent_id=definition.id,
            agent_name=definition.name,
            user_id=user_id,
            status=ExecutionStatus.running,
            input=payload,
            started_at=context.now,
        )
        await self._append(record)
        log_agent_run(record.id, user_id, definition.id)

        limit = timeout if timeout is not None else self._deps.default_timeout
        try:
            if limit is not None:
                outcome = await asyncio.wait_for(definition.execute(payload, context), timeout=limit)
            else:
                outcome = await definition.execute(payload, context)
        except asyncio.TimeoutError:
            logger.warning(f"Agent {agent_id} timed out after {limit}s (execution {record.id})")
            result = AgentResult.failure("timeout")
        except asyncio.CancelledError:
            record.mark_failed("cancelled")
            await asyncio.shield(self._finish(record))
            raise
        except Exception as e:
            logger.exception(f"Agent {agent_id} raised during execution {record.id}")
            result = AgentResult.failure(str(e) or type(e).__name__)
        else:
            if isinstance(outcome, AgentResult):
                result = outcome
            else:
                logger.error(f"Agent {agent_id} returned {type(outcome).__name__} instead of AgentResult")
                result = AgentResult.failure(f"agent returned an invalid result of type {type(outcome).__name__}")

        if result.success:
            record.mark_completed(result.data, result.tokens_used)
        else:
            record.mark_failed(result.error or "agent failed", result.tokens_used)
        await self._finish(record)

        logger.info(f"Agent {agent_id} {record.status.value} in {record.duration_ms}ms (execution {record.id})")
        return result
