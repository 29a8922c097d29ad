from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional
from uuid import uuid4

from pydantic import Field, model_validator

from .base import BaseSchema


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ExecutionStatus(str, Enum):
    pending = "pending"
    running = "running"
    completed = "completed"
    failed = "failed"


TERMINAL_STATUSES = frozenset({ExecutionStatus.completed, ExecutionStatus.failed})


class Severity(str, Enum):
    urgent = "urgent"
    important = "important"
    info = "info"
    low = "low"


class ProactiveEventType(str, Enum):
    budget_low_runway = "budget_low_runway"
    deadline_upcoming = "deadline_upcoming"
    task_overdue = "task_overdue"
    task_stale = "task_stale"
    task_completed = "task_completed"


class ProactiveMessageStatus(str, Enum):
    pending = "pending"
    delivered = "delivered"
    read = "read"
    dismissed = "dismissed"


class AgentResult(BaseSchema):
    """Uniform result envelope of one agent invocation.

    Exactly one of ``data`` / ``error`` is populated, gated by ``success``.
    ``tokens_used`` is present when the agent performed a billed model call.
    """

    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    tokens_used: Optional[int] = None

    @model_validator(mode="after")
    def _check_outcome(self) -> "AgentResult":
        if self.success:
            if self.error is not None:
                raise ValueError("a successful result cannot carry an error")
            if self.data is None:
                raise ValueError("a successful result must carry data")
        else:
            if not self.error:
                raise ValueError("a failed result must carry an error message")
            if self.data is not None:
                raise ValueError("a failed result cannot carry data")
        return self

    @classmethod
    def ok(cls, data: Any, tokens_used: Optional[int] = None) -> "AgentResult":
        return cls(success=True, data=data, tokens_used=tokens_used)

    @classmethod
    def failure(cls, error: str, tokens_used: Optional[int] = None) -> "AgentResult":
        return cls(success=False, error=error or "agent failed", tokens_used=tokens_used)


class ExecutionRecord(BaseSchema):
    """Durable audit entry for one agent invocation."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    agent_id: str
    agent_name: Optional[str] = None
    user_id: str

    status: ExecutionStatus = ExecutionStatus.pending
    input: Dict[str, Any] = Field(default_factory=dict)
    output: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    tokens_used: Optional[int] = None

    started_at: datetime = Field(default_factory=_utc_now)
    completed_at: Optional[datetime] = None
    duration_ms: Optional[int] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def _close(self, status: ExecutionStatus) -> None:
        self.status = status
        self.completed_at = _utc_now()
        started = self.started_at if self.started_at.tzinfo else self.started_at.replace(tzinfo=timezone.utc)
        self.duration_ms = max(0, int((self.completed_at - started).total_seconds() * 1000))

    def mark_completed(self, output: Any, tokens_used: Optional[int] = None) -> None:
        self.output = output if isinstance(output, dict) else {"result": output}
        self.tokens_used = tokens_used
        self.error = None
        self._close(ExecutionStatus.completed)

    def mark_failed(self, error: str, tokens_used: Optional[int] = None) -> None:
        self.output = None
        self.error = error
        self.tokens_used = tokens_used
        self._close(ExecutionStatus.failed)


class ProactiveEvent(BaseSchema):
    """A domain event detected for a user that may deserve attention."""

    type: ProactiveEventType
    entity_id: str
    dedup_key: str
    severity: Severity = Severity.info

    title: str
    description: str
    payload: Dict[str, Any] = Field(default_factory=dict)

    detected_at: datetime = Field(default_factory=_utc_now)

    @property
    def fingerprint(self) -> str:
        return f"{self.type.value}:{self.entity_id}:{self.dedup_key}"


class ProactiveMessage(BaseSchema):
    id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str

    fingerprint: str
    event_type: ProactiveEventType
    priority: Severity

    message: str
    suggested_agent_id: Optional[str] = None
    suggested_input: Dict[str, Any] = Field(default_factory=dict)
    payload: Dict[str, Any] = Field(default_factory=dict)

    status: ProactiveMessageStatus = ProactiveMessageStatus.pending
    created_at: datetime = Field(default_factory=_utc_now)
    read_at: Optional[datetime] = None
