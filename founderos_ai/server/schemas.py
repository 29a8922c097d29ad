"""
API Schemas.

This module contains Pydantic models used for API request bodies and response validation.
Every model serializes with camelCase field names.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from founderos_ai.agent_core.schemas.domain import (
    AgentResult,
    ExecutionRecord,
    ExecutionStatus,
    ProactiveEventType,
    ProactiveMessage,
    ProactiveMessageStatus,
    Severity,
)


class ApiModel(BaseModel):
    """Base for API payloads: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ExecuteAgentRequest(ApiModel):
    """
    Schema for executing an agent.

    ``agentId`` is optional at the schema level so that a missing id is
    reported as a 400 by the route rather than a validation error.
    """

    agent_id: Optional[str] = Field(
        default=None,
        description="Registry id of the agent to run.",
        examples=["strategic-planner"],
    )
    input: Dict[str, Any] = Field(
        default_factory=dict,
        description="Agent-specific input payload.",
        examples=[{"timeframe": 8, "focus": "product"}],
    )

    model_config = ConfigDict(
        json_schema_extra={"example": {"agentId": "draft-investor-email", "input": {"tone": "optimistic"}}}
    )


class AgentExecutionResponse(ApiModel):
    """Uniform result envelope of an agent execution."""

    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    tokens_used: Optional[int] = None

    @classmethod
    def from_result(cls, result: AgentResult) -> "AgentExecutionResponse":
        return cls(success=result.success, data=result.data, error=result.error, tokens_used=result.tokens_used)


class ExecutionRecordRead(ApiModel):
    """One entry of the execution history."""

    id: str
    agent_id: str
    agent_name: Optional[str] = None
    status: ExecutionStatus
    input: Dict[str, Any] = Field(default_factory=dict)
    output: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    tokens_used: Optional[int] = None
    started_at: datetime
    completed_at: Optional[datetime] = None
    duration_ms: Optional[int] = None

    @classmethod
    def from_record(cls, r: ExecutionRecord) -> "ExecutionRecordRead":
        return cls(
            id=r.id,
            agent_id=r.agent_id,
            agent_name=r.agent_name,
            status=r.status,
            input=r.input,
            output=r.output,
            error=r.error,
            tokens_used=r.tokens_used,
            started_at=r.started_at,
            completed_at=r.completed_at,
            duration_ms=r.duration_ms,
        )


class ExecutionHistoryResponse(ApiModel):
    tasks: List[ExecutionRecordRead]
    count: int


class AgentMetadata(ApiModel):
    """Display metadata of a registered agent."""

    id: str
    name: str
    description: str
    category: str
    icon: str = ""
    required_inputs: List[str] = Field(default_factory=list)


class AgentListResponse(ApiModel):
    agents: List[AgentMetadata]
    count: int
    categories: List[str] = Field(default_factory=list)


class ProactiveMessageRead(ApiModel):
    """A surfaced proactive message."""

    id: str
    message: str
    priority: Severity
    event_type: ProactiveEventType
    suggested_agent_id: Optional[str] = None
    suggested_input: Dict[str, Any] = Field(default_factory=dict)
    payload: Dict[str, Any] = Field(default_factory=dict)
    status: ProactiveMessageStatus
    created_at: datetime
    read_at: Optional[datetime] = None

    @classmethod
    def from_message(cls, m: ProactiveMessage) -> "ProactiveMessageRead":
        return cls(
            id=m.id,
            message=m.message,
            priority=m.priority,
            event_type=m.event_type,
            suggested_agent_id=m.suggested_agent_id,
            suggested_input=m.suggested_input,
            payload=m.payload,
            status=m.status,
            created_at=m.created_at,
            read_at=m.read_at,
        )


class ProactiveCheckResponse(ApiModel):
    success: bool = True
    events_detected: int
    messages_generated: int
    messages: List[ProactiveMessageRead]


class ProactiveMessagesResponse(ApiModel):
    messages: List[ProactiveMessageRead]


class ProactiveMessageUpdateResponse(ApiModel):
    success: bool = True
    message: ProactiveMessageRead


class CronSweepResponse(ApiModel):
    success: bool = True
    users_processed: int
    messages_created: int
    errors: List[Dict[str, str]] = Field(default_factory=list)
