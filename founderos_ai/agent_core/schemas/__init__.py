"""Schemas and DTOs for the agent core."""

from .domain import (
    AgentResult,
    ExecutionRecord,
    ExecutionStatus,
    ProactiveEvent,
    ProactiveEventType,
    ProactiveMessage,
    ProactiveMessageStatus,
    Severity,
)

__all__ = [
    "AgentResult",
    "ExecutionRecord",
    "ExecutionStatus",
    "ProactiveEvent",
    "ProactiveEventType",
    "ProactiveMessage",
    "ProactiveMessageStatus",
    "Severity",
]
