"""Shared configuration for the agent-core records (results, audit entries, proactive events)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """
    Base model for ``AgentResult``, ``ExecutionRecord`` and the proactive records.

    These records are persisted and returned over the API, so a misspelled key
    (``tokensUsed`` for ``tokens_used``, say) is a validation error instead of a
    silently dropped value. Agent input models do not derive from this class;
    they accept unknown keys.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="forbid",
    )
