"""FounderOS-AI.

This package contains the agent execution service used by FounderOS to run
AI-assisted work on behalf of a startup founder and keep an auditable trail of
every invocation.

High-level architecture
-----------------------

The codebase is organized around two flows:

- **Agent execution**: a caller names an agent and supplies input; the engine
  resolves the agent in a registry, runs it against a user-scoped context and
  records the outcome in the execution log.
- **Proactive events**: detectors scan a user's state (runway, deadlines,
  stale work) and surface de-duplicated messages that suggest an agent to run.

Core subpackages
----------------

- ``founderos_ai.agent_core``:

  - Agent definitions, the registry and the built-in agents.
  - The execution engine and its per-invocation context.
  - Repository interfaces and SQL implementations for persistence.
  - The proactive event pipeline.

- ``founderos_ai.server``:

  - The FastAPI application exposing agents, history and proactive messages.

Typical workflow
----------------

Most integrations should use ``founderos_ai.server.services.agent_service``:

1. Resolve the caller identity.
2. Call ``execute`` with an agent id and input.
3. Read the uniform ``AgentResult`` envelope.
4. Query the execution history for the same user.
"""
