"""
Monitoring and Tracing Configuration Module.

Integration with Pydantic Logfire for tracing of FounderOS-AI operations:
- agent execution start / finish events
- LLM completion calls with token usage
- API request latency
- proactive sweep results

Every ``log_*`` helper is safe to call when Logfire is not configured: the
call is dropped and a debug line is written to the standard logger instead.
"""

import logging
import os
from typing import Any, Optional

import logfire
from fastapi import FastAPI

logger = logging.getLogger(__name__)

LOGFIRE_ENABLED = os.getenv("LOGFIRE_ENABLED", "false").lower() in ("true", "1", "yes")
LOGFIRE_TOKEN = os.getenv("LOGFIRE_TOKEN", "")
LOGFIRE_PROJECT_NAME = os.getenv("LOGFIRE_PROJECT_NAME", "founderos-ai")
LOGFIRE_ENVIRONMENT = os.getenv("LOGFIRE_ENVIRONMENT", "development")
LOGFIRE_SERVICE_NAME = os.getenv("LOGFIRE_SERVICE_NAME", "founderos-ai-server")
LOGFIRE_SERVICE_VERSION = os.getenv("LOGFIRE_SERVICE_VERSION", "0.1.0")

LOGFIRE_TRACE_PYDANTIC_AI = os.getenv("LOGFIRE_TRACE_PYDANTIC_AI", "true").lower() in ("true", "1", "yes")
LOGFIRE_TRACE_SQLALCHEMY = os.getenv("LOGFIRE_TRACE_SQLALCHEMY", "true").lower() in ("true", "1", "yes")
LOGFIRE_TRACE_FASTAPI = os.getenv("LOGFIRE_TRACE_FASTAPI", "true").lower() in ("true", "1", "yes")

_configured = False


def initialize_logfire(app: FastAPI | None = None) -> bool:
    """
    Initialize Logfire monitoring and tracing.

    Instruments Pydantic AI, SQLAlchemy and (when ``app`` is given) FastAPI.
    Nothing happens unless ``LOGFIRE_ENABLED`` is set and a token is present.

    Args:
        app: FastAPI application to instrument (optional).

    Returns:
        True when Logfire was configured.
    """
    global _configured

    if not LOGFIRE_ENABLED:
        logger.info("Logfire monitoring is disabled. Set LOGFIRE_ENABLED=true to enable.")
        return False

    if not LOGFIRE_TOKEN:
        logger.warning("Logfire is enabled but LOGFIRE_TOKEN is not set. Monitoring will not work.")
        return False

    try:
        logfire.configure(
            token=LOGFIRE_TOKEN,
            service_name=LOGFIRE_SERVICE_NAME,
            service_version=LOGFIRE_SERVICE_VERSION,
            environment=LOGFIRE_ENVIRONMENT,
        )
    except Exception as e:
        logger.error(f"Failed to initialize Logfire: {e}", exc_info=True)
        return False

    if LOGFIRE_TRACE_PYDANTIC_AI:
        try:
            logfire.instrument_pydantic_ai()
            logger.info("Logfire: Pydantic AI instrumentation enabled")
        except Exception as e:
            logger.warning(f"Failed to instrument Pydantic AI: {e}")

    if LOGFIRE_TRACE_SQLALCHEMY:
        try:
            logfire.instrument_sqlalchemy()
            logger.info("Logfire: SQLAlchemy instrumentation enabled")
        except Exception as e:
            logger.warning(f"Failed to instrument SQLAlchemy: {e}")

    if LOGFIRE_TRACE_FASTAPI and app is not None:
        try:
            logfire.instrument_fastapi(app=app)
            logger.info("Logfire: FastAPI instrumentation enabled")
        except Exception as e:
            logger.warning(f"Failed to instrument FastAPI: {e}")

    _configured = True
    logger.info(
        f"Logfire monitoring initialized: project={LOGFIRE_PROJECT_NAME}, "
        f"environment={LOGFIRE_ENVIRONMENT}, service={LOGFIRE_SERVICE_NAME}"
    )
    return True


def _emit(level: str, msg: str, **attributes: Any) -> None:
    if not _configured:
        logger.debug(f"{msg} {attributes}")
        return
    try:
        getattr(logfire, level)(msg, **attributes)
    except Exception:
        logger.debug(f"Could not send '{msg}' to Logfire")


def log_agent_run(execution_id: str, user_id: str, agent_id: str) -> None:
    """Log the start of an agent execution."""
    _emit("info", "Agent execution started", execution_id=execution_id, user_id=user_id, agent_id=agent_id)


def log_agent_completion(execution_id: str, status: str, duration_ms: Optional[float]) -> None:
    """
    Log the terminal state of an agent execution.

    Args:
        execution_id: The execution record id
        status: completed or failed
        duration_ms: Wall time of the execution in milliseconds
    """
    _emit("info", "Agent execution finished", execution_id=execution_id, status=status, duration_ms=duration_ms)


def log_llm_call(model: str, tokens_used: int, cost_usd: Optional[float] = None) -> None:
    """
    Log an LLM model call with usage metrics.

    Args:
        model: The model name
        tokens_used: Total tokens used in the call
        cost_usd: The cost in USD (optional)
    """
    _emit("info", "LLM call completed", model=model, tokens_used=tokens_used, cost_usd=cost_usd)


def log_api_request(method: str, path: str, status_code: int, duration_ms: float) -> None:
    """Log an API request with its latency."""
    _emit("info", "API request completed", method=method, path=path, status_code=status_code, duration_ms=duration_ms)


def log_proactive_sweep(users_processed: int, messages_created: int, errors: int) -> None:
    _emit(
        "info",
        "Proactive sweep completed",
        users_processed=users_processed,
        messages_created=messages_created,
        errors=errors,
    )


def log_error(error_type: str, error_message: str, context: Optional[dict] = None) -> None:
    """
    Log an error with context for debugging.

    Args:
        error_type: Type of error
        error_message: Error message
        context: Additional context dictionary
    """
    _emit("error", f"{error_type}: {error_message}", **(context or {}))
