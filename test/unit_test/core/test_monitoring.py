"""
Unit tests for the Logfire monitoring module.

This test suite covers:
- Environment variable parsing
- Logfire initialization and instrumentation flags
- The ``log_*`` helpers, configured and unconfigured
- Graceful degradation when Logfire fails
"""

import importlib
import os
from unittest.mock import MagicMock, patch

import pytest

import founderos_ai.core.monitoring as monitoring

MODULE = "founderos_ai.core.monitoring"


def _reload_with(env: dict) -> dict:
    """Reload the module under ``env`` and return its settings, then restore it."""
    with patch.dict(os.environ, env, clear=True):
        importlib.reload(monitoring)
        values = {
            "enabled": monitoring.LOGFIRE_ENABLED,
            "token": monitoring.LOGFIRE_TOKEN,
            "service": monitoring.LOGFIRE_SERVICE_NAME,
            "environment": monitoring.LOGFIRE_ENVIRONMENT,
            "version": monitoring.LOGFIRE_SERVICE_VERSION,
            "trace_pydantic_ai": monitoring.LOGFIRE_TRACE_PYDANTIC_AI,
            "trace_sqlalchemy": monitoring.LOGFIRE_TRACE_SQLALCHEMY,
            "trace_fastapi": monitoring.LOGFIRE_TRACE_FASTAPI,
        }
    importlib.reload(monitoring)
    return values


class TestLogfireEnvironmentConfiguration:
    """Test environment variable configuration for Logfire."""

    def test_logfire_disabled_by_default(self):
        values = _reload_with({})

        assert values["enabled"] is False
        assert values["token"] == ""
        assert values["service"] == "founderos-ai-server"
        assert values["environment"] == "development"

    @pytest.mark.parametrize("flag", ["true", "1", "yes", "TRUE"])
    def test_logfire_enabled_values(self, flag):
        assert _reload_with({"LOGFIRE_ENABLED": flag})["enabled"] is True

    def test_logfire_enabled_rejects_other_values(self):
        assert _reload_with({"LOGFIRE_ENABLED": "maybe"})["enabled"] is False

    def test_values_read_from_environment(self):
        values = _reload_with(
            {
                "LOGFIRE_TOKEN": "test-token-12345",
                "LOGFIRE_SERVICE_NAME": "my-custom-service",
                "LOGFIRE_ENVIRONMENT": "staging",
                "LOGFIRE_SERVICE_VERSION": "2.0.0",
            }
        )

        assert values["token"] == "test-token-12345"
        assert values["service"] == "my-custom-service"
        assert values["environment"] == "staging"
        assert values["version"] == "2.0.0"

    def test_feature_flags_default_to_true(self):
        values = _reload_with({})

        assert values["trace_pydantic_ai"] is True
        assert values["trace_sqlalchemy"] is True
        assert values["trace_fastapi"] is True

    def test_feature_flags_can_be_disabled(self):
        values = _reload_with(
            {
                "LOGFIRE_TRACE_PYDANTIC_AI": "false",
                "LOGFIRE_TRACE_SQLALCHEMY": "0",
                "LOGFIRE_TRACE_FASTAPI": "no",
            }
        )

        assert values["trace_pydantic_ai"] is False
        assert values["trace_sqlalchemy"] is False
        assert values["trace_fastapi"] is False


@pytest.fixture
def mock_logfire():
    with patch(f"{MODULE}.logfire") as fake, patch(f"{MODULE}._configured", False):
        yield fake


class TestInitializeLogfire:
    """Test Logfire initialization function."""

    @patch(f"{MODULE}.LOGFIRE_ENABLED", False)
    @patch(f"{MODULE}.logger")
    def test_initialize_logfire_disabled(self, mock_logger, mock_logfire):
        assert monitoring.initialize_logfire() is False

        mock_logger.info.assert_called_once()
        assert "disabled" in mock_logger.info.call_args[0][0].lower()
        mock_logfire.configure.assert_not_called()

    @patch(f"{MODULE}.LOGFIRE_ENABLED", True)
    @patch(f"{MODULE}.LOGFIRE_TOKEN", "")
    @patch(f"{MODULE}.logger")
    def test_initialize_logfire_no_token(self, mock_logger, mock_logfire):
        assert monitoring.initialize_logfire() is False

        mock_logger.warning.assert_called_once()
        assert "token" in mock_logger.warning.call_args[0][0].lower()
        mock_logfire.configure.assert_not_called()

    @patch(f"{MODULE}.LOGFIRE_ENABLED", True)
    @patch(f"{MODULE}.LOGFIRE_TOKEN", "test-token")
    @patch(f"{MODULE}.LOGFIRE_SERVICE_NAME", "test-service")
    @patch(f"{MODULE}.LOGFIRE_SERVICE_VERSION", "1.0.0")
    @patch(f"{MODULE}.LOGFIRE_ENVIRONMENT", "test")
    @patch(f"{MODULE}.LOGFIRE_TRACE_PYDANTIC_AI", True)
    @patch(f"{MODULE}.LOGFIRE_TRACE_SQLALCHEMY", True)
    @patch(f"{MODULE}.LOGFIRE_TRACE_FASTAPI", True)
    def test_initialize_logfire_configures_and_instruments(self, mock_logfire):
        from fastapi import FastAPI

        app = FastAPI()
        assert monitoring.initialize_logfire(app) is True

        mock_logfire.configure.assert_called_once_with(
            token="test-token",
            service_name="test-service",
            service_version="1.0.0",
            environment="test",
        )
        mock_logfire.instrument_pydantic_ai.assert_called_once()
        mock_logfire.instrument_sqlalchemy.assert_called_once()
        mock_logfire.instrument_fastapi.assert_called_once_with(app=app)
        assert monitoring._configured is True

    @patch(f"{MODULE}.LOGFIRE_ENABLED", True)
    @patch(f"{MODULE}.LOGFIRE_TOKEN", "test-token")
    @patch(f"{MODULE}.LOGFIRE_TRACE_PYDANTIC_AI", False)
    @patch(f"{MODULE}.LOGFIRE_TRACE_SQLALCHEMY", False)
    @patch(f"{MODULE}.LOGFIRE_TRACE_FASTAPI", True)
    def test_initialize_logfire_respects_disabled_flags(self, mock_logfire):
        assert monitoring.initialize_logfire(app=None) is True

        mock_logfire.instrument_pydantic_ai.assert_not_called()
        mock_logfire.instrument_sqlalchemy.assert_not_called()
        mock_logfire.instrument_fastapi.assert_not_called()

    @patch(f"{MODULE}.LOGFIRE_ENABLED", True)
    @patch(f"{MODULE}.LOGFIRE_TOKEN", "test-token")
    @patch(f"{MODULE}.logger")
    def test_initialize_logfire_configure_failure(self, mock_logger, mock_logfire):
        mock_logfire.configure.side_effect = RuntimeError("bad token")

        assert monitoring.initialize_logfire() is False

        mock_logger.error.assert_called_once()
        assert monitoring._configured is False

    @patch(f"{MODULE}.LOGFIRE_ENABLED", True)
    @patch(f"{MODULE}.LOGFIRE_TOKEN", "test-token")
    @patch(f"{MODULE}.LOGFIRE_TRACE_PYDANTIC_AI", True)
    @patch(f"{MODULE}.LOGFIRE_TRACE_SQLALCHEMY", False)
    @patch(f"{MODULE}.LOGFIRE_TRACE_FASTAPI", False)
    @patch(f"{MODULE}.logger")
    def test_instrumentation_failure_is_not_fatal(self, mock_logger, mock_logfire):
        mock_logfire.instrument_pydantic_ai.side_effect = ImportError("pydantic_ai missing")

        assert monitoring.initialize_logfire() is True

        mock_logger.warning.assert_called_once()


class TestLogHelpersUnconfigured:
    """Without Logfire the helpers only write debug lines."""

    @pytest.mark.parametrize(
        "call",
        [
            lambda: monitoring.log_agent_run("exec-1", "user-1", "strategic-planner"),
            lambda: monitoring.log_agent_completion("exec-1", "completed", 12.5),
            lambda: monitoring.log_llm_call("openai:gpt-4o", 300),
            lambda: monitoring.log_api_request("GET", "/health", 200, 1.2),
            lambda: monitoring.log_proactive_sweep(3, 5, 0),
            lambda: monitoring.log_error("ValueError", "boom"),
        ],
    )
    def test_helpers_do_not_touch_logfire(self, mock_logfire, call):
        with patch(f"{MODULE}.logger") as mock_logger:
            call()

        mock_logger.debug.assert_called_once()
        mock_logfire.info.assert_not_called()
        mock_logfire.error.assert_not_called()


class TestLogHelpersConfigured:
    @pytest.fixture
    def configured_logfire(self):
        fake = MagicMock()
        with patch(f"{MODULE}.logfire", fake), patch(f"{MODULE}._configured", True):
            yield fake

    def test_log_agent_run(self, configured_logfire):
        monitoring.log_agent_run("exec-1", "user-1", "strategic-planner")

        configured_logfire.info.assert_called_once_with(
            "Agent execution started", execution_id="exec-1", user_id="user-1", agent_id="strategic-planner"
        )

    def test_log_agent_completion(self, configured_logfire):
        monitoring.log_agent_completion("exec-1", "failed", 40)

        configured_logfire.info.assert_called_once_with(
            "Agent execution finished", execution_id="exec-1", status="failed", duration_ms=40
        )

    def test_log_llm_call(self, configured_logfire):
        monitoring.log_llm_call("openai:gpt-4o", 300, cost_usd=0.01)

        kwargs = configured_logfire.info.call_args.kwargs
        assert kwargs == {"model": "openai:gpt-4o", "tokens_used": 300, "cost_usd": 0.01}

    def test_log_api_request(self, configured_logfire):
        monitoring.log_api_request("POST", "/api/v1/agents/execute", 500, 12.0)

        kwargs = configured_logfire.info.call_args.kwargs
        assert kwargs["status_code"] == 500
        assert kwargs["path"] == "/api/v1/agents/execute"

    def test_log_proactive_sweep(self, configured_logfire):
        monitoring.log_proactive_sweep(users_processed=4, messages_created=7, errors=1)

        kwargs = configured_logfire.info.call_args.kwargs
        assert kwargs == {"users_processed": 4, "messages_created": 7, "errors": 1}

    def test_log_error_uses_error_level(self, configured_logfire):
        monitoring.log_error("QueryError", "store unreachable", {"path": "/api/v1/agents/history"})

        configured_logfire.error.assert_called_once_with(
            "QueryError: store unreachable", path="/api/v1/agents/history"
        )

    def test_log_error_without_context(self, configured_logfire):
        monitoring.log_error("ValueError", "boom")

        configured_logfire.error.assert_called_once_with("ValueError: boom")

    def test_logfire_failure_is_swallowed(self, configured_logfire):
        configured_logfire.info.side_effect = RuntimeError("exporter down")

        monitoring.log_agent_run("exec-1", "user-1", "strategic-planner")
