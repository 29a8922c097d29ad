"""Unit tests for server services dependencies.

Tests verify that the AgentServiceDep dependency and the service singleton
are wired the way FastAPI expects.
"""

from founderos_ai.server.services.agent_service import AgentService, get_agent_service
from founderos_ai.server.services.deps import AgentServiceDep


class TestAgentServiceDep:
    """Test AgentServiceDep dependency injection."""

    def test_agent_service_dep_is_annotated(self):
        assert hasattr(AgentServiceDep, "__metadata__")
        assert AgentServiceDep.__origin__ is AgentService

    def test_agent_service_dep_uses_get_agent_service(self):
        depends_obj = AgentServiceDep.__metadata__[0]
        assert depends_obj.dependency == get_agent_service


class TestGetAgentService:
    """Test the service singleton."""

    def test_get_agent_service_returns_singleton(self, monkeypatch):
        import founderos_ai.server.services.agent_service as module

        monkeypatch.setattr(module, "_agent_service", None)

        first = get_agent_service()
        second = get_agent_service()

        assert isinstance(first, AgentService)
        assert first is second
        assert first.registry.frozen
        assert len(first.registry) == 5
