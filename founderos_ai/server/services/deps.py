"""
Service Dependency.

Provides a singleton instance of the AgentService for API endpoints.
"""

from typing import Annotated

from fastapi import Depends

from founderos_ai.server.services.agent_service import AgentService, get_agent_service

AgentServiceDep = Annotated[AgentService, Depends(get_agent_service)]
