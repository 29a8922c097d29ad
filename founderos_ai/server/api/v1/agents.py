"""
Agent API Endpoints.

Execute agents on behalf of the authenticated founder, browse the agent
catalogue and read the caller's execution history.
"""

from typing import Optional

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from founderos_ai.server.core.auth import CurrentUser
from founderos_ai.server.schemas import (
    AgentExecutionResponse,
    AgentListResponse,
    AgentMetadata,
    ExecuteAgentRequest,
    ExecutionHistoryResponse,
    ExecutionRecordRead,
)
from founderos_ai.server.services.deps import AgentServiceDep

router = APIRouter()


def _envelope(status_code: int, body: AgentExecutionResponse) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", by_alias=True, exclude_none=True),
    )


@router.post(
    "/execute",
    response_model=AgentExecutionResponse,
    response_model_exclude_none=True,
    summary="Execute Agent",
    description=(
        "Runs the requested agent for the authenticated user. Returns 400 when agentId is missing, "
        "404 for an unknown agent, 422 for invalid input and 500 when the agent fails."
    ),
    response_description="The agent result envelope.",
)
async def execute_agent(body: ExecuteAgentRequest, user: CurrentUser, service: AgentServiceDep):
    """
    Execute an agent.

    The response body is always the result envelope, including on failure.
    """
    if not body.agent_id:
        return _envelope(status.HTTP_400_BAD_REQUEST, AgentExecutionResponse(success=False, error="agentId is required"))

    if not service.registry.has(body.agent_id):
        return _envelope(
            status.HTTP_404_NOT_FOUND,
            AgentExecutionResponse(success=False, error=f"unknown agent: {body.agent_id}"),
        )

    result = await service.execute(body.agent_id, body.input, user.user_id)
    response = AgentExecutionResponse.from_result(result)
    if result.success:
        return _envelope(status.HTTP_200_OK, response)
    if result.error and result.error.startswith("invalid input:"):
        return _envelope(status.HTTP_422_UNPROCESSABLE_ENTITY, response)
    return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, response)


@router.get(
    "/history",
    response_model=ExecutionHistoryResponse,
    summary="Execution History",
    description="The caller's agent executions, newest first.",
    response_description="Execution records and their count.",
)
async def execution_history(
    user: CurrentUser,
    service: AgentServiceDep,
    limit: Optional[int] = Query(default=None, ge=1, le=200),
    agent_id: Optional[str] = Query(default=None, alias="agentId"),
):
    records = await service.history(user.user_id, agent_id=agent_id, limit=limit)
    tasks = [ExecutionRecordRead.from_record(r) for r in records]
    return ExecutionHistoryResponse(tasks=tasks, count=len(tasks))


@router.get(
    "",
    response_model=AgentListResponse,
    summary="List Agents",
    description="Lists registered agents, optionally filtered by category.",
    response_description="Agent metadata and count.",
)
async def list_agents(user: CurrentUser, service: AgentServiceDep, category: Optional[str] = None):
    agents = [AgentMetadata.model_validate(a.metadata()) for a in service.list_agents(category)]
    return AgentListResponse(agents=agents, count=len(agents), categories=service.registry.categories())


@router.get(
    "/{agent_id}",
    response_model=AgentMetadata,
    summary="Get Agent",
    description="Metadata of one registered agent. Unknown ids return 404.",
    response_description="Agent metadata.",
)
async def get_agent(agent_id: str, user: CurrentUser, service: AgentServiceDep):
    return AgentMetadata.model_validate(service.get_agent(agent_id).metadata())
