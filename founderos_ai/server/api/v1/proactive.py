"""
Proactive API Endpoints.

Run detection for the caller, read and update surfaced messages, and trigger
the scheduled sweep over all onboarded users.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from founderos_ai.agent_core.schemas.domain import ProactiveMessageStatus
from founderos_ai.core.logging_config import get_logger
from founderos_ai.server.core.auth import CronAuthorized, CurrentUser
from founderos_ai.server.schemas import (
    CronSweepResponse,
    ProactiveCheckResponse,
    ProactiveMessageRead,
    ProactiveMessagesResponse,
    ProactiveMessageUpdateResponse,
)
from founderos_ai.server.services.deps import AgentServiceDep

logger = get_logger(__name__)
router = APIRouter()


@router.get(
    "/check",
    response_model=ProactiveCheckResponse,
    summary="Run Proactive Check",
    description="Detects events for the caller and surfaces new messages.",
    response_description="Detected event count and newly generated messages.",
)
async def proactive_check(user: CurrentUser, service: AgentServiceDep):
    result = await service.proactive_check(user.user_id)
    messages = [ProactiveMessageRead.from_message(m) for m in result.messages]
    return ProactiveCheckResponse(
        events_detected=result.events_detected,
        messages_generated=len(messages),
        messages=messages,
    )


@router.get(
    "/messages",
    response_model=ProactiveMessagesResponse,
    summary="List Proactive Messages",
    description="The caller's proactive messages, newest first. Use status=all for every status.",
    response_description="Proactive messages.",
)
async def list_messages(
    user: CurrentUser,
    service: AgentServiceDep,
    status: str = Query(default="pending"),
    limit: int = Query(default=10, ge=1, le=100),
):
    if status == "all":
        wanted: Optional[ProactiveMessageStatus] = None
    else:
        try:
            wanted = ProactiveMessageStatus(status)
        except ValueError:
            raise HTTPException(status_code=422, detail=f"unknown status: {status}")
    messages = await service.list_messages(user.user_id, status=wanted, limit=limit)
    return ProactiveMessagesResponse(messages=[ProactiveMessageRead.from_message(m) for m in messages])


@router.post(
    "/messages/{message_id}/read",
    response_model=ProactiveMessageUpdateResponse,
    summary="Mark Message Read",
    response_description="The updated message.",
)
async def mark_read(message_id: str, user: CurrentUser, service: AgentServiceDep):
    message = await service.mark_read(user.user_id, message_id)
    if message is None:
        raise HTTPException(status_code=404, detail="message not found")
    return ProactiveMessageUpdateResponse(message=ProactiveMessageRead.from_message(message))


@router.post(
    "/messages/{message_id}/dismiss",
    response_model=ProactiveMessageUpdateResponse,
    summary="Dismiss Message",
    response_description="The updated message.",
)
async def dismiss(message_id: str, user: CurrentUser, service: AgentServiceDep):
    message = await service.dismiss(user.user_id, message_id)
    if message is None:
        raise HTTPException(status_code=404, detail="message not found")
    return ProactiveMessageUpdateResponse(message=ProactiveMessageRead.from_message(message))


@router.post(
    "/cron",
    response_model=CronSweepResponse,
    summary="Scheduled Proactive Sweep",
    description="Processes every onboarded user. Requires the cron bearer secret.",
    response_description="Sweep counters and per-user errors.",
)
async def cron_sweep(_: CronAuthorized, service: AgentServiceDep):
    report = await service.cron_sweep()
    return CronSweepResponse(
        users_processed=report.users_processed,
        messages_created=report.messages_created,
        errors=report.errors,
    )
