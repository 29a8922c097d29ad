from __future__ import annotations

"""Proactive event pipeline.

``ProactivePipeline`` turns detected events into pending messages:

1. run every detector for the user (a failing detector is logged and skipped);
2. drop events whose fingerprint repeats within the batch or was already
   surfaced for the user inside the dedup window;
3. drop events whose suggested agent already completed for the same entity
   (same roadmap item, or after the situation began);
4. map each remaining event to a canned message and, when registered, a
   suggested agent with ready-to-run input;
5. persist the messages as ``pending``.

Processing the same state twice surfaces nothing new.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ...core.monitoring import log_proactive_sweep
from ..agent_registry import AgentRegistry
from ..errors import QueryError
from ..repos.interfaces import ExecutionLogRepository, ProactiveMessageRepository, UserDataStore
from ..schemas.domain import (
    ExecutionRecord,
    ProactiveEvent,
    ProactiveEventType,
    ProactiveMessage,
    ProactiveMessageStatus,
)
from .detectors import DEFAULT_DETECTORS, Detector, ProactiveSettings, as_utc

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _suggestion(event: ProactiveEvent) -> Tuple[Optional[str], Dict[str, Any]]:
    item_id = event.payload.get("roadmapItemId")
    if event.type == ProactiveEventType.budget_low_runway:
        return "draft-investor-email", {"tone": "professional", "focusAreas": ["fundraising", "runway"]}
    if event.type == ProactiveEventType.deadline_upcoming:
        return "generate-product-spec", {"roadmapItemId": item_id}
    if event.type == ProactiveEventType.task_overdue:
        return "strategic-planner", {"focus": "all"}
    if event.type == ProactiveEventType.task_stale:
        return "progress-analyzer", {"focus": "roadmap", "timeframe": "month"}
    return None, {}


def _acted_on(
    event: ProactiveEvent, agent_id: str, agent_input: Dict[str, Any], runs: Sequence[ExecutionRecord]
) -> bool:
    """Whether a completed run of ``agent_id`` already addressed this event's entity.

    Runs scoped to a roadmap item only count for that item. Otherwise a run
    counts when it completed after the situation began (``since``); events
    without a known start are never suppressed.
    """
    runs = [r for r in runs if r.agent_id == agent_id]
    item_id = agent_input.get("roadmapItemId")
    if item_id is not None:
        return any((r.input or {}).get("roadmapItemId") == item_id for r in runs)
    since = as_utc(event.payload.get("since"))
    if since is None:
        return False
    finished = [as_utc(r.completed_at) for r in runs]
    return any(done is not None and done >= since for done in finished)


def render_message(event: ProactiveEvent) -> str:
    """Canned, human-readable message for an event."""
    p = event.payload
    title = p.get("title") or event.title
    if event.type == ProactiveEventType.budget_low_runway:
        return (
            f"Heads up: you have about {p.get('runwayMonths')} months of runway left. "
            "Now is a good time to update your investors and plan your next raise."
        )
    if event.type == ProactiveEventType.deadline_upcoming:
        return f"'{title}' is due in {p.get('daysLeft')} day(s). Want a spec drafted to keep it on track?"
    if event.type == ProactiveEventType.task_overdue:
        return f"'{title}' is {p.get('daysOverdue')} day(s) overdue. Let's re-plan the roadmap around it."
    if event.type == ProactiveEventType.task_stale:
        return f"'{title}' hasn't moved in a while. A quick progress review could surface what's blocking it."
    if event.type == ProactiveEventType.task_completed:
        return f"Nice work finishing '{title}'! Keep the momentum going."
    return event.description


@dataclass
class ProactiveCheckResult:
    events_detected: int
    messages: List[ProactiveMessage]


@dataclass
class SweepReport:
    users_processed: int = 0
    messages_created: int = 0
    errors: List[Dict[str, str]] = field(default_factory=list)


class ProactivePipeline:
    """Detects, deduplicates and persists proactive messages per user."""

    def __init__(
        self,
        *,
        registry: AgentRegistry,
        messages: ProactiveMessageRepository,
        execution_log: ExecutionLogRepository,
        data_store_factory: Callable[[str], UserDataStore],
        settings: Optional[ProactiveSettings] = None,
        detectors: Sequence[Detector] = DEFAULT_DETECTORS,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._registry = registry
        self._messages = messages
        self._log = execution_log
        self._store_factory = data_store_factory
        self._settings = settings or ProactiveSettings()
        self._detectors = tuple(detectors)
        self._clock = clock

    @property
    def settings(self) -> ProactiveSettings:
        return self._settings

    async def detect_events(self, user_id: str) -> List[ProactiveEvent]:
        """Run every detector for ``user_id``; failing detectors are skipped."""
        store = self._store_factory(user_id)
        now = self._clock()
        events: List[ProactiveEvent] = []
        for detector in self._detectors:
            try:
                events.extend(await detector(store, now, self._settings))
            except Exception as e:
                logger.warning(f"Detector {getattr(detector, '__name__', detector)} failed for user {user_id}: {e}")
        logger.debug(f"Detected {len(events)} proactive event(s) for user {user_id}")
        return events

    async def _completed_runs(self, user_id: str, since: datetime) -> List[ExecutionRecord]:
        try:
            return await self._log.recent_completed(user_id, since)
        except QueryError as e:
            logger.warning(f"Could not read execution history for user {user_id}: {e}")
            return []

    async def process_events(
        self, user_id: str, events: Optional[Sequence[ProactiveEvent]] = None
    ) -> List[ProactiveMessage]:
        """
        Turn events into persisted ``pending`` messages.

        Args:
            user_id: Owner of the events.
            events: Pre-detected events; detectors run when omitted.

        Returns:
            The newly created messages, in event order.
        """
        if events is None:
            events = await self.detect_events(user_id)
        if not events:
            return []

        now = self._clock()
        window_start = now - timedelta(hours=self._settings.dedup_window_hours)

        batch: List[ProactiveEvent] = []
        batch_seen: set[str] = set()
        for ev in events:
            if ev.fingerprint in batch_seen:
                continue
            batch_seen.add(ev.fingerprint)
            batch.append(ev)

        already = await self._messages.seen_fingerprints(user_id, [e.fingerprint for e in batch], window_start)
        runs = await self._completed_runs(user_id, window_start)

        created: List[ProactiveMessage] = []
        for ev in batch:
            if ev.fingerprint in already:
                continue
            agent_id, agent_input = _suggestion(ev)
            if agent_id is not None and not self._registry.has(agent_id):
                agent_id, agent_input = None, {}
            if agent_id is not None and _acted_on(ev, agent_id, agent_input, runs):
                logger.debug(f"Suppressing {ev.fingerprint}: {agent_id} already ran for user {user_id}")
                continue

            msg = ProactiveMessage(
                user_id=user_id,
                fingerprint=ev.fingerprint,
                event_type=ev.type,
                priority=ev.severity,
                message=render_message(ev),
                suggested_agent_id=agent_id,
                suggested_input={k: v for k, v in agent_input.items() if v is not None},
                payload={"title": ev.title, "description": ev.description, **ev.payload},
                created_at=now,
            )
            await self._messages.add(msg)
            created.append(msg)

        logger.info(f"Surfaced {len(created)} proactive message(s) for user {user_id} from {len(events)} event(s)")
        return created

    async def check(self, user_id: str) -> ProactiveCheckResult:
        events = await self.detect_events(user_id)
        messages = await self.process_events(user_id, events)
        return ProactiveCheckResult(events_detected=len(events), messages=messages)

    async def list_messages(
        self,
        user_id: str,
        status: Optional[ProactiveMessageStatus] = ProactiveMessageStatus.pending,
        limit: int = 10,
    ) -> List[ProactiveMessage]:
        return await self._messages.list(user_id, status=status, limit=limit)

    async def mark_read(self, user_id: str, message_id: str) -> Optional[ProactiveMessage]:
        return await self._messages.set_status(user_id, message_id, ProactiveMessageStatus.read)

    async def dismiss(self, user_id: str, message_id: str) -> Optional[ProactiveMessage]:
        return await self._messages.set_status(user_id, message_id, ProactiveMessageStatus.dismissed)

    async def sweep(self, user_ids: Sequence[str]) -> SweepReport:
        """Process many users; a failure for one user is recorded and the sweep continues."""
        report = SweepReport()
        for user_id in user_ids:
            try:
                created = await self.process_events(user_id)
            except Exception as e:
                logger.error(f"Proactive sweep failed for user {user_id}: {e}")
                report.errors.append({"userId": user_id, "error": str(e)})
                continue
            report.users_processed += 1
            report.messages_created += len(created)
        log_proactive_sweep(report.users_processed, report.messages_created, len(report.errors))
        return report
