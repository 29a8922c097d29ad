from __future__ import annotations

"""Proactive event detectors.

A detector inspects one user's workspace data through the user-scoped data
store and returns the ``ProactiveEvent`` values it finds. Detectors are pure
reads: they never write and never see another user's rows.

Every detector has the signature::

    async def detect(store: UserDataStore, now: datetime, settings: ProactiveSettings) -> list[ProactiveEvent]

``dedup_key`` is chosen so that the same underlying situation keeps the same
fingerprint until it materially changes (a new due date, a new whole month of
runway, a new update timestamp).

Where the moment the situation began is known, it is stored as ``since`` in
the payload (ISO timestamp); a suggested agent that completed after it counts
as acting on the event.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..repos.interfaces import UserDataStore
from ..schemas.domain import ProactiveEvent, ProactiveEventType, Severity

OPEN_STATUSES = ("todo", "in_progress")


@dataclass(frozen=True)
class ProactiveSettings:
    """Thresholds for detection and deduplication."""

    dedup_window_hours: int = 24
    deadline_horizon_days: int = 3
    stale_task_days: int = 7
    low_runway_months: float = 3
    default_monthly_burn: float = 10000
    completion_lookback_hours: int = 24


Detector = Callable[[UserDataStore, datetime, ProactiveSettings], Awaitable[List[ProactiveEvent]]]


def as_utc(value: Any) -> Optional[datetime]:
    """Coerce a stored timestamp (datetime or ISO string) to an aware UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    return value.astimezone(timezone.utc) if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _item_payload(item: Dict[str, Any], **extra: Any) -> Dict[str, Any]:
    payload = {"roadmapItemId": item.get("id"), "title": item.get("title"), "status": item.get("status")}
    payload.update(extra)
    return payload


async def _open_items(store: UserDataStore) -> List[Dict[str, Any]]:
    items = await store.select("roadmap_items", order_by="due_date")
    return [i for i in items if i.get("status") in OPEN_STATUSES]


async def detect_low_runway(store: UserDataStore, now: datetime, settings: ProactiveSettings) -> List[ProactiveEvent]:
    profile = await store.get_user()
    if not profile:
        return []
    funds = profile.get("funds_available") or profile.get("budget") or 0
    burn = profile.get("monthly_burn") or settings.default_monthly_burn
    if funds <= 0 or burn <= 0:
        return []
    runway_months = funds / burn
    if runway_months >= settings.low_runway_months:
        return []
    payload: Dict[str, Any] = {"runwayMonths": round(runway_months, 1), "fundsAvailable": funds, "monthlyBurn": burn}
    changed = as_utc(profile.get("updated_at"))
    if changed is not None:
        payload["since"] = changed.isoformat()
    return [
        ProactiveEvent(
            type=ProactiveEventType.budget_low_runway,
            entity_id=str(profile.get("id") or store.user_id),
            dedup_key=f"{int(runway_months)}m",
            severity=Severity.urgent,
            title="Low runway",
            description=f"About {runway_months:.1f} months of runway left at ${burn:,.0f}/month.",
            payload=payload,
            detected_at=now,
        )
    ]


async def detect_upcoming_deadlines(
    store: UserDataStore, now: datetime, settings: ProactiveSettings
) -> List[ProactiveEvent]:
    horizon = now + timedelta(days=settings.deadline_horizon_days)
    events: List[ProactiveEvent] = []
    for item in await _open_items(store):
        due = as_utc(item.get("due_date"))
        if due is None or not (now <= due <= horizon):
            continue
        days_left = (due - now).days
        events.append(
            ProactiveEvent(
                type=ProactiveEventType.deadline_upcoming,
                entity_id=str(item.get("id")),
                dedup_key=due.date().isoformat(),
                severity=Severity.important,
                title=f"Due soon: {item.get('title')}",
                description=f"'{item.get('title')}' is due in {days_left} day(s).",
                payload=_item_payload(item, dueDate=due.isoformat(), daysLeft=days_left),
                detected_at=now,
            )
        )
    return events


async def detect_overdue_tasks(store: UserDataStore, now: datetime, settings: ProactiveSettings) -> List[ProactiveEvent]:
    events: List[ProactiveEvent] = []
    for item in await _open_items(store):
        due = as_utc(item.get("due_date"))
        if due is None or due >= now:
            continue
        days_overdue = (now - due).days
        events.append(
            ProactiveEvent(
                type=ProactiveEventType.task_overdue,
                entity_id=str(item.get("id")),
                dedup_key=due.date().isoformat(),
                severity=Severity.urgent if days_overdue >= 7 else Severity.important,
                title=f"Overdue: {item.get('title')}",
                description=f"'{item.get('title')}' was due {days_overdue} day(s) ago.",
                payload=_item_payload(item, dueDate=due.isoformat(), daysOverdue=days_overdue, since=due.isoformat()),
                detected_at=now,
            )
        )
    return events


async def detect_stale_tasks(store: UserDataStore, now: datetime, settings: ProactiveSettings) -> List[ProactiveEvent]:
    cutoff = now - timedelta(days=settings.stale_task_days)
    events: List[ProactiveEvent] = []
    for item in await store.select("roadmap_items", {"status": "in_progress"}):
        touched = as_utc(item.get("updated_at"))
        if touched is None or touched >= cutoff:
            continue
        events.append(
            ProactiveEvent(
                type=ProactiveEventType.task_stale,
                entity_id=str(item.get("id")),
                dedup_key=touched.date().isoformat(),
                severity=Severity.info,
                title=f"Stalled: {item.get('title')}",
                description=f"'{item.get('title')}' has not moved for {(now - touched).days} days.",
                payload=_item_payload(item, lastUpdated=touched.isoformat(), since=touched.isoformat()),
                detected_at=now,
            )
        )
    return events


async def detect_recent_completions(
    store: UserDataStore, now: datetime, settings: ProactiveSettings
) -> List[ProactiveEvent]:
    since = now - timedelta(hours=settings.completion_lookback_hours)
    events: List[ProactiveEvent] = []
    for item in await store.select("roadmap_items", {"status": "done"}):
        finished = as_utc(item.get("completed_at")) or as_utc(item.get("updated_at"))
        if finished is None or finished < since:
            continue
        events.append(
            ProactiveEvent(
                type=ProactiveEventType.task_completed,
                entity_id=str(item.get("id")),
                dedup_key=finished.date().isoformat(),
                severity=Severity.info,
                title=f"Completed: {item.get('title')}",
                description=f"'{item.get('title')}' was marked done.",
                payload=_item_payload(item, completedAt=finished.isoformat()),
                detected_at=now,
            )
        )
    return events


DEFAULT_DETECTORS: tuple[Detector, ...] = (
    detect_low_runway,
    detect_upcoming_deadlines,
    detect_overdue_tasks,
    detect_stale_tasks,
    detect_recent_completions,
)
