from __future__ import annotations

from datetime import timedelta

import pytest

from founderos_ai.agent_core.agent_registry import AgentRegistry
from founderos_ai.agent_core.factory import build_default_registry
from founderos_ai.agent_core.proactive.detectors import (
    ProactiveSettings,
    detect_overdue_tasks,
    detect_stale_tasks,
    detect_upcoming_deadlines,
)
from founderos_ai.agent_core.proactive.pipeline import ProactivePipeline, render_message
from founderos_ai.agent_core.schemas.domain import (
    ExecutionRecord,
    ExecutionStatus,
    ProactiveEvent,
    ProactiveEventType,
    ProactiveMessageStatus,
    Severity,
)

pytestmark = pytest.mark.asyncio


@pytest.fixture
def clock(now):
    state = {"now": now}

    def _clock():
        return state["now"]

    _clock.state = state
    return _clock


def _pipeline(repos, clock, *, registry=None, detectors=None, factory=None) -> ProactivePipeline:
    kwargs = {}
    if detectors is not None:
        kwargs["detectors"] = detectors
    return ProactivePipeline(
        registry=registry if registry is not None else build_default_registry(),
        messages=repos.messages,
        execution_log=repos.executions,
        data_store_factory=factory or repos.data_store,
        settings=ProactiveSettings(),
        clock=clock,
        **kwargs,
    )


async def _seed_workspace(repos, now, user_id: str = "alice") -> dict:
    store = repos.data_store(user_id)
    await store.upsert("users", {"id": user_id, "funds_available": 20000, "monthly_burn": 10000})
    overdue = await store.insert(
        "roadmap_items", {"title": "Pricing page", "status": "todo", "due_date": now - timedelta(days=2)}
    )
    upcoming = await store.insert(
        "roadmap_items", {"title": "Beta launch", "status": "todo", "due_date": now + timedelta(days=1)}
    )
    return {"overdue": overdue, "upcoming": upcoming}


async def test_check_surfaces_messages_with_suggestions(repos, now, clock) -> None:
    items = await _seed_workspace(repos, now)
    pipeline = _pipeline(repos, clock)

    result = await pipeline.check("alice")

    assert result.events_detected == 3
    by_type = {m.event_type: m for m in result.messages}
    assert set(by_type) == {
        ProactiveEventType.budget_low_runway,
        ProactiveEventType.task_overdue,
        ProactiveEventType.deadline_upcoming,
    }
    runway = by_type[ProactiveEventType.budget_low_runway]
    assert runway.suggested_agent_id == "draft-investor-email"
    assert runway.priority == Severity.urgent
    assert "2.0 months of runway" in runway.message

    deadline = by_type[ProactiveEventType.deadline_upcoming]
    assert deadline.suggested_agent_id == "generate-product-spec"
    assert deadline.suggested_input == {"roadmapItemId": items["upcoming"]["id"]}

    assert by_type[ProactiveEventType.task_overdue].suggested_agent_id == "strategic-planner"
    assert all(m.status == ProactiveMessageStatus.pending for m in result.messages)

    stored = await pipeline.list_messages("alice")
    assert {m.id for m in stored} == {m.id for m in result.messages}


async def test_repeat_check_is_idempotent(repos, now, clock) -> None:
    await _seed_workspace(repos, now)
    pipeline = _pipeline(repos, clock)

    first = await pipeline.check("alice")
    second = await pipeline.check("alice")

    assert len(first.messages) == 3
    assert second.events_detected == 3
    assert second.messages == []
    assert len(await pipeline.list_messages("alice", status=None, limit=50)) == 3


async def test_events_resurface_after_dedup_window(repos, now, clock) -> None:
    await _seed_workspace(repos, now)
    pipeline = _pipeline(repos, clock, detectors=[])
    event = ProactiveEvent(
        type=ProactiveEventType.task_completed,
        entity_id="item-1",
        dedup_key="2026-03-02",
        title="Completed: Beta",
        description="done",
        payload={"title": "Beta"},
    )

    assert len(await pipeline.process_events("alice", [event])) == 1
    clock.state["now"] = now + timedelta(hours=12)
    assert await pipeline.process_events("alice", [event]) == []
    clock.state["now"] = now + timedelta(hours=25)
    assert len(await pipeline.process_events("alice", [event])) == 1


async def test_duplicates_within_one_batch_are_dropped(repos, clock) -> None:
    pipeline = _pipeline(repos, clock, detectors=[])
    event = ProactiveEvent(
        type=ProactiveEventType.task_completed, entity_id="x", dedup_key="k", title="t", description="d"
    )

    created = await pipeline.process_events("alice", [event, event.model_copy()])

    assert len(created) == 1
    assert created[0].suggested_agent_id is None
    assert created[0].message == render_message(event)


async def test_dedup_is_per_user(repos, now, clock) -> None:
    await _seed_workspace(repos, now, "alice")
    await _seed_workspace(repos, now, "bob")
    pipeline = _pipeline(repos, clock)

    assert len((await pipeline.check("alice")).messages) == 3
    assert len((await pipeline.check("bob")).messages) == 3


async def test_stale_event_suppressed_after_suggested_agent_ran(repos, now, clock) -> None:
    store = repos.data_store("alice")
    await store.insert(
        "roadmap_items", {"title": "Onboarding", "status": "in_progress", "updated_at": now - timedelta(days=9)}
    )
    await repos.executions.finish(
        ExecutionRecord(
            user_id="alice",
            agent_id="progress-analyzer",
            status=ExecutionStatus.completed,
            output={"ok": True},
            started_at=now - timedelta(hours=2),
            completed_at=now - timedelta(hours=1),
        )
    )
    pipeline = _pipeline(repos, clock, detectors=[detect_stale_tasks])

    result = await pipeline.check("alice")

    assert result.events_detected == 1
    assert result.messages == []
    assert await repos.executions.recent_completed("bob", now - timedelta(days=1)) == []


async def test_failed_runs_do_not_suppress_events(repos, now, clock) -> None:
    store = repos.data_store("alice")
    await store.insert(
        "roadmap_items", {"title": "Onboarding", "status": "in_progress", "updated_at": now - timedelta(days=9)}
    )
    await repos.executions.finish(
        ExecutionRecord(
            user_id="alice",
            agent_id="progress-analyzer",
            status=ExecutionStatus.failed,
            error="boom",
            started_at=now - timedelta(hours=2),
            completed_at=now - timedelta(hours=1),
        )
    )
    pipeline = _pipeline(repos, clock, detectors=[detect_stale_tasks])

    messages = (await pipeline.check("alice")).messages

    assert [m.suggested_agent_id for m in messages] == ["progress-analyzer"]
    assert messages[0].suggested_input == {"focus": "roadmap", "timeframe": "month"}


async def _completed_run(repos, now, agent_id: str, *, hours_ago: float, input=None, user_id: str = "alice") -> None:
    await repos.executions.finish(
        ExecutionRecord(
            user_id=user_id,
            agent_id=agent_id,
            input=input or {},
            status=ExecutionStatus.completed,
            output={"ok": True},
            started_at=now - timedelta(hours=hours_ago, minutes=1),
            completed_at=now - timedelta(hours=hours_ago),
        )
    )


async def test_product_spec_run_for_another_item_keeps_deadline(repos, now, clock) -> None:
    store = repos.data_store("alice")
    await store.insert("roadmap_items", {"title": "Beta launch", "status": "todo", "due_date": now + timedelta(days=1)})
    await _completed_run(repos, now, "generate-product-spec", hours_ago=20, input={"roadmapItemId": "some-other-item"})
    pipeline = _pipeline(repos, clock, detectors=[detect_upcoming_deadlines])

    result = await pipeline.check("alice")

    assert result.events_detected == 1
    assert [m.suggested_agent_id for m in result.messages] == ["generate-product-spec"]


async def test_product_spec_run_for_same_item_hides_deadline(repos, now, clock) -> None:
    store = repos.data_store("alice")
    item = await store.insert(
        "roadmap_items", {"title": "Beta launch", "status": "todo", "due_date": now + timedelta(days=1)}
    )
    await _completed_run(repos, now, "generate-product-spec", hours_ago=3, input={"roadmapItemId": item["id"]})
    pipeline = _pipeline(repos, clock, detectors=[detect_upcoming_deadlines])

    result = await pipeline.check("alice")

    assert result.events_detected == 1
    assert result.messages == []


async def test_replan_only_hides_tasks_overdue_before_it_ran(repos, now, clock) -> None:
    store = repos.data_store("alice")
    await store.insert("roadmap_items", {"title": "Old task", "status": "todo", "due_date": now - timedelta(days=2)})
    await store.insert("roadmap_items", {"title": "Fresh task", "status": "todo", "due_date": now - timedelta(hours=2)})
    await _completed_run(repos, now, "strategic-planner", hours_ago=10, input={"focus": "all"})
    pipeline = _pipeline(repos, clock, detectors=[detect_overdue_tasks])

    result = await pipeline.check("alice")

    assert result.events_detected == 2
    assert [m.payload["title"] for m in result.messages] == ["Fresh task"]


async def test_runway_without_profile_timestamp_is_not_suppressed(repos, now, clock) -> None:
    await _completed_run(repos, now, "draft-investor-email", hours_ago=1)

    async def runway_event(store, at, settings):
        return [
            ProactiveEvent(
                type=ProactiveEventType.budget_low_runway,
                entity_id="alice",
                dedup_key="1m",
                severity=Severity.urgent,
                title="Low runway",
                description="About 1.5 months of runway left.",
                payload={"runwayMonths": 1.5},
            )
        ]

    pipeline = _pipeline(repos, clock, detectors=[runway_event])

    assert [m.suggested_agent_id for m in (await pipeline.check("alice")).messages] == ["draft-investor-email"]


async def test_unregistered_suggestion_is_dropped(repos, now, clock) -> None:
    await _seed_workspace(repos, now)
    pipeline = _pipeline(repos, clock, registry=AgentRegistry())

    messages = (await pipeline.check("alice")).messages

    assert len(messages) == 3
    assert all(m.suggested_agent_id is None and m.suggested_input == {} for m in messages)


async def test_failing_detector_is_skipped(repos, now, clock) -> None:
    await _seed_workspace(repos, now)

    async def broken(store, at, settings):
        raise RuntimeError("detector crashed")

    pipeline = _pipeline(repos, clock, detectors=[broken, detect_stale_tasks])

    result = await pipeline.check("alice")

    assert result.events_detected == 0
    assert result.messages == []


async def test_mark_read_and_dismiss(repos, now, clock) -> None:
    await _seed_workspace(repos, now)
    pipeline = _pipeline(repos, clock)
    first, second, _ = (await pipeline.check("alice")).messages

    read = await pipeline.mark_read("alice", first.id)
    dismissed = await pipeline.dismiss("alice", second.id)

    assert read.status == ProactiveMessageStatus.read and read.read_at is not None
    assert dismissed.status == ProactiveMessageStatus.dismissed
    assert await pipeline.mark_read("bob", first.id) is None
    assert len(await pipeline.list_messages("alice")) == 1


async def test_sweep_continues_past_failing_user(repos, now, clock) -> None:
    await _seed_workspace(repos, now, "alice")
    await _seed_workspace(repos, now, "carol")

    def factory(user_id: str):
        if user_id == "broken":
            raise RuntimeError("store unavailable")
        return repos.data_store(user_id)

    pipeline = _pipeline(repos, clock, factory=factory)

    report = await pipeline.sweep(["alice", "broken", "carol"])

    assert report.users_processed == 2
    assert report.messages_created == 6
    assert report.errors == [{"userId": "broken", "error": "store unavailable"}]

    again = await pipeline.sweep(["alice", "carol"])
    assert again.messages_created == 0
