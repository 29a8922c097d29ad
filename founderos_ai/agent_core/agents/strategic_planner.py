from __future__ import annotations

"""Strategic planning agent.

Summarizes the founder's current state (time, budget, network, skills and
roadmap progress), asks the model for a JSON roadmap and saves up to eight
new milestones to ``roadmap_items``.
"""

import json
import re
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, Dict, List, Literal, Optional

from pydantic import Field

from ..schemas.domain import AgentResult
from .base import AgentInput, BaseAgent

if TYPE_CHECKING:
    from ..runtime.models import ExecutionContext

MAX_SAVED_MILESTONES = 8

MAX_WEEK = 104
_WEEK_RE = re.compile(r"\d+")


class StrategicPlannerInput(AgentInput):
    goal: Optional[str] = None
    timeframe: int = Field(default=12, ge=1, le=MAX_WEEK)
    focus: Literal["growth", "product", "fundraising", "team", "operations", "all"] = "all"


def _is_overdue(item: Dict[str, Any], now: datetime) -> bool:
    due = item.get("due_date")
    return isinstance(due, datetime) and due < now


def summarize_state(
    profile: Dict[str, Any],
    roadmap_items: List[Dict[str, Any]],
    contacts: List[Dict[str, Any]],
    skills: List[Dict[str, Any]],
    now: datetime,
) -> Dict[str, Any]:
    completed = sum(1 for i in roadmap_items if i.get("status") == "done")
    total = len(roadmap_items)
    in_progress = [i for i in roadmap_items if i.get("status") == "in_progress"]
    blocked = [i for i in in_progress if _is_overdue(i, now)]
    budget = profile.get("funds_available") or 0
    hours = profile.get("hours_per_week") or 0
    return {
        "goal": profile.get("current_goal") or "Not set",
        "stage": profile.get("stage") or "Early stage",
        "timeAvailable": hours,
        "budget": budget,
        "networkSize": len(contacts),
        "skillsCount": len(skills),
        "progress": {
            "completionRate": round(completed / total * 100) if total else 0,
            "completedTasks": completed,
            "totalTasks": total,
            "inProgressTasks": len(in_progress),
            "blockedTasks": len(blocked),
        },
        "resources": {
            "hasBudget": budget > 0,
            "hasTime": hours > 0,
            "hasNetwork": bool(contacts),
            "hasSkills": bool(skills),
        },
    }


def parse_week(value: Any, fallback: int) -> int:
    """Week number from model output: ``3``, ``"3"``, ``"2-3"`` and ``"Week 4"`` all parse; anything else uses ``fallback``."""
    if isinstance(value, bool):
        return fallback
    if isinstance(value, (int, float)):
        week = int(value) if 1 <= value <= MAX_WEEK else 0
    else:
        match = _WEEK_RE.search(str(value or ""))
        week = int(match.group(0)) if match else 0
    return week if 1 <= week <= MAX_WEEK else fallback


def _bullets(values: Any) -> str:
    return "\n".join(f"- {v}" for v in (values or []))


class StrategicPlannerAgent(BaseAgent):
    id = "strategic-planner"
    name = "Strategic Planner"
    description = "Analyzes your current state and creates actionable strategic roadmaps based on your existing resources"
    category = "Strategic"
    icon = "🎯"
    input_model = StrategicPlannerInput
    error_prefix = "Strategic planning failed"
    max_tokens = 1500

    async def run(self, params: StrategicPlannerInput, context: "ExecutionContext") -> AgentResult:
        user = await self.load_user_context(context)
        profile = user.profile
        skills = await context.data_store.select("skills")

        goal = params.goal or profile.get("current_goal") or "Build and grow your startup"
        building = profile.get("building_description") or goal
        state = summarize_state(profile, user.roadmap_items, user.contacts, skills, context.now)
        skill_names = [s.get("name") for s in skills if s.get("name")]

        system_prompt = (
            "Strategic advisor for startup founders. Generate a concise strategic plan.\n\n"
            f"Building: {building} | Goal: {goal}\n"
            f"State: {state['stage']} | Time: {state['timeAvailable']}h/wk | Budget: ${state['budget']}\n"
            f"Network: {state['networkSize']} | Skills: {', '.join(skill_names[:5]) or 'None'}\n"
            f"Roadmap: {state['progress']['totalTasks']} tasks "
            f"({state['progress']['completedTasks']} done, {state['progress']['inProgressTasks']} in progress)\n\n"
            "Principles: use existing resources, build momentum with quick wins, focus on 1-2 areas, "
            "stay realistic about time and budget.\n"
            f'All tasks must directly advance "{building}".'
        )
        user_prompt = (
            f'Create a {params.timeframe}-week strategic roadmap for: "{goal}"\n\n'
            f"Focus Area: {params.focus}\n\n"
            f"Current State:\n{json.dumps(state, indent=2, default=str)}\n\n"
            "Return JSON with keys: currentState {stage, strengths, gaps, resources}, "
            "roadmap [{week, phase, milestone, tasks, successMetrics, blockers, dependencies}], "
            "recommendations {immediate, strategic, quickWins}, risks [{risk, impact, mitigation}]."
        )

        completion = await self.call_model(context, system_prompt, user_prompt)
        plan = self.parse_json(completion.text)

        roadmap = plan.get("roadmap")
        saved = await self._save_milestones(
            context, roadmap if isinstance(roadmap, list) else [], user.roadmap_items
        )
        plan["savedMilestones"] = saved
        return AgentResult.ok(plan, tokens_used=completion.tokens_used)

    async def _save_milestones(
        self,
        context: "ExecutionContext",
        roadmap: List[Dict[str, Any]],
        existing: List[Dict[str, Any]],
    ) -> int:
        """Insert milestones whose title is not already on the roadmap. Returns the count saved."""
        known_titles = {i.get("title") for i in existing}
        rows: List[Dict[str, Any]] = []
        for index, item in enumerate(roadmap[:MAX_SAVED_MILESTONES]):
            if not isinstance(item, dict):
                continue
            title = item.get("milestone")
            if not title or not isinstance(title, str) or title in known_titles:
                continue
            week = parse_week(item.get("week"), index + 1)
            description = (
                f"{item.get('phase', '')} - Week {week}\n\n"
                f"Tasks:\n{_bullets(item.get('tasks'))}\n\n"
                f"Success Metrics:\n{_bullets(item.get('successMetrics'))}"
            )
            rows.append(
                {
                    "title": title,
                    "description": description,
                    "status": "in_progress" if index == 0 else "todo",
                    "priority": max(0, MAX_SAVED_MILESTONES - index),
                    "due_date": context.now + timedelta(weeks=week),
                }
            )
            known_titles.add(title)
        # rows are fully built before the first write
        for row in rows:
            await context.data_store.insert("roadmap_items", row)
        return len(rows)
