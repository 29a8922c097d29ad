from __future__ import annotations

"""Progress analysis agent.

Combines roadmap progress with the founder's own execution history to ask the
model for an honest assessment, blockers and recommendations.
"""

import json
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, Dict, List, Literal

from ..schemas.domain import AgentResult, ExecutionRecord, ExecutionStatus
from .base import AgentInput, BaseAgent

if TYPE_CHECKING:
    from ..runtime.models import ExecutionContext

HISTORY_WINDOW = 50


class ProgressAnalyzerInput(AgentInput):
    timeframe: Literal["week", "month", "quarter", "all"] = "all"
    focus: Literal["roadmap", "goals", "resources", "all"] = "all"


def calculate_progress(
    roadmap_items: List[Dict[str, Any]],
    executions: List[ExecutionRecord],
    now: datetime,
) -> Dict[str, Any]:
    total = len(roadmap_items)
    done = [i for i in roadmap_items if i.get("status") == "done"]
    in_progress = [i for i in roadmap_items if i.get("status") == "in_progress"]
    overdue = [i for i in in_progress if isinstance(i.get("due_date"), datetime) and i["due_date"] < now]
    week_ago = now - timedelta(days=7)
    recent = [i for i in done if isinstance(i.get("updated_at"), datetime) and i["updated_at"] > week_ago]
    succeeded = sum(1 for e in executions if e.status == ExecutionStatus.completed)
    return {
        "completionRate": round(len(done) / total * 100) if total else 0,
        "totalTasks": total,
        "completedTasks": len(done),
        "inProgressTasks": len(in_progress),
        "overdueTasks": len(overdue),
        "recentCompletions": len(recent),
        "agentSuccessRate": round(succeeded / len(executions) * 100) if executions else 0,
        "velocity": len(recent),
    }


class ProgressAnalyzerAgent(BaseAgent):
    id = "progress-analyzer"
    name = "Progress Analyzer"
    description = "Analyzes your progress, identifies blockers, and suggests improvements"
    category = "Strategic"
    icon = "📊"
    input_model = ProgressAnalyzerInput
    error_prefix = "Failed to analyze progress"
    max_tokens = 1000

    async def run(self, params: ProgressAnalyzerInput, context: "ExecutionContext") -> AgentResult:
        user = await self.load_user_context(context)
        profile = user.profile
        executions = await context.recent_executions(limit=HISTORY_WINDOW)
        metrics = calculate_progress(user.roadmap_items, executions, context.now)
        failed = sum(1 for e in executions if e.status == ExecutionStatus.failed)

        system_prompt = "\n".join(
            [
                "You are a startup progress analyst. Analyze progress objectively, identify what is and is not "
                "working, spot blockers and suggest improvements or pivots.",
                "",
                "CURRENT STATE:",
                f"- Goal: {profile.get('current_goal') or 'Not set'}",
                f"- Stage: {profile.get('stage') or 'Early stage'}",
                f"- Time: {profile.get('hours_per_week') or 0} hours/week",
                f"- Budget: ${profile.get('funds_available') or 0}",
                f"- Network: {len(user.contacts)} contacts",
                "",
                "PROGRESS METRICS:",
                json.dumps(metrics, indent=2),
                "",
                "RECENT ACTIVITY:",
                f"- Agent Tasks Completed: {len(executions) - failed}",
                f"- Agent Tasks Failed: {failed}",
                f"- Documents Created: {len(user.documents)}",
            ]
        )
        user_prompt = (
            f"Analyze progress for the {params.timeframe} timeframe.\nFocus: {params.focus}\n\n"
            "Return JSON with keys: progress {overall, byCategory, trend}, "
            "insights {whatWorking, whatNotWorking, momentum}, blockers [{blocker, impact, suggestion}], "
            "opportunities [{opportunity, potential, action}], recommendations {immediate, strategic, pivot}."
        )

        completion = await self.call_model(context, system_prompt, user_prompt)
        analysis = self.parse_json(completion.text)
        analysis.setdefault("metrics", metrics)
        return AgentResult.ok(analysis, tokens_used=completion.tokens_used)
