from __future__ import annotations

"""Investor update email agent."""

import math
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, Dict, List, Literal, Optional

from pydantic import Field

from ..schemas.domain import AgentResult
from .base import AgentInput, BaseAgent

if TYPE_CHECKING:
    from ..runtime.models import ExecutionContext

DEFAULT_MONTHLY_BURN = 10000
DEFAULT_BUDGET = 100000


class InvestorEmailInput(AgentInput):
    tone: Literal["professional", "casual", "optimistic"] = "professional"
    focus_areas: Optional[List[str]] = Field(default=None, alias="focusAreas")
    include_metrics: bool = Field(default=True, alias="includeMetrics")


def calculate_metrics(
    profile: Dict[str, Any],
    roadmap_items: List[Dict[str, Any]],
    contacts: List[Dict[str, Any]],
    now: datetime,
) -> Dict[str, Any]:
    monthly_burn = profile.get("monthly_burn") or DEFAULT_MONTHLY_BURN
    budget = profile.get("funds_available") or profile.get("budget") or DEFAULT_BUDGET
    runway_months = budget / monthly_burn if monthly_burn > 0 else 0
    cutoff = now - timedelta(days=30)
    active_contacts = sum(
        1 for c in contacts if isinstance(c.get("last_contacted"), datetime) and c["last_contacted"] > cutoff
    )
    return {
        "timeRemaining": {
            "weeks": math.floor(runway_months * 4.33),
            "days": math.floor(runway_months * 30),
        },
        "budgetStatus": {"remaining": budget, "burnRate": monthly_burn},
        "activeContacts": active_contacts,
        "completedTasks": sum(1 for i in roadmap_items if i.get("status") == "done"),
        "totalTasks": len(roadmap_items),
    }


class DraftInvestorEmailAgent(BaseAgent):
    id = "draft-investor-email"
    name = "Draft Investor Update"
    description = "Generate a professional investor update email with current metrics and progress"
    category = "Fundraising"
    icon = "📧"
    input_model = InvestorEmailInput
    error_prefix = "Failed to draft investor email"
    max_tokens = 1500

    async def run(self, params: InvestorEmailInput, context: "ExecutionContext") -> AgentResult:
        user = await self.load_user_context(context)
        profile = user.profile
        metrics = calculate_metrics(profile, user.roadmap_items, user.contacts, context.now)

        system_prompt = (
            "You are an expert startup advisor helping founders write compelling investor update emails.\n"
            "Draft a concise update that highlights key progress, is honest about challenges, shows momentum, "
            "includes relevant metrics and ends with a clear ask.\n"
            f"The email should be {params.tone} in tone and approximately 300-500 words."
        )
        user_prompt = self._build_user_prompt(params, metrics, user.roadmap_items, profile)

        completion = await self.call_model(context, system_prompt, user_prompt)
        email_data = self.parse_json(completion.text)
        email = {
            "subject": email_data.get("subject") or "Update from FounderOS",
            "body": email_data.get("body") or completion.text,
            "to": "",
            "cc": [],
        }
        return AgentResult.ok({"email": email, "metrics": metrics}, tokens_used=completion.tokens_used)

    @staticmethod
    def _build_user_prompt(
        params: InvestorEmailInput,
        metrics: Dict[str, Any],
        roadmap_items: List[Dict[str, Any]],
        profile: Dict[str, Any],
    ) -> str:
        total = metrics["totalTasks"]
        completion_rate = round(metrics["completedTasks"] / total * 100) if total else 0
        wins = [i["title"] for i in roadmap_items if i.get("status") == "done"][:5]
        current = [i["title"] for i in roadmap_items if i.get("status") == "in_progress"][:3]
        focus = ", ".join(params.focus_areas or []) or "product development, customer acquisition, fundraising"
        company = profile.get("company_name") or profile.get("name") or "My Startup"
        founder = profile.get("name") or "Founder"

        lines = [
            "Draft an investor update email with the following information:",
            "",
            f"COMPANY: {company}",
            f"FOUNDER: {founder}",
            "",
            "CURRENT METRICS:",
            f"- Runway: {metrics['timeRemaining']['weeks']} weeks ({metrics['timeRemaining']['days']} days)",
            f"- Budget Remaining: ${metrics['budgetStatus']['remaining']:,.0f}",
            f"- Monthly Burn: ${metrics['budgetStatus']['burnRate']:,.0f}",
            f"- Active Network Contacts: {metrics['activeContacts']}",
            f"- Task Completion Rate: {completion_rate}%",
            "",
            "RECENT WINS:",
            *([f"- {t}" for t in wins] or ["- Building initial product"]),
            "",
            "CURRENTLY WORKING ON:",
            *([f"- {t}" for t in current] or ["- Product development"]),
            "",
            f"FOCUS AREAS: {focus}",
            "",
            "Include specific metrics in the email." if params.include_metrics else "Focus on qualitative progress.",
            "",
            'Return JSON: {"subject": "...", "body": "plain text, paragraphs separated by blank lines"}',
        ]
        return "\n".join(lines)
