from __future__ import annotations

"""Monthly investor update agent.

Unlike ``draft-investor-email``, the founder supplies the wins, challenges
and asks; workspace data only fills the metrics section.
"""

from typing import TYPE_CHECKING, Any, Dict, List

from pydantic import Field

from ..schemas.domain import AgentResult
from .base import AgentInput, BaseAgent
from .metrics import marketing_summary, total_raised

if TYPE_CHECKING:
    from ..runtime.models import ExecutionContext

DEFAULT_BUDGET = 100000


class InvestorUpdateInput(AgentInput):
    wins: List[str] = Field(default_factory=list)
    challenges: List[str] = Field(default_factory=list)
    asks: List[str] = Field(default_factory=list)
    include_metrics: bool = Field(default=True, alias="includeMetrics")


def runway_metrics(profile: Dict[str, Any]) -> Dict[str, float]:
    """Cash, burn and whole-month runway; burn defaults to a twelve-month spend of the budget."""
    budget = profile.get("funds_available") or DEFAULT_BUDGET
    burn = profile.get("monthly_burn") or round(budget / 12)
    return {"budget": budget, "burn": burn, "runway": round(budget / burn) if burn > 0 else 0}


def _bullets(items: List[str], fallback: List[str]) -> List[str]:
    return [f"- {item}" for item in (items or fallback)]


class InvestorUpdateDraftingAgent(BaseAgent):
    id = "investor-update-drafting"
    name = "Draft Investor Update"
    description = "Craft polished, metrics-rich monthly investor updates"
    category = "Fundraising"
    icon = "📢"
    input_model = InvestorUpdateInput
    error_prefix = "Failed to draft investor update"
    temperature = 0.7
    max_tokens = 500

    async def run(self, params: InvestorUpdateInput, context: "ExecutionContext") -> AgentResult:
        store = context.data_store
        user = await self.load_user_context(context)
        profile = user.profile
        rounds = await store.select("funding_rounds")
        team = await store.select("team_members")
        marketing = marketing_summary(await store.select("marketing_platforms"))
        runway = runway_metrics(profile)
        company = profile.get("company_name") or profile.get("name") or "Startup"

        recent_wins = [i["title"] for i in user.roadmap_items if i.get("status") == "done"][:5]
        system_prompt = (
            "You are an expert startup advisor helping founders write compelling investor update emails. "
            "Create professional, concise updates (300-400 words) that highlight wins, acknowledge challenges, "
            "and include clear asks."
        )
        user_prompt = "\n".join(
            [
                "Draft an investor update email for:",
                "",
                f"COMPANY: {company}",
                f"MONTH: {context.now.strftime('%B %Y')}",
                "",
                "WINS:",
                *_bullets(params.wins or recent_wins, ["Product development progress", "Team building"]),
                "",
                "CHALLENGES:",
                *_bullets(params.challenges, ["None specified"]),
                "",
                "METRICS:",
                f"- Total raised: ${total_raised(rounds):,.0f}",
                f"- Cash remaining: ${runway['budget']:,.0f}",
                f"- Monthly burn: ${runway['burn']:,.0f}",
                f"- Runway: {runway['runway']} months",
                f"- Marketing reach: {marketing['totalReach']:,}",
                f"- Engagement rate: {marketing['avgEngagement']:.1f}%",
                f"- Team size: {len(team) or 1}",
                "",
                "ASKS:",
                *_bullets(params.asks, ["Introductions to investors", "Customer referrals"]),
                "",
                "Include metrics in the update." if params.include_metrics else "Focus on qualitative progress.",
                "",
                'Return JSON: {"subject": "<Month> Update - <Company>", '
                '"body": "Email body with Wins, Challenges, Metrics and Asks sections"}',
            ]
        )

        completion = await self.call_model(context, system_prompt, user_prompt)
        email = self.parse_json(completion.text)
        return AgentResult.ok(
            {
                "email": {
                    "subject": email.get("subject") or f"Update - {company}",
                    "body": email.get("body") or "",
                    "to": "",
                    "cc": [],
                },
                "metrics": {
                    "runway": runway["runway"],
                    "burn": runway["burn"],
                    "growth": marketing["avgEngagement"],
                },
            },
            tokens_used=completion.tokens_used,
        )
