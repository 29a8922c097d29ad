from __future__ import annotations

"""Investor readiness scoring agent.

Scores the startup 0-100 across team, market, product, traction and
fundability (20 points each) from the founder's workspace data.
"""

from typing import TYPE_CHECKING, Any, Dict, List

from pydantic import Field

from ..schemas.domain import AgentResult
from .base import AgentInput, BaseAgent
from .metrics import marketing_summary, raising_round, task_counts, total_raised

if TYPE_CHECKING:
    from ..runtime.models import ExecutionContext

SUBSCORE_KEYS = ("team", "market", "product", "traction", "fundability")


class InvestorReadinessInput(AgentInput):
    include_pitch_deck: bool = Field(default=True, alias="includePitchDeck")


def team_summary(team_members: List[Dict[str, Any]]) -> Dict[str, Any]:
    roles = [(m.get("role") or "").lower() for m in team_members]
    return {
        "count": len(team_members),
        "founders": sum(1 for m in team_members if m.get("role") == "Founder"),
        "hasCTO": any("cto" in r or "technical" in r for r in roles),
        "hasSales": any("sales" in r or "business" in r for r in roles),
        "totalEquity": sum(float(m.get("equity_percent") or 0) for m in team_members),
    }


def _yes(flag: bool) -> str:
    return "Yes" if flag else "No"


class InvestorReadinessAgent(BaseAgent):
    id = "investor-readiness"
    name = "Investor Readiness Score"
    description = "Score your startup's investor readiness across team, market, product, traction, and pitch quality"
    category = "Fundraising"
    icon = "🎯"
    input_model = InvestorReadinessInput
    error_prefix = "Failed to calculate investor readiness"
    temperature = 0.3
    max_tokens = 400

    async def run(self, params: InvestorReadinessInput, context: "ExecutionContext") -> AgentResult:
        store = context.data_store
        profile = await context.profile()
        team = team_summary(await store.select("team_members"))
        rounds = await store.select("funding_rounds")
        investors = await store.select("investors")
        marketing = marketing_summary(await store.select("marketing_platforms"))
        tasks = task_counts(await store.select("roadmap_items"))
        pitch_deck = None
        if params.include_pitch_deck:
            documents = await store.select("documents")
            pitch_deck = next((d for d in documents if "pitch" in (d.get("name") or "").lower()), None)

        system_prompt = (
            "You are an expert VC evaluator scoring startup investor readiness on a 0-100 scale across 5 categories:\n"
            "1. Team (20 points) - founding team completeness, relevant experience, equity distribution\n"
            "2. Market (20 points) - market size, product-market fit signals, competitive positioning\n"
            "3. Product (20 points) - product development progress, roadmap clarity, technical validation\n"
            "4. Traction (20 points) - revenue, user growth, engagement, customer validation\n"
            "5. Fundability (20 points) - funding history, investor relationships, pitch quality\n\n"
            "Provide concise, actionable feedback. Keep responses brief (max 150 words total)."
        )
        user_prompt = "\n".join(
            [
                "Score this startup's investor readiness:",
                "",
                f"COMPANY: {profile.get('company_name') or profile.get('name') or 'Startup'}",
                f"BUILDING: {profile.get('building_description') or 'Not specified'}",
                f"CURRENT GOAL: {profile.get('current_goal') or 'Not specified'}",
                "",
                "TEAM:",
                f"- Total members: {team['count']}",
                f"- Founders: {team['founders']}",
                f"- Has CTO: {_yes(team['hasCTO'])}",
                f"- Has Sales/Biz Dev: {_yes(team['hasSales'])}",
                f"- Total equity allocated: {team['totalEquity']:g}%",
                "",
                "FUNDING:",
                f"- Total raised: ${total_raised(rounds):,.0f}",
                f"- Investors: {len(investors)}",
                f"- Has lead investor: {_yes(any(r.get('lead_investor') for r in rounds))}",
                f"- Currently raising: {_yes(raising_round(rounds) is not None)}",
                "",
                "TRACTION/MARKETING:",
                f"- Total reach: {marketing['totalReach']:,}",
                f"- Avg engagement rate: {marketing['avgEngagement']:.1f}%",
                f"- Active platforms: {marketing['platformCount']}",
                "",
                "PRODUCT:",
                f"- Completed tasks: {tasks['completed']}/{tasks['total']}",
                f"- In progress: {tasks['inProgress']}",
                "",
                f"PITCH DECK: {'Available' if pitch_deck else 'Not found'}",
                "",
                'Return JSON: {"totalScore": 0-100, "subscores": {"team": 0-20, "market": 0-20, "product": 0-20, '
                '"traction": 0-20, "fundability": 0-20}, "strengths": [...], "concerns": [...], "nextSteps": [...]}',
            ]
        )

        completion = await self.call_model(context, system_prompt, user_prompt)
        data = self.parse_json(completion.text)
        subscores = data.get("subscores") if isinstance(data.get("subscores"), dict) else {}
        return AgentResult.ok(
            {
                "totalScore": data.get("totalScore") or 0,
                "subscores": {k: subscores.get(k) or 0 for k in SUBSCORE_KEYS},
                "strengths": data.get("strengths") or [],
                "concerns": data.get("concerns") or [],
                "nextSteps": data.get("nextSteps") or [],
            },
            tokens_used=completion.tokens_used,
        )
