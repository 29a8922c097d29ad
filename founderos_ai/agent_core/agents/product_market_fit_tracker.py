from __future__ import annotations

"""Product-market fit scoring agent."""

from typing import TYPE_CHECKING, List, Optional

from pydantic import Field

from ..schemas.domain import AgentResult
from .base import AgentInput, BaseAgent
from .metrics import marketing_summary, task_counts, total_raised

if TYPE_CHECKING:
    from ..runtime.models import ExecutionContext

BREAKDOWN_KEYS = ("retention", "revenue", "feedback", "growth")


class PMFInput(AgentInput):
    user_quotes: List[str] = Field(default_factory=list, alias="userQuotes")
    disappointment_percent: Optional[float] = Field(default=None, alias="disappointmentPercent", ge=0, le=100)


def score_color(score: float) -> str:
    if score < 40:
        return "red"
    if score < 70:
        return "yellow"
    return "green"


class ProductMarketFitTrackerAgent(BaseAgent):
    id = "product-market-fit-tracker"
    name = "Product-Market Fit Score"
    description = "Assess whether your startup shows signs of Product-Market Fit"
    category = "Product"
    icon = "📊"
    input_model = PMFInput
    error_prefix = "Failed to calculate PMF score"
    temperature = 0.3
    max_tokens = 350

    async def run(self, params: PMFInput, context: "ExecutionContext") -> AgentResult:
        store = context.data_store
        marketing = marketing_summary(await store.select("marketing_platforms"))
        rounds = await store.select("funding_rounds")
        tasks = task_counts(await store.select("roadmap_items"))
        completion_rate = tasks["completed"] / tasks["total"] * 100 if tasks["total"] else 0.0

        if params.user_quotes:
            feedback = ["User quotes:", *(f'- "{q}"' for q in params.user_quotes)]
        else:
            feedback = ["- No user quotes provided"]
        if params.disappointment_percent is not None:
            feedback.append(f"- Would be disappointed if product disappeared: {params.disappointment_percent:g}%")
        else:
            feedback.append("- Disappointment metric: Not provided")

        system_prompt = (
            "You are an expert PMF assessor. Score 0-100 across 4 dimensions:\n"
            "1. Retention (25 points) - user engagement, task completion, repeat usage\n"
            "2. Revenue (25 points) - funding raised, revenue signals, monetization\n"
            "3. Feedback (25 points) - user quotes, satisfaction signals, NPS-like indicators\n"
            "4. Growth (25 points) - marketing reach, engagement rate, growth trajectory\n\n"
            "Provide a concise recommendation (max 100 words) focused on actionable next steps."
        )
        user_prompt = "\n".join(
            [
                "Assess Product-Market Fit for this startup:",
                "",
                "RETENTION SIGNALS:",
                f"- Task completion rate: {completion_rate:.1f}%",
                f"- Completed tasks: {tasks['completed']}/{tasks['total']}",
                f"- Active roadmap items: {tasks['inProgress']}",
                "",
                "REVENUE SIGNALS:",
                f"- Total funding raised: ${total_raised(rounds):,.0f}",
                f"- Funding rounds: {len(rounds)}",
                "",
                "FEEDBACK SIGNALS:",
                *feedback,
                "",
                "GROWTH SIGNALS:",
                f"- Total marketing reach: {marketing['totalReach']:,}",
                f"- Average engagement rate: {marketing['avgEngagement']:.1f}%",
                f"- Active marketing platforms: {marketing['platformCount']}",
                "",
                'Return JSON: {"score": 0-100, "breakdown": {"retention": 0-25, "revenue": 0-25, '
                '"feedback": 0-25, "growth": 0-25}, "recommendation": "..."}',
            ]
        )

        completion = await self.call_model(context, system_prompt, user_prompt)
        data = self.parse_json(completion.text)
        score = data.get("score") or 0
        breakdown = data.get("breakdown") if isinstance(data.get("breakdown"), dict) else {}
        return AgentResult.ok(
            {
                "score": score,
                "breakdown": {k: breakdown.get(k) or 0 for k in BREAKDOWN_KEYS},
                "recommendation": data.get("recommendation")
                or "Continue gathering user feedback and tracking metrics.",
                # derived from the score, never taken from the model
                "color": score_color(score),
            },
            tokens_used=completion.tokens_used,
        )
