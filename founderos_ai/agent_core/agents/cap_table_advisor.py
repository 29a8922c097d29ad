from __future__ import annotations

"""Cap table and equity advisor agent."""

from typing import TYPE_CHECKING, Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..schemas.domain import AgentResult
from .base import AgentInput, BaseAgent
from .metrics import equity_split, total_raised

if TYPE_CHECKING:
    from ..runtime.models import ExecutionContext


class PlannedHire(BaseModel):
    role: str
    equity: float = Field(ge=0, le=100)


class RaiseScenario(BaseModel):
    raise_amount: Optional[float] = Field(default=None, alias="raiseAmount", gt=0)
    valuation: Optional[float] = Field(default=None, gt=0)
    hiring_plan: List[PlannedHire] = Field(default_factory=list, alias="hiringPlan")

    model_config = {"populate_by_name": True}


class CapTableInput(AgentInput):
    scenario: Optional[RaiseScenario] = None
    question: Optional[str] = None


def projected_dilution(founder_equity: float, scenario: Optional[RaiseScenario]) -> Optional[Dict[str, float]]:
    """
    Post-money founder ownership for a priced round plus planned hires.

    ``valuation`` is treated as pre-money. Returns None without both a raise
    amount and a valuation.
    """
    if scenario is None or not scenario.raise_amount or not scenario.valuation:
        return None
    investor_share = scenario.raise_amount / (scenario.valuation + scenario.raise_amount)
    hires = sum(h.equity for h in scenario.hiring_plan) / 100
    projected = founder_equity * (1 - investor_share) * max(0.0, 1 - hires)
    return {"projectedOwnership": round(projected, 2), "dilution": round(founder_equity - projected, 2)}


class CapTableAdvisorAgent(BaseAgent):
    id = "cap-table-advisor"
    name = "Cap Table & Equity Advisor"
    description = "Understand dilution, equity breakdown, and standard benchmarks"
    category = "Fundraising"
    icon = "📉"
    input_model = CapTableInput
    error_prefix = "Failed to analyze cap table"
    temperature = 0.3
    max_tokens = 400

    async def run(self, params: CapTableInput, context: "ExecutionContext") -> AgentResult:
        team = await context.data_store.select("team_members")
        rounds = await context.data_store.select("funding_rounds")
        equity = equity_split(team)
        projection = projected_dilution(equity["founder"], params.scenario)

        system_prompt = (
            "You are an expert cap table advisor helping founders understand equity and dilution. "
            "Provide clear, actionable advice with industry benchmarks. Keep responses concise (max 200 words)."
        )
        lines = [
            "Analyze this startup's equity situation:",
            "",
            "CURRENT EQUITY:",
            f"- Founder ownership: {equity['founder']:g}%",
            f"- Employee equity: {equity['employee']:g}%",
            f"- Total allocated: {equity['total']:g}%",
            f"- Total raised: ${total_raised(rounds):,.0f}",
            "",
            "TEAM BREAKDOWN:",
            *(
                [f"- {m.get('name')}: {m.get('role')} ({float(m.get('equity_percent') or 0):g}%)" for m in team]
                or ["- No team members tracked"]
            ),
        ]
        scenario = params.scenario
        if scenario is not None and scenario.raise_amount:
            hires = ", ".join(f"{h.role} ({h.equity:g}%)" for h in scenario.hiring_plan) or "None"
            lines += [
                "",
                "SCENARIO:",
                f"- Raising: ${scenario.raise_amount:,.0f}",
                f"- Valuation: ${scenario.valuation or 0:,.0f}",
                f"- New hires planned: {hires}",
            ]
        if params.question:
            lines += ["", f"QUESTION: {params.question}"]
        lines += [
            "",
            'Return JSON: {"currentOwnership": <founder %>, "projectedOwnership": <% if scenario>, '
            '"dilution": <% if scenario>, "analysis": "...", "benchmarks": [...], "recommendations": [...]}',
        ]

        completion = await self.call_model(context, system_prompt, "\n".join(lines))
        data = self.parse_json(completion.text)
        result: Dict[str, Any] = {
            "currentOwnership": data.get("currentOwnership") or equity["founder"],
            "projectedOwnership": data.get("projectedOwnership"),
            "dilution": data.get("dilution"),
            "analysis": data.get("analysis") or "Equity analysis complete.",
            "benchmarks": data.get("benchmarks") or [],
            "recommendations": data.get("recommendations") or [],
        }
        if projection is not None:
            for key, value in projection.items():
                if result[key] is None:
                    result[key] = value
        return AgentResult.ok(result, tokens_used=completion.tokens_used)
